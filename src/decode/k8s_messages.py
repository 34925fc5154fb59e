"""Protobuf envelopes used by API server storage.

Builtin objects are stored as a ``k8s\\0`` magic prefix followed by a
``runtime.Unknown`` envelope whose ``raw`` field holds the typed object.
Every typed object keeps its ``ObjectMeta`` in field 1, so a partial
message that only declares ``metadata`` decodes it without the full
schema; all other fields are skipped as unknown.
"""

from __future__ import annotations

from core.proto_messages import (
    FieldProto,
    add_field,
    add_string_map,
    build_message_classes,
    new_file,
)

RUNTIME_PACKAGE = "k8s.io.apimachinery.pkg.runtime"
PARTIAL_PACKAGE = "revscope.partial"


def _build_runtime_messages() -> dict[str, type]:
    file_proto = new_file("k8s.io/apimachinery/pkg/runtime/generated.proto", RUNTIME_PACKAGE, "proto2")
    type_meta = file_proto.message_type.add()
    type_meta.name = "TypeMeta"
    add_field(type_meta, "apiVersion", 1, FieldProto.TYPE_STRING)
    add_field(type_meta, "kind", 2, FieldProto.TYPE_STRING)
    unknown = file_proto.message_type.add()
    unknown.name = "Unknown"
    add_field(
        unknown,
        "typeMeta",
        1,
        FieldProto.TYPE_MESSAGE,
        type_name=f".{RUNTIME_PACKAGE}.TypeMeta",
    )
    add_field(unknown, "raw", 2, FieldProto.TYPE_BYTES)
    add_field(unknown, "contentEncoding", 3, FieldProto.TYPE_STRING)
    add_field(unknown, "contentType", 4, FieldProto.TYPE_STRING)
    return build_message_classes(file_proto)


def _build_partial_object_messages() -> dict[str, type]:
    file_proto = new_file("revscope/partial_object.proto", PARTIAL_PACKAGE, "proto2")
    object_meta = file_proto.message_type.add()
    object_meta.name = "ObjectMeta"
    for number, name in enumerate(
        ("name", "generateName", "namespace", "selfLink", "uid", "resourceVersion"), 1
    ):
        add_field(object_meta, name, number, FieldProto.TYPE_STRING)
    add_field(object_meta, "generation", 7, FieldProto.TYPE_INT64)
    add_string_map(object_meta, f"{PARTIAL_PACKAGE}.ObjectMeta", "labels", 11)
    add_string_map(object_meta, f"{PARTIAL_PACKAGE}.ObjectMeta", "annotations", 12)
    partial_object = file_proto.message_type.add()
    partial_object.name = "PartialObject"
    add_field(
        partial_object,
        "metadata",
        1,
        FieldProto.TYPE_MESSAGE,
        type_name=f".{PARTIAL_PACKAGE}.ObjectMeta",
    )
    return build_message_classes(file_proto)


_RUNTIME_MESSAGES = _build_runtime_messages()
_PARTIAL_MESSAGES = _build_partial_object_messages()

TypeMetaMessage = _RUNTIME_MESSAGES["TypeMeta"]
UnknownMessage = _RUNTIME_MESSAGES["Unknown"]
ObjectMetaMessage = _PARTIAL_MESSAGES["ObjectMeta"]
PartialObjectMessage = _PARTIAL_MESSAGES["PartialObject"]
