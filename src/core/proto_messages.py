"""Runtime-built protobuf message classes.

Stored records and payload envelopes are protobuf messages. Their
schemas are small and stable, so they are declared here as descriptor
protos and turned into message classes at import time instead of
shipping generated ``_pb2`` modules.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

FieldProto = descriptor_pb2.FieldDescriptorProto


def new_file(name: str, package: str, syntax: str) -> descriptor_pb2.FileDescriptorProto:
    """Start a file descriptor proto."""
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = name
    file_proto.package = package
    file_proto.syntax = syntax
    return file_proto


def add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    field_type: int,
    *,
    repeated: bool = False,
    type_name: str | None = None,
) -> None:
    """Append one field declaration to a message descriptor proto."""
    field = message.field.add()
    field.name = name
    field.number = number
    field.type = field_type  # type: ignore[assignment]
    field.label = (  # type: ignore[assignment]
        FieldProto.LABEL_REPEATED if repeated else FieldProto.LABEL_OPTIONAL
    )
    if type_name is not None:
        field.type_name = type_name


def add_string_map(
    message: descriptor_pb2.DescriptorProto,
    full_message_name: str,
    name: str,
    number: int,
) -> None:
    """Append a ``map<string, string>`` field to a message descriptor proto."""
    entry_name = name[:1].upper() + name[1:] + "Entry"
    entry = message.nested_type.add()
    entry.name = entry_name
    entry.options.map_entry = True
    add_field(entry, "key", 1, FieldProto.TYPE_STRING)
    add_field(entry, "value", 2, FieldProto.TYPE_STRING)
    add_field(
        message,
        name,
        number,
        FieldProto.TYPE_MESSAGE,
        repeated=True,
        type_name=f".{full_message_name}.{entry_name}",
    )


def build_message_classes(
    file_proto: descriptor_pb2.FileDescriptorProto,
) -> dict[str, type[Message]]:
    """Register a file descriptor in a private pool and build its classes.

    Args:
        file_proto: Complete file descriptor proto.

    Returns:
        Mapping of top-level message name to generated message class.
    """
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    file_descriptor = pool.FindFileByName(file_proto.name)
    return {
        name: message_factory.GetMessageClass(descriptor)
        for name, descriptor in file_descriptor.message_types_by_name.items()
    }
