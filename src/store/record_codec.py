"""Stored record (de)serialization.

Values in the ``key`` bucket are protobuf ``mvccpb.KeyValue`` messages.
This module converts them to and from the typed ``KeyValue`` model.
"""

from __future__ import annotations

from google.protobuf.message import DecodeError

from core.errors import CorruptRecordError
from core.proto_messages import FieldProto, add_field, build_message_classes, new_file
from core.types import KeyValue


def _build_key_value_message() -> type:
    file_proto = new_file("mvccpb/kv.proto", "mvccpb", "proto3")
    message = file_proto.message_type.add()
    message.name = "KeyValue"
    add_field(message, "key", 1, FieldProto.TYPE_BYTES)
    add_field(message, "create_revision", 2, FieldProto.TYPE_INT64)
    add_field(message, "mod_revision", 3, FieldProto.TYPE_INT64)
    add_field(message, "version", 4, FieldProto.TYPE_INT64)
    add_field(message, "value", 5, FieldProto.TYPE_BYTES)
    add_field(message, "lease", 6, FieldProto.TYPE_INT64)
    return build_message_classes(file_proto)["KeyValue"]


KeyValueMessage = _build_key_value_message()


def decode_key_value(raw: bytes) -> KeyValue:
    """Unmarshal one stored record value.

    Args:
        raw: Protobuf-encoded ``KeyValue`` bytes.

    Returns:
        Typed key value.

    Raises:
        CorruptRecordError: If the bytes are not a valid message.
    """
    message = KeyValueMessage()
    try:
        message.ParseFromString(bytes(raw))
    except DecodeError as error:
        raise CorruptRecordError(f"record value is not a KeyValue message: {error}") from error
    return KeyValue(
        key=message.key,
        value=message.value,
        create_revision=message.create_revision,
        mod_revision=message.mod_revision,
        version=message.version,
        lease=message.lease,
    )


def encode_key_value(key_value: KeyValue) -> bytes:
    """Marshal a typed key value into its stored protobuf form."""
    message = KeyValueMessage(
        key=key_value.key,
        value=key_value.value,
        create_revision=key_value.create_revision,
        mod_revision=key_value.mod_revision,
        version=key_value.version,
        lease=key_value.lease,
    )
    return message.SerializeToString()
