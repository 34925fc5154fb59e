"""Stored payload detection and conversion.

This module sniffs how a stored value is encoded (storage protobuf or
JSON), converts it between media types, and decodes it into a generic
document of dicts, lists, and scalars. It is the default implementation
of the decoder the snapshot reconstructor consumes.

Storage-binary objects are decoded schema-agnostically: only
``apiVersion``, ``kind`` and the ``metadata`` block are read from the
object body, so paths under ``spec`` or ``status`` never resolve for
them. JSON payloads, bare or enveloped, are loaded whole.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import re
from typing import Any, Callable, Mapping

from google.protobuf import json_format
from google.protobuf.message import DecodeError
import yaml

from core.errors import PayloadDecodeError
from core.types import DecodedPayload, TypeMeta
from decode.k8s_messages import PartialObjectMessage, UnknownMessage

STORAGE_BINARY_MEDIA_TYPE = "application/vnd.kubernetes.storagebinary"
PROTOBUF_MEDIA_TYPE = "application/vnd.kubernetes.protobuf"
YAML_MEDIA_TYPE = "application/yaml"
JSON_MEDIA_TYPE = "application/json"

PROTO_ENCODING_PREFIX = b"k8s\x00"
_JSON_START = re.compile(rb"[{\[]")


@dataclass(frozen=True)
class MediaCodec:
    """Loader and optional dumper for one media type."""

    media_type: str
    load: Callable[[bytes], Any]
    dump: Callable[[Any], bytes] | None = None


@dataclass(frozen=True)
class CodecRegistry:
    """Media codecs available for conversion, keyed by media type."""

    codecs: Mapping[str, MediaCodec]

    def codec_for(self, media_type: str) -> MediaCodec:
        """Return the codec for a media type.

        Raises:
            PayloadDecodeError: If no codec is registered.
        """
        codec = self.codecs.get(media_type)
        if codec is None:
            raise PayloadDecodeError(f"unsupported media type {media_type}")
        return codec


def detect_and_extract(data: bytes) -> tuple[str, bytes]:
    """Detect the encoding of a stored value and extract its payload.

    Args:
        data: Raw stored value.

    Returns:
        Pair of detected media type and payload bytes starting at the
        protobuf magic prefix or at the first valid JSON document.

    Raises:
        PayloadDecodeError: If neither protobuf nor JSON data is found.
    """
    proto_index = data.find(PROTO_ENCODING_PREFIX)
    if proto_index >= 0:
        return STORAGE_BINARY_MEDIA_TYPE, data[proto_index:]
    json_payload = _find_json(data)
    if json_payload is not None:
        return JSON_MEDIA_TYPE, json_payload
    raise PayloadDecodeError(
        "error reading input, does not appear to contain valid JSON or binary data"
    )


def decode_unknown(data: bytes) -> Any:
    """Decode the ``runtime.Unknown`` envelope of storage-binary data.

    Raises:
        PayloadDecodeError: If the prefix is missing or the envelope is invalid.
    """
    if len(data) < len(PROTO_ENCODING_PREFIX):
        raise PayloadDecodeError(
            f"input too short, expected {len(PROTO_ENCODING_PREFIX)} byte proto encoding prefix"
        )
    if not data.startswith(PROTO_ENCODING_PREFIX):
        raise PayloadDecodeError(
            f"first bytes {data[:4]!r} do not match proto encoding prefix {PROTO_ENCODING_PREFIX!r}"
        )
    unknown = UnknownMessage()
    try:
        unknown.ParseFromString(data[len(PROTO_ENCODING_PREFIX) :])
    except DecodeError as error:
        raise PayloadDecodeError(f"invalid storage envelope: {error}") from error
    return unknown


def convert(
    registry: CodecRegistry,
    in_media_type: str,
    out_media_type: str,
    data: bytes,
) -> tuple[bytes, TypeMeta]:
    """Convert stored data between media types.

    Args:
        registry: Codecs used to load and dump documents.
        in_media_type: Media type of ``data``.
        out_media_type: Requested output media type.
        data: Payload bytes, as returned by :func:`detect_and_extract`.

    Returns:
        Pair of encoded output and the payload type metadata.

    Raises:
        PayloadDecodeError: If the conversion is unsupported or data is invalid.
    """
    if in_media_type == STORAGE_BINARY_MEDIA_TYPE and out_media_type == PROTOBUF_MEDIA_TYPE:
        unknown = decode_unknown(data)
        return unknown.raw, _type_meta_from_unknown(unknown)
    if in_media_type == PROTOBUF_MEDIA_TYPE and out_media_type == STORAGE_BINARY_MEDIA_TYPE:
        raise PayloadDecodeError(
            "unsupported conversion: protobuf to storage binary representation"
        )
    document = _load_document(registry.codec_for(in_media_type), data)
    type_meta = _type_meta_from_document(document)
    if in_media_type == out_media_type:
        encoded = data + b"\n" if out_media_type == JSON_MEDIA_TYPE else data
        return encoded, type_meta
    out_codec = registry.codec_for(out_media_type)
    if out_codec.dump is None:
        raise PayloadDecodeError(
            f"unsupported conversion: {in_media_type} to {out_media_type}"
        )
    return out_codec.dump(document), type_meta


def default_codec_registry() -> CodecRegistry:
    """Build the registry of JSON, YAML, and storage-binary codecs."""
    codecs = (
        MediaCodec(JSON_MEDIA_TYPE, json.loads, _dump_json),
        MediaCodec(YAML_MEDIA_TYPE, yaml.safe_load, _dump_yaml),
        MediaCodec(STORAGE_BINARY_MEDIA_TYPE, _load_storage_binary),
    )
    return CodecRegistry(codecs={codec.media_type: codec for codec in codecs})


class PayloadDecoder:
    """Decodes stored values into documents through a codec registry."""

    def __init__(self, registry: CodecRegistry | None = None) -> None:
        self._registry = registry or default_codec_registry()

    def decode(self, data: bytes) -> DecodedPayload:
        """Decode one stored value into a generic document.

        Args:
            data: Raw stored value.

        Returns:
            Decoded document with its type metadata.

        Raises:
            PayloadDecodeError: If the value cannot be detected or converted.
        """
        media_type, payload = detect_and_extract(data)
        encoded, type_meta = convert(self._registry, media_type, JSON_MEDIA_TYPE, payload)
        return DecodedPayload(
            value=json.loads(encoded),
            type_meta=type_meta,
            media_type=media_type,
        )


def _find_json(data: bytes) -> bytes | None:
    """Return the first suffix of ``data`` that is one complete JSON document."""
    match = _JSON_START.search(data)
    while match is not None:
        candidate = data[match.start() :]
        if len(candidate) < 2:
            return None
        try:
            json.loads(candidate)
        except ValueError:
            match = _JSON_START.search(data, match.start() + 1)
            continue
        return candidate.strip()
    return None


def _load_document(codec: MediaCodec, data: bytes) -> Any:
    try:
        return codec.load(data)
    except (ValueError, yaml.YAMLError) as error:
        raise PayloadDecodeError(
            f"error decoding from {codec.media_type}: {error}"
        ) from error


def _load_storage_binary(data: bytes) -> dict[str, Any]:
    """Load a storage-binary value into a partial document.

    The document carries ``apiVersion`` and ``kind`` from the envelope
    and, for protobuf objects, the decoded ``metadata`` block. JSON
    objects wrapped in an envelope are loaded whole.
    """
    unknown = decode_unknown(data)
    if unknown.contentType == JSON_MEDIA_TYPE:
        embedded = json.loads(unknown.raw)
        if isinstance(embedded, dict):
            return embedded
    type_meta = _type_meta_from_unknown(unknown)
    document: dict[str, Any] = {"apiVersion": type_meta.api_version, "kind": type_meta.kind}
    partial = PartialObjectMessage()
    try:
        partial.ParseFromString(unknown.raw)
    except DecodeError as error:
        raise PayloadDecodeError(f"invalid {type_meta.kind} object body: {error}") from error
    if partial.HasField("metadata"):
        document["metadata"] = json_format.MessageToDict(
            partial.metadata, preserving_proto_field_name=True
        )
    return document


def _type_meta_from_unknown(unknown: Any) -> TypeMeta:
    return TypeMeta(api_version=unknown.typeMeta.apiVersion, kind=unknown.typeMeta.kind)


def _type_meta_from_document(document: Any) -> TypeMeta:
    if not isinstance(document, dict):
        return TypeMeta()
    return TypeMeta(
        api_version=str(document.get("apiVersion") or ""),
        kind=str(document.get("kind") or ""),
    )


def _dump_json(document: Any) -> bytes:
    return (json.dumps(document) + "\n").encode("utf-8")


def _dump_yaml(document: Any) -> bytes:
    return yaml.safe_dump(document, sort_keys=False).encode("utf-8")
