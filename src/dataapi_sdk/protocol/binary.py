"""
Binary payloads: blobs and vector embeddings.

Both use the ``{"$binary": "<standard base64>"}`` envelope. Vectors are
packed as big-endian float32.
"""

from __future__ import annotations

import base64
import binascii
import struct
from typing import Any

from ..data_types import DataAPIVector
from ..exceptions import DecodeError
from .codecs import Codec
from .numbers import SpecialFloatCodec

BINARY_KEY = "$binary"
BINARY_GRAMMAR = '{"$binary": "<base64>"}'


def _b64decode(text: Any, wire: Any) -> bytes:
    if not isinstance(text, str):
        raise DecodeError(f"'{BINARY_KEY}' must be a base64 string, got {type(text).__name__}", wire, BINARY_GRAMMAR)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise DecodeError(f"Invalid base64 in '{BINARY_KEY}': {e}", wire, BINARY_GRAMMAR) from e


def unwrap_binary(wire: Any) -> bytes:
    """Decode a ``$binary`` envelope; the object must have exactly that field."""
    if not isinstance(wire, dict):
        raise DecodeError(f"Expected a '{BINARY_KEY}' object, got {type(wire).__name__}", wire, BINARY_GRAMMAR)
    if BINARY_KEY not in wire:
        raise DecodeError(f"Missing '{BINARY_KEY}' field in {wire!r}", wire, BINARY_GRAMMAR)
    if len(wire) != 1:
        extra = sorted(k for k in wire if k != BINARY_KEY)
        raise DecodeError(f"Unexpected fields {extra} next to '{BINARY_KEY}'", wire, BINARY_GRAMMAR)
    return _b64decode(wire[BINARY_KEY], wire)


def wrap_binary(data: bytes) -> dict[str, str]:
    return {BINARY_KEY: base64.b64encode(data).decode("ascii")}


class BinaryCodec(Codec[bytes]):
    """Codec for ``bytes`` / ``bytearray`` blobs. Always decodes to ``bytes``."""

    def encode(self, value: bytes) -> dict[str, str]:
        return wrap_binary(bytes(value))

    def decode(self, wire: Any) -> bytes:
        return unwrap_binary(wire)


def pack_vector(values: DataAPIVector) -> bytes:
    return struct.pack(f">{len(values)}f", *values.values)


def unpack_vector(data: bytes, wire: Any = None) -> DataAPIVector:
    if len(data) % 4:
        raise DecodeError(
            f"Binary vector has {len(data)} bytes, not a multiple of 4", wire, "packed big-endian float32 values"
        )
    return DataAPIVector(struct.unpack(f">{len(data) // 4}f", data))


class VectorCodec(Codec[DataAPIVector]):
    """
    Codec for ``DataAPIVector``.

    Encodes to a ``$binary`` envelope when ``base64`` is set, otherwise to a
    JSON array. Decoding accepts an array, a ``$binary`` envelope or a bare
    base64 string.
    """

    def __init__(self, base64: bool = True):
        self.base64 = base64
        self._components = SpecialFloatCodec()

    def encode(self, value: DataAPIVector) -> Any:
        if self.base64:
            return wrap_binary(pack_vector(value))
        return value.to_list()

    def decode(self, wire: Any) -> DataAPIVector:
        if isinstance(wire, list):
            return DataAPIVector(self._components.decode(v) for v in wire)
        if isinstance(wire, dict):
            return unpack_vector(unwrap_binary(wire), wire)
        if isinstance(wire, str):
            return unpack_vector(_b64decode(wire, wire), wire)
        raise DecodeError(
            f"Invalid vector value of type {type(wire).__name__}", wire, f"a list of numbers or {BINARY_GRAMMAR}"
        )


__all__ = [
    "BINARY_KEY",
    "BinaryCodec",
    "VectorCodec",
    "pack_vector",
    "unpack_vector",
    "unwrap_binary",
    "wrap_binary",
]
