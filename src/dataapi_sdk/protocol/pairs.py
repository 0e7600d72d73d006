"""
Pairs and pair-array maps.

A pair travels as ``[key, value]``. A map whose keys are not strings cannot
be a JSON object, so it travels as ``[[k1, v1], [k2, v2], ...]``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ..data_types import DataAPIPair
from ..exceptions import DecodeError
from .codecs import Codec

PAIR_GRAMMAR = "[key, value]"
PAIR_MAP_GRAMMAR = "[[key, value], ...]"

Converter = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


def _split_pair(wire: Any, context: Any, grammar: str) -> tuple[Any, Any]:
    if not isinstance(wire, (list, tuple)) or len(wire) != 2:
        raise DecodeError(f"Invalid pair: {wire!r}", context, grammar)
    return wire[0], wire[1]


class PairCodec(Codec[DataAPIPair]):
    """Codec for ``DataAPIPair``."""

    composite = True

    def encode(self, value: DataAPIPair) -> list[Any]:
        return [value.key, value.value]

    def decode(self, wire: Any) -> DataAPIPair:
        key, value = _split_pair(wire, wire, PAIR_GRAMMAR)
        return DataAPIPair(key, value)


class PairMapCodec(Codec[dict]):
    """
    Codec for maps encoded as pair arrays.

    Decoding keeps the wire order; a repeated key keeps its last value.
    ``key_decoder`` / ``value_decoder`` convert each side as it is read.
    An object form is accepted too, since the server returns string-keyed
    maps as plain JSON objects.
    """

    composite = True

    def __init__(self, key_decoder: Converter | None = None, value_decoder: Converter | None = None):
        self.key_decoder = key_decoder or _identity
        self.value_decoder = value_decoder or _identity

    def encode(self, value: Mapping[Any, Any]) -> list[list[Any]]:
        return [[k, v] for k, v in value.items()]

    def decode(self, wire: Any) -> dict[Any, Any]:
        if isinstance(wire, dict):
            entries = list(wire.items())
        elif isinstance(wire, list):
            entries = [_split_pair(item, wire, PAIR_MAP_GRAMMAR) for item in wire]
        else:
            raise DecodeError(f"Invalid pair-array map of type {type(wire).__name__}", wire, PAIR_MAP_GRAMMAR)

        result: dict[Any, Any] = {}
        for raw_key, raw_value in entries:
            key = self.key_decoder(raw_key)
            value = self.value_decoder(raw_value)
            try:
                result[key] = value
            except TypeError as e:
                raise DecodeError(f"Unusable map key {raw_key!r}: {e}", wire, PAIR_MAP_GRAMMAR) from e
        return result


__all__ = ["PairCodec", "PairMapCodec"]
