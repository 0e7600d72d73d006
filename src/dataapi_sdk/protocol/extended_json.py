"""
Extended JSON forms used by collections.

- ``datetime`` as ``{"$date": <epoch milliseconds>}``
- ``UUID`` as ``{"$uuid": "<canonical string>"}``

Naive datetimes are taken as UTC. Precision on the wire is the millisecond.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from ..exceptions import DecodeError
from .codecs import Codec

DATE_KEY = "$date"
UUID_KEY = "$uuid"

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _unwrap(wire: Any, key: str, grammar: str) -> Any:
    if not isinstance(wire, dict) or set(wire) != {key}:
        raise DecodeError(f"Expected a '{key}' object, got {wire!r}", wire, grammar)
    return wire[key]


class DateCodec(Codec[datetime]):
    """Codec for ``datetime`` in collections."""

    grammar = '{"$date": <epoch millis>}'

    def encode(self, value: datetime) -> dict[str, int]:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return {DATE_KEY: (value - EPOCH) // timedelta(milliseconds=1)}

    def decode(self, wire: Any) -> datetime:
        millis = _unwrap(wire, DATE_KEY, self.grammar)
        if isinstance(millis, bool) or not isinstance(millis, int):
            raise DecodeError(f"'{DATE_KEY}' must be an integer, got {millis!r}", wire, self.grammar)
        return EPOCH + timedelta(milliseconds=millis)


class UUIDCodec(Codec[UUID]):
    """Codec for ``UUID`` in collections."""

    grammar = '{"$uuid": "<uuid>"}'

    def encode(self, value: UUID) -> dict[str, str]:
        return {UUID_KEY: str(value)}

    def decode(self, wire: Any) -> UUID:
        text = _unwrap(wire, UUID_KEY, self.grammar)
        try:
            return UUID(text)
        except (TypeError, ValueError, AttributeError):
            raise DecodeError(f"Invalid UUID {text!r}", wire, self.grammar) from None


__all__ = ["DateCodec", "EPOCH", "UUIDCodec"]
