"""
Duration codecs.

Two wire notations are understood:

- the compact notation used by the Data API, e.g. ``1y2mo10d2h30m`` or
  ``-1h30m``, with units ``y mo w d h m s ms us µs ns``;
- ISO-8601, e.g. ``P1Y2M10DT2H30M`` or ``-PT1H30M``.

Decoding auto-detects ISO-8601 by a full-pattern match and otherwise parses
the compact notation strictly left to right.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ..data_types import (
    NANOS_PER_DAY,
    NANOS_PER_HOUR,
    NANOS_PER_MICRO,
    NANOS_PER_MILLI,
    NANOS_PER_MINUTE,
    NANOS_PER_SECOND,
    DataAPIDuration,
    timedelta_to_nanos,
)
from ..exceptions import DecodeError
from .codecs import Codec

COMPACT_GRAMMAR = r"-?(\d+(y|mo|w|d|h|m|s|ms|us|µs|ns))+"
ISO_GRAMMAR = "-?P[±nY][±nM][±nW][±nD][T[±nH][±nM][±n[.f]S]]"

_COMPACT_TERM = re.compile(r"(\d+)([a-zA-Zµ]+)")

_ISO_PATTERN = re.compile(
    r"(?P<sign>-)?P(?!$)"
    r"(?:(?P<years>[-+]?\d+)Y)?"
    r"(?:(?P<months>[-+]?\d+)M)?"
    r"(?:(?P<weeks>[-+]?\d+)W)?"
    r"(?:(?P<days>[-+]?\d+)D)?"
    r"(?:T(?=[-+]?\d)"
    r"(?:(?P<hours>[-+]?\d+)H)?"
    r"(?:(?P<minutes>[-+]?\d+)M)?"
    r"(?:(?P<seconds>[-+]?\d+)(?:[.,](?P<fraction>\d{1,9}))?S)?"
    r")?",
    re.IGNORECASE,
)

# unit -> (months, days, nanoseconds) per unit
_UNITS: dict[str, tuple[int, int, int]] = {
    "y": (12, 0, 0),
    "mo": (1, 0, 0),
    "w": (0, 7, 0),
    "d": (0, 1, 0),
    "h": (0, 0, NANOS_PER_HOUR),
    "m": (0, 0, NANOS_PER_MINUTE),
    "s": (0, 0, NANOS_PER_SECOND),
    "ms": (0, 0, NANOS_PER_MILLI),
    "us": (0, 0, NANOS_PER_MICRO),
    "µs": (0, 0, NANOS_PER_MICRO),
    "ns": (0, 0, 1),
}

_TIME_UNITS = (
    ("h", NANOS_PER_HOUR),
    ("m", NANOS_PER_MINUTE),
    ("s", NANOS_PER_SECOND),
    ("ms", NANOS_PER_MILLI),
    ("us", NANOS_PER_MICRO),
    ("ns", 1),
)


@dataclass(frozen=True)
class _Components:
    """Unsigned magnitudes parsed from a duration string, plus a sign."""

    negative: bool
    months: int
    days: int
    nanoseconds: int

    def signed(self, value: int) -> int:
        return -value if self.negative else value


def is_iso8601(text: str) -> bool:
    return _ISO_PATTERN.fullmatch(text) is not None


def parse_compact(text: str) -> _Components:
    """
    Parse the compact notation.

    Terms are consumed left to right; anything that is not a
    ``(number)(unit)`` term, including whitespace, is an error.
    """
    if not isinstance(text, str):
        raise DecodeError("Duration must be a string", text, COMPACT_GRAMMAR)
    negative = text.startswith("-")
    pos = 1 if negative else 0
    if pos == len(text):
        raise DecodeError(f"Empty duration: {text!r}", text, COMPACT_GRAMMAR)

    months = days = nanos = 0
    while pos < len(text):
        match = _COMPACT_TERM.match(text, pos)
        if match is None:
            raise DecodeError(f"Invalid duration {text!r}: unexpected {text[pos:]!r}", text, COMPACT_GRAMMAR)
        amount = int(match.group(1))
        unit = match.group(2).lower()
        factors = _UNITS.get(unit)
        if factors is None:
            raise DecodeError(f"Invalid duration {text!r}: unknown unit {unit!r}", text, COMPACT_GRAMMAR)
        months += amount * factors[0]
        days += amount * factors[1]
        nanos += amount * factors[2]
        pos = match.end()
    return _Components(negative, months, days, nanos)


def parse_iso8601(text: str) -> _Components:
    """
    Parse ISO-8601 notation.

    Each component may carry its own sign (``PT-1M-30S``); the leading
    ``-`` negates the whole value. Components within the date part and
    within the time part are summed, and the resulting months, days and
    time must not have opposite signs.
    """
    match = _ISO_PATTERN.fullmatch(text)
    if match is None:
        raise DecodeError(f"Invalid ISO-8601 duration: {text!r}", text, ISO_GRAMMAR)

    def number(name: str) -> int:
        value = match.group(name)
        return int(value) if value else 0

    fraction = match.group("fraction") or ""
    seconds = abs(number("seconds")) * NANOS_PER_SECOND + (int(fraction.ljust(9, "0")) if fraction else 0)
    if (match.group("seconds") or "").startswith("-"):
        seconds = -seconds

    sign = -1 if match.group("sign") else 1
    months = sign * (number("years") * 12 + number("months"))
    days = sign * (number("weeks") * 7 + number("days"))
    nanos = sign * (number("hours") * NANOS_PER_HOUR + number("minutes") * NANOS_PER_MINUTE + seconds)

    signs = {value > 0 for value in (months, days, nanos) if value}
    if len(signs) > 1:
        raise DecodeError(f"Invalid ISO-8601 duration {text!r}: components of opposite signs", text, ISO_GRAMMAR)
    return _Components(
        negative=False in signs,
        months=abs(months),
        days=abs(days),
        nanoseconds=abs(nanos),
    )


def parse_duration_text(text: Any) -> _Components:
    """Parse either notation, detecting ISO-8601 first."""
    if not isinstance(text, str):
        raise DecodeError(f"Duration must be a string, got {type(text).__name__}", text, COMPACT_GRAMMAR)
    if is_iso8601(text):
        return parse_iso8601(text)
    return parse_compact(text)


def format_compact(months: int, days: int, nanoseconds: int) -> str:
    """Format unsigned-or-signed components in compact notation; zero is ``0s``."""
    negative = months < 0 or days < 0 or nanoseconds < 0
    months, days, nanoseconds = abs(months), abs(days), abs(nanoseconds)
    parts: list[str] = []
    years, months = divmod(months, 12)
    if years:
        parts.append(f"{years}y")
    if months:
        parts.append(f"{months}mo")
    if days:
        parts.append(f"{days}d")
    remaining = nanoseconds
    for unit, size in _TIME_UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount}{unit}")
    if not parts:
        return "0s"
    return ("-" if negative else "") + "".join(parts)


def format_iso8601(months: int, days: int, nanoseconds: int) -> str:
    """Format components as ISO-8601; zero is ``PT0S``."""
    negative = months < 0 or days < 0 or nanoseconds < 0
    months, days, nanoseconds = abs(months), abs(days), abs(nanoseconds)
    years, months = divmod(months, 12)
    date_part = ""
    if years:
        date_part += f"{years}Y"
    if months:
        date_part += f"{months}M"
    if days:
        date_part += f"{days}D"

    hours, rest = divmod(nanoseconds, NANOS_PER_HOUR)
    minutes, rest = divmod(rest, NANOS_PER_MINUTE)
    seconds, fraction = divmod(rest, NANOS_PER_SECOND)
    time_part = ""
    if hours:
        time_part += f"{hours}H"
    if minutes:
        time_part += f"{minutes}M"
    if seconds or fraction:
        if fraction:
            time_part += f"{seconds}.{str(fraction).rjust(9, '0').rstrip('0')}S"
        else:
            time_part += f"{seconds}S"

    if not date_part and not time_part:
        return "PT0S"
    text = "P" + date_part + (f"T{time_part}" if time_part else "")
    return ("-" if negative else "") + text


class DurationCodec(Codec[timedelta]):
    """
    Codec for ``datetime.timedelta``.

    A timedelta has no calendar units: ``y`` and ``mo`` are rejected, and
    so are values finer than a microsecond. Days are folded into hours when
    encoding (``timedelta(days=1)`` is ``24h``).
    """

    def __init__(self, iso8601: bool = False):
        self.iso8601 = iso8601

    def encode(self, value: timedelta) -> str:
        nanos = timedelta_to_nanos(value)
        if self.iso8601:
            return format_iso8601(0, 0, nanos)
        return format_compact(0, 0, nanos)

    def decode(self, wire: Any) -> timedelta:
        parts = parse_duration_text(wire)
        if parts.months:
            raise DecodeError(
                f"Duration {wire!r} has years or months and cannot be a timedelta",
                wire,
                "a duration without calendar units",
            )
        nanos = parts.days * NANOS_PER_DAY + parts.nanoseconds
        micros, sub_micro = divmod(nanos, NANOS_PER_MICRO)
        if sub_micro:
            raise DecodeError(
                f"Duration {wire!r} is finer than a microsecond",
                wire,
                "a duration with microsecond precision",
            )
        return timedelta(microseconds=parts.signed(micros))


class DataAPIDurationCodec(Codec[DataAPIDuration]):
    """
    Codec for the calendar-aware ``DataAPIDuration``.

    Months are normalized into years when encoding; weeks are folded into
    days when decoding.
    """

    def __init__(self, iso8601: bool = False):
        self.iso8601 = iso8601

    def encode(self, value: DataAPIDuration) -> str:
        months = value.years * 12 + value.months
        if self.iso8601:
            return format_iso8601(months, value.days, value.nanoseconds)
        return format_compact(months, value.days, value.nanoseconds)

    def decode(self, wire: Any) -> DataAPIDuration:
        parts = parse_duration_text(wire)
        years, months = divmod(parts.months, 12)
        return DataAPIDuration(
            years=parts.signed(years),
            months=parts.signed(months),
            days=parts.signed(parts.days),
            nanoseconds=parts.signed(parts.nanoseconds),
        )


__all__ = [
    "COMPACT_GRAMMAR",
    "DataAPIDurationCodec",
    "DurationCodec",
    "format_compact",
    "format_iso8601",
    "is_iso8601",
    "parse_compact",
    "parse_iso8601",
]
