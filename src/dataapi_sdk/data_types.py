"""
Value types with a dedicated wire representation.

Each type here has a codec in ``dataapi_sdk.protocol``; plain Python values
(str, int, bool, list, dict...) travel as-is.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

NANOS_PER_MICRO = 1_000
NANOS_PER_MILLI = 1_000_000
NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MINUTE = 60 * NANOS_PER_SECOND
NANOS_PER_HOUR = 60 * NANOS_PER_MINUTE
NANOS_PER_DAY = 24 * NANOS_PER_HOUR


@dataclass(frozen=True, init=False)
class DataAPIVector:
    """
    A vector embedding (float32 components).

    Stored as an immutable tuple so vectors can be compared and hashed.
    """

    values: tuple[float, ...]

    def __init__(self, values: Iterable[float] = ()):
        object.__setattr__(self, "values", tuple(float(v) for v in values))

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def to_list(self) -> list[float]:
        """Return the components as a plain list."""
        return list(self.values)


@dataclass(frozen=True)
class DataAPIDuration:
    """
    A calendar-aware duration: a period (years, months, days) plus an exact
    duration in nanoseconds.

    The two parts are kept apart because adding one month or one day to a
    date is calendar arithmetic, unlike adding 720 hours. All non-zero
    components must share the same sign.
    """

    years: int = 0
    months: int = 0
    days: int = 0
    nanoseconds: int = 0

    def __post_init__(self) -> None:
        signs = {c > 0 for c in (self.years, self.months, self.days, self.nanoseconds) if c != 0}
        if len(signs) > 1:
            raise ValueError(f"All duration components must have the same sign: {self!r}")

    @classmethod
    def of(
        cls,
        years: int = 0,
        months: int = 0,
        days: int = 0,
        duration: timedelta | None = None,
        nanoseconds: int = 0,
    ) -> DataAPIDuration:
        """Build a duration from period components and an optional timedelta."""
        total_nanos = nanoseconds
        if duration is not None:
            total_nanos += timedelta_to_nanos(duration)
        return cls(years=years, months=months, days=days, nanoseconds=total_nanos)

    @property
    def is_negative(self) -> bool:
        return any(c < 0 for c in (self.years, self.months, self.days, self.nanoseconds))

    @property
    def is_zero(self) -> bool:
        return not any((self.years, self.months, self.days, self.nanoseconds))

    def negated(self) -> DataAPIDuration:
        return DataAPIDuration(-self.years, -self.months, -self.days, -self.nanoseconds)

    def __neg__(self) -> DataAPIDuration:
        return self.negated()

    def __add__(self, other: object) -> DataAPIDuration:
        if not isinstance(other, DataAPIDuration):
            return NotImplemented
        return DataAPIDuration(
            self.years + other.years,
            self.months + other.months,
            self.days + other.days,
            self.nanoseconds + other.nanoseconds,
        )

    def to_timedelta(self) -> timedelta:
        """
        Convert to a timedelta.

        Raises:
            ValueError: If the duration has years or months, which have no
                fixed length.
        """
        if self.years or self.months:
            raise ValueError("Durations with years or months cannot be converted to a timedelta")
        micros = abs(self.nanoseconds) // NANOS_PER_MICRO
        return timedelta(days=self.days, microseconds=-micros if self.nanoseconds < 0 else micros)


@dataclass(frozen=True)
class DataAPIPair:
    """A key/value pair, encoded on the wire as ``[key, value]``."""

    key: Any
    value: Any

    def as_tuple(self) -> tuple[Any, Any]:
        return (self.key, self.value)


class IndexMapKind(str, Enum):
    """Which part of a map column an index targets."""

    KEYS = "$keys"
    VALUES = "$values"
    ENTRIES = "$entries"


@dataclass(frozen=True)
class TableIndexColumn:
    """
    The target column of a table index.

    Attributes:
        name: The column name.
        kind: For map columns, index the keys or the values. ``None`` and
            ``IndexMapKind.ENTRIES`` both mean the default (entries).
    """

    name: str
    kind: IndexMapKind | None = None

    def __post_init__(self) -> None:
        if self.kind == IndexMapKind.ENTRIES:
            object.__setattr__(self, "kind", None)

    @property
    def is_default_kind(self) -> bool:
        return self.kind is None or self.kind == IndexMapKind.ENTRIES


def timedelta_to_nanos(value: timedelta) -> int:
    """Exact number of nanoseconds in a timedelta."""
    return ((value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds) * NANOS_PER_MICRO


__all__ = [
    "DataAPIDuration",
    "DataAPIPair",
    "DataAPIVector",
    "IndexMapKind",
    "TableIndexColumn",
    "timedelta_to_nanos",
]
