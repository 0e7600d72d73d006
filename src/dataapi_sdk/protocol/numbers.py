"""
IEEE-754 special values.

JSON has no literal for NaN or the infinities, so tables carry them as the
strings ``"NaN"``, ``"Infinity"`` and ``"-Infinity"``. The largest finite
value of the column type is collapsed onto the matching infinity.
"""

from __future__ import annotations

import math
import sys
from decimal import Decimal
from typing import Any

from ..exceptions import DecodeError
from .codecs import Codec

POSITIVE_INFINITY = "Infinity"
NEGATIVE_INFINITY = "-Infinity"
NOT_A_NUMBER = "NaN"

DOUBLE_MAX = sys.float_info.max
FLOAT32_MAX = 3.4028234663852886e38

_SPECIALS = {
    POSITIVE_INFINITY: math.inf,
    NEGATIVE_INFINITY: -math.inf,
    NOT_A_NUMBER: math.nan,
}


class SpecialFloatCodec(Codec[float]):
    """
    Codec for ``float`` columns.

    ``max_value`` is the largest finite value of the column type
    (``double`` by default, ``FLOAT32_MAX`` for ``float`` columns); it
    encodes like the infinity of the same sign, so decoding gives back
    an infinity.
    """

    def __init__(self, max_value: float = DOUBLE_MAX):
        self.max_value = max_value

    def encode(self, value: float) -> float | str:
        if math.isnan(value):
            return NOT_A_NUMBER
        if value == math.inf or value == self.max_value:
            return POSITIVE_INFINITY
        if value == -math.inf or value == -self.max_value:
            return NEGATIVE_INFINITY
        return value

    def decode(self, wire: Any) -> float:
        if isinstance(wire, bool):
            raise DecodeError(f"Invalid floating-point value: {wire!r}", wire, "a number or 'Infinity', '-Infinity', 'NaN'")
        if isinstance(wire, (int, float, Decimal)):
            return float(wire)
        if isinstance(wire, str):
            special = _SPECIALS.get(wire)
            if special is not None:
                return special
            try:
                return float(wire)
            except ValueError:
                raise DecodeError(
                    f"Invalid floating-point value: {wire!r}", wire, "a number or 'Infinity', '-Infinity', 'NaN'"
                ) from None
        raise DecodeError(f"Invalid floating-point value: {wire!r}", wire, "a number or 'Infinity', '-Infinity', 'NaN'")


__all__ = [
    "DOUBLE_MAX",
    "FLOAT32_MAX",
    "NEGATIVE_INFINITY",
    "NOT_A_NUMBER",
    "POSITIVE_INFINITY",
    "SpecialFloatCodec",
]
