"""
Codec registry for the Data API wire format.

A codec converts one Python type to its JSON wire value and back. Lookup is
by exact runtime type: a ``bool`` never reaches the ``float`` codec and a
``Row`` (a ``dict`` subclass) is walked as a plain mapping.

Registries are built once per data source family (tables, collections) and
frozen; they are then shared read-only by mappers, cursors and commands.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Generic, Self, TypeVar
from uuid import UUID

from ..data_types import DataAPIDuration, DataAPIPair, DataAPIVector, TableIndexColumn
from ..options import SerdesOptions

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Codec(ABC, Generic[T]):
    """
    An encode/decode pair bound to one Python type.

    ``decode(encode(x))`` must equal ``x`` for every representable value,
    unless the codec documents a collapsing case.
    """

    #: When True the encoded value is a container whose items must be
    #: encoded in turn (e.g. a pair of durations).
    composite: bool = False

    @abstractmethod
    def encode(self, value: T) -> Any:
        """Convert a Python value to its JSON wire value."""
        ...

    @abstractmethod
    def decode(self, wire: Any) -> T:
        """
        Convert a JSON wire value back to a Python value.

        Raises:
            DecodeError: If the wire value does not follow the codec grammar.
        """
        ...


class CodecRegistry:
    """
    Maps Python types to codecs.

    Usage:
        registry = CodecRegistry().register(timedelta, DurationCodec()).freeze()
        registry.encode(timedelta, timedelta(seconds=90))   # "1m30s"
        registry.encode_value({"ttl": timedelta(hours=1)})  # {"ttl": "1h"}
    """

    def __init__(self, codecs: Mapping[type, Codec[Any]] | None = None):
        self._codecs: dict[type, Codec[Any]] = dict(codecs or {})
        self._frozen = False

    def register(self, python_type: type, codec: Codec[Any]) -> Self:
        """Register (or replace) the codec for ``python_type``."""
        if self._frozen:
            raise RuntimeError("Cannot register a codec on a frozen registry")
        self._codecs[python_type] = codec
        return self

    def freeze(self) -> Self:
        """Forbid further registrations."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, python_type: Any) -> Codec[Any] | None:
        """Return the codec registered for exactly ``python_type``, if any."""
        if not isinstance(python_type, type):
            return None
        return self._codecs.get(python_type)

    def __contains__(self, python_type: object) -> bool:
        return isinstance(python_type, type) and python_type in self._codecs

    def _require(self, python_type: type) -> Codec[Any]:
        codec = self.get(python_type)
        if codec is None:
            raise KeyError(f"No codec registered for type {python_type!r}")
        return codec

    def encode(self, python_type: type, value: Any) -> Any:
        """Encode ``value`` with the codec of ``python_type``."""
        if value is None:
            return None
        return self._require(python_type).encode(value)

    def decode(self, python_type: type, wire: Any) -> Any:
        """Decode ``wire`` with the codec of ``python_type``. JSON null stays ``None``."""
        if wire is None:
            return None
        return self._require(python_type).decode(wire)

    def encode_value(self, value: Any) -> Any:
        """
        Recursively encode a payload fragment.

        Values with a registered codec are encoded by it; mappings and
        sequences are walked; everything else passes through unchanged.
        Mappings whose keys are not all strings become pair arrays.
        """
        codec = self._codecs.get(type(value))
        if codec is not None:
            encoded = codec.encode(value)
            return self.encode_value(encoded) if codec.composite else encoded
        if isinstance(value, Mapping):
            if all(isinstance(k, str) for k in value):
                return {k: self.encode_value(v) for k, v in value.items()}
            return [[self.encode_value(k), self.encode_value(v)] for k, v in value.items()]
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.encode_value(v) for v in value]
        return value


def build_table_registry(serdes: SerdesOptions | None = None) -> CodecRegistry:
    """
    Build the frozen registry used for table rows.

    Tables carry IEEE-754 special values as strings, durations in the
    compact (or ISO-8601) notation and blobs as ``$binary``. Dates, times,
    UUIDs and decimals travel as JSON strings/numbers and need no codec.
    """
    from .binary import BinaryCodec, VectorCodec
    from .durations import DataAPIDurationCodec, DurationCodec
    from .indexes import IndexColumnCodec
    from .numbers import SpecialFloatCodec
    from .pairs import PairCodec

    serdes = serdes or SerdesOptions()
    binary = BinaryCodec()
    registry = (
        CodecRegistry()
        .register(float, SpecialFloatCodec())
        .register(timedelta, DurationCodec(iso8601=serdes.encode_duration_as_iso8601))
        .register(DataAPIDuration, DataAPIDurationCodec(iso8601=serdes.encode_duration_as_iso8601))
        .register(bytes, binary)
        .register(bytearray, binary)
        .register(DataAPIVector, VectorCodec(base64=serdes.encode_vectors_as_base64))
        .register(DataAPIPair, PairCodec())
        .register(TableIndexColumn, IndexColumnCodec())
    )
    logger.debug(f"Built table codec registry (serdes={serdes})")
    return registry.freeze()


def build_collection_registry(serdes: SerdesOptions | None = None) -> CodecRegistry:
    """
    Build the frozen registry used for collection documents.

    Collections use the extended JSON forms ``$date``, ``$uuid`` and
    ``$binary``; vectors follow the same settings as for tables.
    """
    from .binary import BinaryCodec, VectorCodec
    from .extended_json import DateCodec, UUIDCodec

    serdes = serdes or SerdesOptions()
    binary = BinaryCodec()
    registry = (
        CodecRegistry()
        .register(datetime, DateCodec())
        .register(UUID, UUIDCodec())
        .register(bytes, binary)
        .register(bytearray, binary)
        .register(DataAPIVector, VectorCodec(base64=serdes.encode_vectors_as_base64))
    )
    logger.debug(f"Built collection codec registry (serdes={serdes})")
    return registry.freeze()


__all__ = [
    "Codec",
    "CodecRegistry",
    "build_collection_registry",
    "build_table_registry",
]
