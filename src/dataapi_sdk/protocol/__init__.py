"""
Data API SDK Protocol Module.

Codecs for values whose JSON wire form is not a direct mapping of the
Python value: durations, IEEE-754 special values, blobs, vectors, pairs,
index columns and the extended JSON forms of collections.
"""

from .codecs import Codec, CodecRegistry, build_collection_registry, build_table_registry
from .durations import DataAPIDurationCodec, DurationCodec
from .numbers import DOUBLE_MAX, FLOAT32_MAX, SpecialFloatCodec
from .binary import BINARY_KEY, BinaryCodec, VectorCodec
from .pairs import PairCodec, PairMapCodec
from .indexes import IndexColumnCodec
from .extended_json import DateCodec, UUIDCodec
from .command import Command, CommandName, DataAPIJSONEncoder, parse_json_float

__all__ = [
    # Commands
    "Command",
    "CommandName",
    "DataAPIJSONEncoder",
    "parse_json_float",
    # Registry
    "Codec",
    "CodecRegistry",
    "build_collection_registry",
    "build_table_registry",
    # Durations
    "DataAPIDurationCodec",
    "DurationCodec",
    # Numbers
    "DOUBLE_MAX",
    "FLOAT32_MAX",
    "SpecialFloatCodec",
    # Binary
    "BINARY_KEY",
    "BinaryCodec",
    "VectorCodec",
    # Pairs
    "PairCodec",
    "PairMapCodec",
    # Indexes
    "IndexColumnCodec",
    # Extended JSON
    "DateCodec",
    "UUIDCodec",
]
