"""
Data API SDK - wire-level client for a JSON document/table API.

Supports:
- Commands and typed responses (data / status / errors)
- A codec registry for values without a direct JSON form
  (durations, NaN/Infinity, blobs, vectors, pairs, index columns)
- An async HTTP command runner
"""

from .connection.base import BaseCommandRunner
from .connection.http import HTTPCommandRunner
from .data_types import DataAPIDuration, DataAPIPair, DataAPIVector, IndexMapKind, TableIndexColumn
from .options import DataAPIClientOptions, SerdesOptions
from .protocol.codecs import Codec, CodecRegistry, build_collection_registry, build_table_registry
from .protocol.command import Command, CommandName
from .types import DataAPIData, DataAPIErrorDescriptor, DataAPIResponse, DataAPIStatus
from .exceptions import (
    DataAPIError,
    ConnectionError,
    TimeoutError,
    DataAPIHttpError,
    DataAPIResponseError,
    UnexpectedDataAPIResponseError,
    DecodeError,
    CursorError,
    CursorExhaustedError,
    TooManyDocumentsToCountError,
    InsertManyTimeoutError,
    InsertManyInterruptedError,
    MappingError,
)

__version__ = "0.1.0"
__all__ = [
    # Runners
    "BaseCommandRunner",
    "HTTPCommandRunner",
    # Value types
    "DataAPIDuration",
    "DataAPIPair",
    "DataAPIVector",
    "IndexMapKind",
    "TableIndexColumn",
    # Options
    "DataAPIClientOptions",
    "SerdesOptions",
    # Codecs
    "Codec",
    "CodecRegistry",
    "build_collection_registry",
    "build_table_registry",
    # Commands and responses
    "Command",
    "CommandName",
    "DataAPIData",
    "DataAPIErrorDescriptor",
    "DataAPIResponse",
    "DataAPIStatus",
    # Exceptions
    "DataAPIError",
    "ConnectionError",
    "TimeoutError",
    "DataAPIHttpError",
    "DataAPIResponseError",
    "UnexpectedDataAPIResponseError",
    "DecodeError",
    "CursorError",
    "CursorExhaustedError",
    "TooManyDocumentsToCountError",
    "InsertManyTimeoutError",
    "InsertManyInterruptedError",
    "MappingError",
]
