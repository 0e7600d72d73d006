"""
Client configuration for the Data API SDK.

Provides immutable configuration containers built once at client
construction and passed down to databases, data sources and codecs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CHUNK_SIZE = 50
DEFAULT_MAX_COUNT = 1000
DEFAULT_MAX_PAGE_SIZE = 20
DEFAULT_USER_AGENT = "dataapi-orm"


@dataclass(frozen=True)
class SerdesOptions:
    """
    Serialization settings shared by the codec registries.

    Attributes:
        encode_duration_as_iso8601: Write durations as ISO-8601 (``PT1H``)
            instead of the compact notation (``1h``).
        encode_vectors_as_base64: Write vectors as ``{"$binary": ...}``
            packed float32 instead of plain JSON arrays.
    """

    encode_duration_as_iso8601: bool = False
    encode_vectors_as_base64: bool = True


@dataclass(frozen=True)
class DataAPIClientOptions:
    """
    Immutable configuration for a Data API client.

    Attributes:
        api_version: Path segment of the JSON API (``/api/json/<version>``).
        timeout: Per-request timeout in seconds.
        max_documents_in_insert: Largest chunk accepted by ``insertMany``.
        max_document_count: Largest upper bound accepted by ``countDocuments``.
        max_page_size: Page size the server uses for ``find`` (informational).
        serdes: Serialization settings.
        user_agent: Value of the ``User-Agent`` header.
    """

    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    max_documents_in_insert: int = DEFAULT_MAX_CHUNK_SIZE
    max_document_count: int = DEFAULT_MAX_COUNT
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    serdes: SerdesOptions = field(default_factory=SerdesOptions)
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.max_documents_in_insert <= 0:
            raise ValueError(f"max_documents_in_insert must be > 0, got {self.max_documents_in_insert}")
        if self.max_document_count <= 0:
            raise ValueError(f"max_document_count must be > 0, got {self.max_document_count}")

    def with_changes(self, **changes: Any) -> DataAPIClientOptions:
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)


__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_MAX_CHUNK_SIZE",
    "DEFAULT_MAX_COUNT",
    "DEFAULT_TIMEOUT",
    "DataAPIClientOptions",
    "SerdesOptions",
]
