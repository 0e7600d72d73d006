"""
Type definitions for Data API responses.

Provides typed wrappers around the ``data`` / ``status`` / ``errors`` parts
of a command response instead of raw dicts.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DataAPIErrorDescriptor:
    """
    One entry of the ``errors`` array of a response.

    Attributes:
        message: Human readable message
        error_code: Server error code (e.g. DOCUMENT_ALREADY_EXISTS)
        family: Error family (REQUEST, SERVER)
        scope: Error scope (SCHEMA, DOCUMENT...)
        title: Short title
        id: Server-side error identifier
    """

    message: str
    error_code: str | None = None
    family: str | None = None
    scope: str | None = None
    title: str | None = None
    id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataAPIErrorDescriptor":
        return cls(
            message=data.get("message", "Unknown error"),
            error_code=data.get("errorCode"),
            family=data.get("family"),
            scope=data.get("scope"),
            title=data.get("title"),
            id=data.get("id"),
            raw=data,
        )

    def __str__(self) -> str:
        if self.error_code:
            return f"{self.error_code}: {self.message}"
        return self.message


@dataclass
class DataAPIData:
    """
    The ``data`` part of a response.

    ``documents`` is set by find-like commands, ``document`` by findOne.
    """

    documents: list[dict[str, Any]] | None = None
    document: dict[str, Any] | None = None
    next_page_state: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataAPIData":
        return cls(
            documents=data.get("documents"),
            document=data.get("document"),
            next_page_state=data.get("nextPageState"),
        )


@dataclass
class DataAPIStatus:
    """
    The ``status`` part of a response.

    Typed accessors cover the keys used by the SDK; ``get`` reaches any other.
    """

    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataAPIStatus":
        return cls(raw=data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.raw

    @property
    def inserted_ids(self) -> list[Any]:
        return self.raw.get("insertedIds", [])

    @property
    def document_responses(self) -> list[dict[str, Any]]:
        return self.raw.get("documentResponses", [])

    @property
    def primary_key_schema(self) -> dict[str, Any] | None:
        return self.raw.get("primaryKeySchema")

    @property
    def projection_schema(self) -> dict[str, Any] | None:
        return self.raw.get("projectionSchema")

    @property
    def sort_vector(self) -> Any:
        return self.raw.get("sortVector")

    @property
    def count(self) -> int | None:
        return self.raw.get("count")

    @property
    def deleted_count(self) -> int | None:
        return self.raw.get("deletedCount")

    @property
    def matched_count(self) -> int | None:
        return self.raw.get("matchedCount")

    @property
    def modified_count(self) -> int | None:
        return self.raw.get("modifiedCount")

    @property
    def upserted_id(self) -> Any:
        return self.raw.get("upsertedId")

    @property
    def next_page_state(self) -> str | None:
        """Continuation of paged writes (updateMany)."""
        return self.raw.get("nextPageState")

    @property
    def more_data(self) -> bool:
        return bool(self.raw.get("moreData", False))

    @property
    def warnings(self) -> list[dict[str, Any]]:
        return self.raw.get("warnings", [])


@dataclass
class DataAPIResponse:
    """
    Response to a Data API command.

    Any of the three parts may be missing; a missing status is an empty one.
    """

    data: DataAPIData | None = None
    status: DataAPIStatus = field(default_factory=DataAPIStatus)
    errors: list[DataAPIErrorDescriptor] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataAPIResponse":
        """Parse a response from its decoded JSON body."""
        raw_data = data.get("data")
        raw_status = data.get("status")
        return cls(
            data=DataAPIData.from_dict(raw_data) if isinstance(raw_data, dict) else None,
            status=DataAPIStatus.from_dict(raw_status) if isinstance(raw_status, dict) else DataAPIStatus(),
            errors=[DataAPIErrorDescriptor.from_dict(e) for e in data.get("errors") or []],
            raw=data,
        )

    @property
    def is_error(self) -> bool:
        return bool(self.errors)

    @property
    def documents(self) -> list[dict[str, Any]]:
        """Documents of a find-like response, or an empty list."""
        if self.data is None or self.data.documents is None:
            return []
        return self.data.documents

    @property
    def document(self) -> dict[str, Any] | None:
        return self.data.document if self.data else None

    @property
    def next_page_state(self) -> str | None:
        return self.data.next_page_state if self.data else None
