"""
Data API SDK Exceptions.

Custom exception hierarchy for the SDK.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import DataAPIErrorDescriptor


class DataAPIError(Exception):
    """Base exception for all Data API SDK errors."""

    def __init__(self, message: str, code: int | str | None = None):
        self.message = message
        self.code = code
        super().__init__(message)


class ConnectionError(DataAPIError):
    """Raised when the Data API endpoint cannot be reached."""

    pass


class TimeoutError(DataAPIError):
    """Raised when an HTTP request times out."""

    pass


class DataAPIHttpError(DataAPIError):
    """Raised when the Data API answers with a non-2xx HTTP status."""

    def __init__(self, message: str, status_code: int, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message, status_code)


class DataAPIResponseError(DataAPIError):
    """
    Raised when a command response carries an ``errors`` array.

    This is the domain-level failure: the request reached the server and was
    rejected (bad filter, duplicate key, unknown table...).
    """

    def __init__(self, command_name: str, errors: list[DataAPIErrorDescriptor]):
        self.command_name = command_name
        self.errors = errors
        first_code = errors[0].error_code if errors else None
        summary = "; ".join(str(e) for e in errors) or "Unknown error"
        super().__init__(f"Command '{command_name}' failed: {summary}", first_code)


class UnexpectedDataAPIResponseError(DataAPIError):
    """Raised when a response does not have the shape a command requires."""

    def __init__(self, message: str, raw_response: Any = None):
        self.raw_response = raw_response
        super().__init__(message)


class DecodeError(DataAPIError, ValueError):
    """Raised when a wire value cannot be decoded by its codec."""

    def __init__(self, message: str, text: Any = None, expected: str | None = None):
        self.text = text
        self.expected = expected
        if expected:
            message = f"{message} (expected {expected})"
        super().__init__(message)


class CursorError(DataAPIError):
    """Raised when a cursor operation is not allowed in the cursor's current state."""

    def __init__(self, message: str, cursor_state: str):
        self.cursor_state = cursor_state
        super().__init__(f"{message} (cursor state: {cursor_state})")


class CursorExhaustedError(CursorError):
    """Raised by ``next()`` when the cursor has no more items."""

    pass


class TooManyDocumentsToCountError(DataAPIError):
    """
    Raised when a count cannot be returned exactly.

    Without ``upper_bound`` the server-side hard cap was hit; with it, the
    count exceeded the bound given by the caller.
    """

    def __init__(self, upper_bound: int | None = None):
        self.upper_bound = upper_bound
        if upper_bound is None:
            message = "Too many documents to count: the server reported more data than it can count"
        else:
            message = f"Too many documents to count: the count exceeds the requested upper bound ({upper_bound})"
        super().__init__(message)


class InsertManyTimeoutError(DataAPIError):
    """Raised when the chunks of an insert_many did not all complete in time."""

    def __init__(self, message: str, timeout: float | None = None):
        self.timeout = timeout
        super().__init__(message)


class InsertManyInterruptedError(DataAPIError):
    """Raised when a chunk of an insert_many was cancelled before completing."""

    pass


class MappingError(DataAPIError):
    """Raised when a document cannot be mapped to or from an entity class."""

    def __init__(self, message: str, field_name: str | None = None, model: type | None = None):
        self.field_name = field_name
        self.model = model
        context = []
        if model is not None:
            context.append(f"model={model.__name__}")
        if field_name is not None:
            context.append(f"field={field_name}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)
