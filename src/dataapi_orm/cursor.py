"""
Lazy, buffered cursors over paginated query results.

A cursor pairs an immutable ``QueryShape`` (filter, projection, sort,
limit, skip, flags) with its own iteration state (buffer, last page,
consumed count, lifecycle state). The lifecycle is

    IDLE --(first consumption)--> STARTED --(close() or exhaustion)--> CLOSED

Reconfiguration methods are only allowed while IDLE and return a new cursor
with a fresh iteration state; the receiver is left untouched.

Usage:
    cursor = table.find({"genre": "sf"}).sort({"year": -1}).limit(50)
    async for book in cursor:
        ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from copy import deepcopy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from dataapi_sdk.data_types import DataAPIVector
from dataapi_sdk.exceptions import CursorError, CursorExhaustedError

if TYPE_CHECKING:
    from .collection import Collection
    from .data_source import BaseDataSource

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class CursorState(str, Enum):
    """Lifecycle state of a cursor."""

    IDLE = "idle"
    STARTED = "started"
    CLOSED = "closed"


@dataclass(frozen=True)
class QueryShape:
    """
    The immutable description of a query.

    ``options`` holds extra command options that have no dedicated field
    (e.g. the hybrid limits of a find-and-rerank).
    """

    filter: dict[str, Any] | None = None
    projection: dict[str, Any] | None = None
    sort: dict[str, Any] | None = None
    limit: int | None = None
    skip: int | None = None
    include_similarity: bool | None = None
    include_sort_vector: bool | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def with_changes(self, **changes: Any) -> QueryShape:
        return replace(self, **{k: deepcopy(v) for k, v in changes.items()})

    def to_options(self) -> dict[str, Any]:
        """Command options for this shape, without unset values."""
        options = {
            "limit": self.limit,
            "skip": self.skip,
            "includeSimilarity": self.include_similarity,
            "includeSortVector": self.include_sort_vector,
            **self.options,
        }
        return {k: v for k, v in options.items() if v is not None}


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One round trip worth of results.

    Attributes:
        results: Items of the page, in server order
        next_page_state: Continuation token, None on the last page
        sort_vector: Vector used by a vector sort, when requested
    """

    results: tuple[T, ...] = ()
    next_page_state: str | None = None
    sort_vector: DataAPIVector | None = None

    @property
    def has_next_page(self) -> bool:
        return self.next_page_state is not None


@dataclass(frozen=True)
class RerankedResult(Generic[T]):
    """A find-and-rerank item: the document plus its scores."""

    document: T
    scores: dict[str, float] = field(default_factory=dict)


@dataclass
class _IterationState:
    state: CursorState = CursorState.IDLE
    buffer: deque[Any] = field(default_factory=deque)
    current_page: Page[Any] | None = None
    consumed: int = 0


class BaseCursor(ABC, Generic[T]):
    """
    State machine, buffering and iteration shared by all cursors.

    The buffer holds raw items; ``_map`` turns one into a result item when
    it is consumed.
    """

    def __init__(self, data_source: BaseDataSource[Any], shape: QueryShape, record_type: type[Any] | None):
        self._data_source = data_source
        self._shape = shape
        self._record_type = record_type
        self._iteration = _IterationState()

    @abstractmethod
    async def _fetch_page(self, page_state: str | None) -> Page[Any]:
        """Run the query once, continuing from ``page_state``."""
        ...

    @abstractmethod
    def _map(self, raw: Any) -> T:
        ...

    def _copy(self, shape: QueryShape) -> Self:
        return type(self)(self._data_source, shape, self._record_type)

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self._data_source.name}", '
            f"{self.state.value}, consumed so far: {self.consumed})"
        )

    # State

    @property
    def state(self) -> CursorState:
        return self._iteration.state

    @property
    def alive(self) -> bool:
        return self._iteration.state != CursorState.CLOSED

    @property
    def consumed(self) -> int:
        return self._iteration.consumed

    @property
    def buffered_count(self) -> int:
        return len(self._iteration.buffer)

    @property
    def shape(self) -> QueryShape:
        return self._shape

    @property
    def data_source(self) -> BaseDataSource[Any]:
        return self._data_source

    def _ensure_idle(self) -> None:
        if self._iteration.state != CursorState.IDLE:
            raise CursorError("Cannot modify cursor after it has been started", self._iteration.state.value)

    def _reconfigure(self, **changes: Any) -> Self:
        self._ensure_idle()
        return self._copy(self._shape.with_changes(**changes))

    # Lifecycle

    def clone(self) -> Self:
        """Copy of this cursor's query, IDLE with an empty buffer whatever this cursor's state."""
        return self._copy(self._shape)

    def close(self) -> None:
        self._iteration.state = CursorState.CLOSED
        self._iteration.buffer.clear()

    def rewind(self) -> None:
        """Drop all iteration state and go back to IDLE, keeping the query."""
        self._iteration = _IterationState()

    # Fetching

    async def _fetch_next_batch(self) -> None:
        """
        Fill the buffer with the next page, if any.

        The first call runs the query without a page state; later calls
        follow the page state of the last page and do nothing once it is
        exhausted.
        """
        iteration = self._iteration
        if iteration.current_page is None:
            page_state = None
        elif iteration.current_page.next_page_state is not None:
            page_state = iteration.current_page.next_page_state
        else:
            return
        logger.info(f"cursor fetching a page from '{self._data_source.name}' (page state: {page_state})")
        page = await self._fetch_page(page_state)
        logger.info(
            f"cursor finished fetching a page from '{self._data_source.name}' "
            f"({len(page.results)} items, more: {page.has_next_page})"
        )
        iteration.current_page = page
        iteration.buffer.extend(page.results)

    def _has_more_pages(self) -> bool:
        page = self._iteration.current_page
        return page is None or page.next_page_state is not None

    # Iteration

    async def has_next(self) -> bool:
        """
        Whether another item is available, fetching pages as needed.

        The first call moves an IDLE cursor to STARTED. Exhaustion closes
        the cursor.
        """
        iteration = self._iteration
        if iteration.state == CursorState.CLOSED:
            return False
        if iteration.state == CursorState.IDLE:
            iteration.state = CursorState.STARTED
        while not iteration.buffer and self._has_more_pages():
            await self._fetch_next_batch()
        if iteration.buffer:
            return True
        self.close()
        return False

    async def next(self) -> T:
        """
        Return the next item.

        Raises:
            CursorExhaustedError: If no item is left.
        """
        if not await self.has_next():
            raise CursorExhaustedError("No more items in the cursor", self._iteration.state.value)
        raw = self._iteration.buffer.popleft()
        self._iteration.consumed += 1
        return self._map(raw)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> T:
        if not await self.has_next():
            raise StopAsyncIteration
        return await self.next()

    def consume_buffer(self, n: int) -> list[T]:
        """
        Take up to ``n`` already buffered items without fetching.

        Returns an empty list on an IDLE or CLOSED cursor.
        """
        iteration = self._iteration
        if iteration.state in (CursorState.IDLE, CursorState.CLOSED):
            return []
        items: list[T] = []
        while iteration.buffer and len(items) < n:
            items.append(self._map(iteration.buffer.popleft()))
            iteration.consumed += 1
        return items

    async def to_list(self) -> list[T]:
        """
        Materialize every result into a list, then close the cursor.

        Raises:
            CursorError: If the cursor is not IDLE.
        """
        state = self._iteration.state
        if state == CursorState.CLOSED:
            raise CursorError("Cursor is closed", state.value)
        if state == CursorState.STARTED:
            raise CursorError("Cursor is already started", state.value)
        try:
            return [item async for item in self]
        finally:
            self.close()

    async def get_sort_vector(self) -> DataAPIVector | None:
        """
        Vector used by the server for a vector sort, when requested.

        On an IDLE cursor that has not fetched anything yet, this fetches
        the first page; the cursor stays IDLE.
        """
        if self._iteration.current_page is None and self._iteration.state == CursorState.IDLE:
            await self._fetch_next_batch()
        page = self._iteration.current_page
        return page.sort_vector if page is not None else None


class FindCursor(BaseCursor[T]):
    """Cursor over the results of a ``find`` on a collection or a table."""

    async def _fetch_page(self, page_state: str | None) -> Page[dict[str, Any]]:
        return await self._data_source._fetch_find_page(self._shape, page_state)

    def _map(self, raw: Any) -> T:
        return self._data_source._from_document(raw, self._record_type)

    def filter(self, filter: dict[str, Any] | None) -> Self:
        return self._reconfigure(filter=filter)

    def project(self, projection: dict[str, Any] | None) -> Self:
        return self._reconfigure(projection=projection)

    def sort(self, sort: dict[str, Any] | None) -> Self:
        return self._reconfigure(sort=sort)

    def limit(self, limit: int | None) -> Self:
        return self._reconfigure(limit=limit)

    def skip(self, skip: int | None) -> Self:
        return self._reconfigure(skip=skip)

    def include_similarity(self, include_similarity: bool | None = True) -> Self:
        return self._reconfigure(include_similarity=include_similarity)

    def include_sort_vector(self, include_sort_vector: bool | None = True) -> Self:
        return self._reconfigure(include_sort_vector=include_sort_vector)


class FindAndRerankCursor(BaseCursor[RerankedResult[T]]):
    """
    Cursor over the results of a ``findAndRerank`` on a collection.

    Reranked result sets are bounded by the hybrid limits and come back in
    a single response: the query runs once and no page state is followed.
    There is no ``skip``.
    """

    _data_source: Collection[Any]

    async def _fetch_next_batch(self) -> None:
        if self._iteration.current_page is None:
            await super()._fetch_next_batch()

    def _has_more_pages(self) -> bool:
        return self._iteration.current_page is None

    async def _fetch_page(self, page_state: str | None) -> Page[RerankedResult[dict[str, Any]]]:
        return await self._data_source._fetch_rerank_page(self._shape)

    def _map(self, raw: RerankedResult[dict[str, Any]]) -> RerankedResult[T]:
        return RerankedResult(self._data_source._from_document(raw.document, self._record_type), raw.scores)

    def filter(self, filter: dict[str, Any] | None) -> Self:
        return self._reconfigure(filter=filter)

    def project(self, projection: dict[str, Any] | None) -> Self:
        return self._reconfigure(projection=projection)

    def sort(self, sort: dict[str, Any] | None) -> Self:
        return self._reconfigure(sort=sort)

    def limit(self, limit: int | None) -> Self:
        return self._reconfigure(limit=limit)

    def include_similarity(self, include_similarity: bool | None = True) -> Self:
        return self._reconfigure(include_similarity=include_similarity)

    def include_sort_vector(self, include_sort_vector: bool | None = True) -> Self:
        return self._reconfigure(include_sort_vector=include_sort_vector)


__all__ = [
    "BaseCursor",
    "CursorState",
    "FindAndRerankCursor",
    "FindCursor",
    "Page",
    "QueryShape",
    "RerankedResult",
]
