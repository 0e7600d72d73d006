"""
Operations shared by collections and tables.

A data source is bound to one database, one collection/table name and a
record type (``Document``/``Row`` by default, or a pydantic model). Every
operation builds a ``Command``, runs it against the database runner with
the codec registry of its family, and maps the response records back to
the record type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from dataapi_sdk.data_types import DataAPIVector
from dataapi_sdk.exceptions import UnexpectedDataAPIResponseError
from dataapi_sdk.protocol.codecs import CodecRegistry
from dataapi_sdk.protocol.command import Command, CommandName
from dataapi_sdk.types import DataAPIResponse, DataAPIStatus

from .cursor import FindCursor, Page, QueryShape
from .insert_many import InsertManyOptions, InsertManyOutcome, dispatch_insert_many
from .mapping import EntityMapper

if TYPE_CHECKING:
    from .database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class InsertOneResult:
    """
    Result of ``insert_one``.

    Attributes:
        inserted_id: The ``_id`` of a document, or the primary key values of a row
        primary_key_schema: Primary key schema reported by tables
    """

    inserted_id: Any
    primary_key_schema: dict[str, Any] | None = None


@dataclass(frozen=True)
class DeleteResult:
    """Result of a delete. ``deleted_count`` is None when the server does not report it."""

    deleted_count: int | None


@dataclass(frozen=True)
class UpdateResult:
    """
    Result of an update or replace.

    Attributes:
        matched_count: Records matching the filter, None when not reported
        modified_count: Records actually changed, None when not reported
        upserted_id: Id of the record inserted by an upsert
    """

    matched_count: int | None
    modified_count: int | None
    upserted_id: Any = None

    @classmethod
    def from_status(cls, status: DataAPIStatus) -> UpdateResult:
        return cls(status.matched_count, status.modified_count, status.upserted_id)


class ReturnDocument(str, Enum):
    """Which version of the record ``find_one_and_*`` returns."""

    BEFORE = "before"
    AFTER = "after"


class BaseDataSource(Generic[T]):
    """Base class of ``Collection`` and ``Table``."""

    #: Generic record type of this family
    container: type[dict[str, Any]] = dict

    def __init__(self, database: Database, name: str, record_type: type[T] | None = None):
        self.database = database
        self.name = name
        self.record_type: type[Any] = record_type or self.container

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(name="{self.name}", keyspace="{self.keyspace}")'

    @property
    def keyspace(self) -> str:
        return self.database.keyspace

    @property
    def registry(self) -> CodecRegistry:
        raise NotImplementedError

    @property
    def mapper(self) -> EntityMapper:
        raise NotImplementedError

    # Helpers

    async def _run(self, command: Command) -> DataAPIResponse:
        return await self.database.runner.run_command(command, target=self.name, registry=self.registry)

    def _to_document(self, entity: Any) -> dict[str, Any]:
        return self.mapper.to_document(entity, self.container)

    def _from_document(self, raw: dict[str, Any] | None, record_type: type[Any] | None = None) -> Any:
        if raw is None:
            return None
        return self.mapper.from_document(self.container(raw), record_type or self.record_type)

    def _decode_sort_vector(self, raw: Any) -> DataAPIVector | None:
        if raw is None:
            return None
        return self.registry.decode(DataAPIVector, raw)

    def _shape(
        self,
        filter: dict[str, Any] | None,
        projection: dict[str, Any] | None,
        sort: dict[str, Any] | None,
        limit: int | None = None,
        skip: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
    ) -> QueryShape:
        return QueryShape().with_changes(
            filter=filter,
            projection=projection,
            sort=sort,
            limit=limit,
            skip=skip,
            include_similarity=include_similarity,
            include_sort_vector=include_sort_vector,
        )

    # Insert

    async def insert_one(self, entity: T | dict[str, Any]) -> InsertOneResult:
        response = await self._run(Command(CommandName.INSERT_ONE).with_document(self._to_document(entity)))
        ids = response.status.inserted_ids
        if not ids:
            raise UnexpectedDataAPIResponseError("insertOne response has no status.insertedIds", response.raw)
        return InsertOneResult(ids[0], response.status.primary_key_schema)

    async def insert_many(
        self,
        entities: list[T] | list[dict[str, Any]],
        *,
        ordered: bool = False,
        concurrency: int = 1,
        chunk_size: int | None = None,
        timeout: float | None = None,
        return_document_responses: bool = False,
    ) -> InsertManyOutcome:
        """
        Insert many records, split in chunks of at most ``chunk_size``.

        See ``dispatch_insert_many`` for the chunking and error rules.
        """
        options = InsertManyOptions(
            ordered=ordered,
            concurrency=concurrency,
            chunk_size=chunk_size,
            timeout=timeout,
            return_document_responses=return_document_responses,
        )
        documents = [self._to_document(e) for e in entities]

        async def insert_chunk(chunk: list[Any]) -> DataAPIResponse:
            command = (
                Command(CommandName.INSERT_MANY)
                .with_documents(chunk)
                .with_option("ordered", options.ordered)
                .with_option("returnDocumentResponses", options.return_document_responses)
            )
            return await self._run(command)

        return await dispatch_insert_many(
            documents, insert_chunk, options, self.database.options.max_documents_in_insert
        )

    # Find

    async def find_one(
        self,
        filter: dict[str, Any] | None = None,
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        include_similarity: bool | None = None,
        record_type: type[Any] | None = None,
    ) -> Any:
        """Return the first matching record, or None."""
        command = (
            Command(CommandName.FIND_ONE)
            .with_filter(filter)
            .with_sort(sort)
            .with_projection(projection)
            .with_option("includeSimilarity", include_similarity)
        )
        response = await self._run(command)
        if response.data is None:
            raise UnexpectedDataAPIResponseError("findOne response has no data", response.raw)
        return self._from_document(response.document, record_type)

    def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        record_type: type[Any] | None = None,
    ) -> FindCursor[Any]:
        """Return an IDLE cursor over the matching records. Nothing is sent yet."""
        shape = self._shape(filter, projection, sort, limit, skip, include_similarity, include_sort_vector)
        return FindCursor(self, shape, record_type or self.record_type)

    async def find_page(
        self,
        filter: dict[str, Any] | None = None,
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        page_state: str | None = None,
        record_type: type[Any] | None = None,
    ) -> Page[Any]:
        """Fetch one page of results, continuing from ``page_state``."""
        shape = self._shape(filter, projection, sort, limit, skip, include_similarity, include_sort_vector)
        page = await self._fetch_find_page(shape, page_state)
        results = tuple(self._from_document(raw, record_type) for raw in page.results)
        return Page(results, page.next_page_state, page.sort_vector)

    async def _fetch_find_page(self, shape: QueryShape, page_state: str | None) -> Page[dict[str, Any]]:
        command = (
            Command(CommandName.FIND)
            .with_filter(shape.filter)
            .with_sort(shape.sort)
            .with_projection(shape.projection)
            .with_options(shape.to_options())
            .with_option("pageState", page_state)
        )
        response = await self._run(command)
        if response.data is None or response.data.documents is None:
            raise UnexpectedDataAPIResponseError("find response has no data.documents", response.raw)
        return Page(
            tuple(response.data.documents),
            response.next_page_state,
            self._decode_sort_vector(response.status.sort_vector),
        )

    # Update

    async def update_one(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        sort: dict[str, Any] | None = None,
        upsert: bool | None = None,
    ) -> UpdateResult:
        """
        Apply ``update`` (``$set``, ``$unset``...) to the first matching record.

        Raises:
            ValueError: If ``update`` is empty.
        """
        if not update:
            raise ValueError("update cannot be empty")
        command = (
            Command(CommandName.UPDATE_ONE)
            .with_filter(filter)
            .with_update(update)
            .with_sort(sort)
            .with_option("upsert", upsert)
        )
        response = await self._run(command)
        return UpdateResult.from_status(response.status)

    # Delete

    async def delete_one(self, filter: dict[str, Any], *, sort: dict[str, Any] | None = None) -> DeleteResult:
        command = Command(CommandName.DELETE_ONE).with_filter(filter).with_sort(sort)
        response = await self._run(command)
        return DeleteResult(response.status.deleted_count)

    async def delete_many(self, filter: dict[str, Any] | None = None) -> DeleteResult:
        """
        Delete every matching record.

        The server deletes in batches and sets ``moreData`` while matches
        remain; the command is repeated until it is clear.
        """
        total: int | None = None
        while True:
            response = await self._run(Command(CommandName.DELETE_MANY).with_filter(filter if filter is not None else {}))
            deleted = response.status.deleted_count
            if deleted is not None and deleted >= 0:
                total = (total or 0) + deleted
            if not response.status.more_data:
                break
            logger.debug(f"delete_many on '{self.name}': more data to delete, repeating")
        return DeleteResult(total)


__all__ = ["BaseDataSource", "DeleteResult", "InsertOneResult", "ReturnDocument", "UpdateResult"]
