"""Collections: schemaless JSON documents."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from dataapi_sdk.exceptions import TooManyDocumentsToCountError, UnexpectedDataAPIResponseError
from dataapi_sdk.protocol.codecs import CodecRegistry
from dataapi_sdk.protocol.command import Command, CommandName

from .cursor import FindAndRerankCursor, Page, QueryShape, RerankedResult
from .data_source import BaseDataSource, ReturnDocument, UpdateResult
from .documents import Document
from .mapping import EntityMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _extract_path(document: dict[str, Any], path: str) -> list[Any]:
    """Values found at a dotted ``path``, descending into lists."""
    values: list[Any] = [document]
    for key in path.split("."):
        found: list[Any] = []
        for value in values:
            if isinstance(value, dict) and key in value:
                found.append(value[key])
            elif isinstance(value, list):
                if key.isdigit() and int(key) < len(value):
                    found.append(value[int(key)])
                else:
                    found.extend(v[key] for v in value if isinstance(v, dict) and key in v)
        values = found
    flat: list[Any] = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


class Collection(BaseDataSource[T]):
    """
    A Data API collection.

    Example:
        collection = db.get_collection("people")
        await collection.insert_one({"_id": 1, "name": "Ada"})
        async for doc in collection.find({"name": "Ada"}):
            print(doc.id)
    """

    container = Document

    @property
    def registry(self) -> CodecRegistry:
        return self.database.collection_registry

    @property
    def mapper(self) -> EntityMapper:
        return self.database.collection_mapper

    async def count_documents(self, filter: dict[str, Any] | None, upper_bound: int) -> int:
        """
        Count matching documents exactly.

        Args:
            filter: Documents to count, None or {} for all
            upper_bound: Largest count the caller accepts, between 1 and
                the client's ``max_document_count``

        Raises:
            ValueError: If ``upper_bound`` is out of range.
            TooManyDocumentsToCountError: If the server cannot count that
                far, or the count is above ``upper_bound``.
        """
        max_count = self.database.options.max_document_count
        if upper_bound < 1 or upper_bound > max_count:
            raise ValueError(f"upper_bound must be between 1 and {max_count}, got {upper_bound}")
        response = await self._run(Command(CommandName.COUNT_DOCUMENTS).with_filter(filter if filter is not None else {}))
        if response.status.more_data:
            raise TooManyDocumentsToCountError()
        count = response.status.count
        if count is None:
            raise UnexpectedDataAPIResponseError("countDocuments response has no status.count", response.raw)
        if count > upper_bound:
            raise TooManyDocumentsToCountError(upper_bound)
        return count

    async def estimated_document_count(self) -> int:
        response = await self._run(Command(CommandName.ESTIMATED_DOCUMENT_COUNT))
        count = response.status.count
        if count is None:
            raise UnexpectedDataAPIResponseError("estimatedDocumentCount response has no status.count", response.raw)
        return count

    async def distinct(self, key: str, filter: dict[str, Any] | None = None) -> list[Any]:
        """
        Distinct values of ``key`` (a dotted path) over matching documents.

        Runs a projected ``find`` and deduplicates client side; list values
        contribute each of their items.
        """
        cursor = self.find(filter, projection={key.split(".")[0]: True}, record_type=Document)
        seen: set[str] = set()
        values: list[Any] = []
        async for document in cursor:
            for value in _extract_path(document, key):
                marker = json.dumps(self.registry.encode_value(value), sort_keys=True, default=str)
                if marker not in seen:
                    seen.add(marker)
                    values.append(value)
        return values

    # Updates

    async def update_many(
        self,
        filter: dict[str, Any] | None,
        update: dict[str, Any],
        *,
        upsert: bool | None = None,
    ) -> UpdateResult:
        """
        Apply ``update`` to every matching document.

        The server updates in pages and returns a ``nextPageState`` while
        matches remain; the command is repeated with it and the counts are
        summed.
        """
        if not update:
            raise ValueError("update cannot be empty")
        matched = modified = 0
        upserted_id: Any = None
        page_state: str | None = None
        while True:
            command = (
                Command(CommandName.UPDATE_MANY)
                .with_filter(filter if filter is not None else {})
                .with_update(update)
                .with_option("upsert", upsert)
                .with_option("pageState", page_state)
            )
            response = await self._run(command)
            status = response.status
            matched += status.matched_count or 0
            modified += status.modified_count or 0
            if status.upserted_id is not None:
                upserted_id = status.upserted_id
            page_state = status.next_page_state or response.next_page_state
            if page_state is None:
                break
            logger.debug(f"update_many on '{self.name}': more documents to update, continuing")
        return UpdateResult(matched, modified, upserted_id)

    async def replace_one(
        self,
        filter: dict[str, Any],
        replacement: T | dict[str, Any],
        *,
        sort: dict[str, Any] | None = None,
        upsert: bool | None = None,
    ) -> UpdateResult:
        """Replace the first matching document with ``replacement``."""
        command = (
            Command(CommandName.FIND_ONE_AND_REPLACE)
            .with_filter(filter)
            .with_replacement(self._to_document(replacement))
            .with_sort(sort)
            .with_projection({"*": 0})
            .with_option("upsert", upsert)
            .with_option("returnDocument", ReturnDocument.BEFORE)
        )
        response = await self._run(command)
        return UpdateResult.from_status(response.status)

    async def find_one_and_update(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        sort: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
        upsert: bool | None = None,
        return_document: ReturnDocument = ReturnDocument.BEFORE,
        record_type: type[Any] | None = None,
    ) -> Any:
        """
        Update the first matching document and return it.

        Returns:
            The document before or after the update (``return_document``),
            mapped to the record type, or None if nothing matched.
        """
        if not update:
            raise ValueError("update cannot be empty")
        command = (
            Command(CommandName.FIND_ONE_AND_UPDATE)
            .with_filter(filter)
            .with_update(update)
            .with_sort(sort)
            .with_projection(projection)
            .with_option("upsert", upsert)
            .with_option("returnDocument", ReturnDocument(return_document))
        )
        response = await self._run(command)
        return self._from_document(response.document, record_type)

    async def find_one_and_replace(
        self,
        filter: dict[str, Any],
        replacement: T | dict[str, Any],
        *,
        sort: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
        upsert: bool | None = None,
        return_document: ReturnDocument = ReturnDocument.BEFORE,
        record_type: type[Any] | None = None,
    ) -> Any:
        """Replace the first matching document and return it (before or after), or None."""
        command = (
            Command(CommandName.FIND_ONE_AND_REPLACE)
            .with_filter(filter)
            .with_replacement(self._to_document(replacement))
            .with_sort(sort)
            .with_projection(projection)
            .with_option("upsert", upsert)
            .with_option("returnDocument", ReturnDocument(return_document))
        )
        response = await self._run(command)
        return self._from_document(response.document, record_type)

    async def find_one_and_delete(
        self,
        filter: dict[str, Any],
        *,
        sort: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
        record_type: type[Any] | None = None,
    ) -> Any:
        command = (
            Command(CommandName.FIND_ONE_AND_DELETE).with_filter(filter).with_sort(sort).with_projection(projection)
        )
        response = await self._run(command)
        return self._from_document(response.document, record_type)

    def find_and_rerank(
        self,
        sort: dict[str, Any],
        filter: dict[str, Any] | None = None,
        *,
        projection: dict[str, Any] | None = None,
        limit: int | None = None,
        hybrid_limits: int | dict[str, int] | None = None,
        include_scores: bool | None = None,
        include_sort_vector: bool | None = None,
        rerank_on: str | None = None,
        rerank_query: str | None = None,
        record_type: type[Any] | None = None,
    ) -> FindAndRerankCursor[Any]:
        """Return an IDLE cursor over a hybrid search, reranked by the server."""
        shape = QueryShape().with_changes(
            filter=filter,
            sort=sort,
            projection=projection,
            limit=limit,
            include_sort_vector=include_sort_vector,
            options={
                k: v
                for k, v in {
                    "hybridLimits": hybrid_limits,
                    "includeScores": include_scores,
                    "rerankOn": rerank_on,
                    "rerankQuery": rerank_query,
                }.items()
                if v is not None
            },
        )
        return FindAndRerankCursor(self, shape, record_type or self.record_type)

    async def _fetch_rerank_page(self, shape: QueryShape) -> Page[RerankedResult[dict[str, Any]]]:
        command = (
            Command(CommandName.FIND_AND_RERANK)
            .with_filter(shape.filter)
            .with_sort(shape.sort)
            .with_projection(shape.projection)
            .with_options(shape.to_options())
        )
        response = await self._run(command)
        if response.data is None or response.data.documents is None:
            raise UnexpectedDataAPIResponseError("findAndRerank response has no data.documents", response.raw)
        document_responses = response.status.document_responses
        results = tuple(
            RerankedResult(
                document,
                document_responses[i].get("scores", {}) if i < len(document_responses) else {},
            )
            for i, document in enumerate(response.data.documents)
        )
        return Page(results, None, self._decode_sort_vector(response.status.sort_vector))


__all__ = ["Collection"]
