"""
Chunked, concurrent bulk insert.

The input is split into contiguous chunks; each chunk is one ``insertMany``
command. Unordered inserts run up to ``concurrency`` chunks at a time;
ordered inserts run one chunk after the other and stop at the first
failure. Results are merged in input order.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from dataapi_sdk.exceptions import InsertManyInterruptedError, InsertManyTimeoutError
from dataapi_sdk.types import DataAPIResponse

logger = logging.getLogger(__name__)

ChunkInserter = Callable[[list[Any]], Awaitable[DataAPIResponse]]


@dataclass(frozen=True)
class InsertManyOptions:
    """
    Settings of a bulk insert.

    Attributes:
        ordered: Insert in input order and stop at the first error
        concurrency: Number of chunks in flight (must be 1 when ordered)
        chunk_size: Items per command, defaults to the server maximum
        timeout: Overall deadline in seconds, None for no deadline
        return_document_responses: Ask for one status entry per item
    """

    ordered: bool = False
    concurrency: int = 1
    chunk_size: int | None = None
    timeout: float | None = None
    return_document_responses: bool = False


@dataclass
class InsertManyOutcome:
    """
    Merged result of all chunks.

    Attributes:
        inserted_ids: Ids (or primary key tuples for tables) in input order
        document_responses: Per-item responses, when requested
        primary_key_schema: Primary key schema reported by tables
    """

    inserted_ids: list[Any] = field(default_factory=list)
    document_responses: list[dict[str, Any]] = field(default_factory=list)
    primary_key_schema: dict[str, Any] | None = None

    def add(self, response: DataAPIResponse) -> None:
        status = response.status
        self.inserted_ids.extend(status.inserted_ids)
        self.document_responses.extend(status.document_responses)
        if self.primary_key_schema is None and status.primary_key_schema is not None:
            self.primary_key_schema = status.primary_key_schema


def split_chunks(items: Sequence[Any], chunk_size: int) -> list[list[Any]]:
    return [list(items[i : i + chunk_size]) for i in range(0, len(items), chunk_size)]


async def dispatch_insert_many(
    items: Sequence[Any],
    insert_chunk: ChunkInserter,
    options: InsertManyOptions,
    max_chunk_size: int,
) -> InsertManyOutcome:
    """
    Insert ``items`` in chunks through ``insert_chunk``.

    Args:
        items: Records to insert, already mapped to documents/rows
        insert_chunk: Sends one chunk and returns the response
        options: Bulk insert settings
        max_chunk_size: Largest chunk the server accepts

    Raises:
        ValueError: On an empty input, an ordered insert with concurrency,
            or a chunk size above ``max_chunk_size``.
        InsertManyTimeoutError: If the chunks did not complete in time.
        InsertManyInterruptedError: If a chunk was cancelled.
        DataAPIError: The error of the first failing chunk, unchanged.
    """
    if not items:
        raise ValueError("documents list cannot be empty")
    if options.concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {options.concurrency}")
    if options.ordered and options.concurrency > 1:
        raise ValueError("Cannot run ordered insert_many concurrently.")
    chunk_size = options.chunk_size or max_chunk_size
    if chunk_size > max_chunk_size:
        raise ValueError(f"Cannot insert more than {max_chunk_size} at a time.")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    chunks = split_chunks(items, chunk_size)
    semaphore = asyncio.Semaphore(options.concurrency)
    start = time.perf_counter()

    async def run_chunk(index: int, chunk: list[Any]) -> DataAPIResponse:
        async with semaphore:
            logger.debug(f"insert_many: sending chunk {index + 1}/{len(chunks)} ({len(chunk)} items)")
            return await insert_chunk(chunk)

    async def run_ordered() -> list[DataAPIResponse]:
        return [await run_chunk(i, chunk) for i, chunk in enumerate(chunks)]

    async def run_concurrent() -> list[DataAPIResponse]:
        tasks = [asyncio.create_task(run_chunk(i, chunk)) for i, chunk in enumerate(chunks)]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        responses: list[DataAPIResponse] = []
        for index, result in enumerate(results):
            if isinstance(result, asyncio.CancelledError):
                raise InsertManyInterruptedError(f"insert_many chunk {index + 1}/{len(chunks)} was cancelled")
            if isinstance(result, BaseException):
                raise result
            responses.append(result)
        return responses

    run_all = run_ordered if options.ordered else run_concurrent
    try:
        if options.timeout is None:
            responses = await run_all()
        else:
            responses = await asyncio.wait_for(run_all(), options.timeout)
    except TimeoutError:
        raise InsertManyTimeoutError(
            f"insert_many did not complete within {options.timeout}s", options.timeout
        ) from None

    outcome = InsertManyOutcome()
    for response in responses:
        outcome.add(response)
    logger.debug(
        f"insert_many: {len(items)} items in {len(chunks)} chunks, "
        f"total response time {time.perf_counter() - start:.3f}s"
    )
    return outcome


__all__ = ["InsertManyOptions", "InsertManyOutcome", "dispatch_insert_many", "split_chunks"]
