"""Tables: rows with a declared schema and a primary key."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeVar

from dataapi_sdk.data_types import TableIndexColumn
from dataapi_sdk.exceptions import UnexpectedDataAPIResponseError
from dataapi_sdk.protocol.codecs import CodecRegistry
from dataapi_sdk.protocol.command import Command, CommandName

from .data_source import BaseDataSource
from .documents import Row
from .mapping import EntityMapper

T = TypeVar("T")


def _index_column(column: str | TableIndexColumn) -> TableIndexColumn:
    return column if isinstance(column, TableIndexColumn) else TableIndexColumn(column)


@dataclass(frozen=True)
class TableIndexDescriptor:
    """
    An index as reported by ``listIndexes``.

    Attributes:
        name: Index name
        column: Indexed column, with the map projection for map columns
        definition: Raw index definition (column and options)
        index_type: Server index kind (regular, vector, text...), if reported
    """

    name: str
    column: TableIndexColumn | None
    definition: dict[str, Any] = field(default_factory=dict)
    index_type: str | None = None


class Table(BaseDataSource[T]):
    """
    A Data API table.

    Example:
        books = db.get_table("books", record_type=Book)
        await books.insert_one(Book(title="Dune", year=1965))
        await books.create_index("books_year_idx", "year")
    """

    container = Row

    @property
    def registry(self) -> CodecRegistry:
        return self.database.table_registry

    @property
    def mapper(self) -> EntityMapper:
        return self.database.table_mapper

    async def create_index(
        self,
        name: str,
        column: str | TableIndexColumn,
        *,
        options: dict[str, Any] | None = None,
        if_not_exists: bool | None = None,
    ) -> None:
        """
        Create a regular index on ``column``.

        Args:
            name: Index name, unique in the keyspace
            column: Column name, or ``TableIndexColumn`` to index the keys or
                values of a map column
            options: Index options (ascii, caseSensitive, normalize)
            if_not_exists: Do not fail if the index exists
        """
        definition: dict[str, Any] = {"column": _index_column(column)}
        if options:
            definition["options"] = options
        command = (
            Command(CommandName.CREATE_INDEX)
            .append("name", name)
            .append("definition", definition)
            .with_option("ifNotExists", if_not_exists)
        )
        await self._run(command)

    async def create_vector_index(
        self,
        name: str,
        column: str,
        *,
        metric: str | None = None,
        source_model: str | None = None,
        if_not_exists: bool | None = None,
    ) -> None:
        """Create a vector index on a vector ``column``."""
        options = {k: v for k, v in {"metric": metric, "sourceModel": source_model}.items() if v is not None}
        definition: dict[str, Any] = {"column": column}
        if options:
            definition["options"] = options
        command = (
            Command(CommandName.CREATE_VECTOR_INDEX)
            .append("name", name)
            .append("definition", definition)
            .with_option("ifNotExists", if_not_exists)
        )
        await self._run(command)

    async def find_by_primary_key(
        self,
        primary_key: dict[str, Any],
        *,
        projection: dict[str, Any] | None = None,
        record_type: type[Any] | None = None,
    ) -> Any:
        """
        Return the row whose primary key columns equal ``primary_key``, or None.

        Example:
            await books.find_by_primary_key({"title": "Dune", "year": 1965})
        """
        if not primary_key:
            raise ValueError("primary_key cannot be empty")
        return await self.find_one(dict(primary_key), projection=projection, record_type=record_type)

    async def list_index_names(self) -> list[str]:
        response = await self._run(Command(CommandName.LIST_INDEXES).with_option("explain", False))
        return list(response.status.get("indexes", []))

    async def list_indexes(self) -> list[TableIndexDescriptor]:
        """Describe the indexes of this table, index columns decoded."""
        response = await self._run(Command(CommandName.LIST_INDEXES).with_option("explain", True))
        indexes = response.status.get("indexes")
        if indexes is None:
            raise UnexpectedDataAPIResponseError("listIndexes response has no status.indexes", response.raw)
        return [
            TableIndexDescriptor(
                name=index["name"],
                column=self.registry.decode(TableIndexColumn, index.get("definition", {}).get("column")),
                definition=index.get("definition", {}),
                index_type=index.get("indexType"),
            )
            for index in indexes
        ]

    async def drop_index(self, name: str, *, if_exists: bool | None = None) -> None:
        """Drop an index. Indexes live in the keyspace, so this is a keyspace command."""
        command = Command(CommandName.DROP_INDEX).append("name", name).with_option("ifExists", if_exists)
        await self.database.run_command(command, registry=self.registry)


__all__ = ["Table", "TableIndexDescriptor"]
