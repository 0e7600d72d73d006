"""
Database and client entry points.

A ``DataAPIClient`` holds the token and options; it hands out ``Database``
objects bound to an endpoint and a keyspace. A ``Database`` owns the
command runner, the codec registries and the entity mappers shared by the
collections and tables it creates.
"""

from __future__ import annotations

import logging
from typing import Any, Self, TypeVar

import httpx
from pydantic import BaseModel

from dataapi_sdk.connection.base import BaseCommandRunner
from dataapi_sdk.connection.http import HTTPCommandRunner
from dataapi_sdk.options import DataAPIClientOptions
from dataapi_sdk.protocol.codecs import CodecRegistry, build_collection_registry, build_table_registry
from dataapi_sdk.protocol.command import Command, CommandName
from dataapi_sdk.types import DataAPIResponse

from .collection import Collection
from .mapping import EntityMapper, EntityMapping, NameKind
from .table import Table

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_KEYSPACE = "default_keyspace"


def _resolve_name(name: str | None, record_type: type[Any] | None, kind: NameKind) -> str:
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        return EntityMapping.for_model(record_type).resolve_name(name, kind)
    if not name:
        raise ValueError(f"A {kind} name is required")
    return name


class Database:
    """
    A keyspace of a Data API endpoint.

    Example:
        async with DataAPIClient("token").get_database("http://localhost:8181") as db:
            people = await db.create_collection("people")
            await people.insert_one({"name": "Ada"})
    """

    def __init__(self, runner: BaseCommandRunner, options: DataAPIClientOptions | None = None):
        self.runner = runner
        self.options = options or DataAPIClientOptions()
        self.table_registry: CodecRegistry = build_table_registry(self.options.serdes)
        self.collection_registry: CodecRegistry = build_collection_registry(self.options.serdes)
        self.table_mapper = EntityMapper(self.table_registry)
        self.collection_mapper = EntityMapper(self.collection_registry)

    def __repr__(self) -> str:
        return f'Database(keyspace="{self.keyspace}")'

    @property
    def keyspace(self) -> str:
        return self.runner.keyspace

    async def close(self) -> None:
        await self.runner.close()

    async def __aenter__(self) -> Self:
        await self.runner.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def run_command(
        self,
        command: Command,
        target: str | None = None,
        registry: CodecRegistry | None = None,
    ) -> DataAPIResponse:
        """Run a raw command against the keyspace (or ``target`` in it)."""
        return await self.runner.run_command(command, target=target, registry=registry or self.table_registry)

    # Collections

    def get_collection(self, name: str | None = None, record_type: type[T] | None = None) -> Collection[T]:
        """
        Return a handle on a collection; nothing is sent.

        Raises:
            MappingError: If ``record_type`` declares a different collection name.
        """
        return Collection(self, _resolve_name(name, record_type, "collection"), record_type)

    async def create_collection(
        self,
        name: str | None = None,
        definition: dict[str, Any] | None = None,
        record_type: type[T] | None = None,
    ) -> Collection[T]:
        """Create a collection (vector, indexing... options in ``definition``)."""
        resolved = _resolve_name(name, record_type, "collection")
        command = Command(CommandName.CREATE_COLLECTION).append("name", resolved).with_options(definition)
        await self.run_command(command, registry=self.collection_registry)
        return Collection(self, resolved, record_type)

    async def drop_collection(self, name: str) -> None:
        await self.run_command(Command(CommandName.DELETE_COLLECTION).append("name", name))

    async def list_collection_names(self) -> list[str]:
        response = await self.run_command(Command(CommandName.FIND_COLLECTIONS))
        return list(response.status.get("collections", []))

    # Tables

    def get_table(self, name: str | None = None, record_type: type[T] | None = None) -> Table[T]:
        """
        Return a handle on a table; nothing is sent.

        Raises:
            MappingError: If ``record_type`` declares a different table name.
        """
        return Table(self, _resolve_name(name, record_type, "table"), record_type)

    async def create_table(
        self,
        name: str | None = None,
        definition: dict[str, Any] | None = None,
        *,
        if_not_exists: bool | None = None,
        record_type: type[T] | None = None,
    ) -> Table[T]:
        """
        Create a table.

        ``definition`` is the raw ``{"columns": {...}, "primaryKey": ...}``
        object of the createTable command.
        """
        if not definition:
            raise ValueError("A table definition is required")
        resolved = _resolve_name(name, record_type, "table")
        command = (
            Command(CommandName.CREATE_TABLE)
            .append("name", resolved)
            .append("definition", definition)
            .with_option("ifNotExists", if_not_exists)
        )
        await self.run_command(command)
        return Table(self, resolved, record_type)

    async def drop_table(self, name: str, *, if_exists: bool | None = None) -> None:
        command = Command(CommandName.DROP_TABLE).append("name", name).with_option("ifExists", if_exists)
        await self.run_command(command)

    async def list_table_names(self) -> list[str]:
        response = await self.run_command(Command(CommandName.LIST_TABLES))
        return list(response.status.get("tables", []))

    # User-defined types

    async def create_type(
        self,
        name: str | None = None,
        definition: dict[str, Any] | None = None,
        *,
        if_not_exists: bool | None = None,
        record_type: type[Any] | None = None,
    ) -> None:
        """Create a user-defined type; ``definition`` is ``{"fields": {...}}``."""
        if not definition:
            raise ValueError("A type definition is required")
        command = (
            Command(CommandName.CREATE_TYPE)
            .append("name", _resolve_name(name, record_type, "udt"))
            .append("definition", definition)
            .with_option("ifNotExists", if_not_exists)
        )
        await self.run_command(command)

    async def alter_type(
        self,
        name: str,
        *,
        add_fields: dict[str, Any] | None = None,
        rename_fields: dict[str, str] | None = None,
    ) -> None:
        """Add fields to and/or rename fields of a user-defined type."""
        operation: dict[str, Any] = {}
        if add_fields:
            operation["add"] = {"fields": add_fields}
        if rename_fields:
            operation["rename"] = {"fields": rename_fields}
        if not operation:
            raise ValueError("alter_type needs fields to add or to rename")
        await self.run_command(Command(CommandName.ALTER_TYPE).append("name", name).append("operation", operation))

    async def drop_type(self, name: str, *, if_exists: bool | None = None) -> None:
        command = Command(CommandName.DROP_TYPE).append("name", name).with_option("ifExists", if_exists)
        await self.run_command(command)


class DataAPIClient:
    """
    Entry point of the SDK.

    Example:
        client = DataAPIClient("AstraCS:...")
        db = client.get_database("https://...apps.astra.datastax.com", keyspace="library")
    """

    def __init__(self, token: str | None = None, options: DataAPIClientOptions | None = None):
        self.token = token
        self.options = options or DataAPIClientOptions()

    def get_database(
        self,
        api_endpoint: str,
        keyspace: str = DEFAULT_KEYSPACE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Database:
        logger.debug(f"Opening database {api_endpoint} (keyspace={keyspace})")
        runner = HTTPCommandRunner(api_endpoint, keyspace, self.token, self.options, transport)
        return Database(runner, self.options)


__all__ = ["DEFAULT_KEYSPACE", "DataAPIClient", "Database"]
