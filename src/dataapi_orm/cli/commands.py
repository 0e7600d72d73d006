"""
CLI commands for the Data API ORM.

Uses click for command-line argument parsing.
"""

import asyncio
import json
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, TypeVar

import click

from dataapi_sdk.exceptions import DataAPIError
from dataapi_sdk.protocol.command import DataAPIJSONEncoder

from ..database import DEFAULT_KEYSPACE, DataAPIClient, Database

T = TypeVar("T")


def run_async(coro: Awaitable[T]) -> T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)  # type: ignore[arg-type]


def parse_json_option(value: str | None, option: str) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint=option)


def read_documents(path: Path) -> list[dict[str, Any]]:
    """Read a JSON array, or JSON lines, of documents."""
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        documents = json.loads(text)
    else:
        documents = [json.loads(line) for line in text.splitlines() if line.strip()]
    if not all(isinstance(d, dict) for d in documents):
        raise click.ClickException(f"{path} must contain JSON objects only")
    return documents


def open_database(ctx: click.Context) -> Database:
    endpoint = ctx.obj["endpoint"]
    if not endpoint:
        raise click.UsageError("An endpoint is required (--endpoint or DATAAPI_ENDPOINT)")
    client = DataAPIClient(ctx.obj["token"])
    return client.get_database(endpoint, keyspace=ctx.obj["keyspace"])


@click.group()
@click.option(
    "--endpoint",
    "-e",
    envvar="DATAAPI_ENDPOINT",
    help="Data API endpoint URL",
)
@click.option(
    "--token",
    "-t",
    envvar="DATAAPI_TOKEN",
    help="Application token",
)
@click.option(
    "--keyspace",
    "-k",
    envvar="DATAAPI_KEYSPACE",
    default=DEFAULT_KEYSPACE,
    help=f"Keyspace (default: {DEFAULT_KEYSPACE})",
)
@click.pass_context
def cli(ctx: click.Context, endpoint: str | None, token: str | None, keyspace: str) -> None:
    """Data API command line tool."""
    ctx.ensure_object(dict)
    ctx.obj["endpoint"] = endpoint
    ctx.obj["token"] = token
    ctx.obj["keyspace"] = keyspace


@cli.command()
@click.argument("collection")
@click.option("--filter", "-f", "filter_json", help="Filter as JSON")
@click.option("--upper-bound", "-u", default=1000, show_default=True, help="Largest acceptable count")
@click.pass_context
def count(ctx: click.Context, collection: str, filter_json: str | None, upper_bound: int) -> None:
    """Count the documents of a collection."""
    filter = parse_json_option(filter_json, "--filter")

    async def _count() -> int:
        async with open_database(ctx) as db:
            return await db.get_collection(collection).count_documents(filter, upper_bound)

    try:
        click.echo(run_async(_count()))
    except DataAPIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--upper-bound")


@cli.command()
@click.argument("collection")
@click.option("--filter", "-f", "filter_json", help="Filter as JSON")
@click.option("--limit", "-l", type=int, help="Maximum number of documents")
@click.pass_context
def find(ctx: click.Context, collection: str, filter_json: str | None, limit: int | None) -> None:
    """Print matching documents, one JSON object per line."""
    filter = parse_json_option(filter_json, "--filter")

    async def _find() -> None:
        async with open_database(ctx) as db:
            async for document in db.get_collection(collection).find(filter, limit=limit):
                click.echo(json.dumps(document, cls=DataAPIJSONEncoder))

    try:
        run_async(_find())
    except DataAPIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("collection")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", "-c", type=int, help="Documents per insertMany command")
@click.option("--concurrency", "-j", default=1, show_default=True, help="Chunks sent in parallel")
@click.option("--ordered", is_flag=True, help="Insert in file order, stop at first error")
@click.pass_context
def load(
    ctx: click.Context,
    collection: str,
    file: Path,
    chunk_size: int | None,
    concurrency: int,
    ordered: bool,
) -> None:
    """Load a JSON array or JSON-lines FILE into a collection."""
    try:
        documents = read_documents(file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Cannot parse {file}: {e}")
    if not documents:
        click.echo("Nothing to load.")
        return

    async def _load() -> int:
        async with open_database(ctx) as db:
            outcome = await db.get_collection(collection).insert_many(
                documents, ordered=ordered, concurrency=concurrency, chunk_size=chunk_size
            )
            return len(outcome.inserted_ids)

    try:
        inserted = run_async(_load())
    except DataAPIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(f"Inserted {inserted} documents into {collection}.")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
