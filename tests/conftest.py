"""
Pytest configuration for Data API ORM tests.

Provides an in-memory command runner that records every command it receives
and answers with canned or computed responses, so data sources, cursors and
the bulk insert dispatcher can be tested without a server.
"""

import inspect
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from dataapi_orm.database import Database
from dataapi_sdk.connection.base import BaseCommandRunner

TEST_KEYSPACE = "test_ks"

Handler = Callable[[dict[str, Any], str | None], Any] | dict[str, Any]


@dataclass
class SentCommand:
    """A command as seen on the wire."""

    name: str
    target: str | None
    payload: dict[str, Any]

    @property
    def options(self) -> dict[str, Any]:
        return self.payload.get("options", {})


class FakeCommandRunner(BaseCommandRunner):
    """Command runner answering from registered handlers."""

    def __init__(self, keyspace: str = TEST_KEYSPACE):
        super().__init__(keyspace)
        self.handlers: dict[str, Handler] = {}
        self.calls: list[SentCommand] = []
        self.closed = False

    def on(self, name: str, handler: Handler) -> None:
        """Answer ``name`` commands with a response dict or ``handler(payload, target)``."""
        self.handlers[name] = handler

    def sent(self, name: str) -> list[SentCommand]:
        return [c for c in self.calls if c.name == name]

    async def close(self) -> None:
        self.closed = True

    async def _send_command(self, body: str, target: str | None) -> dict[str, Any]:
        data = json.loads(body)
        ((name, payload),) = data.items()
        self.calls.append(SentCommand(name, target, payload))
        handler = self.handlers.get(name)
        if handler is None:
            return {"status": {"ok": 1}}
        result = handler(payload, target) if callable(handler) else handler
        if inspect.isawaitable(result):
            result = await result
        return result


def paged_find(documents: list[dict[str, Any]], page_size: int, **status: Any) -> Callable[..., dict[str, Any]]:
    """
    A ``find`` handler serving ``documents`` in pages of ``page_size``.

    The page state is the offset of the next page, as a string.
    """

    def handler(payload: dict[str, Any], target: str | None) -> dict[str, Any]:
        start = int(payload.get("options", {}).get("pageState") or 0)
        end = start + page_size
        data: dict[str, Any] = {"documents": documents[start:end]}
        data["nextPageState"] = str(end) if end < len(documents) else None
        return {"data": data, "status": dict(status)}

    return handler


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def database(fake_runner: FakeCommandRunner) -> Database:
    return Database(fake_runner)
