"""
Unit tests for CLI commands.

Uses Click's CliRunner; the database is replaced by one bound to the
in-memory command runner, so no server is needed.
"""

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner
from conftest import FakeCommandRunner, paged_find

from dataapi_orm.cli.commands import cli, open_database, read_documents
from dataapi_orm.database import Database
from dataapi_sdk.exceptions import DecodeError


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for testing."""
    return CliRunner()


@pytest.fixture
def fake_database(fake_runner: FakeCommandRunner):
    """Patch the CLI so every command talks to the in-memory runner."""
    with patch("dataapi_orm.cli.commands.open_database", return_value=Database(fake_runner)) as opener:
        yield opener


def invoke(runner: CliRunner, *args: str) -> Any:
    return runner.invoke(cli, ["--endpoint", "http://localhost:8181", *args], obj={})


class TestCliBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Data API command line tool" in result.output
        for command in ("count", "find", "load"):
            assert command in result.output

    def test_endpoint_is_required(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["count", "people"], obj={}, env={"DATAAPI_ENDPOINT": None})
        assert result.exit_code != 0
        assert "endpoint is required" in result.output

    def test_options_from_environment(self, runner: CliRunner, fake_runner: FakeCommandRunner) -> None:
        fake_runner.on("countDocuments", {"status": {"count": 0}})
        seen: dict[str, Any] = {}

        def opener(ctx: Any) -> Database:
            seen.update(ctx.obj)
            return Database(fake_runner)

        with patch("dataapi_orm.cli.commands.open_database", side_effect=opener):
            result = runner.invoke(
                cli,
                ["count", "people"],
                obj={},
                env={"DATAAPI_ENDPOINT": "http://db:8181", "DATAAPI_TOKEN": "t", "DATAAPI_KEYSPACE": "library"},
            )
        assert result.exit_code == 0
        assert seen == {"endpoint": "http://db:8181", "token": "t", "keyspace": "library"}

    def test_open_database(self) -> None:
        ctx = click.Context(cli, obj={"endpoint": "http://db:8181", "token": "t", "keyspace": "library"})
        db = open_database(ctx)
        assert db.keyspace == "library"
        assert db.runner.token == "t"
        assert db.runner.base_url == "http://db:8181/api/json/v1/library"


class TestCountCommand:
    def test_count(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database) -> None:
        fake_runner.on("countDocuments", {"status": {"count": 7}})
        result = invoke(runner, "count", "people", "--filter", '{"active": true}')
        assert result.exit_code == 0
        assert result.output.strip() == "7"
        sent = fake_runner.sent("countDocuments")[0]
        assert sent.target == "people"
        assert sent.payload == {"filter": {"active": True}}

    def test_invalid_filter(self, runner: CliRunner, fake_database) -> None:
        result = invoke(runner, "count", "people", "--filter", "{not json")
        assert result.exit_code == 2
        assert "invalid JSON" in result.output

    def test_too_many(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database) -> None:
        fake_runner.on("countDocuments", {"status": {"count": 50}})
        result = invoke(runner, "count", "people", "--upper-bound", "10")
        assert result.exit_code == 1
        assert "Error: Too many documents to count" in result.output

    def test_upper_bound_out_of_range(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database) -> None:
        result = invoke(runner, "count", "people", "--upper-bound", "0")
        assert result.exit_code == 2
        assert "upper_bound must be between 1 and 1000" in result.output
        assert fake_runner.calls == []


class TestFindCommand:
    def test_prints_json_lines(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database) -> None:
        documents = [{"_id": i, "name": f"p{i}"} for i in range(3)]
        fake_runner.on("find", paged_find(documents, page_size=2))
        result = invoke(runner, "find", "people", "--limit", "3")
        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert lines == documents
        assert fake_runner.sent("find")[0].options == {"limit": 3}

    def test_server_error(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database) -> None:
        fake_runner.on("find", {"errors": [{"message": "Collection does not exist", "errorCode": "COLLECTION_NOT_EXIST"}]})
        result = invoke(runner, "find", "nope")
        assert result.exit_code == 1
        assert "COLLECTION_NOT_EXIST" in result.output


class TestLoadCommand:
    def test_load_json_array(
        self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database, tmp_path: Path
    ) -> None:
        fake_runner.on("insertMany", lambda payload, target: {"status": {"insertedIds": [d["_id"] for d in payload["documents"]]}})
        path = tmp_path / "people.json"
        path.write_text(json.dumps([{"_id": i} for i in range(5)]))
        result = invoke(runner, "load", "people", str(path), "--chunk-size", "2", "--ordered")
        assert result.exit_code == 0
        assert "Inserted 5 documents into people." in result.output
        sent = fake_runner.sent("insertMany")
        assert [len(c.payload["documents"]) for c in sent] == [2, 2, 1]
        assert all(c.options["ordered"] is True for c in sent)

    def test_load_json_lines(
        self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database, tmp_path: Path
    ) -> None:
        fake_runner.on("insertMany", lambda payload, target: {"status": {"insertedIds": [1, 2]}})
        path = tmp_path / "people.jsonl"
        path.write_text('{"_id": 1}\n\n{"_id": 2}\n')
        result = invoke(runner, "load", "people", str(path))
        assert result.exit_code == 0
        assert "Inserted 2 documents" in result.output

    def test_empty_file(self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("")
        result = invoke(runner, "load", "people", str(path))
        assert result.exit_code == 0
        assert "Nothing to load." in result.output
        assert fake_runner.calls == []

    def test_ordered_with_concurrency(
        self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database, tmp_path: Path
    ) -> None:
        path = tmp_path / "people.json"
        path.write_text('[{"_id": 1}]')
        result = invoke(runner, "load", "people", str(path), "--ordered", "--concurrency", "2")
        assert result.exit_code == 2
        assert "concurrently" in result.output
        assert fake_runner.calls == []

    def test_unparsable_file(self, runner: CliRunner, fake_database, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[{")
        result = invoke(runner, "load", "people", str(path))
        assert result.exit_code == 1
        assert "Cannot parse" in result.output

    def test_decode_error_is_reported(
        self, runner: CliRunner, fake_runner: FakeCommandRunner, fake_database, tmp_path: Path
    ) -> None:
        def reject(payload: dict[str, Any], target: str | None) -> dict[str, Any]:
            raise DecodeError("Invalid duration 'soon'", "soon", "a duration")

        fake_runner.on("insertMany", reject)
        path = tmp_path / "people.json"
        path.write_text('[{"_id": 1}]')
        result = invoke(runner, "load", "people", str(path))
        assert result.exit_code == 1
        assert "Error: Invalid duration 'soon'" in result.output


class TestReadDocuments:
    def test_rejects_non_objects(self, tmp_path: Path) -> None:
        path = tmp_path / "numbers.json"
        path.write_text("[1, 2]")
        with pytest.raises(click.ClickException, match="JSON objects only"):
            read_documents(path)
