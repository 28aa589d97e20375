"""CLI tests driven through typer's CliRunner.

Every invocation passes ``-q`` so stderr stays empty on success and the
captured output is just the command's data.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from typer.testing import CliRunner

from openreq import __version__
from openreq.app import app, parse_cli_value, parse_header_options, parse_param_options
from openreq.client import HttpTransport
from openreq.exceptions import InvalidUsageError
from openreq.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MISSING_SCHEMA,
    EXIT_SUCCESS,
    EXIT_TRANSPORT_ERROR,
    EXIT_UNKNOWN_OPERATION,
    EXIT_VALIDATION_ERROR,
)
from openreq.models import ParameterType
from openreq.operations import get_operation
from openreq.parser.document import Document


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def base_args(isolated_config: Path, petstore_path: Path) -> list[str]:
    return ["--schema", str(petstore_path), "--json", "--no-color", "-q"]


def _transport_class(handler: Any) -> type[HttpTransport]:
    """An HttpTransport whose httpx client is backed by *handler*."""

    class _MockedTransport(HttpTransport):
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            kwargs["transport"] = httpx.MockTransport(handler)
            super().__init__(*args, **kwargs)

    return _MockedTransport


# ---------------------------------------------------------------------------
# Option parsing helpers
# ---------------------------------------------------------------------------


class TestOptionParsing:
    def test_parse_cli_value(self) -> None:
        assert parse_cli_value("7") == 7
        assert parse_cli_value("true") is True
        assert parse_cli_value('["a", "b"]') == ["a", "b"]
        assert parse_cli_value("abc") == "abc"

    def test_string_parameter_keeps_raw_text(self) -> None:
        assert parse_cli_value("123", ParameterType.STRING) == "123"
        assert parse_cli_value("true", ParameterType.STRING) == "true"
        assert parse_cli_value("123", ParameterType.INTEGER) == 123

    def test_parse_param_options_by_declared_type(self, petstore: Document) -> None:
        operation = get_operation(petstore, "get|/pets")
        assert parse_param_options(["query|cursor=123", "query|limit=5"], operation) == {
            "query|cursor": "123",
            "query|limit": 5,
        }

    def test_parse_param_options(self) -> None:
        assert parse_param_options(["path|id=7", "query|q=a=b"]) == {
            "path|id": 7,
            "query|q": "a=b",
        }

    def test_parse_param_requires_location(self) -> None:
        with pytest.raises(InvalidUsageError, match="location\\|name=value"):
            parse_param_options(["id=7"])

    def test_parse_header_options(self) -> None:
        assert parse_header_options(["X-Trace: abc", "Accept:text/plain"]) == {
            "X-Trace": "abc",
            "Accept": "text/plain",
        }
        with pytest.raises(InvalidUsageError):
            parse_header_options(["no-colon"])


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert f"openreq {__version__}" in result.output


class TestOperationsCommand:
    def test_lists_catalog(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "operations"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        records = json.loads(result.output)
        assert [r["Key"] for r in records] == [
            "get|/pets",
            "post|/pets",
            "get|/pets/{id}",
            "delete|/pets/{id}",
            "get|/search",
        ]
        assert records[0]["Name"] == "[GET] List pets"

    def test_missing_schema(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--no-color", "operations"])
        assert result.exit_code == EXIT_MISSING_SCHEMA
        assert "No schema provided" in result.output

    def test_schema_from_project_file(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        (isolated_config / "openreq.json").write_text(json.dumps({"schema": str(petstore_path)}))
        result = runner.invoke(app, ["--json", "-q", "operations"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert len(json.loads(result.output)) == 5


class TestParametersCommand:
    def test_lists_parameters(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "parameters", "get|/pets/{id}"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        records = json.loads(result.output)
        assert [r["Key"] for r in records] == ["path|id", "query|verbose"]
        assert records[0]["Required"] == "yes"
        assert records[0]["Type"] == "integer"

    def test_unknown_operation(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "parameters", "get|/cats"])
        assert result.exit_code == EXIT_UNKNOWN_OPERATION
        assert "Unknown operation: get|/cats" in result.output


class TestCallCommand:
    def test_dry_run(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(
            app,
            [*base_args, "--dry-run", "call", "get|/pets/{id}", "-P", "path|id=7", "-P", "query|verbose=true"],
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(result.output)
        assert data["dry_run"] is True
        assert data["method"] == "GET"
        assert data["url"] == "https://api.example.com/pets/7?verbose=true"

    def test_dry_run_with_body(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(
            app,
            [
                *base_args, "-n", "call", "post|/pets",
                "-P", "header|X-Request-Id=r1",
                "-H", "Content-Type: text/xml",
                "-m", "application/json",
                "-d", '{"name": "Rex"}',
            ],
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(result.output)
        assert data["body"] == {"name": "Rex"}
        assert data["headers"] == {"X-Request-Id": "r1", "Content-Type": "application/json"}

    def test_numeric_looking_string_parameter(
        self, runner: CliRunner, base_args: list[str]
    ) -> None:
        result = runner.invoke(
            app, [*base_args, "-n", "call", "get|/pets", "-P", "query|cursor=123", "-P", "query|limit=5"]
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output)["url"] == "https://api.example.com/pets?limit=5&cursor=123"

    def test_base_url_override(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(
            app,
            [*base_args, "--base-url", "http://localhost:9000/", "-n", "call", "get|/pets"],
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output)["url"] == "http://localhost:9000/pets"

    def test_missing_required(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "-n", "call", "get|/pets/{id}"])
        assert result.exit_code == EXIT_VALIDATION_ERROR
        assert "Missing required parameters: id" in result.output

    def test_type_error(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "-n", "call", "get|/pets/{id}", "-P", "path|id=abc"])
        assert result.exit_code == EXIT_VALIDATION_ERROR
        assert "Parameter id must be a number, got string" in result.output

    def test_bad_param_option(self, runner: CliRunner, base_args: list[str]) -> None:
        result = runner.invoke(app, [*base_args, "-n", "call", "get|/pets", "-P", "limit=5"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_sends_request(self, runner: CliRunner, base_args: list[str]) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": 7, "name": "Rex"})

        with patch("openreq.client.HttpTransport", _transport_class(handler)):
            result = runner.invoke(app, [*base_args, "call", "get|/pets/{id}", "-P", "path|id=7"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output) == {"id": 7, "name": "Rex"}
        assert str(seen[0].url) == "https://api.example.com/pets/7"

    def test_transport_error(self, runner: CliRunner, base_args: list[str]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "no such pet"})

        with patch("openreq.client.HttpTransport", _transport_class(handler)):
            result = runner.invoke(app, [*base_args, "call", "get|/pets/{id}", "-P", "path|id=7"])
        assert result.exit_code == EXIT_TRANSPORT_ERROR
        assert "HTTP 404: no such pet" in result.output


class TestBatchCommand:
    def _write_items(self, tmp_path: Path, items: list[Any]) -> str:
        path = tmp_path / "items.json"
        path.write_text(json.dumps(items))
        return str(path)

    def test_continue_on_fail(
        self, runner: CliRunner, base_args: list[str], tmp_path: Path
    ) -> None:
        items_file = self._write_items(
            tmp_path,
            [
                {"operation": "get|/pets/{id}", "parameters": {"path|id": 1}},
                {"operation": "get|/pets/{id}", "parameters": {}},
                {"operation": "get|/pets/{id}", "parameters": {"path|id": 3}},
            ],
        )
        result = runner.invoke(app, [*base_args, "-n", "batch", items_file, "--continue-on-fail"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        results = json.loads(result.output)
        assert results[0]["url"] == "https://api.example.com/pets/1"
        assert results[1] == {"error": "Missing required parameters: id"}
        assert results[2]["url"] == "https://api.example.com/pets/3"

    def test_fail_fast(self, runner: CliRunner, base_args: list[str], tmp_path: Path) -> None:
        items_file = self._write_items(tmp_path, [{"operation": "get|/cats"}])
        result = runner.invoke(app, [*base_args, "-n", "batch", items_file])
        assert result.exit_code == EXIT_UNKNOWN_OPERATION

    def test_items_not_an_array(
        self, runner: CliRunner, base_args: list[str], tmp_path: Path
    ) -> None:
        path = tmp_path / "items.json"
        path.write_text('{"operation": "get|/pets"}')
        result = runner.invoke(app, [*base_args, "-n", "batch", str(path)])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "JSON array" in result.output


class TestProfileCommands:
    def test_save_list_show(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(
            app,
            [
                "--no-color", "-q", "profile", "save", "pets",
                "-s", str(petstore_path),
                "--auth-type", "bearer", "--auth-source", "env:PETS_TOKEN",
            ],
        )
        assert result.exit_code == EXIT_SUCCESS, result.output

        result = runner.invoke(app, ["--json", "-q", "profile", "list"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output) == [{"Name": "pets"}]

        result = runner.invoke(app, ["--json", "-q", "profile", "show", "pets"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        shown = json.loads(result.output)
        assert shown["schema"]["url"] == str(petstore_path)
        assert shown["auth"]["source"] == "env:PETS_TOKEN"

    def test_saved_profile_used(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        runner.invoke(app, ["-q", "profile", "save", "pets", "-s", str(petstore_path)])
        result = runner.invoke(app, ["--json", "-q", "-p", "pets", "operations"])
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert len(json.loads(result.output)) == 5

    def test_show_missing(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--no-color", "profile", "show", "nope"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Profile 'nope' not found" in result.output
