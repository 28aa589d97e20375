"""Tests for openreq.output.

Covers format resolution, colour disabling, the stdout/stderr split,
quiet and verbose filtering, and rendering of responses and tables.
"""

from __future__ import annotations

import json

import pytest

from openreq.models import CatalogEntry, HTTPMethod, SelectOption
from openreq.operations import get_operation
from openreq.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("openreq.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("openreq.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


# ------------------------------------------------------------------ #
# Format and colour
# ------------------------------------------------------------------ #


class TestFormatResolution:
    def test_auto_plain_when_piped(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_rich_on_tty(self, tty):
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_plain_on_tty_without_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert not _should_disable_color()


# ------------------------------------------------------------------ #
# Stream discipline and filtering
# ------------------------------------------------------------------ #


class TestStreams:
    def test_data_on_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("payload")
        out, err = capfd.readouterr()
        assert out == "payload\n"
        assert err == ""

    def test_diagnostics_on_stderr(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, verbose=True)
        mgr.info("note")
        mgr.warning("careful")
        mgr.error("broken")
        mgr.debug("trace")
        out, err = capfd.readouterr()
        assert out == ""
        assert err.splitlines() == ["note", "Warning: careful", "Error: broken", "[debug] trace"]

    def test_quiet_hides_info_only(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("note")
        mgr.warning("careful")
        mgr.error("broken")
        _, err = capfd.readouterr()
        assert "note" not in err
        assert "careful" in err
        assert "broken" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("trace")
        assert capfd.readouterr().err == ""


# ------------------------------------------------------------------ #
# Rendering
# ------------------------------------------------------------------ #


class TestRendering:
    def test_json_response(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"id": 7, "tags": ["a"]})
        assert json.loads(capfd.readouterr().out) == {"id": 7, "tags": ["a"]}

    def test_none_prints_nothing(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response(None)
        assert capfd.readouterr().out == ""

    def test_plain_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"id": 7, "name": "Rex"})
        assert capfd.readouterr().out == "id\t7\nname\tRex\n"

    def test_plain_list_of_dicts(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response([{"a": 1, "b": 2}, "x"])
        assert capfd.readouterr().out == "1\t2\nx\n"

    def test_json_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["Key", "Name"], [["get|/a", "[GET] /a"]])
        assert json.loads(capfd.readouterr().out) == [{"Key": "get|/a", "Name": "[GET] /a"}]

    def test_plain_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["Key", "Name"], [["get|/a", "x"]])
        assert capfd.readouterr().out == "Key\tName\nget|/a\tx\n"

    def test_rich_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["Key"], [["get|/a"]], title="Operations"
        )
        out = capfd.readouterr().out
        assert "Operations" in out
        assert "get|/a" in out


# ------------------------------------------------------------------ #
# Domain renderers
# ------------------------------------------------------------------ #


class TestDomainRenderers:
    def test_catalog(self, capfd, non_tty):
        entry = CatalogEntry(key="get|/pets", method=HTTPMethod.GET, path="/pets", display_label="List pets")
        OutputManager(format=OutputFormat.JSON).print_catalog([entry])
        assert json.loads(capfd.readouterr().out) == [
            {"Key": "get|/pets", "Name": "[GET] List pets", "Description": ""}
        ]

    def test_empty_catalog_notice(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_catalog([])
        out, err = capfd.readouterr()
        assert out == ""
        assert "No operations available." in err

    def test_operation_with_media_types(self, capfd, non_tty, petstore):
        operation = get_operation(petstore, "post|/pets")
        OutputManager(format=OutputFormat.PLAIN).print_operation(
            operation, [SelectOption(name="text/plain", value="text/plain")]
        )
        lines = capfd.readouterr().out.splitlines()
        assert lines[0] == "Key\tRequired\tType\tFormat\tDescription"
        assert lines[1] == "header|X-Request-Id\tyes\tstring\t\t"
        assert lines[2:] == ["Media type\tDescription", "text/plain\t"]

    def test_batch_results_json(self, capfd, non_tty):
        results = [{"id": 1}, {"error": "Missing required parameters: id"}]
        OutputManager(format=OutputFormat.JSON).print_batch_results(results)
        assert json.loads(capfd.readouterr().out) == results

    def test_batch_results_rich(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_batch_results(
            [{"id": 1}, {"error": "boom"}]
        )
        out = capfd.readouterr().out
        assert "Batch results (2)" in out
        assert "error" in out
        assert "boom" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_set_and_get(self):
        mgr = OutputManager(no_color=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_reset_creates_fresh_default(self):
        mgr = OutputManager(no_color=True)
        set_output(mgr)
        reset_output()
        assert get_output() is not mgr
