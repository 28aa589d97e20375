"""Shared test fixtures for openreq.

Provides the petstore document fixtures, output isolation, and config
isolation. Discovered automatically by pytest.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from openreq.output import OutputFormat, OutputManager, reset_output, set_output
from openreq.parser.document import Document


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet plain OutputManager and drop it after every test.

    The manager caches sys.stdout/sys.stderr; CliRunner swaps those streams,
    so a stale manager would write to closed files.
    """
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw petstore document dict."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def petstore(petstore_raw: dict[str, Any]) -> Document:
    """Normalized petstore document."""
    return Document(petstore_raw)


@pytest.fixture
def petstore_path() -> Path:
    return FIXTURES_DIR / "petstore.json"


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at tmp_path, clear OPENREQ_* vars, and chdir there."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr("openreq.config._is_xdg_platform", lambda: True)
    for var in ["OPENREQ_PROFILE", "OPENREQ_SCHEMA", "OPENREQ_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
