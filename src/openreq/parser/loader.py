"""Load OpenAPI documents from structured data, text, a URL, a file, or stdin.

This module is the normalizer at the front of the pipeline: whatever the
caller supplies becomes one :class:`~openreq.parser.document.Document`.

* A mapping is taken as already-structured data.
* Text is parsed as strict JSON first and, failing that, as YAML.
* ``http://``/``https://`` strings are fetched with :mod:`httpx`.
* ``-`` reads stdin; an existing file path is read from disk.

No further transformation happens here; ``$ref`` pointers are resolved
lazily by the consumers (see :mod:`openreq.parser.resolver`).
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
import yaml

from openreq.exceptions import MissingSchemaError, SchemaParseError
from openreq.models import SchemaSource
from openreq.output import get_output
from openreq.parser.document import Document


def load_document(source: Any) -> Document:
    """Normalize *source* into a :class:`Document`.

    Args:
        source: A mapping, document text, a URL, a file path, or ``"-"``
            for stdin.

    Returns:
        The loaded document.

    Raises:
        MissingSchemaError: If *source* is ``None`` or blank text.
        SchemaParseError: If the content cannot be parsed or is not an object.
    """
    if source is None:
        raise MissingSchemaError("No schema provided")
    if isinstance(source, Mapping):
        return Document(source)
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SchemaParseError(f"Schema is not valid UTF-8: {exc}") from exc
    if not isinstance(source, str):
        raise SchemaParseError(
            f"Unsupported schema source of type {type(source).__name__}"
        )
    if not source.strip():
        raise MissingSchemaError("No schema provided")

    candidate = source.strip()
    if candidate == "-":
        return Document(_load_from_stdin())
    if candidate.startswith(("http://", "https://")) and "\n" not in candidate:
        return Document(_load_from_url(candidate))
    if "\n" not in candidate and _looks_like_file(candidate):
        return Document(_load_from_file(candidate))
    return Document(parse_content(source))


def load_from_settings(settings: SchemaSource) -> Document:
    """Load the document selected by a profile's :class:`SchemaSource`.

    ``input="url"`` fetches ``settings.url`` (a URL or file path);
    ``input="manual"`` parses ``settings.content``.

    Raises:
        MissingSchemaError: If the selected source is empty.
    """
    if settings.input == "url" and settings.url:
        return load_document(settings.url)
    if settings.input == "manual" and settings.content:
        return load_document(settings.content)
    raise MissingSchemaError("No schema provided")


def _looks_like_file(candidate: str) -> bool:
    """Return True when *candidate* names an existing file."""
    try:
        return Path(candidate).is_file()
    except (OSError, ValueError):
        return False


def _load_from_stdin() -> dict[str, Any]:
    """Read a document from stdin."""
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SchemaParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise MissingSchemaError("No input received from stdin")

    return parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document over HTTP(S). The content-type is used as a parse hint."""
    get_output().debug(f"Fetching schema from {url}")
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SchemaParseError(
            f"HTTP {exc.response.status_code} fetching schema from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SchemaParseError(f"Failed to fetch schema from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Read a document from a local ``.json``/``.yaml``/``.yml`` file."""
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaParseError(f"Failed to read schema file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise SchemaParseError(f"Schema file {path} is not valid UTF-8: {exc}") from exc

    if not content.strip():
        raise MissingSchemaError(f"Schema file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix in (".yaml", ".yml"):
        hint = "yaml"

    return parse_content(content, hint=hint)


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse document text as JSON, falling back to YAML.

    Strict JSON is tried first (unless *hint* is ``"yaml"``) because valid
    JSON is also valid YAML but the JSON parser is stricter and faster. A
    ``"json"`` hint does not disable the YAML fallback: servers routinely
    label YAML as JSON.

    Args:
        content: The raw document text.
        hint: Optional format hint (``"json"`` or ``"yaml"``).

    Returns:
        The parsed document object.

    Raises:
        SchemaParseError: If neither parser accepts the content, or the
            result is not an object. The message carries the underlying
            parser errors.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
        else:
            return _ensure_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse OpenAPI schema"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SchemaParseError(msg) from exc

    return _ensure_object(result)


def _ensure_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise SchemaParseError(f"Schema must be a JSON/YAML object (got {got})")
    return result
