"""Assemble a transport-ready request from an operation and caller values.

:func:`assemble_request` is a pure function of an
:class:`~openreq.models.OperationDefinition`, the caller's parameter values
(keyed ``location|name``), the selected body media type and payload, custom
headers, and the document's base URL. The steps run in a fixed order:

1. Required parameters -- every missing one is collected into a single
   :class:`~openreq.exceptions.RequiredParameterError`.
2. Type validation -- the first parameter whose value does not match its
   declared type raises :class:`~openreq.exceptions.TypeValidationError`.
3. Path substitution of ``{name}`` placeholders.
4. Query-string construction in declaration order.
5. Body selection.
6. Header merge; the computed ``Content-Type`` always wins over a custom one.

Steps 1-2 are the only validation gates. After them assembly can only fail
on a malformed path template (:class:`~openreq.exceptions.MalformedPathError`).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Iterable, Optional
from urllib.parse import quote

from openreq.exceptions import (
    MalformedPathError,
    RequiredParameterError,
    TypeValidationError,
)
from openreq.models import (
    BatchItem,
    OperationDefinition,
    ParameterDescriptor,
    ParameterLocation,
    ParameterType,
    ResolvedRequest,
)
from openreq.operations import get_operation
from openreq.output import get_output
from openreq.parser.document import Document

# Characters encodeURIComponent leaves alone, beyond the RFC 3986 unreserved set
_URI_COMPONENT_SAFE = "!~*'()"


def build_request(
    document: Document, item: BatchItem, base_url: Optional[str] = None
) -> ResolvedRequest:
    """Resolve ``item.operation`` against *document* and assemble its request.

    *base_url* overrides the document's ``servers[0].url`` when given.
    """
    operation = get_operation(document, item.operation)
    return assemble_request(
        operation,
        item.parameters,
        base_url=document.base_url if base_url is None else base_url.rstrip("/"),
        body_media_type=item.body_media_type,
        body=item.body,
        headers=item.headers,
    )


def assemble_request(
    operation: OperationDefinition,
    values: Optional[Mapping[str, Any]] = None,
    *,
    base_url: str = "",
    body_media_type: Optional[str] = None,
    body: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> ResolvedRequest:
    """Validate *values* and build the request for *operation*.

    Args:
        operation: The selected operation.
        values: Parameter values keyed by ``"<location>|<name>"``.
        base_url: Prefix for the URL, normally ``servers[0].url``. When
            empty the URL is just the path and query string.
        body_media_type: Media type the caller chose for the body.
        body: The body payload, passed through unchanged.
        headers: Custom headers, copied verbatim.

    Returns:
        A fresh :class:`~openreq.models.ResolvedRequest`.

    Raises:
        RequiredParameterError: If any required parameter is missing.
        TypeValidationError: If a value does not match its declared type.
        MalformedPathError: If the path template has an unterminated ``{``.
    """
    values = values or {}
    parameters = operation.parameters

    validate_required_parameters(parameters, values)
    for param in parameters:
        value = values.get(param.key)
        if not is_missing(value):
            validate_parameter_type(param, value)

    path_values = {
        param.name: values.get(param.key)
        for param in parameters
        if param.location == ParameterLocation.PATH
    }
    resolved_path = substitute_path(operation.path, path_values)

    query_pairs = [
        (param.name, values.get(param.key))
        for param in parameters
        if param.location == ParameterLocation.QUERY
    ]
    query_string = build_query_string(query_pairs)

    selected_body, media_type = select_body(operation, body_media_type, body)

    merged_headers = merge_headers(parameters, values, headers, media_type)

    return ResolvedRequest(
        method=operation.method.value.upper(),
        url=f"{base_url}{resolved_path}{query_string}",
        headers=merged_headers,
        body=selected_body,
        body_media_type=media_type,
    )


# ------------------------------------------------------------------ #
# Validation
# ------------------------------------------------------------------ #


def is_missing(value: Any) -> bool:
    """``None``, ``""`` and empty lists/mappings count as not supplied.

    ``0`` and ``False`` are real values.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) == 0
    return False


def validate_required_parameters(
    parameters: Iterable[ParameterDescriptor], values: Mapping[str, Any]
) -> None:
    """Raise one :class:`RequiredParameterError` naming every missing parameter."""
    missing = [
        param.name
        for param in parameters
        if param.required and is_missing(values.get(param.key))
    ]
    if missing:
        raise RequiredParameterError(missing)


def kind_of(value: Any) -> str:
    """Name the JSON kind of *value* for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def validate_parameter_type(param: ParameterDescriptor, value: Any) -> None:
    """Check *value* against *param*'s declared type and constraints.

    Every violation for this one parameter is reported together. Constraint
    checks (``enum``, ``minimum``, ``maximum``, ``pattern``) only run once
    the kind matches. Integers and floats are not told apart.

    Raises:
        TypeValidationError: If any check fails.
    """
    problems = _kind_problems(param, value)
    if not problems:
        problems = _constraint_problems(param, value)
    if problems:
        raise TypeValidationError(param.name, problems)


def _kind_problems(param: ParameterDescriptor, value: Any) -> list[str]:
    declared = param.type
    actual = kind_of(value)

    if declared is None:
        return []

    if declared == ParameterType.STRING:
        if not isinstance(value, str):
            return [f"must be a string, got {actual}"]
        if param.format == "date-time" and not _is_timestamp(value):
            return ["must be a valid date-time string"]
        return []

    if declared in (ParameterType.NUMBER, ParameterType.INTEGER):
        if actual != "number":
            return [f"must be a number, got {actual}"]
        return []

    if declared == ParameterType.BOOLEAN:
        if not isinstance(value, bool):
            return [f"must be a boolean, got {actual}"]
        return []

    if declared == ParameterType.ARRAY:
        if not isinstance(value, (list, tuple)):
            return [f"must be an array, got {actual}"]
        return []

    # ParameterType.OBJECT
    if not isinstance(value, Mapping):
        return [f"must be an object, got {actual}"]
    return []


def _is_timestamp(value: str) -> bool:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _constraint_problems(param: ParameterDescriptor, value: Any) -> list[str]:
    problems: list[str] = []

    if param.enum_values is not None and value not in param.enum_values:
        allowed = ", ".join(format_value(v) for v in param.enum_values)
        problems.append(f"must be one of {allowed}")

    if kind_of(value) == "number":
        if param.minimum is not None and value < param.minimum:
            problems.append(f"must be >= {format_value(param.minimum)}")
        if param.maximum is not None and value > param.maximum:
            problems.append(f"must be <= {format_value(param.maximum)}")

    if param.pattern is not None and isinstance(value, str):
        try:
            matched = re.search(param.pattern, value) is not None
        except re.error:
            get_output().debug(f"Ignoring invalid pattern for parameter {param.name}")
            matched = True
        if not matched:
            problems.append(f"must match pattern {param.pattern}")

    return problems


# ------------------------------------------------------------------ #
# Encoding
# ------------------------------------------------------------------ #


def format_value(value: Any) -> str:
    """Render a scalar the way it appears in a URL or header.

    Booleans are ``true``/``false`` and integral floats drop their ``.0``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def substitute_path(template: str, values: Mapping[str, Any]) -> str:
    """Replace each ``{name}`` in *template* with ``values[name]``.

    A placeholder without a supplied value becomes the empty string.
    ``{}`` has no name and is kept literally.

    Raises:
        MalformedPathError: If a ``{`` is never closed.
    """
    parts: list[str] = []
    pos = 0
    while True:
        start = template.find("{", pos)
        if start == -1:
            parts.append(template[pos:])
            break
        end = template.find("}", start + 1)
        if end == -1:
            raise MalformedPathError(
                f"Unterminated placeholder at position {start} in path {template}"
            )
        parts.append(template[pos:start])
        name = template[start + 1:end]
        if not name:
            parts.append("{}")
        else:
            value = values.get(name)
            parts.append("" if is_missing(value) else format_value(value))
        pos = end + 1
    return "".join(parts)


def encode_component(value: Any) -> str:
    """Percent-encode like ``encodeURIComponent`` (space becomes ``%20``)."""
    return quote(format_value(value), safe=_URI_COMPONENT_SAFE)


def build_query_string(pairs: Iterable[tuple[str, Any]]) -> str:
    """Build ``?k=v&...`` from ordered ``(name, value)`` pairs.

    Missing values are skipped. A sequence emits one pair per scalar element;
    non-scalar elements, and non-scalar values, are dropped. Returns ``""``
    when nothing is emitted.
    """
    output = get_output()
    parts: list[str] = []

    for key, value in pairs:
        if is_missing(value):
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if _is_scalar(item):
                    parts.append(f"{encode_component(key)}={encode_component(item)}")
                else:
                    output.debug(f"Dropping non-scalar element of query parameter {key}")
        elif _is_scalar(value):
            parts.append(f"{encode_component(key)}={encode_component(value)}")
        else:
            output.debug(f"Dropping non-scalar query parameter {key}")

    return f"?{'&'.join(parts)}" if parts else ""


def select_body(
    operation: OperationDefinition, media_type: Optional[str], body: Any
) -> tuple[Any, Optional[str]]:
    """Return ``(body, media_type)`` when the selection is declared, else ``(None, None)``."""
    if operation.request_body is None or not media_type:
        return None, None
    if body is None or body == "":
        return None, None
    if operation.request_body.get(media_type) is None:
        get_output().debug(
            f"Media type {media_type} is not declared by {operation.key}; sending no body"
        )
        return None, None
    return body, media_type


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set *name*, replacing any existing header that differs only in case."""
    for existing in [k for k in headers if k.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def _header_value(value: Any) -> Optional[str]:
    if _is_scalar(value):
        return format_value(value)
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value if _is_scalar(v))
    return None


def merge_headers(
    parameters: Iterable[ParameterDescriptor],
    values: Mapping[str, Any],
    custom_headers: Optional[Mapping[str, str]],
    media_type: Optional[str],
) -> dict[str, str]:
    """Combine header/cookie parameters, custom headers and ``Content-Type``.

    Later sources override earlier ones (names compared case-insensitively):
    header parameters, then the ``Cookie`` built from cookie parameters, then
    custom headers, then ``Content-Type`` for the selected body.
    """
    headers: dict[str, str] = {}
    cookies: list[str] = []

    for param in parameters:
        value = values.get(param.key)
        if is_missing(value):
            continue
        rendered = _header_value(value)
        if rendered is None:
            continue
        if param.location == ParameterLocation.HEADER:
            _set_header(headers, param.name, rendered)
        elif param.location == ParameterLocation.COOKIE:
            cookies.append(f"{param.name}={rendered}")

    if cookies:
        _set_header(headers, "Cookie", "; ".join(cookies))

    for name, value in (custom_headers or {}).items():
        _set_header(headers, name, value)

    if media_type:
        _set_header(headers, "Content-Type", media_type)

    return headers
