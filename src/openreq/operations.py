"""Resolve one operation's parameter and request-body contracts.

Given a :class:`~openreq.parser.document.Document` and a ``method|path``
key from the catalog, :func:`get_operation` returns an
:class:`~openreq.models.OperationDefinition`:

* parameters in declaration order, each with its location and type
  constraints (read from ``type`` for Swagger 2 style documents or from
  ``schema`` for OpenAPI 3);
* the request body expanded to one media-type entry per declared content
  type, including media types that declare no schema.

``$ref`` pointers on parameter objects, schemas and request bodies are
resolved here, lazily, the first time they are needed.

:func:`parameter_options` and :func:`request_body_options` project the
definition into the ``name``/``value`` options a selection surface shows.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from openreq.exceptions import SchemaParseError, UnknownOperationError
from openreq.models import (
    HTTPMethod,
    MediaTypeDescriptor,
    OperationDefinition,
    ParameterDescriptor,
    ParameterLocation,
    ParameterType,
    RequestBodyDescriptor,
    SelectOption,
)
from openreq.output import get_output
from openreq.parser.document import Document, as_list, as_mapping

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_PARAMETER_TYPES = frozenset(t.value for t in ParameterType)


def split_operation_key(key: str) -> tuple[str, str]:
    """Split ``"get|/pets/{id}"`` into ``("get", "/pets/{id}")``.

    Raises:
        UnknownOperationError: If *key* has no ``|`` separator or an
            unrecognised method.
    """
    method, sep, path = key.partition("|")
    method = method.strip().lower()
    if not sep or method not in _HTTP_METHODS or not path:
        raise UnknownOperationError(key)
    return method, path


def get_operation(document: Document, key: str) -> OperationDefinition:
    """Look up and describe the operation selected by *key*.

    Args:
        document: The loaded document.
        key: ``"<lower-case-method>|<path-template>"``.

    Returns:
        The operation's definition with its parameters and request body.

    Raises:
        UnknownOperationError: If the path or the method is not declared.
        SchemaParseError: If the operation object has the wrong shape or
            declares the same ``(in, name)`` pair twice.
        ReferenceError_: If a ``$ref`` in the operation cannot be resolved.
    """
    method, path = split_operation_key(key)

    path_item = document.deref(document.paths.get(path))
    if not isinstance(path_item, Mapping):
        raise UnknownOperationError(key)

    operation = _find_method(path_item, method)
    if not isinstance(operation, Mapping):
        raise UnknownOperationError(key)

    where = f"paths.{path}.{method}"
    summary = operation.get("summary")
    description = operation.get("description")
    operation_id = operation.get("operationId")

    return OperationDefinition(
        method=HTTPMethod(method),
        path=path,
        summary=summary if isinstance(summary, str) else None,
        description=description if isinstance(description, str) else None,
        operation_id=operation_id if isinstance(operation_id, str) else None,
        parameters=extract_parameters(document, operation.get("parameters"), where),
        request_body=extract_request_body(document, operation.get("requestBody"), where),
    )


def _find_method(path_item: Mapping[str, Any], method: str) -> Any:
    """The first declaration of *method*, compared case-insensitively."""
    for candidate, operation in path_item.items():
        if not isinstance(candidate, str) or not isinstance(operation, Mapping):
            continue
        if candidate.lower() == method:
            return operation
    return None


def extract_parameters(
    document: Document, raw_parameters: Any, where: str
) -> list[ParameterDescriptor]:
    """Convert raw parameter objects into :class:`ParameterDescriptor` models.

    Order is preserved. Parameters whose ``in`` is not one of path, query,
    header or cookie (e.g. Swagger 2 ``body``/``formData``) are skipped.
    """
    output = get_output()
    parameters: list[ParameterDescriptor] = []
    seen: set[tuple[str, str]] = set()

    for index, raw in enumerate(as_list(raw_parameters, f"{where}.parameters")):
        param_where = f"{where}.parameters[{index}]"
        param = as_mapping(document.deref(raw), param_where)

        name = param.get("name")
        if not isinstance(name, str) or not name:
            raise SchemaParseError(f"Parameter at {param_where} has no name")

        try:
            location = ParameterLocation(param.get("in"))
        except ValueError:
            output.debug(f"Skipping parameter '{name}' with location {param.get('in')!r}")
            continue

        identity = (location.value, name)
        if identity in seen:
            raise SchemaParseError(
                f"Duplicate parameter '{name}' in {location.value} at {where}"
            )
        seen.add(identity)

        # Swagger 2 puts constraints on the parameter, OpenAPI 3 on its schema
        schema = document.deref(param.get("schema"))
        constraints: Mapping[str, Any] = schema if isinstance(schema, Mapping) else param
        if "type" in param:
            constraints = param

        description = param.get("description")
        parameters.append(
            ParameterDescriptor(
                name=name,
                location=location,
                required=bool(param.get("required", False)),
                description=description if isinstance(description, str) else None,
                type=_extract_type(constraints.get("type")),
                format=_str_or_none(constraints.get("format")),
                enum_values=_list_or_none(constraints.get("enum")),
                minimum=_number_or_none(constraints.get("minimum")),
                maximum=_number_or_none(constraints.get("maximum")),
                pattern=_str_or_none(constraints.get("pattern")),
                default=constraints.get("default"),
            )
        )

    return parameters


def _extract_type(type_value: Any) -> Optional[ParameterType]:
    """Read a declared type; 3.1 type arrays yield their first non-null entry."""
    if isinstance(type_value, (list, tuple)):
        non_null = [t for t in type_value if t != "null"]
        type_value = non_null[0] if non_null else None
    if isinstance(type_value, str) and type_value in _PARAMETER_TYPES:
        return ParameterType(type_value)
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _list_or_none(value: Any) -> Optional[list[Any]]:
    return list(value) if isinstance(value, (list, tuple)) else None


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def extract_request_body(
    document: Document, raw_body: Any, where: str
) -> Optional[RequestBodyDescriptor]:
    """Expand ``requestBody.content`` into one entry per media type.

    Returns ``None`` when the operation declares no request body.
    """
    if raw_body is None:
        return None

    body = as_mapping(document.deref(raw_body), f"{where}.requestBody")
    content = as_mapping(body.get("content"), f"{where}.requestBody.content")

    entries: list[MediaTypeDescriptor] = []
    for media_type, media in content.items():
        media = document.deref(media)
        schema = media.get("schema") if isinstance(media, Mapping) else None
        schema = document.deref(schema)
        entries.append(
            MediaTypeDescriptor(
                media_type=str(media_type),
                schema=dict(schema) if isinstance(schema, Mapping) else None,
            )
        )

    description = body.get("description")
    return RequestBodyDescriptor(
        required=bool(body.get("required", False)),
        description=description if isinstance(description, str) else None,
        content=entries,
    )


def parameter_options(operation: OperationDefinition) -> list[SelectOption]:
    """Selectable parameters; each value is the ``location|name`` key callers supply."""
    return [
        SelectOption(name=param.name, value=param.key, description=param.description or "")
        for param in operation.parameters
    ]


def request_body_options(operation: OperationDefinition) -> list[SelectOption]:
    """Selectable request-body media types, in declaration order."""
    if operation.request_body is None:
        return []
    options: list[SelectOption] = []
    for entry in operation.request_body.content:
        description = (entry.schema_ or {}).get("description")
        options.append(
            SelectOption(
                name=entry.media_type,
                value=entry.media_type,
                description=description if isinstance(description, str) else "",
            )
        )
    return options
