"""The normalized, read-only in-memory form of an OpenAPI/Swagger document.

A :class:`Document` is an explicit handle passed to every consumer (catalog,
parameter resolver, assembler) instead of process-wide state. It copies
its input on construction into a frozen tree (objects become read-only
mappings, arrays become tuples), so one loaded document can be shared across
every item of a batch without locking.

The raw tree is schema-agnostic (whatever JSON/YAML produced). The typed
accessor helpers :func:`as_mapping`, :func:`as_list` and :func:`as_str` turn
blind field access into explicit shape checks that raise
:class:`~openreq.exceptions.SchemaParseError` naming the offending location.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional

from openreq.exceptions import SchemaParseError
from openreq.parser.resolver import resolve_node, resolve_pointer


def freeze(value: Any) -> Any:
    """Copy *value* into an immutable tree.

    Mappings become :class:`~types.MappingProxyType` views over fresh dicts and
    lists become tuples, recursively. Scalars are returned unchanged.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def as_mapping(value: Any, where: str, default: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
    """Return *value* if it is a mapping.

    ``None`` yields *default* (an empty mapping when not given). Any other
    shape raises :class:`SchemaParseError`.
    """
    if value is None:
        return default if default is not None else MappingProxyType({})
    if not isinstance(value, Mapping):
        raise SchemaParseError(f"Expected an object at {where}, got {type(value).__name__}")
    return value


def as_list(value: Any, where: str) -> list[Any]:
    """Return *value* as a list if it is an array; ``None`` yields an empty list."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise SchemaParseError(f"Expected an array at {where}, got {type(value).__name__}")
    return list(value)


def as_str(value: Any, where: str) -> Optional[str]:
    """Return *value* if it is a string; ``None`` passes through."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise SchemaParseError(f"Expected a string at {where}, got {type(value).__name__}")
    return value


class Document:
    """Immutable handle over one parsed OpenAPI document.

    Args:
        data: The structured document (as produced by
            :func:`~openreq.parser.loader.parse_content` or supplied
            directly). It is copied; later changes to *data* are not
            seen by the document.

    Raises:
        SchemaParseError: If *data* is not a mapping.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        if not isinstance(data, Mapping):
            raise SchemaParseError(
                f"Document must be a JSON/YAML object (got {type(data).__name__})"
            )
        object.__setattr__(self, "_data", freeze(data))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Document is read-only")

    def __repr__(self) -> str:
        return f"Document(paths={len(self.paths)}, servers={len(self.servers)})"

    @property
    def raw(self) -> Mapping[str, Any]:
        """The whole document as a read-only mapping."""
        return self._data

    @property
    def servers(self) -> list[Mapping[str, Any]]:
        servers = self._data.get("servers")
        if not isinstance(servers, tuple):
            return []
        return [server for server in servers if isinstance(server, Mapping)]

    @property
    def base_url(self) -> str:
        """``servers[0].url``, or ``""`` when no server is declared."""
        servers = self._data.get("servers")
        if not isinstance(servers, tuple) or not servers:
            return ""
        first = servers[0]
        if not isinstance(first, Mapping):
            return ""
        return as_str(first.get("url"), "servers[0].url") or ""

    @property
    def paths(self) -> Mapping[str, Any]:
        """The path table; empty when absent or not a mapping."""
        paths = self._data.get("paths")
        if not isinstance(paths, Mapping):
            return MappingProxyType({})
        return paths

    @property
    def components(self) -> Mapping[str, Any]:
        components = self._data.get("components")
        if not isinstance(components, Mapping):
            return MappingProxyType({})
        return components

    def resolve(self, pointer: str) -> Any:
        """Resolve a ``#/...`` pointer against this document."""
        return resolve_pointer(self._data, pointer)

    def deref(self, node: Any) -> Any:
        """Follow *node* through any ``$ref`` chain; other nodes pass through."""
        return resolve_node(self._data, node)
