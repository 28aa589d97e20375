"""Resolve same-document ``$ref`` pointers on demand.

OpenAPI documents use pointers such as ``#/components/schemas/Pet`` to avoid
repetition. Resolution here is *lazy*: nothing is inlined when a document is
loaded, and a pointer is only walked when a consumer (the parameter resolver,
typically) first dereferences it.

Only document-local pointers (those starting with ``#``) are supported.
Anything else raises :class:`~openreq.exceptions.ReferenceError_`, as does a
pointer whose segments cannot be found.

Public functions:

* :func:`resolve_pointer` -- walk a single pointer string.
* :func:`resolve_node` -- follow a (possibly chained) ``{"$ref": ...}`` node.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openreq.exceptions import ReferenceError_


def resolve_pointer(root: Mapping[str, Any], pointer: str) -> Any:
    """Return the value *pointer* designates inside *root*.

    The pointer is split on ``/``; the leading ``#`` segment is dropped and
    the remaining segments are looked up one after the other. RFC 6901
    escaping (``~1`` for ``/``, ``~0`` for ``~``) is honoured and numeric
    segments index into lists.

    Args:
        root: The whole document.
        pointer: A pointer such as ``"#/components/schemas/Pet"``.

    Returns:
        The exact sub-object found at the pointer (not a copy).

    Raises:
        ReferenceError_: If the pointer is not document-local or a segment
            does not exist.
    """
    if not isinstance(pointer, str) or not pointer.startswith("#"):
        raise ReferenceError_(str(pointer), "only same-document references are supported")

    segments = pointer.split("/")
    segments.pop(0)  # "#"

    current: Any = root
    for raw_segment in segments:
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, Mapping):
            if segment not in current:
                raise ReferenceError_(pointer, f"'{segment}' not found")
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ReferenceError_(pointer, f"invalid array index '{segment}'") from exc
        else:
            raise ReferenceError_(pointer, f"cannot navigate into {type(current).__name__}")

    return current


def is_reference(node: Any) -> bool:
    """Return ``True`` if *node* is a ``{"$ref": "..."}`` mapping."""
    return isinstance(node, Mapping) and isinstance(node.get("$ref"), str)


def resolve_node(root: Mapping[str, Any], node: Any) -> Any:
    """Follow *node* through any chain of ``$ref`` indirections.

    Non-reference nodes are returned unchanged. Only the node itself is
    dereferenced; nested references inside the result are left for the
    caller to resolve when (and if) it needs them.

    Raises:
        ReferenceError_: If a pointer cannot be resolved or the chain loops
            back on itself.
    """
    seen: list[str] = []
    while is_reference(node):
        pointer = node["$ref"]
        if pointer in seen:
            raise ReferenceError_(pointer, "circular reference")
        seen.append(pointer)
        node = resolve_pointer(root, pointer)
    return node
