"""Operation catalog -- a pure projection of a document's path table.

:func:`list_operations` walks ``paths`` in the document's own order (the
insertion order of the source, never sorted) and emits one
:class:`~openreq.models.CatalogEntry` per path + HTTP method pair. The host's
selection surface renders these entries and hands the chosen ``key`` back to
:func:`~openreq.operations.get_operation`.

A document without a usable ``paths`` table yields an empty catalog; that
signals "no operations available yet", not an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from openreq.models import CatalogEntry, HTTPMethod
from openreq.parser.document import Document

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)


def list_operations(document: Document) -> list[CatalogEntry]:
    """Return the ordered catalog of operations declared by *document*.

    Path-item keys that are not HTTP methods (``parameters``, ``summary``,
    ``servers``, extensions) are not operations and are skipped, as are
    path items and operations that are not objects. When a path item spells
    one method twice (``get`` and ``GET``) only the first spelling is listed.

    Example::

        for entry in list_operations(document):
            print(entry.key, entry.name)
        # get|/pets [GET] List all pets
    """
    entries: list[CatalogEntry] = []
    seen: set[str] = set()

    for path, path_item in document.paths.items():
        path_item = document.deref(path_item)
        if not isinstance(path_item, Mapping):
            continue

        for method, operation in path_item.items():
            if not isinstance(method, str) or method.lower() not in _HTTP_METHODS:
                continue
            if not isinstance(operation, Mapping):
                continue

            key = f"{method.lower()}|{path}"
            if key in seen:
                continue
            seen.add(key)

            summary = operation.get("summary")
            description = operation.get("description")
            entries.append(
                CatalogEntry(
                    key=key,
                    method=HTTPMethod(method.lower()),
                    path=str(path),
                    display_label=summary if isinstance(summary, str) and summary else str(path),
                    description=description if isinstance(description, str) else "",
                )
            )

    return entries


def find_entry(document: Document, key: str) -> Optional[CatalogEntry]:
    """Return the catalog entry for *key*, or ``None`` when it is not declared."""
    for entry in list_operations(document):
        if entry.key == key:
            return entry
    return None
