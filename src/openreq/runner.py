"""Batch execution: assemble and dispatch one request per input item.

The document is loaded once per batch and shared, read-only, by every item.

:func:`run_batch` is the reference scheduling model: items are processed
strictly one after another, so item *N+1* is not assembled until item *N*
has been dispatched or has failed. On failure the whole batch aborts with
that error, unless ``continue_on_fail`` is set; then the failure becomes an
``{"error": message}`` result at that item's index and processing goes on.

:func:`run_batch_async` fans items out over a bounded pool
(``max_concurrency``) and joins results back into input order, never
completion order. Aborting works the same way: once an item fails, no
queued item starts, and the failure with the lowest input index is raised.
A malformed item is a per-item failure like any other.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Awaitable, Optional, Protocol, Union

from openreq.assembler import build_request
from openreq.exceptions import InvalidUsageError, OpenreqError
from openreq.models import BatchItem, ResolvedRequest
from openreq.output import get_output
from openreq.parser.document import Document


class Transport(Protocol):
    def send(self, request: ResolvedRequest) -> Any: ...


class AsyncTransport(Protocol):
    def send(self, request: ResolvedRequest) -> Awaitable[Any]: ...


ItemLike = Union[BatchItem, dict[str, Any]]


def coerce_item(index: int, item: ItemLike) -> BatchItem:
    """Validate one raw item dict into a :class:`BatchItem` model.

    Raises:
        InvalidUsageError: If the item is malformed.
    """
    if isinstance(item, BatchItem):
        return item
    try:
        return BatchItem.model_validate(item)
    except ValueError as exc:
        raise InvalidUsageError(f"Invalid batch item {index}: {exc}") from exc


def _error_result(index: int, exc: OpenreqError) -> dict[str, Any]:
    get_output().debug(f"Item {index} failed: {exc}")
    return {"error": str(exc)}


def run_batch(
    document: Document,
    items: Iterable[ItemLike],
    transport: Transport,
    continue_on_fail: bool = False,
    base_url: Optional[str] = None,
) -> list[Any]:
    """Run *items* sequentially against *document* through *transport*.

    Args:
        document: The loaded document, shared by every item.
        items: Batch items (models or dicts in the :class:`BatchItem` shape).
        transport: Anything with ``send(ResolvedRequest)``.
        continue_on_fail: Convert per-item failures into error results.
        base_url: Override for the document's ``servers[0].url``.

    Returns:
        One output per item, in input order.

    Raises:
        OpenreqError: The first item failure when ``continue_on_fail`` is off.
    """
    outputs: list[Any] = []
    for index, item in enumerate(items):
        try:
            request = build_request(document, coerce_item(index, item), base_url=base_url)
            outputs.append(transport.send(request))
        except OpenreqError as exc:
            if not continue_on_fail:
                raise
            outputs.append(_error_result(index, exc))
    return outputs


async def run_batch_async(
    document: Document,
    items: Iterable[ItemLike],
    transport: AsyncTransport,
    continue_on_fail: bool = False,
    base_url: Optional[str] = None,
    max_concurrency: int = 4,
) -> list[Any]:
    """Run *items* with at most *max_concurrency* in flight.

    Results are placed by input index. Without ``continue_on_fail`` the
    first failure stops the batch: items still waiting for a slot are never
    assembled or sent, the ones already in flight settle, and the failure
    of the lowest-indexed failing item is raised.
    """
    if max_concurrency < 1:
        raise InvalidUsageError("max_concurrency must be at least 1")

    batch = list(items)
    semaphore = asyncio.Semaphore(max_concurrency)
    outputs: list[Any] = [None] * len(batch)
    failures: dict[int, OpenreqError] = {}

    async def worker(index: int, item: ItemLike) -> None:
        async with semaphore:
            if failures:
                return
            try:
                request = build_request(document, coerce_item(index, item), base_url=base_url)
                outputs[index] = await transport.send(request)
            except OpenreqError as exc:
                if continue_on_fail:
                    outputs[index] = _error_result(index, exc)
                else:
                    failures[index] = exc

    await asyncio.gather(*(worker(i, item) for i, item in enumerate(batch)))

    if failures:
        raise failures[min(failures)]
    return outputs
