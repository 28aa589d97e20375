"""asyncio twin of :class:`~openreq.client.sync_client.HttpTransport`.

:func:`~openreq.runner.run_batch_async` fans items out through one shared
:class:`AsyncHttpTransport`; auth injection, dry-run, retries and error
mapping behave exactly as in the blocking transport.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from openreq.auth import AuthResult
from openreq.client.response import (
    RETRYABLE_ERRORS,
    build_request_kwargs,
    decode_response,
    dry_run_result,
    retry_delay,
    should_retry,
)
from openreq.exceptions import HttpTransportError
from openreq.models import RequestConfig, ResolvedRequest
from openreq.output import get_output


class AsyncHttpTransport:
    """Asynchronous transport; use it as an async context manager.

    Example::

        async with AsyncHttpTransport(profile.request) as transport:
            results = await run_batch_async(document, items, transport)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        auth: Optional[AuthResult] = None,
        dry_run: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._auth = auth
        self._dry_run = dry_run
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> AsyncHttpTransport:
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, request: ResolvedRequest) -> Any:
        if self._dry_run:
            get_output().info(f"[dry-run] {request.method} {request.url}")
            return dry_run_result(request)
        response = await self._dispatch(build_request_kwargs(request, self._auth))
        return decode_response(response)

    async def _dispatch(self, kwargs: dict[str, Any]) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("AsyncHttpTransport must be used as an async context manager")

        attempts = self._config.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(**kwargs)
            except RETRYABLE_ERRORS as exc:
                if attempt == attempts:
                    raise HttpTransportError(
                        f"Connection failed after {attempts} attempts: {exc}"
                    ) from exc
                await self._wait(attempt, attempts, f"connection error ({exc})")
                continue
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise HttpTransportError(f"Request failed: {exc}") from exc

            if attempt == attempts or not should_retry(response):
                return response
            await self._wait(attempt, attempts, f"HTTP {response.status_code}")

        raise AssertionError("retry loop exited without a response")  # pragma: no cover

    @staticmethod
    async def _wait(attempt: int, attempts: int, reason: str) -> None:
        delay = retry_delay(attempt)
        get_output().debug(f"{reason}; attempt {attempt}/{attempts}, retrying in {delay}s")
        await asyncio.sleep(delay)
