"""Blocking transport for :class:`~openreq.models.ResolvedRequest` objects.

:class:`HttpTransport` is the transport the CLI and :func:`~openreq.runner.run_batch`
use. It sits on an :class:`httpx.Client` and layers on:

- auth artifacts from :func:`~openreq.auth.authenticate`, merged into every request;
- a dry-run switch that reports the request on stderr and sends nothing;
- retries with exponential backoff for 5xx answers and network failures;
- :class:`~openreq.exceptions.HttpTransportError` for anything that fails.

See :class:`~openreq.client.async_client.AsyncHttpTransport` for the
asyncio twin.
"""

from __future__ import annotations

import time
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


class HttpTransport:
    """Synchronous transport; use it as a context manager.

    Args:
        config: Timeout, TLS verification and retry settings.
        auth: Headers, query parameters and cookies to inject.
        dry_run: Report requests instead of sending them.
        transport: Custom ``httpx`` transport, e.g. :class:`httpx.MockTransport`.

    Example::

        with HttpTransport(profile.request, auth=authenticate(profile.auth)) as transport:
            pets = transport.send(request)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        auth: Optional[AuthResult] = None,
        dry_run: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._auth = auth
        self._dry_run = dry_run
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> HttpTransport:
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def send(self, request: ResolvedRequest) -> Any:
        """Send *request* and return its decoded body.

        Raises:
            HttpTransportError: For a 4xx/5xx answer (5xx only once retries
                are used up) or a network failure on the last attempt.
        """
        if self._dry_run:
            get_output().info(f"[dry-run] {request.method} {request.url}")
            return dry_run_result(request)
        return decode_response(self._dispatch(build_request_kwargs(request, self._auth)))

    def _dispatch(self, kwargs: dict[str, Any]) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("HttpTransport must be used as a context manager")

        attempts = self._config.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._client.request(**kwargs)
            except RETRYABLE_ERRORS as exc:
                if attempt == attempts:
                    raise HttpTransportError(
                        f"Connection failed after {attempts} attempts: {exc}"
                    ) from exc
                self._wait(attempt, attempts, f"connection error ({exc})")
                continue
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise HttpTransportError(f"Request failed: {exc}") from exc

            if attempt == attempts or not should_retry(response):
                return response
            self._wait(attempt, attempts, f"HTTP {response.status_code}")

        raise AssertionError("retry loop exited without a response")  # pragma: no cover

    @staticmethod
    def _wait(attempt: int, attempts: int, reason: str) -> None:
        delay = retry_delay(attempt)
        get_output().debug(f"{reason}; attempt {attempt}/{attempts}, retrying in {delay}s")
        time.sleep(delay)
