"""Request encoding and response decoding shared by both transports.

A :class:`~openreq.models.ResolvedRequest` is transport-agnostic: a method,
a finished URL, headers, and a body tagged with its media type. This module
turns it into ``httpx`` keyword arguments, decides when an attempt is worth
retrying, and turns the final :class:`httpx.Response` into either decoded
data or an :class:`~openreq.exceptions.HttpTransportError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from openreq.assembler import encode_component
from openreq.auth import AuthResult
from openreq.exceptions import HttpTransportError
from openreq.models import ResolvedRequest

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"

# Failures where the request may never have reached the server
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


def build_request_kwargs(
    request: ResolvedRequest, auth: Optional[AuthResult] = None
) -> dict[str, Any]:
    """Keyword arguments for ``httpx.Client.request``.

    Header precedence, lowest first: ``Accept: application/json``, auth
    headers, then the request's own headers (names compared
    case-insensitively). Auth cookies are appended to any ``Cookie`` header
    the request already carries. Auth query parameters are appended to the
    URL after the assembled query string, encoded the same way; the
    assembled parameters are never re-encoded or dropped.

    Bodies: text and bytes are sent verbatim, a mapping for a form media type
    is form-encoded, and anything else is serialised as JSON.
    """
    headers: dict[str, str] = {"Accept": "application/json"}
    if auth is not None:
        headers.update(auth.headers)
    overridden = {name.lower() for name in request.headers}
    headers = {name: value for name, value in headers.items() if name.lower() not in overridden}
    headers.update(request.headers)

    if auth is not None and auth.cookies:
        extra = "; ".join(f"{name}={value}" for name, value in auth.cookies.items())
        cookie_header = next((name for name in headers if name.lower() == "cookie"), "Cookie")
        headers[cookie_header] = f"{headers[cookie_header]}; {extra}" if cookie_header in headers else extra

    url = request.url
    if auth is not None and auth.params:
        url = append_query(url, auth.params)
    kwargs: dict[str, Any] = {"method": request.method, "url": url, "headers": headers}

    body = request.body
    if body is None:
        return kwargs
    media_type = (request.body_media_type or "").partition(";")[0].strip().lower()
    if isinstance(body, (str, bytes)):
        kwargs["content"] = body
    elif media_type == FORM_MEDIA_TYPE and isinstance(body, Mapping):
        kwargs["data"] = dict(body)
    else:
        kwargs["content"] = json.dumps(body)
    return kwargs


def append_query(url: str, params: Mapping[str, Any]) -> str:
    """Add *params* to *url*, after any query string it already has."""
    extra = "&".join(
        f"{encode_component(name)}={encode_component(value)}" for name, value in params.items()
    )
    base, hash_sign, fragment = url.partition("#")
    separator = "&" if "?" in base else "?"
    if base.endswith(("?", "&")):
        separator = ""
    return f"{base}{separator}{extra}{hash_sign}{fragment}"


def retry_delay(attempt: int) -> int:
    """Backoff in seconds after the *attempt*-th try: 1, 2, 4, ..."""
    return 2 ** (attempt - 1)


def should_retry(response: httpx.Response) -> bool:
    """Only server-side failures are retried; 4xx answers are final."""
    return response.status_code >= 500


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        for field in ("message", "error", "detail"):
            if payload.get(field):
                return str(payload[field])
        return ""
    return str(payload)


def raise_for_status(response: httpx.Response) -> None:
    """Raise :class:`HttpTransportError` carrying the status for 4xx/5xx answers."""
    status = response.status_code
    if status < 400:
        return
    detail = _error_detail(response)
    message = f"HTTP {status}: {detail}" if detail else f"HTTP {status}"
    raise HttpTransportError(message, status_code=status)


def extract_response_data(response: httpx.Response) -> Any:
    """JSON when the body parses as JSON, text otherwise, ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def decode_response(response: httpx.Response) -> Any:
    """:func:`raise_for_status`, then :func:`extract_response_data`."""
    raise_for_status(response)
    return extract_response_data(response)


def dry_run_result(request: ResolvedRequest) -> dict[str, Any]:
    """What a dry run returns in place of a response body."""
    return {
        "dry_run": True,
        "method": request.method,
        "url": request.url,
        "headers": dict(request.headers),
        "body": request.body,
    }
