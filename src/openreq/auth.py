"""Turn an :class:`~openreq.models.AuthConfig` into request injection rules.

The request engine never authenticates; the transport asks this module for
an :class:`AuthResult` once per batch and merges it into every outgoing
request. Supported types mirror the usual OpenAPI credential choices:

* ``none`` -- nothing is injected.
* ``api_key`` -- the key goes into a header or a query parameter.
* ``bearer`` -- ``Authorization: Bearer <token>``.
* ``basic`` -- ``Authorization: Basic <base64(user:password)>``.
"""

from __future__ import annotations

import base64

from openreq.config import resolve_credential
from openreq.exceptions import ConfigError
from openreq.models import AuthConfig


class AuthResult:
    """Headers, query parameters and cookies to inject into requests.

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}
        self.cookies = cookies or {}


def authenticate(auth_config: AuthConfig) -> AuthResult:
    """Resolve credentials for *auth_config*.

    Raises:
        ConfigError: For an unknown auth type, a missing source, or a
            credential source that cannot be read.
    """
    auth_type = auth_config.type

    if auth_type == "none":
        return AuthResult()

    if not auth_config.source:
        raise ConfigError(f"Auth type '{auth_type}' requires a credential 'source'")
    credential = resolve_credential(auth_config.source)

    if auth_type == "api_key":
        if auth_config.location == "query":
            return AuthResult(params={auth_config.name or "api_key": credential})
        if auth_config.location == "header":
            return AuthResult(headers={auth_config.name or "X-API-Key": credential})
        raise ConfigError(
            f"Invalid api_key location '{auth_config.location}': must be 'header' or 'query'"
        )

    if auth_type == "bearer":
        return AuthResult(headers={"Authorization": f"Bearer {credential}"})

    if auth_type == "basic":
        # Either a separate username source, or a "user:password" credential
        if auth_config.username_source:
            username = resolve_credential(auth_config.username_source)
            pair = f"{username}:{credential}"
        else:
            pair = credential
        encoded = base64.b64encode(pair.encode("utf-8")).decode("ascii")
        return AuthResult(headers={"Authorization": f"Basic {encoded}"})

    raise ConfigError(
        f"Unknown auth type '{auth_type}'. Available types: api_key, basic, bearer, none"
    )
