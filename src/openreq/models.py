"""Canonical Pydantic models shared across all openreq modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`SchemaSource`, :class:`AuthConfig`, :class:`RequestConfig`, and
    :class:`Profile`.

**Descriptor models** -- derived views over a
:class:`~openreq.parser.document.Document`, produced by the catalog and the
parameter resolver:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`ParameterType`,
    :class:`ParameterDescriptor`, :class:`MediaTypeDescriptor`,
    :class:`RequestBodyDescriptor`, :class:`OperationDefinition`,
    :class:`CatalogEntry`, and :class:`SelectOption`.

**Execution models** -- inputs and outputs of one request assembly:
    :class:`BatchItem` and :class:`ResolvedRequest`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Config ---


class SchemaSource(BaseModel):
    """Where the OpenAPI document comes from.

    ``input`` selects between fetching ``url`` and parsing ``content``
    (JSON or YAML text pasted into the profile).
    """

    input: str = Field(default="url", description="Schema source: url or manual")
    url: Optional[str] = Field(default=None, description="URL or file path of the document")
    content: Optional[str] = Field(default=None, description="Inline document text")


class AuthConfig(BaseModel):
    """Credential injection rules applied by the transport.

    Example::

        AuthConfig(type="api_key", name="X-API-Key", source="env:PETS_KEY")
    """

    type: str = Field(default="none", description="Auth type: none, api_key, bearer, basic")
    name: Optional[str] = Field(
        default=None, description="Header or query parameter name for api_key auth"
    )
    location: str = Field(default="header", description="Where to send api_key: header or query")
    source: Optional[str] = Field(
        default=None,
        description="Credential source: env:VAR, file:/path, value:literal",
    )
    username_source: Optional[str] = Field(
        default=None, description="Credential source for the basic auth username"
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every dispatched request."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=0, description="Max retry attempts on 5xx / network errors")


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    See Also:
        :func:`~openreq.config.load_profile`: Deserialise a profile by name.
        :func:`~openreq.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    schema_: SchemaSource = Field(default_factory=SchemaSource, alias="schema")
    base_url: Optional[str] = Field(
        default=None, description="Override the base URL taken from servers[0]"
    )
    auth: AuthConfig = Field(default_factory=AuthConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    continue_on_fail: bool = Field(
        default=False, description="Turn per-item failures into error results"
    )


# --- Descriptors ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised as operation keys of an OpenAPI path item."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class ParameterType(str, enum.Enum):
    """Declared kinds a parameter value is validated against."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ParameterDescriptor(BaseModel):
    """A single parameter of an operation.

    Identity within an operation is the ``(location, name)`` pair, exposed as
    :attr:`key` in the ``location|name`` form callers use to supply values.
    ``type`` is ``None`` when the document declares no type, in which case
    the value is passed through unvalidated.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    type: Optional[ParameterType] = None
    format: Optional[str] = None
    enum_values: Optional[list[Any]] = Field(default=None, alias="enum")
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[str] = None
    default: Any = None

    @property
    def key(self) -> str:
        return f"{self.location.value}|{self.name}"


class MediaTypeDescriptor(BaseModel):
    """One request-body encoding alternative.

    ``schema_`` is kept only to confirm what the document declares; the body
    payload is never validated against it.
    """

    model_config = ConfigDict(populate_by_name=True)

    media_type: str
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class RequestBodyDescriptor(BaseModel):
    """The ``requestBody`` of an operation, one entry per declared media type."""

    required: bool = False
    description: Optional[str] = None
    content: list[MediaTypeDescriptor] = Field(default_factory=list)

    @property
    def media_types(self) -> list[str]:
        return [entry.media_type for entry in self.content]

    def get(self, media_type: str) -> Optional[MediaTypeDescriptor]:
        for entry in self.content:
            if entry.media_type == media_type:
                return entry
        return None


class OperationDefinition(BaseModel):
    """One method + path pair declared by the document."""

    method: HTTPMethod
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = None
    parameters: list[ParameterDescriptor] = Field(default_factory=list)
    request_body: Optional[RequestBodyDescriptor] = None

    @property
    def key(self) -> str:
        return f"{self.method.value}|{self.path}"


class CatalogEntry(BaseModel):
    """A selectable operation as shown to the host's selection surface."""

    key: str
    method: HTTPMethod
    path: str
    display_label: str
    description: str = ""

    @property
    def name(self) -> str:
        return f"[{self.method.value.upper()}] {self.display_label}"


class SelectOption(BaseModel):
    """A ``name``/``value`` pair for parameter and media-type pickers."""

    name: str
    value: str
    description: str = ""


# --- Execution ---


class BatchItem(BaseModel):
    """Caller-supplied input for one request in a batch.

    ``parameters`` is keyed by ``location|name`` (e.g. ``"path|petId"``).
    """

    model_config = ConfigDict(populate_by_name=True)

    operation: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    body_media_type: Optional[str] = Field(default=None, alias="bodyMediaType")
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)


class ResolvedRequest(BaseModel):
    """A transport-ready request, built fresh for every invocation."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    body_media_type: Optional[str] = None
