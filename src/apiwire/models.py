"""Canonical Pydantic models shared across all apiwire modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- deserialised from the per-service YAML files:
    :class:`HTTPMethod`, :class:`AuthType`, :class:`AuthConfig`,
    :class:`TransformConfig`, :class:`EndpointConfig`,
    :class:`GraphQLOperationConfig`, :class:`AliasConfig`, and
    :class:`ServiceConfig`.

**Engine models** -- produced and consumed while executing a call:
    :class:`ParamHints`, :class:`MappedParams`, :class:`CallOptions`,
    :class:`HttpResponse`, :class:`CacheEntry`, :class:`CacheEntryInfo`,
    :class:`CallError`, :class:`CallMetadata`, :class:`CallResult`, and
    :class:`BatchResult`.

The YAML schema uses camelCase keys (``serviceName``, ``cacheTTL`` ...).
Models declare those as field aliases and set ``populate_by_name`` so that
Python code can construct them with snake_case keyword arguments too.
"""

from __future__ import annotations

import enum
import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ArgValue = Union[bool, int, float, str, list[str]]
"""A single runtime argument value: string, string list, number, or flag."""

RawArgs = dict[str, ArgValue]
"""The argument bag handed to the engine by the CLI (or any other caller)."""


# --- Configuration Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an endpoint may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class AuthType(str, enum.Enum):
    """Supported authentication strategies."""

    BEARER = "bearer"
    APIKEY = "apikey"


class ApiType(str, enum.Enum):
    """Whether a service is called over plain REST or GraphQL-over-HTTP."""

    REST = "rest"
    GRAPHQL = "graphql"


class GraphQLOperationType(str, enum.Enum):
    """GraphQL operation kinds. Only queries are ever cached."""

    QUERY = "query"
    MUTATION = "mutation"


class AuthConfig(BaseModel):
    """Authentication section of a :class:`ServiceConfig`.

    ``token`` normally holds a ``${VAR}`` placeholder; it is substituted by
    :func:`~apiwire.env.resolve_service_config` before any request is built.

    Example::

        AuthConfig(type="apikey", token="${SHOP_KEY}", header="X-Shop-Key")
    """

    model_config = ConfigDict(populate_by_name=True)

    type: AuthType
    token: str = Field(min_length=1, description="Credential or ${VAR} placeholder")
    header: Optional[str] = Field(
        default=None, description="Header name for apikey auth (default X-API-Key)"
    )
    location: str = Field(
        default="header", description="Where an apikey is sent: header or query"
    )
    param_name: Optional[str] = Field(
        default=None,
        alias="paramName",
        description="Query parameter name when location is 'query' (default api_key)",
    )

    @field_validator("location")
    @classmethod
    def _check_location(cls, value: str) -> str:
        if value not in ("header", "query"):
            raise ValueError("location must be 'header' or 'query'")
        return value


class TransformConfig(BaseModel):
    """One stage of a response transform pipeline.

    ``fields`` narrows the payload to the listed dot-paths (``a.b``,
    ``items[0].id``, ``items[*].name``); ``rename`` then moves values from
    old paths to new paths.
    """

    fields: Optional[list[str]] = None
    rename: Optional[dict[str, str]] = None


def _as_transform_list(
    transform: Union[TransformConfig, list[TransformConfig], None],
) -> list[TransformConfig]:
    if transform is None:
        return []
    if isinstance(transform, list):
        return transform
    return [transform]


class EndpointConfig(BaseModel):
    """A single named REST endpoint of a service."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    method: HTTPMethod
    path: str = Field(min_length=1, description="URL path with {param} placeholders")
    cache_ttl: Optional[int] = Field(
        default=None, alias="cacheTTL", gt=0, description="Cache duration in seconds"
    )
    headers: Optional[dict[str, str]] = None
    default_params: Optional[dict[str, Any]] = Field(default=None, alias="defaultParams")
    transform: Optional[Union[TransformConfig, list[TransformConfig]]] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def transforms(self) -> list[TransformConfig]:
        """The transform stages as a list, in declared order."""
        return _as_transform_list(self.transform)


class GraphQLOperationConfig(BaseModel):
    """A named GraphQL query or mutation of a GraphQL service."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    operation_type: GraphQLOperationType = Field(
        default=GraphQLOperationType.QUERY, alias="operationType"
    )
    query: str = Field(min_length=1)
    variables: Optional[dict[str, Any]] = None
    cache_ttl: Optional[int] = Field(default=None, alias="cacheTTL", gt=0)
    transform: Optional[Union[TransformConfig, list[TransformConfig]]] = None

    @property
    def transforms(self) -> list[TransformConfig]:
        """The transform stages as a list, in declared order."""
        return _as_transform_list(self.transform)

    @property
    def is_query(self) -> bool:
        return self.operation_type == GraphQLOperationType.QUERY


class AliasConfig(BaseModel):
    """A shortcut binding an endpoint (or operation) to default arguments."""

    name: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)

    @field_validator("args", mode="before")
    @classmethod
    def _none_args(cls, value: Any) -> Any:
        return {} if value is None else value


_PLACEHOLDER_ONLY_RE = re.compile(r"^\$\{[^}]+\}")


def _duplicates(names: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for name in names:
        if name in seen and name not in dupes:
            dupes.append(name)
        seen.add(name)
    return dupes


class ServiceConfig(BaseModel):
    """One service, as declared in a single YAML file.

    Invariants checked at load time:

    * REST services declare at least one endpoint; GraphQL services declare
      at least one operation and a ``graphqlEndpoint``.
    * Endpoint, operation and alias names are unique.
    * Every alias references an existing endpoint or operation.

    See Also:
        :func:`~apiwire.config.load_yaml_config`: Parse and validate a file.
        :func:`~apiwire.env.resolve_service_config`: Substitute ``${VAR}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    service_name: str = Field(alias="serviceName", min_length=1)
    base_url: str = Field(alias="baseUrl", min_length=1)
    api_type: ApiType = Field(default=ApiType.REST, alias="apiType")
    authentication: Optional[AuthConfig] = None
    endpoints: list[EndpointConfig] = Field(default_factory=list)
    graphql_endpoint: Optional[str] = Field(default=None, alias="graphqlEndpoint")
    graphql_operations: list[GraphQLOperationConfig] = Field(
        default_factory=list, alias="graphqlOperations"
    )
    aliases: list[AliasConfig] = Field(default_factory=list)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if value.startswith(("http://", "https://")) or _PLACEHOLDER_ONLY_RE.match(value):
            return value
        raise ValueError("baseUrl must be an http(s) URL or an environment variable")

    @field_validator("endpoints", "graphql_operations", "aliases", mode="before")
    @classmethod
    def _none_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_consistency(self) -> ServiceConfig:
        if self.api_type == ApiType.REST and not self.endpoints:
            raise ValueError("REST services require at least one endpoint")
        if self.api_type == ApiType.GRAPHQL:
            if not self.graphql_operations:
                raise ValueError("GraphQL services require graphqlOperations")
            if not self.graphql_endpoint:
                raise ValueError("GraphQL services require graphqlEndpoint")

        for label, names in (
            ("endpoint", [e.name for e in self.endpoints]),
            ("GraphQL operation", [o.name for o in self.graphql_operations]),
            ("alias", [a.name for a in self.aliases]),
        ):
            dupes = _duplicates(names)
            if dupes:
                raise ValueError(f"Duplicate {label} names found: {', '.join(dupes)}")

        targets = {e.name for e in self.endpoints} | {o.name for o in self.graphql_operations}
        for alias in self.aliases:
            if alias.endpoint not in targets:
                raise ValueError(
                    f"Alias '{alias.name}' references non-existent endpoint "
                    f"'{alias.endpoint}'"
                )
        return self

    @property
    def is_graphql(self) -> bool:
        return self.api_type == ApiType.GRAPHQL

    def find_endpoint(self, name: str) -> Optional[EndpointConfig]:
        return next((e for e in self.endpoints if e.name == name), None)

    def find_operation(self, name: str) -> Optional[GraphQLOperationConfig]:
        return next((o for o in self.graphql_operations if o.name == name), None)

    def find_alias(self, name: str) -> Optional[AliasConfig]:
        return next((a for a in self.aliases if a.name == name), None)


class ConfigFile(BaseModel):
    """A service configuration together with where it was loaded from."""

    path: str
    config: ServiceConfig
    is_global: bool = False


# --- Engine Models ---


class ParamHints(BaseModel):
    """Caller-declared routing for argument keys (from ``--query k=v`` etc.)."""

    path_params: list[str] = Field(default_factory=list)
    query_params: list[str] = Field(default_factory=list)
    header_params: list[str] = Field(default_factory=list)
    body_params: list[str] = Field(default_factory=list)


class MappedParams(BaseModel):
    """Runtime arguments classified into request locations."""

    path: dict[str, str] = Field(default_factory=dict)
    query: dict[str, Union[str, list[str]]] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None


class CallOptions(BaseModel):
    """Per-invocation switches supplied by the calling shell."""

    debug: bool = False
    no_cache: bool = False
    timeout_ms: int = Field(default=30000, gt=0)
    fail_fast: bool = False


class HttpResponse(BaseModel):
    """A successful (2xx) upstream response after body parsing."""

    data: Any = None
    status: int
    headers: dict[str, str] = Field(default_factory=dict)


class CacheEntry(BaseModel):
    """The persisted shape of one cached response."""

    value: Any = None
    timestamp: float = Field(description="Epoch seconds when the entry was stored")
    ttl: int = Field(description="Lifetime in seconds")
    metadata: dict[str, Any] = Field(default_factory=dict)


class CacheEntryInfo(BaseModel):
    """Summary of a cache entry, as shown by ``apiwire cache list``."""

    key: str
    service: Optional[str] = None
    endpoint: Optional[str] = None
    url: Optional[str] = None
    age: int
    ttl: int
    expired: bool
    size: int


class CallError(BaseModel):
    """The ``error`` object of a failed :class:`CallResult`."""

    code: str
    message: str
    details: Any = None
    help: Optional[str] = None


class CallMetadata(BaseModel):
    """Timing and provenance of a call."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int = Field(description="Epoch milliseconds when the call finished")
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    cached: bool = False
    duration: Optional[int] = Field(default=None, description="Milliseconds")


class CallResult(BaseModel):
    """Structured outcome of one call -- the engine's only output shape."""

    success: bool
    data: Any = None
    error: Optional[CallError] = None
    metadata: Optional[CallMetadata] = None

    def to_output(self) -> dict[str, Any]:
        """Dump with camelCase metadata keys, omitting unset members."""
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out["data"] = self.data
        elif self.error is not None:
            out["error"] = self.error.model_dump(exclude_none=True)
        if self.metadata is not None:
            out["metadata"] = self.metadata.model_dump(by_alias=True, exclude_none=True)
        return out


class BatchResult(BaseModel):
    """Ordered per-item results of a sequential batch call."""

    results: list[CallResult] = Field(default_factory=list)
    stopped_early: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def success(self) -> bool:
        """True only when every executed item succeeded."""
        return bool(self.results) and self.failed == 0 and not self.stopped_early

    def to_output(self) -> list[dict[str, Any]]:
        return [r.to_output() for r in self.results]
