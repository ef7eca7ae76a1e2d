"""Endpoint orchestration -- run one call (or a batch) end to end.

:class:`EndpointOrchestrator` is the boundary between callers (the CLI, or
any program embedding apiwire) and the components. A call moves through
these states, strictly forward::

    RESOLVING -> MAPPING -> CACHE_CHECK -> (CACHE_HIT -> DONE)
              -> AUTHENTICATING -> EXECUTING -> TRANSFORMING
              -> CACHE_STORE -> DONE

Any failure ends in ``ERROR``. Components raise typed
:class:`~apiwire.exceptions.ApiwireError` subclasses; the orchestrator
catches them and returns a :class:`~apiwire.models.CallResult` whose
``error.details.state`` names the state that failed. No exception escapes
:meth:`EndpointOrchestrator.call`, and nothing is retried.

With ``CallOptions(debug=True)`` every transition, the mapped parameters,
the request line, redacted headers and cache hits/misses are traced
through :func:`apiwire.output.debug`.
"""

from __future__ import annotations

import enum
import json
import logging
import time
from typing import Any, Mapping, Optional

import httpx

from apiwire.auth import AuthManager, create_default_manager, redact_headers, redact_params
from apiwire.cache import ResponseCache
from apiwire.client import GraphQLExecutor, RequestExecutor, build_graphql_request
from apiwire.client.graphql import graphql_url
from apiwire.env import resolve_service_config
from apiwire.exceptions import (
    ApiwireError,
    ConfigError,
    ConfigNotFoundError,
    ErrorCode,
    ParamInvalidError,
)
from apiwire.mapper import build_url, map_parameters, merge_params
from apiwire.models import (
    AuthType,
    BatchResult,
    CallError,
    CallMetadata,
    CallOptions,
    CallResult,
    EndpointConfig,
    GraphQLOperationConfig,
    HTTPMethod,
    ParamHints,
    ServiceConfig,
)
from apiwire.output import get_output
from apiwire.transform import TransformPipeline

logger = logging.getLogger(__name__)


class CallState(str, enum.Enum):
    """Lifecycle of a single call."""

    RESOLVING = "resolving"
    MAPPING = "mapping"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    AUTHENTICATING = "authenticating"
    EXECUTING = "executing"
    TRANSFORMING = "transforming"
    CACHE_STORE = "cache_store"
    DONE = "done"
    ERROR = "error"


class _CallTrace:
    """Current state of one call plus its debug channel."""

    def __init__(self, service: str, target: str, debug: bool) -> None:
        self.service = service
        self.target = target
        self.state = CallState.RESOLVING
        self._debug = debug
        self.log(f"{service}.{target}: {self.state.value}")

    def enter(self, state: CallState) -> None:
        self.log(f"{self.state.value} -> {state.value}")
        self.state = state

    def log(self, message: str) -> None:
        if self._debug:
            get_output().debug(message)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _dump(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


class EndpointOrchestrator:
    """Execute endpoint, GraphQL operation, and alias calls.

    Args:
        cache: Response cache. When ``None`` nothing is cached.
        executor: REST executor; a default :class:`RequestExecutor` is used
            when omitted.
        graphql_executor: GraphQL executor; defaults to one sharing
            *executor*.
        auth_manager: Auth plugin registry; defaults to
            :func:`~apiwire.auth.create_default_manager`.

    Example::

        orchestrator = EndpointOrchestrator(cache=ResponseCache(get_cache_dir()))
        result = orchestrator.call(service, "getUser", {"username": "octo"})
        if result.success:
            print(result.data)
    """

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        executor: Optional[RequestExecutor] = None,
        graphql_executor: Optional[GraphQLExecutor] = None,
        auth_manager: Optional[AuthManager] = None,
    ) -> None:
        self._cache = cache
        self._executor = executor or RequestExecutor()
        self._graphql = graphql_executor or GraphQLExecutor(self._executor)
        self._auth = auth_manager or create_default_manager()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def call(
        self,
        service: ServiceConfig,
        target: str,
        raw_args: Optional[Mapping[str, Any]] = None,
        options: Optional[CallOptions] = None,
        hints: Optional[ParamHints] = None,
    ) -> CallResult:
        """Run one call and report its outcome.

        Args:
            service: The service configuration, resolved or not.
            target: Endpoint, GraphQL operation, or alias name.
            raw_args: Runtime arguments. Alias arguments are merged
                underneath them.
            options: Per-call switches (debug, cache bypass, timeout).
            hints: Explicit routing of argument keys.

        Returns:
            A :class:`~apiwire.models.CallResult`; never raises for failures
            of the call itself.
        """
        options = options or CallOptions()
        trace = _CallTrace(service.service_name, target, options.debug)
        started = time.perf_counter()

        try:
            resolved = resolve_service_config(service)
            endpoint_name, args = self._resolve_target(resolved, target, raw_args)

            if resolved.is_graphql:
                operation = resolved.find_operation(endpoint_name)
                if operation is None:
                    raise self._not_found(resolved, endpoint_name)
                data, status, cached = self._call_graphql(resolved, operation, args, options, trace)
            else:
                endpoint = resolved.find_endpoint(endpoint_name)
                if endpoint is None:
                    raise self._not_found(resolved, endpoint_name)
                data, status, cached = self._call_rest(
                    resolved, endpoint, args, options, hints, trace
                )

            trace.enter(CallState.DONE)
            return CallResult(
                success=True,
                data=data,
                metadata=CallMetadata(
                    timestamp=_now_ms(),
                    status_code=status,
                    cached=cached,
                    duration=_elapsed_ms(started),
                ),
            )
        except ApiwireError as exc:
            return self._failure(exc, trace, started)
        except Exception as exc:
            logger.debug("Unexpected error during %s.%s", service.service_name, target, exc_info=True)
            wrapped = ApiwireError(f"Unexpected error: {exc}", details={"type": type(exc).__name__})
            return self._failure(wrapped, trace, started)

    def call_batch(
        self,
        service: ServiceConfig,
        target: str,
        arg_sets: list[Mapping[str, Any]],
        cli_args: Optional[Mapping[str, Any]] = None,
        options: Optional[CallOptions] = None,
        hints: Optional[ParamHints] = None,
    ) -> BatchResult:
        """Run *target* once per argument set, sequentially and in order.

        Each item's arguments are merged as ``alias < item < cli_args``.
        With ``options.fail_fast`` the loop stops after the first failure.

        Raises:
            ParamInvalidError: If *arg_sets* is empty.
        """
        if not arg_sets:
            raise ParamInvalidError(
                "Batch JSON must be a non-empty array of argument objects",
                help='Example: --batch-json \'[{"id": "1"}, {"id": "2"}]\'',
            )
        options = options or CallOptions()
        batch = BatchResult()
        for index, item in enumerate(arg_sets):
            if options.debug:
                get_output().debug(f"batch item {index + 1}/{len(arg_sets)}")
            result = self.call(service, target, merge_params(item, cli_args), options, hints)
            batch.results.append(result)
            if not result.success and options.fail_fast:
                batch.stopped_early = index < len(arg_sets) - 1
                break
        return batch

    # ------------------------------------------------------------------ #
    # REST
    # ------------------------------------------------------------------ #

    def _call_rest(
        self,
        service: ServiceConfig,
        endpoint: EndpointConfig,
        args: dict[str, Any],
        options: CallOptions,
        hints: Optional[ParamHints],
        trace: _CallTrace,
    ) -> tuple[Any, Optional[int], bool]:
        trace.enter(CallState.MAPPING)
        mapped = map_parameters(endpoint, args, hints)
        url = build_url(service.base_url, endpoint.path, mapped.path)
        headers = {**(endpoint.headers or {}), **mapped.headers}
        query: dict[str, Any] = dict(mapped.query)
        trace.log(
            f"mapped params: path={_dump(mapped.path)} query={_dump(query)} "
            f"headers={_dump(sorted(mapped.headers))} body={_dump(mapped.body)}"
        )

        trace.enter(CallState.CACHE_CHECK)
        cache_key: Optional[str] = None
        if self._is_cacheable(endpoint.cache_ttl, options) and endpoint.method == HTTPMethod.GET:
            cache_key = self._cache.generate_key(  # type: ignore[union-attr]
                service.service_name,
                endpoint.name,
                str(httpx.URL(url, params=query)),
                headers,
                method=endpoint.method.value,
                body=mapped.body,
                exclude_headers=self._auth_header_names(service),
            )
            cached = self._cache.get(cache_key)  # type: ignore[union-attr]
            if cached is not None:
                trace.log(f"cache HIT {cache_key}")
                trace.enter(CallState.CACHE_HIT)
                return cached, 200, True
            trace.log(f"cache MISS {cache_key}")

        trace.enter(CallState.AUTHENTICATING)
        auth_result = self._auth.authenticate(service.authentication)
        headers.update(auth_result.headers)
        query.update(auth_result.params)

        trace.enter(CallState.EXECUTING)
        trace.log(
            f"{endpoint.method.value} "
            f"{httpx.URL(url, params=redact_params(query, auth_result.params))}"
        )
        trace.log(f"headers: {_dump(redact_headers(headers, self._auth_header_names(service)))}")
        response = self._executor.execute(
            endpoint.method.value,
            url,
            headers,
            mapped.body,
            options.timeout_ms,
            params=query,
        )
        trace.log(f"response {response.status}")

        trace.enter(CallState.TRANSFORMING)
        data = self._transform(endpoint, response.data)

        if cache_key is not None and response.status == 200:
            trace.enter(CallState.CACHE_STORE)
            self._cache.set(  # type: ignore[union-attr]
                cache_key,
                data,
                endpoint.cache_ttl,  # type: ignore[arg-type]
                metadata={"service": service.service_name, "endpoint": endpoint.name, "url": url},
            )
        return data, response.status, False

    # ------------------------------------------------------------------ #
    # GraphQL
    # ------------------------------------------------------------------ #

    def _call_graphql(
        self,
        service: ServiceConfig,
        operation: GraphQLOperationConfig,
        args: dict[str, Any],
        options: CallOptions,
        trace: _CallTrace,
    ) -> tuple[Any, Optional[int], bool]:
        if not service.graphql_endpoint:
            raise ConfigError(
                "Service does not have a GraphQL endpoint configured",
                details={"service": service.service_name},
                help='Add "graphqlEndpoint" to your service configuration',
            )

        trace.enter(CallState.MAPPING)
        variables = {
            key: value
            for key, value in args.items()
            if value is not None and not key.startswith("_") and key != "$0"
        }
        request = build_graphql_request(operation, variables)
        url = graphql_url(service.base_url, service.graphql_endpoint)
        trace.log(f"GraphQL {operation.operation_type.value} {operation.name}")
        trace.log(f"variables: {_dump(request['variables'])}")

        trace.enter(CallState.CACHE_CHECK)
        cache_key: Optional[str] = None
        if operation.is_query and self._is_cacheable(operation.cache_ttl, options):
            cache_key = self._cache.generate_key(  # type: ignore[union-attr]
                service.service_name, operation.name, url, method="POST", body=request
            )
            cached = self._cache.get(cache_key)  # type: ignore[union-attr]
            if cached is not None:
                trace.log(f"cache HIT {cache_key}")
                trace.enter(CallState.CACHE_HIT)
                return cached, 200, True
            trace.log(f"cache MISS {cache_key}")

        trace.enter(CallState.AUTHENTICATING)
        auth_result = self._auth.authenticate(service.authentication)
        request_url = url
        if auth_result.params:
            request_url = str(httpx.URL(url, params=auth_result.params))

        trace.enter(CallState.EXECUTING)
        trace.log(f"POST {url}")
        trace.log(
            f"headers: {_dump(redact_headers(auth_result.headers, self._auth_header_names(service)))}"
        )
        data, status = self._graphql.execute(
            request_url, request, auth_result.headers, options.timeout_ms
        )
        trace.log(f"response {status}")

        trace.enter(CallState.TRANSFORMING)
        if data is not None:
            data = self._transform(operation, data)

        if cache_key is not None and status == 200 and data is not None:
            trace.enter(CallState.CACHE_STORE)
            self._cache.set(  # type: ignore[union-attr]
                cache_key,
                data,
                operation.cache_ttl,  # type: ignore[arg-type]
                metadata={"service": service.service_name, "endpoint": operation.name, "url": url},
            )
        return data, status, False

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _resolve_target(
        service: ServiceConfig, target: str, raw_args: Optional[Mapping[str, Any]]
    ) -> tuple[str, dict[str, Any]]:
        """Expand an alias into its endpoint name and merged arguments."""
        alias = service.find_alias(target)
        if alias is not None:
            return alias.endpoint, merge_params(alias.args, raw_args)
        return target, merge_params(raw_args)

    @staticmethod
    def _not_found(service: ServiceConfig, name: str) -> ConfigNotFoundError:
        if service.is_graphql:
            available = [o.name for o in service.graphql_operations]
        else:
            available = [e.name for e in service.endpoints]
        available += [a.name for a in service.aliases]
        return ConfigNotFoundError(
            f"Endpoint or alias '{name}' not found in service '{service.service_name}'",
            code=ErrorCode.ENDPOINT_NOT_FOUND,
            details={"service": service.service_name, "available": available},
            help=f"Run 'apiwire list endpoints {service.service_name}' to see available endpoints",
        )

    def _is_cacheable(self, cache_ttl: Optional[int], options: CallOptions) -> bool:
        return self._cache is not None and bool(cache_ttl) and not options.no_cache

    @staticmethod
    def _auth_header_names(service: ServiceConfig) -> list[str]:
        auth = service.authentication
        if auth is not None and auth.type == AuthType.APIKEY and auth.header:
            return [auth.header]
        return []

    @staticmethod
    def _transform(endpoint: EndpointConfig | GraphQLOperationConfig, data: Any) -> Any:
        pipeline = TransformPipeline.from_endpoint(endpoint)
        if pipeline is None:
            return data
        return pipeline.transform(data)

    @staticmethod
    def _failure(exc: ApiwireError, trace: _CallTrace, started: float) -> CallResult:
        failed_state = trace.state
        trace.log(f"{failed_state.value} failed: {exc.code.value}: {exc.message}")
        trace.enter(CallState.ERROR)

        if isinstance(exc.details, dict):
            details: dict[str, Any] = dict(exc.details)
        elif exc.details is not None:
            details = {"info": exc.details}
        else:
            details = {}
        details["state"] = failed_state.value
        if exc.status_code is not None:
            details.setdefault("statusCode", exc.status_code)

        return CallResult(
            success=False,
            error=CallError(
                code=exc.code.value,
                message=exc.message,
                details=details,
                help=exc.help,
            ),
            metadata=CallMetadata(
                timestamp=_now_ms(),
                status_code=exc.status_code,
                cached=False,
                duration=_elapsed_ms(started),
            ),
        )
