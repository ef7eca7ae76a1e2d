"""Synchronous HTTP execution with timeouts and typed error mapping.

This module provides :class:`RequestExecutor`, the single place where
apiwire talks to the network for REST calls. It wraps
:class:`httpx.Client` and layers on:

- **Body encoding** -- non-string bodies are JSON-serialised and
  ``Content-Type: application/json`` is set unless the caller set one.
- **Timeout** -- ``timeout_ms`` applies to each phase (connect, write,
  each read, pool acquisition) through :class:`httpx.Timeout`. It is not a
  total deadline: a server that keeps trickling bytes can hold a request
  open longer than ``timeout_ms``.
- **Error mapping** -- timeouts, connection failures and non-2xx
  responses become :class:`~apiwire.exceptions.ApiwireError` subclasses
  carrying enough context for a structured error result.

No retries are performed. A fresh client is opened per request so that
nothing is shared between calls; tests inject an
:class:`httpx.MockTransport` through *transport*.

See Also:
    :class:`~apiwire.client.graphql.GraphQLExecutor` -- GraphQL-over-HTTP
    built on :meth:`RequestExecutor.send`.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import httpx

from apiwire import __version__
from apiwire.client.response import (
    extract_error_data,
    extract_response_data,
    response_headers,
)
from apiwire.exceptions import ApiRequestFailedError, ApiTimeoutError
from apiwire.exit_codes import EXIT_CONNECTION_ERROR
from apiwire.models import HttpResponse

DEFAULT_TIMEOUT_MS = 30000

USER_AGENT = f"apiwire/{__version__}"


class RequestExecutor:
    """Execute one HTTP request and decode its response.

    Args:
        transport: Optional :class:`httpx.BaseTransport` used instead of the
            network (``httpx.MockTransport`` in tests).
        verify_ssl: Verify TLS certificates.

    Example::

        executor = RequestExecutor()
        response = executor.execute("GET", "https://api.github.com/users/octo")
        print(response.status, response.data["login"])
    """

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        verify_ssl: bool = True,
    ) -> None:
        self._transport = transport
        self._verify_ssl = verify_ssl

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def execute(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        params: Optional[Mapping[str, Any]] = None,
    ) -> HttpResponse:
        """Send a request and return the decoded 2xx response.

        Args:
            method: HTTP method.
            url: Absolute URL (path parameters already substituted).
            headers: Request headers, credentials included.
            body: String body sent as-is, or any JSON-serialisable value.
            timeout_ms: Deadline for the whole exchange.
            params: Query parameters; list values become repeated keys.

        Returns:
            An :class:`~apiwire.models.HttpResponse`.

        Raises:
            ApiTimeoutError: If the deadline passes.
            ApiRequestFailedError: On network failure or a non-2xx status.
            ApiResponseInvalidError: If a JSON-declared body does not parse.
        """
        response = self.send(method, url, headers, body, timeout_ms, params)

        if not response.is_success:
            raise ApiRequestFailedError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                details={
                    "data": extract_error_data(response),
                    "headers": response_headers(response),
                },
            )

        return HttpResponse(
            data=extract_response_data(response),
            status=response.status_code,
            headers=response_headers(response),
        )

    def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request and return the raw response, whatever its status.

        Only transport-level failures raise here.
        """
        request_headers = dict(headers or {})
        content = self._encode_body(body, request_headers)

        try:
            with httpx.Client(
                transport=self._transport,
                timeout=httpx.Timeout(timeout_ms / 1000),
                verify=self._verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                return client.request(
                    method.upper(),
                    url,
                    headers=request_headers,
                    params=dict(params) if params else None,
                    content=content,
                )
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError(
                f"Request timeout after {timeout_ms}ms",
                details={"url": url, "method": method.upper()},
            ) from exc
        except httpx.RequestError as exc:
            raise ApiRequestFailedError(
                f"Network error: {exc}",
                details={"type": "network", "url": url, "method": method.upper()},
                exit_code=EXIT_CONNECTION_ERROR,
            ) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _encode_body(body: Any, headers: dict[str, str]) -> Optional[str]:
        """Serialise *body*, setting a JSON content type when needed."""
        if body is None:
            return None
        if isinstance(body, str):
            return body
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = "application/json"
        return json.dumps(body)
