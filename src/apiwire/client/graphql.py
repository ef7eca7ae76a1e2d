"""GraphQL-over-HTTP execution.

GraphQL services declare named operations instead of REST endpoints. A
call POSTs ``{"query", "variables", "operationName"}`` as JSON to the
service's ``baseUrl + graphqlEndpoint`` and unwraps the ``data`` member.

Unlike REST, a GraphQL server may answer ``200 OK`` and still report
failure in ``errors[]``; any non-empty ``errors`` array is treated as a
failed request.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from apiwire.client.sync_client import DEFAULT_TIMEOUT_MS, RequestExecutor
from apiwire.exceptions import ApiRequestFailedError, ApiResponseInvalidError
from apiwire.mapper.path_template import build_url
from apiwire.models import GraphQLOperationConfig

_OPERATION_NAME_RE = re.compile(r"^\s*(?:query|mutation)\s+(\w+)")

GRAPHQL_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def build_graphql_request(
    operation: GraphQLOperationConfig, variables: Optional[Mapping[str, Any]] = None
) -> dict[str, Any]:
    """Build the JSON request document for *operation*.

    Call *variables* override the operation's default variables.
    ``operationName`` is included when the query text names its operation
    (``query GetUser(...)``).
    """
    merged = {**(operation.variables or {}), **(variables or {})}
    request: dict[str, Any] = {"query": operation.query, "variables": merged}
    match = _OPERATION_NAME_RE.match(operation.query)
    if match:
        request["operationName"] = match.group(1)
    return request


def graphql_url(base_url: str, graphql_endpoint: str) -> str:
    """Return the absolute GraphQL URL. An absolute endpoint is used as-is."""
    if graphql_endpoint.startswith(("http://", "https://")):
        return graphql_endpoint
    return build_url(base_url, graphql_endpoint)


def parse_graphql_errors(errors: Optional[list[Any]]) -> list[str]:
    """Format GraphQL ``errors[]`` entries as one readable line each.

    Example::

        >>> parse_graphql_errors([{"message": "Not found", "path": ["user", "repo"],
        ...                        "locations": [{"line": 2, "column": 3}]}])
        ['Not found at path: user.repo (line 2, column 3)']
    """
    messages: list[str] = []
    for error in errors or []:
        if not isinstance(error, dict):
            messages.append(str(error))
            continue
        message = str(error.get("message", "GraphQL error"))
        path = error.get("path")
        if path:
            message += " at path: " + ".".join(str(p) for p in path)
        locations = error.get("locations")
        if locations and isinstance(locations[0], dict):
            loc = locations[0]
            message += f" (line {loc.get('line')}, column {loc.get('column')})"
        messages.append(message)
    return messages


class GraphQLExecutor:
    """POST GraphQL documents and unwrap their ``data``.

    Args:
        executor: The :class:`~apiwire.client.sync_client.RequestExecutor`
            used for transport. A default one is created when omitted.
    """

    def __init__(self, executor: Optional[RequestExecutor] = None) -> None:
        self._executor = executor or RequestExecutor()

    def execute(
        self,
        url: str,
        request: Mapping[str, Any],
        headers: Optional[Mapping[str, str]] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> tuple[Any, int]:
        """Send *request* to *url*.

        Returns:
            A tuple of ``(data, status_code)``.

        Raises:
            ApiResponseInvalidError: If the body is not JSON.
            ApiRequestFailedError: If ``errors[]`` is non-empty or the status
                is not 2xx.
            ApiTimeoutError: If the deadline passes.
        """
        request_headers = {**GRAPHQL_HEADERS, **(headers or {})}
        response = self._executor.send(
            "POST", url, request_headers, dict(request), timeout_ms
        )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiResponseInvalidError(
                "Invalid JSON response from GraphQL endpoint",
                status_code=response.status_code,
                details={"response": response.text[:500], "statusCode": response.status_code},
            ) from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            formatted = parse_graphql_errors(errors)
            raise ApiRequestFailedError(
                formatted[0] if formatted else "GraphQL error occurred",
                status_code=response.status_code,
                details={
                    "errors": formatted,
                    "data": payload.get("data"),
                    "operationName": request.get("operationName"),
                },
            )

        if not response.is_success:
            raise ApiRequestFailedError(
                f"GraphQL endpoint returned status {response.status_code}",
                status_code=response.status_code,
                details={"data": payload},
            )

        data = payload.get("data") if isinstance(payload, dict) else payload
        return data, response.status_code
