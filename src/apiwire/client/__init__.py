"""HTTP client module for apiwire.

Wraps :mod:`httpx` with body encoding, per-request deadlines and typed
error mapping.

Classes:
    :class:`RequestExecutor` -- REST requests backed by :class:`httpx.Client`.
    :class:`GraphQLExecutor` -- GraphQL documents POSTed through a
    :class:`RequestExecutor`.

Example::

    from apiwire.client import RequestExecutor

    response = RequestExecutor().execute("GET", "https://api.example.com/users")
"""

from apiwire.client.graphql import GraphQLExecutor, build_graphql_request, parse_graphql_errors
from apiwire.client.sync_client import RequestExecutor

__all__ = [
    "GraphQLExecutor",
    "RequestExecutor",
    "build_graphql_request",
    "parse_graphql_errors",
]
