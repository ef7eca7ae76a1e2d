"""Tests for GraphQL request building and execution."""

from __future__ import annotations

import json

import httpx
import pytest

from apiwire.client import GraphQLExecutor, RequestExecutor, build_graphql_request, parse_graphql_errors
from apiwire.client.graphql import graphql_url
from apiwire.exceptions import ApiRequestFailedError, ApiResponseInvalidError
from apiwire.models import GraphQLOperationConfig


QUERY = "query GetCountry($code: ID!) { country(code: $code) { name } }"


def _operation(**kwargs) -> GraphQLOperationConfig:
    return GraphQLOperationConfig(name="getCountry", query=kwargs.pop("query", QUERY), **kwargs)


def _executor(handler) -> GraphQLExecutor:
    return GraphQLExecutor(RequestExecutor(transport=httpx.MockTransport(handler)))


class TestBuildRequest:
    def test_named_operation(self) -> None:
        request = build_graphql_request(_operation(), {"code": "FR"})
        assert request == {"query": QUERY, "variables": {"code": "FR"}, "operationName": "GetCountry"}

    def test_anonymous_operation(self) -> None:
        request = build_graphql_request(_operation(query="{ countries { code } }"))
        assert "operationName" not in request
        assert request["variables"] == {}

    def test_mutation_name(self) -> None:
        request = build_graphql_request(_operation(query="  mutation AddNote { addNote { id } }"))
        assert request["operationName"] == "AddNote"

    def test_call_variables_override_defaults(self) -> None:
        request = build_graphql_request(
            _operation(variables={"code": "US", "lang": "en"}), {"code": "FR"}
        )
        assert request["variables"] == {"code": "FR", "lang": "en"}


class TestGraphqlUrl:
    def test_relative(self) -> None:
        assert graphql_url("https://x.example/", "/graphql") == "https://x.example/graphql"

    def test_absolute(self) -> None:
        assert graphql_url("https://x.example", "https://gql.example/v1") == "https://gql.example/v1"


class TestParseErrors:
    def test_path_and_location(self) -> None:
        errors = [
            {"message": "Not found", "path": ["user", 0], "locations": [{"line": 2, "column": 3}]},
            {"message": "Plain"},
            "raw string",
        ]
        assert parse_graphql_errors(errors) == [
            "Not found at path: user.0 (line 2, column 3)",
            "Plain",
            "raw string",
        ]

    def test_none(self) -> None:
        assert parse_graphql_errors(None) == []


class TestExecute:
    def test_success_unwraps_data(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"country": {"name": "France"}}})

        request = build_graphql_request(_operation(), {"code": "FR"})
        data, status = _executor(handler).execute(
            "https://x.example/graphql", request, {"Authorization": "Bearer t"}
        )

        assert data == {"country": {"name": "France"}}
        assert status == 200
        assert seen[0].method == "POST"
        assert seen[0].headers["authorization"] == "Bearer t"
        assert seen[0].headers["accept"] == "application/json"
        assert json.loads(seen[0].content) == request

    def test_errors_on_200(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"data": None, "errors": [{"message": "Country not found"}]}
            )

        with pytest.raises(ApiRequestFailedError) as exc_info:
            _executor(handler).execute(
                "https://x.example/graphql", build_graphql_request(_operation(), {"code": "XX"})
            )
        err = exc_info.value
        assert err.message == "Country not found"
        assert err.details["errors"] == ["Country not found"]
        assert err.details["operationName"] == "GetCountry"
        assert err.status_code == 200

    def test_non_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with pytest.raises(ApiResponseInvalidError):
            _executor(handler).execute("https://x.example/graphql", {"query": "{ a }"})

    def test_error_status_without_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "internal"})

        with pytest.raises(ApiRequestFailedError) as exc_info:
            _executor(handler).execute("https://x.example/graphql", {"query": "{ a }"})
        assert exc_info.value.status_code == 500
