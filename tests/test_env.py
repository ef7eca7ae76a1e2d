"""Tests for ${VAR} placeholder resolution."""

from __future__ import annotations

import pytest

from apiwire.env import (
    get_env_var_names,
    has_env_placeholders,
    resolve_env_in_object,
    resolve_env_vars,
    resolve_service_config,
)
from apiwire.exceptions import EnvVarNotFoundError, ErrorCode
from apiwire.models import ServiceConfig


class TestResolveEnvVars:
    def test_substitutes_single_placeholder(self) -> None:
        assert resolve_env_vars("${HOST}", {"HOST": "api.example.com"}) == "api.example.com"

    def test_substitutes_embedded_placeholders(self) -> None:
        env = {"SCHEME": "https", "HOST": "api.example.com"}
        assert resolve_env_vars("${SCHEME}://${HOST}/v1", env) == "https://api.example.com/v1"

    def test_plain_string_unchanged(self) -> None:
        assert resolve_env_vars("no placeholders here", {}) == "no placeholders here"

    def test_empty_value_is_substituted(self) -> None:
        assert resolve_env_vars("x${EMPTY}y", {"EMPTY": ""}) == "xy"

    def test_missing_variable_raises(self) -> None:
        with pytest.raises(EnvVarNotFoundError) as exc_info:
            resolve_env_vars("Bearer ${MISSING_TOKEN}", {})
        assert exc_info.value.code == ErrorCode.ENV_VAR_NOT_FOUND
        assert exc_info.value.details == {"variable": "MISSING_TOKEN"}
        assert "MISSING_TOKEN" in exc_info.value.message

    def test_defaults_to_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIWIRE_TEST_VALUE", "from-env")
        assert resolve_env_vars("${APIWIRE_TEST_VALUE}") == "from-env"


class TestResolveEnvInObject:
    def test_nested_structures(self) -> None:
        data = {"a": "${X}", "b": ["${X}", 3, None], "c": {"d": True, "e": "${X}!"}}
        result = resolve_env_in_object(data, {"X": "1"})
        assert result == {"a": "1", "b": ["1", 3, None], "c": {"d": True, "e": "1!"}}

    def test_non_string_scalars_pass_through(self) -> None:
        assert resolve_env_in_object(42, {}) == 42
        assert resolve_env_in_object(None, {}) is None


class TestResolveServiceConfig:
    def test_resolves_all_locations(self, github_config: ServiceConfig) -> None:
        github_config.base_url = "${GH_URL}"
        github_config.endpoints[0].headers = {"X-Trace": "${TRACE}"}
        github_config.aliases[0].args = {"username": "${ME}"}
        env = {"GH_URL": "https://gh.example", "GITHUB_TOKEN": "t0k3n", "TRACE": "on", "ME": "me"}

        resolved = resolve_service_config(github_config, env)

        assert resolved.base_url == "https://gh.example"
        assert resolved.authentication.token == "t0k3n"
        assert resolved.endpoints[0].headers == {"X-Trace": "on"}
        assert resolved.aliases[0].args == {"username": "me"}

    def test_input_is_not_mutated(self, github_config: ServiceConfig) -> None:
        resolve_service_config(github_config, {"GITHUB_TOKEN": "secret"})
        assert github_config.authentication.token == "${GITHUB_TOKEN}"

    def test_missing_token_variable_raises(self, github_config: ServiceConfig) -> None:
        with pytest.raises(EnvVarNotFoundError):
            resolve_service_config(github_config, {})

    def test_graphql_variables_resolved(self, graphql_config: ServiceConfig) -> None:
        graphql_config.graphql_operations[0].variables = {"code": "${CODE}"}
        resolved = resolve_service_config(graphql_config, {"CODE": "FR"})
        assert resolved.graphql_operations[0].variables == {"code": "FR"}


class TestPlaceholderHelpers:
    def test_has_env_placeholders(self) -> None:
        assert has_env_placeholders("${A}") is True
        assert has_env_placeholders("$A") is False

    def test_get_env_var_names_in_order(self) -> None:
        assert get_env_var_names("${B}/${A}/${B}") == ["B", "A", "B"]
