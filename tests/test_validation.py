"""Tests for the semantic checks behind ``apiwire validate``."""

from __future__ import annotations

from pathlib import Path

from apiwire.models import ServiceConfig
from apiwire.validation import FileReport, check_service, validate_file


def _service(**overrides) -> ServiceConfig:
    data = {
        "serviceName": "svc",
        "baseUrl": "https://api.example.com",
        "endpoints": [{"name": "get", "method": "GET", "path": "/items/{id}"}],
    }
    data.update(overrides)
    return ServiceConfig.model_validate(data)


class TestCheckService:
    def test_clean_service(self) -> None:
        assert check_service(_service(), environ={}) == ([], [])

    def test_unset_env_vars(self, github_config: ServiceConfig) -> None:
        errors, warnings = check_service(github_config, environ={})
        assert errors == []
        assert "Environment variable 'GITHUB_TOKEN' is not set" in warnings

    def test_set_env_vars_not_reported(self, github_config: ServiceConfig) -> None:
        _, warnings = check_service(github_config, environ={"GITHUB_TOKEN": "x"})
        assert not any("GITHUB_TOKEN" in w for w in warnings)

    def test_base_url_warnings(self) -> None:
        _, warnings = check_service(_service(baseUrl="http://localhost:8080/"), environ={})
        assert "Base URL ends with a slash" in warnings
        assert "Base URL points to localhost" in warnings

    def test_duplicate_path_params_is_error(self) -> None:
        service = _service(endpoints=[{"name": "e", "method": "GET", "path": "/a/{id}/b/{id}"}])
        errors, _ = check_service(service, environ={})
        assert errors == ["Duplicate path parameters in endpoint 'e': id"]

    def test_endpoint_warnings(self) -> None:
        service = _service(
            endpoints=[
                {"name": "post", "method": "POST", "path": "items", "cacheTTL": 30},
                {
                    "name": "get",
                    "method": "GET",
                    "path": "/items",
                    "headers": {"Content-Type": "application/json", "Authorization": "x"},
                },
            ]
        )
        _, warnings = check_service(service, environ={})
        assert "Endpoint 'post' path should start with '/'" in warnings
        assert "Cache TTL on non-GET endpoint 'post' will be ignored" in warnings
        assert "Content-Type header on GET endpoint 'get' is unusual" in warnings
        assert any("Authentication header in endpoint 'get'" in w for w in warnings)

    def test_env_placeholders_are_not_path_params(self) -> None:
        service = _service(
            endpoints=[
                {"name": "get", "method": "GET", "path": "/${PREFIX}/items/{id}/${PREFIX}"}
            ],
            aliases=[{"name": "first", "endpoint": "get", "args": {"id": "1"}}],
        )
        assert check_service(service, environ={"PREFIX": "v1"}) == ([], [])

    def test_alias_missing_path_params(self) -> None:
        service = _service(aliases=[{"name": "first", "endpoint": "get"}])
        _, warnings = check_service(service, environ={})
        assert warnings == ["Alias 'first' missing required path parameters: id"]

    def test_mutation_cache_ttl(self, graphql_config: ServiceConfig) -> None:
        _, warnings = check_service(graphql_config, environ={})
        assert warnings == ["Cache TTL on mutation 'addNote' will be ignored"]

    def test_auth_plugin_warnings(self) -> None:
        service = _service(authentication={"type": "bearer", "token": "t", "header": "X-Token"})
        _, warnings = check_service(service, environ={})
        assert any("Bearer auth ignores 'header'" in w for w in warnings)


class TestValidateFile:
    def test_valid_file(self, tmp_path: Path, write_service, github_data) -> None:
        path = write_service(tmp_path, github_data)
        report = validate_file(path, environ={"GITHUB_TOKEN": "t"})
        assert report.service == "github"
        assert report.errors == []
        assert report.is_valid() is True

    def test_unparseable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("serviceName: [\n")
        report = validate_file(path)
        assert report.service is None
        assert len(report.errors) == 1
        assert report.is_valid() is False

    def test_strict_promotes_warnings(self) -> None:
        report = FileReport(path="x.yaml", warnings=["something"])
        assert report.is_valid() is True
        assert report.is_valid(strict=True) is False
