"""CLI tests for ``apiwire validate``."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

CLEAN = {
    "serviceName": "clean",
    "baseUrl": "https://api.example.com",
    "endpoints": [{"name": "ping", "method": "GET", "path": "/ping"}],
}


@pytest.fixture
def config_dir(isolated_config: Path) -> Path:
    return isolated_config / "services"


class TestValidateCommand:
    def test_valid(self, cli_runner, cli_app, config_dir: Path, write_service) -> None:
        write_service(config_dir, CLEAN)

        result = cli_runner.invoke(cli_app, ["--quiet", "validate", "--config", str(config_dir)])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["valid"] is True
        assert report["files"][0]["service"] == "clean"

    def test_invalid_file(self, cli_runner, cli_app, config_dir: Path, write_service) -> None:
        write_service(config_dir, CLEAN)
        (config_dir / "broken.yaml").write_text("serviceName: [\n")

        result = cli_runner.invoke(cli_app, ["validate", "--config", str(config_dir)])

        assert result.exit_code == 1
        assert '"valid": false' in result.output
        assert "broken.yaml" in result.output

    def test_warnings_pass_unless_strict(
        self, cli_runner, cli_app, config_dir: Path, write_service
    ) -> None:
        write_service(config_dir, dict(CLEAN, baseUrl="https://api.example.com/"))

        lenient = cli_runner.invoke(
            cli_app, ["--no-color", "validate", "--config", str(config_dir)]
        )
        strict = cli_runner.invoke(cli_app, ["validate", "--strict", "--config", str(config_dir)])

        assert lenient.exit_code == 0
        assert "Base URL ends with a slash" in lenient.output
        assert strict.exit_code == 1

    def test_single_service(
        self, cli_runner, cli_app, config_dir: Path, write_service, github_data
    ) -> None:
        write_service(config_dir, CLEAN)
        write_service(config_dir, github_data)

        result = cli_runner.invoke(cli_app, ["validate", "clean", "--config", str(config_dir)])

        assert result.exit_code == 0
        assert "github.yaml" not in result.output

    def test_unknown_service(self, cli_runner, cli_app, config_dir: Path, write_service) -> None:
        write_service(config_dir, CLEAN)
        result = cli_runner.invoke(cli_app, ["validate", "ghost", "--config", str(config_dir)])
        assert result.exit_code == 4
