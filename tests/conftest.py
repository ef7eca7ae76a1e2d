"""Shared test fixtures for apiwire.

Provides reusable fixtures for building service configurations, creating
isolated config environments, wiring the engine to an in-process
:class:`httpx.MockTransport`, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
import yaml

from apiwire.cache import ResponseCache
from apiwire.client import RequestExecutor
from apiwire.engine import EndpointOrchestrator
from apiwire.models import ServiceConfig
from apiwire.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Service configuration fixtures
# ---------------------------------------------------------------------------


GITHUB_SERVICE: dict[str, Any] = {
    "serviceName": "github",
    "baseUrl": "https://api.github.com",
    "authentication": {"type": "bearer", "token": "${GITHUB_TOKEN}"},
    "endpoints": [
        {
            "name": "getUser",
            "method": "GET",
            "path": "/users/{username}",
            "cacheTTL": 300,
        },
        {
            "name": "listRepos",
            "method": "GET",
            "path": "/users/{username}/repos",
            "defaultParams": {"per_page": 30},
            "transform": {"fields": ["[*].name", "[*].stargazers_count"]},
        },
        {
            "name": "createIssue",
            "method": "POST",
            "path": "/repos/{owner}/{repo}/issues",
            "cacheTTL": 60,
        },
    ],
    "aliases": [
        {"name": "me", "endpoint": "getUser", "args": {"username": "octocat"}},
    ],
}

COUNTRIES_SERVICE: dict[str, Any] = {
    "serviceName": "countries",
    "baseUrl": "https://countries.example.com",
    "apiType": "graphql",
    "graphqlEndpoint": "/graphql",
    "graphqlOperations": [
        {
            "name": "getCountry",
            "operationType": "query",
            "query": "query GetCountry($code: ID!) { country(code: $code) { name capital } }",
            "cacheTTL": 600,
        },
        {
            "name": "addNote",
            "operationType": "mutation",
            "query": "mutation AddNote($text: String!) { addNote(text: $text) { id } }",
            "cacheTTL": 600,
        },
    ],
}


@pytest.fixture
def github_data() -> dict[str, Any]:
    """Raw YAML-shaped dict of the REST service (a fresh copy per test)."""
    return copy.deepcopy(GITHUB_SERVICE)


@pytest.fixture
def countries_data() -> dict[str, Any]:
    """Raw YAML-shaped dict of the GraphQL service (a fresh copy per test)."""
    return copy.deepcopy(COUNTRIES_SERVICE)


@pytest.fixture
def github_config() -> ServiceConfig:
    """A REST service with bearer auth, a cached endpoint and an alias."""
    return ServiceConfig.model_validate(GITHUB_SERVICE)


@pytest.fixture
def graphql_config() -> ServiceConfig:
    """A GraphQL service with one cached query and one mutation."""
    return ServiceConfig.model_validate(COUNTRIES_SERVICE)


@pytest.fixture
def write_service() -> Callable[..., Path]:
    """Return a helper that writes a service dict as YAML into a directory."""

    def _write(directory: Path, data: dict[str, Any], filename: str | None = None) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / (filename or f"{data['serviceName']}.yaml")
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config, forces XDG path resolution, and changes the working
    directory to tmp_path (so ``./.apiwire/`` is local to the test).

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("apiwire.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    ``responses`` is consumed in order; the last one is repeated once the
    list runs out. Each item is either an :class:`httpx.Response` or a
    callable taking the request and returning one (or raising).
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses) or [httpx.Response(200, json={})]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        item = self.responses[index]
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item

    @property
    def count(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def make_orchestrator(tmp_path: Path) -> Callable[..., tuple[EndpointOrchestrator, RecordingHandler]]:
    """Return a factory building an orchestrator over a recording MockTransport.

    The response cache lives in ``tmp_path``; pass ``cache=False`` to run
    without one.
    """
    caches: list[ResponseCache] = []

    def _make(*responses: Any, cache: bool = True) -> tuple[EndpointOrchestrator, RecordingHandler]:
        handler = RecordingHandler(*responses)
        executor = RequestExecutor(transport=httpx.MockTransport(handler))
        response_cache = None
        if cache:
            response_cache = ResponseCache(tmp_path / "cache")
            caches.append(response_cache)
        return EndpointOrchestrator(cache=response_cache, executor=executor), handler

    yield _make
    for c in caches:
        c.close()


@pytest.fixture
def mock_api(monkeypatch: pytest.MonkeyPatch) -> Callable[..., RecordingHandler]:
    """Return an installer that routes the engine's default executor to a MockTransport.

    Used by CLI tests, where the orchestrator is built inside the command.
    """

    def _install(*responses: Any) -> RecordingHandler:
        handler = RecordingHandler(*responses)
        transport = httpx.MockTransport(handler)
        monkeypatch.setattr(
            "apiwire.engine.orchestrator.RequestExecutor",
            lambda: RequestExecutor(transport=transport),
        )
        return handler

    return _install


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> dict[str, float]:
    """Replace the cache module's clock with a controllable one.

    Mutate ``clock["now"]`` to move time forward.
    """
    from types import SimpleNamespace

    clock = {"now": 1_700_000_000.0}
    monkeypatch.setattr(
        "apiwire.cache.cache.time", SimpleNamespace(time=lambda: clock["now"])
    )
    return clock


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def debug_output() -> OutputManager:
    """Install a verbose, colourless manager so debug traces reach stderr."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_app():
    """The root Typer app with every built-in command registered."""
    from apiwire.app import app, register_commands

    register_commands()
    return app
