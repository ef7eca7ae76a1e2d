"""Call command -- execute an endpoint, GraphQL operation, or alias.

``apiwire call`` is the main entry point for scripts and agents::

    apiwire call github.getUser username=octocat
    apiwire call github.searchRepos --query q=python --query sort=stars
    apiwire call shop.createOrder --body sku=A1 --header X-Request-Id=42
    apiwire call github.getUser --batch-json '[{"username":"a"},{"username":"b"}]'

The result is printed to stdout as JSON (``{"success", "data" | "error",
"metadata"}``; a list of those for ``--batch-json``). ``--pretty`` renders
it with Rich instead. The exit code is 0 on success and otherwise mirrors
the error class (see :mod:`apiwire.exit_codes`).
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Optional

import typer

from apiwire.exceptions import ApiwireError, ParamInvalidError, exit_code_for_error
from apiwire.exit_codes import EXIT_SUCCESS
from apiwire.models import CallError, CallMetadata, CallOptions, CallResult, ParamHints


def parse_target(target: str) -> tuple[str, str]:
    """Split ``service.endpoint`` on the first dot.

    Raises:
        ParamInvalidError: If either half is missing.
    """
    service, sep, endpoint = target.partition(".")
    if not sep or not service or not endpoint:
        raise ParamInvalidError(
            f"Invalid target '{target}': expected service.endpoint",
            details={"target": target},
            help="Example: apiwire call github.getUser username=octocat",
        )
    return service, endpoint


def parse_batch_json(raw: str) -> list[dict[str, Any]]:
    """Parse ``--batch-json`` into a non-empty list of argument objects.

    Raises:
        ParamInvalidError: On malformed JSON, a non-array, an empty array,
            or a non-object item.
    """
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParamInvalidError(f"Invalid batch JSON: {exc.msg}") from exc
    if not isinstance(items, list):
        raise ParamInvalidError("Batch JSON must be an array of argument objects")
    if not items:
        raise ParamInvalidError("Batch JSON must be a non-empty array of argument objects")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ParamInvalidError(
                f"Batch item {index} must be an object",
                details={"index": index},
            )
    return items


def _collect_args(
    args: Optional[list[str]],
    path: Optional[list[str]],
    query: Optional[list[str]],
    header: Optional[list[str]],
    body: Optional[list[str]],
) -> tuple[dict[str, Any], ParamHints]:
    from apiwire.mapper import parse_key_value_pairs

    cli_args = parse_key_value_pairs(args or [])
    hints = ParamHints()
    for values, bucket in (
        (path, hints.path_params),
        (query, hints.query_params),
        (header, hints.header_params),
        (body, hints.body_params),
    ):
        parsed = parse_key_value_pairs(values or [])
        cli_args.update(parsed)
        bucket.extend(parsed)
    return cli_args, hints


def _error_result(exc: ApiwireError) -> CallResult:
    return CallResult(
        success=False,
        error=CallError(**exc.to_error_dict()),
        metadata=CallMetadata(timestamp=int(time.time() * 1000), status_code=exc.status_code),
    )


def _emit(payload: Any, failed: Optional[CallResult] = None) -> None:
    from apiwire.output import OutputFormat, error, format_response, get_output

    format_response(payload)
    if failed is not None and failed.error is not None and get_output().format != OutputFormat.JSON:
        error(f"{failed.error.code}: {failed.error.message}")


def call_command(
    target: str = typer.Argument(help="Target as service.endpoint or service.alias."),
    args: Optional[list[str]] = typer.Argument(
        None, help="Arguments as key=value pairs.", show_default=False
    ),
    path: Optional[list[str]] = typer.Option(
        None, "--path", help="Path parameter key=value.", show_default=False
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", help="Query parameter key=value.", show_default=False
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", help="Header key=value.", show_default=False
    ),
    body: Optional[list[str]] = typer.Option(
        None, "--body", help="Body field key=value.", show_default=False
    ),
    batch_json: Optional[str] = typer.Option(
        None, "--batch-json", help="JSON array of argument objects to run sequentially."
    ),
    fail_fast: bool = typer.Option(
        False, "--fail-fast", help="Stop a batch at the first failure."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
    timeout: int = typer.Option(
        30000, "--timeout", min=1, help="Request timeout in milliseconds."
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Human-readable output."),
    debug: bool = typer.Option(False, "--debug", help="Trace the call on stderr."),
    config_dir: Optional[Path] = typer.Option(
        None, "--config", help="Directory containing service YAML files."
    ),
) -> None:
    """Call an API endpoint.

    Arguments are merged with alias arguments (the command line wins) and
    routed to the path, query string, headers or body. Use --path, --query,
    --header and --body to route a key explicitly.
    """
    from apiwire.cache import ResponseCache
    from apiwire.config import get_cache_dir, load_service_config
    from apiwire.engine import EndpointOrchestrator
    from apiwire.output import OutputFormat, OutputManager, get_output, set_output

    current = get_output()
    if pretty or debug:
        set_output(
            OutputManager(
                format=OutputFormat.RICH if pretty else current.format,
                no_color=current.no_color,
                quiet=current.is_quiet,
                verbose=debug or current.is_verbose,
            )
        )
    debug = debug or get_output().is_verbose

    try:
        service_name, endpoint_name = parse_target(target)
        cli_args, hints = _collect_args(args, path, query, header, body)
        items = parse_batch_json(batch_json) if batch_json is not None else None
        service = load_service_config(service_name, config_dir, resolve=False)
    except ApiwireError as exc:
        failed = _error_result(exc)
        _emit(failed.to_output(), failed)
        raise typer.Exit(code=exc.exit_code)

    options = CallOptions(debug=debug, no_cache=no_cache, timeout_ms=timeout, fail_fast=fail_fast)
    cache = ResponseCache(get_cache_dir())
    try:
        orchestrator = EndpointOrchestrator(cache=cache)
        if items is not None:
            batch = orchestrator.call_batch(
                service, endpoint_name, items, cli_args, options, hints
            )
            first_failure = next((r for r in batch.results if not r.success), None)
            _emit(batch.to_output(), first_failure)
            exit_code = (
                exit_code_for_error(first_failure.error.code, first_failure.error.details)
                if first_failure is not None and first_failure.error is not None
                else EXIT_SUCCESS
            )
        else:
            result = orchestrator.call(service, endpoint_name, cli_args, options, hints)
            _emit(result.to_output(), None if result.success else result)
            exit_code = (
                exit_code_for_error(result.error.code, result.error.details)
                if result.error is not None
                else EXIT_SUCCESS
            )
    finally:
        cache.close()

    if exit_code != EXIT_SUCCESS:
        raise typer.Exit(code=exit_code)
