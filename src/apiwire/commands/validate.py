"""Validate command -- check service YAML files before they are used.

Runs schema validation plus the advisory checks in
:mod:`apiwire.validation` over every discovered file (or only the files
declaring one service). Prints a JSON report on stdout; exits 1 when any
file has errors, or warnings under ``--strict``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from apiwire.exit_codes import EXIT_GENERIC_FAILURE, EXIT_NOT_FOUND


def validate_command(
    service: Optional[str] = typer.Argument(None, help="Only validate this service."),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors."),
    config_dir: Optional[Path] = typer.Option(
        None, "--config", help="Directory containing service YAML files."
    ),
) -> None:
    """Validate service configuration files."""
    from apiwire.config import config_search_dirs, list_config_files
    from apiwire.output import error, format_response, success, warning
    from apiwire.validation import validate_file

    reports = []
    for directory, _is_global in config_search_dirs(config_dir):
        for path in list_config_files(directory):
            report = validate_file(path)
            if service is not None and report.service != service:
                continue
            reports.append(report)

    if service is not None and not reports:
        error(f"Service '{service}' not found")
        raise typer.Exit(code=EXIT_NOT_FOUND)

    for report in reports:
        for message in report.errors:
            error(f"{report.path}: {message}")
        for message in report.warnings:
            warning(f"{report.path}: {message}")

    valid = all(report.is_valid(strict) for report in reports)
    format_response(
        {
            "valid": valid,
            "strict": strict,
            "files": [report.model_dump() for report in reports],
        }
    )
    if not valid:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    success(f"{len(reports)} file(s) valid")
