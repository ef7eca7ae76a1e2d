"""List command -- show configured services, endpoints, and aliases.

Examples::

    apiwire list                      # all services
    apiwire list endpoints github     # endpoints (or GraphQL operations)
    apiwire list aliases github
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from apiwire.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from apiwire.models import ServiceConfig

_RESOURCES = ("services", "endpoints", "aliases")


def _services_rows(services: dict[str, ServiceConfig]) -> list[list[str]]:
    rows = []
    for name in sorted(services):
        svc = services[name]
        targets = svc.graphql_operations if svc.is_graphql else svc.endpoints
        rows.append(
            [
                name,
                svc.api_type.value,
                svc.base_url,
                str(len(targets)),
                str(len(svc.aliases)),
            ]
        )
    return rows


def list_command(
    resource: str = typer.Argument(
        "services", help="What to list: services, endpoints, or aliases."
    ),
    service: Optional[str] = typer.Argument(
        None, help="Service name (required for endpoints and aliases)."
    ),
    config_dir: Optional[Path] = typer.Option(
        None, "--config", help="Directory containing service YAML files."
    ),
) -> None:
    """List services, or the endpoints and aliases of one service."""
    from apiwire.config import load_all_configs
    from apiwire.output import error, info, print_table

    if resource not in _RESOURCES:
        error(f"Unknown resource '{resource}'. Choose from: {', '.join(_RESOURCES)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    services = load_all_configs(config_dir)

    if resource == "services":
        if not services:
            info("No services configured.")
        print_table(
            ["name", "type", "base_url", "endpoints", "aliases"],
            _services_rows(services),
            title="Services",
        )
        return

    if service is None:
        error(f"A service name is required to list {resource}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    svc = services.get(service)
    if svc is None:
        error(f"Service '{service}' not found")
        raise typer.Exit(code=EXIT_NOT_FOUND)

    if resource == "endpoints":
        if svc.is_graphql:
            rows = [
                [op.name, op.operation_type.value, str(op.cache_ttl or "")]
                for op in svc.graphql_operations
            ]
            print_table(["name", "type", "cache_ttl"], rows, title=f"{service} operations")
        else:
            rows = [
                [ep.name, ep.method.value, ep.path, str(ep.cache_ttl or "")]
                for ep in svc.endpoints
            ]
            print_table(
                ["name", "method", "path", "cache_ttl"], rows, title=f"{service} endpoints"
            )
        return

    rows = [
        [alias.name, alias.endpoint, " ".join(f"{k}={v}" for k, v in alias.args.items())]
        for alias in svc.aliases
    ]
    print_table(["name", "endpoint", "args"], rows, title=f"{service} aliases")
