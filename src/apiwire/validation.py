"""Semantic checks for service files, used by ``apiwire validate``.

Schema validation (required fields, unique names, alias targets) already
happens when a file is parsed into a
:class:`~apiwire.models.ServiceConfig`. This module adds the checks that
depend on context or that are advisory:

* **Errors** -- the file cannot be loaded, or a path repeats a
  ``{param}``.
* **Warnings** -- unset environment variables, paths without a leading
  ``/``, ``cacheTTL`` on non-GET endpoints, credentials hard-coded into
  endpoint headers, aliases that do not supply path parameters, suspicious
  base URLs, and auth options that the configured type ignores.

``--strict`` promotes warnings to errors.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from apiwire.auth import create_default_manager
from apiwire.auth.redact import SENSITIVE_HEADERS
from apiwire.config import load_yaml_config
from apiwire.env import get_env_var_names
from apiwire.exceptions import ConfigError
from apiwire.mapper.path_template import extract_path_parameters, find_path_tokens
from apiwire.models import HTTPMethod, ServiceConfig


class FileReport(BaseModel):
    """Validation outcome of one file."""

    path: str
    service: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def is_valid(self, strict: bool = False) -> bool:
        return not self.errors and not (strict and self.warnings)


def _env_warnings(config: ServiceConfig, environ: Mapping[str, str]) -> list[str]:
    values: list[str] = [config.base_url]
    if config.authentication is not None:
        values.append(config.authentication.token)
    for endpoint in config.endpoints:
        values.append(endpoint.path)
        values.extend((endpoint.headers or {}).values())
        values.extend(str(v) for v in (endpoint.default_params or {}).values())
    for alias in config.aliases:
        values.extend(str(v) for v in alias.args.values())

    missing: list[str] = []
    for value in values:
        for name in get_env_var_names(value):
            if name not in environ and name not in missing:
                missing.append(name)
    return [f"Environment variable '{name}' is not set" for name in missing]


def check_service(
    config: ServiceConfig, environ: Optional[Mapping[str, str]] = None
) -> tuple[list[str], list[str]]:
    """Return ``(errors, warnings)`` for an already-parsed service."""
    env = os.environ if environ is None else environ
    errors: list[str] = []
    warnings: list[str] = []

    if config.base_url.endswith("/"):
        warnings.append("Base URL ends with a slash")
    if "localhost" in config.base_url or "127.0.0.1" in config.base_url:
        warnings.append("Base URL points to localhost")

    if config.authentication is not None:
        warnings.extend(create_default_manager().validate(config.authentication))

    for endpoint in config.endpoints:
        if not endpoint.path.startswith("/") and not endpoint.path.startswith("${"):
            warnings.append(f"Endpoint '{endpoint.name}' path should start with '/'")

        names = find_path_tokens(endpoint.path)
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            errors.append(
                f"Duplicate path parameters in endpoint '{endpoint.name}': {', '.join(dupes)}"
            )

        if endpoint.cache_ttl and endpoint.method != HTTPMethod.GET:
            warnings.append(f"Cache TTL on non-GET endpoint '{endpoint.name}' will be ignored")

        headers = {k.lower() for k in (endpoint.headers or {})}
        if endpoint.method == HTTPMethod.GET and "content-type" in headers:
            warnings.append(f"Content-Type header on GET endpoint '{endpoint.name}' is unusual")
        if headers & SENSITIVE_HEADERS:
            warnings.append(
                f"Authentication header in endpoint '{endpoint.name}' headers; "
                "use the authentication section instead"
            )

    for operation in config.graphql_operations:
        if operation.cache_ttl and not operation.is_query:
            warnings.append(f"Cache TTL on mutation '{operation.name}' will be ignored")

    for alias in config.aliases:
        endpoint = config.find_endpoint(alias.endpoint)
        if endpoint is None:
            continue
        missing = [p for p in extract_path_parameters(endpoint.path) if p not in alias.args]
        if missing:
            warnings.append(
                f"Alias '{alias.name}' missing required path parameters: {', '.join(missing)}"
            )

    warnings.extend(_env_warnings(config, env))
    return errors, warnings


def validate_file(path: str | Path, environ: Optional[Mapping[str, str]] = None) -> FileReport:
    """Load *path* and run every check. Never raises for invalid content."""
    report = FileReport(path=str(path))
    try:
        config = load_yaml_config(path)
    except ConfigError as exc:
        report.errors.append(exc.message)
        return report
    report.service = config.service_name
    errors, warnings = check_service(config, environ)
    report.errors.extend(errors)
    report.warnings.extend(warnings)
    return report
