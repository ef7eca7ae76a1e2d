"""Environment variable interpolation for service configurations.

Service YAML files never contain secrets directly. Instead they reference
environment variables with ``${NAME}`` placeholders::

    baseUrl: ${SHOP_URL}
    authentication:
      type: bearer
      token: ${SHOP_TOKEN}

This module is the only place that reads the process environment for
configuration values. :func:`resolve_service_config` returns a copy of a
:class:`~apiwire.models.ServiceConfig` in which every placeholder has been
substituted; everything downstream works with plain resolved values.

A referenced variable that is not set is a hard failure
(:class:`~apiwire.exceptions.EnvVarNotFoundError`); an empty string is never
substituted silently.
"""

from __future__ import annotations

import os
import re
from typing import Any, Mapping, Optional

from apiwire.exceptions import EnvVarNotFoundError
from apiwire.models import ServiceConfig

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def resolve_env_vars(value: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Replace every ``${NAME}`` in *value* with the variable's value.

    Args:
        value: String that may contain placeholders.
        environ: Mapping to resolve against. Defaults to ``os.environ``.

    Returns:
        The substituted string.

    Raises:
        EnvVarNotFoundError: If any referenced variable is not set.
    """
    env = os.environ if environ is None else environ

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        resolved = env.get(name)
        if resolved is None:
            raise EnvVarNotFoundError(
                f"Environment variable {name} is not defined",
                details={"variable": name},
                help=f"export {name}=...",
            )
        return resolved

    return _ENV_VAR_RE.sub(_substitute, value)


def resolve_env_in_object(obj: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively resolve placeholders in strings nested inside dicts and lists.

    Non-string scalars (numbers, booleans, ``None``) are returned unchanged.
    """
    if isinstance(obj, str):
        return resolve_env_vars(obj, environ)
    if isinstance(obj, list):
        return [resolve_env_in_object(item, environ) for item in obj]
    if isinstance(obj, dict):
        return {key: resolve_env_in_object(val, environ) for key, val in obj.items()}
    return obj


def resolve_service_config(
    config: ServiceConfig, environ: Optional[Mapping[str, str]] = None
) -> ServiceConfig:
    """Return a deep copy of *config* with all placeholders substituted.

    Covers ``baseUrl``, ``authentication.token``, endpoint ``path``,
    ``headers`` and ``defaultParams``, alias ``args``, and GraphQL operation
    default ``variables``. The input model is not modified.

    Raises:
        EnvVarNotFoundError: On the first unset variable encountered.
    """
    resolved = config.model_copy(deep=True)
    resolved.base_url = resolve_env_vars(config.base_url, environ)

    if resolved.authentication is not None:
        resolved.authentication.token = resolve_env_vars(
            resolved.authentication.token, environ
        )

    for endpoint in resolved.endpoints:
        endpoint.path = resolve_env_vars(endpoint.path, environ)
        if endpoint.headers:
            endpoint.headers = resolve_env_in_object(endpoint.headers, environ)
        if endpoint.default_params:
            endpoint.default_params = resolve_env_in_object(endpoint.default_params, environ)

    for operation in resolved.graphql_operations:
        if operation.variables:
            operation.variables = resolve_env_in_object(operation.variables, environ)

    for alias in resolved.aliases:
        if alias.args:
            alias.args = resolve_env_in_object(alias.args, environ)

    return resolved


def has_env_placeholders(value: str) -> bool:
    """Return True if *value* contains at least one ``${NAME}`` placeholder."""
    return _ENV_VAR_RE.search(value) is not None


def get_env_var_names(value: str) -> list[str]:
    """Return the variable names referenced by *value*, in order of appearance."""
    return _ENV_VAR_RE.findall(value)
