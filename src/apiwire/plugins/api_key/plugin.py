"""API key auth plugin -- header or query parameter placement.

This module provides :class:`APIKeyAuthPlugin` for the ``apikey`` auth
type. The resolved token is placed according to
``authentication.location``:

* ``header`` (default) -- sent as the header named by
  ``authentication.header``, default ``X-API-Key``.
* ``query`` -- sent as the query parameter named by
  ``authentication.paramName``, default ``api_key``.

See Also:
    :class:`apiwire.auth.base.AuthPlugin` for the base interface.
"""

from __future__ import annotations

from apiwire.auth.base import AuthPlugin, AuthResult
from apiwire.auth.manager import DEFAULT_API_KEY_HEADER, DEFAULT_API_KEY_PARAM
from apiwire.models import AuthConfig


class APIKeyAuthPlugin(AuthPlugin):
    """Authenticate via an API key placed in a header or query parameter."""

    @property
    def auth_type(self) -> str:
        return "apikey"

    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        """Build an :class:`~apiwire.auth.base.AuthResult` for the configured location."""
        if auth_config.location == "query":
            key_name = auth_config.param_name or DEFAULT_API_KEY_PARAM
            return AuthResult(params={key_name: auth_config.token})
        key_name = auth_config.header or DEFAULT_API_KEY_HEADER
        return AuthResult(headers={key_name: auth_config.token})

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        errors: list[str] = []
        if auth_config.location == "query" and auth_config.header:
            errors.append("'header' is ignored when location is 'query'; use 'paramName'")
        if auth_config.location == "header" and auth_config.param_name:
            errors.append("'paramName' is ignored when location is 'header'")
        return errors
