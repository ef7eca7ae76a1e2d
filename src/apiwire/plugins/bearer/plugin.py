"""Bearer token authentication plugin.

This module provides :class:`BearerAuthPlugin`, which implements the
``bearer`` auth type. The resolved ``authentication.token`` is sent as an
``Authorization: Bearer <token>`` header. No token exchange or refresh
takes place.

See Also:
    :class:`apiwire.auth.base.AuthPlugin` for the base interface.
"""

from __future__ import annotations

from apiwire.auth.base import AuthPlugin, AuthResult
from apiwire.models import AuthConfig


class BearerAuthPlugin(AuthPlugin):
    """Authenticate via Bearer token in the Authorization header."""

    @property
    def auth_type(self) -> str:
        return "bearer"

    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        return AuthResult(headers={"Authorization": f"Bearer {auth_config.token}"})

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        errors: list[str] = []
        if auth_config.header:
            errors.append("Bearer auth ignores 'header'; it always uses Authorization")
        if auth_config.location != "header":
            errors.append("Bearer auth only supports location 'header'")
        return errors
