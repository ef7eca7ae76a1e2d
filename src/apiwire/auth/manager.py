"""Auth manager -- registry and dispatcher for auth plugins.

The :class:`AuthManager` maps auth-type strings (``"bearer"``,
``"apikey"``) to :class:`~apiwire.auth.base.AuthPlugin` instances and
exposes :meth:`~AuthManager.authenticate`, which the orchestrator calls
once per request.

The module-level functions are the pure helpers used around it:

* :func:`validate_auth` -- reject empty tokens and malformed header names
  before any request is built.
* :func:`apply_auth` / :func:`apply_auth_to_query` -- return copies of a
  header or query map with the credential added.

See Also:
    :class:`~apiwire.auth.base.AuthPlugin` -- the plugin interface.
    :class:`~apiwire.engine.orchestrator.EndpointOrchestrator` -- consumes
    the :class:`~apiwire.auth.base.AuthResult` produced here.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from apiwire.auth.base import AuthPlugin, AuthResult
from apiwire.exceptions import AuthInvalidError, AuthMissingError
from apiwire.models import AuthConfig, AuthType

_HEADER_NAME_RE = re.compile(r"^[a-zA-Z0-9-]+$")

DEFAULT_API_KEY_HEADER = "X-API-Key"
DEFAULT_API_KEY_PARAM = "api_key"


class AuthManager:
    """Registry and dispatcher for authentication plugins.

    Example::

        from apiwire.auth import AuthManager
        from apiwire.plugins.bearer import BearerAuthPlugin

        manager = AuthManager()
        manager.register(BearerAuthPlugin())
        result = manager.authenticate(service.authentication)
    """

    def __init__(self) -> None:
        self._plugins: dict[str, AuthPlugin] = {}

    def register(self, plugin: AuthPlugin) -> None:
        """Register *plugin* under its :attr:`~AuthPlugin.auth_type`, replacing any previous one."""
        self._plugins[plugin.auth_type] = plugin

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Retrieve a registered plugin by its auth type identifier.

        Raises:
            AuthInvalidError: If no plugin is registered for *auth_type*.
        """
        plugin = self._plugins.get(auth_type)
        if plugin is None:
            available = ", ".join(sorted(self._plugins)) or "(none)"
            raise AuthInvalidError(
                f"Unsupported authentication type '{auth_type}'. "
                f"Available types: {available}"
            )
        return plugin

    def authenticate(self, auth_config: Optional[AuthConfig]) -> AuthResult:
        """Validate *auth_config* and produce the request artifacts.

        Returns an empty :class:`~apiwire.auth.base.AuthResult` when the
        service has no ``authentication`` section.

        Raises:
            AuthMissingError: If the token is empty.
            AuthInvalidError: If the type is unknown or the header name is
                malformed.
        """
        if auth_config is None:
            return AuthResult()
        validate_auth(auth_config)
        plugin = self.get_plugin(_type_name(auth_config))
        return plugin.authenticate(auth_config)

    def validate(self, auth_config: AuthConfig) -> list[str]:
        """Collect plugin-specific configuration problems without raising."""
        try:
            plugin = self.get_plugin(_type_name(auth_config))
        except AuthInvalidError as exc:
            return [exc.message]
        return plugin.validate_config(auth_config)

    def list_types(self) -> list[str]:
        return sorted(self._plugins.keys())


def create_default_manager() -> AuthManager:
    """Create an :class:`AuthManager` with the ``bearer`` and ``apikey`` plugins."""
    from apiwire.plugins.api_key import APIKeyAuthPlugin
    from apiwire.plugins.bearer import BearerAuthPlugin

    manager = AuthManager()
    manager.register(BearerAuthPlugin())
    manager.register(APIKeyAuthPlugin())
    return manager


# ------------------------------------------------------------------ #
# Pure helpers
# ------------------------------------------------------------------ #


def _type_name(auth_config: AuthConfig) -> str:
    auth_type = auth_config.type
    return auth_type.value if isinstance(auth_type, AuthType) else str(auth_type)


def validate_auth(auth_config: AuthConfig) -> None:
    """Check that the credential is usable before building a request.

    Raises:
        AuthMissingError: If the token is empty or whitespace only.
        AuthInvalidError: If a custom API-key header name contains
            characters outside ``[A-Za-z0-9-]``.
    """
    if not auth_config.token or not auth_config.token.strip():
        raise AuthMissingError(
            "Authentication token is empty",
            help="Check the environment variable referenced by authentication.token",
        )
    if auth_config.header is not None and not _HEADER_NAME_RE.match(auth_config.header):
        raise AuthInvalidError(
            f"Invalid header name for API key: '{auth_config.header}'",
            details={"header": auth_config.header},
        )


def apply_auth(auth_config: Optional[AuthConfig], headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with the credential header added.

    API keys configured with ``location: query`` add no header; see
    :func:`apply_auth_to_query`. The credential header replaces any
    same-named header already present.
    """
    result = dict(headers)
    if auth_config is None:
        return result
    validate_auth(auth_config)
    if auth_config.type == AuthType.BEARER:
        result["Authorization"] = f"Bearer {auth_config.token}"
    elif auth_config.type == AuthType.APIKEY and auth_config.location == "header":
        result[auth_config.header or DEFAULT_API_KEY_HEADER] = auth_config.token
    return result


def apply_auth_to_query(
    auth_config: Optional[AuthConfig],
    query: Mapping[str, Any],
    key_name: str = DEFAULT_API_KEY_PARAM,
) -> dict[str, Any]:
    """Return a copy of *query* with an API key added as a parameter.

    The parameter name is ``auth_config.param_name`` when configured, else
    *key_name*. Bearer auth leaves the query untouched.
    """
    result = dict(query)
    if auth_config is None or auth_config.type != AuthType.APIKEY:
        return result
    validate_auth(auth_config)
    result[auth_config.param_name or key_name] = auth_config.token
    return result
