"""Abstract base class for authentication plugins.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- a plain container for the HTTP headers and query
  parameters that an auth plugin produces.
- :class:`AuthPlugin` -- the abstract base class that every authentication
  strategy must extend.

To add a strategy, subclass :class:`AuthPlugin`, set the
:attr:`~AuthPlugin.auth_type` property and implement
:meth:`~AuthPlugin.authenticate`. Override
:meth:`~AuthPlugin.validate_config` for checks reported by
``apiwire validate``.

Credentials reach the plugins already resolved: ``${VAR}`` placeholders in
``authentication.token`` are substituted by
:func:`~apiwire.env.resolve_service_config` beforehand.

See Also:
    :mod:`apiwire.auth.manager` for plugin registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from apiwire.models import AuthConfig


class AuthResult:
    """Container for authentication artifacts to inject into HTTP requests.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).
        params: Query-string parameters to add (e.g. ``{"api_key": "..."}``).

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}


class AuthPlugin(ABC):
    """Abstract base class for authentication plugins.

    Plugins are registered with :class:`~apiwire.auth.manager.AuthManager`
    and looked up by their :attr:`auth_type`, which matches the ``type``
    field of a service's ``authentication`` section.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the auth type identifier this plugin handles (``"bearer"`` ...)."""
        ...

    @abstractmethod
    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        """Turn the resolved credential into request artifacts.

        Args:
            auth_config: The service's (resolved) authentication section.

        Returns:
            An :class:`AuthResult` with headers and/or query params.
        """
        ...

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        """Return human-readable problems with *auth_config* (empty if valid)."""
        return []
