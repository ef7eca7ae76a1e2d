"""Plugin-based authentication for apiwire.

The main entry points are:

- :class:`AuthPlugin` -- abstract base class for auth strategies.
- :class:`AuthManager` -- maps the ``authentication.type`` of a service to
  a plugin and produces an :class:`AuthResult`.
- :func:`create_default_manager` -- a manager pre-loaded with the built-in
  ``bearer`` and ``apikey`` plugins.
- :func:`apply_auth`, :func:`apply_auth_to_query`, :func:`validate_auth`
  -- pure helpers over :class:`~apiwire.models.AuthConfig`.
- :func:`redact_headers` -- mask credentials before they reach a trace.

Typical usage::

    from apiwire.auth import create_default_manager

    manager = create_default_manager()
    result = manager.authenticate(service.authentication)
    # result.headers / result.params are ready to inject into the request.
"""

from apiwire.auth.base import AuthPlugin, AuthResult
from apiwire.auth.manager import (
    AuthManager,
    apply_auth,
    apply_auth_to_query,
    create_default_manager,
    validate_auth,
)
from apiwire.auth.redact import redact_headers, redact_params, redact_value

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "AuthManager",
    "apply_auth",
    "apply_auth_to_query",
    "create_default_manager",
    "redact_headers",
    "redact_params",
    "redact_value",
    "validate_auth",
]
