"""Bearer token authentication plugin.

Implements the ``bearer`` auth type, which sends the resolved token as an
``Authorization: Bearer`` header.

See Also:
    :class:`~apiwire.plugins.bearer.plugin.BearerAuthPlugin`
    :mod:`apiwire.auth.base` for the plugin interface contract.
"""

from apiwire.plugins.bearer.plugin import BearerAuthPlugin

__all__ = ["BearerAuthPlugin"]
