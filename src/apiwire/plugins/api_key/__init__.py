"""API key authentication plugin.

Implements the ``apikey`` auth type, which injects a static API key into
outgoing requests as a header or query parameter.

See Also:
    :class:`~apiwire.plugins.api_key.plugin.APIKeyAuthPlugin`
    :mod:`apiwire.auth.base` for the plugin interface contract.
"""

from apiwire.plugins.api_key.plugin import APIKeyAuthPlugin

__all__ = ["APIKeyAuthPlugin"]
