"""Built-in authentication plugins.

Each sub-package implements one :class:`~apiwire.auth.base.AuthPlugin`:

* :mod:`~apiwire.plugins.bearer` -- ``Authorization: Bearer <token>``.
* :mod:`~apiwire.plugins.api_key` -- a static key in a header or the
  query string.

Both are registered by :func:`~apiwire.auth.manager.create_default_manager`.
"""
