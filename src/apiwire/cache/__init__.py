"""Disk-based response caching for apiwire.

This package provides :class:`ResponseCache`, a best-effort store for the
transformed results of cacheable calls, persisted with :mod:`diskcache`.
Entries carry their own TTL and expire lazily when read.

The cache is consumed by
:class:`~apiwire.engine.orchestrator.EndpointOrchestrator` and inspected
by the ``apiwire cache`` commands.
"""

from apiwire.cache.cache import ResponseCache, sanitize_headers

__all__ = ["ResponseCache", "sanitize_headers"]
