"""Call engine -- the boundary between callers and the components.

:class:`EndpointOrchestrator` takes ``(service, target, raw_args,
options)`` and returns a :class:`~apiwire.models.CallResult`, running
resolution, parameter mapping, caching, authentication, execution and
transformation in order.
"""

from apiwire.engine.orchestrator import CallState, EndpointOrchestrator

__all__ = ["CallState", "EndpointOrchestrator"]
