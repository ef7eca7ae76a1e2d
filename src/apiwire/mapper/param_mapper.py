"""Classify runtime arguments into path, query, header, and body slots.

Callers hand the engine a flat argument bag (``{"owner": "octo",
"per_page": 10}``). :func:`map_parameters` decides where each value goes,
applying these rules in priority order -- a later rule never overwrites a
value an earlier rule already placed:

1. **Path parameters.** Every ``{param}`` in the endpoint path must be
   present in the arguments, otherwise :class:`ParamRequiredError` names
   the first missing one. Values are coerced to strings.
2. **Explicit hints.** Keys listed in :class:`~apiwire.models.ParamHints`
   go to headers, then query, then body.
3. **Auto-routing.** Everything left goes to the query string for
   ``GET``/``DELETE`` and to the JSON body for ``POST``/``PUT``/``PATCH``.
   Keys starting with ``_``, the ``$0`` program-name slot, and ``None``
   values are skipped.
4. **Defaults.** Endpoint ``defaultParams`` fill keys the caller did not
   supply (and that are not path parameters) using the same method-based
   routing.

The module also provides the argument helpers used by the CLI and the
orchestrator: :func:`parse_key_value_pairs` and :func:`merge_params`.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional, Union

from apiwire.exceptions import ParamInvalidError, ParamRequiredError
from apiwire.mapper.path_template import extract_path_parameters
from apiwire.models import EndpointConfig, HTTPMethod, MappedParams, ParamHints

_QUERY_METHODS = (HTTPMethod.GET, HTTPMethod.DELETE)


def coerce_to_string(value: Any) -> str:
    """Render a scalar argument the way it appears on the wire.

    Booleans become ``true``/``false``; dicts and lists are JSON-encoded;
    everything else goes through :func:`str`.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _query_value(value: Any) -> Union[str, list[str]]:
    if isinstance(value, (list, tuple)):
        return [coerce_to_string(item) for item in value]
    return coerce_to_string(value)


def _is_internal_key(key: str) -> bool:
    return key.startswith("_") or key == "$0"


def map_parameters(
    endpoint: EndpointConfig,
    raw_args: Mapping[str, Any],
    hints: Optional[ParamHints] = None,
) -> MappedParams:
    """Classify *raw_args* into request locations for *endpoint*.

    Args:
        endpoint: The endpoint being called.
        raw_args: Argument bag (already merged from alias, batch item and CLI).
        hints: Optional explicit routing for individual keys.

    Returns:
        A :class:`~apiwire.models.MappedParams`. ``body`` is ``None`` when
        nothing was routed there.

    Raises:
        ParamRequiredError: If a path parameter is missing or ``None``.
    """
    hints = hints or ParamHints()
    path_names = extract_path_parameters(endpoint.path)
    consumed: set[str] = set()

    path: dict[str, str] = {}
    query: dict[str, Union[str, list[str]]] = {}
    headers: dict[str, str] = {}
    body: dict[str, Any] = {}

    # 1. Path parameters
    for name in path_names:
        value = raw_args.get(name)
        if value is None:
            raise ParamRequiredError(
                f"Missing required path parameter: {name}",
                details={"parameter": name, "path": endpoint.path},
                help=f"Pass it as {name}=<value>",
            )
        path[name] = coerce_to_string(value)
        consumed.add(name)

    # 2. Explicit hints
    for key in hints.header_params:
        if key in raw_args and key not in consumed and raw_args[key] is not None:
            headers[key] = coerce_to_string(raw_args[key])
            consumed.add(key)
    for key in hints.query_params:
        if key in raw_args and key not in consumed and raw_args[key] is not None:
            query[key] = _query_value(raw_args[key])
            consumed.add(key)
    for key in hints.body_params:
        if key in raw_args and key not in consumed and raw_args[key] is not None:
            body[key] = raw_args[key]
            consumed.add(key)

    # 3. Auto-routing by method
    to_query = endpoint.method in _QUERY_METHODS
    for key, value in raw_args.items():
        if key in consumed or _is_internal_key(key) or value is None:
            continue
        if to_query:
            query[key] = _query_value(value)
        else:
            body[key] = value
        consumed.add(key)

    # 4. Defaults
    for key, value in (endpoint.default_params or {}).items():
        if key in raw_args or key in path_names or value is None:
            continue
        if to_query:
            query[key] = _query_value(value)
        else:
            body[key] = value

    return MappedParams(
        path=path,
        query=query,
        headers=headers,
        body=body or None,
    )


def merge_params(*arg_sets: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge argument maps left to right; later maps win on key collisions.

    ``None`` entries are ignored, so ``merge_params(alias.args, item,
    cli_args)`` works when any layer is absent.
    """
    merged: dict[str, Any] = {}
    for args in arg_sets:
        if args:
            merged.update(args)
    return merged


def parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """Parse ``key=value`` tokens into an argument map.

    The token is split on the first ``=`` only, so values may contain
    ``=``. A key given more than once accumulates into a list.

    Raises:
        ParamInvalidError: If a token has no ``=`` or an empty key.
    """
    result: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ParamInvalidError(
                f"Invalid argument '{pair}': expected key=value",
                details={"argument": pair},
            )
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result
