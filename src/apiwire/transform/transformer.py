"""Single-stage response transformation: field extraction and renaming.

A :class:`~apiwire.models.TransformConfig` stage narrows a JSON payload to
the fields a caller cares about and optionally renames them. Field paths
support three forms:

* ``a.b.c`` -- nested object access.
* ``items[0].id`` -- index access. The indexed segment is kept literally
  as the output key (``{"items[0]": {"id": ...}}``).
* ``items[*].name`` -- projection over every element of an array. Several
  projections on the same array merge per element, so
  ``["items[*].id", "items[*].name"]`` yields
  ``{"items": [{"id": ..., "name": ...}, ...]}``. ``items[*]`` alone keeps
  the whole array.

When the payload itself is an array, fields that all start with ``[*].``
are applied to each element with the prefix stripped; otherwise the whole
field list is applied to each element.

Missing fields are simply omitted. Inputs are never mutated.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Optional

from apiwire.models import TransformConfig

logger = logging.getLogger(__name__)

_WILDCARD = "[*]"
_ITEM_PREFIX = "[*]."
_INDEXED_RE = re.compile(r"^(.+?)\[(\d+)\]$")

_MISSING = object()


# ------------------------------------------------------------------ #
# Path helpers
# ------------------------------------------------------------------ #


def get_nested_value(data: Any, path: str) -> Any:
    """Return the value at dotted *path*, or the ``_MISSING`` sentinel."""
    current = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return _MISSING
        match = _INDEXED_RE.match(part)
        if match:
            name, index = match.group(1), int(match.group(2))
            seq = current.get(name, _MISSING)
            if not isinstance(seq, list) or index >= len(seq):
                return _MISSING
            current = seq[index]
        elif part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def set_nested_value(target: dict[str, Any], path: str, value: Any) -> None:
    """Assign *value* at dotted *path*, creating intermediate dicts."""
    parts = [p for p in path.split(".") if p]
    current = target
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    if parts:
        current[parts[-1]] = value


def delete_nested_value(target: dict[str, Any], path: str, prune: bool = False) -> None:
    """Remove the key at dotted *path* if every parent exists.

    With *prune*, parent dicts left empty by the removal are dropped too,
    walking back up the path.
    """
    parts = [p for p in path.split(".") if p]
    current: Any = target
    parents: list[tuple[dict[str, Any], str]] = []
    for part in parts[:-1]:
        if not isinstance(current, dict) or part not in current:
            return
        parents.append((current, part))
        current = current[part]
    if not parts or not isinstance(current, dict) or parts[-1] not in current:
        return
    del current[parts[-1]]
    if not prune:
        return
    for parent, key in reversed(parents):
        if parent[key]:
            break
        del parent[key]


# ------------------------------------------------------------------ #
# Field extraction
# ------------------------------------------------------------------ #


def extract_fields(data: Any, fields: list[str]) -> Any:
    """Keep only *fields* of *data*. Non-container payloads pass through."""
    if isinstance(data, list):
        if fields and all(f.startswith(_ITEM_PREFIX) for f in fields):
            item_fields = [f[len(_ITEM_PREFIX):] for f in fields]
            return [extract_fields(item, item_fields) for item in data]
        return [extract_fields(item, fields) for item in data]

    if not isinstance(data, dict):
        return data

    result: dict[str, Any] = {}
    # Projections are grouped by array path so they merge per element.
    projections: dict[str, Optional[list[str]]] = {}

    for field in fields:
        if _WILDCARD in field:
            array_path, _, sub_path = field.partition(_WILDCARD)
            array_path = array_path.rstrip(".")
            sub_path = sub_path.lstrip(".")
            if not array_path:
                continue
            if array_path not in projections:
                projections[array_path] = []
            subs = projections[array_path]
            if not sub_path:
                projections[array_path] = None
            elif subs is not None:
                subs.append(sub_path)
            continue

        value = get_nested_value(data, field)
        if value is not _MISSING:
            set_nested_value(result, field, value)

    for array_path, subs in projections.items():
        array = get_nested_value(data, array_path)
        if not isinstance(array, list):
            continue
        if subs is None:
            set_nested_value(result, array_path, array)
        else:
            set_nested_value(result, array_path, [extract_fields(item, subs) for item in array])

    return result


# ------------------------------------------------------------------ #
# Renaming
# ------------------------------------------------------------------ #


def rename_fields(data: Any, rename: dict[str, str]) -> Any:
    """Move values from old paths to new paths on a deep copy of *data*."""
    if isinstance(data, list):
        item_renames = {
            old[len(_ITEM_PREFIX):]: new[len(_ITEM_PREFIX):]
            for old, new in rename.items()
            if old.startswith(_ITEM_PREFIX) and new.startswith(_ITEM_PREFIX)
        }
        if item_renames:
            return [rename_fields(item, item_renames) for item in data]
        return [rename_fields(item, rename) for item in data]

    if not isinstance(data, dict):
        return data

    result = copy.deepcopy(data)
    for old_path, new_path in rename.items():
        if _WILDCARD in old_path and _WILDCARD in new_path:
            _rename_in_array(result, old_path, new_path)
            continue
        value = get_nested_value(result, old_path)
        if value is _MISSING:
            continue
        delete_nested_value(result, old_path, prune=True)
        set_nested_value(result, new_path, value)
    return result


def _rename_in_array(result: dict[str, Any], old_path: str, new_path: str) -> None:
    old_array, _, old_sub = old_path.partition(_WILDCARD)
    new_array, _, new_sub = new_path.partition(_WILDCARD)
    old_array = old_array.rstrip(".")
    if old_array != new_array.rstrip(".") or not old_sub.lstrip(".") or not new_sub.lstrip("."):
        logger.debug("Skipping rename %s -> %s across different arrays", old_path, new_path)
        return
    array = get_nested_value(result, old_array)
    if not isinstance(array, list):
        return
    renamed = rename_fields(array, {f"{_ITEM_PREFIX}{old_sub.lstrip('.')}": f"{_ITEM_PREFIX}{new_sub.lstrip('.')}"})
    set_nested_value(result, old_array, renamed)


# ------------------------------------------------------------------ #
# Transformer
# ------------------------------------------------------------------ #


class ResponseTransformer:
    """Apply one :class:`~apiwire.models.TransformConfig` stage.

    ``fields`` runs before ``rename``, so rename paths refer to the
    extracted shape.
    """

    def __init__(self, config: TransformConfig) -> None:
        self._config = config

    @property
    def config(self) -> TransformConfig:
        return self._config

    def transform(self, data: Any) -> Any:
        """Return the transformed payload, or *data* unchanged on failure."""
        if not self._config.fields and not self._config.rename:
            return data
        try:
            result = data
            if self._config.fields:
                result = extract_fields(result, self._config.fields)
            if self._config.rename:
                result = rename_fields(result, self._config.rename)
            return result
        except Exception:
            logger.exception("Transform failed, returning original data")
            return data
