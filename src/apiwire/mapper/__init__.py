"""Argument mapping -- turn a flat argument bag into request parts.

Sub-modules:

* :mod:`~apiwire.mapper.path_template` -- ``{param}`` extraction and URL
  assembly with percent-encoded path values.
* :mod:`~apiwire.mapper.param_mapper` -- classify arguments into path,
  query, header and body slots; merge and parse ``key=value`` arguments.
"""

from apiwire.mapper.param_mapper import (
    map_parameters,
    merge_params,
    parse_key_value_pairs,
)
from apiwire.mapper.path_template import build_url, extract_path_parameters

__all__ = [
    "build_url",
    "extract_path_parameters",
    "map_parameters",
    "merge_params",
    "parse_key_value_pairs",
]
