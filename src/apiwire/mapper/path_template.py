"""Path templates: ``{param}`` extraction and URL assembly.

Endpoint paths declare their path parameters inline, e.g.
``/repos/{owner}/{repo}/issues``. :func:`extract_path_parameters` lists the
tokens in order and :func:`build_url` joins a base URL with the filled-in
path, percent-encoding every substituted value so that a value such as
``a/b`` stays a single path segment.
"""

from __future__ import annotations

import re
from typing import Mapping
from urllib.parse import quote

# A "${VAR}" placeholder is not a path parameter.
_PATH_PARAM_RE = re.compile(r"(?<!\$)\{([^}]+)\}")


def find_path_tokens(path: str) -> list[str]:
    """Return every ``{param}`` token in *path*, duplicates included."""
    return _PATH_PARAM_RE.findall(path)


def extract_path_parameters(path: str) -> list[str]:
    """Return the ``{param}`` names in *path*, in order, without duplicates.

    Example::

        >>> extract_path_parameters("/repos/{owner}/{repo}")
        ['owner', 'repo']
    """
    names: list[str] = []
    for name in find_path_tokens(path):
        if name not in names:
            names.append(name)
    return names


def fill_path(path: str, path_params: Mapping[str, str]) -> str:
    """Substitute ``{param}`` tokens with percent-encoded values.

    Tokens without a value are left untouched; the mapper guarantees they
    never reach this point.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in path_params:
            return match.group(0)
        return quote(str(path_params[name]), safe="")

    return _PATH_PARAM_RE.sub(_replace, path)


def build_url(base_url: str, path: str, path_params: Mapping[str, str] | None = None) -> str:
    """Join *base_url* and the filled-in *path* with exactly one ``/``.

    Example::

        >>> build_url("https://api.example.com/", "/users/{id}", {"id": "a b"})
        'https://api.example.com/users/a%20b'
    """
    filled = fill_path(path, path_params or {})
    base = base_url.rstrip("/")
    if not filled:
        return base
    return f"{base}/{filled.lstrip('/')}"
