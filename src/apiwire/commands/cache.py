"""Cache commands -- inspect and clear the response cache.

Provides the ``apiwire cache`` sub-command group::

    apiwire cache stats
    apiwire cache list
    apiwire cache clear                  # everything
    apiwire cache clear github           # one service
    apiwire cache clear github.getUser   # one endpoint
"""

from __future__ import annotations

from typing import Optional

import typer

cache_app = typer.Typer(no_args_is_help=True)


def _open_cache():
    from apiwire.cache import ResponseCache
    from apiwire.config import get_cache_dir

    return ResponseCache(get_cache_dir())


@cache_app.command("stats")
def cache_stats() -> None:
    """Show entry counts and total cached payload size."""
    from apiwire.output import format_response

    cache = _open_cache()
    try:
        format_response(cache.stats())
    finally:
        cache.close()


@cache_app.command("list")
def cache_list() -> None:
    """List cached entries with age and expiry."""
    from apiwire.output import print_table

    cache = _open_cache()
    try:
        entries = cache.entries()
    finally:
        cache.close()

    rows = [
        [
            entry.key,
            entry.service or "",
            entry.endpoint or "",
            f"{entry.age}s",
            f"{entry.ttl}s",
            "yes" if entry.expired else "no",
            str(entry.size),
        ]
        for entry in sorted(entries, key=lambda e: e.key)
    ]
    print_table(
        ["key", "service", "endpoint", "age", "ttl", "expired", "size"],
        rows,
        title="Cache entries",
    )


@cache_app.command("clear")
def cache_clear(
    target: Optional[str] = typer.Argument(
        None, help="Service or service.endpoint prefix to clear (default: all)."
    ),
) -> None:
    """Remove cached entries."""
    from apiwire.output import format_response, success

    pattern = None
    if target:
        # Keys are <service>.<endpoint>.<hash>; the trailing dot stops
        # "git" from matching "github".
        pattern = target if target.endswith(".") else f"{target}."

    cache = _open_cache()
    try:
        removed = cache.clear(pattern)
    finally:
        cache.close()
    success(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'}")
    format_response({"removed": removed, "pattern": pattern})
