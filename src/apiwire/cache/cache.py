"""Disk-based response cache with per-entry TTL.

Uses :mod:`diskcache` to persist transformed responses of cacheable calls
(``GET`` endpoints and GraphQL queries that declare ``cacheTTL``) across
process invocations.

Each stored value is a plain dict matching
:class:`~apiwire.models.CacheEntry`::

    {"value": <payload>, "timestamp": <epoch seconds>, "ttl": <seconds>,
     "metadata": {"service": ..., "endpoint": ..., "url": ...}}

Expiry is evaluated when an entry is read; expired entries are removed at
that point. Keys have the form ``<service>.<endpoint>.<hash16>`` so that
``apiwire cache clear github`` can drop a whole service by prefix.

The cache is best-effort: any storage failure is logged as a warning and
treated as a miss (on read) or ignored (on write). A request never fails
because of the cache.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import diskcache
from pydantic import ValidationError

from apiwire.models import CacheEntry, CacheEntryInfo

logger = logging.getLogger(__name__)

# Credentials never take part in the fingerprint.
_EXCLUDED_HEADERS = frozenset({"authorization", "x-api-key", "cookie"})


def sanitize_headers(
    headers: Optional[Mapping[str, str]], exclude: Optional[Iterable[str]] = None
) -> dict[str, str]:
    """Lower-case header names, drop credential headers, and sort by name."""
    if not headers:
        return {}
    excluded = set(_EXCLUDED_HEADERS)
    excluded.update(name.lower() for name in exclude or ())
    cleaned = {
        key.lower(): value for key, value in headers.items() if key.lower() not in excluded
    }
    return dict(sorted(cleaned.items()))


class ResponseCache:
    """Disk-backed store for API responses.

    Args:
        cache_dir: Root directory for the cache. A ``responses/``
            subdirectory is created inside it.

    Example::

        from apiwire.cache import ResponseCache

        cache = ResponseCache("/tmp/apiwire-cache")
        key = cache.generate_key("github", "getUser", "https://api.github.com/users/octo")
        cache.set(key, {"login": "octo"}, ttl=300)
        hit = cache.get(key)
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._directory = self._cache_dir / "responses"
        self._cache: Optional[diskcache.Cache] = None

    @property
    def directory(self) -> Path:
        return self._directory

    def _store(self) -> diskcache.Cache:
        if self._cache is None:
            self._cache = diskcache.Cache(str(self._directory))
        return self._cache

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    @staticmethod
    def generate_key(
        service_name: str,
        endpoint_name: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        method: str = "GET",
        body: Any = None,
        exclude_headers: Optional[Iterable[str]] = None,
    ) -> str:
        """Build the fingerprint of a request.

        Header names are lower-cased and sorted so that ordering and case do
        not matter; ``Authorization``, ``X-API-Key``, ``Cookie`` and any
        names in *exclude_headers* are left out.

        Returns:
            ``"<service>.<endpoint>.<first 16 hex chars of sha256>"``.
        """
        material: dict[str, Any] = {
            "service": service_name,
            "endpoint": endpoint_name,
            "method": method.upper(),
            "url": url,
            "headers": sanitize_headers(headers, exclude_headers),
        }
        if body is not None:
            material["body"] = body
        raw = json.dumps(material, sort_keys=True, default=str)
        digest = hashlib.sha256(raw.encode()).hexdigest()[:16]
        return f"{service_name}.{endpoint_name}.{digest}"

    # ------------------------------------------------------------------ #
    # Read / write
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Any:
        """Return the cached value for *key*, or ``None`` on a miss.

        Expired and unreadable entries count as misses and are removed.
        """
        try:
            raw = self._store().get(key)
            if raw is None:
                return None
            entry = CacheEntry.model_validate(raw)
            if self._is_expired(entry):
                logger.debug("Cache entry %s expired", key)
                self._store().delete(key)
                return None
            return entry.value
        except ValidationError as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            self._safe_delete(key)
            return None
        except Exception as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: int,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store *value* under *key* for *ttl* seconds. Failures are logged only."""
        entry = CacheEntry(value=value, timestamp=time.time(), ttl=ttl, metadata=metadata or {})
        try:
            self._store().set(key, entry.model_dump())
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    def clear(self, pattern: Optional[str] = None) -> int:
        """Remove entries whose key starts with *pattern* (all when ``None``).

        Returns:
            The number of entries removed.
        """
        try:
            store = self._store()
            if pattern is None:
                return store.clear()
            removed = 0
            for key in list(store.iterkeys()):
                if isinstance(key, str) and key.startswith(pattern) and store.delete(key):
                    removed += 1
            return removed
        except Exception as exc:
            logger.warning("Cache clear failed: %s", exc)
            return 0

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def entries(self) -> list[CacheEntryInfo]:
        """Describe every stored entry, including expired ones not yet evicted."""
        infos: list[CacheEntryInfo] = []
        try:
            store = self._store()
            now = time.time()
            for key in list(store.iterkeys()):
                raw = store.get(key)
                if raw is None:
                    continue
                try:
                    entry = CacheEntry.model_validate(raw)
                except ValidationError:
                    continue
                age = int(now - entry.timestamp)
                infos.append(
                    CacheEntryInfo(
                        key=str(key),
                        service=entry.metadata.get("service"),
                        endpoint=entry.metadata.get("endpoint"),
                        url=entry.metadata.get("url"),
                        age=age,
                        ttl=entry.ttl,
                        expired=self._is_expired(entry, now),
                        size=len(json.dumps(entry.value, default=str)),
                    )
                )
        except Exception as exc:
            logger.warning("Cache listing failed: %s", exc)
        return infos

    def stats(self) -> dict[str, Any]:
        """Return entry counts and total payload size."""
        infos = self.entries()
        expired = sum(1 for info in infos if info.expired)
        return {
            "directory": str(self._directory),
            "total_entries": len(infos),
            "valid_entries": len(infos) - expired,
            "expired_entries": expired,
            "total_size": sum(info.size for info in infos),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _is_expired(entry: CacheEntry, now: Optional[float] = None) -> bool:
        current = time.time() if now is None else now
        return current - entry.timestamp > entry.ttl

    def _safe_delete(self, key: str) -> None:
        try:
            self._store().delete(key)
        except Exception as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)
