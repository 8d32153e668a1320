"""Disk-backed cache store.

Uses :mod:`diskcache` to persist cached records on the filesystem so they
survive process restarts and can be shared by several worker processes on
one machine. TTL is handed to diskcache's own ``expire`` support, and
prefix deletion scans the stored keys.

See Also:
    :class:`~tablewire.cache.memory.MemoryCacheStore` -- the in-process
    store, which adds LRU eviction.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from tablewire.config import get_cache_dir

_MISSING = object()


class DiskCacheStore:
    """Cache store persisted in a :class:`diskcache.Cache` directory.

    Args:
        cache_dir: Root directory for the cache. A ``records/`` subdirectory
            is created inside it. Defaults to
            :func:`~tablewire.config.get_cache_dir`.

    Example::

        from tablewire.cache import DiskCacheStore
        from tablewire.models import RecordsCacheOptions

        store = DiskCacheStore("/tmp/tablewire-cache")
        options = RecordsCacheOptions(store=store, default_ttl_ms=60_000)
    """

    def __init__(self, cache_dir: Optional[str | Path] = None) -> None:
        self._cache_dir = Path(cache_dir) if cache_dir is not None else get_cache_dir()
        self._cache = diskcache.Cache(str(self._cache_dir / "records"))

    def get(self, key: str) -> Any:
        """Return the stored value, or ``None`` on a miss or expired entry."""
        value = self._cache.get(key, default=_MISSING)
        return None if value is _MISSING else value

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        """Store *value*; diskcache expires it after *ttl_ms* milliseconds."""
        expire = ttl_ms / 1000 if ttl_ms is not None else None
        self._cache.set(key, value, expire=expire)

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        self._cache.delete(key)

    def delete_by_prefix(self, prefix: str) -> None:
        """Remove every stored key that starts with *prefix*."""
        for key in list(self._cache.iterkeys()):
            if isinstance(key, str) and key.startswith(prefix):
                self._cache.delete(key)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (number of entries) and ``directory``."""
        return {
            "size": len(self._cache),
            "directory": str(self._cache_dir / "records"),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
