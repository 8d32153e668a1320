"""In-process LRU + TTL cache store.

:class:`MemoryCacheStore` keeps entries in an :class:`~collections.OrderedDict`
whose order encodes recency: the **last** key is the most recently used.

* Every :meth:`~MemoryCacheStore.get` of a live entry and every
  :meth:`~MemoryCacheStore.set` moves the key to the end.
* TTL is enforced lazily: an expired entry is dropped when it is read, or
  when it is picked for eviction. There is no background sweeper.
* When a new key arrives and the store is full, exactly one entry is
  evicted first: the first expired entry in order if there is one,
  otherwise the least recently used entry.

The store never suspends, so it is safe to share between coroutines of one
event loop without locking. It is not meant to be shared across processes;
use :class:`~tablewire.cache.disk.DiskCacheStore` or your own store for
that.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tablewire.cache.store import AttachmentContext


@dataclass
class _Entry:
    value: Any
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at < now


class MemoryCacheStore:
    """LRU cache with per-entry TTL and prefix deletion.

    Args:
        max_size: Maximum number of entries before eviction. ``0`` is
            accepted: every insert evicts first, so at most one entry is
            live at a time.
        clock: Function returning the current time in seconds. Defaults
            to :func:`time.monotonic`; tests pass a fake clock.

    Example::

        store = MemoryCacheStore(max_size=100)
        store.set(list_key(base_id, "Tasks", params), page, 10_000)
        page = store.get(list_key(base_id, "Tasks", params))
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic) -> None:
        if max_size < 0:
            raise ValueError("max_size must be >= 0")
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._attachments: dict[str, dict[str, Any]] = {}

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        """Snapshot of stored keys, least recently used first (expired ones included)."""
        return list(self._entries)

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def get(self, key: str) -> Any:
        """Return the value for *key*, or ``None`` if missing or expired.

        A hit marks the key as most recently used; an expired entry is
        removed.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._now_ms()):
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl_ms* if given.

        Overwriting an existing key replaces value and expiry in place and
        never evicts anything else.
        """
        now = self._now_ms()
        entry = _Entry(value, now + ttl_ms if ttl_ms is not None else None)

        if key in self._entries:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            return

        if len(self._entries) >= self._max_size:
            self._evict_one(now)

        self._entries[key] = entry

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        self._entries.pop(key, None)

    def delete_by_prefix(self, prefix: str) -> None:
        """Remove every key starting with *prefix*. O(n) in the store size."""
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def clear(self) -> None:
        """Remove all entries and memoized attachments."""
        self._entries.clear()
        self._attachments.clear()

    def transform_attachment(
        self,
        attachment: dict[str, Any],
        context: Optional[AttachmentContext] = None,
    ) -> dict[str, Any]:
        """Return the first attachment seen with this attachment's ``id``.

        Later attachments sharing an ``id`` are ignored, even if their other
        fields differ, for the lifetime of the store.
        """
        return self._attachments.setdefault(attachment["id"], attachment)

    def _evict_one(self, now: float) -> None:
        """Drop the first expired entry, else the least recently used one."""
        for key, entry in self._entries.items():
            if entry.is_expired(now):
                del self._entries[key]
                return

        if self._entries:
            self._entries.popitem(last=False)
