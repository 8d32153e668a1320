"""Records caching for tablewire.

This package provides the pieces of the optional read-through cache:

* :class:`CacheStore` -- the duck-typed store interface (``get``/``set``,
  optional ``delete``, ``delete_by_prefix`` and ``transform_attachment``).
* :class:`MemoryCacheStore` -- in-process LRU + TTL store.
* :class:`DiskCacheStore` -- persistent store backed by :mod:`diskcache`.
* :class:`RecordsCache` -- read-through, invalidation, and error policy,
  used by :class:`~tablewire.client.records.RecordsClient`.
* Key helpers :func:`list_key`, :func:`record_key`, :func:`table_prefix`,
  :func:`record_prefix`.

Caching is controlled by :class:`~tablewire.models.RecordsCacheOptions`.
"""

from tablewire.cache.disk import DiskCacheStore
from tablewire.cache.keys import list_key, record_key, record_prefix, table_prefix
from tablewire.cache.memory import MemoryCacheStore
from tablewire.cache.records_cache import RecordsCache
from tablewire.cache.store import AttachmentContext, CacheErrorContext, CacheStore

__all__ = [
    "AttachmentContext",
    "CacheErrorContext",
    "CacheStore",
    "DiskCacheStore",
    "MemoryCacheStore",
    "RecordsCache",
    "list_key",
    "record_key",
    "record_prefix",
    "table_prefix",
]
