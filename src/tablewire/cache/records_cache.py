"""Read-through caching and mutation invalidation for records operations.

:class:`RecordsCache` sits between
:class:`~tablewire.client.records.RecordsClient` and a pluggable cache
store. It owns three concerns:

* **Read-through** -- :meth:`RecordsCache.read_through` checks the store,
  falls back to the fetch coroutine on a miss, and writes the fresh result
  back with the configured default TTL.
* **Invalidation** -- after a mutation, :meth:`RecordsCache.invalidate`
  deletes the table's list prefix and each touched record's prefix.
* **Error policy** -- every store failure (and any error computing a key)
  goes through :meth:`RecordsCache.handle_error`: the ``on_error`` observer
  sees it, then it is re-raised only with ``fail_on_cache_error=True``.
  Otherwise the cache behaves as if it were absent.

The cache never retries. Transport errors raised by the fetch coroutine
are not cache errors and always propagate unchanged.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from tablewire.cache.keys import record_prefix, table_prefix
from tablewire.cache.store import (
    AttachmentContext,
    CacheErrorContext,
    looks_like_attachment,
    resolve,
)
from tablewire.models import RecordsCacheOptions
from tablewire.output import get_output

T = TypeVar("T")


class RecordsCache:
    """Cache policy for one base.

    Args:
        base_id: Base whose keys this cache builds.
        options: Cache configuration. ``None`` (or an options object
            without a ``store``) disables every operation.
    """

    def __init__(self, base_id: str, options: Optional[RecordsCacheOptions] = None) -> None:
        self._base_id = base_id
        self._options = options or RecordsCacheOptions()

    @property
    def store(self) -> Any:
        return self._options.store

    @property
    def options(self) -> RecordsCacheOptions:
        return self._options

    def is_enabled(self, method: str) -> bool:
        """Return True when a store is configured and *method*'s toggle is not off.

        Args:
            method: A field name of :class:`~tablewire.models.CacheMethods`,
                e.g. ``"list_records"``.
        """
        if self.store is None:
            return False
        return bool(getattr(self._options.methods, method, True))

    # ------------------------------------------------------------------ #
    # Error policy
    # ------------------------------------------------------------------ #

    def handle_error(self, error: Exception, ctx: CacheErrorContext) -> None:
        """Report a cache-layer failure, then swallow or re-raise it.

        Raises:
            Exception: *error* itself, when ``fail_on_cache_error`` is set.
        """
        target = ctx.key or ctx.prefix or ""
        get_output().debug(f"Cache {ctx.op} failed ({target}): {error}")

        if self._options.on_error is not None:
            self._options.on_error(error, ctx)

        if self._options.fail_on_cache_error:
            raise error

    # ------------------------------------------------------------------ #
    # Store access
    # ------------------------------------------------------------------ #

    async def get(self, key: str) -> Any:
        """Read *key*; a store error is handled by policy and reads as a miss."""
        if self.store is None:
            return None
        try:
            return await resolve(self.store.get(key))
        except Exception as exc:
            self.handle_error(exc, CacheErrorContext(op="get", key=key))
            return None

    async def set(self, key: str, value: Any) -> None:
        """Write *value* with the default TTL; a store error is handled by policy."""
        if self.store is None:
            return
        try:
            await resolve(self.store.set(key, value, self._options.default_ttl_ms))
        except Exception as exc:
            self.handle_error(exc, CacheErrorContext(op="set", key=key))

    async def delete_by_prefix(self, prefix: str) -> None:
        """Bulk-delete *prefix*. No-op when the store has no ``delete_by_prefix``."""
        delete_by_prefix = getattr(self.store, "delete_by_prefix", None)
        if delete_by_prefix is None:
            return
        try:
            await resolve(delete_by_prefix(prefix))
        except Exception as exc:
            self.handle_error(exc, CacheErrorContext(op="delete", prefix=prefix))

    # ------------------------------------------------------------------ #
    # Read-through
    # ------------------------------------------------------------------ #

    def make_key(self, build: Callable[[], str]) -> Optional[str]:
        """Run a key builder, routing serialization errors through the policy."""
        try:
            return build()
        except TypeError as exc:
            self.handle_error(exc, CacheErrorContext(op="get"))
            return None

    async def read_through(
        self,
        method: str,
        table: str,
        build_key: Callable[[], str],
        fetch: Callable[[], Awaitable[T]],
    ) -> T:
        """Serve *method* from the cache, falling back to *fetch* on a miss.

        Args:
            method: :class:`~tablewire.models.CacheMethods` toggle to honour.
            table: Table the result belongs to (for attachment contexts).
            build_key: Zero-argument key builder, only called when caching
                is active.
            fetch: Coroutine factory performing the real request.

        Returns:
            The cached value on a hit, otherwise the freshly fetched one.
        """
        key = self.make_key(build_key) if self.is_enabled(method) else None

        if key is not None:
            cached = await self.get(key)
            if cached is not None:
                get_output().debug(f"Cache hit: {key}")
                return cached
            get_output().debug(f"Cache miss: {key}")

        result = await fetch()

        if key is not None:
            result = await self._transform_attachments(key, table, result)
            await self.set(key, result)

        return result

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    async def invalidate_table(self, table: str) -> None:
        """Drop every cached list result for *table*."""
        await self.delete_by_prefix(table_prefix(self._base_id, table))

    async def invalidate_record(self, table: str, record_id: str) -> None:
        """Drop every cached view of one record, whatever display params were used."""
        await self.delete_by_prefix(record_prefix(self._base_id, table, record_id))

    async def invalidate_records(self, table: str, record_ids: Iterable[str]) -> None:
        """Drop cached views of several records concurrently."""
        ids = [record_id for record_id in record_ids if record_id]
        if not ids:
            return
        await asyncio.gather(*(self.invalidate_record(table, record_id) for record_id in ids))

    async def invalidate(self, table: str, record_ids: Iterable[str] = ()) -> None:
        """Invalidate after a mutation: the table prefix plus each record prefix."""
        if self.store is None:
            return
        await asyncio.gather(
            self.invalidate_table(table),
            self.invalidate_records(table, record_ids),
        )

    # ------------------------------------------------------------------ #
    # Attachments
    # ------------------------------------------------------------------ #

    async def _transform_attachments(self, key: str, table: str, value: Any) -> Any:
        transform = getattr(self.store, "transform_attachment", None)
        if transform is None or not isinstance(value, dict):
            return value

        try:
            if isinstance(value.get("records"), list):
                records = [await self._transform_record(transform, table, r) for r in value["records"]]
                return {**value, "records": records}
            if isinstance(value.get("fields"), dict):
                return await self._transform_record(transform, table, value)
        except Exception as exc:
            self.handle_error(exc, CacheErrorContext(op="set", key=key))
        return value

    async def _transform_record(self, transform: Callable[..., Any], table: str, record: Any) -> Any:
        if not isinstance(record, dict) or not isinstance(record.get("fields"), dict):
            return record

        record_id = record.get("id")
        fields: dict[str, Any] = {}
        for name, field_value in record["fields"].items():
            context = AttachmentContext(self._base_id, table, record_id, name)
            if isinstance(field_value, list):
                fields[name] = [
                    await resolve(transform(item, context)) if looks_like_attachment(item) else item
                    for item in field_value
                ]
            elif looks_like_attachment(field_value):
                fields[name] = await resolve(transform(field_value, context))
            else:
                fields[name] = field_value
        return {**record, "fields": fields}
