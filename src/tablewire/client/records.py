"""Records API client: list, get, create, update (upsert), and delete.

:class:`RecordsClient` turns record operations into requests on a
:class:`~tablewire.client.core.CoreClient`. Reads go through the
read-through cache of :class:`~tablewire.cache.records_cache.RecordsCache`
when one is configured; mutations invalidate it after they succeed.

Batch mutations are split into chunks of
:data:`~tablewire.client.core.MAX_RECORDS_PER_BATCH` and their results are
concatenated in input order.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Optional, Union

from tablewire.cache.keys import list_key, record_key
from tablewire.cache.records_cache import RecordsCache
from tablewire.client.core import MAX_RECORDS_PER_BATCH, CoreClient
from tablewire.models import (
    CreateRecordsOptions,
    GetRecordParams,
    ListRecordsParams,
    RecordsCacheOptions,
    UpdateRecordsOptions,
    coerce_params,
)

Record = dict[str, Any]
ListParamsArg = Union[ListRecordsParams, dict[str, Any], None]
GetParamsArg = Union[GetRecordParams, dict[str, Any], None]


def _batches(items: list[Any]) -> list[list[Any]]:
    return [items[i:i + MAX_RECORDS_PER_BATCH] for i in range(0, len(items), MAX_RECORDS_PER_BATCH)]


class RecordsClient:
    """Record operations for the base a :class:`CoreClient` is bound to.

    Args:
        core: Shared request executor.
        cache_options: Optional records cache configuration.

    Example::

        page = await client.records.list_records("Tasks", {"view": "Grid view"})
        for record in page["records"]:
            print(record["id"], record["fields"].get("Name"))
    """

    def __init__(self, core: CoreClient, cache_options: Optional[RecordsCacheOptions] = None) -> None:
        self._core = core
        self._cache = RecordsCache(core.base_id, cache_options)

    @property
    def cache(self) -> RecordsCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def list_records(self, table: str, params: ListParamsArg = None) -> dict[str, Any]:
        """Fetch one page of records.

        Args:
            table: Table ID or name.
            params: :class:`~tablewire.models.ListRecordsParams` or an
                equivalent dict.

        Returns:
            ``{"records": [...], "offset": "..."}``; ``offset`` is absent on
            the last page.
        """
        return await self._list_page(table, coerce_params(ListRecordsParams, params), "list_records")

    async def _list_page(self, table: str, params: Optional[ListRecordsParams], method: str) -> dict[str, Any]:
        async def fetch() -> dict[str, Any]:
            url = self._core.build_table_url(table, query=self._core.build_list_query(params))
            return await self._core.request_json(url)

        return await self._cache.read_through(
            method,
            table,
            lambda: list_key(self._core.base_id, table, params),
            fetch,
        )

    async def iterate_records(self, table: str, params: ListParamsArg = None) -> AsyncIterator[Record]:
        """Yield records across all pages, following ``offset``.

        Any ``offset`` in *params* is ignored. Stops after ``max_records``
        records when it is set.
        """
        base_params = coerce_params(ListRecordsParams, params) or ListRecordsParams()
        max_records = base_params.max_records
        offset: Optional[str] = None
        yielded = 0

        while True:
            page_params = base_params.model_copy(update={"offset": offset})
            page = await self._list_page(table, page_params, "list_all_records")

            for record in page.get("records") or []:
                if max_records is not None and yielded >= max_records:
                    return
                yield record
                yielded += 1

            if max_records is not None and yielded >= max_records:
                return

            offset = page.get("offset")
            if not offset:
                return

    async def list_all_records(self, table: str, params: ListParamsArg = None) -> list[Record]:
        """Collect every record across pages (up to ``max_records``)."""
        return [record async for record in self.iterate_records(table, params)]

    async def get_record(self, table: str, record_id: str, params: GetParamsArg = None) -> Record:
        """Fetch a single record by ID.

        Raises:
            NotFoundError: If the record does not exist.
        """
        get_params = coerce_params(GetRecordParams, params)

        async def fetch() -> Record:
            url = self._core.build_table_url(table, record_id, self._core.build_get_query(get_params))
            return await self._core.request_json(url)

        return await self._cache.read_through(
            "get_record",
            table,
            lambda: record_key(self._core.base_id, table, record_id, get_params),
            fetch,
        )

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def create_records(
        self,
        table: str,
        records: list[Record],
        options: Union[CreateRecordsOptions, dict[str, Any], None] = None,
    ) -> dict[str, Any]:
        """Create records, ``{"fields": {...}}`` each, in batches.

        Returns:
            ``{"records": [...]}`` with every created record.
        """
        if not records:
            return {"records": []}

        opts = coerce_params(CreateRecordsOptions, options) or CreateRecordsOptions()
        url = self._core.build_table_url(
            table, query=self._core.build_return_fields_query(opts.return_fields_by_field_id)
        )

        created: list[Record] = []
        for batch in _batches(records):
            body: dict[str, Any] = {"records": batch}
            if opts.typecast is not None:
                body["typecast"] = opts.typecast
            response = await self._core.request_json(url, method="POST", json_body=body)
            created.extend(response.get("records") or [])

        await self._cache.invalidate(table)
        return {"records": created}

    async def update_records(
        self,
        table: str,
        records: list[Record],
        options: Union[UpdateRecordsOptions, dict[str, Any], None] = None,
    ) -> dict[str, Any]:
        """Update (or upsert) records in batches with ``PATCH``.

        Each record is ``{"id": ..., "fields": {...}}``; with
        ``perform_upsert`` the ``id`` may be omitted.

        Returns:
            ``{"records": [...]}``, plus ``createdRecords`` and
            ``updatedRecords`` when an upsert reported them.
        """
        if not records:
            return {"records": []}

        opts = coerce_params(UpdateRecordsOptions, options) or UpdateRecordsOptions()
        url = self._core.build_table_url(
            table, query=self._core.build_return_fields_query(opts.return_fields_by_field_id)
        )

        updated: list[Record] = []
        created_ids: list[Any] = []
        updated_ids: list[Any] = []
        for batch in _batches(records):
            body: dict[str, Any] = {"records": batch}
            if opts.typecast is not None:
                body["typecast"] = opts.typecast
            if opts.perform_upsert is not None:
                body["performUpsert"] = opts.perform_upsert.model_dump(by_alias=True)

            response = await self._core.request_json(url, method="PATCH", json_body=body)
            updated.extend(response.get("records") or [])
            created_ids.extend(response.get("createdRecords") or [])
            updated_ids.extend(response.get("updatedRecords") or [])

        result: dict[str, Any] = {"records": updated}
        if created_ids:
            result["createdRecords"] = created_ids
        if updated_ids:
            result["updatedRecords"] = updated_ids

        await self._cache.invalidate(table, [r.get("id") for r in records])
        return result

    async def update_record(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
        options: Union[UpdateRecordsOptions, dict[str, Any], None] = None,
    ) -> Record:
        """Update one record's *fields*. ``perform_upsert`` is not allowed here."""
        opts = coerce_params(UpdateRecordsOptions, options) or UpdateRecordsOptions()
        if opts.perform_upsert is not None:
            raise ValueError("update_record does not support perform_upsert; use update_records")

        url = self._core.build_table_url(
            table, record_id, self._core.build_return_fields_query(opts.return_fields_by_field_id)
        )
        body: dict[str, Any] = {"fields": fields}
        if opts.typecast is not None:
            body["typecast"] = opts.typecast

        record = await self._core.request_json(url, method="PATCH", json_body=body)
        await self._cache.invalidate(table, [record_id])
        return record

    async def delete_record(self, table: str, record_id: str) -> dict[str, Any]:
        """Delete one record. Returns ``{"id": ..., "deleted": True}``."""
        url = self._core.build_table_url(table, record_id)
        deleted = await self._core.request_json(url, method="DELETE")
        await self._cache.invalidate(table, [record_id])
        return deleted

    async def delete_records(self, table: str, record_ids: list[str]) -> dict[str, Any]:
        """Delete records by ID in batches, sent as ``records[]`` query items."""
        if not record_ids:
            return {"records": []}

        deleted: list[dict[str, Any]] = []
        for batch in _batches(record_ids):
            url = self._core.build_table_url(table, query=[("records[]", rid) for rid in batch])
            response = await self._core.request_json(url, method="DELETE")
            deleted.extend(response.get("records") or [])

        await self._cache.invalidate(table, record_ids)
        return {"records": deleted}
