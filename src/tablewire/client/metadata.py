"""Metadata API client: bases, table schemas, and views."""

from __future__ import annotations

from typing import Any, Optional, Union

from tablewire.cache.keys import encode_component
from tablewire.client.core import CoreClient
from tablewire.models import ListBasesParams, coerce_params


class MetadataClient:
    """Read-only access to the ``/meta`` endpoints.

    Schema lookups default to the base the core is bound to; pass
    *base_id* to inspect another base with the same token.
    """

    def __init__(self, core: CoreClient) -> None:
        self._core = core

    def _base_id(self, base_id: Optional[str], operation: str) -> str:
        effective = base_id or self._core.base_id
        if not effective:
            raise ValueError(f"MetadataClient.{operation}: base_id is required")
        return effective

    async def list_bases(self, params: Union[ListBasesParams, dict[str, Any], None] = None) -> dict[str, Any]:
        """One page of bases visible to the token: ``{"bases": [...], "offset": ...}``."""
        list_params = coerce_params(ListBasesParams, params)
        query = [("offset", list_params.offset)] if list_params and list_params.offset else None
        return await self._core.request_json(self._core.build_meta_url("/bases", query))

    async def list_all_bases(self) -> list[dict[str, Any]]:
        """Every base visible to the token, following ``offset`` across pages."""
        bases: list[dict[str, Any]] = []
        offset: Optional[str] = None
        while True:
            page = await self.list_bases(ListBasesParams(offset=offset) if offset else None)
            bases.extend(page.get("bases") or [])
            offset = page.get("offset")
            if not offset:
                return bases

    async def get_base_schema(self, base_id: Optional[str] = None) -> dict[str, Any]:
        """Schema of every table in a base: ``{"tables": [...]}``."""
        effective = encode_component(self._base_id(base_id, "get_base_schema"))
        return await self._core.request_json(self._core.build_meta_url(f"/bases/{effective}/tables"))

    async def get_table_schema(self, table: str, base_id: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Schema of one table matched by ID or name, or ``None`` if absent."""
        schema = await self.get_base_schema(base_id)
        for entry in schema.get("tables") or []:
            if entry.get("id") == table or entry.get("name") == table:
                return entry
        return None

    async def get_view_metadata(self, view: str, base_id: Optional[str] = None) -> dict[str, Any]:
        """Metadata for one view, by ID or name."""
        effective = encode_component(self._base_id(base_id, "get_view_metadata"))
        url = self._core.build_meta_url(f"/bases/{effective}/views/{encode_component(view)}")
        return await self._core.request_json(url)
