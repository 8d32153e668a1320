"""Webhooks API client for the base a core is bound to."""

from __future__ import annotations

from typing import Any, Optional, Union

from tablewire.cache.keys import encode_component
from tablewire.client.core import CoreClient
from tablewire.models import CreateWebhookParams, ListWebhookPayloadsParams, coerce_params


class WebhooksClient:
    """Create, list, refresh, and delete webhooks, and read their payloads.

    Example::

        hook = await client.webhooks.create_webhook({
            "notification_url": "https://example.com/hook",
            "specification": {"options": {"filters": {"dataTypes": ["tableData"]}}},
        })
        payloads = await client.webhooks.list_webhook_payloads(hook["id"])
    """

    def __init__(self, core: CoreClient) -> None:
        self._core = core

    @staticmethod
    def _webhook_path(operation: str, webhook_id: str, suffix: str = "") -> str:
        if not webhook_id:
            raise ValueError(f"WebhooksClient.{operation}: webhook_id is required")
        return f"/webhooks/{encode_component(webhook_id)}{suffix}"

    async def create_webhook(self, params: Union[CreateWebhookParams, dict[str, Any]]) -> dict[str, Any]:
        """Register a webhook. The body is sent with camelCase keys."""
        webhook = coerce_params(CreateWebhookParams, params)
        body = webhook.model_dump(by_alias=True, exclude_none=True)
        return await self._core.request_json(
            self._core.build_base_url("/webhooks"), method="POST", json_body=body
        )

    async def list_webhooks(self) -> dict[str, Any]:
        """``{"webhooks": [...]}`` for the bound base."""
        return await self._core.request_json(self._core.build_base_url("/webhooks"))

    async def delete_webhook(self, webhook_id: str) -> None:
        """Delete a webhook. The API answers 204, so nothing is returned."""
        url = self._core.build_base_url(self._webhook_path("delete_webhook", webhook_id))
        await self._core.request_json(url, method="DELETE")

    async def refresh_webhook(self, webhook_id: str) -> dict[str, Any]:
        """Extend a webhook's expiration time."""
        url = self._core.build_base_url(self._webhook_path("refresh_webhook", webhook_id, "/refresh"))
        return await self._core.request_json(url, method="POST")

    async def list_webhook_payloads(
        self,
        webhook_id: str,
        params: Union[ListWebhookPayloadsParams, dict[str, Any], None] = None,
    ) -> dict[str, Any]:
        """Payloads delivered for a webhook, starting at ``cursor``."""
        path = self._webhook_path("list_webhook_payloads", webhook_id, "/payloads")
        payload_params = coerce_params(ListWebhookPayloadsParams, params)

        query: Optional[list[tuple[str, str]]] = None
        if payload_params is not None:
            query = [
                (name, str(value))
                for name, value in (("cursor", payload_params.cursor), ("limit", payload_params.limit))
                if value is not None
            ]
        return await self._core.request_json(self._core.build_base_url(path, query))
