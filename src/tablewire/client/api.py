"""Top-level client composing the core executor and the API clients."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from tablewire.client.core import CoreClient
from tablewire.client.metadata import MetadataClient
from tablewire.client.records import RecordsClient
from tablewire.client.webhooks import WebhooksClient
from tablewire.config import resolve_client_options
from tablewire.models import ClientOptions


class ApiClient:
    """Client for one base, exposing ``records``, ``metadata`` and ``webhooks``.

    All three share a single :class:`~tablewire.client.core.CoreClient`,
    so they share its HTTP client, retry policy and headers. The records
    client uses ``options.records_cache`` when set.

    Args:
        options: Client options; ``api_key`` and ``base_id`` are required.
        sleep: Optional replacement for :func:`asyncio.sleep` between retries.

    Example::

        async with ApiClient(ClientOptions(api_key=token, base_id="app123")) as client:
            tasks = await client.records.list_all_records("Tasks")
    """

    def __init__(
        self,
        options: ClientOptions,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.core = CoreClient(options, sleep=sleep)
        self.records = RecordsClient(self.core, options.records_cache)
        self.metadata = MetadataClient(self.core)
        self.webhooks = WebhooksClient(self.core)

    @classmethod
    def from_config(
        cls,
        base_id: Optional[str] = None,
        settings_path: Optional[Path] = None,
        **overrides: Any,
    ) -> ApiClient:
        """Build a client from explicit overrides, ``TABLEWIRE_*`` env vars and ``config.json``.

        See :func:`~tablewire.config.resolve_client_options` for precedence.
        """
        return cls(resolve_client_options(base_id=base_id, settings_path=settings_path, **overrides))

    @property
    def base_id(self) -> str:
        return self.core.base_id

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.core.aclose()
