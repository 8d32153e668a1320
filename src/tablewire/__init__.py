"""tablewire -- async client for the Airtable-style tabular-data HTTP API.

The package wraps the API's bases, tables and records in typed async
clients on top of :mod:`httpx`, with retry and backoff, typed errors, and
an optional read-through records cache that mutations invalidate.

Typical usage::

    from tablewire import ApiClient, ClientOptions, MemoryCacheStore, RecordsCacheOptions

    options = ClientOptions(
        api_key=token,
        base_id="app123",
        records_cache=RecordsCacheOptions(store=MemoryCacheStore(), default_ttl_ms=30_000),
    )
    async with ApiClient(options) as client:
        tasks = await client.records.list_all_records("Tasks", {"view": "Open"})

Modules:
    client: Core executor and the records, metadata and webhooks clients.
    cache: Cache stores, key helpers and the read-through cache policy.
    facade: ``Tablewire().configure(...).base(...)(table)`` convenience API.
    models: Pydantic models for configuration and request parameters.
    config: XDG-aware settings file and environment resolution.
    exceptions: Exception hierarchy.
    serialize: Deterministic JSON used for cache keys.
    output: stderr diagnostics with Rich support.
"""

from tablewire.cache import DiskCacheStore, MemoryCacheStore
from tablewire.client import ApiClient, CoreClient
from tablewire.exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TablewireError,
)
from tablewire.facade import Tablewire
from tablewire.models import ClientDefaults, ClientOptions, RecordsCacheOptions
from tablewire.serialize import stable_stringify

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthError",
    "ClientDefaults",
    "ClientOptions",
    "ConfigError",
    "CoreClient",
    "DiskCacheStore",
    "MemoryCacheStore",
    "NotFoundError",
    "RateLimitError",
    "RecordsCacheOptions",
    "ServerError",
    "Tablewire",
    "TablewireError",
    "stable_stringify",
]
