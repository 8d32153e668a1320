"""HTTP client package for tablewire.

Every request goes through one :class:`CoreClient`, which wraps
:class:`httpx.AsyncClient` with header composition, retry with exponential
backoff, and typed error mapping. The API clients build on it:

Classes:
    :class:`CoreClient` -- shared request executor and URL/query builders.
    :class:`RecordsClient` -- record CRUD, pagination and the records cache.
    :class:`MetadataClient` -- bases, table schemas and views.
    :class:`WebhooksClient` -- webhook management and payloads.
    :class:`ApiClient` -- all of the above for one base.

Example::

    from tablewire.client import ApiClient
    from tablewire.models import ClientOptions

    async with ApiClient(ClientOptions(api_key=token, base_id="app123")) as client:
        record = await client.records.get_record("Tasks", "rec123")
"""

from tablewire.client.api import ApiClient
from tablewire.client.core import MAX_RECORDS_PER_BATCH, CoreClient
from tablewire.client.metadata import MetadataClient
from tablewire.client.records import RecordsClient
from tablewire.client.webhooks import WebhooksClient

__all__ = [
    "MAX_RECORDS_PER_BATCH",
    "ApiClient",
    "CoreClient",
    "MetadataClient",
    "RecordsClient",
    "WebhooksClient",
]
