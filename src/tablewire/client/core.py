"""Low-level async request executor shared by every API client.

This module provides :class:`CoreClient`, which all higher-level clients
(:class:`~tablewire.client.records.RecordsClient`,
:class:`~tablewire.client.metadata.MetadataClient`,
:class:`~tablewire.client.webhooks.WebhooksClient`) call into. It wraps an
:class:`httpx.AsyncClient` and layers on:

- **Header composition** -- bearer auth, API version, global custom
  headers, per-call headers, and a default JSON content type for requests
  with a body.
- **Retry with backoff** -- retries statuses listed in
  ``retry_on_statuses`` up to ``max_retries`` times. A ``Retry-After``
  header wins; otherwise the delay doubles each attempt with up to 20%
  additive jitter (500 ms, 1 s, 2 s, ... by default).
- **Response interpretation** -- see
  :func:`~tablewire.client.response.interpret_response`.
- **URL and query builders** for table, metadata, and base-level
  endpoints.

Rate limiting (429) is not retried unless ``no_retry_if_rate_limited`` is
turned off, even when 429 is in ``retry_on_statuses``.
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from tablewire.cache.keys import encode_component
from tablewire.client.response import interpret_response
from tablewire.exceptions import ConfigError, ConnectionError_, TransportUnavailableError
from tablewire.models import (
    ClientOptions,
    GetRecordParams,
    ListRecordsParams,
)
from tablewire.output import get_output

MAX_RECORDS_PER_BATCH = 10
"""Most records the API accepts in one create/update/delete request."""

API_VERSION_HEADER = "X-Airtable-API-Version"

QueryItems = list[tuple[str, str]]


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class CoreClient:
    """Shared HTTP core: URL builders, header composition, retry, and error mapping.

    Usually created by :class:`~tablewire.client.api.ApiClient`; use it
    directly only for endpoints the higher-level clients do not cover.

    Args:
        options: Client options. ``api_key`` and ``base_id`` are required.
        sleep: Coroutine function used to wait between retries. Defaults to
            :func:`asyncio.sleep`.

    Raises:
        ConfigError: If ``api_key`` or ``base_id`` is missing.
        TransportUnavailableError: If ``options.http_client`` is set but
            cannot perform requests.

    Example::

        async with CoreClient(ClientOptions(api_key=token, base_id="app123")) as core:
            page = await core.request_json(core.build_table_url("Tasks"))
    """

    def __init__(
        self,
        options: ClientOptions,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        if not options.api_key:
            raise ConfigError("CoreClient: api_key is required")
        if not options.base_id:
            raise ConfigError("CoreClient: base_id is required")

        self._options = options
        self._sleep = sleep or asyncio.sleep
        self._http_client, self._owns_client = self._resolve_http_client(options)

    @staticmethod
    def _resolve_http_client(options: ClientOptions) -> tuple[Any, bool]:
        client = options.http_client
        if client is None:
            return httpx.AsyncClient(timeout=options.timeout, follow_redirects=True), True
        if not callable(getattr(client, "request", None)):
            raise TransportUnavailableError(
                "CoreClient: http_client cannot perform requests. "
                "Provide an httpx.AsyncClient (or compatible object) in ClientOptions."
            )
        return client, False

    # ------------------------------------------------------------------ #
    # Configuration accessors
    # ------------------------------------------------------------------ #

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def base_id(self) -> str:
        return self._options.base_id or ""

    @property
    def api_version(self) -> str:
        return self._options.api_version

    @property
    def endpoint_url(self) -> str:
        return self._options.endpoint_url

    @property
    def http_client(self) -> Any:
        return self._http_client

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> CoreClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this core created it."""
        if self._owns_client:
            await self._http_client.aclose()

    # ------------------------------------------------------------------ #
    # URL builders
    # ------------------------------------------------------------------ #

    def _url(self, path: str, query: Optional[QueryItems] = None) -> httpx.URL:
        url = httpx.URL(self.endpoint_url.rstrip("/") + path)
        if query:
            url = url.copy_with(params=httpx.QueryParams(query))
        return url

    def build_table_url(
        self,
        table_id_or_name: str,
        record_id: Optional[str] = None,
        query: Optional[QueryItems] = None,
    ) -> httpx.URL:
        """URL for a table-level or record-level records endpoint.

        ``/{api_version}/{base_id}/{table}[/{record_id}]`` with both
        identifiers escaped.
        """
        path = f"/{self.api_version}/{self.base_id}/{encode_component(table_id_or_name)}"
        if record_id:
            path += f"/{encode_component(record_id)}"
        return self._url(path, query)

    def build_meta_url(self, path: str, query: Optional[QueryItems] = None) -> httpx.URL:
        """URL under ``/{api_version}/meta``."""
        return self._url(f"/{self.api_version}/meta{path}", query)

    def build_base_url(self, path: str, query: Optional[QueryItems] = None) -> httpx.URL:
        """URL under ``/{api_version}/bases/{base_id}`` (webhooks and similar)."""
        if not path.startswith("/"):
            path = f"/{path}"
        return self._url(f"/{self.api_version}/bases/{self.base_id}{path}", query)

    # ------------------------------------------------------------------ #
    # Query builders
    # ------------------------------------------------------------------ #

    def build_list_query(self, params: Optional[ListRecordsParams]) -> Optional[QueryItems]:
        """Query items for "List records"; ``None`` when *params* is ``None``."""
        if params is None:
            return None

        query: QueryItems = []
        for name, value in (
            ("maxRecords", params.max_records),
            ("pageSize", params.page_size),
            ("offset", params.offset),
            ("view", params.view),
            ("filterByFormula", params.filter_by_formula),
            ("cellFormat", params.cell_format),
            ("timeZone", params.time_zone),
            ("userLocale", params.user_locale),
            ("returnFieldsByFieldId", params.return_fields_by_field_id),
        ):
            if value is not None and value != "":
                query.append((name, _query_value(value)))

        for field_name in params.fields or []:
            query.append(("fields[]", field_name))

        for index, spec in enumerate(params.sort or []):
            query.append((f"sort[{index}][field]", spec.field))
            if spec.direction:
                query.append((f"sort[{index}][direction]", spec.direction))

        return query

    def build_get_query(self, params: Optional[GetRecordParams]) -> Optional[QueryItems]:
        """Query items for "Retrieve a record"; ``None`` when *params* is ``None``."""
        if params is None:
            return None

        query: QueryItems = []
        for name, value in (
            ("cellFormat", params.cell_format),
            ("timeZone", params.time_zone),
            ("userLocale", params.user_locale),
            ("returnFieldsByFieldId", params.return_fields_by_field_id),
        ):
            if value is not None and value != "":
                query.append((name, _query_value(value)))
        return query

    def build_return_fields_query(self, return_fields_by_field_id: Optional[bool]) -> Optional[QueryItems]:
        """``returnFieldsByFieldId`` query for mutations; ``None`` when unset."""
        if return_fields_by_field_id is None:
            return None
        return [("returnFieldsByFieldId", _query_value(return_fields_by_field_id))]

    # ------------------------------------------------------------------ #
    # Request execution
    # ------------------------------------------------------------------ #

    def compose_headers(self, method: str, headers: Optional[dict[str, Any]] = None) -> httpx.Headers:
        """Build the headers sent on every attempt of one request.

        Layers, later ones overriding earlier ones key by key: bearer
        authorization, API version, ``custom_headers``, per-call
        *headers*. ``None`` values are skipped. Methods other than GET/HEAD
        then get ``Content-Type: application/json`` unless a layer already
        set it.
        """
        composed = httpx.Headers({"Authorization": f"Bearer {self._options.api_key}"})
        if self.api_version:
            composed[API_VERSION_HEADER] = self.api_version

        for layer in (self._options.custom_headers, headers or {}):
            for key, value in layer.items():
                if value is None:
                    continue
                composed[key] = str(value)

        if method.upper() not in ("GET", "HEAD") and "content-type" not in composed:
            composed["Content-Type"] = "application/json"

        return composed

    async def request_json(
        self,
        url: Union[httpx.URL, str],
        method: str = "GET",
        headers: Optional[dict[str, Any]] = None,
        body: Optional[Union[str, bytes]] = None,
        json_body: Any = None,
    ) -> Any:
        """Perform one logical request and return its parsed body.

        Retryable statuses are retried with backoff; the final response
        is interpreted by
        :func:`~tablewire.client.response.interpret_response`.

        Args:
            url: Fully built request URL.
            method: HTTP method.
            headers: Per-call headers, overriding configured ones.
            body: Raw request body.
            json_body: JSON-serialisable body; takes precedence over *body*.

        Returns:
            Decoded JSON, raw text, or ``None`` for 204 responses.

        Raises:
            ApiError: On a terminal non-2xx response.
            ResponseDecodeError: When a 2xx JSON body is malformed.
            ConnectionError_: On network or timeout errors.
        """
        method = method.upper()
        composed = self.compose_headers(method, headers)
        if json_body is not None:
            body = json.dumps(json_body)

        output = get_output()
        attempt = 0

        while True:
            try:
                response = await self._http_client.request(
                    method, str(url), headers=composed, content=body,
                )
            except httpx.TransportError as exc:
                raise ConnectionError_(f"{method} {url} failed: {exc}") from exc

            if not self.should_retry(response.status_code, attempt):
                return interpret_response(response)

            delay_ms = self.get_retry_delay_ms(response, attempt)
            output.debug(
                f"HTTP {response.status_code} from {method} {url}, retrying in "
                f"{delay_ms:.0f}ms (attempt {attempt + 1}/{self._options.max_retries})"
            )
            await self._sleep(delay_ms / 1000)
            attempt += 1

    def should_retry(self, status: int, attempt: int) -> bool:
        """Decide whether a response with *status* on *attempt* is retried."""
        if attempt >= self._options.max_retries:
            return False
        if self._options.no_retry_if_rate_limited and status == 429:
            return False
        return status in self._options.retry_on_statuses

    def get_retry_delay_ms(self, response: httpx.Response, attempt: int) -> float:
        """Delay before the next attempt, in milliseconds.

        A ``Retry-After`` header holding a positive number of seconds is
        honoured verbatim. Otherwise the delay is
        ``retry_initial_delay_ms * 2 ** attempt`` plus up to 20% jitter.
        """
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                seconds = float(retry_after)
            except ValueError:
                seconds = 0.0
            if math.isfinite(seconds) and seconds > 0:
                return seconds * 1000

        base = self._options.retry_initial_delay_ms * 2 ** attempt
        return base + base * 0.2 * random.random()
