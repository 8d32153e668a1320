"""Canonical Pydantic models shared across all tablewire modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- immutable settings threaded through
constructors:
    :class:`CacheMethods`, :class:`RecordsCacheOptions`,
    :class:`ClientDefaults`, :class:`ClientOptions`, and :class:`Settings`
    (the on-disk config file).

**Request parameter models** -- validated inputs that the URL/query
builders turn into query strings and request bodies:
    :class:`SortSpec`, :class:`ListRecordsParams`, :class:`GetRecordParams`,
    :class:`CreateRecordsOptions`, :class:`PerformUpsert`,
    :class:`UpdateRecordsOptions`, :class:`ListBasesParams`,
    :class:`ListWebhookPayloadsParams`, and :class:`CreateWebhookParams`.

Response bodies are *not* modelled: record, schema, and webhook payloads
are passed through as the decoded JSON the API returned.

All configuration models are ``frozen``. Process-wide defaults are a
:class:`ClientDefaults` value handed to whoever needs it, never a mutable
module global.
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_ENDPOINT_URL = "https://api.airtable.com"
"""Default API root URL. Override for proxies and mock servers."""

DEFAULT_RETRY_STATUSES: tuple[int, ...] = (429, 500, 502, 503, 504)


# --- Cache config ---


class CacheMethods(BaseModel):
    """Per-operation switches for the records cache.

    A flag set to ``False`` bypasses the cache for that operation. Flags
    default to ``True``: once a store is configured everything cacheable is
    cached.
    """

    model_config = ConfigDict(frozen=True)

    list_records: bool = Field(default=True, description="Cache single pages of list_records")
    list_all_records: bool = Field(
        default=True,
        description="Let list_all_records / iterate_records pages go through the cache",
    )
    get_record: bool = Field(default=True, description="Cache get_record results")


class RecordsCacheOptions(BaseModel):
    """Records cache configuration attached to a client.

    Example::

        RecordsCacheOptions(
            store=MemoryCacheStore(max_size=500),
            default_ttl_ms=30_000,
            methods={"get_record": False},
            on_error=lambda exc, ctx: log.warning("%s failed: %s", ctx.op, exc),
        )

    See Also:
        :class:`~tablewire.cache.records_cache.RecordsCache` for how each
        field is applied.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    store: Any = Field(default=None, description="CacheStore implementation; None disables caching")
    default_ttl_ms: Optional[int] = Field(
        default=None, ge=0, description="TTL passed to store.set(); None means no expiry"
    )
    methods: CacheMethods = Field(default_factory=CacheMethods)
    on_error: Optional[Callable[..., Any]] = Field(
        default=None, description="Observer called as on_error(exc, CacheErrorContext)"
    )
    fail_on_cache_error: bool = Field(
        default=False, description="Re-raise cache store errors instead of swallowing them"
    )


# --- Client config ---


class ClientDefaults(BaseModel):
    """Client settings that are not tied to one base.

    Used directly by the :class:`~tablewire.facade.Tablewire` façade as its
    process-wide defaults, and extended by :class:`ClientOptions` with a
    ``base_id``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    api_key: Optional[str] = Field(default=None, description="Personal access token, sent as Bearer")
    api_version: str = Field(default="v0", description="API version path segment and header")
    endpoint_url: str = Field(default=DEFAULT_ENDPOINT_URL, description="API root URL")
    custom_headers: dict[str, Any] = Field(
        default_factory=dict, description="Headers added to every request"
    )
    no_retry_if_rate_limited: bool = Field(
        default=True, description="Never retry 429 even if listed in retry_on_statuses"
    )
    max_retries: int = Field(default=5, ge=0, description="Max retry attempts per request")
    retry_initial_delay_ms: int = Field(
        default=500, ge=0, description="Base delay for exponential backoff"
    )
    retry_on_statuses: tuple[int, ...] = Field(
        default=DEFAULT_RETRY_STATUSES, description="Statuses eligible for retry"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    http_client: Any = Field(
        default=None, description="httpx.AsyncClient to use instead of an owned one"
    )
    records_cache: Optional[RecordsCacheOptions] = None


class ClientOptions(ClientDefaults):
    """Full options for a client bound to a single base."""

    base_id: Optional[str] = Field(default=None, description="Base ID, e.g. appXXXXXXXXXXXXXX")


class Settings(BaseModel):
    """Contents of the optional ``config.json`` in the config directory.

    Every field is optional; unset fields fall through to environment
    variables or built-in defaults. See
    :func:`~tablewire.config.resolve_client_options`.
    """

    api_key: Optional[str] = None
    base_id: Optional[str] = None
    endpoint_url: Optional[str] = None
    api_version: Optional[str] = None
    max_retries: Optional[int] = None
    retry_initial_delay_ms: Optional[int] = None
    timeout: Optional[float] = None
    custom_headers: dict[str, str] = Field(default_factory=dict)


# --- Request parameters ---


class _Params(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


CellFormat = Literal["json", "string"]


class SortSpec(_Params):
    """One sort clause for list requests."""

    field: str
    direction: Optional[Literal["asc", "desc"]] = None


class ListRecordsParams(_Params):
    """Query parameters for the "List records" endpoint."""

    max_records: Optional[int] = Field(default=None, ge=0)
    page_size: Optional[int] = Field(default=None, ge=1)
    offset: Optional[str] = None
    view: Optional[str] = None
    fields: Optional[list[str]] = None
    filter_by_formula: Optional[str] = None
    sort: Optional[list[SortSpec]] = None
    cell_format: Optional[CellFormat] = None
    time_zone: Optional[str] = None
    user_locale: Optional[str] = None
    return_fields_by_field_id: Optional[bool] = None


class GetRecordParams(_Params):
    """Display parameters for the "Retrieve a record" endpoint."""

    cell_format: Optional[CellFormat] = None
    time_zone: Optional[str] = None
    user_locale: Optional[str] = None
    return_fields_by_field_id: Optional[bool] = None


class CreateRecordsOptions(_Params):
    typecast: Optional[bool] = None
    return_fields_by_field_id: Optional[bool] = None


class PerformUpsert(_Params):
    """Upsert settings; serialised as ``{"fieldsToMergeOn": [...]}``."""

    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    fields_to_merge_on: list[str]


class UpdateRecordsOptions(_Params):
    typecast: Optional[bool] = None
    perform_upsert: Optional[PerformUpsert] = None
    return_fields_by_field_id: Optional[bool] = None


class ListBasesParams(_Params):
    offset: Optional[str] = None


class ListWebhookPayloadsParams(_Params):
    cursor: Optional[int] = None
    limit: Optional[int] = Field(default=None, ge=1)


class CreateWebhookParams(_Params):
    """Body of the "Create a webhook" endpoint, serialised with camelCase keys."""

    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    notification_url: Optional[str] = None
    specification: dict[str, Any]


ParamsT = TypeVar("ParamsT", bound=BaseModel)


def coerce_params(
    model: type[ParamsT],
    value: Union[ParamsT, dict[str, Any], None],
) -> Optional[ParamsT]:
    """Validate *value* into *model*, accepting an instance, a dict, or ``None``.

    Raises:
        pydantic.ValidationError: If a dict does not match the model.
    """
    if value is None or isinstance(value, model):
        return value
    return model.model_validate(value)


def normalized_params(params: Optional[BaseModel]) -> dict[str, Any]:
    """Return the plain-dict form of *params* used in cache keys (unset fields dropped)."""
    if params is None:
        return {}
    return params.model_dump(mode="json", exclude_none=True)
