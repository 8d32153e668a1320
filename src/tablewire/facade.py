"""Convenience façade: ``base(table).select(...).all()`` style access.

:class:`Tablewire` holds an immutable :class:`~tablewire.models.ClientDefaults`.
:meth:`Tablewire.configure` returns a *new* façade with updated defaults,
so two parts of a program can hold differently configured façades without
affecting each other.

Example::

    tw = Tablewire().configure(api_key=token)
    tasks = tw.base("app123")("Tasks")

    open_tasks = await tasks.select(view="Open").all()
    await tasks.update_record(open_tasks[0]["id"], {"Status": "Done"})
"""

from __future__ import annotations

from typing import Any, Optional

from tablewire.client.api import ApiClient
from tablewire.exceptions import ConfigError
from tablewire.models import ClientDefaults, ClientOptions, RecordsCacheOptions


class Query:
    """A prepared list request for one table; run it with :meth:`all` or :meth:`first_page`."""

    def __init__(self, client: ApiClient, table: str, params: Optional[dict[str, Any]] = None) -> None:
        self._client = client
        self._table = table
        self._params = params or None

    async def all(self) -> list[dict[str, Any]]:
        """Every matching record across pages."""
        return await self._client.records.list_all_records(self._table, self._params)

    async def first_page(self) -> list[dict[str, Any]]:
        """Records of the first page only."""
        page = await self._client.records.list_records(self._table, self._params)
        return page.get("records") or []


class Table:
    """Record operations bound to one table of a :class:`Base`."""

    def __init__(self, client: ApiClient, name: str) -> None:
        self._client = client
        self.name = name

    def select(self, **params: Any) -> Query:
        """Prepare a list request; keyword arguments are ``ListRecordsParams`` fields."""
        params.pop("offset", None)
        return Query(self._client, self.name, params)

    async def find(self, record_id: str, params: Any = None) -> dict[str, Any]:
        return await self._client.records.get_record(self.name, record_id, params)

    async def create(self, records: list[dict[str, Any]], options: Any = None) -> dict[str, Any]:
        return await self._client.records.create_records(self.name, records, options)

    async def update(self, records: list[dict[str, Any]], options: Any = None) -> dict[str, Any]:
        return await self._client.records.update_records(self.name, records, options)

    async def update_record(self, record_id: str, fields: dict[str, Any], options: Any = None) -> dict[str, Any]:
        return await self._client.records.update_record(self.name, record_id, fields, options)

    async def destroy(self, record_id: str) -> dict[str, Any]:
        return await self._client.records.delete_record(self.name, record_id)

    async def destroy_many(self, record_ids: list[str]) -> dict[str, Any]:
        return await self._client.records.delete_records(self.name, record_ids)


class Base:
    """A base bound to an :class:`~tablewire.client.api.ApiClient`; call it with a table name."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    @property
    def id(self) -> str:
        return self.client.base_id

    def __call__(self, table: str) -> Table:
        return Table(self.client, table)

    async def aclose(self) -> None:
        await self.client.aclose()


class Tablewire:
    """Entry point holding process-wide client defaults.

    Args:
        defaults: Starting defaults. Defaults to an empty
            :class:`~tablewire.models.ClientDefaults`.
    """

    def __init__(self, defaults: Optional[ClientDefaults] = None) -> None:
        self._defaults = defaults or ClientDefaults()

    @property
    def defaults(self) -> ClientDefaults:
        return self._defaults

    def configure(self, **changes: Any) -> Tablewire:
        """Return a new façade whose defaults apply *changes*.

        Keyword arguments are :class:`~tablewire.models.ClientDefaults`
        fields. ``None`` values leave the current setting untouched.

        Raises:
            ConfigError: If a name is unknown or a value fails validation.
        """
        unknown = sorted(set(changes) - set(ClientDefaults.model_fields))
        if unknown:
            raise ConfigError(f"Tablewire.configure: unknown option(s): {', '.join(unknown)}")

        values = {name: getattr(self._defaults, name) for name in ClientDefaults.model_fields}
        values.update({k: v for k, v in changes.items() if v is not None})
        try:
            return Tablewire(ClientDefaults.model_validate(values))
        except ValueError as exc:
            raise ConfigError(f"Tablewire.configure: {exc}") from exc

    def base(self, base_id: str, records_cache: Optional[RecordsCacheOptions] = None) -> Base:
        """Create a :class:`Base` with its own client.

        Args:
            base_id: Base to bind.
            records_cache: Cache options for this base, replacing the
                configured default.

        Raises:
            ConfigError: If *base_id* is empty or no ``api_key`` is configured.
        """
        if not base_id:
            raise ConfigError("Tablewire.base: base_id is required")
        if not self._defaults.api_key:
            raise ConfigError("Tablewire.base: api_key must be configured via Tablewire.configure(...)")

        values = {name: getattr(self._defaults, name) for name in ClientDefaults.model_fields}
        values["base_id"] = base_id
        if records_cache is not None:
            values["records_cache"] = records_cache
        return Base(ApiClient(ClientOptions.model_validate(values)))
