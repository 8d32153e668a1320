"""Tests for the Tablewire convenience façade."""

from __future__ import annotations

import json

import httpx
import pytest

from tablewire import Tablewire
from tablewire.cache import MemoryCacheStore
from tablewire.exceptions import ConfigError
from tablewire.facade import Base, Table
from tablewire.models import ClientDefaults, RecordsCacheOptions


def _configured(transport, **changes) -> Tablewire:
    return Tablewire().configure(api_key="patTEST", http_client=transport.client(), max_retries=0, **changes)


# ---------------------------------------------------------------------------
# configure()
# ---------------------------------------------------------------------------


class TestConfigure:
    def test_returns_new_instance(self) -> None:
        original = Tablewire()
        configured = original.configure(api_key="patTEST", max_retries=2)

        assert configured is not original
        assert original.defaults == ClientDefaults()
        assert configured.defaults.api_key == "patTEST"
        assert configured.defaults.max_retries == 2

    def test_none_keeps_current_value(self) -> None:
        tw = Tablewire().configure(api_key="patTEST").configure(api_key=None, api_version="v1")
        assert tw.defaults.api_key == "patTEST"
        assert tw.defaults.api_version == "v1"

    def test_unknown_option(self) -> None:
        with pytest.raises(ConfigError, match="apiKey"):
            Tablewire().configure(apiKey="patTEST")

    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigError):
            Tablewire().configure(max_retries=-1)

    def test_defaults_are_immutable(self) -> None:
        with pytest.raises(ValueError):
            Tablewire().defaults.api_key = "x"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# base()
# ---------------------------------------------------------------------------


class TestBase:
    def test_requires_base_id(self) -> None:
        with pytest.raises(ConfigError, match="base_id"):
            Tablewire().configure(api_key="patTEST").base("")

    def test_requires_api_key(self) -> None:
        with pytest.raises(ConfigError, match="api_key"):
            Tablewire().base("app1")

    def test_base_and_table(self, transport) -> None:
        base = _configured(transport).base("app1")
        assert isinstance(base, Base)
        assert base.id == "app1"
        table = base("Tasks")
        assert isinstance(table, Table)
        assert table.name == "Tasks"

    @pytest.mark.asyncio
    async def test_records_cache_override(self, transport) -> None:
        transport.queue(httpx.Response(200, json={"id": "rec1", "fields": {}}))
        default_store = MemoryCacheStore()
        override_store = MemoryCacheStore()
        tw = _configured(transport, records_cache=RecordsCacheOptions(store=default_store))

        table = tw.base("app1", records_cache=RecordsCacheOptions(store=override_store))("Tasks")
        await table.find("rec1")

        assert len(override_store) == 1
        assert len(default_store) == 0


# ---------------------------------------------------------------------------
# Table operations
# ---------------------------------------------------------------------------


class TestTableOperations:
    @pytest.mark.asyncio
    async def test_select_all(self, transport) -> None:
        transport.queue(
            httpx.Response(200, json={"records": [{"id": "rec1", "fields": {}}], "offset": "itr1"}),
            httpx.Response(200, json={"records": [{"id": "rec2", "fields": {}}]}),
        )
        table = _configured(transport).base("app1")("Tasks")

        records = await table.select(view="Open", offset="dropped").all()

        assert [r["id"] for r in records] == ["rec1", "rec2"]
        assert transport.requests[0].url.params["view"] == "Open"
        assert "offset" not in transport.requests[0].url.params

    @pytest.mark.asyncio
    async def test_select_first_page(self, transport) -> None:
        transport.queue(httpx.Response(200, json={"records": [{"id": "rec1", "fields": {}}], "offset": "itr1"}))
        table = _configured(transport).base("app1")("Tasks")

        records = await table.select(page_size=1).first_page()

        assert [r["id"] for r in records] == ["rec1"]
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_mutations_delegate(self, transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "DELETE":
                ids = request.url.params.get_list("records[]")
                if ids:
                    return httpx.Response(200, json={"records": [{"id": i, "deleted": True} for i in ids]})
                return httpx.Response(200, json={"id": request.url.path.rsplit("/", 1)[-1], "deleted": True})
            body = json.loads(request.content)
            if "records" in body:
                return httpx.Response(200, json={"records": body["records"]})
            return httpx.Response(200, json={"id": "rec1", "fields": body["fields"]})

        transport.queue(handler)
        table = _configured(transport).base("app1")("Tasks")

        created = await table.create([{"fields": {"Name": "A"}}])
        updated = await table.update([{"id": "rec1", "fields": {"Name": "B"}}])
        single = await table.update_record("rec1", {"Name": "C"})
        destroyed = await table.destroy("rec1")
        many = await table.destroy_many(["rec2", "rec3"])

        assert created["records"][0]["fields"] == {"Name": "A"}
        assert updated["records"][0]["fields"] == {"Name": "B"}
        assert single["fields"] == {"Name": "C"}
        assert destroyed == {"id": "rec1", "deleted": True}
        assert [r["id"] for r in many["records"]] == ["rec2", "rec3"]
        assert [r.method for r in transport.requests] == ["POST", "PATCH", "PATCH", "DELETE", "DELETE"]
