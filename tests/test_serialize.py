"""Tests for deterministic JSON rendering."""

from __future__ import annotations

import datetime
import json
from collections import OrderedDict

import pytest

from tablewire.models import SortSpec
from tablewire.serialize import UNDEFINED, is_plain_object, stable_stringify


# ---------------------------------------------------------------------------
# Key ordering
# ---------------------------------------------------------------------------


class TestKeyOrdering:
    def test_top_level_keys_sorted(self) -> None:
        assert stable_stringify({"b": 1, "a": 2}) == '{"a":2,"b":1}'

    def test_nested_keys_sorted(self) -> None:
        first = {"z": {"y": 1, "x": [{"d": 1, "c": 2}]}, "a": None}
        second = {"a": None, "z": {"x": [{"c": 2, "d": 1}], "y": 1}}
        assert stable_stringify(first) == stable_stringify(second)
        assert stable_stringify(first) == '{"a":null,"z":{"x":[{"c":2,"d":1}],"y":1}}'

    def test_list_order_preserved(self) -> None:
        assert stable_stringify([3, 1, 2]) == "[3,1,2]"

    def test_tuple_renders_as_list(self) -> None:
        assert stable_stringify(("a", "b")) == '["a","b"]'

    def test_idempotent_across_calls(self) -> None:
        value = {"view": "Grid", "fields": ["Name", "Status"], "pageSize": 50}
        assert stable_stringify(value) == stable_stringify(dict(reversed(list(value.items()))))


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


class TestPrimitives:
    @pytest.mark.parametrize(
        "value",
        [None, True, False, 0, -7, 3.5, "", "plain", "naïve ☃", "quote\"d"],
    )
    def test_matches_standard_json(self, value) -> None:
        rendered = stable_stringify(value)
        assert json.loads(rendered) == value

    def test_non_ascii_kept_verbatim(self) -> None:
        assert stable_stringify({"name": "café"}) == '{"name":"café"}'

    def test_compact_separators(self) -> None:
        assert stable_stringify({"a": [1, 2]}) == '{"a":[1,2]}'


# ---------------------------------------------------------------------------
# Unsupported values
# ---------------------------------------------------------------------------


class TestUnsupportedValues:
    def test_undefined_dropped_from_dict(self) -> None:
        assert stable_stringify({"a": 1, "b": UNDEFINED}) == '{"a":1}'

    def test_callable_dropped_from_dict(self) -> None:
        assert stable_stringify({"a": 1, "fn": lambda: None}) == '{"a":1}'

    def test_unsupported_becomes_null_in_list(self) -> None:
        assert stable_stringify([1, UNDEFINED, print]) == "[1,null,null]"

    def test_top_level_undefined_is_empty_string(self) -> None:
        assert stable_stringify(UNDEFINED) == ""

    def test_top_level_callable_is_empty_string(self) -> None:
        assert stable_stringify(len) == ""

    def test_undefined_is_falsy_singleton(self) -> None:
        assert not UNDEFINED
        assert repr(UNDEFINED) == "UNDEFINED"
        assert type(UNDEFINED)() is UNDEFINED

    def test_none_is_kept(self) -> None:
        assert stable_stringify({"a": None}) == '{"a":null}'


# ---------------------------------------------------------------------------
# Non-plain objects
# ---------------------------------------------------------------------------


class TestNonPlainObjects:
    def test_datetime_uses_isoformat(self) -> None:
        moment = datetime.datetime(2024, 1, 2, 3, 4, 5)
        assert stable_stringify({"at": moment}) == '{"at":"2024-01-02T03:04:05"}'

    def test_pydantic_model_uses_model_dump(self) -> None:
        assert stable_stringify(SortSpec(field="Name", direction="asc")) == (
            '{"field":"Name","direction":"asc"}'
        )

    def test_to_json_hook(self) -> None:
        class Point:
            def to_json(self):
                return [1, 2]

        assert stable_stringify({"p": Point()}) == '{"p":[1,2]}'

    def test_dict_subclass_not_plain(self) -> None:
        class Ordered(dict):
            pass

        assert is_plain_object({})
        assert not is_plain_object(Ordered())

    def test_unknown_object_raises(self) -> None:
        with pytest.raises(TypeError):
            stable_stringify({"x": object()})


# ---------------------------------------------------------------------------
# Circular structures
# ---------------------------------------------------------------------------


class TestCircular:
    def test_self_referencing_dict_raises(self) -> None:
        value: dict = {"a": 1}
        value["self"] = value
        with pytest.raises(TypeError, match="circular"):
            stable_stringify(value)

    def test_self_referencing_list_raises(self) -> None:
        value: list = [1]
        value.append(value)
        with pytest.raises(TypeError, match="circular"):
            stable_stringify(value)

    def test_self_referencing_dict_subclass_raises(self) -> None:
        inner: OrderedDict = OrderedDict()
        inner["self"] = inner
        with pytest.raises(TypeError, match="circular"):
            stable_stringify({"p": inner})

    def test_detected_on_every_call(self) -> None:
        value: dict = {}
        value["loop"] = {"back": value}
        for _ in range(2):
            with pytest.raises(TypeError):
                stable_stringify(value)

    def test_shared_reference_is_not_circular(self) -> None:
        shared = {"k": 1}
        assert stable_stringify({"a": shared, "b": [shared, shared]}) == (
            '{"a":{"k":1},"b":[{"k":1},{"k":1}]}'
        )
