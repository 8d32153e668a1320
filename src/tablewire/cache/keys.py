"""Cache key helpers for records operations.

Keys are ``<prefix><stable params JSON>``::

    records:list:<base>:<table>:{"view":"Grid"}
    records:get:<base>:<table>:<record>:{}

Table and record identifiers are escaped like JavaScript's
``encodeURIComponent`` so a ``:`` inside a table name cannot make one
table's prefix match another's keys. Because parameters are rendered with
:func:`~tablewire.serialize.stable_stringify`, key order in the parameters
never changes the key.

These are pure functions; external code may use them to pre-warm or
invalidate specific entries.
"""

from __future__ import annotations

from typing import Any, Union
from urllib.parse import quote

from pydantic import BaseModel

from tablewire.models import normalized_params
from tablewire.serialize import stable_stringify

_URI_COMPONENT_SAFE = "-_.!~*'()"

ParamsLike = Union[BaseModel, dict[str, Any], None]


def encode_component(value: str) -> str:
    """Escape *value* the way ``encodeURIComponent`` does."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _params_json(params: ParamsLike) -> str:
    if isinstance(params, BaseModel):
        return stable_stringify(normalized_params(params))
    return stable_stringify(params if params is not None else {})


def table_prefix(base_id: str, table_id_or_name: str) -> str:
    """Prefix shared by every cached list result of one table."""
    return f"records:list:{base_id}:{encode_component(table_id_or_name)}:"


def record_prefix(base_id: str, table_id_or_name: str, record_id: str) -> str:
    """Prefix shared by every cached view of one record."""
    return (
        f"records:get:{base_id}:{encode_component(table_id_or_name)}:"
        f"{encode_component(record_id)}:"
    )


def list_key(base_id: str, table_id_or_name: str, params: ParamsLike = None) -> str:
    """Cache key for one page of list results.

    Raises:
        TypeError: If *params* contains a circular reference.
    """
    return table_prefix(base_id, table_id_or_name) + _params_json(params)


def record_key(
    base_id: str,
    table_id_or_name: str,
    record_id: str,
    params: ParamsLike = None,
) -> str:
    """Cache key for a single record fetched with the given display params.

    Raises:
        TypeError: If *params* contains a circular reference.
    """
    return record_prefix(base_id, table_id_or_name, record_id) + _params_json(params)

