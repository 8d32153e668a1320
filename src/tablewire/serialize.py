"""Deterministic JSON rendering used to build cache keys.

:func:`stable_stringify` behaves like ``json.dumps`` with compact separators,
except that every plain ``dict`` has its keys sorted at every nesting level.
Two parameter mappings that differ only in key order therefore render to
the same string::

    >>> stable_stringify({"b": 1, "a": 2})
    '{"a":2,"b":1}'
    >>> stable_stringify({"a": 2, "b": 1})
    '{"a":2,"b":1}'

Rules, mirroring JavaScript ``JSON.stringify`` so keys stay comparable with
other clients of the same API:

* ``None``, booleans, numbers, and strings render as standard JSON.
* Plain dicts (``type(value) is dict``) are key-sorted recursively.
* Lists and tuples keep their order; items are normalized recursively.
* Other objects (datetimes, pydantic models, class instances) are *not*
  sorted; they go through :func:`_json_default`, which honours
  ``model_dump()``, ``to_json()``, ``__json__()`` and ``isoformat()``.
* :data:`UNDEFINED` and callables are dropped from dicts and become
  ``null`` inside lists.  At top level they produce ``""``.
* Circular structures raise :class:`TypeError`.
"""

from __future__ import annotations

import json
from typing import Any


class _Undefined:
    """Sentinel type for "no value", distinct from ``None`` (JSON ``null``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()
"""Marker for a missing value. Omitted from objects, ``null`` in arrays."""

_CIRCULAR_MESSAGE = "Converting circular structure to JSON in stableStringify"


def is_plain_object(value: Any) -> bool:
    """Return True for plain ``dict`` instances (subclasses are not plain)."""
    return type(value) is dict


def _is_unsupported(value: Any) -> bool:
    return value is UNDEFINED or callable(value)


def _json_default(value: Any) -> Any:
    """Native serialization hook for non-plain objects."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    for hook in ("to_json", "__json__"):
        method = getattr(value, hook, None)
        if callable(method):
            return method()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def stable_stringify(value: Any) -> str:
    """Serialize *value* to JSON with deterministic key ordering.

    Args:
        value: Any JSON-like value.  Typically the normalized parameters of
            a list or get request.

    Returns:
        A compact JSON string, or ``""`` when *value* itself has no JSON
        representation (``UNDEFINED`` or a callable).

    Raises:
        TypeError: If *value* contains a circular reference, or an object
            with no JSON representation.
    """
    # ids of the dicts/lists on the current path only
    active: set[int] = set()

    def normalize(val: Any) -> Any:
        if not (is_plain_object(val) or isinstance(val, (list, tuple))):
            return val

        marker = id(val)
        if marker in active:
            raise TypeError(_CIRCULAR_MESSAGE)
        active.add(marker)
        try:
            if is_plain_object(val):
                return {
                    key: normalize(val[key])
                    for key in sorted(val, key=str)
                    if not _is_unsupported(val[key])
                }
            return [None if _is_unsupported(item) else normalize(item) for item in val]
        finally:
            active.discard(marker)

    if _is_unsupported(value):
        return ""

    try:
        return json.dumps(
            normalize(value),
            separators=(",", ":"),
            ensure_ascii=False,
            default=_json_default,
        )
    except ValueError as exc:
        # json's own cycle check fires for non-plain containers
        raise TypeError(_CIRCULAR_MESSAGE) from exc
