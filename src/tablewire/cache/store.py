"""Capability interface for pluggable cache stores.

A cache store is anything with ``get`` and ``set``. Three more members are
optional, and a store that lacks one simply does not offer that feature:

* ``delete(key)`` -- single-key removal.
* ``delete_by_prefix(prefix)`` -- bulk removal used for mutation
  invalidation. Without it, cached reads stay until their TTL runs out.
* ``transform_attachment(attachment, context)`` -- post-processing hook
  applied to every attachment found in records about to be cached.

Every member may be a plain method or a coroutine function; the records
cache awaits whatever is awaitable. The protocols below describe the shape
for type checkers only: nothing inherits from them.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Literal, Optional, Protocol, Union, runtime_checkable

MaybeAwaitable = Union[Any, Awaitable[Any]]


@runtime_checkable
class CacheStore(Protocol):
    """Minimal store: both members are required."""

    def get(self, key: str) -> MaybeAwaitable:
        """Return the cached value, or ``None`` on a miss or expired entry."""
        ...

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> MaybeAwaitable:
        """Store *value*; ``ttl_ms=None`` means no expiry."""
        ...


class SupportsDelete(Protocol):
    def delete(self, key: str) -> MaybeAwaitable: ...


class SupportsDeleteByPrefix(Protocol):
    def delete_by_prefix(self, prefix: str) -> MaybeAwaitable: ...


class SupportsTransformAttachment(Protocol):
    def transform_attachment(self, attachment: dict[str, Any], context: AttachmentContext) -> MaybeAwaitable: ...


@dataclass(frozen=True)
class CacheErrorContext:
    """Describes a failed cache operation for ``on_error`` observers.

    Attributes:
        op: ``"get"``, ``"set"`` or ``"delete"`` (prefix delete).
        key: Full cache key for ``get``/``set``, when one was computed.
        prefix: Prefix for ``delete``.
    """

    op: Literal["get", "set", "delete"]
    key: Optional[str] = None
    prefix: Optional[str] = None


@dataclass(frozen=True)
class AttachmentContext:
    """Where an attachment passed to ``transform_attachment`` was found."""

    base_id: str
    table: str
    record_id: Optional[str]
    field: str


def looks_like_attachment(value: Any) -> bool:
    """Return True for mappings with string ``id`` and ``url`` members."""
    return (
        isinstance(value, dict)
        and isinstance(value.get("id"), str)
        and isinstance(value.get("url"), str)
    )


async def resolve(result: MaybeAwaitable) -> Any:
    """Await *result* if a store method returned an awaitable, else return it."""
    if inspect.isawaitable(result):
        return await result
    return result
