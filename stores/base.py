"""Store protocol shared by every persistence adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Type, TypeVar

from contracts import Result

T = TypeVar("T")


class StoreEntity(Protocol):
    id: str

    def to_dict(self) -> Dict[str, Any]: ...

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Any: ...


class Store(Protocol[T]):
    """CRUD over one container of entities. Every call returns a ``Result``.

    ``get`` succeeds with ``None`` for unknown ids; ``update`` and ``delete``
    report ``NOT_FOUND``; ``create`` reports ``ALREADY_EXISTS``; ``upsert``
    inserts or replaces by primary key.
    """

    container: str
    entity_cls: Type[T]

    async def create(self, item: T) -> Result[T]: ...

    async def get(self, item_id: str) -> Result[Optional[T]]: ...

    async def list(self, filters: Optional[Mapping[str, Any]] = None) -> Result[List[T]]: ...

    async def update(self, item_id: str, patch: Mapping[str, Any]) -> Result[T]: ...

    async def delete(self, item_id: str) -> Result[bool]: ...

    async def upsert(self, item: T) -> Result[T]: ...


def matches_filters(payload: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
    """Equality match on top-level keys; a list/tuple/set filter value means "any of"."""
    if not filters:
        return True
    for key, expected in filters.items():
        actual = payload.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def merge_patch(payload: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(payload)
    for key, value in patch.items():
        if key == "id":
            continue
        merged[key] = value
    return merged
