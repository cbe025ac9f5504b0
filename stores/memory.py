"""Process-local store; each instance owns its own documents."""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from contracts import Result, error_result, success_result
from extensions import get_logger

from .base import matches_filters, merge_patch

T = TypeVar("T")


class MemoryStore(Generic[T]):
    """Documents are kept as ``to_dict`` payloads so callers never share mutable entities."""

    def __init__(self, container: str, entity_cls: Type[T]):
        self.container = container
        self.entity_cls = entity_cls
        self._documents: Dict[str, Dict[str, Any]] = {}

    def _load(self, payload: Mapping[str, Any]) -> T:
        return self.entity_cls.from_dict(payload)

    def _persist(self) -> None:
        """Hook for subclasses that mirror documents somewhere durable."""

    def _commit(self, snapshot: Dict[str, Dict[str, Any]]) -> Optional[Result[Any]]:
        try:
            self._persist()
        except OSError as exc:
            self._documents = snapshot
            get_logger().warning("Store %s failed to persist: %s", self.container, exc)
            return error_result("STORE_ERROR", container=self.container, original_error=str(exc))
        return None

    async def create(self, item: T) -> Result[T]:
        if item.id in self._documents:
            return error_result("ALREADY_EXISTS", container=self.container, id=item.id)
        snapshot = dict(self._documents)
        self._documents[item.id] = item.to_dict()
        failure = self._commit(snapshot)
        if failure:
            return failure
        return success_result(self._load(self._documents[item.id]))

    async def get(self, item_id: str) -> Result[Optional[T]]:
        payload = self._documents.get(item_id)
        return success_result(self._load(payload) if payload is not None else None)

    async def list(self, filters: Optional[Mapping[str, Any]] = None) -> Result[List[T]]:
        return success_result(
            [self._load(payload) for payload in self._documents.values() if matches_filters(payload, filters)]
        )

    async def update(self, item_id: str, patch: Mapping[str, Any]) -> Result[T]:
        existing = self._documents.get(item_id)
        if existing is None:
            return error_result("NOT_FOUND", container=self.container, id=item_id)
        snapshot = dict(self._documents)
        self._documents[item_id] = self._load(merge_patch(existing, patch)).to_dict()
        failure = self._commit(snapshot)
        if failure:
            return failure
        return success_result(self._load(self._documents[item_id]))

    async def delete(self, item_id: str) -> Result[bool]:
        if item_id not in self._documents:
            return error_result("NOT_FOUND", container=self.container, id=item_id)
        snapshot = dict(self._documents)
        del self._documents[item_id]
        failure = self._commit(snapshot)
        if failure:
            return failure
        return success_result(True)

    async def upsert(self, item: T) -> Result[T]:
        snapshot = dict(self._documents)
        self._documents[item.id] = item.to_dict()
        failure = self._commit(snapshot)
        if failure:
            return failure
        return success_result(self._load(self._documents[item.id]))

    def __len__(self) -> int:
        return len(self._documents)
