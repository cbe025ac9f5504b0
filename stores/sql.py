"""Flask-SQLAlchemy store. Requires an application context."""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from contracts import Result, error_result, success_result
from extensions import db, get_logger
from models import StoreDocument

from .base import matches_filters, merge_patch

T = TypeVar("T")


class SqlStore(Generic[T]):
    def __init__(self, container: str, entity_cls: Type[T]):
        self.container = container
        self.entity_cls = entity_cls

    def _load(self, payload: Mapping[str, Any]) -> T:
        return self.entity_cls.from_dict(payload)

    def _row(self, item_id: str) -> Optional[StoreDocument]:
        return db.session.get(StoreDocument, (self.container, item_id))

    def _fail(self, action: str, exc: Exception, **details: Any) -> Result[Any]:
        db.session.rollback()
        get_logger().warning("SQL store %s %s failed: %s", self.container, action, exc)
        return error_result("STORE_ERROR", container=self.container, original_error=str(exc), **details)

    async def create(self, item: T) -> Result[T]:
        payload = item.to_dict()
        try:
            if self._row(item.id) is not None:
                return error_result("ALREADY_EXISTS", container=self.container, id=item.id)
            db.session.add(StoreDocument(container=self.container, id=item.id, payload=payload))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return error_result("ALREADY_EXISTS", container=self.container, id=item.id)
        except SQLAlchemyError as exc:
            return self._fail("create", exc, id=item.id)
        return success_result(self._load(payload))

    async def get(self, item_id: str) -> Result[Optional[T]]:
        try:
            row = self._row(item_id)
        except SQLAlchemyError as exc:
            return self._fail("get", exc, id=item_id)
        return success_result(self._load(row.to_payload()) if row else None)

    def _query(self, filters: Optional[Mapping[str, Any]] = None):
        """String filters (and non-empty lists of strings) become JSON key predicates in SQL.

        Other filter values are left to ``matches_filters`` after loading.
        """
        query = StoreDocument.query.filter_by(container=self.container)
        for key, expected in (filters or {}).items():
            field = StoreDocument.payload[key].as_string()
            if isinstance(expected, str):
                query = query.filter(field == expected)
            elif (
                isinstance(expected, (list, tuple, set, frozenset))
                and expected
                and all(isinstance(value, str) for value in expected)
            ):
                query = query.filter(field.in_(list(expected)))
        return query

    async def list(self, filters: Optional[Mapping[str, Any]] = None) -> Result[List[T]]:
        try:
            rows: List[StoreDocument] = (
                self._query(filters).order_by(StoreDocument.created_at.asc(), StoreDocument.id.asc()).all()
            )
        except SQLAlchemyError as exc:
            return self._fail("list", exc)
        payloads = [row.to_payload() for row in rows]
        return success_result([self._load(payload) for payload in payloads if matches_filters(payload, filters)])

    async def update(self, item_id: str, patch: Mapping[str, Any]) -> Result[T]:
        try:
            row = self._row(item_id)
            if row is None:
                return error_result("NOT_FOUND", container=self.container, id=item_id)
            payload = self._load(merge_patch(row.to_payload(), patch)).to_dict()
            row.payload = payload
            db.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("update", exc, id=item_id)
        return success_result(self._load(payload))

    async def delete(self, item_id: str) -> Result[bool]:
        try:
            row = self._row(item_id)
            if row is None:
                return error_result("NOT_FOUND", container=self.container, id=item_id)
            db.session.delete(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("delete", exc, id=item_id)
        return success_result(True)

    async def upsert(self, item: T) -> Result[T]:
        """Insert or replace by primary key.

        Two writers racing on the same new id both see "missing" and insert;
        the loser's duplicate-key error is rolled back and replayed as an update.
        """
        payload = item.to_dict()
        try:
            db.session.merge(StoreDocument(container=self.container, id=item.id, payload=payload))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            get_logger().info("Duplicate insert for %s/%s, retrying as update", self.container, item.id)
            return self._replace(item.id, payload)
        except SQLAlchemyError as exc:
            return self._fail("upsert", exc, id=item.id)
        return success_result(self._load(payload))

    def _replace(self, item_id: str, payload: Dict[str, Any]) -> Result[T]:
        try:
            row = self._row(item_id)
            if row is None:
                return error_result("STORE_ERROR", container=self.container, id=item_id)
            row.payload = payload
            db.session.commit()
        except SQLAlchemyError as exc:
            return self._fail("upsert", exc, id=item_id)
        return success_result(self._load(payload))
