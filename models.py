"""Database models for the SQL-backed discovery stores."""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func

from extensions import db


class StoreDocument(db.Model):
    """One JSON document per (container, id); containers map to entity collections."""

    __tablename__ = "store_documents"

    container = db.Column(db.String(64), primary_key=True)
    id = db.Column(db.String(128), primary_key=True)
    payload = db.Column(db.JSON, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def to_payload(self) -> Dict[str, Any]:
        return dict(self.payload or {})

    def __repr__(self) -> str:  # pragma: no cover - helper for shell debugging
        return f"<StoreDocument container={self.container!r} id={self.id!r}>"
