"""Persistence adapters for discovery entities and the ``create_store`` factory."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Type, Union

from .base import Store, matches_filters, merge_patch
from .json_file import JsonFileStore
from .memory import MemoryStore
from .sql import SqlStore

STORE_TYPES = ("memory", "json", "sql")


def create_store(
    store_type: str,
    container: str,
    entity_cls: Type,
    *,
    base_dir: Optional[Union[str, Path]] = None,
) -> Store:
    kind = (store_type or "memory").strip().lower()
    if kind == "memory":
        return MemoryStore(container, entity_cls)
    if kind == "json":
        if not base_dir:
            raise ValueError("json stores need a base_dir")
        return JsonFileStore(container, entity_cls, base_dir)
    if kind == "sql":
        return SqlStore(container, entity_cls)
    raise ValueError(f"Unknown store type {store_type!r}; expected one of {', '.join(STORE_TYPES)}")


__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "STORE_TYPES",
    "SqlStore",
    "Store",
    "create_store",
    "matches_filters",
    "merge_patch",
]
