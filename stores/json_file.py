"""Store backed by one ``<container>.json`` file per container."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Type, TypeVar, Union

from contracts import DiscoveryServiceError
from extensions import get_logger

from .memory import MemoryStore

T = TypeVar("T")


class JsonFileStore(MemoryStore[T]):
    """Keeps documents in memory and rewrites the container file after each mutation."""

    def __init__(self, container: str, entity_cls: Type[T], base_dir: Union[str, Path]):
        super().__init__(container, entity_cls)
        self.path = Path(base_dir) / f"{container}.json"
        self._documents = self._read()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            get_logger().warning("Unable to read store file %s: %s", self.path, exc)
            raise DiscoveryServiceError.from_code("STORE_ERROR", container=self.container, original_error=str(exc))
        if isinstance(raw, list):
            return {item["id"]: item for item in raw if isinstance(item, dict) and item.get("id")}
        return {str(key): value for key, value in raw.items() if isinstance(value, dict)}

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.container}-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._documents, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
