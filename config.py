"""Environment-driven settings for the discovery service."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    """Parse truthy feature-toggle values from the environment."""
    value = environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(environ: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(environ.get(name, default)))
    except (TypeError, ValueError):
        return default


def load_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    data_dir = Path(env.get("TRAIL_DATA_DIR") or DATA_DIR)
    return {
        "TRAIL_STORE_TYPE": (env.get("TRAIL_STORE_TYPE") or "sql").strip().lower(),
        "TRAIL_JSON_STORE_DIR": env.get("TRAIL_JSON_STORE_DIR") or str(data_dir / "stores"),
        "SQLALCHEMY_DATABASE_URI": env.get("DATABASE_URL") or f"sqlite:///{data_dir / 'discovery.db'}",
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "DEFAULT_DISCOVERY_TRAIL_ID": (env.get("DEFAULT_DISCOVERY_TRAIL_ID") or "").strip() or None,
        "DEFAULT_MAP_RADIUS_METERS": _env_int(env, "DEFAULT_MAP_RADIUS_METERS", 5000, minimum=1),
        "DEFAULT_SNAP_RANGE_METERS": _env_int(env, "DEFAULT_SNAP_RANGE_METERS", 1000, minimum=1),
        "CONTENT_FILTER_ENABLED": _env_flag(env, "CONTENT_FILTER_ENABLED", True),
    }
