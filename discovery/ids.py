"""Deterministic ids: the same inputs always hash to the same id."""

from __future__ import annotations

import hashlib
from typing import Optional

ID_SEPARATOR = ":::"
ID_LENGTH = 32


def create_deterministic_id(*parts: Optional[str]) -> str:
    """Hash the non-empty ``parts`` independent of their order."""
    values = sorted(str(part) for part in parts if part)
    if not values:
        raise ValueError("At least one non-empty id part is required")
    digest = hashlib.sha256(ID_SEPARATOR.join(values).encode("utf-8")).hexdigest()
    return digest[:ID_LENGTH]


def create_discovery_id(account_id: str, spot_id: str, trail_id: Optional[str] = None) -> str:
    return create_deterministic_id(account_id, spot_id, trail_id)


def create_content_id(discovery_id: str) -> str:
    return create_deterministic_id("discovery-content", discovery_id)


def create_reaction_id(discovery_id: str, account_id: str) -> str:
    return create_deterministic_id("discovery-reaction", discovery_id, account_id)
