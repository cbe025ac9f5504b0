"""Spot visibility helpers: who may read a spot in full and what everyone else sees."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from contracts import AccountContext, Spot, SpotPreview, SpotSource, SpotVisibility


def is_creator(context: AccountContext, spot: Spot) -> bool:
    return bool(spot.created_by) and context.account_id == spot.created_by


def has_privileged_access(context: AccountContext, spot: Spot) -> bool:
    """Creator first, then admin on the creator client. Admin on the app gets nothing here."""
    return is_creator(context, spot) or context.is_admin_on_creator_client


def determine_spot_source(context: AccountContext, spot: Spot, discovered_spot_ids: Iterable[str]) -> SpotSource:
    if has_privileged_access(context, spot):
        return SpotSource.CREATED
    if spot.id in set(discovered_spot_ids):
        return SpotSource.DISCOVERY
    return SpotSource.PREVIEW


def with_source(spot: Spot, source: SpotSource) -> Spot:
    return replace(spot, source=source)


def to_preview(spot: Spot, rating: Optional[float] = None) -> SpotPreview:
    return SpotPreview(
        id=spot.id,
        trail_id=spot.trail_id,
        blurred_image_url=spot.blurred_image_url,
        rating=spot.rating if rating is None else rating,
    )


def is_public(spot: Spot) -> bool:
    return spot.options.visibility == SpotVisibility.PUBLIC


def merge_spots(*groups: Iterable[Spot]) -> List[Spot]:
    """Concatenate ``groups`` keeping the first record seen for each spot id."""
    merged: Dict[str, Spot] = {}
    for group in groups:
        for spot in group:
            merged.setdefault(spot.id, spot)
    return list(merged.values())
