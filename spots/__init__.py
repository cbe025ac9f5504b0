"""Spot domain: read-only queries plus visibility helpers."""

from .application import SpotApplication
from .service import determine_spot_source, has_privileged_access, is_public, merge_spots, to_preview, with_source

__all__ = [
    "SpotApplication",
    "determine_spot_source",
    "has_privileged_access",
    "is_public",
    "merge_spots",
    "to_preview",
    "with_source",
]
