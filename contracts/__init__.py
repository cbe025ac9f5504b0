"""Shared entities, enums and the ``Result`` envelope."""

from .entities import (
    AccessibleSpot,
    AccountContext,
    Clue,
    Discovery,
    DiscoveryContent,
    DiscoveryLocationRecord,
    DiscoveryProfile,
    DiscoveryProfileUpdate,
    DiscoveryReaction,
    DiscoverySnap,
    DiscoverySpot,
    DiscoveryState,
    DiscoveryStats,
    DiscoveryTrail,
    LocationWithDirection,
    ReactionSummary,
    ScanEvent,
    Spot,
    SpotOptions,
    SpotPreview,
    Trail,
    TrailOptions,
    TrailStats,
    isoformat_or_none,
    parse_datetime,
    utcnow,
)
from .enums import (
    ClueSource,
    Client,
    CompletionStatus,
    ContentVisibility,
    DiscoveryMode,
    PreviewMode,
    Role,
    SpotSource,
    SpotVisibility,
)
from .errors import ERROR_CODES, DiscoveryServiceError
from .results import ErrorResult, Result, error_result, guarded, success_result

__all__ = [
    "AccessibleSpot",
    "AccountContext",
    "Client",
    "Clue",
    "ClueSource",
    "CompletionStatus",
    "ContentVisibility",
    "Discovery",
    "DiscoveryContent",
    "DiscoveryLocationRecord",
    "DiscoveryMode",
    "DiscoveryProfile",
    "DiscoveryProfileUpdate",
    "DiscoveryReaction",
    "DiscoveryServiceError",
    "DiscoverySnap",
    "DiscoverySpot",
    "DiscoveryState",
    "DiscoveryStats",
    "DiscoveryTrail",
    "ERROR_CODES",
    "ErrorResult",
    "LocationWithDirection",
    "PreviewMode",
    "ReactionSummary",
    "Result",
    "Role",
    "ScanEvent",
    "Spot",
    "SpotOptions",
    "SpotPreview",
    "SpotSource",
    "SpotVisibility",
    "Trail",
    "TrailOptions",
    "TrailStats",
    "error_result",
    "guarded",
    "isoformat_or_none",
    "parse_datetime",
    "success_result",
    "utcnow",
]
