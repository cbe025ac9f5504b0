"""Dataclass entities exchanged between stores, the domain service and callers.

Every persisted entity exposes ``to_dict``/``from_dict`` with snake_case keys
and ISO-8601 timestamps so the memory, JSON and SQL stores can round-trip it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from dateutil.parser import isoparse

from geo import GeoLocation, GeoRegion

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


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(isoparse(str(value)))


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc).isoformat()


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _optional_location(value: Any) -> Optional[GeoLocation]:
    return GeoLocation.from_dict(value) if value is not None else None


# -- trails -----------------------------------------------------------------


@dataclass
class TrailOptions:
    discovery_mode: DiscoveryMode = DiscoveryMode.FREE
    preview_mode: PreviewMode = PreviewMode.PREVIEW
    scanner_radius: Optional[float] = None
    snap_radius: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discovery_mode": self.discovery_mode.value,
            "preview_mode": self.preview_mode.value,
            "scanner_radius": self.scanner_radius,
            "snap_radius": self.snap_radius,
        }

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "TrailOptions":
        payload = payload or {}
        return cls(
            discovery_mode=DiscoveryMode(payload.get("discovery_mode") or DiscoveryMode.FREE.value),
            preview_mode=PreviewMode(payload.get("preview_mode") or PreviewMode.PREVIEW.value),
            scanner_radius=_optional_float(payload.get("scanner_radius")),
            snap_radius=_optional_float(payload.get("snap_radius")),
        )


@dataclass
class Trail:
    """A named route; ``spot_ids`` order drives ``sequence`` mode."""

    id: str
    name: str = ""
    spot_ids: List[str] = field(default_factory=list)
    options: TrailOptions = field(default_factory=TrailOptions)
    region: Optional[GeoRegion] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "spot_ids": list(self.spot_ids),
            "options": self.options.to_dict(),
            "region": self.region.to_dict() if self.region else None,
            "created_by": self.created_by,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Trail":
        region = payload.get("region")
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            spot_ids=list(payload.get("spot_ids") or []),
            options=TrailOptions.from_dict(payload.get("options")),
            region=GeoRegion.from_dict(region) if region else None,
            created_by=payload.get("created_by"),
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=parse_datetime(payload.get("updated_at")) or utcnow(),
        )


# -- spots ------------------------------------------------------------------


@dataclass
class SpotOptions:
    discovery_radius: float = 50.0
    clue_radius: Optional[float] = None
    visibility: SpotVisibility = SpotVisibility.PREVIEW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discovery_radius": self.discovery_radius,
            "clue_radius": self.clue_radius,
            "visibility": self.visibility.value,
        }

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "SpotOptions":
        payload = payload or {}
        radius = _optional_float(payload.get("discovery_radius"))
        return cls(
            discovery_radius=50.0 if radius is None else radius,
            clue_radius=_optional_float(payload.get("clue_radius")),
            visibility=SpotVisibility(payload.get("visibility") or SpotVisibility.PREVIEW.value),
        )


@dataclass
class Spot:
    """Full spot record. Only handed out after the access gate allows it."""

    id: str
    trail_id: Optional[str]
    name: str
    location: GeoLocation
    description: str = ""
    options: SpotOptions = field(default_factory=SpotOptions)
    created_by: Optional[str] = None
    image_url: Optional[str] = None
    blurred_image_url: Optional[str] = None
    rating: Optional[float] = None
    source: Optional[SpotSource] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "trail_id": self.trail_id,
            "name": self.name,
            "description": self.description,
            "location": self.location.to_dict(),
            "options": self.options.to_dict(),
            "created_by": self.created_by,
            "image_url": self.image_url,
            "blurred_image_url": self.blurred_image_url,
            "rating": self.rating,
            "source": self.source.value if self.source else None,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Spot":
        source = payload.get("source")
        return cls(
            id=payload["id"],
            trail_id=payload.get("trail_id"),
            name=payload.get("name") or "",
            description=payload.get("description") or "",
            location=GeoLocation.from_dict(payload["location"]),
            options=SpotOptions.from_dict(payload.get("options")),
            created_by=payload.get("created_by"),
            image_url=payload.get("image_url"),
            blurred_image_url=payload.get("blurred_image_url"),
            rating=_optional_float(payload.get("rating")),
            source=SpotSource(source) if source else None,
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass
class DiscoverySpot(Spot):
    """A spot as seen by an account that has discovered it."""

    discovery_id: Optional[str] = None
    discovered_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["discovery_id"] = self.discovery_id
        payload["discovered_at"] = isoformat_or_none(self.discovered_at)
        return payload

    @classmethod
    def from_spot(cls, spot: Spot, discovery: "Discovery") -> "DiscoverySpot":
        values = {f.name: getattr(spot, f.name) for f in fields(Spot)}
        values["source"] = SpotSource.DISCOVERY
        return cls(**values, discovery_id=discovery.id, discovered_at=discovery.discovered_at)


@dataclass
class SpotPreview:
    """What an account sees of a spot it may not read in full."""

    id: str
    trail_id: Optional[str] = None
    blurred_image_url: Optional[str] = None
    rating: Optional[float] = None
    source: SpotSource = SpotSource.PREVIEW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "trail_id": self.trail_id,
            "blurred_image_url": self.blurred_image_url,
            "rating": self.rating,
            "source": self.source.value,
        }


# -- discoveries ------------------------------------------------------------


@dataclass
class Discovery:
    id: str
    account_id: str
    spot_id: str
    trail_id: Optional[str]
    discovered_at: datetime = field(default_factory=utcnow)
    scan_event_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "spot_id": self.spot_id,
            "trail_id": self.trail_id,
            "discovered_at": isoformat_or_none(self.discovered_at),
            "scan_event_id": self.scan_event_id,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Discovery":
        return cls(
            id=payload["id"],
            account_id=payload["account_id"],
            spot_id=payload["spot_id"],
            trail_id=payload.get("trail_id"),
            discovered_at=parse_datetime(payload.get("discovered_at")) or utcnow(),
            scan_event_id=payload.get("scan_event_id"),
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass
class Clue:
    """Location-only hint for a spot; never carries name or description."""

    id: str
    spot_id: str
    trail_id: Optional[str]
    location: GeoLocation
    source: ClueSource = ClueSource.PREVIEW
    discovery_radius: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "spot_id": self.spot_id,
            "trail_id": self.trail_id,
            "location": self.location.to_dict(),
            "source": self.source.value,
            "discovery_radius": self.discovery_radius,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Clue":
        return cls(
            id=payload["id"],
            spot_id=payload["spot_id"],
            trail_id=payload.get("trail_id"),
            location=GeoLocation.from_dict(payload["location"]),
            source=ClueSource(payload.get("source") or ClueSource.SCAN_EVENT.value),
            discovery_radius=_optional_float(payload.get("discovery_radius")),
        )


@dataclass
class ScanEvent:
    """Output of the sensor subsystem; consumed, never produced, here."""

    id: str
    account_id: str
    trail_id: Optional[str]
    successful: bool
    clues: List[Clue] = field(default_factory=list)
    scanned_at: datetime = field(default_factory=utcnow)
    location: Optional[GeoLocation] = None
    radius_used: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScanEvent":
        return cls(
            id=payload["id"],
            account_id=payload["account_id"],
            trail_id=payload.get("trail_id"),
            successful=bool(payload.get("successful")),
            clues=[Clue.from_dict(item) for item in payload.get("clues") or []],
            scanned_at=parse_datetime(payload.get("scanned_at")) or utcnow(),
            location=_optional_location(payload.get("location")),
            radius_used=_optional_float(payload.get("radius_used")),
        )


@dataclass
class DiscoverySnap:
    distance: float
    intensity: float

    def to_dict(self) -> Dict[str, float]:
        return {"distance": self.distance, "intensity": self.intensity}


@dataclass
class LocationWithDirection:
    location: GeoLocation
    direction: Optional[float] = None  # device heading, 0 = north

    def to_dict(self) -> Dict[str, Any]:
        return {"location": self.location.to_dict(), "direction": self.direction}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LocationWithDirection":
        return cls(
            location=GeoLocation.from_dict(payload["location"]),
            direction=_optional_float(payload.get("direction")),
        )


@dataclass
class DiscoveryLocationRecord:
    location_with_direction: LocationWithDirection
    created_at: datetime
    discoveries: List[Discovery] = field(default_factory=list)
    snap: Optional[DiscoverySnap] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_with_direction": self.location_with_direction.to_dict(),
            "created_at": isoformat_or_none(self.created_at),
            "discoveries": [item.to_dict() for item in self.discoveries],
            "snap": self.snap.to_dict() if self.snap else None,
        }


@dataclass
class DiscoveryTrail:
    trail: Trail
    spots: List[DiscoverySpot] = field(default_factory=list)
    preview_clues: List[Clue] = field(default_factory=list)
    discoveries: List[Discovery] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trail": self.trail.to_dict(),
            "spots": [item.to_dict() for item in self.spots],
            "preview_clues": [item.to_dict() for item in self.preview_clues],
            "discoveries": [item.to_dict() for item in self.discoveries],
            "created_at": isoformat_or_none(self.created_at),
        }


# -- profile / state --------------------------------------------------------


@dataclass
class DiscoveryProfile:
    id: str
    account_id: str
    last_active_trail_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "last_active_trail_id": self.last_active_trail_id,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DiscoveryProfile":
        return cls(
            id=payload["id"],
            account_id=payload.get("account_id") or payload["id"],
            last_active_trail_id=payload.get("last_active_trail_id"),
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass
class DiscoveryProfileUpdate:
    last_active_trail_id: Optional[str] = None


@dataclass
class AccountContext:
    """Identity handed in by the auth layer."""

    account_id: str
    account_type: str = "user"
    role: Role = Role.USER
    client: Client = Client.APP

    @property
    def is_admin_on_creator_client(self) -> bool:
        return self.role == Role.ADMIN and self.client == Client.CREATOR


@dataclass
class DiscoveryState:
    profile: DiscoveryProfile
    discoveries: List[Discovery] = field(default_factory=list)
    spots: List[Spot] = field(default_factory=list)
    active_trail: Optional[DiscoveryTrail] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "discoveries": [item.to_dict() for item in self.discoveries],
            "spots": [item.to_dict() for item in self.spots],
            "active_trail": self.active_trail.to_dict() if self.active_trail else None,
        }


# -- statistics -------------------------------------------------------------


@dataclass
class DiscoveryStats:
    discovery_id: str
    rank: int
    total_discoverers: int
    trail_position: int
    trail_total: int
    time_since_last_discovery: Optional[float] = None  # seconds
    distance_from_last_discovery: Optional[int] = None  # metres

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class TrailStats:
    trail_id: str
    total_spots: int
    discovered_spots: int
    discoveries_count: int
    progress_percentage: int
    completion_status: CompletionStatus
    rank: int
    total_discoverers: int
    first_discovered_at: Optional[datetime] = None
    last_discovered_at: Optional[datetime] = None
    average_time_between_discoveries: Optional[float] = None  # seconds

    def to_dict(self) -> Dict[str, Any]:
        payload = {f.name: getattr(self, f.name) for f in fields(self)}
        payload["completion_status"] = self.completion_status.value
        payload["first_discovered_at"] = isoformat_or_none(self.first_discovered_at)
        payload["last_discovered_at"] = isoformat_or_none(self.last_discovered_at)
        return payload


# -- content / reactions ----------------------------------------------------


@dataclass
class DiscoveryContent:
    """Comment and photo attached by the discoverer."""

    id: str
    discovery_id: str
    account_id: str
    comment: Optional[str] = None
    image_url: Optional[str] = None
    visibility: ContentVisibility = ContentVisibility.PRIVATE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "discovery_id": self.discovery_id,
            "account_id": self.account_id,
            "comment": self.comment,
            "image_url": self.image_url,
            "visibility": self.visibility.value,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DiscoveryContent":
        return cls(
            id=payload["id"],
            discovery_id=payload["discovery_id"],
            account_id=payload["account_id"],
            comment=payload.get("comment"),
            image_url=payload.get("image_url"),
            visibility=ContentVisibility(payload.get("visibility") or ContentVisibility.PRIVATE.value),
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
            updated_at=parse_datetime(payload.get("updated_at")) or utcnow(),
        )


@dataclass
class DiscoveryReaction:
    id: str
    discovery_id: str
    account_id: str
    rating: int
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "discovery_id": self.discovery_id,
            "account_id": self.account_id,
            "rating": self.rating,
            "created_at": isoformat_or_none(self.created_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DiscoveryReaction":
        return cls(
            id=payload["id"],
            discovery_id=payload["discovery_id"],
            account_id=payload["account_id"],
            rating=int(payload["rating"]),
            created_at=parse_datetime(payload.get("created_at")) or utcnow(),
        )


@dataclass
class ReactionSummary:
    average: float
    count: int
    user_rating: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"average": self.average, "count": self.count, "user_rating": self.user_rating}


AccessibleSpot = Union[Spot, SpotPreview]
