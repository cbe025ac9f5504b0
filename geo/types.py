"""Immutable coordinate value types."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class GeoLocation:
    """A WGS84 point in degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(f"Longitude out of range: {self.lon}")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, payload: Any) -> "GeoLocation":
        if isinstance(payload, GeoLocation):
            return payload
        lon = payload.get("lon", payload.get("lng"))
        return cls(lat=float(payload["lat"]), lon=float(lon))


@dataclass(frozen=True)
class GeoBoundary:
    """Axis-aligned lat/lon box described by its north-east and south-west corners."""

    north_east: GeoLocation
    south_west: GeoLocation

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {"north_east": self.north_east.to_dict(), "south_west": self.south_west.to_dict()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GeoBoundary":
        return cls(
            north_east=GeoLocation.from_dict(payload["north_east"]),
            south_west=GeoLocation.from_dict(payload["south_west"]),
        )


@dataclass(frozen=True)
class GeoDirection:
    bearing: float
    direction: int
    direction_short: str
    direction_long: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GeoRegion:
    """Circular trail region used to frame the map."""

    center: GeoLocation
    radius_km: float

    def to_dict(self) -> Dict[str, Any]:
        return {"center": self.center.to_dict(), "radius_km": self.radius_km}

    @classmethod
    def from_dict(cls, payload: Any) -> "GeoRegion":
        if isinstance(payload, GeoRegion):
            return payload
        return cls(center=GeoLocation.from_dict(payload["center"]), radius_km=float(payload["radius_km"]))
