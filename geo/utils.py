"""Haversine distance, bearings and bounding-box helpers."""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, atan2, cos, degrees, inf, radians, sin, sqrt
from typing import Iterable, Optional, Sequence, Tuple

from .types import GeoBoundary, GeoDirection, GeoLocation

EARTH_RADIUS_M = 6371000
KM_PER_DEGREE_LAT = 111
COORDINATE_EPSILON = 1e-6  # ~0.1 m

CARDINAL_DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")
CARDINAL_DIRECTION_NAMES = (
    "north",
    "northeast",
    "east",
    "southeast",
    "south",
    "southwest",
    "west",
    "northwest",
)


@dataclass(frozen=True)
class CoordinateComparison:
    equal: bool
    distance: float
    direction: GeoDirection


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def distance(a: GeoLocation, b: GeoLocation) -> float:
    """Return distance in metres using haversine formula."""
    d_lat = radians(b.lat - a.lat)
    d_lon = radians(b.lon - a.lon)
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    h = sin(d_lat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(d_lon / 2) ** 2
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_M * c


def bearing(origin: GeoLocation, target: GeoLocation) -> float:
    """Initial great-circle bearing from ``origin`` to ``target`` in [0, 360)."""
    lat1 = radians(origin.lat)
    lat2 = radians(target.lat)
    d_lon = radians(target.lon - origin.lon)
    y = sin(d_lon) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(d_lon)
    return (degrees(atan2(y, x)) + 360) % 360


def bearing_to_direction(value: float) -> GeoDirection:
    normalized = value % 360
    index = int(round(normalized / 45)) % 8
    return GeoDirection(
        bearing=normalized,
        direction=index * 45,
        direction_short=CARDINAL_DIRECTIONS[index],
        direction_long=CARDINAL_DIRECTION_NAMES[index],
    )


def compare_coordinates(a: GeoLocation, b: GeoLocation) -> CoordinateComparison:
    equal = abs(a.lat - b.lat) < COORDINATE_EPSILON and abs(a.lon - b.lon) < COORDINATE_EPSILON
    return CoordinateComparison(
        equal=equal,
        distance=distance(a, b),
        direction=bearing_to_direction(bearing(a, b)),
    )


def boundary_from_radius(center: GeoLocation, radius_m: float) -> GeoBoundary:
    """Approximate the box enclosing a circle of ``radius_m`` around ``center``.

    Uses 1 degree of latitude ~ 111 km and scales longitude by cos(lat).
    Corners are clamped to valid coordinates, so boxes touching a pole or the
    antimeridian are truncated rather than wrapped.
    """
    radius_km = radius_m / 1000
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    cos_lat = cos(radians(center.lat))
    lon_delta = 180.0 if abs(cos_lat) < 1e-12 else radius_km / (KM_PER_DEGREE_LAT * cos_lat)
    return GeoBoundary(
        north_east=GeoLocation(
            lat=_clamp(center.lat + lat_delta, -90, 90),
            lon=_clamp(center.lon + lon_delta, -180, 180),
        ),
        south_west=GeoLocation(
            lat=_clamp(center.lat - lat_delta, -90, 90),
            lon=_clamp(center.lon - lon_delta, -180, 180),
        ),
    )


def in_bounds(point: GeoLocation, boundary: GeoBoundary) -> bool:
    return (
        boundary.south_west.lat <= point.lat <= boundary.north_east.lat
        and boundary.south_west.lon <= point.lon <= boundary.north_east.lon
    )


def bounding_box(locations: Iterable[GeoLocation], padding_m: float = 0) -> Optional[GeoBoundary]:
    points = list(locations)
    if not points:
        return None
    north = max(p.lat for p in points)
    south = min(p.lat for p in points)
    east = max(p.lon for p in points)
    west = min(p.lon for p in points)
    if padding_m:
        north_east = boundary_from_radius(GeoLocation(north, east), padding_m).north_east
        south_west = boundary_from_radius(GeoLocation(south, west), padding_m).south_west
        north, east = north_east.lat, north_east.lon
        south, west = south_west.lat, south_west.lon
    return GeoBoundary(north_east=GeoLocation(north, east), south_west=GeoLocation(south, west))


def find_nearest(origin: GeoLocation, points: Sequence[GeoLocation]) -> Tuple[int, float]:
    """Return ``(index, metres)`` of the closest point, ``(-1, inf)`` when empty."""
    best_index, best_distance = -1, inf
    for index, point in enumerate(points):
        measured = distance(origin, point)
        if measured < best_distance:
            best_index, best_distance = index, measured
    return best_index, best_distance


def destination(origin: GeoLocation, distance_m: float, bearing_deg: float) -> GeoLocation:
    angular = distance_m / EARTH_RADIUS_M
    heading = radians(bearing_deg)
    lat1 = radians(origin.lat)
    lon1 = radians(origin.lon)
    lat2 = asin(sin(lat1) * cos(angular) + cos(lat1) * sin(angular) * cos(heading))
    lon2 = lon1 + atan2(
        sin(heading) * sin(angular) * cos(lat1),
        cos(angular) - sin(lat1) * sin(lat2),
    )
    lon = (degrees(lon2) + 540) % 360 - 180
    return GeoLocation(lat=_clamp(degrees(lat2), -90, 90), lon=lon)


def distance_to_boundary(point: GeoLocation, boundary: GeoBoundary) -> Tuple[GeoLocation, float]:
    if in_bounds(point, boundary):
        return point, 0.0
    closest = GeoLocation(
        lat=_clamp(point.lat, boundary.south_west.lat, boundary.north_east.lat),
        lon=_clamp(point.lon, boundary.south_west.lon, boundary.north_east.lon),
    )
    return closest, distance(point, closest)

