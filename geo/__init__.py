"""Geospatial primitives shared by the trail, spot and discovery packages."""

from .types import GeoBoundary, GeoDirection, GeoLocation, GeoRegion
from .utils import (
    EARTH_RADIUS_M,
    CoordinateComparison,
    bearing,
    bearing_to_direction,
    boundary_from_radius,
    bounding_box,
    compare_coordinates,
    destination,
    distance,
    distance_to_boundary,
    find_nearest,
    in_bounds,
)

__all__ = [
    "EARTH_RADIUS_M",
    "CoordinateComparison",
    "GeoBoundary",
    "GeoDirection",
    "GeoLocation",
    "GeoRegion",
    "bearing",
    "bearing_to_direction",
    "boundary_from_radius",
    "bounding_box",
    "compare_coordinates",
    "destination",
    "distance",
    "distance_to_boundary",
    "find_nearest",
    "in_bounds",
]
