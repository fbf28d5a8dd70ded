from math import asin, cos, inf, isfinite, radians, sin, sqrt
from typing import Tuple

from .values import Coordinate

# Mean Earth radius (IUGG), meters
EARTH_RADIUS_M = 6_371_008.8


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two points (haversine)."""
    # Non-finite input has no position on the sphere; treat it as infinitely far
    if not all(isfinite(v) for v in (a.lat, a.lng, b.lat, b.lng)):
        return inf
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = lat2 - lat1
    dlng = radians(b.lng) - radians(a.lng)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def within(a: Coordinate, b: Coordinate, radius_meters: float) -> Tuple[bool, float]:
    """Return ``(ok, distance)``; a point exactly on the radius is inside."""
    distance = distance_meters(a, b)
    return distance <= radius_meters, distance
