"""Great-circle distances between path points.

Used when the routing provider reports no distance for a candidate. Haversine
is within 0.5% of geodesic distance at city scale.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from bike_route_finder.models import GeoPoint

# Earth's mean radius in meters
EARTH_RADIUS_M = 6_371_000


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Distance in meters between two points."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def path_length(path: Sequence[GeoPoint]) -> float:
    """Total length of a path in meters. Zero for fewer than two points."""
    return sum(haversine_distance(path[i - 1], path[i]) for i in range(1, len(path)))
