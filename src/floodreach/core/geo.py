from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt

"""
Geospatial helpers.

We keep a tiny geometry layer here so the distance engine can do great-circle
calculations without pulling in heavier GIS dependencies.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A longitude/latitude pair in decimal degrees."""

    lon: float
    lat: float

    @classmethod
    def from_lonlat(cls, lonlat: tuple[float, float]) -> "GeoPoint":
        return cls(lon=float(lonlat[0]), lat=float(lonlat[1]))


def haversine_km(a: GeoPoint, b: GeoPoint, *, radius_km: float = EARTH_RADIUS_KM) -> float:
    """Compute great-circle distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h a hair past 1.0 for antipodal points.
    return 2 * radius_km * asin(sqrt(min(1.0, h)))


def latitude_gap_km(lat: float, lat_min: float, lat_max: float, *, radius_km: float = EARTH_RADIUS_KM) -> float:
    """Arc length from `lat` to the band [lat_min, lat_max] along a meridian.

    Any great-circle path to a point inside the band is at least this long, so it
    is a safe lower bound for pruning.
    """
    if lat < lat_min:
        gap = lat_min - lat
    elif lat > lat_max:
        gap = lat - lat_max
    else:
        return 0.0
    return radius_km * radians(gap)
