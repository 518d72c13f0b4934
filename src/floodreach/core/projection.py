"""
Projection helpers.

Some source files (notably the Houston community-centers export) ship their point
coordinates in spherical Web Mercator (EPSG:3857, metres). The distance engine
only speaks lon/lat, so callers convert up front with these helpers.
"""

from __future__ import annotations

import math

# Half the Web Mercator world width in metres (pi * 6378137).
MERCATOR_HALF_EXTENT_M = 20037508.34
# Latitude at which the square Web Mercator world ends.
MERCATOR_MAX_LAT = 85.0511287798


def looks_projected(x: float, y: float) -> bool:
    """Return True when a coordinate pair cannot be lon/lat degrees."""
    return abs(float(x)) > 180 or abs(float(y)) > 90


def mercator_to_lonlat(x: float, y: float) -> tuple[float, float]:
    """Convert Web Mercator metres to (lon, lat) degrees.

    Absurd northings (far outside the projected world) raise `OverflowError`.
    """
    lon = float(x) / MERCATOR_HALF_EXTENT_M * 180
    lat = float(y) / MERCATOR_HALF_EXTENT_M * 180
    lat = 180 / math.pi * (2 * math.atan(math.exp(lat * math.pi / 180)) - math.pi / 2)
    return lon, lat


def lonlat_to_mercator(lon: float, lat: float) -> tuple[float, float]:
    """Convert (lon, lat) degrees to Web Mercator metres.

    Used to build projected fixtures; latitudes are clamped to the Mercator limit.
    """
    x = float(lon) * MERCATOR_HALF_EXTENT_M / 180
    lat = max(-MERCATOR_MAX_LAT, min(MERCATOR_MAX_LAT, float(lat)))
    y = math.log(math.tan((90 + lat) * math.pi / 360)) / (math.pi / 180)
    return x, y * MERCATOR_HALF_EXTENT_M / 180


def ensure_lonlat(x: float, y: float) -> tuple[float, float]:
    """Pass lon/lat through unchanged; convert anything that looks projected."""
    if looks_projected(x, y):
        return mercator_to_lonlat(x, y)
    return float(x), float(y)
