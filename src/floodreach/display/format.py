"""
Small display formatting helpers.

Popups show distances in miles and anchor the distance label halfway along the
line. Unit conversion lives here, never in the engine, which always stores km.
"""

from __future__ import annotations

from floodreach.domain.models import DistanceLineFeature, LonLat

KM_TO_MILES = 0.621371
NO_DATA_MESSAGE = "No floodplain proximity data"


def km_to_miles(km: float, *, factor: float = KM_TO_MILES) -> float:
    return float(km) * factor


def format_distance_miles(km: float, *, decimals: int = 2, factor: float = KM_TO_MILES) -> str:
    """Render a km distance as a fixed-precision miles string (e.g. "1.24")."""
    return f"{km_to_miles(km, factor=factor):.{decimals}f}"


def line_midpoint(line: DistanceLineFeature) -> LonLat:
    """Plain average of the endpoints; used to place the distance popup."""
    return (line.start[0] + line.end[0]) / 2, (line.start[1] + line.end[1]) / 2


def describe_floodplain_proximity(
    line: DistanceLineFeature | None,
    *,
    decimals: int = 2,
    factor: float = KM_TO_MILES,
    no_data_message: str = NO_DATA_MESSAGE,
) -> str:
    if line is None:
        return no_data_message
    miles = format_distance_miles(line.distance_km, decimals=decimals, factor=factor)
    return f"{miles} mi to nearest 100-year floodplain"
