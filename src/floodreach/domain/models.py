"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- engine inputs (`PointFeature`, `PolygonFeature`)
- engine output (`DistanceLineFeature`, `DistanceLineCollection`)

All coordinates are (lon, lat) in decimal degrees. Projected sources must be
converted (see `floodreach.core.projection`) before building these models.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

LonLat = tuple[float, float]


def _check_lonlat(value: LonLat) -> LonLat:
    lon, lat = value
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise ValueError("coordinates must be finite numbers")
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        raise ValueError(f"coordinates ({lon}, {lat}) are not lon/lat degrees; reproject first")
    return value


class PointFeature(BaseModel):
    """A point of interest (e.g., a community center)."""

    model_config = ConfigDict(frozen=True)

    coordinates: LonLat
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("coordinates")
    @classmethod
    def _validate_coordinates(cls, value: LonLat) -> LonLat:
        return _check_lonlat(value)


class PolygonFeature(BaseModel):
    """A floodplain zone: every ring of a polygon (or of every multipolygon part)."""

    model_config = ConfigDict(frozen=True)

    rings: list[list[LonLat]]
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("rings")
    @classmethod
    def _validate_rings(cls, rings: list[list[LonLat]]) -> list[list[LonLat]]:
        for ring in rings:
            for vertex in ring:
                _check_lonlat(vertex)
        return rings


class DistanceLineFeature(BaseModel):
    """A line from a point to its nearest floodplain vertex."""

    model_config = ConfigDict(frozen=True)

    start: LonLat
    end: LonLat
    distance_km: float = Field(..., ge=0)
    # Position of the source point in the engine input; points without a match leave gaps.
    point_index: int = Field(..., ge=0)

    @property
    def properties(self) -> dict[str, Any]:
        return {"distance_km": self.distance_km}

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": {"type": "LineString", "coordinates": [list(self.start), list(self.end)]},
            "properties": self.properties,
        }


class DistanceLineCollection(BaseModel):
    """Engine output, ordered like the input points."""

    model_config = ConfigDict(frozen=True)

    features: list[DistanceLineFeature] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, index: int) -> DistanceLineFeature:
        return self.features[index]

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": [f.to_geojson() for f in self.features]}
