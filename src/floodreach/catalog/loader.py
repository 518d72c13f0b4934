"""
GeoJSON loaders for the distance engine.

Inputs are static GeoJSON files (community centers, FEMA floodplain polygons). We
convert them into typed Pydantic models so the engine always sees lon/lat data:
- projected (Web Mercator) coordinates are converted here, explicitly, before the
  engine runs
- floodplain polygons can be narrowed to the 100-year zone codes
- features that cannot be used are skipped and counted, not raised
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Literal

from floodreach.core.env import resolve_project_path
from floodreach.core.projection import ensure_lonlat, mercator_to_lonlat
from floodreach.domain.models import LonLat, PointFeature, PolygonFeature
from floodreach.engine.distance import point_lonlat, polygon_rings

logger = logging.getLogger(__name__)

ReprojectMode = Literal["auto", "always", "never"]


def _reproject(lonlat: LonLat, mode: ReprojectMode) -> LonLat:
    if mode == "always":
        return mercator_to_lonlat(*lonlat)
    if mode == "auto":
        return ensure_lonlat(*lonlat)
    return lonlat


def _features(fc: dict[str, Any]) -> list[Any]:
    if not isinstance(fc, dict) or fc.get("type") != "FeatureCollection":
        raise ValueError("Expected a GeoJSON FeatureCollection.")
    features = fc.get("features") or []
    if not isinstance(features, list):
        raise ValueError("FeatureCollection.features must be a list.")
    return features


def _props(feature: Any) -> dict[str, Any]:
    props = feature.get("properties") if isinstance(feature, dict) else None
    return dict(props) if isinstance(props, dict) else {}


def load_feature_collection(path: str | Path) -> dict[str, Any]:
    """Read a GeoJSON FeatureCollection file (relative paths use the project root)."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    _features(payload)
    return payload


def write_feature_collection(path: str | Path, payload: dict[str, Any]) -> Path:
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    resolved.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return resolved


def point_features_from_geojson(fc: dict[str, Any], *, reproject: ReprojectMode = "auto") -> list[PointFeature]:
    """Convert Point features to `PointFeature`, reprojecting as requested."""
    out: list[PointFeature] = []
    skipped = 0
    for feature in _features(fc):
        lonlat = point_lonlat(feature)
        if lonlat is None:
            skipped += 1
            continue
        try:
            out.append(PointFeature(coordinates=_reproject(lonlat, reproject), properties=_props(feature)))
        except (ValueError, OverflowError):
            # pydantic.ValidationError is a ValueError; overflow comes from absurd Mercator northings.
            skipped += 1
    if skipped:
        logger.warning("Skipped %s point features without usable coordinates.", skipped)
    return out


def filter_floodplain_zones(
    polygons: Iterable[PolygonFeature], zones: Iterable[str], *, zone_property: str = "FLD_ZONE"
) -> list[PolygonFeature]:
    """Keep polygons whose zone code is in `zones` (case-insensitive)."""
    wanted = {str(z).strip().upper() for z in zones}
    out: list[PolygonFeature] = []
    for poly in polygons:
        code = poly.properties.get(zone_property)
        if code is not None and str(code).strip().upper() in wanted:
            out.append(poly)
    return out


def polygon_features_from_geojson(
    fc: dict[str, Any],
    *,
    zones: Iterable[str] | None = None,
    zone_property: str = "FLD_ZONE",
    reproject: ReprojectMode = "auto",
) -> list[PolygonFeature]:
    """Convert Polygon/MultiPolygon features to `PolygonFeature`, optionally zone-filtered."""
    out: list[PolygonFeature] = []
    skipped = 0
    for feature in _features(fc):
        rings = polygon_rings(feature)
        if rings is None:
            skipped += 1
            continue
        try:
            rings = [[_reproject(v, reproject) for v in ring] for ring in rings]
            out.append(PolygonFeature(rings=rings, properties=_props(feature)))
        except (ValueError, OverflowError):
            skipped += 1
    if skipped:
        logger.warning("Skipped %s polygon features with malformed geometry.", skipped)
    if zones is not None:
        out = filter_floodplain_zones(out, zones, zone_property=zone_property)
    return out
