"""
Floodplain distance engine.

For every point (community center) we find the closest vertex among all rings of
all floodplain polygons, using great-circle (haversine) distance. The result is a
line per point, ready to be drawn, annotated with `distance_km`.

Notes:
- Vertex-based: distance to the polygon boundary is approximated by the distance
  to its nearest vertex.
- Scan order is polygons, then rings, then vertices, all in input order. A strictly
  smaller distance is required to replace the current best, so ties resolve to the
  first vertex seen.
- Pure: no I/O, inputs are never mutated, safe to call from several threads.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from floodreach.core.geo import EARTH_RADIUS_KM, GeoPoint, haversine_km, latitude_gap_km
from floodreach.domain.models import (
    DistanceLineCollection,
    DistanceLineFeature,
    LonLat,
    PointFeature,
    PolygonFeature,
)
from floodreach.engine.errors import InvalidInputError

logger = logging.getLogger(__name__)

# Slack on the latitude-band lower bound so float noise can never prune a true minimum.
_PRUNE_REL_TOL = 1e-9


@dataclass(frozen=True)
class _Candidate:
    rings: list[list[LonLat]]
    lat_min: float
    lat_max: float


def _as_feature_list(value: Any, name: str) -> list[Any]:
    """Accept a sequence of features or a GeoJSON FeatureCollection mapping."""
    if isinstance(value, (str, bytes)):
        raise InvalidInputError(f"{name} must be a collection of features, got {type(value).__name__}")
    if isinstance(value, Mapping):
        features = value.get("features")
        if value.get("type") != "FeatureCollection" and features is None:
            raise InvalidInputError(f"{name} mapping must be a GeoJSON FeatureCollection")
        value = features if features is not None else []
        if isinstance(value, (str, bytes, Mapping)):
            raise InvalidInputError(f"{name}.features must be a list of features")
    try:
        return list(value)
    except TypeError as exc:
        raise InvalidInputError(f"{name} must be iterable, got {type(value).__name__}") from exc


def _parse_lonlat(raw: Any) -> LonLat | None:
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        return None
    if len(raw) < 2:
        return None
    try:
        lon = float(raw[0])
        lat = float(raw[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return None
    return lon, lat


def _parse_ring(raw: Any) -> list[LonLat] | None:
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        return None
    ring: list[LonLat] = []
    for vertex in raw:
        parsed = _parse_lonlat(vertex)
        if parsed is None:
            return None
        ring.append(parsed)
    return ring


def _parse_rings(raw: Any) -> list[list[LonLat]] | None:
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        return None
    rings: list[list[LonLat]] = []
    for ring in raw:
        parsed = _parse_ring(ring)
        if parsed is None:
            return None
        rings.append(parsed)
    return rings


def point_lonlat(item: Any) -> LonLat | None:
    """Extract (lon, lat) from a point-like input, or None when malformed."""
    if isinstance(item, PointFeature):
        return item.coordinates
    if not isinstance(item, Mapping):
        return None
    if "geometry" in item:
        geometry = item["geometry"]
        if not isinstance(geometry, Mapping) or geometry.get("type") != "Point":
            return None
        return _parse_lonlat(geometry.get("coordinates"))
    return _parse_lonlat(item.get("coordinates"))


def polygon_rings(item: Any) -> list[list[LonLat]] | None:
    """Extract every ring from a polygon-like input, or None when malformed.

    MultiPolygon parts are flattened in input order.
    """
    if isinstance(item, PolygonFeature):
        return item.rings
    if not isinstance(item, Mapping):
        return None
    if "geometry" not in item:
        return _parse_rings(item.get("rings"))

    geometry = item["geometry"]
    if not isinstance(geometry, Mapping):
        return None
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "Polygon":
        return _parse_rings(coords)
    if gtype == "MultiPolygon":
        if isinstance(coords, (str, bytes, Mapping)) or not isinstance(coords, Sequence):
            return None
        rings: list[list[LonLat]] = []
        for part in coords:
            parsed = _parse_rings(part)
            if parsed is None:
                return None
            rings.extend(parsed)
        return rings
    return None


def _build_candidates(polygons: list[Any]) -> list[_Candidate]:
    out: list[_Candidate] = []
    for i, item in enumerate(polygons):
        rings = polygon_rings(item)
        if rings is None:
            logger.debug("Skipping malformed polygon at index %s", i)
            continue
        lats = [lat for ring in rings for _, lat in ring]
        if not lats:
            continue
        out.append(_Candidate(rings=rings, lat_min=min(lats), lat_max=max(lats)))
    return out


def _nearest_vertex(
    origin: GeoPoint,
    candidates: list[_Candidate],
    *,
    radius_km: float,
    prefilter: bool,
) -> tuple[float, LonLat] | None:
    best: float | None = None
    best_vertex: LonLat | None = None
    for cand in candidates:
        if prefilter and best is not None:
            gap = latitude_gap_km(origin.lat, cand.lat_min, cand.lat_max, radius_km=radius_km)
            if gap > best * (1 + _PRUNE_REL_TOL):
                continue
        for ring in cand.rings:
            for vertex in ring:
                d = haversine_km(origin, GeoPoint.from_lonlat(vertex), radius_km=radius_km)
                if best is None or d < best:
                    best = d
                    best_vertex = vertex
    if best is None or best_vertex is None:
        return None
    return best, best_vertex


def compute_distance_lines(
    points: Iterable[Any],
    polygons: Iterable[Any],
    *,
    earth_radius_km: float = EARTH_RADIUS_KM,
    prefilter: bool = True,
) -> DistanceLineCollection:
    """Compute one nearest-floodplain line per point.

    `points` / `polygons` may be sequences of domain models, sequences of GeoJSON
    feature mappings, or GeoJSON FeatureCollection mappings. Malformed features are
    skipped; a non-collection argument raises `InvalidInputError`.
    """
    point_items = _as_feature_list(points, "points")
    polygon_items = _as_feature_list(polygons, "polygons")

    candidates = _build_candidates(polygon_items)
    lines: list[DistanceLineFeature] = []
    skipped_points = 0

    for idx, item in enumerate(point_items):
        start = point_lonlat(item)
        if start is None:
            skipped_points += 1
            logger.debug("Skipping malformed point at index %s", idx)
            continue
        if not candidates:
            continue
        found = _nearest_vertex(
            GeoPoint.from_lonlat(start), candidates, radius_km=earth_radius_km, prefilter=prefilter
        )
        if found is None:
            continue
        distance_km, end = found
        lines.append(DistanceLineFeature(start=start, end=end, distance_km=distance_km, point_index=idx))

    logger.debug(
        "Distance lines: %s/%s points matched (%s malformed), %s/%s polygons usable",
        len(lines),
        len(point_items),
        skipped_points,
        len(candidates),
        len(polygon_items),
    )
    return DistanceLineCollection(features=lines)


def nearest_floodplain(
    point: Any,
    polygons: Iterable[Any],
    *,
    earth_radius_km: float = EARTH_RADIUS_KM,
    prefilter: bool = True,
) -> DistanceLineFeature | None:
    """Single-point variant; None means there is no floodplain proximity data."""
    result = compute_distance_lines([point], polygons, earth_radius_km=earth_radius_km, prefilter=prefilter)
    return result.features[0] if result.features else None
