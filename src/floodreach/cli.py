"""
floodreach CLI entrypoint.

Used to precompute the floodplain distance-lines file that the dashboard loads as a
static asset, and to check a single clicked location without the web UI.
All geometry is delegated to `floodreach.engine.distance`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from floodreach.catalog.loader import (
    load_feature_collection,
    point_features_from_geojson,
    polygon_features_from_geojson,
    write_feature_collection,
)
from floodreach.config.overrides import apply_settings_overrides, parse_override_pairs
from floodreach.config.settings import Settings, get_settings
from floodreach.core.logging import configure_logging
from floodreach.core.projection import ensure_lonlat
from floodreach.display.format import describe_floodplain_proximity, km_to_miles, line_midpoint
from floodreach.domain.models import PointFeature, PolygonFeature
from floodreach.engine.distance import compute_distance_lines, nearest_floodplain

logger = logging.getLogger(__name__)


def _settings(args: argparse.Namespace) -> Settings:
    return apply_settings_overrides(get_settings(), parse_override_pairs(args.set or []))


def _load_floodplains(args: argparse.Namespace, settings: Settings) -> list[PolygonFeature]:
    zones: list[str] | None
    if args.all_zones:
        zones = None
    elif args.zone:
        zones = args.zone
    else:
        zones = settings.floodplain.hundred_year_zones
    fc = load_feature_collection(args.floodplains or settings.data.floodplain_path)
    return polygon_features_from_geojson(
        fc,
        zones=zones,
        zone_property=settings.floodplain.zone_property,
        reproject=args.reproject or settings.data.reproject,
    )


def _cmd_lines(args: argparse.Namespace) -> int:
    """Handle the `lines` subcommand."""
    settings = _settings(args)
    points = point_features_from_geojson(
        load_feature_collection(args.points or settings.data.community_centers_path),
        reproject=args.reproject or settings.data.reproject,
    )
    polygons = _load_floodplains(args, settings)

    lines = compute_distance_lines(
        points,
        polygons,
        earth_radius_km=settings.engine.earth_radius_km,
        prefilter=settings.engine.bbox_prefilter,
    )
    payload = lines.to_geojson()

    if args.out:
        path = write_feature_collection(args.out, payload)
        logger.info("Wrote %s distance lines to %s", len(lines), path)
    else:
        print(json.dumps(payload, ensure_ascii=False))

    print(
        f"points={len(points)} floodplains={len(polygons)} lines={len(lines)}",
        file=sys.stderr,
    )
    return 0


def _cmd_nearest(args: argparse.Namespace) -> int:
    """Handle the `nearest` subcommand."""
    settings = _settings(args)
    lon, lat = ensure_lonlat(args.lon, args.lat)
    point = PointFeature(coordinates=(lon, lat))
    polygons = _load_floodplains(args, settings)

    line = nearest_floodplain(
        point,
        polygons,
        earth_radius_km=settings.engine.earth_radius_km,
        prefilter=settings.engine.bbox_prefilter,
    )
    display = settings.display

    if args.json:
        out: dict[str, Any] = {"point": [lon, lat], "line": None}
        if line is not None:
            out["line"] = line.to_geojson()
            out["distance_miles"] = round(km_to_miles(line.distance_km, factor=display.km_to_miles), display.decimals)
            out["midpoint"] = list(line_midpoint(line))
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return 0

    print(
        describe_floodplain_proximity(
            line,
            decimals=display.decimals,
            factor=display.km_to_miles,
            no_data_message=display.no_data_message,
        )
    )
    if line is not None:
        mid_lon, mid_lat = line_midpoint(line)
        print(f"  nearest vertex: {line.end[0]:.6f}, {line.end[1]:.6f}")
        print(f"  label anchor:   {mid_lon:.6f}, {mid_lat:.6f}")
    return 0


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--floodplains", type=str, default=None, help="Floodplain GeoJSON (default from config).")
    p.add_argument("--zone", action="append", default=[], help="Repeatable flood zone code (e.g. AE).")
    p.add_argument("--all-zones", action="store_true", help="Do not filter floodplains by zone code.")
    p.add_argument(
        "--reproject",
        choices=["auto", "always", "never"],
        default=None,
        help="Web Mercator handling for input coordinates (default from config).",
    )
    p.add_argument("--set", action="append", default=[], help="Override a setting: dotted.key=VALUE")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the floodreach CLI."""
    parser = argparse.ArgumentParser(prog="floodreach")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped features (DEBUG).")
    sub = parser.add_subparsers(dest="command", required=True)

    lines = sub.add_parser("lines", help="Compute nearest-floodplain lines for every point feature.")
    lines.add_argument("--points", type=str, default=None, help="Point GeoJSON (default from config).")
    lines.add_argument("--out", type=str, default=None, help="Write GeoJSON here instead of stdout.")
    _add_common_args(lines)
    lines.set_defaults(func=_cmd_lines)

    near = sub.add_parser("nearest", help="Distance from one location to the nearest floodplain.")
    near.add_argument("--lon", required=True, type=float)
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    _add_common_args(near)
    near.set_defaults(func=_cmd_nearest)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m floodreach.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        configure_logging("DEBUG" if args.verbose else None)
        return int(func(args))
    except (OSError, ValueError, OverflowError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
