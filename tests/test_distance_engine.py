import math
import random

import pytest

from floodreach.core.geo import GeoPoint, haversine_km
from floodreach.domain.models import PointFeature, PolygonFeature
from floodreach.engine import InvalidInputError, compute_distance_lines, nearest_floodplain

# Degrees of latitude spanning exactly 1 km on the 6371 km sphere.
ONE_KM_DEG = math.degrees(1 / 6371.0)

HOUSTON_DOWNTOWN = (-95.370, 29.760)
SQUARE = [(-95.0, 29.5), (-95.0, 30.0), (-95.5, 30.0), (-95.5, 29.5)]


def _square(lon: float, lat: float, half: float) -> list[tuple[float, float]]:
    return [
        (lon - half, lat - half),
        (lon + half, lat - half),
        (lon + half, lat + half),
        (lon - half, lat + half),
        (lon - half, lat - half),
    ]


def test_identical_inputs_give_identical_outputs():
    points = [PointFeature(coordinates=HOUSTON_DOWNTOWN), PointFeature(coordinates=(-95.2, 29.9))]
    polygons = [PolygonFeature(rings=[SQUARE]), PolygonFeature(rings=[_square(-95.4, 29.7, 0.05)])]

    first = compute_distance_lines(points, polygons)
    second = compute_distance_lines(points, polygons)

    assert first == second
    assert [f.point_index for f in first.features] == [0, 1]


def test_no_polygons_yields_no_lines():
    points = [PointFeature(coordinates=(0.0, 0.0)), PointFeature(coordinates=(1.0, 1.0))]
    assert len(compute_distance_lines(points, [])) == 0


def test_no_points_yields_no_lines():
    assert len(compute_distance_lines([], [PolygonFeature(rings=[SQUARE])])) == 0


def test_polygons_without_vertices_yield_no_lines():
    polygons = [PolygonFeature(rings=[]), PolygonFeature(rings=[[]])]
    assert len(compute_distance_lines([PointFeature(coordinates=(0.0, 0.0))], polygons)) == 0


def test_point_on_vertex_has_zero_distance():
    point = PointFeature(coordinates=(-95.5, 30.0))
    line = compute_distance_lines([point], [PolygonFeature(rings=[SQUARE])])[0]

    assert line.distance_km == 0
    assert line.end == line.start == (-95.5, 30.0)


def test_nearest_vertex_wins_over_farther_polygon():
    origin = (-95.37, 29.76)
    far = PolygonFeature(rings=[[(origin[0], origin[1] + 10 * ONE_KM_DEG)]])
    near = PolygonFeature(rings=[[(origin[0], origin[1] - ONE_KM_DEG)]])

    line = compute_distance_lines([PointFeature(coordinates=origin)], [far, near])[0]

    assert line.end == (origin[0], origin[1] - ONE_KM_DEG)
    assert line.distance_km == pytest.approx(1.0, rel=1e-6)


def test_hole_vertices_are_candidates():
    # Point sits inside the hole; the outer ring is ~50 km away, the hole ring ~1 km.
    outer = _square(-95.37, 29.76, 0.5)
    hole = _square(-95.37, 29.76, 0.01)
    line = compute_distance_lines(
        [PointFeature(coordinates=(-95.37, 29.76))], [PolygonFeature(rings=[outer, hole])]
    )[0]

    assert line.end in hole
    assert line.distance_km < 2.0


def test_moving_away_never_decreases_distance():
    polygon = PolygonFeature(rings=[_square(-95.37, 30.5, 0.1)])
    distances = []
    for step in range(8):
        point = PointFeature(coordinates=(-95.37, 30.2 - step * 0.1))
        distances.append(compute_distance_lines([point], [polygon])[0].distance_km)

    assert distances == sorted(distances)


def test_houston_downtown_picks_closest_corner_not_first():
    origin = GeoPoint.from_lonlat(HOUSTON_DOWNTOWN)
    expected = min(SQUARE, key=lambda v: haversine_km(origin, GeoPoint.from_lonlat(v)))

    line = compute_distance_lines(
        [PointFeature(coordinates=HOUSTON_DOWNTOWN)], [PolygonFeature(rings=[SQUARE])]
    )[0]

    assert expected == (-95.5, 30.0)
    assert line.end == expected
    assert line.start == HOUSTON_DOWNTOWN
    assert line.distance_km == pytest.approx(haversine_km(origin, GeoPoint.from_lonlat(expected)))


def test_ties_resolve_to_first_polygon_in_input_order():
    point = PointFeature(coordinates=(0.0, 0.0))
    north = PolygonFeature(rings=[[(0.0, 0.1)]])
    south = PolygonFeature(rings=[[(0.0, -0.1)]])

    assert nearest_floodplain(point, [north, south]).end == (0.0, 0.1)
    assert nearest_floodplain(point, [south, north]).end == (0.0, -0.1)


def test_degenerate_rings_are_scanned():
    polygons = [PolygonFeature(rings=[[(1.0, 1.0), (1.0, 2.0)]]), PolygonFeature(rings=[[(0.5, 0.5)]])]
    line = compute_distance_lines([PointFeature(coordinates=(0.0, 0.0))], polygons)[0]
    assert line.end == (0.5, 0.5)


def test_geojson_feature_collections_match_model_inputs():
    points_fc = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": list(HOUSTON_DOWNTOWN)}, "properties": {}},
        ],
    }
    polygons_fc = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [[[list(v) for v in _square(-94.0, 29.0, 0.1)]], [[list(v) for v in SQUARE]]],
                },
                "properties": {"FLD_ZONE": "AE"},
            }
        ],
    }

    from_geojson = compute_distance_lines(points_fc, polygons_fc)
    from_models = compute_distance_lines(
        [PointFeature(coordinates=HOUSTON_DOWNTOWN)],
        [PolygonFeature(rings=[_square(-94.0, 29.0, 0.1), SQUARE])],
    )

    assert from_geojson == from_models
    assert from_geojson.to_geojson()["features"][0]["geometry"]["coordinates"] == [
        list(HOUSTON_DOWNTOWN),
        [-95.5, 30.0],
    ]


def test_malformed_features_are_skipped():
    points = [
        {"coordinates": None},
        PointFeature(coordinates=(0.0, 0.0)),
        {"geometry": {"type": "Point", "coordinates": ["x", 1]}},
        {"geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}},
        "not a feature",
    ]
    polygons = [
        {"rings": [[[0.0, 0.01], [1.0]]]},
        {"geometry": {"type": "Polygon", "coordinates": 7}},
        {"rings": [[[0.0, 1.0], [0.0, 2.0]]]},
    ]

    lines = compute_distance_lines(points, polygons)

    assert len(lines) == 1
    assert lines[0].point_index == 1
    assert lines[0].end == (0.0, 1.0)


@pytest.mark.parametrize(
    "points, polygons",
    [
        (5, []),
        ([], None),
        ("abc", []),
        ([], {"type": "Feature", "geometry": None}),
    ],
)
def test_non_collection_inputs_raise(points, polygons):
    with pytest.raises(InvalidInputError):
        compute_distance_lines(points, polygons)


def test_invalid_input_error_is_a_type_error():
    with pytest.raises(TypeError):
        compute_distance_lines(object(), [])


def test_prefilter_does_not_change_output():
    rng = random.Random(42)
    points = [
        PointFeature(coordinates=(rng.uniform(-95.8, -95.0), rng.uniform(29.5, 30.1))) for _ in range(25)
    ]
    polygons = [
        PolygonFeature(rings=[_square(rng.uniform(-95.8, -95.0), rng.uniform(29.5, 30.1), 0.02)]) for _ in range(40)
    ]

    assert compute_distance_lines(points, polygons, prefilter=True) == compute_distance_lines(
        points, polygons, prefilter=False
    )


def test_inputs_are_not_mutated():
    points = [{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0.0, 0.0]}, "properties": {"a": 1}}]
    polygons = [{"rings": [[[0.0, 1.0], [1.0, 1.0]]]}]
    snapshot = (repr(points), repr(polygons))

    compute_distance_lines(points, polygons)

    assert (repr(points), repr(polygons)) == snapshot


def test_nearest_floodplain_returns_none_without_polygons():
    assert nearest_floodplain(PointFeature(coordinates=(0.0, 0.0)), []) is None


def test_one_shot_iterables_are_accepted():
    points = (PointFeature(coordinates=c) for c in [HOUSTON_DOWNTOWN, (-95.2, 29.9)])
    polygons = iter([PolygonFeature(rings=[SQUARE])])

    lines = compute_distance_lines(points, polygons)

    assert [f.point_index for f in lines.features] == [0, 1]
    assert lines[0].end == (-95.5, 30.0)
