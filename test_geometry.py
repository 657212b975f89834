"""
Geometry values, serializer and mode resolution.

Usage:
    pytest test_geometry.py
"""

import numpy as np
import pytest

from fieldcapture_geo import (
    Bounds,
    CaptureMode,
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
    MarkerShape,
    PolygonShape,
    PolylineShape,
    WidgetConfig,
    resolve_mode,
    serialize,
)
from fieldcapture_geo.capture import Rehydrator
from fieldcapture_geo.errors import ConfigurationInvalid, ValueShapeMismatch
from fieldcapture_geo.geometry import geometry_from_shape, wrap_longitude
from fieldcapture_geo.logging import create_logger
from fieldcapture_geo.mode import draw_options


# ---------------------------------------------------------------- values

def test_geopoint_validation():
    """Out-of-range, non-numeric and boolean coordinates are rejected."""
    assert GeoPoint(lat=10, lng=20) == GeoPoint(lat=10.0, lng=20.0)

    for lat, lng in [(91, 0), (-90.5, 0), (0, 180.1), (0, -181), (float("nan"), 0)]:
        with pytest.raises(ValueError):
            GeoPoint(lat=lat, lng=lng)

    with pytest.raises(ValueError):
        GeoPoint(lat=True, lng=0)
    with pytest.raises(ValueError):
        GeoPoint(lat="10", lng=0)


def test_geopoint_dict_forms():
    point = GeoPoint.from_dict({'lat': 1.5, 'lng': -2.5})
    assert point.to_dict() == {'lat': 1.5, 'lng': -2.5}

    with pytest.raises(ValueError):
        GeoPoint.from_dict({'lat': 1.5})
    with pytest.raises(ValueError):
        GeoPoint.from_dict([1.5, -2.5])


def test_area_ring_rules():
    """A repeated closing vertex is dropped; fewer than 3 vertices is invalid."""
    a, b, c = GeoPoint(0, 0), GeoPoint(0, 1), GeoPoint(1, 1)
    area = GeoArea(points=(a, b, c, a))
    assert area.points == (a, b, c)

    with pytest.raises(ValueError):
        GeoArea(points=(a, b))


def test_bounds_union_and_center():
    first = Bounds.from_points([GeoPoint(0, 0), GeoPoint(2, 3)])
    assert first == Bounds(south=0.0, west=0.0, north=2.0, east=3.0)

    second = GeoPath(points=(GeoPoint(-1, 5), GeoPoint(1, 6))).bounds()
    union = first.union(second)
    assert union.to_list() == [[-1.0, 0.0], [2.0, 6.0]]
    assert union.center() == GeoPoint(0.5, 3.0)

    assert GeoPath().bounds() is None
    with pytest.raises(ValueError):
        Bounds.from_points([])


def test_composite_bounds_skip_absent_slots():
    value = CompositeValue(
        trace=GeoPath(points=(GeoPoint(0, 0), GeoPoint(1, 1))),
        area=None,
    )
    assert value.bounds() == Bounds(0.0, 0.0, 1.0, 1.0)
    assert CompositeValue().is_empty
    assert CompositeValue().bounds() is None


# ------------------------------------------------------------ serializer

def test_trace_serialization_keeps_vertex_order():
    """Drawing through (0,0), (1,1), (2,2) stores those three points in order."""
    shape = PolylineShape(vertices=((0, 0), (1, 1), (2, 2)))
    value = serialize(CaptureMode.TRACE, geometry_from_shape(shape))
    assert value == [
        {'lat': 0.0, 'lng': 0.0},
        {'lat': 1.0, 'lng': 1.0},
        {'lat': 2.0, 'lng': 2.0},
    ]


def test_trace_serialization_keeps_duplicates():
    shape = PolylineShape(vertices=((2, 2), (0, 0), (0, 0)))
    value = serialize(CaptureMode.TRACE, geometry_from_shape(shape))
    assert [p['lat'] for p in value] == [2.0, 0.0, 0.0]


def test_area_serialization_drops_inner_rings():
    outer = ((0, 0), (0, 4), (4, 4), (4, 0))
    hole = ((1, 1), (1, 2), (2, 2))
    value = serialize(CaptureMode.AREA, geometry_from_shape(PolygonShape(rings=(outer, hole))))
    assert value == [[{'lat': float(lat), 'lng': float(lng)} for lat, lng in outer]]


def test_point_serialization_and_wrapped_longitude():
    assert serialize(CaptureMode.MANUAL, geometry_from_shape(MarkerShape(position=(10, 20)))) == {
        'lat': 10.0, 'lng': 20.0
    }
    assert wrap_longitude(200.0) == -160.0
    assert wrap_longitude(-190.0) == 170.0
    assert wrap_longitude(180.0) == 180.0


def test_composite_serialization():
    trace = GeoPath(points=(GeoPoint(0, 0), GeoPoint(1, 1)))
    area = GeoArea(points=(GeoPoint(0, 0), GeoPoint(0, 1), GeoPoint(1, 1)))

    both = serialize(CaptureMode.BOTH, CompositeValue(trace=trace, area=area))
    assert set(both) == {'trace', 'area'}
    assert both['area'] == area.to_list()

    full = serialize(CaptureMode.FULL, CompositeValue(point=GeoPoint(3, 4), trace=trace))
    assert full == {'lat': 3.0, 'lng': 4.0, 'trace': trace.to_list()}


def test_serialize_rejects_wrong_geometry():
    with pytest.raises(ValueShapeMismatch):
        serialize(CaptureMode.TRACE, GeoPoint(0, 0))
    with pytest.raises(ValueShapeMismatch):
        serialize(CaptureMode.BOTH, CompositeValue(point=GeoPoint(0, 0)))


def test_round_trip_reproduces_coordinates():
    """Serialize then parse under the same mode gives back the same sequence."""
    rehydrator = Rehydrator(logger=create_logger("test"))
    vertices = ((10.123456789, 20.987654321), (-33.3, 151.2), (51.5, -0.12))

    for mode, shape in [
        (CaptureMode.TRACE, PolylineShape(vertices=vertices)),
        (CaptureMode.AREA, PolygonShape(rings=(vertices,))),
    ]:
        stored = serialize(mode, geometry_from_shape(shape))
        parsed = rehydrator.parse(mode, stored)
        got = np.array([p.as_tuple() for p in parsed.points])
        assert np.allclose(got, np.array(vertices), atol=1e-9)


# ----------------------------------------------------------------- modes

def test_resolve_mode_accepts_known_values_and_aliases():
    assert resolve_mode("trace") is CaptureMode.TRACE
    assert resolve_mode("  AREA ") is CaptureMode.AREA
    assert resolve_mode("Polygon") is CaptureMode.AREA
    assert resolve_mode("path") is CaptureMode.TRACE
    assert resolve_mode("point") is CaptureMode.MANUAL
    assert resolve_mode("gps") is CaptureMode.CURRENT
    assert resolve_mode(CaptureMode.BOTH) is CaptureMode.BOTH


def test_resolve_mode_fails_closed_to_default():
    assert resolve_mode(None) is CaptureMode.CURRENT
    assert resolve_mode("") is CaptureMode.CURRENT
    assert resolve_mode("satellite") is CaptureMode.CURRENT
    assert resolve_mode(42, default=CaptureMode.MANUAL) is CaptureMode.MANUAL


def test_draw_options_per_mode():
    assert draw_options(CaptureMode.TRACE).line_enabled
    assert not draw_options(CaptureMode.TRACE).polygon_enabled
    assert draw_options(CaptureMode.AREA).polygon_enabled
    assert not draw_options(CaptureMode.MANUAL).any_enabled
    full = draw_options(CaptureMode.FULL)
    assert full.line_enabled and full.polygon_enabled and full.marker_enabled


# ---------------------------------------------------------------- config

def test_widget_config_from_dict():
    config = WidgetConfig.from_dict({'geoFormat': 'area', 'initial_center': [-6.8, 39.28]})
    assert config.mode is CaptureMode.AREA
    assert config.initial_center == (-6.8, 39.28)
    assert config.focus_zoom == 15

    with pytest.raises(ConfigurationInvalid):
        WidgetConfig.from_dict({'zoom_level': 3})
    with pytest.raises(ConfigurationInvalid):
        WidgetConfig(focus_zoom=30)
    with pytest.raises(ValueError):
        WidgetConfig(container_height=0)


def test_widget_config_unknown_mode_still_loads():
    assert WidgetConfig(geo_format="hexagon").mode is CaptureMode.CURRENT


def test_widget_config_from_yaml(tmp_path):
    path = tmp_path / "widget.yaml"
    path.write_text(
        "geopoint:\n"
        "  geo_format: trace\n"
        "  initial_zoom: 6\n"
        "microphone:\n"
        "  sample_rate: 44100\n"
    )
    config = WidgetConfig.from_yaml(path)
    assert config.mode is CaptureMode.TRACE
    assert config.initial_zoom == 6
