"""
Capture flow: per-mode wiring, replacement, rehydration and teardown.

All scenarios run on the headless backend; async scenarios are driven with
asyncio.run().

Usage:
    pytest test_capture.py
"""

import asyncio

import pytest

from fieldcapture_geo import CaptureMode, CaptureState, GeoPoint, GeopointWidget, WidgetConfig
from fieldcapture_geo.capture import ClickEvent, EventRegistry, EventKind, ShapeCreatedEvent
from fieldcapture_geo.capture.lifecycle import DeviceStreamSlot
from fieldcapture_geo.errors import EventNotAvailableError
from fieldcapture_geo.geometry import PolygonShape, ShapeKind
from fieldcapture_geo.headless import (
    DeferredPositionSensor,
    FailingPositionSensor,
    HeadlessSurfaceFactory,
    MemoryField,
    RecordingNotifier,
    StaticPositionSensor,
)
from fieldcapture_geo.logging import create_logger

TRACE_VALUE = [
    {'lat': 0.0, 'lng': 0.0},
    {'lat': 1.0, 'lng': 1.0},
    {'lat': 2.0, 'lng': 2.0},
]
AREA_VALUE = [[
    {'lat': 0.0, 'lng': 0.0},
    {'lat': 0.0, 'lng': 1.0},
    {'lat': 1.0, 'lng': 1.0},
]]


def make_widget(geo_format, value=None, read_only=False, sensor=None):
    factory = HeadlessSurfaceFactory()
    field = MemoryField(value=value, read_only=read_only)
    notifier = RecordingNotifier()
    widget = GeopointWidget(
        field=field,
        surface_factory=factory,
        notifier=notifier,
        sensor=sensor,
        config=WidgetConfig(geo_format=geo_format),
        logger=create_logger("test"),
    )
    return widget, factory, field, notifier


# ------------------------------------------------------------ empty render

@pytest.mark.parametrize("geo_format", ["manual", "trace", "area", "both", "full"])
def test_render_without_value_is_blank(geo_format):
    widget, factory, field, _ = make_widget(geo_format)
    session = widget.render()

    assert factory.last.layers == {}
    assert field.value is None
    assert field.writes == []
    assert session.state is CaptureState.ARMED


def test_current_render_is_blank_until_fix():
    async def scenario():
        sensor = DeferredPositionSensor()
        widget, factory, field, _ = make_widget("current", sensor=sensor)
        widget.render()
        await asyncio.sleep(0)

        assert sensor.requests == 1
        assert factory.last.layers == {}
        assert field.value is None

        sensor.resolve(GeoPoint(1.0, 2.0))
        await widget.controller.pending_location
        assert field.value == {'lat': 1.0, 'lng': 2.0}

    asyncio.run(scenario())


# ------------------------------------------------------------------ manual

def test_manual_each_click_replaces_the_last():
    """Click (10, 20) then (11, 21): one marker, value is the second click."""
    widget, factory, field, _ = make_widget("manual")
    widget.render()
    surface = factory.last

    surface.click(10.0, 20.0)
    assert field.value == {'lat': 10.0, 'lng': 20.0}

    surface.click(11.0, 21.0)
    assert field.value == {'lat': 11.0, 'lng': 21.0}
    assert len(surface.markers) == 1
    assert surface.markers[0].points == (GeoPoint(11.0, 21.0),)
    assert widget.session.state is CaptureState.COMMITTED


def test_manual_after_n_clicks_holds_the_nth():
    widget, factory, field, _ = make_widget("manual")
    widget.render()
    clicks = [(float(i), float(-i)) for i in range(1, 8)]
    for lat, lng in clicks:
        factory.last.click(lat, lng)

    assert len(factory.last.layers) == 1
    assert field.value == {'lat': 7.0, 'lng': -7.0}
    assert len(field.writes) == len(clicks)


def test_manual_click_replaces_rehydrated_marker():
    widget, factory, field, _ = make_widget("manual", value={'lat': 1.0, 'lng': 1.0})
    widget.render()
    assert len(factory.last.markers) == 1

    factory.last.click(2.0, 2.0)
    assert len(factory.last.markers) == 1
    assert field.value == {'lat': 2.0, 'lng': 2.0}


def test_manual_click_past_antimeridian_is_wrapped():
    widget, factory, field, _ = make_widget("manual")
    widget.render()
    factory.last.click(10.0, 200.0)
    assert field.value == {'lat': 10.0, 'lng': -160.0}


def test_manual_invalid_click_is_ignored():
    widget, factory, field, _ = make_widget("manual")
    widget.render()
    factory.last.click(95.0, 0.0)
    assert field.value is None
    assert factory.last.layers == {}


# ------------------------------------------------------------- trace / area

def test_trace_line_is_stored_in_order():
    widget, factory, field, _ = make_widget("trace")
    widget.render()
    factory.last.draw_line([(0, 0), (1, 1), (2, 2)])

    assert field.value == TRACE_VALUE
    assert len(factory.last.layers) == 1


def test_trace_second_shape_replaces_first():
    widget, factory, field, _ = make_widget("trace")
    widget.render()
    surface = factory.last

    surface.draw_line([(0, 0), (1, 1)])
    surface.draw_line([(5, 5), (6, 6), (7, 7)])

    lines = surface.layers_of(ShapeKind.POLYLINE)
    assert len(surface.layers) == 1
    assert [p.as_tuple() for p in lines[0].points] == [(5.0, 5.0), (6.0, 6.0), (7.0, 7.0)]
    assert field.value == [
        {'lat': 5.0, 'lng': 5.0},
        {'lat': 6.0, 'lng': 6.0},
        {'lat': 7.0, 'lng': 7.0},
    ]


def test_area_keeps_outer_ring_and_replaces_previous():
    widget, factory, field, _ = make_widget("area")
    widget.render()
    surface = factory.last

    surface.draw_polygon([(0, 0), (0, 1), (1, 1)])
    outer = [(0, 0), (0, 4), (4, 4), (4, 0)]
    surface.draw_polygon(outer, [(1, 1), (1, 2), (2, 2)])

    assert len(surface.layers) == 1
    assert field.value == [[{'lat': float(a), 'lng': float(b)} for a, b in outer]]


def test_trace_mode_offers_only_the_line_tool():
    widget, factory, field, _ = make_widget("trace")
    widget.render()
    tool = factory.last.draw_tools[0]
    assert tool.offers(ShapeKind.POLYLINE)
    assert not tool.offers(ShapeKind.POLYGON)
    assert not tool.offers(ShapeKind.MARKER)


def test_trace_mode_rejects_polygon_event():
    widget, factory, field, _ = make_widget("trace")
    widget.render()
    widget.controller.dispatch(ShapeCreatedEvent(shape=PolygonShape(rings=(((0, 0), (0, 1), (1, 1)),))))
    assert field.value is None
    assert factory.last.layers == {}


def test_unwired_event_kind_is_not_available():
    widget, _, _, _ = make_widget("manual")
    widget.render()
    with pytest.raises(EventNotAvailableError):
        widget.controller.dispatch(ShapeCreatedEvent(shape=PolygonShape(rings=())))


# ------------------------------------------------------------------ current

def test_current_commits_sensor_position():
    """Sensor reports (5.5, 6.6): value stored, marker placed, view centered."""
    sensor = StaticPositionSensor(GeoPoint(5.5, 6.6))
    widget, factory, field, notifier = make_widget("current", sensor=sensor)

    async def scenario():
        widget.render()
        await widget.controller.pending_location

    asyncio.run(scenario())

    assert field.value == {'lat': 5.5, 'lng': 6.6}
    assert len(factory.last.markers) == 1
    assert factory.last.view == (GeoPoint(5.5, 6.6), 15)
    assert notifier.messages == []
    assert sensor.requests == 1


def test_current_failure_shows_notice_and_commits_nothing():
    sensor = FailingPositionSensor()
    widget, factory, field, notifier = make_widget("current", sensor=sensor)

    async def scenario():
        widget.render()
        await widget.controller.pending_location

    asyncio.run(scenario())

    assert field.value is None
    assert field.writes == []
    assert notifier.messages == ["Unable to retrieve location"]
    assert widget.session.state is CaptureState.IDLE
    assert sensor.requests == 1


def test_current_sensor_crash_is_reported_as_failure():
    class BrokenSensor:
        async def request_current_position(self):
            raise RuntimeError("driver crashed")

    widget, _, field, notifier = make_widget("current", sensor=BrokenSensor())

    async def scenario():
        widget.render()
        await widget.controller.pending_location

    asyncio.run(scenario())

    assert field.writes == []
    assert notifier.messages == ["Unable to retrieve location"]
    assert widget.session.state is CaptureState.IDLE


def test_unknown_mode_without_sensor_still_renders():
    """Misconfigured mode falls back to current; no sensor means a notice, not a crash."""
    widget, factory, field, notifier = make_widget("satellite", value={'lat': 1.0, 'lng': 2.0})
    widget.render()

    assert widget.mode is CaptureMode.CURRENT
    assert len(factory.last.markers) == 1
    assert notifier.messages == ["Unable to retrieve location"]
    assert widget.session.state is CaptureState.IDLE
    assert field.writes == []
    assert widget.controller.pending_location is None


def test_current_late_result_after_unmount_is_discarded():
    sensor = DeferredPositionSensor()
    widget, factory, field, notifier = make_widget("current", sensor=sensor)

    async def scenario():
        widget.render()
        await asyncio.sleep(0)
        widget.unmount()
        sensor.resolve(GeoPoint(1.0, 1.0))
        await widget.controller.pending_location

    asyncio.run(scenario())

    assert field.writes == []
    assert factory.last.disposed
    assert widget.session.state is CaptureState.DISPOSED


def test_current_late_result_after_rerender_is_discarded():
    sensor = DeferredPositionSensor()
    widget, factory, field, _ = make_widget("current", sensor=sensor)

    async def scenario():
        widget.render()
        await asyncio.sleep(0)
        stale = widget.controller.pending_location
        widget.render(geo_format="manual")
        sensor.resolve(GeoPoint(1.0, 1.0))
        await stale

    asyncio.run(scenario())

    assert field.writes == []
    assert widget.mode is CaptureMode.MANUAL
    assert factory.last.layers == {}


def test_current_with_stored_value_still_locates():
    sensor = StaticPositionSensor(GeoPoint(3.0, 4.0))
    widget, factory, field, _ = make_widget("current", value={'lat': 1.0, 'lng': 2.0}, sensor=sensor)

    async def scenario():
        widget.render()
        assert len(factory.last.markers) == 1
        await widget.controller.pending_location

    asyncio.run(scenario())
    assert field.value == {'lat': 3.0, 'lng': 4.0}
    assert len(factory.last.markers) == 1


def test_full_mode_issues_no_position_request():
    sensor = StaticPositionSensor(GeoPoint(3.0, 4.0))
    widget, _, _, _ = make_widget("full", sensor=sensor)
    widget.render()
    assert sensor.requests == 0
    assert widget.controller.pending_location is None


# -------------------------------------------------------------- rehydration

def test_rehydrate_point_centers_on_it():
    widget, factory, field, _ = make_widget("manual", value={'lat': 10.0, 'lng': 20.0})
    widget.render()
    assert len(factory.last.markers) == 1
    assert factory.last.view == (GeoPoint(10.0, 20.0), 15)
    assert field.writes == []


def test_rehydrate_trace_fits_bounds():
    widget, factory, _, _ = make_widget("trace", value=TRACE_VALUE)
    widget.render()
    surface = factory.last
    assert len(surface.layers_of(ShapeKind.POLYLINE)) == 1
    assert surface.fitted_bounds.to_list() == [[0.0, 0.0], [2.0, 2.0]]


def test_trace_value_in_area_mode_renders_nothing():
    """A stored trace shown under area mode is treated as absent."""
    widget, factory, field, _ = make_widget("area", value=TRACE_VALUE)
    widget.render()
    assert factory.last.layers == {}
    assert field.value == TRACE_VALUE
    assert field.writes == []


def test_area_value_in_trace_mode_renders_nothing():
    widget, factory, _, _ = make_widget("trace", value=AREA_VALUE)
    widget.render()
    assert factory.last.layers == {}


@pytest.mark.parametrize("value", [
    "garbage",
    42,
    {'lat': 'north', 'lng': 0},
    {'lat': 100.0, 'lng': 0.0},
    {'lat': 1.0, 'lng': 2.0, 'trace': []},
    [{'lat': 1.0}],
])
def test_malformed_point_values_render_blank(value):
    widget, factory, _, _ = make_widget("manual", value=value)
    widget.render()
    assert factory.last.layers == {}


def test_round_trip_through_a_second_render():
    widget, factory, field, _ = make_widget("area")
    widget.render()
    ring = [(10.5, 20.25), (11.75, 20.5), (11.0, 22.125)]
    factory.last.draw_polygon(ring)

    again, again_factory, _, _ = make_widget("area", value=field.value)
    again.render()
    polygons = again_factory.last.layers_of(ShapeKind.POLYGON)
    assert len(polygons) == 1
    assert [p.as_tuple() for p in polygons[0].points] == ring


# ------------------------------------------------------------- composite

def test_both_mode_slots_are_independent():
    widget, factory, field, _ = make_widget("both")
    widget.render()
    surface = factory.last

    surface.draw_line([(0, 0), (1, 1)])
    surface.draw_polygon([(0, 0), (0, 1), (1, 1)])
    assert len(surface.layers) == 2
    assert set(field.value) == {'trace', 'area'}

    surface.draw_line([(5, 5), (6, 6)])
    assert len(surface.layers) == 2
    assert field.value['trace'] == [{'lat': 5.0, 'lng': 5.0}, {'lat': 6.0, 'lng': 6.0}]
    assert field.value['area'] == AREA_VALUE


def test_full_mode_marker_and_line():
    widget, factory, field, _ = make_widget("full")
    widget.render()
    surface = factory.last

    surface.draw_marker(1.0, 2.0)
    assert field.value == {'lat': 1.0, 'lng': 2.0}

    surface.draw_line([(0, 0), (1, 1)])
    surface.draw_marker(3.0, 4.0)
    assert field.value == {
        'lat': 3.0,
        'lng': 4.0,
        'trace': [{'lat': 0.0, 'lng': 0.0}, {'lat': 1.0, 'lng': 1.0}],
    }
    assert len(surface.markers) == 1
    assert len(surface.layers) == 2


def test_rehydrate_both_fits_union_of_slots():
    value = {'trace': [{'lat': -1.0, 'lng': 5.0}, {'lat': 0.0, 'lng': 6.0}], 'area': AREA_VALUE}
    widget, factory, _, _ = make_widget("both", value=value)
    widget.render()
    surface = factory.last
    assert len(surface.layers) == 2
    assert surface.fitted_bounds.to_list() == [[-1.0, 0.0], [1.0, 6.0]]


def test_rehydrate_composite_skips_broken_slot():
    widget, factory, _, _ = make_widget("both", value={'trace': "garbage", 'area': AREA_VALUE})
    widget.render()
    assert len(factory.last.layers) == 1
    assert len(factory.last.layers_of(ShapeKind.POLYGON)) == 1


def test_composite_edit_keeps_rehydrated_other_slot():
    widget, factory, field, _ = make_widget("both", value={'area': AREA_VALUE})
    widget.render()
    factory.last.draw_line([(0, 0), (2, 2)])
    assert field.value['area'] == AREA_VALUE
    assert len(factory.last.layers) == 2


# ------------------------------------------------------------- read-only

def test_read_only_installs_no_listeners():
    widget, factory, field, _ = make_widget("manual", value={'lat': 1.0, 'lng': 2.0}, read_only=True)
    widget.render()
    surface = factory.last

    assert surface.listener_count == 0
    assert surface.draw_tools == []
    surface.click(5.0, 5.0)
    assert field.value == {'lat': 1.0, 'lng': 2.0}
    assert len(surface.markers) == 1


def test_read_only_current_issues_no_request():
    sensor = StaticPositionSensor(GeoPoint(0.0, 0.0))
    widget, factory, _, _ = make_widget("current", value={'lat': 1.0, 'lng': 2.0}, read_only=True, sensor=sensor)
    widget.render()
    assert sensor.requests == 0
    assert widget.controller.pending_location is None
    assert len(factory.last.markers) == 1


# ---------------------------------------------------------------- lifecycle

def test_unmount_removes_listeners_and_disposes_surface():
    widget, factory, _, _ = make_widget("trace")
    widget.render()
    surface = factory.last
    assert surface.listener_count == 1

    widget.unmount()
    assert surface.listener_count == 0
    assert surface.draw_tools == []
    assert surface.disposed
    assert widget.session.state is CaptureState.DISPOSED
    assert not widget.is_rendered

    widget.unmount()


def test_rerender_with_new_mode_tears_down_previous():
    widget, factory, field, _ = make_widget("manual")
    widget.render()
    first = factory.last

    widget.render(geo_format="trace")
    second = factory.last

    assert first is not second
    assert first.disposed
    assert first.listener_count == 0
    assert widget.mode is CaptureMode.TRACE
    assert len(second.draw_tools) == 1

    second.draw_line([(0, 0), (1, 1)])
    assert field.value == [{'lat': 0.0, 'lng': 0.0}, {'lat': 1.0, 'lng': 1.0}]


def test_mode_override_is_reported_before_any_commit():
    widget, factory, field, _ = make_widget("manual")
    widget.render(geo_format="trace")

    assert widget.mode is CaptureMode.TRACE
    assert widget.session.mode is CaptureMode.TRACE
    assert widget.session.state is CaptureState.ARMED
    assert field.writes == []


def test_surface_gets_configured_height():
    factory = HeadlessSurfaceFactory()
    widget = GeopointWidget(
        field=MemoryField(),
        surface_factory=factory,
        notifier=RecordingNotifier(),
        config=WidgetConfig(geo_format="manual", container_height=420),
        logger=create_logger("test"),
    )
    widget.render()
    assert factory.last.height == 420


def test_context_manager_releases_on_error():
    widget, factory, _, _ = make_widget("manual")
    with pytest.raises(RuntimeError):
        with widget:
            widget.render()
            raise RuntimeError("host failed mid-render")
    assert factory.last.disposed


def test_device_stream_slot_keeps_one_stream_open():
    class Stream:
        def __init__(self):
            self.stopped = False

        def stop(self):
            self.stopped = True

    slot = DeviceStreamSlot()
    first, second = Stream(), Stream()
    slot.open(first)
    slot.open(second)
    assert first.stopped
    assert not second.stopped
    assert slot.stream is second

    slot.release()
    assert second.stopped
    assert not slot.is_open


# ---------------------------------------------------------------- registry

def test_registry_rejects_double_registration():
    registry = EventRegistry()
    registry.register(EventKind.CLICK, lambda e: None, "noop")
    with pytest.raises(ValueError):
        registry.register(EventKind.CLICK, lambda e: None, "again")
    assert registry.get_help() == {'click': 'noop'}


def test_registry_dispatches_by_kind():
    received = []
    registry = EventRegistry()
    registry.register(EventKind.CLICK, received.append, "collect")

    registry.dispatch(ClickEvent(latlng=(1.0, 2.0)))
    assert received == [ClickEvent(latlng=(1.0, 2.0))]

    with pytest.raises(EventNotAvailableError):
        registry.dispatch(ShapeCreatedEvent(shape=PolygonShape(rings=())))
