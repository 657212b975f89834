"""
Headless Backend
================

In-memory implementations of every boundary contract.

Used by the replay CLI and by the test suite. The surface records overlay
layers, view changes and listeners instead of drawing anything, and exposes
click()/draw() to emit events the way a real map would.
"""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fieldcapture_geo.contracts import ClickHandler, ShapeCreatedHandler
from fieldcapture_geo.errors import SensorUnavailable
from fieldcapture_geo.geometry.serializer import Shape
from fieldcapture_geo.geometry.types import (
    Bounds,
    GeoPoint,
    LatLng,
    MarkerShape,
    PolygonShape,
    PolylineShape,
    ShapeKind,
)
from fieldcapture_geo.mode import DrawToolOptions


@dataclass(frozen=True)
class OverlayLayer:
    """One layer drawn on a headless surface."""
    handle: int
    kind: ShapeKind
    points: Tuple[GeoPoint, ...]


class HeadlessDrawTool:
    """Draw tool offering only the shapes its options enable."""

    def __init__(self, options: DrawToolOptions):
        self.options = options
        self._handlers: List[ShapeCreatedHandler] = []

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def offers(self, kind: ShapeKind) -> bool:
        return {
            ShapeKind.MARKER: self.options.marker_enabled,
            ShapeKind.POLYLINE: self.options.line_enabled,
            ShapeKind.POLYGON: self.options.polygon_enabled,
        }[kind]

    def on_created(self, handler: ShapeCreatedHandler) -> None:
        self._handlers.append(handler)

    def off_created(self, handler: ShapeCreatedHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, shape: Shape) -> None:
        """
        Finish drawing a shape.

        Raises:
            ValueError: If the toolbar does not offer this kind of shape
        """
        if not self.offers(shape.kind):
            raise ValueError(f"Draw tool does not offer {shape.kind.value} shapes")
        for handler in list(self._handlers):
            handler(shape)


class HeadlessSurface:
    """
    Map surface kept entirely in memory.

    Attributes:
        height: container height in pixels
        layers: {handle: OverlayLayer} currently on the overlay
        view: (center, zoom) after the last set_view/fit_bounds
        fitted_bounds: bounds passed to the last fit_bounds
        disposed: True once dispose() ran
    """

    _handles = itertools.count(1)

    def __init__(self, container: Any = None, height: int = 300):
        self.container = container
        self.height = height
        self.layers: Dict[int, OverlayLayer] = {}
        self.view: Optional[Tuple[GeoPoint, int]] = None
        self.fitted_bounds: Optional[Bounds] = None
        self.draw_tools: List[HeadlessDrawTool] = []
        self.disposed = False
        self._click_handlers: List[ClickHandler] = []

    def _check_live(self) -> None:
        if self.disposed:
            raise RuntimeError("Surface already disposed")

    # Listeners

    def on_click(self, handler: ClickHandler) -> None:
        self._check_live()
        self._click_handlers.append(handler)

    def off_click(self, handler: ClickHandler) -> None:
        if handler in self._click_handlers:
            self._click_handlers.remove(handler)

    def install_draw_tool(self, options: DrawToolOptions) -> HeadlessDrawTool:
        self._check_live()
        tool = HeadlessDrawTool(options)
        self.draw_tools.append(tool)
        return tool

    def remove_draw_tool(self, tool: HeadlessDrawTool) -> None:
        if tool in self.draw_tools:
            self.draw_tools.remove(tool)

    @property
    def listener_count(self) -> int:
        return len(self._click_handlers) + sum(t.handler_count for t in self.draw_tools)

    # Overlay

    def _add(self, kind: ShapeKind, points: Sequence[GeoPoint]) -> int:
        self._check_live()
        handle = next(self._handles)
        self.layers[handle] = OverlayLayer(handle=handle, kind=kind, points=tuple(points))
        return handle

    def add_marker(self, point: GeoPoint) -> int:
        return self._add(ShapeKind.MARKER, [point])

    def add_polyline(self, points: Sequence[GeoPoint]) -> int:
        return self._add(ShapeKind.POLYLINE, points)

    def add_polygon(self, points: Sequence[GeoPoint]) -> int:
        return self._add(ShapeKind.POLYGON, points)

    def remove_layer(self, handle: int) -> None:
        self.layers.pop(handle, None)

    def clear_overlay(self) -> None:
        self.layers.clear()

    def layers_of(self, kind: ShapeKind) -> List[OverlayLayer]:
        return [layer for layer in self.layers.values() if layer.kind is kind]

    @property
    def markers(self) -> List[OverlayLayer]:
        return self.layers_of(ShapeKind.MARKER)

    # View

    def fit_bounds(self, bounds: Bounds) -> None:
        self._check_live()
        self.fitted_bounds = bounds
        zoom = self.view[1] if self.view else 0
        self.view = (bounds.center(), zoom)

    def set_view(self, center: GeoPoint, zoom: int) -> None:
        self._check_live()
        self.view = (center, zoom)

    def dispose(self) -> None:
        self.disposed = True
        self._click_handlers.clear()
        self.layers.clear()

    # Simulated user input

    def click(self, lat: float, lng: float) -> None:
        self._check_live()
        for handler in list(self._click_handlers):
            handler((lat, lng))

    def draw(self, shape: Shape) -> None:
        self._check_live()
        if not self.draw_tools:
            raise ValueError("No draw tool installed")
        for tool in list(self.draw_tools):
            tool.emit(shape)

    def draw_line(self, vertices: Sequence[LatLng]) -> None:
        self.draw(PolylineShape(vertices=tuple(vertices)))

    def draw_polygon(self, *rings: Sequence[LatLng]) -> None:
        self.draw(PolygonShape(rings=tuple(tuple(r) for r in rings)))

    def draw_marker(self, lat: float, lng: float) -> None:
        self.draw(MarkerShape(position=(lat, lng)))


class HeadlessSurfaceFactory:
    """Creates headless surfaces and keeps every one it created."""

    def __init__(self):
        self.surfaces: List[HeadlessSurface] = []

    @property
    def last(self) -> Optional[HeadlessSurface]:
        return self.surfaces[-1] if self.surfaces else None

    def create_surface(self, container: Any, height: int = 300) -> HeadlessSurface:
        surface = HeadlessSurface(container, height=height)
        self.surfaces.append(surface)
        return surface


class StaticPositionSensor:
    """Always reports the same position."""

    def __init__(self, point: GeoPoint):
        self.point = point
        self.requests = 0

    async def request_current_position(self) -> GeoPoint:
        self.requests += 1
        return self.point


class FailingPositionSensor:
    """Always fails, like a denied permission prompt."""

    def __init__(self, reason: str = "User denied Geolocation"):
        self.reason = reason
        self.requests = 0

    async def request_current_position(self) -> GeoPoint:
        self.requests += 1
        raise SensorUnavailable(self.reason)


class DeferredPositionSensor:
    """Answers only when resolve() or fail() is called."""

    def __init__(self):
        self.requests = 0
        self._future: Optional[asyncio.Future] = None

    async def request_current_position(self) -> GeoPoint:
        self.requests += 1
        self._future = asyncio.get_running_loop().create_future()
        return await self._future

    def resolve(self, point: GeoPoint) -> None:
        if self._future is None:
            raise RuntimeError("No pending position request")
        self._future.set_result(point)

    def fail(self, reason: str = "Position unavailable") -> None:
        if self._future is None:
            raise RuntimeError("No pending position request")
        self._future.set_exception(SensorUnavailable(reason))


class RecordingNotifier:
    """Collects user-visible notices."""

    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class MemoryField:
    """
    Host field kept in memory.

    Every assignment is appended to ``writes`` (the change notifications a
    host would emit).
    """

    def __init__(self, value: Any = None, read_only: bool = False):
        self._value = value
        self.read_only = read_only
        self.writes: List[Any] = []

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self._value = value
        self.writes.append(value)
