"""
Boundary contracts
==================

Everything the capture core talks to is reached through these protocols:

- HostField: the form field holding the persisted value
- SurfaceFactory / Surface / DrawTool: the interactive map and its draw tool
- PositionSensor: one async "request current position" operation
- Notifier: user-visible transient notices
- DeviceStream: an open device stream that must be stopped when released

Implementations for tests and the CLI live in fieldcapture_geo.headless.
"""

from typing import Any, Callable, Hashable, Optional, Protocol, Sequence

from fieldcapture_geo.geometry.types import Bounds, GeoPoint, LatLng
from fieldcapture_geo.geometry.serializer import Shape
from fieldcapture_geo.mode import DrawToolOptions

ClickHandler = Callable[[LatLng], None]
ShapeCreatedHandler = Callable[[Shape], None]
LayerHandle = Hashable


class HostField(Protocol):
    """Form field contract. Setting value triggers persistence and change notification."""

    @property
    def value(self) -> Optional[Any]: ...

    @value.setter
    def value(self, value: Optional[Any]) -> None: ...

    @property
    def read_only(self) -> bool: ...


class DrawTool(Protocol):
    def on_created(self, handler: ShapeCreatedHandler) -> None: ...

    def off_created(self, handler: ShapeCreatedHandler) -> None: ...


class Surface(Protocol):
    """Interactive map/drawing canvas."""

    def on_click(self, handler: ClickHandler) -> None: ...

    def off_click(self, handler: ClickHandler) -> None: ...

    def install_draw_tool(self, options: DrawToolOptions) -> DrawTool: ...

    def remove_draw_tool(self, tool: DrawTool) -> None: ...

    def add_marker(self, point: GeoPoint) -> LayerHandle: ...

    def add_polyline(self, points: Sequence[GeoPoint]) -> LayerHandle: ...

    def add_polygon(self, points: Sequence[GeoPoint]) -> LayerHandle: ...

    def remove_layer(self, handle: LayerHandle) -> None: ...

    def clear_overlay(self) -> None: ...

    def fit_bounds(self, bounds: Bounds) -> None: ...

    def set_view(self, center: GeoPoint, zoom: int) -> None: ...

    def dispose(self) -> None: ...


class SurfaceFactory(Protocol):
    def create_surface(self, container: Any, height: int) -> Surface:
        """Create the map surface inside a container of the given pixel height."""
        ...


class PositionSensor(Protocol):
    async def request_current_position(self) -> GeoPoint:
        """Resolve with the device position; raise SensorUnavailable on denial/failure."""
        ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class DeviceStream(Protocol):
    def stop(self) -> None: ...
