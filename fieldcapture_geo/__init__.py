"""
fieldcapture Geopoint
=====================

Bounded Context: Geospatial capture for form fields.

Design Philosophy:
- Separation of Concerns: values, capture state, and teardown kept apart
- The map library, the location sensor and the host form are contracts,
  never imported directly
- A stored value that no longer fits the field's mode is shown as empty,
  never as an error

Architecture:

    fieldcapture_geo/
    ├── geometry/          # Pure values (immutable, stateless)
    │   ├── types.py       # GeoPoint, GeoPath, GeoArea, CompositeValue, shapes
    │   └── serializer.py  # shape -> geometry -> persisted value
    │
    ├── capture/           # One render of a field (stateful)
    │   ├── session.py     # CaptureSession, slots, states
    │   ├── registry.py    # EventRegistry (single dispatch point)
    │   ├── controller.py  # CaptureController (per-mode wiring)
    │   ├── rehydrator.py  # stored value -> drawn geometry
    │   └── lifecycle.py   # LifecycleManager, DeviceStreamSlot
    │
    ├── mode.py            # CaptureMode, resolve_mode
    ├── config.py          # WidgetConfig (YAML)
    ├── contracts.py       # HostField, Surface, DrawTool, PositionSensor, ...
    ├── headless.py        # In-memory contract implementations
    └── widget.py          # GeopointWidget facade

Usage:

    from fieldcapture_geo import GeopointWidget, WidgetConfig
    from fieldcapture_geo.headless import HeadlessSurfaceFactory, MemoryField, RecordingNotifier

    factory = HeadlessSurfaceFactory()
    field = MemoryField()
    widget = GeopointWidget(
        field=field,
        surface_factory=factory,
        notifier=RecordingNotifier(),
        config=WidgetConfig(geo_format="manual"),
    )
    widget.render()
    factory.last.click(10.0, 20.0)
    field.value   # {'lat': 10.0, 'lng': 20.0}
    widget.unmount()
"""

# Geometry Layer (immutable, stateless)
from fieldcapture_geo.geometry.types import (
    Bounds,
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
    MarkerShape,
    PolygonShape,
    PolylineShape,
    ShapeKind,
)
from fieldcapture_geo.geometry.serializer import serialize

# Mode and configuration
from fieldcapture_geo.mode import CaptureMode, resolve_mode
from fieldcapture_geo.config import WidgetConfig

# Capture Layer (stateful)
from fieldcapture_geo.capture import (
    CaptureController,
    CaptureSession,
    CaptureState,
    LifecycleManager,
    Rehydrator,
)

# Facade
from fieldcapture_geo.widget import GeopointWidget

__all__ = [
    # Geometry
    "Bounds",
    "CompositeValue",
    "GeoArea",
    "GeoPath",
    "GeoPoint",
    "MarkerShape",
    "PolygonShape",
    "PolylineShape",
    "ShapeKind",
    "serialize",
    # Mode / config
    "CaptureMode",
    "resolve_mode",
    "WidgetConfig",
    # Capture
    "CaptureController",
    "CaptureSession",
    "CaptureState",
    "LifecycleManager",
    "Rehydrator",
    # Facade
    "GeopointWidget",
]

__version__ = "1.0.0"
