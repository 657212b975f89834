"""
Capture Layer
=============

Bounded Context: Interactive acquisition of geometry for one field render.

Responsibilities:
- Session state per render (session.py)
- Event dispatch and per-mode wiring (registry.py, controller.py)
- Redraw of stored values (rehydrator.py)
- Acquisition and teardown of surface, listeners, streams (lifecycle.py)
"""

from fieldcapture_geo.capture.events import (
    CaptureEvent,
    ClickEvent,
    EventKind,
    PositionErrorEvent,
    PositionFixEvent,
    ShapeCreatedEvent,
)
from fieldcapture_geo.capture.session import CaptureSession, CaptureState, Slot
from fieldcapture_geo.capture.registry import EventRegistry
from fieldcapture_geo.capture.rehydrator import Rehydrator
from fieldcapture_geo.capture.lifecycle import DeviceStreamSlot, LifecycleManager
from fieldcapture_geo.capture.controller import CaptureController

__all__ = [
    "CaptureEvent",
    "ClickEvent",
    "EventKind",
    "PositionErrorEvent",
    "PositionFixEvent",
    "ShapeCreatedEvent",
    "CaptureSession",
    "CaptureState",
    "Slot",
    "EventRegistry",
    "Rehydrator",
    "DeviceStreamSlot",
    "LifecycleManager",
    "CaptureController",
]
