"""
Capture events
==============

Every input the controller reacts to is turned into one of these before it is
dispatched, so each mode's state machine has a single entry point per kind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from fieldcapture_geo.geometry.serializer import Shape
from fieldcapture_geo.geometry.types import GeoPoint, LatLng


class EventKind(str, Enum):
    CLICK = "click"
    SHAPE_CREATED = "shape_created"
    POSITION_FIX = "position_fix"
    POSITION_ERROR = "position_error"


@dataclass(frozen=True)
class ClickEvent:
    """Click on the capture surface at a raw map coordinate."""
    latlng: LatLng
    kind: EventKind = EventKind.CLICK


@dataclass(frozen=True)
class ShapeCreatedEvent:
    """Draw tool finished a shape."""
    shape: Shape
    kind: EventKind = EventKind.SHAPE_CREATED


@dataclass(frozen=True)
class PositionFixEvent:
    """Sensor reported the current position."""
    point: GeoPoint
    kind: EventKind = EventKind.POSITION_FIX


@dataclass(frozen=True)
class PositionErrorEvent:
    """Sensor request was denied or failed."""
    error: BaseException
    kind: EventKind = EventKind.POSITION_ERROR


CaptureEvent = Union[ClickEvent, ShapeCreatedEvent, PositionFixEvent, PositionErrorEvent]
