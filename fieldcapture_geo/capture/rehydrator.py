"""
Rehydrator Module
=================

Turns a previously persisted value back into geometry drawn on the surface.

Design:
- Never raises on bad input: a malformed or mode-mismatched value is treated
  as absent so forms edited after data capture stay renderable
- parse() is pure; redraw() adds layers and moves the view
- Composite values are read slot by slot; a broken slot is skipped alone
"""

from typing import Any, Dict, Optional, Union

from fieldcapture_geo.contracts import Surface
from fieldcapture_geo.errors import ValueShapeMismatch
from fieldcapture_geo.geometry.types import (
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
)
from fieldcapture_geo.logging import LogEvent, StructuredLogger
from fieldcapture_geo.mode import CaptureMode
from fieldcapture_geo.capture.session import CaptureSession, Slot

Rehydrated = Union[GeoPoint, GeoPath, GeoArea, CompositeValue]

POINT_KEYS = frozenset({'lat', 'lng'})
COMPOSITE_KEYS = {
    CaptureMode.BOTH: frozenset({'trace', 'area'}),
    CaptureMode.FULL: frozenset({'lat', 'lng', 'trace', 'area'}),
}


def _parse_point(value: Any) -> GeoPoint:
    if not isinstance(value, dict) or set(value) != POINT_KEYS:
        raise ValueShapeMismatch("expected a {lat, lng} mapping")
    return GeoPoint.from_dict(value)


def _parse_embedded_point(value: Dict[str, Any]) -> GeoPoint:
    """lat/lng stored next to the trace/area slots of a full value."""
    return _parse_point({k: value.get(k) for k in POINT_KEYS})


def _parse_trace(value: Any) -> Optional[GeoPath]:
    if not isinstance(value, list):
        raise ValueShapeMismatch("expected a list of points")
    path = GeoPath.from_list(value)
    return path if len(path) else None


def _parse_area(value: Any) -> GeoArea:
    if not isinstance(value, list):
        raise ValueShapeMismatch("expected a list of rings")
    return GeoArea.from_list(value)


class Rehydrator:
    """
    Rebuilds displayed geometry for the active mode.

    Usage:
        rehydrator = Rehydrator(logger=logger, focus_zoom=15)
        geometry = rehydrator.redraw(mode, field.value, surface, session)
    """

    def __init__(self, logger: StructuredLogger, focus_zoom: int = 15):
        self.logger = logger
        self.focus_zoom = focus_zoom

    def _mismatch(self, mode: CaptureMode, reason: str) -> None:
        self.logger.info(
            event=LogEvent.VALUE_MISMATCH,
            message=f"Ignoring stored value for mode '{mode.value}': {reason}",
            metadata={'mode': mode.value},
        )

    def _parse_composite(self, mode: CaptureMode, value: Any) -> Optional[CompositeValue]:
        if not isinstance(value, dict) or not value:
            raise ValueShapeMismatch("expected a non-empty mapping of slots")
        unknown = set(value) - COMPOSITE_KEYS[mode]
        if unknown:
            raise ValueShapeMismatch(f"unexpected keys {sorted(unknown)}")

        slots: Dict[str, Any] = {}
        readers = [('trace', _parse_trace), ('area', _parse_area)]
        if mode is CaptureMode.FULL and POINT_KEYS & set(value):
            readers.insert(0, ('point', _parse_embedded_point))

        for name, reader in readers:
            raw = value if name == 'point' else value.get(name)
            if raw is None:
                continue
            try:
                slots[name] = reader(raw)
            except (ValueError, TypeError) as e:
                self._mismatch(mode, f"skipping {name} slot: {e}")

        result = CompositeValue(**slots)
        return None if result.is_empty else result

    def parse(self, mode: CaptureMode, value: Any) -> Optional[Rehydrated]:
        """
        Parse a persisted value for a mode.

        Returns:
            Geometry matching the mode, or None when the value is absent,
            malformed or shaped for another mode
        """
        if value is None:
            return None
        try:
            if mode.is_point:
                return _parse_point(value)
            if mode is CaptureMode.TRACE:
                return _parse_trace(value)
            if mode is CaptureMode.AREA:
                return _parse_area(value)
            return self._parse_composite(mode, value)
        except (ValueError, TypeError) as e:
            self._mismatch(mode, str(e))
            return None

    def redraw(
        self,
        mode: CaptureMode,
        value: Any,
        surface: Surface,
        session: Optional[CaptureSession] = None,
    ) -> Optional[Rehydrated]:
        """
        Draw a persisted value and move the view onto it.

        - point: marker, view centered at focus_zoom
        - trace: polyline, view fitted to its bounds
        - area: polygon, view fitted to its bounds
        - composite: every present slot, view fitted to the union of bounds

        Returns:
            The rehydrated geometry, or None if nothing was drawn
        """
        geometry = self.parse(mode, value)
        if geometry is None:
            return None

        drawn = []
        if isinstance(geometry, CompositeValue):
            if geometry.point is not None:
                drawn.append((Slot.POINT, geometry.point, surface.add_marker(geometry.point)))
            if geometry.trace is not None:
                drawn.append((Slot.TRACE, geometry.trace, surface.add_polyline(geometry.trace.points)))
            if geometry.area is not None:
                drawn.append((Slot.AREA, geometry.area, surface.add_polygon(geometry.area.points)))
            surface.fit_bounds(geometry.bounds())
        elif isinstance(geometry, GeoPoint):
            drawn.append((Slot.POINT, geometry, surface.add_marker(geometry)))
            surface.set_view(geometry, self.focus_zoom)
        elif isinstance(geometry, GeoPath):
            drawn.append((Slot.TRACE, geometry, surface.add_polyline(geometry.points)))
            surface.fit_bounds(geometry.bounds())
        else:
            drawn.append((Slot.AREA, geometry, surface.add_polygon(geometry.points)))
            surface.fit_bounds(geometry.bounds())

        if session is not None:
            for slot, part, handle in drawn:
                session.restore(slot, part, handle)

        self.logger.info(
            event=LogEvent.CAPTURE_REHYDRATED,
            message=f"Redrew stored {mode.value} value",
            metadata={'mode': mode.value, 'layers': len(drawn)},
        )
        return geometry
