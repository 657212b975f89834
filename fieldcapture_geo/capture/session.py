"""
Capture Session Module
======================

Per-render capture state.

Design:
- Owned by exactly one render; never shared between renders of a field
- Replace semantics: committing a slot fully replaces what it held
- Composite modes hold independent point/trace/area slots
- Once disposed, the session refuses every mutation
"""

import itertools
from enum import Enum
from typing import Dict, Optional, Union

from fieldcapture_geo.contracts import LayerHandle
from fieldcapture_geo.errors import StaleSessionCallback
from fieldcapture_geo.geometry.types import (
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
    ShapeKind,
)
from fieldcapture_geo.mode import CaptureMode

SlotGeometry = Union[GeoPoint, GeoPath, GeoArea]


class CaptureState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    COMMITTED = "committed"
    DISPOSED = "disposed"


class Slot(str, Enum):
    POINT = "point"
    TRACE = "trace"
    AREA = "area"


SLOT_FOR_KIND: Dict[ShapeKind, Slot] = {
    ShapeKind.MARKER: Slot.POINT,
    ShapeKind.POLYLINE: Slot.TRACE,
    ShapeKind.POLYGON: Slot.AREA,
}

SLOT_FOR_MODE: Dict[CaptureMode, Slot] = {
    CaptureMode.CURRENT: Slot.POINT,
    CaptureMode.MANUAL: Slot.POINT,
    CaptureMode.TRACE: Slot.TRACE,
    CaptureMode.AREA: Slot.AREA,
}

_session_ids = itertools.count(1)


class CaptureSession:
    """
    Transient state of one render of a geopoint field.

    State:
        state: IDLE -> ARMED -> COMMITTED (re-entrant), DISPOSED terminal
        slots: {Slot: geometry} committed geometry per slot
        layers: {Slot: handle} overlay layer currently drawn for each slot

    Usage:
        session = CaptureSession(CaptureMode.MANUAL)
        session.arm()
        previous = session.commit(Slot.POINT, GeoPoint(10, 20), layer)
    """

    def __init__(self, mode: CaptureMode):
        self.session_id = next(_session_ids)
        self.mode = mode
        self._state = CaptureState.IDLE
        self._slots: Dict[Slot, SlotGeometry] = {}
        self._layers: Dict[Slot, LayerHandle] = {}

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_live(self) -> bool:
        return self._state is not CaptureState.DISPOSED

    def _ensure_live(self) -> None:
        if not self.is_live:
            raise StaleSessionCallback(f"Session {self.session_id} already disposed")

    def arm(self) -> None:
        self._ensure_live()
        if self._state is CaptureState.IDLE:
            self._state = CaptureState.ARMED

    def disarm(self) -> None:
        """Back to IDLE (failed sensor request); committed slots are untouched."""
        self._ensure_live()
        if self._state is CaptureState.ARMED:
            self._state = CaptureState.IDLE

    def slot_for(self, kind: ShapeKind) -> Slot:
        return SLOT_FOR_KIND[kind]

    def layer(self, slot: Slot) -> Optional[LayerHandle]:
        return self._layers.get(slot)

    def restore(self, slot: Slot, geometry: SlotGeometry, handle: LayerHandle) -> None:
        """Seed a slot from a rehydrated value; state is left unchanged."""
        self._ensure_live()
        self._slots[slot] = geometry
        self._layers[slot] = handle

    def commit(
        self,
        slot: Slot,
        geometry: SlotGeometry,
        handle: Optional[LayerHandle],
    ) -> Optional[LayerHandle]:
        """
        Replace a slot's geometry and layer.

        Returns:
            The layer handle previously drawn for the slot, if any

        Raises:
            StaleSessionCallback: If the session was disposed
        """
        self._ensure_live()
        previous = self._layers.pop(slot, None)
        self._slots[slot] = geometry
        if handle is not None:
            self._layers[slot] = handle
        self._state = CaptureState.COMMITTED
        return previous

    def clear_layers(self) -> None:
        self._layers.clear()

    def geometry(self, slot: Slot) -> Optional[SlotGeometry]:
        return self._slots.get(slot)

    def committed_value(self) -> Optional[Union[SlotGeometry, CompositeValue]]:
        """Geometry in the shape the mode stores, or None when nothing is held."""
        if self.mode.is_composite:
            value = CompositeValue(
                point=self._slots.get(Slot.POINT),
                trace=self._slots.get(Slot.TRACE),
                area=self._slots.get(Slot.AREA),
            )
            return None if value.is_empty else value
        return self._slots.get(SLOT_FOR_MODE[self.mode])

    def dispose(self) -> None:
        self._state = CaptureState.DISPOSED
        self._layers.clear()

    def __repr__(self) -> str:
        return (
            f"CaptureSession(id={self.session_id}, mode={self.mode.value}, "
            f"state={self._state.value}, slots={sorted(s.value for s in self._slots)})"
        )
