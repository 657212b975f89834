"""
Capture Controller Module
=========================

Per-mode event wiring for one render of a geopoint field.

Design:
- One explicit state machine per render: IDLE -> ARMED -> COMMITTED
- Inputs (click, shape created, position fix/error) become typed events and
  go through a single dispatch point (EventRegistry)
- Only the handlers the active mode needs are registered
- Every commit is serialized and written to the host field immediately

Modes:
    current      one async position request per render; marker + centered view
    manual       each click replaces the single marker and the value
    trace/area   draw tool limited to line/polygon; each shape replaces the last
    both/full    line + polygon (+ marker) slots replaced independently

Concurrency:
    Runs on the host event loop. The position request is the only suspension
    point; its result is dropped if the session was torn down meanwhile.
"""

import asyncio
from typing import Any, Callable, Optional

from fieldcapture_geo.config import WidgetConfig
from fieldcapture_geo.contracts import (
    HostField,
    LayerHandle,
    Notifier,
    PositionSensor,
    Surface,
)
from fieldcapture_geo.errors import SensorUnavailable
from fieldcapture_geo.geometry.serializer import (
    Shape,
    geometry_from_shape,
    point_from_latlng,
    serialize,
)
from fieldcapture_geo.geometry.types import GeoArea, GeoPath, GeoPoint, LatLng, ShapeKind
from fieldcapture_geo.logging import LogEvent, StructuredLogger
from fieldcapture_geo.mode import CaptureMode, draw_options
from fieldcapture_geo.capture.events import (
    CaptureEvent,
    ClickEvent,
    EventKind,
    PositionErrorEvent,
    PositionFixEvent,
    ShapeCreatedEvent,
)
from fieldcapture_geo.capture.lifecycle import LifecycleManager
from fieldcapture_geo.capture.registry import EventRegistry
from fieldcapture_geo.capture.rehydrator import Rehydrator
from fieldcapture_geo.capture.session import CaptureSession, Slot, SlotGeometry

# Shape kinds each drawing mode accepts
ACCEPTED_KINDS = {
    CaptureMode.TRACE: {ShapeKind.POLYLINE},
    CaptureMode.AREA: {ShapeKind.POLYGON},
    CaptureMode.BOTH: {ShapeKind.POLYLINE, ShapeKind.POLYGON},
    CaptureMode.FULL: {ShapeKind.MARKER, ShapeKind.POLYLINE, ShapeKind.POLYGON},
}


class CaptureController:
    """
    Drives capture for one field across renders.

    Usage:
        controller = CaptureController(field, lifecycle, sensor, notifier, config, logger)
        session = controller.start(container)   # render
        ...
        controller.stop()                       # unmount
    """

    def __init__(
        self,
        field: HostField,
        lifecycle: LifecycleManager,
        sensor: Optional[PositionSensor],
        notifier: Notifier,
        config: WidgetConfig,
        logger: StructuredLogger,
    ):
        self.field = field
        self.lifecycle = lifecycle
        self.sensor = sensor
        self.notifier = notifier
        self.config = config
        self.logger = logger
        self.rehydrator = Rehydrator(logger=logger, focus_zoom=config.focus_zoom)
        self.registry = EventRegistry()
        self.pending_location: Optional[asyncio.Task] = None
        self._session: Optional[CaptureSession] = None

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def surface(self) -> Surface:
        return self.lifecycle.surface

    @property
    def mode(self) -> Optional[CaptureMode]:
        return self._session.mode if self._session is not None else None

    def _meta(self, **extra: Any) -> dict:
        meta = {
            'mode': self._session.mode.value if self._session is not None else None,
            'session_id': self._session.session_id if self._session is not None else None,
        }
        meta.update(extra)
        return meta

    # ------------------------------------------------------------------ render

    def start(self, container: Any, mode: Optional[CaptureMode] = None) -> CaptureSession:
        """
        Render: acquire the surface, wire the mode, redraw any stored value.

        In ``current`` mode the position request is scheduled on the running
        asyncio loop, so the call must come from inside that loop. Without a
        sensor the failure notice is shown right away.

        Args:
            container: Host element the surface is created in
            mode: Override of the configured mode

        Returns:
            The new session owned by this render
        """
        mode = mode or self.config.mode
        self.registry.clear()
        self.pending_location = None
        session = self.lifecycle.acquire(container, mode)
        self._session = session

        lat, lng = self.config.initial_center
        self.surface.set_view(GeoPoint(lat=lat, lng=lng), self.config.initial_zoom)

        stored = self.field.value
        locate = False
        if not self.field.read_only:
            locate = self._wire(mode)

        self.rehydrator.redraw(mode, stored, self.surface, session)

        if locate and (stored is None or self.config.locate_when_answered):
            if self.sensor is None:
                self.dispatch(PositionErrorEvent(error=SensorUnavailable("No position sensor available")))
            else:
                self.pending_location = self._schedule_locate(session)
        return session

    def stop(self) -> None:
        """Unmount: tear down listeners, draw tool, streams and surface."""
        self.registry.clear()
        self.lifecycle.release()

    def _wire(self, mode: CaptureMode) -> bool:
        """Register handlers and install listeners; returns True if a position request is due."""
        session = self._session
        if mode is CaptureMode.CURRENT:
            self.registry.register(EventKind.POSITION_FIX, self._on_position_fix, "Commit sensor position")
            self.registry.register(EventKind.POSITION_ERROR, self._on_position_error, "Show failure notice")
        elif mode is CaptureMode.MANUAL:
            self.registry.register(EventKind.CLICK, self._on_click, "Commit clicked point")
            self.lifecycle.listen_click(self._handle_click)
        else:
            self.registry.register(EventKind.SHAPE_CREATED, self._on_shape_created, "Commit drawn shape")
            self.lifecycle.install_draw_tool(draw_options(mode), self._handle_shape)

        session.arm()
        self.logger.info(
            event=LogEvent.CAPTURE_ARMED,
            message=f"Armed {mode.value} capture",
            metadata=self._meta(handlers=sorted(k.value for k in self.registry.available_kinds)),
        )
        return mode is CaptureMode.CURRENT

    # ---------------------------------------------------------------- dispatch

    def dispatch(self, event: CaptureEvent) -> None:
        """Single entry point for every capture event."""
        self.registry.dispatch(event)

    def _handle_click(self, latlng: LatLng) -> None:
        self.dispatch(ClickEvent(latlng=tuple(latlng)))

    def _handle_shape(self, shape: Shape) -> None:
        self.dispatch(ShapeCreatedEvent(shape=shape))

    # ---------------------------------------------------------------- location

    def _schedule_locate(self, session: CaptureSession) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        return loop.create_task(self.locate(session))

    async def locate(self, session: CaptureSession) -> None:
        """
        Issue the position request for a session and dispatch its outcome.

        No retry. Any sensor exception is reported as SensorUnavailable. If the
        session is gone by the time the sensor answers, the result is
        discarded.
        """
        self.logger.info(
            event=LogEvent.LOCATION_REQUESTED,
            message="Requesting current position",
            metadata={'session_id': session.session_id},
        )
        try:
            point = await self.sensor.request_current_position()
        except SensorUnavailable as e:
            event: CaptureEvent = PositionErrorEvent(error=e)
        except Exception as e:
            error = SensorUnavailable(f"Position request failed: {e}")
            error.__cause__ = e
            event = PositionErrorEvent(error=error)
        else:
            event = PositionFixEvent(point=point)

        if not session.is_live or session is not self._session:
            self.logger.info(
                event=LogEvent.SESSION_STALE,
                message="Discarding position result for a torn-down session",
                metadata={'session_id': session.session_id, 'outcome': event.kind.value},
            )
            return
        self.dispatch(event)

    # ---------------------------------------------------------------- handlers

    def _on_position_fix(self, event: PositionFixEvent) -> None:
        self._commit(Slot.POINT, event.point, self.surface.add_marker)
        self.surface.set_view(event.point, self.config.focus_zoom)

    def _on_position_error(self, event: PositionErrorEvent) -> None:
        self._session.disarm()
        self.logger.warning(
            event=LogEvent.LOCATION_FAILED,
            message=self.config.failure_notice,
            metadata=self._meta(),
            exc_info=event.error,
        )
        self.notifier.notify(self.config.failure_notice)

    def _on_click(self, event: ClickEvent) -> None:
        try:
            point = point_from_latlng(event.latlng)
        except ValueError as e:
            self._reject(f"click outside valid coordinates: {e}")
            return
        self._commit(Slot.POINT, point, self.surface.add_marker)

    def _on_shape_created(self, event: ShapeCreatedEvent) -> None:
        mode = self._session.mode
        shape = event.shape
        if shape.kind not in ACCEPTED_KINDS[mode]:
            self._reject(f"{shape.kind.value} shape not accepted in {mode.value} mode")
            return
        try:
            geometry = geometry_from_shape(shape)
        except ValueError as e:
            self._reject(str(e))
            return

        slot = self._session.slot_for(shape.kind)
        self._commit(slot, geometry, self._drawer_for(geometry))

    def _drawer_for(self, geometry: SlotGeometry) -> Callable[[SlotGeometry], LayerHandle]:
        if isinstance(geometry, GeoPath):
            return lambda g: self.surface.add_polyline(g.points)
        if isinstance(geometry, GeoArea):
            return lambda g: self.surface.add_polygon(g.points)
        return self.surface.add_marker

    def _reject(self, reason: str) -> None:
        self.logger.warning(
            event=LogEvent.CAPTURE_REJECTED,
            message=f"Ignoring capture event: {reason}",
            metadata=self._meta(),
        )

    # ------------------------------------------------------------------ commit

    def _commit(
        self,
        slot: Slot,
        geometry: SlotGeometry,
        draw: Callable[[SlotGeometry], LayerHandle],
    ) -> None:
        """
        Replace the slot on screen and in the session, then write the field.

        Single-slot modes clear the whole overlay first; composite modes only
        remove the layer previously drawn for the same slot.
        """
        session = self._session
        surface = self.surface
        if session.mode.is_composite:
            previous = session.layer(slot)
            if previous is not None:
                surface.remove_layer(previous)
        else:
            surface.clear_overlay()
            session.clear_layers()

        session.commit(slot, geometry, draw(geometry))
        value = serialize(session.mode, session.committed_value())
        self.field.value = value

        self.logger.info(
            event=LogEvent.CAPTURE_COMMITTED,
            message=f"Committed {slot.value} geometry",
            metadata=self._meta(slot=slot.value),
        )
