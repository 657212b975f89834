"""
Lifecycle Module
================

Scoped acquisition of the capture surface, its listeners, the draw tool and
any device stream, with guaranteed teardown.

Design:
- Every registration pushes its undo onto an ExitStack
- release() unwinds the stack in reverse order, even if one step raises
- release() is idempotent; acquire() releases the previous scope first
- DeviceStreamSlot keeps at most one open device stream per owner
"""

from contextlib import ExitStack
from typing import Any, Optional

from fieldcapture_geo.contracts import (
    ClickHandler,
    DeviceStream,
    DrawTool,
    ShapeCreatedHandler,
    Surface,
    SurfaceFactory,
)
from fieldcapture_geo.logging import LogEvent, StructuredLogger
from fieldcapture_geo.mode import CaptureMode, DrawToolOptions
from fieldcapture_geo.capture.session import CaptureSession


class DeviceStreamSlot:
    """
    Holds at most one open device stream.

    Opening a new stream stops whatever the slot still holds, so two device
    streams are never open at once for the same owner.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._stream: Optional[DeviceStream] = None
        self.logger = logger

    @property
    def stream(self) -> Optional[DeviceStream]:
        return self._stream

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self, stream: DeviceStream) -> DeviceStream:
        if self._stream is not None and self._stream is not stream:
            if self.logger is not None:
                self.logger.info(
                    event=LogEvent.STREAM_REPLACED,
                    message="Stopping device stream left open before opening a new one",
                )
            self.release()
        self._stream = stream
        return stream

    def release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()


class LifecycleManager:
    """
    Owns everything one render acquires.

    Usage:
        lifecycle = LifecycleManager(surface_factory, logger)
        session = lifecycle.acquire(container, CaptureMode.MANUAL)
        lifecycle.listen_click(handler)
        ...
        lifecycle.release()   # or use it as a context manager
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory,
        logger: StructuredLogger,
        container_height: int = 300,
    ):
        self.surface_factory = surface_factory
        self.container_height = container_height
        self.logger = logger
        self.streams = DeviceStreamSlot(logger)
        self._stack: Optional[ExitStack] = None
        self._surface: Optional[Surface] = None
        self._session: Optional[CaptureSession] = None

    @property
    def surface(self) -> Surface:
        if self._surface is None:
            raise RuntimeError("No surface acquired")
        return self._surface

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def is_acquired(self) -> bool:
        return self._stack is not None

    def acquire(self, container: Any, mode: CaptureMode) -> CaptureSession:
        """
        Create the surface and a fresh session for one render.

        Any scope still held from a previous render is released first.
        """
        self.release()

        stack = ExitStack()
        session = CaptureSession(mode)
        stack.callback(session.dispose)
        try:
            surface = self.surface_factory.create_surface(container, height=self.container_height)
        except BaseException:
            stack.close()
            raise
        stack.callback(surface.dispose)
        stack.callback(self.streams.release)

        self._stack = stack
        self._surface = surface
        self._session = session

        self.logger.info(
            event=LogEvent.LIFECYCLE_ACQUIRED,
            message=f"Acquired capture surface for {mode.value} session",
            metadata={'mode': mode.value, 'session_id': session.session_id},
        )
        return session

    def listen_click(self, handler: ClickHandler) -> None:
        surface = self.surface
        surface.on_click(handler)
        self._stack.callback(surface.off_click, handler)

    def install_draw_tool(
        self,
        options: DrawToolOptions,
        handler: ShapeCreatedHandler,
    ) -> DrawTool:
        surface = self.surface
        tool = surface.install_draw_tool(options)
        self._stack.callback(surface.remove_draw_tool, tool)
        tool.on_created(handler)
        self._stack.callback(tool.off_created, handler)
        return tool

    def release(self) -> None:
        """Remove listeners, stop streams, dispose the surface and the session."""
        stack, self._stack = self._stack, None
        if stack is None:
            return
        session = self._session
        self._surface = None
        try:
            stack.close()
        finally:
            self.logger.info(
                event=LogEvent.LIFECYCLE_RELEASED,
                message="Released capture surface",
                metadata={'session_id': session.session_id if session is not None else None},
            )

    def __enter__(self) -> 'LifecycleManager':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
