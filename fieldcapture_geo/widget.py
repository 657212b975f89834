"""
Geopoint Widget
===============

Host-facing facade for one geopoint field.

The host framework calls render() after it has laid out the field's
container and unmount() before it drops it. Each render owns its own
session; rendering again (for instance after the mode was changed) tears
the previous render down first.
"""

from typing import Any, Optional

from fieldcapture_geo.capture.controller import CaptureController
from fieldcapture_geo.capture.lifecycle import LifecycleManager
from fieldcapture_geo.capture.session import CaptureSession
from fieldcapture_geo.config import DEFAULT_CONFIG, WidgetConfig
from fieldcapture_geo.contracts import HostField, Notifier, PositionSensor, SurfaceFactory
from fieldcapture_geo.logging import StructuredLogger, create_logger
from fieldcapture_geo.mode import CaptureMode, resolve_mode


class GeopointWidget:
    """
    Geospatial capture widget for one host field.

    Example:
        widget = GeopointWidget(
            field=field,
            surface_factory=factory,
            sensor=sensor,
            notifier=notifier,
            config=WidgetConfig(geo_format="trace"),
        )
        widget.render(container)
        ...
        widget.unmount()
    """

    def __init__(
        self,
        field: HostField,
        surface_factory: SurfaceFactory,
        notifier: Notifier,
        sensor: Optional[PositionSensor] = None,
        config: WidgetConfig = DEFAULT_CONFIG,
        logger: Optional[StructuredLogger] = None,
    ):
        self.field = field
        self.config = config
        self.logger = logger or create_logger("geopoint")
        self.lifecycle = LifecycleManager(
            surface_factory, self.logger, container_height=config.container_height
        )
        self.controller = CaptureController(
            field=field,
            lifecycle=self.lifecycle,
            sensor=sensor,
            notifier=notifier,
            config=config,
            logger=self.logger,
        )

    @property
    def session(self) -> Optional[CaptureSession]:
        return self.controller.session

    @property
    def mode(self) -> CaptureMode:
        return self.controller.mode or self.config.mode

    @property
    def value(self) -> Any:
        return self.field.value

    @property
    def is_rendered(self) -> bool:
        return self.lifecycle.is_acquired

    def render(self, container: Any = None, geo_format: Optional[str] = None) -> CaptureSession:
        """
        Render into a container.

        Args:
            container: Host element for the map surface
            geo_format: Mode override (e.g. after the form author changed it)
        """
        mode = resolve_mode(geo_format, logger=self.logger) if geo_format is not None else None
        return self.controller.start(container, mode=mode)

    def unmount(self) -> None:
        self.controller.stop()

    def __enter__(self) -> 'GeopointWidget':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()
