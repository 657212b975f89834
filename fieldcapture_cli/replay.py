"""
Scripted capture sessions against the headless backend.

A script is a YAML mapping:

    geo_format: trace            # optional, overrides the widget config
    value: null                  # optional stored value to start from
    read_only: false
    events:
      - click: [10.0, 20.0]
      - draw_line: [[0, 0], [1, 1], [2, 2]]
      - draw_polygon: [[[0, 0], [0, 1], [1, 1]]]
      - draw_marker: [1.0, 2.0]
      - position: [5.5, 6.6]
      - position_error: "User denied Geolocation"
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fieldcapture_geo.config import WidgetConfig
from fieldcapture_geo.geometry.types import GeoPoint
from fieldcapture_geo.headless import (
    DeferredPositionSensor,
    HeadlessSurfaceFactory,
    MemoryField,
    RecordingNotifier,
)
from fieldcapture_geo.logging import StructuredLogger
from fieldcapture_geo.widget import GeopointWidget

EVENT_NAMES = {"click", "draw_line", "draw_polygon", "draw_marker", "position", "position_error"}


@dataclass
class ReplayResult:
    """Outcome of a replayed script."""
    mode: str
    value: Any
    notices: List[str] = field(default_factory=list)
    layers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode,
            'value': self.value,
            'notices': self.notices,
            'layers': self.layers,
        }


def _parse_event(entry: Any) -> tuple:
    if not isinstance(entry, dict) or len(entry) != 1:
        raise ValueError(f"Each event must be a single-key mapping, got {entry!r}")
    (name, arg), = entry.items()
    if name not in EVENT_NAMES:
        raise ValueError(f"Unknown event '{name}'. Available events: {', '.join(sorted(EVENT_NAMES))}")
    return name, arg


async def _settle(widget: GeopointWidget) -> None:
    task = widget.controller.pending_location
    if task is not None and not task.done():
        await task


async def replay(
    script: Dict[str, Any],
    config: Optional[WidgetConfig] = None,
    logger: Optional[StructuredLogger] = None,
) -> ReplayResult:
    """
    Run a script and return the final field value.

    Raises:
        ValueError: If the script or one of its events is malformed
    """
    if not isinstance(script, dict):
        raise ValueError("Replay script must be a mapping")
    config = config or WidgetConfig()
    events = [_parse_event(e) for e in script.get("events") or []]

    factory = HeadlessSurfaceFactory()
    sensor = DeferredPositionSensor()
    notifier = RecordingNotifier()
    host_field = MemoryField(value=script.get("value"), read_only=bool(script.get("read_only", False)))
    widget = GeopointWidget(
        field=host_field,
        surface_factory=factory,
        notifier=notifier,
        sensor=sensor,
        config=config,
        logger=logger,
    )

    with widget:
        widget.render(container="replay", geo_format=script.get("geo_format"))
        surface = factory.last
        await asyncio.sleep(0)

        for name, arg in events:
            if name == "click":
                surface.click(*arg)
            elif name == "draw_line":
                surface.draw_line([tuple(v) for v in arg])
            elif name == "draw_polygon":
                surface.draw_polygon(*[[tuple(v) for v in ring] for ring in arg])
            elif name == "draw_marker":
                surface.draw_marker(*arg)
            elif name == "position":
                sensor.resolve(GeoPoint(lat=arg[0], lng=arg[1]))
                await _settle(widget)
            elif name == "position_error":
                sensor.fail(str(arg))
                await _settle(widget)

        layers = len(surface.layers)
        mode = widget.mode.value

    return ReplayResult(
        mode=mode,
        value=host_field.value,
        notices=list(notifier.messages),
        layers=layers,
    )
