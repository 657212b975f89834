"""
Capture Mode Resolution
=======================

Derives the active capture mode from the configured ``geoFormat`` string.

Unknown or missing values fail closed to the default mode instead of raising,
so a misconfigured field still renders.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ConfigurationInvalid
from .logging import LogEvent, StructuredLogger, create_logger


class CaptureMode(str, Enum):
    """Configured capture strategy."""
    CURRENT = "current"
    MANUAL = "manual"
    TRACE = "trace"
    AREA = "area"
    BOTH = "both"
    FULL = "full"

    @property
    def is_point(self) -> bool:
        return self in (CaptureMode.CURRENT, CaptureMode.MANUAL)

    @property
    def is_composite(self) -> bool:
        return self in (CaptureMode.BOTH, CaptureMode.FULL)

    @property
    def uses_sensor(self) -> bool:
        return self is CaptureMode.CURRENT

    @property
    def uses_click(self) -> bool:
        return self is CaptureMode.MANUAL

    @property
    def uses_draw_tool(self) -> bool:
        return self in (CaptureMode.TRACE, CaptureMode.AREA, CaptureMode.BOTH, CaptureMode.FULL)


DEFAULT_MODE = CaptureMode.CURRENT

# Legacy and shorthand spellings seen in older form definitions
MODE_ALIASES: Dict[str, CaptureMode] = {
    "location": CaptureMode.CURRENT,
    "gps": CaptureMode.CURRENT,
    "geolocation": CaptureMode.CURRENT,
    "point": CaptureMode.MANUAL,
    "pin": CaptureMode.MANUAL,
    "click": CaptureMode.MANUAL,
    "path": CaptureMode.TRACE,
    "line": CaptureMode.TRACE,
    "polyline": CaptureMode.TRACE,
    "polygon": CaptureMode.AREA,
    "shape": CaptureMode.AREA,
    "all": CaptureMode.FULL,
}

_default_logger: Optional[StructuredLogger] = None


def _config_logger() -> StructuredLogger:
    global _default_logger
    if _default_logger is None:
        _default_logger = create_logger("config")
    return _default_logger


def resolve_mode(
    raw: Any,
    default: CaptureMode = DEFAULT_MODE,
    logger: Optional[StructuredLogger] = None,
) -> CaptureMode:
    """
    Resolve a configured mode string to a CaptureMode.

    Args:
        raw: Configured value (string, CaptureMode, or None)
        default: Mode used when raw is absent or unrecognized
        logger: Logger for the fallback warning

    Returns:
        Resolved mode; never raises

    Example:
        >>> resolve_mode("Polygon")
        <CaptureMode.AREA: 'area'>
        >>> resolve_mode("satellite")
        <CaptureMode.CURRENT: 'current'>
    """
    if isinstance(raw, CaptureMode):
        return raw
    if raw is None:
        return default

    text = str(raw).strip().lower()
    if not text:
        return default
    for mode in CaptureMode:
        if mode.value == text:
            return mode
    if text in MODE_ALIASES:
        return MODE_ALIASES[text]

    (logger or _config_logger()).warning(
        event=LogEvent.MODE_INVALID,
        message=f"Unrecognized capture mode {raw!r}, using '{default.value}'",
        metadata={'configured': str(raw), 'fallback': default.value},
        exc_info=ConfigurationInvalid(f"Unknown capture mode: {raw!r}"),
    )
    return default


@dataclass(frozen=True)
class DrawToolOptions:
    """Which shapes a draw tool offers. Circles and rectangles are never offered."""
    line_enabled: bool = False
    polygon_enabled: bool = False
    marker_enabled: bool = False

    @property
    def any_enabled(self) -> bool:
        return self.line_enabled or self.polygon_enabled or self.marker_enabled


def draw_options(mode: CaptureMode) -> DrawToolOptions:
    """Draw tool configuration for a mode; all-disabled for non-drawing modes."""
    return DrawToolOptions(
        line_enabled=mode in (CaptureMode.TRACE, CaptureMode.BOTH, CaptureMode.FULL),
        polygon_enabled=mode in (CaptureMode.AREA, CaptureMode.BOTH, CaptureMode.FULL),
        marker_enabled=mode is CaptureMode.FULL,
    )
