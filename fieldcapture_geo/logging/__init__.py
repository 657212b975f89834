"""
Structured Logging for fieldcapture
===================================

Bounded Context: Observability

JSON-structured logging shared by the geopoint and microphone widgets.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from fieldcapture_geo.logging import create_logger, LogEvent
    >>> logger = create_logger("geopoint")
    >>> logger.info(
    ...     event=LogEvent.CAPTURE_COMMITTED,
    ...     message="Committed trace",
    ...     metadata={'mode': 'trace', 'vertices': 3}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
