"""
EventRegistry - Explicit handler registration per event kind

Bounded Context: Event dispatch for one capture controller
Responsibilities:
  - Register a handler for each event kind the active mode reacts to
  - Reject dispatch of kinds the mode never wired
  - Provide introspection (available_kinds, get_help)

Problem: Optional callbacks make unclear which events a mode handles
Solution: Explicit registration pattern

Threading: Single-threaded; handlers run on the host event loop
"""

from typing import Callable, Dict, Set

from fieldcapture_geo.capture.events import CaptureEvent, EventKind
from fieldcapture_geo.errors import EventNotAvailableError


class EventRegistry:
    """
    Registry mapping event kinds to handlers.

    Key Features:
      - Fail-fast: double registration and unknown kinds rejected immediately
      - Introspection: query wired kinds at runtime
      - Self-Documenting: each handler has a description

    Example:
        registry = EventRegistry()
        registry.register(EventKind.CLICK, controller.on_click, "Commit clicked point")

        registry.dispatch(ClickEvent(latlng=(10.0, 20.0)))
    """

    def __init__(self):
        self._handlers: Dict[EventKind, Callable[[CaptureEvent], None]] = {}
        self._descriptions: Dict[EventKind, str] = {}

    def register(
        self,
        kind: EventKind,
        handler: Callable[[CaptureEvent], None],
        description: str,
    ) -> None:
        """
        Register the handler for an event kind.

        Raises:
            ValueError: If kind already registered (double registration)
        """
        if kind in self._handlers:
            raise ValueError(f"Event kind '{kind.value}' already registered")

        self._handlers[kind] = handler
        self._descriptions[kind] = description

    def dispatch(self, event: CaptureEvent) -> None:
        """
        Route an event to its handler.

        Raises:
            EventNotAvailableError: If no handler is registered for the event kind
        """
        handler = self._handlers.get(event.kind)
        if handler is None:
            available = ', '.join(sorted(k.value for k in self._handlers)) or 'none'
            raise EventNotAvailableError(
                f"Event '{event.kind.value}' not handled. Available events: {available}"
            )
        handler(event)

    def is_available(self, kind: EventKind) -> bool:
        return kind in self._handlers

    @property
    def available_kinds(self) -> Set[EventKind]:
        return set(self._handlers.keys())

    def get_help(self) -> Dict[str, str]:
        return {k.value: d for k, d in self._descriptions.items()}

    def clear(self) -> None:
        """Drop every registration (used on teardown)."""
        self._handlers.clear()
        self._descriptions.clear()

    def count(self) -> int:
        return len(self._handlers)
