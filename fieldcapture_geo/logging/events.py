"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for the capture widgets.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)

Event Naming Convention:
    <component>.<category>.<action>

    component: capture, config, lifecycle, audio
    category: location, value, session, recording
    action: requested, failed, mismatch, stale

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.mode
    | filter event = "capture.committed"
    | stats count() by metadata.mode
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - capture.*: Geometry capture flow
    - config.*: Configuration resolution
    - lifecycle.*: Surface/session acquisition and teardown
    - audio.*: Microphone recording flow
    """

    # ========== Capture Events ==========
    CAPTURE_ARMED = "capture.armed"
    """Controller wired for its mode and waiting for input."""

    CAPTURE_COMMITTED = "capture.committed"
    """Geometry committed and written to the host field."""

    CAPTURE_REJECTED = "capture.rejected"
    """Input event carried geometry the active mode cannot store."""

    CAPTURE_REHYDRATED = "capture.rehydrated"
    """Previously persisted value redrawn on the surface."""

    LOCATION_REQUESTED = "capture.location.requested"
    """Current-position request issued to the sensor."""

    LOCATION_FAILED = "capture.location.failed"
    """Sensor reported failure; nothing committed."""

    SESSION_STALE = "capture.session.stale"
    """Async result arrived for a session that is already torn down."""

    VALUE_MISMATCH = "capture.value.mismatch"
    """Persisted value does not match the active mode; treated as absent."""

    # ========== Config Events ==========
    MODE_INVALID = "config.mode.invalid"
    """Unrecognized capture mode; fell back to the default."""

    # ========== Lifecycle Events ==========
    LIFECYCLE_ACQUIRED = "lifecycle.acquired"
    """Capture surface and session acquired for a render."""

    LIFECYCLE_RELEASED = "lifecycle.released"
    """Listeners removed, streams stopped, surface disposed."""

    STREAM_REPLACED = "lifecycle.stream.replaced"
    """A device stream left open was stopped before opening a new one."""

    # ========== Audio Events ==========
    RECORDING_STARTED = "audio.recording.started"
    """Microphone stream granted and recording started."""

    RECORDING_SAVED = "audio.recording.saved"
    """Recording encoded and written to the host field."""

    MICROPHONE_UNAVAILABLE = "audio.microphone.unavailable"
    """Microphone request denied or failed."""


# Event categories for filtering
CAPTURE_EVENTS = {
    LogEvent.CAPTURE_ARMED,
    LogEvent.CAPTURE_COMMITTED,
    LogEvent.CAPTURE_REJECTED,
    LogEvent.CAPTURE_REHYDRATED,
    LogEvent.LOCATION_REQUESTED,
    LogEvent.LOCATION_FAILED,
    LogEvent.SESSION_STALE,
    LogEvent.VALUE_MISMATCH,
}

LIFECYCLE_EVENTS = {
    LogEvent.LIFECYCLE_ACQUIRED,
    LogEvent.LIFECYCLE_RELEASED,
    LogEvent.STREAM_REPLACED,
}

AUDIO_EVENTS = {
    LogEvent.RECORDING_STARTED,
    LogEvent.RECORDING_SAVED,
    LogEvent.MICROPHONE_UNAVAILABLE,
}
