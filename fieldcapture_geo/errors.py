"""
Typed errors for the capture widgets.

None of these are fatal to the host: each one is either recovered where it is
raised or surfaced to the user as a transient notice.
"""


class FieldCaptureError(Exception):
    """Base error for fieldcapture."""


class ConfigurationInvalid(FieldCaptureError, ValueError):
    """
    Invalid widget configuration.

    Raised when a config file or mapping is loaded; an unrecognized capture
    mode alone is recovered by falling back to the default mode.
    """


class SensorUnavailable(FieldCaptureError):
    """Location (or microphone) request denied or failed."""


class ValueShapeMismatch(FieldCaptureError, ValueError):
    """Persisted value shape does not match the active mode."""


class StaleSessionCallback(FieldCaptureError):
    """An async result arrived after its owning session was torn down."""


class EventNotAvailableError(FieldCaptureError):
    """Raised when dispatching an event kind with no registered handler."""
