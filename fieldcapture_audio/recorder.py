"""
Microphone Widget
=================

Record -> stop -> encode pipeline around a device microphone.

Design:
- The open stream lives in a DeviceStreamSlot owned by the widget (or passed
  in explicitly to share one microphone between several fields), never on
  ambient shared state
- start() stops whatever recorder and stream are still open before asking
  for a new one
- A stream granted after the widget was unmounted or restarted is stopped
  immediately and discarded
- stop() writes the recording to the field as a base64 data URI
"""

import base64
from datetime import datetime
from typing import Any, Callable, Optional

from fieldcapture_geo.capture.lifecycle import DeviceStreamSlot
from fieldcapture_geo.contracts import HostField, Notifier
from fieldcapture_geo.errors import SensorUnavailable
from fieldcapture_geo.logging import LogEvent, StructuredLogger, create_logger

from fieldcapture_audio.config import AudioRecorderConfig
from fieldcapture_audio.contracts import MediaDevices, Recorder, RecorderFactory


def encode_data_uri(blob: bytes, mime_type: str) -> str:
    """
    Encode a recorded blob as a data URI.

    Example:
        >>> encode_data_uri(b"abc", "audio/webm")
        'data:audio/webm;base64,YWJj'
    """
    return f"data:{mime_type};base64,{base64.b64encode(blob).decode('ascii')}"


class MicrophoneWidget:
    """
    Audio capture widget for one host field.

    Attributes:
        recording_started_at: When the current recording started
        recording_ended_at: When it was stopped
        recording_duration: Seconds between the two
        audio_src: Data URI of the last saved recording (for playback)
    """

    def __init__(
        self,
        field: HostField,
        media_devices: MediaDevices,
        recorder_factory: RecorderFactory,
        notifier: Notifier,
        config: AudioRecorderConfig = AudioRecorderConfig(),
        logger: Optional[StructuredLogger] = None,
        streams: Optional[DeviceStreamSlot] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.field = field
        self.media_devices = media_devices
        self.recorder_factory = recorder_factory
        self.notifier = notifier
        self.config = config
        self.logger = logger or create_logger("microphone")
        self.streams = streams or DeviceStreamSlot(self.logger)
        self.clock = clock

        self.recording_started_at: Optional[datetime] = None
        self.recording_ended_at: Optional[datetime] = None
        self.recording_duration: Optional[float] = None
        self.audio_src: Optional[str] = None

        self._recorder: Optional[Recorder] = None
        self._generation = 0
        self._mounted = True

    @property
    def is_recording(self) -> bool:
        return self._recorder is not None

    def _reset_timing(self) -> None:
        self.recording_started_at = None
        self.recording_ended_at = None
        self.recording_duration = None

    def _abandon(self) -> None:
        """Stop the recorder and its stream without saving."""
        recorder, self._recorder = self._recorder, None
        if recorder is not None:
            recorder.stop_recording()
        self.streams.release()

    async def start(self) -> bool:
        """
        Erase the previous answer and start a new recording.

        Returns:
            True if recording started, False if the microphone was unavailable
            or the widget went away while waiting for it
        """
        self._reset_timing()
        self.field.value = None
        self._abandon()

        self._generation += 1
        generation = self._generation
        try:
            stream = await self.media_devices.get_user_media(audio=True, video=False)
        except SensorUnavailable as e:
            self.logger.warning(
                event=LogEvent.MICROPHONE_UNAVAILABLE,
                message=self.config.failure_notice,
                exc_info=e,
            )
            self.notifier.notify(self.config.failure_notice)
            return False

        if not self._mounted or generation != self._generation:
            stream.stop()
            self.logger.info(
                event=LogEvent.SESSION_STALE,
                message="Stopping microphone stream granted to a stale request",
                metadata={'generation': generation},
            )
            return False

        self.streams.open(stream)
        self._recorder = self.recorder_factory.create_recorder(stream, self.config)
        self._recorder.start_recording()
        self.recording_started_at = self.clock()
        self.logger.info(
            event=LogEvent.RECORDING_STARTED,
            message="Recording started",
            metadata={'mime_type': self.config.mime_type},
        )
        return True

    async def stop(self) -> Optional[str]:
        """
        Stop recording, encode it and write it to the field.

        Returns:
            The saved data URI, or None if nothing was recording
        """
        recorder = self._recorder
        if recorder is None:
            return None
        generation = self._generation
        self._recorder = None

        recorder.stop_recording()
        self.recording_ended_at = self.clock()
        if self.recording_started_at is not None:
            self.recording_duration = (
                self.recording_ended_at - self.recording_started_at
            ).total_seconds()

        blob = await recorder.get_blob()
        data_uri = encode_data_uri(blob, self.config.mime_type)
        if generation != self._generation:
            # restarted or unmounted while the recorder was finishing
            return None

        self.field.value = data_uri
        self.audio_src = data_uri
        self.streams.release()

        self.logger.info(
            event=LogEvent.RECORDING_SAVED,
            message="Recording saved",
            metadata={'bytes': len(blob), 'duration_s': self.recording_duration},
        )
        return data_uri

    def render(self, container: Any = None) -> None:
        """Show the last saved answer for playback."""
        self._mounted = True
        value = self.field.value
        self.audio_src = value if isinstance(value, str) and value.startswith("data:") else None

    def unmount(self) -> None:
        self._mounted = False
        self._generation += 1
        self._abandon()
