"""
Microphone widget contracts: the media device API and the recorder library.
"""

from typing import Protocol

from fieldcapture_audio.config import AudioRecorderConfig


class MediaStream(Protocol):
    def stop(self) -> None:
        """Stop every audio track of the stream."""
        ...


class MediaDevices(Protocol):
    async def get_user_media(self, audio: bool = True, video: bool = False) -> MediaStream:
        """Open a device stream; raise SensorUnavailable when denied or absent."""
        ...


class Recorder(Protocol):
    def start_recording(self) -> None: ...

    def stop_recording(self) -> None:
        """Stop capturing; safe to call more than once."""
        ...

    async def get_blob(self) -> bytes:
        """Recorded audio, available once recording has stopped."""
        ...


class RecorderFactory(Protocol):
    def create_recorder(self, stream: MediaStream, config: AudioRecorderConfig) -> Recorder: ...
