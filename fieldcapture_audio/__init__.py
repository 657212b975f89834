"""
fieldcapture_audio - Microphone recording widget

Records an answer from the device microphone and stores it on the field as
a base64 data URI.

Architecture:
- MicrophoneWidget: start/stop/save pipeline
- AudioRecorderConfig: recorder options (YAML)
- contracts: MediaDevices, MediaStream, Recorder, RecorderFactory
"""

from fieldcapture_audio.config import AudioRecorderConfig
from fieldcapture_audio.recorder import MicrophoneWidget, encode_data_uri

__all__ = [
    "AudioRecorderConfig",
    "MicrophoneWidget",
    "encode_data_uri",
]
