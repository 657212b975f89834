"""
Configuration schema for the microphone widget.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from fieldcapture_geo.errors import ConfigurationInvalid


@dataclass(frozen=True)
class AudioRecorderConfig:
    """Recorder options handed to the recorder factory."""

    mime_type: str = "audio/webm"
    audio_bits_per_second: int = 44100
    sample_rate: int = 44100
    buffer_size: int = 16384
    number_of_audio_channels: int = 1

    # Notice shown when the microphone request fails
    failure_notice: str = "No microphone"

    def __post_init__(self):
        """Validate recorder configuration."""
        if not self.mime_type.startswith("audio/"):
            raise ConfigurationInvalid(f"mime_type must be an audio type, got {self.mime_type!r}")

        if self.audio_bits_per_second <= 0:
            raise ConfigurationInvalid(
                f"audio_bits_per_second must be positive, got {self.audio_bits_per_second}"
            )

        if not 8000 <= self.sample_rate <= 192000:
            raise ConfigurationInvalid(
                f"sample_rate must be in [8000, 192000], got {self.sample_rate}"
            )

        # Web Audio script processors only accept these sizes
        valid_buffers = {256, 512, 1024, 2048, 4096, 8192, 16384}
        if self.buffer_size not in valid_buffers:
            raise ConfigurationInvalid(
                f"Invalid buffer_size: {self.buffer_size}. "
                f"Must be one of {sorted(valid_buffers)}"
            )

        if self.number_of_audio_channels not in {1, 2}:
            raise ConfigurationInvalid(
                f"number_of_audio_channels must be 1 or 2, got {self.number_of_audio_channels}"
            )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AudioRecorderConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationInvalid(f"Unknown recorder config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "AudioRecorderConfig":
        """
        Load the ``microphone:`` section of a YAML file.

        Example YAML:
            microphone:
              mime_type: "audio/webm"
              sample_rate: 44100
              number_of_audio_channels: 1
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationInvalid(f"Recorder config must be a mapping: {yaml_path}")
        return cls.from_dict(data.get("microphone"))
