"""
Configuration schema for the geopoint widget.

Loaded from YAML (or a plain dict coming from the form definition) and
validated at construction. The mode string itself is not validated here:
it is resolved leniently by fieldcapture_geo.mode.resolve_mode so that a
misconfigured field still renders.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from fieldcapture_geo.errors import ConfigurationInvalid
from fieldcapture_geo.mode import CaptureMode, resolve_mode


@dataclass(frozen=True)
class WidgetConfig:
    """
    Geopoint widget configuration.

    Immutable after construction (frozen dataclass).
    """

    geo_format: Optional[str] = CaptureMode.CURRENT.value  # current | manual | trace | area | both | full

    # View shown before any geometry is known
    initial_center: Tuple[float, float] = (0.0, 0.0)
    initial_zoom: int = 2

    # Zoom used when centering on a single point
    focus_zoom: int = 15

    # Notice shown when the location request fails
    failure_notice: str = "Unable to retrieve location"

    # Request the device position even when the field already holds a value
    locate_when_answered: bool = True

    container_height: int = 300

    def __post_init__(self):
        """Validate widget configuration."""
        lat, lng = self.initial_center
        if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
            raise ConfigurationInvalid(
                f"initial_center must be a valid (lat, lng), got {self.initial_center}"
            )

        for name in ("initial_zoom", "focus_zoom"):
            zoom = getattr(self, name)
            if not 0 <= zoom <= 22:
                raise ConfigurationInvalid(f"{name} must be in [0, 22], got {zoom}")

        if self.container_height <= 0:
            raise ConfigurationInvalid(
                f"container_height must be positive, got {self.container_height}"
            )

    @property
    def mode(self) -> CaptureMode:
        return resolve_mode(self.geo_format)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WidgetConfig":
        """
        Build from a mapping; the form-definition key ``geoFormat`` is accepted
        as an alias of ``geo_format``.

        Raises:
            ConfigurationInvalid: If unknown keys are present or values are invalid
        """
        data = dict(data or {})
        if "geoFormat" in data:
            data.setdefault("geo_format", data.pop("geoFormat"))

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationInvalid(f"Unknown widget config keys: {sorted(unknown)}")

        if "initial_center" in data:
            data["initial_center"] = tuple(float(c) for c in data["initial_center"])
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "WidgetConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            geo_format: "trace"
            initial_center: [-6.8, 39.28]
            initial_zoom: 6
            focus_zoom: 15
            failure_notice: "Unable to retrieve location"

        An optional top-level ``geopoint:`` section is also accepted so the
        same file can hold the microphone section.
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationInvalid(f"Widget config must be a mapping: {yaml_path}")
        if "geopoint" in data:
            data = data["geopoint"] or {}
        return cls.from_dict(data)


DEFAULT_CONFIG = WidgetConfig()
