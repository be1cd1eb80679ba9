"""Runtime configuration for the relay pipeline."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from facerelay.io_utils import load_yaml

LOGGER = logging.getLogger("facerelay.config")

DEFAULT_ENDPOINT = "http://localhost:8000/recognize-batch"
IMAGE_FORMATS = ("png", "jpeg")


@dataclass
class RelayConfig:
    # Quality gate
    min_confidence_threshold: float = 0.5
    max_rotation_deg: float = 15.0
    min_landmarks: int = 6
    min_interocular_ratio: float = 0.3
    # Throttle
    throttle_interval_ms: int = 2000
    # Capture
    camera_index: int = 0
    frame_width: int = 640
    frame_height: int = 480
    # Detector
    model_selection: int = 0  # 0 = short range, 1 = full range
    min_detection_confidence: float = 0.5
    # Crop / dispatch
    image_format: str = "png"
    recognition_endpoint: str = DEFAULT_ENDPOINT
    dispatch_workers: int = 4
    request_timeout_s: Optional[float] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.throttle_interval_ms <= 0:
            raise ValueError(f"throttle_interval_ms must be positive, got {self.throttle_interval_ms}")
        if self.min_landmarks < 2:
            raise ValueError("min_landmarks must be at least 2 (two eye points are required)")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError(f"Invalid frame size {self.frame_width}x{self.frame_height}")
        if self.image_format not in IMAGE_FORMATS:
            raise ValueError(f"image_format must be one of {IMAGE_FORMATS}, got {self.image_format!r}")
        if self.dispatch_workers < 1:
            raise ValueError("dispatch_workers must be >= 1")
        if self.model_selection not in (0, 1):
            raise ValueError("model_selection must be 0 (short range) or 1 (full range)")
        if self.request_timeout_s is not None and self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be positive when set")
        if not self.recognition_endpoint:
            raise ValueError("recognition_endpoint is required")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RelayConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            LOGGER.warning("Ignoring unknown config keys: %s", unknown)
        return cls(**{key: value for key, value in data.items() if key in known})

    def with_overrides(self, **overrides: Any) -> "RelayConfig":
        """Return a copy with every non-None override applied."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Path]) -> RelayConfig:
    """Load a RelayConfig from YAML, falling back to defaults when the file is missing."""
    if path is None:
        return RelayConfig()
    if not path.exists():
        LOGGER.warning("Config file %s not found; using defaults", path)
        return RelayConfig()
    return RelayConfig.from_mapping(load_yaml(path))
