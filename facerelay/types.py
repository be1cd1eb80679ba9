"""Common dataclasses and type aliases used across the facerelay package."""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Landmark:
    """Keypoint in normalized image coordinates."""

    x: float
    y: float
    z: float = 0.0
    confidence: Optional[float] = None


@dataclass(frozen=True)
class BoundingBox:
    """Center + size box in normalized [0, 1] units."""

    x_center: float
    y_center: float
    width: float
    height: float
    rotation: Optional[float] = None  # degrees

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (x_min, y_min, x_max, y_max) in normalized units."""
        half_w = self.width / 2
        half_h = self.height / 2
        return (
            self.x_center - half_w,
            self.y_center - half_h,
            self.x_center + half_w,
            self.y_center + half_h,
        )


@dataclass(frozen=True)
class Detection:
    """One candidate face returned by a detector for a single frame."""

    bbox: BoundingBox
    landmarks: Tuple[Landmark, ...] = ()
    score: Optional[float] = None


@dataclass
class FrameContext:
    """Pixels and timing for one captured frame."""

    image: np.ndarray
    timestamp_ms: int
    width: int = 0
    height: int = 0

    def __post_init__(self) -> None:
        if not self.width or not self.height:
            h, w = self.image.shape[:2]
            self.width = self.width or int(w)
            self.height = self.height or int(h)


@dataclass
class FrameResults:
    """Detector output for a frame: the frame itself plus its detections."""

    frame: FrameContext
    detections: List[Detection] = field(default_factory=list)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle in pixel units. May lie partly outside the frame."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass
class CroppedFace:
    """Encoded face crop waiting to be dispatched."""

    encoded_image: bytes
    timestamp_ms: int
    mime_type: str = "image/png"

    def data_url(self) -> str:
        encoded = base64.b64encode(self.encoded_image).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_payload(self) -> Dict:
        return {"image": self.data_url(), "timestamp": int(self.timestamp_ms)}


Batch = List[CroppedFace]


class PipelineState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
