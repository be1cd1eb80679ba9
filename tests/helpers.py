"""Shared builders for test detections."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from facerelay.types import BoundingBox, Detection, Landmark

# Eyes 0.1 apart, which passes the interocular rule for boxes up to 0.33 wide.
DEFAULT_POINTS: Tuple[Tuple[float, float], ...] = (
    (0.45, 0.45),
    (0.55, 0.45),
    (0.50, 0.50),
    (0.50, 0.58),
    (0.40, 0.48),
    (0.60, 0.48),
)


def make_detection(
    x_center: float = 0.5,
    y_center: float = 0.5,
    width: float = 0.2,
    height: float = 0.4,
    rotation: Optional[float] = None,
    points: Sequence[Tuple[float, float]] = DEFAULT_POINTS,
    confidences: Optional[Sequence[Optional[float]]] = None,
) -> Detection:
    confidences = confidences or [None] * len(points)
    landmarks = tuple(
        Landmark(x=x, y=y, z=0.0, confidence=conf) for (x, y), conf in zip(points, confidences)
    )
    bbox = BoundingBox(x_center=x_center, y_center=y_center, width=width, height=height, rotation=rotation)
    return Detection(bbox=bbox, landmarks=landmarks)
