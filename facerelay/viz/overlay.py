"""Preview rendering of accepted face rectangles."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from facerelay.types import Rectangle

LOGGER = logging.getLogger("facerelay.viz.overlay")

BOX_COLOR: Tuple[int, int, int] = (255, 0, 0)  # blue in BGR
BOX_THICKNESS = 2


def draw_rects(
    image: np.ndarray,
    rects: Iterable[Rectangle],
    color: Tuple[int, int, int] = BOX_COLOR,
    thickness: int = BOX_THICKNESS,
) -> np.ndarray:
    """Return a copy of ``image`` with each rectangle outlined."""
    out = image.copy()
    for rect in rects:
        x1, y1, x2, y2 = [int(round(v)) for v in rect.as_xyxy()]
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness)
    return out


class PreviewOverlay:
    """Keeps the most recent annotated frame for a display loop on another thread."""

    def __init__(self, color: Tuple[int, int, int] = BOX_COLOR, thickness: int = BOX_THICKNESS) -> None:
        self.color = color
        self.thickness = thickness
        self._latest: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    def render(self, image: np.ndarray, rects: Iterable[Rectangle]) -> None:
        annotated = draw_rects(image, rects, self.color, self.thickness)
        with self._lock:
            self._latest = annotated

    def latest(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._latest

    def clear(self) -> None:
        with self._lock:
            self._latest = None
