"""Face crop extraction and still-image encoding."""

from __future__ import annotations

import logging
from typing import List, Optional

import cv2
import numpy as np

from facerelay.types import CroppedFace, Rectangle

LOGGER = logging.getLogger("facerelay.crop")

_FORMATS = {
    "png": (".png", "image/png"),
    "jpeg": (".jpg", "image/jpeg"),
}


class FaceCropper:
    """Copies a rectangle out of a BGR frame and encodes it.

    Rectangles that extend past the frame keep their full size: only the
    overlapping part is read from the source and the rest of the destination
    stays transparent (alpha 0). A rectangle with no overlap yields no crop.
    """

    def __init__(self, image_format: str = "png", jpeg_quality: int = 95) -> None:
        if image_format not in _FORMATS:
            raise ValueError(f"Unsupported image format {image_format!r}")
        self.image_format = image_format
        self.extension, self.mime_type = _FORMATS[image_format]
        self.jpeg_quality = jpeg_quality

    def extract(self, image: np.ndarray, rect: Rectangle) -> Optional[np.ndarray]:
        """Return the BGRA destination surface for ``rect`` or None if degenerate."""
        if rect.is_degenerate:
            return None
        dst_w = int(round(rect.width))
        dst_h = int(round(rect.height))
        if dst_w <= 0 or dst_h <= 0:
            return None

        src_h, src_w = image.shape[:2]
        x0 = int(round(rect.x))
        y0 = int(round(rect.y))
        sx1, sy1 = max(0, x0), max(0, y0)
        sx2, sy2 = min(src_w, x0 + dst_w), min(src_h, y0 + dst_h)
        if sx2 <= sx1 or sy2 <= sy1:
            LOGGER.debug("Crop rect %s lies outside %dx%d frame", rect, src_w, src_h)
            return None

        surface = np.zeros((dst_h, dst_w, 4), dtype=np.uint8)
        dx1, dy1 = sx1 - x0, sy1 - y0
        region = _to_bgra(image[sy1:sy2, sx1:sx2])
        surface[dy1 : dy1 + (sy2 - sy1), dx1 : dx1 + (sx2 - sx1)] = region
        return surface

    def encode(self, surface: np.ndarray) -> Optional[bytes]:
        params: List[int] = []
        if self.image_format == "jpeg":
            surface = cv2.cvtColor(surface, cv2.COLOR_BGRA2BGR)
            params = [int(cv2.IMWRITE_JPEG_QUALITY), int(self.jpeg_quality)]
        ok, buffer = cv2.imencode(self.extension, surface, params)
        if not ok:
            LOGGER.warning("Failed to encode %dx%d crop as %s", surface.shape[1], surface.shape[0], self.image_format)
            return None
        return buffer.tobytes()

    def crop(self, image: np.ndarray, rect: Rectangle, timestamp_ms: int) -> Optional[CroppedFace]:
        surface = self.extract(image, rect)
        if surface is None:
            return None
        encoded = self.encode(surface)
        if encoded is None:
            return None
        return CroppedFace(encoded_image=encoded, timestamp_ms=int(timestamp_ms), mime_type=self.mime_type)


def _to_bgra(region: np.ndarray) -> np.ndarray:
    if region.ndim == 2:
        return cv2.cvtColor(region, cv2.COLOR_GRAY2BGRA)
    channels = region.shape[2]
    if channels == 4:
        return region
    if channels == 1:
        return cv2.cvtColor(region, cv2.COLOR_GRAY2BGRA)
    return cv2.cvtColor(region, cv2.COLOR_BGR2BGRA)
