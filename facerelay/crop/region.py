"""Normalized bounding box -> pixel rectangle conversion."""

from __future__ import annotations

from facerelay.types import BoundingBox, Rectangle


def derive_rect(bbox: BoundingBox, frame_width: float, frame_height: float) -> Rectangle:
    """Scale a normalized center/size box to absolute pixels.

    The result is not clamped to the frame; boxes that extend past an edge
    produce rectangles with negative origins or extents beyond W/H.
    """
    x_min, y_min, x_max, y_max = bbox.bounds()
    return Rectangle(
        x=x_min * frame_width,
        y=y_min * frame_height,
        width=(x_max - x_min) * frame_width,
        height=(y_max - y_min) * frame_height,
    )
