"""Crop geometry and encoding."""

from facerelay.crop.encoder import FaceCropper
from facerelay.crop.region import derive_rect

__all__ = ["FaceCropper", "derive_rect"]
