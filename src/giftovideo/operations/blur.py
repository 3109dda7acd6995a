from __future__ import annotations

from PIL import ImageFilter

from ..surface import RasterSurface
from .base import FrameOperation, FrameWithImageData


class BlurOperation(FrameOperation):
    """Gaussian blur; a radius of zero or less leaves the frame untouched."""

    NAME = "blur"

    def __init__(self, radius: float) -> None:
        self.radius = radius

    def apply(self, surface: RasterSurface, frame: FrameWithImageData) -> None:
        if self.radius <= 0:
            return
        surface.replace(surface.image.filter(ImageFilter.GaussianBlur(self.radius)))

    def __repr__(self) -> str:
        return f"BlurOperation(radius={self.radius})"
