from __future__ import annotations

from PIL import ImageEnhance

from ..error_handling import ConfigurationError
from ..surface import RasterSurface
from .base import FrameOperation, FrameWithImageData


class SaturationOperation(FrameOperation):
    """Scale color saturation by *factor* (0 = grayscale, 1 = unchanged).

    Alpha is preserved: Pillow blends against an ``LA`` copy for RGBA input.
    """

    NAME = "saturation"

    def __init__(self, factor: float) -> None:
        if factor < 0:
            raise ConfigurationError(f"Saturation factor must be non-negative, got {factor}")
        self.factor = factor

    def apply(self, surface: RasterSurface, frame: FrameWithImageData) -> None:
        if self.factor == 1:
            return
        surface.replace(ImageEnhance.Color(surface.image).enhance(self.factor))

    def __repr__(self) -> str:
        return f"SaturationOperation(factor={self.factor})"
