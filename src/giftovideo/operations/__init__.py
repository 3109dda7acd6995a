"""Per-frame transformations applied by the frame processor."""

from .base import FrameOperation, FrameWithImageData
from .blur import BlurOperation
from .overlay import OverlayImageOperation, load_image
from .saturation import SaturationOperation

__all__ = [
    "FrameOperation",
    "FrameWithImageData",
    "BlurOperation",
    "SaturationOperation",
    "OverlayImageOperation",
    "load_image",
]
