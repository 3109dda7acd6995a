from __future__ import annotations

import io
import logging
from collections.abc import Callable
from pathlib import Path

from PIL import Image

from ..config import FetcherConfig
from ..error_handling import ConfigurationError
from ..fetch import RemoteAssetFetcher
from ..surface import RasterSurface
from ..types import GifSource
from .base import FrameOperation, FrameWithImageData

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], Image.Image]


def load_image(source: str) -> Image.Image:
    """Open *source* as an image, downloading it first when it is an http(s) URL."""
    if source.startswith(("http://", "https://")):
        fetcher = RemoteAssetFetcher(FetcherConfig(ACCEPT="image/*"))
        data = fetcher.fetch(GifSource(url=source)).buffer
        image = Image.open(io.BytesIO(data))
    else:
        image = Image.open(Path(source))
    image.load()
    return image


class OverlayImageOperation(FrameOperation):
    """Composite a secondary image at a fixed position on every frame.

    The overlay is loaded, scaled and faded once, on first use, and the
    prepared image is reused for all later frames. Load failures propagate.
    """

    NAME = "overlay-image"

    def __init__(
        self,
        source: str,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
        opacity: float = 1.0,
        loader: ImageLoader | None = None,
    ) -> None:
        if not 0.0 <= opacity <= 1.0:
            raise ConfigurationError(f"Overlay opacity must be in [0, 1], got {opacity}")
        if (width is not None and width <= 0) or (height is not None and height <= 0):
            raise ConfigurationError(f"Overlay size must be positive, got {width}x{height}")
        self.source = source
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.opacity = opacity
        self._loader = loader or load_image
        self._overlay: Image.Image | None = None

    def apply(self, surface: RasterSurface, frame: FrameWithImageData) -> None:
        overlay = self._get_overlay()
        layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
        layer.paste(overlay, (self.x, self.y))
        surface.image.alpha_composite(layer)

    def _get_overlay(self) -> Image.Image:
        if self._overlay is None:
            logger.debug(f"Loading overlay image {self.source}")
            image = self._loader(self.source).convert("RGBA")
            size = (self.width or image.width, self.height or image.height)
            if size != image.size:
                image = image.resize(size, Image.Resampling.LANCZOS)
            if self.opacity < 1.0:
                alpha = image.getchannel("A").point(lambda a: round(a * self.opacity))
                image.putalpha(alpha)
            self._overlay = image
        return self._overlay

    def __repr__(self) -> str:
        return f"OverlayImageOperation(source={self.source!r}, x={self.x}, y={self.y})"
