"""Reusable RGBA drawing surface owned by the frame processor."""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from .error_handling import ProcessingError

TRANSPARENT = (0, 0, 0, 0)


class RasterSurface:
    """A fixed-size RGBA canvas mutated in place once per frame.

    The processor owns exactly one surface per run and hands it to each
    operation by reference; operations read :attr:`image` and write back
    with :meth:`replace` or by drawing on :attr:`image` directly.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ProcessingError(f"Cannot allocate a {width}x{height} surface")
        try:
            self._image = Image.new("RGBA", (width, height), TRANSPARENT)
        except (MemoryError, ValueError) as e:
            raise ProcessingError(
                f"Cannot allocate a {width}x{height} surface", cause=e
            ) from e
        self.width = width
        self.height = height

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def clear(self) -> None:
        self._image.paste(TRANSPARENT, (0, 0, self.width, self.height))

    def paint(self, bitmap: bytes) -> None:
        """Copy a full-canvas RGBA *bitmap* onto the surface."""
        expected = self.width * self.height * 4
        if len(bitmap) != expected:
            raise ProcessingError(
                f"Bitmap has {len(bitmap)} bytes, surface needs {expected}"
            )
        self._image.frombytes(bitmap)

    def replace(self, image: Image.Image) -> None:
        """Overwrite the surface contents with *image* (same size)."""
        if image.size != self.size:
            raise ProcessingError(
                f"Cannot replace a {self.width}x{self.height} surface with {image.size}"
            )
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self._image.paste(image, (0, 0))

    def tobytes(self) -> bytes:
        return self._image.tobytes()

    def save_png(self, path: Path) -> None:
        self._image.save(path, format="PNG")
