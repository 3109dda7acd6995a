"""Metadata records and hashing for GIF payloads."""

import hashlib
from dataclasses import dataclass, field


@dataclass(frozen=True)
class GifMetadata:
    """Canvas information shared by every frame of a decoded GIF."""

    width: int
    height: int
    frame_count: int = 0
    # 0 = infinite, None = no NETSCAPE loop block
    loop_count: int | None = None

    @property
    def bitmap_size(self) -> int:
        """Byte length of one full-canvas RGBA bitmap."""
        return self.width * self.height * 4


@dataclass
class DecodedFrame:
    """A full-canvas RGBA raster for one point in the animation."""

    index: int
    bitmap: bytes = field(repr=False)
    delay_centiseconds: int
    disposal_type: int
    width: int
    height: int

    @property
    def duration_ms(self) -> int:
        return self.delay_centiseconds * 10


def compute_sha256(data: bytes) -> str:
    """Return the SHA256 hex digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def digests_match(expected: str, actual: str) -> bool:
    """Compare two hex digests ignoring case and surrounding whitespace."""
    return expected.strip().lower() == actual.strip().lower()
