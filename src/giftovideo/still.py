"""Still-image fallback used when video conversion is abandoned."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from .io import make_tmpdir
from .meta import DecodedFrame, GifMetadata

logger = logging.getLogger(__name__)

FALLBACK_DIR_PREFIX = "gif-fallback-"
PLACEHOLDER_SIZE = (64, 64)
PLACEHOLDER_COLOR = (128, 128, 128, 255)
JPEG_QUALITY = 90


def frame_to_image(frame: DecodedFrame) -> Image.Image:
    return Image.frombytes("RGBA", (frame.width, frame.height), frame.bitmap)


def placeholder_image(metadata: GifMetadata | None = None) -> Image.Image:
    """Neutral image sized to the GIF canvas when known."""
    size = (metadata.width, metadata.height) if metadata else PLACEHOLDER_SIZE
    return Image.new("RGBA", size, PLACEHOLDER_COLOR)


def render_still(
    frame: DecodedFrame | None,
    metadata: GifMetadata | None = None,
    *,
    fmt: str = "png",
    tmp_root: Path | None = None,
) -> Path:
    """Write the best available still image and return its path.

    Args:
        frame: First decoded frame, or None when decoding never produced one
        metadata: Canvas info for the placeholder when *frame* is None
        fmt: "png" (keeps alpha) or "jpeg" (flattened onto black)
        tmp_root: Parent of the fallback directory (system temp if None)

    Returns:
        Path of the written still; the caller owns it.
    """
    if frame is not None:
        image = frame_to_image(frame)
        source = f"frame {frame.index}"
    else:
        image = placeholder_image(metadata)
        source = "placeholder"

    output_dir = make_tmpdir(FALLBACK_DIR_PREFIX, tmp_root)
    path = output_dir / f"fallback.{fmt}"

    if fmt == "jpeg":
        background = Image.new("RGB", image.size, (0, 0, 0))
        background.paste(image, mask=image.getchannel("A"))
        background.save(path, format="JPEG", quality=JPEG_QUALITY)
    else:
        image.save(path, format="PNG")

    logger.info(f"ℹ️  Wrote fallback still from {source} to {path}")
    return path
