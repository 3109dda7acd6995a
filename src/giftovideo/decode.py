"""Decode GIF payloads into full-canvas RGBA frames."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

from PIL import Image, UnidentifiedImageError

from .error_handling import DecodeError
from .meta import DecodedFrame, GifMetadata

logger = logging.getLogger(__name__)

# Safety limit against corrupted files that never report EOF
MAX_FRAMES = 10000


class GifFrameDecoder:
    """Parse a GIF byte buffer into metadata plus a lazy frame sequence.

    Pillow composites every sub-image against the running canvas using the
    GIF89a disposal method of the *previous* frame (leave in place, restore
    to background, restore to previous), so each yielded frame is the full
    picture a viewer would see at that point of the animation rather than a
    delta patch.
    """

    def decode(self, buffer: bytes) -> tuple[GifMetadata, Iterator[DecodedFrame]]:
        """Validate *buffer* and return its metadata and frame iterator.

        Header problems raise immediately; problems with individual frames
        raise ``DecodeError`` while the iterator is consumed.

        Raises:
            DecodeError: If the payload is not a GIF, has no frames, or has
                an empty canvas
        """
        if not buffer:
            raise DecodeError("Cannot decode an empty GIF payload")

        try:
            img = Image.open(io.BytesIO(buffer))
        except (UnidentifiedImageError, OSError, ValueError, EOFError) as e:
            raise DecodeError(f"Unparseable GIF header: {e}", cause=e) from e

        try:
            if img.format != "GIF":
                raise DecodeError(f"Payload is not a GIF (detected {img.format})")

            width, height = img.size
            if width <= 0 or height <= 0:
                raise DecodeError(f"Invalid GIF canvas {width}x{height}")

            try:
                frame_count = getattr(img, "n_frames", 1)
            except (EOFError, OSError, ValueError) as e:
                raise DecodeError(f"Error counting frames in GIF: {e}", cause=e) from e
            if frame_count <= 0:
                raise DecodeError("GIF contains no frames")
            if frame_count > MAX_FRAMES:
                raise DecodeError(
                    f"GIF appears to have excessive frames ({frame_count}), possibly corrupted"
                )

            metadata = GifMetadata(
                width=width,
                height=height,
                frame_count=frame_count,
                loop_count=img.info.get("loop"),
            )
        except Exception:
            img.close()
            raise

        logger.debug(
            f"Decoded GIF header: {width}x{height}, {frame_count} frames, loop={metadata.loop_count}"
        )
        return metadata, self._iter_frames(img, metadata)

    def _iter_frames(
        self, img: Image.Image, metadata: GifMetadata
    ) -> Iterator[DecodedFrame]:
        with img:
            for index in range(metadata.frame_count):
                try:
                    img.seek(index)
                    rgba = img.convert("RGBA")
                except (EOFError, OSError, ValueError) as e:
                    raise DecodeError(
                        f"Error decoding frame {index}: {e}",
                        cause=e,
                        context={"frame_index": index},
                    ) from e

                if rgba.size != (metadata.width, metadata.height):
                    raise DecodeError(
                        f"Frame {index} is {rgba.size[0]}x{rgba.size[1]}, "
                        f"canvas is {metadata.width}x{metadata.height}",
                        context={"frame_index": index},
                    )

                duration_ms = img.info.get("duration") or 0
                # Zero-delay frames play at the shortest representable delay
                delay_centiseconds = int(duration_ms) // 10 or 1

                yield DecodedFrame(
                    index=index,
                    bitmap=rgba.tobytes(),
                    delay_centiseconds=delay_centiseconds,
                    disposal_type=getattr(img, "disposal_method", 0),
                    width=metadata.width,
                    height=metadata.height,
                )
