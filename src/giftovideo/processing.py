"""Render decoded frames through the operation chain onto disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from .cancellation import CancellationToken
from .error_handling import GifToVideoError, ProcessingError
from .io import make_tmpdir, remove_tree
from .meta import DecodedFrame, GifMetadata
from .operations.base import FrameOperation, FrameWithImageData
from .surface import RasterSurface
from .types import ProcessedFrame

logger = logging.getLogger(__name__)

FRAME_DIR_PREFIX = "gif-frames-"


def frame_filename(index: int) -> str:
    return f"frame-{index:05d}.png"


class FrameProcessingPipeline:
    """Apply an ordered operation chain to each frame and write PNGs.

    One :class:`RasterSurface` is allocated per :meth:`process` call and
    reused for every frame. The output directory is left in place for the
    encoder; the caller removes it (see :attr:`last_output_dir`).
    """

    def __init__(self, operations: Sequence[FrameOperation] | None = None) -> None:
        self.operations: tuple[FrameOperation, ...] = tuple(operations or ())
        self.last_output_dir: Path | None = None

    def process(
        self,
        frames: Iterable[DecodedFrame],
        metadata: GifMetadata,
        tmp_root: Path | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> list[ProcessedFrame]:
        """Rasterize *frames* in order and return their manifest.

        Args:
            frames: Decoded frames, consumed one at a time
            metadata: Canvas dimensions for the shared surface
            tmp_root: Parent for the scoped frame directory (system temp if None)
            cancellation: Polled before each frame

        Returns:
            ProcessedFrame entries ordered by index with cumulative timestamps

        Raises:
            ProcessingError: If the surface cannot be allocated, an operation
                fails, or a frame cannot be written
        """
        surface = RasterSurface(metadata.width, metadata.height)

        try:
            output_dir = make_tmpdir(FRAME_DIR_PREFIX, tmp_root)
        except OSError as e:
            raise ProcessingError(
                f"Cannot create frame directory: {e}", cause=e, context={"tmp_root": tmp_root}
            ) from e
        self.last_output_dir = output_dir

        processed: list[ProcessedFrame] = []
        presentation_timestamp_ms = 0

        try:
            for frame in frames:
                if cancellation is not None:
                    cancellation.raise_if_cancelled("processing")

                expected_index = len(processed)
                if frame.index != expected_index:
                    raise ProcessingError(
                        f"Frame index {frame.index} out of order (expected {expected_index})"
                    )

                surface.clear()
                surface.paint(frame.bitmap)
                self._apply_operations(surface, frame)

                frame_path = output_dir / frame_filename(frame.index)
                try:
                    surface.save_png(frame_path)
                except OSError as e:
                    raise ProcessingError(
                        f"Failed to write frame {frame.index}: {e}",
                        cause=e,
                        context={"path": str(frame_path)},
                    ) from e

                duration_ms = frame.duration_ms
                processed.append(
                    ProcessedFrame(
                        index=frame.index,
                        presentation_timestamp_ms=presentation_timestamp_ms,
                        duration_ms=duration_ms,
                        path=frame_path,
                    )
                )
                presentation_timestamp_ms += duration_ms
        except Exception:
            remove_tree(output_dir)
            self.last_output_dir = None
            raise

        logger.debug(f"Processed {len(processed)} GIF frames into {output_dir}")
        return processed

    def _apply_operations(self, surface: RasterSurface, frame: DecodedFrame) -> None:
        frame_with_image = FrameWithImageData(frame=frame, surface=surface)
        for operation in self.operations:
            try:
                operation.apply(surface, frame_with_image)
            except GifToVideoError:
                raise
            except Exception as e:
                raise ProcessingError(
                    f"Operation '{operation.name}' failed on frame {frame.index}: {e}",
                    cause=e,
                    context={"operation": operation.name, "frame_index": frame.index},
                ) from e
