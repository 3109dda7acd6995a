"""GIF → video orchestration with still-image fallback.

The pipeline walks FETCHING → DECODING → PROCESSING → ENCODING and ends in
SUCCEEDED (a video was written) or FELL_BACK (a still image replaces it).
Every stage failure becomes a typed ``GifToVideoError`` carrying the stage
name; whether it turns into a fallback or propagates is decided solely by
``GifToVideoOptions.still_fallback``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from .cancellation import CancellationToken
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .decode import GifFrameDecoder
from .error_handling import (
    DecodeError,
    DownloadError,
    EncodingError,
    GifToVideoError,
    ProcessingError,
    error_context,
    log_info_with_context,
    log_warning_with_context,
)
from .external_engines.ffmpeg import EncodeResult, encode_video
from .fetch import RemoteAssetFetcher
from .io import make_tmpdir, remove_tree
from .meta import DecodedFrame, GifMetadata
from .processing import FrameProcessingPipeline
from .still import render_still
from .types import (
    GifToVideoOptions,
    PipelineDiagnostics,
    PipelineResult,
    PipelineStage,
    ProcessedFrame,
)

logger = logging.getLogger(__name__)

VIDEO_DIR_PREFIX = "gif-video-"

Encoder = Callable[..., EncodeResult]


@dataclass
class _RunState:
    """Per-invocation scratch data; never shared between runs."""

    token: CancellationToken
    diagnostics: PipelineDiagnostics = field(default_factory=PipelineDiagnostics)
    stage: PipelineStage = PipelineStage.FETCHING
    metadata: GifMetadata | None = None
    first_frame: DecodedFrame | None = None
    # summed delay of the frames pulled from the decoder so far
    decoded_ms: int = 0
    frame_dir: Path | None = None


class GifToVideoPipeline:
    """Convert a remote GIF into a video, or a still image when that fails.

    Args:
        fetcher: Downloads the source (a default RemoteAssetFetcher if None)
        decoder: Splits the GIF into frames (GifFrameDecoder if None)
        engine_config: Locates FFmpeg and bounds its run time
        encoder: Callable with the signature of ``encode_video``
    """

    def __init__(
        self,
        fetcher: RemoteAssetFetcher | None = None,
        decoder: GifFrameDecoder | None = None,
        engine_config: EngineConfig | None = None,
        encoder: Encoder = encode_video,
    ) -> None:
        self.fetcher = fetcher or RemoteAssetFetcher()
        self.decoder = decoder or GifFrameDecoder()
        self.engine_config = engine_config or DEFAULT_ENGINE_CONFIG
        self._encoder = encoder

    def execute(self, options: GifToVideoOptions) -> PipelineResult:
        """Run the whole conversion for *options*.

        Returns:
            PipelineResult with ``output_path`` set on success, or
            ``fallback_used=True`` and ``still_path`` set on a degraded run

        Raises:
            GifToVideoError: The failing stage's typed error, only when
                ``options.still_fallback`` is False
        """
        state = _RunState(
            token=CancellationToken(options.deadline_seconds, parent=options.cancellation)
        )
        frames: Iterator[DecodedFrame] | None = None

        try:
            try:
                with self._stage(state, PipelineStage.FETCHING, "download GIF", DownloadError):
                    download = self.fetcher.fetch(options.source, cancellation=state.token)

                with self._stage(state, PipelineStage.DECODING, "decode GIF", DecodeError):
                    metadata, frames = self.decoder.decode(download.buffer)
                    state.metadata = metadata
                    del download

                with self._stage(state, PipelineStage.PROCESSING, "process frames", ProcessingError):
                    processed = self._process(state, metadata, frames, options)

                with self._stage(state, PipelineStage.ENCODING, "encode video", EncodingError):
                    state.token.raise_if_cancelled(PipelineStage.ENCODING.value)
                    encoded = self._encode(state, processed, options)
            except GifToVideoError as error:
                return self._fall_back_or_raise(state, error, options)

            if not encoded.succeeded:
                error = encoded.error or EncodingError(
                    "Encoder returned no video", stage=PipelineStage.ENCODING.value
                )
                return self._fall_back_or_raise(state, error, options)

            return self._succeed(state, processed, encoded)
        finally:
            if frames is not None and hasattr(frames, "close"):
                frames.close()
            remove_tree(state.frame_dir)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @contextmanager
    def _stage(
        self,
        state: _RunState,
        stage: PipelineStage,
        operation: str,
        error_type: type[GifToVideoError],
    ):
        state.stage = stage
        state.diagnostics.states.append(stage)
        state.token.raise_if_cancelled(stage.value)
        start = time.perf_counter()
        try:
            with error_context(
                operation, error_type, context={"stage": stage.value}, logger=logger, stage=stage.value
            ):
                yield
        finally:
            state.diagnostics.stage_ms[stage.value] = round(
                (time.perf_counter() - start) * 1000, 2
            )

    def _process(
        self,
        state: _RunState,
        metadata: GifMetadata,
        frames: Iterator[DecodedFrame],
        options: GifToVideoOptions,
    ) -> list[ProcessedFrame]:
        def track(source: Iterator[DecodedFrame]) -> Iterator[DecodedFrame]:
            for frame in source:
                if state.first_frame is None:
                    state.first_frame = frame
                state.decoded_ms += frame.duration_ms
                yield frame

        processor = FrameProcessingPipeline(options.operations)
        processed = processor.process(
            track(frames),
            metadata,
            options.tmp_dir,
            cancellation=state.token,
        )
        state.frame_dir = processor.last_output_dir
        return processed

    def _encode(
        self,
        state: _RunState,
        processed: list[ProcessedFrame],
        options: GifToVideoOptions,
    ) -> EncodeResult:
        if state.frame_dir is None:
            return EncodeResult.failure("No frame directory to encode from")
        output_dir = make_tmpdir(VIDEO_DIR_PREFIX, options.tmp_dir)
        result = self._encoder(
            processed,
            options.encoding,
            work_dir=state.frame_dir,
            output_dir=output_dir,
            timeout=state.token.clamp(self.engine_config.ENCODE_TIMEOUT_SECONDS),
            engine_config=self.engine_config,
        )
        if not result.succeeded:
            remove_tree(output_dir)
        return result

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    def _succeed(
        self, state: _RunState, processed: list[ProcessedFrame], encoded: EncodeResult
    ) -> PipelineResult:
        diagnostics = state.diagnostics
        diagnostics.states.append(PipelineStage.SUCCEEDED)
        diagnostics.frame_count = len(processed)
        diagnostics.duration_ms = sum(frame.duration_ms for frame in processed)
        diagnostics.file_size_bytes = encoded.file_size_bytes

        stage_ms = diagnostics.stage_ms
        log_info_with_context(
            "gif-to-video pipeline completed",
            context={
                "total_ms": round(diagnostics.total_ms, 1),
                "download_ms": stage_ms.get("fetching", 0.0),
                "decode_ms": stage_ms.get("decoding", 0.0),
                "process_ms": stage_ms.get("processing", 0.0),
                "encode_ms": stage_ms.get("encoding", 0.0),
                "frames": diagnostics.frame_count,
            },
            logger=logger,
        )
        return PipelineResult(
            output_path=encoded.output_path,
            fallback_used=False,
            diagnostics=diagnostics,
        )

    def _fall_back_or_raise(
        self, state: _RunState, error: GifToVideoError, options: GifToVideoOptions
    ) -> PipelineResult:
        if error.stage is None:
            error.stage = state.stage.value

        diagnostics = state.diagnostics
        try:
            diagnostics.failed_stage = PipelineStage(error.stage)
        except ValueError:
            # stage names chosen by caller-supplied operations
            diagnostics.failed_stage = state.stage
        if state.metadata is not None:
            diagnostics.frame_count = state.metadata.frame_count
            diagnostics.duration_ms = state.decoded_ms
        diagnostics.error = str(error)
        diagnostics.error_transient = error.transient

        if not options.still_fallback:
            logger.error(f"🚨 gif-to-video pipeline failed in {error.stage}: {error}")
            raise error

        log_warning_with_context(
            "gif-to-video pipeline falling back to still image",
            context={
                "stage": error.stage,
                "error_type": type(error).__name__,
                "error": error,
            },
            logger=logger,
        )
        with error_context("render fallback still", ProcessingError, logger=logger):
            still_path = render_still(
                state.first_frame,
                state.metadata,
                fmt=options.still_fallback_format,
                tmp_root=options.tmp_dir,
            )

        diagnostics.states.append(PipelineStage.FELL_BACK)
        return PipelineResult(
            output_path=None,
            fallback_used=True,
            diagnostics=diagnostics,
            still_path=still_path,
        )
