"""Plain-data records exchanged between the pipeline stages and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .error_handling import ConfigurationError

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .operations.base import FrameOperation


SUPPORTED_FORMATS = ("mp4", "webm", "avif")
SUPPORTED_CODECS = ("h264", "vp9", "av1")
SUPPORTED_PRESETS = (
    "ultrafast",
    "superfast",
    "veryfast",
    "faster",
    "fast",
    "medium",
    "slow",
    "slower",
    "veryslow",
)
STILL_FORMATS = ("png", "jpeg")


@dataclass(frozen=True)
class GifSource:
    """Where to download a GIF from and, optionally, what it must hash to."""

    url: str
    headers: dict[str, str] | None = None
    # Expected SHA256 hex digest of the payload
    integrity: str | None = None


@dataclass
class GifDownloadResult:
    buffer: bytes = field(repr=False)
    content_length: int | None = None
    etag: str | None = None
    last_modified: str | None = None


@dataclass(frozen=True)
class ProcessedFrame:
    """One rasterized frame on disk plus its position in the output timeline."""

    index: int
    presentation_timestamp_ms: int
    duration_ms: int
    path: Path


@dataclass(frozen=True)
class EncodingConfig:
    """Output container/codec settings handed to the encoder."""

    format: str = "mp4"
    codec: str = "h264"
    crf: int | None = None
    preset: str | None = None
    pixel_format: str = "yuv420p"
    extra_flags: tuple[str, ...] = ()
    bitrate: str | None = None
    max_file_size_bytes: int | None = None
    hardware_acceleration: str | None = None

    def __post_init__(self) -> None:
        if self.format not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unsupported output format: {self.format} (expected one of {SUPPORTED_FORMATS})"
            )
        if self.codec not in SUPPORTED_CODECS:
            raise ConfigurationError(
                f"Unsupported codec: {self.codec} (expected one of {SUPPORTED_CODECS})"
            )
        if self.preset is not None and self.preset not in SUPPORTED_PRESETS:
            raise ConfigurationError(f"Unsupported preset: {self.preset}")
        if self.crf is not None and self.crf < 0:
            raise ConfigurationError(f"crf must be non-negative, got {self.crf}")
        if self.max_file_size_bytes is not None and self.max_file_size_bytes <= 0:
            raise ConfigurationError(
                f"max_file_size_bytes must be positive, got {self.max_file_size_bytes}"
            )
        # Accept any sequence but store an immutable copy
        object.__setattr__(self, "extra_flags", tuple(self.extra_flags))

    @property
    def extension(self) -> str:
        return self.format


@dataclass(frozen=True)
class GifToVideoOptions:
    """Everything one pipeline invocation needs; immutable for its lifetime."""

    source: GifSource
    operations: tuple[FrameOperation, ...] = ()
    encoding: EncodingConfig = field(default_factory=EncodingConfig)
    still_fallback: bool = True
    still_fallback_format: str = "png"
    tmp_dir: Path | None = None
    deadline_seconds: float | None = None
    cancellation: CancellationToken | None = None

    def __post_init__(self) -> None:
        if self.still_fallback_format not in STILL_FORMATS:
            raise ConfigurationError(
                f"Unsupported still format: {self.still_fallback_format}"
            )
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ConfigurationError(
                f"deadline_seconds must be positive, got {self.deadline_seconds}"
            )
        object.__setattr__(self, "operations", tuple(self.operations))


class PipelineStage(str, Enum):
    FETCHING = "fetching"
    DECODING = "decoding"
    PROCESSING = "processing"
    ENCODING = "encoding"
    SUCCEEDED = "succeeded"
    FELL_BACK = "fell_back"


@dataclass
class PipelineDiagnostics:
    """Timing and failure details recorded while a pipeline runs."""

    states: list[PipelineStage] = field(default_factory=list)
    stage_ms: dict[str, float] = field(default_factory=dict)
    frame_count: int = 0
    duration_ms: int = 0
    file_size_bytes: int | None = None
    failed_stage: PipelineStage | None = None
    error: str | None = None
    error_transient: bool | None = None

    @property
    def total_ms(self) -> float:
        return sum(self.stage_ms.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "states": [s.value for s in self.states],
            "stage_ms": dict(self.stage_ms),
            "total_ms": self.total_ms,
            "frame_count": self.frame_count,
            "duration_ms": self.duration_ms,
            "file_size_bytes": self.file_size_bytes,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
            "error_transient": self.error_transient,
        }


@dataclass
class PipelineResult:
    """Outcome of one pipeline run.

    ``output_path`` is set only when a video was encoded. When conversion was
    abandoned ``fallback_used`` is True and ``still_path`` points to the
    still image that replaces the video.
    """

    output_path: Path | None
    fallback_used: bool
    diagnostics: PipelineDiagnostics
    still_path: Path | None = None

    def __post_init__(self) -> None:
        if (self.output_path is None) == (not self.fallback_used):
            raise ValueError(
                "PipelineResult requires exactly one of output_path or fallback_used"
            )
