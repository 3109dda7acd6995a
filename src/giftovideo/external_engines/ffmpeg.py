from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..error_handling import EncodingError
from ..io import atomic_write
from ..system_tools import discover_ffmpeg
from ..types import EncodingConfig, ProcessedFrame
from .common import CommandResult, run_command

__all__ = [
    "EncodeResult",
    "build_concat_manifest",
    "build_encode_command",
    "encode_video",
]

logger = logging.getLogger(__name__)

MANIFEST_NAME = "frames.ffconcat"

_CODEC_ENCODERS: dict[str, str] = {
    "h264": "libx264",
    "vp9": "libvpx-vp9",
    "av1": "libaom-av1",
}

# libaom speed knob: lower is slower / better
_PRESET_CPU_USED: dict[str, str] = {
    "ultrafast": "8",
    "superfast": "7",
    "veryfast": "6",
    "faster": "5",
    "fast": "4",
    "medium": "3",
    "slow": "2",
    "slower": "1",
    "veryslow": "0",
}


@dataclass(frozen=True)
class EncodeResult:
    """Typed outcome of an encoder run: a video path or an ``EncodingError``."""

    output_path: Path | None
    error: EncodingError | None = None
    file_size_bytes: int | None = None
    command: CommandResult | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.output_path is not None

    @property
    def render_ms(self) -> int | None:
        return self.command.render_ms if self.command else None

    @classmethod
    def failure(
        cls, message: str, *, command: CommandResult | None = None, **context
    ) -> EncodeResult:
        return cls(
            output_path=None,
            error=EncodingError(message, context=context, stage="encoding"),
            command=command,
        )


def _quote(path: Path) -> str:
    # relative entries would resolve against the manifest directory
    return "'" + str(path.absolute()).replace("'", "'\\''") + "'"


def build_concat_manifest(frames: Sequence[ProcessedFrame]) -> str:
    """Build an ``ffconcat`` script listing each frame with its duration.

    The concat demuxer ignores the duration of the final entry, so the last
    file is listed a second time to keep its display time.
    """
    lines = ["ffconcat version 1.0"]
    for frame in frames:
        lines.append(f"file {_quote(frame.path)}")
        lines.append(f"duration {frame.duration_ms / 1000:.6f}")
    if frames:
        lines.append(f"file {_quote(frames[-1].path)}")
    return "\n".join(lines) + "\n"


def _codec_options(config: EncodingConfig) -> list[str]:
    options: list[str] = []

    if config.codec == "h264":
        options += ["-profile:v", "high", "-bf", "2", "-g", "120", "-movflags", "+faststart"]
        options += ["-preset", config.preset or "slow"]
        options += ["-crf", str(config.crf if config.crf is not None else 18)]
        if config.bitrate:
            options += ["-b:v", config.bitrate]

    elif config.codec == "vp9":
        options += ["-b:v", config.bitrate or "0"]
        options += ["-crf", str(config.crf if config.crf is not None else 32)]
        # libvpx has no x264-style presets; "good" is its balanced deadline
        options += ["-deadline", "good"]
        options += ["-row-mt", "1"]

    elif config.codec == "av1":
        options += ["-b:v", config.bitrate or "0"]
        options += ["-crf", str(config.crf if config.crf is not None else 30)]
        options += ["-cpu-used", _PRESET_CPU_USED.get(config.preset or "", "4")]
        options += ["-tile-columns", "2", "-tile-rows", "1"]

    return options


def build_encode_command(
    ffmpeg: str, manifest_path: Path, output_path: Path, config: EncodingConfig
) -> list[str]:
    """Return the FFmpeg command muxing the concat manifest into *output_path*."""
    cmd = [ffmpeg, "-y", "-v", "error"]

    if config.hardware_acceleration and config.hardware_acceleration != "none":
        cmd += ["-hwaccel", config.hardware_acceleration]

    cmd += ["-f", "concat", "-safe", "0", "-i", str(manifest_path)]
    cmd += ["-c:v", _CODEC_ENCODERS[config.codec]]
    # 4:2:0 chroma subsampling needs even dimensions
    cmd += ["-vf", "pad=ceil(iw/2)*2:ceil(ih/2)*2"]
    cmd += ["-pix_fmt", config.pixel_format]
    cmd += _codec_options(config)
    cmd += ["-fps_mode", "vfr"]
    cmd += ["-f", config.format]
    cmd += list(config.extra_flags)
    cmd.append(str(output_path))
    return cmd


def encode_video(
    frames: Sequence[ProcessedFrame],
    config: EncodingConfig,
    *,
    work_dir: Path,
    output_dir: Path,
    timeout: float | None = None,
    engine_config=None,
) -> EncodeResult:
    """Encode the processed-frame manifest into a video file.

    Args:
        frames: Ordered frames on disk
        config: Container/codec settings, passed through to FFmpeg
        work_dir: Scoped directory for the concat manifest
        output_dir: Directory receiving ``output.<format>``
        timeout: Hard limit for the FFmpeg process
        engine_config: EngineConfig used to locate FFmpeg

    Returns:
        EncodeResult with ``output_path`` on success or ``error`` on failure.
        Nothing is raised for encoder failures.
    """
    if not frames:
        return EncodeResult.failure("No frames to encode")

    tool = discover_ffmpeg(engine_config)
    if not tool.available:
        return EncodeResult.failure(
            f"Required tool '{tool.name}' not found in PATH", tool=tool.name
        )

    manifest_path = work_dir / MANIFEST_NAME
    try:
        with atomic_write(manifest_path) as f:
            f.write(build_concat_manifest(frames))
    except OSError as e:
        return EncodeResult.failure(f"Cannot write concat manifest: {e}", path=str(manifest_path))

    output_path = output_dir / f"output.{config.extension}"
    cmd = build_encode_command(tool.name, manifest_path, output_path, config)
    logger.debug(f"FFmpeg started ({tool.path}): {' '.join(cmd)}")

    result = run_command(cmd, engine="ffmpeg", output_path=output_path, timeout=timeout)
    if not result.succeeded:
        logger.error(f"FFmpeg failed: {result.error}")
        return EncodeResult.failure(
            result.error or "ffmpeg failed", command=result, returncode=result.returncode
        )

    try:
        size = output_path.stat().st_size
    except OSError:
        size = 0
    if size <= 0:
        return EncodeResult.failure(
            f"FFmpeg produced no output at {output_path}", command=result
        )

    if config.max_file_size_bytes is not None and size > config.max_file_size_bytes:
        return EncodeResult.failure(
            f"Encoded file exceeds limit ({size} > {config.max_file_size_bytes} bytes)",
            command=result,
            file_size_bytes=size,
        )

    logger.debug(f"FFmpeg completed in {result.render_ms} ms ({size} bytes)")
    return EncodeResult(output_path=output_path, file_size_bytes=size, command=result)
