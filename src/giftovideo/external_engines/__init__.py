from .common import CommandResult, run_command
from .ffmpeg import EncodeResult
from .ffmpeg import build_concat_manifest as ffmpeg_build_concat_manifest
from .ffmpeg import build_encode_command as ffmpeg_build_encode_command
from .ffmpeg import encode_video as ffmpeg_encode_video

__all__ = [
    "CommandResult",
    "run_command",
    # FFmpeg
    "EncodeResult",
    "ffmpeg_build_concat_manifest",
    "ffmpeg_build_encode_command",
    "ffmpeg_encode_video",
]
