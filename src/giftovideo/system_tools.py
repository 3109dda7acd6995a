"""Locate the FFmpeg binary before the encoder builds a command line.

A missing binary then surfaces as a typed encoding failure instead of an
opaque ``FileNotFoundError`` from ``subprocess``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from shutil import which

logger = logging.getLogger(__name__)

FFMPEG_FALLBACK = "ffmpeg"


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """An external binary and where it was found, if anywhere."""

    name: str
    available: bool
    path: str | None = None


def discover_ffmpeg(engine_config=None) -> ToolInfo:
    """Resolve FFmpeg from ``EngineConfig.FFMPEG_PATH``, then from ``$PATH``.

    Args:
        engine_config: EngineConfig instance (uses DEFAULT_ENGINE_CONFIG if None)

    Returns:
        ToolInfo naming the command to run; ``available`` is False when
        neither the configured path nor a plain ``ffmpeg`` resolves
    """
    if engine_config is None:
        from .config import DEFAULT_ENGINE_CONFIG

        engine_config = DEFAULT_ENGINE_CONFIG

    configured = engine_config.FFMPEG_PATH
    for candidate in dict.fromkeys([configured, FFMPEG_FALLBACK]):
        resolved = which(candidate)
        if resolved:
            if candidate != configured:
                logger.warning(
                    f"⚠️  Configured FFmpeg '{configured}' not found, using {resolved}"
                )
            return ToolInfo(name=candidate, available=True, path=resolved)

    return ToolInfo(name=configured, available=False)
