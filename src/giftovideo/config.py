"""Configuration settings for giftovideo."""

import os
from dataclasses import dataclass

from .error_handling import ConfigurationError


def _env_override(config: object, overrides: dict[str, str]) -> None:
    """Apply environment variable overrides, coercing to the field's current type."""
    for attr_name, env_var_name in overrides.items():
        env_value = os.getenv(env_var_name)
        if not env_value:
            continue
        current = getattr(config, attr_name)
        try:
            if isinstance(current, bool):
                value: object = env_value.lower() in {"1", "true", "yes"}
            elif isinstance(current, int):
                value = int(env_value)
            elif isinstance(current, float):
                value = float(env_value)
            else:
                value = env_value
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {env_var_name}: {env_value!r}", cause=e
            ) from e
        setattr(config, attr_name, value)


@dataclass
class FetcherConfig:
    """Download limits for remote GIF sources with environment variable overrides."""

    # Hard byte budget for a single download (declared and streamed).
    # Override with: GIFTOVIDEO_MAX_BYTES
    MAX_BYTES: int = 20 * 1024 * 1024

    # Retries after the first attempt (total attempts = MAX_RETRIES + 1).
    # Override with: GIFTOVIDEO_MAX_RETRIES
    MAX_RETRIES: int = 3

    # Per-attempt timeout.
    # Override with: GIFTOVIDEO_TIMEOUT_SECONDS
    TIMEOUT_SECONDS: float = 10.0

    # Linear backoff unit; attempt N sleeps BACKOFF_SECONDS * N.
    # Override with: GIFTOVIDEO_BACKOFF_SECONDS
    BACKOFF_SECONDS: float = 0.5

    USER_AGENT: str = "giftovideo/0.1 (+https://github.com/giftovideo/giftovideo)"
    ACCEPT: str = "image/gif"

    def __post_init__(self) -> None:
        _env_override(
            self,
            {
                "MAX_BYTES": "GIFTOVIDEO_MAX_BYTES",
                "MAX_RETRIES": "GIFTOVIDEO_MAX_RETRIES",
                "TIMEOUT_SECONDS": "GIFTOVIDEO_TIMEOUT_SECONDS",
                "BACKOFF_SECONDS": "GIFTOVIDEO_BACKOFF_SECONDS",
                "USER_AGENT": "GIFTOVIDEO_USER_AGENT",
            },
        )

        if self.MAX_BYTES <= 0:
            raise ConfigurationError(f"MAX_BYTES must be positive, got {self.MAX_BYTES}")
        if self.MAX_RETRIES < 0:
            raise ConfigurationError(
                f"MAX_RETRIES must be non-negative, got {self.MAX_RETRIES}"
            )
        if self.TIMEOUT_SECONDS <= 0:
            raise ConfigurationError(
                f"TIMEOUT_SECONDS must be positive, got {self.TIMEOUT_SECONDS}"
            )
        if self.BACKOFF_SECONDS < 0:
            raise ConfigurationError(
                f"BACKOFF_SECONDS must be non-negative, got {self.BACKOFF_SECONDS}"
            )


@dataclass
class EngineConfig:
    """Configuration for encoder paths with environment variable overrides."""

    # Path to FFmpeg executable.
    # Usually "ffmpeg" works if installed via package manager
    # Override with: GIFTOVIDEO_FFMPEG_PATH
    FFMPEG_PATH: str = "ffmpeg"

    # Hard limit for one encoder run; None disables the limit.
    # Override with: GIFTOVIDEO_ENCODE_TIMEOUT_SECONDS
    ENCODE_TIMEOUT_SECONDS: float | None = 120.0

    def __post_init__(self) -> None:
        _env_override(
            self,
            {
                "FFMPEG_PATH": "GIFTOVIDEO_FFMPEG_PATH",
            },
        )
        timeout_env = os.getenv("GIFTOVIDEO_ENCODE_TIMEOUT_SECONDS")
        if timeout_env:
            try:
                self.ENCODE_TIMEOUT_SECONDS = float(timeout_env)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for GIFTOVIDEO_ENCODE_TIMEOUT_SECONDS: {timeout_env!r}",
                    cause=e,
                ) from e

        if self.ENCODE_TIMEOUT_SECONDS is not None and self.ENCODE_TIMEOUT_SECONDS <= 0:
            raise ConfigurationError(
                f"ENCODE_TIMEOUT_SECONDS must be positive, got {self.ENCODE_TIMEOUT_SECONDS}"
            )


# Default configuration instances
DEFAULT_FETCHER_CONFIG = FetcherConfig()
DEFAULT_ENGINE_CONFIG = EngineConfig()
