"""Standardized Error Handling Utilities

Typed errors for each pipeline stage plus helpers that convert foreign
exceptions into them while logging consistent, context-rich messages.
"""

from __future__ import annotations

import logging
import traceback
from contextlib import contextmanager
from enum import Enum
from typing import Any


class ErrorLevel(Enum):
    """Error severity levels for consistent logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class GifToVideoError(Exception):
    """Base exception class for all giftovideo errors."""

    #: Whether retrying the same input could succeed
    transient: bool = False

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
        stage: str | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}
        self.stage = stage

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause:
            return f"{base_msg} (caused by: {self.cause})"
        return base_msg


class DownloadError(GifToVideoError):
    """Raised when a remote asset cannot be fetched."""

    transient = True


class IntegrityError(DownloadError):
    """Raised when downloaded bytes do not match the expected digest."""


class DecodeError(GifToVideoError):
    """Raised when a GIF payload is malformed or empty."""


class ProcessingError(GifToVideoError):
    """Raised when frame rasterization fails."""


class EncodingError(GifToVideoError):
    """Raised when the external encoder fails or produces no output."""


class ConfigurationError(GifToVideoError):
    """Raised when configuration is invalid or missing."""


class PipelineCancelledError(GifToVideoError):
    """Raised when a pipeline deadline expires or it is cancelled."""

    transient = True


def handle_error(
    error: Exception,
    operation: str,
    error_type: type[GifToVideoError] = ProcessingError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
    reraise: bool = True,
    stage: str | None = None,
) -> GifToVideoError | None:
    """Standardized error handling with consistent logging and error transformation.

    Args:
        error: Original exception that occurred
        operation: Description of operation that failed
        error_type: Type of GifToVideoError to raise
        level: Logging level for the error
        context: Additional context information
        logger: Logger to use (defaults to module logger)
        reraise: Whether to reraise the transformed exception
        stage: Pipeline stage the failure belongs to

    Returns:
        The transformed error if reraise=False, otherwise None

    Raises:
        GifToVideoError: Transformed error if reraise=True
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    message = f"Failed to {operation}: {error}"

    error_context = dict(context or {})
    error_context.update(
        {
            "operation": operation,
            "original_error_type": type(error).__name__,
            "original_error_message": str(error),
        }
    )
    if stage:
        error_context["stage"] = stage

    transformed_error = error_type(
        message, cause=error, context=error_context, stage=stage
    )

    log_message = f"🚨 {operation.capitalize()} failed: {error}"
    context_str = ", ".join(f"{k}={v}" for k, v in error_context.items())
    if context_str:
        log_message += f" (context: {context_str})"

    log_func = getattr(logger, level.value)
    log_func(log_message)

    if level in [ErrorLevel.ERROR, ErrorLevel.CRITICAL]:
        logger.debug(f"Traceback for {operation}: {traceback.format_exc()}")

    if reraise:
        raise transformed_error from error
    return transformed_error


@contextmanager
def error_context(
    operation: str,
    error_type: type[GifToVideoError] = ProcessingError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
    stage: str | None = None,
) -> Any:
    """Context manager for standardized error handling.

    Usage:
        with error_context("decode GIF", DecodeError, stage="decoding"):
            risky_operation()

    Errors that are already ``GifToVideoError`` pass through unchanged apart
    from having ``stage`` filled in when it was missing.
    """
    try:
        yield
    except GifToVideoError as e:
        if e.stage is None:
            e.stage = stage
        raise
    except Exception as e:
        handle_error(
            e, operation, error_type, level, context, logger, reraise=True, stage=stage
        )


def log_warning_with_context(
    message: str, context: dict | None = None, logger: logging.Logger | None = None
) -> None:
    """Log a warning with standardized context formatting."""
    if logger is None:
        logger = logging.getLogger(__name__)

    warning_msg = f"⚠️  {message}"
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        warning_msg += f" (context: {context_str})"

    logger.warning(warning_msg)


def log_info_with_context(
    message: str, context: dict | None = None, logger: logging.Logger | None = None
) -> None:
    """Log an info message with standardized context formatting."""
    if logger is None:
        logger = logging.getLogger(__name__)

    info_msg = f"ℹ️  {message}"
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        info_msg += f" (context: {context_str})"

    logger.info(info_msg)
