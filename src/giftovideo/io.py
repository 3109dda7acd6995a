"""I/O utilities for logging setup, atomic writes and temporary directories."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from shutil import move

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Path | None = None, log_level: str = "INFO") -> logging.Logger:
    """Set up logging configuration for hosts embedding giftovideo.

    Args:
        log_dir: Directory to store log files; stream-only logging when None
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        handlers.append(logging.FileHandler(log_dir / f"giftovideo_{timestamp}.log"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    return logging.getLogger("giftovideo")


@contextmanager
def atomic_write(target_path: Path, mode: str = "w"):
    """Context manager for atomic file writes using temporary files.

    Args:
        target_path: Final path where file should be written
        mode: File open mode

    Yields:
        File handle for writing
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode=mode,
        dir=target_path.parent,
        delete=False,
        suffix=f".tmp_{target_path.name}",
    ) as temp_file:
        try:
            yield temp_file
            temp_file.flush()
        except Exception:
            Path(temp_file.name).unlink(missing_ok=True)
            raise
    move(temp_file.name, target_path)


def make_tmpdir(prefix: str, root: Path | None = None) -> Path:
    """Create a uniquely named directory under *root* (system temp dir if None).

    The returned path is always absolute, even for a relative *root*; frame
    paths built from it are handed to FFmpeg, which resolves relative entries
    against the manifest directory.
    """
    if root is not None:
        root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix=prefix, dir=root)).resolve()


def remove_tree(path: Path | None) -> None:
    """Remove *path* recursively, logging rather than raising on failure."""
    if path is None or not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"⚠️  Could not remove temporary directory {path}: {e}")

