from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "CommandResult",
    "run_command",
]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command; never raised, always returned."""

    engine: str
    command: list[str]
    returncode: int | None
    stdout: str
    stderr: str
    render_ms: int
    kilobytes: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.returncode == 0


def run_command(
    cmd: list[str], *, engine: str, output_path: Path, timeout: float | None = 60
) -> CommandResult:
    """Execute *cmd* and describe how it went.

    The helper blocks until *cmd* completes. A missing binary, a timeout and
    a non-zero exit are all reported through ``CommandResult.error`` instead
    of an exception, so callers branch on :attr:`CommandResult.succeeded`.

    Parameters
    ----------
    cmd
        Full command as a list of strings (preferred over shell=True).
    engine
        Human-readable engine key, e.g. "ffmpeg".
    output_path
        Path expected to be produced by the command – used to calculate the
        final file size in kilobytes.
    timeout
        Optional hard timeout (seconds) – *None* disables the limit.
    """
    start = time.perf_counter()
    returncode: int | None = None
    stdout = stderr = ""
    error: str | None = None

    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        returncode = completed.returncode
        stdout, stderr = completed.stdout, completed.stderr
        if returncode != 0:
            error = (
                f"{engine} command failed (exit {returncode}).\n\n"
                f"STDERR:\n{stderr.strip()}"
            )
    except subprocess.TimeoutExpired as e:
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        error = f"{engine} command timed out after {timeout}s"
    except OSError as e:
        error = f"{engine} command could not be started: {e}"

    duration_ms = int((time.perf_counter() - start) * 1000)

    try:
        size_kb = int(os.path.getsize(output_path) / 1024)
    except OSError:
        size_kb = 0

    return CommandResult(
        engine=engine,
        command=[str(c) for c in cmd],
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        render_ms=duration_ms,
        kilobytes=size_kb,
        error=error,
    )
