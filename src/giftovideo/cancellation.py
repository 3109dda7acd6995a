"""Cooperative cancellation and deadlines for pipeline runs."""

from __future__ import annotations

import threading
import time

from .error_handling import PipelineCancelledError


class CancellationToken:
    """Thread-safe cancel flag with an optional monotonic deadline.

    The pipeline polls the token between stages and between frames, and
    clamps blocking waits (HTTP attempts, the encoder process) to
    :meth:`remaining`. A token created with *parent* is cancelled whenever
    the parent is.
    """

    def __init__(
        self,
        deadline_seconds: float | None = None,
        parent: CancellationToken | None = None,
    ) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._deadline = (
            time.monotonic() + deadline_seconds if deadline_seconds is not None else None
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._reason() is not None

    def _reason(self) -> str | None:
        if self._event.is_set():
            return "cancelled"
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "deadline exceeded"
        if self._parent is not None:
            return self._parent._reason()
        return None

    def remaining(self) -> float | None:
        """Seconds left before the nearest deadline, ``None`` when unbounded."""
        candidates = []
        if self._deadline is not None:
            candidates.append(max(0.0, self._deadline - time.monotonic()))
        if self._parent is not None:
            parent_remaining = self._parent.remaining()
            if parent_remaining is not None:
                candidates.append(parent_remaining)
        return min(candidates) if candidates else None

    def clamp(self, timeout: float | None) -> float | None:
        """Return the smaller of *timeout* and the remaining time."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def raise_if_cancelled(self, stage: str | None = None) -> None:
        reason = self._reason()
        if reason is None:
            return
        raise PipelineCancelledError(
            f"Pipeline {reason}", context={"reason": reason}, stage=stage
        )
