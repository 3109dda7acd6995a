"""Abstract interface for per-frame transformations.

Operations are applied in the order the caller lists them; each sees the
cumulative result of the operations before it on the shared surface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..meta import DecodedFrame
from ..surface import RasterSurface


@dataclass
class FrameWithImageData:
    """A decoded frame paired with the surface it is currently painted on.

    Only valid while the operation chain runs for that frame.
    """

    frame: DecodedFrame
    surface: RasterSurface

    @property
    def index(self) -> int:
        return self.frame.index

    @property
    def delay_centiseconds(self) -> int:
        return self.frame.delay_centiseconds


class FrameOperation(ABC):
    """Common behaviour for any per-frame transformation.

    Sub-classes should *not* do expensive work in the constructor; state
    that has to survive across frames (e.g. a loaded overlay image) lives on
    the instance and is populated lazily.
    """

    #: Human-readable name used in logs and error context
    NAME: str = "operation"

    @property
    def name(self) -> str:
        return self.NAME

    @abstractmethod
    def apply(self, surface: RasterSurface, frame: FrameWithImageData) -> None:
        """Mutate *surface* in place for the current *frame*."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
