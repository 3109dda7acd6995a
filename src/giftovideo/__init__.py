"""giftovideo - convert remote animated GIFs into video files."""

__version__: str = "0.1.0"

# Public re-exports for convenience ---------------------------------------------------

from .cancellation import CancellationToken
from .config import (
    DEFAULT_ENGINE_CONFIG,
    DEFAULT_FETCHER_CONFIG,
    EngineConfig,
    FetcherConfig,
)
from .decode import GifFrameDecoder
from .error_handling import (
    ConfigurationError,
    DecodeError,
    DownloadError,
    EncodingError,
    GifToVideoError,
    IntegrityError,
    PipelineCancelledError,
    ProcessingError,
)
from .fetch import RemoteAssetFetcher
from .meta import DecodedFrame, GifMetadata
from .operations import (
    BlurOperation,
    FrameOperation,
    FrameWithImageData,
    OverlayImageOperation,
    SaturationOperation,
)
from .pipeline import GifToVideoPipeline
from .processing import FrameProcessingPipeline
from .surface import RasterSurface
from .types import (
    EncodingConfig,
    GifDownloadResult,
    GifSource,
    GifToVideoOptions,
    PipelineDiagnostics,
    PipelineResult,
    PipelineStage,
    ProcessedFrame,
)

__all__ = [
    "CancellationToken",
    "DEFAULT_ENGINE_CONFIG",
    "DEFAULT_FETCHER_CONFIG",
    "EngineConfig",
    "FetcherConfig",
    "GifFrameDecoder",
    "ConfigurationError",
    "DecodeError",
    "DownloadError",
    "EncodingError",
    "GifToVideoError",
    "IntegrityError",
    "PipelineCancelledError",
    "ProcessingError",
    "RemoteAssetFetcher",
    "DecodedFrame",
    "GifMetadata",
    "BlurOperation",
    "FrameOperation",
    "FrameWithImageData",
    "OverlayImageOperation",
    "SaturationOperation",
    "GifToVideoPipeline",
    "FrameProcessingPipeline",
    "RasterSurface",
    "EncodingConfig",
    "GifDownloadResult",
    "GifSource",
    "GifToVideoOptions",
    "PipelineDiagnostics",
    "PipelineResult",
    "PipelineStage",
    "ProcessedFrame",
]
