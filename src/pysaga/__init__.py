"""pysaga - Async air and sea situational picture engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysaga")
except PackageNotFoundError:
    __version__ = "0+local"
from pysaga.config import AuthorityConfig, BoundingBox, SagaConfig
from pysaga.exceptions import (
    SagaAuthError,
    SagaConfigError,
    SagaError,
    SagaFetchError,
    SagaMalformedRecordError,
)
from pysaga.feeds import BarentsWatchFeed, FeedAdapter, OpenSkyFeed
from pysaga.interpolation import InterpolationEngine, InterpolationPolicy
from pysaga.models import (
    AisPosition,
    Credential,
    Entity,
    OpenSkyStateVector,
    PlanarPoint,
    Track,
    TrackCategory,
)
from pysaga.orchestrator import FeedStatus, Orchestrator
from pysaga.projection import project, unproject
from pysaga.state import TrackStore
from pysaga.token_cache import TokenCache

__all__ = [
    "__version__",
    "AisPosition",
    "AuthorityConfig",
    "BarentsWatchFeed",
    "BoundingBox",
    "Credential",
    "Entity",
    "FeedAdapter",
    "FeedStatus",
    "InterpolationEngine",
    "InterpolationPolicy",
    "OpenSkyFeed",
    "OpenSkyStateVector",
    "Orchestrator",
    "PlanarPoint",
    "SagaAuthError",
    "SagaConfig",
    "SagaConfigError",
    "SagaError",
    "SagaFetchError",
    "SagaMalformedRecordError",
    "TokenCache",
    "Track",
    "TrackCategory",
    "TrackStore",
    "project",
    "unproject",
]
