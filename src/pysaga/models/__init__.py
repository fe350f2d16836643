"""Data models for pysaga."""

from pysaga.models._base import FeedRecordModel
from pysaga.models.ais import AisPosition
from pysaga.models.entity import Entity, PlanarPoint
from pysaga.models.opensky import OpenSkyResponse, OpenSkyStateVector
from pysaga.models.token import Credential, TokenResponse
from pysaga.models.track import Track, TrackCategory

__all__ = [
    "AisPosition",
    "Credential",
    "Entity",
    "FeedRecordModel",
    "OpenSkyResponse",
    "OpenSkyStateVector",
    "PlanarPoint",
    "TokenResponse",
    "Track",
    "TrackCategory",
]
