"""Fused, in-memory representation of one tracked object."""

from __future__ import annotations

import math
from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from pysaga.models.track import Track, TrackCategory


class PlanarPoint(NamedTuple):
    """A position in the projected (EPSG:3857) plane, in metres."""

    x: float
    y: float

    def distance_to(self, other: PlanarPoint) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


class Entity(BaseModel):
    """TrackStore record for one real-world object.

    Entities are immutable snapshots; the store swaps in a new instance on
    every change so readers always see a consistent set of fields.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    latest_track: Track
    displayed: PlanarPoint
    target: PlanarPoint
    last_seen_at: datetime

    @property
    def category(self) -> TrackCategory:
        return self.latest_track.category

    @property
    def gap(self) -> float:
        """Planar distance still to cover between displayed and target."""
        return self.displayed.distance_to(self.target)
