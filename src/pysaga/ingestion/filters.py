"""Position filters applied to every normalised track."""

from __future__ import annotations

from pysaga._constants import NULL_ISLAND_EPSILON
from pysaga.config import BoundingBox


def is_null_island(latitude: float, longitude: float, *, epsilon: float = NULL_ISLAND_EPSILON) -> bool:
    """True for the "no fix" sentinel: both coordinates within *epsilon* of zero."""
    return abs(latitude) < epsilon and abs(longitude) < epsilon


def accept_position(latitude: float, longitude: float, bounds: BoundingBox | None) -> bool:
    """Whether a position survives the degenerate-coordinate and geofence checks."""
    if is_null_island(latitude, longitude):
        return False
    if bounds is None:
        return True
    return bounds.contains(latitude, longitude)
