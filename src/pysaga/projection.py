"""Spherical mercator (EPSG:3857) projection.

Interpolation happens in this plane: distances are in metres at the
equator and straight lines approximate short tracks well enough for
display smoothing.  Both functions are pure.
"""

from __future__ import annotations

import math

from pysaga.models.entity import PlanarPoint

EARTH_RADIUS_M = 6_378_137.0
# Latitude at which the mercator square ends.
MAX_LATITUDE = 85.05112878


def project(latitude: float, longitude: float) -> PlanarPoint:
    """Map geographic degrees to planar metres."""
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, latitude))
    x = EARTH_RADIUS_M * math.radians(longitude)
    y = EARTH_RADIUS_M * math.asinh(math.tan(math.radians(lat)))
    return PlanarPoint(x, y)


def unproject(point: PlanarPoint) -> tuple[float, float]:
    """Inverse of :func:`project`; returns ``(latitude, longitude)``."""
    longitude = math.degrees(point.x / EARTH_RADIUS_M)
    latitude = math.degrees(math.atan(math.sinh(point.y / EARTH_RADIUS_M)))
    return latitude, longitude
