"""Canonical, feed-agnostic positional report."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysaga._constants import UNKNOWN_CALLSIGN, UNKNOWN_COUNTRY


class TrackCategory(StrEnum):
    AIR = "Air"
    SEA = "Sea"


class Track(BaseModel):
    """One normalised report for one real-world object.

    Produced by exactly one feed adapter per poll and superseded, never
    mutated, by the next report for the same ``id``.

    Parameters
    ----------
    id : str
        Identity that is stable per object within a feed (ICAO24, MMSI).
    callsign : str
        Callsign or vessel name; ``"UNKNOWN"`` when the feed has none.
    country : str
        Country of registration or flag state.
    latitude, longitude : float
        WGS84 degrees.
    heading : float
        True track in degrees, normalised to ``[0, 360)``.
    altitude : float
        Metres; ``0`` for surface vessels.
    speed : float
        Ground speed as reported by the feed.
    category : TrackCategory
        Air or sea.
    feed : str
        Name of the adapter that produced the track.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    callsign: str = UNKNOWN_CALLSIGN
    country: str = UNKNOWN_COUNTRY
    latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    longitude: float = Field(default=0.0, ge=-180.0, le=180.0)
    heading: float = 0.0
    altitude: float = 0.0
    speed: float = 0.0
    category: TrackCategory
    feed: str = ""

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        track_id = value.strip()
        if not track_id:
            raise ValueError("id must be non-empty")
        return track_id

    @field_validator("callsign", mode="before")
    @classmethod
    def _default_callsign(cls, value: Any) -> Any:
        if value is None:
            return UNKNOWN_CALLSIGN
        if isinstance(value, str):
            return value.strip() or UNKNOWN_CALLSIGN
        return value

    @field_validator("country", mode="before")
    @classmethod
    def _default_country(cls, value: Any) -> Any:
        if value is None:
            return UNKNOWN_COUNTRY
        if isinstance(value, str):
            return value.strip() or UNKNOWN_COUNTRY
        return value

    @field_validator("heading")
    @classmethod
    def _wrap_heading(cls, value: float) -> float:
        wrapped = value % 360.0
        # Tiny negative inputs round up to exactly 360.0.
        return 0.0 if wrapped >= 360.0 else wrapped
