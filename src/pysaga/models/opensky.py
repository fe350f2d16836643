"""OpenSky Network ``/states/all`` models.

OpenSky returns every aircraft as a positional JSON array ("state
vector") rather than an object:

    0 icao24, 1 callsign, 2 origin_country, 3 time_position,
    4 last_contact, 5 longitude, 6 latitude, 7 baro_altitude,
    8 on_ground, 9 velocity, 10 true_track, 11 vertical_rate,
    12 sensors, 13 geo_altitude, 14 squawk, 15 spi, 16 position_source
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysaga.ingestion.normalize import safe_float, safe_int, safe_str
from pysaga.models._base import FeedRecordModel

STATE_VECTOR_FIELDS: tuple[str, ...] = (
    "icao24",
    "callsign",
    "origin_country",
    "time_position",
    "last_contact",
    "longitude",
    "latitude",
    "baro_altitude",
    "on_ground",
    "velocity",
    "true_track",
    "vertical_rate",
    "sensors",
    "geo_altitude",
    "squawk",
    "spi",
    "position_source",
)

# A row shorter than this cannot carry a heading.
_MIN_STATE_VECTOR_LEN = 11


class OpenSkyStateVector(FeedRecordModel):
    """One aircraft from an OpenSky state vector array."""

    icao24: str
    callsign: str | None = None
    origin_country: str | None = None
    time_position: int | None = None
    last_contact: int | None = None
    longitude: float | None = None
    latitude: float | None = None
    baro_altitude: float | None = None
    on_ground: bool = False
    velocity: float | None = None
    true_track: float | None = None
    vertical_rate: float | None = None
    geo_altitude: float | None = None
    squawk: str | None = None

    @classmethod
    def from_api(cls, row: Any) -> OpenSkyStateVector:
        """Build from a raw state vector array.

        Raises ``ValueError`` (``ValidationError`` included) for rows that
        are not arrays, are truncated, or lack an ``icao24``.
        """
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise ValueError(f"state vector must be an array, got {type(row).__name__}")
        if len(row) < _MIN_STATE_VECTOR_LEN:
            raise ValueError(f"state vector has {len(row)} fields, expected at least {_MIN_STATE_VECTOR_LEN}")
        values = dict(zip(STATE_VECTOR_FIELDS, row, strict=False))
        return cls.model_validate({**values, "raw": values})

    @field_validator(
        "longitude",
        "latitude",
        "baro_altitude",
        "velocity",
        "true_track",
        "vertical_rate",
        "geo_altitude",
        mode="before",
    )
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("time_position", "last_contact", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("callsign", "origin_country", "squawk", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        text = safe_str(value)
        return text.strip() if text else None

    @property
    def altitude(self) -> float:
        """Best available altitude in metres (barometric, then geometric)."""
        if self.baro_altitude is not None:
            return self.baro_altitude
        return self.geo_altitude or 0.0


class OpenSkyResponse(BaseModel):
    """Envelope of ``/states/all``; ``states`` is ``null`` when nothing is in range."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    time: int | None = None
    states: list[Any] | None = Field(default=None)
