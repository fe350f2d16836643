"""BarentsWatch live AIS models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pysaga.ingestion.normalize import safe_float, safe_int, safe_str
from pysaga.models._base import FeedRecordModel


class AisPosition(FeedRecordModel):
    """Latest combined position + static data for one vessel.

    Mapped from ``/v1/latest/combined``; keys are camelCase in the feed.
    """

    mmsi: int
    """Maritime Mobile Service Identity."""
    name: str | None = None
    """Vessel name from AIS static data."""
    latitude: float | None = None
    longitude: float | None = None
    speed_over_ground: float | None = None
    """Knots."""
    course_over_ground: float | None = None
    """Degrees."""
    true_heading: float | None = None
    """Degrees; AIS uses ``511`` for "not available"."""
    ship_type: int | None = None
    msgtime: str | None = Field(default=None, validation_alias=AliasChoices("msgtime", "msgTime"))

    @field_validator("mmsi", mode="before")
    @classmethod
    def _coerce_mmsi(cls, value: Any) -> int:
        parsed = safe_int(value)
        if parsed is None or parsed <= 0:
            raise ValueError(f"invalid mmsi {value!r}")
        return parsed

    @field_validator("latitude", "longitude", "speed_over_ground", "course_over_ground", "true_heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("ship_type", mode="before")
    @classmethod
    def _coerce_ship_type(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str | None:
        text = safe_str(value)
        return text.strip() if text else None

    @property
    def heading(self) -> float:
        """Course over ground, falling back to true heading."""
        if self.course_over_ground is not None:
            return self.course_over_ground
        if self.true_heading is not None and self.true_heading != 511:
            return self.true_heading
        return 0.0
