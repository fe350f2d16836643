"""Base model for raw feed records.

Every raw record model inherits from :class:`FeedRecordModel` which
provides:

* ``alias_generator=to_camel`` so camelCase feed keys map automatically
  to snake_case fields.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``""``, ``"N/A"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Sentinel strings feeds use for "not available".
_SENTINELS = frozenset({"", "N/A", "NaN", "nan", "null"})


class FeedRecordModel(BaseModel):
    """Base for provider-specific positional reports."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original feed record."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_feed_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = FeedRecordModel._clean_dict(values)
        # Keep the caller's raw when constructing with kwargs that include it.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
