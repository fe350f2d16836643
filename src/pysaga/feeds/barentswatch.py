"""BarentsWatch live AIS sea picture.

Endpoint:
  - GET /v1/latest/combined  (bearer token, scope ``ais``)

The endpoint covers far more than the configured area; the geofence is
applied client side.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pysaga._constants import BARENTSWATCH_AIS_URL, UNKNOWN_COUNTRY
from pysaga._transport import Transport
from pysaga.config import BoundingBox
from pysaga.exceptions import SagaFetchError
from pysaga.feeds.base import FeedAdapter
from pysaga.ingestion.normalize import or_zero
from pysaga.models.ais import AisPosition
from pysaga.models.track import Track, TrackCategory
from pysaga.token_cache import TokenCache


class BarentsWatchFeed(FeedAdapter):
    """Latest AIS positions from BarentsWatch."""

    name = "barentswatch"
    category = TrackCategory.SEA

    def __init__(
        self,
        transport: Transport,
        token_cache: TokenCache,
        *,
        bounds: BoundingBox | None = None,
        url: str = BARENTSWATCH_AIS_URL,
    ) -> None:
        super().__init__(transport, bounds=bounds, token_cache=token_cache)
        self._url = url

    async def fetch_records(self, headers: Mapping[str, str]) -> Iterable[Any]:
        payload = await self._transport.get_json(self._url, headers=headers)
        if not isinstance(payload, list):
            raise SagaFetchError(
                f"Unexpected BarentsWatch payload from {self._url}: {type(payload).__name__}",
                url=self._url,
            )
        return payload

    def normalize(self, record: Any) -> Track:
        try:
            position = AisPosition.model_validate(record)
            if position.latitude is None or position.longitude is None:
                raise ValueError("missing position")
            return Track(
                id=str(position.mmsi),
                callsign=position.name,
                # AIS carries no readable flag state.
                country=UNKNOWN_COUNTRY,
                latitude=position.latitude,
                longitude=position.longitude,
                heading=position.heading,
                altitude=0.0,
                speed=or_zero(position.speed_over_ground),
                category=self.category,
                feed=self.name,
            )
        except ValueError as exc:
            raise self._malformed(f"bad AIS record: {exc}") from exc
