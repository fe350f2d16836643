"""OpenSky Network air picture.

Endpoint:
  - GET /api/states/all?lamin=&lomin=&lamax=&lomax=

Anonymous access works with a lower rate limit; an OAuth2 client raises it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pysaga._constants import OPENSKY_STATES_URL
from pysaga._transport import Transport
from pysaga.config import BoundingBox
from pysaga.exceptions import SagaFetchError
from pysaga.feeds.base import FeedAdapter
from pysaga.ingestion.normalize import or_zero
from pysaga.models.opensky import OpenSkyResponse, OpenSkyStateVector
from pysaga.models.track import Track, TrackCategory
from pysaga.token_cache import TokenCache


def build_bbox_params(bounds: BoundingBox) -> dict[str, float]:
    return {
        "lamin": bounds.south,
        "lomin": bounds.west,
        "lamax": bounds.north,
        "lomax": bounds.east,
    }


class OpenSkyFeed(FeedAdapter):
    """Aircraft state vectors from OpenSky."""

    name = "opensky"
    category = TrackCategory.AIR

    def __init__(
        self,
        transport: Transport,
        *,
        bounds: BoundingBox | None = None,
        token_cache: TokenCache | None = None,
        url: str = OPENSKY_STATES_URL,
    ) -> None:
        super().__init__(transport, bounds=bounds, token_cache=token_cache)
        self._url = url

    async def fetch_records(self, headers: Mapping[str, str]) -> Iterable[Any]:
        params = build_bbox_params(self._bounds) if self._bounds is not None else None
        payload = await self._transport.get_json(self._url, params=params, headers=headers)
        try:
            response = OpenSkyResponse.model_validate(payload)
        except ValidationError as exc:
            raise SagaFetchError(f"Unexpected OpenSky payload from {self._url}", url=self._url) from exc
        return response.states or []

    def normalize(self, record: Any) -> Track:
        try:
            state = OpenSkyStateVector.from_api(record)
            if state.latitude is None or state.longitude is None:
                raise ValueError("missing position")
            return Track(
                id=state.icao24,
                callsign=state.callsign,
                country=state.origin_country,
                latitude=state.latitude,
                longitude=state.longitude,
                heading=or_zero(state.true_track),
                altitude=state.altitude,
                speed=or_zero(state.velocity),
                category=self.category,
                feed=self.name,
            )
        except ValueError as exc:
            raise self._malformed(f"bad state vector: {exc}") from exc
