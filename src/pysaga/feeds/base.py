"""Feed adapter abstraction.

A feed adapter performs one fetch cycle for one external data source:
credential, retrieval, normalisation, filtering.  Concrete adapters only
implement :meth:`FeedAdapter.fetch_records` and :meth:`FeedAdapter.normalize`.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from pysaga._transport import Transport
from pysaga.config import BoundingBox
from pysaga.exceptions import SagaFetchError, SagaMalformedRecordError
from pysaga.ingestion.filters import accept_position
from pysaga.models.track import Track, TrackCategory
from pysaga.token_cache import TokenCache

_logger = logging.getLogger(__name__)


class FeedAdapter(abc.ABC):
    """Base class for pluggable positional feeds.

    Parameters
    ----------
    transport : Transport
        HTTP transport shared with other feeds.
    bounds : BoundingBox or None
        Geofence; ``None`` accepts any (non-degenerate) position.
    token_cache : TokenCache or None
        Cache for the feed's authority.  ``None`` for feeds that never
        authenticate.
    """

    name: ClassVar[str]
    category: ClassVar[TrackCategory]

    def __init__(
        self,
        transport: Transport,
        *,
        bounds: BoundingBox | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        self._transport = transport
        self._bounds = bounds
        self._token_cache = token_cache

    @property
    def bounds(self) -> BoundingBox | None:
        return self._bounds

    @property
    def token_cache(self) -> TokenCache | None:
        return self._token_cache

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"

    async def poll(self) -> list[Track]:
        """Run one fetch cycle and return the accepted tracks.

        A failed retrieval yields an empty list so previously known
        entities stay untouched.  Duplicate ids within one batch resolve to
        the last record.

        Raises
        ------
        SagaAuthError
            If the feed's authority could not issue a credential.
        """
        headers = await self._auth_headers()
        try:
            records = list(await self.fetch_records(headers))
        except SagaFetchError as exc:
            if exc.status_code in (401, 403) and self._token_cache is not None:
                # Token revoked early; the next poll exchanges a new one.
                self._token_cache.invalidate()
            _logger.warning("%s poll failed: %s", self.name, exc)
            return []

        tracks = self.normalize_batch(records)
        _logger.debug("%s returned %d tracks from %d records", self.name, len(tracks), len(records))
        return tracks

    def normalize_batch(self, records: Iterable[Any]) -> list[Track]:
        """Normalise and filter a batch, skipping bad records individually."""
        by_id: dict[str, Track] = {}
        skipped = 0
        rejected = 0
        for record in records:
            try:
                track = self.normalize(record)
            except SagaMalformedRecordError as exc:
                skipped += 1
                _logger.debug("%s skipped malformed record: %s", self.name, exc)
                continue

            if not accept_position(track.latitude, track.longitude, self._bounds):
                rejected += 1
                continue

            # Re-insert so the dict order follows the latest report.
            by_id.pop(track.id, None)
            by_id[track.id] = track

        if skipped or rejected:
            _logger.debug("%s skipped=%d rejected=%d", self.name, skipped, rejected)
        return list(by_id.values())

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_cache is None:
            return {}
        credential = await self._token_cache.get_valid_credential()
        return credential.authorization_header()

    def _malformed(self, message: str) -> SagaMalformedRecordError:
        return SagaMalformedRecordError(f"{self.name}: {message}", feed=self.name)

    @abc.abstractmethod
    async def fetch_records(self, headers: Mapping[str, str]) -> Iterable[Any]:
        """Retrieve the raw records for one cycle.

        Raises :class:`SagaFetchError` on transport failure or an
        unexpected payload shape.
        """

    @abc.abstractmethod
    def normalize(self, record: Any) -> Track:
        """Map one raw record to a :class:`Track`.

        Raises :class:`SagaMalformedRecordError` when the record is unusable.
        """
