from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from pysaga.config import AuthorityConfig, BoundingBox
from pysaga.exceptions import SagaAuthError, SagaFetchError, SagaMalformedRecordError
from pysaga.feeds.barentswatch import BarentsWatchFeed
from pysaga.feeds.opensky import OpenSkyFeed, build_bbox_params
from pysaga.models.track import TrackCategory
from pysaga.state.store import TrackStore
from pysaga.token_cache import TokenCache

NORWAY = BoundingBox(57.9, 4.5, 71.2, 31.0)


class FakeTransport:
    """Scripted transport: GET and POST answers are popped in order."""

    def __init__(self, *, gets: list[Any] | None = None, posts: list[Any] | None = None) -> None:
        self.get_responses = list(gets or [])
        self.post_responses = list(posts or [])
        self.gets: list[tuple[str, dict[str, Any] | None, dict[str, str]]] = []
        self.posts: list[tuple[str, dict[str, str]]] = []

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        self.gets.append((url, dict(params) if params is not None else None, dict(headers or {})))
        return self._next(self.get_responses)

    async def post_form(self, url: str, form: Mapping[str, str]) -> Any:
        self.posts.append((url, dict(form)))
        return self._next(self.post_responses)

    @staticmethod
    def _next(queue: list[Any]) -> Any:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _clock() -> datetime:
    return datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _state(icao24: Any = "4b1805", callsign: Any = "SAS123  ", lat: Any = 59.9, lon: Any = 10.7) -> list[Any]:
    return [icao24, callsign, "Norway", 1700000000, 1700000001, lon, lat, 1000.0, False, 200.0, 91.0, 0.0, None, 1100.0, None, False, 0]


def _ais(mmsi: Any = 257000000, *, name: Any = "HURTIGRUTEN", lat: float | None = 68.1, lon: float | None = 14.2, cog: float = 45.0) -> dict[str, Any]:
    return {
        "mmsi": mmsi,
        "name": name,
        "latitude": lat,
        "longitude": lon,
        "speedOverGround": 12.5,
        "courseOverGround": cog,
        "trueHeading": 44,
        "shipType": 60,
        "msgtime": "2026-01-01T11:59:30+00:00",
    }


def _barentswatch_cache(transport: FakeTransport, **overrides: Any) -> TokenCache:
    values: dict[str, Any] = {
        "name": "barentswatch",
        "token_url": "https://id.example.test/connect/token",
        "client_id": "client",
        "client_secret": "secret",
        "scope": "ais",
    }
    values.update(overrides)
    return TokenCache(AuthorityConfig(**values), transport, clock=_clock)


# ── OpenSky ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_opensky_poll_normalizes_state_vectors() -> None:
    transport = FakeTransport(gets=[{"time": 1700000001, "states": [_state()]}])
    feed = OpenSkyFeed(transport, bounds=NORWAY, url="https://opensky.test/states")

    tracks = await feed.poll()

    assert len(tracks) == 1
    track = tracks[0]
    assert track.id == "4b1805"
    assert track.callsign == "SAS123"
    assert track.country == "Norway"
    assert (track.latitude, track.longitude) == (59.9, 10.7)
    assert track.heading == 91.0
    assert track.altitude == 1000.0
    assert track.speed == 200.0
    assert track.category is TrackCategory.AIR
    assert track.feed == "opensky"

    url, params, headers = transport.gets[0]
    assert url == "https://opensky.test/states"
    assert params == build_bbox_params(NORWAY) == {"lamin": 57.9, "lomin": 4.5, "lamax": 71.2, "lomax": 31.0}
    assert "Authorization" not in headers


@pytest.mark.asyncio
async def test_opensky_missing_callsign_becomes_unknown() -> None:
    transport = FakeTransport(gets=[{"states": [_state(callsign=None)]}])
    feed = OpenSkyFeed(transport, bounds=NORWAY)

    tracks = await feed.poll()

    assert tracks[0].callsign == "UNKNOWN"


@pytest.mark.asyncio
async def test_opensky_skips_malformed_rows_and_keeps_the_rest() -> None:
    transport = FakeTransport(
        gets=[
            {
                "states": [
                    "garbage",
                    ["short", "row"],
                    _state(icao24=None),
                    _state(lat=91.5),
                    _state(icao24="47a1b2", lat=63.4, lon=10.4),
                ]
            }
        ]
    )
    feed = OpenSkyFeed(transport, bounds=NORWAY)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["47a1b2"]


@pytest.mark.asyncio
async def test_opensky_state_without_position_is_skipped() -> None:
    transport = FakeTransport(gets=[{"states": [_state(lat=None)]}])
    feed = OpenSkyFeed(transport, bounds=NORWAY)

    assert await feed.poll() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(("lat", "lon"), [(None, 10.0), (10.0, None)])
async def test_opensky_half_position_is_not_placed_on_an_axis(lat: Any, lon: Any) -> None:
    transport = FakeTransport(gets=[{"states": [_state(lat=lat, lon=lon), _state(icao24="abc123", lat=10.0, lon=10.0)]}])
    feed = OpenSkyFeed(transport)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["abc123"]


def test_opensky_normalize_rejects_missing_longitude() -> None:
    feed = OpenSkyFeed(FakeTransport())

    with pytest.raises(SagaMalformedRecordError, match="missing position"):
        feed.normalize(_state(lon=None))


@pytest.mark.asyncio
async def test_opensky_null_island_rejected_without_bounds() -> None:
    transport = FakeTransport(gets=[{"states": [_state(lat=0.0, lon=0.0), _state(icao24="abc123", lat=10.0, lon=10.0)]}])
    feed = OpenSkyFeed(transport)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["abc123"]
    assert transport.gets[0][1] is None


@pytest.mark.asyncio
async def test_opensky_empty_states_yield_no_tracks() -> None:
    transport = FakeTransport(gets=[{"time": 1700000001, "states": None}])
    feed = OpenSkyFeed(transport, bounds=NORWAY)

    assert await feed.poll() == []


@pytest.mark.asyncio
async def test_fetch_failure_yields_empty_batch_and_store_is_unchanged() -> None:
    transport = FakeTransport(
        gets=[
            {"states": [_state()]},
            SagaFetchError("HTTP 503 from opensky", status_code=503),
            {"unexpected": "shape", "states": "nope"},
        ]
    )
    feed = OpenSkyFeed(transport, bounds=NORWAY)
    store = TrackStore(clock=_clock)
    store.merge(await feed.poll())
    before = store.snapshot()

    assert await feed.poll() == []
    assert await feed.poll() == []
    store.merge([])

    assert store.snapshot() == before


@pytest.mark.asyncio
async def test_opensky_sends_bearer_when_client_configured() -> None:
    transport = FakeTransport(
        gets=[{"states": [_state()]}],
        posts=[{"access_token": "sky-token", "expires_in": 1800}],
    )
    authority = AuthorityConfig(
        name="opensky",
        token_url="https://auth.opensky.test/token",
        client_id="sky",
        client_secret="secret",
        allow_anonymous=True,
    )
    feed = OpenSkyFeed(transport, bounds=NORWAY, token_cache=TokenCache(authority, transport, clock=_clock))

    await feed.poll()

    assert transport.gets[0][2]["Authorization"] == "Bearer sky-token"


# ── BarentsWatch ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_barentswatch_poll_sends_bearer_and_normalizes() -> None:
    transport = FakeTransport(
        gets=[[_ais(), _ais(mmsi=258000000, name=None, lat=59.0, lon=5.3)]],
        posts=[{"access_token": "ais-token", "expires_in": 3600}],
    )
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport), bounds=NORWAY)

    tracks = await feed.poll()

    assert transport.gets[0][2]["Authorization"] == "Bearer ais-token"
    assert [t.id for t in tracks] == ["257000000", "258000000"]
    first, second = tracks
    assert first.callsign == "HURTIGRUTEN"
    assert first.country == "Unknown"
    assert first.altitude == 0.0
    assert first.heading == 45.0
    assert first.speed == 12.5
    assert first.category is TrackCategory.SEA
    assert first.feed == "barentswatch"
    assert second.callsign == "UNKNOWN"


@pytest.mark.asyncio
async def test_barentswatch_geofence_drops_vessels_outside_area() -> None:
    transport = FakeTransport(
        gets=[[_ais(lat=54.0, lon=10.0), _ais(mmsi=258000000)]],
        posts=[{"access_token": "ais-token"}],
    )
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport), bounds=NORWAY)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["258000000"]


@pytest.mark.asyncio
async def test_duplicate_ids_within_batch_resolve_to_last_record() -> None:
    transport = FakeTransport(
        gets=[[_ais(lat=68.1), _ais(mmsi=258000000), _ais(lat=68.2)]],
        posts=[{"access_token": "ais-token"}],
    )
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport), bounds=NORWAY)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["258000000", "257000000"]
    assert tracks[1].latitude == 68.2


@pytest.mark.asyncio
async def test_barentswatch_skips_malformed_records() -> None:
    transport = FakeTransport(
        gets=[[{"mmsi": "nope"}, "not-an-object", _ais(), _ais(mmsi=259000000, lon=None), _ais(mmsi=260000000, lat=None)]],
        posts=[{"access_token": "ais-token"}],
    )
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport), bounds=NORWAY)

    tracks = await feed.poll()

    assert [t.id for t in tracks] == ["257000000"]


@pytest.mark.asyncio
async def test_barentswatch_missing_credentials_raise_auth_error_before_fetch() -> None:
    transport = FakeTransport()
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport, client_secret=None), bounds=NORWAY)

    with pytest.raises(SagaAuthError):
        await feed.poll()
    assert transport.gets == []


@pytest.mark.asyncio
async def test_barentswatch_unauthorized_invalidates_token() -> None:
    transport = FakeTransport(
        gets=[SagaFetchError("HTTP 401", status_code=401), [_ais()]],
        posts=[{"access_token": "revoked"}, {"access_token": "fresh"}],
    )
    cache = _barentswatch_cache(transport)
    feed = BarentsWatchFeed(transport, cache, bounds=NORWAY)

    assert await feed.poll() == []
    assert cache.credential is None

    tracks = await feed.poll()

    assert len(tracks) == 1
    assert len(transport.posts) == 2
    assert transport.gets[1][2]["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_barentswatch_non_list_payload_yields_empty_batch() -> None:
    transport = FakeTransport(gets=[{"message": "maintenance"}], posts=[{"access_token": "ais-token"}])
    feed = BarentsWatchFeed(transport, _barentswatch_cache(transport), bounds=NORWAY)

    assert await feed.poll() == []
