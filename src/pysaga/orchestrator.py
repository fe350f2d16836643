"""Polling and frame loops.

The orchestrator owns one asyncio task per feed, each on its own interval,
plus a single fixed-rate frame task that drives the interpolation engine.
Nothing a feed does (failure, timeout, slowness) reaches another feed's
task or the frame task.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import aiohttp

from pysaga._transport import HttpTransport, Transport
from pysaga.config import SagaConfig
from pysaga.exceptions import SagaError
from pysaga.feeds.barentswatch import BarentsWatchFeed
from pysaga.feeds.base import FeedAdapter
from pysaga.feeds.opensky import OpenSkyFeed
from pysaga.interpolation import InterpolationEngine
from pysaga.models.entity import Entity
from pysaga.state.store import TrackStore
from pysaga.token_cache import TokenCache

_logger = logging.getLogger(__name__)

_PRUNE_EVERY_S = 1.0


@dataclass(slots=True)
class _FeedSchedule:
    """Registration and counters for one feed loop."""

    feed: FeedAdapter
    interval: float
    timeout: float
    task: asyncio.Task[None] | None = None
    polls: int = 0
    failures: int = 0
    last_track_count: int = 0
    last_success_at: float | None = None


@dataclass(frozen=True)
class FeedStatus:
    name: str
    interval: float
    polls: int
    failures: int
    last_track_count: int
    last_success_at: float | None


def build_default_feeds(config: SagaConfig, transport: Transport) -> list[tuple[FeedAdapter, float]]:
    """Create the OpenSky and BarentsWatch feeds enabled in *config*.

    Returns ``(feed, interval)`` pairs.  BarentsWatch is skipped with a
    warning when its credentials are missing, since every poll would fail.
    """
    feeds: list[tuple[FeedAdapter, float]] = []
    if config.opensky_enabled:
        opensky_tokens = TokenCache(config.opensky_authority(), transport, refresh_margin=config.refresh_margin)
        feeds.append(
            (
                OpenSkyFeed(transport, bounds=config.bounding_box, token_cache=opensky_tokens),
                config.opensky_interval,
            )
        )
    if config.barentswatch_enabled:
        authority = config.barentswatch_authority()
        if authority.has_credentials:
            barentswatch_tokens = TokenCache(authority, transport, refresh_margin=config.refresh_margin)
            feeds.append(
                (
                    BarentsWatchFeed(transport, barentswatch_tokens, bounds=config.bounding_box),
                    config.barentswatch_interval,
                )
            )
        else:
            _logger.warning("BarentsWatch enabled but client id/secret missing; sea picture disabled")
    return feeds


class Orchestrator:
    """Runs feed polling and interpolation frames.

    Usage::

        async with Orchestrator(SagaConfig.from_env(), on_frame=redraw) as orchestrator:
            await orchestrator.run_forever()

    Feeds added with :meth:`add_feed` before entering the context replace
    the default OpenSky/BarentsWatch feeds.

    Parameters
    ----------
    config : SagaConfig or None
        Engine configuration; defaults to ``SagaConfig()``.
    session : aiohttp.ClientSession or None
        Shared HTTP session.  Created (and closed) by the orchestrator
        when omitted.
    store : TrackStore or None
        Entity store; a fresh one by default.
    engine : InterpolationEngine or None
        Frame engine; built from *config* by default.
    on_frame : callable or None
        ``on_frame(snapshot)`` after every frame that moved an entity or
        followed a change to the entity set.
    on_merge : callable or None
        ``on_merge(feed_name, ids)`` after every poll that changed entities.
    """

    def __init__(
        self,
        config: SagaConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        store: TrackStore | None = None,
        engine: InterpolationEngine | None = None,
        on_frame: Callable[[list[Entity]], None] | None = None,
        on_merge: Callable[[str, set[str]], None] | None = None,
    ) -> None:
        self._config = config or SagaConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None
        self._store = store or TrackStore()
        self._engine = engine or InterpolationEngine.from_config(self._config)
        self._on_frame = on_frame
        self._on_merge = on_merge
        self._schedules: list[_FeedSchedule] = []
        self._frame_task: asyncio.Task[None] | None = None
        self._last_prune = float("-inf")
        # Set by merges and prunes so the next frame redraws even if nothing glides.
        self._redraw_pending = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Orchestrator:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._http_session, timeout=self._config.poll_timeout)
        if not self._schedules:
            for feed, interval in build_default_feeds(self._config, self._transport):
                self.add_feed(feed, interval=interval)
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Registration and control
    # ------------------------------------------------------------------

    @property
    def store(self) -> TrackStore:
        return self._store

    @property
    def engine(self) -> InterpolationEngine:
        return self._engine

    @property
    def feeds(self) -> list[FeedAdapter]:
        return [schedule.feed for schedule in self._schedules]

    @property
    def running(self) -> bool:
        return self._frame_task is not None and not self._frame_task.done()

    def add_feed(self, feed: FeedAdapter, *, interval: float, timeout: float | None = None) -> None:
        """Register *feed* to be polled every *interval* seconds."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        if any(schedule.feed.name == feed.name for schedule in self._schedules):
            raise ValueError(f"feed {feed.name!r} already registered")
        schedule = _FeedSchedule(
            feed=feed,
            interval=interval,
            timeout=timeout if timeout is not None else self._config.poll_timeout,
        )
        self._schedules.append(schedule)
        if self.running:
            schedule.task = asyncio.create_task(self._poll_loop(schedule), name=f"pysaga-poll-{feed.name}")

    async def start(self) -> None:
        """Start one task per feed plus the frame task (idempotent)."""
        if self.running:
            return
        for schedule in self._schedules:
            schedule.task = asyncio.create_task(
                self._poll_loop(schedule),
                name=f"pysaga-poll-{schedule.feed.name}",
            )
        self._frame_task = asyncio.create_task(self._frame_loop(), name="pysaga-frame")
        _logger.info(
            "Started %d feed loop(s) and frame loop at %.0f Hz",
            len(self._schedules),
            self._config.render_hz,
        )

    async def stop(self) -> None:
        """Cancel every loop and wait for them to finish."""
        tasks = [schedule.task for schedule in self._schedules if schedule.task is not None]
        if self._frame_task is not None:
            tasks.append(self._frame_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for schedule in self._schedules:
            schedule.task = None
        self._frame_task = None

    async def run_forever(self) -> None:
        """Block until the loops are cancelled."""
        await self.start()
        assert self._frame_task is not None  # noqa: S101
        await self._frame_task

    def feed_status(self) -> list[FeedStatus]:
        return [
            FeedStatus(
                name=schedule.feed.name,
                interval=schedule.interval,
                polls=schedule.polls,
                failures=schedule.failures,
                last_track_count=schedule.last_track_count,
                last_success_at=schedule.last_success_at,
            )
            for schedule in self._schedules
        ]

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_feed(self, name: str) -> set[str]:
        """Run one poll of the named feed outside its loop."""
        for schedule in self._schedules:
            if schedule.feed.name == name:
                return await self._poll_once(schedule)
        raise KeyError(name)

    async def _poll_loop(self, schedule: _FeedSchedule) -> None:
        while True:
            await self._poll_once(schedule)
            await asyncio.sleep(schedule.interval)

    async def _poll_once(self, schedule: _FeedSchedule) -> set[str]:
        """Poll and merge; any failure is logged and yields no change."""
        feed = schedule.feed
        schedule.polls += 1
        try:
            async with asyncio.timeout(schedule.timeout):
                tracks = await feed.poll()
        except TimeoutError:
            schedule.failures += 1
            _logger.warning("%s poll timed out after %.1fs", feed.name, schedule.timeout)
            return set()
        except SagaError as exc:
            schedule.failures += 1
            _logger.warning("%s poll failed: %s", feed.name, exc)
            return set()
        except Exception:
            schedule.failures += 1
            _logger.exception("%s poll raised unexpectedly", feed.name)
            return set()

        schedule.last_track_count = len(tracks)
        schedule.last_success_at = time.monotonic()
        affected = self._store.merge(tracks)
        _logger.debug("%s merged %d tracks (%d changed)", feed.name, len(tracks), len(affected))
        if affected:
            self._redraw_pending = True
        if affected and self._on_merge is not None:
            try:
                self._on_merge(feed.name, affected)
            except Exception:
                _logger.debug("on_merge callback failed", exc_info=True)
        return affected

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def frame_once(self) -> bool:
        """Run one interpolation frame; returns whether anything moved.

        Entities past ``entity_ttl`` are pruned first (at most once a
        second).  ``on_frame`` is notified when something moved or when a
        poll or prune changed the entity set since the last frame.
        """
        self._maybe_prune()
        moved = self._engine.frame(self._store)
        redraw = moved or self._redraw_pending
        self._redraw_pending = False
        if redraw and self._on_frame is not None:
            try:
                self._on_frame(self._store.snapshot())
            except Exception:
                _logger.debug("on_frame callback failed", exc_info=True)
        return moved

    def _maybe_prune(self) -> None:
        ttl = self._config.entity_ttl
        if ttl <= 0:
            return
        now = time.monotonic()
        if now - self._last_prune < _PRUNE_EVERY_S:
            return
        self._last_prune = now
        if self._store.prune(timedelta(seconds=ttl)):
            self._redraw_pending = True

    async def _frame_loop(self) -> None:
        loop = asyncio.get_running_loop()
        period = 1.0 / self._config.render_hz
        next_at = loop.time()
        while True:
            try:
                self.frame_once()
            except Exception:
                _logger.exception("Interpolation frame failed")
            next_at += period
            delay = next_at - loop.time()
            if delay < 0:
                # Fell behind; skip the missed frames instead of bursting.
                next_at = loop.time()
                delay = 0.0
            await asyncio.sleep(delay)
