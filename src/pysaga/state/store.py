"""Authoritative in-memory track store.

This is the only component allowed to create or change entities.  Feed
loops write through :meth:`TrackStore.merge`, the interpolation frame
moves displayed positions through :meth:`TrackStore.advance`, and every
reader goes through :meth:`TrackStore.snapshot`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta

from pysaga.models.entity import Entity, PlanarPoint
from pysaga.models.track import Track
from pysaga.projection import project
from pysaga.state.policy import DEFAULT_FEED_PRIORITIES, is_stale, should_accept_track

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrackStore:
    """Entities keyed by track id.

    Entities are immutable; each change swaps in a new instance while the
    store lock is held, so snapshots never contain a half-updated entity.
    The lock is a plain ``threading.Lock`` so a render thread may read
    alongside the asyncio loop.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        projector: Callable[[float, float], PlanarPoint] = project,
        feed_priorities: Mapping[str, int] | None = None,
        conflict_window: timedelta = timedelta(seconds=60),
    ) -> None:
        self._clock = clock
        self._project = projector
        self._priorities = dict(DEFAULT_FEED_PRIORITIES if feed_priorities is None else feed_priorities)
        self._conflict_window = conflict_window
        self._entities: dict[str, Entity] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def __contains__(self, track_id: object) -> bool:
        with self._lock:
            return track_id in self._entities

    def merge(self, tracks: Iterable[Track]) -> set[str]:
        """Merge a batch of tracks and return the ids that changed.

        New ids start at rest (``displayed == target``).  Known ids get a
        new target; the displayed position is left for the interpolation
        frame to animate.
        """
        affected: set[str] = set()
        with self._lock:
            now = self._clock()
            for track in tracks:
                target = self._project(track.latitude, track.longitude)
                existing = self._entities.get(track.id)
                if existing is None:
                    self._entities[track.id] = Entity(
                        id=track.id,
                        latest_track=track,
                        displayed=target,
                        target=target,
                        last_seen_at=now,
                    )
                    affected.add(track.id)
                    continue

                if not should_accept_track(
                    cached=existing.latest_track,
                    cached_seen_at=existing.last_seen_at,
                    incoming=track,
                    now=now,
                    priorities=self._priorities,
                    conflict_window=self._conflict_window,
                ):
                    _logger.debug(
                        "Ignoring %s track %s from %s; held by %s",
                        track.category,
                        track.id,
                        track.feed,
                        existing.latest_track.feed,
                    )
                    continue

                self._entities[track.id] = existing.model_copy(
                    update={"latest_track": track, "target": target, "last_seen_at": now}
                )
                affected.add(track.id)
        return affected

    def advance(self, moves: Mapping[str, PlanarPoint]) -> int:
        """Set new displayed positions; targets are never touched.

        Ids that disappeared since the moves were computed are ignored.
        Returns the number of entities moved.
        """
        moved = 0
        with self._lock:
            for track_id, displayed in moves.items():
                entity = self._entities.get(track_id)
                if entity is None:
                    continue
                self._entities[track_id] = entity.model_copy(update={"displayed": displayed})
                moved += 1
        return moved

    def prune(self, max_age: timedelta) -> set[str]:
        """Drop entities not reported within *max_age*; returns the dropped ids."""
        with self._lock:
            now = self._clock()
            stale = {
                track_id
                for track_id, entity in self._entities.items()
                if is_stale(now, entity.last_seen_at, max_age)
            }
            for track_id in stale:
                del self._entities[track_id]
        if stale:
            _logger.debug("Pruned %d stale entities", len(stale))
        return stale

    def get(self, track_id: str) -> Entity | None:
        with self._lock:
            return self._entities.get(track_id)

    def snapshot(self) -> list[Entity]:
        """Point-in-time view of every entity (order is not meaningful)."""
        with self._lock:
            return list(self._entities.values())
