"""Deterministic track merge policy.

This module contains *no* payload parsing; it only decides whether an
already-normalised track may replace the one the store holds.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta

from pysaga.models.track import Track

# OpenSky ids (ICAO24 hex) and AIS ids (MMSI digits) rarely collide; when
# they do, the air picture wins by default.
DEFAULT_FEED_PRIORITIES: dict[str, int] = {
    "opensky": 50,
    "barentswatch": 40,
}


def feed_priority(feed: str, priorities: Mapping[str, int]) -> int:
    """Higher wins for cross-feed tie-breaking."""
    return priorities.get(feed, 0)


def should_accept_track(
    *,
    cached: Track,
    cached_seen_at: datetime,
    incoming: Track,
    now: datetime,
    priorities: Mapping[str, int],
    conflict_window: timedelta,
) -> bool:
    """Decide whether *incoming* replaces *cached* for the same id.

    Policy:
    - Same category: accept (last write wins by arrival).
    - Different category: accept if the incoming feed's priority is at
      least the cached feed's, or the cached track has not been refreshed
      within *conflict_window*.
    """
    if incoming.category == cached.category:
        return True
    if feed_priority(incoming.feed, priorities) >= feed_priority(cached.feed, priorities):
        return True
    return is_stale(now, cached_seen_at, conflict_window)


def is_stale(now: datetime, last_seen_at: datetime, max_age: timedelta) -> bool:
    return now - last_seen_at > max_age
