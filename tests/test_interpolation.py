from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pysaga.config import SagaConfig
from pysaga.exceptions import SagaConfigError
from pysaga.interpolation import InterpolationEngine, InterpolationPolicy, lerp
from pysaga.models.entity import Entity, PlanarPoint
from pysaga.models.track import Track, TrackCategory
from pysaga.projection import project
from pysaga.state.store import TrackStore


def _clock() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _entity(displayed: PlanarPoint, target: PlanarPoint, category: TrackCategory = TrackCategory.AIR) -> Entity:
    track = Track(id="e1", latitude=60.0, longitude=10.0, category=category)
    return Entity(id="e1", latest_track=track, displayed=displayed, target=target, last_seen_at=_clock())


def test_lerp() -> None:
    assert lerp(0.0, 100.0, 0.05) == pytest.approx(5.0)
    assert lerp(10.0, 10.0, 0.5) == 10.0
    assert lerp(0.0, -20.0, 1.0) == -20.0


def test_step_closes_fixed_fraction_of_gap() -> None:
    engine = InterpolationEngine()

    nxt = engine.step(_entity(PlanarPoint(0.0, 0.0), PlanarPoint(100.0, -200.0)))

    assert nxt == pytest.approx(PlanarPoint(5.0, -10.0))


def test_converged_entity_is_left_alone() -> None:
    engine = InterpolationEngine()

    assert engine.step(_entity(PlanarPoint(0.0, 0.0), PlanarPoint(0.5, 0.5))) is None
    assert engine.tick([_entity(PlanarPoint(3.0, 3.0), PlanarPoint(3.0, 3.0))]) == {}


def test_distance_shrinks_monotonically_without_overshoot() -> None:
    engine = InterpolationEngine()
    entity = _entity(PlanarPoint(0.0, 0.0), PlanarPoint(5000.0, 3000.0))
    previous = entity.gap

    for _ in range(300):
        nxt = engine.step(entity)
        if nxt is None:
            break
        entity = entity.model_copy(update={"displayed": nxt})
        assert entity.gap < previous
        assert 0.0 <= entity.displayed.x <= 5000.0
        assert 0.0 <= entity.displayed.y <= 3000.0
        previous = entity.gap

    assert entity.gap < 1.0


def test_update_is_animated_over_frames() -> None:
    store = TrackStore(clock=_clock)
    engine = InterpolationEngine()
    store.merge([Track(id="4b1805", latitude=59.0, longitude=10.0, category=TrackCategory.AIR)])
    start = project(59.0, 10.0)

    store.merge([Track(id="4b1805", latitude=59.1, longitude=10.0, category=TrackCategory.AIR)])
    entity = store.get("4b1805")
    assert entity is not None
    assert entity.displayed == start
    initial_gap = entity.gap

    for _ in range(10):
        assert engine.frame(store) is True

    entity = store.get("4b1805")
    assert entity is not None
    closed = 1 - entity.gap / initial_gap
    assert closed == pytest.approx(1 - 0.95**10)
    assert entity.target == project(59.1, 10.0)


def test_frame_reports_no_motion_once_everything_converged() -> None:
    store = TrackStore(clock=_clock)
    engine = InterpolationEngine()
    store.merge([Track(id="4b1805", latitude=59.9, longitude=10.7, category=TrackCategory.AIR)])

    assert engine.frame(store) is False

    store.merge([Track(id="4b1805", latitude=59.91, longitude=10.71, category=TrackCategory.AIR)])
    frames = 0
    while engine.frame(store):
        frames += 1
        assert frames < 1000

    entity = store.get("4b1805")
    assert entity is not None
    assert entity.gap < 1.0
    assert frames > 10


def test_sea_snap_policy_jumps_large_gaps() -> None:
    engine = InterpolationEngine(policies={TrackCategory.SEA: InterpolationPolicy(snap_distance=1000.0)})
    target = PlanarPoint(5000.0, 0.0)

    assert engine.step(_entity(PlanarPoint(0.0, 0.0), target, TrackCategory.SEA)) == target
    assert engine.step(_entity(PlanarPoint(0.0, 0.0), target, TrackCategory.AIR)) == pytest.approx(PlanarPoint(250.0, 0.0))
    # Small gaps still glide.
    assert engine.step(_entity(PlanarPoint(0.0, 0.0), PlanarPoint(500.0, 0.0), TrackCategory.SEA)) == pytest.approx(
        PlanarPoint(25.0, 0.0)
    )


def test_engine_from_config() -> None:
    config = SagaConfig(lerp_factor=0.1, converged_epsilon=2.0, sea_snap_distance=10_000.0)

    engine = InterpolationEngine.from_config(config)

    assert engine.policy_for(TrackCategory.AIR) == InterpolationPolicy(factor=0.1, epsilon=2.0)
    assert engine.policy_for(TrackCategory.SEA).snap_distance == 10_000.0
    assert InterpolationEngine.from_config(SagaConfig()).policy_for(TrackCategory.SEA).snap_distance is None


@pytest.mark.parametrize(
    "kwargs",
    [{"factor": 0.0}, {"factor": 1.5}, {"epsilon": -1.0}, {"epsilon": 0.0}, {"epsilon": 5.0, "snap_distance": 1.0}],
)
def test_invalid_policy_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(SagaConfigError):
        InterpolationPolicy(**kwargs)


def test_step_that_cannot_move_reports_rest() -> None:
    engine = InterpolationEngine()
    # Doubles are 2.0 apart at 1e16, so a 5% step of a 4 m gap rounds away.
    entity = _entity(PlanarPoint(1e16, 0.0), PlanarPoint(1e16 + 4.0, 0.0))

    assert entity.gap >= 1.0
    assert engine.step(entity) is None
    assert engine.tick([entity]) == {}


def test_frame_at_rest_with_tiny_epsilon_reports_no_motion() -> None:
    store = TrackStore(clock=_clock)
    engine = InterpolationEngine(InterpolationPolicy(epsilon=1e-9))
    store.merge([Track(id="4b1805", latitude=59.0, longitude=10.0, category=TrackCategory.AIR)])

    assert [engine.frame(store) for _ in range(5)] == [False] * 5
