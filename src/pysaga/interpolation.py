"""Display smoothing between network updates.

Each frame moves an entity's displayed position a fixed fraction of the
remaining gap toward its target (exponential decay).  The step is a
convex combination per axis, so it never overshoots; entities within
``epsilon`` of their target are left alone.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping

from pysaga._constants import DEFAULT_CONVERGED_EPSILON, DEFAULT_LERP_FACTOR
from pysaga.config import SagaConfig
from pysaga.exceptions import SagaConfigError
from pysaga.models.entity import Entity, PlanarPoint
from pysaga.models.track import TrackCategory
from pysaga.state.store import TrackStore


def lerp(start: float, end: float, factor: float) -> float:
    return start + (end - start) * factor


@dataclasses.dataclass(frozen=True)
class InterpolationPolicy:
    """Smoothing parameters for one category.

    Parameters
    ----------
    factor : float
        Fraction of the remaining gap closed per frame, in ``(0, 1]``.
    epsilon : float
        Gap (planar metres) below which the entity counts as converged.
    snap_distance : float or None
        Gaps larger than this jump straight to target instead of gliding.
    """

    factor: float = DEFAULT_LERP_FACTOR
    epsilon: float = DEFAULT_CONVERGED_EPSILON
    snap_distance: float | None = None

    def __post_init__(self) -> None:
        if not 0 < self.factor <= 1:
            raise SagaConfigError(f"factor must be in (0, 1], got {self.factor}")
        if self.epsilon <= 0:
            raise SagaConfigError(f"epsilon must be positive, got {self.epsilon}")
        if self.snap_distance is not None and self.snap_distance < self.epsilon:
            raise SagaConfigError("snap_distance must not be below epsilon")


class InterpolationEngine:
    """Advances displayed positions on a cadence independent of polling."""

    def __init__(
        self,
        default_policy: InterpolationPolicy | None = None,
        *,
        policies: Mapping[TrackCategory, InterpolationPolicy] | None = None,
    ) -> None:
        self._default = default_policy or InterpolationPolicy()
        self._policies = dict(policies or {})

    @classmethod
    def from_config(cls, config: SagaConfig) -> InterpolationEngine:
        default = InterpolationPolicy(factor=config.lerp_factor, epsilon=config.converged_epsilon)
        policies: dict[TrackCategory, InterpolationPolicy] = {}
        if config.sea_snap_distance is not None:
            policies[TrackCategory.SEA] = dataclasses.replace(default, snap_distance=config.sea_snap_distance)
        return cls(default, policies=policies)

    def policy_for(self, category: TrackCategory) -> InterpolationPolicy:
        return self._policies.get(category, self._default)

    def step(self, entity: Entity) -> PlanarPoint | None:
        """Next displayed position for *entity*, or ``None`` if it is at rest."""
        policy = self.policy_for(entity.category)
        gap = entity.gap
        if gap < policy.epsilon:
            return None
        if policy.snap_distance is not None and gap > policy.snap_distance:
            return entity.target
        displayed, target = entity.displayed, entity.target
        nxt = PlanarPoint(
            lerp(displayed.x, target.x, policy.factor),
            lerp(displayed.y, target.y, policy.factor),
        )
        # Float rounding can stall a step at large coordinates.
        return None if nxt == displayed else nxt

    def tick(self, entities: Iterable[Entity]) -> dict[str, PlanarPoint]:
        """Compute one frame; an empty result means nothing moved."""
        moves: dict[str, PlanarPoint] = {}
        for entity in entities:
            nxt = self.step(entity)
            if nxt is not None:
                moves[entity.id] = nxt
        return moves

    def frame(self, store: TrackStore) -> bool:
        """Run one frame against *store*; returns whether any entity moved."""
        moves = self.tick(store.snapshot())
        if not moves:
            return False
        return store.advance(moves) > 0
