"""Engine configuration for pysaga."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pysaga._constants import (
    BARENTSWATCH_SCOPE,
    BARENTSWATCH_TOKEN_URL,
    DEFAULT_BBOX,
    DEFAULT_CONVERGED_EPSILON,
    DEFAULT_LERP_FACTOR,
    DEFAULT_REFRESH_MARGIN_S,
    OPENSKY_TOKEN_URL,
)
from pysaga.exceptions import SagaConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise SagaConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BoundingBox:
    """Geographic coverage area in degrees.

    Records outside the box are discarded by every feed adapter.
    """

    south: float
    west: float
    north: float
    east: float

    def __post_init__(self) -> None:
        if self.south > self.north:
            raise SagaConfigError(f"bounding box south ({self.south}) is north of north ({self.north})")
        if self.west > self.east:
            raise SagaConfigError(f"bounding box west ({self.west}) is east of east ({self.east})")

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.south <= latitude <= self.north and self.west <= longitude <= self.east

    @classmethod
    def parse(cls, value: str) -> BoundingBox:
        """Parse ``"south,west,north,east"``."""
        parts = [part.strip() for part in value.split(",")]
        if len(parts) != 4:
            raise SagaConfigError(f"bounding box needs 4 comma separated values, got {value!r}")
        south, west, north, east = (_env_float("SAGA_BBOX", part) for part in parts)
        return cls(south=south, west=west, north=north, east=east)


@dataclasses.dataclass(frozen=True)
class AuthorityConfig:
    """One token-issuing service.

    Parameters
    ----------
    name : str
        Label used in logs and errors (e.g. ``"barentswatch"``).
    token_url : str
        OAuth2 token endpoint.
    client_id : str or None
        Client id. ``None`` together with a missing secret means anonymous.
    client_secret : str or None
        Client secret.
    scope : str or None
        Optional ``scope`` form field.
    allow_anonymous : bool
        Whether the feed works without a bearer token.  When ``False`` a
        missing id/secret is an authentication error.
    """

    name: str
    token_url: str
    client_id: str | None = None
    client_secret: str | None = None
    scope: str | None = None
    allow_anonymous: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)


@dataclasses.dataclass(frozen=True)
class SagaConfig:
    """Engine configuration.

    Parameters
    ----------
    bounding_box : BoundingBox
        Coverage area. Defaults to mainland Norway and its waters.
    opensky_enabled : bool
        Poll the OpenSky air picture.
    opensky_client_id, opensky_client_secret : str or None
        OpenSky OAuth2 client. Absent means anonymous access.
    opensky_interval : float
        Seconds between OpenSky polls.
    barentswatch_enabled : bool
        Poll the BarentsWatch AIS sea picture (needs credentials).
    barentswatch_client_id, barentswatch_client_secret : str or None
        BarentsWatch OAuth2 client.
    barentswatch_interval : float
        Seconds between BarentsWatch polls.
    poll_timeout : float
        Upper bound in seconds for one poll, token exchange included.
    render_hz : float
        Interpolation frames per second.
    refresh_margin : float
        Seconds before expiry at which a cached token is refreshed.
    lerp_factor : float
        Fraction of the remaining gap closed per frame.
    converged_epsilon : float
        Planar distance (metres) below which an entity counts as converged.
    sea_snap_distance : float or None
        When set, vessels whose gap exceeds this distance snap straight
        to target instead of gliding.
    entity_ttl : float
        Seconds without a report after which an entity is dropped.
        ``0`` keeps entities for the lifetime of the process.
    """

    bounding_box: BoundingBox = dataclasses.field(default_factory=lambda: BoundingBox(*DEFAULT_BBOX))
    opensky_enabled: bool = True
    opensky_client_id: str | None = None
    opensky_client_secret: str | None = None
    opensky_interval: float = 5.0
    barentswatch_enabled: bool = True
    barentswatch_client_id: str | None = None
    barentswatch_client_secret: str | None = None
    barentswatch_interval: float = 10.0
    poll_timeout: float = 15.0
    render_hz: float = 60.0
    refresh_margin: float = DEFAULT_REFRESH_MARGIN_S
    lerp_factor: float = DEFAULT_LERP_FACTOR
    converged_epsilon: float = DEFAULT_CONVERGED_EPSILON
    sea_snap_distance: float | None = None
    entity_ttl: float = 0.0

    def __post_init__(self) -> None:
        if self.opensky_interval <= 0 or self.barentswatch_interval <= 0:
            raise SagaConfigError("poll intervals must be positive")
        if self.poll_timeout <= 0:
            raise SagaConfigError("poll_timeout must be positive")
        if self.render_hz <= 0:
            raise SagaConfigError("render_hz must be positive")
        if not 0 < self.lerp_factor <= 1:
            raise SagaConfigError(f"lerp_factor must be in (0, 1], got {self.lerp_factor}")
        if self.converged_epsilon <= 0:
            raise SagaConfigError(f"converged_epsilon must be positive, got {self.converged_epsilon}")
        if self.entity_ttl < 0:
            raise SagaConfigError("entity_ttl must not be negative")

    def opensky_authority(self) -> AuthorityConfig:
        return AuthorityConfig(
            name="opensky",
            token_url=OPENSKY_TOKEN_URL,
            client_id=self.opensky_client_id,
            client_secret=self.opensky_client_secret,
            allow_anonymous=True,
        )

    def barentswatch_authority(self) -> AuthorityConfig:
        return AuthorityConfig(
            name="barentswatch",
            token_url=BARENTSWATCH_TOKEN_URL,
            client_id=self.barentswatch_client_id,
            client_secret=self.barentswatch_client_secret,
            scope=BARENTSWATCH_SCOPE,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> SagaConfig:
        """Create configuration from ``SAGA_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "SAGA_OPENSKY_CLIENT_ID": "opensky_client_id",
            "SAGA_OPENSKY_CLIENT_SECRET": "opensky_client_secret",
            "SAGA_BARENTSWATCH_CLIENT_ID": "barentswatch_client_id",
            "SAGA_BARENTSWATCH_CLIENT_SECRET": "barentswatch_client_secret",
        }
        _ENV_FLOAT_MAP = {
            "SAGA_OPENSKY_INTERVAL": "opensky_interval",
            "SAGA_BARENTSWATCH_INTERVAL": "barentswatch_interval",
            "SAGA_POLL_TIMEOUT": "poll_timeout",
            "SAGA_RENDER_HZ": "render_hz",
            "SAGA_REFRESH_MARGIN": "refresh_margin",
            "SAGA_LERP_FACTOR": "lerp_factor",
            "SAGA_SEA_SNAP_DISTANCE": "sea_snap_distance",
            "SAGA_ENTITY_TTL": "entity_ttl",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        bbox_env = env.get("SAGA_BBOX")
        if bbox_env is not None and "bounding_box" not in overrides:
            config_kwargs["bounding_box"] = BoundingBox.parse(bbox_env)

        if "opensky_enabled" not in overrides:
            config_kwargs["opensky_enabled"] = _env_bool(env.get("SAGA_OPENSKY_ENABLED"), True)
        if "barentswatch_enabled" not in overrides:
            config_kwargs["barentswatch_enabled"] = _env_bool(env.get("SAGA_BARENTSWATCH_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
