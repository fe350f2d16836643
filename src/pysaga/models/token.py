"""Bearer credential and OAuth2 token response models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysaga._constants import DEFAULT_TOKEN_EXPIRES_IN_S

_NEVER = datetime.max.replace(tzinfo=UTC)


class Credential(BaseModel):
    """A bearer token and the moment it stops being valid.

    Parameters
    ----------
    token : str
        Opaque bearer token.  Empty for anonymous access.
    expires_at : datetime
        Timezone-aware expiry.  Anonymous credentials never expire.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    token: str = ""
    expires_at: datetime = _NEVER

    @classmethod
    def anonymous(cls) -> Credential:
        return cls()

    @property
    def is_anonymous(self) -> bool:
        return not self.token

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        """Whether the token may still be used, keeping *margin* in reserve."""
        if self.is_anonymous:
            return True
        return now < self.expires_at - margin

    def authorization_header(self) -> dict[str, str]:
        if self.is_anonymous:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @field_validator("expires_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class TokenResponse(BaseModel):
    """Body of a successful client-credentials exchange."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., min_length=1)
    expires_in: int = DEFAULT_TOKEN_EXPIRES_IN_S
    token_type: str = "Bearer"
    scope: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("expires_in", mode="before")
    @classmethod
    def _default_expires_in(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_TOKEN_EXPIRES_IN_S
        return value

    def to_credential(self, issued_at: datetime) -> Credential:
        return Credential(
            token=self.access_token,
            expires_at=issued_at + timedelta(seconds=self.expires_in),
        )
