"""Per-authority bearer token cache.

One :class:`TokenCache` exists per token-issuing service for the lifetime
of the process.  Feeds that need a bearer header share the instance for
their authority; the cache asks the authority at most once per validity
window.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from pysaga._constants import DEFAULT_REFRESH_MARGIN_S
from pysaga._redact import redact_for_log
from pysaga._transport import Transport
from pysaga.config import AuthorityConfig
from pysaga.exceptions import SagaAuthError, SagaFetchError
from pysaga.models.token import Credential, TokenResponse

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def parse_token_response(payload: Any, *, issued_at: datetime, authority: str = "") -> Credential:
    """Turn a client-credentials response body into a :class:`Credential`.

    Raises
    ------
    SagaAuthError
        If the authority returned an OAuth2 error or no ``access_token``.
    """
    if not isinstance(payload, dict):
        raise SagaAuthError(f"{authority} token response is not an object", authority=authority)
    if "error" in payload:
        raise SagaAuthError(
            f"{authority} rejected token exchange: {payload.get('error')} {payload.get('error_description', '')}".strip(),
            authority=authority,
        )
    try:
        response = TokenResponse.model_validate({**payload, "raw": payload})
    except ValidationError as exc:
        raise SagaAuthError(f"{authority} token response missing access_token", authority=authority) from exc
    return response.to_credential(issued_at)


class TokenCache:
    """Cache of the bearer credential for one authority.

    Parameters
    ----------
    authority : AuthorityConfig
        Token endpoint and client credentials.
    transport : Transport
        Used for the form POST to the token endpoint.
    refresh_margin : float
        Seconds before expiry at which the cached credential stops being
        handed out and a new exchange is made.
    clock : callable
        Returns the current aware UTC datetime.  Injected by tests.
    """

    def __init__(
        self,
        authority: AuthorityConfig,
        transport: Transport,
        *,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._authority = authority
        self._transport = transport
        self._refresh_margin = timedelta(seconds=refresh_margin)
        self._clock = clock
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()
        # Bumped after every exchange so waiters can tell one finished while they queued.
        self._generation = 0
        self._last_failure: SagaAuthError | None = None

    @property
    def authority(self) -> AuthorityConfig:
        return self._authority

    @property
    def credential(self) -> Credential | None:
        """The cached credential, fresh or not (``None`` before the first exchange)."""
        return self._credential

    def invalidate(self) -> None:
        """Drop the cached credential (next call will exchange)."""
        self._credential = None

    def _fresh(self) -> Credential | None:
        cached = self._credential
        if cached is not None and cached.is_fresh(self._clock(), self._refresh_margin):
            return cached
        return None

    async def get_valid_credential(self) -> Credential:
        """Return a usable credential, exchanging for a new one if needed.

        Anonymous authorities without configured secrets get
        :meth:`Credential.anonymous`.  Concurrent callers share one
        exchange: refresh is serialised by a per-cache lock and waiters
        pick up the credential the first caller stored, or its failure.

        Raises
        ------
        SagaAuthError
            If secrets are required but absent, or the exchange fails.
            A failed exchange also discards the stale credential.
        """
        name = self._authority.name
        if not self._authority.has_credentials:
            if self._authority.allow_anonymous:
                return Credential.anonymous()
            raise SagaAuthError(f"{name} client id/secret missing from configuration", authority=name)

        cached = self._fresh()
        if cached is not None:
            return cached

        generation = self._generation
        async with self._lock:
            # Another caller may have refreshed while we waited for the lock.
            cached = self._fresh()
            if cached is not None:
                return cached
            failure = self._last_failure
            if failure is not None and self._generation != generation:
                raise SagaAuthError(str(failure), authority=name) from failure
            self._credential = None
            self._last_failure = None
            try:
                credential = await self._exchange()
            except SagaAuthError as exc:
                self._last_failure = exc
                raise
            finally:
                self._generation += 1
            self._credential = credential
            return credential

    async def _exchange(self) -> Credential:
        name = self._authority.name
        form: dict[str, str] = {
            "grant_type": "client_credentials",
            "client_id": self._authority.client_id or "",
            "client_secret": self._authority.client_secret or "",
        }
        if self._authority.scope:
            form["scope"] = self._authority.scope

        _logger.info("Acquiring new %s access token", name)
        issued_at = self._clock()
        try:
            payload = await self._transport.post_form(self._authority.token_url, form)
        except SagaFetchError as exc:
            raise SagaAuthError(f"{name} token exchange failed: {exc}", authority=name) from exc

        _logger.debug("%s token response parsed=%s", name, redact_for_log(payload))
        credential = parse_token_response(payload, issued_at=issued_at, authority=name)
        _logger.debug("%s access token valid until %s", name, credential.expires_at.isoformat())
        return credential
