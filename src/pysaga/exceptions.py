"""Custom exception hierarchy for pysaga."""

from __future__ import annotations


class SagaError(Exception):
    """Base exception for all pysaga errors."""


class SagaConfigError(SagaError):
    """Invalid or missing configuration."""


class SagaAuthError(SagaError):
    """Credential exchange rejected, failed, or not configured.

    Raised by :class:`pysaga.token_cache.TokenCache`.  It is surfaced once
    per poll attempt and never terminates a polling loop.
    """

    def __init__(self, message: str, *, authority: str = "") -> None:
        self.authority = authority
        super().__init__(message)


class SagaFetchError(SagaError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SagaMalformedRecordError(SagaError):
    """A single raw feed record could not be normalised into a track.

    Only the offending record is dropped; the rest of the batch continues.
    """

    def __init__(self, message: str, *, feed: str = "") -> None:
        self.feed = feed
        super().__init__(message)
