"""HTTP transport for feed retrieval and token exchange."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysaga._constants import USER_AGENT
from pysaga._redact import redact_for_log
from pysaga.exceptions import SagaFetchError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by feeds and token caches.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def post_form(self, url: str, form: Mapping[str, str]) -> Any: ...


class HttpTransport:
    """aiohttp-backed transport that turns every failure into :class:`SagaFetchError`."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        request_headers = {"accept": "application/json", "user-agent": USER_AGENT}
        if headers:
            request_headers.update(headers)
        _logger.debug("GET %s params=%s headers=%s", url, params, redact_for_log(request_headers))
        return await self._request("GET", url, params=params, headers=request_headers)

    async def post_form(self, url: str, form: Mapping[str, str]) -> Any:
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        _logger.debug("POST %s form=%s", url, redact_for_log(form))
        return await self._request("POST", url, data=dict(form), headers=headers)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with self._http.request(method, url, timeout=self._timeout, **kwargs) as resp:
                body = await resp.read()
                if resp.status < 200 or resp.status >= 300:
                    raise SagaFetchError(
                        f"HTTP {resp.status} from {url}: {_snippet(body)}",
                        status_code=resp.status,
                        url=url,
                    )
        except SagaFetchError:
            raise
        except asyncio.TimeoutError as exc:
            raise SagaFetchError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise SagaFetchError(f"Request to {url} failed: {exc}", url=url) from exc

        # json.loads detects the encoding of a bytes body itself.
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SagaFetchError(f"Invalid JSON from {url}: {_snippet(body)}", url=url) from exc


def _snippet(body: bytes) -> str:
    return body[:200].decode("utf-8", errors="replace")
