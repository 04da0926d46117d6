"""Async HTTP client abstraction tailored for the Asterisk manager bridge."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from http.cookies import CookieError, SimpleCookie
from typing import Protocol

import httpx

from .config import HttpClientConfig, ManagerEndpoint
from .errors import TransportError

logger = logging.getLogger(__name__)


class AsyncHttpClientProtocol(Protocol):
    """Protocol describing the async HTTP operations required by the dispatcher."""

    async def get(
        self, path: str, *, params: Mapping[str, str] | None = None
    ) -> httpx.Response:  # pragma: no cover - protocol signature
        """Send a GET request and return a 200 response, raising ``TransportError`` otherwise."""
        ...

    async def close(self) -> None:  # pragma: no cover - protocol signature
        """Release HTTP resources and close underlying connections."""
        ...


class ManagerHttpClient(AsyncHttpClientProtocol):
    """httpx-based client bound to one bridge with a shared cookie store."""

    def __init__(
        self,
        endpoint: ManagerEndpoint,
        config: HttpClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the HTTP client for *endpoint* with optional *config*.

        *transport* overrides the network layer, mainly for tests.
        """
        self._config = config or HttpClientConfig()
        limits = httpx.Limits(max_connections=self._config.max_connections)
        self._client = httpx.AsyncClient(
            base_url=endpoint.base_url,
            timeout=httpx.Timeout(self._config.timeout),
            limits=limits,
            headers={"User-Agent": self._config.user_agent},
            transport=transport,
        )

    @property
    def cookies(self) -> httpx.Cookies:
        """Return the cookie store shared by every request."""
        return self._client.cookies

    async def get(
        self, path: str, *, params: Mapping[str, str] | None = None
    ) -> httpx.Response:
        """Send a GET request; httpx keeps returned cookies in the shared store."""
        logger.debug("GET %s with params=%s", path, None if params is None else list(params))
        started = time.perf_counter()
        try:
            response = await self._client.get(path, params=params, follow_redirects=False)
        except httpx.HTTPError as exc:
            logger.error("HTTP GET %s failed: %s", path, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if response.status_code != httpx.codes.OK:
            logger.error("HTTP GET %s returned status %s", path, response.status_code)
            raise TransportError(f"{path} returned HTTP {response.status_code}")
        self._check_cookies(response)
        logger.debug("GET %s completed in %.2f ms", path, elapsed_ms)
        return response

    async def close(self) -> None:
        """Close the underlying httpx.AsyncClient instance."""
        await self._client.aclose()
        logger.debug("httpx.AsyncClient closed for base URL %s", self._client.base_url)

    def _check_cookies(self, response: httpx.Response) -> None:
        """Warn about ``Set-Cookie`` headers the cookie store silently rejected."""
        headers = response.headers.get_list("set-cookie")
        if not headers:
            return
        stored = {cookie.name for cookie in self._client.cookies.jar}
        for header in headers:
            parsed = SimpleCookie()
            try:
                parsed.load(header)
            except CookieError as exc:
                logger.warning("Ignoring unparsable cookie %r: %s", header, exc)
                continue
            if not parsed:
                logger.warning("Ignoring unparsable cookie %r", header)
                continue
            for name, morsel in parsed.items():
                # Max-Age=0 is a deletion, so the name is expected to be absent.
                if name not in stored and morsel["max-age"] != "0":
                    logger.warning("Cookie %s from %r was not stored", name, header)
        logger.debug("Cookie store holds %d cookie(s)", len(self._client.cookies))
