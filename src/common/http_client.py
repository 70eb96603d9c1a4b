"""Async HTTP access shared by the registries and the URL fetcher.

Wraps a single aiohttp session per run with a total timeout, bounded retries
with exponential backoff, manual redirect following and per-hop proxy
selection. Failures are raised as FetchError/FetchTimeout so callers decide
whether the run survives.
"""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Dict, Optional, Tuple

import aiohttp

from constants import Constants
from errors import FetchError, FetchTimeout
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from common.proxy_config import ProxyConfig

logger = logging.getLogger(__name__)

_REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class HttpClient:
    """GET-only client used for registry metadata and module content."""

    def __init__(
        self,
        proxy_config: Optional[ProxyConfig] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ):
        """Initialize the client.

        Args:
            proxy_config: Proxy provider; defaults to the process environment.
            timeout: Total per-request timeout in seconds.
            retries: Attempts per URL before giving up.
            retry_delay: Base delay for exponential backoff between attempts.
            max_concurrency: Upper bound on simultaneous requests.
        """
        self._proxy_config = proxy_config or ProxyConfig.from_env()
        self._timeout_sec = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
        self._retries = max(1, retries if retries is not None else Constants.HTTP_RETRY_MAX)
        self._retry_delay = (
            retry_delay if retry_delay is not None else Constants.HTTP_RETRY_BASE_DELAY_SEC
        )
        self._semaphore = asyncio.Semaphore(
            max_concurrency if max_concurrency is not None else Constants.MAX_CONCURRENCY
        )
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def timeout(self) -> float:
        """Configured per-request timeout in seconds."""
        return self._timeout_sec

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_sec),
                headers={"User-Agent": Constants.USER_AGENT},
                trust_env=False,
            )

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def get(
        self,
        url: str,
        *,
        context: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[str, bytes]:
        """Fetch ``url`` and return (final URL after redirects, body bytes).

        Args:
            url: Absolute http(s) URL.
            context: Short source tag for logs (e.g. "jsr", "npm", "remote").
            headers: Optional extra request headers.

        Raises:
            FetchError: On a non-retryable status or after exhausting retries.
            FetchTimeout: When the final attempt timed out.
        """
        if self._session is None:
            await self.start()
        request_headers = {"Accept": "*/*"}
        if headers:
            request_headers.update(headers)
        safe_target = safe_url(url)
        timed_out = False
        last_error = "unknown error"

        for attempt in range(self._retries):
            if attempt:
                await asyncio.sleep(self._retry_delay * (2 ** (attempt - 1)))
            with Timer() as t:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1,
                        ),
                    )
                try:
                    async with self._semaphore:
                        final_url, status, body = await self._get_following_redirects(
                            url, request_headers
                        )
                except asyncio.TimeoutError:
                    timed_out = True
                    last_error = "timeout"
                    logger.debug("%s request to %s timed out (attempt %d)", context, safe_target, attempt + 1)
                    continue
                except aiohttp.ClientError as exc:
                    timed_out = False
                    last_error = str(exc) or type(exc).__name__
                    logger.debug("%s request to %s failed: %s", context, safe_target, last_error)
                    continue

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            status_code=status,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                            context=context,
                        ),
                    )
                if status == 200:
                    return final_url, body
                if 400 <= status < 500:
                    # Client errors do not get better on retry.
                    raise FetchError(url, f"HTTP {status}", status=status)
                timed_out = False
                last_error = f"HTTP {status}"

        if timed_out:
            raise FetchTimeout(url, self._timeout_sec)
        raise FetchError(url, f"{last_error} after {self._retries} attempts")

    async def _get_following_redirects(
        self, url: str, headers: Dict[str, str]
    ) -> Tuple[str, int, bytes]:
        """Request URL, following at most HTTP_MAX_REDIRECTS http(s) redirects."""
        assert self._session is not None
        current_url = url
        for _ in range(Constants.HTTP_MAX_REDIRECTS + 1):
            response = await self._session.get(
                current_url,
                headers=headers,
                allow_redirects=False,
                proxy=self._proxy_config.proxy_for(current_url),
            )
            try:
                if response.status not in _REDIRECT_STATUSES:
                    body = await response.read() if response.status == 200 else b""
                    return current_url, response.status, body
                location = response.headers.get("Location")
                if not location:
                    return current_url, response.status, b""
            finally:
                response.release()

            next_url = urllib.parse.urljoin(current_url, location)
            if urllib.parse.urlsplit(next_url).scheme not in ("http", "https"):
                raise aiohttp.ClientError(f"Redirect to unsupported scheme: {safe_url(next_url)}")
            current_url = next_url

        raise aiohttp.ClientError("Too many redirects")

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
