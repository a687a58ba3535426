# ABOUTME: Async HTTP client for scraping availability pages.
# ABOUTME: Provides rate limiting, retry with backoff, rotating User-Agent, and injectable transport.

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_MAX_BACKOFF_SECONDS = 5.0

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
)

_BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class ScraperFetchError(Exception):
    """Raised when fetching a page fails after all retry attempts."""


@dataclass
class ScraperConfig:
    """Request settings for one scraper. Mutable so operators can retune at runtime.

    ``timeout`` is in seconds; ``rate_limit_ms`` is the minimum gap between
    requests. ``retry_delay`` scales the exponential backoff (0 disables it).
    """

    search_url: str = ""
    timeout: float = 15.0
    rate_limit_ms: int = 2000
    max_retries: int = 3
    retry_delay: float = 1.0
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS


@dataclass
class RequestStats:
    """Per-attempt request counters; a retried request counts once per attempt."""

    requests: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0

    def reset(self) -> None:
        self.requests = 0
        self.successes = 0
        self.failures = 0
        self.retries = 0


class ScraperHttpClient:
    """HTTP client with rate limiting and retry for scraping HTML pages.

    Wraps httpx.AsyncClient. Transient failures (transport errors, timeouts,
    429 and 5xx) are retried with exponential backoff capped at five seconds;
    any other non-success status fails immediately.
    """

    def __init__(
        self,
        config: ScraperConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": _BASE_HEADERS,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self.config = config
        self.stats = RequestStats()
        self._last_request_time: float = 0.0
        self._rate_lock = asyncio.Lock()
        self._last_request_at: datetime | None = None

    @property
    def last_request_at(self) -> datetime | None:
        """Wall-clock time of the most recent request, if any."""
        return self._last_request_at

    async def get_text(self, url: str, params: dict[str, str] | None = None) -> str:
        """Send a GET request with rate limiting and retry.

        Args:
            url: The URL to request.
            params: Optional query parameters.

        Returns:
            The response body as text.

        Raises:
            ScraperFetchError: On non-retryable HTTP errors or exhausted retries.
        """
        attempts = max(1, self.config.max_retries)
        last_error = ""
        for attempt in range(1, attempts + 1):
            await self._rate_limit()
            self.stats.requests += 1
            try:
                response = await self._client.get(
                    url,
                    params=params,
                    headers={"User-Agent": random.choice(self.config.user_agents)},
                    timeout=self.config.timeout,
                )
            except httpx.HTTPError as exc:
                self.stats.failures += 1
                last_error = f"Request failed: {url}: {exc}"
            else:
                if response.is_success:
                    self.stats.successes += 1
                    return response.text

                self.stats.failures += 1
                last_error = f"HTTP {response.status_code} from {url}"
                if response.status_code not in _RETRYABLE_STATUS_CODES:
                    raise ScraperFetchError(last_error)

            if attempt < attempts:
                self.stats.retries += 1
                delay = self._backoff(attempt)
                logger.warning(
                    "%s, retrying in %.1fs (attempt %d/%d)",
                    last_error,
                    delay,
                    attempt,
                    attempts,
                )
                await asyncio.sleep(delay)

        raise ScraperFetchError(f"{last_error} after {attempts} attempts")

    async def aclose(self) -> None:
        await self._client.aclose()

    def _backoff(self, attempt: int) -> float:
        return min(2 ** (attempt - 1), _MAX_BACKOFF_SECONDS) * self.config.retry_delay

    async def _rate_limit(self) -> None:
        """Sleep if needed to maintain the minimum interval between requests.

        The lock is held until the timestamp is updated, so concurrent callers
        sharing this client are spaced out one after another.
        """
        async with self._rate_lock:
            interval = self.config.rate_limit_ms / 1000
            now = time.monotonic()
            if interval > 0 and self._last_request_time > 0:
                elapsed = now - self._last_request_time
                if elapsed < interval:
                    await asyncio.sleep(interval - elapsed)
            self._last_request_time = time.monotonic()
            self._last_request_at = datetime.now(timezone.utc)
