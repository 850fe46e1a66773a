"""Per-host rate limiting for polite crawling."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class PerHostRateLimiter:
    """
    Rate limiter that enforces a minimum delay between requests to a host.

    Uses monotonic time, so wall-clock changes do not affect the delay.

    Example:
        limiter = PerHostRateLimiter(default_delay=0.5)

        async with limiter.limit("https://en.wikipedia.org/wiki/Car"):
            await fetch_page(...)

        async with limiter.limit("https://en.wikipedia.org/wiki/Vehicle"):
            # Will wait at least 0.5s after the first request started
            await fetch_page(...)
    """

    def __init__(
        self,
        default_delay: float = 0.5,
        host_delays: Optional[dict[str, float]] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            default_delay: Minimum seconds between requests to same host
            host_delays: Optional per-host overrides, e.g. {"en.wikipedia.org": 1.0}
        """
        self.default_delay = default_delay
        self.host_delays = host_delays or {}

        self._last_request: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _get_host(self, url: str) -> str:
        """Extract host from URL."""
        return urlparse(url).netloc

    def get_delay(self, host: str) -> float:
        return self.host_delays.get(host, self.default_delay)

    @asynccontextmanager
    async def limit(self, url: str) -> AsyncIterator[None]:
        """
        Async context manager for rate-limited requests.

        Args:
            url: The URL being requested

        Yields:
            None - perform your request in the context
        """
        host = self._get_host(url)
        delay = self.get_delay(host)

        async with self._lock:
            now = time.monotonic()
            last = self._last_request.get(host)
            wait_time = 0.0 if last is None else max(0.0, delay - (now - last))

            if wait_time > 0:
                logger.debug(f"Rate limiting {host}: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

            self._last_request[host] = time.monotonic()

        yield
