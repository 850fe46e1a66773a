"""Async HTTP client that streams document bodies."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType

import aiohttp

from .. import __version__
from ..exceptions import TransportError
from .protocols import HttpStream
from .rate_limiter import PerHostRateLimiter

logger = logging.getLogger(__name__)


class AsyncHttpClient:
    """
    Async HTTP client that hands out document bodies as chunk streams.

    Features:
    - Streaming reads, so a scan can stop before the body is fully downloaded
    - Per-host politeness delay via PerHostRateLimiter
    - Optional exponential backoff retry when opening a document
    - Content size limits to prevent memory exhaustion

    Example:
        rate_limiter = PerHostRateLimiter(default_delay=0.5)
        client = AsyncHttpClient(rate_limiter=rate_limiter)

        async with client:
            async with client.stream("https://en.wikipedia.org/wiki/Car") as stream:
                async for chunk in stream.chunks:
                    ...
    """

    CHUNK_SIZE = 8192
    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB

    # Status codes that warrant a retry
    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

    # Exceptions that warrant a retry
    RETRYABLE_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        ConnectionError,
    )

    def __init__(
        self,
        rate_limiter: PerHostRateLimiter,
        max_retries: int = 0,
        retry_base_delay: float = 1.0,
        max_content_size: int = MAX_CONTENT_SIZE,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
        connect_timeout: float = 10.0,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            rate_limiter: Per-host rate limiter for polite crawling
            max_retries: Retry attempts when opening a document (0 = single attempt)
            retry_base_delay: Base delay for exponential backoff (seconds)
            max_content_size: Maximum response size in bytes
            user_agent: Custom User-Agent string
            proxy: Proxy URL (http:// or socks5://)
            default_timeout: Default read timeout in seconds
            connect_timeout: Connection timeout in seconds
        """
        self._rate_limiter = rate_limiter
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._connect_timeout = connect_timeout

        if user_agent is None:
            user_agent = f"firstlink/{__version__} (first-link article traversal)"
        self._user_agent = user_agent

        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        """Enter async context and create session."""
        connector = aiohttp.TCPConnector(
            limit_per_host=2,
            ttl_dns_cache=300,  # DNS cache TTL
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """
        Calculate delay for exponential backoff with jitter.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay: float = self._retry_base_delay * (2**attempt)
        jitter: float = random.uniform(0, 1)
        return delay + jitter

    async def _open(self, url: str, timeout: float) -> aiohttp.ClientResponse:
        """
        Open a response, retrying transient failures if configured.

        Raises:
            TransportError: On network errors or error status codes
        """
        assert self._session is not None
        client_timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self._connect_timeout,
            sock_read=timeout,
        )

        for attempt in range(self._max_retries + 1):
            try:
                async with self._rate_limiter.limit(url):
                    response = await self._session.get(
                        url,
                        timeout=client_timeout,
                        proxy=self._proxy,
                        allow_redirects=True,
                    )
            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt < self._max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Error fetching {url}: {e}, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self._max_retries + 1})"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"HTTP fetch error for {url}: {e}")
                raise TransportError(url, f"Request failed ({e.__class__.__name__}: {e})") from e

            if response.status in self.RETRYABLE_STATUS_CODES and attempt < self._max_retries:
                response.release()
                delay = self._calculate_retry_delay(attempt)
                logger.warning(
                    f"Got {response.status} for {url}, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self._max_retries + 1})"
                )
                await asyncio.sleep(delay)
                continue

            if response.status >= 400:
                response.release()
                raise TransportError(url, f"HTTP {response.status}", status_code=response.status)

            content_length = response.headers.get("Content-Length")
            if content_length and content_length.isdigit() and int(content_length) > self._max_content_size:
                response.release()
                raise TransportError(url, f"Content too large: {content_length} bytes")

            return response

        raise TransportError(url, "Retries exhausted")

    async def _iter_chunks(self, url: str, response: aiohttp.ClientResponse) -> AsyncGenerator[bytes, None]:
        """Yield body chunks, enforcing the size limit."""
        received = 0
        try:
            async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                received += len(chunk)
                if received > self._max_content_size:
                    raise TransportError(url, f"Content size limit exceeded: >{self._max_content_size} bytes")
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, f"Error reading body ({e.__class__.__name__}: {e})") from e

    @asynccontextmanager
    async def stream(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> AsyncIterator[HttpStream]:
        """
        Open a document and stream its body.

        Leaving the context releases the connection, so a caller that stops
        reading early does not download the rest of the document.

        Args:
            url: The URL to fetch
            timeout: Read timeout in seconds (uses default if None)

        Yields:
            HttpStream over the response body

        Raises:
            TransportError: On network errors, error status codes or size limits
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        response = await self._open(url, timeout or self._default_timeout)
        try:
            yield HttpStream(
                status_code=response.status,
                content_type=response.headers.get("Content-Type", ""),
                url=str(response.url),
                chunks=self._iter_chunks(url, response),
            )
        finally:
            response.release()
