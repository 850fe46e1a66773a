"""Main Traverser class with streaming event API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import nullcontext
from types import TracebackType
from typing import Any, Callable

from ..exceptions import DeadEndError, FirstLinkError
from ..http import AsyncHttpClient, HttpClient, PerHostRateLimiter
from ..links import (
    LinkExtractor,
    SoupLinkExtractor,
    StreamingLinkExtractor,
    TargetMatcher,
    build_policy,
)
from ..models.config import FirstLinkConfig
from ..models.events import EventType, Outcome, TraversalEvent, TraversalResult, TraversalStats
from ..models.path import Node, TraversalPath, VisitedSet
from ..models.profiles import apply_profile
from .interrupts import cancel_on_interrupt

logger = logging.getLogger(__name__)


class Traverser:
    """
    Primary API for firstlink - streaming events.

    Starting at the start article, repeatedly follows the first acceptable
    link of the current article until the article matches the target.
    When an article offers no acceptable link, the traverser backtracks to
    the previous article and looks for its next acceptable link; articles
    are never visited twice.

    The Traverser provides an async iterator interface that yields events
    as the traversal progresses. This enables:
    - Real-time progress tracking
    - Early termination via cancel(), with the partial path still reported
    - Custom event handling

    Example:
        config = FirstLinkConfig(target="Philosophy", start="Vehicle")

        async with Traverser(config) as traverser:
            async for event in traverser.run():
                if event.type == EventType.LINK_FOLLOWED:
                    print(f"{event.follow_count}: {event.url}")

        print(traverser.result.urls)
    """

    def __init__(
        self,
        config: FirstLinkConfig,
        *,
        http_client: HttpClient | None = None,
        link_extractor: LinkExtractor | None = None,
    ):
        """
        Initialize the Traverser.

        Args:
            config: Configuration for the traversal.
                    Profile defaults will be applied automatically.
            http_client: Optional document fetcher (an AsyncHttpClient is
                         created from the network config if omitted)
            link_extractor: Optional extractor (built from the config if omitted)

        Raises:
            ConfigurationError: If the target pattern is invalid
        """
        self.config = apply_profile(config)
        self._cancelled = False
        self._stats = TraversalStats()
        self._start_time: float | None = None
        self._result: TraversalResult | None = None

        corpus = self.config.corpus
        self._matcher = TargetMatcher(
            self.config.target,
            corpus.base_url,
            mode=self.config.traversal.target_mode,
        )
        self._visited = VisitedSet()
        self._path: TraversalPath | None = None

        # Components (initialized in __aenter__ unless injected)
        self._http_client: HttpClient | None = http_client
        self._owned_client: AsyncHttpClient | None = None
        self._link_extractor: LinkExtractor | None = link_extractor

    @property
    def stats(self) -> TraversalStats:
        """Get current traversal statistics."""
        return self._stats

    @property
    def result(self) -> TraversalResult | None:
        """Terminal report, set once the traversal has ended."""
        return self._result

    @property
    def path(self) -> list[Node]:
        """Current path from the start article to the tail."""
        return self._path.snapshot() if self._path else []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """
        Request graceful cancellation of the traversal.

        The traversal finishes the step in flight and then stops with the
        path as it stands. Calling this more than once has no further effect.
        """
        if not self._cancelled:
            logger.info("Cancellation requested")
            self._cancelled = True

    def _build_link_extractor(self, http_client: HttpClient) -> LinkExtractor:
        scope = self.config.corpus.scope
        timeout = float(self.config.network.read_timeout)
        if self.config.traversal.parser == "soup":
            return SoupLinkExtractor(http_client, scope=scope, timeout=timeout)
        return StreamingLinkExtractor(http_client, scope=scope, timeout=timeout)

    async def __aenter__(self) -> Traverser:
        """Enter async context and initialize components."""
        if self._http_client is None:
            network = self.config.network
            self._owned_client = AsyncHttpClient(
                rate_limiter=PerHostRateLimiter(default_delay=network.rate_limit),
                max_retries=network.max_retries,
                user_agent=network.user_agent,
                proxy=network.proxy,
                default_timeout=float(network.read_timeout),
                connect_timeout=float(network.connect_timeout),
            )
            await self._owned_client.__aenter__()
            self._http_client = self._owned_client

        if self._link_extractor is None:
            self._link_extractor = self._build_link_extractor(self._http_client)

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and cleanup resources."""
        if self._owned_client:
            await self._owned_client.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_client = None
            self._http_client = None

    def _finish(self, outcome: Outcome, error: str | None = None) -> TraversalResult:
        if self._start_time is not None:
            self._stats.duration_seconds = time.monotonic() - self._start_time
        self._result = TraversalResult(outcome=outcome, path=self.path, error=error)
        return self._result

    async def run(self) -> AsyncIterator[TraversalEvent]:
        """
        Execute the traversal, yielding events.

        Each step visits the tail of the path: a tail matching the target
        ends the run; otherwise its first acceptable link is appended, or,
        if there is none, the tail is dropped and its predecessor scanned
        again. Cancellation is checked before every step.

        Yields:
            TraversalEvent objects for each step

        Raises:
            DeadEndError: If no link is reachable from the start article
            TransportError: If a document cannot be fetched
            ExtractionError: If a document cannot be scanned
        """
        if self._link_extractor is None:
            raise RuntimeError("Traverser not initialized. Use 'async with' context manager.")

        self._start_time = time.monotonic()
        start = Node(url=self.config.start_url, title=self.config.start.replace("_", " "))
        path = self._path = TraversalPath(start)
        self._visited = VisitedSet()
        policy = build_policy(
            self.config.traversal.policy,
            self.config.corpus.base_url,
            self._visited,
        )

        yield TraversalEvent(
            type=EventType.STARTED,
            url=start.url,
            follow_count=0,
            message=f"Starting at {start.url}",
        )

        try:
            while True:
                if self._cancelled:
                    self._finish(Outcome.CANCELLED)
                    yield TraversalEvent(
                        type=EventType.CANCELLED,
                        url=path.tail.url,
                        follow_count=path.follow_count,
                        message="Traversal cancelled by user",
                    )
                    return

                tail = path.tail
                if self._visited.add(tail):
                    yield TraversalEvent(
                        type=EventType.PAGE_VISITED,
                        url=tail.url,
                        follow_count=path.follow_count,
                    )

                # Match against the target
                if self._matcher.matches(tail.url):
                    self._finish(Outcome.MATCHED)
                    yield TraversalEvent(
                        type=EventType.MATCHED,
                        url=tail.url,
                        follow_count=path.follow_count,
                        message=f"Found match, took {path.follow_count} follows",
                    )
                    return

                self._stats.pages_fetched += 1
                link = await self._link_extractor.first_link(tail.url, policy.accept)

                if link is not None:
                    path.append(Node(url=link.url, title=link.title))
                    self._stats.links_followed += 1
                    logger.debug(f"Followed {tail.url} -> {link.url}")
                    yield TraversalEvent(
                        type=EventType.LINK_FOLLOWED,
                        url=link.url,
                        follow_count=path.follow_count,
                    )
                    continue

                # Could not find a link on this page, go back up one page
                self._stats.dead_ends += 1
                yield TraversalEvent(
                    type=EventType.DEAD_END,
                    url=tail.url,
                    follow_count=path.follow_count,
                    message=f"No qualifying link on {tail.url}",
                )
                if path.at_start:
                    raise DeadEndError(tail.url)

                path.pop()
                self._stats.backtracks += 1
                logger.info(f"Dead end at {tail.url}, backtracking to {path.tail.url}")
                yield TraversalEvent(
                    type=EventType.BACKTRACKED,
                    url=path.tail.url,
                    follow_count=path.follow_count,
                    message=f"Backtracked from {tail.url}",
                )

        except asyncio.CancelledError:
            self._finish(Outcome.CANCELLED)
            raise

        except FirstLinkError as e:
            outcome = Outcome.DEAD_END if isinstance(e, DeadEndError) else Outcome.FAILED
            self._finish(outcome, error=str(e))
            logger.error(f"Traversal failed: {e}")
            yield TraversalEvent(
                type=EventType.FAILED,
                url=path.tail.url,
                follow_count=path.follow_count,
                error=str(e),
                message=f"Traversal failed: {e}",
            )
            raise

        except Exception as e:
            self._finish(Outcome.FAILED, error=str(e))
            yield TraversalEvent(
                type=EventType.FAILED,
                url=path.tail.url,
                follow_count=path.follow_count,
                error=str(e),
                message=f"Traversal failed: {e}",
            )
            raise

    async def traverse(self) -> TraversalResult:
        """
        Run the traversal to a terminal state and return the report.

        Raises:
            FirstLinkError: On fatal conditions; ``result`` still holds the partial path
        """
        async for _ in self.run():
            pass
        assert self._result is not None
        return self._result


def traverse_blocking(
    target: str,
    start: str,
    on_event: Callable[[TraversalEvent], None] | None = None,
    handle_interrupt: bool = True,
    **kwargs: Any,
) -> TraversalResult:
    """
    Blocking traversal with optional event callback.

    This is a convenience wrapper for sync code that can't use async/await.
    For async code, use the Traverser class directly.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use the async Traverser API instead.

    Args:
        target: Target pattern matched against article titles
        start: Start article title
        on_event: Optional callback for events (for progress tracking)
        handle_interrupt: Cancel the traversal on SIGINT instead of raising
        **kwargs: Additional config options passed to FirstLinkConfig

    Returns:
        The traversal report (matched or cancelled)

    Example:
        result = traverse_blocking("Philosophy", "Vehicle")
        for offset, node in enumerate(result.path):
            print(offset, node.url)
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError("traverse_blocking() called from async context. Use 'async with Traverser()' instead.")
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    config = FirstLinkConfig(target=target, start=start, **kwargs)

    async def _run() -> TraversalResult:
        async with Traverser(config) as traverser:
            guard = cancel_on_interrupt(traverser) if handle_interrupt else nullcontext()
            with guard:
                async for event in traverser.run():
                    if on_event:
                        on_event(event)
            assert traverser.result is not None
            return traverser.result

    return asyncio.run(_run())
