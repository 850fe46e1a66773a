"""Streaming first-link extraction over an incremental HTML tokenizer."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable, Iterator
from contextlib import aclosing, contextmanager
from html.parser import HTMLParser
from typing import Optional
from urllib.parse import urljoin

from ...exceptions import ExtractionError, FirstLinkError
from ...http.protocols import DEFAULT_ENCODING, HttpClient
from .protocols import ExtractedLink, ScopeRules

logger = logging.getLogger(__name__)

Attrs = list[tuple[str, Optional[str]]]


def resolve_href(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve an href against the document URL.

    Args:
        href: The href attribute value
        base_url: URL of the document the anchor was found in

    Returns:
        Absolute URL, or None if the href is empty or malformed
    """
    if href is None:
        return None
    href = href.strip()
    if not href:
        return None

    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def _first_attr(attrs: Attrs, name: str) -> Optional[str]:
    for key, value in attrs:
        if key == name:
            return value
    return None


def _incremental_decoder(encoding: str) -> codecs.IncrementalDecoder:
    try:
        return codecs.getincrementaldecoder(encoding)(errors="replace")
    except LookupError:
        logger.debug(f"Unknown encoding {encoding!r}, falling back to {DEFAULT_ENCODING}")
        return codecs.getincrementaldecoder(DEFAULT_ENCODING)(errors="replace")


class FirstLinkScanner(HTMLParser):
    """
    Token-level state machine that finds the first accepted in-scope anchor.

    State is two integer counters and a flag, so memory does not grow with
    the document:
    - ``in_container``: inside the content container
    - ``depth``: nested container tags opened inside the container
    - ``block_depth``: open text blocks inside the container

    An anchor is eligible while inside the container and at least one text
    block (or anywhere in the container when no block tag is configured).
    Eligible anchors are proposed to ``accept`` in document order; the first
    one accepted ends the scan.
    """

    def __init__(
        self,
        base_url: str,
        accept: Callable[[str], bool],
        scope: ScopeRules,
    ):
        super().__init__(convert_charrefs=True)
        self.base_url = base_url
        self.accept = accept
        self.scope = scope

        self.in_container = scope.container_key is None
        self.depth = 0
        self.block_depth = 0
        self.candidates = 0
        self.found: Optional[ExtractedLink] = None
        # Exception raised by ``accept``, if any
        self.predicate_error: Optional[Exception] = None

    @property
    def in_block(self) -> bool:
        if not self.in_container:
            return False
        return self.scope.block_tag is None or self.block_depth > 0

    def _tracks_container(self, tag: str) -> bool:
        return self.scope.container_key is not None and tag == self.scope.container_tag

    def handle_starttag(self, tag: str, attrs: Attrs) -> None:
        if self.found is not None:
            return

        if self._tracks_container(tag):
            if self.in_container:
                # Descend into an inner container
                self.depth += 1
            elif _first_attr(attrs, self.scope.container_attr) == self.scope.container_key:
                self.in_container = True
            return

        if not self.in_container:
            return

        if tag == self.scope.block_tag:
            self.block_depth += 1
        elif tag == "a" and self.in_block:
            self._consider(attrs)

    def handle_endtag(self, tag: str) -> None:
        if self.found is not None:
            return

        if self._tracks_container(tag):
            if not self.in_container:
                return
            if self.depth == 0:
                self.in_container = False
                self.block_depth = 0
            else:
                self.depth -= 1
            return

        if self.in_container and tag == self.scope.block_tag and self.block_depth > 0:
            self.block_depth -= 1

    def _consider(self, attrs: Attrs) -> None:
        href = _first_attr(attrs, "href")
        resolved = resolve_href(href, self.base_url)
        if resolved is None:
            if href is not None:
                logger.debug(f"Skipping malformed href {href!r} on {self.base_url}")
            return

        self.candidates += 1
        try:
            accepted = self.accept(resolved)
        except Exception as e:
            self.predicate_error = e
            raise
        if accepted:
            self.found = ExtractedLink(url=resolved, title=_first_attr(attrs, "title"))


class StreamingLinkExtractor:
    """
    Extract the first accepted link while the document is still downloading.

    The body is decoded and tokenized chunk by chunk; reading stops as soon as
    a link is accepted, and the rest of the document is never downloaded.

    Example:
        extractor = StreamingLinkExtractor(http_client)
        link = await extractor.first_link(url, policy.accept)
        if link is None:
            ...  # dead end
    """

    def __init__(
        self,
        http_client: HttpClient,
        scope: Optional[ScopeRules] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the streaming extractor.

        Args:
            http_client: HTTP client for fetching documents
            scope: Content container and text-block rules
            timeout: Read timeout passed to the client
        """
        self._client = http_client
        self._scope = scope or ScopeRules()
        self._timeout = timeout

    async def first_link(
        self,
        url: str,
        accept: Callable[[str], bool],
        content: Optional[bytes] = None,
    ) -> Optional[ExtractedLink]:
        """
        Find the first in-scope link that ``accept`` approves.

        Args:
            url: The document URL
            accept: Acceptance predicate called with absolute candidate URLs
            content: Optional pre-fetched HTML content (decoded as UTF-8)

        Returns:
            The first accepted link, or None when the stream is exhausted

        Raises:
            TransportError: If the document cannot be fetched or read
            ExtractionError: If the tokenizer fails
        """
        scanner = FirstLinkScanner(url, accept, self._scope)

        if content is not None:
            decoder = _incremental_decoder(DEFAULT_ENCODING)
            self._feed(scanner, url, decoder.decode(content, final=True))
        else:
            async with self._client.stream(url, timeout=self._timeout) as stream:
                decoder = _incremental_decoder(stream.encoding)
                async with aclosing(stream.chunks) as chunks:
                    async for chunk in chunks:
                        self._feed(scanner, url, decoder.decode(chunk))
                        if scanner.found is not None:
                            break
                if scanner.found is None:
                    self._feed(scanner, url, decoder.decode(b"", final=True))

        if scanner.found is None:
            self._close(scanner, url)

        if scanner.found is None:
            logger.debug(f"No qualifying link on {url} ({scanner.candidates} candidates rejected)")
        else:
            logger.debug(f"First link on {url}: {scanner.found.url}")
        return scanner.found

    @contextmanager
    def _tokenizing(self, scanner: FirstLinkScanner, url: str) -> Iterator[None]:
        """Report tokenizer faults as ExtractionError; errors from ``accept`` pass through."""
        try:
            yield
        except FirstLinkError:
            raise
        except Exception as e:
            if e is scanner.predicate_error:
                raise
            raise ExtractionError(url, f"Failed to tokenize document ({e})") from e

    def _feed(self, scanner: FirstLinkScanner, url: str, text: str) -> None:
        if not text:
            return
        with self._tokenizing(scanner, url):
            scanner.feed(text)

    def _close(self, scanner: FirstLinkScanner, url: str) -> None:
        """Flush buffered markup at end of stream."""
        with self._tokenizing(scanner, url):
            scanner.close()
