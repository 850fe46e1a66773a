"""Buffered first-link extraction using BeautifulSoup."""

import logging
from collections.abc import Callable
from contextlib import aclosing
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from ...exceptions import ExtractionError
from ...http.protocols import HttpClient, charset_from_content_type
from .protocols import ExtractedLink, ScopeRules
from .streaming import resolve_href

logger = logging.getLogger(__name__)


class SoupLinkExtractor:
    """
    Extract the first accepted link from a fully parsed document.

    Applies the same scoping rules as StreamingLinkExtractor, but buffers
    the whole body and walks a BeautifulSoup tree. Useful when a document
    needs to be inspected after the fact or when comparing parsers.

    Example:
        extractor = SoupLinkExtractor(http_client)
        link = await extractor.first_link(url, policy.accept)
    """

    def __init__(
        self,
        http_client: HttpClient,
        scope: Optional[ScopeRules] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the soup extractor.

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
            content: Optional pre-fetched HTML content

        Returns:
            The first accepted link, or None when no link qualifies
        """
        encoding: Optional[str] = None
        if content is None:
            content, encoding = await self._fetch_content(url)

        return self._parse_first_link(content, url, accept, encoding)

    async def _fetch_content(self, url: str) -> tuple[bytes, Optional[str]]:
        """
        Read a whole document body.

        Returns:
            Raw body and declared charset (if any)
        """
        parts: list[bytes] = []
        async with self._client.stream(url, timeout=self._timeout) as stream:
            async with aclosing(stream.chunks) as chunks:
                async for chunk in chunks:
                    parts.append(chunk)
            encoding = charset_from_content_type(stream.content_type)
        return b"".join(parts), encoding

    def _parse_first_link(
        self,
        html: bytes,
        base_url: str,
        accept: Callable[[str], bool],
        encoding: Optional[str] = None,
    ) -> Optional[ExtractedLink]:
        try:
            soup = BeautifulSoup(
                html,
                "html.parser",
                from_encoding=encoding,
                on_duplicate_attribute="ignore",
            )
        except Exception as e:
            raise ExtractionError(base_url, f"Failed to parse HTML ({e})") from e

        root: Union[BeautifulSoup, Tag, None]
        if self._scope.container_key is None:
            root = soup
        else:
            root = soup.find(
                self._scope.container_tag,
                attrs={self._scope.container_attr: self._scope.container_key},
            )
            if root is None:
                logger.debug(f"No content container on {base_url}")
                return None

        for anchor in root.find_all("a"):
            if not self._in_block(anchor, root):
                continue

            href = anchor.get("href")
            resolved = resolve_href(href if isinstance(href, str) else None, base_url)
            if resolved is None:
                continue

            if accept(resolved):
                title = anchor.get("title")
                return ExtractedLink(url=resolved, title=title if isinstance(title, str) else None)

        return None

    def _in_block(self, anchor: Tag, root: Union[BeautifulSoup, Tag]) -> bool:
        """Check that a text block sits between the anchor and the container."""
        if self._scope.block_tag is None:
            return True

        for parent in anchor.parents:
            if parent is root:
                return False
            if parent.name == self._scope.block_tag:
                return True
        return False
