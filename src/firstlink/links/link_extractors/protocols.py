"""Protocol definitions for first-link extraction."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class ExtractedLink:
    """
    The first accepted link of a document.

    Attributes:
        url: Absolute URL of the accepted link
        title: The anchor's title attribute, if any
    """

    url: str
    title: Optional[str] = None


@dataclass(frozen=True)
class ScopeRules:
    """
    Where in a document links are eligible.

    Attributes:
        container_tag: Tag of the content container
        container_attr: Attribute identifying the content container
        container_key: Attribute value of the content container
            (None = the whole document is in scope)
        block_tag: Text-block tag anchors must sit in (None = anywhere)
    """

    container_tag: str = "div"
    container_attr: str = "id"
    container_key: Optional[str] = "mw-content-text"
    block_tag: Optional[str] = "p"


class LinkExtractor(Protocol):
    """
    Protocol for finding the first acceptable link in a document.

    Implementations can use different strategies:
    - Streaming tokenizer (stops reading at the first accepted link)
    - Buffered parse tree (BeautifulSoup)
    """

    async def first_link(
        self,
        url: str,
        accept: Callable[[str], bool],
        content: Optional[bytes] = None,
    ) -> Optional[ExtractedLink]:
        """
        Find the first in-scope link that ``accept`` approves.

        Args:
            url: The document URL (fetched if content is None)
            accept: Acceptance predicate called with absolute candidate URLs
            content: Optional pre-fetched HTML content

        Returns:
            The first accepted link, or None when no link qualifies

        Raises:
            TransportError: If the document cannot be fetched
            ExtractionError: If the document cannot be scanned
        """
        ...
