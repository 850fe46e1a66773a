"""First-link extraction strategies."""

from .protocols import ExtractedLink, LinkExtractor, ScopeRules
from .static import SoupLinkExtractor
from .streaming import FirstLinkScanner, StreamingLinkExtractor, resolve_href

__all__ = [
    "ExtractedLink",
    "FirstLinkScanner",
    "LinkExtractor",
    "ScopeRules",
    "SoupLinkExtractor",
    "StreamingLinkExtractor",
    "resolve_href",
]
