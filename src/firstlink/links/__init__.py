"""Link extraction and acceptance for firstlink."""

from .filters import (
    AcceptancePolicy,
    ArticlePolicy,
    PermissivePolicy,
    TargetMatcher,
    build_policy,
    canonical_url,
    strip_base,
)
from .link_extractors import (
    ExtractedLink,
    LinkExtractor,
    ScopeRules,
    SoupLinkExtractor,
    StreamingLinkExtractor,
)

__all__ = [
    # Protocols
    "AcceptancePolicy",
    "LinkExtractor",
    # Policies
    "ArticlePolicy",
    "PermissivePolicy",
    "TargetMatcher",
    "build_policy",
    "canonical_url",
    "strip_base",
    # Link Extractors
    "ExtractedLink",
    "ScopeRules",
    "SoupLinkExtractor",
    "StreamingLinkExtractor",
]
