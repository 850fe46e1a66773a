"""Link acceptance policies and target matching."""

from __future__ import annotations

import re
from collections.abc import Container
from typing import Literal, Protocol
from urllib.parse import unquote, urlsplit, urlunsplit

from ..exceptions import ConfigurationError

# Characters that mark a non-article, non-top-level or same-page target
EXCLUDED_CHARACTERS = (":", "/", "#")


def canonical_url(url: str) -> str:
    """
    Canonical form of a URL used as the visited-set key.

    Lowercases scheme and host, percent-decodes the path so that
    ``/wiki/Caf%C3%A9`` and ``/wiki/Café`` are the same article, and drops
    the fragment. The query is kept as-is.

    Args:
        url: The URL to canonicalize

    Returns:
        Canonical URL string
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            unquote(parts.path),
            parts.query,
            "",  # Remove fragment
        )
    )


def strip_base(url: str, base_url: str) -> str:
    """Return the part of ``url`` after the corpus base, or ``url`` if outside it."""
    if url.startswith(base_url):
        return url[len(base_url) :]
    return url


class AcceptancePolicy(Protocol):
    """
    Protocol for deciding whether a candidate link may be followed.

    Implementations are pure functions of the candidate and the visited set
    they were bound to.
    """

    def accept(self, url: str) -> bool:
        """
        Decide whether a candidate may be followed.

        Args:
            url: Absolute candidate URL

        Returns:
            True if the candidate should be followed
        """
        ...


class PermissivePolicy:
    """
    Accept anything that has not been visited yet.

    Example:
        policy = PermissivePolicy(visited)
        policy.accept("https://example.com/anything")  # True unless visited
    """

    def __init__(self, visited: Container[str]):
        self.visited = visited

    def accept(self, url: str) -> bool:
        return url not in self.visited


class ArticlePolicy:
    """
    Accept unvisited, top-level articles inside the corpus.

    Rules, evaluated in order:
    1. Reject if already visited
    2. Reject if outside the corpus base URL
    3. Reject if the title part contains a namespace separator, a path
       separator or a fragment marker
    4. Accept

    Example:
        policy = ArticlePolicy("https://en.wikipedia.org/wiki/", visited)
        policy.accept("https://en.wikipedia.org/wiki/Car")  # True
        policy.accept("https://en.wikipedia.org/wiki/File:Car.jpg")  # False
    """

    def __init__(self, base_url: str, visited: Container[str]):
        self.base_url = base_url
        self.visited = visited

    def accept(self, url: str) -> bool:
        # Don't revisit pages
        if url in self.visited:
            return False

        # Don't leave the corpus
        if not url.startswith(self.base_url):
            return False

        title = url[len(self.base_url) :]
        return not any(char in title for char in EXCLUDED_CHARACTERS)


def build_policy(
    mode: Literal["article", "permissive"],
    base_url: str,
    visited: Container[str],
) -> AcceptancePolicy:
    """
    Build the acceptance policy for a traversal mode.

    Args:
        mode: "article" for the full rule set, "permissive" for visited-only
        base_url: Corpus base URL
        visited: Visited-set the policy is bound to

    Returns:
        An acceptance policy
    """
    if mode == "permissive":
        return PermissivePolicy(visited)
    return ArticlePolicy(base_url, visited)


class TargetMatcher:
    """
    Decide whether an identifier is the traversal target.

    Matching is done on the identifier with the corpus base stripped.

    Modes:
    - "pattern": regular expression searched anywhere in the title
      (``Car`` matches ``Cartography`` and ``Race_car``)
    - "exact": the title equals the target, spaces read as underscores

    Example:
        matcher = TargetMatcher("^Philosophy$", "https://en.wikipedia.org/wiki/")
        matcher.matches("https://en.wikipedia.org/wiki/Philosophy")  # True
    """

    def __init__(
        self,
        target: str,
        base_url: str,
        mode: Literal["pattern", "exact"] = "pattern",
    ):
        """
        Initialize the matcher.

        Args:
            target: Regular expression or exact title
            base_url: Corpus base URL to strip before matching
            mode: Matching mode

        Raises:
            ConfigurationError: If the pattern does not compile
        """
        self.target = target
        self.base_url = base_url
        self.mode = mode
        self._regex: re.Pattern[str] | None = None

        if mode == "pattern":
            try:
                self._regex = re.compile(target)
            except re.error as e:
                raise ConfigurationError(f"Invalid target pattern {target!r}: {e}") from e
        else:
            self._exact = unquote(target.strip().replace(" ", "_"))

    def matches(self, url: str) -> bool:
        title = strip_base(url, self.base_url)
        if self._regex is not None:
            return self._regex.search(title) is not None
        return unquote(title) == self._exact
