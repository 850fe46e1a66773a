"""Exception hierarchy for firstlink.

"No qualifying link" is not an error: extractors return ``None`` for it and
the traverser backtracks. Everything here is fatal to a run.
"""

from __future__ import annotations

from typing import Optional


class FirstLinkError(Exception):
    """Base exception for firstlink."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(FirstLinkError):
    """Raised at startup for an invalid target pattern, start article or base URL."""


class TransportError(FirstLinkError):
    """Raised when a document cannot be retrieved."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status_code = status_code


class ExtractionError(FirstLinkError):
    """Raised when a document stream cannot be scanned."""

    def __init__(self, url: str, message: str = "Failed to scan document"):
        super().__init__(f"{message}: {url}")
        self.url = url


class DeadEndError(FirstLinkError):
    """Raised when backtracking has exhausted the path back to the start article."""

    def __init__(self, url: str):
        super().__init__(f"Cannot find links on provided page: {url}")
        self.url = url
