"""Protocol definitions for the document fetch abstraction."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

DEFAULT_ENCODING = "utf-8"


def charset_from_content_type(content_type: str) -> str | None:
    """
    Extract the charset parameter from a Content-Type header value.

    Args:
        content_type: Content-Type header value

    Returns:
        The declared charset, or None if absent
    """
    for part in content_type.split(";"):
        part = part.strip()
        if part.lower().startswith("charset="):
            charset = part.split("=", 1)[1].strip().strip("\"'")
            return charset or None
    return None


@dataclass(frozen=True)
class HttpStream:
    """
    An open document body, read chunk by chunk.

    Attributes:
        status_code: HTTP status code
        content_type: Content-Type header value
        url: Final URL after any redirects
        chunks: Async generator over the raw body
    """

    status_code: int
    content_type: str
    url: str
    chunks: AsyncGenerator[bytes, None]

    @property
    def encoding(self) -> str:
        """Declared charset, defaulting to UTF-8."""
        return charset_from_content_type(self.content_type) or DEFAULT_ENCODING


class HttpClient(Protocol):
    """
    Protocol for the document fetch collaborator.

    This abstraction allows for:
    - Mock implementations in tests
    - Different backends (aiohttp, httpx, etc.)

    Implementations raise TransportError for anything that prevents the
    body from being read, including non-success status codes.
    """

    def stream(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> AbstractAsyncContextManager[HttpStream]:
        """
        Open a document for streaming.

        Args:
            url: The URL to fetch
            timeout: Read timeout in seconds (client default if None)

        Returns:
            Async context manager yielding an HttpStream
        """
        ...
