"""HTTP document fetching and rate limiting for firstlink."""

from .client import AsyncHttpClient
from .protocols import HttpClient, HttpStream, charset_from_content_type
from .rate_limiter import PerHostRateLimiter

__all__ = [
    "AsyncHttpClient",
    "HttpClient",
    "HttpStream",
    "PerHostRateLimiter",
    "charset_from_content_type",
]
