"""Shared fixtures: an in-memory document fetcher and an article builder."""

from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Optional, Union

import pytest
from firstlink.exceptions import TransportError
from firstlink.http.protocols import HttpStream

BASE_URL = "https://en.wikipedia.org/wiki/"


class FakeHttpClient:
    """
    In-memory document fetcher.

    Serves ``pages`` in small chunks so tags get split across chunk
    boundaries, and records what was requested and how much was read.
    """

    def __init__(
        self,
        pages: Optional[dict[str, Union[str, bytes]]] = None,
        chunk_size: int = 16,
        content_type: str = "text/html; charset=utf-8",
        failures: Optional[dict[str, Exception]] = None,
        broken_bodies: Optional[dict[str, Exception]] = None,
    ):
        self.pages = pages or {}
        self.chunk_size = chunk_size
        self.content_type = content_type
        self.failures = failures or {}
        # Raised after the first chunk of the body has been served
        self.broken_bodies = broken_bodies or {}
        self.requests: list[str] = []
        self.chunks_served = 0

    @asynccontextmanager
    async def stream(self, url: str, *, timeout: Optional[float] = None):
        self.requests.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise TransportError(url, "HTTP 404", status_code=404)

        body = self.pages[url]
        if isinstance(body, str):
            body = body.encode("utf-8")

        async def chunks():
            for i in range(0, len(body), self.chunk_size):
                self.chunks_served += 1
                yield body[i : i + self.chunk_size]
                if url in self.broken_bodies:
                    raise self.broken_bodies[url]

        yield HttpStream(
            status_code=200,
            content_type=self.content_type,
            url=url,
            chunks=chunks(),
        )


def make_article(*paragraphs: str, container: str = "mw-content-text", title: str = "Article") -> str:
    """Build a Wikipedia-like article with the given paragraph bodies."""
    body = "\n".join(f"<p>{paragraph}</p>" for paragraph in paragraphs)
    return f"""<!DOCTYPE html>
<html>
<head><title>{title} - Wikipedia</title></head>
<body>
<div id="mw-navigation"><a href="/wiki/Main_Page">Main page</a></div>
<div id="bodyContent">
<div id="{container}" class="mw-body-content">
<div class="mw-parser-output">
<div class="hatnote"><a href="/wiki/Hatnote_target">Not this one</a></div>
<table class="infobox"><tr><td><a href="/wiki/Infobox_target">Nor this</a></td></tr></table>
{body}
</div>
</div>
</div>
</body>
</html>"""


def link(title: str, text: Optional[str] = None) -> str:
    """Anchor pointing at an article, the way article HTML links them."""
    return f'<a href="/wiki/{title}" title="{title.replace("_", " ")}">{text or title}</a>'


@pytest.fixture
def http_client_factory() -> Callable[..., FakeHttpClient]:
    return FakeHttpClient


@pytest.fixture
def article() -> Callable[..., str]:
    return make_article


@pytest.fixture
def anchor() -> Callable[..., str]:
    return link


@pytest.fixture
def base_url() -> str:
    return BASE_URL
