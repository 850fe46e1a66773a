"""Tests for first-link extraction strategies."""

import pytest
from firstlink.exceptions import ExtractionError, TransportError
from firstlink.links.link_extractors import (
    ExtractedLink,
    ScopeRules,
    SoupLinkExtractor,
    StreamingLinkExtractor,
    resolve_href,
)
from firstlink.links.link_extractors.streaming import FirstLinkScanner

PAGE_URL = "https://en.wikipedia.org/wiki/Vehicle"


def accept_all(url: str) -> bool:
    return True


def accept_articles(url: str) -> bool:
    return url.startswith("https://en.wikipedia.org/wiki/") and ":" not in url[len("https://") :]


@pytest.fixture(params=[StreamingLinkExtractor, SoupLinkExtractor], ids=["stream", "soup"])
def extractor_cls(request):
    return request.param


@pytest.fixture
def extractor(extractor_cls, http_client_factory):
    return extractor_cls(http_client=http_client_factory())


class TestResolveHref:
    """Tests for href resolution."""

    def test_root_relative(self):
        assert resolve_href("/wiki/Car", PAGE_URL) == "https://en.wikipedia.org/wiki/Car"

    def test_document_relative(self):
        assert resolve_href("Car", PAGE_URL) == "https://en.wikipedia.org/wiki/Car"

    def test_protocol_relative(self):
        assert resolve_href("//en.wikipedia.org/wiki/Car", PAGE_URL) == "https://en.wikipedia.org/wiki/Car"

    def test_keeps_fragment(self):
        assert resolve_href("#History", PAGE_URL) == "https://en.wikipedia.org/wiki/Vehicle#History"

    def test_empty_and_missing(self):
        assert resolve_href("", PAGE_URL) is None
        assert resolve_href("   ", PAGE_URL) is None
        assert resolve_href(None, PAGE_URL) is None

    def test_malformed(self):
        assert resolve_href("http://[broken/wiki/Car", PAGE_URL) is None


class TestScoping:
    """Scoping rules shared by both extractors."""

    @pytest.mark.asyncio
    async def test_first_paragraph_link(self, extractor, article, anchor):
        """Links outside paragraphs (hatnotes, infoboxes, navigation) are skipped."""
        html = article(f"A vehicle is a machine used for {anchor('Transport')} of {anchor('Cargo')}.")
        link = await extractor.first_link(PAGE_URL, accept_all, content=html.encode())
        assert link == ExtractedLink(url="https://en.wikipedia.org/wiki/Transport", title="Transport")

    @pytest.mark.asyncio
    async def test_no_container_is_no_link(self, extractor):
        """A document without the content container yields no link, not an error."""
        html = b'<html><body><p><a href="/wiki/Car">Car</a></p></body></html>'
        assert await extractor.first_link(PAGE_URL, accept_all, content=html) is None

    @pytest.mark.asyncio
    async def test_empty_document(self, extractor):
        assert await extractor.first_link(PAGE_URL, accept_all, content=b"") is None

    @pytest.mark.asyncio
    async def test_container_without_paragraph_links(self, extractor, article):
        html = article("Plain text with no links at all.")
        assert await extractor.first_link(PAGE_URL, accept_all, content=html.encode()) is None

    @pytest.mark.asyncio
    async def test_paragraph_before_container_ignored(self, extractor):
        html = b"""<html><body>
        <p><a href="/wiki/Outside">Outside</a></p>
        <div id="mw-content-text"><p><a href="/wiki/Inside">Inside</a></p></div>
        </body></html>"""
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Inside"

    @pytest.mark.asyncio
    async def test_inner_containers_do_not_end_scope(self, extractor):
        """Closing a nested div does not close the content container."""
        html = b"""<div id="mw-content-text">
            <div class="a"><div class="b"></div></div>
            <div class="c"></div>
            <p><a href="/wiki/Inside">Inside</a></p>
        </div>"""
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Inside"

    @pytest.mark.asyncio
    async def test_scope_ends_with_container(self, extractor):
        html = b"""<div id="mw-content-text"><div class="inner"></div></div>
        <div id="footer"><p><a href="/wiki/Footer">Footer</a></p></div>"""
        assert await extractor.first_link(PAGE_URL, accept_all, content=html) is None

    @pytest.mark.asyncio
    async def test_link_in_nested_inline_markup(self, extractor):
        html = b"""<div id="mw-content-text"><p>A <b>bold <i><a href="/wiki/Deep">deep</a></i></b> link</p></div>"""
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Deep"

    @pytest.mark.asyncio
    async def test_custom_container_key(self, extractor_cls, http_client_factory, article, anchor):
        extractor = extractor_cls(
            http_client=http_client_factory(),
            scope=ScopeRules(container_key="bodyContent"),
        )
        html = article(anchor("Transport"), container="something-else")
        link = await extractor.first_link(PAGE_URL, accept_all, content=html.encode())
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Transport"

    @pytest.mark.asyncio
    async def test_whole_document_without_container(self, extractor_cls, http_client_factory):
        extractor = extractor_cls(
            http_client=http_client_factory(),
            scope=ScopeRules(container_key=None),
        )
        html = b'<html><body><p><a href="/wiki/Car">Car</a></p></body></html>'
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Car"

    @pytest.mark.asyncio
    async def test_any_block(self, extractor_cls, http_client_factory, article, anchor):
        """Without a block tag, the hatnote link is the first in-scope link."""
        extractor = extractor_cls(
            http_client=http_client_factory(),
            scope=ScopeRules(block_tag=None),
        )
        html = article(anchor("Transport"))
        link = await extractor.first_link(PAGE_URL, accept_all, content=html.encode())
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Hatnote_target"


class TestAcceptance:
    """Interaction between the extractor and the acceptance predicate."""

    @pytest.mark.asyncio
    async def test_candidates_proposed_in_document_order(self, extractor, article, anchor):
        proposed: list[str] = []

        def reject_all(url: str) -> bool:
            proposed.append(url)
            return False

        html = article(f"{anchor('One')} {anchor('Two')}", anchor("Three"))
        assert await extractor.first_link(PAGE_URL, reject_all, content=html.encode()) is None
        assert proposed == [
            "https://en.wikipedia.org/wiki/One",
            "https://en.wikipedia.org/wiki/Two",
            "https://en.wikipedia.org/wiki/Three",
        ]

    @pytest.mark.asyncio
    async def test_stops_at_first_accepted(self, extractor, article, anchor):
        proposed: list[str] = []

        def accept_two(url: str) -> bool:
            proposed.append(url)
            return url.endswith("/Two")

        html = article(f"{anchor('One')} {anchor('Two')} {anchor('Three')}")
        link = await extractor.first_link(PAGE_URL, accept_two, content=html.encode())
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Two"
        assert proposed[-1] == "https://en.wikipedia.org/wiki/Two"
        assert "https://en.wikipedia.org/wiki/Three" not in proposed

    @pytest.mark.asyncio
    async def test_reordering_changes_choice(self, extractor, article, anchor):
        forward = article(f"{anchor('One')} {anchor('Two')}")
        backward = article(f"{anchor('Two')} {anchor('One')}")

        first = await extractor.first_link(PAGE_URL, accept_all, content=forward.encode())
        second = await extractor.first_link(PAGE_URL, accept_all, content=backward.encode())
        assert first is not None and second is not None
        assert first.url.endswith("/One")
        assert second.url.endswith("/Two")

    @pytest.mark.asyncio
    async def test_rejected_link_continues_to_later_paragraphs(self, extractor, article, anchor):
        html = article(f"See {anchor('File:Car.jpg')}.", f"Then {anchor('Car')}.")
        link = await extractor.first_link(PAGE_URL, accept_articles, content=html.encode())
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Car"

    @pytest.mark.asyncio
    async def test_malformed_href_skipped(self, extractor, article, anchor):
        html = article(f'<a href="http://[broken">bad</a> <a>no href</a> <a href="">empty</a> {anchor("Car")}')
        proposed: list[str] = []

        def record(url: str) -> bool:
            proposed.append(url)
            return True

        link = await extractor.first_link(PAGE_URL, record, content=html.encode())
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Car"
        assert proposed == ["https://en.wikipedia.org/wiki/Car"]

    @pytest.mark.asyncio
    async def test_entities_in_href_decoded(self, extractor):
        html = b'<div id="mw-content-text"><p><a href="/wiki/AT&amp;T">AT&amp;T</a></p></div>'
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/AT&T"

    @pytest.mark.asyncio
    async def test_missing_title_attribute(self, extractor):
        html = b'<div id="mw-content-text"><p><a href="/wiki/Car">Car</a></p></div>'
        link = await extractor.first_link(PAGE_URL, accept_all, content=html)
        assert link == ExtractedLink(url="https://en.wikipedia.org/wiki/Car", title=None)


class TestFetching:
    """Extraction from fetched documents."""

    @pytest.mark.asyncio
    async def test_fetches_document(self, extractor_cls, http_client_factory, article, anchor):
        client = http_client_factory({PAGE_URL: article(anchor("Transport"))})
        extractor = extractor_cls(http_client=client)

        link = await extractor.first_link(PAGE_URL, accept_all)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Transport"
        assert client.requests == [PAGE_URL]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, extractor_cls, http_client_factory):
        extractor = extractor_cls(http_client=http_client_factory())
        with pytest.raises(TransportError) as exc_info:
            await extractor.first_link(PAGE_URL, accept_all)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_declared_charset(self, extractor_cls, http_client_factory):
        html = '<div id="mw-content-text"><p><a href="/wiki/Café">Café</a></p></div>'.encode("latin-1")
        client = http_client_factory({PAGE_URL: html}, content_type="text/html; charset=ISO-8859-1")
        extractor = extractor_cls(http_client=client)

        link = await extractor.first_link(PAGE_URL, accept_all)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Café"


class TestStreamingLinkExtractor:
    """Behavior specific to the streaming extractor."""

    @pytest.mark.asyncio
    async def test_stops_reading_after_accepted_link(self, http_client_factory, article, anchor):
        filler = " ".join(["filler text"] * 500)
        html = article(anchor("Transport"), filler)
        client = http_client_factory({PAGE_URL: html}, chunk_size=64)
        extractor = StreamingLinkExtractor(http_client=client)

        link = await extractor.first_link(PAGE_URL, accept_all)
        assert link is not None
        total_chunks = -(-len(html.encode()) // 64)
        assert client.chunks_served < total_chunks

    @pytest.mark.asyncio
    async def test_tags_split_across_chunks(self, http_client_factory, article, anchor):
        html = article(f"Words {anchor('Transport')}")
        client = http_client_factory({PAGE_URL: html}, chunk_size=3)
        extractor = StreamingLinkExtractor(http_client=client)

        link = await extractor.first_link(PAGE_URL, accept_all)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Transport"

    @pytest.mark.asyncio
    async def test_multibyte_characters_split_across_chunks(self, http_client_factory):
        html = '<div id="mw-content-text"><p><a href="/wiki/Zürich">Zürich</a></p></div>'
        client = http_client_factory({PAGE_URL: html}, chunk_size=1)
        extractor = StreamingLinkExtractor(http_client=client)

        link = await extractor.first_link(PAGE_URL, accept_all)
        assert link is not None
        assert link.url == "https://en.wikipedia.org/wiki/Zürich"

    @pytest.mark.asyncio
    async def test_self_closing_container(self):
        extractor = StreamingLinkExtractor(http_client=None)  # type: ignore[arg-type]
        html = b'<div id="mw-content-text"/><p><a href="/wiki/Car">Car</a></p>'
        assert await extractor.first_link(PAGE_URL, accept_all, content=html) is None

    @pytest.mark.asyncio
    async def test_tokenizer_failure_raises_extraction_error(self, http_client_factory, article, anchor, monkeypatch):
        def broken_feed(self, data):
            raise ValueError("bad token")

        monkeypatch.setattr(FirstLinkScanner, "feed", broken_feed)
        client = http_client_factory({PAGE_URL: article(anchor("Transport"))})
        extractor = StreamingLinkExtractor(http_client=client)

        with pytest.raises(ExtractionError, match="bad token") as exc_info:
            await extractor.first_link(PAGE_URL, accept_all)
        assert exc_info.value.url == PAGE_URL
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_predicate_errors_pass_through(self, http_client_factory, article, anchor):
        def exploding_accept(url: str) -> bool:
            raise KeyError(url)

        client = http_client_factory({PAGE_URL: article(anchor("Transport"))})
        extractor = StreamingLinkExtractor(http_client=client)

        with pytest.raises(KeyError):
            await extractor.first_link(PAGE_URL, exploding_accept)

    @pytest.mark.asyncio
    async def test_body_read_failure_propagates(self, http_client_factory, article, anchor):
        body_error = TransportError(PAGE_URL, "Connection reset while reading body")
        client = http_client_factory({PAGE_URL: article(anchor("Transport"))}, broken_bodies={PAGE_URL: body_error})
        extractor = StreamingLinkExtractor(http_client=client)

        with pytest.raises(TransportError) as exc_info:
            await extractor.first_link(PAGE_URL, accept_all)
        assert exc_info.value is body_error
        assert client.chunks_served == 1
