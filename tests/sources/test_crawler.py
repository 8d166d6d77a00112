"""Tests for the bounded same-origin crawler."""

from __future__ import annotations

import pytest
import requests

from ecospray.config import CrawlConfig
from ecospray.errors import InputValidationError, UpstreamError, UpstreamTimeoutError
from ecospray.sources.crawler import (
    PRIORITY_PATHS,
    SiteCrawler,
    extract_phones,
    html_to_text,
    normalize_url,
)
from tests._fixtures.http_doubles import FakeResponse, FakeSession, html_page

FILLER = "<p>We insulate attics, crawl spaces and basements across western Pennsylvania.</p>"


def _crawler(session: FakeSession, **overrides: object) -> SiteCrawler:
    settings = {"seed_priority_paths": False, **overrides}
    return SiteCrawler(CrawlConfig(**settings), session=session)  # type: ignore[arg-type]


def test_normalize_url_drops_query_and_fragment() -> None:
    assert normalize_url("HTTPS://Example.COM/About?x=1#team") == "https://example.com/About"
    assert normalize_url("https://example.com") == "https://example.com/"


def test_html_to_text_keeps_structure() -> None:
    text = html_to_text(
        "<html><head><style>p{}</style><script>var x=1;</script></head><body>"
        "<h1>Spray Foam</h1><p>Seal   the\n attic.</p><ul><li>Open cell</li><li>Closed cell</li></ul>"
        "</body></html>"
    )
    assert "## Spray Foam" in text
    assert "Seal the attic." in text
    assert "\nattic" not in text
    assert "- Open cell" in text
    assert "- Closed cell" in text
    assert "var x" not in text
    assert "p{}" not in text


def test_extract_phones_matches_common_formats() -> None:
    phones = extract_phones("Call (412) 555-0100 or 412.555.0100 or +1 412-555-0199")
    assert "(412) 555-0100" in phones
    assert "412.555.0100" in phones
    assert any(phone.endswith("412-555-0199") for phone in phones)


def test_crawl_never_returns_duplicate_pages() -> None:
    session = FakeSession(
        {
            "https://example.com/": html_page(
                '<a href="/">Home</a><a href="/services">Services</a>'
                '<a href="https://example.com/services?ref=nav">Services again</a>'
                '<a href="/services#top">Services top</a><a href="https://other.com/x">Elsewhere</a>'
                '<a href="mailto:info@example.com">Mail</a>' + FILLER,
                title="Home",
            ),
            "https://example.com/services": html_page(
                '<a href="/">Home</a><a href="https://EXAMPLE.com/services">Self</a>' + FILLER,
                title="Services",
            ),
        }
    )

    result = _crawler(session).crawl("https://example.com")

    urls = [page.url for page in result.pages]
    assert urls == ["https://example.com/", "https://example.com/services"]
    assert len(urls) == len(set(urls))
    assert session.urls().count("https://example.com/services") == 1
    assert not any("other.com" in url for url in session.urls())


def test_crawl_collects_contacts_and_images_without_duplicates() -> None:
    session = FakeSession(
        {
            "https://example.com/": html_page(
                '<img src="/hero.jpg"><img src="data:image/png;base64,AAA">'
                '<img src="/pixel/1x1.gif"><a href="/contact">Contact</a>'
                "<p>Email info@example.com or call 412-555-0100 today for a free quote.</p>",
                title="Home",
            ),
            "https://example.com/contact": html_page(
                '<img src="https://example.com/hero.jpg">'
                "<p>Reach info@example.com, sales@example.com or 412-555-0100 any weekday.</p>",
                title="Contact",
            ),
        }
    )

    result = _crawler(session).crawl("https://example.com/")

    assert result.emails == ["info@example.com", "sales@example.com"]
    assert result.phones == ["412-555-0100"]
    assert result.images == ["https://example.com/hero.jpg"]
    assert result.pages[0].title == "Home"


def test_crawl_respects_page_bound() -> None:
    links = "".join(f'<a href="/p{index}">P{index}</a>' for index in range(10))
    routes = {"https://example.com/": html_page(links + FILLER)}
    for index in range(10):
        routes[f"https://example.com/p{index}"] = html_page(FILLER)
    session = FakeSession(routes)

    result = _crawler(session, max_pages=3).crawl("https://example.com/")

    assert len(result.pages) == 3


def test_failed_and_thin_pages_count_toward_the_request_bound() -> None:
    links = "".join(f'<a href="/thin{index}">T{index}</a>' for index in range(60))
    routes = {"https://example.com/": html_page(links + FILLER)}
    for index in range(60):
        routes[f"https://example.com/thin{index}"] = html_page("<p>Hi</p>")
    session = FakeSession(routes)

    result = SiteCrawler(CrawlConfig(), session=session).crawl("https://example.com/")  # type: ignore[arg-type]

    assert len(session.urls()) == CrawlConfig().max_pages
    assert [page.url for page in result.pages] == ["https://example.com/"]


def test_crawl_respects_depth_bound() -> None:
    session = FakeSession(
        {
            "https://example.com/": html_page('<a href="/level1">Next</a>' + FILLER),
            "https://example.com/level1": html_page('<a href="/level2">Deeper</a>' + FILLER),
            "https://example.com/level2": html_page(FILLER),
        }
    )

    result = _crawler(session, max_depth=1).crawl("https://example.com/")

    assert [page.url for page in result.pages] == [
        "https://example.com/",
        "https://example.com/level1",
    ]
    assert "https://example.com/level2" not in session.urls()


def test_crawl_skips_failed_thin_and_non_html_pages() -> None:
    session = FakeSession(
        {
            "https://example.com/": html_page(
                '<a href="/broken">Broken</a><a href="/thin">Thin</a>'
                '<a href="/data.json">Data</a><a href="/missing">Missing</a><a href="/good">Good</a>'
                + FILLER
            ),
            "https://example.com/broken": requests.ConnectionError("reset by peer"),
            "https://example.com/thin": html_page("<p>Hi</p>"),
            "https://example.com/data.json": FakeResponse(
                200, json_data={"a": 1}, headers={"Content-Type": "application/json"}
            ),
            "https://example.com/good": html_page(FILLER, title="Good"),
        }
    )

    result = _crawler(session).crawl("https://example.com/")

    assert [page.url for page in result.pages] == [
        "https://example.com/",
        "https://example.com/good",
    ]


def test_crawl_seeds_priority_paths_first() -> None:
    session = FakeSession(
        {
            "https://example.com/": html_page('<a href="/zebra">Zebra</a>' + FILLER),
            "https://example.com/zebra": html_page(FILLER),
            "https://example.com/services": html_page(FILLER, title="Services"),
        }
    )

    result = _crawler(session, seed_priority_paths=True, max_pages=20).crawl("https://example.com/")

    fetched = session.urls()
    assert fetched.index("https://example.com/services") < fetched.index("https://example.com/zebra")
    assert {page.url for page in result.pages} == {
        "https://example.com/",
        "https://example.com/services",
        "https://example.com/zebra",
    }
    assert len(fetched) == 2 + len(PRIORITY_PATHS)


def test_unreachable_seed_raises_upstream_error() -> None:
    session = FakeSession({"https://unreachable.invalid/": requests.ConnectionError("no route")})

    with pytest.raises(UpstreamError) as excinfo:
        _crawler(session).crawl("https://unreachable.invalid")

    assert "Could not fetch the homepage" in excinfo.value.message


def test_seed_timeout_is_distinct() -> None:
    session = FakeSession({"https://slow.example.com/": requests.Timeout("read timed out")})

    with pytest.raises(UpstreamTimeoutError) as excinfo:
        _crawler(session).crawl("https://slow.example.com/")

    assert excinfo.value.status_code == 504


def test_seed_http_error_is_reported() -> None:
    session = FakeSession({"https://example.com/": html_page("gone", status=503)})

    with pytest.raises(UpstreamError) as excinfo:
        _crawler(session).crawl("https://example.com/")

    assert "HTTP 503" in excinfo.value.message


@pytest.mark.parametrize("url", ["example.com", "ftp://example.com/", "not a url"])
def test_invalid_url_is_rejected_before_fetching(url: str) -> None:
    session = FakeSession()

    with pytest.raises(InputValidationError):
        _crawler(session).crawl(url)

    assert session.calls == []
