from __future__ import annotations

import asyncio

import httpx

from metadata_fetcher import (
    MetadataFetcher,
    PageMetadata,
    extract_meta_tag,
    parse_metadata,
)

OG_PAGE = """
<html>
<head>
    <meta property="og:title" content="Test Reel Title" />
    <meta property="og:image" content="https://example.com/image.jpg" />
    <title>Ignored Title</title>
</head>
<body></body>
</html>
"""


def _fetcher(handler) -> MetadataFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MetadataFetcher(timeout_sec=2.0, client=client)


def test_parse_metadata_prefers_open_graph() -> None:
    metadata = parse_metadata(OG_PAGE)
    assert metadata == PageMetadata(title="Test Reel Title", thumbnail="https://example.com/image.jpg")


def test_parse_metadata_reversed_attribute_order_and_twitter_cards() -> None:
    page = """
    <meta content="  Card Title  " name="twitter:title">
    <meta name="twitter:image" content='https://cdn.example.com/card.png'>
    """
    metadata = parse_metadata(page)
    assert metadata.title == "Card Title"
    assert metadata.thumbnail == "https://cdn.example.com/card.png"


def test_parse_metadata_falls_back_to_title_tag_then_untitled() -> None:
    assert parse_metadata("<head><title>Fallback Title</title></head>").title == "Fallback Title"
    empty = parse_metadata("<html><body>nothing</body></html>")
    assert empty.title == "Untitled"
    assert empty.thumbnail is None


def test_extract_meta_tag_keeps_apostrophes_and_unescapes_entities() -> None:
    page = '<meta property="og:title" content="Chef&#39;s knife tricks &amp; tips">'
    assert extract_meta_tag(page, "og:title") == "Chef's knife tricks & tips"


def test_extract_meta_tag_skips_blank_value() -> None:
    page = '<meta property="og:title" content="   "><title>Real</title>'
    assert extract_meta_tag(page, "og:title") is None
    assert parse_metadata(page).title == "Real"


def test_fetch_returns_metadata_on_success() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=OG_PAGE)

    metadata = asyncio.run(_fetcher(handler).fetch("https://example.com/reel"))

    assert metadata is not None
    assert metadata.title == "Test Reel Title"
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert "user-agent" in seen[0].headers


def test_fetch_returns_none_for_non_200() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text=OG_PAGE)

    assert asyncio.run(_fetcher(handler).fetch("https://example.com/missing")) is None


def test_fetch_returns_none_on_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    assert asyncio.run(_fetcher(handler).fetch("https://example.com/slow")) is None


def test_fetch_returns_none_on_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert asyncio.run(_fetcher(handler).fetch("https://example.com/down")) is None


def test_parse_metadata_reversed_tags_after_unrelated_meta() -> None:
    page = """
    <meta content="width=device-width" name="viewport">
    <meta content="IE=edge" http-equiv="X-UA-Compatible">
    <meta content="My Reel" property="og:title">
    <meta content='https://cdn.example.com/reel.jpg' property="og:image">
    """
    metadata = parse_metadata(page)
    assert metadata.title == "My Reel"
    assert metadata.thumbnail == "https://cdn.example.com/reel.jpg"


def test_extract_meta_tag_ignores_content_of_other_tags() -> None:
    page = '<meta content="IE=edge" http-equiv="X-UA-Compatible"><meta property="og:image">'
    assert extract_meta_tag(page, "og:image") is None


def test_fetch_follows_redirects() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.path == "/short":
            return httpx.Response(301, headers={"Location": "https://example.com/reel"})
        return httpx.Response(200, text=OG_PAGE)

    metadata = asyncio.run(_fetcher(handler).fetch("https://example.com/short"))

    assert metadata is not None
    assert metadata.title == "Test Reel Title"
    assert seen == ["https://example.com/short", "https://example.com/reel"]
