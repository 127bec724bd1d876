"""
Tests for the extraction engine.
Network extractors use httpx MockTransport to avoid real network calls.
"""

import httpx
import pytest

from seo_info.core.config import AnalysisOptions
from seo_info.core.dom import parse_document
from seo_info.engines.extraction.engine import (
    NOT_FOUND,
    analyze_images,
    analyze_js_crawlability,
    analyze_mobile_friendliness,
    extract_canonical_link,
    extract_headings,
    extract_meta_info,
    extract_open_graph,
    fetch_seo_files,
    image_format,
    site_origin,
    url_structure,
)

PAGE = """
<html><head>
<title>Test Page</title>
<meta name="description" content="A page">
<meta name="keywords" content="a, b">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta property="og:title" content="OG Title">
<link rel="canonical" href="https://example.com/page">
</head><body>
<h1>Main</h1><h2>Sub one</h2><h2>Sub two</h2>
<img src="/big.JPG" alt="Big" loading="lazy">
<img src="https://cdn.example.com/small.png">
<img src="/missing.gif">
<img alt="no source">
<script src="/app.js"></script><script>var x = 1;</script>
</body></html>
"""


# ─────────────────────────────────────────────
# Pure extractors
# ─────────────────────────────────────────────

class TestPureExtractors:

    @pytest.fixture
    def document(self):
        return parse_document(PAGE)

    def test_meta_info(self, document):
        meta = extract_meta_info(document)
        assert meta.title == "Test Page"
        assert meta.description == "A page"
        assert meta.keywords == "a, b"

    def test_missing_meta_defaults_to_empty(self):
        meta = extract_meta_info(parse_document("<html><body></body></html>"))
        assert meta.title == ""
        assert meta.description == ""

    def test_headings_has_all_levels(self, document):
        headings = extract_headings(document)
        assert list(headings) == ["h1", "h2", "h3", "h4", "h5", "h6"]
        assert headings["h1"] == ["Main"]
        assert headings["h2"] == ["Sub one", "Sub two"]
        assert headings["h3"] == []

    def test_open_graph_and_canonical(self, document):
        assert extract_open_graph(document) == {"og:title": "OG Title"}
        assert extract_canonical_link(document) == "https://example.com/page"

    def test_mobile_friendliness(self, document):
        assert analyze_mobile_friendliness(document).is_responsive
        assert not analyze_mobile_friendliness(parse_document("<html></html>")).is_responsive

    def test_scripts(self, document):
        result = analyze_js_crawlability(document)
        assert result.scripts == ["/app.js", "inline"]
        assert result.js_crawlability_issues is False

    def test_no_scripts_flags_crawlability(self):
        assert analyze_js_crawlability(parse_document("<html></html>")).js_crawlability_issues

    def test_url_helpers(self):
        assert url_structure("https://example.com") == "/"
        assert url_structure("https://example.com/a/b?x=1") == "/a/b"
        assert site_origin("https://example.com:8443/a/b") == "https://example.com:8443"
        assert image_format("/img/Photo.JPG?v=2") == ".jpg"
        assert image_format("/img/photo") == ""


# ─────────────────────────────────────────────
# Network extractors
# ─────────────────────────────────────────────

def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/robots.txt":
        return httpx.Response(200, text="User-agent: *\nDisallow:")
    if path == "/big.JPG":
        return httpx.Response(200, headers={"content-length": str(200 * 1024)})
    if path == "/small.png":
        return httpx.Response(200, headers={"content-length": "512"})
    return httpx.Response(404)


class TestNetworkExtractors:

    @pytest.fixture
    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(_handler))

    @pytest.mark.asyncio
    async def test_seo_files_from_origin(self, client):
        async with client:
            files = await fetch_seo_files("https://example.com/deep/page", client, AnalysisOptions())
        assert files.robots_txt.startswith("User-agent")
        assert files.sitemap_xml == NOT_FOUND

    @pytest.mark.asyncio
    async def test_transport_error_becomes_not_found(self):
        def failing(request):
            raise httpx.ConnectError("boom", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(failing)) as client:
            files = await fetch_seo_files("https://example.com/", client, AnalysisOptions())
        assert files.robots_txt == NOT_FOUND
        assert files.sitemap_xml == NOT_FOUND

    @pytest.mark.asyncio
    async def test_images(self, client):
        async with client:
            result = await analyze_images(parse_document(PAGE), "https://example.com/page", client, AnalysisOptions())

        assert [image.src for image in result.images] == ["/big.JPG", "https://cdn.example.com/small.png"]
        big, small = result.images
        assert big.file_size == 200 * 1024
        assert big.format == ".jpg"
        assert big.loading == "lazy"
        assert small.alt == ""
        assert [image.src for image in result.large_images] == ["/big.JPG"]

    @pytest.mark.asyncio
    async def test_large_image_threshold_from_options(self, client):
        options = AnalysisOptions(thresholds={"large_image_size": 1024 * 1024})
        async with client:
            result = await analyze_images(parse_document(PAGE), "https://example.com/", client, options)
        assert result.large_images == []

    @pytest.mark.asyncio
    async def test_malformed_image_src_is_skipped(self, client):
        html = (
            '<html><body><img src="http://[bad/img.png">'
            '<img src="/small.png" alt="ok"></body></html>'
        )
        async with client:
            result = await analyze_images(parse_document(html), "https://example.com/", client, AnalysisOptions())
        assert [image.src for image in result.images] == ["/small.png"]
