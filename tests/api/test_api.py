"""
Tests for the HTTP API.
The browser probe and HTTP client dependencies are overridden per app.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from seo_info.api.v1.routes.analysis import get_browser_probe, get_http_client
from seo_info.main import create_application
from seo_info.probes.base import NullProbe

PAGE = "<html><head><title>Fetched Page</title></head><body><h1>Hi</h1></body></html>"


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/":
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})
    if request.url.path == "/broken":
        return httpx.Response(500)
    return httpx.Response(404)


async def _mock_client():
    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        yield client


@pytest.fixture
def api():
    app = create_application()
    app.dependency_overrides[get_http_client] = _mock_client
    app.dependency_overrides[get_browser_probe] = NullProbe
    return TestClient(app)


class TestHealth:

    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"]

    def test_probes(self, api):
        assert api.get("/health/ready").json() == {"ready": True}
        assert api.get("/health/live").json() == {"alive": True}


class TestAnalysis:

    def test_posted_html(self, api):
        response = api.post("/api/v1/analysis", json={
            "url": "https://example.com/",
            "html": "<html><head><title>Posted</title></head><body></body></html>",
            "use_browser": False,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Posted"
        assert body["scores"]["headers"] == 0
        assert "overall" in body["scores"]

    def test_fetches_page_when_html_missing(self, api):
        response = api.post("/api/v1/analysis", json={"url": "https://example.com/", "advanced": False})
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Fetched Page"
        assert body["headings"]["h1"] == ["Hi"]
        assert body["content_analysis"] is None

    def test_fetched_headers_feed_headers_facet(self, api):
        response = api.post("/api/v1/analysis", json={"url": "https://example.com/"})
        body = response.json()
        assert body["headers_analysis"]["headers"]["content-type"] == "text/html; charset=utf-8"

    def test_invalid_url(self, api):
        response = api.post("/api/v1/analysis", json={"url": "not a url"})
        assert response.status_code == 400

    def test_fetch_failure(self, api):
        response = api.post("/api/v1/analysis", json={"url": "https://example.com/broken"})
        assert response.status_code == 502
