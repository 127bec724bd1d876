"""
Tests for the aggregation engine.
A fake probe stands in for the browser; httpx MockTransport for the network.
"""

import httpx
import pytest

from seo_info.core.config import AnalysisOptions
from seo_info.core.errors import AnalysisError
from seo_info.engines.aggregation.engine import (
    AggregateResult,
    SEOAnalyzer,
    analyze_seo,
    compute_scores,
)
from seo_info.engines.base import AnalysisEngine, PageContext
from seo_info.engines.url.engine import UrlAnalyzerEngine
from seo_info.probes.base import (
    AccessibilityViolation,
    BrowserProbe,
    JavaScriptDependencies,
    LazyLoadingResult,
    PerformanceMetrics,
    RenderingDetection,
)

HTML = """
<html><head>
<title>Test Page</title>
<meta name="description" content="Testing the analyzer">
<meta name="viewport" content="width=device-width, initial-scale=1">
</head><body>
<h1>Hello</h1>
<p>Some text about testing.</p>
<img src="/logo.png" alt="Test Image">
</body></html>
"""


class FakeProbe(BrowserProbe):

    def __init__(self):
        self.calls = []

    async def get_performance_metrics(self, url, options):
        self.calls.append("performance")
        return PerformanceMetrics(fcp=900.0, lcp=1200.0, tbt=10.0, performance_score=80)

    async def run_accessibility_audit(self, url, options):
        self.calls.append("accessibility")
        return [AccessibilityViolation(id="image-alt", impact="critical", description="Images need alt")]

    async def detect_rendering(self, url, options):
        self.calls.append("rendering")
        return RenderingDetection(is_ssr=True, is_csr=False)

    async def detect_lazy_loading(self, url, options):
        self.calls.append("lazy")
        return LazyLoadingResult(lazy_loaded_images=["/logo.png"])

    async def analyze_javascript_dependencies(self, url, options):
        self.calls.append("js")
        return JavaScriptDependencies()


class FailingEngine(AnalysisEngine):

    FACET_NAME = "content"

    def run(self, page: PageContext):
        raise ValueError("content analyzer exploded")


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/logo.png":
        return httpx.Response(200, headers={"content-length": "2048"})
    return httpx.Response(404)


@pytest.fixture
def client():
    return httpx.AsyncClient(transport=httpx.MockTransport(_handler))


class TestSEOAnalyzer:

    @pytest.mark.asyncio
    async def test_end_to_end(self, client):
        probe = FakeProbe()
        async with client:
            analyzer = SEOAnalyzer(probe=probe, client=client)
            result = await analyzer.analyze(HTML, "https://example.com/", AnalysisOptions())

        assert result.title == "Test Page"
        assert result.headings["h1"] == ["Hello"]
        assert result.mobile_friendliness.is_responsive is True
        assert result.robots_txt == "Not Found"
        assert [image.src for image in result.images] == ["/logo.png"]
        assert result.images[0].file_size == 2048
        assert result.accessibility_issues[0].id == "image-alt"
        assert probe.calls == ["performance", "accessibility", "rendering", "lazy", "js"]

        assert set(result.scores) == {"content", "url", "headers", "social", "schema", "performance", "overall"}
        assert result.scores["headers"] == 0
        assert result.scores["performance"] == 80
        assert result.overall_grade is not None
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_without_advanced_analysis(self, client):
        async with client:
            result = await SEOAnalyzer(client=client).analyze(
                HTML, "https://example.com/", AnalysisOptions(advanced=False)
            )
        assert result.content_analysis is None
        assert result.url_analysis is None
        assert result.scores == {}
        assert result.overall_grade is None

    @pytest.mark.asyncio
    async def test_failing_facet_is_recorded(self, client):
        async with client:
            analyzer = SEOAnalyzer(client=client, engines=[FailingEngine(), UrlAnalyzerEngine()])
            result = await analyzer.analyze(HTML, "https://example.com/", AnalysisOptions())

        assert len(result.errors) == 1
        assert result.errors[0].type == "ValueError"
        assert result.errors[0].message == "content analyzer exploded"
        assert "ValueError" in result.errors[0].stack
        assert result.content_analysis is None
        assert result.url_analysis is not None
        assert result.scores == {"url": 100, "overall": 100}
        assert result.overall_grade == "A"

    @pytest.mark.asyncio
    async def test_invalid_base_url_is_fatal(self, client):
        async with client:
            with pytest.raises(AnalysisError):
                await SEOAnalyzer(client=client).analyze(HTML, "not-a-url")

    @pytest.mark.asyncio
    async def test_headers_and_keywords_flow_from_options(self, client):
        options = AnalysisOptions(
            headers={"Content-Type": "text/html; charset=utf-8"},
            target_keywords=["testing"],
        )
        async with client:
            result = await SEOAnalyzer(client=client).analyze(HTML, "https://example.com/", options)

        assert result.headers_analysis.headers == {"content-type": "text/html; charset=utf-8"}
        assert result.content_analysis.keywords.target_keywords[0].count == 1


class TestAnalyzeSeo:

    @pytest.mark.asyncio
    async def test_accepts_plain_dict_options(self, client):
        async with client:
            result = await analyze_seo(HTML, "https://example.com/", {"advanced": False}, client=client)
        assert isinstance(result, AggregateResult)
        assert result.content_analysis is None


class TestComputeScores:

    def test_performance_only_when_measured(self):
        result = AggregateResult(base_url="https://example.com/")
        assert compute_scores(result) == {}

        result.performance_metrics = PerformanceMetrics(performance_score=70)
        assert compute_scores(result) == {"performance": 70, "overall": 70}

    def test_round_trips_through_json(self):
        result = AggregateResult(base_url="https://example.com/", title="T", scores={"overall": 50})
        restored = AggregateResult.model_validate_json(result.model_dump_json())
        assert restored == result
