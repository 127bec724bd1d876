"""
Aggregation Engine - runs one full page analysis and merges every output.

Pipeline (strictly sequential):
1. Parse HTML and validate the base URL (failures here are fatal)
2. Extractors (pure DOM reads, then robots/sitemap and image HEAD requests)
3. Browser probes, one awaited after another
4. Facet engines (content, url, headers, social, schema) when advanced
   analysis is enabled; a failing facet is recorded in `errors` and the
   remaining facets still run
5. Composite scores: rounded mean of every available facet score, plus the
   performance score when it was measured
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog
from pydantic import BaseModel, Field

from seo_info.core.config import AnalysisOptions, load_options
from seo_info.core.dom import parse_document
from seo_info.core.errors import AnalysisError
from seo_info.core.fetch import build_client
from seo_info.core.scoring import average_score, calculate_grade
from seo_info.engines.base import AnalysisEngine, AnalysisErrorEntry, PageContext
from seo_info.engines.content.engine import ContentAnalysis, ContentAnalyzerEngine
from seo_info.engines.extraction.engine import (
    ImageInfo,
    MobileFriendliness,
    analyze_images,
    analyze_js_crawlability,
    analyze_mobile_friendliness,
    extract_canonical_link,
    extract_headings,
    extract_meta_info,
    extract_open_graph,
    fetch_seo_files,
    url_structure,
)
from seo_info.engines.headers.engine import HeadersAnalysis, HeadersAnalyzerEngine
from seo_info.engines.schema.engine import SchemaAnalyzerEngine, StructuredDataAnalysis
from seo_info.engines.social.engine import SocialAnalyzerEngine, SocialMediaAnalysis
from seo_info.engines.url.engine import UrlAnalysis, UrlAnalyzerEngine, parse_absolute_url
from seo_info.probes.base import (
    AccessibilityViolation,
    BrowserProbe,
    JavaScriptDependencies,
    LazyLoadingResult,
    NullProbe,
    PerformanceMetrics,
    RenderingDetection,
)

logger = structlog.get_logger(__name__)

# facet name -> AggregateResult field
FACET_FIELDS = {
    "content": "content_analysis",
    "url": "url_analysis",
    "headers": "headers_analysis",
    "social": "social_media_analysis",
    "schema": "structured_data_analysis",
}


class AggregateResult(BaseModel):
    """Everything learned about one page in one analysis call."""

    base_url: str
    title: str = ""
    description: str = ""
    keywords: str = ""
    open_graph: dict[str, Optional[str]] = Field(default_factory=dict)
    robots_txt: str = ""
    sitemap_xml: str = ""
    headings: dict[str, list[str]] = Field(default_factory=dict)
    images: list[ImageInfo] = Field(default_factory=list)
    large_images: list[ImageInfo] = Field(default_factory=list)
    canonical_link: str = ""
    url_structure: str = "/"
    scripts: list[str] = Field(default_factory=list)
    js_crawlability_issues: bool = True

    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    mobile_friendliness: MobileFriendliness = Field(default_factory=MobileFriendliness)
    accessibility_issues: list[AccessibilityViolation] = Field(default_factory=list)
    csr_ssr_detection: RenderingDetection = Field(default_factory=RenderingDetection)
    lazy_loading_issues: LazyLoadingResult = Field(default_factory=LazyLoadingResult)
    js_dependencies: JavaScriptDependencies = Field(default_factory=JavaScriptDependencies)

    content_analysis: Optional[ContentAnalysis] = None
    url_analysis: Optional[UrlAnalysis] = None
    headers_analysis: Optional[HeadersAnalysis] = None
    social_media_analysis: Optional[SocialMediaAnalysis] = None
    structured_data_analysis: Optional[StructuredDataAnalysis] = None

    scores: dict[str, int] = Field(default_factory=dict)
    overall_grade: Optional[str] = None
    errors: list[AnalysisErrorEntry] = Field(default_factory=list)

    @property
    def issues(self) -> list[str]:
        """Issues from every facet that ran, in facet order."""
        collected: list[str] = []
        for field_name in FACET_FIELDS.values():
            facet = getattr(self, field_name)
            if facet is not None:
                collected.extend(facet.issues)
        return collected


def compute_scores(result: AggregateResult) -> dict[str, int]:
    scores: dict[str, int] = {}
    for facet, field_name in FACET_FIELDS.items():
        facet_result = getattr(result, field_name)
        if facet_result is not None:
            scores[facet] = facet_result.score
    if result.performance_metrics.measured:
        scores["performance"] = result.performance_metrics.performance_score
    if scores:
        scores["overall"] = average_score(scores.values())
    return scores


class SEOAnalyzer:
    """
    Orchestrates extraction, probing and facet analysis for one page.

    The browser probe and HTTP client are injected so tests can run the
    whole pipeline without a browser or network.
    """

    def __init__(
        self,
        probe: BrowserProbe | None = None,
        client: httpx.AsyncClient | None = None,
        engines: list[AnalysisEngine] | None = None,
    ):
        self.probe = probe or NullProbe()
        self.client = client
        self.engines = engines if engines is not None else [
            ContentAnalyzerEngine(),
            UrlAnalyzerEngine(),
            HeadersAnalyzerEngine(),
            SocialAnalyzerEngine(),
            SchemaAnalyzerEngine(),
        ]
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def analyze(
        self,
        html: str,
        base_url: str,
        options: AnalysisOptions | None = None,
    ) -> AggregateResult:
        options = options or AnalysisOptions()

        try:
            parse_absolute_url(base_url)
        except ValueError as e:
            raise AnalysisError(f"Invalid base URL: {e}") from e
        document = parse_document(html)

        self.logger.info("Analysis starting", url=base_url, advanced=options.advanced)

        meta = extract_meta_info(document)
        crawlability = analyze_js_crawlability(document)
        result = AggregateResult(
            base_url=base_url,
            title=meta.title,
            description=meta.description,
            keywords=meta.keywords,
            open_graph=extract_open_graph(document),
            headings=extract_headings(document),
            canonical_link=extract_canonical_link(document),
            url_structure=url_structure(base_url),
            scripts=crawlability.scripts,
            js_crawlability_issues=crawlability.js_crawlability_issues,
            mobile_friendliness=analyze_mobile_friendliness(document),
        )

        if self.client is not None:
            await self._network_extraction(result, document, base_url, self.client, options)
        else:
            async with build_client() as client:
                await self._network_extraction(result, document, base_url, client, options)

        result.performance_metrics = await self.probe.get_performance_metrics(base_url, options)
        result.accessibility_issues = await self.probe.run_accessibility_audit(base_url, options)
        result.csr_ssr_detection = await self.probe.detect_rendering(base_url, options)
        result.lazy_loading_issues = await self.probe.detect_lazy_loading(base_url, options)
        result.js_dependencies = await self.probe.analyze_javascript_dependencies(base_url, options)

        if options.advanced:
            page = PageContext(url=base_url, html=html, document=document, options=options)
            for engine in self.engines:
                try:
                    facet_result = engine.execute(page)
                except Exception as e:
                    result.errors.append(AnalysisErrorEntry.from_exception(e))
                    continue
                setattr(result, FACET_FIELDS[engine.FACET_NAME], facet_result)

        result.scores = compute_scores(result)
        if "overall" in result.scores:
            result.overall_grade = calculate_grade(result.scores["overall"])

        self.logger.info(
            "Analysis complete",
            url=base_url,
            overall=result.scores.get("overall"),
            errors=len(result.errors),
        )
        return result

    async def _network_extraction(self, result, document, base_url, client, options) -> None:
        seo_files = await fetch_seo_files(base_url, client, options)
        result.robots_txt = seo_files.robots_txt
        result.sitemap_xml = seo_files.sitemap_xml

        images = await analyze_images(document, base_url, client, options)
        result.images = images.images
        result.large_images = images.large_images


async def analyze_seo(
    html: str,
    base_url: str,
    options: AnalysisOptions | dict[str, Any] | None = None,
    probe: BrowserProbe | None = None,
    client: httpx.AsyncClient | None = None,
) -> AggregateResult:
    """Convenience entry point: analyze one page with a fresh SEOAnalyzer."""
    if isinstance(options, dict):
        options = load_options(overrides=options)
    analyzer = SEOAnalyzer(probe=probe, client=client)
    return await analyzer.analyze(html, base_url, options)
