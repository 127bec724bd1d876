"""
Browser probe contract.

A probe measures a live URL (performance, accessibility, rendering mode,
lazy loading, script weight). Every method returns a fully-shaped result
even when the measurement fails, so the aggregation engine never sees a
missing key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from seo_info.core.config import AnalysisOptions


# ─────────────────────────────────────────────
# Probe result types
# ─────────────────────────────────────────────

class PerformanceMetrics(BaseModel):
    fcp: float | None = None               # ms
    lcp: float | None = None               # ms
    tbt: float | None = None               # ms
    performance_score: int | None = None   # 0-100

    @property
    def measured(self) -> bool:
        return self.performance_score is not None


class AccessibilityViolation(BaseModel):
    id: str
    impact: str | None = None
    description: str = ""
    help: str = ""
    help_url: str = ""
    node_count: int = 0


class RenderingDetection(BaseModel):
    is_ssr: bool | None = None
    is_csr: bool | None = None
    length_without_js: int | None = None
    length_with_js: int | None = None
    recommendation: str | None = None


class LazyLoadingResult(BaseModel):
    lazy_loaded_images: list[str] = Field(default_factory=list)


class JavaScriptFile(BaseModel):
    url: str
    size: int


class JavaScriptDependencies(BaseModel):
    js_files: list[JavaScriptFile] = Field(default_factory=list)
    total_js_size: int = 0
    recommendation: str | None = None


def js_size_recommendation(total_js_size: int, options: AnalysisOptions) -> str:
    if total_js_size > options.thresholds.total_js_size:
        return "Consider optimizing JavaScript dependencies to reduce page load time."
    return "JavaScript size is within acceptable limits."


def rendering_from_lengths(without_js: int, with_js: int, options: AnalysisOptions) -> RenderingDetection:
    is_ssr = without_js > options.thresholds.ssr_content_length_threshold
    return RenderingDetection(
        is_ssr=is_ssr,
        is_csr=not is_ssr,
        length_without_js=without_js,
        length_with_js=with_js,
        recommendation=(
            "Site appears to be using SSR effectively."
            if is_ssr
            else "Consider implementing SSR or pre-rendering for better SEO."
        ),
    )


# ─────────────────────────────────────────────
# Probe contract
# ─────────────────────────────────────────────

class BrowserProbe(ABC):
    """
    Injected capability for live-page measurements.

    Implementations MUST NOT raise: failures are logged and answered with
    the empty result model.
    """

    @abstractmethod
    async def get_performance_metrics(self, url: str, options: AnalysisOptions) -> PerformanceMetrics:
        ...

    @abstractmethod
    async def run_accessibility_audit(self, url: str, options: AnalysisOptions) -> list[AccessibilityViolation]:
        ...

    @abstractmethod
    async def detect_rendering(self, url: str, options: AnalysisOptions) -> RenderingDetection:
        ...

    @abstractmethod
    async def detect_lazy_loading(self, url: str, options: AnalysisOptions) -> LazyLoadingResult:
        ...

    @abstractmethod
    async def analyze_javascript_dependencies(self, url: str, options: AnalysisOptions) -> JavaScriptDependencies:
        ...


class NullProbe(BrowserProbe):
    """Probe used when no browser is available: every measurement is empty."""

    async def get_performance_metrics(self, url, options):
        return PerformanceMetrics()

    async def run_accessibility_audit(self, url, options):
        return []

    async def detect_rendering(self, url, options):
        return RenderingDetection()

    async def detect_lazy_loading(self, url, options):
        return LazyLoadingResult()

    async def analyze_javascript_dependencies(self, url, options):
        return JavaScriptDependencies(recommendation=js_size_recommendation(0, options))
