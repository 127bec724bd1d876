"""
Playwright-backed browser probe.

Each measurement launches its own headless Chromium and closes it in all
paths before returning. Calls are sequential; nothing is shared between them.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from playwright.async_api import Browser, Response, async_playwright

from seo_info.core.config import AnalysisOptions, get_settings
from seo_info.probes.base import (
    AccessibilityViolation,
    BrowserProbe,
    JavaScriptDependencies,
    JavaScriptFile,
    LazyLoadingResult,
    PerformanceMetrics,
    RenderingDetection,
    js_size_recommendation,
    rendering_from_lengths,
)

logger = structlog.get_logger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]

# (good ms, poor ms, weight)
PERFORMANCE_BANDS = {
    "fcp": (1800, 3000, 10),
    "lcp": (2500, 4000, 25),
    "tbt": (200, 600, 30),
}

# Collect long tasks and LCP candidates from the first byte on
PERFORMANCE_INIT_SCRIPT = """
window.__seoPerf = { lcp: 0, tbt: 0 };
try {
  new PerformanceObserver((list) => {
    for (const entry of list.getEntries()) {
      window.__seoPerf.tbt += Math.max(0, entry.duration - 50);
    }
  }).observe({ type: 'longtask', buffered: true });
  new PerformanceObserver((list) => {
    for (const entry of list.getEntries()) {
      window.__seoPerf.lcp = entry.renderTime || entry.loadTime || entry.startTime;
    }
  }).observe({ type: 'largest-contentful-paint', buffered: true });
} catch (e) {}
"""

READ_PERFORMANCE = """
() => {
  const fcp = performance.getEntriesByName('first-contentful-paint')[0];
  return {
    fcp: fcp ? fcp.startTime : 0,
    lcp: window.__seoPerf ? window.__seoPerf.lcp : 0,
    tbt: window.__seoPerf ? window.__seoPerf.tbt : 0,
  };
}
"""

RUN_AXE = """
async () => {
  const result = await window.axe.run();
  return result.violations.map((v) => ({
    id: v.id,
    impact: v.impact,
    description: v.description,
    help: v.help,
    help_url: v.helpUrl,
    node_count: v.nodes.length,
  }));
}
"""

READ_IMAGES = """
(imgs) => imgs.map((img) => ({
  src: img.getAttribute('src'),
  loading: img.getAttribute('loading'),
}))
"""


def _band_score(value: float, good: float, poor: float) -> float:
    if value <= good:
        return 1.0
    if value >= poor:
        return 0.0
    return (poor - value) / (poor - good)


def compute_performance_score(fcp: float, lcp: float, tbt: float) -> int:
    """Weighted 0-100 score from linear good/poor bands."""
    values = {"fcp": fcp, "lcp": lcp, "tbt": tbt}
    total_weight = sum(weight for _, _, weight in PERFORMANCE_BANDS.values())
    weighted = sum(
        _band_score(values[name], good, poor) * weight
        for name, (good, poor, weight) in PERFORMANCE_BANDS.items()
    )
    return round(weighted / total_weight * 100)


class PlaywrightProbe(BrowserProbe):

    def __init__(self, headless: bool | None = None, axe_core_url: str | None = None):
        settings = get_settings()
        self.headless = settings.BROWSER_HEADLESS if headless is None else headless
        self.axe_core_url = axe_core_url or settings.AXE_CORE_URL

    @asynccontextmanager
    async def _browser(self) -> AsyncIterator[Browser]:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
            try:
                yield browser
            finally:
                await browser.close()

    async def get_performance_metrics(self, url: str, options: AnalysisOptions) -> PerformanceMetrics:
        try:
            async with self._browser() as browser:
                page = await browser.new_page()
                await page.add_init_script(PERFORMANCE_INIT_SCRIPT)
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)
                raw = await page.evaluate(READ_PERFORMANCE)
        except Exception as e:
            logger.error("Error getting performance metrics", url=url, error=str(e))
            return PerformanceMetrics()

        fcp = float(raw.get("fcp") or 0)
        lcp = float(raw.get("lcp") or 0) or fcp
        tbt = float(raw.get("tbt") or 0)
        return PerformanceMetrics(
            fcp=round(fcp, 1),
            lcp=round(lcp, 1),
            tbt=round(tbt, 1),
            performance_score=compute_performance_score(fcp, lcp, tbt),
        )

    async def run_accessibility_audit(self, url: str, options: AnalysisOptions) -> list[AccessibilityViolation]:
        try:
            async with self._browser() as browser:
                page = await browser.new_page()
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)
                await page.add_script_tag(url=self.axe_core_url)
                violations = await page.evaluate(RUN_AXE)
        except Exception as e:
            logger.error("Error during accessibility audit", url=url, error=str(e))
            return []

        return [AccessibilityViolation.model_validate(v) for v in violations]

    async def detect_rendering(self, url: str, options: AnalysisOptions) -> RenderingDetection:
        try:
            async with self._browser() as browser:
                no_js = await browser.new_context(java_script_enabled=False)
                page = await no_js.new_page()
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)
                without_js = len(await page.content())
                await no_js.close()

                page = await browser.new_page()
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)
                with_js = len(await page.content())
        except Exception as e:
            logger.error("Error detecting CSR/SSR", url=url, error=str(e))
            return RenderingDetection()

        return rendering_from_lengths(without_js, with_js, options)

    async def detect_lazy_loading(self, url: str, options: AnalysisOptions) -> LazyLoadingResult:
        try:
            async with self._browser() as browser:
                page = await browser.new_page()
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)
                await page.wait_for_timeout(options.thresholds.lazy_load_delay)
                images = await page.eval_on_selector_all("img", READ_IMAGES)
        except Exception as e:
            logger.error("Error detecting lazy loading", url=url, error=str(e))
            return LazyLoadingResult()

        return LazyLoadingResult(
            lazy_loaded_images=[img["src"] for img in images if img.get("loading") == "lazy" and img.get("src")]
        )

    async def analyze_javascript_dependencies(self, url: str, options: AnalysisOptions) -> JavaScriptDependencies:
        js_files: list[JavaScriptFile] = []
        try:
            async with self._browser() as browser:
                page = await browser.new_page()
                responses: list[Response] = []

                def on_response(response: Response) -> None:
                    if response.request.resource_type == "script":
                        responses.append(response)

                page.on("response", on_response)
                await page.goto(url, wait_until="networkidle", timeout=options.timeout)

                for response in responses:
                    try:
                        body = await response.body()
                    except Exception as e:
                        logger.warning("Error getting JS file size", url=response.url, error=str(e))
                        continue
                    js_files.append(JavaScriptFile(url=response.url, size=len(body)))
        except Exception as e:
            logger.error("Error analyzing JavaScript dependencies", url=url, error=str(e))

        total = sum(f.size for f in js_files)
        return JavaScriptDependencies(
            js_files=js_files,
            total_js_size=total,
            recommendation=js_size_recommendation(total, options),
        )
