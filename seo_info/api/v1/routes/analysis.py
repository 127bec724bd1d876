"""
Analysis API Routes

No business logic lives here.
Routes validate input, call the analyzer, return responses.
"""

from __future__ import annotations

from typing import Annotated, AsyncGenerator, Optional

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from seo_info.core.config import ConfigError, load_options
from seo_info.core.errors import AnalysisError
from seo_info.core.fetch import build_client, fetch_page
from seo_info.engines.aggregation.engine import AggregateResult, SEOAnalyzer
from seo_info.engines.url.engine import parse_absolute_url
from seo_info.probes.base import BrowserProbe, NullProbe
from seo_info.probes.playwright_probe import PlaywrightProbe

logger = structlog.get_logger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Dependencies
# ─────────────────────────────────────────────

async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with build_client() as client:
        yield client


def get_browser_probe() -> BrowserProbe:
    return PlaywrightProbe()


HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
Probe = Annotated[BrowserProbe, Depends(get_browser_probe)]


# ─────────────────────────────────────────────
# Request Schemas
# ─────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    url: str
    html: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)
    target_keywords: list[str] = Field(default_factory=list)
    site_urls: list[str] = Field(default_factory=list)
    advanced: bool = True
    use_browser: bool = True

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()


# ─────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────

@router.post(
    "",
    response_model=AggregateResult,
    summary="Analyze a single page",
    description="Fetches the page unless HTML is supplied, then returns the full analysis.",
)
async def analyze_page(
    request: AnalyzeRequest,
    client: HttpClient,
    probe: Probe,
) -> AggregateResult:
    """
    Analyze one page.

    1. Validate the URL
    2. Fetch the page when no HTML was posted
    3. Run the analyzer and return the aggregate result
    """
    try:
        parse_absolute_url(request.url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    html = request.html
    headers = request.headers
    base_url = request.url
    if html is None:
        try:
            page = await fetch_page(request.url, client)
        except httpx.HTTPError as e:
            logger.warning("Page fetch failed", url=request.url, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to fetch {request.url}: {e}",
            )
        html = page.html
        headers = headers or page.headers
        base_url = page.url

    try:
        options = load_options(overrides={
            "target_keywords": request.target_keywords,
            "site_urls": request.site_urls,
            "headers": headers,
            "advanced": request.advanced,
        })
        analyzer = SEOAnalyzer(probe=probe if request.use_browser else NullProbe(), client=client)
        result = await analyzer.analyze(html, base_url, options)
    except (ConfigError, AnalysisError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("Analysis served", url=base_url, overall=result.scores.get("overall"))
    return result
