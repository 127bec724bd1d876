"""Single-page HTTP fetch shared by the CLI and the API."""

from __future__ import annotations

import time

import httpx
import structlog
from pydantic import BaseModel, Field

from seo_info.core.config import get_settings

logger = structlog.get_logger(__name__)

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml"


class FetchedPage(BaseModel):
    url: str
    status_code: int
    html: str
    headers: dict[str, str] = Field(default_factory=dict)
    load_time_ms: float = 0.0


def build_client(**kwargs) -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(
        headers={"User-Agent": settings.HTTP_USER_AGENT, "Accept": ACCEPT_HTML},
        follow_redirects=True,
        timeout=settings.HTTP_TIMEOUT,
        **kwargs,
    )


async def fetch_page(url: str, client: httpx.AsyncClient) -> FetchedPage:
    """
    GET one page. HTTP errors and error statuses propagate as httpx.HTTPError.
    """
    start = time.perf_counter()
    response = await client.get(url)
    response.raise_for_status()
    elapsed = (time.perf_counter() - start) * 1000

    logger.info("Page fetched", url=url, status=response.status_code, elapsed_ms=round(elapsed, 2))
    return FetchedPage(
        url=str(response.url),
        status_code=response.status_code,
        html=response.text,
        headers=dict(response.headers),
        load_time_ms=elapsed,
    )
