"""
Extraction Engine - raw on-page facts pulled from the parsed document.

Pure extractors read only the Document. The two network extractors
(robots.txt / sitemap.xml and image HEAD requests) take an httpx.AsyncClient
so callers control connection reuse and tests can mount a MockTransport.
"""

from __future__ import annotations

import posixpath
import re
from urllib.parse import urljoin, urlparse

import httpx
import structlog
from pydantic import BaseModel, Field

from seo_info.core.config import AnalysisOptions
from seo_info.core.dom import Document

logger = structlog.get_logger(__name__)

NOT_FOUND = "Not Found"
RESPONSIVE_VIEWPORT = re.compile(r"width=device-width", re.IGNORECASE)


# ─────────────────────────────────────────────
# Data types
# ─────────────────────────────────────────────

class MetaInfo(BaseModel):
    title: str = ""
    description: str = ""
    keywords: str = ""


class ImageInfo(BaseModel):
    src: str
    alt: str = ""
    loading: str = ""
    file_size: int | None = None
    format: str = ""


class ImageAnalysis(BaseModel):
    images: list[ImageInfo] = Field(default_factory=list)
    large_images: list[ImageInfo] = Field(default_factory=list)


class SEOFiles(BaseModel):
    robots_txt: str = NOT_FOUND
    sitemap_xml: str = NOT_FOUND


class MobileFriendliness(BaseModel):
    is_responsive: bool = False


class JSCrawlability(BaseModel):
    scripts: list[str] = Field(default_factory=list)
    js_crawlability_issues: bool = True


# ─────────────────────────────────────────────
# Pure extractors
# ─────────────────────────────────────────────

def extract_meta_info(document: Document) -> MetaInfo:
    title = document.query("title")
    return MetaInfo(
        title=document.text_of(title) if title is not None else "",
        description=document.meta_content('meta[name="description"]') or "",
        keywords=document.meta_content('meta[name="keywords"]') or "",
    )


def extract_open_graph(document: Document) -> dict[str, str | None]:
    return {
        meta.get("property"): meta.get("content")
        for meta in document.query_all('meta[property^="og:"]')
    }


def extract_headings(document: Document) -> dict[str, list[str]]:
    return {
        f"h{level}": [document.text_of(h) for h in document.query_all(f"h{level}")]
        for level in range(1, 7)
    }


def extract_canonical_link(document: Document) -> str:
    link = document.query('link[rel="canonical"]')
    if link is None:
        return ""
    return link.get("href") or ""


def analyze_mobile_friendliness(document: Document) -> MobileFriendliness:
    viewport = document.meta_content('meta[name="viewport"]')
    return MobileFriendliness(is_responsive=bool(viewport and RESPONSIVE_VIEWPORT.search(viewport)))


def analyze_js_crawlability(document: Document) -> JSCrawlability:
    scripts = [script.get("src") or "inline" for script in document.query_all("script")]
    return JSCrawlability(scripts=scripts, js_crawlability_issues=not scripts)


def url_structure(base_url: str) -> str:
    return urlparse(base_url).path or "/"


def image_format(src: str) -> str:
    """Lowercased file extension including the dot, '' when there is none."""
    return posixpath.splitext(urlparse(src).path)[1].lower()


# ─────────────────────────────────────────────
# Network extractors
# ─────────────────────────────────────────────

def site_origin(base_url: str) -> str:
    parsed = urlparse(base_url)
    return f"{parsed.scheme}://{parsed.netloc}"


async def _fetch_text(client: httpx.AsyncClient, url: str, timeout: float) -> str:
    try:
        response = await client.get(url, timeout=timeout)
        response.raise_for_status()
        return response.text
    except httpx.HTTPError as e:
        logger.debug("SEO file not available", url=url, error=str(e))
        return NOT_FOUND


async def fetch_seo_files(
    base_url: str,
    client: httpx.AsyncClient,
    options: AnalysisOptions,
) -> SEOFiles:
    """Fetch robots.txt and sitemap.xml from the site root."""
    origin = site_origin(base_url)
    timeout = options.timeout / 1000
    return SEOFiles(
        robots_txt=await _fetch_text(client, f"{origin}/robots.txt", timeout),
        sitemap_xml=await _fetch_text(client, f"{origin}/sitemap.xml", timeout),
    )


async def analyze_images(
    document: Document,
    base_url: str,
    client: httpx.AsyncClient,
    options: AnalysisOptions,
) -> ImageAnalysis:
    """HEAD every <img>; images that cannot be reached are left out."""
    images: list[ImageInfo] = []
    timeout = options.timeout / 1000

    for img in document.query_all("img"):
        src = img.get("src")
        if not src:
            logger.warning("Image has no src attribute")
            continue

        try:
            response = await client.head(urljoin(base_url, src), timeout=timeout)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("Image not found or inaccessible", src=src, error=str(e))
            continue

        content_length = response.headers.get("content-length")
        images.append(ImageInfo(
            src=src,
            alt=img.get("alt") or "",
            loading=img.get("loading") or "",
            file_size=int(content_length) if content_length and content_length.isdigit() else None,
            format=image_format(src),
        ))

    threshold = options.thresholds.large_image_size
    large_images = [image for image in images if image.file_size and image.file_size > threshold]
    return ImageAnalysis(images=images, large_images=large_images)
