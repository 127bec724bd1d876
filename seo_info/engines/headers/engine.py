"""
HTTP Headers Analyzer Engine

Checks response headers in four areas, averaged unweighted:
- Cache (Cache-Control, ETag, Last-Modified)
- Security (HSTS, CSP, nosniff, frame options, XSS, referrer, permissions)
- Content (Content-Type charset, Content-Language, X-Robots-Tag)
- Compression (Content-Encoding, Vary)

Cache, security and content are a perfect 100 when they raise no issue.
Compression is only capped: a clean deflate response still scores 90.
"""

from __future__ import annotations

import re
from typing import Mapping

from pydantic import Field

from seo_info.core.scoring import ScoreCard, average_score
from seo_info.engines.base import AnalysisEngine, FacetResult, PageContext

ONE_DAY_SECONDS = 86400

# name -> (points when present, recommendation when missing, accepted header keys)
SECURITY_HEADERS: dict[str, tuple[int, str, tuple[str, ...]]] = {
    "strict-transport-security": (
        15, "Add Strict-Transport-Security header to ensure secure connections",
        ("strict-transport-security",),
    ),
    "content-security-policy": (
        15, "Add Content-Security-Policy header to prevent XSS attacks",
        ("content-security-policy",),
    ),
    "x-content-type-options": (
        10, "Add X-Content-Type-Options: nosniff to prevent MIME type sniffing",
        ("x-content-type-options",),
    ),
    "x-frame-options": (
        10, "Add X-Frame-Options header to prevent clickjacking",
        ("x-frame-options",),
    ),
    "x-xss-protection": (
        10, "Add X-XSS-Protection header to enable browser XSS filtering",
        ("x-xss-protection",),
    ),
    "referrer-policy": (
        10, "Add Referrer-Policy header to control referrer information",
        ("referrer-policy",),
    ),
    "feature-policy": (
        10, "Add Permissions-Policy header to control browser features",
        ("feature-policy", "permissions-policy"),
    ),
}

MAX_AGE = re.compile(r"max-age=(\d+)")


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────

class CacheAnalysis(FacetResult):
    cache_control: str = ""
    etag: str | None = None
    last_modified: str | None = None


class SecurityAnalysis(FacetResult):
    security_headers_present: list[str] = Field(default_factory=list)


class ContentHeadersAnalysis(FacetResult):
    content_type: str | None = None
    content_language: str | None = None
    x_robots_tag: str | None = None


class CompressionAnalysis(FacetResult):
    content_encoding: str | None = None
    vary: str | None = None


class HeadersAnalysis(FacetResult):
    headers: dict[str, str] = Field(default_factory=dict)
    cache_analysis: CacheAnalysis | None = None
    security_analysis: SecurityAnalysis | None = None
    content_analysis: ContentHeadersAnalysis | None = None
    compression_analysis: CompressionAnalysis | None = None


def normalize_headers(headers: Mapping[str, object]) -> dict[str, str]:
    """Lowercase keys; list values (multi-valued headers) are comma-joined."""
    normalized = {}
    for key, value in headers.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        normalized[str(key).lower()] = "" if value is None else str(value)
    return normalized


# ─────────────────────────────────────────────
# Sub-analyses
# ─────────────────────────────────────────────

def analyze_cache_headers(headers: dict[str, str]) -> CacheAnalysis:
    card = ScoreCard(perfect_when_clean=True)
    cache_control = headers.get("cache-control", "")

    if "cache-control" not in headers:
        card.issue(
            "No Cache-Control header found",
            "Add a Cache-Control header to improve resource caching",
        )
    else:
        if "no-store" in cache_control or "no-cache" in cache_control:
            card.issue(
                "Cache-Control prevents caching entirely",
                "Consider enabling caching for static assets to improve performance",
            )
        elif "max-age" not in cache_control:
            card.issue(
                "Cache-Control has no max-age directive",
                "Add max-age directive to Cache-Control header for better caching control",
            )
        else:
            match = MAX_AGE.search(cache_control)
            if match:
                max_age = int(match.group(1))
                if max_age < ONE_DAY_SECONDS:
                    card.issue(
                        f"Short cache period ({max_age} seconds)",
                        "Consider increasing max-age for static resources to at least 1 day (86400)",
                    )
                else:
                    card.add(50)

        if "public" in cache_control:
            card.add(20)
        elif "private" not in cache_control:
            card.recommend('Consider adding "public" directive to Cache-Control for static resources')

    if "etag" in headers:
        card.add(15)
    else:
        card.issue(
            "No ETag header found",
            "Add ETag header to enable conditional requests and save bandwidth",
        )

    if "last-modified" in headers:
        card.add(15)
    else:
        card.issue(
            "No Last-Modified header found",
            "Add Last-Modified header to enable conditional requests",
        )

    return CacheAnalysis.from_card(
        card,
        cache_control=cache_control,
        etag=headers.get("etag"),
        last_modified=headers.get("last-modified"),
    )


def analyze_security_headers(headers: dict[str, str]) -> SecurityAnalysis:
    card = ScoreCard(perfect_when_clean=True)
    present = []

    for name, (points, recommendation, keys) in SECURITY_HEADERS.items():
        if any(key in headers for key in keys):
            present.append(name)
            card.add(points)
        else:
            card.issue(f"Missing {name} header", recommendation)

    if headers.get("strict-transport-security"):
        card.add(20)
    else:
        card.issue(
            "No HSTS header found, site may not be enforcing HTTPS",
            "Implement HTTPS and add Strict-Transport-Security header",
        )

    return SecurityAnalysis.from_card(card, security_headers_present=present)


def analyze_content_headers(headers: dict[str, str]) -> ContentHeadersAnalysis:
    card = ScoreCard(perfect_when_clean=True)

    content_type = headers.get("content-type")
    if content_type is None:
        card.issue(
            "No Content-Type header found",
            "Add Content-Type header to specify the MIME type",
        )
    else:
        card.add(40)
        if "charset=" not in content_type:
            card.issue(
                "Content-Type header has no charset specification",
                "Add charset to Content-Type header (e.g., text/html; charset=UTF-8)",
            )
        elif "utf-8" not in content_type.lower():
            card.issue(
                "Content-Type charset is not UTF-8",
                "Use UTF-8 charset for better international character support",
            )
        else:
            card.add(20)

    if "content-language" in headers:
        card.add(20)
    else:
        card.issue(
            "No Content-Language header found",
            "Add Content-Language header to specify the language of your content",
        )

    robots = headers.get("x-robots-tag")
    if robots is None:
        card.recommend("Consider using X-Robots-Tag header for more granular indexing control")
    else:
        card.add(20)
        if "noindex" in robots:
            card.issue(
                "X-Robots-Tag prevents indexing",
                'Remove "noindex" from X-Robots-Tag if you want the page to be indexed',
            )

    return ContentHeadersAnalysis.from_card(
        card,
        content_type=content_type,
        content_language=headers.get("content-language"),
        x_robots_tag=robots,
    )


def analyze_compression(headers: dict[str, str]) -> CompressionAnalysis:
    card = ScoreCard()
    encoding = headers.get("content-encoding")

    if not encoding:
        card.issue(
            "No Content-Encoding header found, compression may not be enabled",
            "Enable GZIP or Brotli compression to reduce page size and improve load times",
        )
    elif "br" in encoding:
        card.add(100)
    elif "gzip" in encoding:
        card.add(80)
        card.recommend("Consider using Brotli compression instead of GZIP for better compression ratios")
    elif "deflate" in encoding:
        card.add(70)
        card.recommend("Consider using Brotli or GZIP compression instead of deflate")
    else:
        card.add(50)
        card.issue(
            f"Unknown compression method: {encoding}",
            "Use standard compression methods like Brotli or GZIP",
        )

    vary = headers.get("vary")
    if vary is None:
        card.issue("No Vary header found", "Add Vary: Accept-Encoding header when using compression")
    elif "Accept-Encoding" not in vary:
        card.issue(
            "Vary header does not include Accept-Encoding",
            "Update Vary header to include Accept-Encoding when using compression",
        )
    else:
        card.add(20)

    return CompressionAnalysis.from_card(card, content_encoding=encoding or None, vary=vary)


# ─────────────────────────────────────────────
# Public entry points
# ─────────────────────────────────────────────

def analyze_headers(headers: Mapping[str, object] | None) -> HeadersAnalysis:
    if not headers:
        return HeadersAnalysis(
            issues=["No headers provided for analysis"],
            recommendations=["Ensure HTTP headers are properly captured and provided for analysis"],
            score=0,
        )

    normalized = normalize_headers(headers)
    cache = analyze_cache_headers(normalized)
    security = analyze_security_headers(normalized)
    content = analyze_content_headers(normalized)
    compression = analyze_compression(normalized)
    parts = [cache, security, content, compression]

    return HeadersAnalysis(
        headers=normalized,
        cache_analysis=cache,
        security_analysis=security,
        content_analysis=content,
        compression_analysis=compression,
        issues=[issue for part in parts for issue in part.issues],
        recommendations=[rec for part in parts for rec in part.recommendations],
        score=average_score(part.score for part in parts),
    )


class HeadersAnalyzerEngine(AnalysisEngine[HeadersAnalysis]):

    FACET_NAME = "headers"

    def run(self, page: PageContext) -> HeadersAnalysis:
        return analyze_headers(page.options.headers)
