"""
URL Analyzer Engine

Analyzes one URL for SEO hygiene:
- Protocol (HTTPS preferred)
- Domain (length, subdomains, hyphens, digits, TLD)
- Path (length, depth, case, special characters, underscores, extensions, keyword stuffing)
- Query parameters (count, tracking params, session-like params)
- Crawl path (depth and URL conventions relative to caller-supplied sibling URLs)

The five sub-scores are averaged unweighted.
"""

from __future__ import annotations

import re
from collections import Counter
from urllib.parse import parse_qsl, urlparse

from pydantic import BaseModel, Field

from seo_info.core.scoring import ScoreCard, average_score
from seo_info.engines.base import AnalysisEngine, FacetResult, PageContext

COMMON_TLDS = {"com", "org", "net", "edu", "gov", "co", "io", "app"}
CLEAN_EXTENSIONS = {"html", "htm", "php"}
TRACKING_PARAMS = [
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "gclid", "fbclid", "ref", "source", "campaign",
]
SESSION_PARAM_HINTS = ["sid", "session", "sessid", "id", "token", "auth"]

SPECIAL_CHARS = re.compile(r"[^\w\-/]", re.ASCII)
FILE_EXTENSION = re.compile(r"\.([a-zA-Z0-9]+)$")
UPPERCASE = re.compile(r"[A-Z]")


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────

class ParsedUrl(BaseModel):
    protocol: str
    hostname: str
    pathname: str
    search: str


class ProtocolAnalysis(FacetResult):
    protocol: str = ""


class DomainAnalysis(FacetResult):
    hostname: str = ""
    has_www: bool = False
    subdomain_count: int = 0


class PathAnalysis(FacetResult):
    pathname: str = "/"
    segments: list[str] = Field(default_factory=list)
    depth: int = 0
    has_trailing_slash: bool = False


class QueryAnalysis(FacetResult):
    query_string: str = ""
    param_count: int = 0
    params: dict[str, str] = Field(default_factory=dict)


class CrawlPathAnalysis(FacetResult):
    details: str | None = None


class UrlAnalysis(FacetResult):
    url: str | None = None
    parsed_url: ParsedUrl | None = None
    protocol_analysis: ProtocolAnalysis | None = None
    domain_analysis: DomainAnalysis | None = None
    path_analysis: PathAnalysis | None = None
    query_analysis: QueryAnalysis | None = None
    crawl_path_analysis: CrawlPathAnalysis | None = None


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def parse_absolute_url(url: str):
    """Parse an absolute URL; raise ValueError when scheme or host is missing."""
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        raise ValueError(f"'{url}' is not an absolute URL")
    # Touch the port so malformed ports surface here
    parsed.port
    return parsed


def _pathname(parsed) -> str:
    return parsed.path or "/"


def _segments(pathname: str) -> list[str]:
    return [segment for segment in pathname.split("/") if segment]


def _has_trailing_slash(pathname: str) -> bool:
    return len(pathname) > 1 and pathname.endswith("/")


def _parent_path(segments: list[str]) -> str:
    return f"/{'/'.join(segments[:-1])}/" if len(segments) > 1 else "/"


# ─────────────────────────────────────────────
# Sub-analyses
# ─────────────────────────────────────────────

def analyze_protocol(parsed) -> ProtocolAnalysis:
    protocol = f"{parsed.scheme.lower()}:"
    card = ScoreCard()

    if protocol == "https:":
        card.add(100)
    elif protocol == "http:":
        card.issue(
            "Site uses HTTP instead of HTTPS",
            "Migrate to HTTPS for better security and SEO performance",
        )
        card.add(40)
    else:
        card.issue(f"Unusual protocol: {protocol}", "Use HTTPS protocol for website URLs")
        card.add(20)

    return ProtocolAnalysis.from_card(card, protocol=protocol)


def analyze_domain(parsed) -> DomainAnalysis:
    card = ScoreCard(start=100)
    hostname = (parsed.hostname or "").lower()
    labels = hostname.split(".")

    if len(hostname) > 50:
        card.issue(
            "Domain name is excessively long",
            "Consider using a shorter domain name for better memorability",
            penalty=20,
        )

    has_www = hostname.startswith("www.")
    subdomain_count = len(labels) - (2 if has_www else 1)
    if subdomain_count > 1:
        card.issue(
            "Multiple subdomains may dilute SEO value",
            "Consider consolidating content under fewer subdomains",
            penalty=10,
        )

    if labels[-1] not in COMMON_TLDS:
        card.recommend("Consider using a common TLD like .com for better recognition")

    domain_part = ".".join(labels[1 if has_www else 0:-1])
    if domain_part.count("-") > 1:
        card.issue(
            "Multiple hyphens in domain name may look spammy",
            "Limit hyphens in domain names for better brand perception",
            penalty=15,
        )

    if any(ch.isdigit() for ch in domain_part):
        card.recommend("Consider avoiding numbers in domain names for better memorability", penalty=5)

    return DomainAnalysis.from_card(
        card,
        hostname=hostname,
        has_www=has_www,
        subdomain_count=subdomain_count,
    )


def analyze_path(parsed) -> PathAnalysis:
    card = ScoreCard(start=100)
    pathname = _pathname(parsed)
    segments = _segments(pathname)

    if len(pathname) > 100:
        card.issue(
            "URL path is excessively long",
            "Shorten URL paths to be more user and search engine friendly",
            penalty=20,
        )

    if len(segments) > 4:
        card.issue(
            "URL has deep folder structure (more than 4 levels)",
            "Flatten site structure to keep important content closer to the root",
            penalty=10,
        )

    if UPPERCASE.search(pathname):
        card.issue(
            "URL contains uppercase letters",
            "Use lowercase letters in URLs for consistency and to avoid duplicate content issues",
            penalty=15,
        )

    if SPECIAL_CHARS.search(pathname):
        card.issue(
            "URL contains special characters or spaces",
            "Use only alphanumeric characters, hyphens, and slashes in URLs",
            penalty=15,
        )

    if "_" in pathname:
        card.issue(
            "URL contains underscores",
            "Use hyphens instead of underscores to separate words in URLs",
            penalty=10,
        )

    extension = FILE_EXTENSION.search(pathname)
    if extension and extension.group(1) not in CLEAN_EXTENSIONS:
        card.recommend("Consider using clean URLs without file extensions", penalty=5)

    # Keyword stuffing: more than one distinct word repeated across segments
    words = [word for segment in segments for word in re.split(r"[-_]", segment) if word]
    repeated = [word for word, count in Counter(words).items() if count > 1]
    if len(repeated) > 1:
        card.issue(
            "URL appears to contain repeated keywords",
            "Avoid keyword stuffing in URLs",
            penalty=15,
        )

    return PathAnalysis.from_card(
        card,
        pathname=pathname,
        segments=segments,
        depth=len(segments),
        has_trailing_slash=_has_trailing_slash(pathname),
    )


def analyze_query_parameters(parsed) -> QueryAnalysis:
    card = ScoreCard(start=100)
    pairs = parse_qsl(parsed.query, keep_blank_values=True)
    keys = [key for key, _ in pairs]
    param_count = len(keys)

    if param_count > 0:
        card.recommend(
            "Consider using path segments instead of query parameters for important content",
            penalty=10,
        )

        if param_count > 3:
            card.issue(
                f"URL has {param_count} query parameters, which may be excessive",
                "Limit the number of query parameters in URLs",
                penalty=10 * min(5, param_count - 3),
            )

        if any(param in keys for param in TRACKING_PARAMS):
            card.issue(
                "URL contains tracking parameters which should be canonicalized",
                "Use canonical tags or parameter handling in Google Search Console for URLs with tracking parameters",
                penalty=15,
            )

        if any(hint in key.lower() for hint in SESSION_PARAM_HINTS for key in keys):
            card.issue(
                "URL may contain session IDs or dynamic parameters",
                "Avoid using session IDs or user-specific parameters in URLs to prevent duplicate content",
                penalty=20,
            )

    return QueryAnalysis.from_card(
        card,
        query_string=f"?{parsed.query}" if parsed.query else "",
        param_count=param_count,
        params=dict(pairs),
    )


def analyze_crawl_path(parsed, page_urls: list[str] | None) -> CrawlPathAnalysis:
    if not page_urls:
        return CrawlPathAnalysis(
            recommendations=["Provide multiple page URLs to enable crawl path analysis"],
            score=100,
            details="No additional page URLs provided for crawl path analysis",
        )

    card = ScoreCard(start=100)
    current_path = _pathname(parsed)
    current_segments = _segments(current_path)

    others = []
    for url in page_urls:
        try:
            others.append(_pathname(parse_absolute_url(url)))
        except ValueError:
            others.append(None)

    depths = [len(_segments(path)) if path is not None else 0 for path in others]
    average_depth = sum(depths) / len(depths)
    if len(current_segments) > average_depth + 2:
        card.issue(
            "URL is significantly deeper than average site URLs",
            "Consider restructuring content to be closer to the root",
            penalty=15,
        )

    parent_path = _parent_path(current_segments)
    siblings = [
        path for path in others
        if path is not None
        and len(_segments(path)) == len(current_segments)
        and _parent_path(_segments(path)) == parent_path
        and path != current_path
    ]
    if len(current_segments) > 1 and len(siblings) < 2:
        card.recommend(
            "This URL has few sibling pages. Consider building out the content section.",
            penalty=5,
        )

    current_slash = _has_trailing_slash(current_path)
    current_upper = bool(UPPERCASE.search(current_path))
    inconsistent = [
        path for path in others
        if path is not None
        and (
            _has_trailing_slash(path) != current_slash
            or bool(UPPERCASE.search(path)) != current_upper
        )
    ]
    if inconsistent:
        card.issue(
            "URL format inconsistency detected across site",
            "Maintain consistent URL patterns across the site (trailing slashes, case)",
            penalty=10,
        )

    return CrawlPathAnalysis.from_card(card)


# ─────────────────────────────────────────────
# Public entry points
# ─────────────────────────────────────────────

def analyze_url(url: str | None, page_urls: list[str] | None = None) -> UrlAnalysis:
    """Analyze URL structure; never raises for bad input."""
    if not url:
        return UrlAnalysis(
            issues=["No URL provided for analysis"],
            recommendations=["Provide a URL for analysis"],
            score=0,
        )

    try:
        parsed = parse_absolute_url(url)
    except ValueError as exc:
        return UrlAnalysis(
            url=url,
            issues=[f"Invalid URL: {exc}"],
            recommendations=["Provide a valid URL for analysis"],
            score=0,
        )

    protocol = analyze_protocol(parsed)
    domain = analyze_domain(parsed)
    path = analyze_path(parsed)
    query = analyze_query_parameters(parsed)
    crawl_path = analyze_crawl_path(parsed, page_urls)
    parts = [protocol, domain, path, query, crawl_path]

    return UrlAnalysis(
        url=url,
        parsed_url=ParsedUrl(
            protocol=protocol.protocol,
            hostname=domain.hostname,
            pathname=path.pathname,
            search=query.query_string,
        ),
        protocol_analysis=protocol,
        domain_analysis=domain,
        path_analysis=path,
        query_analysis=query,
        crawl_path_analysis=crawl_path,
        issues=[issue for part in parts for issue in part.issues],
        recommendations=[rec for part in parts for rec in part.recommendations],
        score=average_score(part.score for part in parts),
    )


class UrlAnalyzerEngine(AnalysisEngine[UrlAnalysis]):

    FACET_NAME = "url"

    def run(self, page: PageContext) -> UrlAnalysis:
        return analyze_url(page.url, page.options.site_urls)
