"""
Social Media Analyzer Engine

Four sub-analyses over the parsed document, averaged unweighted:
- Open Graph meta tags
- Twitter Card meta tags
- Links to social profiles (placement, visibility, new-tab, labelling)
- Share links (platform coverage, embedded page URL, placement)
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote, urlparse

from pydantic import BaseModel, Field

from seo_info.core.dom import Document, Element
from seo_info.core.scoring import ScoreCard, average_score
from seo_info.engines.base import AnalysisEngine, FacetResult, PageContext

SOCIAL_PLATFORMS: dict[str, list[str]] = {
    "Facebook": ["facebook.com", "fb.com"],
    "Twitter": ["twitter.com", "x.com"],
    "LinkedIn": ["linkedin.com"],
    "Instagram": ["instagram.com"],
    "YouTube": ["youtube.com", "youtu.be"],
    "Pinterest": ["pinterest.com"],
    "TikTok": ["tiktok.com"],
    "Reddit": ["reddit.com"],
    "Discord": ["discord.com", "discord.gg"],
    "Snapchat": ["snapchat.com"],
}

SHARING_PATTERNS: dict[str, list[str]] = {
    "Facebook": ["facebook.com/sharer", "facebook.com/share"],
    "Twitter": ["twitter.com/intent/tweet", "twitter.com/share"],
    "LinkedIn": ["linkedin.com/shareArticle"],
    "Pinterest": ["pinterest.com/pin/create"],
    "Email": ["mailto:"],
    "WhatsApp": ["api.whatsapp.com/send", "web.whatsapp.com/send"],
    "Telegram": ["t.me/share"],
}

COMMON_PROFILE_PLATFORMS = ["Facebook", "Twitter", "LinkedIn", "Instagram"]
COMMON_SHARING_PLATFORMS = ["Facebook", "Twitter", "LinkedIn", "Email"]
VALID_TWITTER_CARDS = {"summary", "summary_large_image", "app", "player"}

HEADER_SELECTORS = ["header", '[role="banner"]', "#header", ".header", ".site-header"]
FOOTER_SELECTORS = ["footer", '[role="contentinfo"]', "#footer", ".footer", ".site-footer"]
MAIN_CONTENT_SELECTORS = [
    "main", '[role="main"]', "article", ".content", ".main-content",
    "#content", ".post", ".article", ".page-content",
]
HIDDEN_CLASSES = {"hidden", "hide", "invisible", "d-none", "display-none"}
LINK_ICON_SELECTOR = 'img, svg, [class*="icon"], [class*="social"]'
SHARE_HINT_SELECTOR = (
    '[class*="share"], [id*="share"], [class*="social"], [id*="social"], '
    '[class*="facebook"], [class*="twitter"], [class*="linkedin"], '
    '[aria-label*="share"], [title*="share"]'
)
SHARE_COUNT_SELECTOR = '[class*="count"], [class*="shares"], [class*="reactions"], [class*="comments"]'

# Characters encodeURIComponent leaves untouched besides alphanumerics
URI_COMPONENT_SAFE = "-_.!~*'()"


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────

class MetaTag(BaseModel):
    key: str | None = None
    content: str | None = None


class OpenGraphData(BaseModel):
    title: str | None = None
    description: str | None = None
    image: str | None = None
    url: str | None = None
    type: str | None = None
    site_name: str | None = None
    locale: str | None = None
    all_tags: list[MetaTag] = Field(default_factory=list)


class TwitterCardData(BaseModel):
    card: str | None = None
    title: str | None = None
    description: str | None = None
    image: str | None = None
    site: str | None = None
    creator: str | None = None
    all_tags: list[MetaTag] = Field(default_factory=list)


class OpenGraphAnalysis(FacetResult):
    data: OpenGraphData = Field(default_factory=OpenGraphData)


class TwitterCardAnalysis(FacetResult):
    data: TwitterCardData = Field(default_factory=TwitterCardData)


class SocialLinksAnalysis(FacetResult):
    linked_platforms: list[str] = Field(default_factory=list)
    social_links: dict[str, list[str]] = Field(default_factory=dict)


class SocialSharingAnalysis(FacetResult):
    sharing_options: list[str] = Field(default_factory=list)
    share_buttons: dict[str, list[str]] = Field(default_factory=dict)


class SocialMediaAnalysis(FacetResult):
    open_graph_analysis: Optional[OpenGraphAnalysis] = None
    twitter_card_analysis: Optional[TwitterCardAnalysis] = None
    social_links_analysis: Optional[SocialLinksAnalysis] = None
    social_sharing_analysis: Optional[SocialSharingAnalysis] = None


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def is_absolute_http_url(url: str | None) -> bool:
    if not url or not (url.startswith("http://") or url.startswith("https://")):
        return False
    try:
        parsed = urlparse(url)
        parsed.port
    except ValueError:
        return False
    return bool(parsed.netloc)


def _inline_style(element: Element) -> dict[str, str]:
    declarations = {}
    for declaration in (element.get("style") or "").split(";"):
        if ":" in declaration:
            prop, value = declaration.split(":", 1)
            declarations[prop.strip().lower()] = value.strip().lower()
    return declarations


def is_element_hidden(element: Element) -> bool:
    if element.has_attr("hidden"):
        return True
    style = _inline_style(element)
    if style.get("display") == "none" or style.get("visibility") == "hidden":
        return True
    return bool(HIDDEN_CLASSES.intersection(element.get("class") or []))


def _in_regions(document: Document, element: Element, selectors: list[str]) -> bool:
    return any(
        document.contains(region, element)
        for selector in selectors
        for region in document.query_all(selector)
    )


def find_main_content_element(document: Document) -> Element | None:
    for selector in MAIN_CONTENT_SELECTORS:
        element = document.query(selector)
        if element is not None:
            return element
    return None


def _group_links(links: list[Element], patterns: dict[str, list[str]]) -> dict[str, list[Element]]:
    return {
        name: [link for link in links if any(p in link.get("href", "") for p in platform_patterns)]
        for name, platform_patterns in patterns.items()
    }


def _hrefs(groups: dict[str, list[Element]]) -> dict[str, list[str]]:
    return {name: [link.get("href") for link in links] for name, links in groups.items()}


def _embeds_page_url(href: str, param: str, page_url: str) -> bool:
    if param not in href:
        return False
    return (
        quote(page_url, safe=URI_COMPONENT_SAFE) in href
        or "${url}" in href
        or "{url}" in href
    )


# ─────────────────────────────────────────────
# Sub-analyses
# ─────────────────────────────────────────────

def analyze_open_graph(document: Document) -> OpenGraphAnalysis:
    card = ScoreCard()
    og_tags = document.query_all('meta[property^="og:"]')

    def og(prop: str) -> str | None:
        return document.meta_content(f'meta[property="og:{prop}"]')

    data = OpenGraphData(
        title=og("title"),
        description=og("description"),
        image=og("image"),
        url=og("url"),
        type=og("type"),
        site_name=og("site_name"),
        locale=og("locale"),
        all_tags=[MetaTag(key=tag.get("property"), content=tag.get("content")) for tag in og_tags],
    )

    if not og_tags:
        card.issue(
            "No Open Graph meta tags found",
            "Add Open Graph meta tags for better social media sharing",
        )
        return OpenGraphAnalysis.from_card(card, data=data)

    card.add(20)
    essentials = [
        ("og:title", data.title, 20, "Add og:title meta tag for better social sharing"),
        ("og:description", data.description, 15, "Add og:description meta tag for better social sharing"),
        ("og:image", data.image, 20, "Add og:image meta tag for better social sharing"),
        ("og:url", data.url, 10, "Add og:url meta tag to specify the canonical URL for the page"),
        ("og:type", data.type, 10,
         "Add og:type meta tag to specify the type of content (e.g., website, article)"),
    ]
    for name, value, points, recommendation in essentials:
        if value:
            card.add(points)
        else:
            card.issue(f"Missing {name} meta tag", recommendation)

    if data.site_name:
        card.add(5)
    else:
        card.recommend("Add og:site_name meta tag for better brand recognition")

    if data.image:
        if not is_absolute_http_url(data.image):
            card.issue(
                "og:image URL may not be valid or is relative",
                "Use absolute URLs for og:image meta tags",
                penalty=10,
            )
        if og("image:width") and og("image:height"):
            card.add(5)
        else:
            card.recommend(
                "Add og:image:width and og:image:height for better image rendering on social platforms"
            )

    return OpenGraphAnalysis.from_card(card, data=data)


def analyze_twitter_card(document: Document) -> TwitterCardAnalysis:
    card = ScoreCard()
    twitter_tags = document.query_all('meta[name^="twitter:"]')

    def tw(name: str) -> str | None:
        return document.meta_content(f'meta[name="twitter:{name}"]')

    data = TwitterCardData(
        card=tw("card"),
        title=tw("title"),
        description=tw("description"),
        image=tw("image"),
        site=tw("site"),
        creator=tw("creator"),
        all_tags=[MetaTag(key=tag.get("name"), content=tag.get("content")) for tag in twitter_tags],
    )

    if not twitter_tags:
        card.issue(
            "No Twitter Card meta tags found",
            "Add Twitter Card meta tags for better Twitter sharing",
        )
        if document.query('meta[property^="og:"]') is not None:
            card.recommend(
                "Twitter Cards can fall back to Open Graph tags, but explicit Twitter Card tags are recommended"
            )
            card.add(10)
        return TwitterCardAnalysis.from_card(card, data=data)

    card.add(20)
    essentials = [
        ("twitter:card", data.card, 20, "Add twitter:card meta tag to specify the card type"),
        ("twitter:title", data.title, 15, "Add twitter:title meta tag for better Twitter sharing"),
        ("twitter:description", data.description, 15,
         "Add twitter:description meta tag for better Twitter sharing"),
        ("twitter:image", data.image, 15, "Add twitter:image meta tag for better Twitter sharing"),
    ]
    for name, value, points, recommendation in essentials:
        if value:
            card.add(points)
        else:
            card.issue(f"Missing {name} meta tag", recommendation)

    if data.site:
        card.add(5)
    else:
        card.recommend("Add twitter:site meta tag with your Twitter username")

    if data.card and data.card not in VALID_TWITTER_CARDS:
        card.issue(
            f"Unknown twitter:card value: {data.card}",
            "Use a valid Twitter card type: summary, summary_large_image, app, or player",
            penalty=10,
        )

    if data.image and not is_absolute_http_url(data.image):
        card.issue(
            "twitter:image URL may not be valid or is relative",
            "Use absolute URLs for twitter:image meta tags",
            penalty=10,
        )

    return TwitterCardAnalysis.from_card(card, data=data)


def analyze_social_links(document: Document) -> SocialLinksAnalysis:
    card = ScoreCard()
    links = document.query_all("a[href]")
    groups = _group_links(links, SOCIAL_PLATFORMS)
    social_links = [
        link for link in links
        if any(p in link.get("href", "") for patterns in SOCIAL_PLATFORMS.values() for p in patterns)
    ]
    linked_platforms = [name for name, platform_links in groups.items() if platform_links]

    if not social_links:
        card.issue(
            "No social media links found on the page",
            "Add links to your social media profiles for better connectivity",
        )
        return SocialLinksAnalysis.from_card(card, social_links=_hrefs(groups))

    card.add(min(60, len(linked_platforms) * 15))

    missing = [name for name in COMMON_PROFILE_PLATFORMS if name not in linked_platforms]
    if missing:
        card.recommend(f"Consider adding links to these popular platforms: {', '.join(missing)}")

    if any(
        _in_regions(document, link, HEADER_SELECTORS) or _in_regions(document, link, FOOTER_SELECTORS)
        for link in social_links
    ):
        card.add(20)
    else:
        card.recommend("Place social media links in header or footer for better visibility")

    if any(is_element_hidden(link) for link in social_links):
        card.issue(
            "Some social media links may be hidden",
            "Ensure social media links are visible to users",
            penalty=10,
        )

    if all(link.get("target") == "_blank" for link in social_links):
        card.add(10)
    else:
        card.recommend("Make social media links open in new tabs to prevent users from leaving your site")

    unnamed = [
        link for link in social_links
        if not document.text_of(link).strip() and link.select_one(LINK_ICON_SELECTOR) is None
    ]
    if unnamed:
        card.issue(
            "Some social media links may not have visible text or icons",
            "Add descriptive text or icons to social media links",
            penalty=10,
        )

    return SocialLinksAnalysis.from_card(
        card,
        linked_platforms=linked_platforms,
        social_links=_hrefs(groups),
    )


def analyze_social_sharing(document: Document) -> SocialSharingAnalysis:
    card = ScoreCard()
    links = document.query_all("a[href]")
    groups = _group_links(links, SHARING_PATTERNS)
    sharing_options = [name for name, buttons in groups.items() if buttons]

    if not sharing_options:
        if document.query_all(SHARE_HINT_SELECTOR):
            card.recommend("Consider using standard social sharing links with proper URLs")
            card.add(30)
        else:
            card.issue(
                "No social sharing buttons/links found",
                "Add social sharing buttons to make content easily shareable",
            )
    else:
        card.add(min(60, len(sharing_options) * 15))

        missing = [name for name in COMMON_SHARING_PLATFORMS if name not in sharing_options]
        if missing:
            card.recommend(f"Consider adding sharing options for: {', '.join(missing)}")

        page_url = document.meta_content('meta[property="og:url"]')
        if not page_url:
            canonical = document.query('link[rel="canonical"]')
            page_url = canonical.get("href") if canonical is not None else None

        if page_url:
            for platform, param in (("Facebook", "u="), ("Twitter", "url=")):
                buttons = groups[platform]
                if buttons and not any(
                    _embeds_page_url(button.get("href", ""), param, page_url) for button in buttons
                ):
                    card.issue(
                        f"{platform} sharing links may not properly include the page URL",
                        f"Ensure {platform} sharing links include the proper page URL",
                        penalty=10,
                    )

        if document.query_all(SHARE_COUNT_SELECTOR):
            card.add(10)
        else:
            card.recommend("Consider displaying share counts for social proof")

    content = find_main_content_element(document)
    if content is not None:
        buttons = [button for group in groups.values() for button in group]
        if any(document.contains(content, button) for button in buttons):
            card.add(20)
        else:
            card.recommend("Place sharing buttons near your main content for better visibility")

    return SocialSharingAnalysis.from_card(
        card,
        sharing_options=sharing_options,
        share_buttons=_hrefs(groups),
    )


# ─────────────────────────────────────────────
# Public entry points
# ─────────────────────────────────────────────

def analyze_social_media(document: Document | None) -> SocialMediaAnalysis:
    if document is None:
        return SocialMediaAnalysis(
            issues=["No document provided for analysis"],
            recommendations=["Provide a document for analysis"],
            score=0,
        )

    open_graph = analyze_open_graph(document)
    twitter = analyze_twitter_card(document)
    links = analyze_social_links(document)
    sharing = analyze_social_sharing(document)
    parts = [open_graph, twitter, links, sharing]

    return SocialMediaAnalysis(
        open_graph_analysis=open_graph,
        twitter_card_analysis=twitter,
        social_links_analysis=links,
        social_sharing_analysis=sharing,
        issues=[issue for part in parts for issue in part.issues],
        recommendations=[rec for part in parts for rec in part.recommendations],
        score=average_score(part.score for part in parts),
    )


class SocialAnalyzerEngine(AnalysisEngine[SocialMediaAnalysis]):

    FACET_NAME = "social"

    def run(self, page: PageContext) -> SocialMediaAnalysis:
        return analyze_social_media(page.document)
