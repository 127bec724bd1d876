"""Tests for the social media analyzer."""

from seo_info.core.dom import parse_document
from seo_info.engines.social.engine import (
    analyze_open_graph,
    analyze_social_links,
    analyze_social_media,
    analyze_social_sharing,
    analyze_twitter_card,
    is_absolute_http_url,
    is_element_hidden,
)

FULL_OG = """
<html><head>
<meta property="og:title" content="Title">
<meta property="og:description" content="Description">
<meta property="og:image" content="https://example.com/image.png">
<meta property="og:image:width" content="1200">
<meta property="og:image:height" content="630">
<meta property="og:url" content="https://example.com/page">
<meta property="og:type" content="website">
<meta property="og:site_name" content="Example">
</head><body></body></html>
"""


class TestHelpers:

    def test_absolute_http_url(self):
        assert is_absolute_http_url("https://example.com/a.png")
        assert not is_absolute_http_url("/a.png")
        assert not is_absolute_http_url("ftp://example.com/a.png")
        assert not is_absolute_http_url(None)

    def test_hidden_detection(self):
        doc = parse_document(
            '<body><a id="a" hidden href="#">x</a>'
            '<a id="b" style="Display: None" href="#">x</a>'
            '<a id="c" class="btn d-none" href="#">x</a>'
            '<a id="d" href="#">x</a></body>'
        )
        assert is_element_hidden(doc.query("#a"))
        assert is_element_hidden(doc.query("#b"))
        assert is_element_hidden(doc.query("#c"))
        assert not is_element_hidden(doc.query("#d"))


class TestOpenGraph:

    def test_complete_tags_clamp_to_100(self):
        result = analyze_open_graph(parse_document(FULL_OG))
        assert result.issues == []
        assert result.score == 100
        assert result.data.site_name == "Example"
        assert len(result.data.all_tags) == 8

    def test_no_tags(self):
        result = analyze_open_graph(parse_document("<html><head></head></html>"))
        assert result.score == 0
        assert result.issues == ["No Open Graph meta tags found"]

    def test_relative_image_is_penalized(self):
        html = '<head><meta property="og:image" content="/img.png"></head>'
        result = analyze_open_graph(parse_document(html))
        assert "og:image URL may not be valid or is relative" in result.issues


class TestTwitterCard:

    def test_open_graph_fallback(self):
        result = analyze_twitter_card(parse_document(FULL_OG))
        assert result.issues == ["No Twitter Card meta tags found"]
        assert result.score == 10

    def test_no_tags_at_all(self):
        result = analyze_twitter_card(parse_document("<html></html>"))
        assert result.score == 0

    def test_unknown_card_type(self):
        html = (
            '<head><meta name="twitter:card" content="banner">'
            '<meta name="twitter:title" content="T"></head>'
        )
        result = analyze_twitter_card(parse_document(html))
        assert "Unknown twitter:card value: banner" in result.issues


class TestSocialLinks:

    def test_footer_link_in_new_tab(self):
        html = '<body><footer><a href="https://facebook.com/example" target="_blank">Facebook</a></footer></body>'
        result = analyze_social_links(parse_document(html))
        assert result.linked_platforms == ["Facebook"]
        assert result.issues == []
        assert result.score == 45
        assert result.social_links["Facebook"] == ["https://facebook.com/example"]

    def test_hidden_and_unlabelled_links(self):
        html = '<body><a href="https://twitter.com/example" style="display:none"></a></body>'
        result = analyze_social_links(parse_document(html))
        assert "Some social media links may be hidden" in result.issues
        assert "Some social media links may not have visible text or icons" in result.issues

    def test_no_links(self):
        result = analyze_social_links(parse_document("<body><a href='/about'>About</a></body>"))
        assert result.score == 0
        assert result.issues == ["No social media links found on the page"]


class TestSocialSharing:

    def test_share_link_with_page_url_in_main(self):
        html = (
            '<head><meta property="og:url" content="https://example.com/page"></head>'
            '<body><main><a href="https://www.facebook.com/sharer/sharer.php?u=https%3A%2F%2Fexample.com%2Fpage">'
            "Share</a></main></body>"
        )
        result = analyze_social_sharing(parse_document(html))
        assert result.sharing_options == ["Facebook"]
        assert result.issues == []
        assert result.score == 35

    def test_share_link_missing_page_url(self):
        html = (
            '<head><meta property="og:url" content="https://example.com/page"></head>'
            '<body><a href="https://www.facebook.com/sharer/sharer.php?u=https%3A%2F%2Fother.com">Share</a></body>'
        )
        result = analyze_social_sharing(parse_document(html))
        assert "Facebook sharing links may not properly include the page URL" in result.issues

    def test_share_hints_without_links(self):
        html = '<body><div class="share-widget"></div></body>'
        result = analyze_social_sharing(parse_document(html))
        assert result.issues == []
        assert result.score == 30


class TestSocialMedia:

    def test_averages_four_parts(self):
        result = analyze_social_media(parse_document(FULL_OG))
        parts = [
            result.open_graph_analysis.score,
            result.twitter_card_analysis.score,
            result.social_links_analysis.score,
            result.social_sharing_analysis.score,
        ]
        assert parts == [100, 10, 0, 0]
        assert result.score == 28

    def test_no_document(self):
        result = analyze_social_media(None)
        assert result.score == 0
