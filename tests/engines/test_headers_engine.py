"""Tests for the HTTP headers analyzer."""

from seo_info.engines.headers.engine import (
    analyze_cache_headers,
    analyze_compression,
    analyze_content_headers,
    analyze_headers,
    analyze_security_headers,
    normalize_headers,
)


class TestNormalizeHeaders:

    def test_lowercases_and_joins_lists(self):
        result = normalize_headers({"Content-Type": "text/html", "Set-Cookie": ["a=1", "b=2"]})
        assert result == {"content-type": "text/html", "set-cookie": "a=1, b=2"}


class TestCacheHeaders:

    def test_missing_cache_headers(self):
        result = analyze_cache_headers({"content-type": "text/html"})
        assert result.score == 0
        assert len(result.issues) == 3

    def test_clean_cache_headers_are_perfect(self):
        result = analyze_cache_headers({
            "cache-control": "public, max-age=31536000",
            "etag": '"abc"',
            "last-modified": "Wed, 21 Oct 2015 07:28:00 GMT",
        })
        assert result.issues == []
        assert result.score == 100

    def test_short_max_age(self):
        result = analyze_cache_headers({"cache-control": "max-age=60", "etag": "x", "last-modified": "y"})
        assert result.issues == ["Short cache period (60 seconds)"]


class TestSecurityHeaders:

    def test_permissions_policy_counts_as_feature_policy(self):
        result = analyze_security_headers({"permissions-policy": "geolocation=()"})
        assert "feature-policy" in result.security_headers_present

    def test_all_present_is_perfect(self):
        headers = {
            "strict-transport-security": "max-age=63072000",
            "content-security-policy": "default-src 'self'",
            "x-content-type-options": "nosniff",
            "x-frame-options": "DENY",
            "x-xss-protection": "1; mode=block",
            "referrer-policy": "no-referrer",
            "permissions-policy": "camera=()",
        }
        result = analyze_security_headers(headers)
        assert result.issues == []
        assert result.score == 100


class TestContentHeaders:

    def test_utf8_with_language_is_perfect(self):
        result = analyze_content_headers({
            "content-type": "text/html; charset=UTF-8",
            "content-language": "en",
        })
        assert result.issues == []
        assert result.score == 100

    def test_noindex_is_an_issue(self):
        result = analyze_content_headers({"content-type": "text/html", "x-robots-tag": "noindex"})
        assert "X-Robots-Tag prevents indexing" in result.issues


class TestCompression:

    def test_deflate_with_vary_is_not_forced_to_100(self):
        result = analyze_compression({"content-encoding": "deflate", "vary": "Accept-Encoding"})
        assert result.issues == []
        assert result.score == 90

    def test_brotli_clamps_to_100(self):
        result = analyze_compression({"content-encoding": "br", "vary": "Accept-Encoding"})
        assert result.score == 100

    def test_vary_match_is_case_sensitive(self):
        result = analyze_compression({"content-encoding": "gzip", "vary": "accept-encoding"})
        assert "Vary header does not include Accept-Encoding" in result.issues


class TestAnalyzeHeaders:

    def test_empty_map(self):
        result = analyze_headers({})
        assert result.score == 0
        assert result.issues == ["No headers provided for analysis"]

    def test_mixed_case_input_is_normalized(self):
        result = analyze_headers({"Content-Type": "text/html; charset=utf-8", "Content-Encoding": "br"})
        assert result.headers["content-type"] == "text/html; charset=utf-8"
        assert result.compression_analysis.content_encoding == "br"
        assert 0 <= result.score <= 100
