"""
Tests for the command line entry point.
The page fetch goes through httpx MockTransport and no browser is started.
"""

import io
import json
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest
from rich.console import Console

from seo_info.cli import build_overrides, main, parse_args, report_filename, run, score_style
from seo_info.core.errors import ReportGenerationError
from seo_info.probes.base import NullProbe

PAGE = (
    "<html><head><title>CLI Page</title>"
    '<meta name="viewport" content="width=device-width"></head>'
    "<body><h1>Heading</h1><p>Body copy.</p></body></html>"
)


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/":
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})
    return httpx.Response(404)


@pytest.fixture
def client():
    return httpx.AsyncClient(transport=httpx.MockTransport(_handler))


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


class TestArguments:

    def test_defaults_fall_through(self):
        args = parse_args(["https://example.com/"])
        overrides = build_overrides(args)
        assert overrides["report_format"] is None
        assert overrides["advanced"] is None
        assert overrides["thresholds"] == {"large_image_size": None, "total_js_size": None, "min_words": None}

    def test_kilobyte_thresholds(self):
        args = parse_args([
            "https://example.com/", "--max-image-size", "200", "--max-js-size", "400",
            "--min-words", "150", "--no-advanced", "-f", "html", "-k", "seo,python",
        ])
        overrides = build_overrides(args)
        assert overrides["thresholds"] == {
            "large_image_size": 200 * 1024,
            "total_js_size": 400 * 1024,
            "min_words": 150,
        }
        assert overrides["advanced"] is False
        assert overrides["report_format"] == "html"
        assert overrides["target_keywords"] == "seo,python"

    def test_report_filename(self):
        now = datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)
        assert report_filename("https://www.my-site.com/page", now) == "www_my_site_com_2024-05-01T12-30-45-123Z"

    @pytest.mark.parametrize("score,style", [(80, "green"), (60, "yellow"), (59, "red"), (None, "dim")])
    def test_score_style(self, score, style):
        assert score_style(score) == style


class TestRun:

    @pytest.mark.asyncio
    async def test_writes_report_and_summary(self, client, console, tmp_path):
        args = parse_args(["https://example.com/", "-o", str(tmp_path), "--save-headers"])
        async with client:
            code = await run(args, console, probe=NullProbe(), client=client)

        assert code == 0
        reports = list(tmp_path.glob("example_com_*.json"))
        assert len(reports) == 1
        data = json.loads(reports[0].read_text(encoding="utf-8"))
        assert data["title"] == "CLI Page"
        assert data["headers_analysis"]["headers"]["content-type"] == "text/html; charset=utf-8"

        output = console.file.getvalue()
        assert "CLI Page" in output
        assert "SEO Score" in output

    @pytest.mark.asyncio
    async def test_verbose_summary(self, client, console, tmp_path):
        args = parse_args(["https://example.com/", "-o", str(tmp_path), "-v"])
        async with client:
            await run(args, console, probe=NullProbe(), client=client)

        output = console.file.getvalue()
        assert "Scores" in output
        assert "Structured Data" in output

    @pytest.mark.asyncio
    async def test_report_failure_exits_1_after_summary(self, client, console, tmp_path):
        args = parse_args(["https://example.com/", "-o", str(tmp_path)])
        with patch("seo_info.cli.generate_report", side_effect=ReportGenerationError("disk full")):
            async with client:
                code = await run(args, console, probe=NullProbe(), client=client)

        assert code == 1
        output = console.file.getvalue()
        assert "CLI Page" in output
        assert "disk full" in output


class TestMain:

    def test_bad_config_exits_1(self, tmp_path):
        assert main(["https://example.com/", "-c", str(tmp_path / "missing.json")]) == 1
