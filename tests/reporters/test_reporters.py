"""Tests for the JSON, HTML and PDF report emitters."""

import json

import pytest

from seo_info.core.errors import ReportGenerationError
from seo_info.engines.aggregation.engine import AggregateResult
from seo_info.engines.base import AnalysisErrorEntry
from seo_info.engines.extraction.engine import ImageInfo
from seo_info.engines.url.engine import analyze_url
from seo_info.probes.base import PerformanceMetrics
from seo_info.reporters.html_reporter import render_html
from seo_info.reporters.json_reporter import load_json_report
from seo_info.reporters.pdf_reporter import _pdf_safe
from seo_info.reporters.report_generator import generate_report


@pytest.fixture
def result():
    return AggregateResult(
        base_url="https://example.com/",
        title="Test <Page>",
        description="A page",
        headings={"h1": ["Hello"], "h2": [], "h3": [], "h4": [], "h5": [], "h6": []},
        images=[ImageInfo(src="/logo.png", alt="", file_size=4096, format=".png")],
        performance_metrics=PerformanceMetrics(fcp=1200.0, lcp=2100.0, tbt=50.0, performance_score=95),
        url_analysis=analyze_url("http://example.com/"),
        scores={"url": 88, "overall": 88},
        overall_grade="B",
        errors=[AnalysisErrorEntry(type="ValueError", message="boom")],
    )


class TestJsonReport:

    def test_round_trip(self, result, tmp_path):
        path = generate_report(result, "json", tmp_path, "report")
        assert path == tmp_path / "report.json"

        raw = path.read_text(encoding="utf-8")
        assert raw.startswith("{\n  ")
        assert json.loads(raw)["title"] == "Test <Page>"
        assert load_json_report(path) == result


class TestHtmlReport:

    def test_writes_file(self, result, tmp_path):
        path = generate_report(result, "html", tmp_path / "nested", "report")
        assert path == tmp_path / "nested" / "report.html"
        assert path.exists()

    def test_content_is_escaped(self, result):
        html = render_html(result)
        assert "Test &lt;Page&gt;" in html
        assert "Site uses HTTP instead of HTTPS" in html
        assert "1.20s" in html


class TestPdfReport:

    def test_writes_pdf(self, result, tmp_path):
        path = generate_report(result, "pdf", tmp_path, "report")
        assert path == tmp_path / "report.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_empty_result(self, tmp_path):
        path = generate_report(AggregateResult(base_url="https://example.com/"), "pdf", tmp_path, "empty")
        assert path.exists()

    def test_non_latin_text_is_replaced_not_dropped(self):
        assert _pdf_safe("Привет <b>") == "?????? &lt;b&gt;"
        assert _pdf_safe("Café") == "Café"


class TestReportGenerator:

    def test_unsupported_format(self, result, tmp_path):
        with pytest.raises(ReportGenerationError, match="Unsupported report format"):
            generate_report(result, "docx", tmp_path, "report")

    def test_format_is_case_insensitive(self, result, tmp_path):
        assert generate_report(result, "JSON", tmp_path, "report").suffix == ".json"

    def test_unwritable_directory(self, result, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(ReportGenerationError):
            generate_report(result, "json", blocker / "sub", "report")
