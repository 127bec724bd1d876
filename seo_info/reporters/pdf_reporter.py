"""PDF report drawn with ReportLab platypus: fixed sections, one per page."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from seo_info.engines.aggregation.engine import AggregateResult

PRIMARY = colors.HexColor("#4a6cf7")
FOOTER_TEXT = "Generated with SEO-Info - An SEO Analyzer for SPAs"
MAX_TABLE_ROWS = 10
MAX_LISTED_ISSUES = 5


def _fmt(value: object, fallback: str = "N/A") -> str:
    if value is None:
        return fallback
    text = str(value).strip()
    return text if text else fallback


def _pdf_safe(text: str) -> str:
    return escape(text.encode("latin-1", "replace").decode("latin-1"))


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _draw_footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.HexColor("#999999"))
    width = doc.pagesize[0]
    canvas.drawCentredString(width / 2, 50, FOOTER_TEXT)
    canvas.drawCentredString(width / 2, 35, f"Page {doc.page}")
    canvas.restoreState()


class _Builder:
    """Accumulates platypus flowables section by section."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.styles["Heading2"].textColor = PRIMARY
        self.styles["Title"].textColor = PRIMARY
        self.elements = []

    def title_page(self, result: AggregateResult) -> None:
        self.elements.append(Paragraph("SEO Analysis Report", self.styles["Title"]))
        self.elements.append(Spacer(1, 12))
        self.elements.append(Paragraph(
            f"Generated on {datetime.now().strftime('%Y-%m-%d %H:%M')}", self.styles["Normal"]
        ))
        self.elements.append(Spacer(1, 24))
        self.elements.append(Paragraph(
            f"<b>Analyzed URL:</b> {_pdf_safe(result.base_url)}", self.styles["Normal"]
        ))
        if result.scores:
            self.elements.append(Spacer(1, 12))
            for name, value in result.scores.items():
                self.info(name.title(), value)
            if result.overall_grade:
                self.info("Grade", result.overall_grade)

    def section(self, title: str) -> None:
        self.elements.append(PageBreak())
        self.elements.append(Paragraph(title, self.styles["Heading2"]))
        self.elements.append(Spacer(1, 8))

    def info(self, label: str, value: object) -> None:
        self.elements.append(Paragraph(
            f"<b>{_pdf_safe(label)}:</b> {_pdf_safe(_fmt(value))}", self.styles["BodyText"]
        ))

    def text(self, value: str, style: str = "BodyText") -> None:
        self.elements.append(Paragraph(_pdf_safe(value), self.styles[style]))

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        data = [headers] + [[_pdf_safe(cell) for cell in row] for row in rows]
        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#eaeef7")),
            ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ]))
        self.elements.append(Spacer(1, 6))
        self.elements.append(table)


def build_flowables(result: AggregateResult) -> list:
    b = _Builder()
    b.title_page(result)

    b.section("Basic Information")
    b.info("Title", result.title)
    b.info("Description", result.description)
    b.info("Keywords", result.keywords)
    b.info("Canonical Link", result.canonical_link)
    b.info("URL Structure", result.url_structure)

    perf = result.performance_metrics
    b.section("Performance Metrics")
    b.info("Performance Score", perf.performance_score)
    b.info("First Contentful Paint", None if perf.fcp is None else f"{perf.fcp / 1000:.2f}s")
    b.info("Largest Contentful Paint", None if perf.lcp is None else f"{perf.lcp / 1000:.2f}s")
    b.info("Total Blocking Time", None if perf.tbt is None else f"{perf.tbt:.0f}ms")

    b.section("Images")
    b.info("Total Images", len(result.images))
    b.info("Large Images", len(result.large_images))
    if result.images:
        b.table(
            ["Source", "Alt Text", "Size", "Format"],
            [
                [
                    _truncate(img.src, 30),
                    img.alt or "Missing Alt",
                    f"{img.file_size / 1024:.2f} KB" if img.file_size else "Unknown",
                    img.format or "Unknown",
                ]
                for img in result.images[:MAX_TABLE_ROWS]
            ],
        )

    b.section("Accessibility Issues")
    b.info("Total Issues", len(result.accessibility_issues))
    for index, issue in enumerate(result.accessibility_issues[:MAX_LISTED_ISSUES], start=1):
        b.text(f"Issue {index}: {issue.id}", "Heading4")
        b.text(issue.description)
        b.info("Impact", issue.impact)
    if len(result.accessibility_issues) > MAX_LISTED_ISSUES:
        b.text(f"... and {len(result.accessibility_issues) - MAX_LISTED_ISSUES} more issues", "Italic")

    b.section("JavaScript Analysis")
    rendering = result.csr_ssr_detection
    if rendering.is_ssr is None:
        method = "Unknown"
    else:
        method = "Server-Side Rendering (SSR)" if rendering.is_ssr else "Client-Side Rendering (CSR)"
    b.info("Rendering Method", method)
    b.info("Total JS Size", f"{result.js_dependencies.total_js_size / 1024:.2f} KB")
    b.info("Recommendation", result.js_dependencies.recommendation)
    if result.js_dependencies.js_files:
        b.table(
            ["File URL", "Size (KB)"],
            [
                [_truncate(f.url, 40), f"{f.size / 1024:.2f}"]
                for f in result.js_dependencies.js_files[:MAX_TABLE_ROWS]
            ],
        )

    b.section("Mobile Friendliness")
    b.info("Responsive Design", "Yes" if result.mobile_friendliness.is_responsive else "No")
    if not result.mobile_friendliness.is_responsive:
        b.text("The page does not have a proper viewport meta tag for responsive design. Consider adding:")
        b.text('<meta name="viewport" content="width=device-width, initial-scale=1.0">', "Code")

    b.section("Lazy Loading")
    lazy = result.lazy_loading_issues.lazy_loaded_images
    b.info("Images with lazy loading", len(lazy))
    if not lazy:
        b.text(
            "No lazy loaded images detected. Consider adding the 'loading=\"lazy\"' "
            "attribute to below-the-fold images."
        )

    for field, title in (
        ("content_analysis", "Content Analysis"),
        ("url_analysis", "URL Analysis"),
        ("headers_analysis", "HTTP Headers"),
        ("social_media_analysis", "Social Media"),
        ("structured_data_analysis", "Structured Data"),
    ):
        facet = getattr(result, field)
        if facet is None:
            continue
        b.section(title)
        b.info("Score", facet.score)
        for issue in facet.issues:
            b.text(f"Issue: {issue}")
        for rec in facet.recommendations:
            b.text(f"Recommendation: {rec}")

    if result.errors:
        b.section("Analysis Errors")
        for error in result.errors:
            b.info(error.type, error.message)

    return b.elements


def generate_pdf_report(result: AggregateResult, output_path: Path) -> Path:
    file_path = output_path.with_name(f"{output_path.name}.pdf")
    doc = SimpleDocTemplate(
        str(file_path),
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=72,
        title="SEO Analysis Report",
    )
    doc.build(build_flowables(result), onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return file_path
