"""HTML report rendered from a Jinja2 template."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from seo_info.engines.aggregation.engine import AggregateResult

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "report.html.j2"

FACET_TITLES = [
    ("content_analysis", "Content Analysis"),
    ("url_analysis", "URL Analysis"),
    ("headers_analysis", "HTTP Headers"),
    ("social_media_analysis", "Social Media"),
    ("structured_data_analysis", "Structured Data"),
]


def _seconds(ms: float | None) -> str:
    return "N/A" if ms is None else f"{ms / 1000:.2f}s"


def _kilobytes(size: int | None) -> str:
    return "Unknown" if size is None else f"{size / 1024:.2f} KB"


def _score_class(score: int | None) -> str:
    if score is None:
        return ""
    if score >= 80:
        return "score-good"
    if score >= 60:
        return "score-fair"
    return "score-poor"


def build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
    )
    env.filters["seconds"] = _seconds
    env.filters["kilobytes"] = _kilobytes
    env.filters["score_class"] = _score_class
    return env


def render_html(result: AggregateResult) -> str:
    template = build_environment().get_template(TEMPLATE_NAME)
    facets = [
        (title, getattr(result, field))
        for field, title in FACET_TITLES
        if getattr(result, field) is not None
    ]
    return template.render(r=result, facets=facets, generated_at=datetime.now())


def generate_html_report(result: AggregateResult, output_path: Path) -> Path:
    file_path = output_path.with_name(f"{output_path.name}.html")
    file_path.write_text(render_html(result), encoding="utf-8")
    return file_path
