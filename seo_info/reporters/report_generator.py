"""
Report dispatch.

Every emitter takes the same AggregateResult and writes
<output_dir>/<filename>.<ext>, returning that path.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from seo_info.core.errors import ReportGenerationError
from seo_info.engines.aggregation.engine import AggregateResult
from seo_info.reporters.html_reporter import generate_html_report
from seo_info.reporters.json_reporter import generate_json_report
from seo_info.reporters.pdf_reporter import generate_pdf_report

logger = structlog.get_logger(__name__)

EMITTERS = {
    "json": generate_json_report,
    "html": generate_html_report,
    "pdf": generate_pdf_report,
}


def generate_report(
    result: AggregateResult,
    format: str = "json",
    output_dir: str | Path = "./reports",
    filename: str = "seo-report",
) -> Path:
    emitter = EMITTERS.get(format.lower())
    if emitter is None:
        raise ReportGenerationError(f"Unsupported report format: {format}")

    directory = Path(output_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = emitter(result, directory / filename)
    except Exception as e:
        logger.error("Report generation failed", format=format, output_dir=str(directory), error=str(e))
        raise ReportGenerationError(f"Failed to generate {format} report: {e}") from e

    logger.info("Report written", format=format, path=str(path))
    return path
