"""JSON report: the aggregate result, pretty-printed."""

from __future__ import annotations

import json
from pathlib import Path

from seo_info.engines.aggregation.engine import AggregateResult


def generate_json_report(result: AggregateResult, output_path: Path) -> Path:
    file_path = output_path.with_name(f"{output_path.name}.json")
    payload = result.model_dump(mode="json")
    file_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return file_path


def load_json_report(file_path: str | Path) -> AggregateResult:
    """Read a JSON report back into an AggregateResult."""
    return AggregateResult.model_validate_json(Path(file_path).read_text(encoding="utf-8"))
