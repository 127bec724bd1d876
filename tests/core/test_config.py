"""Tests for option loading and precedence."""

import json

import pytest
from pydantic import ValidationError

from seo_info.core.config import AnalysisOptions, ConfigError, load_options, read_config_file


class TestAnalysisOptions:

    def test_defaults(self):
        options = AnalysisOptions()
        assert options.timeout == 30_000
        assert options.thresholds.large_image_size == 100 * 1024
        assert options.thresholds.total_js_size == 500 * 1024
        assert options.thresholds.min_words == 300
        assert options.advanced is True
        assert options.report_format == "json"

    def test_csv_strings_are_split(self):
        options = AnalysisOptions(target_keywords="seo, python ,", site_urls="https://a.com/x")
        assert options.target_keywords == ["seo", "python"]
        assert options.site_urls == ["https://a.com/x"]

    def test_is_immutable(self):
        options = AnalysisOptions()
        with pytest.raises(ValidationError):
            options.advanced = False


class TestLoadOptions:

    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "seo.json"
        path.write_text(json.dumps({
            "report_format": "html",
            "output_dir": "./from-file",
            "thresholds": {"min_words": 500, "large_image_size": 2048},
        }))
        return path

    def test_file_overrides_defaults(self, config_file):
        options = load_options(config_file)
        assert options.report_format == "html"
        assert options.thresholds.min_words == 500
        assert options.thresholds.total_js_size == 500 * 1024

    def test_cli_overrides_file(self, config_file):
        options = load_options(config_file, {
            "report_format": "pdf",
            "output_dir": None,
            "thresholds": {"min_words": 100, "large_image_size": None},
        })
        assert options.report_format == "pdf"
        assert options.output_dir == "./from-file"
        assert options.thresholds.min_words == 100
        assert options.thresholds.large_image_size == 2048

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            read_config_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_options(path)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            load_options(overrides={"report_format": "docx"})
