"""
Configuration system.

Two layers:
- Settings: process-level, environment-based, validated by pydantic-settings
- AnalysisOptions: per-analysis, merged as built-in defaults < JSON config file < CLI flags
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(ValueError):
    """Raised when analysis options cannot be loaded or validated."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # HTTP fetching
    HTTP_USER_AGENT: str = "SEO-Info-Tool/1.0"
    HTTP_TIMEOUT: float = 30.0

    # Browser probes
    BROWSER_HEADLESS: bool = True
    AXE_CORE_URL: str = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.5.3/axe.min.js"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v: str | list) -> list:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - created once per process."""
    return Settings()


# ─────────────────────────────────────────────
# Analysis Options
# ─────────────────────────────────────────────

class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    large_image_size: int = 100 * 1024         # bytes
    total_js_size: int = 500 * 1024            # bytes
    ssr_content_length_threshold: int = 1000   # characters of no-JS HTML
    lazy_load_delay: int = 1000                # ms
    min_words: int = 300


class AnalysisOptions(BaseModel):
    """Immutable options for one analysis call."""
    model_config = ConfigDict(frozen=True)

    timeout: int = Field(default=30_000, gt=0)  # ms, forwarded to every probe
    thresholds: Thresholds = Field(default_factory=Thresholds)
    target_keywords: list[str] = Field(default_factory=list)
    site_urls: list[str] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)
    report_format: Literal["json", "html", "pdf"] = "json"
    output_dir: str = "./reports"
    advanced: bool = True
    verbose: bool = False

    @field_validator("target_keywords", "site_urls", mode="before")
    @classmethod
    def split_csv(cls, v: str | list | None) -> list:
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_headers(cls, v: dict | None) -> dict:
        if not v:
            return {}
        return {str(k): ", ".join(val) if isinstance(val, list) else str(val) for k, val in dict(v).items()}


def _merge(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Merge a layer over base, skipping None values; thresholds merge key-by-key."""
    merged = dict(base)
    for key, value in layer.items():
        if value is None:
            continue
        if key == "thresholds" and isinstance(value, dict):
            nested = dict(merged.get("thresholds") or {})
            nested.update({k: v for k, v in value.items() if v is not None})
            merged[key] = nested
        else:
            merged[key] = value
    return merged


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read a JSON config file into a plain dict."""
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {config_path}")
    return data


def load_options(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AnalysisOptions:
    """
    Build AnalysisOptions with precedence CLI overrides > config file > defaults.
    """
    layers: dict[str, Any] = {}
    if config_file:
        layers = _merge(layers, read_config_file(config_file))
    if overrides:
        layers = _merge(layers, overrides)

    try:
        return AnalysisOptions.model_validate(layers)
    except ValidationError as exc:
        raise ConfigError(f"Invalid analysis options: {exc}") from exc
