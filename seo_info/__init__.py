"""seo-info: single-page SEO analysis with JSON, HTML and PDF reports."""

__version__ = "1.0.0"
