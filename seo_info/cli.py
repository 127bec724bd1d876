"""
seo-info command line.

Fetches one page, runs the full analysis, writes a report named
<hostname>_<timestamp>.<ext> and prints a summary to the terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import structlog
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from seo_info import __version__
from seo_info.core.config import AnalysisOptions, ConfigError, load_options
from seo_info.core.errors import AnalysisError, ReportGenerationError
from seo_info.core.fetch import build_client, fetch_page
from seo_info.core.logging import configure_logging
from seo_info.engines.aggregation.engine import AggregateResult, SEOAnalyzer
from seo_info.probes.base import BrowserProbe, NullProbe
from seo_info.probes.playwright_probe import PlaywrightProbe
from seo_info.reporters.report_generator import generate_report

logger = structlog.get_logger(__name__)

MAX_LISTED_ISSUES = 10


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="seo-info",
        description="Analyze the SEO of a single page and write a report",
    )
    parser.add_argument("url", help="URL of the page to analyze")
    parser.add_argument(
        "-f", "--format", choices=["json", "html", "pdf"],
        help="Report format (default: json)",
    )
    parser.add_argument("-o", "--output", help="Output directory for reports (default: ./reports)")
    parser.add_argument("-c", "--config", help="Path to a JSON config file")
    parser.add_argument("-k", "--keywords", help="Comma-separated target keywords")
    parser.add_argument("--site-urls", help="Comma-separated URLs of other pages on the site")
    parser.add_argument(
        "--save-headers", action="store_true",
        help="Include the response headers in the analysis",
    )
    parser.add_argument("--max-image-size", type=int, help="Large image threshold in KB (default: 100)")
    parser.add_argument("--min-words", type=int, help="Minimum word count for page copy (default: 300)")
    parser.add_argument("--max-js-size", type=int, help="Total JavaScript size threshold in KB (default: 500)")
    parser.add_argument("--no-advanced", action="store_true", help="Skip the facet analyses")
    parser.add_argument("--no-browser", action="store_true", help="Skip browser-based measurements")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print the detailed summary")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """CLI flags as option overrides. Unset flags are None and fall through."""

    def kb(value: int | None) -> int | None:
        return None if value is None else value * 1024

    return {
        "report_format": args.format,
        "output_dir": args.output,
        "target_keywords": args.keywords,
        "site_urls": args.site_urls,
        "advanced": False if args.no_advanced else None,
        "verbose": True if args.verbose else None,
        "thresholds": {
            "large_image_size": kb(args.max_image_size),
            "total_js_size": kb(args.max_js_size),
            "min_words": args.min_words,
        },
    }


def report_filename(url: str, now: datetime | None = None) -> str:
    hostname = urlparse(url).hostname or "page"
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{re.sub(r'[^a-z0-9]', '_', hostname, flags=re.IGNORECASE)}_{re.sub(r'[:.]', '-', stamp)}"


# ─────────────────────────────────────────────
# Terminal summary
# ─────────────────────────────────────────────

def score_style(score: int | None) -> str:
    if score is None:
        return "dim"
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


def _scored(score: int | None) -> str:
    if score is None:
        return "[dim]N/A[/dim]"
    style = score_style(score)
    return f"[{style}]{score}/100[/{style}]"


def print_quick_summary(console: Console, result: AggregateResult) -> None:
    console.print(f"[bold]Title:[/bold] {escape(result.title or 'N/A')}")
    console.print(f"[bold]SEO Score:[/bold] {_scored(result.scores.get('overall'))}")
    console.print(f"[bold]Issues:[/bold] {len(result.issues)}")


def print_detailed_summary(console: Console, result: AggregateResult) -> None:
    console.print(Panel.fit(f"[bold]{escape(result.base_url)}[/bold]", title="SEO Analysis"))
    console.print(f"[bold]Title:[/bold] {escape(result.title or 'N/A')}")
    console.print(f"[bold]Description:[/bold] {escape(result.description or 'N/A')}")
    console.print(
        f"[bold]Performance Score:[/bold] {_scored(result.performance_metrics.performance_score)}"
    )

    if result.scores:
        table = Table(title="Scores", box=box.SIMPLE_HEAVY)
        table.add_column("Facet")
        table.add_column("Score", justify="right")
        for name, value in result.scores.items():
            table.add_row(name.title(), _scored(value))
        console.print(table)
    if result.overall_grade:
        console.print(f"[bold]Grade:[/bold] {result.overall_grade}")

    issues = result.issues
    if issues:
        console.print(f"\n[bold]Issues ({len(issues)}):[/bold]")
        for issue in issues[:MAX_LISTED_ISSUES]:
            console.print(f"  - {escape(issue)}")
        if len(issues) > MAX_LISTED_ISSUES:
            console.print(f"  ... and {len(issues) - MAX_LISTED_ISSUES} more")

    content = result.content_analysis
    if content is not None:
        console.print("\n[bold]Content[/bold]")
        if content.keywords is not None:
            console.print(f"  Word count: {content.keywords.word_count}")
        if content.readability is not None:
            console.print(f"  Readability: {content.readability.scores.readability_level}")
        if content.content_ratio is not None:
            console.print(f"  Text/HTML ratio: {content.content_ratio.ratio} ({content.content_ratio.rating})")

    url = result.url_analysis
    if url is not None:
        console.print("\n[bold]URL[/bold]")
        console.print(f"  Score: {_scored(url.score)}")
        if url.path_analysis is not None:
            console.print(f"  Path depth: {url.path_analysis.depth}")

    social = result.social_media_analysis
    if social is not None:
        console.print("\n[bold]Social[/bold]")
        console.print(f"  Score: {_scored(social.score)}")
        if social.social_links_analysis is not None:
            platforms = ", ".join(social.social_links_analysis.linked_platforms) or "none"
            console.print(f"  Linked platforms: {platforms}")

    schema = result.structured_data_analysis
    if schema is not None:
        console.print("\n[bold]Structured Data[/bold]")
        console.print(f"  Score: {_scored(schema.score)}")
        console.print(f"  Types: {', '.join(schema.implemented_types) or 'none'}")

    for error in result.errors:
        console.print(f"[red]Analyzer error ({error.type}): {escape(error.message)}[/red]")


# ─────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────

async def run(
    args: argparse.Namespace,
    console: Console,
    probe: BrowserProbe | None = None,
    client: httpx.AsyncClient | None = None,
) -> int:
    options: AnalysisOptions = load_options(args.config, build_overrides(args))

    if probe is None:
        probe = NullProbe() if args.no_browser else PlaywrightProbe()

    console.print(f"Analyzing [bold]{args.url}[/bold] ...")
    if client is not None:
        result = await _analyze(args, options, probe, client)
    else:
        async with build_client() as owned_client:
            result = await _analyze(args, options, probe, owned_client)

    report_error: ReportGenerationError | None = None
    try:
        path = generate_report(
            result,
            format=options.report_format,
            output_dir=options.output_dir,
            filename=report_filename(args.url),
        )
        console.print(f"Report saved to [bold]{path}[/bold]")
    except ReportGenerationError as e:
        report_error = e

    if options.verbose:
        print_detailed_summary(console, result)
    else:
        print_quick_summary(console, result)

    if report_error is not None:
        console.print(f"[red]Report generation failed: {escape(str(report_error))}[/red]")
        return 1
    return 0


async def _analyze(
    args: argparse.Namespace,
    options: AnalysisOptions,
    probe: BrowserProbe,
    client: httpx.AsyncClient,
) -> AggregateResult:
    page = await fetch_page(args.url, client)
    if args.save_headers:
        options = options.model_copy(update={"headers": page.headers})
    analyzer = SEOAnalyzer(probe=probe, client=client)
    return await analyzer.analyze(page.html, page.url, options)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose)
    console = Console()

    try:
        return asyncio.run(run(args, console))
    except (ConfigError, AnalysisError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except httpx.HTTPError as e:
        console.print(f"[red]Failed to fetch {args.url}: {e}[/red]")
        return 1
    except Exception as e:
        logger.error("Analysis failed", url=args.url, error=str(e), exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
