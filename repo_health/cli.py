"""
Command-line interface for Repo Health Score.
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.table import Table

from repo_health.config import get_weight_overrides, set_verify_ssl
from repo_health.core import HealthContext, HealthReport, analyze_repository, build_context
from repo_health.metrics import load_metric_specs
from repo_health.metrics.base import Unavailable
from repo_health.scoring import DEFAULT_WEIGHTS

# --- Typer App ---
app = typer.Typer(help="Composite health score (0-100) for GitHub repositories.")
console = Console()

# --- Helper Functions ---


def parse_repo_spec(spec: str) -> tuple[str, str]:
    """
    Parse 'owner/repo' or a GitHub URL into (owner, repo).

    Raises:
        ValueError: If the argument does not name a repository
    """
    cleaned = spec.strip().removesuffix("/").removesuffix(".git")
    for prefix in ("https://github.com/", "http://github.com/", "github.com/"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix) :]
            break

    parts = cleaned.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Expected 'owner/repo', got '{spec}'.")
    return parts[0], parts[1]


def _score_color(score: int) -> str:
    if score < 50:
        return "red"
    if score < 80:
        return "yellow"
    return "green"


def _format_raw(value) -> str:
    if isinstance(value, Unavailable):
        return "[dim]n/a[/dim]"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


def display_report(report: HealthReport, verbose: bool = False) -> None:
    """Display the health report."""
    color = _score_color(report.overall_score)
    name = (report.repo_url or "").replace("https://github.com/", "")
    console.print(
        f"\n📦 [bold cyan]{name}[/bold cyan]  "
        f"Health Score: [{color}]{report.overall_score}/100[/{color}]"
    )

    if verbose:
        descriptions = {spec.key: spec.description for spec in load_metric_specs()}
        rows = {row.key: row for row in report.breakdown}

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Raw", justify="right")
        table.add_column("Score", justify="center", style="magenta")
        table.add_column("Weight", justify="center")
        table.add_column("Points", justify="right")
        table.add_column("Description", justify="left")

        for key, value in report.metrics.items():
            row = rows.get(key)
            table.add_row(
                key,
                _format_raw(value),
                f"{row.normalized:.1f}/10" if row else "[dim]-[/dim]",
                f"{row.weight}%" if row else "[dim]-[/dim]",
                f"{row.contribution:.1f}" if row else "[dim]0.0[/dim]",
                descriptions.get(key, ""),
            )
        console.print(table)

    for key, message in report.errors.items():
        console.print(f"[yellow]⚠️  {key} unavailable: {message}[/yellow]")


async def _run_analysis(owner: str, repo: str, context: HealthContext) -> HealthReport:
    try:
        return await analyze_repository(owner, repo, context)
    finally:
        await context.github.aclose()


# --- Commands ---


@app.command()
def score(
    repository: str = typer.Argument(
        ...,
        help="Repository to score, as 'owner/repo' or a GitHub URL.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Display the per-metric breakdown.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON.",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
    skip_scorecard: bool = typer.Option(
        False,
        "--skip-scorecard",
        help="Do not run the OpenSSF Scorecard CLI (ossfScore becomes unavailable).",
    ),
):
    """Compute the health score of a GitHub repository."""
    set_verify_ssl(not insecure)

    try:
        owner, repo = parse_repo_spec(repository)
        context = build_context(skip_scorecard=skip_scorecard)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    report = asyncio.run(_run_analysis(owner, repo, context))

    if as_json:
        console.print_json(json.dumps(report.to_dict()))
        return
    display_report(report, verbose=verbose)


@app.command()
def weights():
    """Display the effective metric weights."""
    try:
        table_weights = DEFAULT_WEIGHTS.with_overrides(get_weight_overrides())
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Metric Weights", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Weight", justify="right")
    for key, weight in table_weights.items():
        table.add_row(key, f"{weight}%")
    console.print(table)


if __name__ == "__main__":
    app()
