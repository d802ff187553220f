"""
Core health analysis: concurrent data collection and composite scoring.
"""

import asyncio
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, NamedTuple

import httpx
from rich.console import Console

from repo_health.config import (
    DEFAULT_CHURN_WINDOW_DAYS,
    DEFAULT_LOOKBACK_DAYS,
    get_churn_window_days,
    get_lookback_days,
    get_max_pages,
    get_weight_overrides,
)
from repo_health.external_tools.scorecard import ScorecardTool
from repo_health.metrics import load_metric_specs
from repo_health.metrics.base import MetricSpec, RawValue, Unavailable
from repo_health.metrics.developer_churn import ChurnWindows, active_contributors
from repo_health.scoring import (
    DEFAULT_SCORING_CONTEXT,
    DEFAULT_WEIGHTS,
    MetricScore,
    ScoringContext,
    aggregate_score,
    score_breakdown,
)
from repo_health.vcs.github import GitHubClient

# Diagnostics go to stderr so JSON output on stdout stays clean
console = Console(stderr=True)

# --- Data Structures ---


class RawDataBundle(NamedTuple):
    """Raw per-source payloads fetched for one scoring request.

    A source left as None was not fetched. ``errors`` maps the name of each
    source whose fetch failed to a short message.
    """

    commit_activity: Any = None
    issues: Any = None
    pull_requests: Any = None
    contributors: Any = None
    root_contents: Any = None
    readme: Any = None
    alerts: Any = None
    scorecard: Any = None
    churn_windows: ChurnWindows | None = None
    errors: Mapping[str, str] = MappingProxyType({})


class HealthReport(NamedTuple):
    """Result of a health analysis."""

    metrics: Mapping[str, RawValue]
    overall_score: int
    errors: Mapping[str, str]
    breakdown: list[MetricScore]
    repo_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serializable form: {metrics, overallScore, errors?}."""
        result: dict[str, Any] = {
            "metrics": {
                key: None if isinstance(value, Unavailable) else value
                for key, value in self.metrics.items()
            },
            "overallScore": self.overall_score,
        }
        if self.errors:
            result["errors"] = dict(self.errors)
        if self.repo_url:
            result["repoUrl"] = self.repo_url
        return result


class HealthContext(NamedTuple):
    """Collaborators and settings used to analyze a repository."""

    github: GitHubClient
    scorecard: ScorecardTool | None = None
    scoring: ScoringContext = DEFAULT_SCORING_CONTEXT
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    churn_window_days: int = DEFAULT_CHURN_WINDOW_DAYS


def build_context(
    token: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    skip_scorecard: bool = False,
) -> HealthContext:
    """
    Build a HealthContext from the loaded configuration.

    Raises:
        ValueError: If the GitHub token is missing or the configuration is invalid
    """
    # Read every setting before the client opens a connection pool
    weights = DEFAULT_WEIGHTS.with_overrides(get_weight_overrides())
    max_pages = get_max_pages()
    lookback_days = get_lookback_days()
    churn_window_days = get_churn_window_days()

    github = GitHubClient(token=token, http_client=http_client, max_pages=max_pages)
    return HealthContext(
        github=github,
        scorecard=None if skip_scorecard else ScorecardTool(token=github.token),
        scoring=ScoringContext(weights=weights),
        lookback_days=lookback_days,
        churn_window_days=churn_window_days,
    )


# --- Scoring ---


def compute_health(
    bundle: RawDataBundle,
    scoring: ScoringContext | None = None,
    specs: list[MetricSpec] | None = None,
) -> HealthReport:
    """
    Turn a raw data bundle into raw metrics and the composite score.

    Each metric reads one source of the bundle. A failed source marks its
    metrics Unavailable and records the failure in the error map; a source
    that was not fetched marks them Unavailable without an error.

    Args:
        bundle: Raw collaborator payloads.
        scoring: Weights and normalization rules (default: built-in tables).
        specs: Metric specs to evaluate (default: all built-in metrics).

    Returns:
        HealthReport with the raw metric set, composite score and error map.
    """
    scoring = scoring or DEFAULT_SCORING_CONTEXT
    metrics: dict[str, RawValue] = {}
    errors: dict[str, str] = {}

    for spec in specs if specs is not None else load_metric_specs():
        source_error = bundle.errors.get(spec.source)
        if source_error is not None:
            metrics[spec.key] = Unavailable(source_error)
            errors[spec.key] = source_error
            continue

        payload = getattr(bundle, spec.source, None)
        if payload is None:
            metrics[spec.key] = Unavailable(f"{spec.source} not fetched")
            continue

        try:
            metrics[spec.key] = spec.calculator(payload)
        except Exception as e:
            console.print(f"  [yellow]⚠️  {spec.key} check incomplete: {e}[/yellow]")
            metrics[spec.key] = Unavailable(str(e))
            errors[spec.key] = f"Note: Analysis incomplete - {e}"

    raw_metrics = MappingProxyType(metrics)
    return HealthReport(
        metrics=raw_metrics,
        overall_score=aggregate_score(raw_metrics, scoring),
        errors=MappingProxyType(errors),
        breakdown=score_breakdown(raw_metrics, scoring),
    )


# --- Data Collection ---


def describe_fetch_error(error: BaseException) -> str:
    """Short, user-facing description of a failed fetch."""
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        if (
            response.status_code in (403, 429)
            and response.headers.get("x-ratelimit-remaining") == "0"
        ):
            return "GitHub API rate limit exceeded"
        if response.status_code in (401, 403):
            return f"Access denied by GitHub API ({response.status_code})"
        if response.status_code == 404:
            return "Not found on GitHub (404)"
        return f"GitHub API returned {response.status_code}"
    if isinstance(error, httpx.RequestError):
        return f"Network error: {error.__class__.__name__}"
    return str(error) or error.__class__.__name__


async def _fetch_churn_windows(
    github: GitHubClient, owner: str, repo: str, now: datetime, window_days: int
) -> ChurnWindows:
    """Sample contributors active in the last window and in the one before it."""
    window = timedelta(days=window_days)
    recent_commits, older_commits = await asyncio.gather(
        github.list_commits(owner, repo, since=now - window, until=now),
        github.list_commits(owner, repo, since=now - 2 * window, until=now - window),
    )
    return ChurnWindows(
        older=active_contributors(older_commits),
        recent=active_contributors(recent_commits),
    )


async def fetch_raw_data(
    owner: str, repo: str, context: HealthContext, now: datetime | None = None
) -> RawDataBundle:
    """
    Fetch every source concurrently.

    A failing source does not abort the others: its exception is captured and
    recorded in the bundle's error map.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=context.lookback_days)
    github = context.github

    fetchers = {
        "commit_activity": github.get_commit_activity(owner, repo),
        "issues": github.search_recent_issues(owner, repo, since),
        "pull_requests": github.search_recent_pull_requests(owner, repo, since),
        "contributors": github.list_contributors(owner, repo),
        "root_contents": github.get_root_contents(owner, repo),
        "readme": github.get_readme(owner, repo),
        "alerts": github.list_dependabot_alerts(owner, repo),
        "churn_windows": _fetch_churn_windows(
            github, owner, repo, now, context.churn_window_days
        ),
    }
    if context.scorecard is not None:
        fetchers["scorecard"] = context.scorecard.run(owner, repo)

    results = await asyncio.gather(*fetchers.values(), return_exceptions=True)

    payloads: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for source, result in zip(fetchers, results):
        if isinstance(result, Exception):
            message = describe_fetch_error(result)
            console.print(f"  [yellow]⚠️  Could not fetch {source}: {message}[/yellow]")
            errors[source] = message
        elif isinstance(result, BaseException):
            raise result
        else:
            payloads[source] = result

    return RawDataBundle(**payloads, errors=MappingProxyType(errors))


async def analyze_repository(
    owner: str, repo: str, context: HealthContext
) -> HealthReport:
    """
    Performs a full health analysis on a given repository.

    Args:
        owner: GitHub repository owner (username or organization)
        repo: GitHub repository name
        context: Collaborators and settings

    Returns:
        HealthReport for the repository
    """
    console.print(f"Analyzing [bold cyan]{owner}/{repo}[/bold cyan]...")
    bundle = await fetch_raw_data(owner, repo, context)
    report = compute_health(bundle, context.scoring)
    return report._replace(repo_url=context.github.get_repository_url(owner, repo))
