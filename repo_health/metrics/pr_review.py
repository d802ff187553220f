"""Pull request review duration metric."""

from typing import Any

from repo_health.metrics.base import (
    PR_REVIEW_DURATION,
    MetricSpec,
    as_records,
    hours_between,
    median,
)


def median_pr_duration(pull_requests: Any) -> float:
    """
    Median time a pull request stays open, in hours.

    The end of a PR is its merge time when merged, otherwise its close time.
    Open PRs have neither and are excluded.

    Returns:
        Median hours, or 0 if no PR was merged or closed.
    """
    records = as_records(pull_requests)
    if not records:
        return 0

    durations = []
    for pr in records:
        ended_at = pr.get("merged_at") or pr.get("closed_at")
        if not ended_at:
            continue
        hours = hours_between(pr.get("created_at"), ended_at)
        if hours is not None:
            durations.append(hours)

    return median(durations)


METRIC = MetricSpec(
    key=PR_REVIEW_DURATION,
    source="pull_requests",
    calculator=median_pr_duration,
    description="Median hours from PR creation to merge or close",
)
