"""Commit frequency metric."""

from collections.abc import Mapping, Sequence
from typing import Any

from repo_health.metrics.base import COMMIT_FREQ, MetricSpec


def weekly_commit_average(commit_activity: Any) -> float:
    """
    Average number of commits per week.

    Expects the weekly commit series from the commit activity statistics
    endpoint, one ``{"week": ..., "total": ..., "days": [...]}`` entry per
    week. A week without a usable ``total`` counts as zero commits.

    Returns:
        Mean of the weekly totals, or 0 for an empty or malformed series.
    """
    if isinstance(commit_activity, (str, bytes)) or not isinstance(
        commit_activity, Sequence
    ):
        return 0
    if not commit_activity:
        return 0

    total_commits = 0
    for week in commit_activity:
        total = week.get("total") if isinstance(week, Mapping) else None
        if isinstance(total, (int, float)) and not isinstance(total, bool):
            total_commits += total

    return total_commits / len(commit_activity)


METRIC = MetricSpec(
    key=COMMIT_FREQ,
    source="commit_activity",
    calculator=weekly_commit_average,
    description="Average commits per week over the last year",
)
