"""Issue resolution time metric."""

from typing import Any

from repo_health.metrics.base import (
    ISSUE_RES_TIME,
    MetricSpec,
    as_records,
    hours_between,
    median,
)


def median_resolution_time(issues: Any) -> float:
    """
    Median time to close an issue, in hours.

    Issues that are still open (``closed_at`` is null) are excluded, as are
    records whose timestamps cannot be parsed.

    Returns:
        Median hours from creation to close, or 0 if no issue was closed.
    """
    records = as_records(issues)
    if not records:
        return 0

    durations = []
    for issue in records:
        if not issue.get("closed_at"):
            continue
        hours = hours_between(issue.get("created_at"), issue.get("closed_at"))
        if hours is not None:
            durations.append(hours)

    return median(durations)


METRIC = MetricSpec(
    key=ISSUE_RES_TIME,
    source="issues",
    calculator=median_resolution_time,
    description="Median hours to close recent issues",
)
