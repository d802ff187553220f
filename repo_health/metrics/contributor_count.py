"""Contributor count metric."""

from typing import Any

from repo_health.metrics.base import CONTRIBUTOR_COUNT, MetricSpec, as_records


def count_contributors(contributors: Any) -> int:
    """Number of contributor records, 0 for a malformed listing."""
    records = as_records(contributors)
    if records is None:
        return 0
    return len(records)


METRIC = MetricSpec(
    key=CONTRIBUTOR_COUNT,
    source="contributors",
    calculator=count_contributors,
    description="Number of contributors to the repository",
)
