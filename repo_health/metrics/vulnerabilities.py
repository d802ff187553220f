"""Dependency vulnerability metric."""

from typing import Any

from repo_health.metrics.base import VULNERABILITY_COUNT, MetricSpec, as_records


def count_vulnerabilities(alerts: Any) -> int:
    """Number of Dependabot alerts whose state is exactly "open"."""
    records = as_records(alerts)
    if records is None:
        return 0
    return sum(1 for alert in records if alert.get("state") == "open")


METRIC = MetricSpec(
    key=VULNERABILITY_COUNT,
    source="alerts",
    calculator=count_vulnerabilities,
    description="Open dependency vulnerability alerts",
)
