"""Bus factor metric."""

from typing import Any

from repo_health.metrics.base import BUS_FACTOR, MetricSpec, as_records


def _contributions(contributor: dict[str, Any]) -> int:
    value = contributor.get("contributions")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return 0
    return value


def estimate_bus_factor(contributors: Any) -> int:
    """
    Estimates the 'Bus Factor' of a repository.

    The bus factor is the smallest number of top contributors whose combined
    contributions account for at least half of all contributions. Contributors
    are ranked by contribution count, descending; equal counts keep their
    original order so the result is reproducible.

    Examples:
    - [100, 50, 50]: the top contributor alone reaches 50% -> 1
    - [40, 30, 30]: 40% then 70% -> 2

    Returns:
        The bus factor, or 0 when there are no contributors.
    """
    records = as_records(contributors)
    if not records:
        return 0

    # sorted() is stable, so ties keep input order
    ranked = sorted(records, key=_contributions, reverse=True)
    total = sum(_contributions(c) for c in ranked)

    accumulated = 0
    for index, contributor in enumerate(ranked, start=1):
        accumulated += _contributions(contributor)
        if accumulated >= total / 2:
            return index

    return len(ranked)


METRIC = MetricSpec(
    key=BUS_FACTOR,
    source="contributors",
    calculator=estimate_bus_factor,
    description="Top contributors holding half of all contributions",
)
