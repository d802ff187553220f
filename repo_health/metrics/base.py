"""
Shared metric types and helpers.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any, Callable, NamedTuple

# --- Metric keys ---

COMMIT_FREQ = "commitFreq"
ISSUE_RES_TIME = "issueResTime"
PR_REVIEW_DURATION = "prReviewDuration"
CONTRIBUTOR_COUNT = "contributorCount"
BUS_FACTOR = "busFactor"
DEVELOPER_CHURN = "developerChurn"
TEST_FOLDER_EXISTS = "testFolderExists"
BADGE_COUNT = "badgeCount"
VULNERABILITY_COUNT = "vulnerabilityCount"
OSSF_SCORE = "ossfScore"

METRIC_KEYS = (
    COMMIT_FREQ,
    ISSUE_RES_TIME,
    PR_REVIEW_DURATION,
    CONTRIBUTOR_COUNT,
    BUS_FACTOR,
    DEVELOPER_CHURN,
    TEST_FOLDER_EXISTS,
    BADGE_COUNT,
    VULNERABILITY_COUNT,
    OSSF_SCORE,
)


class Unavailable(NamedTuple):
    """Marker for a metric whose value could not be determined."""

    reason: str = ""


MetricValue = float | int | bool
RawValue = MetricValue | Unavailable


class MetricSpec(NamedTuple):
    """Declaration of a raw metric calculation."""

    key: str
    source: str  # RawDataBundle field consumed by the calculator
    calculator: Callable[[Any], RawValue]
    description: str = ""


def is_present(value: Any) -> bool:
    """Return True when a raw value should take part in aggregation."""
    return value is not None and not isinstance(value, Unavailable)


def as_records(data: Any) -> list[Mapping[str, Any]] | None:
    """Return the mapping entries of a sequence payload, or None if it is not one."""
    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        return None
    return [entry for entry in data if isinstance(entry, Mapping)]


def as_identifiers(data: Any) -> set[str] | None:
    """Return a set of identifiers from an iterable payload, or None."""
    if isinstance(data, (str, bytes, Mapping)) or not isinstance(data, Iterable):
        return None
    return {item for item in data if isinstance(item, str) and item}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by the GitHub API."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def hours_between(start: Any, end: Any) -> float | None:
    """Hours elapsed between two ISO timestamps, or None if either is unusable."""
    started_at = parse_timestamp(start)
    ended_at = parse_timestamp(end)
    if started_at is None or ended_at is None:
        return None
    # Mixed naive/aware timestamps cannot be subtracted
    if (started_at.tzinfo is None) != (ended_at.tzinfo is None):
        return None
    return (ended_at - started_at).total_seconds() / 3600


def median(values: Iterable[float]) -> float:
    """Median of the values, 0 when there are none."""
    ordered = sorted(values)
    if not ordered:
        return 0
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2
