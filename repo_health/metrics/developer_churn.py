"""Developer churn metric."""

from collections.abc import Mapping
from typing import Any, NamedTuple

from repo_health.metrics.base import (
    DEVELOPER_CHURN,
    MetricSpec,
    Unavailable,
    as_identifiers,
    as_records,
)

# Automation accounts that should not count as developers
BOT_KEYWORDS = (
    "[bot]",
    "dependabot",
    "renovate",
    "github-actions",
    "actions-user",
    "pre-commit-ci",
)


class ChurnWindows(NamedTuple):
    """Contributors active in the older and in the recent sampling window."""

    older: frozenset[str]
    recent: frozenset[str]


def is_bot(login: str) -> bool:
    """Check if a login appears to be an automation account."""
    lower = login.lower()
    return any(keyword in lower for keyword in BOT_KEYWORDS)


def active_contributors(commits: Any) -> frozenset[str]:
    """
    Logins of the human authors of a commit sample.

    Commit records follow the REST commit listing shape, where ``author`` is
    the linked GitHub account (null for unlinked email authors, which are
    skipped).
    """
    records = as_records(commits)
    if not records:
        return frozenset()

    logins = set()
    for commit in records:
        author = commit.get("author")
        if not isinstance(author, Mapping):
            continue
        login = author.get("login")
        if isinstance(login, str) and login and not is_bot(login):
            logins.add(login)
    return frozenset(logins)


def compute_developer_churn(older: Any, recent: Any) -> float | Unavailable:
    """
    Percentage of contributors from the older window who left.

    A contributor churns when they were active in the older window and are
    absent from the recent one. Newcomers in the recent window do not offset
    departures.

    Returns:
        Churn percentage in 0-100, or Unavailable when the older window has
        no contributors to compare against.
    """
    older_set = as_identifiers(older)
    recent_set = as_identifiers(recent)
    if not older_set:
        return Unavailable("No contributors in the older window")
    if recent_set is None:
        return Unavailable("Recent contributor window missing")

    departed = older_set - recent_set
    return len(departed) / len(older_set) * 100


def churn_from_windows(windows: Any) -> float | Unavailable:
    """Developer churn for a pair of sampled contributor windows."""
    if not isinstance(windows, ChurnWindows):
        return Unavailable("Contributor history not sampled")
    return compute_developer_churn(windows.older, windows.recent)


METRIC = MetricSpec(
    key=DEVELOPER_CHURN,
    source="churn_windows",
    calculator=churn_from_windows,
    description="Share of earlier contributors no longer active",
)
