"""
VCS access layer for Repo Health Score.

Provides the GitHub REST client that fetches the raw per-source records used
by the Metric Calculator.
"""

from repo_health.vcs.github import GitHubClient, StatisticsPendingError

__all__ = ["GitHubClient", "StatisticsPendingError"]
