"""External tool wrappers for best-practices scanning."""

from repo_health.external_tools.scorecard import ScorecardTool

__all__ = ["ScorecardTool"]
