"""OpenSSF Scorecard metric."""

import math
from collections.abc import Mapping
from typing import Any

from repo_health.metrics.base import OSSF_SCORE, MetricSpec, Unavailable


def extract_scorecard_score(result: Any) -> float | Unavailable:
    """
    Aggregate score reported by the OpenSSF Scorecard run.

    Returns:
        The ``Score`` field clamped to 0-10, or Unavailable when the run did
        not report a numeric score.
    """
    if not isinstance(result, Mapping):
        return Unavailable("Scorecard result missing")

    score = result.get("Score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return Unavailable("Scorecard did not report a score")
    if math.isnan(score):
        return Unavailable("Scorecard did not report a score")

    return max(0.0, min(10.0, float(score)))


METRIC = MetricSpec(
    key=OSSF_SCORE,
    source="scorecard",
    calculator=extract_scorecard_score,
    description="OpenSSF Scorecard aggregate score",
)
