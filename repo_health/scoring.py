"""
Score Aggregator: normalization rules, weight table and composite scoring.
"""

import math
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Callable, NamedTuple

from repo_health.metrics.base import (
    BADGE_COUNT,
    BUS_FACTOR,
    COMMIT_FREQ,
    CONTRIBUTOR_COUNT,
    DEVELOPER_CHURN,
    ISSUE_RES_TIME,
    METRIC_KEYS,
    OSSF_SCORE,
    PR_REVIEW_DURATION,
    TEST_FOLDER_EXISTS,
    VULNERABILITY_COUNT,
    RawValue,
    is_present,
)

MAX_METRIC_SCORE = 10

# --- Normalization Rules ---
# Every rule maps a raw value onto 0-10 before clamping.

NormalizationRule = Callable[[float], float]

NORMALIZATION_RULES: Mapping[str, NormalizationRule] = MappingProxyType(
    {
        COMMIT_FREQ: lambda raw: raw / 30 * 10,  # 30 commits/week -> 10
        ISSUE_RES_TIME: lambda raw: 10 - (raw - 24) * 10 / 144,  # 24h -> 10, 168h -> 0
        PR_REVIEW_DURATION: lambda raw: 10 - (raw - 6) * 10 / 66,  # 6h -> 10, 72h -> 0
        CONTRIBUTOR_COUNT: lambda raw: raw / 200 * 10,
        BUS_FACTOR: lambda raw: raw / 10 * 10,
        DEVELOPER_CHURN: lambda raw: 10 - raw * 0.1,  # 0% -> 10, 100% -> 0
        TEST_FOLDER_EXISTS: lambda raw: 10 if raw else 0,
        BADGE_COUNT: lambda raw: raw / 6 * 10,
        VULNERABILITY_COUNT: lambda raw: 10 - raw,  # 10+ open alerts -> 0
        OSSF_SCORE: lambda raw: raw,  # already 0-10
    }
)


def _clamp(value: float) -> float:
    return max(0.0, min(float(MAX_METRIC_SCORE), value))


def normalize(
    key: str, raw: Any, rules: Mapping[str, NormalizationRule] = NORMALIZATION_RULES
) -> float:
    """
    Normalize a raw metric value to the 0-10 scale.

    Args:
        key: Metric key.
        raw: Raw value produced by the Metric Calculator.
        rules: Normalization rules to apply (default: NORMALIZATION_RULES).

    Returns:
        Score clamped to [0, 10].

    Raises:
        ValueError: If the key has no rule or the raw value is not a number.
    """
    rule = rules.get(key)
    if rule is None:
        raise ValueError(f"No normalization rule for metric '{key}'.")
    if not isinstance(raw, (int, float)) or (
        isinstance(raw, float) and math.isnan(raw)
    ):
        raise ValueError(f"Metric '{key}' has a non-numeric value: {raw!r}.")

    return _clamp(rule(raw))


# --- Weight Table ---


class WeightTable(Mapping[str, int]):
    """
    Immutable metric weights, in percent.

    The table must cover every metric key with a non-negative integer weight
    and the weights must sum to exactly 100.
    """

    TOTAL = 100

    def __init__(self, weights: Mapping[str, int]):
        self._validate(weights)
        self._weights = MappingProxyType(
            {key: weights[key] for key in METRIC_KEYS}
        )

    @classmethod
    def _validate(cls, weights: Mapping[str, Any]) -> None:
        if not isinstance(weights, Mapping):
            raise ValueError("Weights should be a table of metric names to integers.")

        missing_metrics = set(METRIC_KEYS) - weights.keys()
        if missing_metrics:
            missing_list = ", ".join(sorted(missing_metrics))
            raise ValueError(f"Weight table is missing metrics: {missing_list}.")

        unknown_metrics = set(weights.keys()) - set(METRIC_KEYS)
        if unknown_metrics:
            unknown_list = ", ".join(sorted(unknown_metrics))
            raise ValueError(f"Weight table includes unknown metrics: {unknown_list}.")

        invalid_weights = {
            metric: value
            for metric, value in weights.items()
            if type(value) is not int or value < 0
        }
        if invalid_weights:
            invalid_list = ", ".join(
                f"{metric}={value}" for metric, value in invalid_weights.items()
            )
            raise ValueError(
                "Weights must be integers greater than or equal to 0. "
                f"Invalid values: {invalid_list}."
            )

        total = sum(weights.values())
        if total != cls.TOTAL:
            raise ValueError(f"Weights must sum to {cls.TOTAL}, got {total}.")

    def with_overrides(self, overrides: Mapping[str, int] | None) -> "WeightTable":
        """Return a new table with some weights replaced; the result is revalidated."""
        if not overrides:
            return self
        unknown_metrics = set(overrides.keys()) - set(METRIC_KEYS)
        if unknown_metrics:
            unknown_list = ", ".join(sorted(unknown_metrics))
            raise ValueError(f"Weight overrides include unknown metrics: {unknown_list}.")
        return WeightTable({**self._weights, **overrides})

    def __getitem__(self, key: str) -> int:
        return self._weights[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"WeightTable({dict(self._weights)!r})"


# Built at import time: an invalid default table fails the process at start.
DEFAULT_WEIGHTS = WeightTable(
    {
        COMMIT_FREQ: 10,
        ISSUE_RES_TIME: 12,
        PR_REVIEW_DURATION: 12,
        CONTRIBUTOR_COUNT: 8,
        BUS_FACTOR: 10,
        DEVELOPER_CHURN: 10,
        TEST_FOLDER_EXISTS: 10,
        BADGE_COUNT: 5,
        VULNERABILITY_COUNT: 13,
        OSSF_SCORE: 10,
    }
)


class ScoringContext(NamedTuple):
    """Weights and normalization rules used by the aggregator."""

    weights: WeightTable = DEFAULT_WEIGHTS
    rules: Mapping[str, NormalizationRule] = NORMALIZATION_RULES


DEFAULT_SCORING_CONTEXT = ScoringContext()


class MetricScore(NamedTuple):
    """Contribution of a single metric to the composite score."""

    key: str
    raw: RawValue
    normalized: float
    weight: int
    contribution: float  # normalized * weight / 10, in composite points


def score_breakdown(
    metrics: Mapping[str, Any], context: ScoringContext | None = None
) -> list[MetricScore]:
    """
    Normalize and weight every present metric.

    Absent metrics (missing keys, None or Unavailable) and keys outside the
    weight table are skipped.

    Returns:
        One MetricScore per present metric, in weight table order.
    """
    context = context or DEFAULT_SCORING_CONTEXT
    rows = []
    for key, weight in context.weights.items():
        raw = metrics.get(key)
        if not is_present(raw):
            continue
        normalized = normalize(key, raw, context.rules)
        rows.append(
            MetricScore(
                key=key,
                raw=raw,
                normalized=normalized,
                weight=weight,
                contribution=normalized * weight / MAX_METRIC_SCORE,
            )
        )
    return rows


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def aggregate_score(
    metrics: Mapping[str, Any], context: ScoringContext | None = None
) -> int:
    """
    Computes the weighted composite score (0-100).

    Total score = Sum(normalized * weight / 10) over present metrics

    The weight of an absent metric is dropped rather than redistributed, so
    missing data pulls the composite toward 0.

    Args:
        metrics: Raw metric set (metric key -> raw value or Unavailable).
        context: Weights and rules (default: DEFAULT_SCORING_CONTEXT).

    Returns:
        Composite score on the 0-100 scale.
    """
    total = sum(row.contribution for row in score_breakdown(metrics, context))
    return max(0, min(WeightTable.TOTAL, round_half_up(total)))
