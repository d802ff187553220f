"""
Metric Calculator: pure functions turning collaborator payloads into raw metrics.
"""

from importlib import import_module

from repo_health.metrics.base import METRIC_KEYS, MetricSpec

_BUILTIN_MODULES = [
    "repo_health.metrics.commit_frequency",
    "repo_health.metrics.issue_resolution",
    "repo_health.metrics.pr_review",
    "repo_health.metrics.contributor_count",
    "repo_health.metrics.bus_factor",
    "repo_health.metrics.developer_churn",
    "repo_health.metrics.has_tests",
    "repo_health.metrics.badges",
    "repo_health.metrics.vulnerabilities",
    "repo_health.metrics.ossf_scorecard",
]


def _load_builtin_metric_specs() -> list[MetricSpec]:
    specs: list[MetricSpec] = []
    for module_path in _BUILTIN_MODULES:
        module = import_module(module_path)
        metric = getattr(module, "METRIC", None)
        if isinstance(metric, MetricSpec):
            specs.append(metric)
    return specs


def load_metric_specs() -> list[MetricSpec]:
    """
    Load the metric specs in canonical key order.

    Raises:
        ValueError: If a metric key is declared twice or is not a known key.
    """
    specs_by_key: dict[str, MetricSpec] = {}
    for spec in _load_builtin_metric_specs():
        if spec.key not in METRIC_KEYS:
            raise ValueError(f"Metric '{spec.key}' is not a known metric key.")
        if spec.key in specs_by_key:
            raise ValueError(f"Metric '{spec.key}' is declared more than once.")
        specs_by_key[spec.key] = spec

    return [specs_by_key[key] for key in METRIC_KEYS if key in specs_by_key]


__all__ = ["MetricSpec", "load_metric_specs"]
