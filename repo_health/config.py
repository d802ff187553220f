"""
Configuration management for Repo Health Score.

Loads settings from:
1. .repo-health.toml (local config)
2. pyproject.toml (project-level config, [tool.repo-health])
"""

import os
import tomllib
from pathlib import Path
from typing import Any

# Directory searched for configuration files (defaults to the working directory)
PROJECT_ROOT = Path.cwd()

LOCAL_CONFIG_NAME = ".repo-health.toml"
TOOL_SECTION = "repo-health"

# Global configuration for SSL verification
# Default: True (verify SSL certificates)
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

DEFAULT_SCORECARD_PATH = "scorecard"
# Issues and PRs created within this window feed the turnaround metrics
DEFAULT_LOOKBACK_DAYS = 180
# Length of each contributor sampling window for developer churn
DEFAULT_CHURN_WINDOW_DAYS = 365
# Upper bound on pages fetched from a paginated endpoint
DEFAULT_MAX_PAGES = 10


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict[str, Any]:
    """
    Load the repo-health configuration table.

    Priority:
    1. .repo-health.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)

    Returns:
        The [tool.repo-health] table, or an empty dict.
    """
    local_config_path = PROJECT_ROOT / LOCAL_CONFIG_NAME
    if local_config_path.exists():
        config = load_config_file(local_config_path)
        return config.get("tool", {}).get(TOOL_SECTION, {})

    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    if pyproject_path.exists():
        config = load_config_file(pyproject_path)
        return config.get("tool", {}).get(TOOL_SECTION, {})

    return {}


def _get_int_setting(env_var: str | None, key: str, default: int) -> int:
    if env_var:
        env_value = os.getenv(env_var)
        if env_value:
            try:
                parsed = int(env_value)
            except ValueError:
                parsed = 0
            if parsed < 1:
                raise ValueError(
                    f"{env_var} should be a positive integer, got {env_value!r}."
                )
            return parsed

    value = get_tool_config().get(key)
    if value is None:
        return default
    if type(value) is not int or value < 1:
        raise ValueError(f"'{key}' should be a positive integer, got {value!r}.")
    return value


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """
    Get the current SSL verification setting.

    Returns:
        Whether SSL verification is enabled.
    """
    return VERIFY_SSL


def get_scorecard_path() -> str:
    """
    Get the path of the OpenSSF Scorecard CLI.

    Priority:
    1. REPO_HEALTH_SCORECARD_PATH environment variable
    2. [tool.repo-health.scorecard] cli_path
    3. Default: "scorecard" (resolved on PATH)
    """
    env_path = os.getenv("REPO_HEALTH_SCORECARD_PATH")
    if env_path:
        return env_path

    scorecard_config = get_tool_config().get("scorecard", {})
    if isinstance(scorecard_config, dict) and scorecard_config.get("cli_path"):
        return str(scorecard_config["cli_path"])

    return DEFAULT_SCORECARD_PATH


def get_lookback_days() -> int:
    """
    Get the issue/PR lookback window in days.

    Priority:
    1. REPO_HEALTH_LOOKBACK_DAYS environment variable
    2. lookback_days config key
    3. Default: 180
    """
    return _get_int_setting(
        "REPO_HEALTH_LOOKBACK_DAYS", "lookback_days", DEFAULT_LOOKBACK_DAYS
    )


def get_churn_window_days() -> int:
    """Get the length of each developer churn sampling window, in days."""
    return _get_int_setting(None, "churn_window_days", DEFAULT_CHURN_WINDOW_DAYS)


def get_max_pages() -> int:
    """Get the page cap applied to paginated GitHub endpoints."""
    return _get_int_setting(None, "max_pages", DEFAULT_MAX_PAGES)


def get_weight_overrides() -> dict[str, int]:
    """
    Load metric weight overrides from the configuration.

    Example (.repo-health.toml):

        [tool.repo-health.weights]
        badgeCount = 0
        vulnerabilityCount = 18

    The merged weight table is validated by the scoring module.

    Returns:
        Mapping of metric key to weight, empty when not configured.

    Raises:
        ValueError: If the weights entry is not a table.
    """
    weights = get_tool_config().get("weights", {})
    if not isinstance(weights, dict):
        raise ValueError("'weights' should be a table of metric names to integers.")
    return dict(weights)
