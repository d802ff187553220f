"""
Tests for the command-line interface.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from repo_health.cli import app, parse_repo_spec
from repo_health.core import HealthContext, RawDataBundle, compute_health

runner = CliRunner()


def _report():
    bundle = RawDataBundle(
        root_contents=[{"name": "tests", "type": "dir"}],
        alerts=[],
        errors={"readme": "Not found on GitHub (404)"},
    )
    return compute_health(bundle)._replace(repo_url="https://github.com/octo/demo")


def _context():
    github = MagicMock()
    github.aclose = AsyncMock()
    return HealthContext(github=github)


@pytest.mark.parametrize(
    "spec",
    [
        "octo/demo",
        "https://github.com/octo/demo",
        "https://github.com/octo/demo.git",
        "github.com/octo/demo/",
    ],
)
def test_parse_repo_spec(spec):
    assert parse_repo_spec(spec) == ("octo", "demo")


@pytest.mark.parametrize("spec", ["octo", "octo/demo/extra", "/demo", ""])
def test_parse_repo_spec_invalid(spec):
    with pytest.raises(ValueError, match="Expected 'owner/repo'"):
        parse_repo_spec(spec)


def test_score_command():
    context = _context()
    with (
        patch("repo_health.cli.build_context", return_value=context),
        patch(
            "repo_health.cli.analyze_repository", AsyncMock(return_value=_report())
        ) as mock_analyze,
    ):
        result = runner.invoke(app, ["score", "octo/demo", "--verbose"])

    assert result.exit_code == 0
    assert "23/100" in result.output
    assert "vulnerabilityCount" in result.output
    assert "badgeCount unavailable" in result.output
    mock_analyze.assert_awaited_once_with("octo", "demo", context)
    context.github.aclose.assert_awaited_once()


def test_score_command_json():
    with (
        patch("repo_health.cli.build_context", return_value=_context()),
        patch("repo_health.cli.analyze_repository", AsyncMock(return_value=_report())),
    ):
        result = runner.invoke(app, ["score", "octo/demo", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["overallScore"] == 23
    assert data["metrics"]["testFolderExists"] is True
    assert data["errors"] == {"badgeCount": "Not found on GitHub (404)"}


def test_score_command_skip_scorecard():
    with (
        patch("repo_health.cli.build_context", return_value=_context()) as mock_build,
        patch("repo_health.cli.analyze_repository", AsyncMock(return_value=_report())),
    ):
        runner.invoke(app, ["score", "octo/demo", "--skip-scorecard"])

    mock_build.assert_called_once_with(skip_scorecard=True)


def test_score_command_invalid_repository():
    result = runner.invoke(app, ["score", "not-a-repo"])
    assert result.exit_code == 1
    assert "Expected 'owner/repo'" in result.output


def test_score_command_missing_token():
    with patch(
        "repo_health.cli.build_context",
        side_effect=ValueError("GITHUB_TOKEN is required for GitHub access."),
    ):
        result = runner.invoke(app, ["score", "octo/demo"])

    assert result.exit_code == 1
    assert "GITHUB_TOKEN is required" in result.output


def test_weights_command():
    with patch("repo_health.cli.get_weight_overrides", return_value={}):
        result = runner.invoke(app, ["weights"])

    assert result.exit_code == 0
    assert "vulnerabilityCount" in result.output
    assert "13%" in result.output


def test_weights_command_invalid_override():
    with patch("repo_health.cli.get_weight_overrides", return_value={"badgeCount": 50}):
        result = runner.invoke(app, ["weights"])

    assert result.exit_code == 1
    assert "sum to 100" in result.output
