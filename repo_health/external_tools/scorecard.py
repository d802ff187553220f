"""OpenSSF Scorecard CLI wrapper."""

import asyncio
import json
import os
import shutil
from typing import Any

from repo_health.config import get_scorecard_path


def parse_scorecard_output(output: str) -> dict[str, Any]:
    """
    Extract the Scorecard result from the CLI's JSON output.

    The CLI may print progress lines around the JSON document, so the object
    between the first "{" and the last "}" is parsed.

    Returns:
        {"Score": <aggregate score>, "Checks": <per-check results>}

    Raises:
        ValueError: If no JSON object can be parsed from the output
    """
    out = output.strip()
    json_start = out.find("{")
    json_end = out.rfind("}")
    if json_start == -1 or json_end == -1 or json_end < json_start:
        raise ValueError("Failed to parse Scorecard JSON: no JSON object found in output")

    try:
        parsed = json.loads(out[json_start : json_end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse Scorecard JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError("Failed to parse Scorecard JSON: top-level value is not an object")

    return {"Score": parsed.get("score"), "Checks": parsed.get("checks", [])}


class ScorecardTool:
    """Run the OpenSSF Scorecard CLI against a GitHub repository."""

    def __init__(self, cli_path: str | None = None, token: str | None = None):
        self.cli_path = cli_path or get_scorecard_path()
        self.token = token or os.getenv("GITHUB_TOKEN")

    def is_available(self) -> bool:
        """Check if the scorecard binary is installed."""
        return shutil.which(self.cli_path) is not None

    def build_command(
        self, owner: str, repo: str, checks: list[str] | None = None
    ) -> list[str]:
        command = [self.cli_path, f"--repo=github.com/{owner}/{repo}", "--format=json"]
        if checks:
            command.append(f"--checks={','.join(checks)}")
        return command

    async def run(
        self, owner: str, repo: str, checks: list[str] | None = None
    ) -> dict[str, Any]:
        """Run Scorecard and return its parsed result.

        Args:
            owner: GitHub repository owner
            repo: GitHub repository name
            checks: Optional subset of Scorecard checks to run

        Returns:
            {"Score": float, "Checks": list}

        Raises:
            RuntimeError: If the CLI is missing or exits with an error
            ValueError: If the CLI output cannot be parsed
        """
        if not self.is_available():
            raise RuntimeError(
                f"Scorecard CLI '{self.cli_path}' was not found. "
                "Install it from https://github.com/ossf/scorecard or set "
                "REPO_HEALTH_SCORECARD_PATH."
            )

        env = dict(os.environ)
        if self.token:
            # Scorecard reads its GitHub credentials from this variable
            env["GITHUB_AUTH_TOKEN"] = self.token

        process = await asyncio.create_subprocess_exec(
            *self.build_command(owner, repo, checks),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            error_msg = stderr.decode().strip() or f"exit code {process.returncode}"
            raise RuntimeError(f"Scorecard failed for {owner}/{repo}: {error_msg}")

        return parse_scorecard_output(stdout.decode())
