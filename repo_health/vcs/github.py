"""
GitHub REST client for Repo Health Score.

Fetches the raw records each metric needs and reshapes them to the minimal
data contracts consumed by the Metric Calculator.
"""

import os
from datetime import datetime, timezone
from typing import Any

import httpx
from dotenv import load_dotenv

from repo_health.config import DEFAULT_MAX_PAGES
from repo_health.http_client import create_async_http_client

# Load environment variables
load_dotenv()

# GitHub API endpoint
GITHUB_REST_API = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

PER_PAGE = 100


class StatisticsPendingError(RuntimeError):
    """GitHub accepted a statistics request but has not computed it yet (202)."""


def _format_date(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GitHubClient:
    """Async GitHub REST API client."""

    def __init__(
        self,
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        api_url: str = GITHUB_REST_API,
        max_pages: int = DEFAULT_MAX_PAGES,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: GitHub Personal Access Token. If not provided, reads from
                   GITHUB_TOKEN environment variable.
            http_client: Client to send requests with. When omitted, one is
                   created and closed by this instance.
            api_url: Base URL of the REST API.
            max_pages: Maximum number of pages read from paginated endpoints.

        Raises:
            ValueError: If token is not provided and GITHUB_TOKEN env var is not set
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GITHUB_TOKEN is required for GitHub access.\n"
                "\n"
                "To get started:\n"
                "1. Create a GitHub Personal Access Token (classic):\n"
                "   -> https://github.com/settings/tokens/new\n"
                "2. Select scopes: 'public_repo' and 'security_events'\n"
                "3. Set the token:\n"
                "   export GITHUB_TOKEN='your_token_here'  # Linux/macOS\n"
                "   or add to your .env file: GITHUB_TOKEN=your_token_here\n"
            )
        self.api_url = api_url.rstrip("/")
        self.max_pages = max_pages
        self._owns_client = http_client is None
        self._client = http_client or create_async_http_client()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_repository_url(self, owner: str, repo: str) -> str:
        """Construct GitHub repository URL."""
        return f"https://github.com/{owner}/{repo}"

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": accept,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        accept: str = "application/vnd.github+json",
    ) -> httpx.Response:
        """
        Send a GET request to the REST API.

        Raises:
            httpx.HTTPStatusError: If the API responds with an error status
        """
        url = path if path.startswith("http") else f"{self.api_url}{path}"
        response = await self._client.get(
            url, params=params, headers=self._headers(accept)
        )
        response.raise_for_status()
        return response

    async def _get_paginated(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Collect records across pages by following the Link header.

        Args:
            path: API path of the first page.
            params: Query parameters of the first page.
            items_key: Key holding the records when the page body is an object
                       (e.g. "items" for the Search API).

        Returns:
            Records from at most ``max_pages`` pages.
        """
        records: list[dict[str, Any]] = []
        url: str | None = path
        page_params: dict[str, Any] | None = {"per_page": PER_PAGE, **(params or {})}

        for _ in range(self.max_pages):
            if url is None:
                break
            response = await self._get(url, params=page_params)
            body = response.json()
            batch = body.get(items_key, []) if items_key else body
            if not isinstance(batch, list):
                break
            records.extend(batch)

            # The next link already carries every query parameter
            url = response.links.get("next", {}).get("url")
            page_params = None

        return records

    async def get_commit_activity(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """
        Fetch weekly commit activity for the past year.

        GitHub returns one object per week:
            { week: <unix_timestamp>, total: <commits>, days: [<commits_per_day>] }

        Raises:
            StatisticsPendingError: If GitHub is still computing the statistics
            httpx.HTTPStatusError: If GitHub API returns an error
        """
        response = await self._get(f"/repos/{owner}/{repo}/stats/commit_activity")
        if response.status_code == 202:
            raise StatisticsPendingError(
                f"Commit statistics for {owner}/{repo} are still being computed."
            )
        data = response.json()
        return data if isinstance(data, list) else []

    async def search_recent_issues(
        self, owner: str, repo: str, since: datetime
    ) -> list[dict[str, Any]]:
        """Issues (excluding PRs) created since the given moment."""
        query = f"repo:{owner}/{repo} type:issue created:>={_format_date(since)}"
        items = await self._get_paginated(
            "/search/issues", params={"q": query}, items_key="items"
        )
        return [
            {"created_at": item.get("created_at"), "closed_at": item.get("closed_at")}
            for item in items
        ]

    async def search_recent_pull_requests(
        self, owner: str, repo: str, since: datetime
    ) -> list[dict[str, Any]]:
        """Pull requests created since the given moment."""
        query = f"repo:{owner}/{repo} type:pr created:>={_format_date(since)}"
        items = await self._get_paginated(
            "/search/issues", params={"q": query}, items_key="items"
        )
        return [
            {
                "created_at": item.get("created_at"),
                "merged_at": (item.get("pull_request") or {}).get("merged_at"),
                "closed_at": item.get("closed_at"),
            }
            for item in items
        ]

    async def list_contributors(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """Contributors ordered by contribution count, as ranked by GitHub."""
        contributors = await self._get_paginated(f"/repos/{owner}/{repo}/contributors")
        return [
            {"login": c.get("login"), "contributions": c.get("contributions", 0)}
            for c in contributors
        ]

    async def list_commits(
        self, owner: str, repo: str, since: datetime, until: datetime
    ) -> list[dict[str, Any]]:
        """Commits on the default branch authored within [since, until)."""
        commits = await self._get_paginated(
            f"/repos/{owner}/{repo}/commits",
            params={"since": _format_timestamp(since), "until": _format_timestamp(until)},
        )
        records = []
        for commit in commits:
            author = commit.get("author")
            records.append(
                {
                    "sha": commit.get("sha"),
                    "author": {"login": author.get("login")}
                    if isinstance(author, dict)
                    else None,
                }
            )
        return records

    async def get_root_contents(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """Entries at the repository root."""
        response = await self._get(f"/repos/{owner}/{repo}/contents/")
        data = response.json()
        if not isinstance(data, list):
            return []
        return [{"name": entry.get("name"), "type": entry.get("type")} for entry in data]

    async def get_readme(self, owner: str, repo: str) -> str:
        """Raw README text, or an empty string if the repository has none."""
        try:
            response = await self._get(
                f"/repos/{owner}/{repo}/readme",
                accept="application/vnd.github.raw+json",
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return ""
            raise
        return response.text

    async def list_dependabot_alerts(
        self, owner: str, repo: str
    ) -> list[dict[str, Any]]:
        """
        Open Dependabot alerts.

        Requires the 'security_events' scope; GitHub answers 403 when the token
        lacks it or alerts are disabled for the repository.
        """
        alerts = await self._get_paginated(
            f"/repos/{owner}/{repo}/dependabot/alerts", params={"state": "open"}
        )
        return [{"state": alert.get("state")} for alert in alerts]
