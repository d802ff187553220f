"""Tests for the GitHub REST client."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from repo_health.vcs.github import GitHubClient, StatisticsPendingError

SINCE = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _client(handler, max_pages: int = 10) -> GitHubClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubClient(token="test_token", http_client=http_client, max_pages=max_pages)


def _run(coro):
    return asyncio.run(coro)


def test_github_client_requires_token():
    """Test that GitHubClient requires a token."""
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ValueError, match="GITHUB_TOKEN is required"):
            GitHubClient()


def test_github_client_reads_token_from_env():
    """Test that GitHubClient reads token from environment."""
    with patch.dict("os.environ", {"GITHUB_TOKEN": "env_token"}):
        client = GitHubClient(http_client=httpx.AsyncClient())
        assert client.token == "env_token"


def test_get_repository_url():
    client = GitHubClient(token="t", http_client=httpx.AsyncClient())
    assert client.get_repository_url("owner", "repo") == "https://github.com/owner/repo"


def test_requests_are_authenticated():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["version"] = request.headers["X-GitHub-Api-Version"]
        return httpx.Response(200, json=[])

    _run(_client(handler).get_root_contents("o", "r"))
    assert seen == {"auth": "Bearer test_token", "version": "2022-11-28"}


def test_get_commit_activity():
    weeks = [{"week": 1700000000, "total": 5, "days": [1, 1, 1, 1, 1, 0, 0]}]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/o/r/stats/commit_activity"
        return httpx.Response(200, json=weeks)

    assert _run(_client(handler).get_commit_activity("o", "r")) == weeks


def test_get_commit_activity_pending():
    """Test that a 202 response is reported as pending statistics."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202, json={})

    with pytest.raises(StatisticsPendingError):
        _run(_client(handler).get_commit_activity("o", "r"))


def test_http_errors_propagate():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "Server Error"})

    with pytest.raises(httpx.HTTPStatusError):
        _run(_client(handler).list_contributors("o", "r"))


def test_search_recent_issues():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/search/issues"
        assert request.url.params["q"] == "repo:o/r type:issue created:>=2024-01-15"
        return httpx.Response(
            200,
            json={
                "total_count": 2,
                "items": [
                    {
                        "number": 1,
                        "created_at": "2024-02-01T00:00:00Z",
                        "closed_at": "2024-02-02T00:00:00Z",
                    },
                    {"number": 2, "created_at": "2024-02-03T00:00:00Z", "closed_at": None},
                ],
            },
        )

    issues = _run(_client(handler).search_recent_issues("o", "r", SINCE))
    assert issues == [
        {"created_at": "2024-02-01T00:00:00Z", "closed_at": "2024-02-02T00:00:00Z"},
        {"created_at": "2024-02-03T00:00:00Z", "closed_at": None},
    ]


def test_search_recent_pull_requests():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "repo:o/r type:pr created:>=2024-01-15"
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "created_at": "2024-02-01T00:00:00Z",
                        "closed_at": "2024-02-01T05:00:00Z",
                        "pull_request": {"merged_at": "2024-02-01T05:00:00Z"},
                    },
                    {
                        "created_at": "2024-02-02T00:00:00Z",
                        "closed_at": None,
                        "pull_request": {"merged_at": None},
                    },
                ]
            },
        )

    prs = _run(_client(handler).search_recent_pull_requests("o", "r", SINCE))
    assert prs == [
        {
            "created_at": "2024-02-01T00:00:00Z",
            "merged_at": "2024-02-01T05:00:00Z",
            "closed_at": "2024-02-01T05:00:00Z",
        },
        {"created_at": "2024-02-02T00:00:00Z", "merged_at": None, "closed_at": None},
    ]


def test_list_contributors_follows_pagination():
    """Test that the Link header drives pagination."""
    pages = {
        "1": (
            [{"login": "a", "contributions": 50, "id": 1}],
            '<https://api.github.com/repos/o/r/contributors?per_page=100&page=2>; rel="next"',
        ),
        "2": ([{"login": "b", "contributions": 7, "id": 2}], None),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        body, link = pages[request.url.params.get("page", "1")]
        headers = {"Link": link} if link else {}
        return httpx.Response(200, json=body, headers=headers)

    contributors = _run(_client(handler).list_contributors("o", "r"))
    assert contributors == [
        {"login": "a", "contributions": 50},
        {"login": "b", "contributions": 7},
    ]


def test_pagination_stops_at_max_pages():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        page = int(request.url.params.get("page", "1"))
        link = f'<https://api.github.com/repos/o/r/contributors?page={page + 1}>; rel="next"'
        return httpx.Response(
            200, json=[{"login": f"u{page}", "contributions": 1}], headers={"Link": link}
        )

    contributors = _run(_client(handler, max_pages=3).list_contributors("o", "r"))
    assert len(calls) == 3
    assert len(contributors) == 3


def test_list_commits():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["since"] == "2024-01-15T12:00:00Z"
        assert request.url.params["until"] == "2024-06-01T00:00:00Z"
        return httpx.Response(
            200,
            json=[
                {"sha": "abc", "author": {"login": "alice", "id": 1}},
                {"sha": "def", "author": None},
            ],
        )

    until = datetime(2024, 6, 1, tzinfo=timezone.utc)
    commits = _run(_client(handler).list_commits("o", "r", since=SINCE, until=until))
    assert commits == [
        {"sha": "abc", "author": {"login": "alice"}},
        {"sha": "def", "author": None},
    ]


def test_get_root_contents():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/o/r/contents/"
        return httpx.Response(
            200,
            json=[
                {"name": "tests", "type": "dir", "size": 0},
                {"name": "README.md", "type": "file", "size": 120},
            ],
        )

    entries = _run(_client(handler).get_root_contents("o", "r"))
    assert entries == [
        {"name": "tests", "type": "dir"},
        {"name": "README.md", "type": "file"},
    ]


def test_get_readme_raw_text():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Accept"] == "application/vnd.github.raw+json"
        return httpx.Response(200, text="# Title\n![ci](https://img.shields.io/badge/x.svg)")

    readme = _run(_client(handler).get_readme("o", "r"))
    assert readme.startswith("# Title")


def test_get_readme_missing():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    assert _run(_client(handler).get_readme("o", "r")) == ""


def test_list_dependabot_alerts():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/o/r/dependabot/alerts"
        assert request.url.params["state"] == "open"
        return httpx.Response(200, json=[{"number": 3, "state": "open"}])

    assert _run(_client(handler).list_dependabot_alerts("o", "r")) == [{"state": "open"}]


def test_list_dependabot_alerts_forbidden():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Resource not accessible"})

    with pytest.raises(httpx.HTTPStatusError):
        _run(_client(handler).list_dependabot_alerts("o", "r"))
