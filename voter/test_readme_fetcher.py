import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from readme_fetcher import ReadmeFetcher, clean_readme, parse_repository_url


def test_parse_plain_repo_url():
    assert parse_repository_url("https://github.com/hackclub/summer.git") == {
        "owner": "hackclub", "repo": "summer", "branch": "main",
    }


def test_parse_tree_and_blob_urls():
    assert parse_repository_url("https://github.com/a/b/tree/dev")["branch"] == "dev"
    parsed = parse_repository_url("https://github.com/a/b/blob/release/README.md")
    assert (parsed["repo"], parsed["branch"]) == ("b", "release")


def test_parse_rejects_other_hosts():
    assert parse_repository_url("https://gitlab.com/a/b") is None
    assert parse_repository_url("") is None


def test_clean_readme():
    raw = "# Title\n\n\n\n<img src='x.png'>See [docs](https://d.io)\n##### Deep"
    assert clean_readme(raw) == "# Title\n\nSee docs (https://d.io)\n### Deep"
    assert clean_readme("") == ""


def test_fetch_prefers_api():
    fetcher = ReadmeFetcher(token=None)
    with patch.object(ReadmeFetcher, "_fetch_via_api", AsyncMock(return_value="from api")), \
         patch.object(ReadmeFetcher, "_fetch_via_raw", AsyncMock(return_value="from raw")) as raw:
        assert asyncio.run(fetcher.fetch("https://github.com/a/b")) == "from api"
        raw.assert_not_called()


def test_fetch_falls_back_through_branches():
    fetcher = ReadmeFetcher(token=None)
    seen = []

    async def raw(session, repo, branch):
        seen.append(branch)
        return "from develop" if branch == "develop" else None

    with patch.object(ReadmeFetcher, "_fetch_via_api", AsyncMock(return_value=None)), \
         patch.object(ReadmeFetcher, "_fetch_via_raw", side_effect=raw):
        assert asyncio.run(fetcher.fetch("https://github.com/a/b/tree/feature")) == "from develop"
    assert seen == ["main", "master", "feature", "develop"]


def test_fetch_not_found_returns_none():
    fetcher = ReadmeFetcher(token=None)
    with patch.object(ReadmeFetcher, "_fetch_via_api", AsyncMock(return_value=None)), \
         patch.object(ReadmeFetcher, "_fetch_via_raw", AsyncMock(return_value=None)):
        assert asyncio.run(fetcher.fetch("https://github.com/a/b")) is None


def test_fetch_non_github_url():
    assert asyncio.run(ReadmeFetcher(token=None).fetch("https://example.com/x")) is None


def test_token_sets_auth_header():
    assert ReadmeFetcher(token="abc").headers["Authorization"] == "Bearer abc"
    assert "Authorization" not in ReadmeFetcher(token=None).headers
