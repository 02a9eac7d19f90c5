import base64
import re
from typing import Optional

import aiohttp

from config import GITHUB_TOKEN

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"
README_FILES = ["README.md", "readme.md", "README.MD", "README.txt", "README.rst", "README"]

REPO_PATTERNS = [
    re.compile(r"github\.com/([^/]+)/([^/]+)/(?:tree|blob)/([^/?#]+)"),
    re.compile(r"github\.com/([^/]+)/([^/?#]+)"),
]


def parse_repository_url(url: str) -> Optional[dict]:
    """Extract owner, repo and branch from a GitHub URL. Returns None if it isn't one."""
    for pattern in REPO_PATTERNS:
        match = pattern.search(url or "")
        if match:
            groups = match.groups()
            return {
                "owner": groups[0],
                "repo": re.sub(r"\.git$", "", groups[1]),
                "branch": groups[2] if len(groups) > 2 else "main",
            }
    return None


def clean_readme(content: str) -> str:
    """Tidy README markdown for the prompt."""
    if not content:
        return ""
    cleaned = re.sub(r"\n{3,}", "\n\n", content)
    cleaned = re.sub(r"<[^>]*>", "", cleaned)
    cleaned = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r"\1 (\2)", cleaned)
    cleaned = re.sub(r"#{4,}", "###", cleaned)
    return cleaned.strip()


class ReadmeFetcher:
    def __init__(self, timeout: int = 10, token: str | None = GITHUB_TOKEN):
        self.timeout = timeout
        self.headers = {
            "User-Agent": "HackClub-Voting-App/1.0.0",
            "Accept": "application/vnd.github.v3+json",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def fetch(self, repository_url: str) -> Optional[str]:
        """Fetch README text for a repository, or None if nothing could be loaded."""
        repo = parse_repository_url(repository_url)
        if not repo:
            print(f"[readme] not a GitHub repository: {repository_url}", flush=True)
            return None

        timeout_obj = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout_obj, headers=self.headers) as session:
                readme = await self._fetch_via_api(session, repo)
                if readme:
                    return clean_readme(readme)
                for branch in dict.fromkeys(["main", "master", repo["branch"], "develop"]):
                    readme = await self._fetch_via_raw(session, repo, branch)
                    if readme:
                        return clean_readme(readme)
        except Exception as e:
            print(f"[readme] fetch failed for {repo['owner']}/{repo['repo']}: {e}", flush=True)
            return None

        print(f"[readme] no README found for {repo['owner']}/{repo['repo']}", flush=True)
        return None

    async def _fetch_via_api(self, session: aiohttp.ClientSession, repo: dict) -> Optional[str]:
        url = f"{API_BASE}/repos/{repo['owner']}/{repo['repo']}/readme"
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    return None
                data = await resp.json()
        except Exception:
            return None
        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            return None
        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def _fetch_via_raw(self, session: aiohttp.ClientSession, repo: dict, branch: str) -> Optional[str]:
        for filename in README_FILES:
            url = f"{RAW_BASE}/{repo['owner']}/{repo['repo']}/{branch}/{filename}"
            try:
                async with session.get(url) as resp:
                    if resp.status == 200:
                        return await resp.text()
            except Exception:
                continue
        return None
