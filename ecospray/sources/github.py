"""Fetch text content files from a public GitHub repository."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ..config import CrawlConfig
from ..errors import InputValidationError, UpstreamError, UpstreamTimeoutError, upstream_status
from ..logging import get_logger
from ..models import NormalizedFile
from .archive import is_text_path

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"
MAX_FILE_BYTES = 100_000
MAX_FILES = 20

_REPO_PATTERN = re.compile(r"github\.com[/:]([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)")


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str


def parse_github_url(url: str) -> RepoRef:
    """Resolve ``https://github.com/<owner>/<repo>`` style URLs."""
    match = _REPO_PATTERN.search(url or "")
    if not match:
        raise InputValidationError("Not a valid GitHub URL")
    repo = match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return RepoRef(owner=match.group(1), repo=repo)


class GitHubFetcher:
    """Lists a repository tree and downloads qualifying text files."""

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or CrawlConfig()
        self.session = session or requests.Session()
        self.logger = get_logger("github")

    def fetch(self, url: str) -> List[NormalizedFile]:
        ref = parse_github_url(url)
        self.logger.info("Fetching repository %s/%s", ref.owner, ref.repo)

        repo_data = self._api_json(
            f"{API_BASE}/repos/{ref.owner}/{ref.repo}",
            failure="Could not access repo. Make sure it's public.",
        )
        branch = str(repo_data.get("default_branch") or "main")
        tree_data = self._api_json(
            f"{API_BASE}/repos/{ref.owner}/{ref.repo}/git/trees/{branch}",
            failure="Could not fetch repo file tree",
            params={"recursive": "1"},
        )

        candidates = [
            entry["path"]
            for entry in tree_data.get("tree") or []
            if isinstance(entry, dict) and _qualifies(entry)
        ]
        self.logger.debug("%d candidate files in %s/%s", len(candidates), ref.owner, ref.repo)

        files: List[NormalizedFile] = []
        for path in candidates[:MAX_FILES]:
            content = self._raw_file(ref, branch, path)
            if content is not None:
                files.append(NormalizedFile(path=path, content=content))
        return files

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.config.user_agent,
        }
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _api_json(
        self,
        url: str,
        *,
        failure: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(f"Timed out contacting GitHub: {url}") from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"{failure} ({exc})") from exc
        if not response.ok:
            raise UpstreamError(failure, status_code=upstream_status(response.status_code))
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"{failure} (invalid JSON from GitHub)") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"{failure} (unexpected response shape)")
        return payload

    def _raw_file(self, ref: RepoRef, branch: str, path: str) -> Optional[str]:
        url = f"{RAW_BASE}/{ref.owner}/{ref.repo}/{branch}/{path}"
        try:
            response = self.session.get(url, timeout=self.config.request_timeout)
        except requests.RequestException as exc:
            self.logger.warning("Skipping %s: %s", path, exc)
            return None
        if not response.ok:
            self.logger.debug("Skipping %s (HTTP %s)", path, response.status_code)
            return None
        return response.text


def _qualifies(entry: Dict[str, Any]) -> bool:
    path = entry.get("path")
    if entry.get("type") != "blob" or not isinstance(path, str):
        return False
    size = entry.get("size") or 0
    if not isinstance(size, int) or size >= MAX_FILE_BYTES:
        return False
    return is_text_path(path) and "package-lock" not in path


__all__ = ["GitHubFetcher", "RepoRef", "parse_github_url"]
