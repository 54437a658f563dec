"""GithubLatest strategy: the tag of a repository's latest GitHub release."""

from __future__ import annotations

import os
import re
from typing import Dict, Optional, Tuple

from constants import Constants
from common.http_client import parse_json
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex, match_tag, regex_source, versions_from

_GITHUB_REPO = re.compile(r"^https?://(?:www\.)?github\.com/(?P<owner>[^/]+)/(?P<repo>[^/#?]+)", re.IGNORECASE)


def parse_repo(url: str) -> Optional[Tuple[str, str]]:
    m = _GITHUB_REPO.match(url or "")
    if not m:
        return None
    repo = m.group("repo")
    if repo.endswith(".git"):
        repo = repo[:-4]
    return m.group("owner"), repo


class GithubLatest(Strategy):
    """Uses the releases API, so drafts and pre-releases are excluded upstream."""

    NAME = "GithubLatest"
    SYMBOL = "github_latest"

    def applies_to(self, url: str) -> bool:
        return parse_repo(url) is not None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        token = os.environ.get(Constants.ENV_GITHUB_TOKEN)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        compiled = compile_regex(regex)
        owner, repo = parse_repo(url) or ("", "")
        api_url = f"{Constants.GITHUB_API_BASE}/repos/{owner}/{repo}/releases/latest"

        result = self._fetch(api_url, timeout, fetch, headers=self._headers())
        data, error = parse_json(result)
        if error:
            return ExtractionResult.failure(error, url=api_url, regex=regex_source(compiled))

        tag = data.get("tag_name") if isinstance(data, dict) else None
        values = {}
        if tag:
            version = match_tag(tag, compiled)
            if version:
                values[tag] = version
        return ExtractionResult(matches=versions_from(values), url=api_url, regex=regex_source(compiled))
