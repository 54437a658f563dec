"""Sourceforge strategy: file entries of a project's RSS feed."""

from __future__ import annotations

import re
from typing import Optional

from constants import Constants
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex

_PATTERNS = (
    re.compile(r"^https?://(?:www\.|downloads\.)?sourceforge\.net/projects?/(?P<project>[^/?#]+)", re.IGNORECASE),
    re.compile(r"^https?://(?P<project>[a-z0-9-]+)\.sourceforge\.(?:net|io)(?:[/?#]|$)", re.IGNORECASE),
)
_NON_PROJECT_HOSTS = {"www", "downloads", "master", "svn", "git"}


def project_name(url: str) -> Optional[str]:
    for pattern in _PATTERNS:
        m = pattern.match(url or "")
        if m and m.group("project").lower() not in _NON_PROJECT_HOSTS:
            return m.group("project")
    return None


class Sourceforge(Strategy):
    NAME = "Sourceforge"
    SYMBOL = "sourceforge"

    def applies_to(self, url: str) -> bool:
        return project_name(url) is not None

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        project = project_name(url)
        page_url = f"{Constants.SOURCEFORGE_BASE}{project}/rss"
        compiled = compile_regex(regex) or re.compile(
            rf"url=.*?/{re.escape(project)}/files/.*?[-_/](\d+(?:[-.]\d+)+)[-_/%.]",
            re.IGNORECASE,
        )
        return self.find_versions_on_page(page_url, compiled, timeout=timeout, fetch=fetch)
