"""Gnu strategy: the GNU FTP directory listing of a project."""

from __future__ import annotations

import re
from typing import Optional

from constants import Constants
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex

_PATTERNS = (
    re.compile(r"^https?://(?:ftp|ftpmirror)\.gnu\.org/(?:gnu/)?(?P<project>[^/?#]+)", re.IGNORECASE),
    re.compile(r"^https?://(?:www\.)?gnu\.org/software/(?P<project>[^/?#]+)", re.IGNORECASE),
    re.compile(r"^https?://(?P<project>[a-z0-9-]+)\.gnu\.org(?:[/?#]|$)", re.IGNORECASE),
)
# Subdomains of gnu.org that are not project sites.
_NON_PROJECT_HOSTS = {"www", "ftp", "ftpmirror", "savannah", "git", "lists", "alpha"}


def project_name(url: str) -> Optional[str]:
    for pattern in _PATTERNS:
        m = pattern.match(url or "")
        if m:
            project = m.group("project")
            if project.lower() in _NON_PROJECT_HOSTS:
                continue
            return project
    return None


class Gnu(Strategy):
    """Lists tarballs in ``ftp.gnu.org/gnu/<project>/``."""

    NAME = "Gnu"
    SYMBOL = "gnu"

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
        page_url = f"{Constants.GNU_FTP_BASE}{project}/?C=M&O=D"
        compiled = compile_regex(regex) or re.compile(
            rf"href=.*?{re.escape(project)}[._-]v?(\d+(?:\.\d+)*)(?:\.[a-z]+|/)",
            re.IGNORECASE,
        )
        return self.find_versions_on_page(page_url, compiled, timeout=timeout, fetch=fetch)
