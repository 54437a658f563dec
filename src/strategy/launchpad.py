"""Launchpad strategy: the "Latest version is" block of a project page."""

from __future__ import annotations

import re
from typing import Optional

from constants import Constants
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex

_LAUNCHPAD = re.compile(r"^https?://(?:[^/]+?\.)*launchpad\.net/(?P<project>[^/?#]+)", re.IGNORECASE)
_DEFAULT_REGEX = re.compile(r'<div class="version">\s*Latest version is\s*(.+?)\s*</div>', re.IGNORECASE)


class Launchpad(Strategy):
    NAME = "Launchpad"
    SYMBOL = "launchpad"

    def applies_to(self, url: str) -> bool:
        return bool(_LAUNCHPAD.match(url or ""))

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        project = _LAUNCHPAD.match(url).group("project")
        page_url = f"{Constants.LAUNCHPAD_BASE}{project}"
        compiled = compile_regex(regex) or _DEFAULT_REGEX
        return self.find_versions_on_page(page_url, compiled, timeout=timeout, fetch=fetch)
