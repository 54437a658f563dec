"""Generic strategy: apply the package's regex to the page at the URL."""

from __future__ import annotations

import re
from typing import Optional

from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


class PageMatch(Strategy):
    """Fetches the page as-is and extracts versions with the supplied regex.

    Applies to every http(s) URL, which is why it always ranks last and is
    only offered when a regex is available.
    """

    NAME = "PageMatch"
    SYMBOL = "page_match"
    REQUIRES_REGEX = True
    RAW_URL = True

    def applies_to(self, url: str) -> bool:
        return bool(_HTTP_URL.match(url or ""))

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        compiled = compile_regex(regex)
        if compiled is None:
            return ExtractionResult.failure(f"{self.NAME} strategy requires a regex", url=url)
        return self.find_versions_on_page(url, compiled, timeout=timeout, fetch=fetch)
