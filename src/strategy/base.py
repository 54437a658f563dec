"""Base class and shared helpers for version-extraction strategies."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Pattern, Union

from common import http_client
from common.http_client import FetchResult
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.models import ConfigurationError, ExtractionResult
from versioning.version import Version

logger = logging.getLogger(__name__)

Fetcher = Callable[..., FetchResult]
RegexLike = Union[str, Pattern[str], None]

# Tag names are reduced to the part starting at the first digit, e.g. "v1.2" -> "1.2".
DEFAULT_TAG_REGEX = re.compile(r"^\D*(\d.*)$")


def compile_regex(regex: RegexLike, flags: int = 0) -> Optional[Pattern[str]]:
    """Compile a regex supplied as text; blank text means no regex."""
    if regex is None:
        return None
    if isinstance(regex, re.Pattern):
        return regex
    if not str(regex).strip():
        return None
    try:
        return re.compile(str(regex), flags)
    except re.error as exc:
        raise ConfigurationError(f"Invalid regex {regex!r}: {exc}") from exc


def regex_source(regex: Optional[Pattern[str]]) -> Optional[str]:
    return regex.pattern if regex is not None else None


def page_matches(content: str, regex: Pattern[str]) -> List[str]:
    """Return every match of ``regex`` in ``content``.

    When the regex has capture groups the first group is used, otherwise the
    whole match. Empty captures are dropped; order of first appearance is kept.
    """
    found: List[str] = []
    seen = set()
    for m in regex.finditer(content):
        value = m.group(1) if regex.groups else m.group(0)
        if not value:
            continue
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            found.append(value)
    return found


def match_tag(tag: str, regex: Optional[Pattern[str]]) -> Optional[str]:
    """Extract a version string from a single tag/name, or None if it does not match."""
    pattern = regex if regex is not None else DEFAULT_TAG_REGEX
    m = pattern.search(tag)
    if not m:
        return None
    value = m.group(1) if pattern.groups else m.group(0)
    return value.strip() if value else None


def versions_from(values: Dict[str, str]) -> Dict[str, Version]:
    """Turn a {matched text: version text} mapping into parsed Versions."""
    return {match: Version(text) for match, text in values.items() if text}


class Strategy:
    """A pluggable way to turn one kind of upstream source into versions.

    Subclasses set ``NAME``/``SYMBOL`` and implement ``applies_to`` and
    ``find_versions``. Strategies are stateless; one instance lives in the
    registry for the whole process.
    """

    NAME = ""
    SYMBOL = ""
    # Only selectable when a regex is supplied by the package configuration.
    REQUIRES_REGEX = False
    # When explicitly selected, the URL is used exactly as declared.
    RAW_URL = False

    def applies_to(self, url: str) -> bool:
        raise NotImplementedError

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<Strategy {self.NAME}>"

    @staticmethod
    def _fetch(url: str, timeout: Optional[float], fetch: Optional[Fetcher], **kwargs) -> FetchResult:
        fetcher = fetch or http_client.fetch
        return fetcher(url, timeout=timeout, **kwargs)

    def find_versions_on_page(
        self,
        page_url: str,
        regex: Pattern[str],
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        """Fetch ``page_url`` and collect every ``regex`` match as a version."""
        result = self._fetch(page_url, timeout, fetch)
        if not result.ok:
            logger.debug("%s could not fetch %s: %s", self.NAME, safe_url(page_url), result.error)
            return ExtractionResult.failure(result.error or "Unable to fetch page", url=page_url,
                                            regex=regex_source(regex))

        matches = page_matches(result.text, regex)
        if is_debug_enabled(logger):
            logger.debug(
                "Page matched",
                extra=extra_context(
                    event="parse",
                    component="strategy",
                    action=self.SYMBOL,
                    outcome="matched" if matches else "no_matches",
                    count=len(matches),
                    target=safe_url(page_url)
                )
            )
        return ExtractionResult(
            matches=versions_from({m: m for m in matches}),
            url=page_url,
            regex=regex_source(regex),
        )
