"""Npm strategy: dist-tags of a package in the npm registry."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote

from constants import Constants
from common.http_client import parse_json
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex, match_tag, regex_source, versions_from

_NAME = r"(?P<name>@[^/]+/[^/?#]+|[^/@?#][^/?#]*)"
_PATTERNS = (
    re.compile(rf"^https?://registry\.npmjs\.org/{_NAME}/-/", re.IGNORECASE),
    re.compile(rf"^https?://(?:www\.)?npmjs\.com/package/{_NAME}", re.IGNORECASE),
)


def package_name(url: str) -> Optional[str]:
    for pattern in _PATTERNS:
        m = pattern.match(url or "")
        if m:
            return m.group("name")
    return None


class Npm(Strategy):
    """Without a regex only the ``latest`` dist-tag is reported; with one, every
    dist-tag value is matched against it."""

    NAME = "Npm"
    SYMBOL = "npm"

    def applies_to(self, url: str) -> bool:
        return package_name(url) is not None

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        compiled = compile_regex(regex)
        name = package_name(url)
        api_url = f"{Constants.REGISTRY_URL_NPM}-/package/{quote(name, safe='@')}/dist-tags"

        data, error = parse_json(self._fetch(api_url, timeout, fetch))
        if error:
            return ExtractionResult.failure(error, url=api_url, regex=regex_source(compiled))
        if not isinstance(data, dict):
            return ExtractionResult.failure("Unexpected dist-tags payload", url=api_url, regex=regex_source(compiled))

        values = {}
        if compiled is None:
            latest = data.get("latest")
            if isinstance(latest, str) and latest:
                values[latest] = latest
        else:
            for tag_value in data.values():
                if not isinstance(tag_value, str):
                    continue
                version = match_tag(tag_value, compiled)
                if version:
                    values[tag_value] = version
        return ExtractionResult(matches=versions_from(values), url=api_url, regex=regex_source(compiled))
