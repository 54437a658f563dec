"""Pypi strategy: the PyPI JSON API of a project."""

from __future__ import annotations

import re
from typing import Optional

from packaging.utils import canonicalize_name

from constants import Constants
from common.http_client import parse_json
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex, match_tag, regex_source, versions_from

_PATTERNS = (
    re.compile(
        r"^https?://files\.pythonhosted\.org/packages/.+/(?P<name>[^/]+?)-\d[^/]*"
        r"\.(?:tar\.gz|tar\.bz2|tar\.xz|tgz|zip|whl)$",
        re.IGNORECASE,
    ),
    re.compile(r"^https?://pypi\.(?:org|python\.org)/(?:project|pypi|simple)/(?P<name>[^/?#]+)", re.IGNORECASE),
    re.compile(r"^https?://pypi\.python\.org/packages/source/[^/]/(?P<name>[^/?#]+)/", re.IGNORECASE),
)


def project_name(url: str) -> Optional[str]:
    for pattern in _PATTERNS:
        m = pattern.match(url or "")
        if m:
            return canonicalize_name(m.group("name"))
    return None


class Pypi(Strategy):
    """Without a regex ``info.version`` is reported; with one, every release key
    is matched against it."""

    NAME = "Pypi"
    SYMBOL = "pypi"

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
        compiled = compile_regex(regex)
        api_url = f"{Constants.REGISTRY_URL_PYPI}{project_name(url)}/json"
        headers = {"Accept": "application/json"}

        data, error = parse_json(self._fetch(api_url, timeout, fetch, headers=headers))
        if error:
            return ExtractionResult.failure(error, url=api_url, regex=regex_source(compiled))
        info = data.get("info") if isinstance(data, dict) else None
        if not isinstance(info, dict):
            return ExtractionResult.failure("PyPI response had no project info", url=api_url,
                                            regex=regex_source(compiled))

        values = {}
        if compiled is None:
            latest = info.get("version")
            if latest:
                values[str(latest)] = str(latest)
        else:
            for release in (data.get("releases") or {}):
                version = match_tag(str(release), compiled)
                if version:
                    values[str(release)] = version
        return ExtractionResult(matches=versions_from(values), url=api_url, regex=regex_source(compiled))
