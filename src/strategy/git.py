"""Git strategy: read tags from a repository's ref advertisement.

Uses the smart-HTTP discovery endpoint
(``<repo>/info/refs?service=git-upload-pack``), so no local git binary or
clone is needed. The same advertisement also yields the HEAD commit used
for HEAD tracking.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

from common.logging_utils import safe_url
from versioning.models import ExtractionResult
from .base import Fetcher, RegexLike, Strategy, compile_regex, match_tag, regex_source, versions_from

logger = logging.getLogger(__name__)

_REF_LINE = re.compile(r"^([0-9a-f]{40}|[0-9a-f]{64}) ([^\x00\s]+)")
_TAG_PREFIX = "refs/tags/"
_PEELED_SUFFIX = "^{}"


def refs_url(url: str) -> str:
    """Return the smart-HTTP ref discovery URL for a repository URL."""
    base = url.rstrip("/")
    if base.startswith("git://"):
        base = "https://" + base[len("git://"):]
    return f"{base}/info/refs?service=git-upload-pack"


def parse_ref_advertisement(body: str) -> Dict[str, str]:
    """Parse a pkt-line ref advertisement into {ref name: sha}.

    Flush packets (``0000``) may be glued to the following line; the service
    announcement and capability lists are ignored.
    """
    refs: Dict[str, str] = {}
    for line in body.split("\n"):
        while line.startswith("0000"):
            line = line[4:]
        if len(line) <= 4:
            continue
        payload = line[4:]
        if payload.startswith("#"):
            continue
        m = _REF_LINE.match(payload)
        if m:
            refs.setdefault(m.group(2), m.group(1))
    return refs


def tag_names(refs: Dict[str, str]) -> list:
    tags = set()
    for ref in refs:
        if not ref.startswith(_TAG_PREFIX):
            continue
        name = ref[len(_TAG_PREFIX):]
        if name.endswith(_PEELED_SUFFIX):
            name = name[:-len(_PEELED_SUFFIX)]
        if name:
            tags.add(name)
    return sorted(tags)


class Git(Strategy):
    """Extracts versions from the tag list of a Git repository."""

    NAME = "Git"
    SYMBOL = "git"

    def applies_to(self, url: str) -> bool:
        if not url:
            return False
        parts = urlsplit(url)
        if parts.scheme == "git":
            return True
        return parts.scheme in ("http", "https") and parts.path.rstrip("/").endswith(".git")

    def _advertisement(
        self, url: str, timeout: Optional[float], fetch: Optional[Fetcher]
    ) -> Tuple[Optional[Dict[str, str]], Optional[str]]:
        result = self._fetch(refs_url(url), timeout, fetch)
        if not result.ok:
            logger.debug("Git ref discovery failed for %s: %s", safe_url(url), result.error)
            return None, result.error
        refs = parse_ref_advertisement(result.text)
        if not refs:
            return None, "Repository did not advertise any refs"
        return refs, None

    def find_versions(
        self,
        url: str,
        regex: RegexLike = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> ExtractionResult:
        compiled = compile_regex(regex)
        refs, error = self._advertisement(url, timeout, fetch)
        if refs is None:
            return ExtractionResult.failure(error or "Unable to list tags", url=url, regex=regex_source(compiled))

        values = {}
        for tag in tag_names(refs):
            version = match_tag(tag, compiled)
            if version:
                values[tag] = version
        return ExtractionResult(matches=versions_from(values), url=url, regex=regex_source(compiled))

    def fetch_last_commit(
        self,
        url: str,
        branch: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        fetch: Optional[Fetcher] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Return (commit sha, error) for HEAD or for ``branch`` when given."""
        refs, error = self._advertisement(url, timeout, fetch)
        if refs is None:
            return None, error
        ref = f"refs/heads/{branch}" if branch else "HEAD"
        sha = refs.get(ref)
        if sha is None:
            return None, f"Ref {ref} not found"
        return sha, None
