"""Candidate URL list construction and URL preprocessing.

``preprocess_url`` rewrites download-style URLs on GitHub and GitLab into
the repository's ``.git`` URL, so the Git strategy can read its tags
instead of scraping a release page. It performs no I/O and is idempotent.
"""
from __future__ import annotations

import posixpath
import re
from typing import List, Optional

from constants import GITHUB_SPECIAL_CASES
from versioning.models import Package

GIST_HOST = "gist.github.com"

_GITHUB_REPO = re.compile(r"(?:[a-z]+://)?github\.com/[^/]+/[^/#?]+")
_ARCHIVE = re.compile(r"/archive/.*")
_RELEASES = re.compile(r"/releases(?:/.*)?$")
_DOWNLOADS = re.compile(r"/downloads(.*)")
_GITLAB_ARCHIVE = re.compile(r"/-/archive/.*$", re.IGNORECASE)

URL_SYMBOLS = ("homepage", "stable", "head")


def is_gist(url: Optional[str]) -> bool:
    return bool(url) and GIST_HOST in url


def preprocess_url(url: str) -> str:
    """Return the canonical form of ``url`` for version discovery."""
    if "github" in url:
        url = url.replace("github.s3.amazonaws.com", "github.com")

    if "github.com" in url and not any(case in url for case in GITHUB_SPECIAL_CASES):
        if url.endswith(".git"):
            return url
        if "/archive/" in url:
            url = _ARCHIVE.sub(".git", url, count=1)
        elif url.endswith("/releases.atom"):
            url = url[: -len("/releases.atom")] + ".git"
        elif "/releases/" in url or url.endswith("/releases"):
            url = _RELEASES.sub(".git", url, count=1)
        elif "/downloads/" in url:
            url = posixpath.dirname(_DOWNLOADS.sub(r"\1", url, count=1)) + ".git"
        else:
            # Truncate the URL at the owner/repo part, if possible
            m = _GITHUB_REPO.search(url)
            if m:
                url = m.group(0)
            url = url.rstrip("/")
            if not url.endswith(".git"):
                url += ".git"
    elif "/-/archive/" in url:
        url = _GITLAB_ARCHIVE.sub(".git", url, count=1)

    return url


def checkable_urls(package: Package) -> List[str]:
    """Return the package's own URLs in check order: head, stable, mirrors, homepage.

    Duplicates and GitHub Gists are dropped.
    """
    ordered = [package.head_url, package.stable_url, *package.mirrors, package.homepage]
    urls: List[str] = []
    for url in ordered:
        if not url or is_gist(url) or url in urls:
            continue
        urls.append(url)
    return urls


def resolve_url_symbol(package: Package, value: str) -> Optional[str]:
    """Map an explicit check URL of ``homepage``/``stable``/``head`` to the real URL."""
    symbol = value.strip().lower()
    if symbol == "homepage":
        return package.homepage
    if symbol == "stable":
        return package.stable_url
    if symbol == "head":
        return package.head_url
    return value


def candidate_urls(package: Package) -> List[str]:
    """Explicit check URL exclusively when configured, else ``checkable_urls``."""
    explicit = package.check.url if package.check is not None else None
    if explicit:
        resolved = resolve_url_symbol(package, explicit)
        return [resolved] if resolved and not is_gist(resolved) else []
    return checkable_urls(package)
