"""Check orchestration for a single package.

``check`` evaluates skip conditions, works out the current version, walks
the candidate URLs through preprocessing and strategy selection, filters
unstable versions and compares the highest remaining version with the
current one. Strategy failures never escape; "no versions found" is a
normal error-status outcome. Only unexpected faults (bad configuration,
bugs) propagate to the caller.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from constants import Status, UNSTABLE_VERSION_KEYWORDS
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from strategy import StrategyRegistry, build_default_registry
from strategy.base import Fetcher, compile_regex
from strategy.git import Git
from versioning.models import CheckConfig, CheckOutcome, Package
from versioning.transforms import apply_transform
from versioning.version import AnyVersion, HeadVersion, Version
from .preprocess import candidate_urls, is_gist, preprocess_url

logger = logging.getLogger(__name__)

NO_VERSIONS_MSG = "Unable to get versions"
GIST_MSG = "Stable URL is a GitHub Gist"
HEAD_NOT_INSTALLED_MSG = "HEAD only package must be installed to be checked"
HEAD_NO_URL_MSG = "HEAD only package has no head URL"

_RELEASE_SUFFIX = re.compile(r"^(.*)-release$")

_default_registry: Optional[StrategyRegistry] = None
_default_registry_lock = threading.Lock()


def default_registry() -> StrategyRegistry:
    """Return the process-wide frozen registry of built-in strategies, built once."""
    global _default_registry  # pylint: disable=global-statement
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = build_default_registry()
    return _default_registry


@dataclass
class CheckOptions:
    """Per-run knobs shared by every package check."""
    timeout: Optional[float] = None
    fetch: Optional[Fetcher] = None
    registry: Optional[StrategyRegistry] = None
    full_name: bool = False

    def strategies(self) -> StrategyRegistry:
        return self.registry or default_registry()


def is_unstable(version: AnyVersion) -> bool:
    text = str(version).lower()
    return any(keyword in text for keyword in UNSTABLE_VERSION_KEYWORDS)


def _base_meta(package: Package) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"livecheckable": package.livecheckable}
    if package.head_only:
        meta["head_only"] = True
    return meta


def skip_conditions(package: Package, options: Optional[CheckOptions] = None) -> Optional[CheckOutcome]:
    """Return the short-circuit outcome for a package that must not be checked, else None."""
    options = options or CheckOptions()
    name = package.display_name(options.full_name)
    check = package.check

    if (check is not None and check.skip) or is_gist(package.stable_url):
        if check is not None and check.skip_msg:
            messages = [check.skip_msg]
        elif is_gist(package.stable_url):
            messages = [GIST_MSG]
        else:
            messages = []
        return CheckOutcome(package=name, status=Status.SKIPPED, messages=messages, meta=_base_meta(package))

    if package.deprecated and not package.livecheckable:
        return CheckOutcome(package=name, status=Status.DEPRECATED, meta=_base_meta(package))

    if package.versioned and not package.livecheckable:
        return CheckOutcome(package=name, status=Status.VERSIONED, meta=_base_meta(package))

    if package.head_only and not package.installed_head_commit:
        return CheckOutcome(package=name, status=Status.ERROR, messages=[HEAD_NOT_INSTALLED_MSG],
                            meta=_base_meta(package))

    return None


def current_version(package: Package) -> AnyVersion:
    """Determine the version to compare against upstream.

    HEAD-only packages always use the installed commit; a version override
    does not apply to them.
    """
    check = package.check
    if package.head_only:
        if check is not None and check.version:
            logger.debug("%s: ignoring version override for HEAD-only package", package.key)
        return HeadVersion(package.installed_head_commit)
    if check is not None and check.version:
        return Version(check.version)
    if check is not None and check.version_transform:
        return Version(apply_transform(package.version, check.version_transform))
    return Version(package.version)


def latest_version(
    package: Package, options: Optional[CheckOptions] = None
) -> Tuple[Optional[Version], Dict[str, Any], Optional[List[str]]]:
    """Find the newest upstream version of a stable package.

    Returns:
        Tuple of (latest_or_none, meta, error_messages_or_none). Error messages
        are only set when the last candidate URL failed with diagnostics.
    """
    options = options or CheckOptions()
    registry = options.strategies()
    check = package.check or CheckConfig()
    regex = compile_regex(check.regex)
    explicit = registry.from_name(check.strategy)

    meta = _base_meta(package)
    tried: List[str] = []
    meta["urls_tried"] = tried
    urls = candidate_urls(package)

    for i, original_url in enumerate(urls):
        is_last = i + 1 == len(urls)
        if is_gist(original_url):
            logger.debug("Skipping %s: GitHub Gists are not supported", safe_url(original_url))
            continue

        url = original_url if explicit is not None and explicit.RAW_URL else preprocess_url(original_url)
        strategies = registry.from_url(url, regex_provided=regex is not None)
        strategy = explicit or (strategies[0] if strategies else None)
        tried.append(url)

        if is_debug_enabled(logger):
            logger.debug(
                "Candidate URL",
                extra=extra_context(
                    event="decision",
                    component="orchestrator",
                    action="select_strategy",
                    package=package.key,
                    target=safe_url(url),
                    original=safe_url(original_url) if url != original_url else None,
                    strategies=[s.NAME for s in strategies],
                    strategy=strategy.NAME if strategy is not None else None
                )
            )

        if explicit is not None and explicit.REQUIRES_REGEX and regex is None:
            logger.debug("%s strategy requires a regex", explicit.NAME)
            continue
        if explicit is not None and explicit not in strategies:
            logger.debug("%s strategy does not apply to %s", explicit.NAME, safe_url(url))
            continue
        if strategy is None:
            continue

        data = strategy.find_versions(url, regex, timeout=options.timeout, fetch=options.fetch)

        if not data.matches and data.messages:
            for message in data.messages:
                logger.info("%s: %s", package.key, message)
            if not is_last:
                continue
            meta["strategy"] = strategy.NAME
            return None, meta, list(data.messages)

        matches = {
            match: version
            for match, version in data.matches.items()
            if not version.is_blank() and (check.allow_unstable or not is_unstable(version))
        }
        if is_debug_enabled(logger):
            logger.debug(
                "Matched versions",
                extra=extra_context(
                    event="parse",
                    component="orchestrator",
                    action="filter_versions",
                    package=package.key,
                    found=len(data.matches),
                    kept=len(matches)
                )
            )
        if not matches:
            continue

        url_meta = {"original": original_url}
        if url != original_url:
            url_meta["processed"] = url
        if data.url and data.url != url:
            url_meta["strategy"] = data.url
        meta["url"] = url_meta
        meta["strategy"] = strategy.NAME
        if strategies:
            meta["strategies"] = [s.NAME for s in strategies]
        if data.regex:
            meta["regex"] = data.regex
        return max(matches.values()), meta, None

    return None, meta, None


def _latest_head_commit(
    package: Package, options: CheckOptions
) -> Tuple[Optional[HeadVersion], Dict[str, Any], Optional[List[str]]]:
    meta = _base_meta(package)
    if not package.head_url:
        return None, meta, [HEAD_NO_URL_MSG]
    git = Git()
    registry = options.strategies()
    try:
        registered = registry.from_name(Git.SYMBOL)
    except ValueError:
        registered = None
    if isinstance(registered, Git):
        git = registered
    url = preprocess_url(package.head_url)
    meta["url"] = {"original": package.head_url}
    if url != package.head_url:
        meta["url"]["processed"] = url
    meta["strategy"] = git.NAME
    commit, error = git.fetch_last_commit(url, timeout=options.timeout, fetch=options.fetch)
    if commit is None:
        return None, meta, [error] if error else None
    return HeadVersion(commit), meta, None


def check(package: Package, options: Optional[CheckOptions] = None) -> CheckOutcome:
    """Check one package against its upstream sources."""
    options = options or CheckOptions()
    name = package.display_name(options.full_name)

    skipped = skip_conditions(package, options)
    if skipped is not None:
        logger.debug("%s: %s", package.key, skipped.status.value)
        return skipped

    current = current_version(package)

    if package.head_only:
        latest, meta, messages = _latest_head_commit(package, options)
    else:
        latest, meta, messages = latest_version(package, options)

    if latest is None:
        return CheckOutcome(
            package=name,
            status=Status.ERROR,
            current=str(current),
            messages=[NO_VERSIONS_MSG, *(messages or [])],
            meta=meta,
        )

    if package.head_only:
        # A HEAD-only package is outdated when the upstream commit differs.
        outdated = current != latest
        newer_than_upstream = False
    else:
        m = _RELEASE_SUFFIX.match(str(latest))
        if m and not _RELEASE_SUFFIX.match(str(current)):
            latest = Version(m.group(1))
        outdated = current < latest
        newer_than_upstream = current > latest

    return CheckOutcome(
        package=name,
        status=Status.SUCCESS,
        current=str(current),
        latest=str(latest),
        outdated=outdated,
        newer_than_upstream=newer_than_upstream,
        meta=meta,
    )
