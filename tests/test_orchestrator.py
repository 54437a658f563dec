"""Tests for single-package checks."""

import threading
import time

import pytest

from constants import Status
from livecheck import orchestrator
from livecheck.orchestrator import (
    GIST_MSG,
    HEAD_NOT_INSTALLED_MSG,
    NO_VERSIONS_MSG,
    CheckOptions,
    check,
    current_version,
    is_unstable,
    skip_conditions,
)
from strategy.git import refs_url
from versioning.models import CheckConfig, ConfigurationError, Package
from versioning.version import HeadVersion, Version

REPO = "https://github.com/foo/foo.git"
PAGE = "https://foo.example.org/download"


def _package(**kwargs):
    defaults = dict(
        name="foo",
        version="1.2.0",
        homepage="https://foo.example.org",
        stable_url="https://github.com/foo/foo/archive/v1.2.0.tar.gz",
    )
    defaults.update(kwargs)
    return Package(**defaults)


class TestSkipConditions:
    """Short-circuit outcomes that never reach a strategy."""

    def test_skip_flag_makes_zero_fetches(self, fake_fetch):
        fetch = fake_fetch()
        pkg = _package(check=CheckConfig(skip=True, skip_msg="No upstream"))
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.SKIPPED
        assert outcome.messages == ["No upstream"]
        assert fetch.calls == []

    def test_skip_wins_over_everything(self, fake_fetch):
        fetch = fake_fetch()
        pkg = _package(check=CheckConfig(skip=True), deprecated=True, head_only=True)
        assert check(pkg, CheckOptions(fetch=fetch)).status == Status.SKIPPED
        assert fetch.calls == []

    def test_gist_stable_url(self, fake_fetch):
        fetch = fake_fetch()
        pkg = _package(stable_url="https://gist.github.com/foo/1234/raw/foo.sh")
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.SKIPPED
        assert outcome.messages == [GIST_MSG]
        assert fetch.calls == []

    def test_deprecated_before_versioned(self):
        outcome = skip_conditions(_package(deprecated=True, versioned=True))
        assert outcome.status == Status.DEPRECATED

    def test_versioned(self):
        assert skip_conditions(_package(versioned=True)).status == Status.VERSIONED

    def test_explicit_config_overrides_deprecated(self):
        pkg = _package(deprecated=True, check=CheckConfig(url=PAGE, regex=r"foo-([\d.]+)"))
        assert skip_conditions(pkg) is None

    def test_head_not_installed(self):
        outcome = skip_conditions(_package(head_only=True, head_url=REPO))
        assert outcome.status == Status.ERROR
        assert outcome.messages == [HEAD_NOT_INSTALLED_MSG]


class TestCurrentVersion:
    """Where the current version comes from."""

    def test_declared(self):
        assert current_version(_package(version="1.2.0")) == Version("1.2.0")

    def test_explicit_override(self):
        pkg = _package(version="1.2.0,99", check=CheckConfig(version="1.2.1"))
        assert current_version(pkg) == Version("1.2.1")

    def test_transform(self):
        pkg = _package(version="1.2.0,99", check=CheckConfig(version_transform="before_comma"))
        assert str(current_version(pkg)) == "1.2.0"

    def test_unknown_transform(self):
        pkg = _package(check=CheckConfig(version_transform="sideways"))
        with pytest.raises(ConfigurationError):
            current_version(pkg)

    def test_head(self):
        pkg = _package(head_only=True, installed_head_commit="abc")
        assert current_version(pkg) == HeadVersion("abc")

    def test_head_ignores_version_override(self):
        pkg = _package(head_only=True, installed_head_commit="abc", check=CheckConfig(version="9.9"))
        assert current_version(pkg) == HeadVersion("abc")


class TestCheck:
    """Full checks against fake upstreams."""

    def test_outdated(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs(["v1.1.0", "v1.2.0", "v1.3.0"])})
        outcome = check(_package(), CheckOptions(fetch=fetch))
        assert outcome.status == Status.SUCCESS
        assert (outcome.current, outcome.latest) == ("1.2.0", "1.3.0")
        assert outcome.outdated is True
        assert outcome.newer_than_upstream is False
        assert outcome.meta["strategy"] == "Git"
        assert outcome.meta["url"]["processed"] == REPO

    def test_newer_than_upstream(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs(["v1.1.0", "v1.2.0"])})
        outcome = check(_package(version="1.3.0"), CheckOptions(fetch=fetch))
        assert outcome.outdated is False
        assert outcome.newer_than_upstream is True

    def test_up_to_date(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs(["v1.2.0"])})
        outcome = check(_package(), CheckOptions(fetch=fetch))
        assert outcome.status == Status.SUCCESS
        assert not outcome.outdated and not outcome.newer_than_upstream

    @pytest.mark.parametrize("allow_unstable,expected", [(False, "1.9.0"), (True, "2.0.0-beta")])
    def test_unstable_filter(self, fake_fetch, allow_unstable, expected):
        fetch = fake_fetch({PAGE: "foo-2.0.0-beta.tar.gz foo-1.9.0.tar.gz"})
        cfg = CheckConfig(url=PAGE, regex=r"foo-([\w.-]+?)\.tar", allow_unstable=allow_unstable)
        outcome = check(_package(version="1.0", check=cfg), CheckOptions(fetch=fetch))
        assert outcome.latest == expected

    def test_is_unstable(self):
        assert is_unstable(Version("2.0rc1"))
        assert is_unstable(Version("1.0-BETA"))
        assert not is_unstable(Version("1.0"))

    def test_timeout_on_only_candidate(self, fake_fetch, timed_out):
        url = "https://foo.example.org/foo.git"
        fetch = fake_fetch({refs_url(url): timed_out(refs_url(url))})
        pkg = _package(stable_url=url, homepage=None)
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.ERROR
        assert outcome.messages[0] == NO_VERSIONS_MSG
        assert "timed out" in outcome.messages[1]

    def test_falls_through_to_next_candidate(self, fake_fetch, git_refs):
        head = "https://git.example.org/foo.git"
        fetch = fake_fetch({refs_url(REPO): git_refs(["v1.4.0"])})
        outcome = check(_package(head_url=head), CheckOptions(fetch=fetch))
        assert outcome.latest == "1.4.0"
        assert fetch.urls == [refs_url(head), refs_url(REPO)]
        assert outcome.meta["urls_tried"] == [head, REPO]

    def test_no_applicable_strategy(self, fake_fetch):
        fetch = fake_fetch()
        pkg = _package(stable_url="https://foo.example.org/foo-1.2.0.tar.gz")
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.ERROR
        assert outcome.messages == [NO_VERSIONS_MSG]
        assert fetch.calls == []

    def test_explicit_page_match_uses_raw_url(self, fake_fetch):
        url = "https://github.com/foo/foo/releases"
        fetch = fake_fetch({url: '<a href="/foo/foo/releases/tag/v1.5.0">'})
        cfg = CheckConfig(url=url, strategy="page_match", regex=r"tag/v?(\d+(?:\.\d+)+)")
        outcome = check(_package(check=cfg), CheckOptions(fetch=fetch))
        assert outcome.latest == "1.5.0"
        assert fetch.urls == [url]
        assert "processed" not in outcome.meta["url"]

    def test_explicit_page_match_without_regex_skips_fetch(self, fake_fetch):
        fetch = fake_fetch()
        cfg = CheckConfig(url=PAGE, strategy="PageMatch")
        outcome = check(_package(check=cfg), CheckOptions(fetch=fetch))
        assert outcome.status == Status.ERROR
        assert fetch.calls == []

    def test_explicit_strategy_must_apply(self, fake_fetch):
        fetch = fake_fetch()
        cfg = CheckConfig(url=PAGE, strategy="pypi")
        outcome = check(_package(check=cfg), CheckOptions(fetch=fetch))
        assert outcome.status == Status.ERROR
        assert fetch.calls == []

    def test_unknown_strategy_propagates(self):
        cfg = CheckConfig(url=PAGE, strategy="nope")
        with pytest.raises(ConfigurationError):
            check(_package(check=cfg))

    def test_release_suffix_dropped(self, fake_fetch):
        fetch = fake_fetch({PAGE: "foo-1.3.0-release.zip"})
        cfg = CheckConfig(url=PAGE, regex=r"foo-(.+?)\.zip")
        outcome = check(_package(check=cfg), CheckOptions(fetch=fetch))
        assert outcome.latest == "1.3.0"
        assert outcome.outdated

    def test_full_name(self):
        pkg = _package(full_name="tap/foo", check=CheckConfig(skip=True))
        assert check(pkg, CheckOptions(full_name=True)).package == "tap/foo"
        assert check(pkg).package == "foo"

    def test_meta_records_regex(self, fake_fetch):
        fetch = fake_fetch({PAGE: "foo-1.3.0.zip"})
        cfg = CheckConfig(url=PAGE, regex=r"foo-(.+?)\.zip")
        outcome = check(_package(check=cfg), CheckOptions(fetch=fetch))
        assert outcome.meta["regex"] == r"foo-(.+?)\.zip"
        assert outcome.meta["livecheckable"] is True
        assert outcome.meta["strategy"] == "PageMatch"


class TestHeadTracking:
    """HEAD-only packages compare commits by identity."""

    def test_outdated_when_commit_differs(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs([], head="b" * 40)})
        pkg = _package(head_only=True, head_url=REPO, installed_head_commit="a" * 40)
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.SUCCESS
        assert outcome.outdated is True
        assert outcome.latest == "b" * 40

    def test_current_when_commit_matches(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs([], head="a" * 40)})
        pkg = _package(head_only=True, head_url=REPO, installed_head_commit="a" * 40)
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.outdated is False
        assert outcome.newer_than_upstream is False

    def test_version_override_does_not_mark_outdated(self, fake_fetch, git_refs):
        fetch = fake_fetch({refs_url(REPO): git_refs([], head="a" * 40)})
        pkg = _package(head_only=True, head_url=REPO, installed_head_commit="a" * 40,
                       check=CheckConfig(version="1.0"))
        outcome = check(pkg, CheckOptions(fetch=fetch))
        assert outcome.status == Status.SUCCESS
        assert outcome.current == "a" * 40
        assert outcome.outdated is False


class TestDefaultRegistry:
    """The shared registry used when no registry is passed in."""

    def test_built_once_under_concurrent_first_use(self, monkeypatch):
        built = []
        real_build = orchestrator.build_default_registry

        def slow_build():
            time.sleep(0.05)
            registry = real_build()
            built.append(registry)
            return registry

        monkeypatch.setattr(orchestrator, "_default_registry", None)
        monkeypatch.setattr(orchestrator, "build_default_registry", slow_build)
        seen = []
        threads = [threading.Thread(target=lambda: seen.append(orchestrator.default_registry())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(built) == 1
        assert all(registry is built[0] for registry in seen)
        assert built[0].frozen
