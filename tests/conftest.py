"""Shared fixtures: an in-memory stand-in for the HTTP fetch capability."""

import json

import pytest

from common.http_client import FetchResult


class FakeFetch:
    """Serves canned responses by URL and records every request."""

    def __init__(self, pages=None, default_error="HTTP 404 from test"):
        self.pages = dict(pages or {})
        self.default_error = default_error
        self.calls = []

    def __call__(self, url, timeout=None, headers=None, **kwargs):
        self.calls.append({"url": url, "timeout": timeout, "headers": headers})
        page = self.pages.get(url)
        if page is None:
            return FetchResult(404, {}, "", self.default_error, url)
        if isinstance(page, FetchResult):
            return page
        if isinstance(page, Exception):
            raise page
        if not isinstance(page, str):
            page = json.dumps(page)
        return FetchResult(200, {}, page, None, url)

    @property
    def urls(self):
        return [call["url"] for call in self.calls]


def timeout_result(url):
    return FetchResult(0, {}, "", "Request timed out after 30 seconds", url)


@pytest.fixture
def fake_fetch():
    """Factory: ``fake_fetch({url: body_or_json_or_FetchResult})``."""
    return FakeFetch


def git_advertisement(tags, head="a" * 40):
    """Build a smart-HTTP ref advertisement body listing ``tags``."""
    lines = ["001e# service=git-upload-pack", "0000" + _pkt(f"{head} HEAD\x00multi_ack side-band-64k")]
    lines.append(_pkt(f"{head} refs/heads/main"))
    for i, tag in enumerate(tags):
        sha = f"{i + 1:040x}"
        lines.append(_pkt(f"{sha} refs/tags/{tag}"))
        lines.append(_pkt(f"{sha[::-1]} refs/tags/{tag}^{{}}"))
    return "\n".join(lines) + "\n0000"


def _pkt(payload):
    return f"{len(payload) + 5:04x}{payload}"


@pytest.fixture
def git_refs():
    """The ``git_advertisement`` builder."""
    return git_advertisement


@pytest.fixture
def timed_out():
    """The ``timeout_result`` builder."""
    return timeout_result
