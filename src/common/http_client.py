"""Shared HTTP helpers used by the version strategies.

This is the one place that talks to ``requests``. Every failure mode
(timeout, connection error, non-2xx status) is folded into the returned
``FetchResult`` so callers never need their own try/except blocks and a
single unreachable upstream can never abort other checks.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, NamedTuple, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class FetchResult(NamedTuple):
    """Body, headers and error of a single GET request."""

    status_code: int
    headers: Dict[str, str]
    text: str
    error: Optional[str] = None
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def fetch(
    url: str,
    *,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> FetchResult:
    """Perform a single GET request with DEBUG traces.

    Args:
        url: Target URL
        timeout: Seconds before giving up (defaults to Constants.REQUEST_TIMEOUT)
        headers: Optional request headers, merged over the default User-Agent
        **kwargs: Additional requests.get parameters

    Returns:
        FetchResult; ``error`` is set for timeouts, connection errors and
        non-2xx responses.
    """
    effective_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    safe_target = safe_url(url)

    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    timeout=effective_timeout
                )
            )
        try:
            response = requests.get(
                url,
                timeout=effective_timeout,
                headers=_default_headers(headers),
                **kwargs
            )
        except requests.Timeout:
            logger.debug(
                "HTTP timeout",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="timeout",
                    target=safe_target
                )
            )
            return FetchResult(0, {}, "", f"Request timed out after {effective_timeout} seconds", url)
        except requests.RequestException as exc:  # includes ConnectionError
            logger.debug(
                "HTTP request exception",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="request_exception",
                    target=safe_target
                )
            )
            return FetchResult(0, {}, "", f"Request failed: {exc}", url)

    final_url = getattr(response, "url", None) or url
    response_headers = dict(response.headers or {})
    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                outcome="success" if response.status_code < 400 else "http_error",
                status_code=response.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target
            )
        )

    if not 200 <= response.status_code < 300:
        return FetchResult(
            response.status_code,
            response_headers,
            response.text or "",
            f"HTTP {response.status_code} from {safe_target}",
            final_url,
        )
    return FetchResult(response.status_code, response_headers, response.text or "", None, final_url)


def parse_json(result: FetchResult) -> Tuple[Optional[Any], Optional[str]]:
    """Decode the body of a successful FetchResult.

    Returns:
        Tuple of (parsed_json_or_none, error_message_or_none)
    """
    if not result.ok:
        return None, result.error
    if not result.text:
        return None, "Empty response body"
    try:
        return json.loads(result.text), None
    except json.JSONDecodeError:
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="parse_json",
                    outcome="json_decode_error",
                    target=safe_url(result.url)
                )
            )
        return None, "Response was not valid JSON"
