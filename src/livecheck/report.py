"""Rendering of batch results as human lines, a JSON document or JSON lines.

Items are always emitted in original package order. Diagnostic metadata is
only included in verbose mode.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Iterable, List, Optional, TextIO

from constants import Status
from .runner import BatchItem

NO_NEWER_MSG = "No newer upstream versions."

FORMAT_HUMAN = "human"
FORMAT_JSON = "json"
FORMAT_JSONL = "jsonl"
FORMATS = (FORMAT_HUMAN, FORMAT_JSON, FORMAT_JSONL)


def _ordered(items: Iterable[BatchItem]) -> List[BatchItem]:
    return sorted(items, key=lambda item: item.index)


def filter_newer(items: Iterable[BatchItem]) -> List[BatchItem]:
    """Keep only packages with a newer upstream version."""
    return [item for item in items if item.outcome.status == Status.SUCCESS and item.outcome.outdated]


def human_line(item: BatchItem, verbose: bool = False) -> str:
    outcome = item.outcome
    name = outcome.package
    status = outcome.status
    if status == Status.SUCCESS:
        line = f"{name} : {outcome.current} ==> {outcome.latest}"
    elif status == Status.SKIPPED:
        line = f"{name} : skipped"
        if outcome.messages:
            line += " - " + "; ".join(outcome.messages)
    elif status == Status.DEPRECATED:
        line = f"{name} : deprecated"
    elif status == Status.VERSIONED:
        line = f"{name} : versioned"
    elif status == Status.NOT_CHECKED:
        line = f"{name} : not checked"
    else:
        line = f"{name} : error"
        if outcome.messages:
            line += " - " + "; ".join(outcome.messages)
    if verbose and item.from_cache:
        line += " (from cache)"
    return line


def human_report(items: Iterable[BatchItem], newer_only: bool = False, verbose: bool = False) -> List[str]:
    ordered = _ordered(items)
    if newer_only:
        ordered = filter_newer(ordered)
        if not ordered:
            return [NO_NEWER_MSG]
    return [human_line(item, verbose) for item in ordered]


def outcome_record(item: BatchItem, verbose: bool = False) -> Dict[str, Any]:
    """Structured record for one package; ``meta`` and ``cached`` only when verbose."""
    record = item.outcome.to_dict()
    if verbose:
        record["cached"] = item.from_cache
    else:
        record.pop("meta", None)
    return record


def json_document(items: Iterable[BatchItem], newer_only: bool = False, verbose: bool = False) -> str:
    ordered = _ordered(items)
    if newer_only:
        ordered = filter_newer(ordered)
    return json.dumps([outcome_record(item, verbose) for item in ordered], ensure_ascii=False, indent=2)


def json_lines(items: Iterable[BatchItem], newer_only: bool = False, verbose: bool = False) -> str:
    ordered = _ordered(items)
    if newer_only:
        ordered = filter_newer(ordered)
    return "\n".join(json.dumps(outcome_record(item, verbose), ensure_ascii=False) for item in ordered)


def render(
    items: Iterable[BatchItem],
    fmt: str = FORMAT_HUMAN,
    newer_only: bool = False,
    verbose: bool = False,
) -> str:
    """Render ``items`` in the requested format.

    Raises:
        ValueError: for an unknown format name.
    """
    if fmt == FORMAT_HUMAN:
        return "\n".join(human_report(items, newer_only=newer_only, verbose=verbose))
    if fmt == FORMAT_JSON:
        return json_document(items, newer_only=newer_only, verbose=verbose)
    if fmt == FORMAT_JSONL:
        return json_lines(items, newer_only=newer_only, verbose=verbose)
    raise ValueError(f"Unknown report format {fmt!r}")


def emit(
    items: Iterable[BatchItem],
    fmt: str = FORMAT_HUMAN,
    newer_only: bool = False,
    verbose: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    text = render(items, fmt=fmt, newer_only=newer_only, verbose=verbose)
    stream = stream or sys.stdout
    if text:
        stream.write(text + "\n")
    stream.flush()


def has_failures(items: Iterable[BatchItem]) -> bool:
    return any(item.outcome.status == Status.ERROR for item in items)
