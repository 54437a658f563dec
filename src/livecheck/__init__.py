"""Upstream version checking: URL preprocessing, per-package checks, caching and batches."""

from .cache import CacheCorruptionError, JsonFileStore, MemoryStore, ResultCache
from .orchestrator import CheckOptions, check
from .preprocess import preprocess_url
from .runner import BatchItem, BatchRunner, dispatch_order, order_for_batch

__all__ = [
    "BatchItem",
    "BatchRunner",
    "CacheCorruptionError",
    "CheckOptions",
    "JsonFileStore",
    "MemoryStore",
    "ResultCache",
    "check",
    "dispatch_order",
    "order_for_batch",
    "preprocess_url",
]
