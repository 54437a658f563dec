"""Result cache with a validity window, layered over a key-value store.

The store only knows bytes by key. ``ResultCache`` serializes each
``CheckOutcome`` together with its ``valid_until`` timestamp and enforces
the TTL on read: an expired entry is deleted and reported as a miss.
Entries are always replaced whole, never mutated in place.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from constants import Constants
from versioning.models import CheckOutcome

logger = logging.getLogger(__name__)


class CacheCorruptionError(ValueError):
    """A stored cache value could not be decoded."""


class MemoryStore:
    """Thread-safe in-process key-value store."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data)


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk.

    Every write replaces the file atomically (temp file + rename), so a
    reader or a crash never observes a half-written store.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data
        data: Dict[str, str] = {}
        if os.path.isfile(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as fh:
                    loaded = json.load(fh)
                if isinstance(loaded, dict):
                    data = {str(k): str(v) for k, v in loaded.items()}
                else:
                    logger.warning("Cache file %s is not a JSON object; starting empty", self.path)
            except (OSError, ValueError) as exc:
                logger.warning("Could not read cache file %s (%s); starting empty", self.path, exc)
        self._data = data
        return data

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".upwatch-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            value = self._load().get(key)
        return value.encode("utf-8") if value is not None else None

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = value.decode("utf-8")
            self._write(data)
            self._data = data

    def delete(self, key: str) -> None:
        with self._lock:
            data = dict(self._load())
            if key not in data:
                return
            del data[key]
            self._write(data)
            self._data = data

    def keys(self):
        with self._lock:
            return list(self._load())


def _to_iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _from_iso(text: str) -> float:
    return datetime.fromisoformat(text).timestamp()


@dataclass(frozen=True)
class CacheEntry:
    """A cached outcome and the window in which it may be reused."""
    key: str
    outcome: CheckOutcome
    valid_until: float
    checked_at: float

    def encode(self) -> bytes:
        payload = self.outcome.to_dict()
        payload["valid_until"] = _to_iso(self.valid_until)
        payload["checked_at"] = _to_iso(self.checked_at)
        return json.dumps(payload, sort_keys=True).encode("utf-8")

    @classmethod
    def decode(cls, key: str, raw: bytes) -> "CacheEntry":
        try:
            payload = json.loads(raw.decode("utf-8"))
            valid_until = _from_iso(payload.pop("valid_until"))
            checked_at = _from_iso(payload.pop("checked_at", None) or _to_iso(0))
            outcome = CheckOutcome.from_dict(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise CacheCorruptionError(f"Corrupted cache entry for {key!r}: {exc}") from exc
        return cls(key=key, outcome=outcome, valid_until=valid_until, checked_at=checked_at)


class ResultCache:
    """Per-package memo of check outcomes with a validity window."""

    def __init__(self, store, ttl: Optional[float] = None, clock: Callable[[], float] = time.time):
        self.store = store
        self.ttl = ttl if ttl is not None else Constants.CACHE_TTL_SEC
        self._clock = clock

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for ``key``; expired entries are deleted.

        Raises:
            CacheCorruptionError: if the stored value cannot be decoded. The
                bad value is deleted first so the next run starts clean.
        """
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            entry = CacheEntry.decode(key, raw)
        except CacheCorruptionError:
            self.store.delete(key)
            raise
        if entry.valid_until <= self._clock():
            logger.debug("Cache entry for %s expired", key)
            self.store.delete(key)
            return None
        return entry

    def peek_entry(self, key: str) -> Optional[CacheEntry]:
        """Like ``get_entry`` but never deletes; expired entries read as None.

        Raises:
            CacheCorruptionError: if the stored value cannot be decoded.
        """
        raw = self.store.get(key)
        if raw is None:
            return None
        entry = CacheEntry.decode(key, raw)
        if entry.valid_until <= self._clock():
            return None
        return entry

    def get(self, key: str) -> Optional[CheckOutcome]:
        entry = self.get_entry(key)
        return entry.outcome if entry is not None else None

    def set(self, key: str, outcome: CheckOutcome, ttl: Optional[float] = None) -> CacheEntry:
        now = self._clock()
        effective_ttl = ttl if ttl is not None else self.ttl
        entry = CacheEntry(key=key, outcome=outcome, valid_until=now + effective_ttl, checked_at=now)
        self.store.set(key, entry.encode())
        return entry

    def delete(self, key: str) -> None:
        self.store.delete(key)
