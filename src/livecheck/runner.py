"""Batch runner: checks many packages, optionally in a bounded worker pool.

Each package goes through cache lookup, then a fresh check on a miss, then
write-through of successful outcomes. Any exception for one package becomes
an error outcome for that package only. A cooperative deadline and a stop
request (e.g. SIGINT) prevent new packages from starting while letting
in-flight checks finish and flush their cache writes.
"""
from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from constants import Constants, Status
from common.logging_utils import extra_context, is_debug_enabled, Timer
from versioning.models import CheckOutcome, Package
from .cache import CacheCorruptionError, ResultCache
from .orchestrator import CheckOptions, check as check_package

logger = logging.getLogger(__name__)

NOT_CHECKED_MSG = "Not checked before the deadline"
STOPPED_MSG = "Not checked: run was interrupted"


@dataclass
class BatchItem:
    """Outcome of one package within a batch, in original input order."""
    index: int
    package: Package
    outcome: CheckOutcome
    from_cache: bool = False

    @property
    def checked(self) -> bool:
        return self.outcome.status != Status.NOT_CHECKED


class BatchRunner:
    """Runs checks for a list of packages and collects their outcomes."""

    def __init__(
        self,
        options: Optional[CheckOptions] = None,
        cache: Optional[ResultCache] = None,
        *,
        workers: int = 1,
        limit_seconds: Optional[float] = None,
        refresh: bool = False,
        check: Callable[[Package, CheckOptions], CheckOutcome] = check_package,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.options = options or CheckOptions()
        self.cache = cache
        self.workers = max(1, int(workers or 1))
        self.limit_seconds = limit_seconds
        self.refresh = refresh
        self._check = check
        self._clock = clock
        self._stop = threading.Event()
        self._end_time: Optional[float] = None

    def request_stop(self) -> None:
        """Stop dispatching new packages; in-flight checks run to completion."""
        if not self._stop.is_set():
            logger.warning("Waiting for running checks to finish...")
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _expired(self) -> bool:
        return self._end_time is not None and self._clock() > self._end_time

    def run(self, packages: Sequence[Package], order: Optional[Sequence[int]] = None) -> List[BatchItem]:
        """Check every package and return items resequenced to input order.

        Args:
            packages: Packages in reporting order.
            order: Optional permutation of indices into ``packages`` giving the
                order in which checks are started.
        """
        self._end_time = self._clock() + self.limit_seconds if self.limit_seconds else None
        total = len(packages)
        order = list(order) if order is not None else list(range(total))
        logger.info("Checking %d package(s) with %d worker(s)", total, self.workers)

        with Timer() as t:
            if self.workers == 1 or total <= 1:
                items = [self._run_one(i, packages[i]) for i in order]
            else:
                with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="upwatch") as pool:
                    futures = [pool.submit(self._run_one, i, packages[i]) for i in order]
                    items = [f.result() for f in futures]

        items.sort(key=lambda item: item.index)
        if is_debug_enabled(logger):
            logger.debug(
                "Batch finished",
                extra=extra_context(
                    event="function_exit",
                    component="runner",
                    action="run",
                    count=total,
                    checked=sum(1 for item in items if item.checked),
                    duration_ms=t.duration_ms()
                )
            )
        return items

    def _run_one(self, index: int, package: Package) -> BatchItem:
        name = package.display_name(self.options.full_name)
        if self._stop.is_set() or self._expired():
            message = STOPPED_MSG if self._stop.is_set() else NOT_CHECKED_MSG
            return BatchItem(index, package, CheckOutcome(package=name, status=Status.NOT_CHECKED,
                                                          messages=[message]))

        try:
            if self.cache is not None and not self.refresh:
                cached = self.cache.get(package.key)
                if cached is not None:
                    logger.debug("%s: using cached outcome", package.key)
                    cached.package = name
                    return BatchItem(index, package, cached, from_cache=True)

            outcome = self._check(package, self.options)

            if self.cache is not None and outcome.status == Status.SUCCESS:
                self.cache.set(package.key, outcome)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("%s: %s", name, exc, exc_info=True)
            outcome = CheckOutcome(package=name, status=Status.ERROR, messages=[str(exc) or type(exc).__name__])

        return BatchItem(index, package, outcome)


def dispatch_order(
    packages: Sequence[Package],
    cache: Optional[ResultCache] = None,
    rng: Optional[random.Random] = None,
) -> List[int]:
    """Indices of ``packages`` in batch order: never-cached ones first
    (shuffled), then cached ones, least recently checked first."""
    rng = rng or random.Random()
    unchecked: List[int] = []
    checked = []
    for i, package in enumerate(packages):
        entry = None
        if cache is not None:
            try:
                entry = cache.peek_entry(package.key)
            except CacheCorruptionError as exc:
                # Left in the store so the check itself reports it.
                logger.warning("%s", exc)
                entry = None
        if entry is None:
            unchecked.append(i)
        else:
            checked.append((entry.checked_at, i))
    rng.shuffle(unchecked)
    checked.sort()
    return unchecked + [i for _, i in checked]


def order_for_batch(
    packages: Sequence[Package],
    cache: Optional[ResultCache] = None,
    rng: Optional[random.Random] = None,
) -> List[Package]:
    return [packages[i] for i in dispatch_order(packages, cache, rng)]


def deadline_from_minutes(minutes: Optional[float]) -> Optional[float]:
    if minutes is None:
        minutes = Constants.BATCH_LIMIT_MINUTES
    return float(minutes) * 60 if minutes else None
