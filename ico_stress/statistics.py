"""
Shared run statistics.

Every purchase worker reports into one :class:`RunStatistics` instance.  A
single lock guards all of it: the transfer counter and the latency
aggregates move together, so a reader never sees a counter that includes a
call whose latency is not yet in the sum.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class StatisticsSnapshot:
    """A consistent, read-only copy of :class:`RunStatistics`."""

    transfers: int
    calls: int
    latency_sum: float
    min_latency: float | None
    max_latency: float | None
    started_at: datetime | None
    finished_at: datetime | None
    elapsed: float | None

    @property
    def avg_latency(self) -> float | None:
        if self.calls == 0:
            return None
        return self.latency_sum / self.calls


class RunStatistics:
    """Counters and latency aggregates shared by all purchase workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._transfers = 0
        self._calls = 0
        self._latency_sum = 0.0
        self._min_latency: float | None = None
        self._max_latency: float | None = None
        self._started_at: datetime | None = None
        self._finished_at: datetime | None = None
        self._started_clock: float | None = None
        self._finished_clock: float | None = None

    def mark_started(self) -> None:
        with self._lock:
            self._started_at = datetime.now(timezone.utc)
            self._started_clock = time.perf_counter()

    def mark_finished(self) -> None:
        with self._lock:
            self._finished_at = datetime.now(timezone.utc)
            self._finished_clock = time.perf_counter()

    def record_transfer(self, latency: float) -> None:
        """Count one successful purchase call that took *latency* seconds."""
        if latency < 0:
            raise ValueError("latency must not be negative")

        with self._lock:
            self._transfers += 1
            self._calls += 1
            self._latency_sum += latency
            if self._min_latency is None or latency < self._min_latency:
                self._min_latency = latency
            if self._max_latency is None or latency > self._max_latency:
                self._max_latency = latency

    def snapshot(self) -> StatisticsSnapshot:
        with self._lock:
            elapsed = None
            if self._started_clock is not None and self._finished_clock is not None:
                elapsed = self._finished_clock - self._started_clock
            return StatisticsSnapshot(
                transfers=self._transfers,
                calls=self._calls,
                latency_sum=self._latency_sum,
                min_latency=self._min_latency,
                max_latency=self._max_latency,
                started_at=self._started_at,
                finished_at=self._finished_at,
                elapsed=elapsed,
            )
