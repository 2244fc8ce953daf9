"""
Concurrent purchase workload.

Each trader gets one worker thread that buys a package in every configured
currency, one after another.  Workers for different traders run in
parallel, but a bounded semaphore caps how many purchase calls are in
flight at once across the whole pool, which is the knob the operator turns
to dial load up or down.

Key invariants:

- A call is counted only after it returned 2xx, and counting plus latency
  recording is a single locked update in :class:`RunStatistics`.
- The first failing worker aborts the phase: the others stop before their
  next call, every worker is joined, then the error propagates.
- Statistics are only marked finished after all workers have been joined.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from .client import ApplogicApi
from .credentials import CredentialProvider, SigningDomain
from .principals import Principal
from .statistics import RunStatistics

logger = logging.getLogger(__name__)

PURCHASE_AMOUNT_RANGE = (1.0, 100.0)
# Placeholder wallet; the applogic service does not validate it under test
DEPOSIT_ADDRESS = "0x0000000000000000000000000000000000000000"


class PurchaseWorkload:
    """Drives purchase calls for all traders and feeds shared statistics."""

    def __init__(
        self,
        applogic: ApplogicApi,
        credentials: CredentialProvider,
        statistics: RunStatistics,
        *,
        currencies: tuple[str, ...],
        debit_currency: str,
        concurrency: int,
        pacing_delay: float = 0.0,
        rng: random.Random | None = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self._applogic = applogic
        self._credentials = credentials
        self._statistics = statistics
        self._currencies = currencies
        self._debit_currency = debit_currency
        self._pacing_delay = pacing_delay
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()
        self._gate = threading.BoundedSemaphore(concurrency)
        self._aborted = threading.Event()

    def run(self, traders: tuple[Principal, ...]) -> None:
        """
        Run one worker per trader and wait for all of them.

        Raises:
            HttpError: The first purchase failure observed, after every
                worker has stopped.
        """
        logger.info(
            "Starting purchases: %d traders x %d currencies",
            len(traders),
            len(self._currencies),
        )
        self._aborted.clear()
        self._statistics.mark_started()
        try:
            with ThreadPoolExecutor(
                max_workers=max(len(traders), 1),
                thread_name_prefix="trader",
            ) as executor:
                futures = [executor.submit(self.purchase, trader) for trader in traders]
                try:
                    for future in as_completed(futures):
                        future.result()
                except Exception:
                    self._aborted.set()
                    raise
        finally:
            self._statistics.mark_finished()
        logger.info("Purchases finished")

    def purchase(self, trader: Principal) -> None:
        """Buy a package in every configured currency for *trader*, sequentially."""
        for currency in self._currencies:
            if self._aborted.is_set():
                logger.debug("Worker for %s stopping after abort", trader.uid)
                return

            request = self.build_purchase(currency)
            self._pace()
            with self._gate:
                if self._aborted.is_set():
                    return
                try:
                    token = self._credentials.issue(trader, SigningDomain.SESSION)
                    started = time.perf_counter()
                    self._applogic.purchase_package(token, request)
                    latency = time.perf_counter() - started
                except Exception:
                    self._aborted.set()
                    raise
            self._statistics.record_transfer(latency)

    def build_purchase(self, currency: str) -> dict[str, Any]:
        with self._rng_lock:
            amount = round(self._rng.uniform(*PURCHASE_AMOUNT_RANGE), 2)
        return {
            "debit_currency": self._debit_currency,
            "credit_currency": currency,
            "amount": amount,
            "deposit_address": DEPOSIT_ADDRESS,
        }

    def _pace(self) -> None:
        if self._pacing_delay <= 0:
            return
        with self._rng_lock:
            delay = self._rng.uniform(0, self._pacing_delay)
        time.sleep(delay)
