"""
Synthetic trader provisioning.

The pool is built lazily on first use and then frozen: later callers get
the very same tuple back and no further registration traffic is sent.
Construction happens under a lock so two threads asking at once cannot
register two different pools.
"""

from __future__ import annotations

import logging
import random
import threading

from faker import Faker

from .client import LedgerApi
from .credentials import CredentialProvider, SigningDomain
from .principals import Principal, PrincipalKind

logger = logging.getLogger(__name__)

UID_PREFIX = "ID"
UID_DIGITS = "0123456789ABCDEF"
UID_LENGTH = 10


class TraderPool:
    """Generates and registers ``n`` unique traders exactly once per run."""

    def __init__(
        self,
        ledger: LedgerApi,
        credentials: CredentialProvider,
        *,
        rng: random.Random | None = None,
        faker: Faker | None = None,
    ):
        self._ledger = ledger
        self._credentials = credentials
        self._rng = rng or random.Random()
        self._faker = faker or Faker()
        self._lock = threading.Lock()
        self._traders: tuple[Principal, ...] | None = None
        self._used_uids: set[str] = set()

    def get_traders(self, n: int) -> tuple[Principal, ...]:
        """
        Return the run's traders, generating and registering them on first call.

        Args:
            n: Pool size.  Only honoured by the first call; later calls
                return the cached pool whatever *n* they pass.

        Raises:
            HttpError: If registering any trader fails.  Traders after the
                failing one are not generated and nothing is cached.
        """
        with self._lock:
            if self._traders is None:
                self._traders = self._build(n)
            elif n != len(self._traders):
                logger.warning(
                    "Trader pool already holds %d traders; ignoring request for %d",
                    len(self._traders),
                    n,
                )
            return self._traders

    def _build(self, n: int) -> tuple[Principal, ...]:
        logger.info("Creating %d traders", n)
        traders = []
        for _ in range(n):
            trader = self._new_trader()
            self._register(trader)
            traders.append(trader)
        return tuple(traders)

    def _new_trader(self) -> Principal:
        uid = self._unique_uid()
        email = f"{uid.lower()}@{self._faker.free_email_domain()}"
        return Principal(email=email, uid=uid, kind=PrincipalKind.TRADER)

    def _unique_uid(self) -> str:
        # 16**10 id space; resample on collision
        while True:
            uid = self._random_uid()
            if uid not in self._used_uids:
                self._used_uids.add(uid)
                return uid

    def _random_uid(self) -> str:
        return UID_PREFIX + "".join(self._rng.choices(UID_DIGITS, k=UID_LENGTH))

    def _register(self, trader: Principal) -> None:
        token = self._credentials.issue(trader, SigningDomain.SESSION)
        self._ledger.me(token)
        logger.debug("Registered trader %s", trader.uid)
