"""
Post-run dump of each trader's transfer and purchase history.

Informational only: the responses are logged for whoever inspects the run
afterwards and are never compared against the workload's own counters.
"""

from __future__ import annotations

import logging
from typing import Any

from .client import ApplogicApi, ManagementApi
from .credentials import CredentialProvider, SigningDomain
from .principals import Principal

logger = logging.getLogger(__name__)


class DumpStep:
    def __init__(
        self,
        applogic: ApplogicApi,
        management: ManagementApi,
        credentials: CredentialProvider,
    ):
        self._applogic = applogic
        self._management = management
        self._credentials = credentials

    def dump(self, trader: Principal) -> dict[str, Any]:
        """Fetch and log history for *trader*; returns the parsed bodies."""
        transfers = self._management.transfers(
            self._credentials.issue(
                None, SigningDomain.MANAGEMENT, {"data": {"uid": trader.uid}}
            )
        )
        purchases = self._applogic.my_purchases(
            self._credentials.issue(trader, SigningDomain.SESSION)
        )

        history = {"transfers": transfers.json(), "purchases": purchases.json()}
        logger.info("Transfers of %s: %s", trader.uid, history["transfers"])
        logger.info("Purchases of %s: %s", trader.uid, history["purchases"])
        return history

    def dump_all(self, traders: tuple[Principal, ...]) -> dict[str, dict[str, Any]]:
        return {trader.uid: self.dump(trader) for trader in traders}
