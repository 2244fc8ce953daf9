"""Credits every trader with base currency before purchases start."""

from __future__ import annotations

import logging

from .client import ManagementApi
from .credentials import CredentialProvider, SigningDomain
from .principals import Principal

logger = logging.getLogger(__name__)


class FundingStep:
    """Privileged deposit of a fixed amount, accepted immediately."""

    def __init__(
        self,
        management: ManagementApi,
        credentials: CredentialProvider,
        *,
        currency: str,
        amount: str,
    ):
        self._management = management
        self._credentials = credentials
        self._currency = currency
        self._amount = amount

    def fund(self, trader: Principal) -> None:
        body = self._credentials.issue(
            None,
            SigningDomain.MANAGEMENT,
            {
                "data": {
                    "uid": trader.uid,
                    "currency": self._currency,
                    "amount": self._amount,
                    "state": "accepted",
                }
            },
        )
        self._management.new_deposit(body)
        logger.debug("Funded %s with %s %s", trader.uid, self._amount, self._currency)

    def fund_all(self, traders: tuple[Principal, ...]) -> None:
        logger.info("Funding %d traders", len(traders))
        for trader in traders:
            self.fund(trader)
