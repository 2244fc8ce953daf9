"""
One-time ICO setup.

Before any trader can buy, every configured currency needs an approved
distributor application: a set of offers made of packages, plus exchange
rates between every pair of currencies.  The distributor submits the
application and the administrator approves it, currency by currency.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any

from .client import ApplogicApi
from .credentials import CredentialProvider, SigningDomain
from .principals import ADMINISTRATOR, DISTRIBUTOR, Principal

logger = logging.getLogger(__name__)

PACKAGE_AMOUNT_RANGE = (1, 1000)
PACKAGE_LIMIT_RANGE = (1, 100)
BASE_RATE_RANGE = (0.5, 2.0)
ADJUSTOR_FACTOR_RANGE = (0.9, 1.1)
ADJUSTOR_WINDOW = timedelta(days=7)
RATE_TYPES = ("fixed", "floating")
NODE_TYPE_WILDCARD = "*"


class IcoConfigurator:
    """Submits and approves a distributor application per currency."""

    def __init__(
        self,
        applogic: ApplogicApi,
        credentials: CredentialProvider,
        currencies: tuple[str, ...],
        *,
        offers_number: int,
        packages_number: int,
        distributor: Principal = DISTRIBUTOR,
        administrator: Principal = ADMINISTRATOR,
        rng: random.Random | None = None,
    ):
        self._applogic = applogic
        self._credentials = credentials
        self._currencies = currencies
        self._offers_number = offers_number
        self._packages_number = packages_number
        self._distributor = distributor
        self._administrator = administrator
        self._rng = rng or random.Random()

    def apply(self) -> None:
        """
        Configure the ICO for every currency, in order.

        Raises:
            HttpError: On the first rejected application or approval; the
                remaining currencies are left untouched.
        """
        for currency in self._currencies:
            logger.info("Configuring ICO for %s", currency)
            self._applogic.apply_distributor(
                self._credentials.issue(self._distributor, SigningDomain.SESSION),
                self.build_application(currency),
            )
            self._applogic.admin_action(
                self._credentials.issue(self._administrator, SigningDomain.SESSION),
                {"action": "approve", "currency": currency, "uid": self._distributor.uid},
            )

    def build_application(self, currency: str) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            "currency": currency,
            "offers": [self._offer() for _ in range(self._offers_number)],
            "exchange_rates": [
                self._exchange_rate(debit, credit, now)
                for debit in self._currencies
                for credit in self._currencies
            ],
        }

    def _offer(self) -> dict[str, Any]:
        return {"packages": [self._package() for _ in range(self._packages_number)]}

    def _package(self) -> dict[str, Any]:
        return {
            "amount": self._rng.randint(*PACKAGE_AMOUNT_RANGE),
            "limit": self._rng.randint(*PACKAGE_LIMIT_RANGE),
            "whitelist": self._rng.choice((True, False)),
            "node_type": NODE_TYPE_WILDCARD,
        }

    def _exchange_rate(self, debit: str, credit: str, now: datetime) -> dict[str, Any]:
        return {
            "debit_currency": debit,
            "credit_currency": credit,
            "rate": round(self._rng.uniform(*BASE_RATE_RANGE), 8),
            "rate_type": self._rng.choice(RATE_TYPES),
            "adjustors": [
                {
                    "starts_at": now.isoformat(),
                    "ends_at": (now + ADJUSTOR_WINDOW).isoformat(),
                    "factor": round(self._rng.uniform(*ADJUSTOR_FACTOR_RANGE), 8),
                }
            ],
        }
