"""
Everything one run owns, bundled in a single value.

A :class:`RunContext` is built once from a :class:`RunConfig` and handed to
every phase.  Nothing lives in module globals, so two contexts never share
a trader pool or statistics and tests can build as many as they like.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import timedelta

import requests

from .client import (
    APPLOGIC_PREFIX,
    LEDGER_PREFIX,
    MANAGEMENT_PREFIX,
    ApplogicApi,
    LedgerApi,
    ManagementApi,
    ServiceClient,
)
from .config import RunConfig
from .credentials import CredentialProvider
from .statistics import RunStatistics
from .traders import TraderPool


@dataclass
class RunContext:
    config: RunConfig
    credentials: CredentialProvider
    applogic: ApplogicApi
    ledger: LedgerApi
    management: ManagementApi
    statistics: RunStatistics
    trader_pool: TraderPool
    rng: random.Random

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        *,
        session: requests.Session | None = None,
        rng: random.Random | None = None,
    ) -> RunContext:
        """
        Wire clients, credentials and shared state for *config*.

        Raises:
            ConfigurationError: If any signing key or algorithm is invalid.
        """
        session = session or requests.Session()
        rng = rng or random.Random()
        credentials = CredentialProvider(
            config.session_signer,
            config.management_signers,
            lifetime=timedelta(seconds=config.token_lifetime),
        )

        def _client(root: str, prefix: str) -> ServiceClient:
            return ServiceClient(root, prefix, session=session, timeout=config.http_timeout)

        ledger = LedgerApi(_client(config.peatio_url, LEDGER_PREFIX))
        return cls(
            config=config,
            credentials=credentials,
            applogic=ApplogicApi(_client(config.applogic_url, APPLOGIC_PREFIX)),
            ledger=ledger,
            management=ManagementApi(_client(config.peatio_url, MANAGEMENT_PREFIX)),
            statistics=RunStatistics(),
            trader_pool=TraderPool(ledger, credentials, rng=rng),
            rng=rng,
        )
