"""
Stress-run orchestration.

Phases run strictly one after another; each is a full barrier for the
next:

1. configure the ICO for every currency
2. create and register the trader pool
3. fund every trader
4. run the concurrent purchase workload
5. compute the report from the final statistics
6. dump every trader's history (informational)

Any error in any phase propagates unchanged and ends the run.
"""

from __future__ import annotations

import logging

from .audit import DumpStep
from .context import RunContext
from .funding import FundingStep
from .ico import IcoConfigurator
from .report import Report, compute_report
from .workload import PurchaseWorkload

logger = logging.getLogger(__name__)


class StressRun:
    def __init__(self, context: RunContext):
        self.context = context
        config = context.config
        self.configurator = IcoConfigurator(
            context.applogic,
            context.credentials,
            config.currencies,
            offers_number=config.ico_offers_number,
            packages_number=config.ico_packages_number,
            rng=context.rng,
        )
        self.funding = FundingStep(
            context.management,
            context.credentials,
            currency=config.base_currency,
            amount=config.funding_amount,
        )
        self.workload = PurchaseWorkload(
            context.applogic,
            context.credentials,
            context.statistics,
            currencies=config.currencies,
            debit_currency=config.base_currency,
            concurrency=config.threads_number,
            pacing_delay=config.pacing_delay,
            rng=context.rng,
        )
        self.dump = DumpStep(context.applogic, context.management, context.credentials)

    def run(self) -> Report:
        config = self.context.config
        logger.info(
            "Stress run: %d traders, %d threads, currencies %s",
            config.traders_number,
            config.threads_number,
            ",".join(config.currencies),
        )

        self.configurator.apply()
        traders = self.context.trader_pool.get_traders(config.traders_number)
        self.funding.fund_all(traders)
        self.workload.run(traders)

        report = compute_report(config, self.context.statistics.snapshot())
        logger.info(
            "Transfers: %d, ops: %.3f, avg latency: %.4fs",
            report.options.transfers_number,
            report.results.ops,
            report.results.avg,
        )

        self.dump.dump_all(traders)
        return report
