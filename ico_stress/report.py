"""
Run report: computation and YAML serialisation.

The report is derived once, after every purchase worker has been joined,
from the final :class:`~ico_stress.statistics.StatisticsSnapshot` and the
run configuration.  It is written as a two-section YAML document::

    options:
      applogic_url: http://applogic.local
      peatio_url: http://peatio.local
      currencies: [btc, usd]
      traders_number: 2
      threads_number: 1
      transfers_number: 4
      started_at: '2026-10-19T09:00:00.000000+00:00'
      finished_at: '2026-10-19T09:00:01.250000+00:00'
    results:
      ops: 3.2
      min: 0.11
      max: 0.42
      avg: 0.27

Latencies are in seconds; ``ops`` is transfers per second of wall-clock
time spent in the purchase phase.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from .config import RunConfig
from .errors import IcoStressError
from .statistics import StatisticsSnapshot


@dataclass(frozen=True)
class ReportOptions:
    applogic_url: str
    peatio_url: str
    currencies: list[str]
    traders_number: int
    threads_number: int
    transfers_number: int
    started_at: datetime
    finished_at: datetime


@dataclass(frozen=True)
class ReportResults:
    ops: float
    min: float
    max: float
    avg: float


@dataclass(frozen=True)
class Report:
    options: ReportOptions
    results: ReportResults

    def to_dict(self) -> dict[str, Any]:
        options = asdict(self.options)
        options["started_at"] = self.options.started_at.isoformat()
        options["finished_at"] = self.options.finished_at.isoformat()
        return {"options": options, "results": asdict(self.results)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        options = dict(data["options"])
        options["started_at"] = datetime.fromisoformat(str(options["started_at"]))
        options["finished_at"] = datetime.fromisoformat(str(options["finished_at"]))
        options["currencies"] = list(options["currencies"])
        return cls(
            options=ReportOptions(**options),
            results=ReportResults(**{k: float(v) for k, v in data["results"].items()}),
        )


def compute_report(config: RunConfig, snapshot: StatisticsSnapshot) -> Report:
    """
    Build the report from the final statistics of a finished workload.

    Raises:
        IcoStressError: If the workload never started or finished, or no
            purchase call was recorded.
    """
    if snapshot.started_at is None or snapshot.finished_at is None or snapshot.elapsed is None:
        raise IcoStressError("Report requested before the purchase workload finished")
    if snapshot.calls == 0:
        raise IcoStressError("No purchase calls were recorded")
    if snapshot.elapsed <= 0:
        raise IcoStressError("Purchase workload elapsed time must be positive")

    return Report(
        options=ReportOptions(
            applogic_url=config.applogic_url,
            peatio_url=config.peatio_url,
            currencies=list(config.currencies),
            traders_number=config.traders_number,
            threads_number=config.threads_number,
            transfers_number=snapshot.transfers,
            started_at=snapshot.started_at,
            finished_at=snapshot.finished_at,
        ),
        results=ReportResults(
            ops=snapshot.transfers / snapshot.elapsed,
            min=float(snapshot.min_latency),
            max=float(snapshot.max_latency),
            avg=snapshot.latency_sum / snapshot.calls,
        ),
    )


def write_report(report: Report, path: Path) -> Path:
    """Write *report* as YAML to *path*, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(report.to_dict(), handle, default_flow_style=False, sort_keys=False)
    return path


def load_report(path: Path) -> Report:
    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return Report.from_dict(data)
