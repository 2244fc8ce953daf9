"""
Unit tests for shared run statistics and report computation.

Key SDET Concepts Demonstrated:
- Hammering a lock-protected aggregate from many threads to catch lost updates
- Property-style assertions (min <= avg <= max, avg == sum / count)
- YAML round-trip of the report without precision loss
"""

from __future__ import annotations

import math
import random
import threading

import pytest
import yaml

from ico_stress.errors import IcoStressError
from ico_stress.report import compute_report, load_report, write_report
from ico_stress.statistics import RunStatistics

pytestmark = pytest.mark.unit


def test_record_transfer_updates_all_aggregates():
    """Test counter, min, max, sum and count after a few recordings."""
    # Arrange
    statistics = RunStatistics()

    # Act
    for latency in (0.2, 0.05, 0.4):
        statistics.record_transfer(latency)
    snapshot = statistics.snapshot()

    # Assert
    assert snapshot.transfers == 3
    assert snapshot.calls == 3
    assert snapshot.min_latency == 0.05
    assert snapshot.max_latency == 0.4
    assert math.isclose(snapshot.latency_sum, 0.65)
    assert math.isclose(snapshot.avg_latency, 0.65 / 3)


def test_negative_latency_is_rejected():
    with pytest.raises(ValueError):
        RunStatistics().record_transfer(-0.1)


def test_concurrent_recording_loses_no_updates():
    """Test that parallel workers never lose an increment."""
    # Arrange
    statistics = RunStatistics()
    workers, per_worker = 16, 500
    latencies = [[random.Random(w).uniform(0.001, 0.5) for _ in range(per_worker)] for w in range(workers)]
    barrier = threading.Barrier(workers)

    def _worker(values):
        barrier.wait()
        for value in values:
            statistics.record_transfer(value)

    threads = [threading.Thread(target=_worker, args=(values,)) for values in latencies]

    # Act
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    snapshot = statistics.snapshot()

    # Assert
    flat = [value for values in latencies for value in values]
    assert snapshot.transfers == workers * per_worker
    assert snapshot.calls == workers * per_worker
    assert snapshot.min_latency == min(flat)
    assert snapshot.max_latency == max(flat)
    assert math.isclose(snapshot.latency_sum, sum(flat), rel_tol=1e-9)
    assert snapshot.min_latency <= snapshot.avg_latency <= snapshot.max_latency


def test_snapshot_has_elapsed_only_after_finish():
    statistics = RunStatistics()
    statistics.mark_started()

    assert statistics.snapshot().elapsed is None

    statistics.mark_finished()
    snapshot = statistics.snapshot()
    assert snapshot.elapsed >= 0
    assert snapshot.started_at <= snapshot.finished_at


def _finished_statistics(latencies):
    statistics = RunStatistics()
    statistics.mark_started()
    for latency in latencies:
        statistics.record_transfer(latency)
    statistics.mark_finished()
    return statistics


def test_compute_report_derives_throughput_and_latency(run_config_factory):
    """Test ops = transfers / elapsed and avg = sum / count."""
    # Arrange
    config = run_config_factory()
    snapshot = _finished_statistics([0.1, 0.3, 0.2, 0.4]).snapshot()

    # Act
    report = compute_report(config, snapshot)

    # Assert
    assert report.options.transfers_number == 4
    assert report.options.currencies == ["btc", "usd"]
    assert report.options.traders_number == 2
    assert report.options.threads_number == 1
    assert math.isclose(report.results.ops, 4 / snapshot.elapsed)
    assert report.results.min == 0.1
    assert report.results.max == 0.4
    assert math.isclose(report.results.avg, 0.25)
    assert report.results.min <= report.results.avg <= report.results.max


def test_compute_report_requires_finished_workload(run_config_factory):
    statistics = RunStatistics()
    statistics.mark_started()
    statistics.record_transfer(0.1)

    with pytest.raises(IcoStressError, match="before the purchase workload finished"):
        compute_report(run_config_factory(), statistics.snapshot())


def test_compute_report_requires_recorded_calls(run_config_factory):
    with pytest.raises(IcoStressError, match="No purchase calls"):
        compute_report(run_config_factory(), _finished_statistics([]).snapshot())


def test_report_yaml_round_trip_preserves_numbers(run_config_factory, tmp_path):
    """Test that writing then loading a report reproduces every field exactly."""
    # Arrange
    config = run_config_factory()
    report = compute_report(config, _finished_statistics([0.123456789, 0.987654321]).snapshot())
    path = tmp_path / "nested" / "report.yml"

    # Act
    write_report(report, path)
    loaded = load_report(path)

    # Assert
    assert loaded == report
    assert loaded.results.ops == report.results.ops
    assert loaded.results.avg == report.results.avg


def test_report_yaml_layout(run_config_factory, tmp_path):
    """Test the options/results sections and their keys."""
    report = compute_report(run_config_factory(), _finished_statistics([0.5]).snapshot())
    path = write_report(report, tmp_path / "report.yml")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))

    assert list(data) == ["options", "results"]
    assert set(data["options"]) == {
        "applogic_url",
        "peatio_url",
        "currencies",
        "traders_number",
        "threads_number",
        "transfers_number",
        "started_at",
        "finished_at",
    }
    assert set(data["results"]) == {"ops", "min", "max", "avg"}
