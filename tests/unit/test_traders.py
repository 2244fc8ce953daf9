"""
Unit tests for the trader pool.

Key SDET Concepts Demonstrated:
- Memoisation checks via side-effect counting on the fake backend
- Forcing a rare branch (uid collision) with a scripted generator
- Fail-fast assertions: nothing cached after a failed registration
"""

from __future__ import annotations

import threading

import pytest

from ico_stress.errors import HttpError
from ico_stress.principals import PrincipalKind
from ico_stress.traders import TraderPool

pytestmark = pytest.mark.unit

MEMBERS_PATH = "/api/v2/members/me"


@pytest.fixture
def pool(ledger_api, credentials, rng) -> TraderPool:
    return TraderPool(ledger_api, credentials, rng=rng)


@pytest.mark.parametrize("size", [2, 5, 17])
def test_first_call_registers_exactly_n_traders(pool, backend_state, size):
    """Test that the first call generates and registers n traders."""
    # Act
    traders = pool.get_traders(size)

    # Assert
    assert len(traders) == size
    assert backend_state.calls_to(MEMBERS_PATH) == size
    assert sorted(backend_state.registrations) == sorted(t.uid for t in traders)
    assert all(t.kind is PrincipalKind.TRADER for t in traders)


def test_second_call_returns_cached_pool_without_registering(pool, backend_state):
    """Test that repeated access returns the identical pool and sends nothing."""
    # Arrange
    first = pool.get_traders(3)

    # Act
    second = pool.get_traders(3)

    # Assert
    assert second is first
    assert backend_state.calls_to(MEMBERS_PATH) == 3


def test_later_call_with_different_size_keeps_original_pool(pool, backend_state):
    first = pool.get_traders(2)

    assert pool.get_traders(4) is first
    assert backend_state.calls_to(MEMBERS_PATH) == 2


@pytest.mark.parametrize("size", [2, 50, 200])
def test_trader_uids_are_pairwise_distinct(pool, size):
    """Test that uids and emails never repeat inside a pool."""
    traders = pool.get_traders(size)

    uids = [t.uid for t in traders]
    assert len(set(uids)) == size
    assert len({t.email for t in traders}) == size
    assert all(uid.startswith("ID") and len(uid) == 12 for uid in uids)


def test_uid_collision_is_resampled(pool, monkeypatch):
    """Test that a sampled uid already in use is discarded and redrawn."""
    # Arrange
    scripted = iter(["IDAAAAAAAAAA", "IDAAAAAAAAAA", "IDAAAAAAAAAA", "IDBBBBBBBBBB"])
    monkeypatch.setattr(pool, "_random_uid", lambda: next(scripted))

    # Act
    traders = pool.get_traders(2)

    # Assert
    assert [t.uid for t in traders] == ["IDAAAAAAAAAA", "IDBBBBBBBBBB"]


def test_concurrent_first_calls_build_one_pool(pool, backend_state):
    """Test that racing callers all receive the same pool and register it once."""
    # Arrange
    results = []
    barrier = threading.Barrier(4)

    def _worker():
        barrier.wait()
        results.append(pool.get_traders(3))

    threads = [threading.Thread(target=_worker) for _ in range(4)]

    # Act
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert
    assert all(result is results[0] for result in results)
    assert backend_state.calls_to(MEMBERS_PATH) == 3


def test_registration_failure_aborts_generation(pool, backend_state):
    """Test that a failed registration stops the pool and caches nothing."""
    # Arrange
    backend_state.failures[MEMBERS_PATH] = 503

    # Act & Assert
    with pytest.raises(HttpError) as exc_info:
        pool.get_traders(5)

    assert exc_info.value.status_code == 503
    assert backend_state.calls_to(MEMBERS_PATH) == 1

    del backend_state.failures[MEMBERS_PATH]
    assert len(pool.get_traders(2)) == 2
