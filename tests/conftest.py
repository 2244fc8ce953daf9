"""
Shared pytest fixtures for the ICO stress harness test suite.

Provides in-memory RSA keys for both signing domains, a credential
provider built from them, and a fake applogic + peatio backend mounted
into a ``requests`` session so every component can be exercised end to
end without a network.

Key SDET Concepts Demonstrated:
- Session-scoped key generation to keep the suite fast
- Function-scoped backend state for per-test isolation
- Factory fixtures for run configuration with per-test overrides
"""

from __future__ import annotations

import random
from collections.abc import Callable

import pytest
import requests

from ico_stress.client import (
    APPLOGIC_PREFIX,
    LEDGER_PREFIX,
    MANAGEMENT_PREFIX,
    ApplogicApi,
    LedgerApi,
    ManagementApi,
    ServiceClient,
)
from ico_stress.config import RunConfig, SignerConfig, build_run_config
from ico_stress.credentials import CredentialProvider
from ico_stress.keys import encode_private_key, generate_key_pair
from tests.fakes import BackendState, FlaskAdapter, create_fake_backend

APPLOGIC_URL = "http://applogic.test"
PEATIO_URL = "http://peatio.test"


# -----------------------------------------------------------------------------
# Key Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def session_key_pair() -> tuple[str, str]:
    """RSA key pair of the single-signer session domain."""
    return generate_key_pair()


@pytest.fixture(scope="session")
def management_key_pair() -> tuple[str, str]:
    """RSA key pair of the ``applogic`` management signer."""
    return generate_key_pair()


@pytest.fixture
def session_signer(session_key_pair) -> SignerConfig:
    return SignerConfig(name="barong", private_key=encode_private_key(session_key_pair[0]))


@pytest.fixture
def management_signer(management_key_pair) -> SignerConfig:
    return SignerConfig(name="applogic", private_key=encode_private_key(management_key_pair[0]))


@pytest.fixture
def credentials(session_signer, management_signer) -> CredentialProvider:
    return CredentialProvider(session_signer, [management_signer])


# -----------------------------------------------------------------------------
# Fake Backend Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def backend_state() -> BackendState:
    """Fresh record of everything the fake backend receives."""
    return BackendState()


@pytest.fixture
def backend_app(backend_state, session_key_pair, management_key_pair):
    return create_fake_backend(
        backend_state,
        session_public_key=session_key_pair[1],
        management_public_keys={"applogic": management_key_pair[1]},
    )


@pytest.fixture
def http_session(backend_app):
    """A ``requests`` session whose HTTP traffic is served by the fake backend."""
    session = requests.Session()
    session.mount("http://", FlaskAdapter(backend_app))
    yield session
    session.close()


@pytest.fixture
def applogic_api(http_session) -> ApplogicApi:
    return ApplogicApi(ServiceClient(APPLOGIC_URL, APPLOGIC_PREFIX, session=http_session))


@pytest.fixture
def ledger_api(http_session) -> LedgerApi:
    return LedgerApi(ServiceClient(PEATIO_URL, LEDGER_PREFIX, session=http_session))


@pytest.fixture
def management_api(http_session) -> ManagementApi:
    return ManagementApi(ServiceClient(PEATIO_URL, MANAGEMENT_PREFIX, session=http_session))


@pytest.fixture
def rng() -> random.Random:
    """Seeded RNG so randomised payloads are reproducible."""
    return random.Random(1234)


# -----------------------------------------------------------------------------
# Run Configuration Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def run_config_factory(session_signer, management_signer, tmp_path) -> Callable[..., RunConfig]:
    """
    Factory for validated run configurations pointing at the fake backend.

    Example:
        def test_something(run_config_factory):
            config = run_config_factory(traders_number=3, currencies="btc")
    """

    def _make(**overrides) -> RunConfig:
        options = {
            "applogic_url": APPLOGIC_URL,
            "peatio_url": PEATIO_URL,
            "currencies": "btc,usd",
            "traders_number": 2,
            "threads_number": 1,
            "session_signer": session_signer,
            "management_signers": (management_signer,),
            "report_path": tmp_path / "report.yml",
            "ico_offers_number": 2,
            "ico_packages_number": 3,
        }
        options.update(overrides)
        return build_run_config(**options)

    return _make
