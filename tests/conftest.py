"""
Shared test fixtures for quota-ledger tests.

This module provides:
- Deterministic identity factories
- Fresh client/node ledgers with default settings
- Global settings isolation between tests
"""

from __future__ import annotations

import pytest

from quota_ledger.config import LedgerConfig, reset_settings
from quota_ledger.identity import Identity
from quota_ledger.store import ClientLedger, NodeLedger

from tests._ledger_testkit import QUOTA, make_identity


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep environment-derived settings from leaking between tests."""
    for var in (
        "QUOTA_LEDGER_DEFAULT_QUOTA",
        "QUOTA_LEDGER_AUTO_GRANT",
        "QUOTA_LEDGER_LOG_LEVEL",
        "QUOTA_LEDGER_LOG_FORMAT",
        "QUOTA_LEDGER_TELEMETRY_ENABLED",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def identity() -> Identity:
    return make_identity("a")


@pytest.fixture
def identities() -> list[Identity]:
    return [make_identity(i) for i in range(5)]


@pytest.fixture
def client_ledger() -> ClientLedger:
    return ClientLedger(config=LedgerConfig(default_quota=QUOTA))


@pytest.fixture
def node_ledger() -> NodeLedger:
    return NodeLedger(config=LedgerConfig(default_quota=QUOTA))
