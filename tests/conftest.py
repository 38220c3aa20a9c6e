"""
conftest.py - Shared pytest fixtures for ledger_suite tests

Provides common fixtures used across unit and conformance tests:
- In-memory ledgers (empty, funded)
- An environment bound to the funded caller
"""

import pytest

from ledger_suite import Account, InMemoryEnv, InMemoryLedger

from tests.fake_env import CALLER, FEE, SUITE_FUNDING


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no balances."""
    return InMemoryLedger("test", fee=FEE)


@pytest.fixture
def funded_ledger(empty_ledger):
    """Ledger with the caller holding enough to run the whole suite."""
    empty_ledger.mint(Account(CALLER), SUITE_FUNDING)
    return empty_ledger


@pytest.fixture
def env(funded_ledger):
    """Environment bound to the funded caller."""
    return InMemoryEnv(funded_ledger, CALLER)
