"""
ledger_suite - ICRC-1 Ledger Conformance Suite

Checks a token ledger against the ICRC-1 protocol: transfers, burns,
default-subaccount handling, metadata consistency and standards
advertisement. The suite only talks to the ledger through the LedgerEnv /
LedgerTransaction protocols, so any ledger can be tested once it has a
binding.

Usage:
    from ledger_suite import Account, InMemoryLedger, InMemoryEnv, run_suite

    ledger = InMemoryLedger("test", fee=10)
    ledger.mint(Account("alice"), 100_000)

    # Prints TAP version 14 output, returns True if nothing failed
    ok = run_suite(InMemoryEnv(ledger, "alice"))

    # Or, inside a running event loop
    ok = await execute_tests(test_suite(env))
"""

__version__ = "0.1.0"

# Core types
from .core import (
    Account,
    Value,
    ValueKind,
    MetadataEntry,
    StandardRecord,
    Transfer,
    TransferError,
    TransferErrorKind,
    BurnError,
    Outcome,
    OutcomeStatus,
    LedgerError,
    CallError,
    ProtocolViolation,
    SetupError,
    TransferRejected,
    ICRC1_STANDARD,
    DEFAULT_SUBACCOUNT,
    SUBACCOUNT_LENGTH,
    METADATA_NAME,
    METADATA_SYMBOL,
    METADATA_DECIMALS,
    METADATA_FEE,
    TAP_VERSION,
)

# Environment contract
from .env import LedgerEnv, LedgerTransaction

# Assertions
from .assertions import assert_equal, assert_balance, lookup, find_duplicate_key

# Scenarios and registry
from .suite import (
    SuiteConfig,
    Test,
    test,
    setup_test_account,
    test_transfer,
    test_burn,
    test_metadata,
    test_supported_standards,
    test_suite,
)

# Runner
from .runner import TestReport, execute_tests, collect_reports, run_suite, format_error

# Reference ledger
from .memory import InMemoryLedger, InMemoryEnv, TransactionRecord
