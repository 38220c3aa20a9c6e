"""
suite.py - ICRC-1 conformance scenarios and the test registry

Each scenario is a coroutine that talks to the ledger only through the
environment contract. It returns an Outcome when the ledger behaves and
raises a LedgerError describing the broken invariant when it does not.

Scenarios that move tokens never touch the caller's account beyond funding:
they fork fresh accounts, so scenarios running side by side cannot observe
each other's balances.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Coroutine, List, Optional

from .core import (
    Account, DEFAULT_SUBACCOUNT, ICRC1_STANDARD,
    METADATA_DECIMALS, METADATA_FEE, METADATA_NAME, METADATA_SYMBOL,
    LedgerError, Outcome, ProtocolViolation, SetupError, Transfer, TransferRejected, Value,
)
from .env import LedgerEnv, LedgerTransaction
from .assertions import assert_balance, assert_equal, find_duplicate_key, lookup
from . import icrc1


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class SuiteConfig:
    """Amounts used by the scenarios. The caller must hold enough to fund them."""
    seed_amount: int = 20_000
    transfer_amount: int = 10_000
    burn_amount: int = 10_000
    standard: str = ICRC1_STANDARD

    def __post_init__(self):
        if self.transfer_amount > self.seed_amount:
            raise ValueError(
                f"transfer_amount ({self.transfer_amount}) cannot exceed seed_amount ({self.seed_amount})"
            )
        if min(self.seed_amount, self.transfer_amount, self.burn_amount) <= 0:
            raise ValueError("Scenario amounts must be positive")


DEFAULT_CONFIG = SuiteConfig()


# ============================================================================
# TEST UNITS
# ============================================================================

class Test:
    """
    A named, not yet started unit of work.

    The coroutine can be handed out exactly once; the runner owns it from then on.
    """

    __test__ = False  # not a pytest class

    def __init__(self, name: str, action: Coroutine):
        self.name = name
        self._action: Optional[Coroutine] = action

    @property
    def started(self) -> bool:
        return self._action is None

    def take(self) -> Coroutine:
        """Hand out the coroutine. Raises RuntimeError on a second call."""
        if self._action is None:
            raise RuntimeError(f"Test {self.name!r} has already been started")
        action, self._action = self._action, None
        return action

    def __repr__(self) -> str:
        return f"Test({self.name!r}, started={self.started})"


def test(name: str, body: Coroutine) -> Test:
    return Test(name, body)


# ============================================================================
# ACCOUNT SETUP
# ============================================================================

async def setup_test_account(env: LedgerTransaction, amount: int) -> LedgerTransaction:
    """
    Fork a fresh account and fund it with `amount` tokens from the caller.

    Returns:
        Environment bound to the funded account

    Raises:
        SetupError: If the caller cannot fund the account or funding misbehaves.
                    Only the scenario that asked for the account fails.
    """
    balance = await icrc1.balance_of(env, env.principal())
    fee = await icrc1.transfer_fee(env)
    if balance < amount + fee:
        raise SetupError(
            f"the caller balance {balance} cannot fund a test account with {amount} tokens "
            f"plus the {fee} transfer fee"
        )

    receiver_env = env.fork()
    receiver = receiver_env.principal()
    try:
        await assert_balance(receiver_env, receiver, 0)
        await icrc1.transfer(env, Transfer.amount_to(amount, receiver))
        await assert_balance(receiver_env, Account(receiver), amount)
    except LedgerError as e:
        raise SetupError(f"failed to fund test account {receiver} with {amount} tokens") from e
    return receiver_env


# ============================================================================
# SCENARIOS
# ============================================================================

async def test_transfer(env: LedgerTransaction, config: SuiteConfig = DEFAULT_CONFIG) -> Outcome:
    """
    Checks whether the ledger supports token transfers and handles default
    subaccounts correctly.

    Expects the caller to hold at least 2 * (seed_amount + fee).
    """
    p1_env = await setup_test_account(env, config.seed_amount)
    p2_env = await setup_test_account(env, config.seed_amount)
    p1, p2 = p1_env.principal(), p2_env.principal()
    balance_p1 = await icrc1.balance_of(p1_env, p1)
    balance_p2 = await icrc1.balance_of(p2_env, p2)

    amount = config.transfer_amount
    try:
        await icrc1.transfer(p1_env, Transfer.amount_to(amount, p2))
    except TransferRejected as e:
        raise LedgerError(f"failed to transfer {amount} tokens to {p2}") from e

    await assert_balance(p2_env, Account(p2), balance_p2 + amount)

    try:
        await assert_balance(env, Account(p2, DEFAULT_SUBACCOUNT), balance_p2 + amount)
    except ProtocolViolation as e:
        raise ProtocolViolation(
            "the ledger does not treat accounts with an empty subaccount "
            "as accounts with the default subaccount"
        ) from e

    fee = await icrc1.transfer_fee(p1_env)
    await assert_balance(p1_env, p1, balance_p1 - amount - fee)
    return Outcome.passed()


async def test_burn(env: LedgerTransaction, config: SuiteConfig = DEFAULT_CONFIG) -> Outcome:
    """
    Checks whether the ledger supports token burns.

    Expects the caller to hold at least burn_amount + fee.
    """
    amount = config.burn_amount
    p1_env = await setup_test_account(env, amount)

    try:
        await icrc1.burn(p1_env, amount)
    except TransferRejected as e:
        raise LedgerError(f"failed to burn {amount} tokens") from e

    await assert_balance(p1_env, p1_env.principal(), 0)
    return Outcome.passed()


# (metadata key, endpoint name, endpoint call, conversion to a metadata Value)
_METADATA_ENDPOINTS = (
    (METADATA_NAME, "icrc1_name", icrc1.token_name, Value.text),
    (METADATA_SYMBOL, "icrc1_symbol", icrc1.token_symbol, Value.text),
    (METADATA_DECIMALS, "icrc1_decimals", icrc1.token_decimals, Value.nat),
    (METADATA_FEE, "icrc1_fee", icrc1.transfer_fee, Value.nat),
)


async def test_metadata(env: LedgerEnv) -> Outcome:
    """Checks whether the ledger metadata entries agree with the named endpoints."""
    entries = await icrc1.metadata(env)

    duplicate = find_duplicate_key(entries)
    if duplicate is not None:
        raise ProtocolViolation(f"Key {duplicate} is duplicated in the metadata")

    for key, endpoint, fetch, to_value in _METADATA_ENDPOINTS:
        meta_value = lookup(entries, key)
        if meta_value is None:
            continue
        endpoint_value = to_value(await fetch(env))
        try:
            assert_equal(endpoint_value, meta_value)
        except ProtocolViolation as e:
            raise ProtocolViolation(
                f"{key} metadata entry does not match the {endpoint} endpoint"
            ) from e
    return Outcome.passed()


async def test_supported_standards(env: LedgerEnv, config: SuiteConfig = DEFAULT_CONFIG) -> Outcome:
    """Checks whether the ledger advertises support for the ICRC-1 standard."""
    standards = await icrc1.supported_standards(env)
    if not any(std.name == config.standard for std in standards):
        raise ProtocolViolation(
            f"The ledger does not claim support for {config.standard}: {standards!r}"
        )
    return Outcome.passed()


# ============================================================================
# REGISTRY
# ============================================================================

def test_suite(env: LedgerTransaction, config: Optional[SuiteConfig] = None) -> List[Test]:
    """Return the entire list of tests, bound to `env`, in reporting order."""
    config = config or DEFAULT_CONFIG
    return [
        test("basic:transfer", test_transfer(env, config)),
        test("basic:burn", test_burn(env, config)),
        test("basic:metadata", test_metadata(env)),
        test("basic:supported_standards", test_supported_standards(env, config)),
    ]
