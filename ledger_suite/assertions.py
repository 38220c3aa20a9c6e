"""
assertions.py - Reusable checks for conformance scenarios

Every check raises ProtocolViolation with both the observed and the expected
value on mismatch, so a failing scenario explains itself without a debugger.
"""

from __future__ import annotations
from typing import Any, Iterable, Optional, Sequence, Tuple, TypeVar

from .core import ProtocolViolation, as_account
from .env import LedgerEnv
from . import icrc1

K = TypeVar("K")
V = TypeVar("V")


def assert_equal(actual: Any, expected: Any) -> None:
    if actual != expected:
        raise ProtocolViolation(f"{actual!r} ≠ {expected!r}")


async def assert_balance(env: LedgerEnv, account: Any, expected: int) -> None:
    """
    Query the balance of `account` through `env` and compare it to `expected`.

    Args:
        env: Environment used for the query
        account: Account, or a bare owner identity for its default subaccount
        expected: Balance the account must hold

    Raises:
        ProtocolViolation: If the balances differ
        CallError: If the query itself fails
    """
    account = as_account(account)
    actual = await icrc1.balance_of(env, account)
    if actual != expected:
        raise ProtocolViolation(
            f"Expected the balance of account {account!r} to be {expected}, got {actual}"
        )


def lookup(entries: Iterable[Tuple[K, V]], key: K) -> Optional[V]:
    """Return the first value bound to `key`, or None if the key is absent."""
    for k, v in entries:
        if k == key:
            return v
    return None


def find_duplicate_key(entries: Sequence[Tuple[str, Any]]) -> Optional[str]:
    """
    Return a key that occurs more than once in `entries`, or None.

    Entries are sorted by key so duplicates become adjacent. The smallest
    duplicated key is the one reported.
    """
    keys = sorted(k for k, _ in entries)
    for k1, k2 in zip(keys, keys[1:]):
        if k1 == k2:
            return k1
    return None
