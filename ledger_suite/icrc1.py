"""
icrc1.py - Contract calls with transport context

Thin wrappers the scenarios use instead of calling a binding directly. Each
one tags transport failures with the ledger method that failed, so a broken
connection reads as "failed to call icrc1_balance_of ..." in the report,
while rejections of transfers and burns (TransferRejected) propagate
untouched. A read query that answers with a rejection is a transport-level
fault and is wrapped like any other.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, List, TypeVar

from .core import (
    CallError, MetadataEntry, StandardRecord, Transfer, TransferRejected,
    as_account,
)
from .env import LedgerEnv, LedgerTransaction

T = TypeVar("T")


async def _call(
    method: str, call: Callable[[], Awaitable[T]], detail: str = "",
    rejectable: bool = False,
) -> T:
    # Only transfer-shaped calls may answer with TransferRejected.
    try:
        return await call()
    except CallError:
        raise
    except TransferRejected as e:
        if rejectable:
            raise
        raise CallError(_failed(method, detail)) from e
    except Exception as e:
        raise CallError(_failed(method, detail)) from e


def _failed(method: str, detail: str) -> str:
    suffix = f" {detail}" if detail else ""
    return f"failed to call {method}{suffix}"


async def balance_of(env: LedgerEnv, account: Any) -> int:
    account = as_account(account)
    return await _call(
        "icrc1_balance_of", lambda: env.balance_of(account), f"for {account!r}"
    )


async def transfer_fee(env: LedgerEnv) -> int:
    return await _call("icrc1_fee", env.transfer_fee)


async def metadata(env: LedgerEnv) -> List[MetadataEntry]:
    return list(await _call("icrc1_metadata", env.metadata))


async def supported_standards(env: LedgerEnv) -> List[StandardRecord]:
    return list(await _call("icrc1_supported_standards", env.supported_standards))


async def token_name(env: LedgerEnv) -> str:
    return await _call("icrc1_name", env.token_name)


async def token_symbol(env: LedgerEnv) -> str:
    return await _call("icrc1_symbol", env.token_symbol)


async def token_decimals(env: LedgerEnv) -> int:
    return await _call("icrc1_decimals", env.token_decimals)


async def transfer(env: LedgerEnv, args: Transfer) -> int:
    """Submit a transfer. Raises TransferRejected or CallError."""
    return await _call(
        "icrc1_transfer", lambda: env.transfer(args),
        f"to move {args.amount} tokens to {args.to!r}", rejectable=True,
    )


async def burn(env: LedgerTransaction, amount: int) -> int:
    """Burn from the caller's account. Raises TransferRejected or CallError."""
    return await _call(
        "icrc1_transfer", lambda: env.burn(amount),
        f"to burn {amount} tokens", rejectable=True,
    )
