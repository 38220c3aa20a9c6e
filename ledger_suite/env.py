"""
env.py - Ledger Environment Contract

The two capability tiers a ledger binding implements so the suite can run
against it without knowing anything about its transport:

    LedgerEnv           read queries plus transfer submission
    LedgerTransaction   LedgerEnv plus burn() and fork()

Every query and submission is a coroutine and may suspend while the binding
waits for the ledger. A binding signals a protocol-level rejection by raising
TransferRejected; any other exception is treated as a transport failure.
Bindings are shared by concurrently running scenarios and must tolerate
interleaved calls.
"""

from __future__ import annotations
from typing import List, Protocol, runtime_checkable

from .core import Account, MetadataEntry, StandardRecord, Transfer


@runtime_checkable
class LedgerEnv(Protocol):
    """
    Read and transfer access to a ledger, bound to one caller identity.
    """

    def principal(self) -> str:
        """
        Return the identity this environment calls the ledger as.

        The bare owner implies the default subaccount: it denotes
        Account(owner), the same account a null subaccount selects.
        """
        ...

    async def balance_of(self, account: Account) -> int:
        """Return the balance of `account` in minor units."""
        ...

    async def transfer_fee(self) -> int:
        """Return the fee currently charged per transfer."""
        ...

    async def metadata(self) -> List[MetadataEntry]:
        """Return the ledger metadata. Order is irrelevant, keys should be unique."""
        ...

    async def supported_standards(self) -> List[StandardRecord]:
        ...

    async def token_name(self) -> str:
        ...

    async def token_symbol(self) -> str:
        ...

    async def token_decimals(self) -> int:
        ...

    async def transfer(self, args: Transfer) -> int:
        """
        Submit a transfer from the caller's account.

        Returns:
            Index of the transaction in the ledger.

        Raises:
            TransferRejected: If the ledger rejects the transfer.
        """
        ...


@runtime_checkable
class LedgerTransaction(LedgerEnv, Protocol):
    """
    A LedgerEnv that can also burn tokens and derive fresh test accounts.
    """

    async def burn(self, amount: int) -> int:
        """
        Burn `amount` tokens from the caller's account.

        Raises:
            TransferRejected: If the ledger rejects the burn.
        """
        ...

    def fork(self) -> LedgerTransaction:
        """Return an environment bound to a new, previously unused account with zero balance."""
        ...
