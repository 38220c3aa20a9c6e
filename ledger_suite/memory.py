"""
memory.py - In-Memory Reference Ledger

A small ICRC-1 ledger that lives in process memory, plus the environment
binding the suite runs against. It is the reference the suite is tested
with and a template for writing bindings to real ledgers.

Key behavior:
    - Balances are keyed by Account.normalized(), so an absent subaccount
      and the all-zero subaccount are the same account
    - Transfer fees are destroyed, not collected
    - A transfer to the minting account is a burn and pays no fee
    - A transfer from the minting account is a mint
    - Every applied transfer is recorded in the transaction log
"""

from __future__ import annotations
import asyncio
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from .core import (
    Account, ICRC1_STANDARD, METADATA_DECIMALS, METADATA_FEE, METADATA_NAME, METADATA_SYMBOL,
    MetadataEntry, StandardRecord, Transfer, TransferError, TransferRejected, Value,
)

ICRC1_URL = "https://github.com/dfinity/ICRC-1"


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    An applied transfer, mint or burn.

    Attributes:
        index: Position in the transaction log
        kind: "mint", "burn" or "transfer"
        source: Debited account (None for mints)
        dest: Credited account (None for burns)
        amount: Tokens moved
        fee: Fee charged to the source
    """
    index: int
    kind: str
    source: Optional[Account]
    dest: Optional[Account]
    amount: int
    fee: int
    memo: Optional[bytes] = None


class InMemoryLedger:
    """
    Single-token ledger held in memory.

    Not thread-safe. Safe to share between coroutines on one event loop:
    every mutation completes without suspending.

    Example:
        ledger = InMemoryLedger("test")
        ledger.mint(Account("alice"), 40_000)
        env = InMemoryEnv(ledger, "alice")
        run_suite(env)
    """

    def __init__(
        self,
        name: str = "ledger",
        fee: int = 10,
        token_name: str = "Test Token",
        token_symbol: str = "XTST",
        decimals: int = 8,
        minting_owner: str = "minting_account",
        standards: Optional[List[StandardRecord]] = None,
        extra_metadata: Optional[List[MetadataEntry]] = None,
        verbose: bool = False,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier, also the prefix of forked account owners
            fee: Transfer fee in minor units
            token_name, token_symbol, decimals: Token description
            minting_owner: Owner of the minting account
            standards: Advertised standards (default: ICRC-1 only)
            extra_metadata: Metadata entries appended to the icrc1:* entries
            verbose: Print applied and rejected transfers to stderr
        """
        if fee < 0:
            raise ValueError(f"Fee cannot be negative, got {fee}")
        self.name = name
        self.fee = fee
        self.token_name = token_name
        self.token_symbol = token_symbol
        self.decimals = decimals
        self.minting_account = Account(minting_owner)
        self.standards = list(standards) if standards is not None else [
            StandardRecord(ICRC1_STANDARD, ICRC1_URL)
        ]
        self.extra_metadata = list(extra_metadata or [])
        self.verbose = verbose
        self.balances: Dict[Account, int] = defaultdict(int)
        self.transaction_log: List[TransactionRecord] = []
        self._forks = 0

    # ========================================================================
    # QUERIES
    # ========================================================================

    def balance_of(self, account: Account) -> int:
        return self.balances.get(account.normalized(), 0)

    def total_supply(self) -> int:
        """Sum of all balances. The minting account never holds tokens."""
        return sum(self.balances.values())

    def metadata(self) -> List[MetadataEntry]:
        return [
            (METADATA_NAME, Value.text(self.token_name)),
            (METADATA_SYMBOL, Value.text(self.token_symbol)),
            (METADATA_DECIMALS, Value.nat(self.decimals)),
            (METADATA_FEE, Value.nat(self.fee)),
        ] + self.extra_metadata

    def supported_standards(self) -> List[StandardRecord]:
        return list(self.standards)

    def next_owner(self) -> str:
        """Derive an owner identity no account has used yet."""
        self._forks += 1
        return f"{self.name}-account-{self._forks}"

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def mint(self, account: Account, amount: int) -> int:
        """Issue `amount` new tokens to `account`. Returns the transaction index."""
        return self.transfer(self.minting_account, Transfer(to=account, amount=amount))

    def transfer(self, caller: Account, args: Transfer) -> int:
        """
        Apply a transfer from `caller` atomically.

        Returns:
            Index of the new transaction

        Raises:
            TransferRejected: If the fee is wrong, the burn is too small or
                              the caller cannot cover amount plus fee
        """
        source = Account(caller.owner, args.from_subaccount).normalized()
        dest = args.to.normalized()
        minting = self.minting_account

        if source == minting and dest == minting:
            self._reject(TransferError.generic(1, "the minting account cannot transfer to itself"))

        if source == minting:
            kind, fee = "mint", 0
        elif dest == minting:
            kind, fee = "burn", 0
            if args.amount < self.fee:
                self._reject(TransferError.bad_burn(self.fee))
        else:
            kind, fee = "transfer", self.fee

        if args.fee is not None and args.fee != fee:
            self._reject(TransferError.bad_fee(fee))

        if kind != "mint":
            balance = self.balances.get(source, 0)
            if balance < args.amount + fee:
                self._reject(TransferError.insufficient_funds(balance))
            self.balances[source] = balance - args.amount - fee
        if kind != "burn":
            self.balances[dest] += args.amount

        record = TransactionRecord(
            index=len(self.transaction_log),
            kind=kind,
            source=None if kind == "mint" else source,
            dest=None if kind == "burn" else dest,
            amount=args.amount,
            fee=fee,
            memo=args.memo,
        )
        self.transaction_log.append(record)
        if self.verbose:
            print(f"✓ APPLIED #{record.index}: {kind} {args.amount} {source!r} → {dest!r} (fee {fee})",
                  file=sys.stderr)
        return record.index

    def _reject(self, error: TransferError) -> None:
        if self.verbose:
            print(f"✗ REJECTED: {error}", file=sys.stderr)
        raise TransferRejected(error)


class InMemoryEnv:
    """
    LedgerTransaction binding for an InMemoryLedger, acting as one owner.

    Each call yields to the event loop first (after `latency` seconds) so
    concurrently running scenarios interleave the way they would against a
    remote ledger.
    """

    def __init__(self, ledger: InMemoryLedger, owner: str, latency: float = 0.0):
        self.ledger = ledger
        self.owner = owner
        self.latency = latency

    def principal(self) -> str:
        # Account(self.owner) with the default subaccount
        return self.owner

    async def _suspend(self) -> None:
        await asyncio.sleep(self.latency)

    async def balance_of(self, account: Account) -> int:
        await self._suspend()
        return self.ledger.balance_of(account)

    async def transfer_fee(self) -> int:
        await self._suspend()
        return self.ledger.fee

    async def metadata(self) -> List[MetadataEntry]:
        await self._suspend()
        return self.ledger.metadata()

    async def supported_standards(self) -> List[StandardRecord]:
        await self._suspend()
        return self.ledger.supported_standards()

    async def token_name(self) -> str:
        await self._suspend()
        return self.ledger.token_name

    async def token_symbol(self) -> str:
        await self._suspend()
        return self.ledger.token_symbol

    async def token_decimals(self) -> int:
        await self._suspend()
        return self.ledger.decimals

    async def transfer(self, args: Transfer) -> int:
        await self._suspend()
        return self.ledger.transfer(Account(self.owner), args)

    async def burn(self, amount: int) -> int:
        await self._suspend()
        return self.ledger.transfer(
            Account(self.owner), Transfer(to=self.ledger.minting_account, amount=amount)
        )

    def fork(self) -> InMemoryEnv:
        return type(self)(self.ledger, self.ledger.next_owner(), self.latency)

    def __repr__(self) -> str:
        return f"InMemoryEnv({self.ledger.name!r}, owner={self.owner!r})"
