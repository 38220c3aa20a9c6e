"""
Core types for the ledger conformance suite.

This module provides the foundational data structures shared by the
environment contract, the scenarios and the runner:
1. Constants: protocol identifiers and well-known metadata keys
2. Immutable data structures: Account, Value, StandardRecord, Transfer
3. Rejections: TransferError and its kinds
4. Exceptions: LedgerError and the failure taxonomy
5. Outcome: terminal result of a scenario that did not fail

Amounts are plain Python ints in the token's minor unit. They never
overflow and must never go negative.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

# Name the ledger must advertise in icrc1_supported_standards.
ICRC1_STANDARD = "ICRC-1"

SUBACCOUNT_LENGTH = 32

# An absent subaccount and this one denote the same account.
DEFAULT_SUBACCOUNT = bytes(SUBACCOUNT_LENGTH)

# Well-known metadata keys cross-checked against the dedicated endpoints.
METADATA_NAME = "icrc1:name"
METADATA_SYMBOL = "icrc1:symbol"
METADATA_DECIMALS = "icrc1:decimals"
METADATA_FEE = "icrc1:fee"

TAP_VERSION = 14


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all errors raised by the suite."""
    pass


class CallError(LedgerError):
    """Raised when a ledger call fails at the transport level (unreachable, malformed reply)."""
    pass


class ProtocolViolation(LedgerError):
    """Raised when a well-formed ledger reply breaks a protocol invariant."""
    pass


class SetupError(LedgerError):
    """Raised when a scenario cannot seed its test accounts."""
    pass


class TransferRejected(LedgerError):
    """
    Raised when the ledger rejects a transfer or burn at the protocol level.

    Attributes:
        error: The TransferError returned by the ledger.
    """

    def __init__(self, error: TransferError):
        super().__init__(f"the ledger rejected the operation: {error}")
        self.error = error


# ============================================================================
# ACCOUNTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Account:
    """
    An owner identity plus an optional 32-byte subaccount.

    Equality is structural: Account("a") != Account("a", DEFAULT_SUBACCOUNT).
    A conformant ledger must nevertheless treat both as the same account,
    which is why ledgers key balances by normalized().
    """
    owner: str
    subaccount: Optional[bytes] = None

    def __post_init__(self):
        if not self.owner or not self.owner.strip():
            raise ValueError("Account owner cannot be empty")
        if self.subaccount is not None:
            if not isinstance(self.subaccount, bytes):
                raise ValueError(f"Subaccount must be bytes, got {type(self.subaccount)}")
            if len(self.subaccount) != SUBACCOUNT_LENGTH:
                raise ValueError(
                    f"Subaccount must be {SUBACCOUNT_LENGTH} bytes, got {len(self.subaccount)}"
                )

    @property
    def effective_subaccount(self) -> bytes:
        return self.subaccount if self.subaccount is not None else DEFAULT_SUBACCOUNT

    def normalized(self) -> Account:
        """Return the canonical form, with the default subaccount left absent."""
        if self.subaccount is None or self.subaccount == DEFAULT_SUBACCOUNT:
            return Account(self.owner)
        return Account(self.owner, self.subaccount)

    def __repr__(self) -> str:
        if self.subaccount is None:
            return f"Account({self.owner})"
        return f"Account({self.owner}, subaccount={self.subaccount.hex()})"


def as_account(account: Any) -> Account:
    """Accept either an Account or a bare owner identity."""
    if isinstance(account, Account):
        return account
    return Account(account)


# ============================================================================
# METADATA
# ============================================================================

class ValueKind(Enum):
    """Variants of a metadata value."""
    NAT = "Nat"
    INT = "Int"
    TEXT = "Text"
    BLOB = "Blob"
    ARRAY = "Array"


@dataclass(frozen=True, slots=True)
class Value:
    """
    Tagged metadata value.

    Two values are equal only if both the kind and the payload match, so
    Value.nat(8) != Value.int(8).
    """
    kind: ValueKind
    data: Any

    @classmethod
    def nat(cls, n: int) -> Value:
        if n < 0:
            raise ValueError(f"Nat cannot be negative, got {n}")
        return cls(ValueKind.NAT, int(n))

    @classmethod
    def integer(cls, n: int) -> Value:
        return cls(ValueKind.INT, n)

    @classmethod
    def text(cls, s: str) -> Value:
        return cls(ValueKind.TEXT, s)

    @classmethod
    def blob(cls, b: bytes) -> Value:
        return cls(ValueKind.BLOB, bytes(b))

    @classmethod
    def array(cls, values) -> Value:
        return cls(ValueKind.ARRAY, tuple(values))

    def __repr__(self) -> str:
        if self.kind is ValueKind.ARRAY:
            return f"Array([{', '.join(repr(v) for v in self.data)}])"
        return f"{self.kind.value}({self.data!r})"


# A single key/value pair of a metadata snapshot.
MetadataEntry = Tuple[str, Value]


@dataclass(frozen=True, slots=True)
class StandardRecord:
    """A standard the ledger claims to support. Only the name is inspected."""
    name: str
    url: str = ""

    def __repr__(self) -> str:
        return f"StandardRecord(name={self.name!r}, url={self.url!r})"


# ============================================================================
# TRANSFERS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transfer:
    """
    Arguments of an icrc1_transfer call.

    Attributes:
        to: Receiving account.
        amount: Tokens to move, in minor units.
        from_subaccount: Sender subaccount (default subaccount if None).
        fee: Fee the caller expects to pay; None lets the ledger charge its own.
        memo: Opaque caller-supplied bytes.
        created_at_time: Caller timestamp in nanoseconds, for deduplication.
    """
    to: Account
    amount: int
    from_subaccount: Optional[bytes] = None
    fee: Optional[int] = None
    memo: Optional[bytes] = None
    created_at_time: Optional[int] = None

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Transfer amount cannot be negative, got {self.amount}")
        if self.fee is not None and self.fee < 0:
            raise ValueError(f"Transfer fee cannot be negative, got {self.fee}")

    @classmethod
    def amount_to(cls, amount: int, owner: Any) -> Transfer:
        """Transfer `amount` to the default subaccount of `owner`."""
        return cls(to=as_account(owner), amount=amount)


class TransferErrorKind(Enum):
    """Protocol-level reasons for rejecting a transfer or burn."""
    BAD_FEE = "BadFee"
    BAD_BURN = "BadBurn"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    TOO_OLD = "TooOld"
    CREATED_IN_FUTURE = "CreatedInFuture"
    DUPLICATE = "Duplicate"
    TEMPORARILY_UNAVAILABLE = "TemporarilyUnavailable"
    GENERIC_ERROR = "GenericError"


@dataclass(frozen=True, slots=True)
class TransferError:
    """
    A rejection returned by icrc1_transfer.

    Only the payload fields belonging to `kind` are set.
    """
    kind: TransferErrorKind
    expected_fee: Optional[int] = None
    min_burn_amount: Optional[int] = None
    balance: Optional[int] = None
    ledger_time: Optional[int] = None
    duplicate_of: Optional[int] = None
    error_code: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def bad_fee(cls, expected_fee: int) -> TransferError:
        return cls(TransferErrorKind.BAD_FEE, expected_fee=expected_fee)

    @classmethod
    def bad_burn(cls, min_burn_amount: int) -> TransferError:
        return cls(TransferErrorKind.BAD_BURN, min_burn_amount=min_burn_amount)

    @classmethod
    def insufficient_funds(cls, balance: int) -> TransferError:
        return cls(TransferErrorKind.INSUFFICIENT_FUNDS, balance=balance)

    @classmethod
    def too_old(cls) -> TransferError:
        return cls(TransferErrorKind.TOO_OLD)

    @classmethod
    def created_in_future(cls, ledger_time: int) -> TransferError:
        return cls(TransferErrorKind.CREATED_IN_FUTURE, ledger_time=ledger_time)

    @classmethod
    def duplicate(cls, duplicate_of: int) -> TransferError:
        return cls(TransferErrorKind.DUPLICATE, duplicate_of=duplicate_of)

    @classmethod
    def temporarily_unavailable(cls) -> TransferError:
        return cls(TransferErrorKind.TEMPORARILY_UNAVAILABLE)

    @classmethod
    def generic(cls, error_code: int, message: str) -> TransferError:
        return cls(TransferErrorKind.GENERIC_ERROR, error_code=error_code, message=message)

    def __str__(self) -> str:
        fields = [
            ("expected_fee", self.expected_fee),
            ("min_burn_amount", self.min_burn_amount),
            ("balance", self.balance),
            ("ledger_time", self.ledger_time),
            ("duplicate_of", self.duplicate_of),
            ("error_code", self.error_code),
            ("message", self.message),
        ]
        parts = [f"{k}: {v!r}" if isinstance(v, str) else f"{k}: {v}"
                 for k, v in fields if v is not None]
        if not parts:
            return self.kind.value
        return f"{self.kind.value} {{ {', '.join(parts)} }}"


# A burn is a transfer to the minting account and fails the same ways.
BurnError = TransferError


# ============================================================================
# OUTCOMES
# ============================================================================

class OutcomeStatus(Enum):
    """
    Terminal state of a unit of work.

    FAILED is never carried by an Outcome: a failing scenario raises, and
    only the runner records FAILED.
    """
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of a scenario that completed without raising."""
    status: OutcomeStatus
    reason: Optional[str] = None

    def __post_init__(self):
        if self.status is OutcomeStatus.FAILED:
            raise ValueError("Failures are raised, not returned as an Outcome")
        if self.status is OutcomeStatus.SKIPPED and not self.reason:
            raise ValueError("A skipped outcome needs a reason")

    @classmethod
    def passed(cls) -> Outcome:
        return cls(OutcomeStatus.PASSED)

    @classmethod
    def skipped(cls, reason: str) -> Outcome:
        return cls(OutcomeStatus.SKIPPED, reason)
