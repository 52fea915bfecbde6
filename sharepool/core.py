"""
Core types and pure helpers for the proportional fund-distribution ledger.

This module provides the foundational data structures for the fund:
1. Immutable data structures: FundLedger, HolderAccount, FundEvent
2. Exceptions: FundError and domain-specific error types
3. Checked integer arithmetic: checked_add, checked_sub, checked_mul
4. Display helpers: format_amount

All arithmetic is on Python ints, range-checked against a fixed unsigned
width so that results behave like the fixed-width integers of the host
ledger platform instead of silently growing.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


# ============================================================================
# CONSTANTS
# ============================================================================

# Total share units of a fund unless the creator chooses otherwise.
# 10,000 units means one unit is one basis point of the pool.
DEFAULT_TOTAL_SHARE_UNITS = 10_000

# Fixed-point scale of the accumulator (value per share unit * PRECISION).
PRECISION = 10 ** 12

# Width of the unsigned integers used for ledger bookkeeping.
INTEGER_BITS = 128

# Width of the unsigned integers exchanged with the custodian (balances, payouts).
AMOUNT_BITS = 64

# Decimal places used when rendering amounts (9 = lamports -> SOL).
AMOUNT_DECIMALS = 9

# Identity that receives every share unit when a fund is created.
# Grants to participants are share transfers out of this holder.
ISSUER_HOLDER = "issuer"


# ============================================================================
# ENUMS
# ============================================================================

class OperationType(Enum):
    """Kind of fund operation recorded in the event log."""
    CREATE_FUND = "create_fund"
    CREATE_HOLDER = "create_holder"
    RECONCILE = "reconcile"
    SETTLE = "settle"
    TRANSFER = "transfer"
    CLAIM = "claim"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FundError(Exception):
    """Base exception for all fund-related errors."""
    pass


class InsufficientShares(FundError):
    """Raised when a transfer exceeds the sender's current share units."""
    pass


class ShareUnitOverflow(FundError):
    """Raised when a transfer would push a holder or the fund above total_share_units."""
    pass


class PayoutTransferFailed(FundError):
    """Raised when the custodian fails to move a claim payout. The claim is not applied."""
    pass


class StaleReconciliation(FundError):
    """Raised when the custodial balance implies less inflow than already reconciled."""
    pass


class ArithmeticOverflow(FundError):
    """Raised when an integer computation leaves the representable unsigned range."""
    pass


class HolderNotRegistered(FundError):
    """Raised when operating on an identity that has no holder account in the fund."""
    pass


class SettlementRequired(FundError):
    """Raised when share units would move between accounts not settled at the current accumulator."""
    pass


class CustodianError(FundError):
    """Raised by a custodian when a value movement cannot be performed."""
    pass


class FundNotRegistered(FundError):
    """Raised when a command names a fund that does not exist."""
    pass


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def max_uint(bits: int) -> int:
    """Largest value representable by an unsigned integer of the given width."""
    return (1 << bits) - 1


def ensure_uint(value: int, bits: int = INTEGER_BITS, what: str = "value") -> int:
    """
    Validate that value is an int within [0, 2**bits - 1].

    Raises:
        ArithmeticOverflow: If value is negative or too wide
        TypeError: If value is not an int (bool is rejected too)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be int, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticOverflow(f"{what} underflow: {value} < 0")
    if value > max_uint(bits):
        raise ArithmeticOverflow(f"{what} overflow: {value} exceeds u{bits}")
    return value


def checked_add(a: int, b: int, bits: int = INTEGER_BITS) -> int:
    return ensure_uint(a + b, bits, "addition")


def checked_sub(a: int, b: int, bits: int = INTEGER_BITS) -> int:
    return ensure_uint(a - b, bits, "subtraction")


def checked_mul(a: int, b: int, bits: int = INTEGER_BITS) -> int:
    return ensure_uint(a * b, bits, "multiplication")


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class FundLedger:
    """
    Immutable snapshot of a fund's distribution bookkeeping.

    Each reconciliation or payout creates a NEW instance (value semantics),
    so an operation can compute its full outcome before anything is committed.

    Attributes:
        total_share_units: Fixed number of share units (set at creation, never changes)
        precision: Fixed-point scale P of the accumulator
        cumulative_inflow: Total value ever reconciled from the custodial balance
        accumulator: Value distributed per share unit since inception, scaled by P
        remainder: Scaled value not yet divisible by total_share_units,
                   carried into the next reconciliation
        reserve: Custodial balance that is never distributed
        total_paid_out: Total value paid to holders by successful claims
    """
    total_share_units: int
    precision: int = PRECISION
    cumulative_inflow: int = 0
    accumulator: int = 0
    remainder: int = 0
    reserve: int = 0
    total_paid_out: int = 0

    def __post_init__(self):
        if isinstance(self.total_share_units, bool) or not isinstance(self.total_share_units, int):
            raise ValueError(f"total_share_units must be int, got {type(self.total_share_units).__name__}")
        if self.total_share_units <= 0:
            raise ValueError(f"total_share_units must be positive, got {self.total_share_units}")
        if isinstance(self.precision, bool) or not isinstance(self.precision, int) or self.precision <= 0:
            raise ValueError(f"precision must be a positive int, got {self.precision!r}")
        if not 0 <= self.remainder < self.total_share_units:
            raise ValueError(
                f"remainder must be in [0, {self.total_share_units}), got {self.remainder}"
            )
        if self.cumulative_inflow < 0 or self.accumulator < 0:
            raise ValueError("cumulative_inflow and accumulator cannot be negative")
        if self.reserve < 0 or self.total_paid_out < 0:
            raise ValueError("reserve and total_paid_out cannot be negative")
        if self.total_paid_out > self.cumulative_inflow:
            raise ValueError(
                f"total_paid_out {self.total_paid_out} exceeds cumulative_inflow {self.cumulative_inflow}"
            )

    def __repr__(self) -> str:
        return (
            f"FundLedger(units={self.total_share_units}, inflow={self.cumulative_inflow}, "
            f"acc={self.accumulator}, rem={self.remainder}, paid={self.total_paid_out})"
        )


@dataclass(frozen=True, slots=True)
class HolderAccount:
    """
    Immutable snapshot of one participant's position in a fund.

    Attributes:
        owner: Identity of the participant (opaque, unique per fund)
        share_units: Current proportional claim, in [0, total_share_units]
        checkpoint: FundLedger.accumulator at the holder's last settlement
        payable: Settled value not yet paid out
        carry: Scaled sub-unit fraction left by the last settlement, in [0, precision)
        total_claimed: Value paid to this holder so far
    """
    owner: str
    share_units: int = 0
    checkpoint: int = 0
    payable: int = 0
    carry: int = 0
    total_claimed: int = 0

    def __post_init__(self):
        if not isinstance(self.owner, str) or not self.owner.strip():
            raise ValueError("Holder owner cannot be empty")
        for name in ('share_units', 'checkpoint', 'payable', 'carry', 'total_claimed'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Holder {name} must be int, got {type(value).__name__}")
            if value < 0:
                raise ValueError(f"Holder {name} cannot be negative, got {value}")

    def __repr__(self) -> str:
        return (
            f"Holder({self.owner}: units={self.share_units}, ckpt={self.checkpoint}, "
            f"payable={self.payable})"
        )


def new_holder(owner: str, ledger: FundLedger, share_units: int = 0) -> HolderAccount:
    """
    Create a holder account checkpointed at the ledger's current accumulator.

    A holder created after some inflow was reconciled is neither owed nor
    charged anything for that inflow.
    """
    return HolderAccount(owner=owner, share_units=share_units, checkpoint=ledger.accumulator)


@dataclass(frozen=True, slots=True)
class FundEvent:
    """
    Executed, immutable record of one applied fund operation.

    Attributes:
        sequence_number: Monotonic sequence within the fund
        operation: Kind of operation
        fund_name: Name of the fund that applied it
        identity: Primary holder involved (sender for transfers), if any
        counterparty: Recipient of a transfer, if any
        amount: Share units moved, value paid, or value reconciled
        observed_balance: Custodial balance read by the operation, if any
        accumulator: FundLedger.accumulator after the operation
    """
    sequence_number: int
    operation: OperationType
    fund_name: str
    identity: Optional[str] = None
    counterparty: Optional[str] = None
    amount: int = 0
    observed_balance: Optional[int] = None
    accumulator: int = 0

    def __repr__(self) -> str:
        parts = [f"#{self.sequence_number} {self.operation.value}"]
        if self.identity:
            parts.append(self.identity)
        if self.counterparty:
            parts.append(f"-> {self.counterparty}")
        parts.append(f"amount={self.amount}")
        return f"FundEvent({' '.join(parts)})"


# Mapping from holder identity to account.
HolderMap = Dict[str, HolderAccount]


# ============================================================================
# DISPLAY
# ============================================================================

def format_amount(amount: int, decimals: int = AMOUNT_DECIMALS) -> str:
    """
    Render an integer amount of base units as a fixed-point decimal string.

    Example:
        format_amount(1_500_000_000) -> "1.500000000"
        format_amount(42, 0)         -> "42"
    """
    if decimals <= 0:
        return str(amount)
    value = Decimal(amount).scaleb(-decimals)
    return f"{value:.{decimals}f}"
