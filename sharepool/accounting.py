"""
accounting.py - Pure distribution arithmetic for a fund

This module holds the accounting algorithm using a pure function architecture
with explicit inputs.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES (explicit inputs and outputs):
   - FundLedger / HolderAccount (core.py): immutable state snapshots
   - ReconcileResult, TransferResult, ClaimResult: immutable results

2. PURE CALCULATION FUNCTIONS:
   - Take all inputs explicitly as parameters
   - Never read the custodian, never mutate anything
   - Return new snapshots; the Fund decides whether to commit them

Key Formulas:
    observed_inflow = custodial_balance - reserve + total_paid_out
    delta           = observed_inflow - cumulative_inflow
    total           = delta * P + remainder
    accumulator    += total // total_share_units
    remainder       = total % total_share_units

    scaled  = share_units * (accumulator - checkpoint) + carry
    earned  = scaled // P
    carry   = scaled % P

Conservation (exact, in scaled units):
    cumulative_inflow * P == (total_paid_out + sum(payable)) * P
                             + sum(carry)
                             + sum(share_units * (accumulator - checkpoint))
                             + remainder
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, Tuple

from .core import (
    FundLedger, HolderAccount,
    AMOUNT_BITS,
    InsufficientShares, ShareUnitOverflow, StaleReconciliation, SettlementRequired,
    checked_add, checked_mul, ensure_uint,
)


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """
    Outcome of folding newly observed inflow into the accumulator.

    Attributes:
        ledger: Ledger after reconciliation (the input ledger if delta == 0)
        delta: Newly observed inflow (0 if nothing new)
        increment: Amount added to the accumulator
    """
    ledger: FundLedger
    delta: int
    increment: int


@dataclass(frozen=True, slots=True)
class TransferResult:
    """Sender and recipient after settlement and the share move."""
    sender: HolderAccount
    recipient: HolderAccount
    sender_earned: int
    recipient_earned: int


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """
    Outcome of a claim computation.

    holder has payable already drained; ledger already records the payout.
    Both are only valid to commit once the custodian has moved `amount`.
    """
    holder: HolderAccount
    ledger: FundLedger
    amount: int
    earned: int


# ============================================================================
# RECONCILIATION ENGINE
# ============================================================================

def observed_inflow(ledger: FundLedger, custodial_balance: int) -> int:
    """
    Total inflow implied by the custodial balance.

    Payouts lower the custodial balance without undoing the inflow they came
    from, so they are added back; the reserve was never inflow.

    Raises:
        StaleReconciliation: If the balance is below the reserve
    """
    ensure_uint(custodial_balance, AMOUNT_BITS, "custodial balance")
    if custodial_balance < ledger.reserve:
        raise StaleReconciliation(
            f"Custodial balance {custodial_balance} is below the reserve {ledger.reserve}"
        )
    return checked_add(custodial_balance - ledger.reserve, ledger.total_paid_out)


def reconcile(ledger: FundLedger, custodial_balance: int) -> ReconcileResult:
    """
    Fold any inflow not yet accounted for into the accumulator.

    Idempotent: calling again with the same balance yields delta == 0.

    Args:
        ledger: Current ledger snapshot
        custodial_balance: Balance reported by the custodian right now

    Returns:
        ReconcileResult with the new ledger

    Raises:
        StaleReconciliation: If the balance implies less inflow than already
            reconciled (a withdrawal the ledger did not make, or a bookkeeping bug)
        ArithmeticOverflow: If any intermediate leaves the integer width
    """
    observed = observed_inflow(ledger, custodial_balance)
    if observed < ledger.cumulative_inflow:
        raise StaleReconciliation(
            f"Observed inflow {observed} is below reconciled inflow {ledger.cumulative_inflow} "
            f"(custodial balance {custodial_balance})"
        )
    delta = observed - ledger.cumulative_inflow
    if delta == 0:
        return ReconcileResult(ledger=ledger, delta=0, increment=0)

    total = checked_add(checked_mul(delta, ledger.precision), ledger.remainder)
    increment, remainder = divmod(total, ledger.total_share_units)
    new_ledger = replace(
        ledger,
        accumulator=checked_add(ledger.accumulator, increment),
        remainder=remainder,
        cumulative_inflow=checked_add(ledger.cumulative_inflow, delta),
    )
    return ReconcileResult(ledger=new_ledger, delta=delta, increment=increment)


# ============================================================================
# DISTRIBUTION CALCULATOR
# ============================================================================

def split_entitlement(holder: HolderAccount, ledger: FundLedger) -> Tuple[int, int]:
    """
    Split a holder's unsettled entitlement into whole units and a scaled fraction.

    Returns:
        (earned, carry) where earned is whole value owed since the checkpoint
        and carry is the leftover scaled fraction, in [0, precision)
    """
    if holder.checkpoint > ledger.accumulator:
        raise StaleReconciliation(
            f"Holder {holder.owner} checkpoint {holder.checkpoint} is ahead of "
            f"accumulator {ledger.accumulator}"
        )
    growth = ledger.accumulator - holder.checkpoint
    scaled = checked_add(checked_mul(holder.share_units, growth), holder.carry)
    earned, carry = divmod(scaled, ledger.precision)
    return earned, carry


def compute_earned(holder: HolderAccount, ledger: FundLedger) -> int:
    """
    Value the holder is currently entitled to but has not yet settled.

    Non-decreasing between settlements while share_units is unchanged,
    since the accumulator only grows.
    """
    return split_entitlement(holder, ledger)[0]


def unsettled_scaled(holder: HolderAccount, ledger: FundLedger) -> int:
    """Scaled value accrued since the checkpoint, including the carried fraction."""
    return holder.share_units * (ledger.accumulator - holder.checkpoint) + holder.carry


# ============================================================================
# SETTLEMENT
# ============================================================================

def settle(holder: HolderAccount, ledger: FundLedger) -> HolderAccount:
    """
    Convert the holder's accrued entitlement into payable value.

    Moves the checkpoint to the current accumulator. A second settle with no
    accumulator movement returns an equal account.
    """
    earned, carry = split_entitlement(holder, ledger)
    if earned == 0 and carry == holder.carry and holder.checkpoint == ledger.accumulator:
        return holder
    return replace(
        holder,
        payable=checked_add(holder.payable, earned),
        carry=carry,
        checkpoint=ledger.accumulator,
    )


def is_settled(holder: HolderAccount, ledger: FundLedger) -> bool:
    return holder.checkpoint == ledger.accumulator


# ============================================================================
# SHARE TRANSFER
# ============================================================================

def move_shares(
    sender: HolderAccount,
    recipient: HolderAccount,
    amount: int,
    ledger: FundLedger,
    outstanding: int = None,
) -> Tuple[HolderAccount, HolderAccount]:
    """
    Move share units between two holders already settled at the current accumulator.

    Args:
        sender: Settled sender
        recipient: Settled recipient
        amount: Share units to move (>= 1)
        ledger: Current ledger
        outstanding: Share units held across all holders, for the total check

    Raises:
        SettlementRequired: If either side is not settled at the current accumulator
        InsufficientShares: If sender holds fewer than amount units
        ShareUnitOverflow: If recipient or the fund would exceed total_share_units
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        raise ValueError(f"Transfer amount must be a positive int, got {amount!r}")
    if sender.owner == recipient.owner:
        raise ValueError("Sender and recipient must be different")
    for holder in (sender, recipient):
        if not is_settled(holder, ledger):
            raise SettlementRequired(
                f"Holder {holder.owner} must be settled before its share units change"
            )
    if sender.share_units < amount:
        raise InsufficientShares(
            f"{sender.owner} holds {sender.share_units} share units, cannot transfer {amount}"
        )
    new_recipient_units = recipient.share_units + amount
    if new_recipient_units > ledger.total_share_units:
        raise ShareUnitOverflow(
            f"{recipient.owner} would hold {new_recipient_units} > {ledger.total_share_units} share units"
        )
    if outstanding is not None and outstanding > ledger.total_share_units:
        raise ShareUnitOverflow(
            f"Outstanding share units {outstanding} exceed {ledger.total_share_units}"
        )
    return (
        replace(sender, share_units=sender.share_units - amount),
        replace(recipient, share_units=new_recipient_units),
    )


def compute_share_transfer(
    sender: HolderAccount,
    recipient: HolderAccount,
    amount: int,
    ledger: FundLedger,
    outstanding: int = None,
) -> TransferResult:
    """
    Settle both parties, then move share units.

    The ledger must already be reconciled. Settlement freezes each party's
    entitlement under its pre-transfer share count.
    """
    if sender.share_units < amount:
        raise InsufficientShares(
            f"{sender.owner} holds {sender.share_units} share units, cannot transfer {amount}"
        )
    settled_sender = settle(sender, ledger)
    settled_recipient = settle(recipient, ledger)
    moved_sender, moved_recipient = move_shares(
        settled_sender, settled_recipient, amount, ledger, outstanding
    )
    return TransferResult(
        sender=moved_sender,
        recipient=moved_recipient,
        sender_earned=settled_sender.payable - sender.payable,
        recipient_earned=settled_recipient.payable - recipient.payable,
    )


# ============================================================================
# CLAIM / PAYOUT
# ============================================================================

def compute_claim(holder: HolderAccount, ledger: FundLedger) -> ClaimResult:
    """
    Settle the holder and drain its payable.

    The ledger must already be reconciled. The returned holder and ledger
    describe the state after a successful payout of `amount`.
    """
    settled = settle(holder, ledger)
    earned = settled.payable - holder.payable
    amount = ensure_uint(settled.payable, AMOUNT_BITS, "payout")
    if amount == 0:
        return ClaimResult(holder=settled, ledger=ledger, amount=0, earned=earned)
    paid_ledger = replace(ledger, total_paid_out=checked_add(ledger.total_paid_out, amount))
    paid_holder = replace(
        settled,
        payable=0,
        total_claimed=checked_add(settled.total_claimed, amount),
    )
    return ClaimResult(holder=paid_holder, ledger=paid_ledger, amount=amount, earned=earned)


# ============================================================================
# CONSERVATION
# ============================================================================

def conservation_gap(ledger: FundLedger, holders: Iterable[HolderAccount]) -> int:
    """
    Scaled difference between reconciled inflow and everything accounted for.

    Zero whenever the fund is consistent. Holders are summed in owner order
    for a deterministic accumulation.
    """
    accounted = (ledger.total_paid_out * ledger.precision) + ledger.remainder
    for holder in sorted(holders, key=lambda h: h.owner):
        accounted += holder.payable * ledger.precision
        accounted += unsettled_scaled(holder, ledger)
    return ledger.cumulative_inflow * ledger.precision - accounted


def undistributed_value(ledger: FundLedger, holders: Iterable[HolderAccount]) -> int:
    """
    Whole value reconciled but not yet settled into any holder's payable.

    Made of the carried remainder, per-holder fractions, and accruals since
    each holder's checkpoint.
    """
    holders = list(holders)
    pending = ledger.remainder + sum(unsettled_scaled(h, ledger) for h in holders)
    return pending // ledger.precision
