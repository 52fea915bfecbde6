"""
fund.py - Stateful proportional distribution fund

The Fund class is the central state manager for one pool of value.
It is the only module that mutates fund state, ensuring controlled and
auditable changes.

Key responsibilities:
    - Reads the custodial balance and reconciles new inflow before every mutation
    - Settles every holder whose share units are about to change
    - Applies operations atomically (compute new snapshots, commit at the end)
    - Moves claim payouts through the custodian, committing only on success
    - Always logs - every applied operation lands in the event log
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional

from .core import (
    # Types
    FundLedger, HolderAccount, FundEvent, OperationType, HolderMap,
    # Constants
    DEFAULT_TOTAL_SHARE_UNITS, PRECISION, AMOUNT_DECIMALS, ISSUER_HOLDER,
    # Exceptions
    InsufficientShares, HolderNotRegistered, PayoutTransferFailed,
    # Helpers
    new_holder, format_amount,
)
from .accounting import (
    ReconcileResult, TransferResult,
    reconcile, compute_earned, settle as settle_holder,
    compute_share_transfer, compute_claim,
    conservation_gap, undistributed_value, observed_inflow,
)
from .custodian import Custodian


class Fund:
    """
    Proportional distribution fund over a custodial balance.

    Value deposited into the fund's custodial account is never announced;
    every operation first reconciles the balance it observes, so inflow is
    picked up lazily by whichever operation touches the fund next.

    Design Principles:
        - Reconcile first: every mutating operation starts from the current
          custodial balance.
        - Settle before share changes: a holder's entitlement is frozen under
          its old share count before units move.
        - All-or-nothing: operations build new immutable snapshots and commit
          them together; a failed payout leaves the fund untouched.

    Thread Safety:
        Not thread-safe. Operations on one fund must be serialized by the caller.

    Example:
        custodian = InMemoryCustodian()
        fund = Fund("dao", custodian, total_share_units=10_000, creator="founder")
        fund.grant_shares("alice", 5_000)
        custodian.deposit("dao", 1_000)
        fund.claim("alice")   # pays 500
    """

    def __init__(
        self,
        name: str,
        custodian: Custodian,
        total_share_units: int = DEFAULT_TOTAL_SHARE_UNITS,
        creator: str = ISSUER_HOLDER,
        precision: int = PRECISION,
        reserve: Optional[int] = None,
        verbose: bool = True,
        display_decimals: int = AMOUNT_DECIMALS,
    ):
        """
        Create a fund. The creator receives every share unit.

        Args:
            name: Fund identifier, also its custodial account
            custodian: Holder of the pooled value
            total_share_units: Fixed number of share units (default: 10,000)
            creator: Identity receiving all share units at creation
            precision: Fixed-point scale of the accumulator (default: 10**12)
            reserve: Custodial balance never distributed
                     (default: the balance observed at creation)
            verbose: Enable console output (default: True)
            display_decimals: Decimal places used when printing amounts
        """
        if not name or not name.strip():
            raise ValueError("Fund name cannot be empty")
        if not creator or not creator.strip():
            raise ValueError("Fund creator cannot be empty")
        if creator == name:
            raise ValueError("Fund creator cannot share the fund's custodial account name")
        self.name = name
        self.custodian = custodian
        self.verbose = verbose
        self.display_decimals = display_decimals
        self.creator = creator
        if reserve is None:
            reserve = custodian.balance(name)
        self.ledger = FundLedger(
            total_share_units=total_share_units,
            precision=precision,
            reserve=reserve,
        )
        self.holders: HolderMap = {}
        self.event_log: List[FundEvent] = []
        self._next_sequence: int = 0

        self.holders[creator] = new_holder(creator, self.ledger, share_units=total_share_units)
        self._log(OperationType.CREATE_FUND, identity=creator, amount=total_share_units)
        if self.verbose:
            print(f"📝 Created fund {name}: {total_share_units} share units -> {creator}, "
                  f"reserve {self._fmt(reserve)}")

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    @property
    def total_share_units(self) -> int:
        return self.ledger.total_share_units

    def custodial_balance(self) -> int:
        """Balance the custodian currently reports for this fund."""
        return self.custodian.balance(self.name)

    def is_registered(self, identity: str) -> bool:
        """Check if an identity has a holder account."""
        return identity in self.holders

    def get_holder(self, identity: str) -> HolderAccount:
        """
        Return the holder account for an identity.

        Raises:
            HolderNotRegistered: If the identity has no account
        """
        if identity not in self.holders:
            raise HolderNotRegistered(f"Holder {identity} not registered in fund {self.name}")
        return self.holders[identity]

    def list_holders(self) -> List[str]:
        """List all holder identities."""
        return sorted(self.holders.keys())

    def outstanding_share_units(self) -> int:
        return sum(h.share_units for h in self.holders.values())

    def unreconciled_inflow(self) -> int:
        """Inflow sitting in custody that no operation has reconciled yet."""
        return observed_inflow(self.ledger, self.custodial_balance()) - self.ledger.cumulative_inflow

    def pending_payout(self, identity: str) -> int:
        """
        What a claim would pay right now, without changing anything.

        Raises:
            HolderNotRegistered: If the identity has no account
            StaleReconciliation: If the custodial balance is inconsistent
        """
        holder = self.get_holder(identity)
        preview = reconcile(self.ledger, self.custodial_balance()).ledger
        return holder.payable + compute_earned(holder, preview)

    def holder_summary(self) -> Dict[str, Dict[str, int]]:
        """
        Per-holder view of shares and value, using the ledger as last reconciled.

        Returns:
            Dict mapping identity to share_units, payable, earned (unsettled)
            and total_claimed
        """
        return {
            owner: {
                'share_units': h.share_units,
                'payable': h.payable,
                'earned': compute_earned(h, self.ledger),
                'total_claimed': h.total_claimed,
            }
            for owner, h in sorted(self.holders.items())
        }

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view of the ledger fields and counts."""
        return {
            'name': self.name,
            'total_share_units': self.ledger.total_share_units,
            'precision': self.ledger.precision,
            'cumulative_inflow': self.ledger.cumulative_inflow,
            'accumulator': self.ledger.accumulator,
            'remainder': self.ledger.remainder,
            'reserve': self.ledger.reserve,
            'total_paid_out': self.ledger.total_paid_out,
            'holders': len(self.holders),
            'events': len(self.event_log),
        }

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that no value was created or destroyed.

        Checks, exactly and in integers:
        1. cumulative_inflow * P equals paid out + payable (scaled) + carried
           fractions + unsettled accruals + remainder
        2. Share units held across holders equal total_share_units
        3. Per-holder claimed totals add up to total_paid_out
        4. The custodial balance still covers everything reconciled and unpaid

        Returns:
            Dict with keys:
            - 'valid': bool - True if all checks hold
            - 'cumulative_inflow', 'total_paid_out', 'total_payable',
              'undistributed', 'unreconciled': int amounts
            - 'discrepancies': List[Dict] - one entry per failed check

        Example:
            result = fund.verify_conservation()
            assert result['valid'], result['discrepancies']
        """
        holders = list(self.holders.values())
        discrepancies = []

        gap = conservation_gap(self.ledger, holders)
        if gap != 0:
            discrepancies.append({'check': 'value', 'scaled_gap': gap})

        outstanding = self.outstanding_share_units()
        if outstanding != self.ledger.total_share_units:
            discrepancies.append({
                'check': 'share_units',
                'expected': self.ledger.total_share_units,
                'actual': outstanding,
            })

        claimed = sum(h.total_claimed for h in holders)
        if claimed != self.ledger.total_paid_out:
            discrepancies.append({
                'check': 'claimed',
                'expected': self.ledger.total_paid_out,
                'actual': claimed,
            })

        balance = self.custodial_balance()
        owed = self.ledger.reserve + self.ledger.cumulative_inflow - self.ledger.total_paid_out
        if balance < owed:
            discrepancies.append({'check': 'custody', 'expected_at_least': owed, 'actual': balance})
            unreconciled = 0
        else:
            unreconciled = balance - owed

        return {
            'valid': len(discrepancies) == 0,
            'cumulative_inflow': self.ledger.cumulative_inflow,
            'total_paid_out': self.ledger.total_paid_out,
            'total_payable': sum(h.payable for h in holders),
            'undistributed': undistributed_value(self.ledger, holders),
            'unreconciled': unreconciled,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # HOLDER REGISTRATION (Mutating)
    # ========================================================================

    def create_holder(self, identity: str) -> HolderAccount:
        """
        Open a holder account with no share units.

        The checkpoint starts at the current accumulator, so the new holder
        has no claim on value distributed before it existed.

        Raises:
            ValueError: If the identity already has an account
        """
        if identity in self.holders:
            raise ValueError(f"Holder {identity} already registered")
        if identity == self.name:
            raise ValueError("Holder identity cannot share the fund's custodial account name")
        holder = new_holder(identity, self.ledger)
        self.holders[identity] = holder
        self._log(OperationType.CREATE_HOLDER, identity=identity)
        return holder

    def get_or_create_holder(self, identity: str) -> HolderAccount:
        if identity in self.holders:
            return self.holders[identity]
        return self.create_holder(identity)

    # ========================================================================
    # OPERATIONS (Mutating)
    # ========================================================================

    def reconcile(self) -> ReconcileResult:
        """
        Fold any unreconciled custodial inflow into the accumulator.

        Raises:
            StaleReconciliation: If the custodial balance dropped below what
                the ledger has already reconciled
        """
        balance = self.custodial_balance()
        result = reconcile(self.ledger, balance)
        self._commit(result.ledger)
        self._log_reconcile(result, balance)
        return result

    def settle(self, identity: str) -> HolderAccount:
        """
        Reconcile, then turn the holder's accrued entitlement into payable value.

        Raises:
            HolderNotRegistered: If the identity has no account
        """
        holder = self.get_holder(identity)
        balance = self.custodial_balance()
        result = reconcile(self.ledger, balance)
        settled = settle_holder(holder, result.ledger)
        self._commit(result.ledger, [settled])
        self._log_reconcile(result, balance)
        if settled is not holder:
            self._log(OperationType.SETTLE, identity=identity,
                      amount=settled.payable - holder.payable, observed_balance=balance)
        return settled

    def transfer_shares(self, sender: str, recipient: str, amount: int) -> TransferResult:
        """
        Move share units, settling both parties first.

        The recipient account is created on demand.

        Args:
            sender: Identity giving up share units
            recipient: Identity receiving share units
            amount: Number of share units (>= 1)

        Raises:
            ValueError: If amount < 1 or sender == recipient
            InsufficientShares: If sender is unknown or holds fewer than amount units
            ShareUnitOverflow: If the move would exceed total_share_units
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise ValueError(f"Transfer amount must be a positive int, got {amount!r}")
        if sender == recipient:
            raise ValueError("Sender and recipient must be different")
        if recipient == self.name:
            raise ValueError("Recipient cannot be the fund's custodial account")

        if sender not in self.holders:
            raise InsufficientShares(f"{sender} holds no share units in fund {self.name}")

        balance = self.custodial_balance()
        rec = reconcile(self.ledger, balance)

        created = recipient not in self.holders
        recipient_account = self.holders.get(recipient) or new_holder(recipient, rec.ledger)

        result = compute_share_transfer(
            self.holders[sender], recipient_account, amount, rec.ledger,
            outstanding=self.outstanding_share_units(),
        )

        self._commit(rec.ledger, [result.sender, result.recipient])
        self._log_reconcile(rec, balance)
        if created:
            self._log(OperationType.CREATE_HOLDER, identity=recipient)
        self._log(OperationType.TRANSFER, identity=sender, counterparty=recipient,
                  amount=amount, observed_balance=balance)
        if self.verbose:
            print(f"✓ TRANSFER {amount} share units: {sender} → {recipient} "
                  f"(settled {self._fmt(result.sender_earned)} / {self._fmt(result.recipient_earned)})")
        return result

    def grant_shares(self, identity: str, amount: int) -> TransferResult:
        """Grant share units to a participant out of the creator's allocation."""
        return self.transfer_shares(self.creator, identity, amount)

    def claim(self, identity: str) -> int:
        """
        Reconcile, settle, and pay the holder everything payable.

        Nothing is committed unless the custodian moves the payout.

        Returns:
            Amount paid (0 if nothing was payable)

        Raises:
            HolderNotRegistered: If the identity has no account
            PayoutTransferFailed: If the custodian could not move the payout
        """
        holder = self.get_holder(identity)
        balance = self.custodial_balance()
        rec = reconcile(self.ledger, balance)
        result = compute_claim(holder, rec.ledger)

        if result.amount > 0:
            try:
                self.custodian.transfer_value(self.name, identity, result.amount)
            except Exception as e:
                raise PayoutTransferFailed(
                    f"Payout of {result.amount} from {self.name} to {identity} failed"
                ) from e

        self._commit(result.ledger, [result.holder])
        self._log_reconcile(rec, balance)
        self._log(OperationType.CLAIM, identity=identity, amount=result.amount,
                  observed_balance=balance)
        if self.verbose:
            print(f"✓ CLAIMED {identity}: {self._fmt(result.amount)}")
        return result.amount

    def claim_all(self, identities: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """
        Claim for several holders in turn (all holders by default, in sorted order).

        Each claim is its own atomic operation; a failure stops the round
        with earlier claims already applied.
        """
        targets = sorted(identities) if identities is not None else self.list_holders()
        return {identity: self.claim(identity) for identity in targets}

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _commit(self, ledger: FundLedger, holders: Iterable[HolderAccount] = ()) -> None:
        """Install new snapshots. Called only once an operation can no longer fail."""
        self.ledger = ledger
        for holder in holders:
            self.holders[holder.owner] = holder

    def _log(
        self,
        operation: OperationType,
        identity: Optional[str] = None,
        counterparty: Optional[str] = None,
        amount: int = 0,
        observed_balance: Optional[int] = None,
    ) -> FundEvent:
        event = FundEvent(
            sequence_number=self._next_sequence,
            operation=operation,
            fund_name=self.name,
            identity=identity,
            counterparty=counterparty,
            amount=amount,
            observed_balance=observed_balance,
            accumulator=self.ledger.accumulator,
        )
        self._next_sequence += 1
        self.event_log.append(event)
        return event

    def _log_reconcile(self, result: ReconcileResult, balance: int) -> None:
        if result.delta == 0:
            return
        self._log(OperationType.RECONCILE, amount=result.delta, observed_balance=balance)
        if self.verbose:
            print(f"⚖️  RECONCILED {self.name}: new inflow {self._fmt(result.delta)}, "
                  f"remainder {result.ledger.remainder}")

    def _fmt(self, amount: int) -> str:
        return format_amount(amount, self.display_decimals)

    def clone(self) -> Fund:
        """
        Create a copy of this fund sharing the same custodian.

        Snapshots are immutable, so copying the containers is enough for the
        clone's state to be fully independent.
        """
        cloned = Fund.__new__(Fund)
        cloned.name = self.name
        cloned.custodian = self.custodian
        cloned.verbose = self.verbose
        cloned.display_decimals = self.display_decimals
        cloned.creator = self.creator
        cloned.ledger = self.ledger
        cloned.holders = dict(self.holders)
        cloned.event_log = list(self.event_log)
        cloned._next_sequence = self._next_sequence
        return cloned

    def __repr__(self) -> str:
        return f"Fund({self.name}, {len(self.holders)} holders, {self.ledger!r})"
