"""
commands.py - Command surface over a set of funds

Commands are plain values; a CommandProcessor applies them one at a time,
which is the serialization the fund accounting relies on.

Execution of each command:
1. Look up the target fund (CreateFund registers a new one)
2. Delegate to the Fund operation, which reconciles and settles as needed
3. Record the CommandResult (APPLIED with the operation's value, or
   REJECTED with the FundError that stopped it)

Authorization (who may submit which command for whom) is the caller's concern.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .core import (
    DEFAULT_TOTAL_SHARE_UNITS, ISSUER_HOLDER,
    FundError, FundNotRegistered,
)
from .custodian import Custodian
from .fund import Fund


# ============================================================================
# COMMANDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class CreateFund:
    fund_id: str
    total_share_units: int = DEFAULT_TOTAL_SHARE_UNITS
    creator: str = ISSUER_HOLDER
    reserve: Optional[int] = None


@dataclass(frozen=True, slots=True)
class CreateHolder:
    fund_id: str
    identity: str


@dataclass(frozen=True, slots=True)
class TransferShares:
    fund_id: str
    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True, slots=True)
class GrantShares:
    """Transfer from the fund creator's allocation to a participant."""
    fund_id: str
    identity: str
    amount: int


@dataclass(frozen=True, slots=True)
class Claim:
    fund_id: str
    identity: str


@dataclass(frozen=True, slots=True)
class Reconcile:
    """Fold unreconciled inflow into the accumulator without touching any holder."""
    fund_id: str


# ============================================================================
# RESULTS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a command execution attempt.

    APPLIED: Command was validated and applied.
    REJECTED: Command raised a FundError (or failed argument validation) and
              left every fund unchanged.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """
    Record of one executed command.

    Attributes:
        status: APPLIED or REJECTED
        command: The command that was submitted
        value: Operation output (Fund, HolderAccount, TransferResult, payout amount, ...)
        error: The exception that rejected the command, if any
        sequence_number: Position in the processor's history
    """
    status: ExecuteResult
    command: Any
    value: Any = None
    error: Optional[Exception] = None
    sequence_number: int = 0

    @property
    def applied(self) -> bool:
        return self.status == ExecuteResult.APPLIED


# ============================================================================
# PROCESSOR
# ============================================================================

class CommandProcessor:
    """
    Serializing front end for a set of funds sharing one custodian.

    Example:
        processor = CommandProcessor(InMemoryCustodian(), verbose=False)
        processor.execute(CreateFund("dao", 10_000, creator="founder"))
        processor.execute(GrantShares("dao", "alice", 5_000))
        custodian.deposit("dao", 1_000)
        result = processor.execute(Claim("dao", "alice"))
        result.value  # 500
    """

    def __init__(self, custodian: Custodian, verbose: bool = True):
        self.custodian = custodian
        self.verbose = verbose
        self.funds: Dict[str, Fund] = {}
        self.history: List[CommandResult] = []
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            CreateFund: self._create_fund,
            CreateHolder: self._create_holder,
            TransferShares: self._transfer_shares,
            GrantShares: self._grant_shares,
            Claim: self._claim,
            Reconcile: self._reconcile,
        }

    def get_fund(self, fund_id: str) -> Fund:
        if fund_id not in self.funds:
            raise FundNotRegistered(f"Fund {fund_id} not registered")
        return self.funds[fund_id]

    def execute(self, command: Any) -> CommandResult:
        """
        Apply a single command.

        Returns:
            CommandResult with status APPLIED or REJECTED

        Raises:
            TypeError: If the command type is unknown
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command type {type(command).__name__}")

        sequence = len(self.history)
        try:
            value = handler(command)
        except (FundError, ValueError) as e:
            if self.verbose:
                print(f"✗ REJECTED: {command}: {e}")
            result = CommandResult(ExecuteResult.REJECTED, command, error=e, sequence_number=sequence)
        else:
            result = CommandResult(ExecuteResult.APPLIED, command, value=value, sequence_number=sequence)
        self.history.append(result)
        return result

    def run(self, commands: List[Any]) -> List[CommandResult]:
        """Apply commands in order; a rejection does not stop later commands."""
        return [self.execute(command) for command in commands]

    # ========================================================================
    # HANDLERS
    # ========================================================================

    def _create_fund(self, command: CreateFund) -> Fund:
        if command.fund_id in self.funds:
            raise ValueError(f"Fund {command.fund_id} already registered")
        fund = Fund(
            command.fund_id,
            self.custodian,
            total_share_units=command.total_share_units,
            creator=command.creator,
            reserve=command.reserve,
            verbose=self.verbose,
        )
        self.funds[command.fund_id] = fund
        return fund

    def _create_holder(self, command: CreateHolder):
        return self.get_fund(command.fund_id).create_holder(command.identity)

    def _transfer_shares(self, command: TransferShares):
        return self.get_fund(command.fund_id).transfer_shares(
            command.sender, command.recipient, command.amount
        )

    def _grant_shares(self, command: GrantShares):
        return self.get_fund(command.fund_id).grant_shares(command.identity, command.amount)

    def _claim(self, command: Claim) -> int:
        return self.get_fund(command.fund_id).claim(command.identity)

    def _reconcile(self, command: Reconcile):
        return self.get_fund(command.fund_id).reconcile()
