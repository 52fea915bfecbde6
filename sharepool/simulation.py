"""
simulation.py - Reproducible distribution scenarios

Drives a fund through a DAO-style scenario with random donations:

    Epoch 1: for each of the first `seed_members` members, a benefactor
             donates a random amount and the creator grants the member
             50 * (i + 1) basis points. Any reconciliation remainder is
             cleared with a small top-up deposit, then everyone claims.
    Epoch 2: every member (new ones included) receives another 50 basis
             points, with a random donation before each grant. Everyone
             claims again.

Random amounts come from a seeded numpy Generator, so a given seed always
replays the same sequence of operations.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .core import DEFAULT_TOTAL_SHARE_UNITS, FundLedger, format_amount
from .custodian import InMemoryCustodian
from .fund import Fund


# One whole coin in base units (lamports per SOL).
BASE_UNIT = 10 ** 9

# Basis points granted per member per step.
GRANT_STEP = 50


@dataclass(frozen=True, slots=True)
class SimulationReport:
    """
    Outcome of a simulated scenario.

    Attributes:
        total_deposited: Sum of all donations
        total_paid_out: Sum of all claim payouts
        residual: Value left in custody (above the reserve) after the last claim round
        undistributed: Value reconciled but not yet settled to any holder
        payouts: Total paid to each identity
        share_units: Final share units of each identity
        conservation_valid: Result of Fund.verify_conservation() at the end
        events: Number of fund events logged
    """
    total_deposited: int
    total_paid_out: int
    residual: int
    undistributed: int
    payouts: Dict[str, int] = field(default_factory=dict)
    share_units: Dict[str, int] = field(default_factory=dict)
    conservation_valid: bool = True
    events: int = 0

    def summary(self, decimals: int = 9) -> str:
        lines = [
            f"deposited     : {format_amount(self.total_deposited, decimals)}",
            f"paid out      : {format_amount(self.total_paid_out, decimals)}",
            f"residual      : {format_amount(self.residual, decimals)}",
            f"undistributed : {format_amount(self.undistributed, decimals)}",
            f"holders       : {len(self.payouts)}",
            f"events        : {self.events}",
            f"conservation  : {'OK' if self.conservation_valid else 'VIOLATED'}",
        ]
        return "\n".join(lines)


def random_amounts(rng: np.random.Generator, count: int, minimum: int, spread: int) -> List[int]:
    """Draw `count` integer amounts uniformly from [minimum, minimum + spread)."""
    draws = rng.integers(minimum, minimum + spread, size=count, dtype=np.int64)
    return [int(x) for x in draws]


def dust_top_up(ledger: FundLedger) -> int:
    """
    Smallest deposit that brings the ledger's remainder back to zero.

    Returns 0 when there is no remainder, or when no deposit of at most
    total_share_units can clear it (precision and total_share_units share
    a factor the remainder does not).
    """
    if ledger.remainder == 0:
        return 0
    units = ledger.total_share_units
    for amount in range(1, units + 1):
        if (amount * ledger.precision + ledger.remainder) % units == 0:
            return amount
    return 0


def run_distribution_simulation(
    num_members: int = 50,
    seed_members: int = 10,
    seed: Optional[int] = 0,
    total_share_units: int = DEFAULT_TOTAL_SHARE_UNITS,
    base_amount: int = BASE_UNIT,
    reserve: int = 0,
    verbose: bool = False,
) -> SimulationReport:
    """
    Run the two-epoch DAO scenario and report where the value went.

    Args:
        num_members: Members receiving grants in epoch 2
        seed_members: Members receiving grants (and donations) in epoch 1
        seed: Seed for numpy's random Generator
        total_share_units: Share units of the simulated fund
        base_amount: Minimum donation; donations are drawn from [base, 2 * base)
        reserve: Non-distributable balance placed in custody before creation
        verbose: Print fund operations

    Raises:
        ValueError: If the grants would need more share units than the fund has
    """
    if seed_members > num_members:
        raise ValueError(f"seed_members {seed_members} exceeds num_members {num_members}")
    needed = GRANT_STEP * seed_members * (seed_members + 1) // 2 + GRANT_STEP * num_members
    if needed > total_share_units:
        raise ValueError(f"Scenario needs {needed} share units, fund has {total_share_units}")

    rng = np.random.default_rng(seed)
    members = [f"member_{i:03d}" for i in range(num_members)]
    donations = random_amounts(rng, seed_members + num_members, base_amount, base_amount)
    total_deposited = sum(donations)

    custodian = InMemoryCustodian({"benefactor": total_deposited})
    if reserve:
        custodian.open_account("pool", reserve)
    fund = Fund("pool", custodian, total_share_units=total_share_units,
                creator="creator", verbose=verbose)

    next_donation = iter(donations)

    # Epoch 1
    for i, member in enumerate(members[:seed_members]):
        custodian.transfer_value("benefactor", fund.name, next(next_donation))
        fund.grant_shares(member, GRANT_STEP * (i + 1))
    top_up = dust_top_up(fund.reconcile().ledger)
    if top_up:
        custodian.deposit(fund.name, top_up)
        total_deposited += top_up
    fund.claim_all()

    # Epoch 2
    for member in members:
        custodian.transfer_value("benefactor", fund.name, next(next_donation))
        fund.grant_shares(member, GRANT_STEP)
    fund.claim_all()

    check = fund.verify_conservation()
    return SimulationReport(
        total_deposited=total_deposited,
        total_paid_out=fund.ledger.total_paid_out,
        residual=fund.custodial_balance() - fund.ledger.reserve,
        undistributed=check['undistributed'],
        payouts={owner: h.total_claimed for owner, h in sorted(fund.holders.items())},
        share_units={owner: h.share_units for owner, h in sorted(fund.holders.items())},
        conservation_valid=check['valid'],
        events=len(fund.event_log),
    )
