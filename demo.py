#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Fund Step by Step

A pedagogical walk through the proportional distribution fund.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation   - Creating a fund, granting shares, donations
  4-6:  Distribution - Lazy reconciliation, claims, rounding remainders
  7-8:  Safety       - Settle-before-transfer, failed payouts
  9:    Simulation   - A seeded DAO scenario with 50 members

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from sharepool import (
    Fund, InMemoryCustodian,
    PayoutTransferFailed, CustodianError,
    run_distribution_simulation, format_amount,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    total_share_units: int = 10_000
    benefactor_funds: int = 100 * 10 ** 9
    first_donation: int = 1_000_000_000
    second_donation: int = 333_333_333
    alice_grant: int = 5_000
    bob_grant: int = 2_500

    # Simulation (Step 9)
    simulation_members: int = 50
    simulation_seed: int = 2024


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


class UnreliableCustodian(InMemoryCustodian):
    """Custodian whose next payout can be made to fail (Step 8)."""

    def __init__(self, balances=None):
        super().__init__(balances)
        self.fail_next = False

    def transfer_value(self, source, dest, amount):
        if self.fail_next:
            self.fail_next = False
            raise CustodianError("custody backend timed out")
        super().transfer_value(source, dest, amount)


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_holders(fund: Fund):
    for owner, row in fund.holder_summary().items():
        print(f"  {owner:10s} units={row['share_units']:>6}  payable={format_amount(row['payable'])}"
              f"  earned={format_amount(row['earned'])}  claimed={format_amount(row['total_claimed'])}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_create_fund():
    step_header(1, "Creating a Fund",
        "A fund starts with every share unit held by its creator.")

    print(">>> fund = Fund('dao', custodian, total_share_units=10_000, creator='founder')")
    custodian = UnreliableCustodian({"benefactor": CONFIG.benefactor_funds})
    fund = Fund("dao", custodian, total_share_units=CONFIG.total_share_units, creator="founder")

    section_header("Initial State")
    print(f"Share units:     {fund.total_share_units} (1 unit = 1 basis point)")
    print(f"Holders:         {fund.list_holders()}")
    print(f"Custodial value: {format_amount(fund.custodial_balance())}")
    return fund, custodian


def step_02_grant_shares(fund: Fund):
    step_header(2, "Granting Shares",
        "Participants receive share units out of the creator's allocation.")

    fund.grant_shares("alice", CONFIG.alice_grant)
    fund.grant_shares("bob", CONFIG.bob_grant)
    show_holders(fund)
    return fund


def step_03_donation(fund: Fund, custodian: InMemoryCustodian):
    step_header(3, "A Donation Arrives",
        "Value lands in custody without telling the fund.")

    custodian.transfer_value("benefactor", "dao", CONFIG.first_donation)
    print(f"Custodial value:     {format_amount(fund.custodial_balance())}")
    print(f"Reconciled inflow:   {format_amount(fund.ledger.cumulative_inflow)}")
    print(f"Unreconciled inflow: {format_amount(fund.unreconciled_inflow())}")
    return fund


# ============================================================================
# PHASE 2: DISTRIBUTION (Steps 4-6)
# ============================================================================

def step_04_lazy_reconcile(fund: Fund):
    step_header(4, "Lazy Reconciliation",
        "The next operation that touches the fund folds the inflow in.")

    print(f"alice could claim now: {format_amount(fund.pending_payout('alice'))}")
    fund.settle("alice")
    show_holders(fund)
    return fund


def step_05_claims(fund: Fund):
    step_header(5, "Claims",
        "A claim settles the holder and pays everything payable. A second claim pays 0.")

    fund.claim("alice")
    fund.claim("alice")
    fund.claim("founder")
    show_holders(fund)
    return fund


def step_06_remainders(fund: Fund, custodian: InMemoryCustodian):
    step_header(6, "Rounding Remainders",
        "Amounts that do not divide evenly are carried, never lost.")

    custodian.transfer_value("benefactor", "dao", CONFIG.second_donation)
    fund.claim_all()
    check = fund.verify_conservation()
    print(f"Undistributed (carried): {format_amount(check['undistributed'])}")
    print(f"Conservation:            {'OK' if check['valid'] else check['discrepancies']}")
    return fund


# ============================================================================
# PHASE 3: SAFETY (Steps 7-8)
# ============================================================================

def step_07_transfer(fund: Fund, custodian: InMemoryCustodian):
    step_header(7, "Settle Before Transfer",
        "Value that arrived before a transfer stays with the old holder.")

    custodian.transfer_value("benefactor", "dao", CONFIG.first_donation)
    result = fund.transfer_shares("alice", "carol", 1_000)
    print(f"alice settled {format_amount(result.sender_earned)} under the old share count")
    print(f"carol starts with {format_amount(result.recipient_earned)}")
    show_holders(fund)
    return fund


def step_08_failed_payout(fund: Fund, custodian: UnreliableCustodian):
    step_header(8, "Failed Payouts",
        "If custody cannot move a payout, the claim is not applied at all.")

    before = fund.get_holder("bob")
    custodian.fail_next = True
    try:
        fund.claim("bob")
    except PayoutTransferFailed as e:
        print(f"✗ {e} (cause: {e.__cause__})")
    assert fund.get_holder("bob") == before
    print("bob's account is unchanged; retrying...")
    fund.claim("bob")
    return fund


# ============================================================================
# PHASE 4: SIMULATION (Step 9)
# ============================================================================

def step_09_simulation():
    step_header(9, "DAO Simulation",
        "Random donations, basis-point grants and two claim rounds, seeded for replay.")

    report = run_distribution_simulation(num_members=CONFIG.simulation_members,
                                         seed=CONFIG.simulation_seed)
    print(report.summary())


def main():
    print("=" * 70)
    print("       SHAREPOOL - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    fund, custodian = step_01_create_fund()
    wait_for_enter()
    fund = step_02_grant_shares(fund)
    wait_for_enter()
    fund = step_03_donation(fund, custodian)
    wait_for_enter()

    fund = step_04_lazy_reconcile(fund)
    wait_for_enter()
    fund = step_05_claims(fund)
    wait_for_enter()
    fund = step_06_remainders(fund, custodian)
    wait_for_enter()

    fund = step_07_transfer(fund, custodian)
    wait_for_enter()
    fund = step_08_failed_payout(fund, custodian)
    wait_for_enter()

    step_09_simulation()

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See sharepool/accounting.py for the distribution arithmetic
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
