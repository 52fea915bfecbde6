"""
sharepool - Proportional Fund Distribution Ledger

Pools value in a custodial account and distributes every inflow to share
holders in proportion to the share units they held when it arrived.

Usage:
    from sharepool import Fund, InMemoryCustodian

    custodian = InMemoryCustodian()
    fund = Fund("dao", custodian, total_share_units=10_000, creator="founder")

    # Give participants share units out of the creator's allocation
    fund.grant_shares("alice", 5_000)

    # Anyone can donate; the fund notices on its next operation
    custodian.deposit("dao", 1_000)

    paid = fund.claim("alice")      # 500
    paid = fund.claim("founder")    # 500
    assert fund.verify_conservation()['valid']
"""

# Core types
from .core import (
    FundLedger,
    HolderAccount,
    FundEvent,
    OperationType,
    HolderMap,
    new_holder,
    format_amount,
    max_uint,
    ensure_uint,
    checked_add,
    checked_sub,
    checked_mul,
    FundError,
    InsufficientShares,
    ShareUnitOverflow,
    PayoutTransferFailed,
    StaleReconciliation,
    ArithmeticOverflow,
    HolderNotRegistered,
    SettlementRequired,
    CustodianError,
    FundNotRegistered,
    DEFAULT_TOTAL_SHARE_UNITS,
    PRECISION,
    INTEGER_BITS,
    AMOUNT_BITS,
    AMOUNT_DECIMALS,
    ISSUER_HOLDER,
)

# Pure accounting
from .accounting import (
    ReconcileResult,
    TransferResult,
    ClaimResult,
    observed_inflow,
    reconcile,
    split_entitlement,
    compute_earned,
    unsettled_scaled,
    settle,
    is_settled,
    move_shares,
    compute_share_transfer,
    compute_claim,
    conservation_gap,
    undistributed_value,
)

# Custody
from .custodian import Custodian, InMemoryCustodian

# Stateful fund
from .fund import Fund

# Commands
from .commands import (
    CreateFund,
    CreateHolder,
    TransferShares,
    GrantShares,
    Claim,
    Reconcile,
    ExecuteResult,
    CommandResult,
    CommandProcessor,
)

# Simulation
from .simulation import SimulationReport, run_distribution_simulation, random_amounts, dust_top_up

__all__ = [
    # Core
    'FundLedger', 'HolderAccount', 'FundEvent', 'OperationType', 'HolderMap',
    'new_holder', 'format_amount',
    'max_uint', 'ensure_uint', 'checked_add', 'checked_sub', 'checked_mul',
    'FundError', 'InsufficientShares', 'ShareUnitOverflow', 'PayoutTransferFailed',
    'StaleReconciliation', 'ArithmeticOverflow', 'HolderNotRegistered',
    'SettlementRequired', 'CustodianError', 'FundNotRegistered',
    'DEFAULT_TOTAL_SHARE_UNITS', 'PRECISION', 'INTEGER_BITS', 'AMOUNT_BITS',
    'AMOUNT_DECIMALS', 'ISSUER_HOLDER',
    # Accounting
    'ReconcileResult', 'TransferResult', 'ClaimResult',
    'observed_inflow', 'reconcile', 'split_entitlement', 'compute_earned',
    'unsettled_scaled', 'settle', 'is_settled', 'move_shares',
    'compute_share_transfer', 'compute_claim', 'conservation_gap', 'undistributed_value',
    # Custody
    'Custodian', 'InMemoryCustodian',
    # Fund
    'Fund',
    # Commands
    'CreateFund', 'CreateHolder', 'TransferShares', 'GrantShares', 'Claim', 'Reconcile',
    'ExecuteResult', 'CommandResult', 'CommandProcessor',
    # Simulation
    'SimulationReport', 'run_distribution_simulation', 'random_amounts', 'dust_top_up',
]

__version__ = '1.0.0'
