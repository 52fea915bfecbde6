"""
conftest.py - Shared pytest fixtures for sharepool tests

Provides common fixtures used across unit, conformance and functional tests:
- Custodians (plain, test-mode, failing)
- Funds (fresh, split between two holders, three-way rounding fund)
- Comparison utilities
"""

import pytest
from typing import Any, Dict

from sharepool import (
    Fund,
    InMemoryCustodian,
    DEFAULT_TOTAL_SHARE_UNITS,
)

from tests.fake_custodian import FailingCustodian


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def fund_state(fund: Fund) -> Dict[str, Any]:
    """Everything about a fund that an operation could change, as plain values."""
    return {
        'ledger': fund.ledger,
        'holders': dict(fund.holders),
        'events': len(fund.event_log),
        'balance': fund.custodial_balance(),
    }


def assert_conserved(fund: Fund) -> None:
    """Fail with the discrepancy list if the fund does not conserve value."""
    result = fund.verify_conservation()
    assert result['valid'], result['discrepancies']


# =============================================================================
# CUSTODIAN FIXTURES
# =============================================================================

@pytest.fixture
def custodian():
    """Custodian with set_balance enabled."""
    return InMemoryCustodian(test_mode=True)


@pytest.fixture
def failing_custodian():
    """Custodian whose payouts can be switched to fail."""
    return FailingCustodian()


# =============================================================================
# FUND FIXTURES
# =============================================================================

@pytest.fixture
def fund(custodian):
    """Fresh 10,000-unit fund; 'founder' holds every unit."""
    return Fund("dao", custodian, total_share_units=DEFAULT_TOTAL_SHARE_UNITS,
                creator="founder", verbose=False)


@pytest.fixture
def split_fund(fund):
    """Fund split 50/50 between 'founder' and 'alice'."""
    fund.grant_shares("alice", 5_000)
    return fund


@pytest.fixture
def three_way_fund(custodian):
    """3-unit fund split 1/1/1 between 'a', 'b' and 'c'."""
    fund = Fund("trio", custodian, total_share_units=3, creator="a", verbose=False)
    fund.grant_shares("b", 1)
    fund.grant_shares("c", 1)
    return fund


@pytest.fixture
def failing_fund(failing_custodian):
    """Split fund over a FailingCustodian."""
    fund = Fund("dao", failing_custodian, total_share_units=DEFAULT_TOTAL_SHARE_UNITS,
                creator="founder", verbose=False)
    fund.grant_shares("alice", 5_000)
    return fund
