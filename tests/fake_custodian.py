"""
fake_custodian.py - Test Helper for Custodian

Provides a Custodian implementation whose payouts can be made to fail, for
testing that a fund commits nothing when value cannot be moved.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from sharepool import CustodianError, InMemoryCustodian


class FailingCustodian(InMemoryCustodian):
    """
    InMemoryCustodian that can refuse transfers.

    Example:
        custodian = FailingCustodian()
        custodian.deposit("dao", 1_000)
        custodian.fail_transfers = True
        custodian.transfer_value("dao", "alice", 10)   # raises CustodianError
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None, fail_transfers: bool = False):
        super().__init__(balances, test_mode=True)
        self.fail_transfers = fail_transfers
        self.attempts: List[Tuple[str, str, int]] = []

    def transfer_value(self, source: str, dest: str, amount: int) -> None:
        self.attempts.append((source, dest, amount))
        if self.fail_transfers:
            raise CustodianError(f"Transfer of {amount} from {source} to {dest} refused")
        super().transfer_value(source, dest, amount)


class BrokenCustodian(InMemoryCustodian):
    """Custodian whose transfers fail with a non-fund exception (e.g. a network error)."""

    def transfer_value(self, source: str, dest: str, amount: int) -> None:
        raise ConnectionError("custody backend unreachable")
