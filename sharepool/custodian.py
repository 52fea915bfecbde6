"""
custodian.py - Custody of pooled value

Provides the boundary between the fund's accounting and whatever actually
holds the pooled value.

Classes:
- Custodian: Protocol defining the custody interface
- InMemoryCustodian: Dictionary-backed custodian for simulations and tests

The fund only ever reads its own custodial balance and asks the custodian to
move claim payouts out of it. Deposits arrive from outside the fund
(InMemoryCustodian.deposit) and are discovered by reconciliation.
"""

from typing import Dict, Protocol, runtime_checkable

from .core import AMOUNT_BITS, CustodianError, ensure_uint


@runtime_checkable
class Custodian(Protocol):
    """
    Protocol for custodians.

    Implementations must report balances as non-negative ints and either fully
    perform a transfer or raise without moving anything.
    """

    def balance(self, account: str) -> int:
        """Current value held for an account."""
        ...

    def transfer_value(self, source: str, dest: str, amount: int) -> None:
        """Move amount from source to dest. Raises on failure."""
        ...


class InMemoryCustodian:
    """
    Custodian holding balances in a dictionary.

    Accounts are opened on first use with a zero balance. Transfers are
    all-or-nothing: an overdraft raises CustodianError and changes nothing.
    """

    def __init__(self, balances: Dict[str, int] = None, test_mode: bool = False):
        """
        Args:
            balances: Optional initial balances by account
            test_mode: Enable set_balance() (default: False)
        """
        self.balances: Dict[str, int] = {}
        self._test_mode = test_mode
        for account, amount in (balances or {}).items():
            self.balances[account] = ensure_uint(amount, AMOUNT_BITS, f"balance of {account}")

    def open_account(self, account: str, initial: int = 0) -> str:
        """
        Open an account with an optional starting balance.

        Raises:
            ValueError: If the account already exists
        """
        if account in self.balances:
            raise ValueError(f"Account {account} already open")
        self.balances[account] = ensure_uint(initial, AMOUNT_BITS, f"balance of {account}")
        return account

    def balance(self, account: str) -> int:
        return self.balances.get(account, 0)

    def deposit(self, account: str, amount: int) -> int:
        """
        Credit value from outside the system (a donation to the fund).

        Returns:
            The account's new balance
        """
        if ensure_uint(amount, AMOUNT_BITS, "deposit") == 0:
            raise ValueError("Deposit amount must be positive")
        new_balance = ensure_uint(self.balance(account) + amount, AMOUNT_BITS, f"balance of {account}")
        self.balances[account] = new_balance
        return new_balance

    def transfer_value(self, source: str, dest: str, amount: int) -> None:
        """
        Move value between two accounts.

        Raises:
            CustodianError: If source holds less than amount
            ValueError: If source and dest are the same account
        """
        ensure_uint(amount, AMOUNT_BITS, "transfer")
        if source == dest:
            raise ValueError("Source and dest must be different")
        available = self.balance(source)
        if available < amount:
            raise CustodianError(
                f"Account {source} holds {available}, cannot transfer {amount}"
            )
        new_dest = ensure_uint(self.balance(dest) + amount, AMOUNT_BITS, f"balance of {dest}")
        self.balances[source] = available - amount
        self.balances[dest] = new_dest

    def set_balance(self, account: str, amount: int) -> None:
        """
        Overwrite an account balance directly.

        WARNING: Only available in test mode. Used to simulate tampering or
        external drains that the fund must detect.
        """
        if not self._test_mode:
            raise CustodianError(
                "set_balance() is disabled in production mode. "
                "Set test_mode=True when creating InMemoryCustodian for testing."
            )
        self.balances[account] = ensure_uint(amount, AMOUNT_BITS, f"balance of {account}")

    def total(self) -> int:
        """Sum of all balances; constant except for deposits and set_balance()."""
        return sum(self.balances[a] for a in sorted(self.balances))

    def __repr__(self):
        return f"InMemoryCustodian({len(self.balances)} accounts)"
