"""
Multi-asset account balances for the in-memory ledger.

Implements BalanceTable[Account, AssetId] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
Account = str  # ledger account id (treasury, investor, creator)
AssetId = str  # asset identifier (quote or base)
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Zero balances are not stored. Callers that need a stable order must sort
    keys themselves.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Account, AssetId], Amount] = {}

    def get(self, account: Account, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Account, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {account} holds {current} {asset}, needs {-delta}"
            )
        self.set(account, asset, new_balance)

    def move(self, source: Account, destination: Account, asset: AssetId, amount: Amount) -> None:
        """
        Move `amount` of `asset` between accounts. Either both legs apply or neither.

        Raises:
            ValueError: If amount is negative or the source is short
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        self.add(source, asset, -amount)
        self.add(destination, asset, amount)

    def total(self, asset: AssetId) -> Amount:
        """Sum of all balances of `asset` (conservation checks)."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def get_all_balances(self) -> Dict[Tuple[Account, AssetId], Amount]:
        return dict(self._balances)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out
