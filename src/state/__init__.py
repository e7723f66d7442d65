"""
Ledger state and canonical encoding helpers for the fee router
"""

from .balances import BalanceTable

__all__ = [
    "BalanceTable",
]
