"""
Interfaces of the external collaborators the fee router consumes.

The router never trusts values reported by these services beyond what it can
observe itself: fee claims are measured through treasury balance deltas, and
every effect of a page is staged through one ledger unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ContextManager, Optional, Protocol, runtime_checkable

from ..core.fee_router.types import DistributionState, VaultConfig


@dataclass(frozen=True)
class InvestorRecord:
    """Roster entry: the payout account and the vesting stream that locks it."""

    investor: str
    stream: str


@runtime_checkable
class LedgerSession(Protocol):
    """One open unit of work against the ledger/account store."""

    def balance_of(self, account: str, asset: str) -> int:
        ...

    def transfer(self, source: str, destination: str, asset: str, amount: int) -> None:
        ...

    def load_vault(self, vault_id: str) -> Optional[VaultConfig]:
        ...

    def load_state(self, vault_id: str) -> Optional[DistributionState]:
        ...

    def save(self, config: VaultConfig, state: DistributionState, *, expected_revision: Optional[int]) -> None:
        """Stage both records; `expected_revision=None` means "must not exist yet"."""
        ...


@runtime_checkable
class TransferLedger(Protocol):
    def unit_of_work(self) -> ContextManager[LedgerSession]:
        """All-or-nothing scope: commits on normal exit, discards everything on exception."""
        ...


@runtime_checkable
class PositionService(Protocol):
    def claim_fees(self, session: LedgerSession, *, position: str, recipient: str) -> object:
        """Move accrued fees of *position* into *recipient*; the return value is ignored."""
        ...


@runtime_checkable
class VestingOracle(Protocol):
    def locked_balance(self, stream: str, as_of: int) -> int:
        ...
