"""
In-memory transfer ledger with all-or-nothing units of work.

Each `unit_of_work()` runs against a private copy of the committed balances and
records; the copy replaces the committed view only when the block exits
normally. Units of work are serialized by a lock, which stands in for the
per-vault serialization a real ledger provides.

Vault records are stored in their canonical snapshot encoding
(`router_snapshot`), exactly as a durable store would hold them.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from ..core.fee_router.errors import StaleStateError, VaultAlreadyInitializedError
from ..core.fee_router.types import DistributionState, VaultConfig
from ..state.balances import BalanceTable
from .router_snapshot import decode_records, encode_records


class InMemorySession:
    def __init__(self, balances: BalanceTable, records: Dict[str, bytes]) -> None:
        self._balances = balances
        self._records = records
        self.transfers: list[Tuple[str, str, str, int]] = []

    def balance_of(self, account: str, asset: str) -> int:
        return self._balances.get(account, asset)

    def credit(self, account: str, asset: str, amount: int) -> None:
        """Mint into an account (used by simulated external services)."""
        if amount < 0:
            raise ValueError(f"credit must be non-negative: {amount}")
        self._balances.add(account, asset, amount)

    def transfer(self, source: str, destination: str, asset: str, amount: int) -> None:
        self._balances.move(source, destination, asset, amount)
        self.transfers.append((source, destination, asset, amount))

    def _records_for(self, vault_id: str) -> Optional[Tuple[VaultConfig, DistributionState]]:
        raw = self._records.get(vault_id)
        if raw is None:
            return None
        return decode_records(raw)

    def load_vault(self, vault_id: str) -> Optional[VaultConfig]:
        rec = self._records_for(vault_id)
        return rec[0] if rec is not None else None

    def load_state(self, vault_id: str) -> Optional[DistributionState]:
        rec = self._records_for(vault_id)
        return rec[1] if rec is not None else None

    def save(self, config: VaultConfig, state: DistributionState, *, expected_revision: Optional[int]) -> None:
        current = self.load_state(config.vault_id)
        if expected_revision is None:
            if current is not None:
                raise VaultAlreadyInitializedError(f"vault {config.vault_id} already exists")
        elif current is None or current.revision != expected_revision:
            found = None if current is None else current.revision
            raise StaleStateError(f"expected revision {expected_revision}, found {found}")
        self._records[config.vault_id] = encode_records(config, state)


class InMemoryLedger:
    def __init__(self) -> None:
        self._balances = BalanceTable()
        self._records: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.commits = 0

    @contextmanager
    def unit_of_work(self) -> Iterator[InMemorySession]:
        with self._lock:
            session = InMemorySession(self._balances.copy(), dict(self._records))
            yield session
            # Only reached when the block did not raise.
            self._balances = session._balances
            self._records = session._records
            self.commits += 1

    def mint(self, account: str, asset: str, amount: int) -> None:
        with self.unit_of_work() as session:
            session.credit(account, asset, amount)

    def balance_of(self, account: str, asset: str) -> int:
        return self._balances.get(account, asset)

    def total_supply(self, asset: str) -> int:
        return self._balances.total(asset)

    def raw_record(self, vault_id: str) -> Optional[bytes]:
        return self._records.get(vault_id)
