"""
Simulated external collaborators for tests and offline cranks.

- `SimulatedPosition`: a liquidity position whose accrued fees sit in a ledger
  account until claimed, so claims roll back with the unit of work.
- `LinearVestingOracle`: vesting streams that unlock linearly between a start
  and an end timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .collaborators import LedgerSession
from .memory_ledger import InMemoryLedger


def position_account(position: str) -> str:
    return f"position:{position}"


class SimulatedPosition:
    def __init__(self, position: str, *, quote_asset: str, base_asset: str) -> None:
        self.position = position
        self.quote_asset = quote_asset
        self.base_asset = base_asset
        self.claim_calls = 0

    def accrue(self, ledger: InMemoryLedger, *, quote: int = 0, base: int = 0) -> None:
        """Record trading fees earned by the position since the last claim."""
        with ledger.unit_of_work() as session:
            session.credit(position_account(self.position), self.quote_asset, quote)
            session.credit(position_account(self.position), self.base_asset, base)

    def claim_fees(self, session: LedgerSession, *, position: str, recipient: str) -> tuple[int, int]:
        if position != self.position:
            raise ValueError(f"unknown position: {position}")
        self.claim_calls += 1
        source = position_account(position)
        quote = session.balance_of(source, self.quote_asset)
        base = session.balance_of(source, self.base_asset)
        if quote:
            session.transfer(source, recipient, self.quote_asset, quote)
        if base:
            session.transfer(source, recipient, self.base_asset, base)
        return quote, base


@dataclass(frozen=True)
class LinearStream:
    total: int
    start_ts: int
    end_ts: int

    def __post_init__(self) -> None:
        if not isinstance(self.total, int) or isinstance(self.total, bool) or self.total < 0:
            raise ValueError("total must be a non-negative int")
        if self.end_ts < self.start_ts:
            raise ValueError("end_ts must be >= start_ts")

    def locked_at(self, ts: int) -> int:
        if ts <= self.start_ts:
            return self.total
        if ts >= self.end_ts:
            return 0
        vested = (self.total * (ts - self.start_ts)) // (self.end_ts - self.start_ts)
        return self.total - vested


class LinearVestingOracle:
    def __init__(self) -> None:
        self._streams: Dict[str, LinearStream] = {}

    def add_stream(self, stream: str, *, total: int, start_ts: int, end_ts: int) -> None:
        self._streams[stream] = LinearStream(total=total, start_ts=start_ts, end_ts=end_ts)

    def locked_balance(self, stream: str, as_of: int) -> int:
        try:
            return self._streams[stream].locked_at(as_of)
        except KeyError:
            raise KeyError(f"unknown vesting stream: {stream}") from None
