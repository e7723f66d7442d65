"""Data types for the fee router.

All types are frozen dataclasses (immutable); transitions build new values with
``dataclasses.replace()``.

Units/conventions:
- every amount is a non-negative integer number of quote base units
  ("lamports") and must fit in a u64,
- `*_bps` values are basis points (1/10_000),
- identifiers (vault, accounts, assets) are opaque strings; the vault id is a
  0x-prefixed, lowercase 32-byte hex string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from types import MappingProxyType
from typing import Mapping

from ...state.canonical import canonical_hex_fixed_allow_0x
from .errors import InvalidFeeShareBpsError
from .math import BPS_SCALE, require_u64

VAULT_RESERVED_BYTES = 32
STATE_RESERVED_BYTES = 64

NotificationValue = int | str | bool | None


def _require_id(value: object, *, name: str) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    if not value:
        raise ValueError(f"{name} must be non-empty")


def _require_reserved(value: object, *, name: str, nbytes: int) -> None:
    if not isinstance(value, bytes):
        raise TypeError(f"{name} must be bytes")
    if len(value) != nbytes:
        raise ValueError(f"{name} must be exactly {nbytes} bytes")


@unique
class Event(Enum):
    """One member per notification the router emits."""
    VAULT_INITIALIZED = "VaultInitialized"
    FEE_POSITION_BOUND = "FeePositionBound"
    INVESTOR_ALLOCATION_SET = "InvestorAllocationSet"
    QUOTE_FEES_CLAIMED = "QuoteFeesClaimed"
    INVESTOR_PAYOUT = "InvestorPayout"
    INVESTOR_PAYOUT_PAGE = "InvestorPayoutPage"
    CREATOR_PAYOUT_DAY_CLOSED = "CreatorPayoutDayClosed"


@unique
class PagePlan(Enum):
    """What a page request will do against the current state."""
    START_DAY = "start_day"    # page 0 after the 24h window: claim, then pay
    CONTINUE = "continue"      # next sequential page of the running day
    REPLAY = "replay"          # already committed; no effect


@unique
class PayoutDisposition(Enum):
    PAID = "paid"
    DUST = "dust"          # below min_payout_lamports, moved to carry-over
    CAPPED = "capped"      # would breach daily_cap_lamports, moved to carry-over
    ZERO = "zero"          # nothing to pay


@dataclass(frozen=True)
class VaultConfig:
    """Configuration root for one fee-routing setup."""

    vault_id: str
    authority: str
    creator: str
    quote_asset: str
    base_asset: str
    treasury: str
    investor_fee_share_bps: int
    min_payout_lamports: int = 0
    daily_cap_lamports: int | None = None
    total_investor_allocation: int = 0

    # Set once by `bind_fee_position`.
    fee_position: str | None = None
    pool: str | None = None

    reserved: bytes = bytes(VAULT_RESERVED_BYTES)

    def __post_init__(self) -> None:
        if canonical_hex_fixed_allow_0x(self.vault_id, nbytes=32, name="vault_id") != self.vault_id:
            raise ValueError("vault_id must be a lowercase 0x-prefixed 32-byte hex string")
        for name in ("authority", "creator", "quote_asset", "base_asset", "treasury"):
            _require_id(getattr(self, name), name=name)
        if self.quote_asset == self.base_asset:
            raise ValueError("quote_asset and base_asset must differ")
        if not isinstance(self.investor_fee_share_bps, int) or isinstance(self.investor_fee_share_bps, bool):
            raise TypeError("investor_fee_share_bps must be an int")
        if not (0 <= self.investor_fee_share_bps <= BPS_SCALE):
            raise InvalidFeeShareBpsError(
                f"investor_fee_share_bps must be in [0, {BPS_SCALE}]: {self.investor_fee_share_bps}"
            )
        require_u64(self.min_payout_lamports, name="min_payout_lamports")
        if self.daily_cap_lamports is not None:
            require_u64(self.daily_cap_lamports, name="daily_cap_lamports")
        require_u64(self.total_investor_allocation, name="total_investor_allocation")
        if (self.fee_position is None) != (self.pool is None):
            raise ValueError("fee_position and pool must be bound together")
        if self.fee_position is not None:
            _require_id(self.fee_position, name="fee_position")
            _require_id(self.pool, name="pool")
        _require_reserved(self.reserved, name="reserved", nbytes=VAULT_RESERVED_BYTES)

    @property
    def position_bound(self) -> bool:
        return self.fee_position is not None


@dataclass(frozen=True)
class DistributionState:
    """Per-vault day/page progress. Mutated (by replacement) every page."""

    vault_id: str

    # Day gate
    current_day: int = 0
    last_distribution_ts: int = 0

    # Page progress
    current_page: int = 0
    pages_done_mask: int = 0
    pages_processed: int = 0
    day_complete: bool = False

    # Per-day money
    day_claimed_fees: int = 0
    day_investor_total: int = 0
    daily_distributed: int = 0

    # Rolled forward across days, never paid out here.
    carry_over: int = 0

    # Bumped on every committed transition (optimistic concurrency).
    revision: int = 0

    reserved: bytes = bytes(STATE_RESERVED_BYTES)

    def __post_init__(self) -> None:
        _require_id(self.vault_id, name="vault_id")
        if not isinstance(self.day_complete, bool):
            raise TypeError("day_complete must be a bool")
        _require_reserved(self.reserved, name="reserved", nbytes=STATE_RESERVED_BYTES)


@dataclass(frozen=True)
class InvestorLine:
    """One roster entry for a page: who, and how much is still locked."""

    investor: str
    locked_amount: int


@dataclass(frozen=True)
class InvestorPayoutLine:
    """Computed payout for one investor on one page (never persisted)."""

    investor: str
    locked_amount: int
    weight_bps: int
    amount: int
    disposition: PayoutDisposition


@dataclass(frozen=True)
class PageRequest:
    vault_id: str
    page: int
    is_final_page: bool = False


@dataclass(frozen=True)
class ClaimObservation:
    """Treasury balances observed immediately around the external claim."""

    quote_before: int
    quote_after: int
    base_before: int
    base_after: int


@dataclass(frozen=True)
class Transfer:
    source: str
    destination: str
    asset: str
    amount: int


@dataclass(frozen=True)
class Notification:
    event: Event
    vault_id: str
    timestamp: int
    fields: Mapping[str, NotificationValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view: sinks share these with PageResult.events.
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True)
class PageOutcome:
    """Full effect of one page: the post-state plus what must be committed with it."""

    plan: PagePlan
    state: DistributionState
    lines: tuple[InvestorPayoutLine, ...] = ()
    transfers: tuple[Transfer, ...] = ()
    events: tuple[Notification, ...] = ()
    investor_fee_quote: int = 0
    rounding_remainder: int = 0
    diverted_to_carry: int = 0
    page_total: int = 0
    creator_payout: int | None = None
