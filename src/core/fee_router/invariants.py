"""Invariant checkers for the fee router.

Each function returns True when the invariant holds for a (config, post-state)
pair, and `check_all()` returns the list of violated invariant IDs
(empty = all pass).
"""

from __future__ import annotations

from typing import Callable

from .math import MAX_PAGES_PER_DAY, U64_MAX
from .types import DistributionState, VaultConfig

_COUNTERS: tuple[str, ...] = (
    "current_day",
    "last_distribution_ts",
    "current_page",
    "pages_processed",
    "day_claimed_fees",
    "day_investor_total",
    "daily_distributed",
    "carry_over",
    "revision",
)

_PER_DAY: tuple[str, ...] = (
    "last_distribution_ts",
    "current_page",
    "pages_done_mask",
    "pages_processed",
    "day_claimed_fees",
    "day_investor_total",
    "daily_distributed",
)


def inv_counters_in_u64(c: VaultConfig, s: DistributionState) -> bool:
    for name in _COUNTERS:
        v = getattr(s, name)
        if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v <= U64_MAX):
            return False
    return True


def inv_page_within_ceiling(c: VaultConfig, s: DistributionState) -> bool:
    return s.current_page < MAX_PAGES_PER_DAY and 0 <= s.pages_done_mask < (1 << MAX_PAGES_PER_DAY)


def inv_no_future_pages_done(c: VaultConfig, s: DistributionState) -> bool:
    return (s.pages_done_mask >> (s.current_page + 1)) == 0


def inv_pages_processed_bounded(c: VaultConfig, s: DistributionState) -> bool:
    return s.pages_processed <= s.current_page


def inv_daily_matches_investor_total(c: VaultConfig, s: DistributionState) -> bool:
    return s.daily_distributed == s.day_investor_total


def inv_daily_cap_respected(c: VaultConfig, s: DistributionState) -> bool:
    if c.daily_cap_lamports is None:
        return True
    return s.daily_distributed <= c.daily_cap_lamports


def inv_no_day_zeroed(c: VaultConfig, s: DistributionState) -> bool:
    if s.current_day > 0:
        return True
    return not s.day_complete and all(getattr(s, name) == 0 for name in _PER_DAY)


def inv_complete_marks_final_page(c: VaultConfig, s: DistributionState) -> bool:
    if not s.day_complete:
        return True
    return (s.pages_done_mask >> s.current_page) & 1 == 1


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[VaultConfig, DistributionState], bool]] = {
    "inv_counters_in_u64": inv_counters_in_u64,
    "inv_page_within_ceiling": inv_page_within_ceiling,
    "inv_no_future_pages_done": inv_no_future_pages_done,
    "inv_pages_processed_bounded": inv_pages_processed_bounded,
    "inv_daily_matches_investor_total": inv_daily_matches_investor_total,
    "inv_daily_cap_respected": inv_daily_cap_respected,
    "inv_no_day_zeroed": inv_no_day_zeroed,
    "inv_complete_marks_final_page": inv_complete_marks_final_page,
}


def check_all(config: VaultConfig, state: DistributionState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(config, state)
    ]
