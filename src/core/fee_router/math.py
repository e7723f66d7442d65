"""Pure payout arithmetic for the fee router.

Every function is stateless and operates on plain Python ints. Amounts live in
the u64 domain: Python ints never overflow, so every stored amount and every
result is checked against ``U64_MAX`` explicitly and raises
``FeeRouterOverflowError`` instead of wrapping or saturating. Products inside
``checked_mul_div`` are wide intermediates and are not bounded.

Rounding is always floor (``//``) on non-negative operands; whatever floor
division leaves behind is returned to the caller as an explicit remainder.
"""

from __future__ import annotations

from typing import Sequence

from .errors import FeeRouterInvariantError, FeeRouterOverflowError

# Domain constants
BPS_SCALE: int = 10_000
U64_MAX: int = 2**64 - 1
SECONDS_PER_DAY: int = 86_400
MAX_PAGES_PER_DAY: int = 128
MAX_INVESTORS_PER_PAGE: int = 64


# -- Checked u64 helpers -----------------------------------------------------

def require_u64(value: object, *, name: str) -> int:
    """Return *value* if it is a non-negative int that fits in a u64."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    if value > U64_MAX:
        raise FeeRouterOverflowError(f"{name} exceeds u64: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    out = a + b
    if out > U64_MAX:
        raise FeeRouterOverflowError(f"u64 overflow: {a} + {b}")
    return out


def checked_mul_div(a: int, b: int, denom: int) -> int:
    """``floor(a * b / denom)``; only the quotient must fit in a u64.

    The product is an unbounded Python int, the wide intermediate a u64
    ledger would hold in 128 bits.
    """
    if denom <= 0:
        raise FeeRouterOverflowError(f"division by {denom}")
    out = (a * b) // denom
    if out > U64_MAX:
        raise FeeRouterOverflowError(f"u64 overflow: {a} * {b} / {denom}")
    return out


def saturating_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


# -- Eligibility -------------------------------------------------------------

def locked_fraction_bps(total_locked: int, total_allocation: int) -> int:
    """Share of the original allocation still locked, in bps (0 if no allocation).

    Not clamped: rosters reporting more than Y0 locked yield > 10_000 and are
    clamped by `eligible_share_bps`.
    """
    if total_allocation == 0:
        return 0
    return checked_mul_div(total_locked, BPS_SCALE, total_allocation)


def eligible_share_bps(investor_fee_share_bps: int, f_locked_bps: int) -> int:
    """Investor share: configured ceiling, scaled down as the cohort vests."""
    return min(investor_fee_share_bps, f_locked_bps)


def investor_fee_quote(day_claimed_fees: int, eligible_bps: int) -> int:
    """``floor(claimed * eligible_bps / 10_000)``."""
    return checked_mul_div(day_claimed_fees, eligible_bps, BPS_SCALE)


# -- Pro-rata split ----------------------------------------------------------

def sum_checked(values: Sequence[int]) -> int:
    total = 0
    for v in values:
        total = checked_add(total, v)
    return total


def pro_rata_amounts(pool: int, weights: Sequence[int]) -> tuple[list[int], int]:
    """Split *pool* by *weights* with floor rounding.

    Returns ``(amounts, remainder)`` where ``sum(amounts) + remainder == pool``
    exactly. All amounts are zero (and the remainder is the whole pool) when
    the weights sum to zero.
    """
    total = sum_checked(weights)
    if total == 0:
        return [0 for _ in weights], pool
    amounts = [checked_mul_div(pool, w, total) for w in weights]
    allocated = sum_checked(amounts)
    if allocated > pool:
        raise FeeRouterInvariantError(["pro_rata_over_allocated"])
    return amounts, pool - allocated


def weight_bps(locked_amount: int, total_locked: int) -> int:
    """Informational per-investor weight within the page, in bps."""
    if total_locked == 0:
        return 0
    return checked_mul_div(locked_amount, BPS_SCALE, total_locked)


# -- Policy helpers ----------------------------------------------------------

def is_dust(amount: int, min_payout_lamports: int) -> bool:
    return amount < min_payout_lamports


def breaches_cap(daily_distributed: int, amount: int, daily_cap_lamports: int | None) -> bool:
    """True when paying *amount* would push the day above the cap."""
    if daily_cap_lamports is None:
        return False
    if daily_distributed > daily_cap_lamports:
        return True
    return amount > daily_cap_lamports - daily_distributed


def creator_remainder(day_claimed_fees: int, day_investor_total: int) -> int:
    """Creator gets whatever investors did not; saturates at zero."""
    return saturating_sub(day_claimed_fees, day_investor_total)
