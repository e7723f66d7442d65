"""Transition functions for the fee router.

``step(config, state, request, ...)`` is the page entry point. It:

1. Plans the request (replay / start day / continue) or rejects it.
2. On a new day, verifies the observed claim and resets the per-day counters.
3. Runs the payout arithmetic for the page roster.
4. Closes the day (creator remainder) or advances the page cursor.
5. Checks all invariants on the post-state.
6. Returns a ``PageOutcome``: post-state, transfers and notifications, to be
   committed together by the caller or not at all.

Nothing here performs I/O; the imperative shell lives in
`src/integration/router_engine.py`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from . import effects
from .errors import (
    FeeRouterInvariantError,
    InvalidQuoteMintError,
    PageLimitExceededError,
    VaultAlreadyInitializedError,
)
from .guards import (
    guard_authority,
    plan_page,
    validate_roster,
    verify_quote_only_claim,
)
from .invariants import check_all
from .math import (
    MAX_INVESTORS_PER_PAGE,
    MAX_PAGES_PER_DAY,
    breaches_cap,
    checked_add,
    creator_remainder,
    eligible_share_bps,
    investor_fee_quote,
    is_dust,
    locked_fraction_bps,
    pro_rata_amounts,
    require_u64,
    sum_checked,
    weight_bps,
)
from .state import initial_state, mark_page_done, start_new_day
from .types import (
    ClaimObservation,
    DistributionState,
    InvestorLine,
    InvestorPayoutLine,
    Notification,
    PageOutcome,
    PagePlan,
    PageRequest,
    PayoutDisposition,
    Transfer,
    VaultConfig,
)


# -- Vault lifecycle ---------------------------------------------------------

def initialize_vault(config: VaultConfig, *, now: int) -> tuple[VaultConfig, DistributionState, Notification]:
    """Create the state record for a validated config (counters all zero)."""
    return config, initial_state(config.vault_id), effects.vault_initialized(config, now)


def bind_fee_position(
    config: VaultConfig,
    *,
    position: str,
    pool: str,
    token_x: str,
    token_y: str,
    caller: str,
    now: int,
) -> tuple[VaultConfig, Notification]:
    """Bind the quote-only fee position; the pool must pair quote with base."""
    guard_authority(config, caller)
    if config.position_bound:
        raise VaultAlreadyInitializedError("a fee position is already bound")
    if config.quote_asset not in (token_x, token_y):
        raise InvalidQuoteMintError(f"pool does not trade quote asset {config.quote_asset}")
    if {token_x, token_y} != {config.quote_asset, config.base_asset}:
        raise InvalidQuoteMintError("pool must pair the vault quote asset with its base asset")
    new_config = replace(config, fee_position=position, pool=pool)
    return new_config, effects.fee_position_bound(new_config, now)


def set_investor_allocation(
    config: VaultConfig,
    total_allocation: int,
    *,
    caller: str,
    now: int,
) -> tuple[VaultConfig, Notification]:
    """Overwrite Y0, the locked-fraction denominator."""
    guard_authority(config, caller)
    require_u64(total_allocation, name="total_allocation")
    new_config = replace(config, total_investor_allocation=total_allocation)
    return new_config, effects.investor_allocation_set(new_config, now)


# -- Pages -------------------------------------------------------------------

def _payout_lines(
    config: VaultConfig,
    state: DistributionState,
    roster: Sequence[InvestorLine],
) -> tuple[list[InvestorPayoutLine], int, int]:
    """Pro-rata amounts before policy. Returns (lines, investor_fee_quote, remainder)."""
    locked = [line.locked_amount for line in roster]
    total_locked = sum_checked(locked)
    f_locked = locked_fraction_bps(total_locked, config.total_investor_allocation)
    eligible = eligible_share_bps(config.investor_fee_share_bps, f_locked)
    pool = investor_fee_quote(state.day_claimed_fees, eligible)
    amounts, remainder = pro_rata_amounts(pool, locked)
    lines = [
        InvestorPayoutLine(
            investor=line.investor,
            locked_amount=line.locked_amount,
            weight_bps=weight_bps(line.locked_amount, total_locked),
            amount=amount,
            disposition=PayoutDisposition.ZERO,
        )
        for line, amount in zip(roster, amounts)
    ]
    return lines, pool, remainder


def apply_page(
    config: VaultConfig,
    state: DistributionState,
    request: PageRequest,
    roster: Sequence[InvestorLine],
    *,
    now: int,
) -> PageOutcome:
    """Apply one page to a day that has already started.

    The returned outcome carries ``PagePlan.CONTINUE``; `step` stamps the real
    plan, the revision and any day-start notifications.
    """
    raw_lines, pool, remainder = _payout_lines(config, state, roster)

    carry = checked_add(state.carry_over, remainder)
    daily = state.daily_distributed
    paid_total = 0
    diverted = 0
    lines: list[InvestorPayoutLine] = []
    transfers: list[Transfer] = []
    notes: list[Notification] = []

    # Cap checks run in page order against the running daily total.
    for line in raw_lines:
        amount = line.amount
        if amount == 0:
            disposition = PayoutDisposition.ZERO
        elif is_dust(amount, config.min_payout_lamports):
            disposition = PayoutDisposition.DUST
        elif breaches_cap(daily, amount, config.daily_cap_lamports):
            disposition = PayoutDisposition.CAPPED
        else:
            disposition = PayoutDisposition.PAID

        line = replace(line, disposition=disposition)
        lines.append(line)
        if disposition is PayoutDisposition.PAID:
            daily = checked_add(daily, amount)
            paid_total = checked_add(paid_total, amount)
            transfers.append(Transfer(config.treasury, line.investor, config.quote_asset, amount))
            notes.append(effects.investor_payout(config.vault_id, line, now))
        elif disposition is not PayoutDisposition.ZERO:
            carry = checked_add(carry, amount)
            diverted = checked_add(diverted, amount)

    new_state = replace(
        state,
        carry_over=carry,
        daily_distributed=daily,
        day_investor_total=checked_add(state.day_investor_total, paid_total),
    )
    notes.append(
        effects.investor_payout_page(
            new_state, page=request.page, page_total=paid_total, investor_count=len(lines), now=now,
        )
    )

    creator_payout: int | None = None
    if request.is_final_page:
        creator_payout = creator_remainder(new_state.day_claimed_fees, new_state.day_investor_total)
        if creator_payout > 0:
            transfers.append(Transfer(config.treasury, config.creator, config.quote_asset, creator_payout))
        new_state = replace(new_state, day_complete=True)
        notes.append(effects.creator_payout_day_closed(new_state, creator_payout, now))
    else:
        if request.page + 1 >= MAX_PAGES_PER_DAY:
            raise PageLimitExceededError(f"page {request.page} is the last page index and must be final")
        new_state = replace(
            new_state,
            current_page=new_state.current_page + 1,
            pages_processed=new_state.pages_processed + 1,
        )

    return PageOutcome(
        plan=PagePlan.CONTINUE,
        state=mark_page_done(new_state, request.page),
        lines=tuple(lines),
        transfers=tuple(transfers),
        events=tuple(notes),
        investor_fee_quote=pool,
        rounding_remainder=remainder,
        diverted_to_carry=diverted,
        page_total=paid_total,
        creator_payout=creator_payout,
    )


def step(
    config: VaultConfig,
    state: DistributionState,
    request: PageRequest,
    *,
    now: int,
    roster: Sequence[InvestorLine] = (),
    claim: ClaimObservation | None = None,
    max_investors: int = MAX_INVESTORS_PER_PAGE,
) -> PageOutcome:
    """Compute the full effect of one page request.

    *claim* is required when the request starts a new day and ignored
    otherwise. Raises a ``FeeRouterError`` subclass on rejection; the input
    state is never modified.
    """
    plan = plan_page(config, state, request, now)
    if plan is PagePlan.REPLAY:
        return PageOutcome(plan=plan, state=state)

    notes: list[Notification] = []
    working = state
    if plan is PagePlan.START_DAY:
        if claim is None:
            raise ValueError("a claim observation is required to start a distribution day")
        claimed = require_u64(verify_quote_only_claim(claim), name="claimed_fees")
        working = replace(start_new_day(state, now), day_claimed_fees=claimed)
        notes.append(effects.quote_fees_claimed(working, state.carry_over, now))

    checked_roster = validate_roster(roster, max_investors=max_investors)
    outcome = apply_page(config, working, request, checked_roster, now=now)
    new_state = replace(outcome.state, revision=checked_add(state.revision, 1))

    violations = check_all(config, new_state)
    if violations:
        raise FeeRouterInvariantError(violations)

    return replace(outcome, plan=plan, state=new_state, events=tuple(notes) + outcome.events)
