"""Guard functions for the fee router.

Each guard inspects the PRE-state (and request) and either returns normally or
raises the typed rejection. Guards never build new state.
"""

from __future__ import annotations

from typing import Sequence

from .errors import (
    BaseFeesDetectedError,
    DayNotStartedError,
    DistributionAlreadyCompletedError,
    DistributionWindowNotReachedError,
    InvalidInvestorDataError,
    InvalidPageNumberError,
    NoFeesToClaimError,
    PageLimitExceededError,
    PositionNotInitializedError,
    UnauthorizedError,
)
from .math import MAX_INVESTORS_PER_PAGE, MAX_PAGES_PER_DAY, SECONDS_PER_DAY, require_u64
from .state import can_distribute, is_page_done
from .types import (
    ClaimObservation,
    DistributionState,
    InvestorLine,
    PagePlan,
    PageRequest,
    VaultConfig,
)


def guard_authority(config: VaultConfig, caller: str) -> None:
    if caller != config.authority:
        raise UnauthorizedError(f"caller {caller!r} is not the vault authority")


def guard_position_bound(config: VaultConfig) -> None:
    if not config.position_bound:
        raise PositionNotInitializedError("no fee position bound to the vault")


def guard_same_vault(config: VaultConfig, state: DistributionState, request: PageRequest) -> None:
    if not (config.vault_id == state.vault_id == request.vault_id):
        raise ValueError(
            f"vault mismatch: config={config.vault_id} state={state.vault_id} request={request.vault_id}"
        )


def plan_page(
    config: VaultConfig,
    state: DistributionState,
    request: PageRequest,
    now: int,
) -> PagePlan:
    """Decide what *request* does against *state*, or raise why it cannot.

    Page 0 is always held to the 24h gate, so a retried page 0 inside its own
    window is rejected rather than replayed. For later pages, replays are
    detected before ordering checks so a blind retry of a committed page is a
    silent no-op.
    """
    guard_same_vault(config, state, request)
    guard_position_bound(config)

    page = request.page
    if not isinstance(page, int) or isinstance(page, bool):
        raise InvalidPageNumberError(f"page must be an int, got {type(page).__name__}")
    if page < 0 or page >= MAX_PAGES_PER_DAY:
        raise PageLimitExceededError(f"page must be in [0, {MAX_PAGES_PER_DAY}): {page}")

    if page == 0:
        if not can_distribute(state, now):
            wait = state.last_distribution_ts + SECONDS_PER_DAY - now
            raise DistributionWindowNotReachedError(f"next distribution window opens in {wait}s")
        return PagePlan.START_DAY

    if state.current_day == 0:
        raise DayNotStartedError("process page 0 first to claim fees")
    if is_page_done(state, page):
        return PagePlan.REPLAY
    if state.day_complete:
        raise DistributionAlreadyCompletedError(f"day {state.current_day} is already closed")
    if page != state.current_page:
        raise InvalidPageNumberError(f"expected page {state.current_page}, got {page}")
    return PagePlan.CONTINUE


def validate_roster(
    lines: Sequence[InvestorLine],
    *,
    max_investors: int = MAX_INVESTORS_PER_PAGE,
) -> tuple[InvestorLine, ...]:
    """Check a page roster: bounded size, unique investors, u64 locked balances."""
    if len(lines) > max_investors:
        raise InvalidInvestorDataError(f"page holds {len(lines)} investors, max {max_investors}")
    seen: set[str] = set()
    for line in lines:
        if not isinstance(line, InvestorLine):
            raise InvalidInvestorDataError(f"roster entry must be an InvestorLine, got {type(line).__name__}")
        if not isinstance(line.investor, str) or not line.investor:
            raise InvalidInvestorDataError("investor must be a non-empty str")
        if line.investor in seen:
            raise InvalidInvestorDataError(f"duplicate investor on page: {line.investor}")
        seen.add(line.investor)
        try:
            require_u64(line.locked_amount, name=f"locked_amount[{line.investor}]")
        except (TypeError, ValueError) as exc:
            raise InvalidInvestorDataError(str(exc)) from exc
    return tuple(lines)


def verify_quote_only_claim(obs: ClaimObservation) -> int:
    """Return the claimed quote amount, enforcing the quote-only contract.

    Checked in order: no pre-existing base balance, no base produced by the
    claim, strictly positive quote delta.
    """
    if obs.base_before != 0:
        raise BaseFeesDetectedError(f"treasury already holds {obs.base_before} base units")
    if obs.base_after != obs.base_before:
        raise BaseFeesDetectedError(
            f"claim changed base balance: {obs.base_before} -> {obs.base_after}"
        )
    if obs.quote_after <= obs.quote_before:
        raise NoFeesToClaimError(
            f"quote balance did not increase: {obs.quote_before} -> {obs.quote_after}"
        )
    return obs.quote_after - obs.quote_before
