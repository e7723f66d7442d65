"""Notification constructors for the fee router.

Notifications are plain data computed from the POST-state; the shell delivers
them only after the page's unit of work has committed.
"""

from __future__ import annotations

from .types import DistributionState, Event, InvestorPayoutLine, Notification, VaultConfig


def vault_initialized(config: VaultConfig, now: int) -> Notification:
    return Notification(
        event=Event.VAULT_INITIALIZED,
        vault_id=config.vault_id,
        timestamp=now,
        fields={
            "creator": config.creator,
            "quote_asset": config.quote_asset,
            "investor_fee_share_bps": config.investor_fee_share_bps,
            "min_payout_lamports": config.min_payout_lamports,
            "daily_cap_lamports": config.daily_cap_lamports,
        },
    )


def fee_position_bound(config: VaultConfig, now: int) -> Notification:
    return Notification(
        event=Event.FEE_POSITION_BOUND,
        vault_id=config.vault_id,
        timestamp=now,
        fields={
            "position": config.fee_position,
            "pool": config.pool,
            "quote_asset": config.quote_asset,
        },
    )


def investor_allocation_set(config: VaultConfig, now: int) -> Notification:
    return Notification(
        event=Event.INVESTOR_ALLOCATION_SET,
        vault_id=config.vault_id,
        timestamp=now,
        fields={"total_investor_allocation": config.total_investor_allocation},
    )


def quote_fees_claimed(state: DistributionState, carry_over_prev: int, now: int) -> Notification:
    return Notification(
        event=Event.QUOTE_FEES_CLAIMED,
        vault_id=state.vault_id,
        timestamp=now,
        fields={
            "amount_claimed": state.day_claimed_fees,
            "carry_over_prev": carry_over_prev,
            "distribution_day": state.current_day,
        },
    )


def investor_payout(vault_id: str, line: InvestorPayoutLine, now: int) -> Notification:
    return Notification(
        event=Event.INVESTOR_PAYOUT,
        vault_id=vault_id,
        timestamp=now,
        fields={
            "investor": line.investor,
            "amount": line.amount,
            "locked_amount": line.locked_amount,
            "weight_bps": line.weight_bps,
        },
    )


def investor_payout_page(
    state: DistributionState,
    *,
    page: int,
    page_total: int,
    investor_count: int,
    now: int,
) -> Notification:
    return Notification(
        event=Event.INVESTOR_PAYOUT_PAGE,
        vault_id=state.vault_id,
        timestamp=now,
        fields={
            "page": page,
            "total_payout": page_total,
            "investor_count": investor_count,
            "daily_distributed_after": state.daily_distributed,
        },
    )


def creator_payout_day_closed(state: DistributionState, creator_payout: int, now: int) -> Notification:
    return Notification(
        event=Event.CREATOR_PAYOUT_DAY_CLOSED,
        vault_id=state.vault_id,
        timestamp=now,
        fields={
            "creator_payout": creator_payout,
            "total_distributed_to_investors": state.day_investor_total,
            "distribution_day": state.current_day,
        },
    )
