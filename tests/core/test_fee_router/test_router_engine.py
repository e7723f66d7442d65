"""Tests for src/core/fee_router/engine.py: vault lifecycle + page step.

Tests cover full distribution days end-to-end through the pure engine.
"""

import pytest
from dataclasses import replace

from src.core.fee_router import (
    SECONDS_PER_DAY,
    U64_MAX,
    BaseFeesDetectedError,
    ClaimObservation,
    Event,
    FeeRouterOverflowError,
    InvalidInvestorDataError,
    InvalidQuoteMintError,
    InvestorLine,
    PageLimitExceededError,
    PagePlan,
    PageRequest,
    PayoutDisposition,
    Transfer,
    UnauthorizedError,
    VaultAlreadyInitializedError,
    VaultConfig,
    bind_fee_position,
    initial_state,
    initialize_vault,
    mark_page_done,
    set_investor_allocation,
    step,
)
from src.core.fee_router.invariants import check_all

VAULT_ID = "0x" + "11" * 32
T0 = 10 * SECONDS_PER_DAY


def _config(**kwargs) -> VaultConfig:
    fields = dict(
        vault_id=VAULT_ID,
        authority="authority",
        creator="creator",
        quote_asset="USDC",
        base_asset="SOL",
        treasury="treasury",
        investor_fee_share_bps=8_000,
        total_investor_allocation=1_000_000,
        fee_position="pos",
        pool="pool",
    )
    fields.update(kwargs)
    return VaultConfig(**fields)


def _claim(amount: int, quote_before: int = 0) -> ClaimObservation:
    return ClaimObservation(
        quote_before=quote_before,
        quote_after=quote_before + amount,
        base_before=0,
        base_after=0,
    )


def _roster(*pairs):
    return [InvestorLine(investor=i, locked_amount=a) for i, a in pairs]


def _req(page: int, final: bool = False) -> PageRequest:
    return PageRequest(vault_id=VAULT_ID, page=page, is_final_page=final)


AB = (("a", 300_000), ("b", 200_000))


def _events(outcome):
    return [n.event for n in outcome.events]


# ---------------------------------------------------------------------------
# Vault lifecycle
# ---------------------------------------------------------------------------

class TestInitializeVault:
    def test_zero_state_and_event(self):
        config = _config(fee_position=None, pool=None)
        c, s, note = initialize_vault(config, now=5)
        assert c == config
        assert s == initial_state(VAULT_ID)
        assert note.event is Event.VAULT_INITIALIZED
        assert note.fields["investor_fee_share_bps"] == 8_000


class TestBindFeePosition:
    def _unbound(self):
        return _config(fee_position=None, pool=None)

    def test_binds(self):
        c, note = bind_fee_position(
            self._unbound(), position="pos-1", pool="pool-1",
            token_x="SOL", token_y="USDC", caller="authority", now=1,
        )
        assert c.fee_position == "pos-1"
        assert c.pool == "pool-1"
        assert note.event is Event.FEE_POSITION_BOUND

    def test_only_authority(self):
        with pytest.raises(UnauthorizedError):
            bind_fee_position(
                self._unbound(), position="p", pool="q",
                token_x="USDC", token_y="SOL", caller="mallory", now=1,
            )

    def test_pool_without_quote_asset(self):
        with pytest.raises(InvalidQuoteMintError):
            bind_fee_position(
                self._unbound(), position="p", pool="q",
                token_x="USDT", token_y="SOL", caller="authority", now=1,
            )

    def test_pool_with_wrong_base(self):
        with pytest.raises(InvalidQuoteMintError):
            bind_fee_position(
                self._unbound(), position="p", pool="q",
                token_x="USDC", token_y="ETH", caller="authority", now=1,
            )

    def test_bind_once(self):
        with pytest.raises(VaultAlreadyInitializedError):
            bind_fee_position(
                _config(), position="p2", pool="q2",
                token_x="USDC", token_y="SOL", caller="authority", now=1,
            )


class TestSetInvestorAllocation:
    def test_overwrites(self):
        c, note = set_investor_allocation(_config(), 2_000_000, caller="authority", now=1)
        assert c.total_investor_allocation == 2_000_000
        assert note.event is Event.INVESTOR_ALLOCATION_SET
        assert note.fields["total_investor_allocation"] == 2_000_000

    def test_only_authority(self):
        with pytest.raises(UnauthorizedError):
            set_investor_allocation(_config(), 1, caller="mallory", now=1)

    def test_negative(self):
        with pytest.raises(ValueError):
            set_investor_allocation(_config(), -1, caller="authority", now=1)


# ---------------------------------------------------------------------------
# Single-page days
# ---------------------------------------------------------------------------

class TestSinglePageDay:
    def test_half_locked_cohort(self):
        # f_locked = 500k / 1M = 5000 bps < 8000 share -> 50% of fees to investors.
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        assert out.plan is PagePlan.START_DAY
        assert out.investor_fee_quote == 50_000
        assert [line.amount for line in out.lines] == [30_000, 20_000]
        assert all(line.disposition is PayoutDisposition.PAID for line in out.lines)
        assert [line.weight_bps for line in out.lines] == [6_000, 4_000]
        assert out.creator_payout == 50_000
        assert out.transfers == (
            Transfer("treasury", "a", "USDC", 30_000),
            Transfer("treasury", "b", "USDC", 20_000),
            Transfer("treasury", "creator", "USDC", 50_000),
        )

        s = out.state
        assert s.current_day == 1
        assert s.last_distribution_ts == T0
        assert s.day_claimed_fees == 100_000
        assert s.day_investor_total == 50_000
        assert s.daily_distributed == 50_000
        assert s.carry_over == 0
        assert s.day_complete
        assert s.current_page == 0
        assert s.pages_done_mask == 1
        assert s.revision == 1

    def test_small_claim_split(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(10_000),
        )
        assert [line.amount for line in out.lines] == [3_000, 2_000]
        assert out.creator_payout == 5_000

    def test_event_fields_are_read_only(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        with pytest.raises(TypeError):
            out.events[0].fields["amount_claimed"] = 1
        assert out.events[0].fields["amount_claimed"] == 100_000

    def test_events_in_order(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        assert _events(out) == [
            Event.QUOTE_FEES_CLAIMED,
            Event.INVESTOR_PAYOUT,
            Event.INVESTOR_PAYOUT,
            Event.INVESTOR_PAYOUT_PAGE,
            Event.CREATOR_PAYOUT_DAY_CLOSED,
        ]
        closed = out.events[-1]
        assert closed.fields["creator_payout"] == 50_000
        assert closed.fields["total_distributed_to_investors"] == 50_000
        assert closed.fields["distribution_day"] == 1
        assert all(n.timestamp == T0 for n in out.events)

    def test_dust_goes_to_carry_over(self):
        # Amounts 3000/2000 are both under the 3500 minimum.
        config = _config(min_payout_lamports=3_500)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(10_000),
        )
        assert [line.disposition for line in out.lines] == [PayoutDisposition.DUST] * 2
        assert out.state.day_investor_total == 0
        assert out.state.carry_over == 5_000
        assert out.diverted_to_carry == 5_000
        assert out.creator_payout == 10_000
        assert out.transfers == (Transfer("treasury", "creator", "USDC", 10_000),)
        assert Event.INVESTOR_PAYOUT not in _events(out)

    def test_cap_skips_early_investor_pays_later_one(self):
        config = _config(daily_cap_lamports=25_000)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        assert [line.disposition for line in out.lines] == [PayoutDisposition.CAPPED, PayoutDisposition.PAID]
        assert out.state.daily_distributed == 20_000
        assert out.state.carry_over == 30_000
        assert out.creator_payout == 80_000

    def test_cap_applies_in_page_order(self):
        config = _config(daily_cap_lamports=40_000)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        assert [line.disposition for line in out.lines] == [PayoutDisposition.PAID, PayoutDisposition.CAPPED]
        assert out.state.daily_distributed == 30_000
        assert out.state.carry_over == 20_000

    def test_cap_boundary_is_paid(self):
        config = _config(daily_cap_lamports=50_000)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )
        assert all(line.disposition is PayoutDisposition.PAID for line in out.lines)

    def test_rounding_remainder_to_carry_over(self):
        config = _config(investor_fee_share_bps=10_000, total_investor_allocation=3)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(("a", 1), ("b", 1), ("c", 1)), claim=_claim(100),
        )
        assert [line.amount for line in out.lines] == [33, 33, 33]
        assert out.rounding_remainder == 1
        assert out.state.carry_over == 1
        assert out.creator_payout == 1

    def test_fully_vested_pays_creator_everything(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(("a", 0), ("b", 0)), claim=_claim(10_000),
        )
        assert [line.disposition for line in out.lines] == [PayoutDisposition.ZERO] * 2
        assert out.state.carry_over == 0
        assert out.creator_payout == 10_000

    def test_zero_allocation_pays_creator_everything(self):
        config = _config(total_investor_allocation=0)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(10_000),
        )
        assert out.investor_fee_quote == 0
        assert out.creator_payout == 10_000

    def test_empty_roster(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=(), claim=_claim(10_000),
        )
        assert out.lines == ()
        assert out.creator_payout == 10_000

    def test_token_scale_balances(self):
        # 9-decimal vesting balances against a 6-decimal quote claim.
        config = _config(total_investor_allocation=2 * 10**15)
        out = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(("a", 5 * 10**14), ("b", 5 * 10**14)), claim=_claim(10**9),
        )
        assert out.investor_fee_quote == 5 * 10**8
        assert [line.amount for line in out.lines] == [25 * 10**7, 25 * 10**7]
        assert [line.weight_bps for line in out.lines] == [5_000, 5_000]
        assert out.creator_payout == 5 * 10**8

    def test_share_ceiling_limits_fully_locked_cohort(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(("a", 1_000_000)), claim=_claim(10_000),
        )
        assert out.investor_fee_quote == 8_000
        assert out.creator_payout == 2_000


# ---------------------------------------------------------------------------
# Multi-page days
# ---------------------------------------------------------------------------

class TestMultiPageDay:
    def _page0(self, config=None):
        return step(
            config or _config(), initial_state(VAULT_ID), _req(0),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        )

    def test_first_page_advances_cursor(self):
        out = self._page0()
        s = out.state
        assert out.creator_payout is None
        assert not s.day_complete
        assert s.current_page == 1
        assert s.pages_processed == 1
        assert s.pages_done_mask == 0b1
        assert s.day_investor_total == 50_000
        assert Event.CREATOR_PAYOUT_DAY_CLOSED not in _events(out)
        assert len(out.transfers) == 2

    def test_final_page_closes_day(self):
        s1 = self._page0().state
        out = step(_config(), s1, _req(1, final=True), now=T0 + 60, roster=_roster(("c", 100_000)))
        assert out.plan is PagePlan.CONTINUE
        assert [line.amount for line in out.lines] == [10_000]
        assert out.state.day_investor_total == 60_000
        assert out.creator_payout == 40_000
        assert out.state.day_complete
        assert out.state.current_page == 1
        assert out.state.pages_done_mask == 0b11
        assert out.state.revision == 2
        # No claim on later pages.
        assert Event.QUOTE_FEES_CLAIMED not in _events(out)

    def test_claim_ignored_after_first_page(self):
        s1 = self._page0().state
        out = step(
            _config(), s1, _req(1, final=True), now=T0,
            roster=_roster(("c", 100_000)), claim=_claim(999_999),
        )
        assert out.state.day_claimed_fees == 100_000

    def test_cap_runs_across_pages(self):
        config = _config(daily_cap_lamports=55_000)
        s1 = self._page0(config).state
        out = step(config, s1, _req(1, final=True), now=T0, roster=_roster(("c", 100_000)))
        assert out.lines[0].disposition is PayoutDisposition.CAPPED
        assert out.state.daily_distributed == 50_000
        assert out.state.carry_over == 10_000
        assert out.creator_payout == 50_000

    def test_replay_of_committed_page(self):
        s1 = self._page0().state
        s2 = step(_config(), s1, _req(1, final=True), now=T0, roster=_roster(("c", 100_000))).state
        again = step(_config(), s2, _req(1, final=True), now=T0 + 5, roster=_roster(("c", 100_000)))
        assert again.plan is PagePlan.REPLAY
        assert again.state == s2
        assert again.transfers == ()
        assert again.events == ()

    def test_last_page_index_must_be_final(self):
        s = replace(
            initial_state(VAULT_ID),
            current_day=1,
            last_distribution_ts=T0,
            current_page=127,
            pages_processed=127,
            day_claimed_fees=1_000,
        )
        for p in range(127):
            s = mark_page_done(s, p)
        with pytest.raises(PageLimitExceededError):
            step(_config(), s, _req(127), now=T0)
        out = step(_config(), s, _req(127, final=True), now=T0)
        assert out.state.day_complete
        assert check_all(_config(), out.state) == []


# ---------------------------------------------------------------------------
# Across days
# ---------------------------------------------------------------------------

class TestAcrossDays:
    def test_carry_over_survives_next_day(self):
        config = _config(min_payout_lamports=3_500)
        s1 = step(
            config, initial_state(VAULT_ID), _req(0, final=True),
            now=T0, roster=_roster(*AB), claim=_claim(10_000),
        ).state
        assert s1.carry_over == 5_000

        out = step(
            config, s1, _req(0, final=True), now=T0 + SECONDS_PER_DAY,
            roster=_roster(*AB), claim=_claim(100_000, quote_before=5_000),
        )
        assert out.state.current_day == 2
        assert out.state.day_claimed_fees == 100_000
        assert out.state.carry_over == 5_000
        assert out.events[0].fields["carry_over_prev"] == 5_000
        assert out.creator_payout == 50_000

    def test_unfinished_day_is_abandoned(self):
        s1 = step(
            _config(), initial_state(VAULT_ID), _req(0),
            now=T0, roster=_roster(*AB), claim=_claim(100_000),
        ).state
        out = step(
            _config(), s1, _req(0, final=True), now=T0 + SECONDS_PER_DAY,
            roster=(), claim=_claim(7),
        )
        assert out.state.current_day == 2
        assert out.state.day_investor_total == 0
        assert out.creator_payout == 7


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

class TestRejections:
    def test_start_day_requires_claim(self):
        with pytest.raises(ValueError):
            step(_config(), initial_state(VAULT_ID), _req(0, final=True), now=T0)

    def test_base_fees_reject_whole_page(self):
        obs = ClaimObservation(quote_before=0, quote_after=1_000, base_before=0, base_after=1)
        with pytest.raises(BaseFeesDetectedError):
            step(_config(), initial_state(VAULT_ID), _req(0, final=True), now=T0, claim=obs)

    def test_roster_too_large(self):
        with pytest.raises(InvalidInvestorDataError):
            step(
                _config(), initial_state(VAULT_ID), _req(0, final=True), now=T0,
                roster=_roster(("a", 1), ("b", 1), ("c", 1)), claim=_claim(10), max_investors=2,
            )

    def test_full_u64_claim_is_split_exactly(self):
        out = step(
            _config(), initial_state(VAULT_ID), _req(0, final=True), now=T0,
            roster=_roster(*AB), claim=_claim(U64_MAX),
        )
        assert out.investor_fee_quote == U64_MAX * 5_000 // 10_000
        assert out.page_total + out.creator_payout == U64_MAX

    def test_carry_over_overflow_is_an_error(self):
        config = _config(investor_fee_share_bps=10_000, total_investor_allocation=3)
        full = replace(initial_state(VAULT_ID), carry_over=U64_MAX)
        with pytest.raises(FeeRouterOverflowError):
            step(
                config, full, _req(0, final=True), now=T0,
                roster=_roster(("a", 1), ("b", 1), ("c", 1)), claim=_claim(100),
            )
