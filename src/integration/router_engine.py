"""
Fee router execution adapter (the distribution orchestrator).

This is an imperative-shell wrapper around the functional core:
- Loads the vault records inside one ledger unit of work.
- On page 0 of a new day, runs the quote-only claim guard around the
  external position service.
- Resolves the page roster through the vesting oracle.
- Applies the pure `step()` and stages its transfers and post-state in the
  same unit of work, so a page commits fully or not at all.
- Delivers notifications only after the commit.

There is no scheduler here: a crank decides when to call `process_page` and
owns retry policy. Blind retries are safe: a committed page 0 is rejected by
the 24h gate and any other committed page replays as a no-op.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

from ..core.fee_router import engine
from ..core.fee_router.errors import FeeRouterError, VaultNotInitializedError
from ..core.fee_router.guards import plan_page
from ..core.fee_router.math import checked_add
from ..core.fee_router.types import (
    DistributionState,
    InvestorLine,
    InvestorPayoutLine,
    Notification,
    PagePlan,
    PageRequest,
    Transfer,
    VaultConfig,
)
from .claim_guard import observe_claim
from .collaborators import InvestorRecord, LedgerSession, PositionService, TransferLedger, VestingOracle
from .router_config import RouterSettings

logger = logging.getLogger(__name__)

EventSink = Callable[[Notification], None]


def _wall_clock() -> int:
    return int(time.time())


@dataclass(frozen=True)
class PageResult:
    vault_id: str
    page: int
    plan: PagePlan
    state: DistributionState
    lines: Tuple[InvestorPayoutLine, ...] = ()
    transfers: Tuple[Transfer, ...] = ()
    events: Tuple[Notification, ...] = ()
    page_total: int = 0
    creator_payout: Optional[int] = None

    @property
    def replayed(self) -> bool:
        return self.plan is PagePlan.REPLAY


class FeeRouter:
    def __init__(
        self,
        ledger: TransferLedger,
        position_service: PositionService,
        vesting_oracle: VestingOracle,
        *,
        settings: RouterSettings = RouterSettings(),
        clock: Callable[[], int] = _wall_clock,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self._ledger = ledger
        self._position_service = position_service
        self._vesting_oracle = vesting_oracle
        self._settings = settings
        self._clock = clock
        self._event_sink = event_sink

    # -- records ---------------------------------------------------------

    @staticmethod
    def _load(session: LedgerSession, vault_id: str) -> Tuple[VaultConfig, DistributionState]:
        config = session.load_vault(vault_id)
        state = session.load_state(vault_id)
        if config is None or state is None:
            raise VaultNotInitializedError(f"vault {vault_id} is not initialized")
        return config, state

    def get_state(self, vault_id: str) -> Tuple[VaultConfig, DistributionState]:
        with self._ledger.unit_of_work() as session:
            return self._load(session, vault_id)

    def _deliver(self, events: Sequence[Notification]) -> None:
        if self._event_sink is None:
            return
        for note in events:
            self._event_sink(note)

    # -- vault lifecycle -------------------------------------------------

    def initialize_vault(self, config: VaultConfig) -> Tuple[VaultConfig, DistributionState]:
        now = self._clock()
        config, state, note = engine.initialize_vault(config, now=now)
        with self._ledger.unit_of_work() as session:
            session.save(config, state, expected_revision=None)
        logger.info(
            "vault initialized vault=%s creator=%s share_bps=%d",
            config.vault_id, config.creator, config.investor_fee_share_bps,
        )
        self._deliver([note])
        return config, state

    def _update_config(
        self,
        vault_id: str,
        update: Callable[[VaultConfig, int], Tuple[VaultConfig, Notification]],
    ) -> VaultConfig:
        now = self._clock()
        with self._ledger.unit_of_work() as session:
            config, state = self._load(session, vault_id)
            new_config, note = update(config, now)
            bumped = replace(state, revision=checked_add(state.revision, 1))
            session.save(new_config, bumped, expected_revision=state.revision)
        self._deliver([note])
        return new_config

    def bind_fee_position(
        self,
        vault_id: str,
        *,
        position: str,
        pool: str,
        token_x: str,
        token_y: str,
        caller: str,
    ) -> VaultConfig:
        config = self._update_config(
            vault_id,
            lambda c, now: engine.bind_fee_position(
                c, position=position, pool=pool, token_x=token_x, token_y=token_y, caller=caller, now=now,
            ),
        )
        logger.info("fee position bound vault=%s position=%s pool=%s", vault_id, position, pool)
        return config

    def set_investor_allocation(self, vault_id: str, total_allocation: int, *, caller: str) -> VaultConfig:
        config = self._update_config(
            vault_id,
            lambda c, now: engine.set_investor_allocation(c, total_allocation, caller=caller, now=now),
        )
        logger.info("investor allocation set vault=%s total=%d", vault_id, total_allocation)
        return config

    # -- pages -----------------------------------------------------------

    def _resolve_roster(self, roster: Sequence[InvestorRecord], now: int) -> list[InvestorLine]:
        lines = [
            InvestorLine(investor=rec.investor, locked_amount=self._vesting_oracle.locked_balance(rec.stream, now))
            for rec in roster
        ]
        if self._settings.skip_zero_locked:
            lines = [line for line in lines if line.locked_amount != 0]
        return lines

    def process_page(
        self,
        vault_id: str,
        page: int,
        is_final_page: bool,
        roster: Sequence[InvestorRecord] = (),
    ) -> PageResult:
        """Process one page of the current distribution day.

        Raises a ``FeeRouterError`` subclass (or the collaborator's own
        exception) with nothing committed.
        """
        now = self._clock()
        request = PageRequest(vault_id=vault_id, page=page, is_final_page=is_final_page)
        try:
            with self._ledger.unit_of_work() as session:
                config, state = self._load(session, vault_id)
                plan = plan_page(config, state, request, now)
                if plan is PagePlan.REPLAY:
                    logger.debug("page replay vault=%s day=%d page=%d", vault_id, state.current_day, page)
                    return PageResult(vault_id=vault_id, page=page, plan=plan, state=state)

                claim = observe_claim(session, self._position_service, config) if plan is PagePlan.START_DAY else None
                outcome = engine.step(
                    config,
                    state,
                    request,
                    now=now,
                    roster=self._resolve_roster(roster, now),
                    claim=claim,
                    max_investors=self._settings.max_investors_per_page,
                )
                for t in outcome.transfers:
                    session.transfer(t.source, t.destination, t.asset, t.amount)
                session.save(config, outcome.state, expected_revision=state.revision)
        except FeeRouterError as exc:
            logger.warning("page rejected vault=%s page=%d code=%s: %s", vault_id, page, exc.code, exc)
            raise
        except Exception:
            logger.exception("page aborted vault=%s page=%d", vault_id, page)
            raise

        new_state = outcome.state
        if plan is PagePlan.START_DAY:
            logger.info(
                "distribution day started vault=%s day=%d claimed=%d carry_over=%d",
                vault_id, new_state.current_day, new_state.day_claimed_fees, state.carry_over,
            )
        logger.info(
            "page committed vault=%s day=%d page=%d paid=%d investors=%d diverted=%d",
            vault_id, new_state.current_day, page, outcome.page_total, len(outcome.lines), outcome.diverted_to_carry,
        )
        if outcome.creator_payout is not None:
            logger.info(
                "distribution day closed vault=%s day=%d investors_total=%d creator=%d carry_over=%d",
                vault_id, new_state.current_day, new_state.day_investor_total,
                outcome.creator_payout, new_state.carry_over,
            )
        self._deliver(outcome.events)
        return PageResult(
            vault_id=vault_id,
            page=page,
            plan=outcome.plan,
            state=new_state,
            lines=outcome.lines,
            transfers=outcome.transfers,
            events=outcome.events,
            page_total=outcome.page_total,
            creator_payout=outcome.creator_payout,
        )
