#!/usr/bin/env python3
"""Offline crank: run a few distribution days against in-memory collaborators.

Usage:
    python tools/fee_router_crank_demo.py --days 3 --investors 150
    python tools/fee_router_crank_demo.py --config vault.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.fee_router import SECONDS_PER_DAY, FeeRouterError, VaultConfig
from src.integration.collaborators import InvestorRecord
from src.integration.memory_ledger import InMemoryLedger
from src.integration.router_config import RouterSettings, load_config_file
from src.integration.router_engine import FeeRouter
from src.integration.simulated import LinearVestingOracle, SimulatedPosition

DEFAULT_VAULT = VaultConfig(
    vault_id="0x" + "ab" * 32,
    authority="authority",
    creator="creator",
    quote_asset="USDC",
    base_asset="SOL",
    treasury="treasury",
    investor_fee_share_bps=8000,
    min_payout_lamports=1_000,
    daily_cap_lamports=None,
)


class _Clock:
    def __init__(self, start: int) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Run an offline fee router crank.")
    ap.add_argument("--config", type=Path, default=None, help="YAML file with router/vault sections")
    ap.add_argument("--days", type=int, default=2)
    ap.add_argument("--investors", type=int, default=100)
    ap.add_argument("--allocation-each", type=int, default=10_000_000)
    ap.add_argument("--daily-fees", type=int, default=5_000_000)
    ap.add_argument("--vesting-days", type=int, default=30)
    args = ap.parse_args(argv)

    settings, vault = RouterSettings(), None
    if args.config is not None:
        settings, vault = load_config_file(args.config)
    vault = vault or DEFAULT_VAULT
    logging.basicConfig(level=settings.log_level_no, format="%(levelname)s %(name)s: %(message)s")

    start = 1_700_000_000
    clock = _Clock(start)
    ledger = InMemoryLedger()
    position = SimulatedPosition("position-1", quote_asset=vault.quote_asset, base_asset=vault.base_asset)
    oracle = LinearVestingOracle()
    router = FeeRouter(ledger, position, oracle, settings=settings, clock=clock)

    router.initialize_vault(vault)
    router.bind_fee_position(
        vault.vault_id,
        position=position.position,
        pool="pool-1",
        token_x=vault.base_asset,
        token_y=vault.quote_asset,
        caller=vault.authority,
    )
    roster = []
    for i in range(args.investors):
        stream = f"stream-{i}"
        oracle.add_stream(
            stream,
            total=args.allocation_each,
            start_ts=start,
            end_ts=start + args.vesting_days * SECONDS_PER_DAY,
        )
        roster.append(InvestorRecord(investor=f"investor-{i}", stream=stream))
    router.set_investor_allocation(vault.vault_id, args.allocation_each * args.investors, caller=vault.authority)

    page_size = settings.max_investors_per_page
    pages = [roster[i:i + page_size] for i in range(0, len(roster), page_size)] or [[]]

    for day in range(1, args.days + 1):
        clock.now = start + day * SECONDS_PER_DAY
        position.accrue(ledger, quote=args.daily_fees)
        try:
            for index, page in enumerate(pages):
                router.process_page(vault.vault_id, index, index == len(pages) - 1, page)
        except FeeRouterError as exc:
            print(f"[crank] day {day} FAIL {exc.code}: {exc}")
            return 1
        _, state = router.get_state(vault.vault_id)
        creator = ledger.balance_of(vault.creator, vault.quote_asset)
        print(
            f"[crank] day={state.current_day} claimed={state.day_claimed_fees} "
            f"investors={state.day_investor_total} carry_over={state.carry_over} creator_balance={creator}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
