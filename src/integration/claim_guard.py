"""
Quote-only fee claim guard.

Wraps the external position service: treasury balances are captured
immediately before and after the claim, and the day's claimed fees are the
observed quote delta. The service's own report of what it claimed is never
consulted.
"""

from __future__ import annotations

import logging

from ..core.fee_router.types import ClaimObservation, VaultConfig
from .collaborators import LedgerSession, PositionService

logger = logging.getLogger(__name__)


def observe_claim(
    session: LedgerSession,
    position_service: PositionService,
    config: VaultConfig,
) -> ClaimObservation:
    """Run the claim inside *session* and return the balance observation."""
    if config.fee_position is None:
        raise ValueError("vault has no fee position bound")

    quote_before = session.balance_of(config.treasury, config.quote_asset)
    base_before = session.balance_of(config.treasury, config.base_asset)

    position_service.claim_fees(session, position=config.fee_position, recipient=config.treasury)

    quote_after = session.balance_of(config.treasury, config.quote_asset)
    base_after = session.balance_of(config.treasury, config.base_asset)

    obs = ClaimObservation(
        quote_before=quote_before,
        quote_after=quote_after,
        base_before=base_before,
        base_after=base_after,
    )
    logger.debug(
        "claim observed vault=%s quote %d->%d base %d->%d",
        config.vault_id, quote_before, quote_after, base_before, base_after,
    )
    return obs

