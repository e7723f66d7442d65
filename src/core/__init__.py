"""
Core fee routing algorithms
"""

from .fee_router import (
    DistributionState,
    PageOutcome,
    PagePlan,
    PageRequest,
    VaultConfig,
    initial_state,
    plan_page,
)
from .fee_router import step as fee_router_step

__all__ = [
    "DistributionState",
    "PageOutcome",
    "PagePlan",
    "PageRequest",
    "VaultConfig",
    "initial_state",
    "plan_page",
    "fee_router_step",
]
