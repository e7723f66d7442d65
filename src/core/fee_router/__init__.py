"""`fee_router`: pure-Python core of the quote-only fee router.

Routes quote-denominated trading fees claimed from a liquidity position to
investors (pro rata by still-locked vesting balance) and the remainder to a
creator, once per 24h, in bounded pages:

- deterministic, integer-only transitions (u64-checked, floor rounding),
- immutable state (frozen dataclasses),
- fail-closed guards and post-state invariant checks,
- per-page idempotency via a done-page bitmap.

Public API:
- `initialize_vault(config, now=...)`, `bind_fee_position(...)`,
  `set_investor_allocation(...)`
- `plan_page(config, state, request, now) -> PagePlan`
- `step(config, state, request, now=..., roster=..., claim=...) -> PageOutcome`
"""

from .engine import apply_page, bind_fee_position, initialize_vault, set_investor_allocation, step
from .errors import (
    BaseFeesDetectedError,
    DayNotStartedError,
    DistributionAlreadyCompletedError,
    DistributionWindowNotReachedError,
    FeeRouterClaimError,
    FeeRouterError,
    FeeRouterInvariantError,
    FeeRouterOverflowError,
    FeeRouterSequencingError,
    FeeRouterValidationError,
    InvalidFeeShareBpsError,
    InvalidInvestorDataError,
    InvalidPageNumberError,
    InvalidQuoteMintError,
    NoFeesToClaimError,
    PageLimitExceededError,
    PositionNotInitializedError,
    StaleStateError,
    UnauthorizedError,
    VaultAlreadyInitializedError,
    VaultNotInitializedError,
)
from .guards import plan_page, verify_quote_only_claim
from .math import BPS_SCALE, MAX_INVESTORS_PER_PAGE, MAX_PAGES_PER_DAY, SECONDS_PER_DAY, U64_MAX
from .state import (
    can_distribute,
    initial_state,
    is_page_done,
    mark_page_done,
    start_new_day,
    state_from_dict,
    state_to_dict,
    vault_from_dict,
    vault_to_dict,
)
from .types import (
    ClaimObservation,
    DistributionState,
    Event,
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

__all__ = [
    "apply_page",
    "bind_fee_position",
    "initialize_vault",
    "set_investor_allocation",
    "step",
    "plan_page",
    "verify_quote_only_claim",
    "BPS_SCALE",
    "MAX_INVESTORS_PER_PAGE",
    "MAX_PAGES_PER_DAY",
    "SECONDS_PER_DAY",
    "U64_MAX",
    "can_distribute",
    "initial_state",
    "is_page_done",
    "mark_page_done",
    "start_new_day",
    "state_from_dict",
    "state_to_dict",
    "vault_from_dict",
    "vault_to_dict",
    "ClaimObservation",
    "DistributionState",
    "Event",
    "InvestorLine",
    "InvestorPayoutLine",
    "Notification",
    "PageOutcome",
    "PagePlan",
    "PageRequest",
    "PayoutDisposition",
    "Transfer",
    "VaultConfig",
    "FeeRouterError",
    "FeeRouterValidationError",
    "FeeRouterSequencingError",
    "FeeRouterClaimError",
    "FeeRouterOverflowError",
    "FeeRouterInvariantError",
    "BaseFeesDetectedError",
    "DayNotStartedError",
    "DistributionAlreadyCompletedError",
    "DistributionWindowNotReachedError",
    "InvalidFeeShareBpsError",
    "InvalidInvestorDataError",
    "InvalidPageNumberError",
    "InvalidQuoteMintError",
    "NoFeesToClaimError",
    "PageLimitExceededError",
    "PositionNotInitializedError",
    "StaleStateError",
    "UnauthorizedError",
    "VaultAlreadyInitializedError",
    "VaultNotInitializedError",
]
