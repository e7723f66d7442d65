"""Exception types for the fee router.

Every rejection carries a stable ``code`` so callers (and the crank that
drives ``process_page``) can branch on the kind of failure without parsing
messages.
"""

from __future__ import annotations


class FeeRouterError(Exception):
    """Base class for all fee router rejections."""

    code: str = "FeeRouterError"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


# -- Validation ---------------------------------------------------------------

class FeeRouterValidationError(FeeRouterError):
    """Rejected before any mutation; the caller must correct the request."""

    code = "ValidationError"


class InvalidFeeShareBpsError(FeeRouterValidationError):
    code = "InvalidFeeShareBps"


class VaultAlreadyInitializedError(FeeRouterValidationError):
    code = "VaultAlreadyInitialized"


class VaultNotInitializedError(FeeRouterValidationError):
    code = "VaultNotInitialized"


class PositionNotInitializedError(FeeRouterValidationError):
    code = "PositionNotInitialized"


class InvalidQuoteMintError(FeeRouterValidationError):
    code = "InvalidQuoteMint"


class UnauthorizedError(FeeRouterValidationError):
    code = "Unauthorized"


class InvalidInvestorDataError(FeeRouterValidationError):
    code = "InvalidInvestorData"


class InvalidPageNumberError(FeeRouterValidationError):
    code = "InvalidPageNumber"


class PageLimitExceededError(FeeRouterValidationError):
    code = "PageLimitExceeded"


# -- Sequencing ---------------------------------------------------------------

class FeeRouterSequencingError(FeeRouterError):
    """The request is well formed but arrived at the wrong time."""

    code = "SequencingError"


class DistributionWindowNotReachedError(FeeRouterSequencingError):
    code = "DistributionWindowNotReached"


class DayNotStartedError(FeeRouterSequencingError):
    code = "DayNotStarted"


class DistributionAlreadyCompletedError(FeeRouterSequencingError):
    code = "DistributionAlreadyCompleted"


# -- Claim invariants ---------------------------------------------------------

class FeeRouterClaimError(FeeRouterError):
    """The observed claim violates the quote-only contract."""

    code = "ClaimError"


class BaseFeesDetectedError(FeeRouterClaimError):
    code = "BaseFeesDetected"


class NoFeesToClaimError(FeeRouterClaimError):
    code = "NoFeesToClaim"


# -- Arithmetic / state -------------------------------------------------------

class FeeRouterOverflowError(FeeRouterError):
    """Raised when an intermediate amount leaves the u64 domain."""

    code = "MathOverflow"


class FeeRouterInvariantError(FeeRouterError):
    """Raised when a post-state violates one or more invariants."""

    code = "InvariantViolation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class StaleStateError(FeeRouterError):
    """Raised when a save races with another committed page operation."""

    code = "StaleState"
