"""Exception types for the Token Mill engine.

Every operation either returns fully-computed new records or raises one of
these; callers never observe a half-applied mutation.
"""

from __future__ import annotations


class TokenMillError(Exception):
    """Base class. `code` is a stable identifier suitable for logs and APIs."""

    code = "token_mill_error"


class MathError(TokenMillError):
    """Raised on overflow, division by zero, or an out-of-domain intermediate."""

    code = "math_error"


# -- Configuration -----------------------------------------------------------

class ConfigurationError(TokenMillError):
    code = "configuration_error"


class InvalidFeeShare(ConfigurationError):
    code = "invalid_fee_share"


class InvalidTotalSupply(ConfigurationError):
    code = "invalid_total_supply"


class InvalidQuoteTokenDecimals(ConfigurationError):
    code = "invalid_quote_token_decimals"


# -- Curve integrity ---------------------------------------------------------

class CurveError(TokenMillError):
    code = "curve_error"


class PricesAlreadySet(CurveError):
    code = "prices_already_set"


class PricesNotSet(CurveError):
    code = "prices_not_set"


class InvalidPricesLength(CurveError):
    code = "invalid_prices_length"


class BidAskMismatch(CurveError):
    code = "bid_ask_mismatch"


class DecreasingPrices(CurveError):
    code = "decreasing_prices"


class PriceTooHigh(CurveError):
    code = "price_too_high"


# -- Swaps -------------------------------------------------------------------

class SwapError(TokenMillError):
    code = "swap_error"


class InvalidAmount(SwapError):
    code = "invalid_amount"


class AmountThresholdNotMet(SwapError):
    """Raised when a swap result violates the caller's slippage bound."""

    code = "amount_threshold_not_met"

    def __init__(self, amount: int, threshold: int) -> None:
        self.amount = amount
        self.threshold = threshold
        super().__init__(f"amount {amount} violates threshold {threshold}")


# -- Staking / vesting -------------------------------------------------------

class StakingError(TokenMillError):
    code = "staking_error"


class InsufficientStakeAmount(StakingError):
    code = "insufficient_stake_amount"


class StakePositionExists(StakingError):
    code = "stake_position_exists"


class StakePositionNotFound(StakingError):
    code = "stake_position_not_found"


class VestingError(TokenMillError):
    code = "vesting_error"


class InvalidVestingDuration(VestingError):
    code = "invalid_vesting_duration"


class InvalidVestingStartTime(VestingError):
    code = "invalid_vesting_start_time"


class VestingPlanNotFound(VestingError):
    code = "vesting_plan_not_found"
