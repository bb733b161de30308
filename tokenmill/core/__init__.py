"""
Core Token Mill algorithms
"""

from .curve_math import Rounding, mul_div, div, get_sqrt_discriminant, get_delta_base_in, get_delta_base_out
from .curve import (
    default_curve,
    get_quote_amount_with_parameters,
    get_quote_amount,
    get_base_amount_in,
    get_base_amount_out,
)
from .types import SwapType, SwapAmountType, SwapQuote, SwapOutcome, FeeDistribution
from .swap import quote_swap, apply_swap, check_amount_threshold, execute_swap
from .fees import distribute_fee, update_market_fee_shares, claim_creator_fees
from .staking import (
    StakingUpdate,
    create_stake_position,
    accrue_rewards,
    stake_deposit,
    stake_withdraw,
    stake_deposit_vested,
    stake_withdraw_vested,
    claim_rewards,
)
from .vesting import VestingCreation, VestingRelease, create_vesting, release_vesting

__all__ = [
    "Rounding",
    "mul_div",
    "div",
    "get_sqrt_discriminant",
    "get_delta_base_in",
    "get_delta_base_out",
    "default_curve",
    "get_quote_amount_with_parameters",
    "get_quote_amount",
    "get_base_amount_in",
    "get_base_amount_out",
    "SwapType",
    "SwapAmountType",
    "SwapQuote",
    "SwapOutcome",
    "FeeDistribution",
    "quote_swap",
    "apply_swap",
    "check_amount_threshold",
    "execute_swap",
    "distribute_fee",
    "update_market_fee_shares",
    "claim_creator_fees",
    "StakingUpdate",
    "create_stake_position",
    "accrue_rewards",
    "stake_deposit",
    "stake_withdraw",
    "stake_deposit_vested",
    "stake_withdraw_vested",
    "claim_rewards",
    "VestingCreation",
    "VestingRelease",
    "create_vesting",
    "release_vesting",
]
