"""
Record types for Token Mill markets
"""

from .market import Market, MarketFees, initialize_market, set_curve, validate_prices
from .staking import MarketStaking, StakePosition
from .vesting import VestingPlan
from .config import MillConfig, create_market, update_default_fee_shares

__all__ = [
    "Market",
    "MarketFees",
    "initialize_market",
    "set_curve",
    "validate_prices",
    "MarketStaking",
    "StakePosition",
    "VestingPlan",
    "MillConfig",
    "create_market",
    "update_default_fee_shares",
]
