"""
Swap fee distribution and market fee-share management (integer-only).

Split of one swap fee, all floor rounding:
    creator  = fee * creator_share / MAX_BPS
    staking  = fee * staking_share / MAX_BPS
    remaining = fee - creator - staking
    referral = remaining * referral_share / MAX_BPS   (only when a referrer is present)
    protocol = remaining - referral

The protocol absorbs every rounding remainder, so the four parts always sum
to the fee exactly.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from ..constants import MAX_BPS, U64_MAX
from ..errors import InvalidFeeShare, MathError
from ..state.market import Market, MarketFees
from .types import FeeDistribution


def _checked_add_u64(a: int, b: int, *, name: str) -> int:
    out = a + b
    if out > U64_MAX:
        raise MathError(f"{name} overflows u64")
    return out


def distribute_fee(
    fees: MarketFees,
    swap_fee: int,
    referral_fee_share: Optional[int] = None,
) -> Tuple[MarketFees, FeeDistribution]:
    """Split `swap_fee` and accrue the creator/staking parts into the pending counters."""
    if not isinstance(swap_fee, int) or isinstance(swap_fee, bool) or swap_fee < 0:
        raise ValueError(f"swap_fee must be a non-negative int, got {swap_fee}")
    if referral_fee_share is not None and (
        not isinstance(referral_fee_share, int)
        or isinstance(referral_fee_share, bool)
        or not (0 <= referral_fee_share <= MAX_BPS)
    ):
        raise InvalidFeeShare(f"referral fee share out of range: {referral_fee_share}")

    creator_fee = swap_fee * fees.creator_fee_share // MAX_BPS
    staking_fee = swap_fee * fees.staking_fee_share // MAX_BPS
    remaining = swap_fee - creator_fee - staking_fee

    referral_fee = 0
    if referral_fee_share is not None:
        referral_fee = remaining * referral_fee_share // MAX_BPS
    protocol_fee = remaining - referral_fee

    new_fees = replace(
        fees,
        pending_creator_fees=_checked_add_u64(
            fees.pending_creator_fees, creator_fee, name="pending_creator_fees"
        ),
        pending_staking_fees=_checked_add_u64(
            fees.pending_staking_fees, staking_fee, name="pending_staking_fees"
        ),
    )
    distribution = FeeDistribution(
        creator_fee=creator_fee,
        staking_fee=staking_fee,
        protocol_fee=protocol_fee,
        referral_fee=referral_fee,
    )
    return new_fees, distribution


def update_market_fee_shares(market: Market, new_creator_fee_share: int, new_staking_fee_share: int) -> Market:
    """
    Rebalance creator vs staking shares. Their sum is fixed at creation, so
    the protocol share never changes.
    """
    for share in (new_creator_fee_share, new_staking_fee_share):
        if not isinstance(share, int) or isinstance(share, bool) or not (0 <= share <= MAX_BPS):
            raise InvalidFeeShare(f"fee share out of range: {share}")

    fees = market.fees
    if new_creator_fee_share + new_staking_fee_share != fees.creator_fee_share + fees.staking_fee_share:
        raise InvalidFeeShare(
            "creator + staking share must stay "
            f"{fees.creator_fee_share + fees.staking_fee_share}, "
            f"got {new_creator_fee_share + new_staking_fee_share}"
        )

    return replace(
        market,
        fees=replace(
            fees,
            creator_fee_share=new_creator_fee_share,
            staking_fee_share=new_staking_fee_share,
        ),
    )


def claim_creator_fees(market: Market) -> Tuple[Market, int]:
    amount = market.fees.pending_creator_fees
    return replace(market, fees=replace(market.fees, pending_creator_fees=0)), amount
