"""
Staking transitions (pure, reward-per-share accumulator).

Every state-changing operation runs `accrue_rewards` first, against the share
counts from before the mutation. That keeps each position's reward exact no
matter when its owner acts:
    reward = shares * (acc_now - acc_at_last_touch) / STAKING_SCALE

All functions take the three records involved and return a `StakingUpdate`
holding their replacements; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..constants import U64_MAX
from ..errors import InsufficientStakeAmount, MathError
from ..state.market import Market
from ..state.staking import MarketStaking, StakePosition, UserId


@dataclass(frozen=True)
class StakingUpdate:
    market: Market
    staking: MarketStaking
    position: StakePosition
    # Market pending staking fees observed before accrual.
    pending_staking_fees: int
    rewards_claimed: int = 0


def create_stake_position(user: UserId) -> StakePosition:
    return StakePosition(user=user)


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")


def accrue_rewards(market: Market, staking: MarketStaking, position: StakePosition) -> StakingUpdate:
    pending_staking_fees = market.fees.pending_staking_fees
    new_staking = staking.accrue(pending_staking_fees)

    new_market = market
    if new_staking is not staking:
        new_market = replace(market, fees=replace(market.fees, pending_staking_fees=0))

    return StakingUpdate(
        market=new_market,
        staking=new_staking,
        position=position.accrue(new_staking.acc_reward_amount_per_share),
        pending_staking_fees=pending_staking_fees,
    )


def _add_u64(a: int, b: int, name: str) -> int:
    out = a + b
    if out > U64_MAX:
        raise MathError(f"{name} overflows u64")
    return out


def stake_deposit(market: Market, staking: MarketStaking, position: StakePosition, amount: int) -> StakingUpdate:
    _require_amount(amount)
    update = accrue_rewards(market, staking, position)
    return replace(
        update,
        staking=replace(
            update.staking,
            amount_staked=_add_u64(update.staking.amount_staked, amount, "amount_staked"),
        ),
        position=replace(
            update.position,
            amount_staked=_add_u64(update.position.amount_staked, amount, "amount_staked"),
        ),
    )


def stake_withdraw(market: Market, staking: MarketStaking, position: StakePosition, amount: int) -> StakingUpdate:
    _require_amount(amount)
    if amount > position.amount_staked:
        raise InsufficientStakeAmount(
            f"cannot withdraw {amount}, only {position.amount_staked} staked"
        )
    update = accrue_rewards(market, staking, position)
    return replace(
        update,
        staking=replace(update.staking, amount_staked=update.staking.amount_staked - amount),
        position=replace(update.position, amount_staked=update.position.amount_staked - amount),
    )


def stake_deposit_vested(
    market: Market,
    staking: MarketStaking,
    position: StakePosition,
    amount: int,
) -> StakingUpdate:
    _require_amount(amount)
    update = accrue_rewards(market, staking, position)
    return replace(
        update,
        staking=replace(
            update.staking,
            total_amount_vested=_add_u64(update.staking.total_amount_vested, amount, "total_amount_vested"),
        ),
        position=replace(
            update.position,
            total_amount_vested=_add_u64(update.position.total_amount_vested, amount, "total_amount_vested"),
        ),
    )


def stake_withdraw_vested(
    market: Market,
    staking: MarketStaking,
    position: StakePosition,
    amount: int,
) -> StakingUpdate:
    _require_amount(amount)
    if amount > position.total_amount_vested:
        raise InsufficientStakeAmount(
            f"cannot release {amount}, only {position.total_amount_vested} vested"
        )
    update = accrue_rewards(market, staking, position)
    return replace(
        update,
        staking=replace(update.staking, total_amount_vested=update.staking.total_amount_vested - amount),
        position=replace(update.position, total_amount_vested=update.position.total_amount_vested - amount),
    )


def claim_rewards(market: Market, staking: MarketStaking, position: StakePosition) -> StakingUpdate:
    """Accrue, then hand out the position's whole pending reward balance."""
    update = accrue_rewards(market, staking, position)
    claimed = update.position.pending_rewards
    return replace(
        update,
        position=replace(update.position, pending_rewards=0),
        rewards_claimed=claimed,
    )
