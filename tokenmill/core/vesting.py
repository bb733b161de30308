"""
Vesting transitions layered on the staking accumulator.

Vested principal counts as stake shares from the moment the plan is created.
Releasing moves unlocked principal out of the vested totals through
`stake_withdraw_vested`, so rewards are accrued before the shares drop.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidVestingDuration, InvalidVestingStartTime
from ..state.market import Market
from ..state.staking import MarketStaking, StakePosition
from ..state.vesting import VestingPlan
from .staking import stake_deposit_vested, stake_withdraw_vested


@dataclass(frozen=True)
class VestingCreation:
    market: Market
    staking: MarketStaking
    position: StakePosition
    plan: VestingPlan
    pending_staking_fees: int


@dataclass(frozen=True)
class VestingRelease:
    market: Market
    staking: MarketStaking
    position: StakePosition
    plan: VestingPlan
    amount_released: int
    pending_staking_fees: int


def validate_vesting_schedule(*, start: int, vesting_duration: int, cliff_duration: int, now: int) -> None:
    """
    Raises:
        InvalidVestingDuration: a non-positive start, duration or cliff, or a
            cliff not shorter than the duration.
        InvalidVestingStartTime: the plan would already be fully vested at `now`.
    """
    for name, v in (
        ("start", start),
        ("vesting_duration", vesting_duration),
        ("cliff_duration", cliff_duration),
        ("now", now),
    ):
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be an int")

    if start <= 0 or vesting_duration <= 0 or cliff_duration <= 0 or vesting_duration <= cliff_duration:
        raise InvalidVestingDuration(
            f"invalid schedule: start={start} duration={vesting_duration} cliff={cliff_duration}"
        )
    if start + vesting_duration <= now:
        raise InvalidVestingStartTime(f"plan ending at {start + vesting_duration} is already over at {now}")


def create_vesting(
    market: Market,
    staking: MarketStaking,
    position: StakePosition,
    *,
    start: int,
    amount: int,
    vesting_duration: int,
    cliff_duration: int,
    now: int,
) -> VestingCreation:
    """Lock `amount` under a new plan and count it as vested stake for `position`."""
    validate_vesting_schedule(
        start=start,
        vesting_duration=vesting_duration,
        cliff_duration=cliff_duration,
        now=now,
    )
    update = stake_deposit_vested(market, staking, position, amount)
    plan = VestingPlan(
        stake_position=position.user,
        amount_vested=amount,
        start=start,
        cliff_duration=cliff_duration,
        vesting_duration=vesting_duration,
    )
    return VestingCreation(
        market=update.market,
        staking=update.staking,
        position=update.position,
        plan=plan,
        pending_staking_fees=update.pending_staking_fees,
    )


def release_vesting(
    market: Market,
    staking: MarketStaking,
    position: StakePosition,
    plan: VestingPlan,
    current_time: int,
) -> VestingRelease:
    if plan.stake_position != position.user:
        raise ValueError(f"plan belongs to {plan.stake_position!r}, not {position.user!r}")

    new_plan, amount = plan.release(current_time)
    update = stake_withdraw_vested(market, staking, position, amount)
    return VestingRelease(
        market=update.market,
        staking=update.staking,
        position=update.position,
        plan=new_plan,
        amount_released=amount,
        pending_staking_fees=update.pending_staking_fees,
    )
