"""
Staking records: the per-market aggregate and per-user stake positions.

Both carry a reward-per-share accumulator scaled by `STAKING_SCALE`. Shares
are staked principal plus unreleased vested principal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from ..constants import STAKING_SCALE, U64_MAX, U128_MAX
from ..errors import MathError

UserId = str


def _require_uint(name: str, value: int, hi: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= hi):
        raise ValueError(f"{name} must be in [0, {hi}]: {value}")


@dataclass(frozen=True)
class MarketStaking:
    amount_staked: int = 0
    total_amount_vested: int = 0
    acc_reward_amount_per_share: int = 0

    def __post_init__(self) -> None:
        _require_uint("amount_staked", self.amount_staked, U64_MAX)
        _require_uint("total_amount_vested", self.total_amount_vested, U64_MAX)
        _require_uint("acc_reward_amount_per_share", self.acc_reward_amount_per_share, U128_MAX)

    @property
    def total_shares(self) -> int:
        return self.amount_staked + self.total_amount_vested

    def accrue(self, pending_rewards: int) -> "MarketStaking":
        """
        Fold `pending_rewards` into the accumulator.

        A no-op when nothing is staked or nothing is pending; the caller keeps
        the fees pending in that case.
        """
        _require_uint("pending_rewards", pending_rewards, U64_MAX)
        total_shares = self.total_shares
        if total_shares == 0 or pending_rewards == 0:
            return self

        acc = self.acc_reward_amount_per_share + pending_rewards * STAKING_SCALE // total_shares
        if acc > U128_MAX:
            raise MathError("acc_reward_amount_per_share overflows u128")
        return replace(self, acc_reward_amount_per_share=acc)


@dataclass(frozen=True)
class StakePosition:
    user: UserId
    amount_staked: int = 0
    total_amount_vested: int = 0
    pending_rewards: int = 0
    acc_reward_amount_per_share: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.user, str) or not self.user:
            raise ValueError("user must be a non-empty string")
        _require_uint("amount_staked", self.amount_staked, U64_MAX)
        _require_uint("total_amount_vested", self.total_amount_vested, U64_MAX)
        _require_uint("pending_rewards", self.pending_rewards, U64_MAX)
        _require_uint("acc_reward_amount_per_share", self.acc_reward_amount_per_share, U128_MAX)

    @property
    def total_shares(self) -> int:
        return self.amount_staked + self.total_amount_vested

    def accrue(self, acc_reward_amount_per_share: int) -> "StakePosition":
        """Credit rewards earned since the last snapshot, then re-snapshot."""
        _require_uint("acc_reward_amount_per_share", acc_reward_amount_per_share, U128_MAX)
        if acc_reward_amount_per_share < self.acc_reward_amount_per_share:
            raise MathError("reward accumulator moved backwards")

        pending = self.pending_rewards
        if self.total_shares > 0:
            earned = self.total_shares * (acc_reward_amount_per_share - self.acc_reward_amount_per_share) // STAKING_SCALE
            if earned > U64_MAX:
                raise MathError("earned rewards overflow u64")
            pending += earned
            if pending > U64_MAX:
                raise MathError("pending_rewards overflows u64")

        return replace(self, pending_rewards=pending, acc_reward_amount_per_share=acc_reward_amount_per_share)


def staking_to_dict(staking: MarketStaking) -> dict[str, Any]:
    return {name: getattr(staking, name) for name in MarketStaking.__dataclass_fields__}


def staking_from_dict(d: Mapping[str, Any]) -> MarketStaking:
    return MarketStaking(**{name: int(d[name]) for name in MarketStaking.__dataclass_fields__})


def position_to_dict(position: StakePosition) -> dict[str, Any]:
    return {name: getattr(position, name) for name in StakePosition.__dataclass_fields__}


def position_from_dict(d: Mapping[str, Any]) -> StakePosition:
    kwargs: dict[str, Any] = {}
    for name in StakePosition.__dataclass_fields__:
        kwargs[name] = str(d[name]) if name == "user" else int(d[name])
    return StakePosition(**kwargs)
