"""
Vesting plan record: linear release with a cliff.

Timeline (seconds, or any monotonic integer clock):
    [start, start + cliff)            nothing releasable
    [start + cliff, start + duration) amount_vested * elapsed / duration
    [start + duration, ...)           everything
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Tuple

from ..constants import I64_MAX, I64_MIN, U64_MAX
from .staking import UserId


def _require_int_in(name: str, value: int, lo: int, hi: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (lo <= value <= hi):
        raise ValueError(f"{name} must be in [{lo}, {hi}]: {value}")


@dataclass(frozen=True)
class VestingPlan:
    stake_position: UserId  # owner of the stake position the plan releases from
    amount_vested: int
    start: int
    cliff_duration: int
    vesting_duration: int
    amount_released: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.stake_position, str) or not self.stake_position:
            raise ValueError("stake_position must be a non-empty string")
        _require_int_in("amount_vested", self.amount_vested, 0, U64_MAX)
        _require_int_in("amount_released", self.amount_released, 0, self.amount_vested)
        _require_int_in("start", self.start, I64_MIN, I64_MAX)
        _require_int_in("cliff_duration", self.cliff_duration, I64_MIN, I64_MAX)
        _require_int_in("vesting_duration", self.vesting_duration, 1, I64_MAX)

    @property
    def amount_locked(self) -> int:
        return self.amount_vested - self.amount_released

    def release(self, current_time: int) -> Tuple["VestingPlan", int]:
        """Release whatever has unlocked by `current_time`. Idempotent per timestamp."""
        _require_int_in("current_time", current_time, I64_MIN, I64_MAX)
        elapsed = current_time - self.start

        if elapsed < self.cliff_duration:
            return self, 0

        if elapsed >= self.vesting_duration:
            amount = self.amount_vested - self.amount_released
            return replace(self, amount_released=self.amount_vested), amount

        amount_free = self.amount_vested * elapsed // self.vesting_duration
        # A clock that moved backwards releases nothing.
        amount = max(0, amount_free - self.amount_released)
        return replace(self, amount_released=self.amount_released + amount), amount


def vesting_plan_to_dict(plan: VestingPlan) -> dict[str, Any]:
    return {name: getattr(plan, name) for name in VestingPlan.__dataclass_fields__}


def vesting_plan_from_dict(d: Mapping[str, Any]) -> VestingPlan:
    kwargs: dict[str, Any] = {}
    for name in VestingPlan.__dataclass_fields__:
        kwargs[name] = str(d[name]) if name == "stake_position" else int(d[name])
    return VestingPlan(**kwargs)
