"""
In-memory host for one Token Mill market.

This is an imperative-shell wrapper around the functional core:
- holds the market, its staking aggregate, stake positions and vesting plans,
- serializes every mutation behind one `threading.RLock`,
- computes all new records first and commits them together, so a rejected
  operation leaves nothing half-applied,
- tracks the fees the core hands back for routing (protocol, referrers).

Token transfers are not modeled; methods return the amounts a host would move.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Mapping, Optional, Sequence

from ..core.fees import claim_creator_fees, update_market_fee_shares
from ..core.staking import StakingUpdate, claim_rewards, create_stake_position, stake_deposit, stake_withdraw
from ..core.swap import execute_swap, quote_swap
from ..core.types import SwapAmountType, SwapOutcome, SwapQuote, SwapType
from ..core.vesting import create_vesting, release_vesting
from ..errors import StakePositionExists, StakePositionNotFound, TokenMillError, VestingPlanNotFound
from ..state.config import MillConfig, update_default_fee_shares
from ..state.market import Market, market_from_dict, market_to_dict, set_curve
from ..state.staking import (
    MarketStaking,
    StakePosition,
    UserId,
    position_from_dict,
    position_to_dict,
    staking_from_dict,
    staking_to_dict,
)
from ..state.vesting import VestingPlan, vesting_plan_from_dict, vesting_plan_to_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VestingPlanRef:
    plan_id: int
    plan: VestingPlan


class MillEngine:
    """Single-writer host for one market and everything staked on it."""

    def __init__(self, config: MillConfig, market: Market, *, staking: Optional[MarketStaking] = None) -> None:
        if not isinstance(config, MillConfig):
            raise TypeError("config must be a MillConfig")
        if not isinstance(market, Market):
            raise TypeError("market must be a Market")
        self._lock = RLock()
        self._config = config
        self._market = market
        self._staking = staking if staking is not None else MarketStaking()
        self._positions: Dict[UserId, StakePosition] = {}
        self._vesting_plans: Dict[int, VestingPlan] = {}
        self._next_plan_id = 0
        self._referral_balances: Dict[str, int] = {}
        self._protocol_fees = 0

    # -- Read-only views -----------------------------------------------------

    @property
    def config(self) -> MillConfig:
        return self._config

    @property
    def market(self) -> Market:
        return self._market

    @property
    def staking(self) -> MarketStaking:
        return self._staking

    @property
    def protocol_fees(self) -> int:
        return self._protocol_fees

    def position(self, user: UserId) -> StakePosition:
        with self._lock:
            return self._get_position(user)

    def vesting_plan(self, plan_id: int) -> VestingPlan:
        with self._lock:
            return self._get_plan(plan_id)

    def referral_balance(self, referrer: str) -> int:
        with self._lock:
            return self._referral_balances.get(referrer, 0)

    def _get_position(self, user: UserId) -> StakePosition:
        try:
            return self._positions[user]
        except KeyError:
            raise StakePositionNotFound(f"no stake position for {user!r}") from None

    def _get_plan(self, plan_id: int) -> VestingPlan:
        try:
            return self._vesting_plans[plan_id]
        except KeyError:
            raise VestingPlanNotFound(f"no vesting plan {plan_id}") from None

    def _commit_staking(self, update: StakingUpdate) -> None:
        self._market = update.market
        self._staking = update.staking
        self._positions[update.position.user] = update.position

    # -- Admin / creator -----------------------------------------------------

    def update_default_fee_shares(self, protocol_fee_share: int, referral_fee_share: int) -> MillConfig:
        with self._lock:
            self._config = update_default_fee_shares(self._config, protocol_fee_share, referral_fee_share)
            logger.info(
                "default fee shares updated: protocol=%d referral=%d",
                protocol_fee_share,
                referral_fee_share,
            )
            return self._config

    def set_curve(self, bid_prices: Sequence[int], ask_prices: Sequence[int]) -> Market:
        with self._lock:
            try:
                self._market = set_curve(self._market, bid_prices, ask_prices)
            except TokenMillError as exc:
                logger.warning("set_curve rejected: %s (%s)", exc, exc.code)
                raise
            logger.info("curve set: last ask=%d", self._market.ask_prices[-1])
            return self._market

    def update_market_fee_shares(self, creator_fee_share: int, staking_fee_share: int) -> Market:
        with self._lock:
            try:
                self._market = update_market_fee_shares(self._market, creator_fee_share, staking_fee_share)
            except TokenMillError as exc:
                logger.warning("fee share update rejected: %s (%s)", exc, exc.code)
                raise
            logger.info("market fee shares updated: creator=%d staking=%d", creator_fee_share, staking_fee_share)
            return self._market

    def claim_creator_fees(self) -> int:
        with self._lock:
            self._market, amount = claim_creator_fees(self._market)
            logger.info("creator fees claimed: %d", amount)
            return amount

    # -- Swaps ---------------------------------------------------------------

    def quote(self, swap_type: SwapType, amount_type: SwapAmountType, amount: int) -> SwapQuote:
        with self._lock:
            return quote_swap(self._market, swap_type, amount_type, amount)

    def swap(
        self,
        user: str,
        swap_type: SwapType,
        amount_type: SwapAmountType,
        amount: int,
        other_amount_threshold: int,
        *,
        referrer: Optional[str] = None,
    ) -> SwapOutcome:
        with self._lock:
            referral_fee_share = self._config.referral_fee_share if referrer is not None else None
            try:
                outcome = execute_swap(
                    self._market,
                    swap_type,
                    amount_type,
                    amount,
                    other_amount_threshold,
                    referral_fee_share=referral_fee_share,
                )
            except TokenMillError as exc:
                logger.warning(
                    "swap rejected: user=%s %s/%s amount=%d: %s (%s)",
                    user,
                    swap_type.value,
                    amount_type.value,
                    amount,
                    exc,
                    exc.code,
                )
                raise

            self._market = outcome.market
            self._protocol_fees += outcome.fees.protocol_fee
            if referrer is not None:
                self._referral_balances[referrer] = (
                    self._referral_balances.get(referrer, 0) + outcome.fees.referral_fee
                )
            logger.info(
                "swap: user=%s %s/%s in=%d out=%d fee=%d reserve=%d",
                user,
                swap_type.value,
                amount_type.value,
                outcome.amount_in,
                outcome.amount_out,
                outcome.quote.swap_fee,
                self._market.base_reserve,
            )
            return outcome

    def claim_referral_fees(self, referrer: str) -> int:
        with self._lock:
            amount = self._referral_balances.pop(referrer, 0)
            logger.info("referral fees claimed: referrer=%s amount=%d", referrer, amount)
            return amount

    # -- Staking -------------------------------------------------------------

    def create_stake_position(self, user: UserId) -> StakePosition:
        with self._lock:
            if user in self._positions:
                exc = StakePositionExists(f"stake position for {user!r} already exists")
                logger.warning("stake position rejected: user=%s: %s (%s)", user, exc, exc.code)
                raise exc
            position = create_stake_position(user)
            self._positions[user] = position
            logger.info("stake position created: user=%s", user)
            return position

    def deposit(self, user: UserId, amount: int) -> StakePosition:
        with self._lock:
            try:
                update = stake_deposit(self._market, self._staking, self._get_position(user), amount)
            except TokenMillError as exc:
                logger.warning("stake deposit rejected: user=%s amount=%d: %s (%s)", user, amount, exc, exc.code)
                raise
            self._commit_staking(update)
            logger.info("stake deposit: user=%s amount=%d staked=%d", user, amount, self._staking.amount_staked)
            return update.position

    def withdraw(self, user: UserId, amount: int) -> StakePosition:
        with self._lock:
            try:
                update = stake_withdraw(self._market, self._staking, self._get_position(user), amount)
            except TokenMillError as exc:
                logger.warning("stake withdraw rejected: user=%s amount=%d: %s (%s)", user, amount, exc, exc.code)
                raise
            self._commit_staking(update)
            logger.info("stake withdraw: user=%s amount=%d staked=%d", user, amount, self._staking.amount_staked)
            return update.position

    def claim_staking_rewards(self, user: UserId) -> int:
        with self._lock:
            try:
                update = claim_rewards(self._market, self._staking, self._get_position(user))
            except TokenMillError as exc:
                logger.warning("staking reward claim rejected: user=%s: %s (%s)", user, exc, exc.code)
                raise
            self._commit_staking(update)
            logger.info("staking rewards claimed: user=%s amount=%d", user, update.rewards_claimed)
            return update.rewards_claimed

    # -- Vesting -------------------------------------------------------------

    def create_vesting_plan(
        self,
        user: UserId,
        *,
        start: int,
        amount: int,
        vesting_duration: int,
        cliff_duration: int,
        now: int,
    ) -> VestingPlanRef:
        with self._lock:
            try:
                created = create_vesting(
                    self._market,
                    self._staking,
                    self._get_position(user),
                    start=start,
                    amount=amount,
                    vesting_duration=vesting_duration,
                    cliff_duration=cliff_duration,
                    now=now,
                )
            except TokenMillError as exc:
                logger.warning("vesting plan rejected: user=%s: %s (%s)", user, exc, exc.code)
                raise

            plan_id = self._next_plan_id
            self._next_plan_id += 1
            self._market = created.market
            self._staking = created.staking
            self._positions[user] = created.position
            self._vesting_plans[plan_id] = created.plan
            logger.info(
                "vesting plan %d created: user=%s amount=%d start=%d duration=%d cliff=%d",
                plan_id,
                user,
                amount,
                start,
                vesting_duration,
                cliff_duration,
            )
            return VestingPlanRef(plan_id=plan_id, plan=created.plan)

    def release(self, plan_id: int, current_time: int) -> int:
        with self._lock:
            try:
                plan = self._get_plan(plan_id)
                released = release_vesting(
                    self._market,
                    self._staking,
                    self._get_position(plan.stake_position),
                    plan,
                    current_time,
                )
            except TokenMillError as exc:
                logger.warning("vesting release rejected: plan=%d t=%d: %s (%s)", plan_id, current_time, exc, exc.code)
                raise
            self._market = released.market
            self._staking = released.staking
            self._positions[released.position.user] = released.position
            self._vesting_plans[plan_id] = released.plan
            logger.info(
                "vesting plan %d released %d at t=%d (total %d/%d)",
                plan_id,
                released.amount_released,
                current_time,
                released.plan.amount_released,
                released.plan.amount_vested,
            )
            return released.amount_released

    # -- Snapshot ------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view of every record, keys sorted for stable output."""
        with self._lock:
            return {
                "config": {
                    "default_protocol_fee_share": self._config.default_protocol_fee_share,
                    "referral_fee_share": self._config.referral_fee_share,
                },
                "market": market_to_dict(self._market),
                "staking": staking_to_dict(self._staking),
                "positions": {user: position_to_dict(self._positions[user]) for user in sorted(self._positions)},
                "vesting_plans": {
                    str(pid): vesting_plan_to_dict(self._vesting_plans[pid]) for pid in sorted(self._vesting_plans)
                },
                "referral_balances": {r: self._referral_balances[r] for r in sorted(self._referral_balances)},
                "protocol_fees": self._protocol_fees,
            }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "MillEngine":
        """Rebuild an engine from `snapshot()` output. Raises KeyError on missing fields."""
        engine = cls(
            MillConfig.from_mapping(data["config"]),
            market_from_dict(data["market"]),
            staking=staking_from_dict(data["staking"]),
        )
        for user, raw in data["positions"].items():
            engine._positions[str(user)] = position_from_dict(raw)
        for pid, raw in data["vesting_plans"].items():
            engine._vesting_plans[int(pid)] = vesting_plan_from_dict(raw)
        engine._next_plan_id = max(engine._vesting_plans, default=-1) + 1
        engine._referral_balances = {str(r): int(v) for r, v in data["referral_balances"].items()}
        engine._protocol_fees = int(data["protocol_fees"])
        return engine
