from __future__ import annotations

from dataclasses import replace

import hypothesis.strategies as st
import pytest
from hypothesis import given

from tokenmill.constants import MAX_BPS, U64_MAX
from tokenmill.core.fees import claim_creator_fees, distribute_fee, update_market_fee_shares
from tokenmill.errors import InvalidFeeShare, MathError
from tokenmill.state.market import MarketFees, initialize_market


def _fees(creator: int = 3_000, staking: int = 4_000, protocol: int = 3_000, **pending: int) -> MarketFees:
    return MarketFees(creator_fee_share=creator, staking_fee_share=staking, protocol_fee_share=protocol, **pending)


class TestDistributeFee:
    def test_split_with_referral(self) -> None:
        new_fees, dist = distribute_fee(_fees(), 125_000, 1_000)
        assert dist.as_tuple() == (37_500, 50_000, 33_750, 3_750)
        assert new_fees.pending_creator_fees == 37_500
        assert new_fees.pending_staking_fees == 50_000

    def test_split_without_referral(self) -> None:
        _, dist = distribute_fee(_fees(), 125_000)
        assert dist.referral_fee == 0
        assert dist.protocol_fee == 37_500

    def test_protocol_takes_rounding_dust(self) -> None:
        _, dist = distribute_fee(_fees(), 7, 5_000)
        # creator floor(2.1)=2, staking floor(2.8)=2, remaining 3, referral floor(1.5)=1
        assert dist.as_tuple() == (2, 2, 2, 1)

    def test_accumulates_onto_pending(self) -> None:
        fees = _fees(pending_creator_fees=10, pending_staking_fees=20)
        new_fees, _ = distribute_fee(fees, 10_000)
        assert new_fees.pending_creator_fees == 3_010
        assert new_fees.pending_staking_fees == 4_020
        assert fees.pending_creator_fees == 10

    def test_zero_fee(self) -> None:
        new_fees, dist = distribute_fee(_fees(), 0, 1_000)
        assert dist.total == 0
        assert new_fees == _fees()

    def test_invalid_referral_share(self) -> None:
        with pytest.raises(InvalidFeeShare):
            distribute_fee(_fees(), 1, MAX_BPS + 1)

    def test_pending_overflow(self) -> None:
        with pytest.raises(MathError):
            distribute_fee(_fees(pending_staking_fees=U64_MAX), 10_000)


@given(
    creator=st.integers(min_value=0, max_value=MAX_BPS),
    staking=st.integers(min_value=0, max_value=MAX_BPS),
    swap_fee=st.integers(min_value=0, max_value=10**15),
    referral=st.one_of(st.none(), st.integers(min_value=0, max_value=MAX_BPS)),
)
def test_split_sums_to_fee(creator: int, staking: int, swap_fee: int, referral) -> None:
    if creator + staking > MAX_BPS:
        staking = MAX_BPS - creator
    fees = _fees(creator, staking, MAX_BPS - creator - staking)
    _, dist = distribute_fee(fees, swap_fee, referral)
    assert dist.creator_fee + dist.staking_fee + dist.protocol_fee + dist.referral_fee == swap_fee
    if referral is None:
        assert dist.referral_fee == 0


class TestMarketFeeShares:
    def test_rebalance_keeps_protocol_share(self) -> None:
        market = initialize_market(1_000_000_000_000, 3_000, 4_000, 3_000)
        updated = update_market_fee_shares(market, 7_000, 0)
        assert updated.fees.creator_fee_share == 7_000
        assert updated.fees.staking_fee_share == 0
        assert updated.fees.protocol_fee_share == 3_000

    def test_sum_must_be_preserved(self) -> None:
        market = initialize_market(1_000_000_000_000, 3_000, 4_000, 3_000)
        with pytest.raises(InvalidFeeShare):
            update_market_fee_shares(market, 3_000, 4_001)

    def test_out_of_range(self) -> None:
        market = initialize_market(1_000_000_000_000, 3_000, 4_000, 3_000)
        with pytest.raises(InvalidFeeShare):
            update_market_fee_shares(market, -1, 7_001)


def test_claim_creator_fees_zeroes_counter() -> None:
    market = initialize_market(1_000_000_000_000, 3_000, 4_000, 3_000)
    fees, _ = distribute_fee(market.fees, 125_000)
    market = replace(market, fees=fees)
    claimed_market, amount = claim_creator_fees(market)
    assert amount == 37_500
    assert claimed_market.fees.pending_creator_fees == 0
    assert claimed_market.fees.pending_staking_fees == 50_000
