from __future__ import annotations

import hypothesis.strategies as st
import pytest
from hypothesis import given

from tokenmill.constants import MAX_PRICE, MAX_TOTAL_SUPPLY
from tokenmill.core.curve import default_curve
from tokenmill.errors import (
    BidAskMismatch,
    DecreasingPrices,
    InvalidFeeShare,
    InvalidPricesLength,
    InvalidQuoteTokenDecimals,
    InvalidTotalSupply,
    PricesAlreadySet,
    PriceTooHigh,
)
from tokenmill.state.market import (
    MarketFees,
    initialize_market,
    market_from_dict,
    market_to_dict,
    set_curve,
    validate_prices,
)

TOTAL_SUPPLY = 1_000_000_000_000


class TestInitializeMarket:
    def test_fresh_market(self) -> None:
        market = initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000)
        assert market.base_reserve == TOTAL_SUPPLY
        assert market.circulating_supply == 0
        assert market.width_scaled == 10**14
        assert market.quote_token_decimals == 9
        assert not market.are_prices_set

    def test_smallest_supply(self) -> None:
        market = initialize_market(10_000_000, 3_000, 4_000, 3_000)
        assert market.width_scaled == 10**9

    @pytest.mark.parametrize("total_supply", [0, TOTAL_SUPPLY + 1, 9_999_990, MAX_TOTAL_SUPPLY + 10])
    def test_invalid_supply(self, total_supply: int) -> None:
        with pytest.raises(InvalidTotalSupply):
            initialize_market(total_supply, 3_000, 4_000, 3_000)

    @pytest.mark.parametrize("shares", [(3_000, 4_000, 2_999), (10_001, 0, 0), (-1, 5_001, 5_000)])
    def test_invalid_shares(self, shares) -> None:
        with pytest.raises(InvalidFeeShare):
            initialize_market(TOTAL_SUPPLY, *shares)

    def test_invalid_decimals(self) -> None:
        with pytest.raises(InvalidQuoteTokenDecimals):
            initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000, quote_token_decimals=19)


class TestSetCurve:
    def test_set_once(self) -> None:
        market = set_curve(initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000), *default_curve())
        assert market.are_prices_set
        with pytest.raises(PricesAlreadySet):
            set_curve(market, *default_curve())

    def test_length(self) -> None:
        bid, ask = default_curve()
        with pytest.raises(InvalidPricesLength):
            validate_prices(bid[:-1], ask[:-1])

    def test_bid_above_ask(self) -> None:
        bid, ask = default_curve()
        bid = list(bid)
        bid[3] = ask[3] + 1
        with pytest.raises(BidAskMismatch):
            validate_prices(bid, ask)

    def test_flat_ask(self) -> None:
        bid, ask = default_curve()
        bid, ask = list(bid), list(ask)
        ask[5] = ask[4]
        bid[5] = bid[4] + 1
        assert bid[5] <= ask[5]
        with pytest.raises(DecreasingPrices):
            validate_prices(bid, ask)

    def test_flat_bid(self) -> None:
        bid, ask = default_curve()
        bid = list(bid)
        bid[5] = bid[4]
        with pytest.raises(DecreasingPrices):
            validate_prices(bid, ask)

    def test_decreasing_ask_above_bid(self) -> None:
        bid, ask = default_curve()
        bid, ask = list(bid), list(ask)
        ask[7] = ask[6] - 1
        bid[7] = bid[6] + 1
        assert bid[7] <= ask[7]
        with pytest.raises(DecreasingPrices):
            validate_prices(bid, ask)

    def test_last_ask_bound(self) -> None:
        bid = [i for i in range(11)]
        ask = [MAX_PRICE - 10 + i for i in range(11)]
        ask[10] = MAX_PRICE + 1
        with pytest.raises(PriceTooHigh):
            validate_prices(bid, ask)


_increments = st.lists(st.integers(min_value=1, max_value=10**12), min_size=10, max_size=10)
_spreads = st.lists(st.integers(min_value=0, max_value=10**12), min_size=11, max_size=11).map(sorted)


@given(start=st.integers(min_value=0, max_value=10**12), increments=_increments, spreads=_spreads)
def test_well_formed_curves_are_accepted(start: int, increments, spreads) -> None:
    bid = [start]
    for d in increments:
        bid.append(bid[-1] + d)
    ask = [b + s for b, s in zip(bid, spreads)]

    market = set_curve(initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000), bid, ask)
    assert all(b <= a for b, a in zip(market.bid_prices, market.ask_prices))
    assert all(market.ask_prices[i] < market.ask_prices[i + 1] for i in range(10))
    assert all(market.bid_prices[i] < market.bid_prices[i + 1] for i in range(10))


@given(
    start=st.integers(min_value=0, max_value=10**12),
    increments=_increments,
    spreads=_spreads,
    index=st.integers(min_value=1, max_value=10),
    mode=st.sampled_from(["cross", "flat_bid", "flat_ask", "drop_bid", "drop_ask"]),
    drop=st.integers(min_value=1, max_value=10**12),
)
def test_malformed_curves_are_rejected(start: int, increments, spreads, index: int, mode: str, drop: int) -> None:
    bid = [start]
    for d in increments:
        bid.append(bid[-1] + d)
    ask = [b + s for b, s in zip(bid, spreads)]

    if mode == "cross":
        bid[index] = ask[index] + 1
    elif mode == "flat_bid":
        bid[index] = bid[index - 1]
    elif mode == "flat_ask":
        ask[index] = ask[index - 1]
    elif mode == "drop_bid":
        bid[index] = max(0, bid[index - 1] - drop)
    else:
        ask[index] = max(0, ask[index - 1] - drop)

    market = initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000)
    with pytest.raises((BidAskMismatch, DecreasingPrices)):
        set_curve(market, bid, ask)
    assert not market.are_prices_set


def test_market_dict_round_trip() -> None:
    market = set_curve(initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000), *default_curve())
    data = market_to_dict(market)
    assert data["ask_prices"][10] == 10_000_000
    assert data["fees"]["staking_fee_share"] == 4_000
    assert market_from_dict(data) == market


def test_market_fees_validate_sum() -> None:
    with pytest.raises(ValueError):
        MarketFees(creator_fee_share=1, staking_fee_share=1, protocol_fee_share=1)
