from __future__ import annotations

from dataclasses import replace

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from tokenmill.core.curve import default_curve
from tokenmill.core.swap import apply_swap, check_amount_threshold, execute_swap, quote_swap
from tokenmill.core.types import SwapAmountType, SwapQuote, SwapType
from tokenmill.errors import AmountThresholdNotMet, InvalidAmount, MathError, PricesNotSet, TokenMillError
from tokenmill.state.market import Market, initialize_market, set_curve

TOTAL_SUPPLY = 1_000_000_000_000

BUY, SELL = SwapType.BUY, SwapType.SELL
EXACT_IN, EXACT_OUT = SwapAmountType.EXACT_INPUT, SwapAmountType.EXACT_OUTPUT


def _market(circulating: int = 0) -> Market:
    market = initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000)
    market = set_curve(market, *default_curve())
    return replace(market, base_reserve=TOTAL_SUPPLY - circulating)


class TestQuoteSwap:
    def test_buy_exact_output(self) -> None:
        q = quote_swap(_market(), BUY, EXACT_OUT, 500_000_000)
        assert (q.base_amount, q.quote_amount, q.swap_fee) == (500_000_000, 1_250_000, 125_000)
        assert q.amount_in == 1_250_000
        assert q.amount_out == 500_000_000

    def test_buy_exact_input_matches_exact_output(self) -> None:
        q = quote_swap(_market(), BUY, EXACT_IN, 1_250_000)
        assert (q.base_amount, q.quote_amount, q.swap_fee) == (500_000_000, 1_250_000, 125_000)

    def test_buy_fee_is_spread_over_two_intervals(self) -> None:
        q = quote_swap(_market(), BUY, EXACT_OUT, 200_000_000_000)
        assert q.quote_amount == 200_000_000_000
        assert q.swap_fee == 20_000_000_000

    def test_sell_exact_input_has_no_fee(self) -> None:
        q = quote_swap(_market(circulating=500_000_000), SELL, EXACT_IN, 250_000_000)
        assert (q.base_amount, q.quote_amount, q.swap_fee) == (250_000_000, 843_750, 0)
        assert q.amount_in == 250_000_000
        assert q.amount_out == 843_750

    def test_sell_exact_output(self) -> None:
        q = quote_swap(_market(circulating=500_000_000), SELL, EXACT_OUT, 843_750)
        assert (q.base_amount, q.quote_amount, q.swap_fee) == (250_000_000, 843_750, 0)

    def test_zero_amount_rejected(self) -> None:
        with pytest.raises(InvalidAmount):
            quote_swap(_market(), BUY, EXACT_IN, 0)

    def test_prices_must_be_set(self) -> None:
        with pytest.raises(PricesNotSet):
            quote_swap(initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000), BUY, EXACT_IN, 1)

    def test_sell_more_than_circulating(self) -> None:
        with pytest.raises(MathError):
            quote_swap(_market(circulating=100), SELL, EXACT_IN, 101)


class TestApplySwap:
    def test_buy_lowers_reserve_by_exact_amount(self) -> None:
        market = _market()
        new_market, q = apply_swap(market, BUY, EXACT_OUT, 500_000_000)
        assert new_market.base_reserve == TOTAL_SUPPLY - 500_000_000
        assert q.quote_amount == 1_250_000
        assert market.base_reserve == TOTAL_SUPPLY

    def test_sell_raises_reserve(self) -> None:
        new_market, _ = apply_swap(_market(circulating=500_000_000), SELL, EXACT_IN, 250_000_000)
        assert new_market.circulating_supply == 250_000_000

    def test_buy_past_supply_empties_reserve(self) -> None:
        new_market, q = apply_swap(_market(), BUY, EXACT_OUT, TOTAL_SUPPLY + 1_000_000)
        assert q.base_amount == TOTAL_SUPPLY
        assert q.quote_amount == 5_000_000_000_000
        assert new_market.base_reserve == 0

    def test_threshold_checked(self) -> None:
        with pytest.raises(AmountThresholdNotMet) as exc_info:
            apply_swap(_market(), BUY, EXACT_OUT, 500_000_000, other_amount_threshold=1_249_999)
        assert exc_info.value.amount == 1_250_000
        assert exc_info.value.threshold == 1_249_999

        new_market, _ = apply_swap(_market(), BUY, EXACT_OUT, 500_000_000, other_amount_threshold=1_250_000)
        assert new_market.circulating_supply == 500_000_000


class TestCheckAmountThreshold:
    quote = SwapQuote(swap_type=BUY, amount_type=EXACT_IN, base_amount=100, quote_amount=40, swap_fee=0)

    def test_exact_input_bounds_output_from_below(self) -> None:
        check_amount_threshold(EXACT_IN, self.quote, 100)
        with pytest.raises(AmountThresholdNotMet):
            check_amount_threshold(EXACT_IN, self.quote, 101)

    def test_exact_output_bounds_input_from_above(self) -> None:
        check_amount_threshold(EXACT_OUT, self.quote, 40)
        with pytest.raises(AmountThresholdNotMet):
            check_amount_threshold(EXACT_OUT, self.quote, 39)


class TestExecuteSwap:
    def test_fees_flow_into_market(self) -> None:
        outcome = execute_swap(_market(), BUY, EXACT_OUT, 500_000_000, 1_250_000, referral_fee_share=1_000)
        assert outcome.fees.as_tuple() == (37_500, 50_000, 33_750, 3_750)
        assert outcome.market.fees.pending_creator_fees == 37_500
        assert outcome.market.fees.pending_staking_fees == 50_000
        assert outcome.market.base_reserve == TOTAL_SUPPLY - 500_000_000
        assert outcome.amount_in == 1_250_000
        assert outcome.amount_out == 500_000_000

    def test_without_referrer_protocol_takes_remainder(self) -> None:
        outcome = execute_swap(_market(), BUY, EXACT_OUT, 500_000_000, 1_250_000)
        assert outcome.fees.as_tuple() == (37_500, 50_000, 37_500, 0)

    def test_rejected_swap_has_no_effect(self) -> None:
        market = _market()
        with pytest.raises(AmountThresholdNotMet):
            execute_swap(market, BUY, EXACT_IN, 1_250_000, 500_000_001)
        assert market.base_reserve == TOTAL_SUPPLY
        assert market.fees.pending_staking_fees == 0


@settings(max_examples=60, deadline=None)
@given(
    prefix=st.integers(min_value=0, max_value=500_000_000_000),
    amount=st.integers(min_value=1, max_value=400_000_000_000),
)
def test_buy_then_sell_never_profits(prefix: int, amount: int) -> None:
    market = _market(circulating=prefix)
    after_buy, buy = apply_swap(market, BUY, EXACT_OUT, amount)
    after_sell, sell = apply_swap(after_buy, SELL, EXACT_IN, buy.base_amount)

    assert sell.quote_amount <= buy.quote_amount
    assert buy.swap_fee >= 0
    assert after_sell.base_reserve == market.base_reserve


_increments = st.lists(st.integers(min_value=1, max_value=10**10), min_size=10, max_size=10)
_spreads = st.lists(st.integers(min_value=0, max_value=10**10), min_size=11, max_size=11).map(sorted)


@st.composite
def _curves(draw):
    bid = [draw(st.integers(min_value=0, max_value=10**10))]
    for d in draw(_increments):
        bid.append(bid[-1] + d)
    ask = [b + s for b, s in zip(bid, draw(_spreads))]
    return bid, ask


@settings(max_examples=80, deadline=None)
@given(
    curve=_curves(),
    prefix=st.integers(min_value=0, max_value=TOTAL_SUPPLY),
    amount=st.integers(min_value=1, max_value=TOTAL_SUPPLY),
)
def test_buy_then_sell_never_profits_on_any_curve(curve, prefix: int, amount: int) -> None:
    market = set_curve(initialize_market(TOTAL_SUPPLY, 3_000, 4_000, 3_000), *curve)
    market = replace(market, base_reserve=TOTAL_SUPPLY - prefix)

    after_buy, buy = apply_swap(market, BUY, EXACT_OUT, amount)
    if buy.base_amount == 0:
        return
    after_sell, sell = apply_swap(after_buy, SELL, EXACT_IN, buy.base_amount)

    assert buy.base_amount <= min(amount, market.base_reserve)
    assert sell.quote_amount <= buy.quote_amount
    assert buy.swap_fee >= 0
    assert after_sell.base_reserve == market.base_reserve


_ops = st.lists(
    st.tuples(
        st.sampled_from([BUY, SELL]),
        st.sampled_from([EXACT_IN, EXACT_OUT]),
        st.integers(min_value=1, max_value=2_000_000_000_000),
    ),
    min_size=1,
    max_size=12,
)


@settings(max_examples=60, deadline=None)
@given(ops=_ops)
def test_reserve_plus_circulating_is_total(ops) -> None:
    market = _market()
    for swap_type, amount_type, amount in ops:
        try:
            market, _ = apply_swap(market, swap_type, amount_type, amount)
        except TokenMillError:
            continue
        assert 0 <= market.base_reserve <= market.total_supply
        assert market.base_reserve + market.circulating_supply == TOTAL_SUPPLY
