"""
Swap resolution (pure).

A swap is resolved in three steps, none of which mutate the input market:
1) dispatch `(swap_type, amount_type)` to the matching curve conversion,
2) derive the buy-side fee from the bid/ask spread realized on the trade,
3) check the caller's slippage bound, then build the new market record.

`execute_swap` adds fee distribution on top and is what the engine calls.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from ..errors import AmountThresholdNotMet, InvalidAmount, PricesNotSet
from ..state.market import Market
from .curve import get_base_amount_in, get_base_amount_out, get_quote_amount, get_quote_amount_with_parameters
from .curve_math import Rounding
from .fees import distribute_fee
from .types import SwapAmountType, SwapOutcome, SwapQuote, SwapType


def _require_swap_args(swap_type: SwapType, amount_type: SwapAmountType, amount: int) -> None:
    if not isinstance(swap_type, SwapType):
        raise TypeError("swap_type must be a SwapType")
    if not isinstance(amount_type, SwapAmountType):
        raise TypeError("amount_type must be a SwapAmountType")
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount <= 0:
        raise InvalidAmount(f"swap amount must be positive: {amount}")


def quote_swap(
    market: Market,
    swap_type: SwapType,
    amount_type: SwapAmountType,
    amount: int,
) -> SwapQuote:
    """
    Resolve base/quote amounts and the swap fee without touching the reserve.

    Buy + ExactInput   -> base out for `amount` quote (ask curve, forward)
    Buy + ExactOutput  -> quote cost of `amount` base (ask curve, round up)
    Sell + ExactInput  -> quote paid for `amount` base (bid curve, round down)
    Sell + ExactOutput -> base needed for `amount` quote (bid curve, backward)
    """
    _require_swap_args(swap_type, amount_type, amount)
    if not market.are_prices_set:
        raise PricesNotSet("market prices are not set")

    if swap_type is SwapType.BUY:
        if amount_type is SwapAmountType.EXACT_INPUT:
            base_amount, quote_amount = get_base_amount_out(market, amount)
        else:
            base_amount, quote_amount = get_quote_amount(market, amount, amount_type)
    else:
        if amount_type is SwapAmountType.EXACT_INPUT:
            base_amount, quote_amount = get_quote_amount(market, amount, amount_type)
        else:
            base_amount, quote_amount = get_base_amount_in(market, amount)

    swap_fee = 0
    if swap_type is SwapType.BUY:
        # Value of the bought range when sold straight back on the bid curve.
        _, buyback_amount = get_quote_amount_with_parameters(
            market,
            market.circulating_supply,
            base_amount,
            SwapAmountType.EXACT_INPUT,
            Rounding.UP,
        )
        swap_fee = max(0, quote_amount - buyback_amount)

    return SwapQuote(
        swap_type=swap_type,
        amount_type=amount_type,
        base_amount=base_amount,
        quote_amount=quote_amount,
        swap_fee=swap_fee,
    )


def check_amount_threshold(
    amount_type: SwapAmountType,
    quote: SwapQuote,
    other_amount_threshold: int,
) -> None:
    """
    Enforce the caller's slippage bound.

    ExactInput fails when the output is below the threshold; ExactOutput fails
    when the input is above it.
    """
    if not isinstance(other_amount_threshold, int) or isinstance(other_amount_threshold, bool):
        raise TypeError("other_amount_threshold must be an int")
    if amount_type is SwapAmountType.EXACT_INPUT:
        if quote.amount_out < other_amount_threshold:
            raise AmountThresholdNotMet(quote.amount_out, other_amount_threshold)
    elif quote.amount_in > other_amount_threshold:
        raise AmountThresholdNotMet(quote.amount_in, other_amount_threshold)


def _with_reserve(market: Market, quote: SwapQuote) -> Market:
    if quote.swap_type is SwapType.BUY:
        return replace(market, base_reserve=market.base_reserve - quote.base_amount)
    return replace(market, base_reserve=market.base_reserve + quote.base_amount)


def apply_swap(
    market: Market,
    swap_type: SwapType,
    amount_type: SwapAmountType,
    amount: int,
    *,
    other_amount_threshold: Optional[int] = None,
) -> Tuple[Market, SwapQuote]:
    """`quote_swap` plus the reserve update (buy lowers it, sell raises it)."""
    quote = quote_swap(market, swap_type, amount_type, amount)
    if other_amount_threshold is not None:
        check_amount_threshold(amount_type, quote, other_amount_threshold)
    return _with_reserve(market, quote), quote


def execute_swap(
    market: Market,
    swap_type: SwapType,
    amount_type: SwapAmountType,
    amount: int,
    other_amount_threshold: int,
    *,
    referral_fee_share: Optional[int] = None,
) -> SwapOutcome:
    """
    Full swap pipeline: resolve, check slippage, split the fee, update the market.

    Creator and staking fees land in the market's pending counters. Protocol
    and referral fees are reported in the outcome for the caller to route.
    """
    new_market, quote = apply_swap(
        market,
        swap_type,
        amount_type,
        amount,
        other_amount_threshold=other_amount_threshold,
    )
    new_fees, distribution = distribute_fee(new_market.fees, quote.swap_fee, referral_fee_share)
    return SwapOutcome(market=replace(new_market, fees=new_fees), quote=quote, fees=distribution)
