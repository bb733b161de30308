"""
Curve conversions between base and quote amounts.

All entry points walk the market's breakpoints interval by interval in the
normalized `SCALE` domain and convert back to token-native precision at the
boundary. Rounding always favors the market:
- amounts charged to the user round up,
- amounts paid to the user round down.
"""

from __future__ import annotations

from typing import Tuple

from ..state.market import Market, Prices
from ..constants import BASE_PRECISION, PRICES_LENGTH, SCALE
from .curve_math import Rounding, div, get_delta_base_in, get_delta_base_out, mul_div
from ..errors import MathError
from .types import SwapAmountType


def default_curve() -> Tuple[Prices, Prices]:
    """Ascending reference curve: bid at 90% of ask, ask rising by SCALE/1000 per breakpoint."""
    bid_prices = tuple(i * SCALE * 9 // 10_000 for i in range(PRICES_LENGTH))
    ask_prices = tuple(i * SCALE // 1_000 for i in range(PRICES_LENGTH))
    return bid_prices, ask_prices


def _normalize_base(amount: int) -> int:
    return amount * SCALE // BASE_PRECISION


def get_quote_amount_with_parameters(
    market: Market,
    supply: int,
    base_amount: int,
    amount_type: SwapAmountType,
    rounding: Rounding,
) -> Tuple[int, int]:
    """
    Integrate the curve from `supply` upward over `base_amount`.

    Uses the bid curve for `EXACT_INPUT` and the ask curve for `EXACT_OUTPUT`.
    Stops at the last breakpoint; the part of `base_amount` beyond it is not
    swapped.

    Returns:
        (base_amount_swapped, quote_amount)
    """
    if supply < 0 or supply > market.total_supply:
        raise MathError(f"supply out of range: {supply}")
    if base_amount < 0:
        raise MathError(f"base_amount must be non-negative: {base_amount}")

    price_curve = market.bid_prices if amount_type is SwapAmountType.EXACT_INPUT else market.ask_prices
    width = market.width_scaled

    normalized_supply = _normalize_base(supply)
    normalized_base_amount_left = _normalize_base(base_amount)
    normalized_quote_amount = 0

    i = normalized_supply // width
    interval_supply_already_used = normalized_supply % width

    price_0 = price_curve[i]
    i += 1

    while normalized_base_amount_left > 0 and i < PRICES_LENGTH:
        price_1 = price_curve[i]

        delta_base = min(normalized_base_amount_left, width - interval_supply_already_used)

        delta_quote = mul_div(
            delta_base,
            (price_1 - price_0) * (delta_base + 2 * interval_supply_already_used) + 2 * price_0 * width,
            2 * SCALE * width,
            rounding,
        )

        normalized_base_amount_left -= delta_base
        normalized_quote_amount += delta_quote

        interval_supply_already_used = 0
        price_0 = price_1
        i += 1

    base_amount_swapped = base_amount - div(normalized_base_amount_left * BASE_PRECISION, SCALE, rounding)
    quote_amount_swapped = div(normalized_quote_amount * market.quote_precision, SCALE, rounding)

    return base_amount_swapped, quote_amount_swapped


def get_quote_amount(
    market: Market,
    base_amount: int,
    amount_type: SwapAmountType,
) -> Tuple[int, int]:
    """
    Quote value of `base_amount` at the current circulating supply.

    - `EXACT_INPUT` (selling base): integrate the bid curve downward from the
      circulating supply, rounding down.
    - `EXACT_OUTPUT` (buying base): integrate the ask curve upward from the
      circulating supply, rounding up.
    """
    circulating_supply = market.circulating_supply

    if amount_type is SwapAmountType.EXACT_INPUT:
        if base_amount > circulating_supply:
            raise MathError(
                f"cannot sell {base_amount} base with circulating supply {circulating_supply}"
            )
        supply, rounding = circulating_supply - base_amount, Rounding.DOWN
    else:
        supply, rounding = circulating_supply, Rounding.UP

    return get_quote_amount_with_parameters(market, supply, base_amount, amount_type, rounding)


def get_base_amount_in(market: Market, quote_amount: int) -> Tuple[int, int]:
    """
    Base a seller must provide to receive `quote_amount`, walking the bid curve down.

    Saturates at zero circulating supply: if the curve cannot pay the whole
    `quote_amount`, only the absorbed part is reported.

    Returns:
        (base_amount_in, quote_amount_swapped)
    """
    price_curve = market.bid_prices
    width = market.width_scaled
    quote_precision = market.quote_precision

    normalized_supply = _normalize_base(market.circulating_supply)
    normalized_quote_amount_left = quote_amount * SCALE // quote_precision
    normalized_base_amount = 0

    i = normalized_supply // width
    interval_supply_available = normalized_supply % width

    if interval_supply_available == 0:
        interval_supply_available = width
    else:
        i += 1

    price_1 = price_curve[i]

    while normalized_quote_amount_left > 0 and i > 0:
        price_0 = price_curve[i - 1]

        delta_base, delta_quote = get_delta_base_in(
            price_0,
            price_1,
            width,
            interval_supply_available,
            normalized_quote_amount_left,
        )

        normalized_base_amount += delta_base
        normalized_quote_amount_left -= delta_quote

        interval_supply_available = width
        price_1 = price_0
        i -= 1

    base_amount_swapped = div(normalized_base_amount * BASE_PRECISION, SCALE, Rounding.UP)
    quote_amount_swapped = quote_amount - div(
        normalized_quote_amount_left * quote_precision, SCALE, Rounding.UP
    )

    return base_amount_swapped, quote_amount_swapped


def get_base_amount_out(market: Market, quote_amount: int) -> Tuple[int, int]:
    """
    Base a buyer receives for `quote_amount`, walking the ask curve up.

    Saturates at the total supply: quote beyond what the remaining curve costs
    is reported as not swapped.

    Returns:
        (base_amount_out, quote_amount_swapped)
    """
    price_curve = market.ask_prices
    width = market.width_scaled
    quote_precision = market.quote_precision

    normalized_supply = _normalize_base(market.circulating_supply)
    normalized_quote_amount_left = quote_amount * SCALE // quote_precision
    normalized_base_amount = 0

    i = normalized_supply // width
    interval_supply_already_used = normalized_supply % width

    price_0 = price_curve[i]

    while normalized_quote_amount_left > 0 and i < PRICES_LENGTH - 1:
        price_1 = price_curve[i + 1]

        delta_base, delta_quote = get_delta_base_out(
            price_0,
            price_1,
            width,
            interval_supply_already_used,
            normalized_quote_amount_left,
        )

        normalized_base_amount += delta_base
        normalized_quote_amount_left -= delta_quote

        interval_supply_already_used = 0
        price_0 = price_1
        i += 1

    base_amount_swapped = div(normalized_base_amount * BASE_PRECISION, SCALE, Rounding.DOWN)
    quote_amount_swapped = quote_amount - div(
        normalized_quote_amount_left * quote_precision, SCALE, Rounding.DOWN
    )

    return base_amount_swapped, quote_amount_swapped
