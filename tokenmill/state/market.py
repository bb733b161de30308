"""
Market records: the curve, the base reserve, and embedded fee accounting.

Records are frozen; operations return new instances. A market is created once
(`initialize_market`), its curve is set exactly once (`set_curve`), and from
then on only swaps (reserve, pending fees) and fee claims touch it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence, Tuple

from ..constants import (
    BASE_PRECISION,
    INTERVAL_NUMBER,
    MAX_BPS,
    MAX_PRICE,
    MAX_QUOTE_TOKEN_DECIMALS,
    MAX_TOTAL_SUPPLY,
    PRICES_LENGTH,
    SCALE,
    U64_MAX,
)
from ..errors import (
    BidAskMismatch,
    DecreasingPrices,
    InvalidFeeShare,
    InvalidPricesLength,
    InvalidQuoteTokenDecimals,
    InvalidTotalSupply,
    PricesAlreadySet,
    PriceTooHigh,
)

Prices = Tuple[int, ...]

_ZERO_PRICES: Prices = (0,) * PRICES_LENGTH


def _require_uint(name: str, value: int, hi: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= hi):
        raise ValueError(f"{name} must be in [0, {hi}]: {value}")


@dataclass(frozen=True)
class MarketFees:
    """Fee shares (bps) and the pending creator/staking fee buckets."""

    creator_fee_share: int
    staking_fee_share: int
    protocol_fee_share: int
    pending_creator_fees: int = 0
    pending_staking_fees: int = 0

    def __post_init__(self) -> None:
        for name in ("creator_fee_share", "staking_fee_share", "protocol_fee_share"):
            _require_uint(name, getattr(self, name), MAX_BPS)
        for name in ("pending_creator_fees", "pending_staking_fees"):
            _require_uint(name, getattr(self, name), U64_MAX)
        total = self.creator_fee_share + self.staking_fee_share + self.protocol_fee_share
        if total != MAX_BPS:
            raise ValueError(f"fee shares must sum to {MAX_BPS}, got {total}")


@dataclass(frozen=True)
class Market:
    total_supply: int
    base_reserve: int
    width_scaled: int
    quote_token_decimals: int
    fees: MarketFees
    bid_prices: Prices = _ZERO_PRICES
    ask_prices: Prices = _ZERO_PRICES

    def __post_init__(self) -> None:
        _require_uint("total_supply", self.total_supply, MAX_TOTAL_SUPPLY)
        _require_uint("base_reserve", self.base_reserve, self.total_supply)
        _require_uint("width_scaled", self.width_scaled, U64_MAX)
        _require_uint("quote_token_decimals", self.quote_token_decimals, MAX_QUOTE_TOKEN_DECIMALS)
        if not isinstance(self.fees, MarketFees):
            raise TypeError("fees must be a MarketFees")
        for name in ("bid_prices", "ask_prices"):
            prices = getattr(self, name)
            if not isinstance(prices, tuple) or len(prices) != PRICES_LENGTH:
                raise ValueError(f"{name} must be a tuple of {PRICES_LENGTH} ints")
            for p in prices:
                _require_uint(name, p, U64_MAX)

    @property
    def circulating_supply(self) -> int:
        return self.total_supply - self.base_reserve

    @property
    def are_prices_set(self) -> bool:
        return self.ask_prices[INTERVAL_NUMBER] != 0

    @property
    def quote_precision(self) -> int:
        return 10 ** self.quote_token_decimals


def validate_total_supply(total_supply: int) -> None:
    if not isinstance(total_supply, int) or isinstance(total_supply, bool):
        raise TypeError("total_supply must be an int")
    if (
        total_supply <= 0
        or total_supply > MAX_TOTAL_SUPPLY
        or total_supply // INTERVAL_NUMBER < BASE_PRECISION
        or (total_supply // INTERVAL_NUMBER) * INTERVAL_NUMBER != total_supply
    ):
        raise InvalidTotalSupply(f"invalid total supply: {total_supply}")


def initialize_market(
    total_supply: int,
    creator_fee_share: int,
    staking_fee_share: int,
    protocol_fee_share: int,
    *,
    quote_token_decimals: int = 9,
) -> Market:
    """
    Create a market holding the whole `total_supply` as reserve.

    Raises:
        InvalidFeeShare: shares are out of range or do not sum to `MAX_BPS`.
        InvalidTotalSupply: supply is above the maximum, not a multiple of
            `INTERVAL_NUMBER`, or yields an interval narrower than `BASE_PRECISION`.
        InvalidQuoteTokenDecimals: decimals outside `[0, MAX_QUOTE_TOKEN_DECIMALS]`.
    """
    shares = (creator_fee_share, staking_fee_share, protocol_fee_share)
    for share in shares:
        if not isinstance(share, int) or isinstance(share, bool) or not (0 <= share <= MAX_BPS):
            raise InvalidFeeShare(f"fee share out of range: {share}")
    if sum(shares) != MAX_BPS:
        raise InvalidFeeShare(f"fee shares must sum to {MAX_BPS}, got {sum(shares)}")

    validate_total_supply(total_supply)

    if (
        not isinstance(quote_token_decimals, int)
        or isinstance(quote_token_decimals, bool)
        or not (0 <= quote_token_decimals <= MAX_QUOTE_TOKEN_DECIMALS)
    ):
        raise InvalidQuoteTokenDecimals(f"invalid quote token decimals: {quote_token_decimals}")

    width_scaled = (total_supply // INTERVAL_NUMBER) * SCALE // BASE_PRECISION

    return Market(
        total_supply=total_supply,
        base_reserve=total_supply,
        width_scaled=width_scaled,
        quote_token_decimals=quote_token_decimals,
        fees=MarketFees(
            creator_fee_share=creator_fee_share,
            staking_fee_share=staking_fee_share,
            protocol_fee_share=protocol_fee_share,
        ),
    )


def validate_prices(bid_prices: Sequence[int], ask_prices: Sequence[int]) -> None:
    """
    Check curve integrity without touching any market.

    For every breakpoint `bid <= ask`; both curves strictly increase; the last
    ask is at most `MAX_PRICE`.
    """
    if len(bid_prices) != PRICES_LENGTH or len(ask_prices) != PRICES_LENGTH:
        raise InvalidPricesLength(
            f"expected {PRICES_LENGTH} breakpoints, got bid={len(bid_prices)} ask={len(ask_prices)}"
        )

    for i in range(PRICES_LENGTH):
        bid_price = bid_prices[i]
        ask_price = ask_prices[i]
        for p in (bid_price, ask_price):
            if not isinstance(p, int) or isinstance(p, bool) or p < 0:
                raise TypeError(f"prices must be non-negative ints, got {p!r}")

        if bid_price > ask_price:
            raise BidAskMismatch(f"bid {bid_price} > ask {ask_price} at breakpoint {i}")

        if i > 0 and (ask_price <= ask_prices[i - 1] or bid_price <= bid_prices[i - 1]):
            raise DecreasingPrices(f"prices must strictly increase at breakpoint {i}")

    if ask_prices[INTERVAL_NUMBER] > MAX_PRICE:
        raise PriceTooHigh(f"last ask price {ask_prices[INTERVAL_NUMBER]} exceeds {MAX_PRICE}")


def set_curve(market: Market, bid_prices: Sequence[int], ask_prices: Sequence[int]) -> Market:
    """Set the bid/ask breakpoints. Callable once per market."""
    if market.are_prices_set:
        raise PricesAlreadySet("market prices are already set")
    validate_prices(bid_prices, ask_prices)
    return replace(market, bid_prices=tuple(bid_prices), ask_prices=tuple(ask_prices))


# Auto-derived from the dataclass field definitions.
_MARKET_FIELDS: tuple[str, ...] = tuple(f for f in Market.__dataclass_fields__ if f != "fees")
_FEES_FIELDS: tuple[str, ...] = tuple(MarketFees.__dataclass_fields__)


def market_to_dict(market: Market) -> dict[str, Any]:
    """Serialize a Market to a plain dict (prices become lists)."""
    out: dict[str, Any] = {}
    for name in _MARKET_FIELDS:
        val = getattr(market, name)
        out[name] = list(val) if isinstance(val, tuple) else val
    out["fees"] = {name: getattr(market.fees, name) for name in _FEES_FIELDS}
    return out


def market_from_dict(d: Mapping[str, Any]) -> Market:
    """Deserialize a dict produced by `market_to_dict`. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in _MARKET_FIELDS:
        val = d[name]
        if name in ("bid_prices", "ask_prices"):
            kwargs[name] = tuple(int(p) for p in val)
        else:
            kwargs[name] = int(val)
    fees = d["fees"]
    kwargs["fees"] = MarketFees(**{name: int(fees[name]) for name in _FEES_FIELDS})
    return Market(**kwargs)
