"""Swap direction / amount-semantics enums and swap result records.

Units/conventions:
- `base_amount` is in base-token native units (`BASE_PRECISION` per token).
- `quote_amount` and all fees are in quote-token native units.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..state.market import Market


@unique
class SwapType(Enum):
    BUY = "buy"  # quote in, base out
    SELL = "sell"  # base in, quote out


@unique
class SwapAmountType(Enum):
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


@dataclass(frozen=True)
class SwapQuote:
    """Amounts resolved for one swap, before fee distribution."""

    swap_type: SwapType
    amount_type: SwapAmountType
    base_amount: int
    quote_amount: int
    swap_fee: int

    @property
    def amount_in(self) -> int:
        return self.quote_amount if self.swap_type is SwapType.BUY else self.base_amount

    @property
    def amount_out(self) -> int:
        return self.base_amount if self.swap_type is SwapType.BUY else self.quote_amount


@dataclass(frozen=True)
class FeeDistribution:
    creator_fee: int
    staking_fee: int
    protocol_fee: int
    referral_fee: int

    def __post_init__(self) -> None:
        for name in ("creator_fee", "staking_fee", "protocol_fee", "referral_fee"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    @property
    def total(self) -> int:
        return self.creator_fee + self.staking_fee + self.protocol_fee + self.referral_fee

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.creator_fee, self.staking_fee, self.protocol_fee, self.referral_fee


@dataclass(frozen=True)
class SwapOutcome:
    """Result of a fully executed swap: the new market plus every amount moved."""

    market: "Market"
    quote: SwapQuote
    fees: FeeDistribution

    @property
    def amount_in(self) -> int:
        return self.quote.amount_in

    @property
    def amount_out(self) -> int:
        return self.quote.amount_out
