"""Fixed-point interval math for the piecewise-linear bonding curve.

Every function is stateless and operates on plain Python ints. Domain widths
(u64 / u128 / u256) are enforced explicitly so results match a fixed-width
implementation bit for bit.

Within one interval the price moves linearly from `price_0` to `price_1` over
`width_scaled` normalized base units. Buying `d` units starting `u` units into
the interval costs the trapezoid area:

    quote = d * ((price_1 - price_0) * (d + 2u) + 2 * price_0 * width) / (2 * SCALE * width)

The inverse (base for a given quote) is a quadratic in `d`, solved with an
exact integer square root of the discriminant.
"""

from __future__ import annotations

import math
from enum import Enum, unique

from ..constants import SCALE, U64_MAX, U128_MAX, U256_MAX
from ..errors import MathError


@unique
class Rounding(Enum):
    UP = "up"
    DOWN = "down"


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def ceil_div(a: int, b: int) -> int:
    if b <= 0:
        raise MathError("division by non-positive denominator")
    if a < 0:
        raise MathError("numerator must be non-negative")
    return (a + b - 1) // b


def mul_div(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    """
    Compute `x * y / denominator` with a 256-bit intermediate product.

    The quotient must fit in u128. Rounding is mandatory: callers must state
    which side of the trade the remainder favors.
    """
    _require_int("x", x)
    _require_int("y", y)
    _require_int("denominator", denominator)
    if not isinstance(rounding, Rounding):
        raise TypeError("rounding must be a Rounding")
    if denominator == 0:
        raise MathError("mul_div: zero denominator")
    if x < 0 or y < 0 or denominator < 0:
        raise MathError("mul_div: negative operand")

    prod = x * y
    if prod > U256_MAX:
        raise MathError("mul_div: product overflows u256")

    quotient, remainder = divmod(prod, denominator)
    if rounding is Rounding.UP and remainder:
        quotient += 1
    if quotient > U128_MAX:
        raise MathError("mul_div: quotient overflows u128")
    return quotient


def div(a: int, b: int, rounding: Rounding) -> int:
    """`a / b` rounded per `rounding`; the result must fit in u64."""
    if not isinstance(rounding, Rounding):
        raise TypeError("rounding must be a Rounding")
    if b <= 0:
        raise MathError("div: non-positive denominator")
    if a < 0:
        raise MathError("div: negative numerator")

    quotient, remainder = divmod(a, b)
    if rounding is Rounding.UP and remainder:
        quotient += 1
    if quotient > U64_MAX:
        raise MathError("div: quotient overflows u64")
    return quotient


def get_sqrt_discriminant(
    price_diff: int,
    price_0: int,
    width_scaled: int,
    current_quote: int,
) -> int:
    """
    Floor square root of `(w * diff) * (2 * SCALE * quote) + (price_0 * w)^2`.

    This is the discriminant of the per-interval quadratic, divided by 4.
    """
    left = (width_scaled * price_diff) * (current_quote * 2 * SCALE)
    right = (price_0 * width_scaled) * (price_0 * width_scaled)
    discriminant = left + right
    if discriminant > U256_MAX:
        raise MathError("discriminant overflows u256")

    root = math.isqrt(discriminant)
    if root > U128_MAX:
        raise MathError("sqrt discriminant overflows u128")
    return root


def get_delta_base_in(
    price_0: int,
    price_1: int,
    width_scaled: int,
    interval_supply_available: int,
    remaining_quote: int,
) -> tuple[int, int]:
    """
    Base needed to receive `remaining_quote` when selling down one interval.

    `interval_supply_available` is how far the current position sits above
    `price_0`. Returns `(delta_base, delta_quote)`; when the interval cannot
    absorb the whole request, the full available supply and its value are
    returned. Base is rounded up (charged to the seller).
    """
    price_diff = price_1 - price_0
    if price_diff <= 0:
        raise MathError("interval prices must be strictly increasing")

    current_quote = mul_div(
        interval_supply_available,
        price_diff * interval_supply_available + 2 * price_0 * width_scaled,
        2 * SCALE * width_scaled,
        Rounding.DOWN,
    )

    if remaining_quote >= current_quote:
        return interval_supply_available, current_quote

    sqrt_discriminant = get_sqrt_discriminant(
        price_diff,
        price_0,
        width_scaled,
        current_quote - remaining_quote,
    )

    rl = price_0 * width_scaled + price_diff * interval_supply_available
    if sqrt_discriminant > rl:
        raise MathError("negative delta base")
    delta_base = div(rl - sqrt_discriminant, price_diff, Rounding.UP)
    return delta_base, remaining_quote


def get_delta_base_out(
    price_0: int,
    price_1: int,
    width_scaled: int,
    interval_supply_already_used: int,
    remaining_quote: int,
) -> tuple[int, int]:
    """
    Base received for `remaining_quote` when buying up one interval.

    Returns `(delta_base, delta_quote)`. If the quote covers the rest of the
    interval, the remaining width and its (rounded-up) cost are returned.
    Base is rounded down (paid to the buyer).
    """
    price_diff = price_1 - price_0
    if price_diff <= 0:
        raise MathError("interval prices must be strictly increasing")

    current_quote = mul_div(
        interval_supply_already_used,
        price_diff * interval_supply_already_used + 2 * price_0 * width_scaled,
        2 * SCALE * width_scaled,
        Rounding.DOWN,
    )
    next_quote = ceil_div((price_0 + price_1) * width_scaled, 2 * SCALE)
    max_quote = next_quote - current_quote

    if remaining_quote >= max_quote:
        return width_scaled - interval_supply_already_used, max_quote

    sqrt_discriminant = get_sqrt_discriminant(
        price_diff,
        price_0,
        width_scaled,
        current_quote + remaining_quote,
    )

    rr = price_0 * width_scaled + price_diff * interval_supply_already_used
    if sqrt_discriminant < rr:
        raise MathError("negative delta base")
    delta_base = div(sqrt_discriminant - rr, price_diff, Rounding.DOWN)
    return delta_base, remaining_quote
