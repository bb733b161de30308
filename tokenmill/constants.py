"""Domain constants for the Token Mill curve engine.

Prices are quote-per-base scaled by `SCALE`. Base amounts are expressed in
base-token native units (`BASE_PRECISION` per whole token); internally they
are normalized to `SCALE` before any interval math.
"""

from __future__ import annotations

U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1
I64_MAX: int = (1 << 63) - 1
I64_MIN: int = -(1 << 63)

INTERVAL_NUMBER: int = 10
PRICES_LENGTH: int = INTERVAL_NUMBER + 1

SCALE: int = 1_000_000_000  # 1e9
BASE_PRECISION: int = 1_000_000  # 6 decimals

# Normalized supply (supply * SCALE / BASE_PRECISION) must fit in u64.
MAX_TOTAL_SUPPLY: int = U64_MAX // (SCALE // BASE_PRECISION)
MAX_PRICE: int = 1_000_000_000_000_000_000  # 1e18

MAX_BPS: int = 10_000
STAKING_SCALE: int = 1_000_000_000_000_000_000  # 1e18

MAX_QUOTE_TOKEN_DECIMALS: int = 18
