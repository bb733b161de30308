#!/usr/bin/env python3

"""
Deterministic quote table for a Token Mill market.

Walks the curve in equal buy steps on a fresh market and reports, per step,
the ask cost, the bid buyback and the spread fee split under the configured
shares. Useful to eyeball a curve before setting it on a live market.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tokenmill.constants import U64_MAX
from tokenmill.core.curve import default_curve
from tokenmill.core.types import SwapAmountType, SwapType
from tokenmill.errors import TokenMillError
from tokenmill.integration.mill_engine import MillEngine
from tokenmill.state.config import MillConfig, create_market

logger = logging.getLogger("curve_quote_table")


def build_table(
    *,
    config: MillConfig,
    total_supply: int,
    steps: int,
    creator_fee_share: int,
    staking_fee_share: int,
    quote_token_decimals: int,
    referrer: str,
) -> List[Dict[str, Any]]:
    market = create_market(
        config,
        total_supply,
        creator_fee_share,
        staking_fee_share,
        quote_token_decimals=quote_token_decimals,
    )
    engine = MillEngine(config, market)
    engine.set_curve(*default_curve())

    step_amount = total_supply // steps
    rows: List[Dict[str, Any]] = []
    for i in range(steps):
        outcome = engine.swap(
            "quote-table",
            SwapType.BUY,
            SwapAmountType.EXACT_OUTPUT,
            step_amount,
            U64_MAX,
            referrer=referrer or None,
        )
        rows.append(
            {
                "step": i,
                "circulating_supply_after": engine.market.circulating_supply,
                "base_amount": outcome.quote.base_amount,
                "quote_amount": outcome.quote.quote_amount,
                "swap_fee": outcome.quote.swap_fee,
                "creator_fee": outcome.fees.creator_fee,
                "staking_fee": outcome.fees.staking_fee,
                "protocol_fee": outcome.fees.protocol_fee,
                "referral_fee": outcome.fees.referral_fee,
            }
        )
    return rows


def main() -> int:
    ap = argparse.ArgumentParser(description="Quote table for the default Token Mill curve")
    ap.add_argument("--config", type=str, default="", help="YAML config file (env overrides still apply)")
    ap.add_argument("--total-supply", type=int, default=1_000_000_000_000)
    ap.add_argument("--steps", type=int, default=10)
    ap.add_argument("--creator-fee-share", type=int, default=3_000)
    ap.add_argument("--staking-fee-share", type=int, default=4_000)
    ap.add_argument("--quote-token-decimals", type=int, default=9)
    ap.add_argument("--referrer", type=str, default="")
    ap.add_argument("--out", type=str, default="")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.steps <= 0:
        raise SystemExit("steps must be positive")

    config = MillConfig.from_yaml(args.config) if args.config else MillConfig()
    config = MillConfig.from_env(config)

    start = time.perf_counter()
    try:
        rows = build_table(
            config=config,
            total_supply=args.total_supply,
            steps=args.steps,
            creator_fee_share=args.creator_fee_share,
            staking_fee_share=args.staking_fee_share,
            quote_token_decimals=args.quote_token_decimals,
            referrer=args.referrer,
        )
    except TokenMillError as exc:
        logger.error("quote table failed: %s (%s)", exc, exc.code)
        return 1

    report = {
        "schema": "tokenmill/quote-table/v1",
        "timestamp_unix": int(time.time()),
        "config": {
            "default_protocol_fee_share": config.default_protocol_fee_share,
            "referral_fee_share": config.referral_fee_share,
        },
        "total_supply": args.total_supply,
        "rows": rows,
        "runtime_s": time.perf_counter() - start,
    }

    payload = json.dumps(report, indent=2, sort_keys=True)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {out_path}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
