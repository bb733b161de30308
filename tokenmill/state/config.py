"""
Protocol-wide configuration shared by every market.

Sources, lowest to highest precedence when combined by the caller:
- dataclass defaults,
- a YAML file (`MillConfig.from_yaml`),
- environment variables (`MillConfig.from_env`).

Example YAML:

    default_protocol_fee_share: 3000
    referral_fee_share: 1000
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..constants import MAX_BPS
from ..errors import ConfigurationError, InvalidFeeShare
from .market import Market, initialize_market

logger = logging.getLogger(__name__)

ENV_PROTOCOL_FEE_SHARE = "TOKEN_MILL_PROTOCOL_FEE_SHARE"
ENV_REFERRAL_FEE_SHARE = "TOKEN_MILL_REFERRAL_FEE_SHARE"


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        logger.warning("ignoring non-integer %s=%r, using %d", name, raw, default)
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _require_share(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= MAX_BPS):
        raise InvalidFeeShare(f"{name} must be an int in [0, {MAX_BPS}]: {value!r}")


@dataclass(frozen=True)
class MillConfig:
    # Protocol share (bps) stamped on each new market; immutable per market afterwards.
    default_protocol_fee_share: int = 3_000
    # Share (bps) of the post creator/staking remainder paid to a referrer.
    referral_fee_share: int = 1_000

    def __post_init__(self) -> None:
        _require_share("default_protocol_fee_share", self.default_protocol_fee_share)
        _require_share("referral_fee_share", self.referral_fee_share)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MillConfig":
        if not isinstance(data, Mapping):
            raise ConfigurationError("config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"unknown config keys: {unknown}")
        return cls(**{k: data[k] for k in known if k in data})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "MillConfig":
        p = Path(path)
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
        if obj is None:
            obj = {}
        config = cls.from_mapping(obj)
        logger.info("loaded config from %s: %s", p, config)
        return config

    @classmethod
    def from_env(cls, base: Optional["MillConfig"] = None) -> "MillConfig":
        """Override `base` (defaults if omitted) with clamped environment values."""
        base = base if base is not None else cls()
        return cls(
            default_protocol_fee_share=_env_int(
                ENV_PROTOCOL_FEE_SHARE, base.default_protocol_fee_share, lo=0, hi=MAX_BPS
            ),
            referral_fee_share=_env_int(ENV_REFERRAL_FEE_SHARE, base.referral_fee_share, lo=0, hi=MAX_BPS),
        )


def update_default_fee_shares(config: MillConfig, protocol_fee_share: int, referral_fee_share: int) -> MillConfig:
    """Only markets created afterwards pick up the new protocol share."""
    _require_share("default_protocol_fee_share", protocol_fee_share)
    _require_share("referral_fee_share", referral_fee_share)
    return replace(
        config,
        default_protocol_fee_share=protocol_fee_share,
        referral_fee_share=referral_fee_share,
    )


def create_market(
    config: MillConfig,
    total_supply: int,
    creator_fee_share: int,
    staking_fee_share: int,
    *,
    quote_token_decimals: int = 9,
) -> Market:
    return initialize_market(
        total_supply,
        creator_fee_share,
        staking_fee_share,
        config.default_protocol_fee_share,
        quote_token_decimals=quote_token_decimals,
    )
