from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from lp_oracle.domain.services.token_normalizer import DENOMINATION_BTC, DENOMINATION_ETH


load_dotenv()


WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
WBTC = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"

DEFAULT_DECIMAL_BASES = {
    WETH: 10**18,
    WBTC: 10**8,
    USDC: 10**6,
    USDT: 10**6,
    DAI: 10**18,
}

DEFAULT_DENOMINATIONS = {
    WETH: DENOMINATION_ETH,
    WBTC: DENOMINATION_BTC,
}


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str) -> dict:
    value = _env(name)
    if not value:
        return {}
    return json.loads(value)


def _decimal_bases(name: str) -> dict:
    # Values may be given as bases (1000000) or as decimals (6).
    parsed = {}
    for token, value in _json(name).items():
        number = int(value)
        parsed[token.lower()] = number if number > 255 else 10**number
    return parsed


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    rpc_timeout_seconds: float
    feed_registry_address: str
    sequencer_uptime_feed_address: str
    sequencer_grace_period_seconds: int
    token_decimal_bases: dict
    token_denominations: dict
    default_twap_window_seconds: int
    default_max_feed_age_seconds: int


def get_settings() -> Settings:
    decimal_bases = dict(DEFAULT_DECIMAL_BASES)
    decimal_bases.update(_decimal_bases("TOKEN_DECIMAL_BASES"))
    denominations = dict(DEFAULT_DENOMINATIONS)
    denominations.update({k.lower(): v.lower() for k, v in _json("TOKEN_DENOMINATIONS").items()})
    return Settings(
        rpc_url=_env("RPC_URL", ""),
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "10")),
        feed_registry_address=_env("FEED_REGISTRY_ADDRESS", ""),
        sequencer_uptime_feed_address=_env("SEQUENCER_UPTIME_FEED_ADDRESS", ""),
        sequencer_grace_period_seconds=int(_env("SEQUENCER_GRACE_PERIOD_SECONDS", "3600")),
        token_decimal_bases=decimal_bases,
        token_denominations=denominations,
        default_twap_window_seconds=int(_env("DEFAULT_TWAP_WINDOW_SECONDS", "1800")),
        default_max_feed_age_seconds=int(_env("DEFAULT_MAX_FEED_AGE_SECONDS", "3600")),
    )
