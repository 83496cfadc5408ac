from __future__ import annotations

from dataclasses import dataclass

from lp_oracle.domain.entities.valuation import PriceSource


@dataclass(frozen=True)
class ValuePositionInput:
    pool_address: str
    tick_lower: int
    tick_upper: int
    liquidity: int
    twap_window_seconds: int
    max_feed_age_seconds: int


@dataclass(frozen=True)
class ValueShareTokenInput:
    share_token: str
    twap_window_seconds: int
    max_feed_age_seconds: int


@dataclass(frozen=True)
class FeedFlags:
    has_feed0: bool
    has_feed1: bool


@dataclass(frozen=True)
class DirectFeeds:
    feed0: str | None = None
    feed1: str | None = None


@dataclass(frozen=True)
class ValuationOutput:
    pool_address: str
    token0: str
    token1: str
    tick_lower: int
    tick_upper: int
    liquidity: int
    value_usd: int
    price0_usd: int
    price1_usd: int
    price0_source: PriceSource
    price1_source: PriceSource
    amount0: int
    amount1: int
    sqrt_ratio_x96: int
    twap_tick: int | None


@dataclass(frozen=True)
class ShareValuationOutput:
    share_token: str
    total_supply: int
    total_liquidity: int
    per_share_liquidity: int
    value_usd: int
    position: ValuationOutput | None
