from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class FeedFlagsRequest(BaseModel):
    has_feed0: bool = Field(..., description="Look up a registry feed for token0.")
    has_feed1: bool = Field(..., description="Look up a registry feed for token1.")


class DirectFeedsRequest(BaseModel):
    feed0: str | None = Field(None, description="Price feed (token0/USD) address, if any.")
    feed1: str | None = Field(None, description="Price feed (token1/USD) address, if any.")


class ResolvedTokensRequest(BaseModel):
    pool_address: str | None = Field(None, description="Pool address; required for share tokens.")
    token0: str
    token1: str
    base0: int = Field(..., gt=0, description="Fixed-point base of token0 (10**decimals).")
    base1: int = Field(..., gt=0, description="Fixed-point base of token1 (10**decimals).")
    feed0: str | None = None
    feed1: str | None = None


class FeedSelectionRequest(BaseModel):
    feed_flags: FeedFlagsRequest | None = Field(
        None,
        description="Only look up feeds for flagged tokens in the registry.",
    )
    feeds: DirectFeedsRequest | None = Field(None, description="Feed handles supplied by the caller.")
    resolved: ResolvedTokensRequest | None = Field(
        None,
        description="Tokens, bases and feeds supplied by the caller. Not validated.",
    )


class ValuePositionRequest(FeedSelectionRequest):
    pool_address: str = Field(..., description="Pool address (0x...).")
    tick_lower: int
    tick_upper: int
    liquidity: int = Field(..., ge=0)
    twap_window_seconds: int | None = Field(
        None,
        description="TWAP window; ignored when both tokens have feeds.",
    )
    max_feed_age_seconds: int | None = Field(None, ge=0)


class ValueShareTokenRequest(FeedSelectionRequest):
    share_token: str = Field(..., description="Wrapped position token address (0x...).")
    twap_window_seconds: int | None = None
    max_feed_age_seconds: int | None = Field(None, ge=0)


class ValuationResponse(BaseModel):
    pool_address: str
    token0: str
    token1: str
    tick_lower: int
    tick_upper: int
    liquidity: str
    value_usd: str = Field(..., description="USD value, 18 decimals.")
    price0_usd: str = Field(..., description="token0 USD price, 8 decimals.")
    price1_usd: str = Field(..., description="token1 USD price, 8 decimals.")
    price0_source: Literal["feed", "twap"]
    price1_source: Literal["feed", "twap"]
    amount0: str
    amount1: str
    sqrt_ratio_x96: str
    twap_tick: int | None


class ShareValuationResponse(BaseModel):
    share_token: str
    total_supply: str
    total_liquidity: str
    per_share_liquidity: str
    value_usd: str = Field(..., description="USD value of 1e18 shares, 18 decimals.")
    position: ValuationResponse | None
