from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PositionRange:
    tick_lower: int
    tick_upper: int
    liquidity: int


@dataclass(frozen=True)
class ResolvedTokens:
    """Everything the core valuation needs to know about the pair, already looked up."""

    pool_address: str
    token0: str
    token1: str
    base0: int
    base1: int
    feed0: str | None
    feed1: str | None


@dataclass(frozen=True)
class ShareSupply:
    pool_address: str
    tick_lower: int
    tick_upper: int
    total_liquidity: int
    total_supply: int
