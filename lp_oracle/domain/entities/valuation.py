from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


PriceSource = Literal["feed", "twap"]


@dataclass(frozen=True)
class TokenPrice:
    value: int
    source: PriceSource
    updated_at: int | None = None


@dataclass(frozen=True)
class PairPrices:
    price0: TokenPrice
    price1: TokenPrice
    twap_tick: int | None = None


@dataclass(frozen=True)
class PositionAmounts:
    sqrt_ratio_x96: int
    amount0: int
    amount1: int

