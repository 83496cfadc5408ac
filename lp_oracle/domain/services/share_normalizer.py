from __future__ import annotations

from lp_oracle.domain.entities.position import PositionRange, ShareSupply


SHARE_UNIT = 10**18


def per_share_position(supply: ShareSupply) -> PositionRange:
    """Liquidity backing one whole (1e18) share of a wrapped position."""
    if supply.total_supply <= 0:
        raise ValueError("total_supply must be positive.")
    return PositionRange(
        tick_lower=supply.tick_lower,
        tick_upper=supply.tick_upper,
        liquidity=supply.total_liquidity * SHARE_UNIT // supply.total_supply,
    )
