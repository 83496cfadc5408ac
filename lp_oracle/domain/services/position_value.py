from __future__ import annotations

from lp_oracle.domain.entities.position import PositionRange
from lp_oracle.domain.entities.valuation import PairPrices, PositionAmounts
from lp_oracle.domain.exceptions import ValuationInputError
from lp_oracle.domain.services.price_fetcher import PRICE_DECIMALS
from lp_oracle.domain.services.univ3_math import (
    MAX_TICK,
    MIN_TICK,
    UINT128_MAX,
    get_amounts_for_liquidity,
    get_sqrt_ratio_at_tick,
    mul_div,
    price_ratio_to_sqrt_ratio_x96,
)


VALUE_DECIMALS = 18
_PRICE_TO_VALUE_SCALE = 10 ** (VALUE_DECIMALS - PRICE_DECIMALS)


def validate_tick_range(tick_lower: int, tick_upper: int) -> None:
    if tick_lower >= tick_upper:
        raise ValuationInputError("tick_lower must be lower than tick_upper.")
    if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
        raise ValuationInputError(f"ticks must be within [{MIN_TICK}, {MAX_TICK}].")


def validate_position_range(position: PositionRange) -> None:
    validate_tick_range(position.tick_lower, position.tick_upper)
    if position.liquidity < 0 or position.liquidity > UINT128_MAX:
        raise ValuationInputError("liquidity must fit in uint128.")


def position_amounts(
    *,
    position: PositionRange,
    price0: int,
    price1: int,
    base0: int,
    base1: int,
) -> PositionAmounts:
    sqrt_ratio_x96 = price_ratio_to_sqrt_ratio_x96(
        price0=price0,
        price1=price1,
        base0=base0,
        base1=base1,
    )
    amount0, amount1 = get_amounts_for_liquidity(
        sqrt_ratio_x96,
        get_sqrt_ratio_at_tick(position.tick_lower),
        get_sqrt_ratio_at_tick(position.tick_upper),
        position.liquidity,
    )
    return PositionAmounts(sqrt_ratio_x96=sqrt_ratio_x96, amount0=amount0, amount1=amount1)


def amount_to_usd(amount: int, *, price: int, base: int) -> int:
    """Raw token amount -> USD with 18 decimals, floored."""
    return mul_div(amount, price * _PRICE_TO_VALUE_SCALE, base)


def position_value_usd(
    *,
    amounts: PositionAmounts,
    prices: PairPrices,
    base0: int,
    base1: int,
) -> int:
    return amount_to_usd(amounts.amount0, price=prices.price0.value, base=base0) + amount_to_usd(
        amounts.amount1,
        price=prices.price1.value,
        base=base1,
    )
