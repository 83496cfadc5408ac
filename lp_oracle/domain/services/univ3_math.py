from __future__ import annotations

from math import isqrt


MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

Q96 = 2**96
Q128 = 2**128
Q192 = 2**192
UINT128_MAX = 2**128 - 1
UINT256_MAX = 2**256 - 1

# Bit i of |tick| -> Q128.128 value of 1 / sqrt(1.0001) ** (2 ** i).
_TICK_BIT_FACTORS = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with the full 512-bit intermediate product."""
    if denominator <= 0:
        raise ValueError("denominator must be positive.")
    if a < 0 or b < 0:
        raise ValueError("mul_div operands must be non-negative.")
    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise OverflowError("mul_div result does not fit in uint256.")
    return result


def validate_tick(tick: int) -> None:
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"tick {tick} out of range [{MIN_TICK}, {MAX_TICK}].")


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """sqrt(1.0001 ** tick) as a Q64.96, rounded up like the on-chain TickMath library."""
    validate_tick(tick)
    abs_tick = abs(tick)

    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else 0x100000000000000000000000000000000
    for bit, factor in _TICK_BIT_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def get_amount0_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return (
        mul_div(liquidity << 96, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, sqrt_ratio_b_x96)
        // sqrt_ratio_a_x96
    )


def get_amount1_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def get_amounts_for_liquidity(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
) -> tuple[int, int]:
    """Token amounts held by `liquidity` between two sqrt ratios at the given price.

    The current ratio is clamped to the range: below it everything is token0,
    above it everything is token1.
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if sqrt_ratio_x96 <= sqrt_ratio_a_x96:
        return get_amount0_for_liquidity(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity), 0
    if sqrt_ratio_x96 < sqrt_ratio_b_x96:
        return (
            get_amount0_for_liquidity(sqrt_ratio_x96, sqrt_ratio_b_x96, liquidity),
            get_amount1_for_liquidity(sqrt_ratio_a_x96, sqrt_ratio_x96, liquidity),
        )
    return 0, get_amount1_for_liquidity(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity)


def get_quote_at_tick(tick: int, base_amount: int, *, base_is_token0: bool) -> int:
    """Amount of the quote token received for `base_amount` of the base token at `tick`."""
    if base_amount < 0 or base_amount > UINT128_MAX:
        raise ValueError("base_amount must fit in uint128.")
    sqrt_ratio_x96 = get_sqrt_ratio_at_tick(tick)

    if sqrt_ratio_x96 <= UINT128_MAX:
        ratio_x192 = sqrt_ratio_x96 * sqrt_ratio_x96
        if base_is_token0:
            return mul_div(ratio_x192, base_amount, Q192)
        return mul_div(Q192, base_amount, ratio_x192)

    ratio_x128 = mul_div(sqrt_ratio_x96, sqrt_ratio_x96, 1 << 64)
    if base_is_token0:
        return mul_div(ratio_x128, base_amount, Q128)
    return mul_div(Q128, base_amount, ratio_x128)


def arithmetic_mean_tick(tick_cumulative_start: int, tick_cumulative_end: int, window_seconds: int) -> int:
    """Mean tick over the window, rounded toward negative infinity."""
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive.")
    return (tick_cumulative_end - tick_cumulative_start) // window_seconds


def price_ratio_to_sqrt_ratio_x96(*, price0: int, price1: int, base0: int, base1: int) -> int:
    """Pool sqrt ratio implied by two USD prices.

    The raw ratio (token1 units per token0 unit) is computed as a Q96 value,
    square-rooted to a Q48 and then shifted left by 48. Shifting by 192 before
    the square root would push the intermediate past 256 bits for ordinary prices.
    """
    if price1 <= 0:
        raise ValueError("price1 must be positive.")
    if base0 <= 0 or base1 <= 0:
        raise ValueError("decimal bases must be positive.")
    ratio_x96 = mul_div(price0 * base1, Q96, price1 * base0)
    return isqrt(ratio_x96) << 48
