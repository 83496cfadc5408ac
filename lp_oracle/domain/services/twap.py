from __future__ import annotations

from lp_oracle.domain.entities.valuation import TokenPrice
from lp_oracle.domain.services.univ3_math import get_quote_at_tick


def price_from_twap(
    *,
    mean_tick: int,
    known_price: TokenPrice,
    known_base: int,
    other_base: int,
    other_is_token0: bool,
) -> TokenPrice:
    """USD price of the token without a feed, seeded with the one that has it.

    One whole unit of the other token is quoted in raw units of the known
    token at the mean tick, then priced at the known token's feed price.
    """
    quote_amount = get_quote_at_tick(mean_tick, other_base, base_is_token0=other_is_token0)
    value = quote_amount * known_price.value // known_base
    return TokenPrice(value=value, source="twap", updated_at=known_price.updated_at)
