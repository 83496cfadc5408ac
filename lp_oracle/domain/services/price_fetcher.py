from __future__ import annotations

from lp_oracle.domain.entities.feed import FeedRound
from lp_oracle.domain.entities.valuation import TokenPrice
from lp_oracle.domain.exceptions import ChainlinkPriceTooOldError, NoChainlinkPriceAvailableError


PRICE_DECIMALS = 8


def rescale_feed_answer(answer: int, decimals: int) -> int:
    if decimals == PRICE_DECIMALS:
        return answer
    if decimals > PRICE_DECIMALS:
        return answer // 10 ** (decimals - PRICE_DECIMALS)
    return answer * 10 ** (PRICE_DECIMALS - decimals)


def price_from_round(feed_round: FeedRound, *, feed: str, now: int, max_age_seconds: int) -> TokenPrice:
    """Validate a feed reading and return it as an 8-decimal USD price."""
    age = now - feed_round.updated_at
    if age > max_age_seconds:
        raise ChainlinkPriceTooOldError(
            f"Feed {feed} last updated {age}s ago, max allowed is {max_age_seconds}s.",
            feed=feed,
            age_seconds=age,
            max_age_seconds=max_age_seconds,
        )
    if feed_round.answer <= 0:
        raise NoChainlinkPriceAvailableError(f"Feed {feed} returned non-positive answer.")

    value = rescale_feed_answer(feed_round.answer, feed_round.decimals)
    if value <= 0:
        raise NoChainlinkPriceAvailableError(f"Feed {feed} answer rounds to zero at 8 decimals.")
    return TokenPrice(value=value, source="feed", updated_at=feed_round.updated_at)
