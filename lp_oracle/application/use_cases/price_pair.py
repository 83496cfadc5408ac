from __future__ import annotations

import logging

from lp_oracle.application.ports.pool_state_port import PoolStatePort
from lp_oracle.application.ports.price_feed_port import PriceFeedPort
from lp_oracle.domain.entities.position import ResolvedTokens
from lp_oracle.domain.entities.valuation import PairPrices, TokenPrice
from lp_oracle.domain.exceptions import NoChainlinkPriceAvailableError, ValuationInputError
from lp_oracle.domain.services.price_fetcher import price_from_round
from lp_oracle.domain.services.twap import price_from_twap


logger = logging.getLogger(__name__)


class PairPricer:
    """USD prices for both tokens of a pool.

    Both feeds resolved: both are read and the TWAP window is ignored.
    One feed resolved: the other price is derived from the pool's TWAP.
    No feed: NoChainlinkPriceAvailableError, a TWAP alone only gives a ratio.
    A derived price that floors to 0 at 8 decimals fails the same way.
    """

    def __init__(self, *, feed_port: PriceFeedPort, pool_port: PoolStatePort):
        self._feed_port = feed_port
        self._pool_port = pool_port

    def price_pair(
        self,
        *,
        tokens: ResolvedTokens,
        now: int,
        twap_window_seconds: int,
        max_feed_age_seconds: int,
    ) -> PairPrices:
        if tokens.feed0 is None and tokens.feed1 is None:
            raise NoChainlinkPriceAvailableError(
                f"No price feed for either token of pool {tokens.pool_address}."
            )

        if tokens.feed0 is not None and tokens.feed1 is not None:
            return PairPrices(
                price0=self._fetch(tokens.feed0, now=now, max_age_seconds=max_feed_age_seconds),
                price1=self._fetch(tokens.feed1, now=now, max_age_seconds=max_feed_age_seconds),
            )

        if twap_window_seconds <= 0:
            raise ValuationInputError("twap_window_seconds must be positive when only one feed exists.")

        if tokens.feed0 is not None:
            price0 = self._fetch(tokens.feed0, now=now, max_age_seconds=max_feed_age_seconds)
            mean_tick = self._pool_port.get_twap_tick(
                pool_address=tokens.pool_address,
                window_seconds=twap_window_seconds,
            )
            price1 = price_from_twap(
                mean_tick=mean_tick,
                known_price=price0,
                known_base=tokens.base0,
                other_base=tokens.base1,
                other_is_token0=False,
            )
        else:
            price1 = self._fetch(tokens.feed1, now=now, max_age_seconds=max_feed_age_seconds)
            mean_tick = self._pool_port.get_twap_tick(
                pool_address=tokens.pool_address,
                window_seconds=twap_window_seconds,
            )
            price0 = price_from_twap(
                mean_tick=mean_tick,
                known_price=price1,
                known_base=tokens.base1,
                other_base=tokens.base0,
                other_is_token0=True,
            )

        derived = price1 if tokens.feed0 is not None else price0
        if derived.value <= 0:
            raise NoChainlinkPriceAvailableError(
                f"TWAP-derived price for pool {tokens.pool_address} rounds to zero at 8 decimals (mean tick {mean_tick})."
            )

        logger.debug(
            "price_pair: twap_fallback pool=%s window=%s mean_tick=%s price0=%s price1=%s",
            tokens.pool_address,
            twap_window_seconds,
            mean_tick,
            price0.value,
            price1.value,
        )
        return PairPrices(price0=price0, price1=price1, twap_tick=mean_tick)

    def _fetch(self, feed: str, *, now: int, max_age_seconds: int) -> TokenPrice:
        feed_round = self._feed_port.latest_round(feed=feed)
        return price_from_round(feed_round, feed=feed, now=now, max_age_seconds=max_age_seconds)
