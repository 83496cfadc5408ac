from __future__ import annotations

import logging
from typing import Callable

from lp_oracle.application.dto.valuation import (
    DirectFeeds,
    FeedFlags,
    ValuationOutput,
    ValuePositionInput,
)
from lp_oracle.application.ports.clock_port import ClockPort
from lp_oracle.application.ports.pool_state_port import PoolStatePort
from lp_oracle.application.ports.price_feed_port import FeedRegistryPort
from lp_oracle.application.ports.sequencer_uptime_port import SequencerUptimePort
from lp_oracle.application.use_cases.price_pair import PairPricer
from lp_oracle.domain.entities.feed import FeedLookup
from lp_oracle.domain.entities.position import PositionRange, ResolvedTokens
from lp_oracle.domain.exceptions import ValuationInputError
from lp_oracle.domain.services.feed_resolver import resolve_feed
from lp_oracle.domain.services.liveness import GRACE_PERIOD_SECONDS, ensure_sequencer_up
from lp_oracle.domain.services.position_value import (
    position_amounts,
    position_value_usd,
    validate_position_range,
)
from lp_oracle.domain.services.token_normalizer import DENOMINATION_USD, TokenNormalizer


logger = logging.getLogger(__name__)


class ValuePositionUseCase:
    """USD value (18 decimals) of a tick range + liquidity in a pool.

    Four entry points share one computation and differ only in how much the
    caller already knows:

    - `execute`: tokens, bases and feeds are all discovered (registry required).
    - `execute_with_feed_flags`: the registry is only asked for flagged tokens.
    - `execute_with_feeds`: feed handles come from the caller; a registry hit,
      when a registry is configured, still takes precedence.
    - `execute_resolved`: nothing is looked up. Inputs are trusted as given.
    """

    def __init__(
        self,
        *,
        pool_port: PoolStatePort,
        pair_pricer: PairPricer,
        token_normalizer: TokenNormalizer,
        clock_port: ClockPort,
        registry_port: FeedRegistryPort | None = None,
        sequencer_port: SequencerUptimePort | None = None,
        grace_period_seconds: int = GRACE_PERIOD_SECONDS,
    ):
        self._pool_port = pool_port
        self._pair_pricer = pair_pricer
        self._token_normalizer = token_normalizer
        self._clock_port = clock_port
        self._registry_port = registry_port
        self._sequencer_port = sequencer_port
        self._grace_period_seconds = grace_period_seconds

    def execute(self, command: ValuePositionInput) -> ValuationOutput:
        self._validate(command)
        self._require_registry()
        now = self._checked_now()
        tokens = self._discover(command.pool_address, lambda index, token: self._registry_lookup(token))
        return self._value(command, tokens, now=now)

    def execute_with_feed_flags(self, command: ValuePositionInput, flags: FeedFlags) -> ValuationOutput:
        self._validate(command)
        self._require_registry()
        now = self._checked_now()
        wanted = (flags.has_feed0, flags.has_feed1)

        def lookup(index: int, token: str) -> str | None:
            if not wanted[index]:
                return None
            return self._registry_lookup(token)

        tokens = self._discover(command.pool_address, lookup)
        return self._value(command, tokens, now=now)

    def execute_with_feeds(self, command: ValuePositionInput, feeds: DirectFeeds) -> ValuationOutput:
        self._validate(command)
        now = self._checked_now()
        supplied = (feeds.feed0, feeds.feed1)

        def lookup(index: int, token: str) -> str | None:
            return resolve_feed(self._lookup_or_unsupported(token), supplied[index])

        tokens = self._discover(command.pool_address, lookup)
        return self._value(command, tokens, now=now)

    def execute_resolved(self, command: ValuePositionInput, tokens: ResolvedTokens) -> ValuationOutput:
        self._validate(command)
        now = self._checked_now()
        return self._value(command, tokens, now=now)

    def _value(self, command: ValuePositionInput, tokens: ResolvedTokens, *, now: int) -> ValuationOutput:
        prices = self._pair_pricer.price_pair(
            tokens=tokens,
            now=now,
            twap_window_seconds=command.twap_window_seconds,
            max_feed_age_seconds=command.max_feed_age_seconds,
        )
        amounts = position_amounts(
            position=PositionRange(
                tick_lower=command.tick_lower,
                tick_upper=command.tick_upper,
                liquidity=command.liquidity,
            ),
            price0=prices.price0.value,
            price1=prices.price1.value,
            base0=tokens.base0,
            base1=tokens.base1,
        )
        value_usd = position_value_usd(
            amounts=amounts,
            prices=prices,
            base0=tokens.base0,
            base1=tokens.base1,
        )
        logger.info(
            "value_position: valued pool=%s ticks=[%s,%s] liquidity=%s value_usd=%s sources=%s/%s",
            tokens.pool_address,
            command.tick_lower,
            command.tick_upper,
            command.liquidity,
            value_usd,
            prices.price0.source,
            prices.price1.source,
        )
        return ValuationOutput(
            pool_address=tokens.pool_address,
            token0=tokens.token0,
            token1=tokens.token1,
            tick_lower=command.tick_lower,
            tick_upper=command.tick_upper,
            liquidity=command.liquidity,
            value_usd=value_usd,
            price0_usd=prices.price0.value,
            price1_usd=prices.price1.value,
            price0_source=prices.price0.source,
            price1_source=prices.price1.source,
            amount0=amounts.amount0,
            amount1=amounts.amount1,
            sqrt_ratio_x96=amounts.sqrt_ratio_x96,
            twap_tick=prices.twap_tick,
        )

    def _discover(
        self,
        pool_address: str,
        feed_for: Callable[[int, str], str | None],
    ) -> ResolvedTokens:
        token0, token1 = self._pool_port.get_tokens(pool_address=pool_address)
        return ResolvedTokens(
            pool_address=pool_address,
            token0=token0,
            token1=token1,
            base0=self._token_normalizer.decimal_base(token0),
            base1=self._token_normalizer.decimal_base(token1),
            feed0=feed_for(0, token0),
            feed1=feed_for(1, token1),
        )

    def _checked_now(self) -> int:
        now = self._clock_port.now()
        if self._sequencer_port is not None:
            ensure_sequencer_up(
                self._sequencer_port.latest_status(),
                now=now,
                grace_period_seconds=self._grace_period_seconds,
            )
        return now

    def _lookup_or_unsupported(self, token: str) -> FeedLookup:
        if self._registry_port is None:
            return FeedLookup.unsupported()
        return self._registry_port.lookup(
            base=self._token_normalizer.denomination(token),
            quote=DENOMINATION_USD,
        )

    def _registry_lookup(self, token: str) -> str | None:
        return resolve_feed(self._lookup_or_unsupported(token))

    def _require_registry(self) -> None:
        if self._registry_port is None:
            raise ValuationInputError("Feed discovery requires a feed registry on this deployment.")

    @staticmethod
    def _validate(command: ValuePositionInput) -> None:
        validate_position_range(
            PositionRange(
                tick_lower=command.tick_lower,
                tick_upper=command.tick_upper,
                liquidity=command.liquidity,
            )
        )
        if command.max_feed_age_seconds < 0:
            raise ValuationInputError("max_feed_age_seconds must be non-negative.")
