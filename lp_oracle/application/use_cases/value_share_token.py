from __future__ import annotations

import logging
from typing import Callable

from lp_oracle.application.dto.valuation import (
    DirectFeeds,
    FeedFlags,
    ShareValuationOutput,
    ValuationOutput,
    ValuePositionInput,
    ValueShareTokenInput,
)
from lp_oracle.application.ports.pool_state_port import PoolStatePort
from lp_oracle.application.ports.share_token_port import ShareTokenPort
from lp_oracle.application.use_cases.value_position import ValuePositionUseCase
from lp_oracle.domain.entities.position import ResolvedTokens, ShareSupply
from lp_oracle.domain.exceptions import ValuationInputError
from lp_oracle.domain.services.position_value import validate_tick_range
from lp_oracle.domain.services.share_normalizer import per_share_position


logger = logging.getLogger(__name__)


class ValueShareTokenUseCase:
    """USD value of one whole (1e18) share of a wrapped position.

    Mirrors the entry points of ValuePositionUseCase. An empty wrapper
    (zero supply) is worth 0 and nothing beyond the supply is read. The
    pool position is keyed by the wrapper's position owner (its hub),
    not by the share token itself.
    """

    def __init__(
        self,
        *,
        share_port: ShareTokenPort,
        pool_port: PoolStatePort,
        position_use_case: ValuePositionUseCase,
    ):
        self._share_port = share_port
        self._pool_port = pool_port
        self._position_use_case = position_use_case

    def execute(self, command: ValueShareTokenInput) -> ShareValuationOutput:
        return self._run(command, None, self._position_use_case.execute)

    def execute_with_feed_flags(self, command: ValueShareTokenInput, flags: FeedFlags) -> ShareValuationOutput:
        return self._run(
            command,
            None,
            lambda position: self._position_use_case.execute_with_feed_flags(position, flags),
        )

    def execute_with_feeds(self, command: ValueShareTokenInput, feeds: DirectFeeds) -> ShareValuationOutput:
        return self._run(
            command,
            None,
            lambda position: self._position_use_case.execute_with_feeds(position, feeds),
        )

    def execute_resolved(self, command: ValueShareTokenInput, tokens: ResolvedTokens) -> ShareValuationOutput:
        return self._run(
            command,
            tokens.pool_address,
            lambda position: self._position_use_case.execute_resolved(position, tokens),
        )

    def _run(
        self,
        command: ValueShareTokenInput,
        pool_address: str | None,
        value: Callable[[ValuePositionInput], ValuationOutput],
    ) -> ShareValuationOutput:
        total_supply = self._share_port.get_total_supply(share_token=command.share_token)
        if total_supply == 0:
            logger.info("value_share_token: empty_supply share_token=%s", command.share_token)
            return ShareValuationOutput(
                share_token=command.share_token,
                total_supply=0,
                total_liquidity=0,
                per_share_liquidity=0,
                value_usd=0,
                position=None,
            )

        if pool_address is None:
            pool_address = self._share_port.get_pool(share_token=command.share_token)
        tick_lower, tick_upper = self._share_port.get_tick_range(share_token=command.share_token)
        try:
            validate_tick_range(tick_lower, tick_upper)
        except ValuationInputError as exc:
            raise ValuationInputError(f"Share token {command.share_token}: {exc}") from exc

        owner = self._share_port.get_position_owner(share_token=command.share_token)
        total_liquidity = self._pool_port.get_position_liquidity(
            pool_address=pool_address,
            owner=owner,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
        )
        per_share = per_share_position(
            ShareSupply(
                pool_address=pool_address,
                tick_lower=tick_lower,
                tick_upper=tick_upper,
                total_liquidity=total_liquidity,
                total_supply=total_supply,
            )
        )
        position = value(
            ValuePositionInput(
                pool_address=pool_address,
                tick_lower=per_share.tick_lower,
                tick_upper=per_share.tick_upper,
                liquidity=per_share.liquidity,
                twap_window_seconds=command.twap_window_seconds,
                max_feed_age_seconds=command.max_feed_age_seconds,
            )
        )
        return ShareValuationOutput(
            share_token=command.share_token,
            total_supply=total_supply,
            total_liquidity=total_liquidity,
            per_share_liquidity=per_share.liquidity,
            value_usd=position.value_usd,
            position=position,
        )
