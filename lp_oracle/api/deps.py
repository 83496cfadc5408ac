from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException
from web3 import Web3

from lp_oracle.application.ports.token_decimals_port import TokenDecimalsPort
from lp_oracle.application.use_cases.price_pair import PairPricer
from lp_oracle.application.use_cases.value_position import ValuePositionUseCase
from lp_oracle.application.use_cases.value_share_token import ValueShareTokenUseCase
from lp_oracle.domain.services.token_normalizer import TokenNormalizer, TokenNormalizerConfig
from lp_oracle.infrastructure.clients.onchain import (
    BlockTimestampClock,
    Web3FeedRegistryClient,
    Web3PoolStateClient,
    Web3PriceFeedClient,
    Web3SequencerUptimeClient,
    Web3ShareTokenClient,
    Web3TokenDecimalsClient,
    build_web3,
)
from lp_oracle.shared.config import get_settings


@lru_cache(maxsize=1)
def _get_web3() -> Web3:
    settings = get_settings()
    if not settings.rpc_url:
        raise HTTPException(status_code=500, detail="RPC_URL is required.")
    return build_web3(settings.rpc_url, settings.rpc_timeout_seconds)


@lru_cache(maxsize=1)
def _get_price_feed_client() -> Web3PriceFeedClient:
    return Web3PriceFeedClient(_get_web3())


@lru_cache(maxsize=1)
def _get_token_normalizer() -> TokenNormalizer:
    settings = get_settings()
    decimals_client: TokenDecimalsPort = Web3TokenDecimalsClient(_get_web3())
    return TokenNormalizer(
        config=TokenNormalizerConfig.from_mappings(
            decimal_bases=settings.token_decimal_bases,
            denominations=settings.token_denominations,
        ),
        decimals_lookup=lambda token: decimals_client.get_decimals(token_address=token),
    )


def get_value_position_use_case() -> ValuePositionUseCase:
    settings = get_settings()
    w3 = _get_web3()
    pool_port = Web3PoolStateClient(w3)
    registry_port = (
        Web3FeedRegistryClient(w3, registry_address=settings.feed_registry_address)
        if settings.feed_registry_address
        else None
    )
    sequencer_port = (
        Web3SequencerUptimeClient(w3, uptime_feed_address=settings.sequencer_uptime_feed_address)
        if settings.sequencer_uptime_feed_address
        else None
    )
    return ValuePositionUseCase(
        pool_port=pool_port,
        pair_pricer=PairPricer(feed_port=_get_price_feed_client(), pool_port=pool_port),
        token_normalizer=_get_token_normalizer(),
        clock_port=BlockTimestampClock(w3),
        registry_port=registry_port,
        sequencer_port=sequencer_port,
        grace_period_seconds=settings.sequencer_grace_period_seconds,
    )


def get_value_share_token_use_case() -> ValueShareTokenUseCase:
    w3 = _get_web3()
    return ValueShareTokenUseCase(
        share_port=Web3ShareTokenClient(w3),
        pool_port=Web3PoolStateClient(w3),
        position_use_case=get_value_position_use_case(),
    )
