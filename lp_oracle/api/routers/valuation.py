from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from lp_oracle.api.deps import get_value_position_use_case, get_value_share_token_use_case
from lp_oracle.api.schemas.valuation import (
    FeedSelectionRequest,
    ShareValuationResponse,
    ValuationResponse,
    ValuePositionRequest,
    ValueShareTokenRequest,
)
from lp_oracle.application.dto.valuation import (
    DirectFeeds,
    FeedFlags,
    ShareValuationOutput,
    ValuationOutput,
    ValuePositionInput,
    ValueShareTokenInput,
)
from lp_oracle.application.use_cases.value_position import ValuePositionUseCase
from lp_oracle.application.use_cases.value_share_token import ValueShareTokenUseCase
from lp_oracle.domain.entities.position import ResolvedTokens
from lp_oracle.domain.exceptions import (
    DomainError,
    NoChainlinkPriceAvailableError,
    ValuationInputError,
)
from lp_oracle.shared.config import Settings, get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


def _or_default(value: int | None, default: int) -> int:
    return value if value is not None else default


def _selection_count(req: FeedSelectionRequest) -> int:
    return sum(1 for item in (req.feed_flags, req.feeds, req.resolved) if item is not None)


def _resolved_tokens(req: FeedSelectionRequest, pool_address: str) -> ResolvedTokens:
    resolved = req.resolved
    return ResolvedTokens(
        pool_address=pool_address,
        token0=resolved.token0,
        token1=resolved.token1,
        base0=resolved.base0,
        base1=resolved.base1,
        feed0=resolved.feed0,
        feed1=resolved.feed1,
    )


def _http_error(label: str, target: str, exc: DomainError) -> HTTPException:
    if isinstance(exc, ValuationInputError):
        logger.warning("valuation_router: invalid_input kind=%s target=%s detail=%s", label, target, exc)
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NoChainlinkPriceAvailableError):
        logger.warning("valuation_router: no_price kind=%s target=%s detail=%s", label, target, exc)
        return HTTPException(status_code=422, detail=str(exc))
    logger.warning(
        "valuation_router: unavailable kind=%s target=%s error=%s detail=%s",
        label,
        target,
        type(exc).__name__,
        exc,
    )
    return HTTPException(
        status_code=503,
        detail={"message": str(exc), "code": type(exc).__name__},
    )


def _to_response(result: ValuationOutput) -> ValuationResponse:
    return ValuationResponse(
        pool_address=result.pool_address,
        token0=result.token0,
        token1=result.token1,
        tick_lower=result.tick_lower,
        tick_upper=result.tick_upper,
        liquidity=str(result.liquidity),
        value_usd=str(result.value_usd),
        price0_usd=str(result.price0_usd),
        price1_usd=str(result.price1_usd),
        price0_source=result.price0_source,
        price1_source=result.price1_source,
        amount0=str(result.amount0),
        amount1=str(result.amount1),
        sqrt_ratio_x96=str(result.sqrt_ratio_x96),
        twap_tick=result.twap_tick,
    )


def _value_position(
    use_case: ValuePositionUseCase,
    command: ValuePositionInput,
    req: ValuePositionRequest,
) -> ValuationOutput:
    if req.resolved is not None:
        return use_case.execute_resolved(command, _resolved_tokens(req, req.pool_address))
    if req.feeds is not None:
        return use_case.execute_with_feeds(command, DirectFeeds(feed0=req.feeds.feed0, feed1=req.feeds.feed1))
    if req.feed_flags is not None:
        return use_case.execute_with_feed_flags(
            command,
            FeedFlags(has_feed0=req.feed_flags.has_feed0, has_feed1=req.feed_flags.has_feed1),
        )
    return use_case.execute(command)


def _value_share_token(
    use_case: ValueShareTokenUseCase,
    command: ValueShareTokenInput,
    req: ValueShareTokenRequest,
) -> ShareValuationOutput:
    if req.resolved is not None:
        return use_case.execute_resolved(command, _resolved_tokens(req, req.resolved.pool_address))
    if req.feeds is not None:
        return use_case.execute_with_feeds(command, DirectFeeds(feed0=req.feeds.feed0, feed1=req.feeds.feed1))
    if req.feed_flags is not None:
        return use_case.execute_with_feed_flags(
            command,
            FeedFlags(has_feed0=req.feed_flags.has_feed0, has_feed1=req.feed_flags.has_feed1),
        )
    return use_case.execute(command)


@router.post("/v1/valuation/position", response_model=ValuationResponse)
def value_position(
    req: ValuePositionRequest,
    settings: Settings = Depends(get_settings),
    use_case: ValuePositionUseCase = Depends(get_value_position_use_case),
):
    if _selection_count(req) > 1:
        raise HTTPException(status_code=400, detail="Use only one of feed_flags, feeds or resolved.")

    command = ValuePositionInput(
        pool_address=req.pool_address,
        tick_lower=req.tick_lower,
        tick_upper=req.tick_upper,
        liquidity=req.liquidity,
        twap_window_seconds=_or_default(req.twap_window_seconds, settings.default_twap_window_seconds),
        max_feed_age_seconds=_or_default(req.max_feed_age_seconds, settings.default_max_feed_age_seconds),
    )
    try:
        result = _value_position(use_case, command, req)
    except DomainError as exc:
        raise _http_error("position", req.pool_address, exc) from exc
    return _to_response(result)


@router.post("/v1/valuation/share-token", response_model=ShareValuationResponse)
def value_share_token(
    req: ValueShareTokenRequest,
    settings: Settings = Depends(get_settings),
    use_case: ValueShareTokenUseCase = Depends(get_value_share_token_use_case),
):
    if _selection_count(req) > 1:
        raise HTTPException(status_code=400, detail="Use only one of feed_flags, feeds or resolved.")
    if req.resolved is not None and req.resolved.pool_address is None:
        raise HTTPException(status_code=400, detail="resolved.pool_address is required for share tokens.")

    command = ValueShareTokenInput(
        share_token=req.share_token,
        twap_window_seconds=_or_default(req.twap_window_seconds, settings.default_twap_window_seconds),
        max_feed_age_seconds=_or_default(req.max_feed_age_seconds, settings.default_max_feed_age_seconds),
    )
    try:
        result = _value_share_token(use_case, command, req)
    except DomainError as exc:
        raise _http_error("share_token", req.share_token, exc) from exc

    return ShareValuationResponse(
        share_token=result.share_token,
        total_supply=str(result.total_supply),
        total_liquidity=str(result.total_liquidity),
        per_share_liquidity=str(result.per_share_liquidity),
        value_usd=str(result.value_usd),
        position=_to_response(result.position) if result.position is not None else None,
    )
