from __future__ import annotations

from math import isqrt

import pytest

from lp_oracle.application.dto.valuation import DirectFeeds, FeedFlags, ValuePositionInput
from lp_oracle.application.use_cases.price_pair import PairPricer
from lp_oracle.application.use_cases.value_position import ValuePositionUseCase
from lp_oracle.domain.entities.feed import FeedLookup, FeedRound, SequencerStatus
from lp_oracle.domain.entities.position import ResolvedTokens
from lp_oracle.domain.exceptions import (
    ChainlinkPriceTooOldError,
    GracePeriodNotOverError,
    NoChainlinkPriceAvailableError,
    SequencerDownError,
    ValuationInputError,
)
from lp_oracle.domain.services.token_normalizer import (
    DENOMINATION_ETH,
    DENOMINATION_USD,
    TokenNormalizer,
    TokenNormalizerConfig,
)
from lp_oracle.domain.services.univ3_math import (
    Q96,
    UINT128_MAX,
    get_quote_at_tick,
    get_sqrt_ratio_at_tick,
)


NOW = 1_700_000_000
POOL = "0xpool"
WETH = "0xweth"
USDC = "0xusdc"
FEED_WETH = "0xfeedweth"
FEED_USDC = "0xfeedusdc"


class FakeClock:
    def __init__(self, now: int = NOW):
        self._now = now

    def now(self) -> int:
        return self._now


class FakeFeedPort:
    def __init__(self, rounds: dict[str, FeedRound]):
        self._rounds = rounds
        self.calls: list[str] = []

    def latest_round(self, *, feed: str) -> FeedRound:
        self.calls.append(feed)
        return self._rounds[feed]


class FakePoolPort:
    def __init__(self, *, tokens: tuple[str, str] = (WETH, USDC), twap_tick: int | None = None):
        self._tokens = tokens
        self._twap_tick = twap_tick
        self.twap_calls: list[int] = []

    def get_tokens(self, *, pool_address: str) -> tuple[str, str]:
        _ = pool_address
        return self._tokens

    def get_position_liquidity(self, *, pool_address: str, owner: str, tick_lower: int, tick_upper: int) -> int:
        raise AssertionError("position liquidity must not be read")

    def get_twap_tick(self, *, pool_address: str, window_seconds: int) -> int:
        _ = pool_address
        if self._twap_tick is None:
            raise AssertionError("TWAP must not be queried")
        self.twap_calls.append(window_seconds)
        return self._twap_tick


class FakeRegistryPort:
    def __init__(self, feeds: dict[str, str]):
        self._feeds = feeds
        self.calls: list[tuple[str, str]] = []

    def lookup(self, *, base: str, quote: str) -> FeedLookup:
        self.calls.append((base, quote))
        feed = self._feeds.get(base)
        return FeedLookup.found(feed) if feed else FeedLookup.not_found()


class FakeSequencerPort:
    def __init__(self, status: SequencerStatus):
        self._status = status

    def latest_status(self) -> SequencerStatus:
        return self._status


def _fresh(answer: int) -> FeedRound:
    return FeedRound(answer=answer, updated_at=NOW - 60)


def _normalizer() -> TokenNormalizer:
    def fail(token: str) -> int:
        raise AssertionError(f"decimals lookup not expected for {token}")

    return TokenNormalizer(
        config=TokenNormalizerConfig.from_mappings(
            decimal_bases={WETH: 10**18, USDC: 10**6},
            denominations={WETH: DENOMINATION_ETH},
        ),
        decimals_lookup=fail,
    )


def _use_case(
    *,
    feed_port: FakeFeedPort | None = None,
    pool_port: FakePoolPort | None = None,
    registry_port: FakeRegistryPort | None = None,
    sequencer_port: FakeSequencerPort | None = None,
) -> ValuePositionUseCase:
    feed_port = feed_port or FakeFeedPort({FEED_WETH: _fresh(2000_00000000), FEED_USDC: _fresh(1_00000000)})
    pool_port = pool_port or FakePoolPort()
    return ValuePositionUseCase(
        pool_port=pool_port,
        pair_pricer=PairPricer(feed_port=feed_port, pool_port=pool_port),
        token_normalizer=_normalizer(),
        clock_port=FakeClock(),
        registry_port=registry_port,
        sequencer_port=sequencer_port,
    )


def _command(**overrides) -> ValuePositionInput:
    payload = {
        "pool_address": POOL,
        "tick_lower": -1000,
        "tick_upper": 1000,
        "liquidity": 10**15,
        "twap_window_seconds": 1800,
        "max_feed_age_seconds": 3600,
    }
    payload.update(overrides)
    return ValuePositionInput(**payload)


def _both_feeds() -> DirectFeeds:
    return DirectFeeds(feed0=FEED_WETH, feed1=FEED_USDC)


def test_example_position_matches_hand_computation():
    result = _use_case().execute_with_feeds(_command(), _both_feeds())

    price0, price1 = 2000_00000000, 1_00000000
    base0, base1 = 10**18, 10**6
    liquidity = 10**15
    ratio_x96 = price0 * base1 * Q96 // (price1 * base0)
    sqrt_ratio = isqrt(ratio_x96) << 48
    sa = get_sqrt_ratio_at_tick(-1000)
    sb = get_sqrt_ratio_at_tick(1000)
    assert sqrt_ratio < sa
    amount0 = ((liquidity << 96) * (sb - sa) // sb) // sa
    expected_value = amount0 * price0 * 10**10 // base0

    assert result.sqrt_ratio_x96 == sqrt_ratio
    assert result.amount0 == amount0
    assert result.amount1 == 0
    assert result.value_usd == expected_value
    assert 19 * 10**16 < result.value_usd < 21 * 10**16


def test_both_feeds_never_query_twap_and_ignore_window():
    pool_port = FakePoolPort(twap_tick=None)
    use_case = _use_case(pool_port=pool_port)

    result = use_case.execute_with_feeds(_command(twap_window_seconds=0), _both_feeds())

    assert result.price0_source == "feed"
    assert result.price1_source == "feed"
    assert result.twap_tick is None
    assert pool_port.twap_calls == []


def test_one_feed_derives_other_price_from_twap():
    mean_tick = -200311
    pool_port = FakePoolPort(twap_tick=mean_tick)
    feed_port = FakeFeedPort({FEED_WETH: _fresh(2000_00000000)})
    use_case = _use_case(feed_port=feed_port, pool_port=pool_port)

    result = use_case.execute_with_feeds(_command(), DirectFeeds(feed0=FEED_WETH))

    expected = get_quote_at_tick(mean_tick, 10**6, base_is_token0=False) * 2000_00000000 // 10**18
    assert result.price0_usd == 2000_00000000
    assert result.price1_usd == expected
    assert abs(result.price1_usd - 1_00000000) < 1_00000000 // 1000
    assert result.price1_source == "twap"
    assert result.twap_tick == mean_tick
    assert pool_port.twap_calls == [1800]
    assert feed_port.calls == [FEED_WETH]


def test_only_token1_feed_derives_token0_price():
    mean_tick = 200311
    pool_port = FakePoolPort(tokens=(USDC, WETH), twap_tick=mean_tick)
    feed_port = FakeFeedPort({FEED_WETH: _fresh(2000_00000000)})
    use_case = _use_case(feed_port=feed_port, pool_port=pool_port)

    result = use_case.execute_with_feeds(_command(), DirectFeeds(feed1=FEED_WETH))

    expected = get_quote_at_tick(mean_tick, 10**6, base_is_token0=True) * 2000_00000000 // 10**18
    assert result.price0_usd == expected
    assert abs(result.price0_usd - 1_00000000) < 1_00000000 // 1000
    assert result.price0_source == "twap"
    assert result.price1_source == "feed"


def test_derived_token1_price_flooring_to_zero_fails():
    pool_port = FakePoolPort(twap_tick=400000)
    feed_port = FakeFeedPort({FEED_WETH: _fresh(2000_00000000)})
    use_case = _use_case(feed_port=feed_port, pool_port=pool_port)

    with pytest.raises(NoChainlinkPriceAvailableError):
        use_case.execute_with_feeds(_command(), DirectFeeds(feed0=FEED_WETH))


def test_derived_token0_price_flooring_to_zero_fails():
    pool_port = FakePoolPort(twap_tick=-600000)
    feed_port = FakeFeedPort({FEED_USDC: _fresh(1_00000000)})
    use_case = _use_case(feed_port=feed_port, pool_port=pool_port)

    with pytest.raises(NoChainlinkPriceAvailableError):
        use_case.execute_with_feeds(_command(), DirectFeeds(feed1=FEED_USDC))


def test_one_feed_requires_positive_twap_window():
    use_case = _use_case(pool_port=FakePoolPort(twap_tick=0))
    with pytest.raises(ValuationInputError):
        use_case.execute_with_feeds(_command(twap_window_seconds=0), DirectFeeds(feed0=FEED_WETH))


def test_neither_feed_fails():
    use_case = _use_case(pool_port=FakePoolPort(twap_tick=0))
    with pytest.raises(NoChainlinkPriceAvailableError):
        use_case.execute_with_feeds(_command(), DirectFeeds())


def test_stale_feed_aborts_valuation():
    feed_port = FakeFeedPort(
        {
            FEED_WETH: FeedRound(answer=2000_00000000, updated_at=NOW - 3601),
            FEED_USDC: _fresh(1_00000000),
        }
    )
    with pytest.raises(ChainlinkPriceTooOldError):
        _use_case(feed_port=feed_port).execute_with_feeds(_command(), _both_feeds())


def test_zero_liquidity_values_to_zero():
    result = _use_case().execute_with_feeds(_command(liquidity=0), _both_feeds())
    assert result.value_usd == 0


def test_value_is_monotonic_in_liquidity():
    use_case = _use_case()
    values = [
        use_case.execute_with_feeds(
            _command(tick_lower=-887220, tick_upper=887220, liquidity=liquidity),
            _both_feeds(),
        ).value_usd
        for liquidity in (0, 1, 10**6, 10**12, 10**18, 10**24, UINT128_MAX)
    ]
    assert values[0] == 0
    assert all(v >= 0 for v in values)
    assert values == sorted(values)


def test_invalid_tick_range_is_rejected_before_reads():
    use_case = _use_case()
    with pytest.raises(ValuationInputError):
        use_case.execute_with_feeds(_command(tick_lower=10, tick_upper=10), _both_feeds())
    with pytest.raises(ValuationInputError):
        use_case.execute_with_feeds(_command(liquidity=UINT128_MAX + 1), _both_feeds())


def test_registry_discovery_uses_denomination_and_usd_quote():
    registry = FakeRegistryPort({DENOMINATION_ETH: FEED_WETH, USDC: FEED_USDC})
    result = _use_case(registry_port=registry).execute(_command())

    assert registry.calls == [(DENOMINATION_ETH, DENOMINATION_USD), (USDC, DENOMINATION_USD)]
    assert result.price0_source == "feed"
    assert result.price1_source == "feed"


def test_registry_discovery_requires_registry():
    with pytest.raises(ValuationInputError):
        _use_case().execute(_command())


def test_feed_flags_skip_registry_for_unflagged_tokens():
    registry = FakeRegistryPort({DENOMINATION_ETH: FEED_WETH, USDC: FEED_USDC})
    pool_port = FakePoolPort(twap_tick=-200311)
    result = _use_case(registry_port=registry, pool_port=pool_port).execute_with_feed_flags(
        _command(),
        FeedFlags(has_feed0=True, has_feed1=False),
    )

    assert registry.calls == [(DENOMINATION_ETH, DENOMINATION_USD)]
    assert result.price1_source == "twap"


def test_registry_hit_overrides_supplied_feed_and_miss_falls_back():
    registry = FakeRegistryPort({DENOMINATION_ETH: FEED_WETH})
    feed_port = FakeFeedPort({FEED_WETH: _fresh(2000_00000000), "0xmanual": _fresh(1_00000000)})
    use_case = _use_case(registry_port=registry, feed_port=feed_port)

    use_case.execute_with_feeds(_command(), DirectFeeds(feed0="0xignored", feed1="0xmanual"))

    assert feed_port.calls == [FEED_WETH, "0xmanual"]


def test_resolved_inputs_skip_all_discovery():
    registry = FakeRegistryPort({})
    pool_port = FakePoolPort(tokens=("0xwrong", "0xwrong"))
    use_case = _use_case(registry_port=registry, pool_port=pool_port)

    result = use_case.execute_resolved(
        _command(),
        ResolvedTokens(
            pool_address=POOL,
            token0="0xa",
            token1="0xb",
            base0=10**18,
            base1=10**6,
            feed0=FEED_WETH,
            feed1=FEED_USDC,
        ),
    )

    assert registry.calls == []
    assert (result.token0, result.token1) == ("0xa", "0xb")


def test_sequencer_down_aborts_before_any_feed_read():
    feed_port = FakeFeedPort({})
    use_case = _use_case(
        feed_port=feed_port,
        sequencer_port=FakeSequencerPort(SequencerStatus(is_down=True, status_since=NOW - 10**6)),
    )
    with pytest.raises(SequencerDownError):
        use_case.execute_with_feeds(_command(), _both_feeds())
    assert feed_port.calls == []


def test_sequencer_grace_period_blocks_valuation():
    use_case = _use_case(
        sequencer_port=FakeSequencerPort(SequencerStatus(is_down=False, status_since=NOW - 3600)),
    )
    with pytest.raises(GracePeriodNotOverError):
        use_case.execute_with_feeds(_command(), _both_feeds())


def test_sequencer_up_past_grace_period_allows_valuation():
    use_case = _use_case(
        sequencer_port=FakeSequencerPort(SequencerStatus(is_down=False, status_since=NOW - 3601)),
    )
    assert use_case.execute_with_feeds(_command(), _both_feeds()).value_usd > 0
