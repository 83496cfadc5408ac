from __future__ import annotations

import logging
from threading import Lock

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from lp_oracle.domain.entities.feed import FeedLookup, FeedRound, SequencerStatus
from lp_oracle.domain.services.univ3_math import arithmetic_mean_tick


logger = logging.getLogger(__name__)


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _fn(name: str, inputs: list[tuple[str, str]], outputs: list[tuple[str, str]]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
    }


UNIV3_POOL_ABI = [
    _fn("token0", [], [("", "address")]),
    _fn("token1", [], [("", "address")]),
    _fn(
        "positions",
        [("key", "bytes32")],
        [
            ("liquidity", "uint128"),
            ("feeGrowthInside0LastX128", "uint256"),
            ("feeGrowthInside1LastX128", "uint256"),
            ("tokensOwed0", "uint128"),
            ("tokensOwed1", "uint128"),
        ],
    ),
    _fn(
        "observe",
        [("secondsAgos", "uint32[]")],
        [("tickCumulatives", "int56[]"), ("secondsPerLiquidityCumulativeX128s", "uint160[]")],
    ),
]

AGGREGATOR_ABI = [
    _fn("decimals", [], [("", "uint8")]),
    _fn(
        "latestRoundData",
        [],
        [
            ("roundId", "uint80"),
            ("answer", "int256"),
            ("startedAt", "uint256"),
            ("updatedAt", "uint256"),
            ("answeredInRound", "uint80"),
        ],
    ),
]

FEED_REGISTRY_ABI = [
    _fn("getFeed", [("base", "address"), ("quote", "address")], [("aggregator", "address")]),
]

ERC20_ABI = [
    _fn("decimals", [], [("", "uint8")]),
    _fn("totalSupply", [], [("", "uint256")]),
]

SHARE_TOKEN_ABI = ERC20_ABI + [
    _fn("pool", [], [("", "address")]),
    _fn("tickLower", [], [("", "int24")]),
    _fn("tickUpper", [], [("", "int24")]),
    _fn("hub", [], [("", "address")]),
]


def build_web3(rpc_url: str, timeout_seconds: float) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds}))


def position_key(owner: str, tick_lower: int, tick_upper: int) -> bytes:
    return bytes(
        Web3.solidity_keccak(
            ["address", "int24", "int24"],
            [Web3.to_checksum_address(owner), tick_lower, tick_upper],
        )
    )


class _ContractReader:
    def __init__(self, w3: Web3):
        self._w3 = w3

    def _contract(self, address: str, abi: list[dict]):
        return self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)


class Web3PoolStateClient(_ContractReader):
    def get_tokens(self, *, pool_address: str) -> tuple[str, str]:
        pool = self._contract(pool_address, UNIV3_POOL_ABI)
        token0 = pool.functions.token0().call()
        token1 = pool.functions.token1().call()
        logger.debug("onchain_pool: tokens pool=%s token0=%s token1=%s", pool_address, token0, token1)
        return token0, token1

    def get_position_liquidity(
        self,
        *,
        pool_address: str,
        owner: str,
        tick_lower: int,
        tick_upper: int,
    ) -> int:
        pool = self._contract(pool_address, UNIV3_POOL_ABI)
        key = position_key(owner, tick_lower, tick_upper)
        liquidity = int(pool.functions.positions(key).call()[0])
        logger.debug(
            "onchain_pool: position_liquidity pool=%s owner=%s ticks=[%s,%s] liquidity=%s",
            pool_address,
            owner,
            tick_lower,
            tick_upper,
            liquidity,
        )
        return liquidity

    def get_twap_tick(self, *, pool_address: str, window_seconds: int) -> int:
        pool = self._contract(pool_address, UNIV3_POOL_ABI)
        # Reverts ("OLD") when the pool has no observation that far back.
        tick_cumulatives, _ = pool.functions.observe([window_seconds, 0]).call()
        mean_tick = arithmetic_mean_tick(int(tick_cumulatives[0]), int(tick_cumulatives[1]), window_seconds)
        logger.debug(
            "onchain_pool: twap pool=%s window=%s mean_tick=%s",
            pool_address,
            window_seconds,
            mean_tick,
        )
        return mean_tick


class Web3PriceFeedClient(_ContractReader):
    def __init__(self, w3: Web3):
        super().__init__(w3)
        self._decimals: dict[str, int] = {}
        self._lock = Lock()

    def _feed_decimals(self, feed: str) -> int:
        key = feed.lower()
        with self._lock:
            cached = self._decimals.get(key)
        if cached is not None:
            return cached
        value = int(self._contract(feed, AGGREGATOR_ABI).functions.decimals().call())
        with self._lock:
            self._decimals[key] = value
        return value

    def latest_round(self, *, feed: str) -> FeedRound:
        _, answer, _, updated_at, _ = self._contract(feed, AGGREGATOR_ABI).functions.latestRoundData().call()
        feed_round = FeedRound(
            answer=int(answer),
            updated_at=int(updated_at),
            decimals=self._feed_decimals(feed),
        )
        logger.debug(
            "onchain_feed: latest_round feed=%s answer=%s updated_at=%s",
            feed,
            feed_round.answer,
            feed_round.updated_at,
        )
        return feed_round


class Web3FeedRegistryClient(_ContractReader):
    def __init__(self, w3: Web3, *, registry_address: str):
        super().__init__(w3)
        self._registry_address = registry_address

    def lookup(self, *, base: str, quote: str) -> FeedLookup:
        registry = self._contract(self._registry_address, FEED_REGISTRY_ABI)
        try:
            feed = registry.functions.getFeed(
                Web3.to_checksum_address(base),
                Web3.to_checksum_address(quote),
            ).call()
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            logger.debug("onchain_registry: feed_not_found base=%s quote=%s detail=%s", base, quote, exc)
            return FeedLookup.not_found()
        if not feed or feed.lower() == ZERO_ADDRESS:
            return FeedLookup.not_found()
        return FeedLookup.found(feed)


class Web3SequencerUptimeClient(_ContractReader):
    def __init__(self, w3: Web3, *, uptime_feed_address: str):
        super().__init__(w3)
        self._uptime_feed_address = uptime_feed_address

    def latest_status(self) -> SequencerStatus:
        _, answer, started_at, _, _ = (
            self._contract(self._uptime_feed_address, AGGREGATOR_ABI).functions.latestRoundData().call()
        )
        # answer: 0 = up, 1 = down
        return SequencerStatus(is_down=int(answer) != 0, status_since=int(started_at))


class Web3TokenDecimalsClient(_ContractReader):
    def get_decimals(self, *, token_address: str) -> int:
        return int(self._contract(token_address, ERC20_ABI).functions.decimals().call())


class Web3ShareTokenClient(_ContractReader):
    def get_pool(self, *, share_token: str) -> str:
        return self._contract(share_token, SHARE_TOKEN_ABI).functions.pool().call()

    def get_tick_range(self, *, share_token: str) -> tuple[int, int]:
        token = self._contract(share_token, SHARE_TOKEN_ABI)
        return int(token.functions.tickLower().call()), int(token.functions.tickUpper().call())

    def get_position_owner(self, *, share_token: str) -> str:
        # The pool position is minted by the hub, not by the share token.
        return self._contract(share_token, SHARE_TOKEN_ABI).functions.hub().call()

    def get_total_supply(self, *, share_token: str) -> int:
        return int(self._contract(share_token, SHARE_TOKEN_ABI).functions.totalSupply().call())


class BlockTimestampClock:
    def __init__(self, w3: Web3):
        self._w3 = w3

    def now(self) -> int:
        return int(self._w3.eth.get_block("latest")["timestamp"])
