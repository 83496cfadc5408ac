from __future__ import annotations

from typing import Protocol

from lp_oracle.domain.entities.feed import FeedLookup, FeedRound


class PriceFeedPort(Protocol):
    def latest_round(self, *, feed: str) -> FeedRound:
        ...


class FeedRegistryPort(Protocol):
    def lookup(self, *, base: str, quote: str) -> FeedLookup:
        ...
