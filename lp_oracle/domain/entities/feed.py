from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


FeedLookupStatus = Literal["found", "not_found", "lookup_unsupported"]


@dataclass(frozen=True)
class FeedLookup:
    status: FeedLookupStatus
    feed: str | None = None

    @classmethod
    def found(cls, feed: str) -> "FeedLookup":
        return cls(status="found", feed=feed)

    @classmethod
    def not_found(cls) -> "FeedLookup":
        return cls(status="not_found")

    @classmethod
    def unsupported(cls) -> "FeedLookup":
        return cls(status="lookup_unsupported")

    @property
    def is_found(self) -> bool:
        return self.status == "found" and self.feed is not None


@dataclass(frozen=True)
class FeedRound:
    answer: int
    updated_at: int
    decimals: int = 8


@dataclass(frozen=True)
class SequencerStatus:
    is_down: bool
    status_since: int
