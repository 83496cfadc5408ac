from __future__ import annotations

from lp_oracle.domain.entities.feed import FeedLookup


def resolve_feed(lookup: FeedLookup, supplied_feed: str | None = None) -> str | None:
    """Pick the feed to trust for one token.

    A registry hit wins over a caller-supplied handle; a miss or an absent
    registry falls back to the supplied handle, which may itself be None.
    """
    if lookup.is_found:
        return lookup.feed
    return supplied_feed
