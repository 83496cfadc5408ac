from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class ValuationInputError(DomainError):
    """Invalid parameters for a valuation request."""


class ValuationError(DomainError):
    """Valuation unavailable right now."""


class SequencerDownError(ValuationError):
    """Sequencer reports downtime."""


class GracePeriodNotOverError(ValuationError):
    """Sequencer is back up but the grace period has not elapsed."""


class ChainlinkPriceTooOldError(ValuationError):
    """Feed's last update is older than the allowed age."""

    def __init__(self, message: str, *, feed: str, age_seconds: int, max_age_seconds: int):
        super().__init__(message)
        self.feed = feed
        self.age_seconds = age_seconds
        self.max_age_seconds = max_age_seconds


class NoChainlinkPriceAvailableError(ValuationError):
    """No usable feed price for the position's tokens."""
