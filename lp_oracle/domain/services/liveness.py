from __future__ import annotations

from lp_oracle.domain.entities.feed import SequencerStatus
from lp_oracle.domain.exceptions import GracePeriodNotOverError, SequencerDownError


GRACE_PERIOD_SECONDS = 3600


def ensure_sequencer_up(
    status: SequencerStatus | None,
    *,
    now: int,
    grace_period_seconds: int = GRACE_PERIOD_SECONDS,
) -> None:
    """Reject feed reads while the sequencer is down or just came back.

    `status` is None on chains without a sequencer uptime feed.
    """
    if status is None:
        return
    if status.is_down:
        raise SequencerDownError("Sequencer is down.")
    elapsed = now - status.status_since
    if elapsed <= grace_period_seconds:
        raise GracePeriodNotOverError(
            f"Sequencer back up for {elapsed}s, grace period is {grace_period_seconds}s."
        )
