from __future__ import annotations

from typing import Protocol

from lp_oracle.domain.entities.feed import SequencerStatus


class SequencerUptimePort(Protocol):
    def latest_status(self) -> SequencerStatus:
        ...
