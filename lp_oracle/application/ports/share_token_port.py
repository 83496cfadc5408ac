from __future__ import annotations

from typing import Protocol


class ShareTokenPort(Protocol):
    def get_pool(self, *, share_token: str) -> str:
        ...

    def get_tick_range(self, *, share_token: str) -> tuple[int, int]:
        ...

    def get_position_owner(self, *, share_token: str) -> str:
        ...

    def get_total_supply(self, *, share_token: str) -> int:
        ...
