from __future__ import annotations

from typing import Protocol


class PoolStatePort(Protocol):
    def get_tokens(self, *, pool_address: str) -> tuple[str, str]:
        ...

    def get_position_liquidity(
        self,
        *,
        pool_address: str,
        owner: str,
        tick_lower: int,
        tick_upper: int,
    ) -> int:
        ...

    def get_twap_tick(self, *, pool_address: str, window_seconds: int) -> int:
        ...
