from __future__ import annotations

from typing import Protocol


class TokenDecimalsPort(Protocol):
    def get_decimals(self, *, token_address: str) -> int:
        ...
