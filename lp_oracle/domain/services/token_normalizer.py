from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable


DENOMINATION_ETH = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
DENOMINATION_BTC = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
DENOMINATION_USD = "0x0000000000000000000000000000000000000348"


def normalize_address(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class TokenNormalizerConfig:
    decimal_bases: Mapping[str, int] = field(default_factory=dict)
    denominations: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mappings(
        cls,
        *,
        decimal_bases: Mapping[str, int] | None = None,
        denominations: Mapping[str, str] | None = None,
    ) -> "TokenNormalizerConfig":
        bases = {normalize_address(k): int(v) for k, v in (decimal_bases or {}).items()}
        for token, base in bases.items():
            if base <= 0:
                raise ValueError(f"Decimal base for {token} must be positive.")
        return cls(
            decimal_bases=bases,
            denominations={
                normalize_address(k): normalize_address(v) for k, v in (denominations or {}).items()
            },
        )


class TokenNormalizer:
    """Maps tokens to the feed denomination and to their fixed-point base.

    Bases for configured tokens are answered locally; any other token is
    asked for its `decimals()` through `decimals_lookup`, whose errors
    propagate unchanged.
    """

    def __init__(self, *, config: TokenNormalizerConfig, decimals_lookup: Callable[[str], int]):
        self._config = config
        self._decimals_lookup = decimals_lookup

    def denomination(self, token: str) -> str:
        key = normalize_address(token)
        return self._config.denominations.get(key, key)

    def decimal_base(self, token: str) -> int:
        key = normalize_address(token)
        base = self._config.decimal_bases.get(key)
        if base is not None:
            return base
        return 10 ** int(self._decimals_lookup(token))
