"""
Blockchains a wallet or trade can target.

The trading engine addresses chains by these lowercase identifiers in every
path and request body.
"""

from __future__ import annotations

from enum import Enum


class Chain(str, Enum):
    """Supported chains."""

    SOLANA = "solana"
    ETH = "eth"
    BSC = "bsc"

    @property
    def native_symbol(self) -> str:
        return _NATIVE_SYMBOLS[self]

    @property
    def label(self) -> str:
        return self.value.upper()


_NATIVE_SYMBOLS = {
    Chain.SOLANA: "SOL",
    Chain.ETH: "ETH",
    Chain.BSC: "BNB",
}
