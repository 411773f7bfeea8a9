from __future__ import annotations

from enum import Enum


class Preset(str, Enum):
    """Named slippage / TP / SL bundles."""

    CUSTOM = "custom"
    SAFE = "safe"
    DEGEN = "degen"
    SNIPE = "snipe"
