"""
Per-session trading preferences.

Settings are replaced as a whole (``with_preset``, ``with_values``) so a preset
never lands half-applied.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel

from enums.chain import Chain
from enums.preset import Preset
from utils.config import get_config

_PRESET_FIELDS = ("slippage", "take_profit_percent", "stop_loss_percent")


def preset_values(preset: Preset, config: Dict[str, Any] | None = None) -> Dict[str, float]:
    """Slippage / TP / SL tuple of a named preset. Empty for ``custom``."""
    if preset is Preset.CUSTOM:
        return {}
    table = (config or get_config())["presets"][preset.value]
    return {field: float(table[field]) for field in _PRESET_FIELDS}


class TradingSettings(BaseModel):
    default_chain: Chain = Chain.SOLANA
    buy_amount: Decimal = Decimal("0.1")
    slippage: float = 10.0
    take_profit_percent: float = 100.0
    stop_loss_percent: float = -40.0
    auto_trade: bool = False
    preset: Preset = Preset.CUSTOM
    simulation_mode: bool = False
    bundler_mode: bool = False
    ignore_safety: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any] | None = None) -> "TradingSettings":
        trading = (config or get_config())["trading"]
        return cls(
            default_chain=trading["default_chain"],
            buy_amount=Decimal(str(trading["buy_amount"])),
            slippage=trading["slippage"],
            take_profit_percent=trading["take_profit_percent"],
            stop_loss_percent=trading["stop_loss_percent"],
            auto_trade=trading["auto_trade"],
        )

    def with_preset(self, preset: Preset, config: Dict[str, Any] | None = None) -> "TradingSettings":
        update: Dict[str, Any] = {"preset": preset}
        update.update(preset_values(preset, config))
        return self.model_copy(update=update)

    def with_values(self, **values: Any) -> "TradingSettings":
        """Copy with fields overwritten; touching a preset field drops to ``custom``."""
        update = dict(values)
        if any(field in update for field in _PRESET_FIELDS):
            update.setdefault("preset", Preset.CUSTOM)
        return self.model_validate({**self.model_dump(), **update})
