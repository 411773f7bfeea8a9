"""
Configuration loading for the trading bot.

Secrets and endpoints come from the environment (``.env`` is loaded by
``main.py``). Trading defaults, preset tuples and quick-buy amounts live in
``config.yaml`` at the project root. A missing file, or a missing key, falls
back to the built-in values below.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

import yaml  # type: ignore

ENGINE_API_URL = os.getenv("ENGINE_API_URL", "http://localhost:3000")
ELIZA_API_URL = os.getenv("ELIZA_API_URL", "http://localhost:3001")
BACKEND_TIMEOUT_SEC = float(os.getenv("BACKEND_TIMEOUT_SEC", "30"))

_DEFAULTS: Dict[str, Any] = {
    "trading": {
        "default_chain": "solana",
        "buy_amount": "0.1",
        "slippage": 10,
        "take_profit_percent": 100,
        "stop_loss_percent": -40,
        "auto_trade": False,
    },
    "presets": {
        "safe": {"slippage": 1, "take_profit_percent": 20, "stop_loss_percent": -10},
        "degen": {"slippage": 25, "take_profit_percent": 300, "stop_loss_percent": -50},
        "snipe": {"slippage": 15, "take_profit_percent": 100, "stop_loss_percent": -25},
    },
    "quick_buy_amounts": ["0.1", "0.5", "1", "3", "5"],
    "balance_percents": [10, 25, 50, 75, 100],
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load application configuration from ``config.yaml``.

    :param path: Explicit file path. Defaults to ``CONFIG_PATH`` or the
        ``config.yaml`` next to ``main.py``.
    :returns: The built-in defaults overlaid with whatever the file defines.
    """
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    config_path = path or os.getenv("CONFIG_PATH") or os.path.join(base_dir, "config.yaml")
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            return _merge(_DEFAULTS, yaml.safe_load(f) or {})
    return _merge(_DEFAULTS, {})


@lru_cache
def get_config() -> Dict[str, Any]:
    """Process-wide cached configuration."""
    return load_config()
