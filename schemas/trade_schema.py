"""
Request bodies sent to the trading engine.

Field names are the engine's snake_case names; ``to_payload`` drops unset
optional fields and turns decimals into JSON numbers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


class _Payload:
    def to_payload(self) -> Dict[str, Any]:
        return {k: _jsonable(v) for k, v in asdict(self).items() if v is not None}


@dataclass
class BuyRequest(_Payload):
    """Body of ``POST /api/buy``. The engine reads ``amount`` as a string."""

    user_id: int
    chain: str
    token: str
    amount: Decimal
    slippage: float
    take_profit: float
    stop_loss: float
    is_simulation: bool = False
    bundler_enabled: bool = False
    ignore_safety: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["amount"] = str(self.amount)
        return payload


@dataclass
class SellRequest(_Payload):
    """Body of ``POST /api/sell``. ``percent`` is always in ``[0, 100]``."""

    user_id: int
    position_id: str
    percent: float


@dataclass
class BundleAddRequest(_Payload):
    user_id: int
    chain: str
    tx_type: str
    token: str
    amount: Decimal
    slippage: float
    priority: Optional[int] = None


@dataclass
class GridCreateRequest(_Payload):
    user_id: int
    chain: str
    token: str
    token_symbol: str
    lower_price: Decimal
    upper_price: Decimal
    grid_count: int
    investment_amount: Decimal


@dataclass
class WhaleAlertRequest(_Payload):
    user_id: int
    min_size_usd: Decimal
    chains: Optional[List[str]] = None
    tokens: Optional[List[str]] = None
    position_types: Optional[List[str]] = None
