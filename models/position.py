"""
Read-only projection of an open position as reported by the trading engine.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class Position(BaseModel):
    position_id: Optional[str] = None
    user_id: Optional[int] = None
    chain: str
    token: str
    token_address: Optional[str] = None
    amount: Decimal
    entry_price: float = 0.0
    current_price: float = 0.0
    take_profit_percent: float = 0.0
    stop_loss_percent: float = 0.0
    timestamp: int = 0

    @property
    def sell_id(self) -> str:
        # older engine builds key positions by token and omit position_id
        return self.position_id or self.token

    def matches(self, token: str) -> bool:
        return token in (self.token, self.token_address, self.position_id)


class PositionStatus(BaseModel):
    position: Position
    pnl_percent: float = 0.0
    pnl_usd: float = 0.0
    should_close: bool = False
    reason: Optional[str] = None


def find_position(positions: list[PositionStatus], token: str) -> Optional[PositionStatus]:
    """First position whose token, token address or id equals ``token``."""
    for status in positions:
        if status.position.matches(token):
            return status
    return None
