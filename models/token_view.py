"""
Aggregated, never persisted view of one token for one user.

Each optional part is filled only when its lookup succeeded; ``errors`` keeps
the classified failure of the parts that did not.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from enums.chain import Chain
from models.position import PositionStatus
from schemas.api_schema import ClassifiedError


class PriceInfo(BaseModel):
    price_usd: float = 0.0
    price_change_24h: float = 0.0
    volume_24h: float = 0.0
    liquidity: float = 0.0

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "PriceInfo":
        # /api/price wraps the quote in {"success": .., "price": {...}}
        return cls.model_validate(raw.get("price") or raw)


class SecurityInfo(BaseModel):
    is_safe: bool = False
    rug_score: int = Field(default=0, ge=0, le=100)
    honeypot: bool = False
    holder_count: int = 0
    liquidity_usd: float = 0.0
    warnings: List[str] = Field(default_factory=list)


class BalanceInfo(BaseModel):
    native_balance: Decimal = Decimal("0")
    total_usd: float = 0.0


class TokenView(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    token: str
    chain: Chain
    price: Optional[PriceInfo] = None
    security: Optional[SecurityInfo] = None
    balance: Optional[BalanceInfo] = None
    position: Optional[PositionStatus] = None
    errors: Dict[str, ClassifiedError] = Field(default_factory=dict)
