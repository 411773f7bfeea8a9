"""
Structured intents produced by the intent parser.

Every intent keeps the raw text so input states can consume it verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Union

from enums.trade_side import TradeSide


@dataclass(frozen=True)
class CommandIntent:
    name: str
    args: List[str] = field(default_factory=list)
    raw: str = ""


@dataclass(frozen=True)
class TradeIntent:
    side: TradeSide
    token: Optional[str] = None
    amount: Optional[Decimal] = None
    raw: str = ""


@dataclass(frozen=True)
class TokenInfoIntent:
    token: str
    raw: str = ""


@dataclass(frozen=True)
class AmountIntent:
    amount: Decimal
    raw: str = ""


@dataclass(frozen=True)
class TextIntent:
    raw: str = ""


@dataclass(frozen=True)
class CallbackIntent:
    action: str
    args: List[str] = field(default_factory=list)
    raw: str = ""


Intent = Union[CommandIntent, TradeIntent, TokenInfoIntent, AmountIntent, TextIntent, CallbackIntent]
