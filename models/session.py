"""
Ephemeral per-user chat session.

The conversation state is a tagged union: only ``AmountEntryState`` carries a
pending buy, so a pending buy outside the amount-entry step cannot be built.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from enums.awaiting_input import AwaitingInput
from enums.chain import Chain
from models.settings import TradingSettings

# force-buy offers kept per session; older ones expire first
MAX_REJECTED_BUYS = 5


class PendingBuy(BaseModel):
    token: str
    chain: Chain


class RejectedBuy(BaseModel):
    """A buy the engine refused on safety grounds, waiting for a force-buy."""

    token: str
    chain: Chain
    amount: Decimal


class InputState(BaseModel):
    awaiting: Literal[
        AwaitingInput.IDLE,
        AwaitingInput.BUY_TOKEN,
        AwaitingInput.TOKEN_CHECK,
        AwaitingInput.IMPORT_WALLET,
        AwaitingInput.IMPORT_DATA,
        AwaitingInput.BUNDLER_ADD,
        AwaitingInput.WHALE_ALERT,
        AwaitingInput.GRID_CREATE,
        AwaitingInput.AI_CHAT,
    ] = AwaitingInput.IDLE


class AmountEntryState(BaseModel):
    awaiting: Literal[AwaitingInput.CUSTOM_AMOUNT] = AwaitingInput.CUSTOM_AMOUNT
    pending: PendingBuy


SessionState = Union[InputState, AmountEntryState]


class UserSession(BaseModel):
    user_id: int
    settings: TradingSettings = Field(default_factory=TradingSettings)
    state: SessionState = Field(default_factory=InputState, discriminator="awaiting")
    # keyboard re-rendering only, never used to execute
    selected_amount: Optional[str] = None
    selected_token: Optional[str] = None
    # keyed by the short id carried in the force-buy button; survives reset()
    rejected_buys: Dict[str, RejectedBuy] = Field(default_factory=dict)

    @property
    def awaiting(self) -> AwaitingInput:
        return self.state.awaiting

    @property
    def pending_buy(self) -> Optional[PendingBuy]:
        if isinstance(self.state, AmountEntryState):
            return self.state.pending
        return None

    def reset(self) -> None:
        self.state = InputState()

    def await_input(self, awaiting: AwaitingInput) -> None:
        if awaiting is AwaitingInput.CUSTOM_AMOUNT:
            raise ValueError("amount entry needs a pending buy, use begin_amount_entry")
        self.state = InputState(awaiting=awaiting)

    def begin_amount_entry(self, token: str, chain: Chain) -> PendingBuy:
        pending = PendingBuy(token=token, chain=chain)
        self.state = AmountEntryState(pending=pending)
        return pending

    def remember_rejection(self, token: str, chain: Chain, amount: Decimal) -> str:
        key = secrets.token_hex(4)
        self.rejected_buys[key] = RejectedBuy(token=token, chain=chain, amount=amount)
        while len(self.rejected_buys) > MAX_REJECTED_BUYS:
            del self.rejected_buys[next(iter(self.rejected_buys))]
        return key
