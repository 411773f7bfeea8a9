"""
What the bot expects from a user's next free-text message.
"""

from __future__ import annotations

from enum import Enum


class AwaitingInput(str, Enum):
    """Conversation states of a chat session."""

    IDLE = "idle"
    BUY_TOKEN = "buy_token"
    CUSTOM_AMOUNT = "custom_amount"
    TOKEN_CHECK = "token_check"
    IMPORT_WALLET = "import_wallet"
    IMPORT_DATA = "import_data"
    BUNDLER_ADD = "bundler_add"
    WHALE_ALERT = "whale_alert"
    GRID_CREATE = "grid_create"
    AI_CHAT = "ai_chat"
