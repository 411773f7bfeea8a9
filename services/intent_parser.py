"""
Turn chat text and button payloads into structured intents.

Input shapes, tried in order:

1. ``/command args...``: arity is checked against ``COMMANDS`` before
   anything else happens. ``/buy`` and ``/sell`` are lifted to ``TradeIntent``.
2. ``<token> <buy|sell|swap> <amount>`` free text. ``swap`` means buy.
3. A bare address-shaped string: show token info.
4. A bare positive number: an amount for the pending buy.

Anything else is plain text for whatever input state the session is in.
Address matching is a surface heuristic; badly formed but address-shaped
strings reach the engine and come back as engine errors.
"""

from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from enums.chain import Chain
from enums.trade_side import TradeSide
from models.intent import (
    AmountIntent,
    CallbackIntent,
    CommandIntent,
    Intent,
    TextIntent,
    TokenInfoIntent,
    TradeIntent,
)
from utils.errors import UserInputError

_SOLANA_ADDRESS = r"[1-9A-HJ-NP-Za-km-z]{32,44}"
_EVM_ADDRESS = r"0x[0-9a-fA-F]{40}"
TOKEN_RE = re.compile(rf"^(?:{_EVM_ADDRESS}|{_SOLANA_ADDRESS})$")
_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_TRADE_RE = re.compile(r"^(\S+)\s+(buy|sell|swap)\s+(\S+)$", re.IGNORECASE)
_COMMAND_RE = re.compile(r"^/([A-Za-z0-9_]+)(?:@\w+)?(?:\s+(.*))?$", re.DOTALL)

_CHAIN_ALIASES = {
    "sol": Chain.SOLANA,
    "solana": Chain.SOLANA,
    "eth": Chain.ETH,
    "ethereum": Chain.ETH,
    "bsc": Chain.BSC,
    "bnb": Chain.BSC,
    "binance": Chain.BSC,
}


@dataclass(frozen=True)
class CommandSpec:
    min_args: int
    max_args: Optional[int]
    usage: str
    # either no arguments (interactive prompt) or the full argument list
    all_or_nothing: bool = False

    def accepts(self, count: int) -> bool:
        if self.all_or_nothing and count == 0:
            return True
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


COMMANDS: Dict[str, CommandSpec] = {
    "start": CommandSpec(0, 1, "/start"),
    "help": CommandSpec(0, 0, "/help"),
    "menu": CommandSpec(0, 0, "/menu"),
    "cancel": CommandSpec(0, 0, "/cancel"),
    "buy": CommandSpec(0, 2, "/buy [token] [amount]"),
    "sell": CommandSpec(2, 2, "/sell <token|position_id> <amount|percent>"),
    "positions": CommandSpec(0, 0, "/positions"),
    "pnl": CommandSpec(0, 0, "/pnl"),
    "portfolio": CommandSpec(0, 0, "/portfolio"),
    "history": CommandSpec(0, 0, "/history"),
    "alerts": CommandSpec(0, 0, "/alerts"),
    "price": CommandSpec(2, 2, "/price <chain> <token>"),
    "gas": CommandSpec(0, 1, "/gas [chain]"),
    "check": CommandSpec(0, 1, "/check [token]"),
    "wallet": CommandSpec(0, 0, "/wallet"),
    "generate_wallet": CommandSpec(0, 1, "/generate_wallet [solana|eth|bsc]"),
    "import_wallet": CommandSpec(2, 2, "/import_wallet <chain> <private_key>", all_or_nothing=True),
    "import_data": CommandSpec(0, 0, "/import_data"),
    "settings": CommandSpec(0, 0, "/settings"),
    "chain": CommandSpec(1, 1, "/chain <solana|eth|bsc>"),
    "amount": CommandSpec(1, 1, "/amount <native amount>"),
    "slippage": CommandSpec(1, 1, "/slippage <percent>"),
    "tp": CommandSpec(1, 1, "/tp <percent>"),
    "sl": CommandSpec(1, 1, "/sl <negative percent>"),
    "preset": CommandSpec(1, 1, "/preset <safe|degen|snipe|custom>"),
    "toggle": CommandSpec(1, 1, "/toggle <simulation|bundler|safety|autotrade>"),
    "bundler": CommandSpec(0, 0, "/bundler"),
    "whales": CommandSpec(0, 0, "/whales"),
    "whale_alert": CommandSpec(1, None, "/whale_alert <min_usd> [chain ...]", all_or_nothing=True),
    "leaderboard": CommandSpec(0, 1, "/leaderboard [daily|weekly|monthly|alltime]"),
    "grid": CommandSpec(5, 5, "/grid <token> <lower> <upper> <grids> <investment>", all_or_nothing=True),
    "ai": CommandSpec(0, None, "/ai [question]"),
}


def is_token(text: str) -> bool:
    return bool(TOKEN_RE.match(text.strip()))


def to_decimal(text: str) -> Optional[Decimal]:
    """Decimal value of a plain non-negative number, ``None`` for anything else."""
    text = (text or "").strip()
    if not _NUMBER_RE.match(text):
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_amount(text: str) -> Decimal:
    """Positive amount or ``UserInputError``."""
    value = to_decimal(text)
    if value is None:
        raise UserInputError(f"'{text}' is not a number. Send an amount like 0.5")
    if value <= 0:
        raise UserInputError("Amount must be greater than 0")
    return value


def normalize_chain(alias: str) -> Chain:
    chain = _CHAIN_ALIASES.get((alias or "").strip().lower())
    if chain is None:
        raise UserInputError(f"Unknown chain '{alias}'. Use solana, eth or bsc")
    return chain


def _lift_trade(name: str, args: List[str], raw: str) -> TradeIntent:
    side = TradeSide.SELL if name == "sell" else TradeSide.BUY
    token = args[0] if args else None
    amount = parse_amount(args[1]) if len(args) > 1 else None
    return TradeIntent(side=side, token=token, amount=amount, raw=raw)


def parse_command(text: str) -> Intent:
    match = _COMMAND_RE.match(text.strip())
    if not match:
        raise UserInputError("Unrecognized command. Use /help")
    name = match.group(1).lower()
    args = (match.group(2) or "").split()

    spec = COMMANDS.get(name)
    if spec is None:
        raise UserInputError(f"Unknown command /{name}. Use /help")
    if not spec.accepts(len(args)):
        raise UserInputError(f"Usage: {spec.usage}")

    if name in ("buy", "sell"):
        return _lift_trade(name, args, text)
    return CommandIntent(name=name, args=args, raw=text)


def parse_message(text: str) -> Intent:
    raw = text or ""
    stripped = raw.strip()
    if not stripped:
        return TextIntent(raw=raw)
    if stripped.startswith("/"):
        return parse_command(stripped)

    trade = _TRADE_RE.match(stripped)
    if trade:
        token, verb, amount = trade.groups()
        side = TradeSide.SELL if verb.lower() == "sell" else TradeSide.BUY
        return TradeIntent(side=side, token=token, amount=parse_amount(amount), raw=raw)

    if is_token(stripped):
        return TokenInfoIntent(token=stripped, raw=raw)

    amount = to_decimal(stripped)
    if amount is not None and amount > 0:
        return AmountIntent(amount=amount, raw=raw)
    return TextIntent(raw=raw)


def parse_callback(data: str) -> CallbackIntent:
    parts = (data or "").split(":")
    return CallbackIntent(action=parts[0], args=parts[1:], raw=data or "")


def parse_import_payload(text: str) -> Tuple[str, List[Dict[str, Any]]]:
    """Read a JSON array or a CSV block with a header row.

    :returns: ``(data_type, items)`` where ``data_type`` is ``wallets`` or
        ``positions`` depending on the first item's fields.
    """
    text = (text or "").strip()
    try:
        items = json.loads(text)
    except ValueError:
        lines = [line for line in text.splitlines() if line.strip()]
        if not lines or "chain" not in lines[0]:
            raise UserInputError("Invalid data format. Send a JSON array or CSV with a header row")
        reader = csv.DictReader(io.StringIO("\n".join(lines)), skipinitialspace=True)
        items = [{k.strip(): (v or "").strip() for k, v in row.items() if k} for row in reader]

    if not isinstance(items, list) or not items or not all(isinstance(i, dict) for i in items):
        raise UserInputError("Import data must be a non-empty list of records")

    first = items[0]
    if first.get("private_key"):
        return "wallets", items
    if first.get("token"):
        return "positions", items
    return "wallets", items
