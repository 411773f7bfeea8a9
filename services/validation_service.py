"""
Trade validation and sell-amount disambiguation.

Pure functions: no I/O, no session access. Callers pass in the values they
just fetched from the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from enums.chain import Chain
from services.intent_parser import normalize_chain, parse_amount, to_decimal
from utils.errors import TradeValidationError, UserInputError

_HUNDRED = Decimal("100")
_AMOUNT_STEP = Decimal("0.000001")

MIN_GRIDS = 2
MAX_GRIDS = 50
MIN_PRIORITY = 1
MAX_PRIORITY = 10


def resolve_sell_percent(amount: Decimal, held: Decimal) -> Decimal:
    """Percent of a position to sell for a user-typed ``amount``.

    ``amount <= held`` is read as a token quantity, otherwise ``amount <= 100``
    is read as a percentage. Holding exactly 100 tokens makes "50" mean 50
    tokens, which is also 50 %.
    """
    if amount < 0:
        raise UserInputError("Amount must not be negative")
    if held > 0 and amount <= held:
        percent = amount / held * _HUNDRED
    elif amount <= _HUNDRED:
        percent = amount
    else:
        raise TradeValidationError(
            f"Insufficient balance: you hold {held.normalize()} tokens and {amount.normalize()} is not a valid percentage"
        )
    return min(max(percent, Decimal("0")), _HUNDRED)


def validate_buy_amount(amount: Decimal, balance: Decimal, symbol: str = "") -> Decimal:
    if amount <= 0:
        raise UserInputError("Amount must be greater than 0")
    if amount > balance:
        unit = f" {symbol}" if symbol else ""
        raise TradeValidationError(
            f"Insufficient balance: {amount.normalize()}{unit} requested, {balance.normalize()}{unit} available"
        )
    return amount


def preset_amounts(balance: Decimal, percents: Iterable[int] = (10, 25, 50, 75, 100)) -> List[Tuple[int, Decimal]]:
    """``(percent, amount)`` pairs for the amount keyboard.

    Amounts are rounded down so each one stays affordable; fractions that
    round to zero are left out.
    """
    if balance <= 0:
        return []
    amounts = []
    for pct in percents:
        value = (balance * Decimal(pct) / _HUNDRED).quantize(_AMOUNT_STEP, rounding=ROUND_DOWN)
        if value > 0:
            amounts.append((pct, value.normalize()))
    return amounts


def validate_percent(value: str, *, negative: bool = False) -> float:
    text = (value or "").strip()
    number = to_decimal(text.lstrip("-") if negative else text)
    if number is None:
        raise UserInputError(f"'{value}' is not a percentage")
    if negative:
        # stop loss is stored negative whichever sign was typed
        if number <= 0 or number > _HUNDRED:
            raise UserInputError("Stop loss must be between 0 and 100 percent")
        return -float(number)
    if number <= 0 or number > Decimal("10000"):
        raise UserInputError("Percentage must be between 0 and 10000")
    return float(number)


def validate_slippage(value: str) -> float:
    number = to_decimal(value)
    if number is None or number <= 0 or number > 50:
        raise UserInputError("Slippage must be a number between 0 and 50")
    return float(number)


@dataclass(frozen=True)
class GridArgs:
    token: str
    lower: Decimal
    upper: Decimal
    grids: int
    investment: Decimal


def _number(value: str, name: str) -> Decimal:
    number = to_decimal(value)
    if number is None:
        raise UserInputError(f"{name} must be a number, got '{value}'")
    return number


def validate_grid_args(args: Sequence[str]) -> GridArgs:
    if len(args) != 5:
        raise UserInputError("Usage: <token> <lower> <upper> <grids> <investment>")
    token = args[0]
    lower = _number(args[1], "Lower price")
    upper = _number(args[2], "Upper price")
    grids = _number(args[3], "Grid count")
    investment = _number(args[4], "Investment")

    if lower <= 0:
        raise TradeValidationError("Lower price must be greater than 0")
    if lower >= upper:
        raise TradeValidationError("Lower price must be below upper price")
    if grids != grids.to_integral_value() or not MIN_GRIDS <= grids <= MAX_GRIDS:
        raise TradeValidationError(f"Grid count must be a whole number from {MIN_GRIDS} to {MAX_GRIDS}")
    if investment <= 0:
        raise TradeValidationError("Investment must be greater than 0")
    return GridArgs(token=token, lower=lower, upper=upper, grids=int(grids), investment=investment)


@dataclass(frozen=True)
class BundlerArgs:
    tx_type: str
    token: str
    amount: Decimal
    priority: Optional[int] = None


def validate_bundler_args(args: Sequence[str]) -> BundlerArgs:
    if len(args) not in (3, 4):
        raise UserInputError("Usage: <buy|sell|swap> <token> <amount> [priority 1-10]")
    verb = args[0].lower()
    if verb not in ("buy", "sell", "swap"):
        raise UserInputError(f"Unknown transaction type '{args[0]}'. Use buy, sell or swap")
    amount = parse_amount(args[2])

    priority = None
    if len(args) == 4:
        value = to_decimal(args[3])
        if value is None or value != value.to_integral_value() or not MIN_PRIORITY <= value <= MAX_PRIORITY:
            raise TradeValidationError(f"Priority must be a whole number from {MIN_PRIORITY} to {MAX_PRIORITY}")
        priority = int(value)
    return BundlerArgs(tx_type=verb, token=args[1], amount=amount, priority=priority)


@dataclass(frozen=True)
class WhaleAlertArgs:
    min_usd: Decimal
    chains: List[Chain]


def validate_whale_alert_args(args: Sequence[str]) -> WhaleAlertArgs:
    if not args:
        raise UserInputError("Usage: <min_usd> [chain ...]")
    min_usd = _number(args[0].replace(",", "").lstrip("$"), "Minimum size")
    if min_usd <= 0:
        raise TradeValidationError("Minimum size must be greater than 0")
    chains: List[Chain] = []
    for alias in args[1:]:
        chain = normalize_chain(alias)
        if chain not in chains:
            chains.append(chain)
    return WhaleAlertArgs(min_usd=min_usd, chains=chains)
