"""
Message and keyboard rendering.

Everything here returns ``Reply`` values in Telegram HTML. Values coming from
the engine or the user are escaped before they are placed in markup.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from enums.chain import Chain
from enums.error_kind import ErrorKind
from enums.preset import Preset
from models.position import PositionStatus
from models.reply import Button, Reply
from models.session import PendingBuy
from models.settings import TradingSettings
from models.token_view import TokenView
from schemas.api_schema import ClassifiedError


def esc(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=False)


def fmt(num: Any, decimals: int = 2) -> str:
    try:
        return f"{float(num):,.{decimals}f}"
    except (TypeError, ValueError):
        return "?"


def fmt_pnl(pct: float) -> str:
    emoji = "🟢" if pct >= 0 else "🔴"
    sign = "+" if pct >= 0 else ""
    return f"{emoji} {sign}{fmt(pct)}%"


def short(address: str, head: int = 6, tail: int = 4) -> str:
    if len(address) <= head + tail + 3:
        return address
    return f"{address[:head]}...{address[-tail:]}"


def chain_label(value: str) -> str:
    if value in Chain._value2member_map_:
        return Chain(value).label
    return esc(str(value).upper())


def amount_str(amount: Decimal) -> str:
    return format(amount.normalize(), "f")


_BACK = [Button("← Menu", "menu")]


# menus

def main_menu(settings: TradingSettings) -> Reply:
    chain = settings.default_chain
    text = (
        "<b>🤖 Multi-chain Trading Bot</b>\n\n"
        f"<b>Chain:</b> {chain.label}\n"
        f"<b>Buy amount:</b> {amount_str(settings.buy_amount)} {chain.native_symbol}\n"
        f"<b>Preset:</b> {settings.preset.value}\n\n"
        "Paste a token address to see it, or pick an action below."
    )
    buttons = [
        [Button("🟢 Buy", "buy"), Button("📊 Positions", "positions")],
        [Button("💼 Wallet", "wallet"), Button("📈 Portfolio", "portfolio")],
        [Button("🛡 Check token", "check"), Button("⚙️ Settings", "settings")],
        [Button("📦 Bundler", "bundler"), Button("🐋 Whale alert", "whale_alert")],
        [Button("📐 Grid", "grid"), Button("🤖 AI", "ai")],
    ]
    return Reply(text, buttons)


HELP_TEXT = (
    "<b>📖 Commands</b>\n\n"
    "<b>Trading</b>\n"
    "/buy [token] [amount] - buy a token\n"
    "/sell &lt;token&gt; &lt;amount|percent&gt; - sell from a position\n"
    "<code>&lt;token&gt; buy|sell|swap &lt;amount&gt;</code> - same as text\n"
    "/positions /pnl /portfolio /history /alerts\n\n"
    "<b>Market</b>\n"
    "/price &lt;chain&gt; &lt;token&gt; · /gas [chain] · /check [token]\n\n"
    "<b>Wallets</b>\n"
    "/wallet · /generate_wallet [chain] · /import_wallet · /import_data\n\n"
    "<b>Settings</b>\n"
    "/settings · /chain · /amount · /slippage · /tp · /sl · /preset · /toggle\n\n"
    "<b>Advanced</b>\n"
    "/bundler · /whales · /whale_alert · /leaderboard · /grid · /ai\n\n"
    "/cancel - drop whatever input the bot is waiting for"
)


def help_reply() -> Reply:
    return Reply(HELP_TEXT, [_BACK])


def prompt(text: str, cancel: bool = True) -> Reply:
    return Reply(text, [[Button("❌ Cancel", "cancel")]] if cancel else [])


def info(text: str) -> Reply:
    return Reply(text)


# failures

def error_reply(error: ClassifiedError, action: str = "Request", context: str = "") -> Reply:
    """Failure message; ``context`` is what the user needs to retry (token, amount)."""
    extra = f"\n\n{context}" if context else ""
    if error.kind is ErrorKind.INSUFFICIENT_BALANCE:
        return Reply(f"💸 <b>Insufficient balance</b>\n\n{error.message}{extra}")
    if error.kind.transient:
        return Reply(
            f"⏳ <b>{esc(action)} failed</b>\n\n{error.message}{extra}\n\n"
            "The engine is slow or unavailable. Try the same action again in a moment."
        )
    return Reply(f"❌ <b>{esc(action)} failed</b>\n\n{error.message}{extra}")


def user_error(message: str) -> Reply:
    return Reply(f"⚠️ {esc(message)}")


def security_rejection(error: ClassifiedError, chain: Chain, token: str, amount: Decimal, key: str) -> Reply:
    """Rejection detail plus a force-buy button; ``key`` names the trade kept in the session."""
    text = (
        "🚨 <b>Trade blocked by security check</b>\n\n"
        f"{error.message}\n\n"
        f"<b>Token:</b> <code>{esc(token)}</code>\n"
        f"<b>Amount:</b> {amount_str(amount)} {chain.native_symbol}\n\n"
        "Force only if you accept the risk."
    )
    buttons = [
        [Button("⚠️ Force buy", f"fb:{key}")],
        [Button("❌ Cancel", "cancel")],
    ]
    return Reply(text, buttons)


def no_wallet(chain: Chain) -> Reply:
    return Reply(
        f"🔑 You have no {chain.label} wallet yet.\n\nGenerate or import one first.",
        [[Button("🔐 Generate", f"gen:{chain.value}"), Button("📥 Import", "import_wallet")], _BACK],
    )


def no_position(token: str) -> Reply:
    return Reply(f"📭 No open position for <code>{esc(token)}</code>", [[Button("📊 Positions", "positions")]])


# token view and buy flow

def _security_lines(view: TokenView) -> List[str]:
    sec = view.security
    if sec is None:
        return ["🛡 Security check unavailable"]
    verdict = "✅ Safe" if sec.is_safe else "⚠️ Risky"
    lines = [f"🛡 {verdict} | Rug score {sec.rug_score}/100 | Holders {sec.holder_count}"]
    if sec.honeypot:
        lines.append("🍯 <b>Honeypot detected</b>")
    lines.extend(f"• {esc(w)}" for w in sec.warnings[:5])
    return lines


def _fitting(row: List[Button]) -> List[Button]:
    return [b for b in row if b.fits]


def _rows(buttons: List[Button], width: int = 3) -> List[List[Button]]:
    buttons = _fitting(buttons)
    return [buttons[i:i + width] for i in range(0, len(buttons), width)]


def token_view(view: TokenView, quick_amounts: Sequence[str], default_amount: Optional[Decimal] = None) -> Reply:
    symbol = view.chain.native_symbol
    lines = [f"<b>🪙 Token Info</b> ({view.chain.label})", f"<code>{esc(view.token)}</code>", ""]

    if view.price is not None:
        p = view.price
        change = "🟢" if p.price_change_24h >= 0 else "🔴"
        lines.append(f"<b>Price:</b> ${fmt(p.price_usd, 8)} {change} {fmt(p.price_change_24h)}%")
        lines.append(f"<b>Liquidity:</b> ${fmt(p.liquidity)} | <b>Vol 24h:</b> ${fmt(p.volume_24h)}")
    else:
        lines.append("<b>Price:</b> unavailable")

    lines.extend(_security_lines(view))

    if view.balance is not None:
        lines.append(f"<b>Balance:</b> {amount_str(view.balance.native_balance)} {symbol} (${fmt(view.balance.total_usd)})")
    else:
        lines.append("<b>Balance:</b> unavailable")

    if view.position is not None:
        pos = view.position
        lines.append("")
        lines.append("🟢 <b>Active position</b>")
        lines.append(f"Entry ${fmt(pos.position.entry_price, 6)} | Now ${fmt(pos.position.current_price, 6)}")
        lines.append(f"PnL {fmt_pnl(pos.pnl_percent)} (${fmt(pos.pnl_usd)})")

    buttons: List[List[Button]] = [_fitting([Button("← Menu", "menu"), Button("🔄 Refresh", f"refresh:{view.token}")])]
    quick: List[Button] = []
    default = amount_str(default_amount) if default_amount and default_amount > 0 else None
    if default is not None:
        quick.append(Button(f"⭐ {default} {symbol}", f"qb:{view.token}:{default}"))
    quick.extend(Button(f"{a} {symbol}", f"qb:{view.token}:{a}") for a in quick_amounts if a != default)
    buttons.extend(_rows(quick))
    buttons.append(_fitting([Button("✏️ Custom amount", f"buy:{view.token}"), Button("🤖 AI analysis", f"ai:{view.token}")]))
    if view.position is not None:
        sell_id = view.position.position.sell_id
        buttons.append(_fitting([Button(f"Sell {pct}%", f"sell:{sell_id}:{pct}") for pct in (25, 50, 100)]))
    return Reply("\n".join(lines), [row for row in buttons if row])


def amount_keyboard(
    view: TokenView, amounts: Sequence[Tuple[int, Decimal]], default_amount: Optional[Decimal] = None
) -> Reply:
    """Token view plus balance-share buttons; ``default_amount`` is the user's configured buy amount."""
    symbol = view.chain.native_symbol
    reply = token_view(view, [])
    header = f"\n\n<b>Choose an amount</b> ({symbol})"
    if not amounts:
        header += "\nNo spendable balance found. Send a custom amount or top up your wallet."
    rows: List[List[Button]] = []
    if default_amount and default_amount > 0:
        default = amount_str(default_amount)
        rows.extend(_rows([Button(f"⭐ Default · {default}", f"amt:{default}")]))
    rows.extend(_rows([Button(f"{pct}% · {amount_str(a)}", f"amt:{amount_str(a)}") for pct, a in amounts]))
    rows.append([Button("✏️ Custom", "custom"), Button("❌ Cancel", "cancel")])
    return Reply(reply.text + header, rows)


def custom_amount_prompt(pending: PendingBuy) -> Reply:
    return prompt(
        f"✏️ Send the amount of {pending.chain.native_symbol} to spend on <code>{esc(pending.token)}</code>"
    )


def buy_success(data: Dict[str, Any], token: str, amount: Decimal, chain: Chain, settings: TradingSettings) -> Reply:
    sim = " (simulation)" if settings.simulation_mode else ""
    text = (
        f"✅ <b>Buy executed{sim}</b>\n\n"
        f"<b>Chain:</b> {chain.label}\n"
        f"<b>Token:</b> <code>{esc(token)}</code>\n"
        f"<b>Amount:</b> {amount_str(amount)} {chain.native_symbol}\n"
        f"<b>TX:</b> <code>{esc(data.get('tx_hash'))}</code>\n\n"
        f"🎯 TP: +{fmt(settings.take_profit_percent, 0)}%\n"
        f"🛑 SL: {fmt(settings.stop_loss_percent, 0)}%\n\n"
        f"<b>Position ID:</b> <code>{esc(data.get('position_id'))}</code>"
    )
    return Reply(text, [[Button("📊 Positions", "positions"), Button("← Menu", "menu")]])


# positions and sells

def sell_success(data: Dict[str, Any], status: PositionStatus, percent: Decimal) -> Reply:
    pnl = data.get("profit_loss")
    text = (
        "✅ <b>Sell executed</b>\n\n"
        f"<b>Token:</b> <code>{esc(status.position.token)}</code>\n"
        f"<b>Sold:</b> {fmt(percent)}%\n"
        f"<b>TX:</b> <code>{esc(data.get('tx_hash'))}</code>"
    )
    if pnl is not None:
        text += f"\n<b>P&amp;L:</b> {fmt_pnl(float(pnl))}"
    return Reply(text, [[Button("📊 Positions", "positions")]])


def positions(items: List[PositionStatus]) -> Reply:
    if not items:
        return Reply("📭 No open positions", [_BACK])
    lines = ["<b>📊 Open positions</b>", ""]
    buttons: List[List[Button]] = []
    for i, status in enumerate(items, 1):
        pos = status.position
        lines.append(f"{i}. <b>{chain_label(pos.chain)}</b> <code>{esc(short(pos.token))}</code>")
        lines.append(f"   Amount {esc(pos.amount.normalize())} | Entry ${fmt(pos.entry_price, 6)} | Now ${fmt(pos.current_price, 6)}")
        lines.append(f"   PnL {fmt_pnl(status.pnl_percent)} (${fmt(status.pnl_usd)})")
        if status.should_close and status.reason:
            lines.append(f"   ⚠️ {esc(status.reason)}")
        lines.append("")
        buttons.append([
            Button(f"#{i} sell {pct}%", f"sell:{pos.sell_id}:{pct}") for pct in (25, 50, 100)
        ])
    buttons.append(_BACK)
    return Reply("\n".join(lines).rstrip(), buttons)


def pnl_summary(items: List[PositionStatus]) -> Reply:
    if not items:
        return Reply("📭 No open positions")
    total_usd = sum(s.pnl_usd for s in items)
    winners = sum(1 for s in items if s.pnl_percent >= 0)
    best = max(items, key=lambda s: s.pnl_percent)
    worst = min(items, key=lambda s: s.pnl_percent)
    text = (
        "<b>💹 P&amp;L summary</b>\n\n"
        f"<b>Positions:</b> {len(items)} ({winners} in profit)\n"
        f"<b>Total P&amp;L:</b> ${fmt(total_usd)}\n"
        f"<b>Best:</b> <code>{esc(short(best.position.token))}</code> {fmt_pnl(best.pnl_percent)}\n"
        f"<b>Worst:</b> <code>{esc(short(worst.position.token))}</code> {fmt_pnl(worst.pnl_percent)}"
    )
    return Reply(text)


# account views

def portfolio(data: Dict[str, Any]) -> Reply:
    text = (
        "<b>📈 Portfolio</b>\n\n"
        f"<b>Total value:</b> ${fmt(data.get('total_value_usd', data.get('total_value', 0)))}\n"
        f"<b>Total P&amp;L:</b> ${fmt(data.get('total_pnl_usd', data.get('total_pnl', 0)))}\n"
        f"<b>Open positions:</b> {esc(data.get('position_count', data.get('positions_count', 0)))}"
    )
    holdings = data.get("holdings") or data.get("chains") or []
    if isinstance(holdings, list) and holdings:
        text += "\n\n" + "\n".join(
            f"• {esc(str(h.get('chain', '')).upper())}: ${fmt(h.get('value_usd', 0))}" for h in holdings if isinstance(h, dict)
        )
    return Reply(text, [_BACK])


def history(data: Dict[str, Any], limit: int = 10) -> Reply:
    txs = data.get("transactions") or []
    if not txs:
        return Reply("📭 No transaction history found")
    lines = [
        "<b>📜 Transaction history</b>",
        "",
        f"<b>Total trades:</b> {esc(data.get('total_trades', len(txs)))}",
        f"<b>Total volume:</b> ${fmt(data.get('total_volume', 0))}",
        f"<b>Total fees:</b> ${fmt(data.get('total_fees', 0))}",
        "",
    ]
    for tx in list(reversed(txs[-limit:])):
        side = str(tx.get("tx_type", "")).lower()
        status = tx.get("status")
        emoji = "🟢" if side == "buy" else "🔴"
        mark = "✅" if status == "confirmed" else "⏳" if status == "pending" else "❌"
        when = datetime.fromtimestamp(int(tx.get("timestamp", 0)), tz=timezone.utc).strftime("%Y-%m-%d")
        lines.append(f"{emoji} <b>{esc(side.upper())}</b> {mark}")
        lines.append(f"{esc(str(tx.get('chain', '')).upper())} | {esc(tx.get('amount'))} @ ${fmt(tx.get('price', 0), 6)}")
        lines.append(f"TX: <code>{esc(str(tx.get('tx_hash', ''))[:16])}...</code>")
        lines.append(when)
        lines.append("")
    return Reply("\n".join(lines).rstrip())


def alerts(items: Any) -> Reply:
    if isinstance(items, dict):
        items = items.get("alerts") or []
    if not items:
        return Reply(
            "🔔 <b>No active alerts</b>\n\n"
            "Alerts fire on take profit, stop loss, price moves and balance changes."
        )
    lines = ["<b>🔔 Your alerts</b>", ""]
    for alert in items:
        if not isinstance(alert, dict):
            continue
        lines.append(f"• <b>{esc(alert.get('alert_type', 'alert'))}</b> {esc(alert.get('message', ''))}")
    return Reply("\n".join(lines))


def price(chain: Chain, token: str, data: Dict[str, Any]) -> Reply:
    p = data.get("price") or data
    change = float(p.get("price_change_24h", 0) or 0)
    return Reply(
        "💰 <b>Token price</b>\n\n"
        f"<b>Chain:</b> {chain.label}\n"
        f"<b>Token:</b> <code>{esc(short(token, 12, 4))}</code>\n\n"
        f"<b>Price:</b> ${fmt(p.get('price_usd', 0), 8)}\n"
        f"<b>24h change:</b> {'🟢' if change >= 0 else '🔴'} {fmt(change)}%\n"
        f"<b>Volume 24h:</b> ${fmt(p.get('volume_24h', 0))}\n"
        f"<b>Liquidity:</b> ${fmt(p.get('liquidity', 0))}"
    )


def gas(chain: Chain, data: Dict[str, Any]) -> Reply:
    lines = [f"⛽ <b>Gas on {chain.label}</b>", ""]
    for key in ("slow", "standard", "fast", "instant"):
        if key in data:
            lines.append(f"<b>{key.title()}:</b> {esc(data[key])}")
    if "unit" in data:
        lines.append(f"<i>{esc(data['unit'])}</i>")
    if len(lines) == 2:
        lines.append(esc(data))
    return Reply("\n".join(lines))


def security_report(chain: Chain, token: str, data: Dict[str, Any]) -> Reply:
    safe = bool(data.get("is_safe"))
    warnings = data.get("warnings") or []
    lines = [
        f"🛡 <b>Security report</b> ({chain.label})",
        f"<code>{esc(token)}</code>",
        "",
        f"<b>Verdict:</b> {'✅ Safe' if safe else '⚠️ Risky'}",
        f"<b>Rug score:</b> {esc(data.get('rug_score', '?'))}/100",
        f"<b>Honeypot:</b> {'yes 🍯' if data.get('honeypot') else 'no'}",
        f"<b>Holders:</b> {esc(data.get('holder_count', '?'))}",
        f"<b>Liquidity:</b> ${fmt(data.get('liquidity_usd', 0))}",
    ]
    if warnings:
        lines.append("")
        lines.extend(f"• {esc(w)}" for w in warnings[:10])
    return Reply("\n".join(lines), [[Button("🟢 Buy", f"buy:{token}")]] if safe else [])


# wallets

def wallets(items: List[Dict[str, Any]], balances: Dict[str, Optional[Decimal]]) -> Reply:
    if not items:
        return Reply(
            "💼 <b>No wallets yet</b>\n\nGenerate or import one to start trading.",
            [[Button("🔐 Generate", "gen:solana"), Button("📥 Import", "import_wallet")], _BACK],
        )
    lines = ["<b>💼 Your wallets</b>", ""]
    for w in items:
        chain_value = str(w.get("chain", ""))
        known = chain_value in Chain._value2member_map_
        symbol = Chain(chain_value).native_symbol if known else ""
        lines.append(f"<b>{chain_label(chain_value)}</b>")
        lines.append(f"<code>{esc(w.get('address'))}</code>")
        balance = balances.get(chain_value)
        lines.append(f"Balance: {amount_str(balance)} {symbol}" if balance is not None else "Balance: unavailable")
        lines.append("")
    buttons = [
        [Button("🔐 Generate", "gen:solana"), Button("📥 Import", "import_wallet")],
        [Button("📤 Import data", "import_data")],
        _BACK,
    ]
    return Reply("\n".join(lines).rstrip(), buttons)


def wallet_generated(chain: Chain, data: Dict[str, Any]) -> Reply:
    text = f"✅ <b>Wallet generated</b>\n\n<b>Chain:</b> {chain.label}\n<b>Address:</b> <code>{esc(data.get('address'))}</code>"
    if data.get("private_key"):
        text += (
            "\n\n⚠️ <b>SAVE THIS PRIVATE KEY SECURELY AND DELETE THIS MESSAGE</b>\n"
            f"<code>{esc(data['private_key'])}</code>"
        )
    if data.get("mnemonic"):
        text += f"\n\n<b>Recovery phrase:</b>\n<code>{esc(data['mnemonic'])}</code>"
    return Reply(text)


def wallet_imported(chain: Chain, data: Dict[str, Any]) -> Reply:
    return Reply(f"✅ <b>Wallet imported</b>\n\n<b>Chain:</b> {chain.label}\n<b>Address:</b> <code>{esc(data.get('address'))}</code>")


def import_result(data_type: str, data: Dict[str, Any]) -> Reply:
    errors = data.get("errors") or []
    text = (
        "✅ <b>Data imported</b>\n\n"
        f"<b>Type:</b> {esc(data_type)}\n"
        f"<b>Imported:</b> {esc(data.get('imported_count', 0))} items"
    )
    if errors:
        text += f"\n\n⚠️ Errors: {len(errors)}\n" + "\n".join(esc(e) for e in errors[:3])
    return Reply(text)


# settings

_TOGGLES = (
    ("simulation", "simulation_mode", "🧪 Simulation"),
    ("bundler", "bundler_mode", "📦 Bundler"),
    ("safety", "ignore_safety", "🙈 Ignore safety"),
    ("autotrade", "auto_trade", "🤖 Auto trade"),
)
TOGGLE_FIELDS = {flag: field for flag, field, _ in _TOGGLES}


def settings_view(settings: TradingSettings) -> Reply:
    chain = settings.default_chain
    text = (
        "<b>⚙️ Settings</b>\n\n"
        f"<b>Chain:</b> {chain.label}\n"
        f"<b>Buy amount:</b> {amount_str(settings.buy_amount)} {chain.native_symbol}\n"
        f"<b>Slippage:</b> {fmt(settings.slippage, 1)}%\n"
        f"<b>Take profit:</b> +{fmt(settings.take_profit_percent, 0)}%\n"
        f"<b>Stop loss:</b> {fmt(settings.stop_loss_percent, 0)}%\n"
        f"<b>Preset:</b> {settings.preset.value}"
    )

    def mark(on: bool) -> str:
        return "✅" if on else "▫️"

    buttons = [
        [Button(f"{mark(settings.default_chain is c)} {c.label}", f"chain:{c.value}") for c in Chain],
        [
            Button(f"{mark(settings.preset is p)} {p.value}", f"preset:{p.value}")
            for p in (Preset.SAFE, Preset.DEGEN, Preset.SNIPE)
        ],
        [Button(f"{mark(getattr(settings, field))} {label}", f"toggle:{flag}") for flag, field, label in _TOGGLES[:2]],
        [Button(f"{mark(getattr(settings, field))} {label}", f"toggle:{flag}") for flag, field, label in _TOGGLES[2:]],
        _BACK,
    ]
    return Reply(text, buttons)


# advanced features

def bundler_status(chain: Chain, data: Dict[str, Any]) -> Reply:
    pending = data.get("pending_transactions") or data.get("transactions") or []
    lines = [f"📦 <b>Bundler</b> ({chain.label})", ""]
    lines.append(f"<b>Queued:</b> {len(pending) if isinstance(pending, list) else esc(pending)}")
    if data.get("status"):
        lines.append(f"<b>Status:</b> {esc(data['status'])}")
    if isinstance(pending, list):
        for tx in pending[:10]:
            if isinstance(tx, dict):
                lines.append(
                    f"• {esc(str(tx.get('tx_type', '')).upper())} <code>{esc(short(str(tx.get('token', ''))))}</code> {esc(tx.get('amount'))}"
                )
    buttons = [[Button("➕ Add", "bundler:add"), Button("🚀 Execute", "bundler:exec")], _BACK]
    return Reply("\n".join(lines), buttons)


def whale_stats(data: Dict[str, Any]) -> Reply:
    lines = ["🐋 <b>Whale activity</b>", ""]
    for key, value in data.items():
        if key == "success" or isinstance(value, (dict, list)):
            continue
        lines.append(f"<b>{esc(key.replace('_', ' ').title())}:</b> {esc(value)}")
    return Reply("\n".join(lines), [[Button("🔔 Create alert", "whale_alert")]])


def leaderboard(period: str, data: Any) -> Reply:
    if isinstance(data, dict):
        data = data.get("entries") or data.get("leaderboard")
    entries = data if isinstance(data, list) else []
    if not entries:
        return Reply(f"🏆 No leaderboard entries for {esc(period)}")
    lines = [f"🏆 <b>Leaderboard</b> ({esc(period)})", ""]
    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    for rank, entry in enumerate(entries[:10], 1):
        if not isinstance(entry, dict):
            continue
        name = entry.get("username") or entry.get("user_id") or "?"
        lines.append(
            f"{medals.get(rank, f'{rank}.')} {esc(name)} | PnL {fmt_pnl(float(entry.get('pnl_percent', 0) or 0))}"
        )
    return Reply("\n".join(lines))


def grid_created(token: str, data: Dict[str, Any]) -> Reply:
    return Reply(
        "📐 <b>Grid strategy created</b>\n\n"
        f"<b>Token:</b> <code>{esc(token)}</code>\n"
        f"<b>ID:</b> <code>{esc(data.get('strategy_id', data.get('id')))}</code>"
    )


def bundle_executed(chain: Chain, data: Dict[str, Any]) -> Reply:
    hashes = data.get("tx_hashes") or data.get("transactions") or []
    lines = [f"🚀 <b>Bundle executed</b> ({chain.label})", ""]
    if data.get("bundle_id"):
        lines.append(f"<b>Bundle:</b> <code>{esc(data['bundle_id'])}</code>")
    for tx in hashes[:10] if isinstance(hashes, list) else []:
        lines.append(f"• <code>{esc(tx if not isinstance(tx, dict) else tx.get('tx_hash'))}</code>")
    return Reply("\n".join(lines))


def bundle_queued(args_text: str, data: Dict[str, Any]) -> Reply:
    return Reply(
        f"📦 <b>Added to bundle</b>\n\n{esc(args_text)}\n"
        f"<b>Queue position:</b> {esc(data.get('position', data.get('queue_size', '?')))}",
        [[Button("🚀 Execute", "bundler:exec"), Button("📦 Status", "bundler")]],
    )


def whale_alert_created(min_usd: Decimal, chains: List[Chain], data: Dict[str, Any]) -> Reply:
    scope = ", ".join(c.label for c in chains) if chains else "all chains"
    return Reply(
        "🔔 <b>Whale alert created</b>\n\n"
        f"<b>Minimum size:</b> ${fmt(min_usd, 0)}\n"
        f"<b>Chains:</b> {scope}\n"
        f"<b>ID:</b> <code>{esc(data.get('alert_id', data.get('id')))}</code>"
    )


def ai_reply(data: Dict[str, Any]) -> Reply:
    text = f"🤖 {esc(data.get('response', ''))}"
    agents = data.get("agents_used") or []
    if agents:
        text += f"\n\n<i>{esc(', '.join(map(str, agents)))}</i>"
    return Reply(text, [[Button("❌ End chat", "cancel")]])


def token_analysis(token: str, data: Dict[str, Any]) -> Reply:
    analysis = data.get("analysis") or {}
    recs = analysis.get("recommendations") or []
    lines = [
        f"🤖 <b>AI analysis</b> <code>{esc(short(token))}</code>",
        "",
        esc(analysis.get("summary", "")),
        "",
        f"<b>Risk:</b> {esc(analysis.get('riskAssessment', '?'))}",
        f"<b>Sentiment:</b> {esc(analysis.get('marketSentiment', '?'))} ({fmt(analysis.get('confidence', 0), 0)}% confidence)",
    ]
    lines.extend(f"• {esc(r)}" for r in recs[:5])
    return Reply("\n".join(lines), [[Button("🔄 Token view", f"refresh:{token}")]])
