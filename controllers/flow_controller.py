"""
Conversation state machine.

``handle`` takes the caller's session and one intent, mutates the session in
place and returns the replies to send. Buy execution is only reachable through
``_confirm_amount`` and ``_force_buy``; both re-fetch the balance right before
calling the engine.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

from enums.awaiting_input import AwaitingInput
from enums.chain import Chain
from enums.error_kind import ErrorKind
from enums.preset import Preset
from enums.trade_side import TradeSide
from models.intent import (
    AmountIntent,
    CallbackIntent,
    CommandIntent,
    Intent,
    TokenInfoIntent,
    TradeIntent,
)
from models.position import PositionStatus, find_position
from models.reply import Reply
from models.session import UserSession
from schemas.trade_schema import (
    BundleAddRequest,
    BuyRequest,
    GridCreateRequest,
    SellRequest,
    WhaleAlertRequest,
)
from services import render_service as render
from services.ai_chat_service import AIChatService
from services.aggregation_service import AggregationService
from services.engine_service import EngineService
from services.intent_parser import normalize_chain, parse_amount, parse_import_payload
from services.validation_service import (
    preset_amounts,
    resolve_sell_percent,
    validate_buy_amount,
    validate_bundler_args,
    validate_grid_args,
    validate_percent,
    validate_slippage,
    validate_whale_alert_args,
)
from utils.config import get_config
from utils.errors import TradeValidationError, UserInputError
from utils.logger import log_function, logger_manager

logger = logger_manager.setup_logger(__name__)

Replies = List[Reply]

# states whose next text message is consumed verbatim
RAW_TEXT_STATES = frozenset({
    AwaitingInput.TOKEN_CHECK,
    AwaitingInput.IMPORT_WALLET,
    AwaitingInput.IMPORT_DATA,
    AwaitingInput.BUNDLER_ADD,
    AwaitingInput.WHALE_ALERT,
    AwaitingInput.GRID_CREATE,
    AwaitingInput.AI_CHAT,
})

LEADERBOARD_PERIODS = ("daily", "weekly", "monthly", "alltime")


def _as_list(data: Any, key: str) -> List[Any]:
    if isinstance(data, dict):
        data = data.get(key)
    return data if isinstance(data, list) else []


def _as_dict(data: Any) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


class FlowController:
    def __init__(
        self,
        engine: EngineService | None = None,
        aggregation: AggregationService | None = None,
        ai: AIChatService | None = None,
        config: Dict[str, Any] | None = None,
    ) -> None:
        self.engine = engine or EngineService()
        self.aggregation = aggregation or AggregationService(self.engine)
        self.ai = ai or AIChatService()
        self.config = config or get_config()

        self._commands: Dict[str, Callable[[UserSession, List[str]], Awaitable[Replies]]] = {
            "start": self._cmd_start,
            "menu": self._cmd_menu,
            "help": self._cmd_help,
            "cancel": self._cmd_cancel,
            "positions": self._cmd_positions,
            "pnl": self._cmd_pnl,
            "portfolio": self._cmd_portfolio,
            "history": self._cmd_history,
            "alerts": self._cmd_alerts,
            "price": self._cmd_price,
            "gas": self._cmd_gas,
            "check": self._cmd_check,
            "wallet": self._cmd_wallet,
            "generate_wallet": self._cmd_generate_wallet,
            "import_wallet": self._cmd_import_wallet,
            "import_data": self._cmd_import_data,
            "settings": self._cmd_settings,
            "chain": self._cmd_chain,
            "amount": self._cmd_amount,
            "slippage": self._cmd_slippage,
            "tp": self._cmd_tp,
            "sl": self._cmd_sl,
            "preset": self._cmd_preset,
            "toggle": self._cmd_toggle,
            "bundler": self._cmd_bundler,
            "whales": self._cmd_whales,
            "whale_alert": self._cmd_whale_alert,
            "leaderboard": self._cmd_leaderboard,
            "grid": self._cmd_grid,
            "ai": self._cmd_ai,
        }
        self._raw_text: Dict[AwaitingInput, Callable[[UserSession, str], Awaitable[Replies]]] = {
            AwaitingInput.TOKEN_CHECK: self._consume_token_check,
            AwaitingInput.IMPORT_WALLET: self._consume_import_wallet,
            AwaitingInput.IMPORT_DATA: self._consume_import_data,
            AwaitingInput.BUNDLER_ADD: self._consume_bundler_add,
            AwaitingInput.WHALE_ALERT: self._consume_whale_alert,
            AwaitingInput.GRID_CREATE: self._consume_grid,
            AwaitingInput.AI_CHAT: self._consume_ai_chat,
        }

    async def handle(self, session: UserSession, intent: Intent) -> Replies:
        if isinstance(intent, CommandIntent):
            handler = self._commands.get(intent.name)
            if handler is None:
                session.reset()
                return [render.user_error(f"/{intent.name} is not available. Use /help")]
            return await handler(session, intent.args)
        if isinstance(intent, CallbackIntent):
            return await self._callback(session, intent)

        if session.awaiting in RAW_TEXT_STATES:
            return await self._raw_text[session.awaiting](session, intent.raw.strip())
        if isinstance(intent, TradeIntent):
            return await self._trade(session, intent)
        return await self._text(session, intent)

    # free text outside the raw-text states

    async def _text(self, session: UserSession, intent: Intent) -> Replies:
        state = session.awaiting

        if isinstance(intent, TokenInfoIntent):
            if state in (AwaitingInput.BUY_TOKEN, AwaitingInput.CUSTOM_AMOUNT):
                # a new token supersedes whatever buy was pending
                return await self._select_token(session, intent.token)
            return await self._show_token(session, intent.token)

        if state is AwaitingInput.CUSTOM_AMOUNT:
            amount = intent.amount if isinstance(intent, AmountIntent) else parse_amount(intent.raw)
            return await self._confirm_amount(session, amount)

        if state is AwaitingInput.BUY_TOKEN:
            return [render.prompt("That does not look like a token address. Paste the contract address to buy.")]

        if isinstance(intent, AmountIntent):
            return [render.info("No buy in progress. Paste a token address or use /buy first.")]
        return [render.info("I did not understand that. Paste a token address or use /help.")]

    # trades

    async def _trade(self, session: UserSession, intent: TradeIntent) -> Replies:
        if intent.side is TradeSide.SELL:
            session.reset()
            return await self._sell(session, intent.token or "", intent.amount or Decimal("0"))
        return await self._begin_buy(session, intent.token, intent.amount)

    async def _wallet_for(self, session: UserSession, chain: Chain) -> Optional[Replies]:
        """``None`` when the user has a wallet on ``chain``, else the replies to send."""
        result = await self.engine.get_wallets(session.user_id)
        if not result.ok:
            return [render.error_reply(result.error, "Wallet lookup")]
        if any(isinstance(w, dict) and w.get("chain") == chain.value for w in _as_list(result.data, "wallets")):
            return None
        return [render.no_wallet(chain)]

    async def _begin_buy(
        self, session: UserSession, token: Optional[str] = None, amount: Optional[Decimal] = None
    ) -> Replies:
        session.reset()
        chain = session.settings.default_chain
        missing = await self._wallet_for(session, chain)
        if missing is not None:
            return missing

        if token is None:
            session.await_input(AwaitingInput.BUY_TOKEN)
            return [render.prompt(f"🟢 <b>Buy on {chain.label}</b>\n\nSend the token contract address.")]
        if amount is None:
            return await self._select_token(session, token)

        session.begin_amount_entry(token, chain)
        return await self._confirm_amount(session, amount)

    async def _select_token(self, session: UserSession, token: str) -> Replies:
        chain = session.settings.default_chain
        view = await self.aggregation.build_token_view(session.user_id, chain, token)
        session.begin_amount_entry(token, chain)
        session.selected_token = token

        balance = view.balance.native_balance if view.balance else Decimal("0")
        amounts = preset_amounts(balance, self.config["balance_percents"])
        return [render.amount_keyboard(view, amounts, session.settings.buy_amount)]

    async def _confirm_amount(self, session: UserSession, amount: Decimal) -> Replies:
        pending = session.pending_buy
        if pending is None:
            session.reset()
            return [render.info("This buy has expired. Start again with /buy.")]

        balance, error = await self.aggregation.native_balance(session.user_id, pending.chain)
        if error is not None:
            # stay in amount entry so the same amount can be sent again
            return [render.error_reply(error, "Balance check", self._trade_context(pending.token, amount, pending.chain))]
        validate_buy_amount(amount, balance, pending.chain.native_symbol)

        session.reset()
        session.selected_amount = str(amount)
        return await self._execute_buy(
            session, pending.token, pending.chain, amount, session.settings.ignore_safety
        )

    async def _force_buy(self, session: UserSession, key: str) -> Replies:
        session.reset()
        rejected = session.rejected_buys.get(key)
        if rejected is None:
            return [render.info("This force-buy offer has expired. Start again with /buy.")]
        chain, token, amount = rejected.chain, rejected.token, rejected.amount
        balance, error = await self.aggregation.native_balance(session.user_id, chain)
        if error is not None:
            return [render.error_reply(error, "Balance check", self._trade_context(token, amount, chain))]
        validate_buy_amount(amount, balance, chain.native_symbol)
        # one press, one order
        del session.rejected_buys[key]
        logger.warning(f"user {session.user_id} forcing buy of {token} on {chain.value} past a security rejection")
        return await self._execute_buy(session, token, chain, amount, ignore_safety=True)

    @log_function
    async def _execute_buy(
        self, session: UserSession, token: str, chain: Chain, amount: Decimal, ignore_safety: bool
    ) -> Replies:
        settings = session.settings
        request = BuyRequest(
            user_id=session.user_id,
            chain=chain.value,
            token=token,
            amount=amount,
            slippage=settings.slippage,
            take_profit=settings.take_profit_percent,
            stop_loss=settings.stop_loss_percent,
            is_simulation=settings.simulation_mode,
            bundler_enabled=settings.bundler_mode,
            ignore_safety=ignore_safety,
        )
        result = await self.engine.buy(request)
        if result.ok:
            logger.info(f"buy ok user={session.user_id} token={token} amount={amount} tx={result.field('tx_hash')}")
            return [render.buy_success(_as_dict(result.data), token, amount, chain, settings)]

        error = result.error
        if error.kind is ErrorKind.SECURITY_REJECTION and not ignore_safety:
            key = session.remember_rejection(token, chain, amount)
            return [render.security_rejection(error, chain, token, amount, key)]
        return [render.error_reply(error, "Buy", self._trade_context(token, amount, chain))]

    @staticmethod
    def _trade_context(token: str, amount: Decimal, chain: Chain) -> str:
        return f"Token: <code>{render.esc(token)}</code>\nAmount: {render.amount_str(amount)} {chain.native_symbol}"

    async def _find_position(self, session: UserSession, token: str) -> tuple[Optional[PositionStatus], Optional[Replies]]:
        items, error = await self.aggregation.positions(session.user_id)
        if error is not None:
            return None, [render.error_reply(error, "Positions lookup")]
        status = find_position(items, token)
        if status is None:
            return None, [render.no_position(token)]
        return status, None

    async def _sell(self, session: UserSession, token: str, amount: Decimal) -> Replies:
        status, replies = await self._find_position(session, token)
        if status is None:
            return replies
        percent = resolve_sell_percent(amount, status.position.amount)
        return await self._execute_sell(session, status, percent)

    async def _execute_sell(self, session: UserSession, status: PositionStatus, percent: Decimal) -> Replies:
        if percent <= 0:
            raise TradeValidationError("Nothing to sell: the amount resolves to 0%")
        request = SellRequest(user_id=session.user_id, position_id=status.position.sell_id, percent=float(percent))
        result = await self.engine.sell(request)
        if not result.ok:
            context = f"Position: <code>{render.esc(status.position.sell_id)}</code>\nPercent: {render.fmt(percent)}%"
            return [render.error_reply(result.error, "Sell", context)]
        logger.info(f"sell ok user={session.user_id} position={status.position.sell_id} percent={percent}")
        return [render.sell_success(_as_dict(result.data), status, percent)]

    async def _show_token(self, session: UserSession, token: str, edit: bool = False) -> Replies:
        view = await self.aggregation.build_token_view(session.user_id, session.settings.default_chain, token)
        reply = render.token_view(view, self.config["quick_buy_amounts"], session.settings.buy_amount)
        reply.edit = edit
        return [reply]

    # button presses

    async def _callback(self, session: UserSession, intent: CallbackIntent) -> Replies:
        action, args = intent.action, intent.args

        if action == "buy":
            return await self._begin_buy(session, args[0] if args else None)
        if action == "amt" and args:
            if session.pending_buy is None:
                session.reset()
                return [render.info("This amount keyboard has expired. Start again with /buy.")]
            return await self._confirm_amount(session, parse_amount(args[0]))
        if action == "custom":
            pending = session.pending_buy
            if pending is None:
                session.reset()
                return [render.info("This buy has expired. Start again with /buy.")]
            return [render.custom_amount_prompt(pending)]
        if action == "cancel":
            return await self._cmd_cancel(session, [])
        if action == "qb" and len(args) == 2:
            session.reset()
            session.begin_amount_entry(args[0], session.settings.default_chain)
            return await self._confirm_amount(session, parse_amount(args[1]))
        if action == "fb" and len(args) == 1:
            return await self._force_buy(session, args[0])
        if action == "sell" and len(args) == 2:
            return await self._sell_button(session, args[0], args[1])
        if action == "refresh" and args:
            return await self._show_token(session, args[0], edit=True)
        if action == "preset" and args:
            return await self._cmd_preset(session, args, edit=True)
        if action == "toggle" and args:
            return await self._cmd_toggle(session, args, edit=True)
        if action == "chain" and args:
            return await self._cmd_chain(session, args, edit=True)
        if action == "gen":
            return await self._cmd_generate_wallet(session, args)
        if action == "bundler":
            return await self._bundler_action(session, args[0] if args else None)
        if action == "ai" and args:
            return await self._analyze_token(session, args[0])

        simple = {
            "menu": self._cmd_menu,
            "wallet": self._cmd_wallet,
            "positions": self._cmd_positions,
            "portfolio": self._cmd_portfolio,
            "settings": self._cmd_settings,
            "check": self._cmd_check,
            "import_wallet": self._cmd_import_wallet,
            "import_data": self._cmd_import_data,
            "grid": self._cmd_grid,
            "whale_alert": self._cmd_whale_alert,
            "ai": self._cmd_ai,
        }
        handler = simple.get(action)
        if handler is not None:
            return await handler(session, [])

        logger.warning(f"unknown callback '{intent.raw}' from user {session.user_id}")
        session.reset()
        return [render.user_error("That button is no longer valid. Back to the menu.")] + await self._cmd_menu(session, [])

    async def _sell_button(self, session: UserSession, position_id: str, percent_text: str) -> Replies:
        session.reset()
        percent = parse_amount(percent_text)
        if percent > 100:
            raise UserInputError("Sell percent must be between 0 and 100")
        status, replies = await self._find_position(session, position_id)
        if status is None:
            return replies
        return await self._execute_sell(session, status, percent)

    # commands: navigation

    async def _cmd_start(self, session: UserSession, args: List[str]) -> Replies:
        session.reset()
        return [render.main_menu(session.settings)]

    async def _cmd_menu(self, session: UserSession, args: List[str]) -> Replies:
        reply = render.main_menu(session.settings)
        reply.edit = True
        return [reply]

    async def _cmd_help(self, session: UserSession, args: List[str]) -> Replies:
        return [render.help_reply()]

    async def _cmd_cancel(self, session: UserSession, args: List[str]) -> Replies:
        was = session.awaiting
        session.reset()
        if was is AwaitingInput.IDLE:
            return [render.info("Nothing to cancel.")]
        return [render.info("❌ Cancelled.")]

    # commands: account

    async def _cmd_positions(self, session: UserSession, args: List[str]) -> Replies:
        items, error = await self.aggregation.positions(session.user_id)
        if error is not None:
            return [render.error_reply(error, "Positions lookup")]
        return [render.positions(items)]

    async def _cmd_pnl(self, session: UserSession, args: List[str]) -> Replies:
        items, error = await self.aggregation.positions(session.user_id)
        if error is not None:
            return [render.error_reply(error, "P&L lookup")]
        return [render.pnl_summary(items)]

    async def _cmd_portfolio(self, session: UserSession, args: List[str]) -> Replies:
        result = await self.engine.get_portfolio(session.user_id)
        if not result.ok:
            return [render.error_reply(result.error, "Portfolio lookup")]
        return [render.portfolio(_as_dict(result.data))]

    async def _cmd_history(self, session: UserSession, args: List[str]) -> Replies:
        result = await self.engine.get_history(session.user_id)
        if not result.ok:
            return [render.error_reply(result.error, "History lookup")]
        return [render.history(_as_dict(result.data))]

    async def _cmd_alerts(self, session: UserSession, args: List[str]) -> Replies:
        result = await self.engine.get_alerts(session.user_id)
        if not result.ok:
            return [render.error_reply(result.error, "Alerts lookup")]
        return [render.alerts(result.data)]

    # commands: market

    async def _cmd_price(self, session: UserSession, args: List[str]) -> Replies:
        chain, token = normalize_chain(args[0]), args[1]
        result = await self.engine.get_price(chain.value, token)
        if not result.ok:
            return [render.error_reply(result.error, "Price lookup")]
        return [render.price(chain, token, _as_dict(result.data))]

    async def _cmd_gas(self, session: UserSession, args: List[str]) -> Replies:
        chain = normalize_chain(args[0]) if args else session.settings.default_chain
        result = await self.engine.get_gas(chain.value)
        if not result.ok:
            return [render.error_reply(result.error, "Gas lookup")]
        return [render.gas(chain, _as_dict(result.data))]

    async def _cmd_check(self, session: UserSession, args: List[str]) -> Replies:
        if args:
            return await self._security_report(session, args[0])
        session.await_input(AwaitingInput.TOKEN_CHECK)
        return [render.prompt("🛡 Send the token address to check.")]

    async def _security_report(self, session: UserSession, token: str) -> Replies:
        chain = session.settings.default_chain
        result = await self.engine.security_check(chain.value, token)
        if not result.ok:
            # a risky verdict can arrive as an error body
            return [render.error_reply(result.error, "Security check", f"Token: <code>{render.esc(token)}</code>")]
        return [render.security_report(chain, token, _as_dict(result.data))]

    async def _analyze_token(self, session: UserSession, token: str) -> Replies:
        result = await self.ai.analyze_token(session.settings.default_chain.value, token)
        if not result.ok:
            return [render.error_reply(result.error, "AI analysis")]
        return [render.token_analysis(token, _as_dict(result.data))]

    # commands: wallets

    async def _cmd_wallet(self, session: UserSession, args: List[str]) -> Replies:
        result = await self.engine.get_wallets(session.user_id)
        if not result.ok:
            return [render.error_reply(result.error, "Wallet lookup")]
        wallets = [w for w in _as_list(result.data, "wallets") if isinstance(w, dict)]

        async def balance_of(wallet: Dict[str, Any]) -> Optional[Decimal]:
            chain_value = str(wallet.get("chain", ""))
            if chain_value not in Chain._value2member_map_:
                return None
            info, _ = await self.aggregation.balance(session.user_id, Chain(chain_value))
            return info.native_balance if info else None

        balances = await asyncio.gather(*(balance_of(w) for w in wallets))
        by_chain = {str(w.get("chain", "")): b for w, b in zip(wallets, balances)}
        return [render.wallets(wallets, by_chain)]

    async def _cmd_generate_wallet(self, session: UserSession, args: List[str]) -> Replies:
        chain = normalize_chain(args[0]) if args else session.settings.default_chain
        result = await self.engine.generate_wallet(session.user_id, chain.value)
        if not result.ok:
            return [render.error_reply(result.error, "Wallet generation")]
        return [render.wallet_generated(chain, _as_dict(result.data))]

    async def _cmd_import_wallet(self, session: UserSession, args: List[str]) -> Replies:
        if len(args) == 2:
            session.reset()
            return await self._import_wallet(session, normalize_chain(args[0]), args[1])
        session.await_input(AwaitingInput.IMPORT_WALLET)
        return [render.prompt(
            "📥 Send <code>&lt;chain&gt; &lt;private_key&gt;</code>, or only the key for "
            f"{session.settings.default_chain.label}.\n\n⚠️ Delete your message afterwards."
        )]

    async def _import_wallet(self, session: UserSession, chain: Chain, private_key: str) -> Replies:
        result = await self.engine.import_wallet(session.user_id, chain.value, private_key)
        if not result.ok:
            return [render.error_reply(result.error, "Wallet import")]
        return [render.wallet_imported(chain, _as_dict(result.data))]

    async def _cmd_import_data(self, session: UserSession, args: List[str]) -> Replies:
        session.await_input(AwaitingInput.IMPORT_DATA)
        return [render.prompt(
            "📤 Send a JSON array or CSV with a header row.\n\n"
            "<code>chain,private_key</code> imports wallets, <code>chain,token,amount,entry_price</code> imports positions."
        )]

    # commands: settings

    async def _cmd_settings(self, session: UserSession, args: List[str]) -> Replies:
        return [render.settings_view(session.settings)]

    def _settings_reply(self, session: UserSession, edit: bool) -> Replies:
        reply = render.settings_view(session.settings)
        reply.edit = edit
        return [reply]

    async def _cmd_chain(self, session: UserSession, args: List[str], edit: bool = False) -> Replies:
        session.settings = session.settings.with_values(default_chain=normalize_chain(args[0]))
        return self._settings_reply(session, edit)

    async def _cmd_amount(self, session: UserSession, args: List[str]) -> Replies:
        session.settings = session.settings.with_values(buy_amount=parse_amount(args[0]))
        return self._settings_reply(session, False)

    async def _cmd_slippage(self, session: UserSession, args: List[str]) -> Replies:
        session.settings = session.settings.with_values(slippage=validate_slippage(args[0]))
        return self._settings_reply(session, False)

    async def _cmd_tp(self, session: UserSession, args: List[str]) -> Replies:
        session.settings = session.settings.with_values(take_profit_percent=validate_percent(args[0]))
        return self._settings_reply(session, False)

    async def _cmd_sl(self, session: UserSession, args: List[str]) -> Replies:
        session.settings = session.settings.with_values(stop_loss_percent=validate_percent(args[0], negative=True))
        return self._settings_reply(session, False)

    async def _cmd_preset(self, session: UserSession, args: List[str], edit: bool = False) -> Replies:
        try:
            preset = Preset(args[0].lower())
        except ValueError:
            raise UserInputError(f"Unknown preset '{args[0]}'. Use safe, degen, snipe or custom") from None
        session.settings = session.settings.with_preset(preset, self.config)
        return self._settings_reply(session, edit)

    async def _cmd_toggle(self, session: UserSession, args: List[str], edit: bool = False) -> Replies:
        field = render.TOGGLE_FIELDS.get(args[0].lower())
        if field is None:
            raise UserInputError(f"Unknown setting '{args[0]}'. Use {', '.join(render.TOGGLE_FIELDS)}")
        current = getattr(session.settings, field)
        session.settings = session.settings.with_values(**{field: not current})
        return self._settings_reply(session, edit)

    # commands: advanced

    async def _cmd_bundler(self, session: UserSession, args: List[str]) -> Replies:
        return await self._bundler_action(session, None)

    async def _bundler_action(self, session: UserSession, action: Optional[str]) -> Replies:
        chain = session.settings.default_chain
        if action == "add":
            session.await_input(AwaitingInput.BUNDLER_ADD)
            return [render.prompt(
                "📦 Send <code>&lt;buy|sell|swap&gt; &lt;token&gt; &lt;amount&gt; [priority 1-10]</code>"
            )]
        if action == "exec":
            result = await self.engine.bundler_execute(session.user_id, chain.value)
            if not result.ok:
                return [render.error_reply(result.error, "Bundle execution")]
            return [render.bundle_executed(chain, _as_dict(result.data))]

        result = await self.engine.bundler_status(session.user_id, chain.value)
        if not result.ok:
            return [render.error_reply(result.error, "Bundler status")]
        return [render.bundler_status(chain, _as_dict(result.data))]

    async def _cmd_whales(self, session: UserSession, args: List[str]) -> Replies:
        result = await self.engine.whale_stats()
        if not result.ok:
            return [render.error_reply(result.error, "Whale stats")]
        return [render.whale_stats(_as_dict(result.data))]

    async def _cmd_whale_alert(self, session: UserSession, args: List[str]) -> Replies:
        if args:
            session.reset()
            return await self._create_whale_alert(session, args)
        session.await_input(AwaitingInput.WHALE_ALERT)
        return [render.prompt("🐋 Send <code>&lt;min_usd&gt; [chain ...]</code>, e.g. <code>50000 solana eth</code>")]

    async def _create_whale_alert(self, session: UserSession, args: List[str]) -> Replies:
        parsed = validate_whale_alert_args(args)
        request = WhaleAlertRequest(
            user_id=session.user_id,
            min_size_usd=parsed.min_usd,
            chains=[c.value for c in parsed.chains] or None,
        )
        result = await self.engine.create_whale_alert(request)
        if not result.ok:
            return [render.error_reply(result.error, "Whale alert")]
        return [render.whale_alert_created(parsed.min_usd, parsed.chains, _as_dict(result.data))]

    async def _cmd_leaderboard(self, session: UserSession, args: List[str]) -> Replies:
        period = args[0].lower() if args else "daily"
        if period not in LEADERBOARD_PERIODS:
            raise UserInputError(f"Unknown period '{args[0]}'. Use {', '.join(LEADERBOARD_PERIODS)}")
        result = await self.engine.leaderboard(period)
        if not result.ok:
            return [render.error_reply(result.error, "Leaderboard")]
        return [render.leaderboard(period, result.data)]

    async def _cmd_grid(self, session: UserSession, args: List[str]) -> Replies:
        if args:
            session.reset()
            return await self._create_grid(session, args)
        session.await_input(AwaitingInput.GRID_CREATE)
        return [render.prompt(
            "📐 Send <code>&lt;token&gt; &lt;lower&gt; &lt;upper&gt; &lt;grids 2-50&gt; &lt;investment&gt;</code>"
        )]

    async def _create_grid(self, session: UserSession, args: List[str]) -> Replies:
        grid = validate_grid_args(args)
        request = GridCreateRequest(
            user_id=session.user_id,
            chain=session.settings.default_chain.value,
            token=grid.token,
            token_symbol=render.short(grid.token),
            lower_price=grid.lower,
            upper_price=grid.upper,
            grid_count=grid.grids,
            investment_amount=grid.investment,
        )
        result = await self.engine.create_grid(request)
        if not result.ok:
            return [render.error_reply(result.error, "Grid creation")]
        return [render.grid_created(grid.token, _as_dict(result.data))]

    async def _cmd_ai(self, session: UserSession, args: List[str]) -> Replies:
        if args:
            return await self._ask_ai(session, " ".join(args))
        session.await_input(AwaitingInput.AI_CHAT)
        return [render.prompt("🤖 AI chat started. Ask anything; /cancel ends the chat.")]

    async def _ask_ai(self, session: UserSession, message: str) -> Replies:
        settings = session.settings
        context = {"chain": settings.default_chain.value, "preset": settings.preset.value}
        result = await self.ai.chat(session.user_id, message, context)
        if not result.ok:
            return [render.error_reply(result.error, "AI chat")]
        return [render.ai_reply(_as_dict(result.data))]

    # raw-text states: the text is consumed once, then back to idle

    async def _consume_token_check(self, session: UserSession, text: str) -> Replies:
        session.reset()
        return await self._security_report(session, text)

    async def _consume_import_wallet(self, session: UserSession, text: str) -> Replies:
        session.reset()
        parts = text.split()
        if len(parts) == 2:
            return await self._import_wallet(session, normalize_chain(parts[0]), parts[1])
        if len(parts) == 1:
            return await self._import_wallet(session, session.settings.default_chain, parts[0])
        raise UserInputError("Send <chain> <private_key> or only the private key")

    async def _consume_import_data(self, session: UserSession, text: str) -> Replies:
        session.reset()
        data_type, items = parse_import_payload(text)
        result = await self.engine.import_data(session.user_id, data_type, items)
        if not result.ok:
            return [render.error_reply(result.error, "Import")]
        return [render.import_result(data_type, _as_dict(result.data))]

    async def _consume_bundler_add(self, session: UserSession, text: str) -> Replies:
        session.reset()
        args = validate_bundler_args(text.split())
        request = BundleAddRequest(
            user_id=session.user_id,
            chain=session.settings.default_chain.value,
            tx_type=args.tx_type,
            token=args.token,
            amount=args.amount,
            slippage=session.settings.slippage,
            priority=args.priority,
        )
        result = await self.engine.bundler_add(request)
        if not result.ok:
            return [render.error_reply(result.error, "Bundler add")]
        return [render.bundle_queued(text, _as_dict(result.data))]

    async def _consume_whale_alert(self, session: UserSession, text: str) -> Replies:
        session.reset()
        return await self._create_whale_alert(session, text.split())

    async def _consume_grid(self, session: UserSession, text: str) -> Replies:
        session.reset()
        return await self._create_grid(session, text.split())

    async def _consume_ai_chat(self, session: UserSession, text: str) -> Replies:
        if not text:
            return [render.prompt("🤖 Ask a question, or /cancel to end the chat.")]
        return await self._ask_ai(session, text)
