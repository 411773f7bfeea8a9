import os
from typing import Awaitable, Callable, List, Optional

from telegram import BotCommand, InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from models.reply import Reply
from orchestrators.session_orchestrator import SessionOrchestrator
from services.intent_parser import COMMANDS
from utils.logger import logger_manager

logger = logger_manager.setup_logger(__name__)

# shown in the client's command menu
_MENU_COMMANDS = [
    ("start", "Main menu"),
    ("buy", "Buy a token"),
    ("sell", "Sell from a position"),
    ("positions", "Open positions"),
    ("wallet", "Wallets and balances"),
    ("settings", "Trading settings"),
    ("check", "Security check a token"),
    ("cancel", "Cancel pending input"),
    ("help", "All commands"),
]


def _markup(reply: Reply) -> Optional[InlineKeyboardMarkup]:
    if not reply.buttons:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(b.text, callback_data=b.data) for b in row] for row in reply.buttons]
    )


class TelegramBot:
    def __init__(
        self,
        token: str | None = None,
        orchestrator: SessionOrchestrator | None = None,
        on_shutdown: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.token = token or os.getenv("TELEGRAM_TOKEN")
        if not self.token:
            raise RuntimeError("TELEGRAM_TOKEN is not set")

        self.orchestrator = orchestrator or SessionOrchestrator()
        self._on_shutdown = on_shutdown

        self.application = (
            Application.builder()
            .token(self.token)
            .concurrent_updates(True)
            .post_init(self._post_init)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        self.application.add_handler(CommandHandler(list(COMMANDS), self.on_message))
        self.application.add_handler(CallbackQueryHandler(self.on_callback))
        # plain text plus commands the bot does not know
        self.application.add_handler(MessageHandler(filters.TEXT, self.on_message))
        self.application.add_error_handler(self.on_error)

    async def _post_init(self, application: Application) -> None:
        await application.bot.set_my_commands([BotCommand(name, desc) for name, desc in _MENU_COMMANDS])

    async def _post_shutdown(self, application: Application) -> None:
        if self._on_shutdown is not None:
            await self._on_shutdown()

    async def on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        user = update.effective_user
        if message is None or user is None or message.text is None:
            return
        replies = await self.orchestrator.on_text(user.id, message.text)
        await self._send(message, replies)

    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        await query.answer()
        replies = await self.orchestrator.on_callback(query.from_user.id, query.data or "")

        message = query.message if isinstance(query.message, Message) else None
        rest: List[Reply] = list(replies)
        if rest and rest[0].edit and message is not None:
            first = rest.pop(0)
            try:
                await query.edit_message_text(first.text, parse_mode=ParseMode.HTML, reply_markup=_markup(first))
            except BadRequest as e:
                if "message is not modified" not in str(e).lower():
                    logger.warning(f"edit failed, sending instead: {e}")
                    rest.insert(0, first)
        if message is not None:
            await self._send(message, rest)
        elif rest:
            await self._send_to_chat(context, query.from_user.id, rest)

    async def _send(self, message: Message, replies: List[Reply]) -> None:
        for reply in replies:
            await message.reply_text(reply.text, parse_mode=ParseMode.HTML, reply_markup=_markup(reply))

    async def _send_to_chat(self, context: ContextTypes.DEFAULT_TYPE, chat_id: int, replies: List[Reply]) -> None:
        for reply in replies:
            await context.bot.send_message(
                chat_id=chat_id, text=reply.text, parse_mode=ParseMode.HTML, reply_markup=_markup(reply)
            )

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"unhandled error for update {update}", exc_info=context.error)
        if isinstance(update, Update) and update.effective_chat is not None:
            try:
                await context.bot.send_message(
                    chat_id=update.effective_chat.id,
                    text="😵 Something went wrong on our side. Please try again.",
                )
            except Exception as e:
                logger.warning(f"could not deliver the apology: {e}")

    def run(self) -> None:
        logger.info("TelegramBot starting...")
        self.application.run_polling(allowed_updates=Update.ALL_TYPES)
