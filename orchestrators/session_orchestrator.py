# orchestrators/session_orchestrator.py
from __future__ import annotations

from typing import List, Optional

from controllers.flow_controller import RAW_TEXT_STATES, FlowController
from models.intent import Intent, TextIntent
from models.reply import Reply
from repositories.session_repository import InMemorySessionRepository, SessionRepository
from services import render_service as render
from services.intent_parser import parse_callback, parse_message
from utils.errors import OrchestratorError, UserInputError
from utils.logger import logger_manager

logger = logger_manager.setup_logger(__name__)


class SessionOrchestrator:
    """
    Entry point for every chat turn:
      - Parses text or button data into an intent.
      - Runs the turn under the user's lock so one user's events never interleave.
      - Turns user-correctable errors into replies instead of raising.
    Different users run fully in parallel.
    """
    def __init__(
        self,
        sessions: Optional[SessionRepository] = None,
        controller: Optional[FlowController] = None,
    ) -> None:
        self.sessions = sessions or InMemorySessionRepository()
        self.controller = controller or FlowController()

    async def on_text(self, user_id: int, text: str) -> List[Reply]:
        return await self._turn(user_id, text=text)

    async def on_callback(self, user_id: int, data: str) -> List[Reply]:
        return await self._turn(user_id, data=data)

    async def _turn(self, user_id: int, text: Optional[str] = None, data: Optional[str] = None) -> List[Reply]:
        async with self.sessions.lock(user_id):
            session = self.sessions.get_or_create(user_id)
            try:
                intent = parse_callback(data) if data is not None else self._parse(session.awaiting, text or "")
                replies = await self.controller.handle(session, intent)
            except OrchestratorError as e:
                logger.info(f"user {user_id}: {type(e).__name__}: {e.message}")
                replies = [render.user_error(e.message)]
            self.sessions.put(session)
            return replies

    @staticmethod
    def _parse(awaiting, text: str) -> Intent:
        try:
            return parse_message(text)
        except UserInputError:
            # raw-text states take any non-command text as is
            if awaiting in RAW_TEXT_STATES and not text.strip().startswith("/"):
                return TextIntent(raw=text)
            raise
