# main.py
from __future__ import annotations

import sys

from dotenv import load_dotenv

# .env must be loaded before the project modules read their os.getenv constants
load_dotenv()

import requests  # noqa: E402

from controllers.flow_controller import FlowController  # noqa: E402
from orchestrators.session_orchestrator import SessionOrchestrator  # noqa: E402
from repositories.session_repository import InMemorySessionRepository  # noqa: E402
from services.ai_chat_service import AIChatService  # noqa: E402
from services.backend_client import BackendClient  # noqa: E402
from services.engine_service import EngineService  # noqa: E402
from services.telegram_bot import TelegramBot  # noqa: E402
from utils.config import ENGINE_API_URL, get_config  # noqa: E402
from utils.logger import logger_manager  # noqa: E402

logger = logger_manager.setup_logger(__name__)

HEALTH_TIMEOUT_SEC = 5


def check_engine(base_url: str = ENGINE_API_URL) -> bool:
    """Probe ``GET /health`` once. An unreachable engine is logged, not fatal."""
    try:
        resp = requests.get(f"{base_url.rstrip('/')}/health", timeout=HEALTH_TIMEOUT_SEC)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Trading engine not reachable at {base_url}: {e}. Starting anyway.")
        return False
    logger.info(f"Trading engine healthy at {base_url}")
    return True


def build_bot() -> TelegramBot:
    engine_client = BackendClient()
    ai = AIChatService()
    controller = FlowController(engine=EngineService(engine_client), ai=ai, config=get_config())
    orchestrator = SessionOrchestrator(sessions=InMemorySessionRepository(), controller=controller)

    async def close_clients() -> None:
        await engine_client.aclose()
        await ai.client.aclose()

    return TelegramBot(orchestrator=orchestrator, on_shutdown=close_clients)


def main() -> int:
    check_engine()
    try:
        bot = build_bot()
    except RuntimeError as e:
        logger.error(str(e))
        return 1
    bot.run()
    logger.info("Bot stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
