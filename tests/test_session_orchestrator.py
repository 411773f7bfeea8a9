"""Turn handling: error replies, per-user serialization, raw-text fallback."""
import asyncio

import pytest

from conftest import SOL_TOKEN, USER_ID
from enums.awaiting_input import AwaitingInput
from models.reply import Reply
from models.settings import TradingSettings
from orchestrators.session_orchestrator import SessionOrchestrator
from repositories.session_repository import InMemorySessionRepository


@pytest.fixture
def sessions():
    return InMemorySessionRepository(settings_factory=TradingSettings)


@pytest.fixture
def orchestrator(sessions, controller):
    return SessionOrchestrator(sessions=sessions, controller=controller)


class SlowController:
    """Records when each turn starts and ends."""

    def __init__(self):
        self.events = []

    async def handle(self, session, intent):
        self.events.append(("start", session.user_id, intent.raw))
        await asyncio.sleep(0.02)
        self.events.append(("end", session.user_id, intent.raw))
        return [Reply(intent.raw)]


@pytest.mark.asyncio
async def test_validation_error_becomes_reply(orchestrator, sessions, funded):
    await orchestrator.on_text(USER_ID, "/buy")
    await orchestrator.on_text(USER_ID, SOL_TOKEN)

    replies = await orchestrator.on_text(USER_ID, "5")

    assert replies[0].text.startswith("⚠️ Insufficient balance")
    session = sessions.get(USER_ID)
    assert session.awaiting is AwaitingInput.CUSTOM_AMOUNT
    assert funded.calls("POST", "/api/buy") == []


@pytest.mark.asyncio
async def test_bad_arity_answers_with_usage(orchestrator, stub):
    replies = await orchestrator.on_text(USER_ID, "/sell onlyone")

    assert "Usage: /sell" in replies[0].text
    assert stub.requests == []


@pytest.mark.asyncio
async def test_unknown_command(orchestrator):
    replies = await orchestrator.on_text(USER_ID, "/moon")
    assert "Unknown command /moon" in replies[0].text


@pytest.mark.asyncio
async def test_button_press_goes_through_same_session(orchestrator, sessions):
    await orchestrator.on_callback(USER_ID, "preset:snipe")
    assert sessions.get(USER_ID).settings.slippage == 15


@pytest.mark.asyncio
async def test_raw_text_state_takes_unparseable_text(orchestrator, sessions, stub):
    stub.on("POST", "/api/chat", json={"response": "Hard to say."})
    await orchestrator.on_text(USER_ID, "/ai")

    replies = await orchestrator.on_text(USER_ID, "maybe buy later")

    assert stub.last_body("POST", "/api/chat")["message"] == "maybe buy later"
    assert "Hard to say." in replies[0].text


@pytest.mark.asyncio
async def test_same_text_outside_raw_state_is_an_error(orchestrator, stub):
    replies = await orchestrator.on_text(USER_ID, "maybe buy later")

    assert replies[0].text.startswith("⚠️")
    assert stub.requests == []


@pytest.mark.asyncio
async def test_turns_of_one_user_never_interleave(sessions):
    controller = SlowController()
    orchestrator = SessionOrchestrator(sessions=sessions, controller=controller)

    await asyncio.gather(orchestrator.on_text(1, "first"), orchestrator.on_text(1, "second"))

    kinds = [kind for kind, _, _ in controller.events]
    assert kinds == ["start", "end", "start", "end"]


@pytest.mark.asyncio
async def test_different_users_run_in_parallel(sessions):
    controller = SlowController()
    orchestrator = SessionOrchestrator(sessions=sessions, controller=controller)

    await asyncio.gather(orchestrator.on_text(1, "a"), orchestrator.on_text(2, "b"))

    kinds = [kind for kind, _, _ in controller.events]
    assert kinds[:2] == ["start", "start"]
    assert len(sessions) == 2
