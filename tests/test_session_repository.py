"""Tests for session state and the in-memory session repository."""
import asyncio
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import SOL_TOKEN
from enums.awaiting_input import AwaitingInput
from enums.chain import Chain
from models.session import MAX_REJECTED_BUYS, AmountEntryState, InputState, UserSession
from models.settings import TradingSettings
from repositories.session_repository import InMemorySessionRepository


def _consistent(session: UserSession) -> bool:
    return (session.pending_buy is not None) == (session.awaiting is AwaitingInput.CUSTOM_AMOUNT)


def test_new_session_is_idle():
    session = UserSession(user_id=1)
    assert session.awaiting is AwaitingInput.IDLE
    assert session.pending_buy is None


def test_amount_entry_carries_pending_buy():
    session = UserSession(user_id=1)

    pending = session.begin_amount_entry(SOL_TOKEN, Chain.SOLANA)

    assert session.awaiting is AwaitingInput.CUSTOM_AMOUNT
    assert session.pending_buy == pending
    assert _consistent(session)


@pytest.mark.parametrize("awaiting", [a for a in AwaitingInput if a is not AwaitingInput.CUSTOM_AMOUNT])
def test_other_states_never_carry_pending_buy(awaiting):
    session = UserSession(user_id=1)
    session.begin_amount_entry(SOL_TOKEN, Chain.SOLANA)

    session.await_input(awaiting)

    assert session.pending_buy is None
    assert _consistent(session)


def test_reset_clears_pending_buy():
    session = UserSession(user_id=1)
    session.begin_amount_entry(SOL_TOKEN, Chain.SOLANA)
    session.reset()
    assert session.pending_buy is None and session.awaiting is AwaitingInput.IDLE


def test_amount_entry_without_pending_is_unrepresentable():
    with pytest.raises(ValueError):
        UserSession(user_id=1).await_input(AwaitingInput.CUSTOM_AMOUNT)
    with pytest.raises(ValidationError):
        InputState(awaiting=AwaitingInput.CUSTOM_AMOUNT)
    with pytest.raises(ValidationError):
        UserSession(user_id=1, state={"awaiting": "custom_amount"})


def test_state_round_trips_through_dump():
    session = UserSession(user_id=1)
    session.begin_amount_entry(SOL_TOKEN, Chain.BSC)

    restored = UserSession.model_validate(session.model_dump())

    assert isinstance(restored.state, AmountEntryState)
    assert restored.pending_buy.chain is Chain.BSC


def test_get_or_create_is_lazy_and_stable():
    repo = InMemorySessionRepository(settings_factory=TradingSettings)
    assert repo.get(7) is None

    first = repo.get_or_create(7)
    second = repo.get_or_create(7)

    assert first is second
    assert len(repo) == 1


def test_sessions_are_isolated_per_user():
    repo = InMemorySessionRepository(settings_factory=TradingSettings)
    a = repo.get_or_create(1)
    b = repo.get_or_create(2)

    a.begin_amount_entry(SOL_TOKEN, Chain.SOLANA)

    assert b.pending_buy is None


def test_delete_discards_session():
    repo = InMemorySessionRepository(settings_factory=TradingSettings)
    repo.get_or_create(3)
    repo.delete(3)
    repo.delete(3)
    assert repo.get(3) is None


def test_new_sessions_use_configured_defaults():
    repo = InMemorySessionRepository()
    assert repo.get_or_create(9).settings.slippage == 10


@pytest.mark.asyncio
async def test_lock_serializes_one_user_only():
    repo = InMemorySessionRepository(settings_factory=TradingSettings)
    assert repo.lock(1) is repo.lock(1)
    assert repo.lock(1) is not repo.lock(2)

    events = []

    async def turn(user_id, name):
        async with repo.lock(user_id):
            events.append(f"{name}+")
            await asyncio.sleep(0.01)
            events.append(f"{name}-")

    await asyncio.gather(turn(1, "a"), turn(1, "b"))
    assert events in (["a+", "a-", "b+", "b-"], ["b+", "b-", "a+", "a-"])


def test_rejected_buys_are_bounded_and_survive_reset():
    session = UserSession(user_id=1)
    keys = [session.remember_rejection(SOL_TOKEN, Chain.SOLANA, Decimal(i + 1)) for i in range(MAX_REJECTED_BUYS + 2)]

    session.reset()

    assert list(session.rejected_buys) == keys[2:]
    assert session.rejected_buys[keys[-1]].amount == Decimal(MAX_REJECTED_BUYS + 2)
    assert all(len(k.encode()) <= 16 for k in keys)


@pytest.mark.asyncio
async def test_delete_drops_an_idle_lock_only():
    repo = InMemorySessionRepository(settings_factory=TradingSettings)
    idle = repo.lock(1)
    held = repo.lock(2)
    repo.get_or_create(1)
    repo.get_or_create(2)

    async with held:
        repo.delete(2)
        assert repo.lock(2) is held
    repo.delete(1)

    assert repo.lock(1) is not idle
