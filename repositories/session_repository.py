"""
Session repository for per-user chat state.

Sessions live in process memory and are lost on restart; wallets and
positions survive only because the trading engine owns them. Callers mutate a
session under ``lock(user_id)`` so two updates for one user never interleave.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from models.session import UserSession
from models.settings import TradingSettings


class SessionRepository(ABC):
    """Storage interface the orchestrator depends on."""

    @abstractmethod
    def get(self, user_id: int) -> Optional[UserSession]: ...

    @abstractmethod
    def put(self, session: UserSession) -> None: ...

    @abstractmethod
    def delete(self, user_id: int) -> None: ...

    @abstractmethod
    def lock(self, user_id: int) -> asyncio.Lock: ...

    def get_or_create(self, user_id: int) -> UserSession:
        session = self.get(user_id)
        if session is None:
            session = self.new_session(user_id)
            self.put(session)
        return session

    def new_session(self, user_id: int) -> UserSession:
        return UserSession(user_id=user_id, settings=TradingSettings.from_config())


class InMemorySessionRepository(SessionRepository):
    def __init__(self, settings_factory: Callable[[], TradingSettings] | None = None) -> None:
        self._sessions: Dict[int, UserSession] = {}
        # one lock per user seen; delete() drops it with the session
        self._locks: Dict[int, asyncio.Lock] = {}
        self._settings_factory = settings_factory or TradingSettings.from_config

    def get(self, user_id: int) -> Optional[UserSession]:
        return self._sessions.get(user_id)

    def put(self, session: UserSession) -> None:
        self._sessions[session.user_id] = session

    def delete(self, user_id: int) -> None:
        self._sessions.pop(user_id, None)
        lock = self._locks.get(user_id)
        # a held lock stays so its waiters keep serializing on the same object
        if lock is not None and not lock.locked():
            del self._locks[user_id]

    def lock(self, user_id: int) -> asyncio.Lock:
        # setdefault has no await point, so two tasks cannot create two locks
        return self._locks.setdefault(user_id, asyncio.Lock())

    def new_session(self, user_id: int) -> UserSession:
        return UserSession(user_id=user_id, settings=self._settings_factory())

    def __len__(self) -> int:
        return len(self._sessions)
