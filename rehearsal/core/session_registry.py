"""
Registry of live practice sessions.

Holds the in-memory aggregate of every session that is currently being
run, plus one asyncio.Lock per session so that mutations of the same
session are serialised while different sessions proceed independently.
"""

import asyncio
import logging

from rehearsal.models.session import PracticeSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Live sessions keyed by id, each with its own lock."""

    def __init__(self):
        self._sessions: dict[str, PracticeSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def register(self, session: PracticeSession) -> None:
        self._sessions[session.id] = session
        self._locks.setdefault(session.id, asyncio.Lock())

    def replace(self, session: PracticeSession) -> None:
        """Swap in a new version of an already registered session."""
        self._sessions[session.id] = session

    def get(self, session_id: str) -> PracticeSession | None:
        return self._sessions.get(session_id)

    def unregister(self, session_id: str) -> PracticeSession | None:
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None)

    def lock(self, session_id: str) -> asyncio.Lock:
        """The session's lock, created on first use."""
        return self._locks.setdefault(session_id, asyncio.Lock())

    def discard_lock(self, session_id: str) -> None:
        """Drop the lock of an id that turned out not to name a live session."""
        if session_id not in self._sessions:
            self._locks.pop(session_id, None)

    def has_lock(self, session_id: str) -> bool:
        return session_id in self._locks

    def for_user(self, user_id: str) -> list[PracticeSession]:
        return [s for s in self._sessions.values() if s.user_id == user_id]

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
