"""
Storage collaborator interface and in-memory reference adapter.

The core only issues calls through StorageBackend; persistence itself is
owned by whichever adapter is plugged in.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

from rehearsal.exceptions import DependencyError, RehearsalError
from rehearsal.models.session import PracticeSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Collections used by the core
SESSIONS = "sessions"
SCHEDULED_SESSIONS = "scheduled_sessions"
REMINDERS = "reminders"
PRACTICE_STREAKS = "practice_streaks"
PERFORMANCE_SCORES = "performance_scores"
REMINDER_PREFERENCES = "reminder_preferences"


class StorageBackend(ABC):
    """Async storage interface used by the engine and scheduler."""

    # Sessions

    @abstractmethod
    async def save_session(self, session: PracticeSession) -> None:
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> PracticeSession | None:
        ...

    @abstractmethod
    async def get_user_sessions(self, user_id: str) -> list[PracticeSession]:
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        ...

    # Generic records

    @abstractmethod
    async def save_record(self, collection: str, record_id: str, record: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def delete_record(self, collection: str, record_id: str) -> bool:
        ...

    @abstractmethod
    async def query(self, collection: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Return records of ``collection`` matching every filter.

        A filter value is either a literal (equality) or a dict of
        operators: $lt, $lte, $gt, $gte, $ne, $in.
        """


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$lt": lambda value, operand: value is not None and value < operand,
    "$lte": lambda value, operand: value is not None and value <= operand,
    "$gt": lambda value, operand: value is not None and value > operand,
    "$gte": lambda value, operand: value is not None and value >= operand,
    "$ne": lambda value, operand: value != operand,
    "$in": lambda value, operand: value in operand,
}


def _matches(record: dict[str, Any], filters: dict[str, Any]) -> bool:
    for key, condition in filters.items():
        value = record.get(key)
        if isinstance(condition, dict):
            for op, operand in condition.items():
                if op not in OPERATORS:
                    raise ValueError(f"Unsupported filter operator: {op}")
                if not OPERATORS[op](value, operand):
                    return False
        elif value != condition:
            return False
    return True


class InMemoryStorage(StorageBackend):
    """
    Dict-backed storage for tests and local runs.

    Records are deep-copied on the way in and out, so callers never
    alias stored state.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def save_session(self, session: PracticeSession) -> None:
        self._collection(SESSIONS)[session.id] = session.model_dump()

    async def get_session(self, session_id: str) -> PracticeSession | None:
        data = self._collection(SESSIONS).get(session_id)
        if data is None:
            return None
        return PracticeSession.model_validate(copy.deepcopy(data))

    async def get_user_sessions(self, user_id: str) -> list[PracticeSession]:
        sessions = [
            PracticeSession.model_validate(copy.deepcopy(data))
            for data in self._collection(SESSIONS).values()
            if data["user_id"] == user_id
        ]
        return sorted(sessions, key=lambda s: s.start_time)

    async def delete_session(self, session_id: str) -> bool:
        return self._collection(SESSIONS).pop(session_id, None) is not None

    async def save_record(self, collection: str, record_id: str, record: dict[str, Any]) -> None:
        self._collection(collection)[record_id] = copy.deepcopy(record)

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        record = self._collection(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def delete_record(self, collection: str, record_id: str) -> bool:
        return self._collection(collection).pop(record_id, None) is not None

    async def query(self, collection: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        filters = filters or {}
        return [
            copy.deepcopy(record)
            for record in self._collection(collection).values()
            if _matches(record, filters)
        ]


async def storage_call(action: str, awaitable: Awaitable[T]) -> T:
    """
    Await a storage operation, wrapping collaborator failures.

    Raises:
        DependencyError: Retryable wrapper around the storage failure
    """
    try:
        return await awaitable
    except RehearsalError:
        raise
    except Exception as e:
        logger.error(f"Storage failure during {action}: {e}")
        raise DependencyError("storage", e, retryable=True) from e
