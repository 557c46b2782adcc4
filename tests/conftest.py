"""
Shared fixtures: a manual clock and timer backend, in-memory storage,
a recording notifier and fully wired engine/scheduler instances.
"""

from typing import Any

import pytest

from rehearsal.config.settings import Settings
from rehearsal.core.clock import ManualClock
from rehearsal.core.notifications import Notifier
from rehearsal.core.practice_scheduler import PracticeScheduler
from rehearsal.core.question_bank import QuestionSource
from rehearsal.core.session_engine import SessionEngine
from rehearsal.core.session_registry import SessionRegistry
from rehearsal.core.storage import InMemoryStorage
from rehearsal.core.timers import ManualTimerBackend, TimerTable
from rehearsal.models.question import (
    BehavioralDetails,
    Question,
    QuestionCategory,
    QuestionType,
    TechnicalDetails,
)
from rehearsal.models.scheduling import ReminderNotification
from rehearsal.models.session import SessionConfig


STAR = ["Situation", "Task", "Action", "Result"]

GOOD_ANSWER = (
    "In my previous role, our deployment process was slow and the team faced "
    "frequent release delays at work. I was responsible for finding a better "
    "approach, so I analyzed each manual step. I implemented an automated pipeline "
    "and documented the new workflow for everyone on the team. As a result, we "
    "increased efficiency by 30% and improved release reliability."
)


class FixedQuestionSource(QuestionSource):
    """Returns the same prepared questions for every session."""

    def __init__(self, questions: list[Question]):
        self.questions = questions
        self.calls: list[tuple[SessionConfig, int]] = []

    async def get_questions(self, config, count, context=None):
        self.calls.append((config, count))
        return [q.model_copy(deep=True) for q in self.questions[:count]]


class FailingQuestionSource(QuestionSource):
    async def get_questions(self, config, count, context=None):
        raise ConnectionError("question service unavailable")


class RecordingNotifier(Notifier):
    """Keeps every notification it is asked to deliver."""

    def __init__(self):
        self.sent: list[ReminderNotification] = []

    async def send(self, notification: ReminderNotification) -> None:
        self.sent.append(notification)


class FlakyStorage(InMemoryStorage):
    """In-memory storage whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_saves = False
        self.fail_collections: set[str] = set()

    async def save_session(self, session):
        if self.fail_saves:
            raise IOError("disk full")
        await super().save_session(session)

    async def save_record(self, collection, record_id, record):
        if collection in self.fail_collections:
            raise IOError("disk full")
        await super().save_record(collection, record_id, record)


def make_question(
    question_id: str,
    question_type: QuestionType = QuestionType.BEHAVIORAL,
    category: QuestionCategory = QuestionCategory.TEAMWORK,
    text: str = "Tell me about a time you improved a process at work.",
    expected_elements: list[str] | None = None,
    time_limit: int | None = 180,
) -> Question:
    if question_type in (QuestionType.BEHAVIORAL, QuestionType.SITUATIONAL):
        details: Any = BehavioralDetails()
    else:
        details = TechnicalDetails()
    return Question(
        id=question_id,
        type=question_type,
        category=category,
        text=text,
        expected_elements=STAR if expected_elements is None else expected_elements,
        time_limit=time_limit,
        details=details,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def timer_backend(clock) -> ManualTimerBackend:
    return ManualTimerBackend(clock)


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def questions() -> list[Question]:
    return [
        make_question("q1"),
        make_question(
            "q2",
            QuestionType.TECHNICAL,
            QuestionCategory.TECHNICAL_SKILLS,
            text="Explain how you would design a caching layer for a slow database.",
            expected_elements=["cache", "invalidation", "latency"],
        ),
        make_question(
            "q3",
            QuestionType.SITUATIONAL,
            QuestionCategory.PROBLEM_SOLVING,
            text="What would you do if a production outage happened during a release?",
            expected_elements=[],
        ),
    ]


@pytest.fixture
def question_source(questions) -> FixedQuestionSource:
    return FixedQuestionSource(questions)


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(
        question_categories=[QuestionCategory.TEAMWORK, QuestionCategory.TECHNICAL_SKILLS],
        duration=30,
    )


@pytest.fixture
def engine(storage, question_source, timer_backend, clock, settings) -> SessionEngine:
    return SessionEngine(
        storage=storage,
        question_source=question_source,
        registry=SessionRegistry(),
        timers=TimerTable(timer_backend),
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def scheduler(storage, notifier, timer_backend, clock, settings) -> PracticeScheduler:
    return PracticeScheduler(
        storage=storage,
        notifier=notifier,
        timers=TimerTable(timer_backend),
        clock=clock,
        settings=settings,
    )
