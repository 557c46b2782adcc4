"""
Practice session models for Interview Rehearsal

PracticeSession is the aggregate for one timed practice interview: it
holds the questions and responses and guards the session state machine.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, Field, StringConstraints

from rehearsal.exceptions import InvalidStateError, QuestionMismatchError, ValidationError
from rehearsal.models.base import ValidatedModel, utc_now
from rehearsal.models.evaluation import PracticeResponse
from rehearsal.models.performance import SessionAnalysis, SessionSummary
from rehearsal.models.question import Question, QuestionCategory, QuestionType


class SessionStatus(str, Enum):
    """Session state machine states."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"  # Terminal


class SessionDifficulty(str, Enum):
    """Difficulty requested for a session."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    ADAPTIVE = "adaptive"


class FeedbackStyle(str, Enum):
    """Tone of the feedback shown to the user."""

    GENTLE = "gentle"
    DIRECT = "direct"
    TECHNICAL_FOCUSED = "technical-focused"
    BEHAVIORAL_FOCUSED = "behavioral-focused"


FocusArea = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class SessionConfig(ValidatedModel):
    """User's practice session configuration."""

    question_categories: list[QuestionCategory] = Field(
        ..., min_length=1,
        description="Categories to draw questions from"
    )
    difficulty: SessionDifficulty = Field(default=SessionDifficulty.MEDIUM)
    duration: int = Field(
        default=30, ge=5, le=120,
        description="Session length in minutes"
    )
    focus_areas: list[FocusArea] = Field(default_factory=list, max_length=10)
    voice_enabled: bool = False
    feedback_style: FeedbackStyle = Field(default=FeedbackStyle.DIRECT)


class PracticeSession(ValidatedModel):
    """
    One timed practice interview.

    States:
        ACTIVE ⇄ PAUSED → COMPLETED (terminal; ACTIVE → COMPLETED also allowed)

    Active time is tracked separately from wall-clock time: time spent
    paused never counts toward the session's duration budget.
    """

    VALID_TRANSITIONS: ClassVar[dict[SessionStatus, list[SessionStatus]]] = {
        SessionStatus.ACTIVE: [SessionStatus.PAUSED, SessionStatus.COMPLETED],
        SessionStatus.PAUSED: [SessionStatus.ACTIVE, SessionStatus.COMPLETED],
        SessionStatus.COMPLETED: [],
    }

    # Identification
    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    user_id: str = Field(..., min_length=1)
    scheduled_session_id: str | None = None

    # Setup
    config: SessionConfig

    # Questions & Responses
    questions: list[Question] = Field(default_factory=list)
    responses: list[PracticeResponse] = Field(default_factory=list)
    analysis: SessionAnalysis = Field(default_factory=SessionAnalysis)

    # State & timing
    status: SessionStatus = SessionStatus.ACTIVE
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = None
    active_seconds: float = Field(default=0, ge=0)
    last_resumed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        user_id: str,
        config: SessionConfig,
        now: datetime | None = None,
        scheduled_session_id: str | None = None,
    ) -> "PracticeSession":
        """Open a new active session starting at ``now``."""
        now = now or utc_now()
        session = cls(
            user_id=user_id,
            config=config,
            start_time=now,
            last_resumed_at=now,
            scheduled_session_id=scheduled_session_id,
        )
        session.validate()
        return session

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    def _ensure_mutable(self, action: str) -> None:
        if self.is_complete():
            raise InvalidStateError(f"Cannot {action}: session {self.id} is completed")

    def _transition(self, new_status: SessionStatus) -> None:
        valid_next = self.VALID_TRANSITIONS.get(self.status, [])
        if new_status not in valid_next:
            raise InvalidStateError(
                f"Invalid transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def _close_active_stretch(self, now: datetime) -> None:
        if self.last_resumed_at is not None:
            self.active_seconds += max(0.0, (now - self.last_resumed_at).total_seconds())
            self.last_resumed_at = None

    def pause(self, now: datetime | None = None) -> None:
        """ACTIVE → PAUSED, banking the active time consumed so far."""
        self._ensure_mutable("pause")
        now = now or utc_now()
        self._transition(SessionStatus.PAUSED)
        self._close_active_stretch(now)

    def resume(self, now: datetime | None = None) -> None:
        """PAUSED → ACTIVE, opening a new active stretch."""
        self._ensure_mutable("resume")
        self._transition(SessionStatus.ACTIVE)
        self.last_resumed_at = now or utc_now()

    def complete(self, now: datetime | None = None) -> None:
        """ACTIVE or PAUSED → COMPLETED."""
        self._ensure_mutable("complete")
        now = now or utc_now()
        self._close_active_stretch(now)
        self._transition(SessionStatus.COMPLETED)
        self.end_time = max(now, self.start_time)

    # =========================================================================
    # QUESTIONS & RESPONSES
    # =========================================================================

    def add_question(self, question: Question | dict[str, Any]) -> Question:
        self._ensure_mutable("add a question")
        if isinstance(question, dict):
            question = Question.build(**question)
        if any(q.id == question.id for q in self.questions):
            raise ValidationError(f"Duplicate question id: {question.id}")
        self.questions.append(question)
        return question

    def add_response(self, response: PracticeResponse) -> PracticeResponse:
        """
        Append a response to the current question.

        Raises:
            InvalidStateError: Session is paused or completed
            QuestionMismatchError: Response is not for the current question
        """
        self._ensure_mutable("add a response")
        if self.status != SessionStatus.ACTIVE:
            raise InvalidStateError(f"Cannot add a response: session {self.id} is {self.status.value}")

        current = self.get_current_question()
        if current is None or response.question_id != current.id:
            raise QuestionMismatchError(current.id if current else None, response.question_id)

        if response.session_id != self.id:
            response = response.model_copy(update={"session_id": self.id})
        self.responses.append(response)
        return response

    def get_current_question(self) -> Question | None:
        index = len(self.responses)
        if index < len(self.questions):
            return self.questions[index]
        return None

    def get_next_question(self) -> Question | None:
        index = len(self.responses) + 1
        if index < len(self.questions):
            return self.questions[index]
        return None

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def get_questions_by_category(self, category: QuestionCategory) -> list[Question]:
        return [q for q in self.questions if q.category == category]

    def get_questions_by_type(self, question_type: QuestionType) -> list[Question]:
        return [q for q in self.questions if q.type == question_type]

    def scored_pairs(self) -> list[tuple[Question, PracticeResponse]]:
        """(question, response) pairs for responses that carry an analysis."""
        by_id = {q.id: q for q in self.questions}
        return [
            (by_id[r.question_id], r)
            for r in self.responses
            if r.analysis is not None and r.question_id in by_id
        ]

    # =========================================================================
    # PROGRESS & TIMING
    # =========================================================================

    def get_progress(self) -> dict[str, int]:
        completed = len(self.responses)
        total = len(self.questions)
        percentage = round(completed / total * 100) if total else 0
        return {"completed": completed, "total": total, "percentage": percentage}

    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def get_completion_rate(self) -> float:
        if not self.questions:
            return 0.0
        return len(self.responses) / len(self.questions) * 100

    def get_average_response_time(self) -> float:
        if not self.responses:
            return 0.0
        return sum(r.response_time for r in self.responses) / len(self.responses)

    def active_seconds_at(self, now: datetime | None = None) -> float:
        """Active time consumed, including the currently open stretch."""
        total = self.active_seconds
        if self.status == SessionStatus.ACTIVE and self.last_resumed_at is not None:
            now = now or utc_now()
            total += max(0.0, (now - self.last_resumed_at).total_seconds())
        return total

    def remaining_seconds(self, now: datetime | None = None) -> float:
        return max(0.0, self.config.duration * 60 - self.active_seconds_at(now))

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def invariant_errors(self) -> list[str]:
        errors = []

        if len(self.responses) > len(self.questions):
            errors.append(
                f"Session has {len(self.responses)} responses but only {len(self.questions)} questions"
            )

        if self.status == SessionStatus.COMPLETED and self.end_time is None:
            errors.append("Completed session must have an end time")
        if self.status != SessionStatus.COMPLETED and self.end_time is not None:
            errors.append("Only a completed session may have an end time")
        if self.end_time is not None and self.end_time < self.start_time:
            errors.append("End time cannot be before start time")

        question_ids = [q.id for q in self.questions]
        if len(set(question_ids)) != len(question_ids):
            errors.append("Question ids must be unique")

        for index, response in enumerate(self.responses):
            if response.session_id != self.id:
                errors.append(f"Response {response.id} belongs to session {response.session_id}")
            if index < len(self.questions) and response.question_id != self.questions[index].id:
                errors.append(
                    f"Response {response.id} answers {response.question_id}, "
                    f"expected {self.questions[index].id}"
                )

        return errors

    def validate(self) -> None:
        """
        Check every field constraint and structural invariant.

        Raises:
            ValidationError: Listing all problems found
        """
        errors = self.field_errors() + self.invariant_errors()
        if errors:
            raise ValidationError(errors)


class SessionProgress(BaseModel):
    """Pull-based progress view of a session."""

    session_id: str
    status: SessionStatus
    current_question: Question | None = None
    next_question: Question | None = None
    progress: dict[str, int]
    time_elapsed: float = Field(..., ge=0, description="Active minutes")
    estimated_time_remaining: float = Field(..., ge=0, description="Minutes")


class SubmissionResult(BaseModel):
    """Outcome of submitting one response."""

    response: PracticeResponse
    next_question: Question | None = None
    session_complete: bool = False
    summary: SessionSummary | None = None
