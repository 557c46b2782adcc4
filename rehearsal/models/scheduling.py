"""
Scheduling models for Interview Rehearsal

Scheduled practice sessions, reminders and reminder preferences,
streaks and practice recommendations.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import Field, field_validator

from rehearsal.models.base import ValidatedModel, utc_now
from rehearsal.models.session import SessionConfig


class ScheduleStatus(str, Enum):
    """Lifecycle of a scheduled session."""

    SCHEDULED = "scheduled"
    REMINDED = "reminded"
    STARTED = "started"      # Terminal
    MISSED = "missed"        # Terminal
    CANCELLED = "cancelled"  # Terminal


OPEN_SCHEDULE_STATUSES = {ScheduleStatus.SCHEDULED, ScheduleStatus.REMINDED}


class ReminderSettings(ValidatedModel):
    """When to remind the user ahead of a scheduled session."""

    enabled: bool = True
    lead_times: list[int] = Field(
        default_factory=lambda: [15, 5],
        max_length=10,
        description="Minutes before the session to send a reminder"
    )

    @field_validator("lead_times")
    @classmethod
    def _check_lead_times(cls, value: list[int]) -> list[int]:
        if any(minutes <= 0 or minutes > 7 * 24 * 60 for minutes in value):
            raise ValueError("Lead times must be between 1 minute and 7 days")
        return sorted(set(value), reverse=True)


class ScheduledSession(ValidatedModel):
    """A practice session booked for the future."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    user_id: str = Field(..., min_length=1)
    scheduled_time: datetime
    config: SessionConfig
    reminder_settings: ReminderSettings = Field(default_factory=ReminderSettings)
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    notes: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_SCHEDULE_STATUSES


class NotificationKind(str, Enum):
    """What a notification is about."""

    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    STREAK = "streak"
    ACHIEVEMENT = "achievement"


class ReminderFrequency(str, Enum):
    """How often to prompt a user who has nothing scheduled."""

    DAILY = "daily"
    WEEKLY = "weekly"
    NONE = "none"


PROMPT_WINDOWS: dict[ReminderFrequency, timedelta] = {
    ReminderFrequency.DAILY: timedelta(days=1),
    ReminderFrequency.WEEKLY: timedelta(days=7),
}


class ReminderPreference(ValidatedModel):
    """A user's choice of automatic practice prompts."""

    user_id: str = Field(..., min_length=1)
    frequency: ReminderFrequency = ReminderFrequency.NONE
    last_prompted_at: datetime | None = None
    updated_at: datetime = Field(default_factory=utc_now)


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReminderNotification(ValidatedModel):
    """A notification the scheduler has decided to send."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    scheduled_session_id: str | None = None
    kind: NotificationKind
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    due_at: datetime
    lead_minutes: int | None = None
    sent: bool = False
    sent_at: datetime | None = None


class PracticeStreak(ValidatedModel):
    """Consecutive calendar days with at least one completed session."""

    user_id: str
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_practice_date: date | None = None
    streak_start_date: date | None = None
    total_sessions: int = Field(default=0, ge=0)


class RecommendationType(str, Enum):
    FREQUENCY = "frequency"
    TIMING = "timing"
    FOCUS = "focus"
    DIFFICULTY = "difficulty"


class SessionRecommendation(ValidatedModel):
    """A suggestion for the user's next practice session."""

    type: RecommendationType
    title: str
    description: str
    suggested_config: dict[str, Any] | None = None
    priority: int = Field(default=5, ge=1, le=10)
    reasoning: list[str] = Field(default_factory=list)
