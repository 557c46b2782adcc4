"""
Data models and schemas for Interview Rehearsal

Contains Pydantic models for:
- Practice sessions and their configuration
- Questions
- Response analysis
- Performance scores and analytics
- Scheduling, reminders and streaks
"""

from rehearsal.models.question import (
    Question,
    QuestionType,
    QuestionCategory,
    QuestionDifficulty,
)
from rehearsal.models.evaluation import ResponseAnalysis, PracticeResponse
from rehearsal.models.performance import (
    Dimension,
    DimensionScore,
    PerformanceScore,
    ProgressAnalytics,
    SessionAnalysis,
    SessionSummary,
    Timeframe,
    Trend,
)
from rehearsal.models.session import (
    PracticeSession,
    SessionConfig,
    SessionDifficulty,
    SessionStatus,
    FeedbackStyle,
)
from rehearsal.models.scheduling import (
    PracticeStreak,
    ReminderNotification,
    ReminderSettings,
    ScheduledSession,
    ScheduleStatus,
    SessionRecommendation,
)
from rehearsal.models.events import SessionEvent, SessionEventType

__all__ = [
    # Question
    "Question",
    "QuestionType",
    "QuestionCategory",
    "QuestionDifficulty",
    # Evaluation
    "ResponseAnalysis",
    "PracticeResponse",
    # Performance
    "Dimension",
    "DimensionScore",
    "PerformanceScore",
    "ProgressAnalytics",
    "SessionAnalysis",
    "SessionSummary",
    "Timeframe",
    "Trend",
    # Session
    "PracticeSession",
    "SessionConfig",
    "SessionDifficulty",
    "SessionStatus",
    "FeedbackStyle",
    # Scheduling
    "PracticeStreak",
    "ReminderNotification",
    "ReminderSettings",
    "ScheduledSession",
    "ScheduleStatus",
    "SessionRecommendation",
    # Events
    "SessionEvent",
    "SessionEventType",
]
