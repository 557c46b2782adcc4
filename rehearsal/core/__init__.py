"""
Core business logic modules for Interview Rehearsal

Contains:
- Session Engine: practice session lifecycle and timing
- Response Scorer: rule-based scoring of single answers
- Performance Tracker: session scores, trends and analytics
- Practice Scheduler: streaks, scheduled sessions and reminders
- Question Bank: built-in question source
"""

from rehearsal.core.session_engine import SessionEngine
from rehearsal.core.response_scorer import ResponseScorer
from rehearsal.core.performance_tracker import PerformanceTracker
from rehearsal.core.practice_scheduler import PracticeScheduler
from rehearsal.core.question_bank import QuestionSource, StaticQuestionBank
from rehearsal.core.storage import InMemoryStorage, StorageBackend

__all__ = [
    "SessionEngine",
    "ResponseScorer",
    "PerformanceTracker",
    "PracticeScheduler",
    "QuestionSource",
    "StaticQuestionBank",
    "InMemoryStorage",
    "StorageBackend",
]
