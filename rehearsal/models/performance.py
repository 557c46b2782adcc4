"""
Performance models for Interview Rehearsal

Session-level dimension scores, historical performance records and
progress analytics.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from rehearsal.models.base import utc_now


class Dimension(str, Enum):
    """Named axes of response quality."""

    # Direct sub-scores of a response analysis
    CLARITY = "clarity"
    RELEVANCE = "relevance"
    DEPTH = "depth"
    COMMUNICATION = "communication"
    COMPLETENESS = "completeness"

    # Derived per question type
    TECHNICAL_ACCURACY = "technical_accuracy"
    BEHAVIORAL_COMPETENCY = "behavioral_competency"
    PROBLEM_SOLVING = "problem_solving"


BASE_DIMENSIONS: list[Dimension] = [
    Dimension.CLARITY,
    Dimension.RELEVANCE,
    Dimension.DEPTH,
    Dimension.COMMUNICATION,
    Dimension.COMPLETENESS,
]


class Trend(str, Enum):
    """Direction of a dimension across recent sessions."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class Timeframe(str, Enum):
    """History window for progress analytics."""

    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class DimensionScore(BaseModel):
    """Score for one dimension within a session."""

    dimension: Dimension
    score: float = Field(..., ge=0, le=100)
    trend: Trend = Trend.STABLE


class PerformanceScore(BaseModel):
    """Scored outcome of one completed session, kept as history."""

    session_id: str
    user_id: str
    overall_score: float = Field(..., ge=0, le=100)
    dimension_scores: list[DimensionScore] = Field(default_factory=list)
    improvement: float = 0
    ranking: str = "10th percentile"
    recommendations: list[str] = Field(default_factory=list)
    difficulty: str = "medium"
    created_at: datetime = Field(default_factory=utc_now)

    def score_for(self, dimension: Dimension) -> float:
        for ds in self.dimension_scores:
            if ds.dimension == dimension:
                return ds.score
        return 0.0


class SessionAnalysis(BaseModel):
    """Running snapshot of a session's performance."""

    overall_score: float = Field(default=0, ge=0, le=100)
    dimension_scores: list[DimensionScore] = Field(default_factory=list)
    improvement: float = 0
    ranking: str | None = None
    time_spent: float = Field(default=0, ge=0, description="Active minutes")
    questions_answered: int = Field(default=0, ge=0)
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ProgressAnalytics(BaseModel):
    """Aggregate view over a user's historical sessions."""

    user_id: str
    timeframe: Timeframe
    total_sessions: int = 0
    average_score: float = 0
    highest_score: float = 0
    lowest_score: float = 0
    improvement_rate: float = 0
    consistency_score: float = 100
    dimension_trends: dict[str, float] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """Summary handed back when a session completes."""

    session_id: str
    user_id: str
    overall_score: float = Field(default=0, ge=0, le=100)
    ranking: str | None = None
    questions_answered: int = 0
    total_questions: int = 0
    completion_rate: float = Field(default=0, ge=0, le=100)
    duration_minutes: float = 0
    highlights: list[DimensionScore] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    performance: PerformanceScore | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
