"""
Evaluation models for Interview Rehearsal

Defines the per-response analysis produced by the response scorer.
"""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from rehearsal.models.base import ValidatedModel, utc_now


class ClarityMetrics(BaseModel):
    """How clearly the answer is organised."""

    score: float = Field(default=0, ge=0, le=100)
    grammar_issues: int = Field(default=0, ge=0)
    structure_rating: float = Field(default=0, ge=0, le=10)
    coherence_rating: float = Field(default=0, ge=0, le=10)


class RelevanceMetrics(BaseModel):
    """How closely the answer addresses the question."""

    score: float = Field(default=0, ge=0, le=100)
    keyword_match: float = Field(default=0, ge=0, le=100)
    topic_alignment: float = Field(default=0, ge=0, le=100)
    answer_completeness: float = Field(default=0, ge=0, le=100)


class DepthMetrics(BaseModel):
    """Substance behind the answer."""

    score: float = Field(default=0, ge=0, le=100)
    technical_accuracy: float = Field(default=0, ge=0, le=100)
    example_quality: float = Field(default=0, ge=0, le=100)
    insight_level: float = Field(default=0, ge=0, le=100)


class CommunicationMetrics(BaseModel):
    """Delivery signals estimated from the text."""

    score: float = Field(default=0, ge=0, le=100)
    confidence: float = Field(default=0, ge=0, le=100)
    pace: float = Field(default=0, ge=0, description="Words per minute")
    filler_words: int = Field(default=0, ge=0)
    clarity: float = Field(default=0, ge=0, le=100)


class CompletenessMetrics(BaseModel):
    """Coverage of the question's expected elements."""

    score: float = Field(default=0, ge=0, le=100)
    expected_elements_covered: float = Field(default=0, ge=0, le=100)
    missing_elements: list[str] = Field(default_factory=list)
    additional_value: float = Field(default=0, ge=0, le=100)


EMPTY_RESPONSE_SUGGESTION = "Please provide a response to receive analysis."
EMPTY_RESPONSE_WEAKNESS = "No response provided"


class ResponseAnalysis(BaseModel):
    """Complete analysis of one practice response."""

    clarity: ClarityMetrics = Field(default_factory=ClarityMetrics)
    relevance: RelevanceMetrics = Field(default_factory=RelevanceMetrics)
    depth: DepthMetrics = Field(default_factory=DepthMetrics)
    communication: CommunicationMetrics = Field(default_factory=CommunicationMetrics)
    completeness: CompletenessMetrics = Field(default_factory=CompletenessMetrics)

    overall_score: float = Field(default=0, ge=0, le=100)

    # Feedback
    improvement_suggestions: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls, missing_elements: list[str] | None = None) -> "ResponseAnalysis":
        """Canonical analysis for a blank or unscoreable answer."""
        return cls(
            completeness=CompletenessMetrics(missing_elements=list(missing_elements or [])),
            improvement_suggestions=[EMPTY_RESPONSE_SUGGESTION],
            weaknesses=[EMPTY_RESPONSE_WEAKNESS],
        )


class PracticeResponse(ValidatedModel):
    """A user's answer to one question."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    question_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    text: str = Field(default="", max_length=5000)
    timestamp: datetime = Field(default_factory=utc_now)
    response_time: float = Field(
        default=0, ge=0, le=3600,
        description="Seconds spent answering"
    )
    analysis: ResponseAnalysis | None = None
