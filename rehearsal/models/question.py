"""
Question models for Interview Rehearsal
"""

from enum import Enum
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import Field, StringConstraints, model_validator

from rehearsal.models.base import ValidatedModel


class QuestionType(str, Enum):
    """Types of interview questions."""

    BEHAVIORAL = "behavioral"            # Tell me about a time...
    TECHNICAL = "technical"              # Explain / implement X
    SITUATIONAL = "situational"          # What would you do if...
    SYSTEM_DESIGN = "system-design"      # Design a system for X
    CASE_STUDY = "case-study"            # Work through a business case
    ROLE_SPECIFIC = "role-specific"      # Tailored to the target role
    FOLLOW_UP = "follow-up"              # Digs into a previous answer


class QuestionCategory(str, Enum):
    """High-level question categories."""

    LEADERSHIP = "leadership"
    PROBLEM_SOLVING = "problem-solving"
    COMMUNICATION = "communication"
    TEAMWORK = "teamwork"
    TECHNICAL_SKILLS = "technical-skills"
    DOMAIN_KNOWLEDGE = "domain-knowledge"
    CULTURE_FIT = "culture-fit"
    CAREER_GOALS = "career-goals"


class QuestionDifficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class StarComponent(str, Enum):
    """Parts of a STAR-structured answer."""

    SITUATION = "situation"
    TASK = "task"
    ACTION = "action"
    RESULT = "result"


class RoleLevel(str, Enum):
    """Seniority a question is aimed at."""

    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


# ============================================================================
# QUESTION DETAILS (one variant per question family)
# ============================================================================

class BehavioralDetails(ValidatedModel):
    """Extra guidance for behavioral and situational questions."""

    kind: Literal["behavioral"] = "behavioral"
    competency: str | None = Field(default=None, max_length=100)
    star_focus: list[StarComponent] = Field(
        default_factory=lambda: list(StarComponent),
        description="STAR components the answer is expected to cover"
    )


class TechnicalDetails(ValidatedModel):
    """Extra guidance for technical and role-specific questions."""

    kind: Literal["technical"] = "technical"
    skills: list[str] = Field(default_factory=list, max_length=20)
    language: str | None = Field(default=None, max_length=50)


class SystemDesignDetails(ValidatedModel):
    """Extra guidance for system design questions."""

    kind: Literal["system-design"] = "system-design"
    scale: str | None = Field(default=None, max_length=200)
    components: list[str] = Field(default_factory=list, max_length=20)


class FollowUpDetails(ValidatedModel):
    """Links a follow-up question to the question and trigger it came from."""

    kind: Literal["follow-up"] = "follow-up"
    parent_question_id: str = Field(..., min_length=1)
    trigger: str | None = Field(default=None, max_length=100)


class GeneralDetails(ValidatedModel):
    """Targeting information applicable to any question type."""

    kind: Literal["general"] = "general"
    industry: str | None = Field(default=None, max_length=100)
    role_level: RoleLevel | None = None


QuestionDetails = Annotated[
    BehavioralDetails | TechnicalDetails | SystemDesignDetails | FollowUpDetails | GeneralDetails,
    Field(discriminator="kind"),
]

# Which question types each details variant may accompany
DETAILS_FOR_TYPES: dict[str, set[QuestionType]] = {
    "behavioral": {QuestionType.BEHAVIORAL, QuestionType.SITUATIONAL},
    "technical": {QuestionType.TECHNICAL, QuestionType.ROLE_SPECIFIC, QuestionType.CASE_STUDY},
    "system-design": {QuestionType.SYSTEM_DESIGN},
    "follow-up": {QuestionType.FOLLOW_UP},
    "general": set(QuestionType),
}

ExpectedElement = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
FollowUpTrigger = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class Question(ValidatedModel):
    """A single practice question."""

    # Identification
    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)

    # Classification
    type: QuestionType = Field(..., description="Type of question")
    category: QuestionCategory = Field(..., description="Question category")
    difficulty: QuestionDifficulty = Field(default=QuestionDifficulty.MEDIUM)

    # Content
    text: str = Field(..., min_length=1, max_length=1000)

    # Evaluation guidance
    expected_elements: list[ExpectedElement] = Field(
        default_factory=list,
        max_length=20,
        description="Key concepts expected in a good answer, in order"
    )
    follow_up_triggers: list[FollowUpTrigger] = Field(default_factory=list, max_length=10)

    # Timing
    time_limit: int | None = Field(
        default=None, ge=30, le=1800,
        description="Suggested answer time in seconds"
    )

    details: QuestionDetails | None = None

    @model_validator(mode="after")
    def _check_details(self) -> "Question":
        if not self.text.strip():
            raise ValueError("Question text is required")
        if self.type == QuestionType.FOLLOW_UP and not isinstance(self.details, FollowUpDetails):
            raise ValueError("Follow-up questions must name their parent question")
        if self.details is not None and self.type not in DETAILS_FOR_TYPES[self.details.kind]:
            raise ValueError(
                f"{self.details.kind} details do not apply to {self.type.value} questions"
            )
        return self

    @property
    def parent_question_id(self) -> str | None:
        if isinstance(self.details, FollowUpDetails):
            return self.details.parent_question_id
        return None
