"""
Question supply - the collaborator that hands the engine questions.

StaticQuestionBank is the built-in source: a curated pool filtered by
the session's categories, difficulty and focus areas. Any other source
(an LLM, a remote service) only has to implement QuestionSource.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from rehearsal.models.question import (
    BehavioralDetails,
    GeneralDetails,
    Question,
    QuestionCategory,
    QuestionDifficulty,
    QuestionType,
    SystemDesignDetails,
    TechnicalDetails,
)
from rehearsal.models.session import SessionConfig, SessionDifficulty

logger = logging.getLogger(__name__)

STAR_ELEMENTS = ["Situation", "Task", "Action", "Result"]


class QuestionSource(ABC):
    """Supplies ordered batches of questions for a session."""

    @abstractmethod
    async def get_questions(
        self,
        config: SessionConfig,
        count: int,
        context: dict[str, Any] | None = None,
    ) -> list[Question]:
        """
        Return up to ``count`` questions for ``config``.

        Args:
            config: Session configuration (categories, difficulty, focus areas)
            count: Number of questions wanted
            context: Optional skills/requirements, e.g. {"skills": ["Python"]}

        Returns:
            Ordered questions; fewer than ``count`` when the source runs dry
        """


@dataclass(frozen=True)
class QuestionTemplate:
    key: str
    template: str
    type: QuestionType
    category: QuestionCategory
    difficulty: QuestionDifficulty
    keywords: tuple[str, ...] = ()
    expected_elements: tuple[str, ...] = ()
    follow_up_triggers: tuple[str, ...] = ()
    time_limit: int | None = None


E, M, H = QuestionDifficulty.EASY, QuestionDifficulty.MEDIUM, QuestionDifficulty.HARD

QUESTION_POOL: list[QuestionTemplate] = [
    # Teamwork
    QuestionTemplate(
        "beh_team_conflict",
        "Tell me about a time when you had to work with a difficult team member. How did you handle the situation?",
        QuestionType.BEHAVIORAL, QuestionCategory.TEAMWORK, M,
        ("teamwork", "conflict", "communication"), tuple(STAR_ELEMENTS),
        ("conflict", "disagreement", "challenge"), 180,
    ),
    QuestionTemplate(
        "sit_team_deadline",
        "What would you do if a teammate repeatedly missed deadlines that affected your work?",
        QuestionType.SITUATIONAL, QuestionCategory.TEAMWORK, E,
        ("teamwork", "accountability"), ("Conversation", "Support", "Escalation"),
        ("escalate", "manager"), 150,
    ),
    # Leadership
    QuestionTemplate(
        "beh_lead_project",
        "Describe a project where you had to take leadership. What was your approach?",
        QuestionType.BEHAVIORAL, QuestionCategory.LEADERSHIP, H,
        ("leadership", "project management", "coordination"), tuple(STAR_ELEMENTS),
        ("team", "responsibility", "decision"), 240,
    ),
    QuestionTemplate(
        "beh_lead_mentor",
        "Tell me about a time you mentored a colleague who was struggling.",
        QuestionType.BEHAVIORAL, QuestionCategory.LEADERSHIP, M,
        ("mentoring", "coaching", "leadership"), tuple(STAR_ELEMENTS),
        ("feedback", "growth"), 180,
    ),
    # Problem solving
    QuestionTemplate(
        "beh_ps_mistake",
        "Tell me about a time when you made a mistake. How did you handle it?",
        QuestionType.BEHAVIORAL, QuestionCategory.PROBLEM_SOLVING, M,
        ("mistake", "accountability", "problem solving"), tuple(STAR_ELEMENTS),
        ("error", "failure", "lesson learned"), 180,
    ),
    QuestionTemplate(
        "case_ps_churn",
        "Customer churn rose 15% last quarter. Walk me through how you would find the cause.",
        QuestionType.CASE_STUDY, QuestionCategory.PROBLEM_SOLVING, H,
        ("analysis", "metrics", "hypothesis"), ("Hypotheses", "Data", "Prioritization", "Recommendation"),
        ("assumption", "data"), 300,
    ),
    QuestionTemplate(
        "sit_ps_outage",
        "How would you respond if a critical production system failed an hour before a major launch?",
        QuestionType.SITUATIONAL, QuestionCategory.PROBLEM_SOLVING, M,
        ("incident", "prioritization", "communication"), ("Triage", "Communication", "Mitigation", "Follow-up"),
        ("rollback", "stakeholders"), 180,
    ),
    # Communication
    QuestionTemplate(
        "beh_comm_persuade",
        "Describe a situation where you had to convince someone to see your point of view.",
        QuestionType.BEHAVIORAL, QuestionCategory.COMMUNICATION, M,
        ("persuasion", "communication", "influence"), tuple(STAR_ELEMENTS),
        ("resistance", "stakeholder"), 180,
    ),
    QuestionTemplate(
        "tech_comm_explain",
        "How would you explain a complex {skill} concept to a non-technical stakeholder?",
        QuestionType.TECHNICAL, QuestionCategory.COMMUNICATION, E,
        ("explanation", "audience", "analogy"), ("Audience", "Analogy", "Check understanding"),
        ("jargon",), 120,
    ),
    # Technical skills
    QuestionTemplate(
        "tech_skill_debug",
        "Walk me through how you would debug a performance problem in a {skill} application.",
        QuestionType.TECHNICAL, QuestionCategory.TECHNICAL_SKILLS, M,
        ("debugging", "profiling", "performance"), ("Reproduce", "Measure", "Isolate", "Fix", "Verify"),
        ("profiling", "bottleneck"), 240,
    ),
    QuestionTemplate(
        "tech_skill_testing",
        "How do you decide what to test in a new feature, and how do you structure those tests?",
        QuestionType.TECHNICAL, QuestionCategory.TECHNICAL_SKILLS, E,
        ("testing", "quality"), ("Unit tests", "Integration tests", "Edge cases"),
        ("coverage",), 180,
    ),
    QuestionTemplate(
        "sd_skill_url",
        "Design a URL shortening service that handles millions of requests per day.",
        QuestionType.SYSTEM_DESIGN, QuestionCategory.TECHNICAL_SKILLS, H,
        ("scalability", "storage", "caching"), ("Requirements", "API", "Data model", "Scaling", "Trade-offs"),
        ("bottleneck", "consistency"), 600,
    ),
    # Domain knowledge
    QuestionTemplate(
        "role_domain_trends",
        "What trends in your industry do you think will matter most over the next few years?",
        QuestionType.ROLE_SPECIFIC, QuestionCategory.DOMAIN_KNOWLEDGE, M,
        ("industry", "trends"), ("Trend", "Impact", "Preparation"),
        ("regulation", "technology"), 180,
    ),
    QuestionTemplate(
        "sd_domain_pipeline",
        "Design a pipeline that ingests and aggregates {skill} events in near real time.",
        QuestionType.SYSTEM_DESIGN, QuestionCategory.DOMAIN_KNOWLEDGE, H,
        ("streaming", "aggregation", "latency"), ("Ingestion", "Processing", "Storage", "Monitoring"),
        ("late data", "backpressure"), 600,
    ),
    # Culture fit
    QuestionTemplate(
        "beh_culture_feedback",
        "Tell me about a time you received critical feedback. What did you do with it?",
        QuestionType.BEHAVIORAL, QuestionCategory.CULTURE_FIT, E,
        ("feedback", "growth", "self-awareness"), tuple(STAR_ELEMENTS),
        ("defensive", "change"), 150,
    ),
    QuestionTemplate(
        "sit_culture_values",
        "What would you do if you disagreed with a decision your team had already committed to?",
        QuestionType.SITUATIONAL, QuestionCategory.CULTURE_FIT, M,
        ("disagreement", "commitment", "values"), ("Voice concerns", "Commit", "Follow through"),
        ("disagree", "commit"), 150,
    ),
    # Career goals
    QuestionTemplate(
        "role_career_five",
        "Where do you see your career in five years, and how does this role fit into that plan?",
        QuestionType.ROLE_SPECIFIC, QuestionCategory.CAREER_GOALS, E,
        ("career", "goals", "growth"), ("Goal", "Plan", "Fit with role"),
        ("ambition",), 120,
    ),
    QuestionTemplate(
        "beh_career_learning",
        "Tell me about a time when you had to learn a new {skill} quickly. How did you approach it?",
        QuestionType.BEHAVIORAL, QuestionCategory.CAREER_GOALS, M,
        ("learning", "adaptation", "skill development"), tuple(STAR_ELEMENTS),
        ("challenge", "new technology", "training"), 180,
    ),
]


class StaticQuestionBank(QuestionSource):
    """
    Built-in question source backed by a curated template pool.

    Selection is deterministic: templates are interleaved across the
    requested categories, templates matching the requested difficulty
    and focus areas come first, and no template repeats within a batch.
    """

    def __init__(self, pool: list[QuestionTemplate] | None = None):
        self.pool = pool if pool is not None else QUESTION_POOL

    async def get_questions(
        self,
        config: SessionConfig,
        count: int,
        context: dict[str, Any] | None = None,
    ) -> list[Question]:
        context = context or {}
        skills = list(context.get("skills") or []) + list(config.focus_areas)
        skill = skills[0] if skills else "technology"

        ranked: dict[QuestionCategory, list[QuestionTemplate]] = {}
        for category in config.question_categories:
            candidates = [t for t in self.pool if t.category == category]
            candidates.sort(key=lambda t: self._rank(t, config, skills))
            ranked[category] = candidates

        selected: list[QuestionTemplate] = []
        while len(selected) < count and any(ranked.values()):
            for category in config.question_categories:
                if ranked.get(category) and len(selected) < count:
                    selected.append(ranked[category].pop(0))

        if len(selected) < count:
            logger.info(f"Question bank exhausted: wanted {count}, have {len(selected)}")

        return [self._instantiate(t, skill) for t in selected]

    @staticmethod
    def _rank(template: QuestionTemplate, config: SessionConfig, skills: list[str]) -> tuple[int, int]:
        if config.difficulty in (SessionDifficulty.ADAPTIVE, SessionDifficulty.MEDIUM):
            difficulty_miss = 0 if template.difficulty == QuestionDifficulty.MEDIUM else 1
        else:
            difficulty_miss = 0 if template.difficulty.value == config.difficulty.value else 1
        lowered = [s.lower() for s in skills]
        focus_hits = sum(
            1 for keyword in template.keywords
            if any(keyword in s or s in keyword for s in lowered)
        )
        return (difficulty_miss, -focus_hits)

    @staticmethod
    def _instantiate(template: QuestionTemplate, skill: str) -> Question:
        if template.type in (QuestionType.BEHAVIORAL, QuestionType.SITUATIONAL):
            details = BehavioralDetails(competency=template.category.value)
        elif template.type == QuestionType.SYSTEM_DESIGN:
            details = SystemDesignDetails(components=list(template.expected_elements))
        elif template.type in (QuestionType.TECHNICAL, QuestionType.CASE_STUDY):
            details = TechnicalDetails(skills=[skill] if "{skill}" in template.template else [])
        else:
            details = GeneralDetails()

        return Question(
            id=f"{template.key}-{uuid4().hex[:8]}",
            type=template.type,
            category=template.category,
            difficulty=template.difficulty,
            text=template.template.replace("{skill}", skill),
            expected_elements=list(template.expected_elements),
            follow_up_triggers=list(template.follow_up_triggers),
            time_limit=template.time_limit,
            details=details,
        )
