"""
Response Scorer - rule-based scoring of a single practice answer.

Scores an answer against its question on four signals (length, keyword
relevance, structure, completeness), blends them into an overall score
and derives the five reported dimensions plus templated feedback.

Weights and bands come from a ScoringProfile. Two profiles ship:
- standard: balanced weighting
- enhanced: leans harder on keyword relevance and structure
"""

import logging
from dataclasses import dataclass

from rehearsal.core import text_analysis as ta
from rehearsal.exceptions import ValidationError
from rehearsal.models.evaluation import (
    ClarityMetrics,
    CommunicationMetrics,
    CompletenessMetrics,
    DepthMetrics,
    PracticeResponse,
    RelevanceMetrics,
    ResponseAnalysis,
)
from rehearsal.models.question import Question, QuestionType

logger = logging.getLogger(__name__)


# Ideal word-count band per question type
LENGTH_BANDS: dict[QuestionType, tuple[int, int]] = {
    QuestionType.BEHAVIORAL: (50, 200),
    QuestionType.TECHNICAL: (40, 180),
    QuestionType.SITUATIONAL: (45, 170),
    QuestionType.SYSTEM_DESIGN: (80, 250),
}
DEFAULT_LENGTH_BAND = (30, 150)

STAR_QUESTION_TYPES = {QuestionType.BEHAVIORAL, QuestionType.SITUATIONAL}


@dataclass(frozen=True)
class ScoringProfile:
    """Weights and thresholds used by the ResponseScorer."""

    name: str
    length_weight: float
    keyword_weight: float
    structure_weight: float
    completeness_weight: float
    # Scores for: far below band, below band, in band, up to 1.5x ceiling, beyond
    length_scores: tuple[int, int, int, int, int]
    sentence_bonus: int
    star_weight: float
    action_verb_bonus: int = 5
    impact_bonus: int = 8


STANDARD_PROFILE = ScoringProfile(
    name="standard",
    length_weight=0.20,
    keyword_weight=0.30,
    structure_weight=0.20,
    completeness_weight=0.30,
    length_scores=(20, 50, 90, 75, 60),
    sentence_bonus=20,
    star_weight=0.15,
)

ENHANCED_PROFILE = ScoringProfile(
    name="enhanced",
    length_weight=0.15,
    keyword_weight=0.35,
    structure_weight=0.25,
    completeness_weight=0.25,
    length_scores=(30, 60, 95, 80, 65),
    sentence_bonus=15,
    star_weight=0.25,
)

PROFILES: dict[str, ScoringProfile] = {
    STANDARD_PROFILE.name: STANDARD_PROFILE,
    ENHANCED_PROFILE.name: ENHANCED_PROFILE,
}


def get_profile(name: str) -> ScoringProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValidationError(
            f"Unknown scoring profile: {name}. Options: {', '.join(PROFILES)}"
        ) from None


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return min(high, max(low, value))


class ResponseScorer:
    """
    Scores practice responses.

    ``score`` is a pure function of (response, question): it reads no
    clock, keeps no state and never raises.
    """

    def __init__(self, profile: ScoringProfile | str = STANDARD_PROFILE):
        self.profile = get_profile(profile) if isinstance(profile, str) else profile

    def score(self, response: PracticeResponse, question: Question) -> ResponseAnalysis:
        """
        Analyze one response.

        Args:
            response: The user's answer
            question: The question it answers

        Returns:
            ResponseAnalysis; the canonical empty analysis for blank or
            unscoreable input
        """
        text = (response.text or "").strip()
        if not text:
            return ResponseAnalysis.empty(list(question.expected_elements))

        try:
            return self._analyze(text, response.response_time, question)
        except Exception:
            logger.exception(f"Scoring failed for response {response.id}; using empty analysis")
            return ResponseAnalysis.empty(list(question.expected_elements))

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    def _analyze(self, text: str, response_time: float, question: Question) -> ResponseAnalysis:
        profile = self.profile
        words = ta.word_count(text)
        sentence_count = len(ta.sentences(text))
        band = LENGTH_BANDS.get(question.type, DEFAULT_LENGTH_BAND)

        action_verbs = ta.find_phrases(text, ta.ACTION_VERBS)
        impacts = ta.impact_signals(text)
        star = ta.star_components(text)
        uses_star = question.type in STAR_QUESTION_TYPES
        transitions = ta.find_phrases(text, ta.TRANSITION_WORDS)
        examples = ta.find_phrases(text, ta.EXAMPLE_PHRASES)
        insights = ta.find_phrases(text, ta.INSIGHT_PHRASES)
        technical_terms = ta.find_phrases(text, ta.TECHNICAL_TERMS)
        fillers = ta.count_fillers(text)
        confidence = ta.estimate_confidence(text)

        length = self.length_score(words, band)
        overlap, keyword = self.keyword_score(text, question, action_verbs, impacts)
        structure = self.structure_score(sentence_count, transitions, examples, star if uses_star else None)
        completeness, missing = self.completeness_score(text, question)

        overall = round(_clamp(
            length * profile.length_weight
            + keyword * profile.keyword_weight
            + structure * profile.structure_weight
            + completeness * profile.completeness_weight
        ))

        example_quality = _clamp(40 + (30 if examples or star["situation"] else 0) + (30 if impacts else 0))
        insight_level = _clamp(40 + 12 * len(insights) + 5 * len(transitions))
        technical_accuracy = _clamp(40 + 8 * len(technical_terms) + 4 * len(action_verbs))
        depth = round(0.6 * completeness + 0.2 * example_quality + 0.2 * insight_level)
        communication = round(_clamp(0.7 * structure + 0.3 * confidence - 2 * max(0, fillers - 2)))
        pace = round(words / (response_time / 60), 1) if response_time > 0 else 0.0

        expected = question.expected_elements
        covered_pct = round((len(expected) - len(missing)) / len(expected) * 100) if expected else 100
        grammar_issues = sum(1 for s in ta.sentences(text) if s[0].islower())

        strengths, suggestions, weaknesses = self._feedback(
            words=words,
            band=band,
            structure=structure,
            completeness=completeness,
            action_verbs=action_verbs,
            impacts=impacts,
            star=star if uses_star else None,
            missing=missing,
            fillers=fillers,
            has_expected=bool(expected),
        )

        return ResponseAnalysis(
            clarity=ClarityMetrics(
                score=round(structure),
                grammar_issues=grammar_issues,
                structure_rating=round(structure / 10, 1),
                coherence_rating=min(10.0, 5.0 + len(transitions) + (1 if sentence_count >= 3 else 0)),
            ),
            relevance=RelevanceMetrics(
                score=round(keyword),
                keyword_match=round(overlap),
                topic_alignment=round(keyword),
                answer_completeness=round(completeness),
            ),
            depth=DepthMetrics(
                score=depth,
                technical_accuracy=round(technical_accuracy),
                example_quality=round(example_quality),
                insight_level=round(insight_level),
            ),
            communication=CommunicationMetrics(
                score=communication,
                confidence=round(confidence),
                pace=pace,
                filler_words=fillers,
                clarity=round(structure),
            ),
            completeness=CompletenessMetrics(
                score=round(completeness),
                expected_elements_covered=covered_pct,
                missing_elements=missing,
                additional_value=_clamp(8 * len(impacts) + 5 * len(action_verbs)),
            ),
            overall_score=overall,
            improvement_suggestions=suggestions,
            strengths=strengths,
            weaknesses=weaknesses,
        )

    # =========================================================================
    # SIGNAL SCORES
    # =========================================================================

    def length_score(self, words: int, band: tuple[int, int]) -> float:
        ideal_min, ideal_max = band
        far_below, below, inside, above, far_above = self.profile.length_scores
        if words < ideal_min * 0.5:
            return far_below
        if words < ideal_min:
            return below
        if words <= ideal_max:
            return inside
        if words <= ideal_max * 1.5:
            return above
        return far_above

    def keyword_score(
        self,
        text: str,
        question: Question,
        action_verbs: list[str],
        impacts: list[str],
    ) -> tuple[float, float]:
        """Return (overlap percentage, keyword score)."""
        text_lower = text.lower()
        tokens = ta.content_tokens(question.text)
        if tokens:
            matches = sum(1 for t in tokens if t in text_lower or t[:-1] in text_lower)
            overlap = matches / len(tokens) * 100
            base = matches / len(tokens) * 60 + 20
        else:
            overlap = 100.0
            base = 70.0
        bonus = self.profile.action_verb_bonus * len(action_verbs) + self.profile.impact_bonus * len(impacts)
        return overlap, _clamp(base + bonus, 20, 100)

    def structure_score(
        self,
        sentence_count: int,
        transitions: list[str],
        examples: list[str],
        star: dict[str, bool] | None,
    ) -> float:
        score = 50.0
        if sentence_count >= 3:
            score += self.profile.sentence_bonus
        if sentence_count >= 5:
            score += 10
        if sentence_count == 1:
            score -= 20
        if transitions:
            score += 15
        if examples:
            score += 15
        if star is not None:
            score += ta.star_score(star) * self.profile.star_weight
        return _clamp(score, 20, 100)

    @staticmethod
    def completeness_score(text: str, question: Question) -> tuple[float, list[str]]:
        """Return (score, missing elements)."""
        if not question.expected_elements:
            return 75.0, []
        text_lower = text.lower()
        missing = [e for e in question.expected_elements if not ta.element_covered(text_lower, e)]
        covered = len(question.expected_elements) - len(missing)
        coverage = covered / len(question.expected_elements) * 100
        return _clamp(coverage, 30, 100), missing

    # =========================================================================
    # FEEDBACK
    # =========================================================================

    @staticmethod
    def _feedback(
        words: int,
        band: tuple[int, int],
        structure: float,
        completeness: float,
        action_verbs: list[str],
        impacts: list[str],
        star: dict[str, bool] | None,
        missing: list[str],
        fillers: int,
        has_expected: bool,
    ) -> tuple[list[str], list[str], list[str]]:
        ideal_min, ideal_max = band
        strengths: list[str] = []
        suggestions: list[str] = []
        weaknesses: list[str] = []

        # Strengths
        if ideal_min <= words <= ideal_max:
            strengths.append("Appropriate level of detail")
        if action_verbs:
            strengths.append(f"Used strong action words: {', '.join(action_verbs[:3])}")
        if impacts:
            strengths.append("Demonstrated measurable impact")
        if star is not None and star["result"]:
            strengths.append("Included results and outcomes")
        if structure >= 70:
            strengths.append("Well-organized and easy to follow")
        if has_expected and completeness >= 80:
            strengths.append("Covered the key points the question calls for")

        # Improvements
        if words < ideal_min:
            weaknesses.append("Response was too brief")
            suggestions.append(
                f"Expand your response with more specific details and examples "
                f"(aim for {ideal_min}-{ideal_max} words)"
            )
        elif words > ideal_max * 1.5:
            weaknesses.append("Response was too verbose")
            suggestions.append("Try to be more concise while keeping the key points")
        if not action_verbs:
            weaknesses.append("Few concrete actions described")
            suggestions.append(
                "Describe the specific actions you took (use action verbs like implemented, developed, led)"
            )
        if not impacts:
            weaknesses.append("No quantifiable results")
            suggestions.append(
                'Add the outcome and include metrics where possible (e.g. "increased efficiency by 30%")'
            )
        if star is not None:
            absent = [name for name, present in star.items() if not present]
            if absent:
                weaknesses.append("Incomplete STAR structure")
                suggestions.append(
                    f"Use the STAR method; your answer is missing: {', '.join(absent)}"
                )
        if missing:
            weaknesses.append("Missing expected elements")
            suggestions.append(f"Address these points: {', '.join(missing[:3])}")
        if structure < 60:
            weaknesses.append("Weak structure")
            suggestions.append("Organize your answer into several sentences with clear transitions")
        if fillers >= 3:
            weaknesses.append("Frequent filler words")
            suggestions.append("Reduce filler words such as 'um', 'like' and 'basically'")

        if not strengths:
            strengths.append("You provided a response - that's a good start!")

        return strengths, suggestions, weaknesses
