"""
Performance Tracker - session scores, trends and progress analytics.

Aggregates scored responses into eight dimension scores using a
recency-weighted average, blends them into an overall score, compares
the result with the user's history and produces recommendations.

The tracker is synchronous and side-effect free: callers load the
user's history and pass it in.
"""

import logging
import statistics
from datetime import datetime, timedelta

from rehearsal.config.settings import DEFAULT_DIMENSION_WEIGHTS
from rehearsal.models.base import utc_now
from rehearsal.models.evaluation import ResponseAnalysis
from rehearsal.models.performance import (
    BASE_DIMENSIONS,
    Dimension,
    DimensionScore,
    PerformanceScore,
    ProgressAnalytics,
    SessionAnalysis,
    Timeframe,
    Trend,
)
from rehearsal.models.question import Question, QuestionType
from rehearsal.models.session import PracticeSession

logger = logging.getLogger(__name__)


# Advice by dimension and severity tier (score <40 low, <70 medium, else high)
DIMENSION_ADVICE: dict[Dimension, dict[str, str]] = {
    Dimension.CLARITY: {
        "low": "Practice structuring your responses with clear beginning, middle, and end",
        "medium": "Work on using transition words to improve flow between ideas",
        "high": "Focus on eliminating filler words and speaking more concisely",
    },
    Dimension.RELEVANCE: {
        "low": "Make sure to directly answer the question before adding additional context",
        "medium": "Include more specific examples that directly relate to the question",
        "high": "Practice staying focused on the core question throughout your response",
    },
    Dimension.DEPTH: {
        "low": "Provide more detailed examples and explanations in your responses",
        "medium": "Include specific metrics and outcomes when describing your experiences",
        "high": "Share deeper insights and lessons learned from your experiences",
    },
    Dimension.COMMUNICATION: {
        "low": "Practice speaking at a steady pace and projecting confidence",
        "medium": "Work on reducing filler words and improving vocal clarity",
        "high": "Focus on varying your tone and emphasis to maintain engagement",
    },
    Dimension.COMPLETENESS: {
        "low": "Use the STAR method (Situation, Task, Action, Result) for behavioral questions",
        "medium": "Ensure you address all parts of multi-part questions",
        "high": "Add more context about the impact and significance of your actions",
    },
    Dimension.TECHNICAL_ACCURACY: {
        "low": "Review fundamental concepts in your target technology stack",
        "medium": "Practice explaining technical concepts in simple terms",
        "high": "Stay updated with latest best practices and industry standards",
    },
    Dimension.BEHAVIORAL_COMPETENCY: {
        "low": "Prepare more diverse examples that showcase different competencies",
        "medium": "Practice the STAR method to structure behavioral responses",
        "high": "Focus on demonstrating leadership and initiative in your examples",
    },
    Dimension.PROBLEM_SOLVING: {
        "low": "Practice breaking down complex problems into smaller components",
        "medium": "Explain your thought process step-by-step when solving problems",
        "high": "Consider multiple solution approaches and trade-offs",
    },
}

BEHAVIORAL_OUTCOME_TIP = "For behavioral questions, ensure you include the outcome and impact of your actions"
TECHNICAL_PRACTICE_TIP = "Consider practicing more technical questions in your focus area"
TIME_LIMIT_TIP = "Practice keeping your answers within the suggested time limit"
MOMENTUM_TIP = "Great progress! Continue practicing to maintain your improvement momentum"

MAX_RECOMMENDATIONS = 5


def linear_slope(values: list[float]) -> float:
    """Least-squares slope of ``values`` over their index."""
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(values) / n
    numerator = sum((i - x_mean) * (y - y_mean) for i, y in enumerate(values))
    denominator = sum((i - x_mean) ** 2 for i in range(n))
    return numerator / denominator if denominator else 0.0


def dimension_label(dimension: Dimension | str) -> str:
    value = dimension.value if isinstance(dimension, Dimension) else dimension
    return value.replace("_", " ")


class BenchmarkTable:
    """Difficulty-specific thresholds mapping a score to a percentile bucket."""

    # excellent, good, average, below average
    TIERS: dict[str, tuple[int, int, int, int]] = {
        "easy": (85, 75, 65, 50),
        "medium": (80, 70, 60, 45),
        "hard": (75, 65, 55, 40),
        "adaptive": (80, 70, 60, 45),
    }
    BUCKETS = ["90th percentile", "75th percentile", "50th percentile", "25th percentile"]
    FLOOR = "10th percentile"

    def ranking(self, score: float, difficulty: str) -> str:
        thresholds = self.TIERS.get(difficulty, self.TIERS["medium"])
        for threshold, bucket in zip(thresholds, self.BUCKETS):
            if score >= threshold:
                return bucket
        return self.FLOOR


class PerformanceTracker:
    """
    Scores sessions and analyses progress over a user's history.

    Args:
        weights: Overall-score weight per dimension (normalised to sum to 1)
        recency_factor: Base of the per-response recency weight (factor ** index)
        trend_threshold: Slope beyond which a dimension counts as moving
        history_limit: Scores kept per user by ``trim_history``
    """

    def __init__(
        self,
        weights: dict[str, float] | None = None,
        recency_factor: float = 1.1,
        trend_threshold: float = 2.0,
        history_limit: int = 100,
        benchmarks: BenchmarkTable | None = None,
    ):
        raw = weights or DEFAULT_DIMENSION_WEIGHTS
        total = sum(raw.get(d.value, 0.0) for d in Dimension) or 1.0
        self.weights = {d: raw.get(d.value, 0.0) / total for d in Dimension}
        self.recency_factor = recency_factor
        self.trend_threshold = trend_threshold
        self.history_limit = history_limit
        self.benchmarks = benchmarks or BenchmarkTable()

    # =========================================================================
    # SESSION SCORING
    # =========================================================================

    def calculate_session_score(
        self,
        session: PracticeSession,
        history: list[PerformanceScore] | None = None,
        now: datetime | None = None,
    ) -> PerformanceScore:
        """
        Score a session across all dimensions.

        Args:
            session: The session (live or completed)
            history: The user's earlier performance scores, any order
            now: Timestamp for the resulting score

        Returns:
            PerformanceScore with dimension scores, trends, ranking and
            recommendations
        """
        history = self._prior_history(session, history)
        pairs = session.scored_pairs()
        difficulty = session.config.difficulty.value

        if not pairs:
            dimension_scores = [DimensionScore(dimension=d, score=0) for d in Dimension]
            overall = 0.0
        else:
            dimension_scores = []
            for dimension in Dimension:
                values = [self._dimension_value(dimension, q, r.analysis) for q, r in pairs]
                score = round(self._recency_weighted(values))
                dimension_scores.append(DimensionScore(
                    dimension=dimension,
                    score=min(100, max(0, score)),
                    trend=self._trend(dimension, score, history),
                ))
            overall = self._overall(dimension_scores)

        return PerformanceScore(
            session_id=session.id,
            user_id=session.user_id,
            overall_score=overall,
            dimension_scores=dimension_scores,
            improvement=self._improvement(overall, history) if pairs else 0,
            ranking=self.benchmarks.ranking(overall, difficulty),
            recommendations=self.generate_recommendations(dimension_scores, session) if pairs else [],
            difficulty=difficulty,
            created_at=now or session.end_time or utc_now(),
        )

    def build_analysis(
        self,
        session: PracticeSession,
        history: list[PerformanceScore] | None = None,
        now: datetime | None = None,
    ) -> SessionAnalysis:
        """Running snapshot stored on the session after each response."""
        score = self.calculate_session_score(session, history, now)
        answered = len(session.scored_pairs())
        return SessionAnalysis(
            overall_score=score.overall_score,
            dimension_scores=score.dimension_scores,
            improvement=score.improvement,
            ranking=score.ranking if answered else None,
            time_spent=round(session.active_seconds_at(now) / 60, 1),
            questions_answered=len(session.responses),
            strengths=[dimension_label(ds.dimension) for ds in score.dimension_scores if ds.score >= 80],
            improvement_areas=[
                dimension_label(ds.dimension) for ds in score.dimension_scores
                if answered and ds.score < 60
            ],
            recommendations=score.recommendations,
        )

    def _prior_history(
        self,
        session: PracticeSession,
        history: list[PerformanceScore] | None,
    ) -> list[PerformanceScore]:
        prior = [
            h for h in (history or [])
            if h.user_id == session.user_id and h.session_id != session.id
        ]
        return sorted(prior, key=lambda h: h.created_at)

    @staticmethod
    def _dimension_value(dimension: Dimension, question: Question, analysis: ResponseAnalysis) -> float:
        qtype = question.type
        if dimension == Dimension.CLARITY:
            return analysis.clarity.score
        if dimension == Dimension.RELEVANCE:
            return analysis.relevance.score
        if dimension == Dimension.DEPTH:
            return analysis.depth.score
        if dimension == Dimension.COMMUNICATION:
            return analysis.communication.score
        if dimension == Dimension.COMPLETENESS:
            return analysis.completeness.score
        if dimension == Dimension.TECHNICAL_ACCURACY:
            if qtype in (QuestionType.TECHNICAL, QuestionType.SYSTEM_DESIGN):
                return analysis.depth.technical_accuracy
            return analysis.depth.score * 0.8
        if dimension == Dimension.BEHAVIORAL_COMPETENCY:
            if qtype in (QuestionType.BEHAVIORAL, QuestionType.SITUATIONAL):
                return (
                    analysis.clarity.structure_rating * 10
                    + analysis.depth.example_quality
                    + analysis.completeness.score
                ) / 3
            return analysis.relevance.score * 0.7
        # Problem solving
        if qtype in (QuestionType.CASE_STUDY, QuestionType.SYSTEM_DESIGN):
            return (
                analysis.depth.insight_level * 0.4
                + analysis.depth.score * 0.4
                + analysis.clarity.score * 0.2
            )
        return analysis.depth.insight_level

    def _recency_weighted(self, values: list[float]) -> float:
        weights = [self.recency_factor ** i for i in range(len(values))]
        return sum(v * w for v, w in zip(values, weights)) / sum(weights)

    def _overall(self, dimension_scores: list[DimensionScore]) -> float:
        total = sum(self.weights[ds.dimension] * ds.score for ds in dimension_scores)
        return float(min(100, max(0, round(total))))

    @staticmethod
    def _improvement(overall: float, history: list[PerformanceScore]) -> float:
        recent = history[-3:]
        if not recent:
            return 0
        baseline = sum(h.overall_score for h in recent) / len(recent)
        return round(overall - baseline)

    def _trend(self, dimension: Dimension, current: float, history: list[PerformanceScore]) -> Trend:
        recent = history[-5:]
        if len(recent) < 2:
            return Trend.STABLE
        scores = [s for s in (h.score_for(dimension) for h in recent) if s > 0]
        if len(scores) < 2:
            return Trend.STABLE
        slope = linear_slope(scores + [current])
        if slope > self.trend_threshold:
            return Trend.IMPROVING
        if slope < -self.trend_threshold:
            return Trend.DECLINING
        return Trend.STABLE

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def generate_recommendations(
        self,
        dimension_scores: list[DimensionScore],
        session: PracticeSession,
    ) -> list[str]:
        """Weakest dimensions first, then session-shape tips, then trend nudges."""
        recommendations: list[str] = []

        weak = sorted((ds for ds in dimension_scores if ds.score < 60), key=lambda ds: ds.score)
        for ds in weak[:3]:
            recommendations.append(self.advice_for(ds.dimension, ds.score))

        recommendations.extend(self._session_recommendations(session))
        recommendations.extend(self._trend_recommendations(dimension_scores))

        unique = list(dict.fromkeys(recommendations))
        return unique[:MAX_RECOMMENDATIONS]

    @staticmethod
    def advice_for(dimension: Dimension, score: float) -> str:
        tiers = DIMENSION_ADVICE[dimension]
        if score < 40:
            return tiers["low"]
        if score < 70:
            return tiers["medium"]
        return tiers["high"]

    @staticmethod
    def _session_recommendations(session: PracticeSession) -> list[str]:
        recommendations = []
        pairs = session.scored_pairs()

        if any(
            q.time_limit is not None and r.response_time > q.time_limit
            for q, r in pairs
        ):
            recommendations.append(TIME_LIMIT_TIP)

        if any(
            q.type == QuestionType.BEHAVIORAL and r.analysis.completeness.score < 60
            for q, r in pairs
        ):
            recommendations.append(BEHAVIORAL_OUTCOME_TIP)

        if any(q.type == QuestionType.TECHNICAL for q in session.questions):
            recommendations.append(TECHNICAL_PRACTICE_TIP)

        return recommendations

    @staticmethod
    def _trend_recommendations(dimension_scores: list[DimensionScore]) -> list[str]:
        recommendations = []
        declining = [ds for ds in dimension_scores if ds.trend == Trend.DECLINING]
        improving = [ds for ds in dimension_scores if ds.trend == Trend.IMPROVING]
        if declining:
            recommendations.append(
                f"Focus on {dimension_label(declining[0].dimension)} - "
                f"your performance in this area has been declining"
            )
        if len(improving) > 2:
            recommendations.append(MOMENTUM_TIP)
        return recommendations

    # =========================================================================
    # PROGRESS ANALYTICS
    # =========================================================================

    def get_progress_analytics(
        self,
        user_id: str,
        history: list[PerformanceScore],
        timeframe: Timeframe = Timeframe.ALL,
        now: datetime | None = None,
    ) -> ProgressAnalytics:
        """
        Summarise a user's history within a timeframe.

        ``dimension_trends`` holds a slope for each of the five base
        dimensions only (clarity, relevance, depth, communication,
        completeness); the three derived dimensions feed strengths and
        weaknesses but get no trend entry.

        Args:
            user_id: User whose history this is
            history: The user's performance scores, any order
            timeframe: week, month or all
            now: Reference time for the window

        Returns:
            ProgressAnalytics for the window
        """
        now = now or utc_now()
        window = sorted((h for h in history if h.user_id == user_id), key=lambda h: h.created_at)
        if timeframe == Timeframe.WEEK:
            window = [h for h in window if h.created_at >= now - timedelta(days=7)]
        elif timeframe == Timeframe.MONTH:
            window = [h for h in window if h.created_at >= now - timedelta(days=30)]

        if not window:
            return ProgressAnalytics(user_id=user_id, timeframe=timeframe)

        scores = [h.overall_score for h in window]
        n = len(scores)

        improvement_rate = 0.0
        if n >= 2 and scores[0] > 0:
            improvement_rate = round((scores[-1] - scores[0]) / scores[0] * 100 / (n - 1), 1)

        consistency = 100.0
        if n >= 2:
            consistency = round(max(0.0, 100 - 2 * statistics.pstdev(scores)), 1)

        dimension_trends = {
            d.value: round(linear_slope([h.score_for(d) for h in window]), 2)
            for d in BASE_DIMENSIONS
        }

        means = {
            d: sum(h.score_for(d) for h in window) / n
            for d in Dimension
        }
        strengths = sorted((d for d in means if means[d] >= 70), key=lambda d: -means[d])[:3]
        weaknesses = sorted((d for d in means if means[d] < 60), key=lambda d: means[d])[:3]

        return ProgressAnalytics(
            user_id=user_id,
            timeframe=timeframe,
            total_sessions=n,
            average_score=round(sum(scores) / n, 1),
            highest_score=max(scores),
            lowest_score=min(scores),
            improvement_rate=improvement_rate,
            consistency_score=consistency,
            dimension_trends=dimension_trends,
            strengths=[dimension_label(d) for d in strengths],
            weaknesses=[dimension_label(d) for d in weaknesses],
        )

    def trim_history(self, history: list[PerformanceScore]) -> list[PerformanceScore]:
        """Keep only the newest ``history_limit`` scores."""
        ordered = sorted(history, key=lambda h: h.created_at)
        return ordered[-self.history_limit:]
