"""
Session Engine - orchestrates the practice session lifecycle.

This is the central coordinator for a practice session. It creates the
session aggregate, pulls questions from the question source, scores
each answer, keeps the running analysis current and completes the
session when the questions run out or the active-time budget is spent.

States:
    ACTIVE ⇄ PAUSED → COMPLETED

Every mutation of a session runs under that session's lock and works
on a copy of the aggregate; the copy replaces the live session only
after it has been persisted.
"""

import logging
import math
from typing import Any, Awaitable, Callable

from rehearsal.config.settings import Settings, get_settings
from rehearsal.core import text_analysis as ta
from rehearsal.core.clock import SystemClock
from rehearsal.core.performance_tracker import PerformanceTracker, dimension_label
from rehearsal.core.question_bank import QuestionSource
from rehearsal.core.response_scorer import ResponseScorer
from rehearsal.core.session_registry import SessionRegistry
from rehearsal.core.storage import PERFORMANCE_SCORES, StorageBackend, storage_call
from rehearsal.core.timers import AsyncioTimerBackend, TimerTable
from rehearsal.exceptions import (
    DependencyError,
    InvalidStateError,
    NotFoundError,
    QuestionMismatchError,
    RehearsalError,
)
from rehearsal.models.evaluation import PracticeResponse
from rehearsal.models.events import SessionEvent, SessionEventType
from rehearsal.models.performance import (
    PerformanceScore,
    ProgressAnalytics,
    SessionSummary,
    Timeframe,
)
from rehearsal.models.question import FollowUpDetails, Question, QuestionType
from rehearsal.models.session import (
    PracticeSession,
    SessionConfig,
    SessionProgress,
    SessionStatus,
    SubmissionResult,
)

logger = logging.getLogger(__name__)

EventCallback = Callable[[SessionEvent], Awaitable[None]]
CompletionCallback = Callable[[PracticeSession, SessionSummary], Awaitable[None]]

COMPLETION_TIMER = "completion"
DEFAULT_RESPONSE_SECONDS = 120
FOLLOW_UP_TEMPLATE = "You mentioned {trigger}. Can you walk me through that in more detail?"


class SessionEngine:
    """
    Runs practice sessions.

    Collaborators are injected so several engines can coexist, each with
    its own registry and timer table.
    """

    def __init__(
        self,
        storage: StorageBackend,
        question_source: QuestionSource,
        scorer: ResponseScorer | None = None,
        tracker: PerformanceTracker | None = None,
        registry: SessionRegistry | None = None,
        timers: TimerTable | None = None,
        clock: Any = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the engine with its collaborators.

        Args:
            storage: Persistence for sessions and performance history
            question_source: Default supplier of questions
            scorer: Response scorer (profile from settings when omitted)
            tracker: Performance tracker (weights from settings when omitted)
            registry: Live-session registry
            timers: Timer table owning completion timers
            clock: Object with ``now()``; system clock when omitted
            settings: Application settings
        """
        settings = settings or get_settings()
        self.storage = storage
        self.question_source = question_source
        self.clock = clock or SystemClock()
        self.scorer = scorer or ResponseScorer(settings.scoring_profile)
        self.tracker = tracker or PerformanceTracker(
            weights=settings.dimension_weights,
            recency_factor=settings.recency_factor,
            trend_threshold=settings.trend_threshold,
            history_limit=settings.history_limit,
        )
        self.registry = registry or SessionRegistry()
        self.timers = timers or TimerTable(AsyncioTimerBackend(self.clock))
        self.average_question_minutes = settings.average_question_minutes
        self.default_session_minutes = settings.default_session_minutes

        # Performance history per user, loaded on first use
        self._history: dict[str, list[PerformanceScore]] = {}

        # Event callbacks
        self._event_callbacks: list[EventCallback] = []
        self._completion_callbacks: list[CompletionCallback] = []

    # =========================================================================
    # EVENTS
    # =========================================================================

    def on_event(self, callback: EventCallback) -> None:
        """Register a listener for every session event."""
        self._event_callbacks.append(callback)

    def on_session_completed(self, callback: CompletionCallback) -> None:
        """Register a listener receiving (session, summary) on completion."""
        self._completion_callbacks.append(callback)

    async def _emit(self, event_type: SessionEventType, session: PracticeSession, **payload: Any) -> None:
        event = SessionEvent(
            type=event_type,
            session_id=session.id,
            user_id=session.user_id,
            timestamp=self.clock.now(),
            payload=payload,
        )
        for callback in self._event_callbacks:
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"Session event callback error: {e}")

    # =========================================================================
    # COLLABORATOR CALLS
    # =========================================================================

    async def _store(self, action: str, awaitable: Awaitable[Any]) -> Any:
        return await storage_call(action, awaitable)

    async def _history_for(self, user_id: str) -> list[PerformanceScore]:
        if user_id not in self._history:
            records = await self._store(
                "load history",
                self.storage.query(PERFORMANCE_SCORES, {"user_id": user_id}),
            )
            history = [PerformanceScore.model_validate(r) for r in records]
            self._history[user_id] = sorted(history, key=lambda h: h.created_at)
        return self._history[user_id]

    async def _record_score(self, score: PerformanceScore) -> None:
        history = [
            h for h in await self._history_for(score.user_id)
            if h.session_id != score.session_id
        ]
        await self._store(
            "save performance score",
            self.storage.save_record(PERFORMANCE_SCORES, score.session_id, score.model_dump()),
        )
        kept = self.tracker.trim_history(history + [score])
        kept_ids = {h.session_id for h in kept}
        for dropped in history:
            if dropped.session_id not in kept_ids:
                await self._store(
                    "trim history",
                    self.storage.delete_record(PERFORMANCE_SCORES, dropped.session_id),
                )
        self._history[score.user_id] = kept

    # =========================================================================
    # SESSION LOOKUP
    # =========================================================================

    async def _load(self, session_id: str) -> PracticeSession:
        session = self.registry.get(session_id)
        if session is not None:
            return session
        stored = await self._store("load session", self.storage.get_session(session_id))
        if stored is None:
            raise NotFoundError("Session", session_id)
        return stored

    async def _require_live(self, session_id: str) -> PracticeSession:
        """
        The live aggregate for a session that can still change.

        A non-completed session that is only in storage (for instance
        after a restart) is registered again; an active one gets its
        completion timer back. An unknown or completed id leaves no lock
        behind.
        """
        try:
            session = await self._load(session_id)
        except NotFoundError:
            self.registry.discard_lock(session_id)
            raise
        if session.is_complete():
            self.registry.discard_lock(session_id)
            raise InvalidStateError(f"Session {session_id} is completed")
        if session_id not in self.registry:
            logger.info(f"Recovered session {session_id} from storage")
            self.registry.register(session)
            if session.status == SessionStatus.ACTIVE:
                self._arm_completion(session)
        return session

    async def get_session(self, session_id: str) -> PracticeSession:
        return (await self._load(session_id)).model_copy(deep=True)

    async def get_user_sessions(self, user_id: str) -> list[PracticeSession]:
        stored = await self._store("load user sessions", self.storage.get_user_sessions(user_id))
        return sorted(
            ((self.registry.get(s.id) or s).model_copy(deep=True) for s in stored),
            key=lambda s: s.start_time,
        )

    def get_active_sessions(self, user_id: str) -> list[PracticeSession]:
        return [s.model_copy(deep=True) for s in self.registry.for_user(user_id)]

    # =========================================================================
    # TIMERS
    # =========================================================================

    def _arm_completion(self, session: PracticeSession) -> None:
        if session.config.duration <= 0:
            return
        session_id = session.id
        remaining = session.remaining_seconds(self.clock.now())

        async def on_time_limit() -> None:
            await self._expire(session_id)

        self.timers.arm(session_id, COMPLETION_TIMER, remaining, on_time_limit)

    async def _expire(self, session_id: str) -> None:
        """Completion-timer callback: complete if the active budget is spent."""
        async with self.registry.lock(session_id):
            session = self.registry.get(session_id)
            if session is None or session.status != SessionStatus.ACTIVE:
                return
            remaining = session.remaining_seconds(self.clock.now())
            if remaining > 0.5:
                self._arm_completion(session)
                return
            logger.info(f"Session {session_id}: time limit reached")
            await self._complete_locked(session)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start_session(
        self,
        user_id: str,
        config: SessionConfig | dict[str, Any],
        question_source: QuestionSource | None = None,
        context: dict[str, Any] | None = None,
        scheduled_session_id: str | None = None,
    ) -> PracticeSession:
        """
        Create and start a new practice session.

        Args:
            user_id: User practising
            config: Session configuration
            question_source: Overrides the engine's default source
            context: Optional skills/requirements passed to the source
            scheduled_session_id: Scheduled item this session fulfils

        Returns:
            The new session (already completed if no questions were supplied)

        Raises:
            ValidationError: Invalid configuration
            DependencyError: Question source or storage failed
        """
        if isinstance(config, dict):
            config = SessionConfig.build(**{"duration": self.default_session_minutes, **config})
        now = self.clock.now()
        session = PracticeSession.create(user_id, config, now, scheduled_session_id)

        count = max(1, math.ceil(config.duration / self.average_question_minutes))
        source = question_source or self.question_source
        try:
            questions = await source.get_questions(config, count, context)
        except RehearsalError:
            raise
        except Exception as e:
            logger.error(f"Question source failed for session {session.id}: {e}")
            raise DependencyError("question_source", e) from e

        for question in questions[:count]:
            session.add_question(question)

        history = await self._history_for(user_id)
        session.analysis = self.tracker.build_analysis(session, history, now)

        await self._store("save session", self.storage.save_session(session))
        self.registry.register(session)
        logger.info(
            f"Started session {session.id} for {user_id}: "
            f"{len(session.questions)} questions, {config.duration} min"
        )

        await self._emit(
            SessionEventType.SESSION_STARTED,
            session,
            question_count=len(session.questions),
            scheduled_session_id=scheduled_session_id,
        )

        if not session.questions:
            logger.info(f"Session {session.id}: no questions supplied, completing")
            async with self.registry.lock(session.id):
                await self._complete_locked(session)
            return await self.get_session(session.id)

        self._arm_completion(session)
        return session.model_copy(deep=True)

    async def submit_response(
        self,
        session_id: str,
        question_id: str,
        text: str,
        response_time: float = 0,
    ) -> SubmissionResult:
        """
        Score an answer to the current question and advance the session.

        Args:
            session_id: Session ID
            question_id: Must be the id of the current question
            text: Answer text
            response_time: Seconds spent answering

        Returns:
            SubmissionResult with the scored response and the next question

        Raises:
            NotFoundError: Unknown session or question
            QuestionMismatchError: Question is not the current one
            InvalidStateError: Session is paused or completed
        """
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            if session.status != SessionStatus.ACTIVE:
                raise InvalidStateError(
                    f"Session {session_id} is {session.status.value}; resume it before answering"
                )

            current = session.get_current_question()
            if current is None or current.id != question_id:
                if session.get_question(question_id) is None:
                    raise NotFoundError("Question", question_id)
                raise QuestionMismatchError(current.id if current else None, question_id)

            now = self.clock.now()
            response = PracticeResponse.build(
                question_id=question_id,
                session_id=session_id,
                text=text,
                timestamp=now,
                response_time=response_time,
            )
            response.analysis = self.scorer.score(response, current)

            working = session.model_copy(deep=True)
            working.add_response(response)
            history = await self._history_for(working.user_id)
            working.analysis = self.tracker.build_analysis(working, history, now)

            next_question = working.get_current_question()
            summary = None
            if next_question is None:
                # Last answer: nothing is committed unless completion persists too
                completed, summary = await self._persist_completion(working)
                self._retire(completed)
            else:
                await self._store("save session", self.storage.save_session(working))
                self.registry.replace(working)

            await self._emit(
                SessionEventType.RESPONSE_SCORED,
                working,
                question_id=question_id,
                response_id=response.id,
                overall_score=response.analysis.overall_score,
            )
            if summary is not None:
                await self._announce_completion(completed, summary, session.status)

            return SubmissionResult(
                response=response,
                next_question=next_question,
                session_complete=summary is not None,
                summary=summary,
            )

    async def pause_session(self, session_id: str) -> PracticeSession:
        """Pause an active session and stop its completion timer."""
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            working = session.model_copy(deep=True)
            working.pause(self.clock.now())

            await self._store("save session", self.storage.save_session(working))
            self.registry.replace(working)
            self.timers.cancel(session_id, COMPLETION_TIMER)

            logger.info(
                f"Session {session_id}: active → paused "
                f"({working.remaining_seconds():.0f}s of active time left)"
            )
            await self._emit(SessionEventType.SESSION_PAUSED, working)
            return working.model_copy(deep=True)

    async def resume_session(self, session_id: str) -> PracticeSession:
        """
        Resume a paused session.

        The completion timer is re-armed with the remaining active time;
        time spent paused does not count. A session whose budget is
        already spent is completed instead.
        """
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            now = self.clock.now()
            working = session.model_copy(deep=True)
            working.resume(now)

            if working.remaining_seconds(now) <= 0:
                logger.info(f"Session {session_id}: no active time left on resume")
                await self._complete_locked(working)
                return await self.get_session(session_id)

            await self._store("save session", self.storage.save_session(working))
            self.registry.replace(working)
            self._arm_completion(working)

            logger.info(f"Session {session_id}: paused → active")
            await self._emit(SessionEventType.SESSION_RESUMED, working)
            return working.model_copy(deep=True)

    async def complete_session(self, session_id: str) -> SessionSummary:
        """
        Complete a session and build its summary.

        Raises:
            NotFoundError: Unknown session
            InvalidStateError: Session already completed
        """
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            return await self._complete_locked(session)

    async def _complete_locked(self, session: PracticeSession) -> SessionSummary:
        working, summary = await self._persist_completion(session)
        self._retire(working)
        await self._announce_completion(working, summary, session.status)
        return summary

    async def _persist_completion(self, session: PracticeSession) -> tuple[PracticeSession, SessionSummary]:
        """
        Write the completed session and its performance score.

        The live registry is left untouched, so a storage failure here
        leaves the session exactly as it was. The score is keyed by
        session id and written first; a retry overwrites it.
        """
        now = self.clock.now()
        working = session.model_copy(deep=True)
        working.complete(now)

        history = await self._history_for(working.user_id)
        score = self.tracker.calculate_session_score(working, history, now)
        working.analysis = self.tracker.build_analysis(working, history, now)
        summary = self._build_summary(working, score)
        working.analysis.recommendations = summary.recommendations

        if working.scored_pairs():
            await self._record_score(score)
        await self._store("save session", self.storage.save_session(working))
        return working, summary

    def _retire(self, session: PracticeSession) -> None:
        self.timers.cancel_all(session.id)
        self.registry.unregister(session.id)

    async def _announce_completion(
        self,
        working: PracticeSession,
        summary: SessionSummary,
        old_status: SessionStatus,
    ) -> None:
        logger.info(
            f"Session {working.id}: {old_status.value} → completed "
            f"(score {summary.overall_score:.0f}, {summary.questions_answered}/{summary.total_questions})"
        )

        await self._emit(
            SessionEventType.SESSION_COMPLETED,
            working,
            overall_score=summary.overall_score,
            scheduled_session_id=working.scheduled_session_id,
        )
        for callback in self._completion_callbacks:
            try:
                await callback(working.model_copy(deep=True), summary)
            except Exception as e:
                logger.error(f"Session completion callback error: {e}")

    def _build_summary(self, session: PracticeSession, score: PerformanceScore) -> SessionSummary:
        overall = score.overall_score
        if overall >= 80:
            headline = "Excellent performance! Consider practicing more challenging questions"
        elif overall >= 60:
            headline = "Good progress! Focus on the improvement areas identified"
        else:
            headline = "Keep practicing! Focus on fundamental communication skills"

        recommendations = [headline] + score.recommendations
        active_minutes = session.active_seconds / 60
        if active_minutes > session.config.duration * 1.2:
            recommendations.append("Work on being more concise in your responses")
        recommendations = list(dict.fromkeys(recommendations))[:5]

        answered = bool(session.scored_pairs())
        improvement_areas = session.analysis.improvement_areas
        next_steps = ["Review the detailed feedback for each response"]
        if improvement_areas:
            next_steps.append(f"Focus on improving: {', '.join(improvement_areas)}")
        next_steps.append("Schedule your next practice session")

        highlights = sorted(score.dimension_scores, key=lambda ds: ds.score, reverse=True)[:3]

        return SessionSummary(
            session_id=session.id,
            user_id=session.user_id,
            overall_score=overall,
            ranking=score.ranking if answered else None,
            questions_answered=len(session.responses),
            total_questions=len(session.questions),
            completion_rate=round(session.get_completion_rate(), 1),
            duration_minutes=round(active_minutes, 1),
            highlights=highlights if answered else [],
            strengths=[dimension_label(ds.dimension) for ds in highlights if answered and ds.score >= 70],
            improvement_areas=improvement_areas,
            recommendations=recommendations,
            next_steps=next_steps,
            performance=score if answered else None,
        )

    # =========================================================================
    # QUERIES & HOUSEKEEPING
    # =========================================================================

    async def get_session_progress(self, session_id: str) -> SessionProgress:
        """Progress snapshot; reading it never changes the session."""
        session = await self._load(session_id)
        now = self.clock.now()
        progress = session.get_progress()

        remaining_questions = progress["total"] - progress["completed"]
        average = session.get_average_response_time() or DEFAULT_RESPONSE_SECONDS
        estimate = remaining_questions * average / 60
        if session.status == SessionStatus.COMPLETED:
            estimate = 0.0
        else:
            estimate = min(estimate, session.remaining_seconds(now) / 60)

        return SessionProgress(
            session_id=session.id,
            status=session.status,
            current_question=session.get_current_question(),
            next_question=session.get_next_question(),
            progress=progress,
            time_elapsed=round(session.active_seconds_at(now) / 60, 1),
            estimated_time_remaining=round(estimate, 1),
        )

    async def add_questions(self, session_id: str, questions: list[Question]) -> PracticeSession:
        """Append questions to a session that is still running."""
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            working = await self._append_locked(session, questions)
            return working.model_copy(deep=True)

    async def _append_locked(self, session: PracticeSession, questions: list[Question]) -> PracticeSession:
        working = session.model_copy(deep=True)
        for question in questions:
            working.add_question(question)
        await self._store("save session", self.storage.save_session(working))
        self.registry.replace(working)
        return working

    async def generate_follow_ups(self, session_id: str, response_id: str) -> list[Question]:
        """
        Queue follow-up questions for an answer.

        Each follow-up trigger of the answered question that the answer
        mentions yields one follow-up question, appended to the end of
        the session. A trigger that already has a follow-up for the same
        question is skipped, so calling this twice adds nothing new.

        Args:
            session_id: Session ID
            response_id: Response to follow up on

        Returns:
            The follow-up questions that were added

        Raises:
            NotFoundError: Unknown session or response
            InvalidStateError: Session is completed
        """
        async with self.registry.lock(session_id):
            session = await self._require_live(session_id)
            response = next((r for r in session.responses if r.id == response_id), None)
            if response is None:
                raise NotFoundError("Response", response_id)
            parent = session.get_question(response.question_id)
            if parent is None:
                raise NotFoundError("Question", response.question_id)

            already_asked = {
                q.details.trigger
                for q in session.questions
                if isinstance(q.details, FollowUpDetails) and q.details.parent_question_id == parent.id
            }
            text_lower = response.text.lower()
            follow_ups = [
                Question(
                    type=QuestionType.FOLLOW_UP,
                    category=parent.category,
                    difficulty=parent.difficulty,
                    text=FOLLOW_UP_TEMPLATE.format(trigger=trigger),
                    time_limit=parent.time_limit,
                    details=FollowUpDetails(parent_question_id=parent.id, trigger=trigger),
                )
                for trigger in parent.follow_up_triggers
                if trigger not in already_asked and ta.contains_phrase(text_lower, trigger.lower())
            ]
            if not follow_ups:
                return []

            await self._append_locked(session, follow_ups)
            logger.info(
                f"Session {session_id}: {len(follow_ups)} follow-up(s) queued for question {parent.id}"
            )
            return [q.model_copy(deep=True) for q in follow_ups]

    async def delete_session(self, session_id: str) -> None:
        """Remove a session, its timers and its stored record."""
        async with self.registry.lock(session_id):
            live = self.registry.get(session_id)
            self.timers.cancel_all(session_id)
            deleted = await self._store("delete session", self.storage.delete_session(session_id))
            self.registry.unregister(session_id)
            if live is None and not deleted:
                raise NotFoundError("Session", session_id)
            logger.info(f"Deleted session {session_id}")

    async def get_progress_analytics(
        self,
        user_id: str,
        timeframe: Timeframe = Timeframe.ALL,
    ) -> ProgressAnalytics:
        """Score history summary; trends cover the five base dimensions only."""
        history = await self._history_for(user_id)
        return self.tracker.get_progress_analytics(user_id, history, timeframe, self.clock.now())

    def shutdown(self) -> None:
        """Cancel every outstanding timer."""
        self.timers.shutdown()
