"""
Practice Scheduler - streaks, scheduled sessions and reminders.

Consumes session-engine events to keep each user's daily practice
streak, books future sessions with reminders ahead of them, prompts
users who opted in to daily or weekly reminders, and suggests what to
practise next.

Reminders are stored as records before they are due. Both the
per-reminder timers and the periodic sweep go through
``dispatch_due_reminders``, which marks each reminder sent before it is
handed to the notifier, so re-running the sweep never notifies twice.
"""

import asyncio
import contextlib
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

from rehearsal.config.settings import Settings, get_settings
from rehearsal.core.clock import SystemClock
from rehearsal.core.notifications import LoggingNotifier, Notifier
from rehearsal.core.storage import (
    PRACTICE_STREAKS,
    REMINDER_PREFERENCES,
    REMINDERS,
    SCHEDULED_SESSIONS,
    StorageBackend,
    storage_call,
)
from rehearsal.core.timers import AsyncioTimerBackend, TimerTable
from rehearsal.exceptions import InvalidStateError, NotFoundError, ValidationError
from rehearsal.models.events import SessionEvent, SessionEventType
from rehearsal.models.performance import SessionSummary
from rehearsal.models.scheduling import (
    OPEN_SCHEDULE_STATUSES,
    NotificationKind,
    NotificationPriority,
    PracticeStreak,
    PROMPT_WINDOWS,
    RecommendationType,
    ReminderFrequency,
    ReminderNotification,
    ReminderPreference,
    ReminderSettings,
    ScheduledSession,
    ScheduleStatus,
    SessionRecommendation,
)
from rehearsal.models.session import PracticeSession, SessionConfig, SessionStatus

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 5


class PracticeScheduler:
    """
    Tracks streaks, schedules sessions and dispatches reminders.
    """

    def __init__(
        self,
        storage: StorageBackend,
        notifier: Notifier | None = None,
        timers: TimerTable | None = None,
        clock: Any = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.storage = storage
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock or SystemClock()
        self.timers = timers or TimerTable(AsyncioTimerBackend(self.clock))

        self.default_lead_minutes = list(settings.reminder_lead_minutes)
        self.sweep_seconds = settings.reminder_sweep_seconds
        self.missed_after = timedelta(minutes=settings.missed_after_minutes)
        self.milestones = sorted(settings.streak_milestones)
        self.weekly_target = settings.weekly_session_target

        self._dispatch_lock = asyncio.Lock()
        self._streak_lock = asyncio.Lock()
        self._sweeper: asyncio.Task | None = None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _aware(self, moment: datetime) -> datetime:
        return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)

    async def _save_item(self, item: ScheduledSession) -> None:
        await storage_call(
            "save scheduled session",
            self.storage.save_record(SCHEDULED_SESSIONS, item.id, item.model_dump()),
        )

    async def _save_reminder(self, reminder: ReminderNotification) -> None:
        await storage_call(
            "save reminder",
            self.storage.save_record(REMINDERS, reminder.id, reminder.model_dump()),
        )

    async def _deliver(self, notification: ReminderNotification) -> None:
        try:
            await self.notifier.send(notification)
        except Exception as e:
            logger.error(f"Notification {notification.id} delivery failed: {e}")

    # =========================================================================
    # SCHEDULED SESSIONS
    # =========================================================================

    async def schedule_session(
        self,
        user_id: str,
        scheduled_time: datetime,
        config: SessionConfig | dict[str, Any],
        reminder_settings: ReminderSettings | dict[str, Any] | None = None,
        notes: str | None = None,
    ) -> ScheduledSession:
        """
        Book a future practice session and plan its reminders.

        Args:
            user_id: User the session is for
            scheduled_time: When the session should start
            config: Session configuration to use
            reminder_settings: Reminder lead times (defaults from settings)
            notes: Free-text note

        Returns:
            The stored ScheduledSession

        Raises:
            ValidationError: Invalid config or a start time in the past
        """
        if isinstance(config, dict):
            config = SessionConfig.build(**config)
        if reminder_settings is None:
            reminder_settings = ReminderSettings(lead_times=self.default_lead_minutes)
        elif isinstance(reminder_settings, dict):
            reminder_settings = ReminderSettings.build(**reminder_settings)

        scheduled_time = self._aware(scheduled_time)
        if scheduled_time <= self.clock.now():
            raise ValidationError("Scheduled time must be in the future")

        item = ScheduledSession.build(
            user_id=user_id,
            scheduled_time=scheduled_time,
            config=config,
            reminder_settings=reminder_settings,
            notes=notes,
            created_at=self.clock.now(),
        )
        await self._save_item(item)
        await self._plan_reminders(item)

        logger.info(f"Scheduled session {item.id} for {user_id} at {scheduled_time.isoformat()}")
        return item

    async def get_scheduled_session(self, scheduled_id: str) -> ScheduledSession:
        record = await storage_call(
            "load scheduled session",
            self.storage.get_record(SCHEDULED_SESSIONS, scheduled_id),
        )
        if record is None:
            raise NotFoundError("Scheduled session", scheduled_id)
        return ScheduledSession.model_validate(record)

    async def get_scheduled_sessions(
        self,
        user_id: str,
        include_closed: bool = False,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
        limit: int | None = None,
    ) -> list[ScheduledSession]:
        filters: dict[str, Any] = {"user_id": user_id}
        if not include_closed:
            filters["status"] = {"$in": list(OPEN_SCHEDULE_STATUSES)}
        time_range: dict[str, datetime] = {}
        if from_time is not None:
            time_range["$gte"] = self._aware(from_time)
        if to_time is not None:
            time_range["$lte"] = self._aware(to_time)
        if time_range:
            filters["scheduled_time"] = time_range

        records = await storage_call(
            "query scheduled sessions",
            self.storage.query(SCHEDULED_SESSIONS, filters),
        )
        items = sorted(
            (ScheduledSession.model_validate(r) for r in records),
            key=lambda item: item.scheduled_time,
        )
        return items[:limit] if limit is not None else items

    async def _require_open(self, scheduled_id: str, action: str) -> ScheduledSession:
        item = await self.get_scheduled_session(scheduled_id)
        if not item.is_open:
            raise InvalidStateError(
                f"Cannot {action} scheduled session {scheduled_id}: it is {item.status.value}"
            )
        return item

    async def update_scheduled_session(
        self,
        scheduled_id: str,
        scheduled_time: datetime | None = None,
        reminder_settings: ReminderSettings | dict[str, Any] | None = None,
        config: SessionConfig | dict[str, Any] | None = None,
        notes: str | None = None,
    ) -> ScheduledSession:
        """Change a scheduled session and re-plan its reminders."""
        item = await self._require_open(scheduled_id, "update")

        if scheduled_time is not None:
            scheduled_time = self._aware(scheduled_time)
            if scheduled_time <= self.clock.now():
                raise ValidationError("Scheduled time must be in the future")
            item.scheduled_time = scheduled_time
            item.status = ScheduleStatus.SCHEDULED
        if isinstance(reminder_settings, dict):
            reminder_settings = ReminderSettings.build(**reminder_settings)
        if reminder_settings is not None:
            item.reminder_settings = reminder_settings
        if isinstance(config, dict):
            config = SessionConfig.build(**config)
        if config is not None:
            item.config = config
        if notes is not None:
            item.notes = notes

        await self._save_item(item)
        await self._clear_reminders(item.id)
        await self._plan_reminders(item)
        logger.info(f"Updated scheduled session {item.id}")
        return item

    async def cancel_scheduled_session(self, scheduled_id: str) -> ScheduledSession:
        """Cancel a scheduled session and drop its pending reminders."""
        item = await self._require_open(scheduled_id, "cancel")
        item.status = ScheduleStatus.CANCELLED
        await self._save_item(item)
        await self._clear_reminders(item.id)
        logger.info(f"Cancelled scheduled session {item.id}")
        return item

    async def mark_session_started(self, scheduled_id: str) -> ScheduledSession:
        """Record that the scheduled session was started; pending reminders are dropped."""
        item = await self._require_open(scheduled_id, "start")
        item.status = ScheduleStatus.STARTED
        await self._save_item(item)
        await self._clear_reminders(item.id)
        logger.info(f"Scheduled session {item.id} started")
        return item

    # =========================================================================
    # REMINDERS
    # =========================================================================

    async def _plan_reminders(self, item: ScheduledSession) -> list[ReminderNotification]:
        """Store one pending reminder per lead time and arm a timer for each."""
        if not item.reminder_settings.enabled:
            return []

        now = self.clock.now()
        planned = []
        for lead in item.reminder_settings.lead_times:
            due_at = item.scheduled_time - timedelta(minutes=lead)
            if due_at <= now:
                continue
            reminder = ReminderNotification(
                user_id=item.user_id,
                scheduled_session_id=item.id,
                kind=NotificationKind.UPCOMING,
                title="Interview Practice Reminder",
                message=f"Your practice session starts in {lead} minutes",
                priority=NotificationPriority.HIGH if lead <= 5 else NotificationPriority.MEDIUM,
                due_at=due_at,
                lead_minutes=lead,
            )
            await self._save_reminder(reminder)
            self.timers.arm(
                item.id,
                f"reminder-{lead}",
                (due_at - now).total_seconds(),
                self._on_reminder_timer,
            )
            planned.append(reminder)
        return planned

    async def _on_reminder_timer(self) -> None:
        await self.dispatch_due_reminders()

    async def _clear_reminders(self, scheduled_id: str) -> None:
        self.timers.cancel_all(scheduled_id)
        pending = await storage_call(
            "query reminders",
            self.storage.query(REMINDERS, {"scheduled_session_id": scheduled_id, "sent": False}),
        )
        for record in pending:
            await storage_call("delete reminder", self.storage.delete_record(REMINDERS, record["id"]))

    async def get_reminders(self, scheduled_id: str, include_sent: bool = True) -> list[ReminderNotification]:
        filters: dict[str, Any] = {"scheduled_session_id": scheduled_id}
        if not include_sent:
            filters["sent"] = False
        records = await storage_call("query reminders", self.storage.query(REMINDERS, filters))
        return sorted(
            (ReminderNotification.model_validate(r) for r in records),
            key=lambda r: r.due_at,
        )

    async def dispatch_due_reminders(self, now: datetime | None = None) -> list[ReminderNotification]:
        """
        Send every unsent reminder that has fallen due.

        Safe to re-run: each reminder is marked sent and saved before it
        is handed to the notifier. The same pass marks overdue scheduled
        sessions as missed and sends any automatic practice prompts.

        Returns:
            Reminders and practice prompts sent during this pass
        """
        async with self._dispatch_lock:
            now = now or self.clock.now()
            records = await storage_call(
                "query due reminders",
                self.storage.query(REMINDERS, {"sent": False, "due_at": {"$lte": now}}),
            )
            due = sorted(
                (ReminderNotification.model_validate(r) for r in records),
                key=lambda r: r.due_at,
            )

            sent = []
            for reminder in due:
                item = None
                if reminder.scheduled_session_id is not None:
                    record = await storage_call(
                        "load scheduled session",
                        self.storage.get_record(SCHEDULED_SESSIONS, reminder.scheduled_session_id),
                    )
                    item = ScheduledSession.model_validate(record) if record else None
                    if item is None or not item.is_open:
                        await storage_call("delete reminder", self.storage.delete_record(REMINDERS, reminder.id))
                        continue

                reminder.sent = True
                reminder.sent_at = now
                await self._save_reminder(reminder)
                if item is not None and item.status == ScheduleStatus.SCHEDULED:
                    item.status = ScheduleStatus.REMINDED
                    await self._save_item(item)

                await self._deliver(reminder)
                sent.append(reminder)

            await self._mark_missed(now)
            sent.extend(await self._send_practice_prompts(now))

        if sent:
            logger.info(f"Dispatched {len(sent)} reminder(s)")
        return sent

    async def _mark_missed(self, now: datetime) -> list[ScheduledSession]:
        records = await storage_call(
            "query overdue sessions",
            self.storage.query(SCHEDULED_SESSIONS, {
                "status": {"$in": list(OPEN_SCHEDULE_STATUSES)},
                "scheduled_time": {"$lt": now - self.missed_after},
            }),
        )
        missed = []
        for record in records:
            item = ScheduledSession.model_validate(record)
            item.status = ScheduleStatus.MISSED
            await self._save_item(item)
            await self._clear_reminders(item.id)

            notice = ReminderNotification(
                user_id=item.user_id,
                scheduled_session_id=item.id,
                kind=NotificationKind.OVERDUE,
                title="Missed Practice Session",
                message="You missed a scheduled practice session. Reschedule it to keep your momentum going.",
                priority=NotificationPriority.LOW,
                due_at=now,
                sent=True,
                sent_at=now,
            )
            await self._save_reminder(notice)
            await self._deliver(notice)
            logger.info(f"Scheduled session {item.id} marked missed")
            missed.append(item)
        return missed

    async def run_reminder_sweeper(self, interval_seconds: float | None = None) -> None:
        """Dispatch due reminders forever, once per interval."""
        interval = interval_seconds or self.sweep_seconds
        while True:
            try:
                await self.dispatch_due_reminders()
            except Exception as e:
                logger.error(f"Reminder sweep failed: {e}")
            await asyncio.sleep(interval)

    def start_sweeper(self, interval_seconds: float | None = None) -> asyncio.Task:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self.run_reminder_sweeper(interval_seconds))
            logger.info("Reminder sweeper started")
        return self._sweeper

    async def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
            logger.info("Reminder sweeper stopped")

    async def shutdown(self) -> None:
        await self.stop_sweeper()
        self.timers.shutdown()

    # =========================================================================
    # AUTOMATIC PRACTICE PROMPTS
    # =========================================================================

    async def set_reminder_frequency(
        self,
        user_id: str,
        frequency: ReminderFrequency | str,
    ) -> ReminderPreference:
        """Choose daily, weekly or no automatic practice prompts."""
        try:
            frequency = ReminderFrequency(frequency)
        except ValueError:
            raise ValidationError(f"Unknown reminder frequency: {frequency}")

        preference = await self.get_reminder_preference(user_id)
        preference.frequency = frequency
        preference.updated_at = self.clock.now()
        await self._save_preference(preference)
        logger.info(f"User {user_id} reminder frequency set to {frequency.value}")
        return preference

    async def get_reminder_preference(self, user_id: str) -> ReminderPreference:
        record = await storage_call(
            "load reminder preference",
            self.storage.get_record(REMINDER_PREFERENCES, user_id),
        )
        if record is None:
            return ReminderPreference(user_id=user_id)
        return ReminderPreference.model_validate(record)

    async def _save_preference(self, preference: ReminderPreference) -> None:
        await storage_call(
            "save reminder preference",
            self.storage.save_record(REMINDER_PREFERENCES, preference.user_id, preference.model_dump()),
        )

    async def _send_practice_prompts(self, now: datetime) -> list[ReminderNotification]:
        """
        Prompt users who asked for automatic reminders.

        A user is prompted at most once per daily or weekly window, and
        only while they have no open scheduled session and have not
        practised within the window.
        """
        records = await storage_call(
            "query reminder preferences",
            self.storage.query(REMINDER_PREFERENCES, {"frequency": {"$in": list(PROMPT_WINDOWS)}}),
        )
        prompts = []
        for record in records:
            preference = ReminderPreference.model_validate(record)
            window = PROMPT_WINDOWS[preference.frequency]
            if preference.last_prompted_at and now - self._aware(preference.last_prompted_at) < window:
                continue

            open_items = await storage_call(
                "query scheduled sessions",
                self.storage.query(SCHEDULED_SESSIONS, {
                    "user_id": preference.user_id,
                    "status": {"$in": list(OPEN_SCHEDULE_STATUSES)},
                }),
            )
            if open_items:
                continue
            streak = await self._load_streak(preference.user_id)
            if streak and streak.last_practice_date and (now.date() - streak.last_practice_date).days < window.days:
                continue

            if preference.frequency == ReminderFrequency.DAILY:
                message = "Keep your streak alive with a quick practice session today."
            else:
                message = "A short practice session this week will keep your interview skills sharp."
            prompt = ReminderNotification(
                user_id=preference.user_id,
                kind=NotificationKind.STREAK,
                title="Time to Practice!",
                message=message,
                priority=NotificationPriority.LOW,
                due_at=now,
                sent=True,
                sent_at=now,
            )
            preference.last_prompted_at = now
            await self._save_preference(preference)
            await self._save_reminder(prompt)
            await self._deliver(prompt)
            prompts.append(prompt)

        if prompts:
            logger.info(f"Sent {len(prompts)} practice prompt(s)")
        return prompts

    # =========================================================================
    # STREAKS
    # =========================================================================

    async def _load_streak(self, user_id: str) -> PracticeStreak | None:
        record = await storage_call("load streak", self.storage.get_record(PRACTICE_STREAKS, user_id))
        return PracticeStreak.model_validate(record) if record else None

    async def update_practice_streak(self, user_id: str, practiced_at: datetime | None = None) -> PracticeStreak:
        """
        Record a completed session on its calendar day.

        Same day: only the session count grows. Next day: the streak
        grows. Longer gap: the streak restarts at 1.
        """
        async with self._streak_lock:
            today = self._aware(practiced_at or self.clock.now()).date()
            streak = await self._load_streak(user_id)
            previous = 0

            if streak is None or streak.last_practice_date is None:
                streak = PracticeStreak(
                    user_id=user_id,
                    current_streak=1,
                    longest_streak=max(1, streak.longest_streak if streak else 0),
                    last_practice_date=today,
                    streak_start_date=today,
                    total_sessions=(streak.total_sessions if streak else 0) + 1,
                )
            else:
                previous = streak.current_streak
                gap = (today - streak.last_practice_date).days
                if gap == 1:
                    streak.current_streak += 1
                elif gap > 1:
                    streak.current_streak = 1
                    streak.streak_start_date = today
                streak.total_sessions += 1
                streak.last_practice_date = max(streak.last_practice_date, today)
                streak.longest_streak = max(streak.longest_streak, streak.current_streak)

            await storage_call(
                "save streak",
                self.storage.save_record(PRACTICE_STREAKS, user_id, streak.model_dump()),
            )

        if streak.current_streak > previous and streak.current_streak in self.milestones:
            await self._celebrate(streak)
        return streak

    async def _celebrate(self, streak: PracticeStreak) -> None:
        now = self.clock.now()
        notice = ReminderNotification(
            user_id=streak.user_id,
            kind=NotificationKind.ACHIEVEMENT,
            title="Streak Achievement!",
            message=f"Congratulations! You've maintained a {streak.current_streak}-day practice streak!",
            priority=NotificationPriority.MEDIUM,
            due_at=now,
            sent=True,
            sent_at=now,
        )
        await self._save_reminder(notice)
        await self._deliver(notice)
        logger.info(f"User {streak.user_id} reached a {streak.current_streak}-day streak")

    async def get_practice_streak(self, user_id: str) -> PracticeStreak:
        """
        Current streak as the user would see it today.

        A streak broken by more than a day is reported as 0 but is not
        written back; the next completed session does that.
        """
        streak = await self._load_streak(user_id)
        if streak is None:
            return PracticeStreak(user_id=user_id)
        today = self.clock.now().date()
        if streak.last_practice_date and (today - streak.last_practice_date).days > 1:
            return streak.model_copy(update={"current_streak": 0})
        return streak

    # =========================================================================
    # ENGINE EVENTS
    # =========================================================================

    async def handle_session_completed(self, session: PracticeSession, summary: SessionSummary) -> None:
        """Completion listener: counts the session toward the streak."""
        await self.update_practice_streak(session.user_id, session.end_time)

    async def handle_session_started(self, event: SessionEvent) -> None:
        """Event listener: a session started from a scheduled item marks it started."""
        if event.type != SessionEventType.SESSION_STARTED:
            return
        scheduled_id = event.payload.get("scheduled_session_id")
        if not scheduled_id:
            return
        try:
            await self.mark_session_started(scheduled_id)
        except (NotFoundError, InvalidStateError) as e:
            logger.warning(f"Could not mark scheduled session {scheduled_id} started: {e}")

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    async def get_session_recommendations(self, user_id: str) -> list[SessionRecommendation]:
        """
        Suggestions for the user's next session, highest priority first.

        Returns:
            At most five SessionRecommendation items
        """
        sessions = await storage_call("load user sessions", self.storage.get_user_sessions(user_id))
        completed = sorted(
            (s for s in sessions if s.status == SessionStatus.COMPLETED),
            key=lambda s: s.end_time or s.start_time,
        )
        now = self.clock.now()
        recommendations: list[SessionRecommendation] = []

        # Frequency
        week_ago = now - timedelta(days=7)
        this_week = [s for s in completed if s.start_time >= week_ago]
        if len(this_week) < self.weekly_target:
            recommendations.append(SessionRecommendation(
                type=RecommendationType.FREQUENCY,
                title="Increase Practice Frequency",
                description=(
                    f"You've completed {len(this_week)} session(s) in the last 7 days. "
                    f"Aim for at least {self.weekly_target} sessions per week."
                ),
                suggested_config={"duration": 20},
                priority=8,
                reasoning=[
                    "Regular practice builds confidence",
                    f"{len(this_week)} of {self.weekly_target} weekly sessions completed",
                ],
            ))

        # Timing
        if completed:
            hour = round(sum(s.start_time.hour for s in completed) / len(completed)) % 24
            recommendations.append(SessionRecommendation(
                type=RecommendationType.TIMING,
                title="Optimal Practice Time",
                description=f"You usually practice around {hour:02d}:00. Keeping a regular time helps build the habit.",
                priority=5,
                reasoning=[f"Average start hour across {len(completed)} completed session(s)"],
            ))

        # Focus area
        if len(completed) >= 3:
            weakest = self._weakest_category(completed)
            if weakest is not None:
                category, average = weakest
                recommendations.append(SessionRecommendation(
                    type=RecommendationType.FOCUS,
                    title=f"Focus on {category.replace('-', ' ').title()}",
                    description=(
                        f"Your average score on {category} questions is {average:.0f}. "
                        f"A short focused session will help."
                    ),
                    suggested_config={"question_categories": [category], "duration": 20},
                    priority=9,
                    reasoning=[f"{category} is your lowest-scoring category"],
                ))

        # Difficulty
        recent_scores = [
            s.analysis.overall_score for s in reversed(completed)
            if s.analysis.overall_score > 0
        ][:5]
        if len(recent_scores) >= 3:
            average = sum(recent_scores) / len(recent_scores)
            if average >= 80:
                recommendations.append(SessionRecommendation(
                    type=RecommendationType.DIFFICULTY,
                    title="Increase Difficulty",
                    description="You're consistently scoring well. Try harder questions to keep improving.",
                    suggested_config={"difficulty": "hard"},
                    priority=6,
                    reasoning=[f"Average of last {len(recent_scores)} sessions: {average:.0f}"],
                ))
            elif average < 60:
                recommendations.append(SessionRecommendation(
                    type=RecommendationType.DIFFICULTY,
                    title="Focus on Fundamentals",
                    description="Practise easier questions to strengthen the basics before moving up.",
                    suggested_config={"difficulty": "easy"},
                    priority=7,
                    reasoning=[f"Average of last {len(recent_scores)} sessions: {average:.0f}"],
                ))

        # Streak
        streak = await self.get_practice_streak(user_id)
        if streak.current_streak == 0 and streak.longest_streak > 0:
            recommendations.append(SessionRecommendation(
                type=RecommendationType.FREQUENCY,
                title="Rebuild Your Streak",
                description=f"You had a {streak.longest_streak}-day streak before. Start a new one today!",
                priority=8,
                reasoning=["Your practice streak has lapsed"],
            ))

        recommendations.sort(key=lambda r: r.priority, reverse=True)
        return recommendations[:MAX_RECOMMENDATIONS]

    @staticmethod
    def _weakest_category(sessions: list[PracticeSession]) -> tuple[str, float] | None:
        scores: dict[str, list[float]] = defaultdict(list)
        for session in sessions:
            for question, response in session.scored_pairs():
                scores[question.category.value].append(response.analysis.overall_score)
        if not scores:
            return None
        averages = {category: sum(v) / len(v) for category, v in scores.items()}
        category = min(averages, key=averages.get)
        if averages[category] < 70:
            return category, averages[category]
        return None
