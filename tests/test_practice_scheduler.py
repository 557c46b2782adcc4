"""
Tests for streaks, scheduled sessions, reminders and recommendations.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rehearsal.exceptions import InvalidStateError, NotFoundError, ValidationError
from rehearsal.models.evaluation import PracticeResponse, ResponseAnalysis
from rehearsal.models.performance import SessionAnalysis
from rehearsal.models.scheduling import (
    NotificationKind,
    NotificationPriority,
    RecommendationType,
    ReminderFrequency,
    ScheduleStatus,
)
from rehearsal.models.session import PracticeSession, SessionConfig, SessionStatus
from tests.conftest import GOOD_ANSWER, make_question

CONFIG = {"question_categories": ["teamwork"], "duration": 20}


def day(n: int, hour: int = 10) -> datetime:
    """Calendar day ``n`` of January 2024 at ``hour`` UTC."""
    return datetime(2024, 1, n, hour, 0, tzinfo=timezone.utc)


# ============================================================================
# STREAKS
# ============================================================================

class TestStreaks:

    @pytest.mark.asyncio
    async def test_first_session_starts_streak(self, scheduler):
        streak = await scheduler.update_practice_streak("user-1", day(1))
        assert streak.current_streak == 1
        assert streak.longest_streak == 1
        assert streak.total_sessions == 1
        assert streak.streak_start_date == day(1).date()

    @pytest.mark.asyncio
    async def test_consecutive_days_then_gap(self, scheduler):
        await scheduler.update_practice_streak("user-1", day(1))
        streak = await scheduler.update_practice_streak("user-1", day(2))
        assert streak.current_streak == 2

        # Day 3 skipped
        streak = await scheduler.update_practice_streak("user-1", day(4))
        assert streak.current_streak == 1
        assert streak.longest_streak == 2
        assert streak.streak_start_date == day(4).date()
        assert streak.current_streak <= streak.longest_streak

    @pytest.mark.asyncio
    async def test_same_day_only_counts_session(self, scheduler):
        await scheduler.update_practice_streak("user-1", day(1, 9))
        streak = await scheduler.update_practice_streak("user-1", day(1, 18))
        assert streak.current_streak == 1
        assert streak.total_sessions == 2

    @pytest.mark.asyncio
    async def test_milestone_notification(self, scheduler, notifier):
        for n in (1, 2, 3):
            await scheduler.update_practice_streak("user-1", day(n))
        # Practising again on day 3 must not celebrate twice
        await scheduler.update_practice_streak("user-1", day(3, 20))

        achievements = [n for n in notifier.sent if n.kind == NotificationKind.ACHIEVEMENT]
        assert len(achievements) == 1
        assert achievements[0].title == "Streak Achievement!"
        assert achievements[0].message == "Congratulations! You've maintained a 3-day practice streak!"

    @pytest.mark.asyncio
    async def test_read_reports_broken_streak(self, scheduler, clock):
        await scheduler.update_practice_streak("user-1", day(1))
        await scheduler.update_practice_streak("user-1", day(2))

        clock.set(day(5))
        streak = await scheduler.get_practice_streak("user-1")
        assert streak.current_streak == 0
        assert streak.longest_streak == 2

        # The read does not persist the reset
        clock.set(day(2, 20))
        assert (await scheduler.get_practice_streak("user-1")).current_streak == 2

    @pytest.mark.asyncio
    async def test_unknown_user(self, scheduler):
        streak = await scheduler.get_practice_streak("nobody")
        assert streak.current_streak == 0
        assert streak.total_sessions == 0


# ============================================================================
# SCHEDULED SESSIONS & REMINDERS
# ============================================================================

class TestScheduling:

    @pytest.mark.asyncio
    async def test_schedule_plans_reminders(self, scheduler, clock, timer_backend):
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)

        assert item.status == ScheduleStatus.SCHEDULED
        reminders = await scheduler.get_reminders(item.id)
        assert [r.lead_minutes for r in reminders] == [15, 5]
        assert all(not r.sent for r in reminders)
        assert timer_backend.pending_count == 2

    @pytest.mark.asyncio
    async def test_past_time_rejected(self, scheduler, clock):
        with pytest.raises(ValidationError):
            await scheduler.schedule_session("user-1", clock.now() - timedelta(minutes=1), CONFIG)

    @pytest.mark.asyncio
    async def test_invalid_config_rejected(self, scheduler, clock):
        with pytest.raises(ValidationError):
            await scheduler.schedule_session(
                "user-1", clock.now() + timedelta(hours=1), {"question_categories": []}
            )

    @pytest.mark.asyncio
    async def test_naive_time_treated_as_utc(self, scheduler, clock):
        naive = (clock.now() + timedelta(hours=2)).replace(tzinfo=None)
        item = await scheduler.schedule_session("user-1", naive, CONFIG)
        assert item.scheduled_time == clock.now() + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_lead_times_already_passed_are_skipped(self, scheduler, clock):
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(minutes=10), CONFIG)
        reminders = await scheduler.get_reminders(item.id)
        assert [r.lead_minutes for r in reminders] == [5]

    @pytest.mark.asyncio
    async def test_reminders_fire_in_order(self, scheduler, clock, timer_backend, notifier):
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)

        await timer_backend.advance(minutes=45)
        assert len(notifier.sent) == 1
        first = notifier.sent[0]
        assert first.title == "Interview Practice Reminder"
        assert first.message == "Your practice session starts in 15 minutes"
        assert first.priority == NotificationPriority.MEDIUM
        assert (await scheduler.get_scheduled_session(item.id)).status == ScheduleStatus.REMINDED

        await timer_backend.advance(minutes=10)
        assert len(notifier.sent) == 2
        assert notifier.sent[1].priority == NotificationPriority.HIGH
        assert all(r.sent for r in await scheduler.get_reminders(item.id))

    @pytest.mark.asyncio
    async def test_dispatch_is_idempotent(self, scheduler, clock, notifier):
        await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)
        clock.advance(minutes=50)

        first = await scheduler.dispatch_due_reminders()
        second = await scheduler.dispatch_due_reminders()

        assert len(first) == 1
        assert second == []
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_notifier_failure_is_swallowed(self, scheduler, clock, notifier):
        async def broken(notification):
            raise ConnectionError("push service down")

        notifier.send = broken
        await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)
        clock.advance(minutes=50)

        sent = await scheduler.dispatch_due_reminders()

        assert len(sent) == 1
        assert await scheduler.dispatch_due_reminders() == []

    @pytest.mark.asyncio
    async def test_cancel_clears_reminders(self, scheduler, clock, timer_backend, notifier):
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)

        cancelled = await scheduler.cancel_scheduled_session(item.id)

        assert cancelled.status == ScheduleStatus.CANCELLED
        assert await scheduler.get_reminders(item.id) == []
        assert timer_backend.pending_count == 0
        await timer_backend.advance(minutes=60)
        assert notifier.sent == []

        with pytest.raises(InvalidStateError):
            await scheduler.cancel_scheduled_session(item.id)

    @pytest.mark.asyncio
    async def test_unknown_item(self, scheduler):
        with pytest.raises(NotFoundError):
            await scheduler.cancel_scheduled_session("missing")

    @pytest.mark.asyncio
    async def test_update_reschedules_reminders(self, scheduler, clock):
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)
        new_time = clock.now() + timedelta(hours=3)

        updated = await scheduler.update_scheduled_session(
            item.id,
            scheduled_time=new_time,
            reminder_settings={"lead_times": [30]},
        )

        assert updated.scheduled_time == new_time
        reminders = await scheduler.get_reminders(item.id)
        assert [r.lead_minutes for r in reminders] == [30]
        assert reminders[0].due_at == new_time - timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_invalid_lead_time(self, scheduler, clock):
        with pytest.raises(ValidationError):
            await scheduler.schedule_session(
                "user-1", clock.now() + timedelta(hours=1), CONFIG,
                reminder_settings={"lead_times": [0]},
            )

    @pytest.mark.asyncio
    async def test_missed_sessions(self, scheduler, clock, notifier):
        item = await scheduler.schedule_session(
            "user-1", clock.now() + timedelta(minutes=20), CONFIG,
            reminder_settings={"enabled": False},
        )
        clock.advance(minutes=51)

        await scheduler.dispatch_due_reminders()

        assert (await scheduler.get_scheduled_session(item.id)).status == ScheduleStatus.MISSED
        assert [n.kind for n in notifier.sent] == [NotificationKind.OVERDUE]
        assert notifier.sent[0].title == "Missed Practice Session"
        with pytest.raises(InvalidStateError):
            await scheduler.mark_session_started(item.id)

    @pytest.mark.asyncio
    async def test_listing(self, scheduler, clock):
        later = await scheduler.schedule_session("user-1", clock.now() + timedelta(days=2), CONFIG)
        sooner = await scheduler.schedule_session("user-1", clock.now() + timedelta(days=1), CONFIG)
        cancelled = await scheduler.schedule_session("user-1", clock.now() + timedelta(days=3), CONFIG)
        await scheduler.schedule_session("user-2", clock.now() + timedelta(days=1), CONFIG)
        await scheduler.cancel_scheduled_session(cancelled.id)

        items = await scheduler.get_scheduled_sessions("user-1")
        assert [i.id for i in items] == [sooner.id, later.id]

        everything = await scheduler.get_scheduled_sessions("user-1", include_closed=True)
        assert len(everything) == 3

        window = await scheduler.get_scheduled_sessions(
            "user-1", from_time=clock.now() + timedelta(hours=36), to_time=clock.now() + timedelta(days=4),
        )
        assert [i.id for i in window] == [later.id]

        assert len(await scheduler.get_scheduled_sessions("user-1", limit=1)) == 1


# ============================================================================
# AUTOMATIC PRACTICE PROMPTS
# ============================================================================

def prompts(notifier) -> list:
    return [n for n in notifier.sent if n.kind == NotificationKind.STREAK]


class TestPracticePrompts:

    @pytest.mark.asyncio
    async def test_daily_prompt_once_per_day(self, scheduler, clock, notifier):
        preference = await scheduler.set_reminder_frequency("user-1", "daily")
        assert preference.frequency == ReminderFrequency.DAILY

        sent = await scheduler.dispatch_due_reminders()
        assert [n.title for n in sent] == ["Time to Practice!"]
        assert prompts(notifier)[0].priority == NotificationPriority.LOW

        clock.advance(minutes=30)
        assert await scheduler.dispatch_due_reminders() == []

        clock.advance(days=1)
        await scheduler.dispatch_due_reminders()
        assert len(prompts(notifier)) == 2
        stored = await scheduler.get_reminder_preference("user-1")
        assert stored.last_prompted_at == clock.now()

    @pytest.mark.asyncio
    async def test_no_prompt_while_a_session_is_scheduled(self, scheduler, clock, notifier):
        await scheduler.set_reminder_frequency("user-1", ReminderFrequency.DAILY)
        await scheduler.schedule_session("user-1", clock.now() + timedelta(days=3), CONFIG)

        await scheduler.dispatch_due_reminders()

        assert prompts(notifier) == []

    @pytest.mark.asyncio
    async def test_weekly_prompt_waits_for_a_week_without_practice(self, scheduler, clock, notifier):
        await scheduler.set_reminder_frequency("user-1", "weekly")
        await scheduler.update_practice_streak("user-1", clock.now() - timedelta(days=2))

        await scheduler.dispatch_due_reminders()
        assert prompts(notifier) == []

        clock.advance(days=6)
        await scheduler.dispatch_due_reminders()
        assert len(prompts(notifier)) == 1
        assert "this week" in prompts(notifier)[0].message

    @pytest.mark.asyncio
    async def test_opting_out(self, scheduler, notifier):
        await scheduler.set_reminder_frequency("user-1", "daily")
        await scheduler.set_reminder_frequency("user-1", "none")

        await scheduler.dispatch_due_reminders()

        assert prompts(notifier) == []
        with pytest.raises(ValidationError):
            await scheduler.set_reminder_frequency("user-1", "hourly")

    @pytest.mark.asyncio
    async def test_default_preference(self, scheduler):
        preference = await scheduler.get_reminder_preference("user-9")
        assert preference.frequency == ReminderFrequency.NONE
        assert preference.last_prompted_at is None


# ============================================================================
# ENGINE INTEGRATION
# ============================================================================

class TestEngineIntegration:

    @pytest.mark.asyncio
    async def test_completed_session_updates_streak(self, engine, scheduler, session_config):
        engine.on_session_completed(scheduler.handle_session_completed)

        session = await engine.start_session("user-1", session_config)
        await engine.submit_response(session.id, "q1", GOOD_ANSWER)
        await engine.complete_session(session.id)

        streak = await scheduler.get_practice_streak("user-1")
        assert streak.current_streak == 1
        assert streak.total_sessions == 1

    @pytest.mark.asyncio
    async def test_starting_scheduled_session_marks_it_started(
        self, engine, scheduler, session_config, clock, timer_backend, notifier
    ):
        engine.on_event(scheduler.handle_session_started)
        item = await scheduler.schedule_session("user-1", clock.now() + timedelta(hours=1), CONFIG)

        await engine.start_session("user-1", session_config, scheduled_session_id=item.id)

        assert (await scheduler.get_scheduled_session(item.id)).status == ScheduleStatus.STARTED
        assert await scheduler.get_reminders(item.id, include_sent=False) == []
        await timer_backend.advance(minutes=30)
        assert notifier.sent == []


# ============================================================================
# RECOMMENDATIONS
# ============================================================================

async def save_completed_session(storage, clock, days_ago: int, category: str, score: float) -> None:
    question = make_question(f"q-{days_ago}", category=category)
    start = clock.now() - timedelta(days=days_ago)
    session = PracticeSession(
        id=f"s-{days_ago}",
        user_id="user-1",
        config=SessionConfig(question_categories=[category]),
        questions=[question],
        responses=[PracticeResponse(
            question_id=question.id,
            session_id=f"s-{days_ago}",
            text="An answer.",
            analysis=ResponseAnalysis(overall_score=score),
        )],
        analysis=SessionAnalysis(overall_score=score),
        status=SessionStatus.COMPLETED,
        start_time=start,
        end_time=start + timedelta(minutes=20),
        last_resumed_at=None,
    )
    await storage.save_session(session)


class TestRecommendations:

    @pytest.mark.asyncio
    async def test_new_user_gets_frequency_nudge(self, scheduler):
        recommendations = await scheduler.get_session_recommendations("user-1")

        assert len(recommendations) == 1
        assert recommendations[0].type == RecommendationType.FREQUENCY
        assert recommendations[0].priority == 8

    @pytest.mark.asyncio
    async def test_weak_category_and_low_scores(self, scheduler, storage, clock):
        for days_ago in (1, 2, 3):
            await save_completed_session(storage, clock, days_ago, "leadership", 40)

        recommendations = await scheduler.get_session_recommendations("user-1")

        assert [r.type for r in recommendations] == [
            RecommendationType.FOCUS,
            RecommendationType.DIFFICULTY,
            RecommendationType.TIMING,
        ]
        assert recommendations[0].priority == 9
        assert recommendations[0].suggested_config["question_categories"] == ["leadership"]
        assert recommendations[1].suggested_config == {"difficulty": "easy"}
        assert "09:00" in recommendations[2].description

    @pytest.mark.asyncio
    async def test_high_scores_suggest_harder_questions(self, scheduler, storage, clock):
        for days_ago in (1, 2, 3):
            await save_completed_session(storage, clock, days_ago, "teamwork", 90)

        recommendations = await scheduler.get_session_recommendations("user-1")

        difficulty = [r for r in recommendations if r.type == RecommendationType.DIFFICULTY]
        assert difficulty[0].suggested_config == {"difficulty": "hard"}
        assert difficulty[0].priority == 6
        assert all(r.type != RecommendationType.FOCUS for r in recommendations)

    @pytest.mark.asyncio
    async def test_lapsed_streak(self, scheduler, clock):
        await scheduler.update_practice_streak("user-1", clock.now() - timedelta(days=5))

        recommendations = await scheduler.get_session_recommendations("user-1")

        titles = [r.title for r in recommendations]
        assert "Rebuild Your Streak" in titles
        priorities = [r.priority for r in recommendations]
        assert priorities == sorted(priorities, reverse=True)
        assert len(recommendations) <= 5
