"""
User API endpoints

Per-user views:
- Practice streak
- Session recommendations
- Progress analytics
- Upcoming scheduled sessions
- Automatic reminder preference
"""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from rehearsal.api.dependencies import get_engine, get_scheduler
from rehearsal.api.errors import http_error
from rehearsal.exceptions import RehearsalError
from rehearsal.models.performance import ProgressAnalytics, Timeframe
from rehearsal.models.scheduling import (
    PracticeStreak,
    ReminderFrequency,
    ReminderPreference,
    ScheduledSession,
    SessionRecommendation,
)

router = APIRouter()


class ReminderPreferenceRequest(BaseModel):
    """Request model for choosing automatic practice prompts."""
    frequency: ReminderFrequency


@router.get("/{user_id}/streak", response_model=PracticeStreak)
async def get_practice_streak(user_id: str) -> PracticeStreak:
    """Current practice streak; 0 once a day has been skipped."""
    try:
        return await get_scheduler().get_practice_streak(user_id)
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{user_id}/recommendations", response_model=list[SessionRecommendation])
async def get_recommendations(user_id: str) -> list[SessionRecommendation]:
    """Suggestions for the next session, highest priority first."""
    try:
        return await get_scheduler().get_session_recommendations(user_id)
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{user_id}/analytics", response_model=ProgressAnalytics)
async def get_progress_analytics(
    user_id: str,
    timeframe: Timeframe = Query(default=Timeframe.ALL),
) -> ProgressAnalytics:
    """Score history, improvement rate and per-dimension trends."""
    try:
        return await get_engine().get_progress_analytics(user_id, timeframe)
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{user_id}/schedule", response_model=list[ScheduledSession])
async def get_scheduled_sessions(
    user_id: str,
    include_closed: bool = False,
    limit: int | None = Query(default=None, ge=1),
) -> list[ScheduledSession]:
    """Booked sessions in start-time order."""
    try:
        return await get_scheduler().get_scheduled_sessions(
            user_id,
            include_closed=include_closed,
            limit=limit,
        )
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{user_id}/reminder-preference", response_model=ReminderPreference)
async def get_reminder_preference(user_id: str) -> ReminderPreference:
    try:
        return await get_scheduler().get_reminder_preference(user_id)
    except RehearsalError as e:
        raise http_error(e)


@router.put("/{user_id}/reminder-preference", response_model=ReminderPreference)
async def set_reminder_preference(user_id: str, request: ReminderPreferenceRequest) -> ReminderPreference:
    """Opt in to daily or weekly "Time to Practice!" prompts, or out with "none"."""
    try:
        return await get_scheduler().set_reminder_frequency(user_id, request.frequency)
    except RehearsalError as e:
        raise http_error(e)
