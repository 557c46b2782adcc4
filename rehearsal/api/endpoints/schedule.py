"""
Schedule API endpoints

Handles booking and cancelling future practice sessions.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from rehearsal.api.dependencies import get_scheduler
from rehearsal.api.errors import http_error
from rehearsal.exceptions import RehearsalError
from rehearsal.models.scheduling import ScheduledSession

router = APIRouter()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ScheduleRequest(BaseModel):
    """Request model for booking a session."""
    user_id: str
    scheduled_time: datetime
    config: dict[str, Any]
    reminder_settings: dict[str, Any] | None = None
    notes: str | None = Field(default=None, max_length=500)


class UpdateScheduleRequest(BaseModel):
    """Request model for changing a booked session."""
    scheduled_time: datetime | None = None
    config: dict[str, Any] | None = None
    reminder_settings: dict[str, Any] | None = None
    notes: str | None = Field(default=None, max_length=500)


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("", response_model=ScheduledSession, status_code=201)
async def schedule_session(request: ScheduleRequest) -> ScheduledSession:
    """Book a future session; reminders are planned ahead of it."""
    try:
        return await get_scheduler().schedule_session(
            request.user_id,
            request.scheduled_time,
            request.config,
            reminder_settings=request.reminder_settings,
            notes=request.notes,
        )
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{scheduled_id}", response_model=ScheduledSession)
async def get_scheduled_session(scheduled_id: str) -> ScheduledSession:
    try:
        return await get_scheduler().get_scheduled_session(scheduled_id)
    except RehearsalError as e:
        raise http_error(e)


@router.patch("/{scheduled_id}", response_model=ScheduledSession)
async def update_scheduled_session(scheduled_id: str, request: UpdateScheduleRequest) -> ScheduledSession:
    """Move or reconfigure a booked session; reminders are re-planned."""
    try:
        return await get_scheduler().update_scheduled_session(
            scheduled_id,
            scheduled_time=request.scheduled_time,
            reminder_settings=request.reminder_settings,
            config=request.config,
            notes=request.notes,
        )
    except RehearsalError as e:
        raise http_error(e)


@router.delete("/{scheduled_id}", response_model=ScheduledSession)
async def cancel_scheduled_session(scheduled_id: str) -> ScheduledSession:
    """Cancel a booked session and drop its pending reminders."""
    try:
        return await get_scheduler().cancel_scheduled_session(scheduled_id)
    except RehearsalError as e:
        raise http_error(e)
