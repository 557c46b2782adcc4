"""
Session API endpoints

Handles practice session lifecycle:
- Starting sessions
- Submitting responses and queueing follow-ups
- Pausing, resuming and completing
- Progress snapshots
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from rehearsal.api.dependencies import get_engine
from rehearsal.api.errors import http_error
from rehearsal.exceptions import RehearsalError
from rehearsal.models.session import (
    PracticeSession,
    SessionProgress,
    SubmissionResult,
)
from rehearsal.models.performance import SessionSummary
from rehearsal.models.question import Question

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class StartSessionRequest(BaseModel):
    """Request model for starting a session."""
    user_id: str
    config: dict[str, Any]
    context: dict[str, Any] | None = None
    scheduled_session_id: str | None = None


class SubmitResponseRequest(BaseModel):
    """Request model for submitting an answer."""
    question_id: str
    text: str
    response_time: float = Field(default=0, ge=0)


class DeleteResponse(BaseModel):
    session_id: str
    deleted: bool = True


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("", response_model=PracticeSession, status_code=201)
async def start_session(request: StartSessionRequest) -> PracticeSession:
    """
    Create and start a practice session.

    Questions are drawn from the built-in bank according to the config;
    a config without a duration gets the configured default length.
    """
    try:
        return await get_engine().start_session(
            request.user_id,
            request.config,
            context=request.context,
            scheduled_session_id=request.scheduled_session_id,
        )
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{session_id}", response_model=PracticeSession)
async def get_session(session_id: str) -> PracticeSession:
    """Get a session by id."""
    try:
        return await get_engine().get_session(session_id)
    except RehearsalError as e:
        raise http_error(e)


@router.delete("/{session_id}", response_model=DeleteResponse)
async def delete_session(session_id: str) -> DeleteResponse:
    """Delete a session and its timers."""
    try:
        await get_engine().delete_session(session_id)
        return DeleteResponse(session_id=session_id)
    except RehearsalError as e:
        raise http_error(e)


@router.post("/{session_id}/responses", response_model=SubmissionResult)
async def submit_response(session_id: str, request: SubmitResponseRequest) -> SubmissionResult:
    """
    Submit an answer to the current question.

    Returns the scored response and the next question, or the session
    summary when this was the last answer.
    """
    try:
        return await get_engine().submit_response(
            session_id,
            request.question_id,
            request.text,
            request.response_time,
        )
    except RehearsalError as e:
        raise http_error(e)


@router.post("/{session_id}/responses/{response_id}/follow-ups", response_model=list[Question])
async def generate_follow_ups(session_id: str, response_id: str) -> list[Question]:
    """
    Queue follow-up questions for an answer that mentions one of its
    question's follow-up triggers.
    """
    try:
        return await get_engine().generate_follow_ups(session_id, response_id)
    except RehearsalError as e:
        raise http_error(e)


@router.post("/{session_id}/pause", response_model=PracticeSession)
async def pause_session(session_id: str) -> PracticeSession:
    """Pause an active session; the time limit stops counting."""
    try:
        return await get_engine().pause_session(session_id)
    except RehearsalError as e:
        raise http_error(e)


@router.post("/{session_id}/resume", response_model=PracticeSession)
async def resume_session(session_id: str) -> PracticeSession:
    """Resume a paused session."""
    try:
        return await get_engine().resume_session(session_id)
    except RehearsalError as e:
        raise http_error(e)


@router.post("/{session_id}/complete", response_model=SessionSummary)
async def complete_session(session_id: str) -> SessionSummary:
    """End a session early and return its summary."""
    try:
        return await get_engine().complete_session(session_id)
    except RehearsalError as e:
        raise http_error(e)


@router.get("/{session_id}/progress", response_model=SessionProgress)
async def get_session_progress(session_id: str) -> SessionProgress:
    """Progress snapshot: answered count, current question, time left."""
    try:
        return await get_engine().get_session_progress(session_id)
    except RehearsalError as e:
        raise http_error(e)
