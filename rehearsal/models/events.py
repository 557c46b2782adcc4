"""
Session lifecycle events pushed to subscribers.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from rehearsal.models.base import utc_now


class SessionEventType(str, Enum):
    SESSION_STARTED = "session_started"
    RESPONSE_SCORED = "response_scored"
    SESSION_PAUSED = "session_paused"
    SESSION_RESUMED = "session_resumed"
    SESSION_COMPLETED = "session_completed"


class SessionEvent(BaseModel):
    """Something that happened to a practice session."""

    type: SessionEventType
    session_id: str
    user_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    payload: dict[str, Any] = Field(default_factory=dict)
