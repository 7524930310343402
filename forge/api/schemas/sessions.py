from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from forge.domain.types import SessionStatus, SessionType


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    classroom_id: str
    session_type: SessionType
    name: str | None = None
    scheduled_date: datetime
    start_time: datetime
    end_time: datetime
    status: SessionStatus
    actual_start_at: datetime | None = None
    actual_end_at: datetime | None = None


class CurrentSessionResponse(BaseModel):
    session: SessionResponse | None = None


class SessionsResponse(BaseModel):
    sessions: list[SessionResponse]
