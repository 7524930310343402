from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from forge.domain.types import HelpRequestStatus, HelpUrgency


class HelpRequestCreate(BaseModel):
    session_id: str
    description: str = Field(..., min_length=1)
    what_i_tried: str = Field(..., min_length=1)
    urgency: HelpUrgency = HelpUrgency.QUESTION
    category_id: str | None = None


class HelpRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    classroom_id: str
    session_id: str
    requester_id: str
    description: str
    what_i_tried: str
    urgency: HelpUrgency
    status: HelpRequestStatus
    category_id: str | None = None
    claimed_by_id: str | None = None
    claimed_at: datetime | None = None
    resolved_at: datetime | None = None
    cancelled_at: datetime | None = None
    resolution_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime


class HelpRequestCreated(BaseModel):
    request: HelpRequestResponse
    queue_position: int


class QueueEntry(BaseModel):
    position: int
    wait_minutes: int
    request: HelpRequestResponse


class QueueResponse(BaseModel):
    queue: list[QueueEntry]


class ResolveRequest(BaseModel):
    resolution_notes: str | None = None


class CancelRequest(BaseModel):
    reason: str | None = None
