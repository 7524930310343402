from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from forge.domain.types import HelpRequestStatus, HelpUrgency, SessionStatus


class DisplaySession(BaseModel):
    id: str
    name: str | None = None
    status: SessionStatus


class DisplayPerson(BaseModel):
    person_id: str
    display_name: str
    ask_me_about: list[str]


class DisplayQueueEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int
    wait_minutes: int
    description: str
    urgency: HelpUrgency
    status: HelpRequestStatus
    created_at: datetime
    requester_name: str | None = None
    category_name: str | None = None
    claimed_by_name: str | None = None


class DisplayBoardResponse(BaseModel):
    classroom_name: str
    display_code: str
    session: DisplaySession | None = None
    presence_enabled: bool
    help_enabled: bool
    present: list[DisplayPerson]
    queue: list[DisplayQueueEntry]
