"""Plain records exchanged between use cases and repository/event-store ports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from forge.domain.events import EventPayload, EventType, parse_payload
from forge.domain.types import (
    ClassroomSettings,
    HelpRequestStatus,
    HelpUrgency,
    MemberRole,
    SessionStatus,
    SessionType,
    SignoutType,
)


@dataclass(frozen=True, slots=True)
class ClassroomRecord:
    id: str
    school_id: str
    name: str
    slug: str
    display_code: str
    description: str | None = None
    settings: ClassroomSettings = field(default_factory=ClassroomSettings)
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class MembershipRecord:
    id: str
    classroom_id: str
    person_id: str
    role: MemberRole
    is_active: bool
    joined_at: datetime
    left_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PersonRecord:
    id: str
    school_id: str
    legal_name: str
    display_name: str
    email: str | None = None
    pronouns: str | None = None
    grade_level: str | None = None
    ask_me_about: tuple[str, ...] = ()
    theme_color: str | None = None
    currently_working_on: str | None = None
    help_queue_visible: bool = True
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class MemberWithPerson:
    membership: MembershipRecord
    person: PersonRecord


@dataclass(frozen=True, slots=True)
class SessionRecord:
    id: str
    classroom_id: str
    session_type: SessionType
    scheduled_date: datetime
    start_time: datetime
    end_time: datetime
    status: SessionStatus
    name: str | None = None
    actual_start_at: datetime | None = None
    actual_end_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class CreateSessionInput:
    id: str
    classroom_id: str
    session_type: SessionType
    scheduled_date: datetime
    start_time: datetime
    end_time: datetime
    name: str | None = None


@dataclass(frozen=True, slots=True)
class SignInRecord:
    id: str
    session_id: str
    person_id: str
    signed_in_at: datetime
    signed_in_by_id: str
    signed_out_at: datetime | None = None
    signed_out_by_id: str | None = None
    signout_type: SignoutType | None = None


@dataclass(frozen=True, slots=True)
class PresentPerson:
    sign_in: SignInRecord
    person_id: str
    display_name: str
    legal_name: str
    ask_me_about: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class HelpCategoryRecord:
    id: str
    classroom_id: str
    name: str
    display_order: int
    description: str | None = None
    ninja_domain_id: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class HelpRequestRecord:
    id: str
    classroom_id: str
    session_id: str
    requester_id: str
    description: str
    what_i_tried: str
    urgency: HelpUrgency
    status: HelpRequestStatus
    created_at: datetime
    category_id: str | None = None
    claimed_by_id: str | None = None
    claimed_at: datetime | None = None
    resolved_at: datetime | None = None
    cancelled_at: datetime | None = None
    resolution_notes: str | None = None
    cancellation_reason: str | None = None


@dataclass(frozen=True, slots=True)
class NinjaDomainRecord:
    id: str
    classroom_id: str
    name: str
    display_order: int
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class NinjaAssignmentRecord:
    id: str
    person_id: str
    ninja_domain_id: str
    assigned_by_id: str
    is_active: bool
    assigned_at: datetime
    revoked_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PinCandidate:
    person_id: str
    pin_hash: str


@dataclass(frozen=True, slots=True)
class PinSessionRecord:
    id: str
    token: str
    person_id: str
    classroom_id: str
    expires_at: datetime
    last_activity_at: datetime


@dataclass(frozen=True, slots=True)
class StudentPinInfo:
    person_id: str
    display_name: str
    has_pin: bool


@dataclass(frozen=True, slots=True)
class AppendEventInput:
    """What a use case hands to the event store; id and timestamp are assigned on append."""

    school_id: str
    event_type: EventType
    entity_type: str
    entity_id: str
    payload: EventPayload
    classroom_id: str | None = None
    session_id: str | None = None
    actor_id: str | None = None


@dataclass(frozen=True, slots=True)
class StoredEvent:
    id: str
    school_id: str
    event_type: EventType
    entity_type: str
    entity_id: str
    payload: dict[str, Any]
    created_at: datetime
    classroom_id: str | None = None
    session_id: str | None = None
    actor_id: str | None = None

    def parsed_payload(self) -> EventPayload:
        return parse_payload(self.event_type, self.payload)


@dataclass(frozen=True, slots=True)
class EventFilters:
    """AND-combined, all optional."""

    school_id: str | None = None
    classroom_id: str | None = None
    session_id: str | None = None
    event_type: EventType | None = None
    entity_type: str | None = None
    entity_id: str | None = None
