"""Catalog of domain events and their payload shapes.

Every event type maps to exactly one payload model. Payloads carry everything the
registered projectors need to update their read tables; they are stored as JSON and
parsed back with :func:`parse_payload` when projecting or replaying.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from forge.domain.types import HelpUrgency, SignoutType


class EventType(str, enum.Enum):
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_ENDED = "SESSION_ENDED"
    PERSON_SIGNED_IN = "PERSON_SIGNED_IN"
    PERSON_SIGNED_OUT = "PERSON_SIGNED_OUT"
    HELP_REQUESTED = "HELP_REQUESTED"
    HELP_CLAIMED = "HELP_CLAIMED"
    HELP_UNCLAIMED = "HELP_UNCLAIMED"
    HELP_RESOLVED = "HELP_RESOLVED"
    HELP_CANCELLED = "HELP_CANCELLED"
    PROFILE_UPDATED = "PROFILE_UPDATED"


class EntityType(str, enum.Enum):
    CLASS_SESSION = "ClassSession"
    SIGN_IN = "SignIn"
    HELP_REQUEST = "HelpRequest"
    PERSON = "Person"


class EventPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SessionStartedPayload(EventPayload):
    session_id: str
    classroom_id: str
    started_by: str
    by_teacher: bool = True


class SessionEndedPayload(EventPayload):
    session_id: str
    classroom_id: str
    ended_by: str
    by_teacher: bool = True


class PersonSignedInPayload(EventPayload):
    sign_in_id: str
    session_id: str
    classroom_id: str
    person_id: str
    signed_in_by: str
    is_self_sign_in: bool
    by_teacher: bool = False


class PersonSignedOutPayload(EventPayload):
    sign_in_id: str
    session_id: str
    classroom_id: str
    person_id: str
    signed_out_by: str
    signout_type: SignoutType
    by_teacher: bool = False


class HelpRequestedPayload(EventPayload):
    request_id: str
    session_id: str
    classroom_id: str
    requester_id: str
    urgency: HelpUrgency
    category_id: str | None = None
    description: str
    what_i_tried: str
    by_teacher: bool = False


class HelpClaimedPayload(EventPayload):
    request_id: str
    session_id: str
    classroom_id: str
    claimed_by_id: str
    by_teacher: bool = False


class HelpUnclaimedPayload(EventPayload):
    request_id: str
    session_id: str
    classroom_id: str
    unclaimed_by_id: str
    by_teacher: bool = False


class HelpResolvedPayload(EventPayload):
    request_id: str
    session_id: str
    classroom_id: str
    resolver_id: str
    resolution_notes: str | None = None
    by_teacher: bool = False


class HelpCancelledPayload(EventPayload):
    request_id: str
    session_id: str
    classroom_id: str
    cancelled_by: str
    reason: str | None = None
    by_teacher: bool = False


class ProfileUpdatedPayload(EventPayload):
    person_id: str
    school_id: str
    changed_fields: list[str]


PAYLOAD_TYPES: dict[EventType, type[EventPayload]] = {
    EventType.SESSION_STARTED: SessionStartedPayload,
    EventType.SESSION_ENDED: SessionEndedPayload,
    EventType.PERSON_SIGNED_IN: PersonSignedInPayload,
    EventType.PERSON_SIGNED_OUT: PersonSignedOutPayload,
    EventType.HELP_REQUESTED: HelpRequestedPayload,
    EventType.HELP_CLAIMED: HelpClaimedPayload,
    EventType.HELP_UNCLAIMED: HelpUnclaimedPayload,
    EventType.HELP_RESOLVED: HelpResolvedPayload,
    EventType.HELP_CANCELLED: HelpCancelledPayload,
    EventType.PROFILE_UPDATED: ProfileUpdatedPayload,
}


def payload_type_for(event_type: EventType | str) -> type[EventPayload]:
    return PAYLOAD_TYPES[EventType(event_type)]


def parse_payload(event_type: EventType | str, raw: dict[str, Any]) -> EventPayload:
    """Validate a stored JSON payload against the model for ``event_type``."""
    return payload_type_for(event_type).model_validate(raw)


def ensure_payload_matches(event_type: EventType | str, payload: EventPayload) -> None:
    expected = payload_type_for(event_type)
    if not isinstance(payload, expected):
        raise TypeError(
            f"{EventType(event_type).value} expects {expected.__name__}, "
            f"got {type(payload).__name__}"
        )
