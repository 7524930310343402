from .event_store import EventStore
from .records import (
    AppendEventInput,
    ClassroomRecord,
    CreateSessionInput,
    EventFilters,
    HelpCategoryRecord,
    HelpRequestRecord,
    MembershipRecord,
    MemberWithPerson,
    NinjaAssignmentRecord,
    NinjaDomainRecord,
    PersonRecord,
    PinCandidate,
    PinSessionRecord,
    PresentPerson,
    SessionRecord,
    SignInRecord,
    StoredEvent,
    StudentPinInfo,
)
from .repositories import (
    ClassroomRepository,
    HelpRepository,
    NinjaRepository,
    PersonRepository,
    PinRepository,
    PresenceRepository,
    SessionRepository,
)
from .services import Clock, HashService, IdGenerator, TokenGenerator

__all__ = [
    "AppendEventInput",
    "ClassroomRecord",
    "ClassroomRepository",
    "Clock",
    "CreateSessionInput",
    "EventFilters",
    "EventStore",
    "HashService",
    "HelpCategoryRecord",
    "HelpRepository",
    "HelpRequestRecord",
    "IdGenerator",
    "MemberWithPerson",
    "MembershipRecord",
    "NinjaAssignmentRecord",
    "NinjaDomainRecord",
    "NinjaRepository",
    "PersonRecord",
    "PersonRepository",
    "PinCandidate",
    "PinRepository",
    "PinSessionRecord",
    "PresenceRepository",
    "PresentPerson",
    "SessionRecord",
    "SessionRepository",
    "SignInRecord",
    "StoredEvent",
    "StudentPinInfo",
    "TokenGenerator",
]
