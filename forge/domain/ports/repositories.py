"""Repository ports, one per aggregate.

Write methods exist only for state that is not derived from the event log. Sessions
are created here but their lifecycle (active/ended) is projected; sign-ins and help
requests are written exclusively by projectors.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from forge.domain.ports.records import (
    ClassroomRecord,
    CreateSessionInput,
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
    StudentPinInfo,
)
from forge.domain.types import ClassroomSettings, MemberRole


class ClassroomRepository(Protocol):
    async def get_by_id(self, classroom_id: str) -> ClassroomRecord | None: ...

    async def get_by_display_code(self, display_code: str) -> ClassroomRecord | None: ...

    async def create(self, record: ClassroomRecord) -> ClassroomRecord: ...

    async def update_settings(
        self, classroom_id: str, settings: ClassroomSettings
    ) -> ClassroomRecord: ...

    async def get_membership(
        self, classroom_id: str, person_id: str
    ) -> MembershipRecord | None: ...

    async def list_memberships_for_person(self, person_id: str) -> list[MembershipRecord]: ...

    async def list_members(
        self, classroom_id: str, *, active_only: bool = True
    ) -> list[MemberWithPerson]: ...

    async def create_membership(
        self,
        *,
        classroom_id: str,
        person_id: str,
        role: MemberRole,
        joined_at: datetime,
    ) -> MembershipRecord: ...

    async def update_membership(self, membership_id: str, **changes: Any) -> MembershipRecord: ...


class SessionRepository(Protocol):
    async def get_by_id(self, session_id: str) -> SessionRecord | None: ...

    async def find_active(self, classroom_id: str) -> SessionRecord | None: ...

    async def list_by_classroom(
        self,
        classroom_id: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[SessionRecord]: ...

    async def create(self, data: CreateSessionInput) -> SessionRecord: ...

    async def update(self, session_id: str, **changes: Any) -> SessionRecord: ...


class PresenceRepository(Protocol):
    async def get_sign_in(self, sign_in_id: str) -> SignInRecord | None: ...

    async def get_active_sign_in(self, session_id: str, person_id: str) -> SignInRecord | None: ...

    async def list_present_people(self, session_id: str) -> list[PresentPerson]: ...

    async def list_sign_ins_for_session(self, session_id: str) -> list[SignInRecord]: ...


class HelpRepository(Protocol):
    async def list_categories(
        self, classroom_id: str, *, include_inactive: bool = False
    ) -> list[HelpCategoryRecord]: ...

    async def get_category_by_id(self, category_id: str) -> HelpCategoryRecord | None: ...

    async def create_category(
        self,
        *,
        classroom_id: str,
        name: str,
        description: str | None = None,
        ninja_domain_id: str | None = None,
    ) -> HelpCategoryRecord: ...

    async def update_category(self, category_id: str, **changes: Any) -> HelpCategoryRecord: ...

    async def archive_category(self, category_id: str) -> None: ...

    async def get_request_by_id(self, request_id: str) -> HelpRequestRecord | None: ...

    async def find_open_request(
        self, session_id: str, requester_id: str
    ) -> HelpRequestRecord | None: ...

    async def list_queue(self, session_id: str) -> list[HelpRequestRecord]: ...

    async def list_open_requests_for_requester(
        self, classroom_id: str, requester_id: str
    ) -> list[HelpRequestRecord]: ...

    async def count_pending_before(self, session_id: str, created_at: datetime) -> int: ...


class NinjaRepository(Protocol):
    async def list_domains(
        self, classroom_id: str, *, include_inactive: bool = False
    ) -> list[NinjaDomainRecord]: ...

    async def get_domain_by_id(self, domain_id: str) -> NinjaDomainRecord | None: ...

    async def create_domain(
        self,
        *,
        classroom_id: str,
        name: str,
        description: str | None,
        display_order: int,
    ) -> NinjaDomainRecord: ...

    async def update_domain(self, domain_id: str, **changes: Any) -> NinjaDomainRecord: ...

    async def get_assignment(
        self, person_id: str, domain_id: str
    ) -> NinjaAssignmentRecord | None: ...

    async def list_assignments_by_classroom(
        self, classroom_id: str, *, active_only: bool = True
    ) -> list[NinjaAssignmentRecord]: ...

    async def list_assignments_for_domain(
        self, domain_id: str, *, active_only: bool = True
    ) -> list[NinjaAssignmentRecord]: ...

    async def create_assignment(
        self,
        *,
        person_id: str,
        ninja_domain_id: str,
        assigned_by_id: str,
        assigned_at: datetime,
    ) -> NinjaAssignmentRecord: ...

    async def update_assignment(
        self, assignment_id: str, **changes: Any
    ) -> NinjaAssignmentRecord: ...


class PersonRepository(Protocol):
    async def get_by_id(self, person_id: str) -> PersonRecord | None: ...

    async def find_by_email(self, email: str) -> PersonRecord | None: ...

    async def create_person(self, record: PersonRecord) -> PersonRecord: ...

    async def update_person(self, person_id: str, **changes: Any) -> PersonRecord: ...

    async def list_students(self, classroom_id: str) -> list[PersonRecord]: ...


class PinRepository(Protocol):
    async def find_classroom_id_by_display_code(self, display_code: str) -> str | None: ...

    async def find_login_candidates(self, classroom_id: str) -> list[PinCandidate]: ...

    async def create_pin_session(
        self,
        *,
        token: str,
        person_id: str,
        classroom_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> PinSessionRecord: ...

    async def get_pin_session_by_token(self, token: str) -> PinSessionRecord | None: ...

    async def delete_pin_session(self, token: str) -> None: ...

    async def delete_pin_sessions_for_person(self, person_id: str) -> int: ...

    async def delete_expired_pin_sessions(self, now: datetime) -> int: ...

    async def update_person_pin_hash(self, person_id: str, pin_hash: str | None) -> None: ...

    async def update_person_last_login(self, person_id: str, at: datetime) -> None: ...

    async def list_students_with_pins(self, classroom_id: str) -> list[StudentPinInfo]: ...
