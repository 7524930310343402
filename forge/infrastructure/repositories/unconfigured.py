"""Fail-fast placeholders for ports with no concrete adapter.

``build_environment`` wires these for any port it is not given, so a missing
adapter surfaces as ``PortNotConfiguredError`` at the first call instead of an
``AttributeError`` somewhere deeper.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, NoReturn

from forge.domain.errors import PortNotConfiguredError
from forge.domain.ports.records import (
    AppendEventInput,
    ClassroomRecord,
    CreateSessionInput,
    EventFilters,
    PersonRecord,
)
from forge.domain.types import ClassroomSettings, MemberRole


class _Unconfigured:
    port = "Port"

    def _fail(self, method: str) -> NoReturn:
        raise PortNotConfiguredError(self.port, method)


class UnconfiguredClassroomRepository(_Unconfigured):
    port = "ClassroomRepository"

    async def get_by_id(self, classroom_id: str) -> NoReturn:
        self._fail("get_by_id")

    async def get_by_display_code(self, display_code: str) -> NoReturn:
        self._fail("get_by_display_code")

    async def create(self, record: ClassroomRecord) -> NoReturn:
        self._fail("create")

    async def update_settings(self, classroom_id: str, settings: ClassroomSettings) -> NoReturn:
        self._fail("update_settings")

    async def get_membership(self, classroom_id: str, person_id: str) -> NoReturn:
        self._fail("get_membership")

    async def list_memberships_for_person(self, person_id: str) -> NoReturn:
        self._fail("list_memberships_for_person")

    async def list_members(self, classroom_id: str, *, active_only: bool = True) -> NoReturn:
        self._fail("list_members")

    async def create_membership(
        self, *, classroom_id: str, person_id: str, role: MemberRole, joined_at: datetime
    ) -> NoReturn:
        self._fail("create_membership")

    async def update_membership(self, membership_id: str, **changes: Any) -> NoReturn:
        self._fail("update_membership")


class UnconfiguredSessionRepository(_Unconfigured):
    port = "SessionRepository"

    async def get_by_id(self, session_id: str) -> NoReturn:
        self._fail("get_by_id")

    async def find_active(self, classroom_id: str) -> NoReturn:
        self._fail("find_active")

    async def list_by_classroom(
        self, classroom_id: str, *, since: datetime | None = None, until: datetime | None = None
    ) -> NoReturn:
        self._fail("list_by_classroom")

    async def create(self, data: CreateSessionInput) -> NoReturn:
        self._fail("create")

    async def update(self, session_id: str, **changes: Any) -> NoReturn:
        self._fail("update")


class UnconfiguredPresenceRepository(_Unconfigured):
    port = "PresenceRepository"

    async def get_sign_in(self, sign_in_id: str) -> NoReturn:
        self._fail("get_sign_in")

    async def get_active_sign_in(self, session_id: str, person_id: str) -> NoReturn:
        self._fail("get_active_sign_in")

    async def list_present_people(self, session_id: str) -> NoReturn:
        self._fail("list_present_people")

    async def list_sign_ins_for_session(self, session_id: str) -> NoReturn:
        self._fail("list_sign_ins_for_session")


class UnconfiguredHelpRepository(_Unconfigured):
    port = "HelpRepository"

    async def list_categories(self, classroom_id: str, *, include_inactive: bool = False) -> NoReturn:
        self._fail("list_categories")

    async def get_category_by_id(self, category_id: str) -> NoReturn:
        self._fail("get_category_by_id")

    async def create_category(self, **data: Any) -> NoReturn:
        self._fail("create_category")

    async def update_category(self, category_id: str, **changes: Any) -> NoReturn:
        self._fail("update_category")

    async def archive_category(self, category_id: str) -> NoReturn:
        self._fail("archive_category")

    async def get_request_by_id(self, request_id: str) -> NoReturn:
        self._fail("get_request_by_id")

    async def find_open_request(self, session_id: str, requester_id: str) -> NoReturn:
        self._fail("find_open_request")

    async def list_queue(self, session_id: str) -> NoReturn:
        self._fail("list_queue")

    async def list_open_requests_for_requester(
        self, classroom_id: str, requester_id: str
    ) -> NoReturn:
        self._fail("list_open_requests_for_requester")

    async def count_pending_before(self, session_id: str, created_at: datetime) -> NoReturn:
        self._fail("count_pending_before")


class UnconfiguredNinjaRepository(_Unconfigured):
    port = "NinjaRepository"

    async def list_domains(self, classroom_id: str, *, include_inactive: bool = False) -> NoReturn:
        self._fail("list_domains")

    async def get_domain_by_id(self, domain_id: str) -> NoReturn:
        self._fail("get_domain_by_id")

    async def create_domain(self, **data: Any) -> NoReturn:
        self._fail("create_domain")

    async def update_domain(self, domain_id: str, **changes: Any) -> NoReturn:
        self._fail("update_domain")

    async def get_assignment(self, person_id: str, domain_id: str) -> NoReturn:
        self._fail("get_assignment")

    async def list_assignments_by_classroom(
        self, classroom_id: str, *, active_only: bool = True
    ) -> NoReturn:
        self._fail("list_assignments_by_classroom")

    async def list_assignments_for_domain(
        self, domain_id: str, *, active_only: bool = True
    ) -> NoReturn:
        self._fail("list_assignments_for_domain")

    async def create_assignment(self, **data: Any) -> NoReturn:
        self._fail("create_assignment")

    async def update_assignment(self, assignment_id: str, **changes: Any) -> NoReturn:
        self._fail("update_assignment")


class UnconfiguredPersonRepository(_Unconfigured):
    port = "PersonRepository"

    async def get_by_id(self, person_id: str) -> NoReturn:
        self._fail("get_by_id")

    async def find_by_email(self, email: str) -> NoReturn:
        self._fail("find_by_email")

    async def create_person(self, record: PersonRecord) -> NoReturn:
        self._fail("create_person")

    async def update_person(self, person_id: str, **changes: Any) -> NoReturn:
        self._fail("update_person")

    async def list_students(self, classroom_id: str) -> NoReturn:
        self._fail("list_students")


class UnconfiguredPinRepository(_Unconfigured):
    port = "PinRepository"

    async def find_classroom_id_by_display_code(self, display_code: str) -> NoReturn:
        self._fail("find_classroom_id_by_display_code")

    async def find_login_candidates(self, classroom_id: str) -> NoReturn:
        self._fail("find_login_candidates")

    async def create_pin_session(self, **data: Any) -> NoReturn:
        self._fail("create_pin_session")

    async def get_pin_session_by_token(self, token: str) -> NoReturn:
        self._fail("get_pin_session_by_token")

    async def delete_pin_session(self, token: str) -> NoReturn:
        self._fail("delete_pin_session")

    async def delete_pin_sessions_for_person(self, person_id: str) -> NoReturn:
        self._fail("delete_pin_sessions_for_person")

    async def delete_expired_pin_sessions(self, now: datetime) -> NoReturn:
        self._fail("delete_expired_pin_sessions")

    async def update_person_pin_hash(self, person_id: str, pin_hash: str | None) -> NoReturn:
        self._fail("update_person_pin_hash")

    async def update_person_last_login(self, person_id: str, at: datetime) -> NoReturn:
        self._fail("update_person_last_login")

    async def list_students_with_pins(self, classroom_id: str) -> NoReturn:
        self._fail("list_students_with_pins")


class UnconfiguredEventStore(_Unconfigured):
    port = "EventStore"

    async def append(self, data: AppendEventInput) -> NoReturn:
        self._fail("append")

    async def append_and_emit(self, data: AppendEventInput) -> NoReturn:
        self._fail("append_and_emit")

    async def load_events(self, filters: EventFilters | None = None) -> NoReturn:
        self._fail("load_events")

    async def count_events(self, filters: EventFilters | None = None) -> NoReturn:
        self._fail("count_events")

    async def delete_older_than(self, cutoff: datetime) -> NoReturn:
        self._fail("delete_older_than")

    async def rebuild_read_models(self) -> NoReturn:
        self._fail("rebuild_read_models")
