from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import MembershipEntity, PersonEntity
from forge.domain.events import EntityType, EventType, ProfileUpdatedPayload
from forge.domain.ports.records import AppendEventInput, MembershipRecord, PersonRecord
from forge.domain.services.base import UseCaseService, use_case
from forge.domain.types import MemberRole

logger = structlog.get_logger()

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class StudentImportRow:
    name: str
    email: str
    grade_level: str | None = None


@dataclass(frozen=True, slots=True)
class ImportRowError:
    row: int
    name: str
    email: str
    reason: str


@dataclass(frozen=True, slots=True)
class ImportResult:
    success: int = 0
    errors: list[ImportRowError] = field(default_factory=list)


def _person_record(entity: PersonEntity) -> PersonRecord:
    return PersonRecord(
        id=entity.id,
        school_id=entity.school_id,
        legal_name=entity.legal_name,
        display_name=entity.display_name,
        email=entity.email,
        pronouns=entity.pronouns,
        grade_level=entity.grade_level,
        ask_me_about=entity.ask_me_about,
        theme_color=entity.theme_color,
        currently_working_on=entity.currently_working_on,
        help_queue_visible=entity.help_queue_visible,
        is_active=entity.is_active,
    )


class RosterService(UseCaseService):
    """Classroom membership and student profiles."""

    @use_case("list_students")
    async def list_students(self, *, classroom_id: str) -> Result[list[PersonRecord]]:
        return ok(await self.env.people.list_students(classroom_id))

    @use_case("add_student")
    async def add_student(
        self,
        *,
        classroom_id: str,
        name: str,
        email: str,
        grade_level: str | None = None,
    ) -> Result[PersonRecord]:
        """Enrol a student, creating the person when the email is unknown.

        A former member whose membership went inactive is rejoined rather than
        enrolled twice.
        """
        classroom = await self.env.classrooms.get_by_id(classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name:
            return err(ErrorType.VALIDATION_ERROR, "Name is required")
        if not email:
            return err(ErrorType.VALIDATION_ERROR, "Email is required")

        now = self._now()
        person = await self.env.people.find_by_email(email)
        if person is not None:
            membership = await self.env.classrooms.get_membership(classroom_id, person.id)
            if membership is not None:
                if membership.is_active:
                    return err(
                        ErrorType.ALREADY_IN_CLASSROOM,
                        "Student is already in this classroom",
                        email=email,
                    )
                rejoined = MembershipEntity.from_record(membership).rejoin(now)
                await self.env.classrooms.update_membership(
                    membership.id,
                    is_active=rejoined.is_active,
                    left_at=rejoined.left_at,
                    joined_at=rejoined.joined_at,
                )
                await logger.ainfo("student_rejoined", classroom_id=classroom_id, person_id=person.id)
                return ok(person)
        else:
            entity = PersonEntity.create(
                id=self.env.id_generator.generate(),
                school_id=classroom.school_id,
                legal_name=name,
                display_name=name,
                email=email,
                grade_level=(grade_level or "").strip() or None,
            )
            person = await self.env.people.create_person(_person_record(entity))

        await self.env.classrooms.create_membership(
            classroom_id=classroom_id,
            person_id=person.id,
            role=MemberRole.STUDENT,
            joined_at=now,
        )
        await logger.ainfo("student_added", classroom_id=classroom_id, person_id=person.id)
        return ok(person)

    @use_case("bulk_import_students")
    async def bulk_import_students(
        self, *, classroom_id: str, rows: Sequence[StudentImportRow]
    ) -> Result[ImportResult]:
        """Enrol already-parsed roster rows, collecting per-row failures.

        Rows are numbered from 1. A failing row never stops the import.
        """
        classroom = await self.env.classrooms.get_by_id(classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        success = 0
        errors: list[ImportRowError] = []
        for number, row in enumerate(rows, start=1):
            name = (row.name or "").strip()
            email = (row.email or "").strip()
            if not name:
                errors.append(ImportRowError(number, row.name or "", row.email or "", "Name is required"))
                continue
            if not email:
                errors.append(ImportRowError(number, name, "", "Email is required"))
                continue
            if not _EMAIL_RE.match(email):
                errors.append(ImportRowError(number, name, email, "Invalid email format"))
                continue

            added = await self.add_student(
                classroom_id=classroom_id, name=name, email=email, grade_level=row.grade_level
            )
            if added.status == "err":
                errors.append(ImportRowError(number, name, email, added.error.message))
                continue
            success += 1

        await logger.ainfo(
            "students_imported",
            classroom_id=classroom_id,
            imported=success,
            failed=len(errors),
        )
        return ok(ImportResult(success=success, errors=errors))

    @use_case("update_student")
    async def update_student(
        self,
        *,
        classroom_id: str,
        person_id: str,
        name: str | None = None,
        email: str | None = None,
        grade_level: str | None = _UNSET,
    ) -> Result[PersonRecord]:
        """Teacher edit of a student's name, email and grade.

        A blank name or email leaves the stored value alone; ``grade_level=None``
        clears the grade.
        """
        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(ErrorType.NOT_FOUND, "Student not found in this classroom")

        changes: dict[str, Any] = {}
        email = (email or "").strip().lower()
        if email:
            owner = await self.env.people.find_by_email(email)
            if owner is not None and owner.id != person_id:
                return err(ErrorType.EMAIL_IN_USE, "Email is already in use", email=email)
            changes["email"] = email

        name = (name or "").strip()
        if name:
            changes["legal_name"] = name
            changes["display_name"] = name

        if grade_level is not _UNSET:
            changes["grade_level"] = (grade_level or "").strip() or None

        if not changes:
            person = await self.env.people.get_by_id(person_id)
            if person is None:
                return err(ErrorType.NOT_FOUND, "Student not found", person_id=person_id)
            return ok(person)

        record = await self.env.people.update_person(person_id, **changes)
        await logger.ainfo(
            "student_updated",
            classroom_id=classroom_id,
            person_id=person_id,
            changed_fields=sorted(changes),
        )
        return ok(record)

    @use_case("remove_student")
    async def remove_student(
        self, *, classroom_id: str, person_id: str
    ) -> Result[MembershipRecord]:
        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(ErrorType.NOT_A_MEMBER, "Person is not a member of this classroom")

        left = MembershipEntity.from_record(membership).leave(self._now())
        record = await self.env.classrooms.update_membership(
            membership.id, is_active=left.is_active, left_at=left.left_at
        )
        await logger.ainfo("student_removed", classroom_id=classroom_id, person_id=person_id)
        return ok(record)

    @use_case("get_profile")
    async def get_profile(self, *, person_id: str) -> Result[PersonRecord]:
        person = await self.env.people.get_by_id(person_id)
        if person is None:
            return err(ErrorType.PERSON_NOT_FOUND, "Person not found", person_id=person_id)
        return ok(person)

    @use_case("update_profile")
    async def update_profile(
        self, *, person_id: str, actor_id: str | None = None, **changes: Any
    ) -> Result[PersonRecord]:
        """Apply profile edits and record PROFILE_UPDATED when anything changed."""
        person = await self.env.people.get_by_id(person_id)
        if person is None:
            return err(ErrorType.PERSON_NOT_FOUND, "Person not found", person_id=person_id)

        updated, changed = PersonEntity.from_record(person).update_profile(
            ask_me_about_limit=self.env.settings.ask_me_about_limit, **changes
        )
        if not changed:
            return ok(person)

        record = await self.env.people.update_person(
            person_id, **{name: getattr(updated, name) for name in changed}
        )
        await self.env.event_store.append_and_emit(
            AppendEventInput(
                school_id=person.school_id,
                event_type=EventType.PROFILE_UPDATED,
                entity_type=EntityType.PERSON.value,
                entity_id=person_id,
                actor_id=actor_id or person_id,
                payload=ProfileUpdatedPayload(
                    person_id=person_id,
                    school_id=person.school_id,
                    changed_fields=changed,
                ),
            )
        )
        await logger.ainfo("profile_updated", person_id=person_id, changed_fields=changed)
        return ok(record)
