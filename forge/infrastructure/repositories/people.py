from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.errors import NotFoundError
from forge.domain.ports.records import PersonRecord
from forge.domain.types import MemberRole
from forge.infrastructure.db.models import ClassroomMembership, Person


def person_to_record(row: Person) -> PersonRecord:
    return PersonRecord(
        id=row.id,
        school_id=row.school_id,
        email=row.email,
        legal_name=row.legal_name,
        display_name=row.display_name,
        pronouns=row.pronouns,
        grade_level=row.grade_level,
        ask_me_about=tuple(row.ask_me_about or ()),
        theme_color=row.theme_color,
        currently_working_on=row.currently_working_on,
        help_queue_visible=row.help_queue_visible,
        is_active=row.is_active,
    )


class SqlAlchemyPersonRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, person_id: str) -> PersonRecord | None:
        async with self._session_factory() as session:
            row = await session.get(Person, person_id)
            return person_to_record(row) if row else None

    async def find_by_email(self, email: str) -> PersonRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(select(Person).where(Person.email == email.lower()))
            return person_to_record(row) if row else None

    async def create_person(self, record: PersonRecord) -> PersonRecord:
        async with self._session_factory() as session:
            row = Person(
                id=record.id,
                school_id=record.school_id,
                email=record.email.lower() if record.email else None,
                legal_name=record.legal_name,
                display_name=record.display_name,
                pronouns=record.pronouns,
                grade_level=record.grade_level,
                ask_me_about=list(record.ask_me_about),
                theme_color=record.theme_color,
                currently_working_on=record.currently_working_on,
                help_queue_visible=record.help_queue_visible,
                is_active=record.is_active,
            )
            session.add(row)
            await session.commit()
            return person_to_record(row)

    async def update_person(self, person_id: str, **changes: Any) -> PersonRecord:
        async with self._session_factory() as session:
            row = await session.get(Person, person_id)
            if row is None:
                raise NotFoundError("Person", person_id)
            for key, value in changes.items():
                if key == "ask_me_about":
                    value = list(value)
                setattr(row, key, value)
            await session.commit()
            return person_to_record(row)

    async def list_students(self, classroom_id: str) -> list[PersonRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Person)
                    .join(ClassroomMembership, ClassroomMembership.person_id == Person.id)
                    .where(
                        ClassroomMembership.classroom_id == classroom_id,
                        ClassroomMembership.role == MemberRole.STUDENT,
                        ClassroomMembership.is_active.is_(True),
                    )
                    .order_by(Person.display_name)
                )
            ).scalars()
            return [person_to_record(row) for row in rows]
