from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.errors import NotFoundError
from forge.domain.ports.records import ClassroomRecord, MembershipRecord, MemberWithPerson
from forge.domain.types import ClassroomSettings, MemberRole
from forge.infrastructure.db.models import Classroom, ClassroomMembership, Person
from forge.infrastructure.repositories.people import person_to_record


def classroom_to_record(row: Classroom) -> ClassroomRecord:
    return ClassroomRecord(
        id=row.id,
        school_id=row.school_id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        display_code=row.display_code,
        settings=ClassroomSettings.parse(row.settings),
        is_active=row.is_active,
    )


def membership_to_record(row: ClassroomMembership) -> MembershipRecord:
    return MembershipRecord(
        id=row.id,
        classroom_id=row.classroom_id,
        person_id=row.person_id,
        role=row.role,
        is_active=row.is_active,
        joined_at=row.joined_at,
        left_at=row.left_at,
    )


class SqlAlchemyClassroomRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, classroom_id: str) -> ClassroomRecord | None:
        async with self._session_factory() as session:
            row = await session.get(Classroom, classroom_id)
            return classroom_to_record(row) if row else None

    async def get_by_display_code(self, display_code: str) -> ClassroomRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(Classroom).where(Classroom.display_code == display_code.upper())
            )
            return classroom_to_record(row) if row else None

    async def create(self, record: ClassroomRecord) -> ClassroomRecord:
        async with self._session_factory() as session:
            row = Classroom(
                id=record.id,
                school_id=record.school_id,
                name=record.name,
                slug=record.slug,
                description=record.description,
                display_code=record.display_code,
                settings=record.settings.to_dict(),
                is_active=record.is_active,
            )
            session.add(row)
            await session.commit()
            return classroom_to_record(row)

    async def update_settings(
        self, classroom_id: str, settings: ClassroomSettings
    ) -> ClassroomRecord:
        async with self._session_factory() as session:
            row = await session.get(Classroom, classroom_id)
            if row is None:
                raise NotFoundError("Classroom", classroom_id)
            row.settings = settings.to_dict()
            await session.commit()
            return classroom_to_record(row)

    async def get_membership(self, classroom_id: str, person_id: str) -> MembershipRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(ClassroomMembership).where(
                    ClassroomMembership.classroom_id == classroom_id,
                    ClassroomMembership.person_id == person_id,
                )
            )
            return membership_to_record(row) if row else None

    async def list_memberships_for_person(self, person_id: str) -> list[MembershipRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(ClassroomMembership)
                    .where(
                        ClassroomMembership.person_id == person_id,
                        ClassroomMembership.is_active.is_(True),
                    )
                    .order_by(ClassroomMembership.joined_at)
                )
            ).scalars()
            return [membership_to_record(row) for row in rows]

    async def list_members(
        self, classroom_id: str, *, active_only: bool = True
    ) -> list[MemberWithPerson]:
        stmt = (
            select(ClassroomMembership, Person)
            .join(Person, Person.id == ClassroomMembership.person_id)
            .where(ClassroomMembership.classroom_id == classroom_id)
            .order_by(Person.display_name)
        )
        if active_only:
            stmt = stmt.where(ClassroomMembership.is_active.is_(True))
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
            return [
                MemberWithPerson(
                    membership=membership_to_record(membership),
                    person=person_to_record(person),
                )
                for membership, person in rows
            ]

    async def create_membership(
        self,
        *,
        classroom_id: str,
        person_id: str,
        role: MemberRole,
        joined_at: datetime,
    ) -> MembershipRecord:
        async with self._session_factory() as session:
            row = ClassroomMembership(
                classroom_id=classroom_id,
                person_id=person_id,
                role=role,
                is_active=True,
                joined_at=joined_at,
            )
            session.add(row)
            await session.commit()
            return membership_to_record(row)

    async def update_membership(self, membership_id: str, **changes: Any) -> MembershipRecord:
        async with self._session_factory() as session:
            row = await session.get(ClassroomMembership, membership_id)
            if row is None:
                raise NotFoundError("Membership", membership_id)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            return membership_to_record(row)
