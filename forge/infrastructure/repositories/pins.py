from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.ports.records import PinCandidate, PinSessionRecord, StudentPinInfo
from forge.domain.types import MemberRole
from forge.infrastructure.db.models import Classroom, ClassroomMembership, Person, PinSession


def pin_session_to_record(row: PinSession) -> PinSessionRecord:
    return PinSessionRecord(
        id=row.id,
        token=row.token,
        person_id=row.person_id,
        classroom_id=row.classroom_id,
        expires_at=row.expires_at,
        last_activity_at=row.last_activity_at,
    )


class SqlAlchemyPinRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_classroom_id_by_display_code(self, display_code: str) -> str | None:
        async with self._session_factory() as session:
            return await session.scalar(
                select(Classroom.id).where(
                    Classroom.display_code == display_code.upper(),
                    Classroom.is_active.is_(True),
                )
            )

    async def find_login_candidates(self, classroom_id: str) -> list[PinCandidate]:
        """Active students of the classroom that have a PIN set."""
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Person.id, Person.pin_hash)
                    .join(ClassroomMembership, ClassroomMembership.person_id == Person.id)
                    .where(
                        ClassroomMembership.classroom_id == classroom_id,
                        ClassroomMembership.role == MemberRole.STUDENT,
                        ClassroomMembership.is_active.is_(True),
                        Person.is_active.is_(True),
                        Person.pin_hash.is_not(None),
                    )
                )
            ).all()
            return [PinCandidate(person_id=person_id, pin_hash=pin_hash) for person_id, pin_hash in rows]

    async def create_pin_session(
        self,
        *,
        token: str,
        person_id: str,
        classroom_id: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> PinSessionRecord:
        async with self._session_factory() as session:
            row = PinSession(
                token=token,
                person_id=person_id,
                classroom_id=classroom_id,
                expires_at=expires_at,
                last_activity_at=created_at,
                created_at=created_at,
            )
            session.add(row)
            await session.commit()
            return pin_session_to_record(row)

    async def get_pin_session_by_token(self, token: str) -> PinSessionRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(select(PinSession).where(PinSession.token == token))
            return pin_session_to_record(row) if row else None

    async def delete_pin_session(self, token: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(PinSession).where(PinSession.token == token))
            await session.commit()

    async def delete_pin_sessions_for_person(self, person_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(PinSession).where(PinSession.person_id == person_id)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_expired_pin_sessions(self, now: datetime) -> int:
        async with self._session_factory() as session:
            result = await session.execute(delete(PinSession).where(PinSession.expires_at < now))
            await session.commit()
            return result.rowcount or 0

    async def update_person_pin_hash(self, person_id: str, pin_hash: str | None) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Person).where(Person.id == person_id).values(pin_hash=pin_hash)
            )
            await session.commit()

    async def update_person_last_login(self, person_id: str, at: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Person).where(Person.id == person_id).values(last_login_at=at)
            )
            await session.commit()

    async def list_students_with_pins(self, classroom_id: str) -> list[StudentPinInfo]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Person.id, Person.display_name, Person.pin_hash)
                    .join(ClassroomMembership, ClassroomMembership.person_id == Person.id)
                    .where(
                        ClassroomMembership.classroom_id == classroom_id,
                        ClassroomMembership.role == MemberRole.STUDENT,
                        ClassroomMembership.is_active.is_(True),
                    )
                    .order_by(Person.display_name)
                )
            ).all()
            return [
                StudentPinInfo(person_id=person_id, display_name=name, has_pin=pin_hash is not None)
                for person_id, name, pin_hash in rows
            ]
