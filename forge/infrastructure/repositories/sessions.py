from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.errors import NotFoundError
from forge.domain.ports.records import CreateSessionInput, SessionRecord
from forge.domain.types import SessionStatus
from forge.infrastructure.db.models import ClassSession


def session_to_record(row: ClassSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        classroom_id=row.classroom_id,
        name=row.name,
        session_type=row.session_type,
        scheduled_date=row.scheduled_date,
        start_time=row.start_time,
        end_time=row.end_time,
        actual_start_at=row.actual_start_at,
        actual_end_at=row.actual_end_at,
        status=row.status,
    )


class SqlAlchemySessionRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, session_id: str) -> SessionRecord | None:
        async with self._session_factory() as session:
            row = await session.get(ClassSession, session_id)
            return session_to_record(row) if row else None

    async def find_active(self, classroom_id: str) -> SessionRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(ClassSession)
                .where(
                    ClassSession.classroom_id == classroom_id,
                    ClassSession.status == SessionStatus.ACTIVE,
                )
                .order_by(ClassSession.actual_start_at.desc())
                .limit(1)
            )
            return session_to_record(row) if row else None

    async def list_by_classroom(
        self,
        classroom_id: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[SessionRecord]:
        stmt = select(ClassSession).where(ClassSession.classroom_id == classroom_id)
        if since is not None:
            stmt = stmt.where(ClassSession.scheduled_date >= since)
        if until is not None:
            stmt = stmt.where(ClassSession.scheduled_date <= until)
        stmt = stmt.order_by(ClassSession.scheduled_date.desc(), ClassSession.start_time.desc())
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [session_to_record(row) for row in rows]

    async def create(self, data: CreateSessionInput) -> SessionRecord:
        async with self._session_factory() as session:
            row = ClassSession(
                id=data.id,
                classroom_id=data.classroom_id,
                name=data.name,
                session_type=data.session_type,
                scheduled_date=data.scheduled_date,
                start_time=data.start_time,
                end_time=data.end_time,
                status=SessionStatus.SCHEDULED,
            )
            session.add(row)
            await session.commit()
            return session_to_record(row)

    async def update(self, session_id: str, **changes: Any) -> SessionRecord:
        async with self._session_factory() as session:
            row = await session.get(ClassSession, session_id)
            if row is None:
                raise NotFoundError("Session", session_id)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            return session_to_record(row)
