from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.errors import NotFoundError
from forge.domain.ports.records import NinjaAssignmentRecord, NinjaDomainRecord
from forge.infrastructure.db.models import NinjaAssignment, NinjaDomain


def domain_to_record(row: NinjaDomain) -> NinjaDomainRecord:
    return NinjaDomainRecord(
        id=row.id,
        classroom_id=row.classroom_id,
        name=row.name,
        description=row.description,
        display_order=row.display_order,
        is_active=row.is_active,
    )


def assignment_to_record(row: NinjaAssignment) -> NinjaAssignmentRecord:
    return NinjaAssignmentRecord(
        id=row.id,
        person_id=row.person_id,
        ninja_domain_id=row.ninja_domain_id,
        assigned_by_id=row.assigned_by_id,
        is_active=row.is_active,
        assigned_at=row.assigned_at,
        revoked_at=row.revoked_at,
    )


class SqlAlchemyNinjaRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_domains(
        self, classroom_id: str, *, include_inactive: bool = False
    ) -> list[NinjaDomainRecord]:
        stmt = select(NinjaDomain).where(NinjaDomain.classroom_id == classroom_id)
        if not include_inactive:
            stmt = stmt.where(NinjaDomain.is_active.is_(True))
        stmt = stmt.order_by(NinjaDomain.display_order, NinjaDomain.name)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [domain_to_record(row) for row in rows]

    async def get_domain_by_id(self, domain_id: str) -> NinjaDomainRecord | None:
        async with self._session_factory() as session:
            row = await session.get(NinjaDomain, domain_id)
            return domain_to_record(row) if row else None

    async def create_domain(
        self,
        *,
        classroom_id: str,
        name: str,
        description: str | None,
        display_order: int,
    ) -> NinjaDomainRecord:
        async with self._session_factory() as session:
            row = NinjaDomain(
                classroom_id=classroom_id,
                name=name,
                description=description,
                display_order=display_order,
                is_active=True,
            )
            session.add(row)
            await session.commit()
            return domain_to_record(row)

    async def update_domain(self, domain_id: str, **changes: Any) -> NinjaDomainRecord:
        async with self._session_factory() as session:
            row = await session.get(NinjaDomain, domain_id)
            if row is None:
                raise NotFoundError("NinjaDomain", domain_id)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            return domain_to_record(row)

    async def get_assignment(self, person_id: str, domain_id: str) -> NinjaAssignmentRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(NinjaAssignment).where(
                    NinjaAssignment.person_id == person_id,
                    NinjaAssignment.ninja_domain_id == domain_id,
                )
            )
            return assignment_to_record(row) if row else None

    async def list_assignments_by_classroom(
        self, classroom_id: str, *, active_only: bool = True
    ) -> list[NinjaAssignmentRecord]:
        stmt = (
            select(NinjaAssignment)
            .join(NinjaDomain, NinjaDomain.id == NinjaAssignment.ninja_domain_id)
            .where(NinjaDomain.classroom_id == classroom_id)
            .order_by(NinjaDomain.display_order, NinjaAssignment.assigned_at)
        )
        if active_only:
            stmt = stmt.where(
                NinjaAssignment.is_active.is_(True), NinjaDomain.is_active.is_(True)
            )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [assignment_to_record(row) for row in rows]

    async def list_assignments_for_domain(
        self, domain_id: str, *, active_only: bool = True
    ) -> list[NinjaAssignmentRecord]:
        stmt = select(NinjaAssignment).where(NinjaAssignment.ninja_domain_id == domain_id)
        if active_only:
            stmt = stmt.where(NinjaAssignment.is_active.is_(True))
        stmt = stmt.order_by(NinjaAssignment.assigned_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [assignment_to_record(row) for row in rows]

    async def create_assignment(
        self,
        *,
        person_id: str,
        ninja_domain_id: str,
        assigned_by_id: str,
        assigned_at: datetime,
    ) -> NinjaAssignmentRecord:
        async with self._session_factory() as session:
            row = NinjaAssignment(
                person_id=person_id,
                ninja_domain_id=ninja_domain_id,
                assigned_by_id=assigned_by_id,
                assigned_at=assigned_at,
                is_active=True,
            )
            session.add(row)
            await session.commit()
            return assignment_to_record(row)

    async def update_assignment(self, assignment_id: str, **changes: Any) -> NinjaAssignmentRecord:
        async with self._session_factory() as session:
            row = await session.get(NinjaAssignment, assignment_id)
            if row is None:
                raise NotFoundError("NinjaAssignment", assignment_id)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            return assignment_to_record(row)
