from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.errors import NotFoundError
from forge.domain.ports.records import HelpCategoryRecord, HelpRequestRecord
from forge.domain.types import HelpRequestStatus
from forge.infrastructure.db.models import HelpCategory, HelpRequest


def category_to_record(row: HelpCategory) -> HelpCategoryRecord:
    return HelpCategoryRecord(
        id=row.id,
        classroom_id=row.classroom_id,
        name=row.name,
        description=row.description,
        ninja_domain_id=row.ninja_domain_id,
        display_order=row.display_order,
        is_active=row.is_active,
    )


def request_to_record(row: HelpRequest) -> HelpRequestRecord:
    return HelpRequestRecord(
        id=row.id,
        classroom_id=row.classroom_id,
        session_id=row.session_id,
        requester_id=row.requester_id,
        category_id=row.category_id,
        description=row.description,
        what_i_tried=row.what_i_tried,
        urgency=row.urgency,
        status=row.status,
        claimed_by_id=row.claimed_by_id,
        claimed_at=row.claimed_at,
        resolved_at=row.resolved_at,
        cancelled_at=row.cancelled_at,
        resolution_notes=row.resolution_notes,
        cancellation_reason=row.cancellation_reason,
        created_at=row.created_at,
    )


class SqlAlchemyHelpRepository:
    """Help categories (CRUD) and read access to the ``help_requests`` projection."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_categories(
        self, classroom_id: str, *, include_inactive: bool = False
    ) -> list[HelpCategoryRecord]:
        stmt = select(HelpCategory).where(HelpCategory.classroom_id == classroom_id)
        if not include_inactive:
            stmt = stmt.where(HelpCategory.is_active.is_(True))
        stmt = stmt.order_by(HelpCategory.display_order, HelpCategory.name)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [category_to_record(row) for row in rows]

    async def get_category_by_id(self, category_id: str) -> HelpCategoryRecord | None:
        async with self._session_factory() as session:
            row = await session.get(HelpCategory, category_id)
            return category_to_record(row) if row else None

    async def create_category(
        self,
        *,
        classroom_id: str,
        name: str,
        description: str | None = None,
        ninja_domain_id: str | None = None,
    ) -> HelpCategoryRecord:
        async with self._session_factory() as session:
            max_order = await session.scalar(
                select(func.max(HelpCategory.display_order)).where(
                    HelpCategory.classroom_id == classroom_id
                )
            )
            row = HelpCategory(
                classroom_id=classroom_id,
                name=name,
                description=description,
                ninja_domain_id=ninja_domain_id,
                display_order=(max_order or 0) + 1,
                is_active=True,
            )
            session.add(row)
            await session.commit()
            return category_to_record(row)

    async def update_category(self, category_id: str, **changes: Any) -> HelpCategoryRecord:
        async with self._session_factory() as session:
            row = await session.get(HelpCategory, category_id)
            if row is None:
                raise NotFoundError("HelpCategory", category_id)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()
            return category_to_record(row)

    async def archive_category(self, category_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(HelpCategory)
                .where(HelpCategory.id == category_id)
                .values(is_active=False)
            )
            await session.commit()

    async def get_request_by_id(self, request_id: str) -> HelpRequestRecord | None:
        async with self._session_factory() as session:
            row = await session.get(HelpRequest, request_id)
            return request_to_record(row) if row else None

    async def find_open_request(
        self, session_id: str, requester_id: str
    ) -> HelpRequestRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(HelpRequest)
                .where(
                    HelpRequest.session_id == session_id,
                    HelpRequest.requester_id == requester_id,
                    HelpRequest.status.in_(HelpRequestStatus.open_statuses()),
                )
                .limit(1)
            )
            return request_to_record(row) if row else None

    async def list_queue(self, session_id: str) -> list[HelpRequestRecord]:
        """Open requests, most urgent first, then oldest first."""
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(HelpRequest)
                    .where(
                        HelpRequest.session_id == session_id,
                        HelpRequest.status.in_(HelpRequestStatus.open_statuses()),
                    )
                    .order_by(HelpRequest.created_at, HelpRequest.id)
                )
            ).scalars()
            records = [request_to_record(row) for row in rows]
        # Stable sort keeps creation order within each urgency level
        return sorted(records, key=lambda record: record.urgency.priority)

    async def list_open_requests_for_requester(
        self, classroom_id: str, requester_id: str
    ) -> list[HelpRequestRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(HelpRequest)
                    .where(
                        HelpRequest.classroom_id == classroom_id,
                        HelpRequest.requester_id == requester_id,
                        HelpRequest.status.in_(HelpRequestStatus.open_statuses()),
                    )
                    .order_by(HelpRequest.created_at.desc())
                )
            ).scalars()
            return [request_to_record(row) for row in rows]

    async def count_pending_before(self, session_id: str, created_at: datetime) -> int:
        async with self._session_factory() as session:
            count = await session.scalar(
                select(func.count(HelpRequest.id)).where(
                    HelpRequest.session_id == session_id,
                    HelpRequest.status == HelpRequestStatus.PENDING,
                    HelpRequest.created_at <= created_at,
                )
            )
            return int(count or 0)
