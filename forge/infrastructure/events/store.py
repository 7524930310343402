"""SQLAlchemy-backed event store.

Invariants:
    * Events are immutable once stored; the store never updates a row.
    * ``append`` inserts the event and applies every interested projector inside
      one transaction. Any failure rolls back the event record as well.
    * ``load_events`` returns events oldest first; ties on ``created_at`` are
      broken by insertion order.
    * Replaying the full log through a cleared registry rebuilds the same read
      state that incremental appends produced.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import structlog
from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.events import EventType, ensure_payload_matches
from forge.domain.ports.records import AppendEventInput, EventFilters, StoredEvent
from forge.domain.ports.services import Clock, IdGenerator
from forge.infrastructure.db.models import DomainEvent
from forge.infrastructure.events.projectors import ProjectorRegistry
from forge.infrastructure.repositories.unit_of_work import UnitOfWork

logger = structlog.get_logger()


def _to_stored(row: DomainEvent) -> StoredEvent:
    return StoredEvent(
        id=row.id,
        school_id=row.school_id,
        classroom_id=row.classroom_id,
        session_id=row.session_id,
        event_type=EventType(row.event_type),
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        actor_id=row.actor_id,
        payload=dict(row.payload),
        created_at=row.created_at,
    )


def _apply_filters(stmt: Select, filters: EventFilters | None) -> Select:
    if filters is None:
        return stmt
    if filters.school_id is not None:
        stmt = stmt.where(DomainEvent.school_id == filters.school_id)
    if filters.classroom_id is not None:
        stmt = stmt.where(DomainEvent.classroom_id == filters.classroom_id)
    if filters.session_id is not None:
        stmt = stmt.where(DomainEvent.session_id == filters.session_id)
    if filters.event_type is not None:
        stmt = stmt.where(DomainEvent.event_type == EventType(filters.event_type).value)
    if filters.entity_type is not None:
        stmt = stmt.where(DomainEvent.entity_type == filters.entity_type)
    if filters.entity_id is not None:
        stmt = stmt.where(DomainEvent.entity_id == filters.entity_id)
    return stmt


class SqlAlchemyEventStore:
    """Event log stored in ``domain_events`` with projections in the same transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: ProjectorRegistry,
        *,
        clock: Clock,
        id_generator: IdGenerator,
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._clock = clock
        self._id_generator = id_generator
        # Serialises appends within this process; the database transaction covers
        # concurrent writers in other processes.
        self._append_lock = asyncio.Lock()

    @property
    def registry(self) -> ProjectorRegistry:
        return self._registry

    async def append(self, data: AppendEventInput) -> StoredEvent:
        ensure_payload_matches(data.event_type, data.payload)

        async with self._append_lock:
            async with UnitOfWork(self._session_factory) as uow:
                row = DomainEvent(
                    id=self._id_generator.generate(),
                    school_id=data.school_id,
                    classroom_id=data.classroom_id,
                    session_id=data.session_id,
                    event_type=EventType(data.event_type).value,
                    entity_type=data.entity_type,
                    entity_id=data.entity_id,
                    actor_id=data.actor_id,
                    payload=data.payload.model_dump(mode="json"),
                    created_at=self._clock.now(),
                )
                uow.session.add(row)
                await uow.session.flush()

                event = _to_stored(row)
                await self._registry.apply(event, uow.session)

        logger.info(
            "event_appended",
            event_id=event.id,
            event_type=event.event_type.value,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            classroom_id=event.classroom_id,
        )
        return event

    async def append_and_emit(self, data: AppendEventInput) -> StoredEvent:
        event = await self.append(data)
        # No external subscribers; emitting is logging only.
        logger.debug("event_emitted", event_id=event.id, event_type=event.event_type.value)
        return event

    async def load_events(self, filters: EventFilters | None = None) -> list[StoredEvent]:
        stmt = _apply_filters(select(DomainEvent), filters).order_by(
            DomainEvent.created_at.asc(), DomainEvent.sequence.asc()
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_to_stored(row) for row in rows]

    async def count_events(self, filters: EventFilters | None = None) -> int:
        stmt = _apply_filters(select(func.count(DomainEvent.sequence)), filters)
        async with self._session_factory() as session:
            return int(await session.scalar(stmt) or 0)

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with UnitOfWork(self._session_factory) as uow:
            result = await uow.session.execute(
                delete(DomainEvent).where(DomainEvent.created_at < cutoff)
            )
        deleted = result.rowcount or 0
        logger.info("events_deleted", cutoff=cutoff.isoformat(), count=deleted)
        return deleted

    async def rebuild_read_models(self) -> int:
        """Clear every projection and replay the whole log; returns events replayed."""
        async with self._append_lock:
            async with UnitOfWork(self._session_factory) as uow:
                await self._registry.clear_all(uow.session)
                rows = (
                    await uow.session.execute(
                        select(DomainEvent).order_by(
                            DomainEvent.created_at.asc(), DomainEvent.sequence.asc()
                        )
                    )
                ).scalars().all()
                for row in rows:
                    await self._registry.apply(_to_stored(row), uow.session)

        logger.info("read_models_rebuilt", events=len(rows))
        return len(rows)
