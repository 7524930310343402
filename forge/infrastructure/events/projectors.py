"""Projectors that materialise read tables from domain events.

Each projector owns exactly one read table and never reads another projector's
table. Updates are guarded on the status the transition requires; a guarded update
that matches no row raises ``ConflictError`` so the surrounding append rolls back.
This is what turns two racing claims of the same request into one success and one
conflict.

Sign-in discipline: every PERSON_SIGNED_IN event creates a new ``sign_ins`` row
keyed by the event's ``sign_in_id``. Signing out closes that row; signing in again
later creates another row. Rows are never reopened.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from forge.domain.errors import ConflictError
from forge.domain.events import (
    EventType,
    HelpCancelledPayload,
    HelpClaimedPayload,
    HelpRequestedPayload,
    HelpResolvedPayload,
    HelpUnclaimedPayload,
    PersonSignedInPayload,
    PersonSignedOutPayload,
    SessionEndedPayload,
    SessionStartedPayload,
)
from forge.domain.ports.records import StoredEvent
from forge.domain.types import HelpRequestStatus, SessionStatus, SignoutType
from forge.infrastructure.db.models import ClassSession, HelpRequest, SignIn

logger = structlog.get_logger()

Handler = Callable[[StoredEvent, AsyncSession], Awaitable[None]]


class Projector(ABC):
    """Translates events of the types in ``handled_events`` into read-table writes."""

    name: str
    handled_events: frozenset[EventType]

    def handles(self, event_type: EventType) -> bool:
        return event_type in self.handled_events

    async def apply(self, event: StoredEvent, session: AsyncSession) -> None:
        handler = self._handlers().get(event.event_type)
        if handler is None:
            return
        await handler(event, session)

    @abstractmethod
    def _handlers(self) -> dict[EventType, Handler]:
        """Map of event type to the coroutine applying it."""

    @abstractmethod
    async def clear(self, session: AsyncSession) -> None:
        """Reset the projected state so a full replay can rebuild it."""


def _require_rows(rowcount: int | None, event: StoredEvent, reason: str) -> None:
    if not rowcount:
        raise ConflictError(
            reason,
            metadata={
                "event_type": event.event_type.value,
                "entity_id": event.entity_id,
                "event_id": event.id,
            },
        )


class SessionProjector(Projector):
    name = "session"
    handled_events = frozenset({EventType.SESSION_STARTED, EventType.SESSION_ENDED})

    def _handlers(self) -> dict[EventType, Handler]:
        return {
            EventType.SESSION_STARTED: self._on_started,
            EventType.SESSION_ENDED: self._on_ended,
        }

    async def _on_started(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = SessionStartedPayload.model_validate(event.payload)

        other_active = await session.scalar(
            select(ClassSession.id).where(
                ClassSession.classroom_id == payload.classroom_id,
                ClassSession.status == SessionStatus.ACTIVE,
                ClassSession.id != payload.session_id,
            )
        )
        if other_active is not None:
            raise ConflictError(
                "Classroom already has an active session",
                metadata={"classroom_id": payload.classroom_id, "active_session_id": other_active},
            )

        result = await session.execute(
            update(ClassSession)
            .where(
                ClassSession.id == payload.session_id,
                ClassSession.status == SessionStatus.SCHEDULED,
            )
            .values(status=SessionStatus.ACTIVE, actual_start_at=event.created_at)
            .execution_options(synchronize_session=False)
        )
        _require_rows(result.rowcount, event, "Session is not scheduled")

    async def _on_ended(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = SessionEndedPayload.model_validate(event.payload)

        result = await session.execute(
            update(ClassSession)
            .where(
                ClassSession.id == payload.session_id,
                ClassSession.status == SessionStatus.ACTIVE,
            )
            .values(status=SessionStatus.ENDED, actual_end_at=event.created_at)
            .execution_options(synchronize_session=False)
        )
        _require_rows(result.rowcount, event, "Session is not active")

    async def clear(self, session: AsyncSession) -> None:
        # Session rows are created outside the log; only their lifecycle is projected.
        # Cancelled sessions never produced events and keep their status.
        await session.execute(
            update(ClassSession)
            .where(ClassSession.status.in_([SessionStatus.ACTIVE, SessionStatus.ENDED]))
            .values(status=SessionStatus.SCHEDULED, actual_start_at=None, actual_end_at=None)
            .execution_options(synchronize_session=False)
        )


class SignInProjector(Projector):
    name = "sign_in"
    handled_events = frozenset(
        {EventType.PERSON_SIGNED_IN, EventType.PERSON_SIGNED_OUT, EventType.SESSION_ENDED}
    )

    def _handlers(self) -> dict[EventType, Handler]:
        return {
            EventType.PERSON_SIGNED_IN: self._on_signed_in,
            EventType.PERSON_SIGNED_OUT: self._on_signed_out,
            EventType.SESSION_ENDED: self._on_session_ended,
        }

    async def _on_signed_in(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = PersonSignedInPayload.model_validate(event.payload)

        open_sign_in = await session.scalar(
            select(SignIn.id).where(
                SignIn.session_id == payload.session_id,
                SignIn.person_id == payload.person_id,
                SignIn.signed_out_at.is_(None),
            )
        )
        if open_sign_in is not None:
            raise ConflictError(
                "Person is already signed in",
                metadata={"sign_in_id": open_sign_in, "person_id": payload.person_id},
            )

        session.add(
            SignIn(
                id=payload.sign_in_id,
                session_id=payload.session_id,
                person_id=payload.person_id,
                signed_in_at=event.created_at,
                signed_in_by_id=payload.signed_in_by,
            )
        )
        await session.flush()

    async def _on_signed_out(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = PersonSignedOutPayload.model_validate(event.payload)

        result = await session.execute(
            update(SignIn)
            .where(SignIn.id == payload.sign_in_id, SignIn.signed_out_at.is_(None))
            .values(
                signed_out_at=event.created_at,
                signed_out_by_id=payload.signed_out_by,
                signout_type=payload.signout_type,
            )
            .execution_options(synchronize_session=False)
        )
        _require_rows(result.rowcount, event, "Sign-in is not open")

    async def _on_session_ended(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = SessionEndedPayload.model_validate(event.payload)

        result = await session.execute(
            update(SignIn)
            .where(SignIn.session_id == payload.session_id, SignIn.signed_out_at.is_(None))
            .values(
                signed_out_at=event.created_at,
                signed_out_by_id=payload.ended_by,
                signout_type=SignoutType.SESSION_END,
            )
            .execution_options(synchronize_session=False)
        )
        logger.debug(
            "sign_ins_closed_on_session_end",
            session_id=payload.session_id,
            count=result.rowcount,
        )

    async def clear(self, session: AsyncSession) -> None:
        await session.execute(delete(SignIn))


class HelpRequestProjector(Projector):
    name = "help_request"
    handled_events = frozenset(
        {
            EventType.HELP_REQUESTED,
            EventType.HELP_CLAIMED,
            EventType.HELP_UNCLAIMED,
            EventType.HELP_RESOLVED,
            EventType.HELP_CANCELLED,
        }
    )

    def _handlers(self) -> dict[EventType, Handler]:
        return {
            EventType.HELP_REQUESTED: self._on_requested,
            EventType.HELP_CLAIMED: self._on_claimed,
            EventType.HELP_UNCLAIMED: self._on_unclaimed,
            EventType.HELP_RESOLVED: self._on_resolved,
            EventType.HELP_CANCELLED: self._on_cancelled,
        }

    async def _on_requested(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = HelpRequestedPayload.model_validate(event.payload)

        open_request = await session.scalar(
            select(HelpRequest.id).where(
                HelpRequest.session_id == payload.session_id,
                HelpRequest.requester_id == payload.requester_id,
                HelpRequest.status.in_(HelpRequestStatus.open_statuses()),
            )
        )
        if open_request is not None:
            raise ConflictError(
                "Requester already has an open request",
                metadata={"request_id": open_request},
            )

        session.add(
            HelpRequest(
                id=payload.request_id,
                classroom_id=payload.classroom_id,
                session_id=payload.session_id,
                requester_id=payload.requester_id,
                category_id=payload.category_id,
                description=payload.description,
                what_i_tried=payload.what_i_tried,
                urgency=payload.urgency,
                status=HelpRequestStatus.PENDING,
                created_at=event.created_at,
            )
        )
        await session.flush()

    async def _transition(
        self,
        event: StoredEvent,
        session: AsyncSession,
        request_id: str,
        required: Iterable[HelpRequestStatus],
        **values: object,
    ) -> None:
        required = tuple(required)
        result = await session.execute(
            update(HelpRequest)
            .where(HelpRequest.id == request_id, HelpRequest.status.in_(required))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        _require_rows(
            result.rowcount,
            event,
            f"Help request is not {'/'.join(status.value for status in required)}",
        )

    async def _on_claimed(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = HelpClaimedPayload.model_validate(event.payload)
        await self._transition(
            event,
            session,
            payload.request_id,
            [HelpRequestStatus.PENDING],
            status=HelpRequestStatus.CLAIMED,
            claimed_by_id=payload.claimed_by_id,
            claimed_at=event.created_at,
        )

    async def _on_unclaimed(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = HelpUnclaimedPayload.model_validate(event.payload)
        await self._transition(
            event,
            session,
            payload.request_id,
            [HelpRequestStatus.CLAIMED],
            status=HelpRequestStatus.PENDING,
            claimed_by_id=None,
            claimed_at=None,
        )

    async def _on_resolved(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = HelpResolvedPayload.model_validate(event.payload)
        await self._transition(
            event,
            session,
            payload.request_id,
            [HelpRequestStatus.CLAIMED],
            status=HelpRequestStatus.RESOLVED,
            resolved_at=event.created_at,
            resolution_notes=payload.resolution_notes,
        )

    async def _on_cancelled(self, event: StoredEvent, session: AsyncSession) -> None:
        payload = HelpCancelledPayload.model_validate(event.payload)
        await self._transition(
            event,
            session,
            payload.request_id,
            HelpRequestStatus.open_statuses(),
            status=HelpRequestStatus.CANCELLED,
            cancelled_at=event.created_at,
            cancellation_reason=payload.reason,
        )

    async def clear(self, session: AsyncSession) -> None:
        await session.execute(delete(HelpRequest))


class ProjectorRegistry:
    """Ordered projector pipeline.

    Registration order follows read-table dependencies (sessions before sign-ins
    and help requests). ``apply`` runs in that order; ``clear_all`` runs in reverse.
    """

    def __init__(self, projectors: Iterable[Projector] = ()) -> None:
        self._projectors: list[Projector] = []
        for projector in projectors:
            self.register(projector)

    def register(self, projector: Projector) -> None:
        if any(existing.name == projector.name for existing in self._projectors):
            raise ValueError(f"Projector '{projector.name}' is already registered")
        self._projectors.append(projector)

    @property
    def projectors(self) -> tuple[Projector, ...]:
        return tuple(self._projectors)

    def projectors_for(self, event_type: EventType) -> list[Projector]:
        return [projector for projector in self._projectors if projector.handles(event_type)]

    async def apply(self, event: StoredEvent, session: AsyncSession) -> list[str]:
        """Dispatch ``event`` to every interested projector; returns their names."""
        applied: list[str] = []
        for projector in self.projectors_for(event.event_type):
            await projector.apply(event, session)
            applied.append(projector.name)
        logger.debug(
            "projection_applied",
            event_id=event.id,
            event_type=event.event_type.value,
            projectors=applied,
        )
        return applied

    async def clear_all(self, session: AsyncSession) -> None:
        for projector in reversed(self._projectors):
            await projector.clear(session)
            logger.debug("projection_cleared", projector=projector.name)


def create_projector_registry() -> ProjectorRegistry:
    return ProjectorRegistry([SessionProjector(), SignInProjector(), HelpRequestProjector()])
