from __future__ import annotations

import pytest
from sqlalchemy import select

from forge.domain.errors import ConflictError
from forge.domain.events import EntityType, EventType, SessionStartedPayload
from forge.domain.ports.records import AppendEventInput, EventFilters
from forge.domain.services import HelpService, PresenceService, RosterService, SessionService
from forge.domain.types import SessionStatus, SessionType
from forge.infrastructure.db import Base
from forge.infrastructure.db.models import ClassSession, DomainEvent
from forge.infrastructure.events import (
    ProjectorRegistry,
    SessionProjector,
    SqlAlchemyEventStore,
)

from tests.utils import SCHOOL_ID, WHAT_I_TRIED, start_session


class _ExplodingProjector(SessionProjector):
    name = "exploding"

    async def apply(self, event, session) -> None:  # type: ignore[override]
        raise RuntimeError("projection failed")


def _started(session_id: str, classroom_id: str, actor_id: str) -> AppendEventInput:
    return AppendEventInput(
        school_id=SCHOOL_ID,
        classroom_id=classroom_id,
        session_id=session_id,
        event_type=EventType.SESSION_STARTED,
        entity_type=EntityType.CLASS_SESSION.value,
        entity_id=session_id,
        actor_id=actor_id,
        payload=SessionStartedPayload(
            session_id=session_id, classroom_id=classroom_id, started_by=actor_id
        ),
    )


class TestEventStore:
    """Append-only log with projections applied in the same transaction."""

    async def test_append_stores_event_and_projects(self, env, seeded) -> None:
        """Starting a session writes the event and flips the read model."""
        session = await start_session(env, seeded)

        events = await env.event_store.load_events(EventFilters(session_id=session.id))

        assert [event.event_type for event in events] == [EventType.SESSION_STARTED]
        assert events[0].payload["started_by"] == seeded.teacher.id
        assert events[0].school_id == SCHOOL_ID
        assert session.actual_start_at == events[0].created_at

    async def test_filters_and_counts(self, env, seeded, clock) -> None:
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        for student in seeded.students:
            clock.advance(minutes=1)
            result = await presence.sign_in(
                session_id=session.id, person_id=student.id, actor_id=student.id
            )
            assert result.status == "ok"

        sign_ins = EventFilters(event_type=EventType.PERSON_SIGNED_IN)

        assert await env.event_store.count_events() == 4
        assert await env.event_store.count_events(sign_ins) == 3
        assert await env.event_store.count_events(EventFilters(classroom_id="elsewhere")) == 0
        loaded = await env.event_store.load_events(sign_ins)
        assert [event.payload["person_id"] for event in loaded] == [s.id for s in seeded.students]

    async def test_events_load_oldest_first_with_insertion_tiebreak(self, env, seeded) -> None:
        """Events sharing a timestamp keep insertion order."""
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        for student in seeded.students:
            await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)

        events = await env.event_store.load_events()

        assert events[0].event_type is EventType.SESSION_STARTED
        assert [event.payload["person_id"] for event in events[1:]] == [
            student.id for student in seeded.students
        ]

    async def test_payload_type_is_checked(self, env, seeded) -> None:
        data = _started("s-1", seeded.classroom.id, seeded.teacher.id)
        wrong = AppendEventInput(
            school_id=data.school_id,
            event_type=EventType.SESSION_ENDED,
            entity_type=data.entity_type,
            entity_id=data.entity_id,
            payload=data.payload,
        )

        with pytest.raises(TypeError):
            await env.event_store.append(wrong)
        assert await env.event_store.count_events() == 0

    async def test_failed_projection_rolls_back_event(
        self, env, seeded, session_factory, clock
    ) -> None:
        """A projector failure leaves neither the event nor partial projections."""
        created = await SessionService(env).create_session(
            classroom_id=seeded.classroom.id,
            session_type=SessionType.DROP_IN,
            scheduled_date=clock.now(),
            start_time=clock.now(),
            end_time=clock.advance(hours=1),
        )
        assert created.status == "ok"
        store = SqlAlchemyEventStore(
            session_factory,
            ProjectorRegistry([SessionProjector(), _ExplodingProjector()]),
            clock=clock,
            id_generator=env.id_generator,
        )

        with pytest.raises(RuntimeError):
            await store.append(_started(created.value.id, seeded.classroom.id, seeded.teacher.id))

        async with session_factory() as db:
            assert (await db.execute(select(DomainEvent))).first() is None
            status = await db.scalar(
                select(ClassSession.status).where(ClassSession.id == created.value.id)
            )
        assert status is SessionStatus.SCHEDULED

    async def test_guarded_projection_conflict_rolls_back(self, env, seeded) -> None:
        """Starting an already active session conflicts and stores nothing."""
        session = await start_session(env, seeded)

        with pytest.raises(ConflictError):
            await env.event_store.append(
                _started(session.id, seeded.classroom.id, seeded.teacher.id)
            )
        assert await env.event_store.count_events() == 1

    async def test_delete_older_than(self, env, seeded, clock) -> None:
        await start_session(env, seeded)
        clock.advance(days=10)
        cutoff = clock.now()
        clock.advance(minutes=1)
        await PresenceService(env).sign_in(
            session_id=(await env.sessions.find_active(seeded.classroom.id)).id,
            person_id=seeded.students[0].id,
            actor_id=seeded.students[0].id,
        )

        deleted = await env.event_store.delete_older_than(cutoff)

        assert deleted == 1
        remaining = await env.event_store.load_events()
        assert [event.event_type for event in remaining] == [EventType.PERSON_SIGNED_IN]

    async def test_rebuild_matches_incremental_state(
        self, env, seeded, session_factory, clock
    ) -> None:
        """Replaying a log holding every event type reproduces every table row."""
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        help_service = HelpService(env)
        teacher = seeded.teacher
        first, second, third = seeded.students

        category = await help_service.create_category(classroom_id=seeded.classroom.id, name="Loops")
        await presence.sign_in(session_id=session.id, person_id=first.id, actor_id=first.id)
        clock.advance(minutes=5)
        await presence.sign_out(session_id=session.id, person_id=first.id, actor_id=teacher.id)
        clock.advance(minutes=5)
        await presence.sign_in(session_id=session.id, person_id=first.id, actor_id=teacher.id)
        await presence.sign_in(session_id=session.id, person_id=second.id, actor_id=second.id)
        await presence.sign_in(session_id=session.id, person_id=third.id, actor_id=third.id)
        clock.advance(minutes=1)
        await presence.sign_out(session_id=session.id, person_id=third.id, actor_id=third.id)

        resolved = await help_service.request_help(
            session_id=session.id,
            requester_id=second.id,
            description="Loop never ends",
            what_i_tried=WHAT_I_TRIED,
            urgency="blocked",
            category_id=category.value.id,
        )
        cancelled = await help_service.request_help(
            session_id=session.id,
            requester_id=first.id,
            description="Is my function right?",
            what_i_tried=WHAT_I_TRIED,
            urgency="check_work",
        )
        resolved_id = resolved.value.help_request.id
        clock.advance(minutes=3)
        await help_service.claim_help_request(request_id=resolved_id, actor_id=teacher.id)
        clock.advance(minutes=1)
        await help_service.unclaim_help_request(request_id=resolved_id, actor_id=teacher.id)
        clock.advance(minutes=2)
        await help_service.resolve_help_request(
            request_id=resolved_id, actor_id=teacher.id, resolution_notes="Fixed the bound"
        )
        await help_service.cancel_help_request(
            request_id=cancelled.value.help_request.id, actor_id=first.id, reason="Worked it out"
        )
        await help_service.request_help(
            session_id=session.id,
            requester_id=third.id,
            description="Still stuck on CSS",
            urgency="question",
            what_i_tried=WHAT_I_TRIED,
        )
        await RosterService(env).update_profile(person_id=first.id, pronouns="they/them")
        clock.advance(minutes=7)
        await SessionService(env).end_session(session_id=session.id, actor_id=teacher.id)

        recorded = {event.event_type for event in await env.event_store.load_events()}
        assert recorded == set(EventType)

        async def snapshot():
            tables = {}
            async with session_factory() as db:
                for table in Base.metadata.sorted_tables:
                    rows = await db.execute(select(table).order_by(*table.primary_key.columns))
                    tables[table.name] = [tuple(row) for row in rows]
            return tables

        before = await snapshot()
        replayed = await env.event_store.rebuild_read_models()
        after = await snapshot()

        assert replayed == await env.event_store.count_events()
        assert after == before
        assert len(before["sign_ins"]) == 4
        assert len(before["help_requests"]) == 3
