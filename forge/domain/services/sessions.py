"""Session lifecycle use cases.

Sessions are created and cancelled directly through the repository; starting
and ending go through the event log so presence can react to SESSION_ENDED.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import SessionEntity
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.events import EntityType, EventType, SessionEndedPayload, SessionStartedPayload
from forge.domain.ports.records import (
    AppendEventInput,
    ClassroomRecord,
    CreateSessionInput,
    SessionRecord,
)
from forge.domain.services.base import UseCaseService, use_case, validation_err
from forge.domain.types import SessionStatus, SessionType

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class PublicSession:
    """What an unauthenticated classroom display may show."""

    classroom: ClassroomRecord
    session: SessionRecord | None


class SessionService(UseCaseService):
    @use_case("create_session")
    async def create_session(
        self,
        *,
        classroom_id: str,
        session_type: SessionType | str,
        scheduled_date: datetime,
        start_time: datetime,
        end_time: datetime,
        name: str | None = None,
    ) -> Result[SessionRecord]:
        if await self.env.sessions.find_active(classroom_id) is not None:
            return err(ErrorType.ACTIVE_SESSION_EXISTS, "Classroom already has an active session")

        try:
            entity = SessionEntity.create(
                id=self.env.id_generator.generate(),
                classroom_id=classroom_id,
                session_type=session_type,
                scheduled_date=scheduled_date,
                start_time=start_time,
                end_time=end_time,
                name=name,
            )
        except ValidationError as exc:
            return validation_err(exc)

        record = await self.env.sessions.create(
            CreateSessionInput(
                id=entity.id,
                classroom_id=entity.classroom_id,
                session_type=entity.session_type,
                scheduled_date=entity.scheduled_date,
                start_time=entity.start_time,
                end_time=entity.end_time,
                name=entity.name,
            )
        )
        await logger.ainfo("session_created", session_id=record.id, classroom_id=classroom_id)
        return ok(record)

    @use_case("start_session")
    async def start_session(self, *, session_id: str, actor_id: str) -> Result[SessionRecord]:
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)

        entity = SessionEntity.from_record(session)
        if not entity.can_start():
            return err(
                ErrorType.INVALID_STATE,
                f"Cannot start session in '{session.status.value}' status",
                current_status=session.status.value,
            )

        classroom = await self.env.classrooms.get_by_id(session.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        active = await self.env.sessions.find_active(session.classroom_id)
        if active is not None:
            return err(
                ErrorType.ACTIVE_SESSION_EXISTS,
                "Classroom already has an active session",
                active_session_id=active.id,
            )

        started = entity.start(self._now())
        try:
            await self.env.event_store.append_and_emit(
                AppendEventInput(
                    school_id=classroom.school_id,
                    classroom_id=started.classroom_id,
                    session_id=started.id,
                    event_type=EventType.SESSION_STARTED,
                    entity_type=EntityType.CLASS_SESSION.value,
                    entity_id=started.id,
                    actor_id=actor_id,
                    payload=SessionStartedPayload(
                        session_id=started.id,
                        classroom_id=started.classroom_id,
                        started_by=actor_id,
                        by_teacher=True,
                    ),
                )
            )
        except ConflictError as exc:
            # Lost a race against another start of this classroom
            if await self.env.sessions.find_active(session.classroom_id) is not None:
                return err(ErrorType.ACTIVE_SESSION_EXISTS, exc.message)
            return err(ErrorType.INVALID_STATE, exc.message)

        await logger.ainfo("session_started", session_id=session.id, actor_id=actor_id)
        return await self._reload(session_id)

    @use_case("end_session")
    async def end_session(self, *, session_id: str, actor_id: str) -> Result[SessionRecord]:
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)

        entity = SessionEntity.from_record(session)
        if not entity.can_end():
            return err(
                ErrorType.INVALID_STATE,
                f"Cannot end session in '{session.status.value}' status",
                current_status=session.status.value,
            )

        classroom = await self.env.classrooms.get_by_id(session.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        ended = entity.end(self._now())
        try:
            await self.env.event_store.append_and_emit(
                AppendEventInput(
                    school_id=classroom.school_id,
                    classroom_id=ended.classroom_id,
                    session_id=ended.id,
                    event_type=EventType.SESSION_ENDED,
                    entity_type=EntityType.CLASS_SESSION.value,
                    entity_id=ended.id,
                    actor_id=actor_id,
                    payload=SessionEndedPayload(
                        session_id=ended.id,
                        classroom_id=ended.classroom_id,
                        ended_by=actor_id,
                        by_teacher=True,
                    ),
                )
            )
        except ConflictError as exc:
            return err(ErrorType.INVALID_STATE, exc.message)

        await logger.ainfo("session_ended", session_id=session.id, actor_id=actor_id)
        return await self._reload(session_id)

    @use_case("cancel_session")
    async def cancel_session(self, *, session_id: str) -> Result[SessionRecord]:
        """Cancel a scheduled session. Never evented; replay leaves it cancelled."""
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)

        entity = SessionEntity.from_record(session)
        if not entity.can_cancel():
            return err(
                ErrorType.INVALID_STATE,
                f"Cannot cancel session in '{session.status.value}' status",
                current_status=session.status.value,
            )

        cancelled = entity.cancel()
        record = await self.env.sessions.update(session_id, status=cancelled.status)
        await logger.ainfo("session_cancelled", session_id=session_id)
        return ok(record)

    @use_case("create_and_start_session")
    async def create_and_start_session(
        self, *, classroom_id: str, actor_id: str
    ) -> Result[SessionRecord]:
        """Open a drop-in session that starts now."""
        now = self._now()
        created = await self.create_session(
            classroom_id=classroom_id,
            session_type=SessionType.DROP_IN,
            scheduled_date=now,
            start_time=now,
            end_time=now + timedelta(minutes=self.env.settings.drop_in_session_minutes),
        )
        if created.status == "err":
            return created
        return await self.start_session(session_id=created.value.id, actor_id=actor_id)

    @use_case("get_current_session")
    async def get_current_session(self, *, classroom_id: str) -> Result[SessionRecord | None]:
        return ok(await self.env.sessions.find_active(classroom_id))

    @use_case("get_public_current_session")
    async def get_public_current_session(self, *, display_code: str) -> Result[PublicSession]:
        """Classroom and its active session, looked up by the classroom display code."""
        classroom = await self.env.classrooms.get_by_display_code(
            (display_code or "").strip().upper()
        )
        if classroom is None or not classroom.is_active:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        return ok(
            PublicSession(
                classroom=classroom, session=await self.env.sessions.find_active(classroom.id)
            )
        )

    @use_case("get_session")
    async def get_session(self, *, session_id: str) -> Result[SessionRecord]:
        return await self._reload(session_id)

    @use_case("list_sessions")
    async def list_sessions(
        self,
        *,
        classroom_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        status: SessionStatus | None = None,
    ) -> Result[list[SessionRecord]]:
        sessions = await self.env.sessions.list_by_classroom(
            classroom_id, since=since, until=until
        )
        if status is not None:
            sessions = [session for session in sessions if session.status is status]
        return ok(sessions)

    async def _reload(self, session_id: str) -> Result[SessionRecord]:
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)
        return ok(session)
