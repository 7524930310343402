from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import SessionEntity, SignInEntity
from forge.domain.errors import ConflictError
from forge.domain.events import (
    EntityType,
    EventType,
    PersonSignedInPayload,
    PersonSignedOutPayload,
)
from forge.domain.ports.records import AppendEventInput, PresentPerson, SignInRecord
from forge.domain.services.authorization import AuthorizationService
from forge.domain.services.base import UseCaseService, use_case
from forge.domain.types import ClassroomModule, SignoutType

if TYPE_CHECKING:
    from forge.infrastructure.environment import Environment

logger = structlog.get_logger()


class PresenceService(UseCaseService):
    """Signing people in and out of an active session."""

    def __init__(self, env: Environment) -> None:
        super().__init__(env)
        self.auth = AuthorizationService(env)

    @use_case("sign_in")
    async def sign_in(
        self,
        *,
        session_id: str,
        person_id: str,
        actor_id: str,
        pin_classroom_id: str | None = None,
    ) -> Result[SignInRecord]:
        session, active_sign_in = await asyncio.gather(
            self.env.sessions.get_by_id(session_id),
            self.env.presence.get_active_sign_in(session_id, person_id),
        )
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)
        if not SessionEntity.from_record(session).allows_sign_in():
            return err(ErrorType.SESSION_NOT_ACTIVE, "Session is not active")
        if active_sign_in is not None:
            return err(ErrorType.ALREADY_SIGNED_IN, "Already signed in", sign_in_id=active_sign_in.id)
        if pin_classroom_id and pin_classroom_id != session.classroom_id:
            return err(ErrorType.WRONG_CLASSROOM, "Session belongs to another classroom")

        by_teacher, classroom = await asyncio.gather(
            self.auth.is_teacher(actor_id, session.classroom_id),
            self.env.classrooms.get_by_id(session.classroom_id),
        )
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        if not classroom.settings.is_enabled(ClassroomModule.PRESENCE):
            return err(
                ErrorType.FEATURE_DISABLED,
                "Presence is disabled for this classroom",
                feature=ClassroomModule.PRESENCE.value,
            )

        entity = SignInEntity.create(
            id=self.env.id_generator.generate(),
            session_id=session.id,
            person_id=person_id,
            signed_in_by_id=actor_id,
            signed_in_at=self._now(),
        )
        try:
            await self.env.event_store.append_and_emit(
                AppendEventInput(
                    school_id=classroom.school_id,
                    classroom_id=session.classroom_id,
                    session_id=session.id,
                    event_type=EventType.PERSON_SIGNED_IN,
                    entity_type=EntityType.SIGN_IN.value,
                    entity_id=entity.id,
                    actor_id=actor_id,
                    payload=PersonSignedInPayload(
                        sign_in_id=entity.id,
                        session_id=session.id,
                        classroom_id=session.classroom_id,
                        person_id=person_id,
                        signed_in_by=actor_id,
                        is_self_sign_in=entity.is_self_sign_in,
                        by_teacher=by_teacher,
                    ),
                )
            )
        except ConflictError as exc:
            return err(ErrorType.ALREADY_SIGNED_IN, exc.message)

        record = await self.env.presence.get_active_sign_in(session_id, person_id)
        if record is None:
            return err(ErrorType.SIGN_IN_NOT_FOUND_AFTER_CREATE, "Sign-in was not recorded")

        await logger.ainfo(
            "person_signed_in", session_id=session_id, person_id=person_id, actor_id=actor_id
        )
        return ok(record)

    @use_case("sign_out")
    async def sign_out(
        self,
        *,
        session_id: str,
        person_id: str,
        actor_id: str,
        pin_classroom_id: str | None = None,
    ) -> Result[SignInRecord]:
        session, active_sign_in = await asyncio.gather(
            self.env.sessions.get_by_id(session_id),
            self.env.presence.get_active_sign_in(session_id, person_id),
        )
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)
        if active_sign_in is None:
            return err(ErrorType.NOT_SIGNED_IN, "Not signed in")

        entity = SignInEntity.from_record(active_sign_in)
        if not entity.can_sign_out():
            return err(ErrorType.NOT_SIGNED_IN, "Not signed in")
        if pin_classroom_id and pin_classroom_id != session.classroom_id:
            return err(ErrorType.WRONG_CLASSROOM, "Session belongs to another classroom")

        is_self = actor_id == person_id
        signout_type = SignoutType.SELF if is_self else SignoutType.MANUAL
        classroom = await self.env.classrooms.get_by_id(session.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        by_teacher = False if is_self else await self.auth.is_teacher(actor_id, session.classroom_id)

        signed_out = entity.sign_out(actor_id, signout_type, self._now())
        try:
            await self.env.event_store.append_and_emit(
                AppendEventInput(
                    school_id=classroom.school_id,
                    classroom_id=session.classroom_id,
                    session_id=session.id,
                    event_type=EventType.PERSON_SIGNED_OUT,
                    entity_type=EntityType.SIGN_IN.value,
                    entity_id=signed_out.id,
                    actor_id=actor_id,
                    payload=PersonSignedOutPayload(
                        sign_in_id=signed_out.id,
                        session_id=session.id,
                        classroom_id=session.classroom_id,
                        person_id=person_id,
                        signed_out_by=signed_out.signed_out_by_id,
                        signout_type=signed_out.signout_type,
                        by_teacher=by_teacher,
                    ),
                )
            )
        except ConflictError as exc:
            return err(ErrorType.NOT_SIGNED_IN, exc.message)

        record = await self.env.presence.get_sign_in(signed_out.id)
        if record is None:
            return err(ErrorType.NOT_SIGNED_IN, "Sign-in disappeared")

        await logger.ainfo(
            "person_signed_out",
            session_id=session_id,
            person_id=person_id,
            signout_type=signout_type.value,
        )
        return ok(record)

    @use_case("get_sign_in_status")
    async def get_sign_in_status(
        self, *, session_id: str, person_id: str
    ) -> Result[SignInRecord | None]:
        return ok(await self.env.presence.get_active_sign_in(session_id, person_id))

    @use_case("list_present")
    async def list_present(self, *, session_id: str) -> Result[list[PresentPerson]]:
        return ok(await self.env.presence.list_present_people(session_id))

    @use_case("list_sign_ins_for_session")
    async def list_sign_ins_for_session(self, *, session_id: str) -> Result[list[SignInRecord]]:
        return ok(await self.env.presence.list_sign_ins_for_session(session_id))
