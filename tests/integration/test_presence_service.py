from __future__ import annotations

from forge.core.result import ErrorType
from forge.domain.events import EventType
from forge.domain.ports.records import EventFilters
from forge.domain.services import PresenceService, SessionService
from forge.domain.types import ClassroomModule, ClassroomSettings, SignoutType

from tests.utils import seed_classroom, start_session


class TestSignIn:
    """Signing into an active session."""

    async def test_self_sign_in(self, env, seeded, clock) -> None:
        session = await start_session(env, seeded)
        student = seeded.students[0]

        result = await PresenceService(env).sign_in(
            session_id=session.id, person_id=student.id, actor_id=student.id
        )

        assert result.status == "ok"
        assert result.value.person_id == student.id
        assert result.value.signed_in_by_id == student.id
        assert result.value.signed_in_at == clock.now()
        assert result.value.signed_out_at is None

        events = await env.event_store.load_events(
            EventFilters(event_type=EventType.PERSON_SIGNED_IN)
        )
        assert events[0].payload["is_self_sign_in"] is True
        assert events[0].payload["by_teacher"] is False
        assert events[0].entity_id == result.value.id

    async def test_teacher_signs_student_in(self, env, seeded) -> None:
        session = await start_session(env, seeded)

        await PresenceService(env).sign_in(
            session_id=session.id, person_id=seeded.students[1].id, actor_id=seeded.teacher.id
        )

        (event,) = await env.event_store.load_events(
            EventFilters(event_type=EventType.PERSON_SIGNED_IN)
        )
        assert event.payload["is_self_sign_in"] is False
        assert event.payload["by_teacher"] is True

    async def test_double_sign_in_rejected(self, env, seeded) -> None:
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        student = seeded.students[0]
        await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)

        result = await presence.sign_in(
            session_id=session.id, person_id=student.id, actor_id=student.id
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.ALREADY_SIGNED_IN

    async def test_sign_in_requires_active_session(self, env, seeded) -> None:
        """Ended sessions accept no sign-ins and nothing is logged."""
        session = await start_session(env, seeded)
        await SessionService(env).end_session(session_id=session.id, actor_id=seeded.teacher.id)

        result = await PresenceService(env).sign_in(
            session_id=session.id, person_id=seeded.students[0].id, actor_id=seeded.students[0].id
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.SESSION_NOT_ACTIVE
        assert await env.event_store.count_events(
            EventFilters(event_type=EventType.PERSON_SIGNED_IN)
        ) == 0

    async def test_unknown_session(self, env, seeded) -> None:
        result = await PresenceService(env).sign_in(
            session_id="missing", person_id=seeded.students[0].id, actor_id=seeded.students[0].id
        )

        assert result.error.type is ErrorType.SESSION_NOT_FOUND

    async def test_pin_session_bound_to_its_classroom(self, env, seeded) -> None:
        session = await start_session(env, seeded)

        result = await PresenceService(env).sign_in(
            session_id=session.id,
            person_id=seeded.students[0].id,
            actor_id=seeded.students[0].id,
            pin_classroom_id="another-classroom",
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.WRONG_CLASSROOM

    async def test_presence_module_disabled(self, env) -> None:
        """Classrooms with presence switched off refuse sign-ins."""
        seeded = await seed_classroom(
            env,
            classroom_id="quiet-room",
            display_code="QUIET1",
            settings=ClassroomSettings(modules={ClassroomModule.PRESENCE: False}),
        )
        session = await start_session(env, seeded)

        result = await PresenceService(env).sign_in(
            session_id=session.id, person_id=seeded.students[0].id, actor_id=seeded.students[0].id
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.FEATURE_DISABLED
        assert result.error.details["feature"] == "presence"


class TestSignOut:
    async def test_self_sign_out(self, env, seeded, clock) -> None:
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        student = seeded.students[0]
        await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)
        clock.advance(minutes=20)

        result = await presence.sign_out(
            session_id=session.id, person_id=student.id, actor_id=student.id
        )

        assert result.status == "ok"
        assert result.value.signout_type is SignoutType.SELF
        assert result.value.signed_out_at == clock.now()
        status = await presence.get_sign_in_status(session_id=session.id, person_id=student.id)
        assert status.value is None

    async def test_teacher_sign_out_is_manual(self, env, seeded) -> None:
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        student = seeded.students[0]
        await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)

        result = await presence.sign_out(
            session_id=session.id, person_id=student.id, actor_id=seeded.teacher.id
        )

        assert result.value.signout_type is SignoutType.MANUAL
        assert result.value.signed_out_by_id == seeded.teacher.id

    async def test_sign_out_without_sign_in(self, env, seeded) -> None:
        session = await start_session(env, seeded)

        result = await PresenceService(env).sign_out(
            session_id=session.id, person_id=seeded.students[0].id, actor_id=seeded.students[0].id
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.NOT_SIGNED_IN

    async def test_signing_in_again_creates_new_row(self, env, seeded, clock) -> None:
        """Each sign-in cycle is its own row; closed rows are never reopened."""
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        student = seeded.students[0]

        first = await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)
        clock.advance(minutes=10)
        await presence.sign_out(session_id=session.id, person_id=student.id, actor_id=student.id)
        clock.advance(minutes=10)
        second = await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)

        assert second.status == "ok"
        assert second.value.id != first.value.id
        rows = (await presence.list_sign_ins_for_session(session_id=session.id)).value
        assert len(rows) == 2
        assert [row.signed_out_at is None for row in rows].count(True) == 1


class TestPresentList:
    async def test_lists_only_people_still_present(self, env, seeded) -> None:
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        stays, leaves = seeded.students[0], seeded.students[1]
        await presence.sign_in(session_id=session.id, person_id=stays.id, actor_id=stays.id)
        await presence.sign_in(session_id=session.id, person_id=leaves.id, actor_id=leaves.id)
        await presence.sign_out(session_id=session.id, person_id=leaves.id, actor_id=leaves.id)

        result = await presence.list_present(session_id=session.id)

        assert [person.person_id for person in result.value] == [stays.id]
        assert result.value[0].display_name == "Student"
