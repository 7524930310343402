from __future__ import annotations

from forge.core.result import ErrorType
from forge.domain.services import PinService, RosterService

from tests.utils import seed_classroom


class TestPinManagement:
    """Teachers setting and generating student PINs."""

    async def test_set_pin(self, env, seeded) -> None:
        pins = PinService(env)
        student = seeded.students[0]

        result = await pins.set_pin(classroom_id=seeded.classroom.id, person_id=student.id, pin="4821")

        assert result.status == "ok"
        listed = await pins.list_students_with_pins(classroom_id=seeded.classroom.id)
        flags = {info.person_id: info.has_pin for info in listed.value}
        assert flags[student.id] is True
        assert flags[seeded.students[1].id] is False

    async def test_pin_format(self, env, seeded) -> None:
        pins = PinService(env)

        for bad in ("123", "1234567", "12a4", ""):
            result = await pins.set_pin(
                classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin=bad
            )
            assert result.error.type is ErrorType.VALIDATION_ERROR, bad

    async def test_pin_unique_within_classroom(self, env, seeded) -> None:
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        clash = await pins.set_pin(
            classroom_id=seeded.classroom.id, person_id=seeded.students[1].id, pin="4821"
        )
        same_student = await pins.set_pin(
            classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821"
        )

        assert clash.error.type is ErrorType.PIN_IN_USE
        assert same_student.status == "ok"

    async def test_same_pin_allowed_in_other_classroom(self, env, seeded) -> None:
        other = await seed_classroom(env, classroom_id="room-2", display_code="ROOM22")
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        result = await pins.set_pin(classroom_id=other.classroom.id, person_id=other.students[0].id, pin="4821")

        assert result.status == "ok"

    async def test_non_member(self, env, seeded) -> None:
        result = await PinService(env).set_pin(
            classroom_id=seeded.classroom.id, person_id="stranger", pin="4821"
        )

        assert result.error.type is ErrorType.NOT_FOUND

    async def test_generate_pin(self, env, seeded) -> None:
        """Generated PINs are digits of the minimum length and unused."""
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        result = await pins.generate_pin(
            classroom_id=seeded.classroom.id, person_id=seeded.students[1].id
        )

        assert result.status == "ok"
        assert result.value.isdigit()
        assert len(result.value) == 4
        assert result.value != "4821"
        login = await pins.login_with_pin(classroom_code="ABC123", pin=result.value)
        assert login.value.person_id == seeded.students[1].id

    async def test_generate_all_pins(self, env, seeded) -> None:
        """Only students without a PIN get one; existing PINs keep working."""
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        result = await pins.generate_all_pins(classroom_id=seeded.classroom.id)

        assert result.status == "ok"
        assert result.value.generated == 2
        listed = await pins.list_students_with_pins(classroom_id=seeded.classroom.id)
        assert all(info.has_pin for info in listed.value)
        login = await pins.login_with_pin(classroom_code="ABC123", pin="4821")
        assert login.value.person_id == seeded.students[0].id

    async def test_generate_all_pins_when_everyone_has_one(self, env, seeded) -> None:
        pins = PinService(env)
        await pins.generate_all_pins(classroom_id=seeded.classroom.id)

        again = await pins.generate_all_pins(classroom_id=seeded.classroom.id)

        assert again.value.generated == 0

    async def test_remove_pin_ends_sessions(self, env, seeded) -> None:
        pins = PinService(env)
        student = seeded.students[0]
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=student.id, pin="4821")
        login = await pins.login_with_pin(classroom_code="ABC123", pin="4821")

        await pins.remove_pin(classroom_id=seeded.classroom.id, person_id=student.id)

        assert (await pins.get_pin_session(token=login.value.token)).status == "err"
        again = await pins.login_with_pin(classroom_code="ABC123", pin="4821")
        assert again.error.type is ErrorType.INVALID_CREDENTIALS


class TestPinLogin:
    async def test_login_issues_session(self, env, seeded, clock) -> None:
        pins = PinService(env)
        student = seeded.students[0]
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=student.id, pin="4821")

        result = await pins.login_with_pin(classroom_code=" abc123 ", pin="4821")

        assert result.status == "ok"
        assert result.value.person_id == student.id
        assert result.value.classroom_id == seeded.classroom.id
        assert (result.value.expires_at - clock.now()).total_seconds() == (
            env.settings.pin_session_hours * 3600
        )
        session = await pins.get_pin_session(token=result.value.token)
        assert session.value.person_id == student.id

    async def test_wrong_pin_or_code(self, env, seeded) -> None:
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        wrong_pin = await pins.login_with_pin(classroom_code="ABC123", pin="0000")
        wrong_code = await pins.login_with_pin(classroom_code="ZZZ999", pin="4821")

        assert wrong_pin.error.type is ErrorType.INVALID_CREDENTIALS
        assert wrong_code.error.type is ErrorType.INVALID_CREDENTIALS

    async def test_removed_student_cannot_log_in(self, env, seeded) -> None:
        pins = PinService(env)
        student = seeded.students[0]
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=student.id, pin="4821")
        await RosterService(env).remove_student(classroom_id=seeded.classroom.id, person_id=student.id)

        result = await pins.login_with_pin(classroom_code="ABC123", pin="4821")

        assert result.error.type is ErrorType.INVALID_CREDENTIALS

    async def test_new_login_replaces_old_session(self, env, seeded) -> None:
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")

        first = await pins.login_with_pin(classroom_code="ABC123", pin="4821")
        second = await pins.login_with_pin(classroom_code="ABC123", pin="4821")

        assert first.value.token != second.value.token
        assert (await pins.get_pin_session(token=first.value.token)).status == "err"
        assert (await pins.get_pin_session(token=second.value.token)).status == "ok"

    async def test_session_expires(self, env, seeded, clock) -> None:
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")
        login = await pins.login_with_pin(classroom_code="ABC123", pin="4821")

        clock.advance(hours=env.settings.pin_session_hours)

        result = await pins.get_pin_session(token=login.value.token)
        assert result.error.type is ErrorType.INVALID_CREDENTIALS

    async def test_logout(self, env, seeded) -> None:
        pins = PinService(env)
        await pins.set_pin(classroom_id=seeded.classroom.id, person_id=seeded.students[0].id, pin="4821")
        login = await pins.login_with_pin(classroom_code="ABC123", pin="4821")

        await pins.logout_pin(token=login.value.token)

        assert (await pins.get_pin_session(token=login.value.token)).status == "err"
