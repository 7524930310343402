from __future__ import annotations

from forge.core.result import ErrorType
from forge.domain.services import NinjaService, PresenceService

from tests.utils import seed_classroom, start_session


async def _domain(env, seeded, name="Python"):
    result = await NinjaService(env).create_domain(classroom_id=seeded.classroom.id, name=name)
    assert result.status == "ok", result
    return result.value


class TestDomains:
    """Ninja domain management."""

    async def test_create_assigns_increasing_display_order(self, env, seeded) -> None:
        first = await _domain(env, seeded, "Python")
        second = await _domain(env, seeded, "CSS")

        assert (first.display_order, second.display_order) == (1, 2)

    async def test_duplicate_name_ignores_case(self, env, seeded) -> None:
        await _domain(env, seeded, "Python")

        result = await NinjaService(env).create_domain(
            classroom_id=seeded.classroom.id, name="python"
        )

        assert result.status == "err"
        assert result.error.type is ErrorType.DUPLICATE_NAME

    async def test_blank_name(self, env, seeded) -> None:
        result = await NinjaService(env).create_domain(classroom_id=seeded.classroom.id, name=" ")

        assert result.error.type is ErrorType.VALIDATION_ERROR

    async def test_update_domain(self, env, seeded) -> None:
        domain = await _domain(env, seeded)

        result = await NinjaService(env).update_domain(
            domain_id=domain.id, name="Python 3", description="Scripts and notebooks"
        )

        assert result.value.name == "Python 3"
        assert result.value.description == "Scripts and notebooks"

    async def test_update_missing_domain(self, env) -> None:
        result = await NinjaService(env).update_domain(domain_id="nope", name="x")

        assert result.error.type is ErrorType.DOMAIN_NOT_FOUND

    async def test_archive_revokes_assignments(self, env, seeded) -> None:
        """Archiving hides the domain and revokes everyone assigned to it."""
        domain = await _domain(env, seeded)
        ninjas = NinjaService(env)
        for student in seeded.students[:2]:
            await ninjas.assign_ninja(
                person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
            )

        result = await ninjas.archive_domain(domain_id=domain.id)

        assert result.value == 2
        assert (await ninjas.list_domains(classroom_id=seeded.classroom.id)).value == []
        archived = await ninjas.list_domains(classroom_id=seeded.classroom.id, include_inactive=True)
        assert [d.is_active for d in archived.value] == [False]
        assert await env.ninja.list_assignments_for_domain(domain.id) == []


class TestAssignments:
    async def test_assign_and_revoke(self, env, seeded, clock) -> None:
        domain = await _domain(env, seeded)
        student = seeded.students[0]
        ninjas = NinjaService(env)

        assigned = await ninjas.assign_ninja(
            person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
        )
        clock.advance(days=1)
        revoked = await ninjas.revoke_ninja(person_id=student.id, domain_id=domain.id)

        assert assigned.value.is_active
        assert assigned.value.assigned_by_id == seeded.teacher.id
        assert not revoked.value.is_active
        assert revoked.value.revoked_at == clock.now()

    async def test_double_assignment(self, env, seeded) -> None:
        domain = await _domain(env, seeded)
        ninjas = NinjaService(env)
        student = seeded.students[0]
        await ninjas.assign_ninja(person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id)

        result = await ninjas.assign_ninja(
            person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
        )

        assert result.error.type is ErrorType.ALREADY_ASSIGNED

    async def test_reassignment_reactivates_same_row(self, env, seeded, clock) -> None:
        """A revoked ninja is reactivated in place rather than duplicated."""
        domain = await _domain(env, seeded)
        ninjas = NinjaService(env)
        student = seeded.students[0]
        first = await ninjas.assign_ninja(
            person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
        )
        await ninjas.revoke_ninja(person_id=student.id, domain_id=domain.id)
        clock.advance(days=2)

        again = await ninjas.assign_ninja(
            person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
        )

        assert again.value.id == first.value.id
        assert again.value.is_active
        assert again.value.revoked_at is None
        assert again.value.assigned_at == clock.now()

    async def test_revoke_without_assignment(self, env, seeded) -> None:
        domain = await _domain(env, seeded)

        result = await NinjaService(env).revoke_ninja(
            person_id=seeded.students[0].id, domain_id=domain.id
        )

        assert result.error.type is ErrorType.NOT_ASSIGNED

    async def test_only_members_can_be_ninjas(self, env, seeded) -> None:
        other = await seed_classroom(env, classroom_id="room-2", display_code="ROOM22")
        domain = await _domain(env, seeded)

        result = await NinjaService(env).assign_ninja(
            person_id=other.students[0].id, domain_id=domain.id, actor_id=seeded.teacher.id
        )

        assert result.error.type is ErrorType.NOT_A_MEMBER

    async def test_domains_with_ninjas(self, env, seeded) -> None:
        python = await _domain(env, seeded, "Python")
        css = await _domain(env, seeded, "CSS")
        ninjas = NinjaService(env)
        await ninjas.assign_ninja(
            person_id=seeded.students[0].id, domain_id=python.id, actor_id=seeded.teacher.id
        )

        result = await ninjas.get_domains_with_ninjas(classroom_id=seeded.classroom.id)

        assert [entry.domain.id for entry in result.value] == [python.id, css.id]
        assert [n.person.id for n in result.value[0].ninjas] == [seeded.students[0].id]
        assert result.value[1].ninjas == []


class TestNinjaPresence:
    async def test_only_present_ninjas_listed(self, env, seeded) -> None:
        """Present people without assignments and absent ninjas are left out."""
        domain = await _domain(env, seeded)
        ninjas = NinjaService(env)
        present_ninja, absent_ninja, plain = seeded.students
        for student in (present_ninja, absent_ninja):
            await ninjas.assign_ninja(
                person_id=student.id, domain_id=domain.id, actor_id=seeded.teacher.id
            )
        session = await start_session(env, seeded)
        presence = PresenceService(env)
        for student in (present_ninja, plain):
            await presence.sign_in(session_id=session.id, person_id=student.id, actor_id=student.id)

        result = await ninjas.get_ninja_presence(session_id=session.id)

        assert [entry.person.person_id for entry in result.value] == [present_ninja.id]
        assert [d.name for d in result.value[0].domains] == ["Python"]

    async def test_empty_session(self, env, seeded) -> None:
        session = await start_session(env, seeded)

        result = await NinjaService(env).get_ninja_presence(session_id=session.id)

        assert result.value == []
