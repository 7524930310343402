from __future__ import annotations

from dataclasses import dataclass, field

from forge.api.deps import issue_smoke_token
from forge.core.auth import Role
from forge.domain.ports.records import ClassroomRecord, PersonRecord, SessionRecord
from forge.domain.services import SessionService
from forge.domain.types import ClassroomModule, ClassroomSettings, MemberRole
from forge.infrastructure.environment import Environment

SCHOOL_ID = "school-1"
WHAT_I_TRIED = "I re-read the instructions and checked my loop bounds twice."


@dataclass
class SeededClassroom:
    classroom: ClassroomRecord
    teacher: PersonRecord
    students: list[PersonRecord] = field(default_factory=list)


def all_modules_enabled() -> ClassroomSettings:
    return ClassroomSettings(modules={module: True for module in ClassroomModule})


async def create_person(env: Environment, person_id: str, name: str) -> PersonRecord:
    return await env.people.create_person(
        PersonRecord(
            id=person_id,
            school_id=SCHOOL_ID,
            legal_name=name,
            display_name=name.split()[0],
            email=f"{person_id}@example.com",
        )
    )


async def seed_classroom(
    env: Environment,
    *,
    classroom_id: str = "classroom-1",
    display_code: str = "ABC123",
    settings: ClassroomSettings | None = None,
    student_count: int = 3,
) -> SeededClassroom:
    classroom = await env.classrooms.create(
        ClassroomRecord(
            id=classroom_id,
            school_id=SCHOOL_ID,
            name="Period 3 Programming",
            slug=f"{classroom_id}-period-3",
            display_code=display_code,
            settings=settings or all_modules_enabled(),
        )
    )
    now = env.clock.now()

    teacher = await create_person(env, f"{classroom_id}-teacher", "Grace Hopper")
    await env.classrooms.create_membership(
        classroom_id=classroom.id, person_id=teacher.id, role=MemberRole.TEACHER, joined_at=now
    )

    students: list[PersonRecord] = []
    for index in range(1, student_count + 1):
        student = await create_person(env, f"{classroom_id}-student-{index}", f"Student {index}")
        await env.classrooms.create_membership(
            classroom_id=classroom.id,
            person_id=student.id,
            role=MemberRole.STUDENT,
            joined_at=now,
        )
        students.append(student)

    return SeededClassroom(classroom=classroom, teacher=teacher, students=students)


async def start_session(env: Environment, seeded: SeededClassroom) -> SessionRecord:
    result = await SessionService(env).create_and_start_session(
        classroom_id=seeded.classroom.id, actor_id=seeded.teacher.id
    )
    assert result.status == "ok", result
    return result.value


def auth_headers(person_id: str, role: Role = Role.STUDENT) -> dict[str, str]:
    token = issue_smoke_token(person_id, role=role, school_id=SCHOOL_ID)
    return {"Authorization": f"Bearer {token}"}
