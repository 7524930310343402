from __future__ import annotations

from collections.abc import Mapping

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import ClassroomEntity
from forge.domain.ports.records import ClassroomRecord
from forge.domain.services.base import UseCaseService, use_case
from forge.domain.types import ClassroomModule, ClassroomSettings

logger = structlog.get_logger()


class ClassroomService(UseCaseService):
    @use_case("get_classroom")
    async def get_classroom(self, *, classroom_id: str) -> Result[ClassroomRecord]:
        classroom = await self.env.classrooms.get_by_id(classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        return ok(classroom)

    @use_case("list_my_classrooms")
    async def list_my_classrooms(self, *, person_id: str) -> Result[list[ClassroomRecord]]:
        classrooms: list[ClassroomRecord] = []
        for membership in await self.env.classrooms.list_memberships_for_person(person_id):
            classroom = await self.env.classrooms.get_by_id(membership.classroom_id)
            if classroom is not None and classroom.is_active:
                classrooms.append(classroom)
        return ok(classrooms)

    @use_case("get_classroom_settings")
    async def get_classroom_settings(self, *, classroom_id: str) -> Result[ClassroomSettings]:
        classroom = await self.env.classrooms.get_by_id(classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        return ok(classroom.settings)

    @use_case("update_modules")
    async def update_modules(
        self, *, classroom_id: str, modules: Mapping[ClassroomModule | str, bool]
    ) -> Result[ClassroomSettings]:
        """Switch modules on or off; modules not mentioned keep their flag."""
        classroom = await self.env.classrooms.get_by_id(classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        entity = ClassroomEntity.from_record(classroom)
        for name, enabled in modules.items():
            try:
                module = ClassroomModule(name)
            except ValueError:
                return err(ErrorType.VALIDATION_ERROR, f"Unknown module: {name}", module=str(name))
            entity = entity.set_module_enabled(module, bool(enabled))

        updated = await self.env.classrooms.update_settings(classroom_id, entity.settings)
        await logger.ainfo(
            "classroom_modules_updated",
            classroom_id=classroom_id,
            modules=updated.settings.to_dict()["modules"],
        )
        return ok(updated.settings)
