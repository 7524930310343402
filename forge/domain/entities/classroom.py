from __future__ import annotations

import re
from dataclasses import dataclass, field, replace

from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import ClassroomRecord
from forge.domain.types import ClassroomModule, ClassroomSettings

NAME_MAX_LENGTH = 100

_DISPLAY_CODE_RE = re.compile(r"^[A-Z0-9]{6}$")
_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


@dataclass(frozen=True, slots=True)
class ClassroomEntity:
    id: str
    school_id: str
    name: str
    slug: str
    display_code: str
    description: str | None = None
    settings: ClassroomSettings = field(default_factory=ClassroomSettings)
    is_active: bool = True

    @classmethod
    def create(
        cls,
        *,
        id: str,
        school_id: str,
        name: str,
        slug: str,
        display_code: str,
        description: str | None = None,
        settings: ClassroomSettings | None = None,
    ) -> ClassroomEntity:
        cls.validate_name(name)
        if not school_id or not school_id.strip():
            raise ValidationError.for_field("school_id", "School ID is required")
        cls.validate_display_code(display_code)
        cls.validate_slug(slug)
        return cls(
            id=id,
            school_id=school_id,
            name=name.strip(),
            slug=slug,
            display_code=display_code,
            description=description,
            settings=settings or ClassroomSettings(),
        )

    @classmethod
    def from_record(cls, record: ClassroomRecord) -> ClassroomEntity:
        return cls(
            id=record.id,
            school_id=record.school_id,
            name=record.name,
            slug=record.slug,
            display_code=record.display_code,
            description=record.description,
            settings=record.settings,
            is_active=record.is_active,
        )

    def to_record(self) -> ClassroomRecord:
        return ClassroomRecord(
            id=self.id,
            school_id=self.school_id,
            name=self.name,
            slug=self.slug,
            display_code=self.display_code,
            description=self.description,
            settings=self.settings,
            is_active=self.is_active,
        )

    @staticmethod
    def validate_name(name: str) -> None:
        if not name or not name.strip():
            raise ValidationError.for_field("name", "Classroom name is required")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError.for_field(
                "name", f"Classroom name must be {NAME_MAX_LENGTH} characters or less"
            )

    @staticmethod
    def validate_display_code(display_code: str) -> None:
        if not display_code or len(display_code) != 6:
            raise ValidationError.for_field(
                "display_code", "Display code must be exactly 6 characters"
            )
        if not _DISPLAY_CODE_RE.match(display_code):
            raise ValidationError.for_field(
                "display_code", "Display code must be uppercase alphanumeric"
            )

    @staticmethod
    def validate_slug(slug: str) -> None:
        if not slug or not slug.strip():
            raise ValidationError.for_field("slug", "Slug is required")
        if not _SLUG_RE.match(slug):
            raise ValidationError.for_field(
                "slug", "Slug must be lowercase alphanumeric with hyphens only"
            )

    def is_module_enabled(self, module: ClassroomModule) -> bool:
        return self.settings.is_enabled(module)

    def set_module_enabled(self, module: ClassroomModule, enabled: bool) -> ClassroomEntity:
        return replace(self, settings=self.settings.with_module(module, enabled))

    def update_info(
        self, *, name: str | None = None, description: str | None = None
    ) -> ClassroomEntity:
        if name is not None:
            self.validate_name(name)
        return replace(
            self,
            name=name.strip() if name is not None else self.name,
            description=description if description is not None else self.description,
        )

    def deactivate(self) -> ClassroomEntity:
        if not self.is_active:
            raise ConflictError(
                "Classroom is already inactive", metadata={"classroom_id": self.id}
            )
        return replace(self, is_active=False)
