from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class MemberRole(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    VOLUNTEER = "volunteer"


class SessionType(str, enum.Enum):
    STRUCTURED = "structured"
    DROP_IN = "drop_in"


class SessionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"
    CANCELLED = "cancelled"


class SignoutType(str, enum.Enum):
    SELF = "self"
    MANUAL = "manual"
    AUTO = "auto"
    SESSION_END = "session_end"


class HelpUrgency(str, enum.Enum):
    BLOCKED = "blocked"
    QUESTION = "question"
    CHECK_WORK = "check_work"

    @property
    def priority(self) -> int:
        """Queue ordering; lower is served first."""
        return _URGENCY_PRIORITY[self]


_URGENCY_PRIORITY = {
    HelpUrgency.BLOCKED: 0,
    HelpUrgency.QUESTION: 1,
    HelpUrgency.CHECK_WORK: 2,
}


class HelpRequestStatus(str, enum.Enum):
    PENDING = "pending"
    CLAIMED = "claimed"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

    @classmethod
    def open_statuses(cls) -> tuple[HelpRequestStatus, ...]:
        return (cls.PENDING, cls.CLAIMED)


class ClassroomModule(str, enum.Enum):
    PRESENCE = "presence"
    HELP = "help"
    PROJECTS = "projects"
    CHORES = "chores"


@dataclass(frozen=True, slots=True)
class ClassroomSettings:
    """Fixed map of module -> enabled flag."""

    modules: Mapping[ClassroomModule, bool] = field(
        hash=False,
        default_factory=lambda: {
            ClassroomModule.PRESENCE: True,
            ClassroomModule.HELP: False,
            ClassroomModule.PROJECTS: False,
            ClassroomModule.CHORES: False,
        }
    )

    def is_enabled(self, module: ClassroomModule) -> bool:
        return bool(self.modules.get(module, False))

    def with_module(self, module: ClassroomModule, enabled: bool) -> ClassroomSettings:
        modules = dict(self.modules)
        modules[module] = enabled
        return ClassroomSettings(modules=modules)

    def to_dict(self) -> dict[str, Any]:
        return {
            "modules": {module.value: {"enabled": self.is_enabled(module)} for module in ClassroomModule}
        }

    @classmethod
    def parse(cls, raw: Any) -> ClassroomSettings:
        """Parse stored JSON, falling back to the defaults when the shape is wrong."""
        if not isinstance(raw, Mapping):
            return cls()
        modules = raw.get("modules")
        if not isinstance(modules, Mapping):
            return cls()

        parsed: dict[ClassroomModule, bool] = {}
        for module in ClassroomModule:
            config = modules.get(module.value)
            if not isinstance(config, Mapping) or not isinstance(config.get("enabled"), bool):
                return cls()
            parsed[module] = config["enabled"]
        return cls(modules=parsed)


DEFAULT_CLASSROOM_SETTINGS = ClassroomSettings()
