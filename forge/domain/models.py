from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Actor:
    """The authenticated person on whose behalf a use case runs."""

    person_id: str
    roles: list[str] = field(default_factory=list)
    school_id: str | None = None
    # Set when the actor authenticated with a classroom PIN
    pin_classroom_id: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles
