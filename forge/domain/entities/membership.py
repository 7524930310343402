from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import MembershipRecord
from forge.domain.types import MemberRole


@dataclass(frozen=True, slots=True)
class MembershipEntity:
    """A person's role in a classroom.

    ``active --leave--> inactive --rejoin--> active``; ``left_at`` is set exactly
    when the membership is inactive.
    """

    id: str
    classroom_id: str
    person_id: str
    role: MemberRole
    is_active: bool
    joined_at: datetime
    left_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        id: str,
        classroom_id: str,
        person_id: str,
        role: MemberRole | str,
        joined_at: datetime,
    ) -> MembershipEntity:
        if not classroom_id:
            raise ValidationError.for_field("classroom_id", "Classroom ID is required")
        if not person_id:
            raise ValidationError.for_field("person_id", "Person ID is required")
        try:
            member_role = MemberRole(role)
        except ValueError as exc:
            raise ValidationError.for_field("role", f"Invalid role: {role}") from exc
        return cls(
            id=id,
            classroom_id=classroom_id,
            person_id=person_id,
            role=member_role,
            is_active=True,
            joined_at=joined_at,
        )

    @classmethod
    def from_record(cls, record: MembershipRecord) -> MembershipEntity:
        return cls(
            id=record.id,
            classroom_id=record.classroom_id,
            person_id=record.person_id,
            role=record.role,
            is_active=record.is_active,
            joined_at=record.joined_at,
            left_at=record.left_at,
        )

    @property
    def is_teacher(self) -> bool:
        return self.role is MemberRole.TEACHER

    def can_leave(self) -> bool:
        return self.is_active

    def can_rejoin(self) -> bool:
        return not self.is_active

    def leave(self, at: datetime) -> MembershipEntity:
        if not self.can_leave():
            raise ConflictError(
                "Membership is already inactive",
                metadata={"membership_id": self.id, "left_at": self.left_at},
            )
        return replace(self, is_active=False, left_at=at)

    def rejoin(self, at: datetime, role: MemberRole | None = None) -> MembershipEntity:
        """Reactivate; ``joined_at`` restarts at ``at``."""
        if not self.can_rejoin():
            raise ConflictError(
                "Membership is already active", metadata={"membership_id": self.id}
            )
        return replace(
            self,
            is_active=True,
            left_at=None,
            joined_at=at,
            role=role or self.role,
        )

    def get_duration_days(self, now: datetime) -> int:
        end = self.left_at or now
        return (end - self.joined_at).days
