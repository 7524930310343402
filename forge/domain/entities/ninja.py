from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import NinjaAssignmentRecord, NinjaDomainRecord

DOMAIN_NAME_MAX_LENGTH = 50
DOMAIN_DESCRIPTION_MAX_LENGTH = 500


@dataclass(frozen=True, slots=True)
class NinjaDomainEntity:
    """A skill area students can be recognised as helpers ("ninjas") for."""

    id: str
    classroom_id: str
    name: str
    display_order: int
    description: str | None = None
    is_active: bool = True

    @classmethod
    def create(
        cls,
        *,
        id: str,
        classroom_id: str,
        name: str,
        display_order: int,
        description: str | None = None,
    ) -> NinjaDomainEntity:
        cls.validate_name(name)
        cls.validate_description(description)
        return cls(
            id=id,
            classroom_id=classroom_id,
            name=name.strip(),
            display_order=display_order,
            description=description,
        )

    @classmethod
    def from_record(cls, record: NinjaDomainRecord) -> NinjaDomainEntity:
        return cls(
            id=record.id,
            classroom_id=record.classroom_id,
            name=record.name,
            display_order=record.display_order,
            description=record.description,
            is_active=record.is_active,
        )

    @staticmethod
    def validate_name(name: str) -> None:
        if not name or not name.strip():
            raise ValidationError.for_field("name", "Domain name is required")
        if len(name.strip()) > DOMAIN_NAME_MAX_LENGTH:
            raise ValidationError.for_field(
                "name", f"Domain name must be {DOMAIN_NAME_MAX_LENGTH} characters or less"
            )

    @staticmethod
    def validate_description(description: str | None) -> None:
        if description is not None and len(description) > DOMAIN_DESCRIPTION_MAX_LENGTH:
            raise ValidationError.for_field(
                "description",
                f"Description must be {DOMAIN_DESCRIPTION_MAX_LENGTH} characters or less",
            )

    def rename(self, name: str, description: str | None = None) -> NinjaDomainEntity:
        self.validate_name(name)
        self.validate_description(description)
        return replace(self, name=name.strip(), description=description)

    def archive(self) -> NinjaDomainEntity:
        if not self.is_active:
            raise ConflictError("Domain is already archived", metadata={"domain_id": self.id})
        return replace(self, is_active=False)


@dataclass(frozen=True, slots=True)
class NinjaAssignmentEntity:
    """Assignment of a person to a ninja domain.

    ``active --revoke--> revoked --reactivate--> active``. One row exists per
    (person, domain) pair; ``revoked_at`` is set exactly when inactive.
    """

    id: str
    person_id: str
    ninja_domain_id: str
    assigned_by_id: str
    is_active: bool
    assigned_at: datetime
    revoked_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        id: str,
        person_id: str,
        ninja_domain_id: str,
        assigned_by_id: str,
        assigned_at: datetime,
    ) -> NinjaAssignmentEntity:
        if not person_id:
            raise ValidationError.for_field("person_id", "Person ID is required")
        if not ninja_domain_id:
            raise ValidationError.for_field("ninja_domain_id", "Domain ID is required")
        return cls(
            id=id,
            person_id=person_id,
            ninja_domain_id=ninja_domain_id,
            assigned_by_id=assigned_by_id,
            is_active=True,
            assigned_at=assigned_at,
        )

    @classmethod
    def from_record(cls, record: NinjaAssignmentRecord) -> NinjaAssignmentEntity:
        return cls(
            id=record.id,
            person_id=record.person_id,
            ninja_domain_id=record.ninja_domain_id,
            assigned_by_id=record.assigned_by_id,
            is_active=record.is_active,
            assigned_at=record.assigned_at,
            revoked_at=record.revoked_at,
        )

    def can_revoke(self) -> bool:
        return self.is_active

    def can_reactivate(self) -> bool:
        return not self.is_active

    def revoke(self, at: datetime) -> NinjaAssignmentEntity:
        if not self.can_revoke():
            raise ConflictError(
                "Assignment is already revoked", metadata={"assignment_id": self.id}
            )
        return replace(self, is_active=False, revoked_at=at)

    def reactivate(self, assigned_by_id: str, at: datetime) -> NinjaAssignmentEntity:
        if not self.can_reactivate():
            raise ConflictError(
                "Assignment is already active", metadata={"assignment_id": self.id}
            )
        return replace(
            self,
            is_active=True,
            revoked_at=None,
            assigned_by_id=assigned_by_id,
            assigned_at=at,
        )

    def get_duration_days(self, now: datetime) -> int:
        end = self.revoked_at or now
        return (end - self.assigned_at).days
