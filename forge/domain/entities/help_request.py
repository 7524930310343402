"""Help request aggregate.

State machine::

    pending --claim--> claimed --resolve--> resolved
    claimed --unclaim--> pending
    pending|claimed --cancel--> cancelled
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from forge.domain.entities.durations import minutes_between
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import HelpRequestRecord
from forge.domain.types import HelpRequestStatus, HelpUrgency

DESCRIPTION_MAX_LENGTH = 1000
WHAT_I_TRIED_MIN_LENGTH = 20
WHAT_I_TRIED_MAX_LENGTH = 1000


@dataclass(frozen=True, slots=True)
class HelpRequestEntity:
    id: str
    classroom_id: str
    session_id: str
    requester_id: str
    description: str
    what_i_tried: str
    urgency: HelpUrgency
    status: HelpRequestStatus
    created_at: datetime
    category_id: str | None = None
    claimed_by_id: str | None = None
    claimed_at: datetime | None = None
    resolved_at: datetime | None = None
    cancelled_at: datetime | None = None
    resolution_notes: str | None = None
    cancellation_reason: str | None = None

    @classmethod
    def create(
        cls,
        *,
        id: str,
        classroom_id: str,
        session_id: str,
        requester_id: str,
        description: str,
        what_i_tried: str,
        urgency: HelpUrgency | str,
        created_at: datetime,
        category_id: str | None = None,
    ) -> HelpRequestEntity:
        """Build a new pending request, raising ``ValidationError`` on bad input."""
        cls.validate_requester_id(requester_id)
        cls.validate_description(description)
        cls.validate_what_i_tried(what_i_tried)
        cls.validate_urgency(urgency)

        return cls(
            id=id,
            classroom_id=classroom_id,
            session_id=session_id,
            requester_id=requester_id,
            description=description,
            what_i_tried=what_i_tried,
            urgency=HelpUrgency(urgency),
            status=HelpRequestStatus.PENDING,
            created_at=created_at,
            category_id=category_id,
        )

    @classmethod
    def from_record(cls, record: HelpRequestRecord) -> HelpRequestEntity:
        return cls(
            id=record.id,
            classroom_id=record.classroom_id,
            session_id=record.session_id,
            requester_id=record.requester_id,
            description=record.description,
            what_i_tried=record.what_i_tried,
            urgency=record.urgency,
            status=record.status,
            created_at=record.created_at,
            category_id=record.category_id,
            claimed_by_id=record.claimed_by_id,
            claimed_at=record.claimed_at,
            resolved_at=record.resolved_at,
            cancelled_at=record.cancelled_at,
            resolution_notes=record.resolution_notes,
            cancellation_reason=record.cancellation_reason,
        )

    # Validation

    @staticmethod
    def validate_description(description: str) -> None:
        if not description or not description.strip():
            raise ValidationError.for_field("description", "Description is required")
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError.for_field(
                "description",
                f"Description must be {DESCRIPTION_MAX_LENGTH} characters or less",
            )

    @staticmethod
    def validate_what_i_tried(what_i_tried: str) -> None:
        if not what_i_tried or not what_i_tried.strip():
            raise ValidationError.for_field("what_i_tried", "What I tried is required")
        if len(what_i_tried.strip()) < WHAT_I_TRIED_MIN_LENGTH:
            raise ValidationError.for_field(
                "what_i_tried",
                f"What I tried must be at least {WHAT_I_TRIED_MIN_LENGTH} characters",
            )
        if len(what_i_tried) > WHAT_I_TRIED_MAX_LENGTH:
            raise ValidationError.for_field(
                "what_i_tried",
                f"What I tried must be {WHAT_I_TRIED_MAX_LENGTH} characters or less",
            )

    @staticmethod
    def validate_requester_id(requester_id: str) -> None:
        if not requester_id or not requester_id.strip():
            raise ValidationError.for_field("requester_id", "Requester ID is required")

    @staticmethod
    def validate_urgency(urgency: str) -> None:
        try:
            HelpUrgency(urgency)
        except ValueError as exc:
            raise ValidationError.for_field("urgency", f"Invalid urgency: {urgency}") from exc

    # Guards

    def can_claim(self) -> bool:
        return self.status is HelpRequestStatus.PENDING

    def can_unclaim(self) -> bool:
        return self.status is HelpRequestStatus.CLAIMED

    def can_resolve(self) -> bool:
        return self.status is HelpRequestStatus.CLAIMED

    def can_cancel(self) -> bool:
        return self.status in HelpRequestStatus.open_statuses()

    def can_requester_cancel(self, person_id: str) -> bool:
        return self.requester_id == person_id and self.can_cancel()

    @property
    def is_open(self) -> bool:
        return self.status in HelpRequestStatus.open_statuses()

    @property
    def is_closed(self) -> bool:
        return not self.is_open

    # Transitions

    def _conflict(self, action: str, required: str) -> ConflictError:
        return ConflictError(
            f"Cannot {action} request in '{self.status.value}' status",
            metadata={"current": self.status.value, "required": required},
        )

    def claim(self, claimer_id: str, at: datetime) -> HelpRequestEntity:
        if not self.can_claim():
            raise self._conflict("claim", HelpRequestStatus.PENDING.value)
        return replace(
            self,
            status=HelpRequestStatus.CLAIMED,
            claimed_by_id=claimer_id,
            claimed_at=at,
        )

    def unclaim(self) -> HelpRequestEntity:
        if not self.can_unclaim():
            raise self._conflict("unclaim", HelpRequestStatus.CLAIMED.value)
        return replace(
            self,
            status=HelpRequestStatus.PENDING,
            claimed_by_id=None,
            claimed_at=None,
        )

    def resolve(self, notes: str | None, at: datetime) -> HelpRequestEntity:
        if not self.can_resolve():
            raise self._conflict("resolve", HelpRequestStatus.CLAIMED.value)
        return replace(
            self,
            status=HelpRequestStatus.RESOLVED,
            resolved_at=at,
            resolution_notes=notes,
        )

    def cancel(self, reason: str | None, at: datetime) -> HelpRequestEntity:
        if not self.can_cancel():
            raise self._conflict("cancel", "pending|claimed")
        return replace(
            self,
            status=HelpRequestStatus.CANCELLED,
            cancelled_at=at,
            cancellation_reason=reason,
        )

    # Derived values

    def get_wait_time_minutes(self, now: datetime) -> int:
        """Minutes from creation until claimed, or until ``now`` while unclaimed."""
        end = self.claimed_at or now
        return minutes_between(self.created_at, end)

    def get_resolution_time_minutes(self) -> int | None:
        if self.resolved_at is None or self.claimed_at is None:
            return None
        return minutes_between(self.claimed_at, self.resolved_at)
