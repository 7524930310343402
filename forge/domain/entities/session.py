"""Class session aggregate.

State machine::

    scheduled --start--> active --end--> ended
    scheduled --cancel--> cancelled

At most one active session per classroom is a use-case level rule; the entity only
guards its own transitions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from forge.domain.entities.durations import minutes_between
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import SessionRecord
from forge.domain.types import SessionStatus, SessionType


@dataclass(frozen=True, slots=True)
class SessionEntity:
    id: str
    classroom_id: str
    session_type: SessionType
    scheduled_date: datetime
    start_time: datetime
    end_time: datetime
    status: SessionStatus
    name: str | None = None
    actual_start_at: datetime | None = None
    actual_end_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        id: str,
        classroom_id: str,
        session_type: SessionType | str,
        scheduled_date: datetime,
        start_time: datetime,
        end_time: datetime,
        name: str | None = None,
    ) -> SessionEntity:
        """Validate input and build a new scheduled session."""
        if not classroom_id or not classroom_id.strip():
            raise ValidationError.for_field("classroom_id", "Classroom ID is required")
        cls.validate_times(start_time, end_time)
        try:
            kind = SessionType(session_type)
        except ValueError as exc:
            raise ValidationError.for_field(
                "session_type", f"Invalid session type: {session_type}"
            ) from exc

        return cls(
            id=id,
            classroom_id=classroom_id,
            session_type=kind,
            scheduled_date=scheduled_date,
            start_time=start_time,
            end_time=end_time,
            status=SessionStatus.SCHEDULED,
            name=name,
        )

    @classmethod
    def from_record(cls, record: SessionRecord) -> SessionEntity:
        return cls(
            id=record.id,
            classroom_id=record.classroom_id,
            session_type=record.session_type,
            scheduled_date=record.scheduled_date,
            start_time=record.start_time,
            end_time=record.end_time,
            status=record.status,
            name=record.name,
            actual_start_at=record.actual_start_at,
            actual_end_at=record.actual_end_at,
        )

    @staticmethod
    def validate_times(start_time: datetime, end_time: datetime) -> None:
        if start_time >= end_time:
            raise ValidationError.for_field("end_time", "Start time must be before end time")

    # Guards

    def can_start(self) -> bool:
        return self.status is SessionStatus.SCHEDULED

    def can_end(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    def can_cancel(self) -> bool:
        return self.status is SessionStatus.SCHEDULED

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def has_ended(self) -> bool:
        return self.status is SessionStatus.ENDED

    def allows_sign_in(self) -> bool:
        return self.is_active

    # Transitions

    def start(self, at: datetime) -> SessionEntity:
        if not self.can_start():
            raise ConflictError(
                f"Cannot start session in '{self.status.value}' status",
                metadata={"current": self.status.value, "required": SessionStatus.SCHEDULED.value},
            )
        return replace(self, status=SessionStatus.ACTIVE, actual_start_at=at)

    def end(self, at: datetime) -> SessionEntity:
        if not self.can_end():
            raise ConflictError(
                f"Cannot end session in '{self.status.value}' status",
                metadata={"current": self.status.value, "required": SessionStatus.ACTIVE.value},
            )
        return replace(self, status=SessionStatus.ENDED, actual_end_at=at)

    def cancel(self) -> SessionEntity:
        if not self.can_cancel():
            raise ConflictError(
                f"Cannot cancel session in '{self.status.value}' status",
                metadata={"current": self.status.value, "required": SessionStatus.SCHEDULED.value},
            )
        return replace(self, status=SessionStatus.CANCELLED)

    # Derived values

    def get_scheduled_duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    def get_actual_duration_minutes(self, now: datetime | None = None) -> int | None:
        """Minutes between actual start and actual end (or ``now`` while active)."""
        if self.actual_start_at is None:
            return None
        finish = self.actual_end_at or now
        if finish is None:
            return None
        return minutes_between(self.actual_start_at, finish)
