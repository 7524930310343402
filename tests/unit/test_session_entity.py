"""Unit tests for the class session state machine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from forge.domain.entities import SessionEntity
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.types import SessionStatus, SessionType

START = datetime(2025, 1, 6, 15, 0, tzinfo=UTC)


def _session(**overrides) -> SessionEntity:
    data = {
        "id": "session-1",
        "classroom_id": "classroom-1",
        "session_type": SessionType.STRUCTURED,
        "scheduled_date": START,
        "start_time": START,
        "end_time": START + timedelta(hours=2),
    }
    data.update(overrides)
    return SessionEntity.create(**data)


class TestCreate:
    """Tests for SessionEntity.create validation."""

    def test_new_session_is_scheduled(self) -> None:
        """A freshly created session starts in scheduled status."""
        session = _session()

        assert session.status is SessionStatus.SCHEDULED
        assert session.actual_start_at is None
        assert session.actual_end_at is None

    def test_start_must_precede_end(self) -> None:
        """End time equal to start time is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            _session(end_time=START)

        assert exc_info.value.issues[0].path == "end_time"

    def test_unknown_session_type_rejected(self) -> None:
        """Session type must be one of the known kinds."""
        with pytest.raises(ValidationError):
            _session(session_type="lecture")

    def test_classroom_is_required(self) -> None:
        """Blank classroom id is a validation error."""
        with pytest.raises(ValidationError):
            _session(classroom_id="  ")

    def test_session_type_accepts_string(self) -> None:
        """String values are coerced into the SessionType enum."""
        assert _session(session_type="drop_in").session_type is SessionType.DROP_IN


class TestTransitions:
    """Tests for start/end/cancel guards."""

    def test_start_then_end(self) -> None:
        """scheduled -> active -> ended records both actual timestamps."""
        started = _session().start(START)
        ended = started.end(START + timedelta(minutes=90))

        assert started.status is SessionStatus.ACTIVE
        assert ended.status is SessionStatus.ENDED
        assert ended.actual_start_at == START
        assert ended.actual_end_at == START + timedelta(minutes=90)

    def test_transitions_return_new_snapshots(self) -> None:
        """The original snapshot is left untouched."""
        session = _session()
        session.start(START)

        assert session.status is SessionStatus.SCHEDULED

    def test_cannot_start_twice(self) -> None:
        """Starting an active session is a conflict."""
        started = _session().start(START)

        assert started.can_start() is False
        with pytest.raises(ConflictError) as exc_info:
            started.start(START)
        assert exc_info.value.metadata["current"] == "active"

    def test_cannot_end_scheduled_session(self) -> None:
        """Only active sessions can end."""
        with pytest.raises(ConflictError):
            _session().end(START)

    def test_cancel_only_from_scheduled(self) -> None:
        """Cancel is allowed before start and refused afterwards."""
        assert _session().cancel().status is SessionStatus.CANCELLED
        with pytest.raises(ConflictError):
            _session().start(START).cancel()

    def test_sign_in_allowed_only_while_active(self) -> None:
        """Presence is accepted only during the active phase."""
        session = _session()

        assert session.allows_sign_in() is False
        assert session.start(START).allows_sign_in() is True
        assert session.start(START).end(START).allows_sign_in() is False


class TestDurations:
    """Tests for derived duration values."""

    def test_scheduled_duration(self) -> None:
        """A two hour slot is 120 minutes."""
        assert _session().get_scheduled_duration_minutes() == 120

    def test_actual_duration_while_active_uses_now(self) -> None:
        """An active session measures up to the given now."""
        started = _session().start(START)

        assert started.get_actual_duration_minutes(START + timedelta(minutes=45)) == 45
        assert started.get_actual_duration_minutes() is None

    def test_actual_duration_unset_before_start(self) -> None:
        """No duration exists before the session starts."""
        assert _session().get_actual_duration_minutes(START) is None
