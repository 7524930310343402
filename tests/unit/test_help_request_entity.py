"""Unit tests for the help request state machine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from forge.domain.entities import HelpRequestEntity
from forge.domain.entities.durations import minutes_between
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.types import HelpRequestStatus, HelpUrgency

CREATED = datetime(2025, 1, 6, 15, 0, tzinfo=UTC)
WHAT_I_TRIED = "I re-read the instructions and checked my loop bounds twice."


def _request(**overrides) -> HelpRequestEntity:
    data = {
        "id": "request-1",
        "classroom_id": "classroom-1",
        "session_id": "session-1",
        "requester_id": "student-1",
        "description": "My loop never ends",
        "what_i_tried": WHAT_I_TRIED,
        "urgency": HelpUrgency.BLOCKED,
        "created_at": CREATED,
    }
    data.update(overrides)
    return HelpRequestEntity.create(**data)


class TestCreate:
    """Validation performed by HelpRequestEntity.create."""

    def test_new_request_is_pending(self) -> None:
        """Requests enter the queue as pending and unclaimed."""
        request = _request()

        assert request.status is HelpRequestStatus.PENDING
        assert request.claimed_by_id is None
        assert request.is_open

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("description", ""),
            ("description", "x" * 1001),
            ("what_i_tried", "too short"),
            ("what_i_tried", "x" * 1001),
            ("requester_id", " "),
            ("urgency", "panic"),
        ],
    )
    def test_invalid_input_rejected(self, field: str, value: str) -> None:
        """Each invalid field is reported against its own path."""
        with pytest.raises(ValidationError) as exc_info:
            _request(**{field: value})

        assert exc_info.value.issues[0].path == field

    def test_what_i_tried_minimum_counts_stripped_text(self) -> None:
        """Padding with whitespace does not satisfy the minimum length."""
        with pytest.raises(ValidationError):
            _request(what_i_tried="   short text   " + " " * 20)


class TestTransitions:
    """Claim, unclaim, resolve and cancel guards."""

    def test_full_lifecycle(self) -> None:
        """pending -> claimed -> resolved keeps claim and resolution data."""
        claimed = _request().claim("ninja-1", CREATED + timedelta(minutes=8))
        resolved = claimed.resolve("Off by one", CREATED + timedelta(minutes=20))

        assert claimed.status is HelpRequestStatus.CLAIMED
        assert resolved.status is HelpRequestStatus.RESOLVED
        assert resolved.claimed_by_id == "ninja-1"
        assert resolved.resolution_notes == "Off by one"
        assert resolved.is_closed

    def test_unclaim_returns_to_pending(self) -> None:
        """Unclaiming clears the claimer."""
        request = _request().claim("ninja-1", CREATED).unclaim()

        assert request.status is HelpRequestStatus.PENDING
        assert request.claimed_by_id is None
        assert request.claimed_at is None

    def test_cannot_claim_claimed_request(self) -> None:
        """A second claim is a conflict."""
        claimed = _request().claim("ninja-1", CREATED)

        with pytest.raises(ConflictError) as exc_info:
            claimed.claim("ninja-2", CREATED)
        assert exc_info.value.metadata == {"current": "claimed", "required": "pending"}

    def test_cannot_resolve_pending_request(self) -> None:
        """Resolution requires a claim first."""
        with pytest.raises(ConflictError):
            _request().resolve(None, CREATED)

    def test_cancel_from_pending_and_claimed(self) -> None:
        """Both open statuses can be cancelled."""
        assert _request().cancel("solved it", CREATED).status is HelpRequestStatus.CANCELLED
        claimed = _request().claim("ninja-1", CREATED)
        assert claimed.cancel(None, CREATED).status is HelpRequestStatus.CANCELLED

    def test_closed_request_cannot_be_cancelled(self) -> None:
        """Resolved requests are terminal."""
        resolved = _request().claim("ninja-1", CREATED).resolve(None, CREATED)

        assert resolved.can_cancel() is False
        with pytest.raises(ConflictError):
            resolved.cancel(None, CREATED)

    def test_requester_cancel_guard(self) -> None:
        """Only the requester passes the requester-cancel guard."""
        request = _request()

        assert request.can_requester_cancel("student-1") is True
        assert request.can_requester_cancel("student-2") is False


class TestDerivedTimes:
    """Wait and resolution time calculations."""

    def test_wait_time_runs_until_now_while_pending(self) -> None:
        """Unclaimed requests wait until now."""
        assert _request().get_wait_time_minutes(CREATED + timedelta(minutes=8)) == 8

    def test_wait_time_stops_at_claim(self) -> None:
        """Claimed requests stop waiting at the claim time."""
        claimed = _request().claim("ninja-1", CREATED + timedelta(minutes=8))

        assert claimed.get_wait_time_minutes(CREATED + timedelta(hours=1)) == 8

    def test_resolution_time(self) -> None:
        """Resolution time runs from claim to resolve."""
        resolved = (
            _request()
            .claim("ninja-1", CREATED + timedelta(minutes=5))
            .resolve(None, CREATED + timedelta(minutes=17))
        )

        assert resolved.get_resolution_time_minutes() == 12
        assert _request().get_resolution_time_minutes() is None

    def test_half_minutes_round_up(self) -> None:
        """A claim after 8m30s counts as a nine minute wait."""
        claimed = _request().claim("ninja-1", CREATED + timedelta(minutes=8, seconds=30))

        assert claimed.get_wait_time_minutes(CREATED + timedelta(hours=1)) == 9

    @pytest.mark.parametrize(
        ("elapsed", "expected"),
        [
            (timedelta(seconds=29), 0),
            (timedelta(seconds=30), 1),
            (timedelta(minutes=2, seconds=30), 3),
            (timedelta(minutes=8, seconds=29), 8),
            (timedelta(minutes=8, seconds=30), 9),
        ],
    )
    def test_minutes_between(self, elapsed: timedelta, expected: int) -> None:
        assert minutes_between(CREATED, CREATED + elapsed) == expected
