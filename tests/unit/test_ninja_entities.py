from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from forge.domain.entities import NinjaAssignmentEntity, NinjaDomainEntity
from forge.domain.errors import ConflictError, ValidationError

AT = datetime(2025, 1, 6, 15, 0, tzinfo=UTC)


def _domain(name: str = "Python") -> NinjaDomainEntity:
    return NinjaDomainEntity.create(
        id="domain-1", classroom_id="classroom-1", name=name, display_order=1
    )


def _assignment() -> NinjaAssignmentEntity:
    return NinjaAssignmentEntity.create(
        id="assignment-1",
        person_id="student-1",
        ninja_domain_id="domain-1",
        assigned_by_id="teacher-1",
        assigned_at=AT,
    )


class TestNinjaDomain:
    """Naming and archiving of ninja domains."""

    def test_name_is_trimmed(self) -> None:
        """Surrounding whitespace is dropped from names."""
        assert _domain("  Web Design ").name == "Web Design"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 51])
    def test_invalid_names_rejected(self, name: str) -> None:
        """Names must be present and at most fifty characters."""
        with pytest.raises(ValidationError):
            _domain(name)

    def test_rename_validates(self) -> None:
        """Renaming applies the same rules as creation."""
        renamed = _domain().rename("Scratch", "Block coding")

        assert renamed.name == "Scratch"
        assert renamed.description == "Block coding"
        with pytest.raises(ValidationError):
            renamed.rename("", None)

    def test_archive_once(self) -> None:
        """Archiving an archived domain is a conflict."""
        archived = _domain().archive()

        assert archived.is_active is False
        with pytest.raises(ConflictError):
            archived.archive()


class TestNinjaAssignment:
    """Revoke/reactivate lifecycle."""

    def test_revoke_and_reactivate(self) -> None:
        """Reactivation records the new assigner and time."""
        revoked = _assignment().revoke(AT + timedelta(days=3))
        reactivated = revoked.reactivate("teacher-2", AT + timedelta(days=10))

        assert revoked.revoked_at == AT + timedelta(days=3)
        assert revoked.get_duration_days(AT + timedelta(days=20)) == 3
        assert reactivated.is_active
        assert reactivated.revoked_at is None
        assert reactivated.assigned_by_id == "teacher-2"
        assert reactivated.assigned_at == AT + timedelta(days=10)

    def test_double_revoke_is_conflict(self) -> None:
        """Revoking twice fails."""
        with pytest.raises(ConflictError):
            _assignment().revoke(AT).revoke(AT)

    def test_reactivate_active_is_conflict(self) -> None:
        """Active assignments cannot be reactivated."""
        with pytest.raises(ConflictError):
            _assignment().reactivate("teacher-1", AT)
