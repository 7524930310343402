from __future__ import annotations

import pytest

from forge.domain.entities import ClassroomEntity
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.types import ClassroomModule, ClassroomSettings


def _classroom(**overrides) -> ClassroomEntity:
    data = {
        "id": "classroom-1",
        "school_id": "school-1",
        "name": "Period 3",
        "slug": "period-3",
        "display_code": "ABC123",
    }
    data.update(overrides)
    return ClassroomEntity.create(**data)


class TestClassroom:
    def test_defaults_enable_presence_only(self) -> None:
        """New classrooms start with presence on and everything else off."""
        classroom = _classroom()

        assert classroom.is_module_enabled(ClassroomModule.PRESENCE)
        assert not classroom.is_module_enabled(ClassroomModule.HELP)

    @pytest.mark.parametrize("code", ["abc123", "ABC12", "ABC-12"])
    def test_display_code_format(self, code: str) -> None:
        """Display codes are six uppercase alphanumerics."""
        with pytest.raises(ValidationError):
            _classroom(display_code=code)

    def test_slug_format(self) -> None:
        """Slugs are lowercase with hyphens."""
        with pytest.raises(ValidationError):
            _classroom(slug="Period 3")

    def test_toggle_module(self) -> None:
        """Module toggles produce a new settings snapshot."""
        classroom = _classroom()
        enabled = classroom.set_module_enabled(ClassroomModule.HELP, True)

        assert enabled.is_module_enabled(ClassroomModule.HELP)
        assert not classroom.is_module_enabled(ClassroomModule.HELP)

    def test_deactivate_once(self) -> None:
        """Deactivating twice is a conflict."""
        with pytest.raises(ConflictError):
            _classroom().deactivate().deactivate()


class TestClassroomSettings:
    """Parsing of the stored settings document."""

    def test_round_trip_through_dict(self) -> None:
        """Serialised settings parse back to the same flags."""
        settings = ClassroomSettings().with_module(ClassroomModule.CHORES, True)

        assert ClassroomSettings.parse(settings.to_dict()) == settings

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "presence",
            {"modules": []},
            {"modules": {"presence": {"enabled": "yes"}}},
        ],
    )
    def test_malformed_documents_fall_back_to_defaults(self, raw: object) -> None:
        """Anything not matching the expected shape yields the defaults."""
        assert ClassroomSettings.parse(raw) == ClassroomSettings()
