from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import PersonRecord

DISPLAY_NAME_MAX_LENGTH = 100
PRONOUNS_MAX_LENGTH = 50
CURRENTLY_WORKING_ON_MAX_LENGTH = 200
DEFAULT_ASK_ME_ABOUT_LIMIT = 5

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_THEME_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

PROFILE_FIELDS = (
    "display_name",
    "pronouns",
    "ask_me_about",
    "theme_color",
    "currently_working_on",
    "help_queue_visible",
)


@dataclass(frozen=True, slots=True)
class PersonEntity:
    id: str
    school_id: str
    legal_name: str
    display_name: str
    email: str | None = None
    pronouns: str | None = None
    grade_level: str | None = None
    ask_me_about: tuple[str, ...] = ()
    theme_color: str | None = None
    currently_working_on: str | None = None
    help_queue_visible: bool = True
    is_active: bool = True

    @classmethod
    def create(
        cls,
        *,
        id: str,
        school_id: str,
        legal_name: str,
        display_name: str,
        email: str | None = None,
        grade_level: str | None = None,
    ) -> PersonEntity:
        if not school_id or not school_id.strip():
            raise ValidationError.for_field("school_id", "School ID is required")
        if not legal_name or not legal_name.strip():
            raise ValidationError.for_field("legal_name", "Legal name is required")
        cls.validate_display_name(display_name)
        if email is not None:
            cls.validate_email(email)
        return cls(
            id=id,
            school_id=school_id,
            legal_name=legal_name.strip(),
            display_name=display_name.strip(),
            email=email,
            grade_level=grade_level,
        )

    @classmethod
    def from_record(cls, record: PersonRecord) -> PersonEntity:
        return cls(
            id=record.id,
            school_id=record.school_id,
            legal_name=record.legal_name,
            display_name=record.display_name,
            email=record.email,
            pronouns=record.pronouns,
            grade_level=record.grade_level,
            ask_me_about=tuple(record.ask_me_about),
            theme_color=record.theme_color,
            currently_working_on=record.currently_working_on,
            help_queue_visible=record.help_queue_visible,
            is_active=record.is_active,
        )

    @staticmethod
    def validate_display_name(display_name: str) -> None:
        if not display_name or not display_name.strip():
            raise ValidationError.for_field("display_name", "Display name is required")
        if len(display_name.strip()) > DISPLAY_NAME_MAX_LENGTH:
            raise ValidationError.for_field(
                "display_name",
                f"Display name must be {DISPLAY_NAME_MAX_LENGTH} characters or less",
            )

    @staticmethod
    def validate_email(email: str) -> None:
        if not _EMAIL_RE.match(email):
            raise ValidationError.for_field("email", "Invalid email format")

    def update_profile(
        self, *, ask_me_about_limit: int = DEFAULT_ASK_ME_ABOUT_LIMIT, **changes: Any
    ) -> tuple[PersonEntity, list[str]]:
        """Apply profile edits; only keys present in ``changes`` are touched.

        Returns the new snapshot and the names of the fields whose value changed.
        """
        unknown = set(changes) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown profile field(s): {', '.join(sorted(unknown))}",
            )

        normalized: dict[str, Any] = {}
        if "display_name" in changes:
            self.validate_display_name(changes["display_name"])
            normalized["display_name"] = changes["display_name"].strip()
        if "pronouns" in changes:
            normalized["pronouns"] = _normalize_pronouns(changes["pronouns"])
        if "ask_me_about" in changes:
            normalized["ask_me_about"] = _normalize_topics(
                changes["ask_me_about"] or (), ask_me_about_limit
            )
        if "theme_color" in changes:
            color = changes["theme_color"]
            if color is not None and not _THEME_COLOR_RE.match(color):
                raise ValidationError.for_field(
                    "theme_color", "Theme color must be a hex color like #1a2b3c"
                )
            normalized["theme_color"] = color
        if "currently_working_on" in changes:
            text = (changes["currently_working_on"] or "").strip()
            if len(text) > CURRENTLY_WORKING_ON_MAX_LENGTH:
                raise ValidationError.for_field(
                    "currently_working_on",
                    f"Must be {CURRENTLY_WORKING_ON_MAX_LENGTH} characters or less",
                )
            normalized["currently_working_on"] = text or None
        if "help_queue_visible" in changes:
            normalized["help_queue_visible"] = bool(changes["help_queue_visible"])

        changed = [name for name, value in normalized.items() if getattr(self, name) != value]
        if not changed:
            return self, []
        return replace(self, **{name: normalized[name] for name in changed}), changed

    def deactivate(self) -> PersonEntity:
        if not self.is_active:
            raise ConflictError("Person is already inactive", metadata={"person_id": self.id})
        return replace(self, is_active=False)


def _normalize_pronouns(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if len(text) > PRONOUNS_MAX_LENGTH:
        raise ValidationError.for_field(
            "pronouns", f"Pronouns must be {PRONOUNS_MAX_LENGTH} characters or less"
        )
    return text or None


def _normalize_topics(values: Iterable[str], limit: int) -> tuple[str, ...]:
    topics = tuple(value.strip() for value in values if value and value.strip())
    if len(topics) > limit:
        raise ValidationError.for_field(
            "ask_me_about", f"You can list at most {limit} topics"
        )
    return topics
