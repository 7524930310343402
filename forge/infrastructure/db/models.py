from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forge.domain.types import (
    HelpRequestStatus,
    HelpUrgency,
    MemberRole,
    SessionStatus,
    SessionType,
    SignoutType,
)

from .base import Base, UtcDateTime


def _uuid() -> str:
    return str(uuid.uuid4())


def _enum(enum_cls: type, name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda e: [x.value for x in e])


class Classroom(Base):
    __tablename__ = "classrooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    school_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_code: Mapped[str] = mapped_column(String(6), nullable=False, unique=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    memberships: Mapped[list[ClassroomMembership]] = relationship(
        back_populates="classroom", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("school_id", "slug", name="uq_classroom_school_slug"),)


class Person(Base):
    __tablename__ = "people"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    school_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    legal_name: Mapped[str] = mapped_column(String(200), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    pronouns: Mapped[str | None] = mapped_column(String(50), nullable=True)
    grade_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    ask_me_about: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    theme_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    currently_working_on: Mapped[str | None] = mapped_column(String(200), nullable=True)
    help_queue_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pin_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    memberships: Mapped[list[ClassroomMembership]] = relationship(back_populates="person")


class ClassroomMembership(Base):
    __tablename__ = "classroom_memberships"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False
    )
    person_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[MemberRole] = mapped_column(_enum(MemberRole, "member_role"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    joined_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    left_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)

    classroom: Mapped[Classroom] = relationship(back_populates="memberships")
    person: Mapped[Person] = relationship(back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("classroom_id", "person_id", name="uq_membership_classroom_person"),
    )


class ClassSession(Base):
    __tablename__ = "class_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    session_type: Mapped[SessionType] = mapped_column(
        _enum(SessionType, "session_type"), nullable=False
    )
    scheduled_date: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    start_time: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    end_time: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    actual_start_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    actual_end_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    status: Mapped[SessionStatus] = mapped_column(
        _enum(SessionStatus, "session_status"),
        nullable=False,
        default=SessionStatus.SCHEDULED,
    )


class SignIn(Base):
    """Projected from PERSON_SIGNED_IN / PERSON_SIGNED_OUT / SESSION_ENDED."""

    __tablename__ = "sign_ins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False
    )
    person_id: Mapped[str] = mapped_column(String(36), nullable=False)
    signed_in_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    signed_in_by_id: Mapped[str] = mapped_column(String(36), nullable=False)
    signed_out_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    signed_out_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    signout_type: Mapped[SignoutType | None] = mapped_column(
        _enum(SignoutType, "signout_type"), nullable=True
    )

    __table_args__ = (Index("ix_sign_ins_session_person", "session_id", "person_id"),)


class HelpCategory(Base):
    __tablename__ = "help_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ninja_domain_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("ninja_domains.id", ondelete="SET NULL"), nullable=True
    )
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class HelpRequest(Base):
    """Projected from the HELP_* events."""

    __tablename__ = "help_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    classroom_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False
    )
    requester_id: Mapped[str] = mapped_column(String(36), nullable=False)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    what_i_tried: Mapped[str] = mapped_column(Text, nullable=False)
    urgency: Mapped[HelpUrgency] = mapped_column(_enum(HelpUrgency, "help_urgency"), nullable=False)
    status: Mapped[HelpRequestStatus] = mapped_column(
        _enum(HelpRequestStatus, "help_request_status"), nullable=False
    )
    claimed_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)

    __table_args__ = (Index("ix_help_requests_session_status", "session_id", "status"),)


class NinjaDomain(Base):
    __tablename__ = "ninja_domains"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    assignments: Mapped[list[NinjaAssignment]] = relationship(back_populates="domain")


class NinjaAssignment(Base):
    __tablename__ = "ninja_assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    person_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    ninja_domain_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ninja_domains.id", ondelete="CASCADE"), nullable=False
    )
    assigned_by_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    assigned_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)

    domain: Mapped[NinjaDomain] = relationship(back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("person_id", "ninja_domain_id", name="uq_ninja_assignment_person_domain"),
    )


class PinSession(Base):
    __tablename__ = "pin_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    person_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True
    )
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    last_activity_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)


class DomainEvent(Base):
    """Append-only event log; rows are never updated."""

    __tablename__ = "domain_events"

    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    school_id: Mapped[str] = mapped_column(String(36), nullable=False)
    classroom_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)

    __table_args__ = (
        Index("ix_domain_events_classroom_created", "classroom_id", "created_at"),
        Index("ix_domain_events_entity", "entity_type", "entity_id"),
        Index("ix_domain_events_created", "created_at"),
    )
