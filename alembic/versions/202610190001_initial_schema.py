"""Initial schema for classrooms, sessions, presence, help queue and event log

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

member_role_enum = sa.Enum("student", "teacher", "volunteer", name="member_role")
session_type_enum = sa.Enum("structured", "drop_in", name="session_type")
session_status_enum = sa.Enum("scheduled", "active", "ended", "cancelled", name="session_status")
signout_type_enum = sa.Enum("self", "manual", "auto", "session_end", name="signout_type")
help_urgency_enum = sa.Enum("blocked", "question", "check_work", name="help_urgency")
help_request_status_enum = sa.Enum(
    "pending", "claimed", "resolved", "cancelled", name="help_request_status"
)


def _ts(name: str, *, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("school_id", sa.String(length=36), nullable=False, index=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("display_code", sa.String(length=6), nullable=False, unique=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("school_id", "slug", name="uq_classroom_school_slug"),
    )

    op.create_table(
        "people",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("school_id", sa.String(length=36), nullable=False, index=True),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("legal_name", sa.String(length=200), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("pronouns", sa.String(length=50), nullable=True),
        sa.Column("grade_level", sa.String(length=20), nullable=True),
        sa.Column("ask_me_about", sa.JSON(), nullable=False),
        sa.Column("theme_color", sa.String(length=7), nullable=True),
        sa.Column("currently_working_on", sa.String(length=200), nullable=True),
        sa.Column("help_queue_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("pin_hash", sa.String(length=255), nullable=True),
        _ts("last_login_at"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "classroom_memberships",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "person_id",
            sa.String(length=36),
            sa.ForeignKey("people.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", member_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("joined_at", nullable=False),
        _ts("left_at"),
        sa.UniqueConstraint("classroom_id", "person_id", name="uq_membership_classroom_person"),
    )

    op.create_table(
        "class_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("session_type", session_type_enum, nullable=False),
        _ts("scheduled_date", nullable=False),
        _ts("start_time", nullable=False),
        _ts("end_time", nullable=False),
        _ts("actual_start_at"),
        _ts("actual_end_at"),
        sa.Column("status", session_status_enum, nullable=False),
    )

    op.create_table(
        "sign_ins",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("class_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("person_id", sa.String(length=36), nullable=False),
        _ts("signed_in_at", nullable=False),
        sa.Column("signed_in_by_id", sa.String(length=36), nullable=False),
        _ts("signed_out_at"),
        sa.Column("signed_out_by_id", sa.String(length=36), nullable=True),
        sa.Column("signout_type", signout_type_enum, nullable=True),
    )
    op.create_index("ix_sign_ins_session_person", "sign_ins", ["session_id", "person_id"])

    op.create_table(
        "ninja_domains",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "ninja_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "person_id",
            sa.String(length=36),
            sa.ForeignKey("people.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "ninja_domain_id",
            sa.String(length=36),
            sa.ForeignKey("ninja_domains.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("assigned_by_id", sa.String(length=36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("assigned_at", nullable=False),
        _ts("revoked_at"),
        sa.UniqueConstraint(
            "person_id", "ninja_domain_id", name="uq_ninja_assignment_person_domain"
        ),
    )

    op.create_table(
        "help_categories",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "ninja_domain_id",
            sa.String(length=36),
            sa.ForeignKey("ninja_domains.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "help_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("classroom_id", sa.String(length=36), nullable=False, index=True),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("class_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("requester_id", sa.String(length=36), nullable=False),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("what_i_tried", sa.Text(), nullable=False),
        sa.Column("urgency", help_urgency_enum, nullable=False),
        sa.Column("status", help_request_status_enum, nullable=False),
        sa.Column("claimed_by_id", sa.String(length=36), nullable=True),
        _ts("claimed_at"),
        _ts("resolved_at"),
        _ts("cancelled_at"),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        _ts("created_at", nullable=False),
    )
    op.create_index(
        "ix_help_requests_session_status", "help_requests", ["session_id", "status"]
    )

    op.create_table(
        "pin_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("token", sa.String(length=128), nullable=False, unique=True),
        sa.Column(
            "person_id",
            sa.String(length=36),
            sa.ForeignKey("people.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "classroom_id",
            sa.String(length=36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _ts("expires_at", nullable=False),
        _ts("last_activity_at", nullable=False),
        _ts("created_at", nullable=False),
    )

    op.create_table(
        "domain_events",
        sa.Column("sequence", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("classroom_id", sa.String(length=36), nullable=True),
        sa.Column("session_id", sa.String(length=36), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index(
        "ix_domain_events_classroom_created", "domain_events", ["classroom_id", "created_at"]
    )
    op.create_index("ix_domain_events_entity", "domain_events", ["entity_type", "entity_id"])
    op.create_index("ix_domain_events_created", "domain_events", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_domain_events_created", table_name="domain_events")
    op.drop_index("ix_domain_events_entity", table_name="domain_events")
    op.drop_index("ix_domain_events_classroom_created", table_name="domain_events")
    op.drop_table("domain_events")
    op.drop_table("pin_sessions")
    op.drop_index("ix_help_requests_session_status", table_name="help_requests")
    op.drop_table("help_requests")
    op.drop_table("help_categories")
    op.drop_table("ninja_assignments")
    op.drop_table("ninja_domains")
    op.drop_index("ix_sign_ins_session_person", table_name="sign_ins")
    op.drop_table("sign_ins")
    op.drop_table("class_sessions")
    op.drop_table("classroom_memberships")
    op.drop_table("people")
    op.drop_table("classrooms")

    bind = op.get_bind()
    for enum in (
        help_request_status_enum,
        help_urgency_enum,
        signout_type_enum,
        session_status_enum,
        session_type_enum,
        member_role_enum,
    ):
        enum.drop(bind, checkfirst=True)
