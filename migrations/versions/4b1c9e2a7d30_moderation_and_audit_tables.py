"""moderation and audit tables

Revision ID: 4b1c9e2a7d30
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4b1c9e2a7d30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTENT_TYPES = ("post", "comment", "media", "wiki_revision")


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=20)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=40), nullable=False),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=100), nullable=False),
        sa.Column("target_id", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create moderation cases, reports, decisions, tombstones and the audit trail."""
    op.create_table(
        "moderation_case",
        sa.Column("id", sa.String(length=40), nullable=False),
        sa.Column("content_type", _enum("moderationcontenttype", *CONTENT_TYPES), nullable=False),
        sa.Column("content_id", sa.String(length=255), nullable=False),
        sa.Column(
            "priority",
            _enum("moderationpriority", "low", "medium", "high", "urgent"),
            nullable=False,
        ),
        sa.Column("report_count", sa.Integer(), nullable=False),
        sa.Column("auto_flagged", sa.Boolean(), nullable=False),
        sa.Column("auto_reason", sa.Text(), nullable=True),
        sa.Column("ai_score", sa.Float(), nullable=True),
        sa.Column(
            "status",
            _enum("moderationstatus", "pending", "in_review", "resolved"),
            nullable=False,
        ),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("content_type", "content_id", name="uq_moderation_case_content"),
    )
    op.create_index(
        "ix_moderation_case_type_status", "moderation_case", ["content_type", "status"]
    )

    op.create_table(
        "moderation_report",
        sa.Column("case_id", sa.String(length=40), nullable=False),
        sa.Column("reporter_id", sa.String(length=255), nullable=False),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["case_id"], ["moderation_case.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("case_id", "reporter_id"),
    )

    op.create_table(
        "moderation_action_log",
        sa.Column("id", sa.String(length=40), nullable=False),
        sa.Column("queue_item_id", sa.String(length=40), nullable=False),
        sa.Column(
            "action",
            _enum("moderationaction", "approve", "reject", "redact", "delete"),
            nullable=False,
        ),
        sa.Column("performed_by", sa.String(length=255), nullable=False),
        sa.Column("justification", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["queue_item_id"], ["moderation_case.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("queue_item_id"),
    )

    op.create_table(
        "soft_delete_record",
        sa.Column("id", sa.String(length=40), nullable=False),
        sa.Column("content_type", _enum("moderationcontenttype", *CONTENT_TYPES), nullable=False),
        sa.Column("content_id", sa.String(length=255), nullable=False),
        sa.Column("deleted_by", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_soft_delete_record_content", "soft_delete_record", ["content_type", "content_id"]
    )
    op.create_index("ix_soft_delete_record_expires_at", "soft_delete_record", ["expires_at"])

    op.create_table(
        "audit_log",
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_actor", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_target", "audit_log", ["target_type", "target_id"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])

    op.create_table(
        "audit_queue",
        *_audit_columns(),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_attempt", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_audit_queue_attempts_created", "audit_queue", ["attempts", "created_at"]
    )


def downgrade() -> None:
    """Drop every table created in upgrade."""
    op.drop_index("ix_audit_queue_attempts_created", table_name="audit_queue")
    op.drop_table("audit_queue")
    op.drop_index("ix_audit_log_created_at", table_name="audit_log")
    op.drop_index("ix_audit_log_action", table_name="audit_log")
    op.drop_index("ix_audit_log_target", table_name="audit_log")
    op.drop_index("ix_audit_log_actor", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_soft_delete_record_expires_at", table_name="soft_delete_record")
    op.drop_index("ix_soft_delete_record_content", table_name="soft_delete_record")
    op.drop_table("soft_delete_record")
    op.drop_table("moderation_action_log")
    op.drop_table("moderation_report")
    op.drop_index("ix_moderation_case_type_status", table_name="moderation_case")
    op.drop_table("moderation_case")
