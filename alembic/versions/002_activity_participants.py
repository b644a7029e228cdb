"""activity_participants 테이블 (상태 + 대기 순번)

Revision ID: 002
Revises: 001
Create Date: 2026-09-01 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "activity_participants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("activity_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("waitlist_position", sa.Integer(), nullable=True),
        sa.Column("approval_message", sa.String(length=500), nullable=True),
        sa.Column("invite_code", sa.String(length=64), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["activity_id"], ["activities.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["profile_id"], ["user_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("activity_id", "profile_id", name="uq_participant_activity_profile"),
        # waitlist_position은 waitlisted 일 때만 존재
        sa.CheckConstraint(
            "(status = 'waitlisted') = (waitlist_position IS NOT NULL)",
            name="ck_participants_waitlist_position",
        ),
    )
    op.create_index(op.f("ix_activity_participants_id"), "activity_participants", ["id"], unique=False)
    op.create_index(op.f("ix_activity_participants_activity_id"), "activity_participants", ["activity_id"], unique=False)
    op.create_index(op.f("ix_activity_participants_profile_id"), "activity_participants", ["profile_id"], unique=False)
    op.create_index("ix_participants_activity_status", "activity_participants", ["activity_id", "status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_participants_activity_status", table_name="activity_participants")
    op.drop_index(op.f("ix_activity_participants_profile_id"), table_name="activity_participants")
    op.drop_index(op.f("ix_activity_participants_activity_id"), table_name="activity_participants")
    op.drop_index(op.f("ix_activity_participants_id"), table_name="activity_participants")
    op.drop_table("activity_participants")
