"""participation_events 아웃박스 테이블

Revision ID: 003
Revises: 002
Create Date: 2026-09-15 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "participation_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("activity_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("attempts", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_participation_events_activity_id"), "participation_events", ["activity_id"], unique=False)
    op.create_index(op.f("ix_participation_events_dispatched_at"), "participation_events", ["dispatched_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_participation_events_dispatched_at"), table_name="participation_events")
    op.drop_index(op.f("ix_participation_events_activity_id"), table_name="participation_events")
    op.drop_table("participation_events")
