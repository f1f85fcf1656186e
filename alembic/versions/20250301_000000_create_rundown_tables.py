"""create rundown tables

Revision ID: 20250301_000000
Revises:
Create Date: 2025-03-01 00:00:00

Bulletins, their per-bulletin lock record, rundown rows, row segments and the
activity log.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20250301_000000"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "bulletins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("subtitle", sa.String(length=255), nullable=True),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("air_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=10), nullable=False),
        sa.Column("end_time", sa.String(length=10), nullable=True),
        sa.Column("planned_duration_secs", sa.Integer(), nullable=False),
        sa.Column("total_est_duration_secs", sa.Integer(), nullable=False),
        sa.Column("total_actual_duration_secs", sa.Integer(), nullable=True),
        sa.Column("total_commercial_secs", sa.Integer(), nullable=False),
        sa.Column("timing_variance_secs", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("producer_id", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("planned_duration_secs > 0", name=op.f("ck_bulletins_planned_duration_positive")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bulletins")),
    )
    op.create_index("ix_bulletins_air_date", "bulletins", ["air_date"])
    op.create_index("ix_bulletins_status", "bulletins", ["status"])
    op.create_index("ix_bulletins_deleted_at", "bulletins", ["deleted_at"])

    op.create_table(
        "bulletin_locks",
        sa.Column("bulletin_id", sa.Uuid(), nullable=False),
        sa.Column("locked_by", sa.String(length=255), nullable=False),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["bulletin_id"],
            ["bulletins.id"],
            name=op.f("fk_bulletin_locks_bulletin_id_bulletins"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("bulletin_id", name=op.f("pk_bulletin_locks")),
    )

    op.create_table(
        "rundown_rows",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("bulletin_id", sa.Uuid(), nullable=False),
        sa.Column("page_code", sa.String(length=10), nullable=True),
        sa.Column("block_code", sa.String(length=5), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("row_type", sa.String(length=20), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=True),
        sa.Column("segment", sa.String(length=50), nullable=True),
        sa.Column("break_number", sa.Integer(), nullable=True),
        sa.Column("story_producer_id", sa.String(length=255), nullable=True),
        sa.Column("reporter_id", sa.String(length=255), nullable=True),
        sa.Column("final_approval", sa.Boolean(), nullable=False),
        sa.Column("approved_by", sa.String(length=255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("est_duration_secs", sa.Integer(), nullable=False),
        sa.Column("actual_duration_secs", sa.Integer(), nullable=True),
        sa.Column("front_time_secs", sa.Integer(), nullable=False),
        sa.Column("cume_time_secs", sa.Integer(), nullable=False),
        sa.Column("float", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("script", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_modified_by", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("est_duration_secs >= 0", name=op.f("ck_rundown_rows_est_duration_non_negative")),
        sa.CheckConstraint(
            "actual_duration_secs IS NULL OR actual_duration_secs >= 0",
            name=op.f("ck_rundown_rows_actual_duration_non_negative"),
        ),
        sa.ForeignKeyConstraint(
            ["bulletin_id"],
            ["bulletins.id"],
            name=op.f("fk_rundown_rows_bulletin_id_bulletins"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rundown_rows")),
    )
    op.create_index("ix_rundown_rows_bulletin_sort", "rundown_rows", ["bulletin_id", "sort_order"])
    op.create_index("ix_rundown_rows_deleted_at", "rundown_rows", ["deleted_at"])

    op.create_table(
        "row_segments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("row_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("est_duration_secs", sa.Integer(), nullable=False),
        sa.Column("actual_duration_secs", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("est_duration_secs >= 0", name=op.f("ck_row_segments_est_duration_non_negative")),
        sa.ForeignKeyConstraint(
            ["row_id"],
            ["rundown_rows.id"],
            name=op.f("fk_row_segments_row_id_rundown_rows"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_row_segments")),
    )
    op.create_index("ix_row_segments_row_id", "row_segments", ["row_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("bulletin_id", sa.Uuid(), nullable=True),
        sa.Column("row_id", sa.Uuid(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_activity_logs")),
    )
    op.create_index("ix_activity_logs_bulletin_id", "activity_logs", ["bulletin_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("row_segments")
    op.drop_table("rundown_rows")
    op.drop_table("bulletin_locks")
    op.drop_table("bulletins")
