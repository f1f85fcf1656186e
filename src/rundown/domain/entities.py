"""
Domain entities for the rundown engine.

This module contains the persisted model: bulletins, their ordered rundown rows,
row segments, the per-bulletin lock record and the append-only activity log.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from ..infra.db import Base
from ..shared.types import BulletinStatus, RowStatus, RowType, SegmentType


class Bulletin(Base):
    """
    A scheduled program instance with a planned air duration.

    Totals are written by the timing recalculator and never hand-set. Lock state
    is read from the ``BulletinLock`` record; a bulletin without one is unlocked.
    """

    __tablename__ = "bulletins"

    id: Mapped[uuid_module.UUID] = mapped_column(Uuid, primary_key=True, default=uuid_module.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    air_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(10), nullable=False)
    end_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    planned_duration_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=1800)

    total_est_duration_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_actual_duration_secs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_commercial_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timing_variance_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[BulletinStatus] = mapped_column(
        SQLEnum(BulletinStatus, name="bulletin_status", native_enum=False, length=20),
        nullable=False,
        default=BulletinStatus.PLANNING,
    )
    # Position among bulletins airing the same day
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    producer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    rows: Mapped[list[RundownRow]] = relationship(
        "RundownRow",
        back_populates="bulletin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RundownRow.sort_order",
    )
    lock: Mapped[BulletinLock | None] = relationship(
        "BulletinLock",
        back_populates="bulletin",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("planned_duration_secs > 0", name="planned_duration_positive"),
        Index("ix_bulletins_air_date", "air_date"),
        Index("ix_bulletins_status", "status"),
        Index("ix_bulletins_deleted_at", "deleted_at"),
    )

    @property
    def is_locked(self) -> bool:
        return self.lock is not None

    @property
    def locked_by(self) -> str | None:
        return self.lock.locked_by if self.lock is not None else None

    @property
    def locked_at(self) -> datetime | None:
        return self.lock.locked_at if self.lock is not None else None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Bulletin(id={self.id}, title={self.title}, air_date={self.air_date}, start_time={self.start_time})>"


class BulletinLock(Base):
    """Per-bulletin edit mutex. A row exists exactly while the bulletin is locked."""

    __tablename__ = "bulletin_locks"

    bulletin_id: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, ForeignKey("bulletins.id", ondelete="CASCADE"), primary_key=True
    )
    locked_by: Mapped[str] = mapped_column(String(255), nullable=False)
    locked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    bulletin: Mapped[Bulletin] = relationship("Bulletin", back_populates="lock")

    def __repr__(self) -> str:
        return f"<BulletinLock(bulletin_id={self.bulletin_id}, locked_by={self.locked_by})>"


class RundownRow(Base):
    """
    One ordered item within a bulletin's rundown.

    ``sort_order`` is dense and zero-based across the bulletin once a
    resequence completes. ``page_number``/``page_code`` and the two timing
    columns are derived and rewritten on every resequence and recalculation.
    """

    __tablename__ = "rundown_rows"

    id: Mapped[uuid_module.UUID] = mapped_column(Uuid, primary_key=True, default=uuid_module.uuid4)
    bulletin_id: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, ForeignKey("bulletins.id", ondelete="CASCADE"), nullable=False
    )

    page_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    block_code: Mapped[str] = mapped_column(String(5), nullable=False, default="A")
    page_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    row_type: Mapped[RowType] = mapped_column(
        SQLEnum(RowType, name="row_type", native_enum=False, length=20),
        nullable=False,
        default=RowType.STORY,
    )
    slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    segment: Mapped[str | None] = mapped_column(String(50), nullable=True)
    break_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    story_producer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reporter_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    final_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    est_duration_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=90)
    actual_duration_secs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    front_time_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cume_time_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_float: Mapped[bool] = mapped_column("float", Boolean, nullable=False, default=False)

    status: Mapped[RowStatus] = mapped_column(
        SQLEnum(RowStatus, name="row_status", native_enum=False, length=20),
        nullable=False,
        default=RowStatus.BLANK,
    )
    script: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_modified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    bulletin: Mapped[Bulletin] = relationship("Bulletin", back_populates="rows")
    segments: Mapped[list[RowSegment]] = relationship(
        "RowSegment",
        back_populates="row",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RowSegment.sort_order",
    )

    __table_args__ = (
        CheckConstraint("est_duration_secs >= 0", name="est_duration_non_negative"),
        CheckConstraint(
            "actual_duration_secs IS NULL OR actual_duration_secs >= 0",
            name="actual_duration_non_negative",
        ),
        Index("ix_rundown_rows_bulletin_sort", "bulletin_id", "sort_order"),
        Index("ix_rundown_rows_deleted_at", "deleted_at"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<RundownRow(id={self.id}, bulletin_id={self.bulletin_id}, "
            f"page_code={self.page_code}, sort_order={self.sort_order})>"
        )


class RowSegment(Base):
    """Named sub-breakdown of a row's script (VO, SOT, ...). Descriptive only."""

    __tablename__ = "row_segments"

    id: Mapped[uuid_module.UUID] = mapped_column(Uuid, primary_key=True, default=uuid_module.uuid4)
    row_id: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, ForeignKey("rundown_rows.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[SegmentType] = mapped_column(
        SQLEnum(SegmentType, name="segment_type", native_enum=False, length=20),
        nullable=False,
        default=SegmentType.LIVE,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default="")
    est_duration_secs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_duration_secs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    row: Mapped[RundownRow] = relationship("RundownRow", back_populates="segments")

    __table_args__ = (
        CheckConstraint("est_duration_secs >= 0", name="est_duration_non_negative"),
        Index("ix_row_segments_row_id", "row_id"),
    )

    def __repr__(self) -> str:
        return f"<RowSegment(id={self.id}, row_id={self.row_id}, name={self.name})>"


class ActivityLog(Base):
    """
    Append-only audit record.

    ``bulletin_id``/``row_id`` are plain references, not foreign keys, so entries
    outlive the purge of the entities they describe.
    """

    __tablename__ = "activity_logs"

    id: Mapped[uuid_module.UUID] = mapped_column(Uuid, primary_key=True, default=uuid_module.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bulletin_id: Mapped[uuid_module.UUID | None] = mapped_column(Uuid, nullable=True)
    row_id: Mapped[uuid_module.UUID | None] = mapped_column(Uuid, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __table_args__ = (
        Index("ix_activity_logs_bulletin_id", "bulletin_id"),
        Index("ix_activity_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action}, entity_type={self.entity_type})>"
