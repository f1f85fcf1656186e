"""
Timing Recalculator.

A single left-to-right fold over a bulletin's live rows in sort order:

    front[0] = 0
    front[i] = cume[i - 1]
    cume[i]  = front[i] + est[i]

Float rows are counted like any other row. Bulletin totals are written in the
same pass, with ``timing_variance_secs = planned - total_est`` (positive means
under time). Running the pass twice without intervening changes yields the
same result.
"""

from __future__ import annotations

import uuid as uuid_module
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.orm import Session

from ..infra.logging import get_logger
from ..shared.timecode import secs_to_hhmmss, secs_to_mmss, variance_display
from ..shared.types import RowType
from . import sequence
from .lookup import as_uuid, get_bulletin

logger = get_logger(__name__)


class TimedRow(Protocol):
    id: Any
    row_type: RowType
    est_duration_secs: int
    actual_duration_secs: int | None


@dataclass(frozen=True)
class RowTiming:
    row_id: Any
    front_time_secs: int
    cume_time_secs: int


@dataclass(frozen=True)
class TimingPass:
    """Result of folding an ordered row sequence."""

    rows: tuple[RowTiming, ...]
    total_est_duration_secs: int
    total_actual_duration_secs: int | None
    total_commercial_secs: int
    timing_variance_secs: int


@dataclass(frozen=True)
class TimingTotals:
    """The four persisted bulletin totals."""

    bulletin_id: uuid_module.UUID
    planned_duration_secs: int
    total_est_duration_secs: int
    total_actual_duration_secs: int | None
    total_commercial_secs: int
    timing_variance_secs: int

    @property
    def variance_display(self) -> str:
        return variance_display(self.timing_variance_secs)

    def to_dict(self) -> dict[str, Any]:
        actual = self.total_actual_duration_secs
        return {
            "bulletin_id": str(self.bulletin_id),
            "planned_duration_secs": self.planned_duration_secs,
            "total_est_duration_secs": self.total_est_duration_secs,
            "total_actual_duration_secs": actual,
            "total_commercial_secs": self.total_commercial_secs,
            "timing_variance_secs": self.timing_variance_secs,
            "variance_display": self.variance_display,
            "total_est_display": secs_to_mmss(self.total_est_duration_secs),
            "total_actual_display": secs_to_mmss(actual) if actual is not None else "",
            "planned_display": secs_to_hhmmss(self.planned_duration_secs),
        }


def fold(rows: Iterable[TimedRow], planned_duration_secs: int) -> TimingPass:
    timings: list[RowTiming] = []
    cume = 0
    total_actual = 0
    any_actual = False
    total_commercial = 0

    for row in rows:
        est = row.est_duration_secs or 0
        front = cume
        cume = front + est
        timings.append(RowTiming(row_id=row.id, front_time_secs=front, cume_time_secs=cume))

        if row.actual_duration_secs is not None:
            any_actual = True
            total_actual += row.actual_duration_secs
        if row.row_type == RowType.COMMERCIAL:
            total_commercial += est

    return TimingPass(
        rows=tuple(timings),
        total_est_duration_secs=cume,
        # None distinguishes "not yet timed" from a measured zero
        total_actual_duration_secs=total_actual if any_actual else None,
        total_commercial_secs=total_commercial,
        timing_variance_secs=planned_duration_secs - cume,
    )


def apply_pass(rows: Sequence[Any], timing_pass: TimingPass) -> None:
    for row, timing in zip(rows, timing_pass.rows, strict=True):
        row.front_time_secs = timing.front_time_secs
        row.cume_time_secs = timing.cume_time_secs


def recalculate(db: Session, bulletin_id: Any) -> TimingTotals:
    """Resequence the bulletin, fold its live rows and persist front/cume and totals.

    Serialized per bulletin by the row lock taken on the bulletin, which the
    store holds until the caller's unit of work commits or rolls back. Only
    flushes.
    """
    bulletin = get_bulletin(db, as_uuid(bulletin_id, "bulletin"), for_update=True)
    live = sequence.resequence(db, bulletin.id)
    timing_pass = fold(live, bulletin.planned_duration_secs)
    apply_pass(live, timing_pass)

    bulletin.total_est_duration_secs = timing_pass.total_est_duration_secs
    bulletin.total_actual_duration_secs = timing_pass.total_actual_duration_secs
    bulletin.total_commercial_secs = timing_pass.total_commercial_secs
    bulletin.timing_variance_secs = timing_pass.timing_variance_secs
    db.flush()

    logger.info(
        "timing_recalculated",
        bulletin_id=str(bulletin.id),
        rows=len(live),
        total_est_duration_secs=timing_pass.total_est_duration_secs,
        timing_variance_secs=timing_pass.timing_variance_secs,
    )
    return totals_of(bulletin)


def totals_of(bulletin: Any) -> TimingTotals:
    """Totals as currently persisted on ``bulletin``."""
    return TimingTotals(
        bulletin_id=bulletin.id,
        planned_duration_secs=bulletin.planned_duration_secs,
        total_est_duration_secs=bulletin.total_est_duration_secs,
        total_actual_duration_secs=bulletin.total_actual_duration_secs,
        total_commercial_secs=bulletin.total_commercial_secs,
        timing_variance_secs=bulletin.timing_variance_secs,
    )


__all__ = [
    "RowTiming",
    "TimingPass",
    "TimingTotals",
    "fold",
    "apply_pass",
    "recalculate",
    "totals_of",
]
