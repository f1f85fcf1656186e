"""
Sequence Store.

Owns the ordered row collection of each bulletin. ``sort_order`` is a dense,
zero-based total order over every row of a bulletin, tombstoned rows
included, once a resequence completes; page numbers and codes are assigned
over live rows only.

Every mutation here passes the Lock Manager gate first and ends with a timing
recalculation inside the caller's transaction, so a failure at any step rolls
the whole operation back.
"""

from __future__ import annotations

import uuid as uuid_module
from dataclasses import dataclass, field, replace
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import RundownRow
from ..infra.exceptions import NotFoundError, ValidationError
from ..infra.logging import get_logger
from ..shared.patch import RowPatch
from ..shared.types import ActivityAction, RowStatus, RowType
from . import activity, locks, timing
from .clock import Clock, default_clock
from .lookup import as_uuid, get_bulletin, get_row
from .page_codec import assign_pages, normalize_block_code, page_code, parse_page_code

logger = get_logger(__name__)


@dataclass
class RowFields:
    """Editorial fields for a new row. Placement fields are decided by the store."""

    row_type: RowType = RowType.STORY
    slug: str | None = None
    segment: str | None = None
    status: RowStatus = RowStatus.BLANK
    est_duration_secs: int = 90
    actual_duration_secs: int | None = None
    is_float: bool = False
    break_number: int | None = None
    script: str | None = None
    notes: str | None = None
    reporter_id: str | None = None
    story_producer_id: str | None = None


@dataclass(frozen=True)
class RowMove:
    """One entry of a reorder batch."""

    row_id: Any
    sort_order: int
    page_code: str | None = None
    block_code: str | None = None


@dataclass
class ReorderResult:
    rows: list[RundownRow] = field(default_factory=list)
    totals: timing.TimingTotals | None = None


def _validate_duration(name: str, value: Any, *, nullable: bool) -> None:
    if value is None:
        if not nullable:
            raise ValidationError(f"{name} is required")
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number of seconds")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")


def _coerce_enum(enum_cls: type, value: Any, name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError as e:
        valid = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}'. Valid values: {valid}") from e


def live_rows(db: Session, bulletin_id: uuid_module.UUID) -> list[RundownRow]:
    return (
        db.query(RundownRow)
        .filter(RundownRow.bulletin_id == bulletin_id, RundownRow.deleted_at.is_(None))
        .order_by(RundownRow.sort_order, RundownRow.created_at, RundownRow.id)
        .all()
    )


def all_rows(db: Session, bulletin_id: uuid_module.UUID) -> list[RundownRow]:
    return (
        db.query(RundownRow)
        .filter(RundownRow.bulletin_id == bulletin_id)
        .order_by(RundownRow.sort_order, RundownRow.created_at, RundownRow.id)
        .all()
    )


def next_sort_order(db: Session, bulletin_id: uuid_module.UUID) -> int:
    """One past the current maximum; 0 for an empty bulletin."""
    current_max = (
        db.query(func.max(RundownRow.sort_order))
        .filter(RundownRow.bulletin_id == bulletin_id)
        .scalar()
    )
    return 0 if current_max is None else current_max + 1


def _renumber(rows: list[RundownRow]) -> list[RundownRow]:
    for index, row in enumerate(rows):
        row.sort_order = index
    live = [row for row in rows if not row.is_deleted]
    assign_pages(live)
    return live


def resequence(db: Session, bulletin_id: uuid_module.UUID) -> list[RundownRow]:
    """Densify sort orders and reassign page numbers/codes. Returns live rows in order."""
    db.flush()
    live = _renumber(all_rows(db, bulletin_id))
    db.flush()
    return live


def insert_row(
    db: Session,
    *,
    bulletin_id: Any,
    block_code: str,
    actor: Actor,
    after_row_id: Any = None,
    position: int | None = None,
    fields: RowFields | None = None,
    clock: Clock | None = None,
) -> RundownRow:
    """Insert a row and recalculate the bulletin.

    Without ``after_row_id``/``position`` the row is appended: sort order is
    one past the maximum and the page number is the live row count plus one.
    ``position`` is a zero-based index into the live rows.
    """
    clock = clock or default_clock
    fields = fields or RowFields()
    bulletin = get_bulletin(db, bulletin_id)
    locks.ensure_editable(db, bulletin, actor)

    block = normalize_block_code(block_code)
    _validate_duration("est_duration_secs", fields.est_duration_secs, nullable=False)
    _validate_duration("actual_duration_secs", fields.actual_duration_secs, nullable=True)
    fields = replace(
        fields,
        row_type=_coerce_enum(RowType, fields.row_type, "row type"),
        status=_coerce_enum(RowStatus, fields.status, "row status"),
    )
    if after_row_id is not None and position is not None:
        raise ValidationError("Use either after_row_id or position, not both")

    db.flush()
    live = live_rows(db, bulletin.id)

    if after_row_id is None and position is None:
        sort_order = next_sort_order(db, bulletin.id)
        page_number = len(live) + 1
    else:
        if after_row_id is not None:
            anchor_id = as_uuid(after_row_id, "row")
            anchor = next((row for row in live if row.id == anchor_id), None)
            if anchor is None:
                raise NotFoundError("row", after_row_id)
            sort_order = anchor.sort_order + 1
            page_number = live.index(anchor) + 2
        else:
            if position < 0 or position > len(live):
                raise ValidationError(f"position must be between 0 and {len(live)}")
            sort_order = live[position].sort_order if position < len(live) else next_sort_order(db, bulletin.id)
            page_number = position + 1
        for row in all_rows(db, bulletin.id):
            if row.sort_order >= sort_order:
                row.sort_order += 1

    row = RundownRow(
        bulletin_id=bulletin.id,
        block_code=block,
        sort_order=sort_order,
        page_number=page_number,
        page_code=page_code(block, page_number),
        row_type=fields.row_type,
        slug=fields.slug,
        segment=fields.segment,
        status=fields.status,
        est_duration_secs=fields.est_duration_secs,
        actual_duration_secs=fields.actual_duration_secs,
        is_float=fields.is_float,
        break_number=fields.break_number,
        script=fields.script,
        notes=fields.notes,
        reporter_id=fields.reporter_id,
        story_producer_id=fields.story_producer_id,
        created_by=actor.id,
        last_modified_by=actor.id,
    )
    db.add(row)
    db.flush()

    timing.recalculate(db, bulletin.id)

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.ROW_CREATE,
        entity_type="row",
        entity_id=row.id,
        bulletin_id=bulletin.id,
        row_id=row.id,
        description=f"Created row {row.page_code}: {row.slug or row.row_type.value}",
        clock=clock,
    )
    logger.info(
        "row_inserted",
        bulletin_id=str(bulletin.id),
        row_id=str(row.id),
        sort_order=row.sort_order,
        page_code=row.page_code,
    )
    return row


def _normalize_patch(row: RundownRow, patch: RowPatch) -> RowPatch:
    values = patch.set_fields()
    normalized: dict[str, Any] = {}

    if "est_duration_secs" in values:
        _validate_duration("est_duration_secs", values["est_duration_secs"], nullable=False)
    if "actual_duration_secs" in values:
        _validate_duration("actual_duration_secs", values["actual_duration_secs"], nullable=True)
    if "block_code" in values:
        normalized["block_code"] = normalize_block_code(values["block_code"])
    if "row_type" in values:
        normalized["row_type"] = _coerce_enum(RowType, values["row_type"], "row type")
    if "status" in values:
        new_status = _coerce_enum(RowStatus, values["status"], "row status")
        if row.status.is_terminal and new_status != row.status:
            raise ValidationError(
                f"Row status {row.status.value} is terminal",
                entity_type="row",
                entity_id=row.id,
            )
        normalized["status"] = new_status

    return replace(patch, **normalized) if normalized else patch


def update_row(
    db: Session,
    *,
    row_id: Any,
    patch: RowPatch,
    actor: Actor,
    clock: Clock | None = None,
) -> RundownRow:
    """Apply the set fields of ``patch``; recalculate when timing inputs changed."""
    clock = clock or default_clock
    row = get_row(db, row_id)
    bulletin = get_bulletin(db, row.bulletin_id)
    locks.ensure_editable(db, bulletin, actor)

    patch = _normalize_patch(row, patch)
    changes = patch.apply_to(row)
    if not changes:
        return row

    row.last_modified_by = actor.id
    db.flush()

    if any(name in changes for name in (*RowPatch.TIMING_FIELDS, "block_code")):
        timing.recalculate(db, bulletin.id)

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.ROW_UPDATE,
        entity_type="row",
        entity_id=row.id,
        bulletin_id=bulletin.id,
        row_id=row.id,
        description=f"Updated row {row.page_code}: {', '.join(sorted(changes))}",
        old_value={name: old for name, (old, _) in changes.items()},
        new_value={name: new for name, (_, new) in changes.items()},
        clock=clock,
    )
    logger.info("row_updated", row_id=str(row.id), fields=sorted(changes))
    return row


def _apply_codes(row: RundownRow, move: RowMove) -> None:
    if move.block_code:
        row.block_code = normalize_block_code(move.block_code)
    elif move.page_code:
        block, _ = parse_page_code(move.page_code)
        row.block_code = block


def reorder_rows(
    db: Session,
    *,
    bulletin_id: Any,
    moves: list[RowMove],
    actor: Actor,
    clock: Clock | None = None,
) -> ReorderResult:
    """Apply a batch of moves, renumber and recalculate in one transaction.

    Equal requested sort orders keep submission order, and a requested row
    goes ahead of an unrequested row holding the same sort order. Client page
    numbers are never trusted: pages come from position after the walk.
    """
    clock = clock or default_clock
    bulletin = get_bulletin(db, bulletin_id)
    locks.ensure_editable(db, bulletin, actor)
    if not moves:
        raise ValidationError("Reorder requires at least one row")

    db.flush()
    rows = all_rows(db, bulletin.id)
    live_by_id = {row.id: row for row in rows if not row.is_deleted}

    requested: dict[uuid_module.UUID, tuple[int, int]] = {}
    for index, move in enumerate(moves):
        row_uuid = as_uuid(move.row_id, "row")
        if row_uuid not in live_by_id:
            raise NotFoundError(
                "row", move.row_id, f"Row '{move.row_id}' does not belong to bulletin '{bulletin.id}'"
            )
        if row_uuid in requested:
            raise ValidationError(
                f"Row '{move.row_id}' appears more than once", entity_type="row", entity_id=row_uuid
            )
        if isinstance(move.sort_order, bool) or not isinstance(move.sort_order, int) or move.sort_order < 0:
            raise ValidationError(
                f"Invalid sort order {move.sort_order!r}", entity_type="row", entity_id=row_uuid
            )
        requested[row_uuid] = (move.sort_order, index)
        _apply_codes(live_by_id[row_uuid], move)

    def _key(item: tuple[int, RundownRow]) -> tuple[int, int, int]:
        current_index, row = item
        if row.id in requested:
            sort_value, submitted = requested[row.id]
            return (sort_value, 0, submitted)
        return (row.sort_order, 1, current_index)

    ordered = [row for _, row in sorted(enumerate(rows), key=_key)]
    _renumber(ordered)
    db.flush()

    totals = timing.recalculate(db, bulletin.id)
    updated = live_rows(db, bulletin.id)

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.REORDER,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Reordered {len(moves)} rows",
        new_value=[{"row_id": str(row.id), "page_code": row.page_code} for row in updated],
        clock=clock,
    )
    logger.info("rows_reordered", bulletin_id=str(bulletin.id), moves=len(moves), rows=len(updated))
    return ReorderResult(rows=updated, totals=totals)


__all__ = [
    "RowFields",
    "RowMove",
    "ReorderResult",
    "live_rows",
    "all_rows",
    "next_sort_order",
    "resequence",
    "insert_row",
    "update_row",
    "reorder_rows",
]
