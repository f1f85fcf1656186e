"""
Row segment operations.

Segments break a row's script into named parts (VO, SOT, ...). They are
descriptive only and never feed the timing fold, so none of these operations
recalculate. All mutations are gated on the owning bulletin's lock.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import RowSegment, RundownRow
from ..engine import activity, locks
from ..engine.clock import Clock, default_clock
from ..engine.lookup import get_bulletin, get_row, get_segment
from ..infra.exceptions import ValidationError
from ..shared.patch import SegmentPatch
from ..shared.timecode import parse_duration
from ..shared.types import ActivityAction, SegmentType
from .serializers import segment_to_dict


def _segment_type(value: str | SegmentType) -> SegmentType:
    if isinstance(value, SegmentType):
        return value
    try:
        return SegmentType(str(value).upper())
    except ValueError as e:
        valid = ", ".join(t.value for t in SegmentType)
        raise ValidationError(f"Invalid segment type '{value}'. Valid values: {valid}") from e


def _seconds(value: str | int | None, name: str, *, nullable: bool) -> int | None:
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{name} is required")
    try:
        secs = parse_duration(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name} '{value}'. Use seconds or M:SS") from e
    if secs < 0:
        raise ValidationError(f"{name} must be >= 0")
    return secs


def _editable_row(db: Session, row_id: Any, actor: Actor) -> RundownRow:
    row = get_row(db, row_id)
    locks.ensure_editable(db, get_bulletin(db, row.bulletin_id), actor)
    return row


def _segments_of(db: Session, row: RundownRow) -> list[RowSegment]:
    return (
        db.query(RowSegment)
        .filter(RowSegment.row_id == row.id)
        .order_by(RowSegment.sort_order, RowSegment.created_at)
        .all()
    )


def add_segment(
    db: Session,
    *,
    row_id: str,
    name: str,
    actor: Actor,
    segment_type: str | SegmentType = SegmentType.LIVE,
    description: str | None = None,
    est_duration: str | int | None = 0,
    actual_duration: str | int | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Append a segment to a row. Names are stored upper-cased."""
    clock = clock or default_clock
    if not name or not name.strip():
        raise ValidationError("Segment name is required")
    row = _editable_row(db, row_id, actor)

    current_max = db.query(func.max(RowSegment.sort_order)).filter(RowSegment.row_id == row.id).scalar()
    segment = RowSegment(
        row_id=row.id,
        name=name.strip().upper(),
        type=_segment_type(segment_type),
        description=description or "",
        est_duration_secs=_seconds(est_duration, "est_duration", nullable=False),
        actual_duration_secs=_seconds(actual_duration, "actual_duration", nullable=True),
        sort_order=0 if current_max is None else current_max + 1,
        created_by=actor.id,
    )
    db.add(segment)
    db.flush()

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.SEGMENT_CREATE,
        entity_type="segment",
        entity_id=segment.id,
        bulletin_id=row.bulletin_id,
        row_id=row.id,
        description=f"Added segment {segment.name} to row {row.page_code}",
        clock=clock,
    )
    return segment_to_dict(segment)


def list_segments(db: Session, *, row_id: str) -> list[dict[str, Any]]:
    row = get_row(db, row_id)
    return [segment_to_dict(s) for s in _segments_of(db, row)]


def update_segment(
    db: Session,
    *,
    segment_id: str,
    patch: SegmentPatch,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    clock = clock or default_clock
    segment = get_segment(db, segment_id)
    row = _editable_row(db, segment.row_id, actor)

    values = patch.set_fields()
    normalized: dict[str, Any] = {}
    if "name" in values:
        if not str(values["name"]).strip():
            raise ValidationError("Segment name cannot be empty")
        normalized["name"] = str(values["name"]).strip().upper()
    if "type" in values:
        normalized["type"] = _segment_type(values["type"])
    if "est_duration_secs" in values:
        normalized["est_duration_secs"] = _seconds(values["est_duration_secs"], "est_duration", nullable=False)
    if "actual_duration_secs" in values:
        normalized["actual_duration_secs"] = _seconds(
            values["actual_duration_secs"], "actual_duration", nullable=True
        )
    if normalized:
        patch = replace(patch, **normalized)

    changes = patch.apply_to(segment)
    if changes:
        db.flush()
        activity.record(
            db,
            actor=actor,
            action=ActivityAction.SEGMENT_UPDATE,
            entity_type="segment",
            entity_id=segment.id,
            bulletin_id=row.bulletin_id,
            row_id=row.id,
            description=f"Updated segment {segment.name}: {', '.join(sorted(changes))}",
            old_value={k: old for k, (old, _) in changes.items()},
            new_value={k: new for k, (_, new) in changes.items()},
            clock=clock,
        )
    return segment_to_dict(segment)


def delete_segment(
    db: Session,
    *,
    segment_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Remove a segment. A row always keeps at least one segment once it has any."""
    clock = clock or default_clock
    segment = get_segment(db, segment_id)
    row = _editable_row(db, segment.row_id, actor)

    if len(_segments_of(db, row)) <= 1:
        raise ValidationError(
            "Cannot delete the last segment of a row", entity_type="segment", entity_id=segment.id
        )

    segment_key, name = segment.id, segment.name
    db.delete(segment)
    db.flush()

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.SEGMENT_DELETE,
        entity_type="segment",
        entity_id=segment_key,
        bulletin_id=row.bulletin_id,
        row_id=row.id,
        description=f"Deleted segment {name} from row {row.page_code}",
        clock=clock,
    )
    return {"id": str(segment_key), "row_id": str(row.id), "deleted": True}


__all__ = ["add_segment", "list_segments", "update_segment", "delete_segment"]
