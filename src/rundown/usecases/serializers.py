"""Contract-aligned dict renderings of rundown entities."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from ..domain.entities import Bulletin, RowSegment, RundownRow
from ..shared.timecode import secs_to_hhmmss, secs_to_mmss, time_to_secs, variance_display


def format_datetime(dt: datetime | None) -> str | None:
    """Format datetime for output in ISO-8601 UTC format."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.isoformat() + "Z"
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def format_date(d: date | None) -> str | None:
    return d.isoformat() if d else None


def bulletin_to_dict(bulletin: Bulletin) -> dict[str, Any]:
    return {
        "id": str(bulletin.id),
        "title": bulletin.title,
        "subtitle": bulletin.subtitle,
        "code": bulletin.code,
        "air_date": format_date(bulletin.air_date),
        "start_time": bulletin.start_time,
        "end_time": bulletin.end_time,
        "planned_duration_secs": bulletin.planned_duration_secs,
        "total_est_duration_secs": bulletin.total_est_duration_secs,
        "total_actual_duration_secs": bulletin.total_actual_duration_secs,
        "total_commercial_secs": bulletin.total_commercial_secs,
        "timing_variance_secs": bulletin.timing_variance_secs,
        "variance_display": variance_display(bulletin.timing_variance_secs),
        "status": bulletin.status.value,
        "sort_order": bulletin.sort_order,
        "is_locked": bulletin.is_locked,
        "locked_by": bulletin.locked_by,
        "locked_at": format_datetime(bulletin.locked_at),
        "producer_id": bulletin.producer_id,
        "notes": bulletin.notes,
        "created_by": bulletin.created_by,
        "created_at": format_datetime(bulletin.created_at),
        "updated_at": format_datetime(bulletin.updated_at),
    }


def row_to_dict(row: RundownRow, *, start_secs: int = 0) -> dict[str, Any]:
    """``start_secs`` offsets the on-air clock display of front time."""
    return {
        "id": str(row.id),
        "bulletin_id": str(row.bulletin_id),
        "page_code": row.page_code,
        "block_code": row.block_code,
        "page_number": row.page_number,
        "sort_order": row.sort_order,
        "row_type": row.row_type.value,
        "slug": row.slug,
        "segment": row.segment,
        "status": row.status.value,
        "break_number": row.break_number,
        "est_duration_secs": row.est_duration_secs,
        "actual_duration_secs": row.actual_duration_secs,
        "front_time_secs": row.front_time_secs,
        "cume_time_secs": row.cume_time_secs,
        "est_duration_display": secs_to_mmss(row.est_duration_secs),
        "actual_duration_display": (
            secs_to_mmss(row.actual_duration_secs) if row.actual_duration_secs is not None else ""
        ),
        "front_time_display": secs_to_hhmmss(start_secs + row.front_time_secs),
        "cume_time_display": secs_to_mmss(row.cume_time_secs),
        "float": row.is_float,
        "final_approval": row.final_approval,
        "approved_by": row.approved_by,
        "approved_at": format_datetime(row.approved_at),
        "script": row.script,
        "notes": row.notes,
        "reporter_id": row.reporter_id,
        "story_producer_id": row.story_producer_id,
        "last_modified_by": row.last_modified_by,
        "created_at": format_datetime(row.created_at),
        "updated_at": format_datetime(row.updated_at),
    }


def rows_to_dicts(bulletin: Bulletin, rows: list[RundownRow]) -> list[dict[str, Any]]:
    start_secs = time_to_secs(bulletin.start_time)
    return [row_to_dict(row, start_secs=start_secs) for row in rows]


def segment_to_dict(segment: RowSegment) -> dict[str, Any]:
    return {
        "id": str(segment.id),
        "row_id": str(segment.row_id),
        "name": segment.name,
        "type": segment.type.value,
        "description": segment.description,
        "est_duration_secs": segment.est_duration_secs,
        "actual_duration_secs": segment.actual_duration_secs,
        "sort_order": segment.sort_order,
        "created_at": format_datetime(segment.created_at),
    }


__all__ = [
    "format_datetime",
    "format_date",
    "bulletin_to_dict",
    "row_to_dict",
    "rows_to_dicts",
    "segment_to_dict",
]
