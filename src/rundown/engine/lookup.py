"""Entity lookups shared by the engine modules. Absent or tombstoned entities raise NotFoundError."""

from __future__ import annotations

import uuid as uuid_module
from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import Bulletin, RowSegment, RundownRow
from ..infra.exceptions import NotFoundError, ValidationError


def as_uuid(value: Any, entity_type: str) -> uuid_module.UUID:
    if isinstance(value, uuid_module.UUID):
        return value
    try:
        return uuid_module.UUID(str(value))
    except ValueError as e:
        raise ValidationError(
            f"Invalid {entity_type} id '{value}'", entity_type=entity_type, entity_id=value
        ) from e


def get_bulletin(
    db: Session,
    bulletin_id: Any,
    *,
    include_deleted: bool = False,
    for_update: bool = False,
) -> Bulletin:
    query = db.query(Bulletin).filter(Bulletin.id == as_uuid(bulletin_id, "bulletin"))
    if for_update:
        query = query.with_for_update()
    bulletin = query.first()
    if bulletin is None or (bulletin.is_deleted and not include_deleted):
        raise NotFoundError("bulletin", bulletin_id)
    return bulletin


def get_row(db: Session, row_id: Any, *, include_deleted: bool = False) -> RundownRow:
    row = db.query(RundownRow).filter(RundownRow.id == as_uuid(row_id, "row")).first()
    if row is None or (row.is_deleted and not include_deleted):
        raise NotFoundError("row", row_id)
    return row


def get_segment(db: Session, segment_id: Any) -> RowSegment:
    segment = db.query(RowSegment).filter(RowSegment.id == as_uuid(segment_id, "segment")).first()
    if segment is None:
        raise NotFoundError("segment", segment_id)
    return segment


__all__ = ["as_uuid", "get_bulletin", "get_row", "get_segment"]
