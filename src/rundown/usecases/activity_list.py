from __future__ import annotations

import json
from typing import Any

from sqlalchemy.orm import Session

from ..engine import activity
from ..engine.lookup import as_uuid
from ..infra.exceptions import ValidationError
from .serializers import format_datetime


def _decode(value: str | None) -> Any:
    return json.loads(value) if value is not None else None


def list_activity(db: Session, *, bulletin_id: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
    """Audit trail, newest first, optionally scoped to one bulletin."""
    if limit <= 0:
        raise ValidationError("limit must be > 0")
    scoped = as_uuid(bulletin_id, "bulletin") if bulletin_id else None
    return [
        {
            "id": str(entry.id),
            "user_id": entry.user_id,
            "action": entry.action,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "bulletin_id": str(entry.bulletin_id) if entry.bulletin_id else None,
            "row_id": str(entry.row_id) if entry.row_id else None,
            "description": entry.description,
            "old_value": _decode(entry.old_value),
            "new_value": _decode(entry.new_value),
            "created_at": format_datetime(entry.created_at),
        }
        for entry in activity.list_activity(db, bulletin_id=scoped, limit=limit)
    ]


__all__ = ["list_activity"]
