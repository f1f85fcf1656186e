"""
Activity log sink.

Every state-changing engine operation appends exactly one entry in the caller's
transaction. Write failures propagate so an operation never commits without
its audit record.
"""

from __future__ import annotations

import json
import uuid as uuid_module
from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import ActivityLog
from ..infra.logging import get_logger
from ..shared.types import ActivityAction
from .clock import Clock, default_clock

logger = get_logger(__name__)


def _encode(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str, sort_keys=True)


def record(
    db: Session,
    *,
    actor: Actor,
    action: ActivityAction,
    entity_type: str,
    entity_id: Any,
    bulletin_id: uuid_module.UUID | None = None,
    row_id: uuid_module.UUID | None = None,
    description: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
    clock: Clock | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=actor.id,
        action=action.value,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        bulletin_id=bulletin_id,
        row_id=row_id,
        description=description,
        old_value=_encode(old_value),
        new_value=_encode(new_value),
        created_at=(clock or default_clock).now_utc(),
    )
    db.add(entry)
    db.flush()
    logger.info(
        "activity_recorded",
        action=action.value,
        actor_id=actor.id,
        entity_type=entity_type,
        entity_id=entry.entity_id,
        bulletin_id=str(bulletin_id) if bulletin_id else None,
    )
    return entry


def list_activity(
    db: Session,
    *,
    bulletin_id: uuid_module.UUID | None = None,
    limit: int = 100,
) -> list[ActivityLog]:
    """Newest first."""
    query = db.query(ActivityLog)
    if bulletin_id is not None:
        query = query.filter(ActivityLog.bulletin_id == bulletin_id)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id).limit(limit).all()


__all__ = ["record", "list_activity"]
