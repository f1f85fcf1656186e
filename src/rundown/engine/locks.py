"""
Lock Manager.

A bulletin is locked exactly while a ``bulletin_locks`` record exists for it.
Acquire is a single conditional insert so two simultaneous attempts cannot
both succeed; release is a conditional delete keyed on the holder that was
authorized. Locks never expire: a stuck lock is released by its holder or
force-released by an override role.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import Bulletin, BulletinLock
from ..infra.exceptions import ConflictError, ForbiddenError, LockedError, PersistenceError
from ..infra.logging import get_logger
from ..infra.settings import settings
from ..shared.types import ActivityAction, BulletinStatus
from . import activity
from .clock import Clock, default_clock
from .lookup import get_bulletin

logger = get_logger(__name__)

_CONDITIONAL_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def _format_datetime(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.isoformat() + "Z"
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _try_insert_lock(db: Session, bulletin_id: uuid_module.UUID, actor_id: str, now: datetime) -> bool:
    """INSERT ... ON CONFLICT DO NOTHING. True when this call created the lock."""
    dialect = db.get_bind().dialect.name
    insert_fn = _CONDITIONAL_INSERTS.get(dialect)
    if insert_fn is None:
        raise PersistenceError(f"Conditional lock insert is not supported on '{dialect}'")
    stmt = (
        insert_fn(BulletinLock.__table__)
        .values(bulletin_id=bulletin_id, locked_by=actor_id, locked_at=now)
        .on_conflict_do_nothing(index_elements=["bulletin_id"])
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def lock_state(bulletin: Bulletin) -> dict[str, Any]:
    return {
        "bulletin_id": str(bulletin.id),
        "is_locked": bulletin.is_locked,
        "locked_by": bulletin.locked_by,
        "locked_at": _format_datetime(bulletin.locked_at),
        "status": bulletin.status.value,
    }


def acquire(
    db: Session,
    *,
    bulletin_id: Any,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Lock a bulletin for ``actor``.

    Raises ConflictError when another actor holds the lock. Re-acquiring a
    lock the actor already holds refreshes ``locked_at``.
    """
    clock = clock or default_clock
    bulletin = get_bulletin(db, bulletin_id)
    now = clock.now_utc()
    db.flush()

    if not _try_insert_lock(db, bulletin.id, actor.id, now):
        holder = db.execute(
            select(BulletinLock.locked_by).where(BulletinLock.bulletin_id == bulletin.id)
        ).scalar_one_or_none()
        if holder is None:
            # Released between our insert and the read; one more attempt
            if not _try_insert_lock(db, bulletin.id, actor.id, now):
                raise ConflictError(
                    "Bulletin lock is contended", entity_type="bulletin", entity_id=bulletin.id
                )
        elif holder != actor.id:
            raise ConflictError(
                f"Bulletin is already locked by {holder}",
                entity_type="bulletin",
                entity_id=bulletin.id,
                details={"locked_by": holder},
            )
        else:
            db.execute(
                update(BulletinLock)
                .where(BulletinLock.bulletin_id == bulletin.id, BulletinLock.locked_by == actor.id)
                .values(locked_at=now)
            )

    db.expire(bulletin, ["lock"])
    bulletin.status = BulletinStatus.LOCKED
    db.flush()

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.LOCK,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Locked bulletin: {bulletin.title}",
        clock=clock,
    )
    logger.info("lock_acquired", bulletin_id=str(bulletin.id), actor_id=actor.id)
    return lock_state(bulletin)


def release(
    db: Session,
    *,
    bulletin_id: Any,
    actor: Actor,
    reset_status: bool = False,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Release a bulletin lock.

    Raises ForbiddenError unless ``actor`` holds the lock or has an override
    role. ``reset_status`` (explicit unlock) returns the bulletin to ACTIVE.
    Releasing an unlocked bulletin succeeds without changes.
    Bulletins in the trash can still be unlocked so they become purgeable.
    """
    clock = clock or default_clock
    bulletin = get_bulletin(db, bulletin_id, include_deleted=True)
    holder = bulletin.locked_by

    if holder is None:
        return lock_state(bulletin)

    forced = holder != actor.id
    if forced and not actor.has_role(settings.lock_override_roles):
        raise ForbiddenError(
            f"Bulletin is locked by {holder}; only the holder or an override role can unlock it",
            entity_type="bulletin",
            entity_id=bulletin.id,
            details={"locked_by": holder},
        )

    result = db.execute(
        delete(BulletinLock).where(
            BulletinLock.bulletin_id == bulletin.id, BulletinLock.locked_by == holder
        )
    )
    if result.rowcount != 1:
        raise ConflictError(
            "Bulletin lock changed while releasing", entity_type="bulletin", entity_id=bulletin.id
        )
    db.expire(bulletin, ["lock"])
    if reset_status:
        bulletin.status = BulletinStatus.ACTIVE
    db.flush()

    description = f"Unlocked bulletin: {bulletin.title}"
    if forced:
        description = f"Force-unlocked bulletin held by {holder}: {bulletin.title}"
    activity.record(
        db,
        actor=actor,
        action=ActivityAction.UNLOCK,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=description,
        old_value={"locked_by": holder},
        clock=clock,
    )
    logger.info("lock_released", bulletin_id=str(bulletin.id), actor_id=actor.id, forced=forced)
    return lock_state(bulletin)


def ensure_editable(db: Session, bulletin: Bulletin, actor: Actor) -> None:
    """Raise LockedError if another actor holds the bulletin's lock.

    Override roles are not exempt: they must force-unlock before editing.
    """
    db.expire(bulletin, ["lock"])
    holder = bulletin.locked_by
    if holder is not None and holder != actor.id:
        raise LockedError(
            f"Bulletin is locked by {holder}",
            entity_type="bulletin",
            entity_id=bulletin.id,
            details={"locked_by": holder},
        )


__all__ = ["acquire", "release", "ensure_editable", "lock_state"]
