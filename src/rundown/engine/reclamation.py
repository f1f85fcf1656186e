"""
Reclamation Scheduler.

Soft delete tombstones a row or bulletin with timestamp and actor. Tombstoned
items stay listed in the trash with ``days_left`` until they are purged.
``purge_expired`` is the only path that irreversibly removes expired items;
``purge_now`` is the privileged per-item variant that ignores age.

Deletion order is always segments, then rows, then the bulletin.

Lifecycle: PurgeDaemon.start()/stop() run purge_expired on a background
thread; run_once() can be called manually for testing.
"""

from __future__ import annotations

import math
import threading
import uuid as uuid_module
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import Bulletin, BulletinLock, RowSegment, RundownRow
from ..infra.exceptions import ForbiddenError, LockedError, NotFoundError, ValidationError
from ..infra.logging import get_logger
from ..infra.settings import settings
from ..shared.types import ActivityAction, TrashEntityType, UserRole
from . import activity, locks, sequence, timing
from .clock import Clock, default_clock, ensure_utc
from .lookup import get_bulletin, get_row

logger = get_logger(__name__)

SYSTEM_ACTOR = Actor(id="system", role=UserRole.ADMIN)

_SECONDS_PER_DAY = 86400

_purge_guard = threading.Lock()


@dataclass
class PurgeReport:
    purged_bulletins: list[str] = field(default_factory=list)
    purged_rows: list[str] = field(default_factory=list)
    skipped_locked: list[str] = field(default_factory=list)
    in_progress: bool = False

    @property
    def purged_count(self) -> int:
        return len(self.purged_bulletins) + len(self.purged_rows)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["purged_count"] = self.purged_count
        return payload


def _format_datetime(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def _entity_type(value: Any) -> TrashEntityType:
    if isinstance(value, TrashEntityType):
        return value
    try:
        return TrashEntityType(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Invalid entity type '{value}'. Use 'bulletin' or 'row'") from e


def retention_window() -> timedelta:
    return timedelta(days=settings.retention_days)


def days_left(deleted_at: datetime, now: datetime) -> int:
    """``ceil(retention - age)`` in days; zero or negative once purge-eligible."""
    remaining = ensure_utc(deleted_at) + retention_window() - ensure_utc(now)
    return math.ceil(remaining.total_seconds() / _SECONDS_PER_DAY)


def is_expired(deleted_at: datetime, now: datetime) -> bool:
    return ensure_utc(now) - ensure_utc(deleted_at) > retention_window()


def soft_delete(
    db: Session,
    *,
    entity_type: Any,
    entity_id: Any,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Tombstone a row (lock-gated, recalculates) or a bulletin (rows purge with it)."""
    clock = clock or default_clock
    kind = _entity_type(entity_type)
    now = clock.now_utc()

    if kind is TrashEntityType.ROW:
        row = get_row(db, entity_id)
        bulletin = get_bulletin(db, row.bulletin_id)
        locks.ensure_editable(db, bulletin, actor)
        row.deleted_at = now
        row.deleted_by = actor.id
        row.last_modified_by = actor.id
        db.flush()
        timing.recalculate(db, bulletin.id)
        activity.record(
            db,
            actor=actor,
            action=ActivityAction.ROW_DELETE,
            entity_type="row",
            entity_id=row.id,
            bulletin_id=bulletin.id,
            row_id=row.id,
            description=f"Moved row to trash: {row.slug or row.page_code}",
            clock=clock,
        )
        target: Any = row
    else:
        bulletin = get_bulletin(db, entity_id)
        bulletin.deleted_at = now
        bulletin.deleted_by = actor.id
        db.flush()
        activity.record(
            db,
            actor=actor,
            action=ActivityAction.BULLETIN_DELETE,
            entity_type="bulletin",
            entity_id=bulletin.id,
            bulletin_id=bulletin.id,
            description=f"Moved bulletin to trash: {bulletin.title}",
            clock=clock,
        )
        target = bulletin

    logger.info("item_tombstoned", entity_type=kind.value, entity_id=str(target.id), actor_id=actor.id)
    return {
        "entity_type": kind.value,
        "id": str(target.id),
        "deleted_at": _format_datetime(target.deleted_at),
        "deleted_by": target.deleted_by,
        "days_left": days_left(target.deleted_at, now),
    }


def _bulletin_trash_entry(bulletin: Bulletin, now: datetime) -> dict[str, Any]:
    return {
        "id": str(bulletin.id),
        "title": bulletin.title,
        "air_date": bulletin.air_date.isoformat() if bulletin.air_date else None,
        "start_time": bulletin.start_time,
        "deleted_at": _format_datetime(bulletin.deleted_at),
        "deleted_by": bulletin.deleted_by,
        "days_left": days_left(bulletin.deleted_at, now),
        "purge_eligible": is_expired(bulletin.deleted_at, now),
    }


def _row_trash_entry(row: RundownRow, now: datetime) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "bulletin_id": str(row.bulletin_id),
        "bulletin_title": row.bulletin.title,
        "slug": row.slug,
        "page_code": row.page_code,
        "row_type": row.row_type.value,
        "deleted_at": _format_datetime(row.deleted_at),
        "deleted_by": row.deleted_by,
        "days_left": days_left(row.deleted_at, now),
        "purge_eligible": is_expired(row.deleted_at, now),
    }


def list_trash(db: Session, *, actor: Actor, clock: Clock | None = None) -> dict[str, Any]:
    """Tombstoned bulletins and rows not yet purged, newest first.

    Actors outside the view-all roles only see items they deleted themselves.
    """
    now = (clock or default_clock).now_utc()
    see_all = actor.has_role(settings.trash_view_all_roles)

    bulletin_query = db.query(Bulletin).filter(Bulletin.deleted_at.is_not(None))
    row_query = db.query(RundownRow).filter(RundownRow.deleted_at.is_not(None))
    if not see_all:
        bulletin_query = bulletin_query.filter(Bulletin.deleted_by == actor.id)
        row_query = row_query.filter(RundownRow.deleted_by == actor.id)

    bulletins = bulletin_query.order_by(Bulletin.deleted_at.desc(), Bulletin.id).all()
    rows = row_query.order_by(RundownRow.deleted_at.desc(), RundownRow.id).all()

    return {
        "retention_days": settings.retention_days,
        "bulletins": [_bulletin_trash_entry(b, now) for b in bulletins],
        "rows": [_row_trash_entry(r, now) for r in rows],
    }


def _delete_row_tree(db: Session, row_ids: list[uuid_module.UUID]) -> None:
    if not row_ids:
        return
    db.execute(
        delete(RowSegment)
        .where(RowSegment.row_id.in_(row_ids))
        .execution_options(synchronize_session="fetch")
    )
    db.execute(
        delete(RundownRow)
        .where(RundownRow.id.in_(row_ids))
        .execution_options(synchronize_session="fetch")
    )


def _purge_bulletin(db: Session, bulletin: Bulletin) -> None:
    row_ids = [row_id for (row_id,) in db.query(RundownRow.id).filter(RundownRow.bulletin_id == bulletin.id)]
    _delete_row_tree(db, row_ids)
    db.execute(
        delete(BulletinLock)
        .where(BulletinLock.bulletin_id == bulletin.id)
        .execution_options(synchronize_session="fetch")
    )
    db.execute(
        delete(Bulletin)
        .where(Bulletin.id == bulletin.id)
        .execution_options(synchronize_session="fetch")
    )


def _purge_row(db: Session, row: RundownRow, actor: Actor) -> None:
    bulletin = row.bulletin
    _delete_row_tree(db, [row.id])
    db.expire(bulletin, ["lock"])
    if bulletin.is_locked and bulletin.locked_by != actor.id:
        # Live rows belong to the holder; the next recalculation closes the gap
        logger.info("purge_resequence_deferred", bulletin_id=str(bulletin.id), locked_by=bulletin.locked_by)
        return
    # Tombstoned rows hold sort positions; close the gap
    sequence.resequence(db, bulletin.id)


def _record_purge(
    db: Session, actor: Actor, kind: TrashEntityType, entity_id: Any, bulletin_id: Any, clock: Clock, reason: str
) -> None:
    activity.record(
        db,
        actor=actor,
        action=ActivityAction.PURGE,
        entity_type=kind.value,
        entity_id=entity_id,
        bulletin_id=bulletin_id,
        row_id=entity_id if kind is TrashEntityType.ROW else None,
        description=f"Permanently deleted {kind.value} ({reason})",
        clock=clock,
    )


def purge_expired(
    db: Session,
    *,
    clock: Clock | None = None,
    actor: Actor | None = None,
) -> PurgeReport:
    """Delete tombstones older than the retention window. Safe to repeat.

    Expired bulletins still holding a lock are skipped. A call made while
    another purge is running returns immediately with ``in_progress`` set.
    """
    clock = clock or default_clock
    actor = actor or SYSTEM_ACTOR
    if not _purge_guard.acquire(blocking=False):
        logger.info("purge_skipped_in_progress")
        return PurgeReport(in_progress=True)

    try:
        now = clock.now_utc()
        cutoff = now - retention_window()
        report = PurgeReport()
        db.flush()

        expired_bulletins = (
            db.query(Bulletin)
            .filter(Bulletin.deleted_at.is_not(None), Bulletin.deleted_at < cutoff)
            .order_by(Bulletin.deleted_at)
            .all()
        )
        for bulletin in expired_bulletins:
            if bulletin.is_locked:
                report.skipped_locked.append(str(bulletin.id))
                logger.warning(
                    "purge_skipped_locked", bulletin_id=str(bulletin.id), locked_by=bulletin.locked_by
                )
                continue
            bulletin_id = bulletin.id
            _purge_bulletin(db, bulletin)
            _record_purge(db, actor, TrashEntityType.BULLETIN, bulletin_id, bulletin_id, clock, "retention expired")
            report.purged_bulletins.append(str(bulletin_id))

        expired_rows = (
            db.query(RundownRow)
            .filter(RundownRow.deleted_at.is_not(None), RundownRow.deleted_at < cutoff)
            .order_by(RundownRow.deleted_at)
            .all()
        )
        for row in expired_rows:
            row_id, bulletin_id = row.id, row.bulletin_id
            _purge_row(db, row, actor)
            _record_purge(db, actor, TrashEntityType.ROW, row_id, bulletin_id, clock, "retention expired")
            report.purged_rows.append(str(row_id))

        db.flush()
        logger.info(
            "purge_completed",
            purged_bulletins=len(report.purged_bulletins),
            purged_rows=len(report.purged_rows),
            skipped_locked=len(report.skipped_locked),
        )
        return report
    finally:
        _purge_guard.release()


def restore(
    db: Session,
    *,
    entity_type: Any,
    entity_id: Any,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Clear the tombstone. Restoring a row does not recalculate its bulletin."""
    clock = clock or default_clock
    kind = _entity_type(entity_type)
    if not actor.has_role(settings.restore_roles):
        raise ForbiddenError(
            f"Role {actor.role.value} cannot restore items", entity_type=kind.value, entity_id=entity_id
        )

    if kind is TrashEntityType.ROW:
        target: Any = get_row(db, entity_id, include_deleted=True)
        bulletin_id = target.bulletin_id
        action = ActivityAction.ROW_RESTORE
        label = target.slug or target.page_code
    else:
        target = get_bulletin(db, entity_id, include_deleted=True)
        bulletin_id = target.id
        action = ActivityAction.BULLETIN_RESTORE
        label = target.title

    if not target.is_deleted:
        raise NotFoundError(kind.value, entity_id, f"{kind.value.capitalize()} '{entity_id}' is not in trash")

    target.deleted_at = None
    target.deleted_by = None
    db.flush()
    activity.record(
        db,
        actor=actor,
        action=action,
        entity_type=kind.value,
        entity_id=target.id,
        bulletin_id=bulletin_id,
        row_id=target.id if kind is TrashEntityType.ROW else None,
        description=f"Restored {kind.value} from trash: {label}",
        clock=clock,
    )
    logger.info("item_restored", entity_type=kind.value, entity_id=str(target.id), actor_id=actor.id)
    return {"entity_type": kind.value, "id": str(target.id), "bulletin_id": str(bulletin_id)}


def purge_now(
    db: Session,
    *,
    entity_type: Any,
    entity_id: Any,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Immediately and permanently delete one tombstoned item, regardless of age."""
    clock = clock or default_clock
    kind = _entity_type(entity_type)
    if not actor.has_role(settings.purge_roles):
        raise ForbiddenError(
            f"Role {actor.role.value} cannot permanently delete items",
            entity_type=kind.value,
            entity_id=entity_id,
        )

    if kind is TrashEntityType.ROW:
        row = get_row(db, entity_id, include_deleted=True)
        if not row.is_deleted:
            raise NotFoundError("row", entity_id, f"Row '{entity_id}' is not in trash")
        row_id, bulletin_id = row.id, row.bulletin_id
        _purge_row(db, row, actor)
        _record_purge(db, actor, kind, row_id, bulletin_id, clock, "immediate")
        purged_id = row_id
    else:
        bulletin = get_bulletin(db, entity_id, include_deleted=True)
        if not bulletin.is_deleted:
            raise NotFoundError("bulletin", entity_id, f"Bulletin '{entity_id}' is not in trash")
        if bulletin.is_locked and bulletin.locked_by != actor.id:
            raise LockedError(
                f"Bulletin is locked by {bulletin.locked_by}",
                entity_type="bulletin",
                entity_id=bulletin.id,
                details={"locked_by": bulletin.locked_by},
            )
        bulletin_id = bulletin.id
        _purge_bulletin(db, bulletin)
        _record_purge(db, actor, kind, bulletin_id, bulletin_id, clock, "immediate")
        purged_id = bulletin_id

    db.flush()
    logger.info("item_purged", entity_type=kind.value, entity_id=str(purged_id), actor_id=actor.id)
    return {"entity_type": kind.value, "id": str(purged_id), "purged": True}


class PurgeDaemon:
    """Runs ``purge_expired`` periodically, each pass in its own unit of work."""

    def __init__(
        self,
        *,
        interval_seconds: float | None = None,
        clock: Clock | None = None,
        session_factory: Callable[[], AbstractContextManager[Session]] | None = None,
    ) -> None:
        if session_factory is None:
            from ..infra.uow import session as session_factory
        self._interval_s = interval_seconds if interval_seconds is not None else settings.purge_interval_seconds
        self._clock = clock or default_clock
        self._session_factory = session_factory
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_report: PurgeReport | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> PurgeReport:
        with self._session_factory() as db:
            report = purge_expired(db, clock=self._clock)
        self.last_report = report
        return report

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="rundown-purge", daemon=True)
        self._thread.start()
        logger.info("purge_daemon_started", interval_seconds=self._interval_s)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval_s + 5)
            self._thread = None
        logger.info("purge_daemon_stopped")

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("purge_daemon_pass_failed")
            self._stop_event.wait(timeout=self._interval_s)


__all__ = [
    "PurgeReport",
    "PurgeDaemon",
    "SYSTEM_ACTOR",
    "days_left",
    "is_expired",
    "soft_delete",
    "list_trash",
    "purge_expired",
    "restore",
    "purge_now",
]
