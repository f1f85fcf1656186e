from __future__ import annotations

from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import activity, locks, timing
from ..engine.clock import Clock, default_clock
from ..engine.lookup import get_bulletin
from ..infra.exceptions import ValidationError
from ..shared.patch import BulletinPatch
from ..shared.types import ActivityAction, BulletinStatus
from .bulletin_add import normalize_clock_time, parse_air_date
from .serializers import bulletin_to_dict

# Lock state is owned by the lock manager
_LOCK_OWNED_STATUSES = {BulletinStatus.LOCKED}


def _normalize(patch: BulletinPatch) -> BulletinPatch:
    values = patch.set_fields()
    normalized: dict[str, Any] = {}

    if "title" in values:
        if not values["title"] or not str(values["title"]).strip():
            raise ValidationError("Bulletin title cannot be empty")
        normalized["title"] = str(values["title"]).strip()
    if "air_date" in values:
        normalized["air_date"] = parse_air_date(values["air_date"])
    if "start_time" in values:
        normalized["start_time"] = normalize_clock_time(values["start_time"], "start_time")
    if values.get("end_time") is not None:
        normalized["end_time"] = normalize_clock_time(values["end_time"], "end_time")
    if "planned_duration_secs" in values:
        planned = values["planned_duration_secs"]
        if isinstance(planned, bool) or not isinstance(planned, int) or planned <= 0:
            raise ValidationError("planned_duration_secs must be a positive whole number of seconds")
    if "status" in values:
        try:
            status = BulletinStatus(str(values["status"]).upper())
        except ValueError as e:
            raise ValidationError(f"Invalid status '{values['status']}'") from e
        if status in _LOCK_OWNED_STATUSES:
            raise ValidationError("Use the lock command to lock a bulletin")
        normalized["status"] = status

    return replace(patch, **normalized) if normalized else patch


def update_bulletin(
    db: Session,
    *,
    bulletin_id: str,
    patch: BulletinPatch,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Apply the set fields of ``patch`` to a bulletin.

    Lock-gated. A planned duration change recalculates the bulletin totals.

    Raises:
        NotFoundError: bulletin absent or in trash
        LockedError: bulletin locked by another actor
        ValidationError: a field failed validation
    """
    clock = clock or default_clock
    bulletin = get_bulletin(db, bulletin_id)
    locks.ensure_editable(db, bulletin, actor)

    changes = _normalize(patch).apply_to(bulletin)
    if not changes:
        return bulletin_to_dict(bulletin)
    db.flush()

    if "planned_duration_secs" in changes:
        timing.recalculate(db, bulletin.id)

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.BULLETIN_UPDATE,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Updated bulletin {bulletin.title}: {', '.join(sorted(changes))}",
        old_value={name: old for name, (old, _) in changes.items()},
        new_value={name: new for name, (_, new) in changes.items()},
        clock=clock,
    )
    return bulletin_to_dict(bulletin)


__all__ = ["update_bulletin"]
