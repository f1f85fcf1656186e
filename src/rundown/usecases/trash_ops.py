from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import activity, reclamation, timing
from ..engine.clock import Clock, default_clock
from ..shared.types import ActivityAction


def delete_item(
    db: Session,
    *,
    entity_type: str,
    entity_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Move a bulletin or row to the trash."""
    return reclamation.soft_delete(db, entity_type=entity_type, entity_id=entity_id, actor=actor, clock=clock)


def list_trash(db: Session, *, actor: Actor, clock: Clock | None = None) -> dict[str, Any]:
    return reclamation.list_trash(db, actor=actor, clock=clock)


def restore_item(
    db: Session,
    *,
    entity_type: str,
    entity_id: str,
    actor: Actor,
    recalculate: bool = False,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Restore a tombstoned item.

    Restore alone leaves the bulletin totals untouched; pass ``recalculate``
    to refresh them in the same transaction.
    """
    clock = clock or default_clock
    result = reclamation.restore(db, entity_type=entity_type, entity_id=entity_id, actor=actor, clock=clock)
    if recalculate:
        totals = timing.recalculate(db, result["bulletin_id"])
        activity.record(
            db,
            actor=actor,
            action=ActivityAction.RECALCULATE,
            entity_type="bulletin",
            entity_id=totals.bulletin_id,
            bulletin_id=totals.bulletin_id,
            description=f"Recalculated timing: {totals.variance_display}",
            new_value={"total_est_duration_secs": totals.total_est_duration_secs, "variance": totals.timing_variance_secs},
            clock=clock,
        )
        result["totals"] = totals.to_dict()
    return result


def purge_expired(db: Session, *, clock: Clock | None = None, actor: Actor | None = None) -> dict[str, Any]:
    return reclamation.purge_expired(db, clock=clock, actor=actor).to_dict()


def purge_item(
    db: Session,
    *,
    entity_type: str,
    entity_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Permanently delete one item from the trash, regardless of age."""
    return reclamation.purge_now(db, entity_type=entity_type, entity_id=entity_id, actor=actor, clock=clock)


__all__ = ["delete_item", "list_trash", "restore_item", "purge_expired", "purge_item"]
