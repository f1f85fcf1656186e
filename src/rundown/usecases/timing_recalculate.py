from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import activity, timing
from ..engine.clock import Clock, default_clock
from ..engine.lookup import get_bulletin
from ..shared.types import ActivityAction


def recalculate_timing(
    db: Session,
    *,
    bulletin_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Force a full timing pass over a bulletin and return its totals.

    Not lock-gated: recalculation only derives values from current rows.
    """
    clock = clock or default_clock
    bulletin = get_bulletin(db, bulletin_id)
    totals = timing.recalculate(db, bulletin.id)
    activity.record(
        db,
        actor=actor,
        action=ActivityAction.RECALCULATE,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Recalculated timing: {totals.variance_display}",
        new_value={"total_est_duration_secs": totals.total_est_duration_secs, "variance": totals.timing_variance_secs},
        clock=clock,
    )
    return totals.to_dict()


__all__ = ["recalculate_timing"]
