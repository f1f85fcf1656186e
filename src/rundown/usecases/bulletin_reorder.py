from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import activity
from ..engine.clock import Clock, default_clock
from ..engine.lookup import get_bulletin
from ..infra.exceptions import ForbiddenError, ValidationError
from ..infra.settings import settings
from ..shared.types import ActivityAction
from .serializers import bulletin_to_dict


def reorder_bulletins(
    db: Session,
    *,
    bulletin_ids: list[str],
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Set same-day running order: position in ``bulletin_ids`` becomes ``sort_order``.

    Raises:
        ForbiddenError: actor lacks a bulletin-ordering role
        NotFoundError: an id does not name a live bulletin
        ValidationError: empty list, duplicates, or bulletins from different days
    """
    clock = clock or default_clock
    if not actor.has_role(settings.bulletin_order_roles):
        raise ForbiddenError(f"Role {actor.role.value} cannot reorder bulletins")
    if not bulletin_ids:
        raise ValidationError("bulletin_ids must be a non-empty list")

    bulletins = [get_bulletin(db, bulletin_id) for bulletin_id in bulletin_ids]
    if len({b.id for b in bulletins}) != len(bulletins):
        raise ValidationError("bulletin_ids contains duplicates")
    air_dates = {b.air_date for b in bulletins}
    if len(air_dates) != 1:
        raise ValidationError("Bulletins must share the same air date")

    for position, bulletin in enumerate(bulletins):
        bulletin.sort_order = position
    db.flush()

    order = [str(b.id) for b in bulletins]
    activity.record(
        db,
        actor=actor,
        action=ActivityAction.BULLETIN_REORDER,
        entity_type="bulletin",
        entity_id=None,
        description=f"Reordered {len(order)} bulletins for {bulletins[0].air_date.isoformat()}",
        new_value=order,
        clock=clock,
    )
    return {"count": len(order), "order": order, "bulletins": [bulletin_to_dict(b) for b in bulletins]}


__all__ = ["reorder_bulletins"]
