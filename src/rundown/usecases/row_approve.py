from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import activity, locks
from ..engine.clock import Clock, default_clock
from ..engine.lookup import get_bulletin, get_row
from ..infra.exceptions import ForbiddenError, ValidationError
from ..infra.logging import get_logger
from ..infra.settings import settings
from ..shared.types import ActivityAction, RowStatus
from .serializers import row_to_dict

logger = get_logger(__name__)


def approve_row(
    db: Session,
    *,
    row_id: str,
    actor: Actor,
    approved: bool = True,
    reason: str | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Set or clear a row's final approval.

    Approval moves the row to APPROVED and stamps the approver; clearing it
    returns the row to READY. Terminal rows cannot change approval.

    Raises:
        ForbiddenError: actor lacks an approver role
        LockedError: bulletin locked by another actor
        ValidationError: row is KILLED or AIRED
    """
    clock = clock or default_clock
    if not actor.has_role(settings.approver_roles):
        raise ForbiddenError(f"Role {actor.role.value} cannot approve rows", entity_type="row", entity_id=row_id)

    row = get_row(db, row_id)
    bulletin = get_bulletin(db, row.bulletin_id)
    locks.ensure_editable(db, bulletin, actor)
    if row.status.is_terminal:
        raise ValidationError(f"Row status {row.status.value} is terminal", entity_type="row", entity_id=row.id)

    old = {"final_approval": row.final_approval, "status": row.status.value}
    if approved:
        row.final_approval = True
        row.approved_by = actor.id
        row.approved_at = clock.now_utc()
        row.status = RowStatus.APPROVED
        action = ActivityAction.ROW_APPROVE
    else:
        row.final_approval = False
        row.approved_by = None
        row.approved_at = None
        row.status = RowStatus.READY
        action = ActivityAction.ROW_UNAPPROVE
    row.last_modified_by = actor.id
    db.flush()

    verb = "Approved" if approved else "Withdrew approval for"
    description = f"{verb} row {row.page_code}"
    if reason:
        description = f"{description}: {reason}"
    activity.record(
        db,
        actor=actor,
        action=action,
        entity_type="row",
        entity_id=row.id,
        bulletin_id=bulletin.id,
        row_id=row.id,
        description=description,
        old_value=old,
        new_value={"final_approval": row.final_approval, "status": row.status.value},
        clock=clock,
    )
    logger.info("row_approval_changed", row_id=str(row.id), approved=approved, actor_id=actor.id)
    return row_to_dict(row)


__all__ = ["approve_row"]
