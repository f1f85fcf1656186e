from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import locks
from ..engine.clock import Clock


def lock_bulletin(
    db: Session,
    *,
    bulletin_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Acquire the bulletin lock; returns the updated lock state.

    Raises ConflictError if another actor holds it.
    """
    return locks.acquire(db, bulletin_id=bulletin_id, actor=actor, clock=clock)


def unlock_bulletin(
    db: Session,
    *,
    bulletin_id: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Explicit unlock: releases the lock and returns the bulletin to ACTIVE.

    Raises ForbiddenError unless the actor holds the lock or has an override role.
    """
    return locks.release(db, bulletin_id=bulletin_id, actor=actor, reset_status=True, clock=clock)


__all__ = ["lock_bulletin", "unlock_bulletin"]
