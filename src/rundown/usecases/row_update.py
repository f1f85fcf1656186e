from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import sequence
from ..engine.clock import Clock
from ..shared.patch import RowPatch
from .serializers import row_to_dict


def update_row(
    db: Session,
    *,
    row_id: str,
    patch: RowPatch,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Apply a partial row update; timing fields trigger a bulletin recalculation."""
    row = sequence.update_row(db, row_id=row_id, patch=patch, actor=actor, clock=clock)
    return row_to_dict(row)


__all__ = ["update_row"]
