from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import sequence
from ..engine.clock import Clock
from ..engine.lookup import get_bulletin
from ..infra.exceptions import ValidationError
from .serializers import rows_to_dicts


def _to_move(item: dict[str, Any]) -> sequence.RowMove:
    if not isinstance(item, dict) or "id" not in item or "sort_order" not in item:
        raise ValidationError("Each reorder entry needs 'id' and 'sort_order'")
    return sequence.RowMove(
        row_id=item["id"],
        sort_order=item["sort_order"],
        page_code=item.get("page_code"),
        block_code=item.get("block_code"),
    )


def reorder_rows(
    db: Session,
    *,
    bulletin_id: str,
    rows: list[dict[str, Any]],
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Reorder rows from ``[{"id", "sort_order", "page_code"?, "block_code"?}, ...]``.

    Returns the renumbered rundown and the recalculated totals.
    """
    moves = [_to_move(item) for item in rows]
    result = sequence.reorder_rows(db, bulletin_id=bulletin_id, moves=moves, actor=actor, clock=clock)
    bulletin = get_bulletin(db, bulletin_id)
    return {
        "bulletin_id": str(bulletin.id),
        "rows": rows_to_dicts(bulletin, result.rows),
        "totals": result.totals.to_dict() if result.totals else None,
    }


__all__ = ["reorder_rows"]
