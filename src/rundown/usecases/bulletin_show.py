from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..engine import sequence
from ..engine.lookup import get_bulletin
from .serializers import bulletin_to_dict, rows_to_dicts, segment_to_dict


def show_bulletin(
    db: Session,
    *,
    bulletin_id: str,
    include_segments: bool = False,
) -> dict[str, Any]:
    """Return a bulletin with its live rows in running order.

    Raises NotFoundError if the bulletin does not exist or is in the trash.
    """
    bulletin = get_bulletin(db, bulletin_id)
    rows = sequence.live_rows(db, bulletin.id)

    result = bulletin_to_dict(bulletin)
    result["rows"] = rows_to_dicts(bulletin, rows)
    if include_segments:
        for payload, row in zip(result["rows"], rows, strict=True):
            payload["segments"] = [segment_to_dict(s) for s in row.segments]
    return result


__all__ = ["show_bulletin"]
