from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.entities import Bulletin
from ..infra.exceptions import ValidationError
from ..shared.types import BulletinStatus
from .bulletin_add import parse_air_date
from .serializers import bulletin_to_dict


def _parse_status(status: str) -> BulletinStatus:
    try:
        return BulletinStatus(status.upper())
    except ValueError as e:
        valid = ", ".join(s.value for s in BulletinStatus)
        raise ValidationError(f"Invalid status '{status}'. Valid values: {valid}") from e


def list_bulletins(
    db: Session,
    *,
    air_date: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """List live bulletins ordered by air date, day position, then start time."""
    query = db.query(Bulletin).filter(Bulletin.deleted_at.is_(None))
    if air_date:
        query = query.filter(Bulletin.air_date == parse_air_date(air_date))
    if status:
        query = query.filter(Bulletin.status == _parse_status(status))

    bulletins = query.order_by(Bulletin.air_date, Bulletin.sort_order, Bulletin.start_time).all()
    return [bulletin_to_dict(b) for b in bulletins]


__all__ = ["list_bulletins"]
