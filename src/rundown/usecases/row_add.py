from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..engine import sequence
from ..engine.clock import Clock
from ..infra.exceptions import ValidationError
from ..shared.timecode import parse_duration
from ..shared.types import RowStatus, RowType
from .serializers import row_to_dict


def _duration(value: str | int | None, name: str) -> int | None:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name} '{value}'. Use seconds or M:SS") from e


def add_row(
    db: Session,
    *,
    bulletin_id: str,
    actor: Actor,
    block_code: str = "A",
    row_type: str | RowType = RowType.STORY,
    slug: str | None = None,
    segment: str | None = None,
    status: str | RowStatus = RowStatus.BLANK,
    est_duration: str | int | None = None,
    actual_duration: str | int | None = None,
    is_float: bool = False,
    script: str | None = None,
    notes: str | None = None,
    reporter_id: str | None = None,
    story_producer_id: str | None = None,
    after_row_id: str | None = None,
    position: int | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Insert a row into a bulletin and return it with refreshed timing.

    Durations accept whole seconds or ``M:SS`` text. Without ``after_row_id``
    or ``position`` the row is appended at the end of the rundown.

    Raises:
        NotFoundError: bulletin or anchor row absent
        LockedError: bulletin locked by another actor
        ValidationError: bad duration, type, status, block or position
    """
    est = _duration(est_duration, "est_duration")
    fields = sequence.RowFields(
        row_type=row_type,
        slug=slug,
        segment=segment,
        status=status,
        est_duration_secs=90 if est is None else est,
        actual_duration_secs=_duration(actual_duration, "actual_duration"),
        is_float=is_float,
        script=script,
        notes=notes,
        reporter_id=reporter_id,
        story_producer_id=story_producer_id,
    )
    row = sequence.insert_row(
        db,
        bulletin_id=bulletin_id,
        block_code=block_code,
        actor=actor,
        after_row_id=after_row_id,
        position=position,
        fields=fields,
        clock=clock,
    )
    return row_to_dict(row)


__all__ = ["add_row"]
