from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import Bulletin
from ..engine import activity, templates
from ..engine.clock import Clock, default_clock
from ..infra.exceptions import ValidationError
from ..infra.settings import settings
from ..shared.types import ActivityAction, BulletinStatus
from .serializers import bulletin_to_dict


def parse_air_date(value: str | date) -> date:
    """Validate and parse date string in YYYY-MM-DD format.

    Raises ValidationError if format is invalid.
    """
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid date format '{value}'. Use YYYY-MM-DD") from e


def normalize_clock_time(value: str, name: str) -> str:
    """Validate an ``HH:MM`` wall-clock time and return it zero-padded."""
    parts = (value or "").strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValidationError(f"Invalid {name} '{value}'. Use HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid {name} '{value}'. Use HH:MM")
    return f"{hours:02d}:{minutes:02d}"


def next_day_position(db: Session, air_date: date) -> int:
    current_max = (
        db.query(func.max(Bulletin.sort_order))
        .filter(Bulletin.air_date == air_date, Bulletin.deleted_at.is_(None))
        .scalar()
    )
    return 0 if current_max is None else current_max + 1


def add_bulletin(
    db: Session,
    *,
    actor: Actor,
    title: str,
    air_date: str | date,
    start_time: str,
    end_time: str | None = None,
    planned_duration_secs: int | None = None,
    subtitle: str | None = None,
    code: str | None = None,
    producer_id: str | None = None,
    notes: str | None = None,
    template_id: str | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Create a Bulletin and return a contract-aligned dict.

    Args:
        db: Database session
        actor: Creating actor
        title: Bulletin title (required, non-empty)
        air_date: Air date in YYYY-MM-DD format
        start_time: Scheduled start in HH:MM
        end_time: Scheduled end in HH:MM (optional)
        planned_duration_secs: Planned air duration; defaults to the template's
            duration, then to DEFAULT_PLANNED_DURATION_SECS
        template_id: Optional template to seed the rundown with

    Returns:
        Dictionary with bulletin details (and template summary when seeded)

    Raises:
        ValidationError: If validation fails
    """
    clock = clock or default_clock
    if not title or not title.strip():
        raise ValidationError("Bulletin title is required")

    parsed_date = parse_air_date(air_date)
    parsed_start = normalize_clock_time(start_time, "start_time")
    parsed_end = normalize_clock_time(end_time, "end_time") if end_time else None

    template = templates.get_template(template_id) if template_id else None
    if planned_duration_secs is None:
        planned_duration_secs = template.duration_secs if template else settings.default_planned_duration_secs
    if planned_duration_secs <= 0:
        raise ValidationError("planned_duration_secs must be > 0")

    bulletin = Bulletin(
        title=title.strip(),
        subtitle=subtitle,
        code=code,
        air_date=parsed_date,
        start_time=parsed_start,
        end_time=parsed_end,
        planned_duration_secs=planned_duration_secs,
        timing_variance_secs=planned_duration_secs,
        status=BulletinStatus.PLANNING,
        sort_order=next_day_position(db, parsed_date),
        producer_id=producer_id,
        notes=notes,
        created_by=actor.id,
    )
    db.add(bulletin)
    db.flush()

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.BULLETIN_CREATE,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Created bulletin: {bulletin.title}",
        clock=clock,
    )

    result = bulletin_to_dict(bulletin)
    if template is not None:
        summary = templates.generate(db, bulletin_id=bulletin.id, template_id=template.id, actor=actor, clock=clock)
        result = bulletin_to_dict(bulletin)
        result["template"] = summary
    return result


__all__ = ["add_bulletin", "parse_air_date", "normalize_clock_time", "next_day_position"]
