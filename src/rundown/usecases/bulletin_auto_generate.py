from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import Bulletin
from ..engine import activity
from ..engine.clock import Clock, default_clock
from ..infra.exceptions import ForbiddenError
from ..infra.logging import get_logger
from ..infra.settings import settings
from ..shared.types import ActivityAction
from .bulletin_add import add_bulletin, parse_air_date

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScheduleSlot:
    start_time: str
    title: str
    duration_secs: int = 1800


DAY_SCHEDULE: tuple[ScheduleSlot, ...] = (
    ScheduleSlot("06:00", "6AM News"),
    ScheduleSlot("07:00", "7AM News"),
    ScheduleSlot("08:00", "8AM News"),
    ScheduleSlot("09:00", "9AM News"),
    ScheduleSlot("11:00", "11AM News"),
    ScheduleSlot("12:00", "12PM News"),
    ScheduleSlot("13:00", "1PM News"),
    ScheduleSlot("15:00", "3PM News"),
    ScheduleSlot("17:00", "5PM News", 2700),
    ScheduleSlot("19:00", "7PM News", 3600),
    ScheduleSlot("21:00", "9PM News"),
    ScheduleSlot("22:00", "10PM News"),
    ScheduleSlot("23:00", "11PM News"),
)

# Planned duration -> skeleton used to seed the bulletin
TEMPLATE_BY_DURATION = {
    1800: "standard-30",
    2700: "extended-45",
    3600: "prime-time-60",
}


def auto_generate(
    db: Session,
    *,
    air_date: str,
    actor: Actor,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Create the standard day of bulletins, each seeded from its template.

    Start times that already have a live bulletin that day are skipped.
    """
    clock = clock or default_clock
    if not actor.has_role(settings.scheduler_roles):
        raise ForbiddenError(f"Role {actor.role.value} cannot auto-generate bulletins")

    day = parse_air_date(air_date)
    existing_times = {
        start
        for (start,) in db.query(Bulletin.start_time).filter(
            Bulletin.air_date == day, Bulletin.deleted_at.is_(None)
        )
    }

    created: list[dict[str, Any]] = []
    skipped: list[str] = []
    for slot in DAY_SCHEDULE:
        if slot.start_time in existing_times:
            skipped.append(slot.title)
            continue
        created.append(
            add_bulletin(
                db,
                actor=actor,
                title=slot.title,
                air_date=day,
                start_time=slot.start_time,
                planned_duration_secs=slot.duration_secs,
                template_id=TEMPLATE_BY_DURATION.get(slot.duration_secs, "standard-30"),
                clock=clock,
            )
        )

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.AUTO_GENERATE,
        entity_type="bulletin",
        entity_id=None,
        description=f"Auto-generated {len(created)} bulletins for {day.isoformat()}",
        new_value={"created": [c["title"] for c in created], "skipped": skipped},
        clock=clock,
    )
    logger.info("bulletins_auto_generated", air_date=day.isoformat(), created=len(created), skipped=len(skipped))
    return {
        "air_date": day.isoformat(),
        "created": len(created),
        "skipped": len(skipped),
        "skipped_titles": skipped,
        "bulletins": [
            {"id": c["id"], "title": c["title"], "start_time": c["start_time"], "status": c["status"]}
            for c in created
        ],
    }


__all__ = ["auto_generate", "DAY_SCHEDULE", "TEMPLATE_BY_DURATION"]
