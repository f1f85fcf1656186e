"""
Template Generator.

Seeds an empty bulletin with a standard skeleton: an opening block, numbered
commercial breaks leading each later block, blank story slots, and the
closing salutation and titles. Rows are inserted through the sequence store's
renumbering so page codes follow the same policy as every other insert.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from ..domain.actor import Actor
from ..domain.entities import RundownRow
from ..infra.exceptions import ValidationError
from ..infra.logging import get_logger
from ..shared.types import ActivityAction, RowStatus, RowType
from . import activity, locks, sequence, timing
from .clock import Clock, default_clock
from .lookup import get_bulletin

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockSpec:
    block: str
    slots: int
    has_open: bool = False
    has_welcome: bool = False
    has_break_link: bool = False
    has_close: bool = False


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    duration_secs: int
    structure: tuple[BlockSpec, ...]

    @property
    def blocks(self) -> list[str]:
        return [spec.block for spec in self.structure]

    @property
    def commercial_breaks(self) -> int:
        return len(self.structure) - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration_secs": self.duration_secs,
            "blocks": self.blocks,
            "commercial_breaks": self.commercial_breaks,
            "structure": [
                {
                    "block": spec.block,
                    "slots": spec.slots,
                    "has_open": spec.has_open,
                    "has_welcome": spec.has_welcome,
                    "has_break_link": spec.has_break_link,
                    "has_close": spec.has_close,
                }
                for spec in self.structure
            ],
        }


@dataclass(frozen=True)
class TemplateDurations:
    """Default durations (seconds) for skeleton rows."""

    opening: int = 15
    welcome: int = 12
    story: int = 90
    commercial: int = 180
    break_link: int = 8
    salutation: int = 15
    closing: int = 45


@dataclass(frozen=True)
class RowSpec:
    block_code: str
    row_type: RowType
    slug: str | None
    est_duration_secs: int
    status: RowStatus
    segment: str | None = None
    break_number: int | None = None


TEMPLATES: dict[str, Template] = {
    t.id: t
    for t in (
        Template(
            id="standard-30",
            name="Standard 30-min",
            description="Standard 30-minute bulletin with 4 blocks and 3 commercial breaks",
            duration_secs=1800,
            structure=(
                BlockSpec("A", 7, has_open=True, has_welcome=True),
                BlockSpec("B", 2, has_break_link=True),
                BlockSpec("C", 2, has_break_link=True),
                BlockSpec("D", 4, has_close=True),
            ),
        ),
        Template(
            id="extended-45",
            name="Extended 45-min",
            description="Extended 45-minute bulletin with 5 blocks and 4 commercial breaks",
            duration_secs=2700,
            structure=(
                BlockSpec("A", 8, has_open=True, has_welcome=True),
                BlockSpec("B", 3, has_break_link=True),
                BlockSpec("C", 3, has_break_link=True),
                BlockSpec("D", 3, has_break_link=True),
                BlockSpec("E", 4, has_close=True),
            ),
        ),
        Template(
            id="prime-time-60",
            name="Prime Time 60-min",
            description="Prime time 60-minute bulletin with 6 blocks and 5 commercial breaks",
            duration_secs=3600,
            structure=(
                BlockSpec("A", 10, has_open=True, has_welcome=True),
                BlockSpec("B", 4, has_break_link=True),
                BlockSpec("C", 4, has_break_link=True),
                BlockSpec("D", 4, has_break_link=True),
                BlockSpec("E", 4, has_break_link=True),
                BlockSpec("F", 5, has_close=True),
            ),
        ),
        Template(
            id="breaking-15",
            name="Breaking News 15-min",
            description="Short breaking news bulletin with 2 blocks",
            duration_secs=900,
            structure=(
                BlockSpec("A", 4, has_open=True),
                BlockSpec("B", 3, has_close=True),
            ),
        ),
        Template(
            id="sports-20",
            name="Sports 20-min",
            description="Sports bulletin with 3 blocks and 2 commercial breaks",
            duration_secs=1200,
            structure=(
                BlockSpec("S", 5, has_open=True),
                BlockSpec("T", 4, has_break_link=True),
                BlockSpec("Z", 4, has_close=True),
            ),
        ),
    )
}

DEFAULT_TEMPLATE_ID = "standard-30"


def list_templates() -> list[Template]:
    return list(TEMPLATES.values())


def get_template(template_id: str) -> Template:
    template = TEMPLATES.get(template_id)
    if template is None:
        raise ValidationError(
            f"Unknown template '{template_id}'. Valid values: {', '.join(sorted(TEMPLATES))}"
        )
    return template


def expand_template(template: Template, durations: TemplateDurations | None = None) -> list[RowSpec]:
    """The template skeleton as ordered row specs."""
    durations = durations or TemplateDurations()
    specs: list[RowSpec] = []
    break_number = 0

    for index, block in enumerate(template.structure):
        code = block.block
        if index > 0:
            break_number += 1
            specs.append(
                RowSpec(
                    code,
                    RowType.COMMERCIAL,
                    f"COMMERCIAL BREAK {break_number:02d}",
                    durations.commercial,
                    RowStatus.READY,
                    break_number=break_number,
                )
            )
            if block.has_break_link:
                specs.append(
                    RowSpec(
                        code,
                        RowType.BREAK_LINK,
                        f"WELCOME BACK {break_number}",
                        durations.break_link,
                        RowStatus.READY,
                    )
                )
        if block.has_open:
            specs.append(RowSpec(code, RowType.OPEN, "OPENING TITLES", durations.opening, RowStatus.READY))
        if block.has_welcome:
            specs.append(RowSpec(code, RowType.WELCOME, "WELCOME", durations.welcome, RowStatus.READY))
        for _ in range(block.slots):
            specs.append(
                RowSpec(code, RowType.STORY, None, durations.story, RowStatus.BLANK, segment="LIVE")
            )
        if block.has_close:
            specs.append(
                RowSpec(code, RowType.WELCOME, "CLOSING SALUTATION", durations.salutation, RowStatus.READY)
            )
            specs.append(RowSpec(code, RowType.CLOSE, "CLOSING TITLES", durations.closing, RowStatus.READY))

    return specs


def generate(
    db: Session,
    *,
    bulletin_id: Any,
    template_id: str,
    actor: Actor,
    durations: TemplateDurations | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Insert a template skeleton into an empty bulletin and recalculate it."""
    clock = clock or default_clock
    template = get_template(template_id)
    bulletin = get_bulletin(db, bulletin_id)
    locks.ensure_editable(db, bulletin, actor)

    db.flush()
    if sequence.next_sort_order(db, bulletin.id) != 0:
        raise ValidationError(
            "Templates can only seed a bulletin without rows", entity_type="bulletin", entity_id=bulletin.id
        )

    specs = expand_template(template, durations)
    for sort_order, spec in enumerate(specs):
        db.add(
            RundownRow(
                bulletin_id=bulletin.id,
                block_code=spec.block_code,
                sort_order=sort_order,
                row_type=spec.row_type,
                slug=spec.slug,
                segment=spec.segment,
                status=spec.status,
                est_duration_secs=spec.est_duration_secs,
                break_number=spec.break_number,
                created_by=actor.id,
                last_modified_by=actor.id,
            )
        )
    db.flush()
    totals = timing.recalculate(db, bulletin.id)

    activity.record(
        db,
        actor=actor,
        action=ActivityAction.TEMPLATE_GENERATE,
        entity_type="bulletin",
        entity_id=bulletin.id,
        bulletin_id=bulletin.id,
        description=f"Generated {template.id} rundown ({len(specs)} rows)",
        clock=clock,
    )
    logger.info("template_generated", bulletin_id=str(bulletin.id), template_id=template.id, rows=len(specs))
    return {"template_id": template.id, "rows_created": len(specs), "totals": totals.to_dict()}


__all__ = [
    "BlockSpec",
    "Template",
    "TemplateDurations",
    "RowSpec",
    "TEMPLATES",
    "DEFAULT_TEMPLATE_ID",
    "list_templates",
    "get_template",
    "expand_template",
    "generate",
]
