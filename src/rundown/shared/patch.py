"""
Optional-field patch structures.

A patch names every field an update may touch. Fields default to ``UNSET`` and
only fields the caller explicitly set are applied, so "leave alone" and
"clear to None" stay distinguishable.

    patch = RowPatch(est_duration_secs=120, actual_duration_secs=None)
    patch.set_fields()  # {"est_duration_secs": 120, "actual_duration_secs": None}
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, ClassVar

from ..infra.exceptions import ValidationError


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class Patch:
    """Base patch: subclasses declare fields defaulting to ``UNSET``."""

    # Fields that may be explicitly cleared to None
    NULLABLE: ClassVar[frozenset[str]] = frozenset()

    def __post_init__(self) -> None:
        for name, value in self.set_fields().items():
            if value is None and name not in self.NULLABLE:
                raise ValidationError(f"Field '{name}' cannot be cleared")

    def set_fields(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_empty(self) -> bool:
        return not self.set_fields()

    def touches(self, *names: str) -> bool:
        present = self.set_fields()
        return any(name in present for name in names)

    def apply_to(self, target: Any) -> dict[str, tuple[Any, Any]]:
        """Assign set fields onto ``target``; return ``{field: (old, new)}`` for real changes."""
        changes: dict[str, tuple[Any, Any]] = {}
        for name, value in self.set_fields().items():
            old = getattr(target, name)
            if old != value:
                setattr(target, name, value)
                changes[name] = (old, value)
        return changes


@dataclass
class RowPatch(Patch):
    NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {
            "slug",
            "segment",
            "actual_duration_secs",
            "script",
            "notes",
            "reporter_id",
            "story_producer_id",
        }
    )

    slug: Any = UNSET
    segment: Any = UNSET
    block_code: Any = UNSET
    row_type: Any = UNSET
    status: Any = UNSET
    est_duration_secs: Any = UNSET
    actual_duration_secs: Any = UNSET
    is_float: Any = UNSET
    script: Any = UNSET
    notes: Any = UNSET
    reporter_id: Any = UNSET
    story_producer_id: Any = UNSET

    TIMING_FIELDS: ClassVar[tuple[str, ...]] = ("est_duration_secs", "actual_duration_secs", "row_type")


@dataclass
class BulletinPatch(Patch):
    NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {"subtitle", "code", "end_time", "producer_id", "notes"}
    )

    title: Any = UNSET
    subtitle: Any = UNSET
    code: Any = UNSET
    air_date: date | Any = UNSET
    start_time: Any = UNSET
    end_time: Any = UNSET
    planned_duration_secs: Any = UNSET
    status: Any = UNSET
    producer_id: Any = UNSET
    notes: Any = UNSET


@dataclass
class SegmentPatch(Patch):
    NULLABLE: ClassVar[frozenset[str]] = frozenset({"description", "actual_duration_secs"})

    name: Any = UNSET
    type: Any = UNSET
    description: Any = UNSET
    est_duration_secs: Any = UNSET
    actual_duration_secs: Any = UNSET


__all__ = ["UNSET", "Patch", "RowPatch", "BulletinPatch", "SegmentPatch"]
