"""
Shared types and enums for the rundown engine.

This module contains common types and enums that are used across
the domain, engine, usecase and CLI layers.
"""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Roles supplied by the identity collaborator."""

    ADMIN = "ADMIN"
    PRODUCER = "PRODUCER"
    EDITOR = "EDITOR"
    REPORTER = "REPORTER"


class BulletinStatus(str, Enum):
    """Lifecycle status of a bulletin."""

    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    ON_AIR = "ON_AIR"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"
    AIRED = "AIRED"


class RowType(str, Enum):
    """Kinds of rundown rows."""

    STORY = "STORY"
    COMMERCIAL = "COMMERCIAL"
    BREAK_LINK = "BREAK_LINK"
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    WELCOME = "WELCOME"


class RowStatus(str, Enum):
    """Editorial status of a row. KILLED and AIRED are terminal."""

    BLANK = "BLANK"
    DRAFT = "DRAFT"
    READY = "READY"
    APPROVED = "APPROVED"
    KILLED = "KILLED"
    AIRED = "AIRED"

    @property
    def is_terminal(self) -> bool:
        return self in (RowStatus.KILLED, RowStatus.AIRED)


class SegmentType(str, Enum):
    """Script breakdown kinds for row segments."""

    LIVE = "LIVE"
    PKG = "PKG"
    VO = "VO"
    VOSOT = "VOSOT"
    SOT = "SOT"
    READER = "READER"
    GRAPHIC = "GRAPHIC"
    VT = "VT"
    IV = "IV"
    PHONER = "PHONER"
    WEATHER = "WEATHER"
    SPORTS = "SPORTS"


class TrashEntityType(str, Enum):
    """Entities that can be tombstoned."""

    BULLETIN = "bulletin"
    ROW = "row"


class ActivityAction(str, Enum):
    """Audit actions emitted by state-changing operations."""

    BULLETIN_CREATE = "BULLETIN_CREATE"
    BULLETIN_UPDATE = "BULLETIN_UPDATE"
    BULLETIN_DELETE = "BULLETIN_DELETE"
    BULLETIN_RESTORE = "BULLETIN_RESTORE"
    BULLETIN_REORDER = "BULLETIN_REORDER"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    ROW_CREATE = "ROW_CREATE"
    ROW_UPDATE = "ROW_UPDATE"
    ROW_DELETE = "ROW_DELETE"
    ROW_RESTORE = "ROW_RESTORE"
    ROW_APPROVE = "ROW_APPROVE"
    ROW_UNAPPROVE = "ROW_UNAPPROVE"
    REORDER = "REORDER"
    RECALCULATE = "RECALCULATE"
    TEMPLATE_GENERATE = "TEMPLATE_GENERATE"
    AUTO_GENERATE = "AUTO_GENERATE"
    SEGMENT_CREATE = "SEGMENT_CREATE"
    SEGMENT_UPDATE = "SEGMENT_UPDATE"
    SEGMENT_DELETE = "SEGMENT_DELETE"
    PURGE = "PURGE"
