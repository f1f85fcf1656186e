"""Domain layer: persisted entities and the actor value object."""

from .actor import Actor
from .entities import ActivityLog, Bulletin, BulletinLock, RowSegment, RundownRow

__all__ = ["Actor", "ActivityLog", "Bulletin", "BulletinLock", "RowSegment", "RundownRow"]
