"""
Custom exceptions for rundown engine operations.

Every failure surfaced to a caller is one of the kinds below. Each carries the
taxonomy code and the entity it concerns; none of them carries store internals.
"""

from __future__ import annotations

from typing import Any


class RundownError(Exception):
    """Base exception for all rundown engine errors."""

    code = "RUNDOWN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        entity_id: Any = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity_type = entity_type
        self.entity_id = str(entity_id) if entity_id is not None else None
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": "error",
            "code": self.code,
            "message": self.message,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(RundownError):
    """Raised when a referenced bulletin, row or segment does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any, message: str | None = None):
        super().__init__(
            message or f"{entity_type} '{entity_id}' not found",
            entity_type=entity_type,
            entity_id=entity_id,
        )


class LockedError(RundownError):
    """Raised when a bulletin is locked by another actor (HTTP 423 equivalent)."""

    code = "LOCKED"


class ForbiddenError(RundownError):
    """Raised when the actor lacks the role an operation requires."""

    code = "FORBIDDEN"


class ConflictError(RundownError):
    """Raised when a lock is already held by another actor."""

    code = "CONFLICT"


class ValidationError(RundownError):
    """Raised when input fails a precondition."""

    code = "VALIDATION_FAILED"


class PersistenceError(RundownError):
    """Raised when the underlying store fails (transaction abort, constraint violation)."""

    code = "PERSISTENCE_FAILURE"


class SchemaCapabilityError(PersistenceError):
    """Raised at startup when the schema lacks tables or columns the engine needs."""

    code = "SCHEMA_CAPABILITY"

    def __init__(self, message: str, violations: list[str] | None = None):
        super().__init__(message, details={"violations": violations or []})
        self.violations = violations or []

    def __str__(self) -> str:
        if self.violations:
            violations_text = "\n  - ".join(self.violations)
            return f"{self.message}\nViolations:\n  - {violations_text}"
        return self.message
