"""Actor value object supplied by the identity collaborator."""

from __future__ import annotations

from dataclasses import dataclass

from ..infra.exceptions import ValidationError
from ..shared.types import UserRole


@dataclass(frozen=True)
class Actor:
    """The caller of an engine operation. Never persisted; the engine only authorizes."""

    id: str
    role: UserRole = UserRole.REPORTER

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("Actor id is required")
        if not isinstance(self.role, UserRole):
            try:
                object.__setattr__(self, "role", UserRole(str(self.role).upper()))
            except ValueError as e:
                raise ValidationError(f"Unknown role '{self.role}'") from e

    def has_role(self, roles: frozenset[str] | set[str]) -> bool:
        return self.role.value in roles
