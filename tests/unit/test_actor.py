import pytest

from rundown.domain.actor import Actor
from rundown.infra.exceptions import ValidationError
from rundown.shared.types import UserRole


class TestActor:
    def test_role_string_is_coerced(self):
        assert Actor(id="u1", role="producer").role is UserRole.PRODUCER

    def test_default_role_is_reporter(self):
        assert Actor(id="u1").role is UserRole.REPORTER

    def test_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            Actor(id="u1", role="INTERN")

    def test_rejects_blank_id(self):
        with pytest.raises(ValidationError):
            Actor(id="  ")

    def test_has_role(self):
        assert Actor(id="u1", role=UserRole.ADMIN).has_role(frozenset({"ADMIN", "EDITOR"}))
        assert not Actor(id="u1").has_role(frozenset({"ADMIN"}))
