from types import SimpleNamespace

import pytest

from rundown.infra.exceptions import ValidationError
from rundown.shared.patch import UNSET, BulletinPatch, RowPatch


class TestPatchSemantics:
    def test_only_set_fields_are_reported(self):
        patch = RowPatch(est_duration_secs=120, actual_duration_secs=None)
        assert patch.set_fields() == {"est_duration_secs": 120, "actual_duration_secs": None}
        assert patch.touches("actual_duration_secs")
        assert not patch.touches("slug")

    def test_empty_patch(self):
        assert RowPatch().is_empty()
        assert RowPatch().slug is UNSET

    def test_apply_to_returns_real_changes_only(self):
        target = SimpleNamespace(slug="FIRE", est_duration_secs=90, notes="x")
        changes = RowPatch(slug="FIRE", est_duration_secs=120, notes=None).apply_to(target)
        assert changes == {"est_duration_secs": (90, 120), "notes": ("x", None)}
        assert target.est_duration_secs == 120
        assert target.notes is None

    def test_non_nullable_field_cannot_be_cleared(self):
        with pytest.raises(ValidationError):
            RowPatch(est_duration_secs=None)
        with pytest.raises(ValidationError):
            BulletinPatch(title=None)

    def test_nullable_bulletin_fields(self):
        assert BulletinPatch(end_time=None).set_fields() == {"end_time": None}
