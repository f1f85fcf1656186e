"""Lock manager: single holder, gating of edits, release rules."""

import pytest

from rundown.domain.entities import ActivityLog
from rundown.engine import locks, sequence
from rundown.engine.lookup import get_bulletin
from rundown.infra.exceptions import ConflictError, ForbiddenError, LockedError
from rundown.shared.types import BulletinStatus


class TestAcquire:
    def test_acquire_marks_bulletin_locked(self, db, bulletin, editor, clock):
        state = locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        assert state["is_locked"] is True
        assert state["locked_by"] == editor.id
        assert state["status"] == BulletinStatus.LOCKED.value
        assert state["locked_at"] == "2025-01-01T12:00:00Z"

    def test_second_actor_gets_conflict(self, db, bulletin, editor, producer):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(ConflictError) as exc:
            locks.acquire(db, bulletin_id=bulletin["id"], actor=producer)
        assert exc.value.details["locked_by"] == editor.id

    def test_holder_reacquire_refreshes_timestamp(self, db, bulletin, editor, clock):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        clock.advance(60)
        state = locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        assert state["locked_by"] == editor.id
        assert state["locked_at"] == "2025-01-01T12:01:00Z"

    def test_acquire_records_activity(self, db, bulletin, editor):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        actions = [a.action for a in db.query(ActivityLog).all()]
        assert "LOCK" in actions


class TestEditGate:
    def test_other_actor_cannot_edit(self, db, bulletin, editor, producer):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(LockedError):
            sequence.insert_row(db, bulletin_id=bulletin["id"], block_code="A", actor=producer)

    def test_holder_can_edit(self, db, bulletin, editor):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        row = sequence.insert_row(db, bulletin_id=bulletin["id"], block_code="A", actor=editor)
        assert row.page_code == "A1"

    def test_override_role_is_not_exempt_from_the_gate(self, db, bulletin, editor, admin):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(LockedError):
            sequence.insert_row(db, bulletin_id=bulletin["id"], block_code="A", actor=admin)

    def test_unlocked_bulletin_is_editable_by_anyone(self, db, bulletin, reporter):
        row = sequence.insert_row(db, bulletin_id=bulletin["id"], block_code="A", actor=reporter)
        assert row.sort_order == 0


class TestRelease:
    def test_holder_releases(self, db, bulletin, editor):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        state = locks.release(db, bulletin_id=bulletin["id"], actor=editor, reset_status=True)
        assert state["is_locked"] is False
        assert state["locked_by"] is None
        assert state["status"] == BulletinStatus.ACTIVE.value

    def test_non_holder_without_override_is_forbidden(self, db, bulletin, editor, producer):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(ForbiddenError):
            locks.release(db, bulletin_id=bulletin["id"], actor=producer)
        assert get_bulletin(db, bulletin["id"]).locked_by == editor.id

    def test_override_role_force_releases(self, db, bulletin, editor, admin):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        state = locks.release(db, bulletin_id=bulletin["id"], actor=admin)
        assert state["is_locked"] is False
        unlock = db.query(ActivityLog).filter(ActivityLog.action == "UNLOCK").one()
        assert unlock.user_id == admin.id
        assert "Force-unlocked" in unlock.description

    def test_releasing_an_unlocked_bulletin_is_a_no_op(self, db, bulletin, reporter):
        state = locks.release(db, bulletin_id=bulletin["id"], actor=reporter)
        assert state["is_locked"] is False
        assert db.query(ActivityLog).filter(ActivityLog.action == "UNLOCK").count() == 0

    def test_lock_can_change_hands_after_release(self, db, bulletin, editor, producer):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        locks.release(db, bulletin_id=bulletin["id"], actor=editor)
        state = locks.acquire(db, bulletin_id=bulletin["id"], actor=producer)
        assert state["locked_by"] == producer.id
