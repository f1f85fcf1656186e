"""Reclamation: tombstones, retention countdown, restore and purge."""

from datetime import timedelta

import pytest

from rundown.domain.entities import ActivityLog, Bulletin, BulletinLock, RundownRow
from rundown.engine import locks, reclamation, sequence, timing
from rundown.engine.sequence import RowFields
from rundown.infra.exceptions import ForbiddenError, LockedError, NotFoundError, ValidationError


def _add(db, bulletin_id, actor, slug):
    return sequence.insert_row(
        db, bulletin_id=bulletin_id, block_code="A", actor=actor, fields=RowFields(slug=slug)
    )


class TestSoftDelete:
    def test_row_tombstone_reports_days_left(self, db, bulletin, editor, clock):
        row = _add(db, bulletin["id"], editor, "FIRE")
        result = reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor, clock=clock)
        assert result["days_left"] == 7
        assert result["deleted_by"] == editor.id
        assert row.is_deleted

    def test_row_delete_is_lock_gated(self, db, bulletin, editor, producer):
        row = _add(db, bulletin["id"], editor, "FIRE")
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(LockedError):
            reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=producer)

    def test_bulletin_tombstone_hides_it(self, db, bulletin, editor):
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor)
        with pytest.raises(NotFoundError):
            sequence.insert_row(db, bulletin_id=bulletin["id"], block_code="A", actor=editor)

    def test_unknown_entity_type(self, db, bulletin, editor):
        with pytest.raises(ValidationError):
            reclamation.soft_delete(db, entity_type="segment", entity_id=bulletin["id"], actor=editor)


class TestTrashListing:
    def test_days_left_counts_down(self, db, bulletin, editor, producer, clock):
        row = _add(db, bulletin["id"], editor, "FIRE")
        reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor, clock=clock)
        clock.advance(timedelta(days=1))

        trash = reclamation.list_trash(db, actor=producer, clock=clock)
        assert trash["retention_days"] == 7
        assert trash["rows"][0]["days_left"] == 6
        assert trash["rows"][0]["bulletin_title"] == "6PM News"
        assert trash["rows"][0]["purge_eligible"] is False

    def test_non_privileged_actor_sees_only_own_items(self, db, bulletin, editor, reporter, producer, clock):
        mine = _add(db, bulletin["id"], editor, "MINE")
        theirs = _add(db, bulletin["id"], editor, "THEIRS")
        reclamation.soft_delete(db, entity_type="row", entity_id=mine.id, actor=reporter, clock=clock)
        reclamation.soft_delete(db, entity_type="row", entity_id=theirs.id, actor=editor, clock=clock)

        assert [r["slug"] for r in reclamation.list_trash(db, actor=reporter, clock=clock)["rows"]] == ["MINE"]
        assert len(reclamation.list_trash(db, actor=producer, clock=clock)["rows"]) == 2


class TestPurgeExpired:
    def test_purge_is_strictly_after_retention(self, db, bulletin, editor, clock):
        row = _add(db, bulletin["id"], editor, "FIRE")
        row_id = row.id
        reclamation.soft_delete(db, entity_type="row", entity_id=row_id, actor=editor, clock=clock)

        clock.advance(timedelta(days=7))
        assert reclamation.purge_expired(db, clock=clock).purged_count == 0
        assert [r["id"] for r in reclamation.list_trash(db, actor=editor, clock=clock)["rows"]] == [str(row_id)]

        clock.advance(1)
        report = reclamation.purge_expired(db, clock=clock)
        assert report.purged_rows == [str(row_id)]
        assert db.query(RundownRow).filter(RundownRow.id == row_id).count() == 0
        assert db.query(ActivityLog).filter(ActivityLog.action == "PURGE").count() == 1
        assert reclamation.list_trash(db, actor=editor, clock=clock)["rows"] == []

    def test_purge_closes_sort_order_gap(self, db, bulletin, editor, clock):
        _add(db, bulletin["id"], editor, "ONE")
        two = _add(db, bulletin["id"], editor, "TWO")
        three = _add(db, bulletin["id"], editor, "THREE")
        reclamation.soft_delete(db, entity_type="row", entity_id=two.id, actor=editor, clock=clock)
        clock.advance(timedelta(days=8))
        reclamation.purge_expired(db, clock=clock)
        assert three.sort_order == 1

    def test_purge_leaves_locked_bulletin_order_to_the_holder(self, db, bulletin, editor, producer, clock):
        _add(db, bulletin["id"], editor, "ONE")
        two = _add(db, bulletin["id"], editor, "TWO")
        three = _add(db, bulletin["id"], editor, "THREE")
        two_id = two.id
        reclamation.soft_delete(db, entity_type="row", entity_id=two_id, actor=editor, clock=clock)
        locks.acquire(db, bulletin_id=bulletin["id"], actor=producer, clock=clock)
        clock.advance(timedelta(days=8))

        report = reclamation.purge_expired(db, clock=clock)

        assert report.purged_rows == [str(two_id)]
        assert three.sort_order == 2
        locks.release(db, bulletin_id=bulletin["id"], actor=producer, clock=clock)
        timing.recalculate(db, bulletin["id"])
        assert three.sort_order == 1

    def test_bulletin_purge_removes_rows(self, db, bulletin, editor, clock):
        _add(db, bulletin["id"], editor, "ONE")
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor, clock=clock)
        clock.advance(timedelta(days=8))
        report = reclamation.purge_expired(db, clock=clock)
        assert report.purged_bulletins == [bulletin["id"]]
        assert db.query(Bulletin).count() == 0
        assert db.query(RundownRow).count() == 0

    def test_locked_bulletin_is_skipped(self, db, bulletin, editor, clock):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor, clock=clock)
        clock.advance(timedelta(days=8))
        report = reclamation.purge_expired(db, clock=clock)
        assert report.skipped_locked == [bulletin["id"]]
        assert db.query(Bulletin).count() == 1

    def test_holder_unlocks_bulletin_someone_else_trashed(self, db, bulletin, editor, producer, clock):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=producer, clock=clock)

        state = locks.release(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        assert state["is_locked"] is False

        clock.advance(timedelta(days=8))
        report = reclamation.purge_expired(db, clock=clock)
        assert report.purged_bulletins == [bulletin["id"]]
        assert report.skipped_locked == []
        assert db.query(Bulletin).count() == 0

    def test_override_role_unlocks_trashed_bulletin(self, db, bulletin, editor, producer, admin, clock):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor, clock=clock)
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=producer, clock=clock)

        locks.release(db, bulletin_id=bulletin["id"], actor=admin, clock=clock)
        reclamation.purge_now(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin, clock=clock)
        assert db.query(Bulletin).count() == 0
        assert db.query(BulletinLock).count() == 0

    def test_repeat_is_harmless(self, db, bulletin, editor, clock):
        row = _add(db, bulletin["id"], editor, "ONE")
        reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor, clock=clock)
        clock.advance(timedelta(days=8))
        assert reclamation.purge_expired(db, clock=clock).purged_count == 1
        assert reclamation.purge_expired(db, clock=clock).purged_count == 0

    def test_concurrent_call_reports_in_progress(self, db, clock):
        assert reclamation._purge_guard.acquire(blocking=False)
        try:
            report = reclamation.purge_expired(db, clock=clock)
        finally:
            reclamation._purge_guard.release()
        assert report.in_progress is True
        assert report.purged_count == 0


class TestRestore:
    def test_restore_requires_role(self, db, bulletin, editor):
        row = _add(db, bulletin["id"], editor, "ONE")
        reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor)
        with pytest.raises(ForbiddenError):
            reclamation.restore(db, entity_type="row", entity_id=row.id, actor=editor)

    def test_admin_restores_row(self, db, bulletin, editor, admin):
        row = _add(db, bulletin["id"], editor, "ONE")
        reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor)
        result = reclamation.restore(db, entity_type="row", entity_id=row.id, actor=admin)
        assert result == {"entity_type": "row", "id": str(row.id), "bulletin_id": bulletin["id"]}
        assert not row.is_deleted

    def test_restore_of_live_item_is_not_found(self, db, bulletin, admin):
        with pytest.raises(NotFoundError):
            reclamation.restore(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin)


class TestPurgeNow:
    def test_requires_purge_role(self, db, bulletin, editor):
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor)
        with pytest.raises(ForbiddenError):
            reclamation.purge_now(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor)

    def test_item_must_be_in_trash(self, db, bulletin, admin):
        with pytest.raises(NotFoundError):
            reclamation.purge_now(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin)

    def test_purges_regardless_of_age(self, db, bulletin, editor, admin):
        row = _add(db, bulletin["id"], editor, "ONE")
        row_id = row.id
        reclamation.soft_delete(db, entity_type="row", entity_id=row_id, actor=editor)
        result = reclamation.purge_now(db, entity_type="row", entity_id=row_id, actor=admin)
        assert result == {"entity_type": "row", "id": str(row_id), "purged": True}
        assert db.query(RundownRow).count() == 0

    def test_bulletin_locked_by_someone_else(self, db, bulletin, editor, admin):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=editor)
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=editor)
        with pytest.raises(LockedError):
            reclamation.purge_now(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin)

    def test_lock_record_goes_with_the_bulletin(self, db, bulletin, admin):
        locks.acquire(db, bulletin_id=bulletin["id"], actor=admin)
        reclamation.soft_delete(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin)
        reclamation.purge_now(db, entity_type="bulletin", entity_id=bulletin["id"], actor=admin)
        assert db.query(BulletinLock).count() == 0


class TestPurgeDaemon:
    def test_run_once_uses_its_own_unit_of_work(self, db, bulletin, editor, clock):
        row = _add(db, bulletin["id"], editor, "ONE")
        reclamation.soft_delete(db, entity_type="row", entity_id=row.id, actor=editor, clock=clock)
        db.commit()
        clock.advance(timedelta(days=8))

        daemon = reclamation.PurgeDaemon(interval_seconds=60, clock=clock)
        report = daemon.run_once()

        assert report.purged_rows == [str(row.id)]
        assert daemon.last_report is report
        db.expire_all()
        assert db.query(RundownRow).count() == 0

    def test_start_and_stop(self, session_factory, clock):
        daemon = reclamation.PurgeDaemon(interval_seconds=60, clock=clock)
        daemon.start()
        assert daemon.is_running
        daemon.stop()
        assert not daemon.is_running
