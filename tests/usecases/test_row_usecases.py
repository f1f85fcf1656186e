"""Row, segment, timing, trash and audit usecases."""

import pytest

from rundown.infra.exceptions import ForbiddenError, LockedError, ValidationError
from rundown.shared.patch import RowPatch, SegmentPatch
from rundown.usecases import (
    activity_list,
    bulletin_lock,
    bulletin_show,
    row_add,
    row_approve,
    row_reorder,
    row_update,
    segment_ops,
    timing_recalculate,
    trash_ops,
)


@pytest.fixture
def story(db, bulletin, editor, clock):
    return row_add.add_row(
        db, bulletin_id=bulletin["id"], actor=editor, slug="FIRE", est_duration="2:00", clock=clock
    )


class TestAddRow:
    def test_defaults(self, db, bulletin, editor):
        row = row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor)
        assert row["page_code"] == "A1"
        assert row["est_duration_secs"] == 90
        assert row["status"] == "BLANK"
        assert row["row_type"] == "STORY"

    def test_bad_duration(self, db, bulletin, editor):
        with pytest.raises(ValidationError):
            row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, est_duration="ninety")

    def test_actual_duration_feeds_totals(self, db, bulletin, editor):
        row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, est_duration=60, actual_duration="1:05")
        shown = bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])
        assert shown["total_actual_duration_secs"] == 65


class TestUpdateRow:
    def test_duration_change_recalculates(self, db, bulletin, editor, story):
        row_update.update_row(db, row_id=story["id"], patch=RowPatch(est_duration_secs=30), actor=editor)
        shown = bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])
        assert shown["total_est_duration_secs"] == 30
        assert shown["timing_variance_secs"] == 1770

    def test_clear_actual(self, db, bulletin, editor):
        row = row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, actual_duration=40)
        updated = row_update.update_row(db, row_id=row["id"], patch=RowPatch(actual_duration_secs=None), actor=editor)
        assert updated["actual_duration_secs"] is None
        assert bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])["total_actual_duration_secs"] is None


class TestApproveRow:
    def test_approve_then_revoke(self, db, producer, story, clock):
        approved = row_approve.approve_row(db, row_id=story["id"], actor=producer, clock=clock)
        assert approved["final_approval"] is True
        assert approved["status"] == "APPROVED"
        assert approved["approved_by"] == producer.id
        assert approved["approved_at"] == "2025-01-01T12:00:00Z"

        revoked = row_approve.approve_row(db, row_id=story["id"], actor=producer, approved=False, reason="facts")
        assert revoked["final_approval"] is False
        assert revoked["status"] == "READY"
        assert revoked["approved_by"] is None

    def test_reporter_cannot_approve(self, db, reporter, story):
        with pytest.raises(ForbiddenError):
            row_approve.approve_row(db, row_id=story["id"], actor=reporter)

    def test_terminal_row(self, db, bulletin, editor):
        killed = row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, status="KILLED")
        with pytest.raises(ValidationError):
            row_approve.approve_row(db, row_id=killed["id"], actor=editor)

    def test_lock_gated(self, db, bulletin, editor, producer, story):
        bulletin_lock.lock_bulletin(db, bulletin_id=bulletin["id"], actor=producer)
        with pytest.raises(LockedError):
            row_approve.approve_row(db, row_id=story["id"], actor=editor)


class TestReorderRows:
    def test_moves_and_returns_totals(self, db, bulletin, editor, story):
        second = row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, slug="FLOOD", est_duration=30)
        result = row_reorder.reorder_rows(
            db,
            bulletin_id=bulletin["id"],
            rows=[{"id": second["id"], "sort_order": 0}, {"id": story["id"], "sort_order": 1}],
            actor=editor,
        )
        assert [r["slug"] for r in result["rows"]] == ["FLOOD", "FIRE"]
        assert [r["front_time_secs"] for r in result["rows"]] == [0, 30]
        assert result["totals"]["total_est_duration_secs"] == 150

    def test_entry_shape(self, db, bulletin, editor, story):
        with pytest.raises(ValidationError):
            row_reorder.reorder_rows(db, bulletin_id=bulletin["id"], rows=[{"id": story["id"]}], actor=editor)


class TestSegments:
    def test_add_list_update_delete(self, db, editor, story):
        vo = segment_ops.add_segment(db, row_id=story["id"], name="intro vo", segment_type="vo", actor=editor)
        sot = segment_ops.add_segment(db, row_id=story["id"], name="mayor", segment_type="SOT", est_duration="0:20", actor=editor)
        assert vo["name"] == "INTRO VO"
        assert sot["est_duration_secs"] == 20
        assert [s["sort_order"] for s in segment_ops.list_segments(db, row_id=story["id"])] == [0, 1]

        updated = segment_ops.update_segment(db, segment_id=vo["id"], patch=SegmentPatch(type="PKG"), actor=editor)
        assert updated["type"] == "PKG"

        segment_ops.delete_segment(db, segment_id=vo["id"], actor=editor)
        with pytest.raises(ValidationError, match="last segment"):
            segment_ops.delete_segment(db, segment_id=sot["id"], actor=editor)

    def test_segments_do_not_change_timing(self, db, bulletin, editor, story):
        segment_ops.add_segment(db, row_id=story["id"], name="pkg", segment_type="PKG", est_duration=300, actor=editor)
        assert bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])["total_est_duration_secs"] == 120

    def test_unknown_type(self, db, editor, story):
        with pytest.raises(ValidationError):
            segment_ops.add_segment(db, row_id=story["id"], name="x", segment_type="HOLOGRAM", actor=editor)

    def test_lock_gated(self, db, bulletin, editor, reporter, story):
        bulletin_lock.lock_bulletin(db, bulletin_id=bulletin["id"], actor=editor)
        with pytest.raises(LockedError):
            segment_ops.add_segment(db, row_id=story["id"], name="x", actor=reporter)


class TestRecalculateTiming:
    def test_not_lock_gated(self, db, bulletin, editor, reporter, story):
        bulletin_lock.lock_bulletin(db, bulletin_id=bulletin["id"], actor=editor)
        totals = timing_recalculate.recalculate_timing(db, bulletin_id=bulletin["id"], actor=reporter)
        assert totals["total_est_duration_secs"] == 120
        assert totals["variance_display"] == "Under 28:00"


class TestTrashUsecases:
    def test_restore_with_recalculate(self, db, bulletin, editor, admin, story):
        trash_ops.delete_item(db, entity_type="row", entity_id=story["id"], actor=editor)
        assert bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])["total_est_duration_secs"] == 0

        result = trash_ops.restore_item(db, entity_type="row", entity_id=story["id"], actor=admin, recalculate=True)
        assert result["totals"]["total_est_duration_secs"] == 120
        entries = [e for e in activity_list.list_activity(db, bulletin_id=bulletin["id"]) if e["action"] == "RECALCULATE"]
        assert len(entries) == 1
        assert entries[0]["user_id"] == admin.id
        assert entries[0]["new_value"] == {"total_est_duration_secs": 120, "variance": 1680}

    def test_restore_without_recalculate_leaves_totals(self, db, bulletin, editor, admin, story):
        trash_ops.delete_item(db, entity_type="row", entity_id=story["id"], actor=editor)
        result = trash_ops.restore_item(db, entity_type="ROW", entity_id=story["id"], actor=admin)
        assert "totals" not in result
        assert bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])["total_est_duration_secs"] == 0

    def test_purge_expired_returns_report(self, db):
        report = trash_ops.purge_expired(db)
        assert report["purged_count"] == 0
        assert report["in_progress"] is False


class TestActivity:
    def test_newest_first_and_decoded(self, db, bulletin, editor, story, clock):
        clock.advance(60)
        row_update.update_row(db, row_id=story["id"], patch=RowPatch(slug="BLAZE"), actor=editor, clock=clock)

        entries = activity_list.list_activity(db, bulletin_id=bulletin["id"], limit=1)
        assert entries[0]["action"] == "ROW_UPDATE"
        assert entries[0]["old_value"] == {"slug": "FIRE"}
        assert entries[0]["new_value"] == {"slug": "BLAZE"}

    def test_limit_must_be_positive(self, db):
        with pytest.raises(ValidationError):
            activity_list.list_activity(db, limit=0)
