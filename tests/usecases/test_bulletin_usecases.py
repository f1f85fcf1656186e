"""Bulletin lifecycle usecases: create, list, show, update, order and auto-generate."""

import pytest

from rundown.domain.entities import ActivityLog, Bulletin
from rundown.infra.exceptions import ForbiddenError, LockedError, NotFoundError, ValidationError
from rundown.shared.patch import BulletinPatch
from rundown.usecases import (
    bulletin_add,
    bulletin_auto_generate,
    bulletin_list,
    bulletin_lock,
    bulletin_reorder,
    bulletin_show,
    bulletin_update,
    row_add,
)


class TestAddBulletin:
    def test_creates_planning_bulletin(self, bulletin):
        assert bulletin["title"] == "6PM News"
        assert bulletin["air_date"] == "2025-03-01"
        assert bulletin["start_time"] == "18:00"
        assert bulletin["status"] == "PLANNING"
        assert bulletin["sort_order"] == 0
        assert bulletin["timing_variance_secs"] == 1800
        assert bulletin["variance_display"] == "Under 30:00"
        assert bulletin["is_locked"] is False

    def test_day_position_increments(self, db, editor, bulletin):
        second = bulletin_add.add_bulletin(db, actor=editor, title="7PM News", air_date="2025-03-01", start_time="19:00")
        other_day = bulletin_add.add_bulletin(db, actor=editor, title="Late", air_date="2025-03-02", start_time="23:00")
        assert second["sort_order"] == 1
        assert other_day["sort_order"] == 0

    def test_template_seeds_rows_and_duration(self, db, editor, clock):
        result = bulletin_add.add_bulletin(
            db, actor=editor, title="Breaking", air_date="2025-03-01", start_time="14:10", template_id="breaking-15", clock=clock
        )
        assert result["planned_duration_secs"] == 900
        assert result["template"]["rows_created"] == 11
        assert result["total_est_duration_secs"] == result["template"]["totals"]["total_est_duration_secs"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"title": "  "},
            {"air_date": "01/03/2025"},
            {"start_time": "25:00"},
            {"start_time": "6pm"},
            {"planned_duration_secs": 0},
            {"template_id": "nope"},
        ],
    )
    def test_validation(self, db, editor, kwargs):
        params = {"title": "News", "air_date": "2025-03-01", "start_time": "18:00", **kwargs}
        with pytest.raises(ValidationError):
            bulletin_add.add_bulletin(db, actor=editor, **params)

    def test_start_time_is_zero_padded(self, db, editor):
        result = bulletin_add.add_bulletin(db, actor=editor, title="Early", air_date="2025-03-01", start_time="6:05")
        assert result["start_time"] == "06:05"


class TestListAndShow:
    def test_list_filters_by_day(self, db, editor, bulletin):
        bulletin_add.add_bulletin(db, actor=editor, title="Tomorrow", air_date="2025-03-02", start_time="18:00")
        listed = bulletin_list.list_bulletins(db, air_date="2025-03-01")
        assert [b["id"] for b in listed] == [bulletin["id"]]

    def test_list_rejects_unknown_status(self, db):
        with pytest.raises(ValidationError):
            bulletin_list.list_bulletins(db, status="PAUSED")

    def test_show_offsets_front_time_by_start(self, db, editor, bulletin):
        row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, slug="FIRE", est_duration="1:30")
        row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, slug="FLOOD", est_duration=60)

        shown = bulletin_show.show_bulletin(db, bulletin_id=bulletin["id"])
        assert [r["front_time_display"] for r in shown["rows"]] == ["18:00:00", "18:01:30"]
        assert [r["cume_time_display"] for r in shown["rows"]] == ["1:30", "2:30"]
        assert shown["total_est_duration_secs"] == 150

    def test_show_unknown_bulletin(self, db):
        with pytest.raises(NotFoundError):
            bulletin_show.show_bulletin(db, bulletin_id="7d1c7c4e-3f0a-4a55-9a52-0a3c44b4e6a1")


class TestUpdateBulletin:
    def test_planned_change_recalculates_variance(self, db, editor, bulletin):
        row_add.add_row(db, bulletin_id=bulletin["id"], actor=editor, est_duration=100)
        result = bulletin_update.update_bulletin(
            db, bulletin_id=bulletin["id"], patch=BulletinPatch(planned_duration_secs=60), actor=editor
        )
        assert result["timing_variance_secs"] == -40
        assert result["variance_display"] == "Over 0:40"

    def test_records_old_and_new_values(self, db, editor, bulletin):
        bulletin_update.update_bulletin(db, bulletin_id=bulletin["id"], patch=BulletinPatch(title="Evening News"), actor=editor)
        entry = db.query(ActivityLog).filter(ActivityLog.action == "BULLETIN_UPDATE").one()
        assert '"6PM News"' in entry.old_value
        assert '"Evening News"' in entry.new_value

    def test_cannot_set_locked_status(self, db, editor, bulletin):
        with pytest.raises(ValidationError, match="lock command"):
            bulletin_update.update_bulletin(
                db, bulletin_id=bulletin["id"], patch=BulletinPatch(status="locked"), actor=editor
            )

    def test_locked_by_someone_else(self, db, editor, producer, bulletin):
        bulletin_lock.lock_bulletin(db, bulletin_id=bulletin["id"], actor=producer)
        with pytest.raises(LockedError):
            bulletin_update.update_bulletin(db, bulletin_id=bulletin["id"], patch=BulletinPatch(notes="x"), actor=editor)

    def test_title_cannot_be_cleared(self):
        with pytest.raises(ValidationError):
            BulletinPatch(title=None)


class TestReorderBulletins:
    def test_position_becomes_sort_order(self, db, editor, bulletin):
        late = bulletin_add.add_bulletin(db, actor=editor, title="Late", air_date="2025-03-01", start_time="23:00")
        result = bulletin_reorder.reorder_bulletins(db, bulletin_ids=[late["id"], bulletin["id"]], actor=editor)
        assert result["order"] == [late["id"], bulletin["id"]]
        assert [b["sort_order"] for b in result["bulletins"]] == [0, 1]
        listed = bulletin_list.list_bulletins(db, air_date="2025-03-01")
        assert [b["title"] for b in listed] == ["Late", "6PM News"]

    def test_reporter_cannot_reorder(self, db, reporter, bulletin):
        with pytest.raises(ForbiddenError):
            bulletin_reorder.reorder_bulletins(db, bulletin_ids=[bulletin["id"]], actor=reporter)

    def test_mixed_days_rejected(self, db, editor, bulletin):
        other = bulletin_add.add_bulletin(db, actor=editor, title="Other", air_date="2025-03-02", start_time="18:00")
        with pytest.raises(ValidationError):
            bulletin_reorder.reorder_bulletins(db, bulletin_ids=[bulletin["id"], other["id"]], actor=editor)

    def test_duplicates_rejected(self, db, editor, bulletin):
        with pytest.raises(ValidationError):
            bulletin_reorder.reorder_bulletins(db, bulletin_ids=[bulletin["id"], bulletin["id"]], actor=editor)


class TestAutoGenerate:
    def test_creates_day_and_skips_existing_slot(self, db, producer, bulletin, clock):
        result = bulletin_auto_generate.auto_generate(db, air_date="2025-03-01", actor=producer, clock=clock)
        schedule = bulletin_auto_generate.DAY_SCHEDULE
        assert result["created"] == len(schedule)
        assert result["skipped"] == 0

        again = bulletin_auto_generate.auto_generate(db, air_date="2025-03-01", actor=producer, clock=clock)
        assert again["created"] == 0
        assert again["skipped_titles"] == [slot.title for slot in schedule]

    def test_durations_pick_templates(self, db, producer, clock):
        bulletin_auto_generate.auto_generate(db, air_date="2025-03-05", actor=producer, clock=clock)
        seven = db.query(Bulletin).filter(Bulletin.title == "7PM News").one()
        assert seven.planned_duration_secs == 3600
        assert len(seven.rows) > 0

    def test_reporter_forbidden(self, db, reporter):
        with pytest.raises(ForbiddenError):
            bulletin_auto_generate.auto_generate(db, air_date="2025-03-01", actor=reporter)
