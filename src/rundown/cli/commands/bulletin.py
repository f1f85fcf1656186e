from __future__ import annotations

import typer

from ...engine import templates as _templates
from ...infra.uow import session
from ...shared.patch import BulletinPatch
from ...shared.timecode import secs_to_hhmmss, secs_to_mmss
from ...usecases import activity_list as _uc_activity_list
from ...usecases import bulletin_add as _uc_bulletin_add
from ...usecases import bulletin_auto_generate as _uc_bulletin_auto_generate
from ...usecases import bulletin_list as _uc_bulletin_list
from ...usecases import bulletin_lock as _uc_bulletin_lock
from ...usecases import bulletin_reorder as _uc_bulletin_reorder
from ...usecases import bulletin_show as _uc_bulletin_show
from ...usecases import bulletin_update as _uc_bulletin_update
from ...usecases import row_reorder as _uc_row_reorder
from ...usecases import timing_recalculate as _uc_timing_recalculate
from ._common import (
    ACTOR_OPTION,
    JSON_OPTION,
    ROLE_OPTION,
    TEST_DB_OPTION,
    build_actor,
    emit,
    fail,
    parse_json_argument,
)

app = typer.Typer(name="bulletin", help="Bulletin scheduling, locking and timing operations")


def _get_db_context(test_db: bool):
    return session(for_test=test_db)


def _summary_lines(b: dict) -> list[str]:
    lock = f"locked by {b['locked_by']}" if b["is_locked"] else "unlocked"
    return [
        f"{b['title']} ({b['air_date']} {b['start_time']})",
        f"  ID: {b['id']}",
        f"  Status: {b['status']} ({lock})",
        f"  Planned: {secs_to_hhmmss(b['planned_duration_secs'])}",
        f"  Estimated: {secs_to_mmss(b['total_est_duration_secs'])}  {b['variance_display']}",
    ]


@app.command("add")
def add_bulletin(
    title: str = typer.Option(..., "--title", help="Bulletin title"),
    air_date: str = typer.Option(..., "--date", help="Air date (YYYY-MM-DD)"),
    start_time: str = typer.Option(..., "--start", help="Scheduled start (HH:MM)"),
    end_time: str | None = typer.Option(None, "--end", help="Scheduled end (HH:MM)"),
    planned: int | None = typer.Option(None, "--planned", help="Planned duration in seconds"),
    subtitle: str | None = typer.Option(None, "--subtitle"),
    code: str | None = typer.Option(None, "--code", help="Short bulletin code"),
    producer: str | None = typer.Option(None, "--producer", help="Producer user id"),
    template: str | None = typer.Option(None, "--template", help="Seed rows from a template id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Create a bulletin, optionally seeded from a template.

    Examples:
        rundown bulletin add --title "6PM News" --date 2025-03-01 --start 18:00 --actor ed1
        rundown bulletin add --title "Late" --date 2025-03-01 --start 23:00 --template standard-30 --actor ed1
    """
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_add.add_bulletin(
                db,
                actor=build_actor(actor_id, role),
                title=title,
                air_date=air_date,
                start_time=start_time,
                end_time=end_time,
                planned_duration_secs=planned,
                subtitle=subtitle,
                code=code,
                producer_id=producer,
                template_id=template,
            )
    except Exception as e:
        fail(e, json_output)

    lines = ["Bulletin created:", *_summary_lines(result)]
    if result.get("template"):
        lines.append(f"  Template: {result['template']['template_id']} ({result['template']['rows_created']} rows)")
    emit({"bulletin": result}, json_output, lines)


@app.command("list")
def list_bulletins(
    air_date: str | None = typer.Option(None, "--date", help="Filter by air date (YYYY-MM-DD)"),
    status: str | None = typer.Option(None, "--status", help="Filter by status"),
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """List live bulletins in running order."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_list.list_bulletins(db, air_date=air_date, status=status)
    except Exception as e:
        fail(e, json_output)

    if not result:
        lines = ["No bulletins found"]
    else:
        lines = [
            f"  {b['air_date']} {b['start_time']}  {b['title']:<24} {b['status']:<10} {b['variance_display']}  {b['id']}"
            for b in result
        ]
        lines.append(f"\nTotal: {len(result)} bulletins")
    emit({"total": len(result), "bulletins": result}, json_output, lines)


@app.command("show")
def show_bulletin(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    segments: bool = typer.Option(False, "--segments", help="Include row segments"),
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Show a bulletin and its rundown."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_show.show_bulletin(db, bulletin_id=bulletin_id, include_segments=segments)
    except Exception as e:
        fail(e, json_output)

    lines = _summary_lines(result)
    lines.append("")
    lines.append(f"  {'PAGE':<6} {'SLUG':<28} {'TYPE':<11} {'EST':>6} {'ACT':>6} {'FRONT':>9} {'CUME':>7}")
    for row in result["rows"]:
        lines.append(
            f"  {row['page_code']:<6} {(row['slug'] or ''):<28} {row['row_type']:<11} "
            f"{row['est_duration_display']:>6} {row['actual_duration_display']:>6} "
            f"{row['front_time_display']:>9} {row['cume_time_display']:>7}"
        )
    emit({"bulletin": result}, json_output, lines)


@app.command("update")
def update_bulletin(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    title: str | None = typer.Option(None, "--title"),
    subtitle: str | None = typer.Option(None, "--subtitle"),
    air_date: str | None = typer.Option(None, "--date", help="Air date (YYYY-MM-DD)"),
    start_time: str | None = typer.Option(None, "--start", help="Scheduled start (HH:MM)"),
    end_time: str | None = typer.Option(None, "--end", help="Scheduled end (HH:MM)"),
    planned: int | None = typer.Option(None, "--planned", help="Planned duration in seconds"),
    status: str | None = typer.Option(None, "--status", help="New status (not LOCKED)"),
    notes: str | None = typer.Option(None, "--notes"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Update bulletin fields. Only the options given are changed."""
    given = {
        "title": title,
        "subtitle": subtitle,
        "air_date": air_date,
        "start_time": start_time,
        "end_time": end_time,
        "planned_duration_secs": planned,
        "status": status,
        "notes": notes,
    }
    try:
        patch = BulletinPatch(**{k: v for k, v in given.items() if v is not None})
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_update.update_bulletin(
                db, bulletin_id=bulletin_id, patch=patch, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit({"bulletin": result}, json_output, ["Bulletin updated:", *_summary_lines(result)])


@app.command("lock")
def lock_bulletin(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Lock a bulletin against edits by anyone else."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_lock.lock_bulletin(db, bulletin_id=bulletin_id, actor=build_actor(actor_id, role))
    except Exception as e:
        fail(e, json_output)

    emit({"lock": result}, json_output, [f"Bulletin {bulletin_id} locked by {result['locked_by']}"])


@app.command("unlock")
def unlock_bulletin(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Release a bulletin lock. Override roles may release another actor's lock."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_lock.unlock_bulletin(
                db, bulletin_id=bulletin_id, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit({"lock": result}, json_output, [f"Bulletin {bulletin_id} unlocked ({result['status']})"])


@app.command("recalc")
def recalculate(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Recompute front/cume times and bulletin totals."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_timing_recalculate.recalculate_timing(
                db, bulletin_id=bulletin_id, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit(
        {"totals": result},
        json_output,
        [
            f"Planned:   {result['planned_display']}",
            f"Estimated: {result['total_est_display']}",
            f"Actual:    {result['total_actual_display'] or '-'}",
            f"Variance:  {result['variance_display']}",
        ],
    )


@app.command("reorder-rows")
def reorder_rows(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    rows: str = typer.Option(
        ..., "--rows", help='JSON list: [{"id": "...", "sort_order": 0, "page_code": "A1"}, ...]'
    ),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Apply a batch of row moves and renumber pages."""
    try:
        moves = parse_json_argument(rows, "--rows")
        with _get_db_context(test_db) as db:
            result = _uc_row_reorder.reorder_rows(
                db, bulletin_id=bulletin_id, rows=moves, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    lines = [f"  {r['page_code']:<6} {r['slug'] or r['row_type']}" for r in result["rows"]]
    emit(result, json_output, ["Rows reordered:", *lines])


@app.command("reorder")
def reorder_bulletins(
    bulletin_ids: list[str] = typer.Argument(..., help="Same-day bulletin ids in running order"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Set the running order of bulletins airing on the same day."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_reorder.reorder_bulletins(
                db, bulletin_ids=bulletin_ids, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit(result, json_output, [f"Reordered {result['count']} bulletins"])


@app.command("templates")
def list_templates(json_output: bool = JSON_OPTION):
    """List the rundown templates available for seeding."""
    result = [t.to_dict() for t in _templates.list_templates()]
    lines = [
        f"  {t['id']:<14} {t['name']:<22} {secs_to_hhmmss(t['duration_secs'])}  blocks {''.join(t['blocks'])}"
        for t in result
    ]
    emit({"templates": result}, json_output, lines)


@app.command("auto-generate")
def auto_generate(
    air_date: str = typer.Option(..., "--date", help="Air date (YYYY-MM-DD)"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Create the standard day of bulletins, skipping start times already scheduled."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_bulletin_auto_generate.auto_generate(
                db, air_date=air_date, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    lines = [f"Created {result['created']} bulletins, skipped {result['skipped']}"]
    lines.extend(f"  {b['start_time']}  {b['title']}  {b['id']}" for b in result["bulletins"])
    emit(result, json_output, lines)


@app.command("activity")
def list_activity(
    bulletin_id: str | None = typer.Argument(None, help="Restrict to one bulletin"),
    limit: int = typer.Option(100, "--limit", help="Maximum entries"),
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Show the audit trail, newest first."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_activity_list.list_activity(db, bulletin_id=bulletin_id, limit=limit)
    except Exception as e:
        fail(e, json_output)

    lines = [f"  {a['created_at']}  {a['user_id']:<12} {a['action']:<18} {a['description'] or ''}" for a in result]
    emit({"total": len(result), "activity": result}, json_output, lines or ["No activity"])
