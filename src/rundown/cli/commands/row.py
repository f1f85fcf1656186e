from __future__ import annotations

import typer

from ...infra.exceptions import ValidationError
from ...infra.uow import session
from ...shared.patch import RowPatch
from ...shared.timecode import parse_duration
from ...usecases import row_add as _uc_row_add
from ...usecases import row_approve as _uc_row_approve
from ...usecases import row_update as _uc_row_update
from ...usecases import segment_ops as _uc_segment_ops
from ._common import ACTOR_OPTION, JSON_OPTION, ROLE_OPTION, TEST_DB_OPTION, build_actor, emit, fail

app = typer.Typer(name="row", help="Rundown row editing operations")
segment_app = typer.Typer(name="segment", help="Row script segment operations")
app.add_typer(segment_app, name="segment")


def _get_db_context(test_db: bool):
    return session(for_test=test_db)


def _row_line(row: dict) -> str:
    return (
        f"  {row['page_code']:<6} {(row['slug'] or row['row_type']):<28} "
        f"est {row['est_duration_display']:>6}  status {row['status']}  {row['id']}"
    )


def _seconds_option(value: str | None, name: str) -> int | None:
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name} '{value}'. Use seconds or M:SS") from e


@app.command("add")
def add_row(
    bulletin_id: str = typer.Argument(..., help="Bulletin id"),
    block: str = typer.Option("A", "--block", help="Block code (1-5 letters)"),
    row_type: str = typer.Option("STORY", "--type", help="Row type"),
    slug: str | None = typer.Option(None, "--slug"),
    segment: str | None = typer.Option(None, "--segment", help="Segment label (e.g. LIVE, VO)"),
    status: str = typer.Option("BLANK", "--status"),
    est: str | None = typer.Option(None, "--est", help="Estimated duration (seconds or M:SS)"),
    actual: str | None = typer.Option(None, "--actual", help="Actual duration (seconds or M:SS)"),
    is_float: bool = typer.Option(False, "--float/--no-float", help="Mark the row as floated"),
    after: str | None = typer.Option(None, "--after", help="Insert after this row id"),
    position: int | None = typer.Option(None, "--position", help="Zero-based insert position"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Insert a row. Appends to the end of the rundown unless --after or --position is given."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_row_add.add_row(
                db,
                bulletin_id=bulletin_id,
                actor=build_actor(actor_id, role),
                block_code=block,
                row_type=row_type,
                slug=slug,
                segment=segment,
                status=status,
                est_duration=est,
                actual_duration=actual,
                is_float=is_float,
                after_row_id=after,
                position=position,
            )
    except Exception as e:
        fail(e, json_output)

    emit({"row": result}, json_output, ["Row created:", _row_line(result)])


@app.command("update")
def update_row(
    row_id: str = typer.Argument(..., help="Row id"),
    slug: str | None = typer.Option(None, "--slug"),
    segment: str | None = typer.Option(None, "--segment"),
    block: str | None = typer.Option(None, "--block"),
    row_type: str | None = typer.Option(None, "--type"),
    status: str | None = typer.Option(None, "--status"),
    est: str | None = typer.Option(None, "--est", help="Estimated duration (seconds or M:SS)"),
    actual: str | None = typer.Option(None, "--actual", help="Actual duration (seconds or M:SS)"),
    clear_actual: bool = typer.Option(False, "--clear-actual", help="Clear the actual duration"),
    is_float: bool | None = typer.Option(None, "--float/--no-float"),
    script: str | None = typer.Option(None, "--script"),
    notes: str | None = typer.Option(None, "--notes"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Update row fields. Only the options given are changed."""
    try:
        given = {
            "slug": slug,
            "segment": segment,
            "block_code": block,
            "row_type": row_type,
            "status": status,
            "est_duration_secs": _seconds_option(est, "--est"),
            "actual_duration_secs": _seconds_option(actual, "--actual"),
            "is_float": is_float,
            "script": script,
            "notes": notes,
        }
        fields = {k: v for k, v in given.items() if v is not None}
        if clear_actual:
            fields["actual_duration_secs"] = None
        with _get_db_context(test_db) as db:
            result = _uc_row_update.update_row(
                db, row_id=row_id, patch=RowPatch(**fields), actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit({"row": result}, json_output, ["Row updated:", _row_line(result)])


@app.command("approve")
def approve_row(
    row_id: str = typer.Argument(..., help="Row id"),
    revoke: bool = typer.Option(False, "--revoke", help="Withdraw final approval"),
    reason: str | None = typer.Option(None, "--reason", help="Reason recorded in the activity log"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Give (or with --revoke withdraw) final approval for a row."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_row_approve.approve_row(
                db, row_id=row_id, actor=build_actor(actor_id, role), approved=not revoke, reason=reason
            )
    except Exception as e:
        fail(e, json_output)

    verb = "approved" if result["final_approval"] else "unapproved"
    emit({"row": result}, json_output, [f"Row {result['page_code']} {verb}"])


@segment_app.command("add")
def add_segment(
    row_id: str = typer.Argument(..., help="Row id"),
    name: str = typer.Option(..., "--name"),
    segment_type: str = typer.Option("LIVE", "--type", help="Segment type (LIVE, PKG, VO, SOT, ...)"),
    description: str | None = typer.Option(None, "--description"),
    est: str = typer.Option("0", "--est", help="Estimated duration (seconds or M:SS)"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Add a script segment to a row."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_segment_ops.add_segment(
                db,
                row_id=row_id,
                name=name,
                actor=build_actor(actor_id, role),
                segment_type=segment_type,
                description=description,
                est_duration=est,
            )
    except Exception as e:
        fail(e, json_output)

    emit({"segment": result}, json_output, [f"Segment {result['name']} added: {result['id']}"])


@segment_app.command("list")
def list_segments(
    row_id: str = typer.Argument(..., help="Row id"),
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    try:
        with _get_db_context(test_db) as db:
            result = _uc_segment_ops.list_segments(db, row_id=row_id)
    except Exception as e:
        fail(e, json_output)

    lines = [f"  {s['sort_order']:>2}  {s['name']:<16} {s['type']:<8} {s['est_duration_secs']}s  {s['id']}" for s in result]
    emit({"total": len(result), "segments": result}, json_output, lines or ["No segments"])


@segment_app.command("delete")
def delete_segment(
    segment_id: str = typer.Argument(..., help="Segment id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Delete a segment. A row's last segment cannot be deleted."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_segment_ops.delete_segment(db, segment_id=segment_id, actor=build_actor(actor_id, role))
    except Exception as e:
        fail(e, json_output)

    emit(result, json_output, [f"Segment {segment_id} deleted"])
