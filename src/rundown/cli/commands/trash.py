from __future__ import annotations

import time

import typer

from ...engine import reclamation
from ...infra.logging import get_logger
from ...infra.uow import session
from ...usecases import trash_ops as _uc_trash_ops
from ._common import ACTOR_OPTION, JSON_OPTION, ROLE_OPTION, TEST_DB_OPTION, build_actor, emit, fail

app = typer.Typer(name="trash", help="Trash, restore and purge operations")

logger = get_logger(__name__)

ENTITY_ARGUMENT = typer.Argument(..., help="Entity type: bulletin or row")


def _get_db_context(test_db: bool):
    return session(for_test=test_db)


@app.command("list")
def list_trash(
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """List tombstoned bulletins and rows with days left before purge."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_trash_ops.list_trash(db, actor=build_actor(actor_id, role))
    except Exception as e:
        fail(e, json_output)

    lines = [f"Retention: {result['retention_days']} days"]
    for b in result["bulletins"]:
        lines.append(f"  bulletin {b['id']}  {b['title']:<24} {b['days_left']}d left")
    for r in result["rows"]:
        lines.append(f"  row      {r['id']}  {(r['slug'] or r['page_code']):<24} {r['days_left']}d left")
    if not result["bulletins"] and not result["rows"]:
        lines.append("Trash is empty")
    emit({"trash": result}, json_output, lines)


@app.command("delete")
def delete_item(
    entity_type: str = ENTITY_ARGUMENT,
    entity_id: str = typer.Argument(..., help="Entity id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Move a bulletin or row to the trash."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_trash_ops.delete_item(
                db, entity_type=entity_type, entity_id=entity_id, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit(result, json_output, [f"Moved {result['entity_type']} {result['id']} to trash ({result['days_left']} days left)"])


@app.command("restore")
def restore_item(
    entity_type: str = ENTITY_ARGUMENT,
    entity_id: str = typer.Argument(..., help="Entity id"),
    recalc: bool = typer.Option(False, "--recalc", help="Recalculate bulletin timing after restoring"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Restore a tombstoned bulletin or row."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_trash_ops.restore_item(
                db,
                entity_type=entity_type,
                entity_id=entity_id,
                actor=build_actor(actor_id, role),
                recalculate=recalc,
            )
    except Exception as e:
        fail(e, json_output)

    emit(result, json_output, [f"Restored {result['entity_type']} {result['id']}"])


@app.command("purge")
def purge_expired(
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Permanently delete items whose retention window has passed."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_trash_ops.purge_expired(db)
    except Exception as e:
        fail(e, json_output)

    if result["in_progress"]:
        lines = ["A purge is already running"]
    else:
        lines = [
            f"Purged {len(result['purged_bulletins'])} bulletins and {len(result['purged_rows'])} rows",
        ]
        if result["skipped_locked"]:
            lines.append(f"Skipped {len(result['skipped_locked'])} locked bulletins")
    emit({"purge": result}, json_output, lines)


@app.command("purge-now")
def purge_item(
    entity_type: str = ENTITY_ARGUMENT,
    entity_id: str = typer.Argument(..., help="Entity id"),
    actor_id: str = ACTOR_OPTION,
    role: str = ROLE_OPTION,
    json_output: bool = JSON_OPTION,
    test_db: bool = TEST_DB_OPTION,
):
    """Permanently delete one trashed item now, regardless of age."""
    try:
        with _get_db_context(test_db) as db:
            result = _uc_trash_ops.purge_item(
                db, entity_type=entity_type, entity_id=entity_id, actor=build_actor(actor_id, role)
            )
    except Exception as e:
        fail(e, json_output)

    emit(result, json_output, [f"Permanently deleted {result['entity_type']} {result['id']}"])


@app.command("daemon")
def run_daemon(
    interval: int | None = typer.Option(None, "--interval", help="Seconds between purge passes"),
):
    """Run the purge scheduler in the foreground until interrupted."""
    daemon = reclamation.PurgeDaemon(interval_seconds=interval)
    daemon.start()
    typer.echo("Purge daemon running. Press Ctrl+C to stop.")
    try:
        while daemon.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("purge_daemon_interrupted")
    finally:
        daemon.stop()
