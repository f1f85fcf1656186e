"""
Main CLI application using Typer with router-based command dispatch.

This module provides the operator command-line interface for the rundown
engine, calling usecases and outputting JSON when requested.

All command groups are registered through the centralized CliRouter.
"""

from __future__ import annotations

import typer

from ..infra.capabilities import bootstrap
from ..infra.exceptions import SchemaCapabilityError
from ..infra.logging import configure_logging
from .commands import bulletin, row, trash
from .commands._common import fail
from .router import get_router

app = typer.Typer(help="Rundown sequencing and timing operator CLI")

router = get_router(app)

router.register(
    "bulletin",
    bulletin.app,
    help_text="Bulletin scheduling, locking and timing operations",
)

router.register(
    "row",
    row.app,
    help_text="Rundown row editing operations",
)

router.register(
    "trash",
    trash.app,
    help_text="Trash, restore and purge operations",
)


@app.callback()
def main(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", help="Output in JSON format"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
    skip_schema_check: bool = typer.Option(
        False,
        "--skip-schema-check",
        envvar="RUNDOWN_SKIP_SCHEMA_CHECK",
        help="Do not verify the database schema at startup",
    ),
):
    """Rundown - broadcast bulletin sequencing and timing."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json
    if ctx.resilient_parsing:
        return
    if skip_schema_check:
        configure_logging(log_level)
        return
    try:
        bootstrap(log_level=log_level)
    except SchemaCapabilityError as e:
        fail(e, json)


def cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
