"""
Shared option definitions and output helpers for command groups.

Commands print ``{"status": "ok", ...}`` payloads with ``--json`` and
human-readable lines otherwise. Engine errors render as
``{"status": "error", "code", "message", ...}`` and exit with status 1.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, NoReturn

import typer

from ...domain.actor import Actor
from ...infra.exceptions import RundownError, ValidationError

ACTOR_OPTION = typer.Option(..., "--actor", envvar="RUNDOWN_ACTOR", help="Acting user id")
ROLE_OPTION = typer.Option(
    "REPORTER", "--role", envvar="RUNDOWN_ROLE", help="Acting user role (ADMIN, PRODUCER, EDITOR, REPORTER)"
)
JSON_OPTION = typer.Option(False, "--json", help="Output in JSON format")
TEST_DB_OPTION = typer.Option(False, "--test-db", help="Use test database context")


def build_actor(actor_id: str, role: str) -> Actor:
    return Actor(id=actor_id, role=role)


def emit(payload: dict[str, Any], json_output: bool, lines: Iterable[str] = ()) -> None:
    if json_output:
        typer.echo(json.dumps({"status": "ok", **payload}, indent=2, default=str))
        return
    for line in lines:
        typer.echo(line)


def fail(exc: Exception, json_output: bool) -> NoReturn:
    if isinstance(exc, RundownError):
        payload = exc.to_dict()
    else:
        payload = {"status": "error", "code": "UNKNOWN_ERROR", "message": str(exc)}
    if json_output:
        typer.echo(json.dumps(payload, indent=2, default=str))
    else:
        typer.echo(f"Error [{payload['code']}]: {payload['message']}", err=True)
    raise typer.Exit(1)


def parse_json_argument(value: str, name: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{name} must be valid JSON: {e.msg}") from e
