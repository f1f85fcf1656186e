"""
Startup schema capability check.

The engine never probes for optional columns per request. Instead the live
schema is inspected once when the process starts; anything the mapped model
needs but the database lacks fails fast with every violation listed.
"""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from .db import Base
from .exceptions import SchemaCapabilityError
from .logging import get_logger

logger = get_logger(__name__)


def required_columns() -> dict[str, set[str]]:
    """Tables and columns the engine reads or writes, from the mapped metadata."""
    # Entities register their tables on import
    from ..domain import entities  # noqa: F401

    return {table.name: {column.name for column in table.columns} for table in Base.metadata.sorted_tables}


def verify_schema(engine: Engine) -> None:
    """Raise SchemaCapabilityError unless every required table and column exists."""
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    violations: list[str] = []

    for table_name, columns in required_columns().items():
        if table_name not in existing_tables:
            violations.append(f"missing table '{table_name}'")
            continue
        present = {col["name"] for col in inspector.get_columns(table_name)}
        for column in sorted(columns - present):
            violations.append(f"missing column '{table_name}.{column}'")

    if violations:
        logger.error("schema_capability_failed", violations=violations)
        raise SchemaCapabilityError(
            "Database schema is missing capabilities required by the rundown engine; "
            "run 'alembic upgrade head'",
            violations,
        )
    logger.debug("schema_capability_verified", tables=len(existing_tables))


def bootstrap(engine: Engine | None = None, *, log_level: str | None = None) -> None:
    """Process startup: configure logging, then verify the schema once."""
    from . import db as db_module
    from .logging import configure_logging

    configure_logging(log_level)
    verify_schema(engine if engine is not None else db_module.engine)


__all__ = ["required_columns", "verify_schema", "bootstrap"]
