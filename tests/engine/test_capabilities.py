from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, text

from rundown.infra import capabilities
from rundown.infra.exceptions import SchemaCapabilityError


def test_full_schema_passes(engine):
    capabilities.verify_schema(engine)


def test_required_columns_cover_every_table():
    required = capabilities.required_columns()
    assert {"bulletins", "rundown_rows", "row_segments", "bulletin_locks", "activity_logs"} <= set(required)
    assert "timing_variance_secs" in required["bulletins"]


def test_empty_database_lists_every_missing_table():
    empty = create_engine("sqlite://")
    with pytest.raises(SchemaCapabilityError) as exc_info:
        capabilities.verify_schema(empty)
    assert "missing table 'bulletins'" in exc_info.value.violations
    assert exc_info.value.to_dict()["code"] == "SCHEMA_CAPABILITY"


def test_missing_column_is_reported(engine):
    with engine.begin() as conn:
        conn.execute(text("ALTER TABLE rundown_rows DROP COLUMN notes"))
    with pytest.raises(SchemaCapabilityError) as exc_info:
        capabilities.verify_schema(engine)
    assert exc_info.value.violations == ["missing column 'rundown_rows.notes'"]
    assert "rundown_rows.notes" in str(exc_info.value)


def test_bootstrap_configures_logging_then_verifies(engine):
    with patch("rundown.infra.logging.configure_logging") as configure:
        capabilities.bootstrap(engine, log_level="DEBUG")
    configure.assert_called_once_with("DEBUG")
