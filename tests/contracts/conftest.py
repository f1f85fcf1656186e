"""
Fixtures for CLI contract tests.

Contract tests drive the Typer app through CliRunner. The startup schema check
is patched out; tests that exercise it use ``_skip_bootstrap`` directly.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner


@pytest.fixture(autouse=True)
def _skip_bootstrap():
    with patch("rundown.cli.main.bootstrap") as mock_bootstrap:
        yield mock_bootstrap


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_session():
    """Return a function that patches a command group's unit of work and gives back the mock db."""
    patchers = []

    def _patch(group: str) -> MagicMock:
        patcher = patch(f"rundown.cli.commands.{group}.session")
        session_mock = patcher.start()
        patchers.append(patcher)
        db = MagicMock()
        session_mock.return_value.__enter__.return_value = db
        return db

    yield _patch
    for patcher in patchers:
        patcher.stop()
