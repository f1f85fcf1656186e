import pytest
import typer

from rundown.cli.main import router
from rundown.cli.router import CliRouter


def test_root_app_mounts_every_group():
    assert router.list_registered_groups() == ["bulletin", "row", "trash"]
    assert router.get_registered_groups()["trash"]["help"] == "Trash, restore and purge operations"


def test_duplicate_group_is_rejected():
    local = CliRouter(typer.Typer())
    local.register("bulletin", typer.Typer(), help_text="first")
    with pytest.raises(ValueError, match="already registered"):
        local.register("bulletin", typer.Typer())


def test_registered_groups_is_a_copy():
    local = CliRouter(typer.Typer())
    local.register("row", typer.Typer())
    local.get_registered_groups().clear()
    assert local.list_registered_groups() == ["row"]
