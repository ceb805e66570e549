"""
Tests for the command line interface.
"""

import pytest
from typer.testing import CliRunner

from readinglist.cli import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))


@pytest.fixture
def library(tmp_path):
    """Path of an initialised, empty library."""
    path = tmp_path / "library"
    result = runner.invoke(app, ["init", str(path)])
    assert result.exit_code == 0, result.stdout
    return path


def invoke(library, *args):
    return runner.invoke(app, [*args, "--library", str(library)])


class TestInit:

    def test_creates_library(self, library):
        assert (library / "library.db").exists()

    def test_refuses_existing(self, library):
        result = runner.invoke(app, ["init", str(library)])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_set_default_library(self, tmp_path):
        path = tmp_path / "default-lib"
        assert runner.invoke(app, ["init", str(path), "--default"]).exit_code == 0

        assert runner.invoke(app, ["add", "Dune"]).exit_code == 0
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Dune" in result.stdout


class TestAddAndList:

    def test_add_and_list(self, library):
        result = invoke(library, "add", "Dune", "--author", "Herbert, Frank")
        assert result.exit_code == 0
        assert "Added" in result.stdout

        result = invoke(library, "list")
        assert result.exit_code == 0
        assert "Dune" in result.stdout
        assert "Frank Herbert" in result.stdout

    def test_list_shows_sections(self, library):
        invoke(library, "add", "Dune", "--state", "reading")
        invoke(library, "add", "Emma")
        result = invoke(library, "list")
        assert "Reading" in result.stdout
        assert "To Read" in result.stdout

    def test_empty_segment_message(self, library):
        result = invoke(library, "list", "--segment", "finished")
        assert result.exit_code == 0
        assert "You haven't yet finished a book" in result.stdout

    def test_search_without_matches(self, library):
        invoke(library, "add", "Dune")
        result = invoke(library, "list", "--search", "hobbit")
        assert result.exit_code == 0
        assert "No results" in result.stdout

    def test_search_filters(self, library):
        invoke(library, "add", "Dune")
        invoke(library, "add", "Emma")
        result = invoke(library, "list", "--search", "DUN")
        assert "Dune" in result.stdout
        assert "Emma" not in result.stdout

    def test_limit(self, library):
        for title in ["Alpha", "Beta", "Gamma"]:
            invoke(library, "add", title)
        result = invoke(library, "list", "--limit", "2")
        assert "Gamma" not in result.stdout
        assert "Showing 2 of 3 books" in result.stdout

    def test_limit_must_be_positive(self, library):
        invoke(library, "add", "Dune")
        result = invoke(library, "list", "--limit", "0")
        assert result.exit_code == 2

    def test_invalid_isbn(self, library):
        result = invoke(library, "add", "Dune", "--isbn", "12345")
        assert result.exit_code == 1
        assert "Invalid input" in result.stdout

    def test_invalid_state(self, library):
        result = invoke(library, "add", "Dune", "--state", "abandoned")
        assert result.exit_code == 1

    def test_invalid_segment(self, library):
        result = invoke(library, "list", "--segment", "reading")
        assert result.exit_code == 1


class TestStateChanges:

    def test_start_and_finish(self, library):
        invoke(library, "add", "Dune")

        assert invoke(library, "start", "1").exit_code == 0
        assert "Reading" in invoke(library, "list").stdout

        assert invoke(library, "finish", "1").exit_code == 0
        result = invoke(library, "list", "--segment", "finished")
        assert "Dune" in result.stdout

    def test_unknown_book(self, library):
        result = invoke(library, "finish", "42")
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestShowAndDelete:

    def test_show_locates_book(self, library):
        invoke(library, "add", "Emma", "--state", "finished")
        invoke(library, "add", "Dune", "--state", "finished", "--isbn", "9780441172719")

        result = invoke(library, "show", "2")
        assert result.exit_code == 0
        assert "Finished" in result.stdout
        assert "9780441172719" in result.stdout
        assert "section 1, row 1" in result.stdout

    def test_show_unknown(self, library):
        result = invoke(library, "show", "7")
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_delete(self, library):
        invoke(library, "add", "Dune")
        result = invoke(library, "delete", "1", "--yes")
        assert result.exit_code == 0
        assert "Dune" not in invoke(library, "list").stdout

    def test_delete_cancelled(self, library):
        invoke(library, "add", "Dune")
        result = runner.invoke(app, ["delete", "1", "--library", str(library)], input="n\n")
        assert result.exit_code == 0
        assert "Dune" in invoke(library, "list").stdout


class TestConfigAndErrors:

    def test_missing_library(self, tmp_path):
        result = invoke(tmp_path / "nowhere", "list")
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_no_library_configured(self):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 1
        assert "No library given" in result.stdout

    def test_color_setting(self, library):
        from readinglist import cli
        from readinglist.config import load_config

        assert runner.invoke(app, ["config", "--no-color"]).exit_code == 0
        assert load_config().cli.color is False

        invoke(library, "list")
        assert cli.console.no_color

        runner.invoke(app, ["config", "--color"])
        invoke(library, "list")
        assert not cli.console.no_color

    def test_config_update_and_show(self):
        result = runner.invoke(app, ["config", "--page-size", "5", "--show"])
        assert result.exit_code == 0
        assert "cli.page_size" in result.stdout
        assert "5" in result.stdout
