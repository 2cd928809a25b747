"""Tests for the fixturedb command line interface."""

import pytest
from typer.testing import CliRunner

from fixturedb.cli import main as cli_main
from fixturedb.cli.main import app

SHOP_YAML = """
- [categories, [{field_name: name, base_type: Text}], [[toys], [books]]]
- [products, [{field_name: category_id, base_type: Integer, fk: categories}, {field_name: title, base_type: Text}],
   [[1, robot], [2, atlas]]]
"""


@pytest.fixture
def runner(monkeypatch):
    # Wide enough that rich never wraps table cells
    monkeypatch.setattr(cli_main.console, "width", 200)
    return CliRunner()


class TestCLI:
    """Test CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "FixtureDB" in result.stdout

    def test_info(self, runner, fixturedb_home):
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Test drivers: sqlite" in result.stdout
        assert "MB_<DRIVER>_TEST_<KEY>" in result.stdout

    def test_logging_initialized(self, runner, fixturedb_home):
        runner.invoke(app, ["version"])
        assert (fixturedb_home / "logs").is_dir()

    def test_drivers(self, runner):
        result = runner.invoke(app, ["drivers"])

        assert result.exit_code == 0
        assert "redshift" in result.stdout
        assert "fixturedb.drivers.sqlite" in result.stdout
        # Abstract drivers are not listed
        assert "fixturedb.drivers.sql " not in result.stdout

    def test_show_bundled(self, runner):
        result = runner.invoke(app, ["show", "orders", "--rows"])

        assert result.exit_code == 0
        assert "regions" in result.stdout
        assert "region_id" in result.stdout
        assert "west" in result.stdout

    def test_show_from_directory(self, runner, definitions_dir):
        (definitions_dir / "shop.yaml").write_text(SHOP_YAML)

        result = runner.invoke(app, ["show", "shop", "--definitions-dir", str(definitions_dir)])

        assert result.exit_code == 0
        assert "products" in result.stdout
        assert "categories" in result.stdout

    def test_show_missing_dataset(self, runner, definitions_dir):
        result = runner.invoke(app, ["show", "nope", "-d", str(definitions_dir)])

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "nope" in result.stdout

    def test_flatten(self, runner):
        result = runner.invoke(app, ["flatten", "orders", "orders"])

        assert result.exit_code == 0
        assert "user_region_name" in result.stdout
        assert "west" in result.stdout

    def test_flatten_unknown_table(self, runner):
        result = runner.invoke(app, ["flatten", "orders", "invoices"])

        assert result.exit_code == 1
        assert "invoices" in result.stdout

    def test_load_sqlite(self, runner, fixturedb_home):
        result = runner.invoke(app, ["load", "sqlite", "shop"])

        assert result.exit_code == 0, result.stdout
        assert "Loaded shop into sqlite" in result.stdout
        assert (fixturedb_home / "databases" / "sqlite" / "shop.sqlite").exists()

    def test_load_unknown_driver(self, runner):
        result = runner.invoke(app, ["load", "oracle", "shop"])

        assert result.exit_code == 1
        assert "No test extensions found for oracle" in result.stdout

    def test_credentials(self, runner, monkeypatch):
        monkeypatch.setenv("MB_POSTGRES_TEST_USER", "tester")

        result = runner.invoke(app, ["credentials", "postgres"])

        assert result.exit_code == 0
        assert "MB_POSTGRES_TEST_USER" in result.stdout
        assert "MB_POSTGRES_TEST_PASSWORD" in result.stdout
