"""Main CLI entry point for FixtureDB."""

import os
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from fixturedb.config import get_config_manager
from fixturedb.core.exceptions import FixtureError
from fixturedb.core.logging import configure_logging, intercept_standard_logging


def setup_logging() -> None:
    """Send logs to the configured log file, warnings also to stderr."""
    config_manager = get_config_manager()
    config = config_manager.config

    log_file = Path(config.logging.file)
    if not log_file.is_absolute():
        log_file = config.get_full_path("logs_path", config_manager.base_path) / log_file

    log_level = os.environ.get("FIXTUREDB_LOGGING_LEVEL", config.logging.level)
    configure_logging(
        level=log_level,
        log_file=str(log_file),
        serialize=config.logging.format == "json",
    )

    # SQLAlchemy logs through the standard library
    if config.database.sqlalchemy.echo:
        intercept_standard_logging()

    logger.info(f"FixtureDB logging initialized - Level: {log_level}, File: {log_file}")


app = typer.Typer(
    name="fixturedb",
    help="FixtureDB - driver-agnostic test dataset fixtures",
    pretty_exceptions_enable=False,
)

console = Console()


@app.callback()
def main_callback():
    """Setup logging before running any command."""
    setup_logging()


def _resolve_dataset(name: str, definitions_dir: Optional[Path]):
    from fixturedb.dataset.sources import file_dataset_definition, get_dataset_definition

    return get_dataset_definition(file_dataset_definition(name, definitions_dir))


def _rows_table(title: str, field_names: list[str], rows: Any, limit: int) -> Table:
    table = Table(title=title)
    for name in field_names:
        table.add_column(name)
    for row in list(rows)[:limit]:
        table.add_row(*("" if value is None else str(value) for value in row))
    return table


@app.command()
def version():
    """Show FixtureDB version."""
    from fixturedb import __version__

    console.print(f"[bold green]FixtureDB[/bold green] version {__version__}")


@app.command()
def info():
    """Display configuration."""
    from fixturedb.dataset.loader import definitions_dir

    config_manager = get_config_manager()
    config = config_manager.config
    base_path = config_manager.base_path

    console.print("\n[bold cyan]FixtureDB[/bold cyan]\n")

    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Config file: {config_manager.config_path}")
    console.print(f"  Home: {base_path}")

    console.print("\n[bold]Paths:[/bold]")
    console.print(f"  Definitions: {definitions_dir()}")
    console.print(f"  Databases: {config.get_full_path('databases_path', base_path)}")
    console.print(f"  Logs: {config.get_full_path('logs_path', base_path)}")

    console.print("\n[bold]Drivers:[/bold]")
    console.print(f"  Test drivers: {', '.join(config.drivers.test_drivers) or '(none)'}")
    console.print(f"  Credential variables: {config.credentials.env_prefix}_<DRIVER>_TEST_<KEY>")
    console.print(f"  Batch size: {config.performance.batch_size:,}")


@app.command()
def drivers():
    """List known drivers and their parents."""
    from fixturedb.drivers.hierarchy import DRIVER, STRUCTURAL_PARENTS, TEST_EXTENSIONS
    from fixturedb.drivers.registry import get_registry

    registry = get_registry()
    test_drivers = set(registry.config.test_drivers)

    table = Table(title="Drivers")
    table.add_column("Driver", style="cyan")
    table.add_column("Parents")
    table.add_column("Extensions module")
    table.add_column("Tested", justify="center")

    hidden = STRUCTURAL_PARENTS | {TEST_EXTENSIONS}
    for driver in sorted(registry.hierarchy.descendants(DRIVER)):
        if registry.hierarchy.is_abstract(driver):
            continue
        parents = [p for p in registry.hierarchy.parents(driver) if p not in hidden]
        table.add_row(
            driver,
            ", ".join(parents) or "-",
            registry.module_name(driver),
            "✓" if driver in test_drivers else "",
        )

    console.print(table)


@app.command()
def show(
    dataset: str = typer.Argument(..., help="Dataset name"),
    definitions_dir: Optional[Path] = typer.Option(None, "--definitions-dir", "-d", help="Definitions directory"),
    rows: bool = typer.Option(False, "--rows", "-r", help="Show rows"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows per table"),
):
    """Show the tables and fields of a dataset definition."""
    try:
        dbdef = _resolve_dataset(dataset, definitions_dir)
    except FixtureError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]{dbdef.database_name}[/bold] ({len(dbdef.table_definitions)} tables)")
    for tabledef in dbdef.table_definitions:
        table = Table(title=f"{tabledef.table_name} ({len(tabledef.rows)} rows)")
        table.add_column("Field", style="cyan")
        table.add_column("Base type")
        table.add_column("Special type")
        table.add_column("FK")
        for fielddef in tabledef.field_definitions:
            table.add_row(
                fielddef.field_name,
                str(fielddef.base_type.value if hasattr(fielddef.base_type, "value") else fielddef.base_type),
                fielddef.special_type.value if fielddef.special_type else "",
                fielddef.fk or "",
            )
        console.print(table)
        if rows:
            console.print(_rows_table(tabledef.table_name, tabledef.field_names, tabledef.rows, limit))


@app.command()
def flatten(
    dataset: str = typer.Argument(..., help="Dataset name"),
    table_name: str = typer.Argument(..., help="Table to flatten"),
    definitions_dir: Optional[Path] = typer.Option(None, "--definitions-dir", "-d", help="Definitions directory"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows"),
):
    """Show a table with every foreign key resolved."""
    from fixturedb.dataset.flatten import flattened_dataset_definition
    from fixturedb.dataset.sources import file_dataset_definition, get_dataset_definition

    try:
        source = flattened_dataset_definition(file_dataset_definition(dataset, definitions_dir), table_name)
        tabledef = get_dataset_definition(source).table_definitions[0]
    except FixtureError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(_rows_table(f"{dataset}.{table_name} (flattened)", tabledef.field_names, tabledef.rows, limit))


@app.command()
def load(
    driver: str = typer.Argument(..., help="Driver to load the dataset into"),
    dataset: str = typer.Argument(..., help="Dataset name"),
    definitions_dir: Optional[Path] = typer.Option(None, "--definitions-dir", "-d", help="Definitions directory"),
    skip_drop: bool = typer.Option(False, "--skip-drop", help="Keep an existing database"),
):
    """Create a test database for a dataset."""
    from fixturedb.drivers.interface import create_db, dbdef_to_connection_details
    from fixturedb.drivers.registry import the_driver_with_test_extensions

    try:
        dbdef = _resolve_dataset(dataset, definitions_dir)
        the_driver_with_test_extensions(driver)
        with console.status(f"Loading {dataset} into {driver}..."):
            create_db(driver, dbdef, skip_drop_db=skip_drop)
        details = dbdef_to_connection_details(driver, "db", dbdef)
    except FixtureError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Loaded {dataset} into {driver}")
    for key, value in details.items():
        if key != "password":
            console.print(f"  {key}: {value}")


@app.command()
def credentials(
    driver: str = typer.Argument(..., help="Driver"),
    keys: Optional[list[str]] = typer.Argument(None, help="Credential keys (default: host port user password)"),
):
    """Show the environment variables a driver reads credentials from."""
    from fixturedb.drivers.env import credential_env_var

    table = Table(title=f"{driver} credentials")
    table.add_column("Key", style="cyan")
    table.add_column("Variable")
    table.add_column("Set", justify="center")
    for key in keys or ["host", "port", "user", "password"]:
        env_var = credential_env_var(driver, key)
        table.add_row(key, env_var, "✓" if env_var in os.environ else "")
    console.print(table)


def main():
    """Main entry point."""
    # If no arguments provided (just 'fixturedb'), show help
    if len(sys.argv) == 1:
        sys.argv.append("--help")

    app()


if __name__ == "__main__":
    main()
