"""SQLite test extensions."""

from pathlib import Path
from typing import Any

from sqlalchemy import Engine, event

from fixturedb.drivers.registry import register_test_extensions
from fixturedb.drivers.sql import FileSQLTestExtensions
from fixturedb.models.dataset import DatabaseDefinition
from fixturedb.models.enums import ConnectionContext


@register_test_extensions("sqlite")
class SQLiteTestExtensions(FileSQLTestExtensions):
    """One SQLite file per test database."""

    file_suffix = ".sqlite"
    url_scheme = "sqlite"

    def create_engine(
        self, driver: str, context: ConnectionContext, dbdef: DatabaseDefinition, **kwargs: Any
    ) -> Engine:
        from fixturedb.config import get_config

        engine = super().create_engine(driver, context, dbdef, **kwargs)
        sqlite_config = get_config().database.sqlite

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            """Set SQLite pragmas on connection."""
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA journal_mode={sqlite_config.journal_mode}")
            cursor.execute(f"PRAGMA foreign_keys={'ON' if sqlite_config.foreign_keys else 'OFF'}")
            cursor.close()

        return engine

    def database_files(self, path: Path) -> list[Path]:
        return [path, path.with_name(f"{path.name}-wal"), path.with_name(f"{path.name}-shm")]
