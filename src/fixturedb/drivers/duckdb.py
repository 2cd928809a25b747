"""DuckDB test extensions."""

from pathlib import Path
from typing import Any

from fixturedb.drivers.registry import register_test_extensions
from fixturedb.drivers.sql import FileSQLTestExtensions


@register_test_extensions("duckdb")
class DuckDBTestExtensions(FileSQLTestExtensions):
    """One DuckDB file per test database, accessed through duckdb-engine."""

    features = frozenset({"set-timezone"})
    file_suffix = ".duckdb"
    url_scheme = "duckdb"

    def engine_options(self, driver: str, details: dict[str, Any]) -> dict[str, Any]:
        from fixturedb.config import get_config

        duckdb_config = get_config().database.duckdb
        options = super().engine_options(driver, details)
        options["connect_args"] = {
            "config": {
                "memory_limit": duckdb_config.memory_limit,
                "threads": duckdb_config.threads,
            }
        }
        return options

    def database_files(self, path: Path) -> list[Path]:
        return [path, path.with_name(f"{path.name}.wal")]
