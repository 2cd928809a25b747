"""Configuration models for FixtureDB."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class PathsConfig(BaseModel):
    """Paths configuration."""

    definitions_path: Optional[str] = Field(
        default=None, description="Directory of dataset definition files (defaults to the bundled ones)"
    )
    databases_path: str = Field(default="databases/", description="Where file-based test databases live")
    logs_path: str = Field(default="logs/", description="Path to logs")


class DriversConfig(BaseModel):
    """Driver test extension configuration."""

    test_drivers: list[str] = Field(
        default_factory=lambda: ["sqlite"], description="Drivers tests run against"
    )
    modules: dict[str, str] = Field(
        default_factory=dict, description="Driver -> test extension module overrides"
    )
    parents: dict[str, list[str]] = Field(
        default_factory=dict, description="Additional driver -> parent drivers edges"
    )

    @field_validator("test_drivers", mode="before")
    @classmethod
    def split_test_drivers(cls, v):
        """Accept a comma-separated string."""
        if isinstance(v, str):
            return [d.strip() for d in v.split(",") if d.strip()]
        return v


class CredentialsConfig(BaseModel):
    """Test credential lookup configuration."""

    env_prefix: str = Field(default="MB", description="Prefix of <PREFIX>_<DRIVER>_TEST_<KEY> variables")


class SQLAlchemyConfig(BaseModel):
    """SQLAlchemy configuration."""

    echo: bool = Field(default=False, description="Echo SQL statements")


class SQLiteConfig(BaseModel):
    """SQLite-specific configuration."""

    journal_mode: Literal["DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"] = Field(
        default="DELETE", description="Journal mode"
    )
    foreign_keys: bool = Field(default=True, description="Enforce foreign key constraints")


class DuckDBConfig(BaseModel):
    """DuckDB-specific configuration."""

    memory_limit: str = Field(default="1GB", description="Memory limit")
    threads: int = Field(default=2, ge=1, description="Number of threads")


class DatabaseConfig(BaseModel):
    """Database backend configuration."""

    sqlalchemy: SQLAlchemyConfig = Field(default_factory=SQLAlchemyConfig)
    sqlite: SQLiteConfig = Field(default_factory=SQLiteConfig)
    duckdb: DuckDBConfig = Field(default_factory=DuckDBConfig)


class PerformanceConfig(BaseModel):
    """Performance configuration."""

    batch_size: int = Field(default=1000, ge=1, description="Rows per INSERT batch")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    file: str = Field(default="fixturedb.log", description="Log file name")
    format: Literal["json", "console"] = Field(default="console", description="Log format")


class FixtureDBConfig(BaseModel):
    """Main FixtureDB configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    drivers: DriversConfig = Field(default_factory=DriversConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_full_path(self, path_key: str, base_path: Path) -> Path:
        """Get full path from relative path."""
        relative_path: str = getattr(self.paths, path_key)
        return base_path / Path(relative_path).expanduser()
