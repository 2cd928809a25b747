"""Data models and schemas for FixtureDB."""

from fixturedb.models.config import (
    CredentialsConfig,
    DatabaseConfig,
    DriversConfig,
    DuckDBConfig,
    FixtureDBConfig,
    LoggingConfig,
    PathsConfig,
    PerformanceConfig,
    SQLAlchemyConfig,
    SQLiteConfig,
)
from fixturedb.models.dataset import (
    DatabaseDefinition,
    FieldDefinition,
    NativeType,
    TableDefinition,
)
from fixturedb.models.enums import AggregationType, ConnectionContext, FieldType, VisibilityType

__all__ = [
    # Config models
    "CredentialsConfig",
    "DatabaseConfig",
    "DriversConfig",
    "DuckDBConfig",
    "FixtureDBConfig",
    "LoggingConfig",
    "PathsConfig",
    "PerformanceConfig",
    "SQLAlchemyConfig",
    "SQLiteConfig",
    # Dataset models
    "DatabaseDefinition",
    "FieldDefinition",
    "NativeType",
    "TableDefinition",
    # Enums
    "AggregationType",
    "ConnectionContext",
    "FieldType",
    "VisibilityType",
]
