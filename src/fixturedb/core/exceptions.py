"""FixtureDB Exception classes."""

from typing import Optional


class FixtureError(Exception):
    """Base exception for all FixtureDB errors."""
    pass


class ConfigError(FixtureError):
    """Configuration related errors."""
    pass


class SchemaValidationError(FixtureError):
    """A dataset definition does not satisfy the definition schema."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ResourceNotFoundError(FixtureError):
    """A file-backed dataset resource does not exist."""

    def __init__(self, dataset_name: str, location: str):
        super().__init__(f"Dataset definition '{dataset_name}' not found: {location}")
        self.dataset_name = dataset_name
        self.location = location


class MalformedResourceError(FixtureError):
    """A file-backed dataset resource could not be parsed into a definition."""

    def __init__(self, dataset_name: str, reason: str):
        super().__init__(f"Malformed dataset definition '{dataset_name}': {reason}")
        self.dataset_name = dataset_name


class UnknownTableError(FixtureError):
    """A table referenced by name is not part of the database definition."""

    def __init__(self, table_name: str, database_name: str):
        super().__init__(f"No table named '{table_name}' in database '{database_name}'")
        self.table_name = table_name
        self.database_name = database_name


class UnknownForeignKeyTargetError(FixtureError):
    """A foreign key points at a table that is not part of the database definition."""

    def __init__(self, table_name: str, field_name: str, target: str):
        super().__init__(
            f"Foreign key {table_name}.{field_name} references unknown table '{target}'"
        )
        self.table_name = table_name
        self.field_name = field_name
        self.target = target


class FlattenedNameCollisionError(SchemaValidationError):
    """Several nested fields flatten to the same column name."""

    def __init__(self, table_name: str, field_name: str, paths: list[str]):
        super().__init__(
            f"Cannot flatten '{table_name}': {', '.join(paths)} all flatten to '{field_name}'",
            path=field_name,
        )
        self.table_name = table_name
        self.field_name = field_name
        self.paths = paths


class DriverError(FixtureError):
    """Driver test extension related errors."""
    pass


class ExtensionLoadError(DriverError):
    """The test extension module for a driver could not be found."""

    def __init__(self, driver: str, module_name: str):
        super().__init__(f"Cannot load test extensions for {driver}: no module named '{module_name}'")
        self.driver = driver
        self.module_name = module_name


class NoTestExtensionsError(DriverError):
    """A driver has no test extensions after every loading strategy was tried."""

    def __init__(self, driver: str):
        super().__init__(f"No test extensions found for {driver}")
        self.driver = driver


class MissingCredentialError(FixtureError):
    """A required test credential is missing from the environment."""

    def __init__(self, driver: str, env_var: str):
        super().__init__(f"In order to test {driver}, you must specify the env var {env_var}.")
        self.driver = driver
        self.env_var = env_var


class StorageError(FixtureError):
    """Materializing a dataset against a backend failed."""
    pass
