"""Core functionality for FixtureDB."""

from .exceptions import (
    FixtureError,
    ConfigError,
    SchemaValidationError,
    ResourceNotFoundError,
    MalformedResourceError,
    UnknownTableError,
    UnknownForeignKeyTargetError,
    FlattenedNameCollisionError,
    DriverError,
    ExtensionLoadError,
    NoTestExtensionsError,
    MissingCredentialError,
    StorageError,
)
from .lazy import Lazy
from .logging import (
    logger,
    configure_logging,
)

__all__ = [
    # Exceptions
    "FixtureError",
    "ConfigError",
    "SchemaValidationError",
    "ResourceNotFoundError",
    "MalformedResourceError",
    "UnknownTableError",
    "UnknownForeignKeyTargetError",
    "FlattenedNameCollisionError",
    "DriverError",
    "ExtensionLoadError",
    "NoTestExtensionsError",
    "MissingCredentialError",
    "StorageError",
    # Lazy values
    "Lazy",
    # Logging
    "logger",
    "configure_logging",
]
