"""
FixtureDB - driver-agnostic test dataset fixtures

Describe relational test datasets once and materialize them against any
backend that ships test extensions.
"""

try:
    from importlib.metadata import version, PackageNotFoundError
    __version__ = version("fixturedb")
except PackageNotFoundError:
    # Package is not installed, use development version
    __version__ = "0.0.0+dev"

__author__ = "FixtureDB Development Team"

# Lazy imports - only import when actually used
# Keeps driver modules (and SQLAlchemy) out of the import path of plain dataset users


def __getattr__(name):
    """Lazy import mechanism for heavy modules."""
    # Dataset model
    if name in ("FieldDefinition", "TableDefinition", "DatabaseDefinition", "NativeType"):
        from fixturedb.models import dataset
        return getattr(dataset, name)
    elif name == "FieldType":
        from fixturedb.models.enums import FieldType
        return FieldType

    # Definition sources
    elif name in ("dataset_definition", "defdataset", "get_dataset_definition", "FileDatasetSource"):
        from fixturedb.dataset import sources
        return getattr(sources, name)
    elif name in ("transformed_dataset_definition", "only_tables", "update_table"):
        from fixturedb.dataset import transform
        return getattr(transform, name)
    elif name == "flattened_dataset_definition":
        from fixturedb.dataset.flatten import flattened_dataset_definition
        return flattened_dataset_definition

    # Driver extensions
    elif name == "the_driver_with_test_extensions":
        from fixturedb.drivers.registry import the_driver_with_test_extensions
        return the_driver_with_test_extensions

    # Configuration
    elif name == "get_config":
        from fixturedb.config import get_config
        return get_config

    # Exceptions - this one is lightweight, we can import it directly
    elif name == "FixtureError":
        from fixturedb.core.exceptions import FixtureError
        return FixtureError

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Dataset model
    "FieldDefinition",
    "TableDefinition",
    "DatabaseDefinition",
    "NativeType",
    "FieldType",

    # Definition sources
    "dataset_definition",
    "defdataset",
    "get_dataset_definition",
    "FileDatasetSource",
    "transformed_dataset_definition",
    "only_tables",
    "update_table",
    "flattened_dataset_definition",

    # Driver extensions
    "the_driver_with_test_extensions",

    # Configuration
    "get_config",

    # Exceptions
    "FixtureError",

    # Version
    "__version__",
]
