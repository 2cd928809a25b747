"""Driver test extensions.

Backend modules (``sqlite``, ``duckdb``, ``postgres``) are not imported here;
the registry loads them the first time their driver is used.
"""

from fixturedb.drivers.env import credential_env_var, db_test_env_var, lookup_test_credential
from fixturedb.drivers.extensions import DriverTestExtensions
from fixturedb.drivers.hierarchy import DriverHierarchy
from fixturedb.drivers.interface import (
    aggregate_column_info,
    create_db,
    dbdef_to_connection_details,
    expected_base_type_to_actual,
    format_name,
    has_questionable_timezone_support,
    id_field_type,
    supports,
)
from fixturedb.drivers.registry import (
    TestExtensionsRegistry,
    current_driver,
    get_registry,
    has_test_extensions,
    register_test_extensions,
    reset_registry,
    run_all_teardowns,
    the_driver_with_test_extensions,
    with_driver,
)

__all__ = [
    "DriverHierarchy",
    "DriverTestExtensions",
    "TestExtensionsRegistry",
    "aggregate_column_info",
    "create_db",
    "credential_env_var",
    "current_driver",
    "db_test_env_var",
    "dbdef_to_connection_details",
    "expected_base_type_to_actual",
    "format_name",
    "get_registry",
    "has_questionable_timezone_support",
    "has_test_extensions",
    "id_field_type",
    "lookup_test_credential",
    "register_test_extensions",
    "reset_registry",
    "run_all_teardowns",
    "supports",
    "the_driver_with_test_extensions",
    "with_driver",
]
