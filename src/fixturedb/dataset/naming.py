"""Names derived from dataset definitions."""

import re
from typing import Optional

from fixturedb.models.dataset import DatabaseDefinition

# Identifier length limit of the strictest supported backends
MAX_IDENTIFIER_LENGTH = 30


def escaped_name(dbdef: DatabaseDefinition) -> str:
    """Database name suitable for use as a filename or database name."""
    return re.sub(r"\s+", "_", dbdef.database_name)


def db_qualified_table_name(database_name: str, table_name: str) -> str:
    """Table name qualified with its database name.

    For backends where separate test databases cannot be created, so all
    tables share one database and must be told apart by name. Keeps the last
    30 characters because of identifier length limits.
    """
    qualified = f"{database_name}_{table_name}".lower().replace("-", "_")
    return qualified[-MAX_IDENTIFIER_LENGTH:]


def single_db_qualified_name_components(
    session_schema: str,
    database_name: str,
    table_name: Optional[str] = None,
    field_name: Optional[str] = None,
) -> list[str]:
    """Qualified name components for backends that test inside one shared database.

    Separate databases are simulated by a per-run session schema plus table
    names that embed the database name, e.g. ``test_data_categories``.
    """
    if table_name is None:
        return [database_name]
    components = [session_schema, db_qualified_table_name(database_name, table_name)]
    if field_name is not None:
        components.append(field_name)
    return components
