"""Look up the persisted objects created from definitions.

Applications that sync a materialized test database into their own model
store (databases, tables, fields) implement ``ModelRepository``; these
helpers find the stored object matching a definition.
"""

from typing import Any, Mapping, Optional, Protocol, Union

from fixturedb.dataset.naming import db_qualified_table_name
from fixturedb.models.dataset import DatabaseDefinition, FieldDefinition, TableDefinition

Instance = Mapping[str, Any]


class ModelRepository(Protocol):
    """Store of synced model objects.

    ``find`` returns the first object of ``model`` (``"Database"``,
    ``"Table"`` or ``"Field"``) matching every criterion, or ``None``.
    ``name`` criteria are passed lowercased and must be compared
    case-insensitively.
    """

    def find(self, model: str, **criteria: Any) -> Optional[Instance]: ...


def database_instance(repository: ModelRepository, dbdef: DatabaseDefinition, driver: str) -> Optional[Instance]:
    """Database synced from ``dbdef`` on ``driver``."""
    return repository.find("Database", name=dbdef.database_name, engine=driver)


def table_instance(
    repository: ModelRepository, tabledef: TableDefinition, database: Instance
) -> Optional[Instance]:
    """Table synced from ``tabledef`` into ``database``.

    Tries the exact table name first, then the database-qualified name used
    by backends that keep every test database in one shared database.
    """
    table = repository.find("Table", db_id=database["id"], name=tabledef.table_name.lower())
    if table is None:
        qualified = db_qualified_table_name(database["name"], tabledef.table_name)
        table = repository.find("Table", db_id=database["id"], name=qualified)
    return table


def field_instance(repository: ModelRepository, fielddef: FieldDefinition, table: Instance) -> Optional[Instance]:
    """Field synced from ``fielddef`` into ``table``."""
    return repository.find("Field", table_id=table["id"], name=fielddef.field_name.lower())


def instance_for(
    repository: ModelRepository,
    definition: Union[DatabaseDefinition, TableDefinition, FieldDefinition],
    context: Union[str, Instance],
) -> Optional[Instance]:
    """Persisted object for any definition.

    ``context`` is the parent object (the stored instance, not its
    definition): the driver id for a database, the database for a table and
    the table for a field.
    """
    if isinstance(definition, DatabaseDefinition):
        if not isinstance(context, str):
            raise TypeError("Database lookups take a driver id as context")
        return database_instance(repository, definition, context)
    if isinstance(context, str):
        raise TypeError(f"{type(definition).__name__} lookups take a parent instance as context")
    if isinstance(definition, TableDefinition):
        return table_instance(repository, definition, context)
    if isinstance(definition, FieldDefinition):
        return field_instance(repository, definition, context)
    raise TypeError(f"No persisted instance for {type(definition).__name__}")
