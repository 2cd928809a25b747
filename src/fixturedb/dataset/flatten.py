"""Flattening dataset definitions (for stores without joins, e.g. timeseries DBs).

Flattening follows every foreign key of a table and inlines the referenced
table's fields, recursively, producing a single denormalized table.

A nested field name is either a plain field name or a
``(local_field, fk_table, nested_name)`` path. Foreign-key cycles are not
detected and recurse without bound.
"""

import re
from typing import Any, NamedTuple, Optional, Union

from fixturedb.core.exceptions import FlattenedNameCollisionError, UnknownForeignKeyTargetError, UnknownTableError
from fixturedb.dataset.sources import DefinitionLike
from fixturedb.dataset.transform import TransformedDatasetSource
from fixturedb.models.dataset import DatabaseDefinition, FieldDefinition, TableDefinition

NestedName = Union[str, tuple[str, str, "NestedName"]]
RowsById = dict[str, dict[int, dict[str, Any]]]


class NestedField(NamedTuple):
    """A leaf field reached from the flattened table, with its path."""

    name: NestedName
    definition: FieldDefinition


def table_with_name(dbdef: DatabaseDefinition, table_name: str) -> TableDefinition:
    """Return the table named ``table_name`` or raise ``UnknownTableError``."""
    tabledef = dbdef.table(table_name)
    if tabledef is None:
        raise UnknownTableError(table_name, dbdef.database_name)
    return tabledef


def nest_field_definitions(dbdef: DatabaseDefinition, table_name: str) -> list[NestedField]:
    """Expand the fields of ``table_name``, replacing each FK by the referenced fields."""

    def nest(tabledef: TableDefinition, fielddef: FieldDefinition) -> list[NestedField]:
        if not fielddef.fk:
            return [NestedField(fielddef.field_name, fielddef)]

        target = dbdef.table(fielddef.fk)
        if target is None:
            raise UnknownForeignKeyTargetError(tabledef.table_name, fielddef.field_name, fielddef.fk)

        return [
            NestedField((fielddef.field_name, fielddef.fk, nested.name), nested.definition)
            for target_field in target.field_definitions
            for nested in nest(target, target_field)
        ]

    tabledef = table_with_name(dbdef, table_name)
    return [nested for fielddef in tabledef.field_definitions for nested in nest(tabledef, fielddef)]


def rows_by_id(dbdef: DatabaseDefinition) -> RowsById:
    """Map table name -> row id (1-based position) -> field name -> value."""
    return {
        tabledef.table_name: {
            row_id: dict(zip(tabledef.field_names, row))
            for row_id, row in enumerate(tabledef.rows, start=1)
        }
        for tabledef in dbdef.table_definitions
    }


def resolve_field(rows: RowsById, table_name: str, row_id: Optional[int], name: NestedName) -> Any:
    """Value of nested field ``name`` for row ``row_id`` of ``table_name``.

    A null foreign key, or one pointing past the last row, resolves to ``None``.
    """
    row = rows.get(table_name, {}).get(row_id)
    if row is None:
        return None
    if isinstance(name, str):
        return row.get(name)

    fk_from_name, fk_table, fk_dest_name = name
    return resolve_field(rows, fk_table, row.get(fk_from_name), fk_dest_name)


def flatten_rows(dbdef: DatabaseDefinition, table_name: str) -> list[tuple[Any, ...]]:
    """Rows of ``table_name`` with every foreign key resolved, in nested-field order."""
    nested_fields = nest_field_definitions(dbdef, table_name)
    rows = rows_by_id(dbdef)
    row_count = len(table_with_name(dbdef, table_name).rows)

    return [
        tuple(resolve_field(rows, table_name, row_id, nested.name) for nested in nested_fields)
        for row_id in range(1, row_count + 1)
    ]


def singularize(table_name: str) -> str:
    return re.sub(r"s$", "", re.sub(r"ies$", "y", table_name))


def flatten_field_name(name: NestedName) -> str:
    """Presentation name of a nested field.

    ``("venue_id", "venues", ("category_id", "categories", "name"))``
    becomes ``venue_category_name``.
    """
    if isinstance(name, str):
        return name
    _, fk_table, fk_dest_name = name
    return f"{singularize(fk_table)}_{flatten_field_name(fk_dest_name)}"


def nested_path(name: NestedName) -> str:
    """Dotted FK path of a nested field, e.g. ``origin_id.airports.name``."""
    if isinstance(name, str):
        return name
    fk_from_name, fk_table, fk_dest_name = name
    return f"{fk_from_name}.{fk_table}.{nested_path(fk_dest_name)}"


def check_flattened_names(table_name: str, nested_fields: list[NestedField]) -> None:
    """Raise if two nested fields would become the same column."""
    paths_by_name: dict[str, list[str]] = {}
    for nested in nested_fields:
        paths_by_name.setdefault(flatten_field_name(nested.name), []).append(nested_path(nested.name))
    for field_name, paths in paths_by_name.items():
        if len(paths) > 1:
            raise FlattenedNameCollisionError(table_name, field_name, paths)


def flatten_table(dbdef: DatabaseDefinition, table_name: str) -> DatabaseDefinition:
    """Transform function replacing all tables by the flattened ``table_name``.

    Raises:
        FlattenedNameCollisionError: If two FK paths flatten to the same
            name, e.g. ``origin_id`` and ``dest_id`` both referencing ``airports``
    """
    nested_fields = nest_field_definitions(dbdef, table_name)
    check_flattened_names(table_name, nested_fields)
    flattened = TableDefinition(
        table_name=table_name,
        field_definitions=[
            nested.definition.replace(field_name=flatten_field_name(nested.name), fk=None)
            for nested in nested_fields
        ],
        rows=flatten_rows(dbdef, table_name),
    )
    return dbdef.replace(table_definitions=(flattened,))


def flattened_dataset_definition(
    dataset_definition: DefinitionLike, table_name: str, new_name: Optional[str] = None
) -> TransformedDatasetSource:
    """Create a flattened version of a dataset.

    Every FK is resolved and all rows are flattened into the table
    ``table_name``; the result keeps the database name unless ``new_name``
    is given. Computed once, like any transformed definition.
    """
    return TransformedDatasetSource(
        new_name,
        dataset_definition,
        [lambda dbdef: flatten_table(dbdef, table_name)],
    )
