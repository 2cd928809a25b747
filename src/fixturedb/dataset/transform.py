"""Transformed dataset definitions.

A transformed definition wraps another source, renames it and runs a
sequence of transform functions over it. Transform functions take a
``DatabaseDefinition`` and return a new one; they are applied in the order
they are given, each receiving the result of the previous one.
"""

from typing import Any, Callable, Iterable, Optional, Sequence

from fixturedb.core.lazy import Lazy
from fixturedb.dataset.sources import DatasetSource, DefinitionLike, get_dataset_definition
from fixturedb.models.dataset import DatabaseDefinition, TableDefinition

TransformFn = Callable[[DatabaseDefinition], DatabaseDefinition]


class TransformedDatasetSource(DatasetSource):
    """A definition derived from ``wrapped`` by ``transform_fns``; computed once."""

    def __init__(
        self,
        new_name: Optional[str],
        wrapped: DefinitionLike,
        transform_fns: Sequence[TransformFn] = (),
    ):
        for fn in transform_fns:
            if not callable(fn):
                raise TypeError(f"Transform functions must be callable, got {fn!r}")
        self.new_name = new_name
        self.wrapped = wrapped
        self.transform_fns = tuple(transform_fns)
        self._definition: Lazy[DatabaseDefinition] = Lazy(self._transform)

    def _transform(self) -> DatabaseDefinition:
        dbdef = get_dataset_definition(self.wrapped)
        if self.new_name is not None:
            dbdef = dbdef.replace(database_name=self.new_name)
        for fn in self.transform_fns:
            dbdef = fn(dbdef)
        return dbdef

    def resolve(self) -> DatabaseDefinition:
        return self._definition.get()

    def pretty(self) -> str:
        return f"transformed_dataset_definition({self.new_name!r}, {self.wrapped.pretty()})"


def transformed_dataset_definition(
    new_name: Optional[str], wrapped: DefinitionLike, *transform_fns: TransformFn
) -> TransformedDatasetSource:
    """Create a dataset definition that transforms another one.

    Args:
        new_name: Name of the resulting database (``None`` keeps the wrapped name)
        wrapped: Definition or source to transform
        *transform_fns: Applied left to right after renaming

    Returns:
        A source whose result is cached after the first ``resolve()``
    """
    return TransformedDatasetSource(new_name, wrapped, transform_fns)


def update_table_definitions(
    f: Callable[..., Iterable[TableDefinition]], *args: Any
) -> TransformFn:
    """Lift ``f(table_definitions, *args)`` into a transform function."""

    def transform(dbdef: DatabaseDefinition) -> DatabaseDefinition:
        return dbdef.replace(table_definitions=tuple(f(dbdef.table_definitions, *args)))

    return transform


def only_tables(*table_names: str) -> TransformFn:
    """Keep only the named tables, in their original order.

    Names that match no table are ignored.
    """
    names = set(table_names)

    def keep(table_definitions: Iterable[TableDefinition]) -> list[TableDefinition]:
        return [tabledef for tabledef in table_definitions if tabledef.table_name in names]

    return update_table_definitions(keep)


def update_table(
    table_name: str,
    table: Optional[Callable[[TableDefinition], TableDefinition]] = None,
    rows: Optional[Callable[[Sequence[Sequence[Any]]], Iterable[Sequence[Any]]]] = None,
) -> TransformFn:
    """Transform a single table.

    ``table`` receives the whole table definition, then ``rows`` receives its
    rows. Either may be omitted. Other tables pass through unchanged, and a
    name matching no table leaves the definition as it was.
    """

    def update(table_definitions: Iterable[TableDefinition]) -> list[TableDefinition]:
        updated = []
        for tabledef in table_definitions:
            if tabledef.table_name == table_name:
                if table is not None:
                    tabledef = table(tabledef)
                if rows is not None:
                    tabledef = tabledef.replace(rows=tuple(tuple(row) for row in rows(tabledef.rows)))
            updated.append(tabledef)
        return updated

    return update_table_definitions(update)
