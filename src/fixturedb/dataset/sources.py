"""Dataset definition sources.

Every way of obtaining a ``DatabaseDefinition`` (a literal definition, a
file-backed resource, a transformation of another source) is a
``DatasetSource`` exposing ``resolve()``. Expensive sources compute their
definition once and share it between threads.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from loguru import logger

from fixturedb.core.lazy import Lazy
from fixturedb.dataset.loader import TableSpec, load_definition, parse_definition
from fixturedb.models.dataset import DatabaseDefinition


class DatasetSource(ABC):
    """Something that can produce a ``DatabaseDefinition``."""

    @abstractmethod
    def resolve(self) -> DatabaseDefinition:
        """Return the definition described by this source."""
        pass

    @abstractmethod
    def pretty(self) -> str:
        """Short representation for diagnostics."""
        pass

    def __repr__(self) -> str:
        return f"<{self.pretty()}>"


DefinitionLike = Union[DatabaseDefinition, DatasetSource]


class LiteralDatasetSource(DatasetSource):
    """Wraps an already constructed definition."""

    def __init__(self, definition: DatabaseDefinition):
        self.definition = definition

    def resolve(self) -> DatabaseDefinition:
        return self.definition

    def pretty(self) -> str:
        return f"literal_dataset_definition({self.definition.database_name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LiteralDatasetSource) and other.definition == self.definition

    def __hash__(self) -> int:
        return hash(self.definition)


class FileDatasetSource(DatasetSource):
    """A definition read from the YAML resource ``<dataset_name>.yaml``.

    The resource is read on the first ``resolve()`` and never again.
    """

    def __init__(self, dataset_name: str, definitions_dir: Optional[Path] = None):
        self.dataset_name = dataset_name
        self.definitions_dir = definitions_dir
        self._definition: Lazy[DatabaseDefinition] = Lazy(self._load)

    def _load(self) -> DatabaseDefinition:
        logger.info(f"Loading dataset definition {self.dataset_name}")
        return load_definition(self.dataset_name, self.definitions_dir)

    def resolve(self) -> DatabaseDefinition:
        return self._definition.get()

    def pretty(self) -> str:
        return f"file_dataset_definition({self.dataset_name!r})"


def get_dataset_definition(definition: DefinitionLike) -> DatabaseDefinition:
    """Resolve a definition or definition source into a ``DatabaseDefinition``."""
    if isinstance(definition, DatabaseDefinition):
        return definition
    if isinstance(definition, DatasetSource):
        return definition.resolve()
    raise TypeError(f"Not a dataset definition or source: {definition!r}")


def pretty(definition: DefinitionLike) -> str:
    """Diagnostic representation of a definition or source."""
    return definition.pretty()


def dataset_definition(database_name: str, *tables: TableSpec) -> DatabaseDefinition:
    """Build a definition from table specifications.

    Each table is a ``(table_name, fields, rows)`` triple or a mapping with
    ``table_name``/``field_definitions``/``rows`` keys; fields are mappings
    or ``FieldDefinition`` instances.

    Example:
        >>> dataset_definition(
        ...     "shop",
        ...     ("categories", [{"field_name": "name", "base_type": "Text"}], [["toys"]]),
        ... )
    """
    return parse_definition(database_name, tables)


_defined_datasets: dict[str, DatabaseDefinition] = {}
_defined_datasets_lock = threading.Lock()


def defdataset(database_name: str, tables: Sequence[Any]) -> DatabaseDefinition:
    """Define a dataset once per process.

    Later calls with the same name return the first definition, the way a
    module-level dataset constant would behave.
    """
    with _defined_datasets_lock:
        if database_name not in _defined_datasets:
            _defined_datasets[database_name] = dataset_definition(database_name, *tables)
        return _defined_datasets[database_name]


def file_dataset_definition(dataset_name: str, definitions_dir: Optional[Path] = None) -> FileDatasetSource:
    """Define a dataset backed by ``<definitions_dir>/<dataset_name>.yaml``."""
    return FileDatasetSource(dataset_name, definitions_dir)
