"""Dataset definitions: sources, transformations and flattening."""

from fixturedb.dataset.flatten import flattened_dataset_definition
from fixturedb.dataset.instances import ModelRepository, database_instance, field_instance, table_instance
from fixturedb.dataset.naming import db_qualified_table_name, escaped_name, single_db_qualified_name_components
from fixturedb.dataset.sources import (
    DatasetSource,
    FileDatasetSource,
    LiteralDatasetSource,
    dataset_definition,
    defdataset,
    file_dataset_definition,
    get_dataset_definition,
)
from fixturedb.dataset.transform import (
    TransformedDatasetSource,
    only_tables,
    transformed_dataset_definition,
    update_table,
    update_table_definitions,
)

__all__ = [
    "DatasetSource",
    "FileDatasetSource",
    "LiteralDatasetSource",
    "ModelRepository",
    "TransformedDatasetSource",
    "database_instance",
    "dataset_definition",
    "db_qualified_table_name",
    "defdataset",
    "escaped_name",
    "field_instance",
    "file_dataset_definition",
    "flattened_dataset_definition",
    "get_dataset_definition",
    "only_tables",
    "single_db_qualified_name_components",
    "table_instance",
    "transformed_dataset_definition",
    "update_table",
    "update_table_definitions",
]
